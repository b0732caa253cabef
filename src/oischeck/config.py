"""Configuration resolution with XDG paths and precedence rules.

oischeck has little to configure: the reference version that ``oisFormat``
is checked against and the preferred output format. Both are described by
:class:`~oischeck.models.CheckConfig` and resolved by :func:`resolve_config`
from, highest precedence first:

1. CLI flags (``--reference-version``, ``--json``, ``--plain``)
2. Environment variable ``OISCHECK_REFERENCE_VERSION``
3. Project config (``./oischeck.json``)
4. Defaults (the installed oischeck version, ``auto`` output)

:func:`get_data_dir` locates the directory where crash logs are written.
"""

from __future__ import annotations

import json
import logging
import os
import platform
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from oischeck.exceptions import ConfigError
from oischeck.models import CheckConfig

logger = logging.getLogger(__name__)

_APP_NAME = "oischeck"
_PROJECT_CONFIG_FILENAME = "oischeck.json"
REFERENCE_VERSION_ENV = "OISCHECK_REFERENCE_VERSION"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/oischeck/`` (default ``~/.local/share/oischeck/``).
    On macOS/Windows: ``~/.oischeck/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./oischeck.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a valid JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    logger.debug("Loaded project config from %s", path)
    return data


# --- Precedence resolution ---


def resolve_config(
    cli_reference_version: Optional[str] = None,
    cli_format: Optional[str] = None,
) -> CheckConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flags (``cli_reference_version``, ``cli_format``)
        2. Environment variable (``OISCHECK_REFERENCE_VERSION``)
        3. Project config (``./oischeck.json``)
        4. Defaults

    Returns:
        The merged :class:`~oischeck.models.CheckConfig`.

    Raises:
        ConfigError: If the project config is malformed or contains unknown keys.
    """
    settings: dict[str, Any] = load_project_config() or {}

    env_version = os.environ.get(REFERENCE_VERSION_ENV)
    if env_version:
        settings["reference_version"] = env_version

    if cli_reference_version is not None:
        settings["reference_version"] = cli_reference_version
    if cli_format is not None:
        settings["output_format"] = cli_format

    try:
        return CheckConfig.model_validate(settings)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
