"""Shared test fixtures for oischeck.

Provides the reference OIS document, a validator bound to the installed
version, isolated configuration environments, output state management, and
a CLI runner. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any

import pytest

from oischeck import __version__
from oischeck.output import OutputFormat, OutputManager, reset_output, set_output
from oischeck.validator import OisValidator


FIXTURES_DIR = Path(__file__).parent / "fixtures"

with open(FIXTURES_DIR / "ois.json") as _f:
    _OIS_FIXTURE: dict[str, Any] = json.load(_f)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches Rich consoles bound to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during a
    test, the cached references become stale once it finishes. Resetting
    forces a fresh manager to be created on next use. The handlers and level
    that ``--verbose`` puts on the ``oischeck`` logger are removed as well.
    """
    yield
    reset_output()
    logger = logging.getLogger("oischeck")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# OIS document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def ois_raw() -> dict[str, Any]:
    """A fresh, valid OIS document as a plain dict.

    ``oisFormat`` is synced to the installed version so the fixture keeps
    validating after version bumps. Each test gets its own deep copy and
    may mutate it freely.
    """
    document = copy.deepcopy(_OIS_FIXTURE)
    document["oisFormat"] = __version__
    return document


@pytest.fixture
def ois_file(tmp_path: Path, ois_raw: dict[str, Any]) -> Path:
    """The reference document written to a temporary JSON file."""
    path = tmp_path / "ois.json"
    path.write_text(json.dumps(ois_raw, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def validator() -> OisValidator:
    """Validator using the installed version as reference."""
    return OisValidator()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_DATA_HOME at a subdirectory of tmp_path so crash logs never
    touch the real user directories, clears OISCHECK_* environment variables
    and changes the working directory to tmp_path (where ``oischeck.json``
    is looked up).

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("OISCHECK_REFERENCE_VERSION", raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
