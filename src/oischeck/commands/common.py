"""Setup shared by the oischeck sub-commands."""

from __future__ import annotations

from typing import Any, NoReturn, Optional

import typer

from oischeck.config import resolve_config
from oischeck.exceptions import OischeckError
from oischeck.loader import load_document
from oischeck.models import CheckConfig
from oischeck.output import OutputFormat, OutputManager, error, get_output, set_output


def format_flag(json_output: bool, plain_output: bool) -> Optional[str]:
    """Translate the ``--json`` / ``--plain`` flags into a format name."""
    if json_output:
        return OutputFormat.JSON.value
    if plain_output:
        return OutputFormat.PLAIN.value
    return None


def prepare_command(
    ctx: typer.Context,
    reference_version: Optional[str] = None,
    cli_format: Optional[str] = None,
) -> CheckConfig:
    """Resolve the effective configuration for a sub-command.

    Format flags given on the sub-command override those given on the root
    command. When neither asked for a format, a non-``auto``
    ``output_format`` from the project config replaces the output manager
    installed by the root callback.

    Raises:
        typer.Exit: With the error's exit code when the configuration is invalid.
    """
    obj = ctx.ensure_object(dict)
    requested = cli_format or obj.get("format")
    try:
        config = resolve_config(cli_reference_version=reference_version, cli_format=requested)
    except OischeckError as exc:
        fail(exc)

    wanted = cli_format
    if wanted is None and requested is None and config.output_format != OutputFormat.AUTO.value:
        wanted = config.output_format

    current = get_output()
    if wanted is not None and current.format.value != wanted:
        set_output(
            OutputManager(
                format=OutputFormat(wanted),
                no_color=obj.get("no_color", False),
                quiet=current.is_quiet,
                verbose=current.is_verbose,
            )
        )
    return config


def load_or_exit(source: str) -> dict[str, Any]:
    """Load *source*, turning a :class:`~oischeck.exceptions.DocumentLoadError` into an exit."""
    try:
        return load_document(source)
    except OischeckError as exc:
        fail(exc)


def fail(exc: OischeckError) -> NoReturn:
    """Report *exc* on stderr and exit with its exit code."""
    error(str(exc))
    raise typer.Exit(code=exc.exit_code) from None
