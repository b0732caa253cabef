"""Typer application factory and CLI entry point for oischeck.

This module wires together the top-level Typer application and registers the
built-in sub-commands (``validate``, ``inspect``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`oischeck.config`: Reference-version and output configuration.
    :mod:`oischeck.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler

from oischeck import __version__
from oischeck.commands.common import format_flag
from oischeck.commands.inspect import inspect_app
from oischeck.commands.validate import validate_command
from oischeck.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="oischeck",
    help="Validate Oracle Integration Specification (OIS) documents.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("validate")(validate_command)
app.add_typer(inspect_app, name="inspect", help="Inspect the contents of an OIS document.")


def _version_callback(value: bool) -> None:
    """Handle ``--version``: echo the installed version and stop."""
    if value:
        typer.echo(f"oischeck {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    """Route ``oischeck`` log records to stderr through Rich when verbose."""
    logger = logging.getLogger("oischeck")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    if verbose:
        handler = RichHandler(console=Console(stderr=True), show_path=False)
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.WARNING)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Never use color."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Only print data, warnings and errors."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show debug messages on stderr."
    ),
) -> None:
    """Global options, applied before any sub-command runs.

    Initialises the global :class:`~oischeck.output.OutputManager` and the
    ``oischeck`` logger from CLI flags, and stores the requested format in
    the Typer context so that sub-commands can merge it with the project
    configuration.

    Args:
        ctx: Typer context; ``ctx.obj`` receives ``format`` and ``no_color``.
        version: Handled eagerly by :func:`_version_callback`.
        json_output: Report issues and tables as JSON.
        plain_output: Report issues and tables as tab-separated text.
        no_color: Print without colour even on a terminal.
        quiet: Only print data, warnings and errors.
        verbose: Show debug messages and ``oischeck`` log records on stderr.
    """
    from oischeck.output import OutputFormat, OutputManager, set_output

    requested = format_flag(json_output, plain_output)
    output = OutputManager(
        format=OutputFormat(requested) if requested else OutputFormat.AUTO,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    set_output(output)
    _configure_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["format"] = requested
    ctx.obj["no_color"] = no_color


def _setup_signal_handlers() -> None:
    """Exit with status 130 on Ctrl-C instead of printing a traceback."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Save the traceback of *exc* under ``<data dir>/logs`` and return the file path."""
    from oischeck.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text("".join(traceback.format_exception(exc)))
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``oischeck`` console script.

    Unhandled :class:`~oischeck.exceptions.OischeckError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: On every path; the status is one of :mod:`oischeck.exit_codes`
            or 130 after Ctrl-C.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from oischeck.exceptions import OischeckError
        from oischeck.output import error

        if isinstance(exc, OischeckError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
