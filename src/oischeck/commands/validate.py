"""Validate command -- check an OIS document and report its issues.

Loads the document, runs the structural schema and every cross-field rule,
and prints the full issue list. Exit codes:

* ``0`` -- the document is valid.
* ``2`` -- invalid configuration (e.g. a non-semver reference version).
* ``3`` -- the document has validation issues.
* ``4`` -- the document could not be loaded.
"""

from __future__ import annotations

from typing import Optional

import typer

from oischeck.commands.common import fail, format_flag, load_or_exit, prepare_command
from oischeck.exceptions import OischeckError
from oischeck.exit_codes import EXIT_INVALID_DOCUMENT
from oischeck.output import OutputFormat, debug, error, get_output, report_issues, success
from oischeck.validator import OisValidator


def validate_command(
    ctx: typer.Context,
    source: str = typer.Argument(
        ..., help="Document to validate: file path, http(s) URL, or '-' for stdin."
    ),
    reference_version: Optional[str] = typer.Option(
        None,
        "--reference-version",
        "-r",
        help="Version whose major.minor oisFormat must match.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
) -> None:
    """Validate an OIS document.

    Every issue is reported, not just the first one. Structural problems
    are reported alone; the cross-field rules only run on documents whose
    shape is valid.

    Example::

        oischeck validate ois.json
        oischeck validate https://example.com/ois.json --json
        cat ois.yaml | oischeck validate - --reference-version 2.3.0
    """
    config = prepare_command(ctx, reference_version, format_flag(json_output, plain_output))
    document = load_or_exit(source)

    try:
        validator = OisValidator(config.reference_version)
    except OischeckError as exc:
        fail(exc)

    debug(f"Validating {source} against reference version {config.reference_version}")
    result = validator.validate(document)
    json_mode = get_output().format == OutputFormat.JSON

    if result.success:
        if json_mode:
            report_issues([])
        success(f'{source} is a valid OIS document ("{result.ois.title}" {result.ois.version})')
        return

    report_issues(result.issues, title=f"{source} -- Issues ({len(result.issues)})")
    error(f"{source}: {len(result.issues)} validation issue(s)")
    raise typer.Exit(code=EXIT_INVALID_DOCUMENT)
