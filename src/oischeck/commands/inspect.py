"""Inspect commands -- examine the contents of an OIS document.

Provides the ``oischeck inspect`` sub-command group with read-only commands
for viewing the endpoints of a document and the API operations they bind
to. The document only has to pass the structural schema; cross-field rule
violations are not reported here (use ``oischeck validate`` for that).
"""

from __future__ import annotations

import json
from typing import Optional

import typer

from oischeck.commands.common import fail, load_or_exit, prepare_command
from oischeck.exceptions import InvalidDocumentError, OischeckError
from oischeck.models import Endpoint, Ois
from oischeck.output import info, print_table, report_issues, warning
from oischeck.validator import OisValidator


inspect_app = typer.Typer(no_args_is_help=True)


def _load_ois(ctx: typer.Context, source: str, reference_version: Optional[str]) -> Ois:
    """Load *source* and run the structural pass on it.

    Raises:
        typer.Exit: With the error's exit code when the configuration or the
            document is invalid, after printing the structural issues.
    """
    config = prepare_command(ctx, reference_version)
    document = load_or_exit(source)
    try:
        return OisValidator(config.reference_version).parse_structure(document)
    except InvalidDocumentError as exc:
        report_issues(exc.issues, title=f"{source} -- Issues ({len(exc.issues)})")
        fail(exc)
    except OischeckError as exc:
        fail(exc)


def _format_value(value: object) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _endpoint_operation(endpoint: Endpoint) -> str:
    if endpoint.operation is None:
        return "-"
    return f"{endpoint.operation.method.upper()} {endpoint.operation.path}"


def _endpoint_parameters(endpoint: Endpoint) -> str:
    names = []
    for parameter in endpoint.parameters:
        if parameter.operation_parameter is None:
            names.append(parameter.name)
        else:
            location, name = parameter.operation_parameter.key
            names.append(f"{parameter.name} -> {location}.{name}")
    return ", ".join(names) or "-"


@inspect_app.command("endpoints")
def inspect_endpoints(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="File path, http(s) URL, or '-' for stdin."),
    reference_version: Optional[str] = typer.Option(
        None, "--reference-version", "-r", help="Version whose major.minor oisFormat must match."
    ),
) -> None:
    """List the endpoints of a document.

    Shows each endpoint with the API operation it calls, its parameters and
    the operation parameters they bind to, its fixed parameters and the
    names of its reserved parameters.

    Example::

        oischeck inspect endpoints ois.json
    """
    ois = _load_ois(ctx, source, reference_version)
    if not ois.endpoints:
        info("No endpoints defined in this document.")
        return

    headers = ["Endpoint", "Operation", "Parameters", "Fixed", "Reserved"]
    rows: list[list[str]] = []
    for endpoint in ois.endpoints:
        fixed = ", ".join(
            f"{p.operation_parameter.location}.{p.operation_parameter.name}={_format_value(p.value)}"
            for p in endpoint.fixed_operation_parameters
        )
        reserved = ", ".join(p.name for p in endpoint.reserved_parameters)
        rows.append([
            endpoint.name,
            _endpoint_operation(endpoint),
            _endpoint_parameters(endpoint),
            fixed or "-",
            reserved or "-",
        ])

    print_table(headers, rows, title=f"{ois.title} -- Endpoints ({len(rows)})")


@inspect_app.command("operations")
def inspect_operations(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="File path, http(s) URL, or '-' for stdin."),
    reference_version: Optional[str] = typer.Option(
        None, "--reference-version", "-r", help="Version whose major.minor oisFormat must match."
    ),
) -> None:
    """List the API operations of a document.

    Shows every path and method declared under ``apiSpecifications`` with
    its parameters and the endpoints that call it. Operations no endpoint
    calls are listed with ``-`` in the Endpoints column.

    Example::

        oischeck inspect operations ois.json --plain
    """
    ois = _load_ois(ctx, source, reference_version)
    paths = ois.api_specifications.paths
    if not paths:
        info("No operations defined in this document.")
        return

    headers = ["Method", "Path", "Parameters", "Endpoints"]
    rows: list[list[str]] = []
    uncalled = 0
    for path, methods in paths.items():
        for method, operation in methods.items():
            parameters = ", ".join(f"{p.location}.{p.name}" for p in operation.parameters)
            callers = [
                endpoint.name
                for endpoint in ois.endpoints
                if endpoint.operation is not None
                and endpoint.operation.method == method
                and endpoint.operation.path == path
            ]
            rows.append([method.upper(), path, parameters or "-", ", ".join(callers) or "-"])
            if not callers:
                uncalled += 1

    print_table(headers, rows, title=f"{ois.title} -- Operations ({len(rows)})")
    if uncalled:
        warning(f"{uncalled} operation(s) not called by any endpoint")
