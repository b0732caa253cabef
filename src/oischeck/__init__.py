"""oischeck -- Validate Oracle Integration Specification (OIS) documents.

An OIS document describes how an oracle node calls a third-party HTTP API:
the API's paths and parameters, the oracle-facing endpoints bound to them,
the reserved parameters that shape the response, and optional pre/post
processing snippets. This package checks that such a document is well formed
and internally consistent.

Typical usage::

    from oischeck import OisValidator

    result = OisValidator().validate(document)
    if not result.success:
        for issue in result.issues:
            print(issue.pointer, issue.message)

Modules:
    primitives: Atomic value checks (semver, path templates, integer strings).
    models: Strict Pydantic models describing the OIS document shape.
    issues: The :class:`~oischeck.issues.Issue` record and conversion from
        Pydantic errors.
    rules: Cross-field consistency rules run on structurally valid documents.
    validator: The validation driver tying the two passes together.
    loader: Read documents from files, URLs, or stdin.
    config: Reference-version and output configuration resolution.
    output: stdout/stderr output formatting (rich, plain, JSON).
    commands: The ``validate`` and ``inspect`` CLI commands.
    app: Typer application factory and CLI entry point.
"""

__version__ = "2.3.2"

from oischeck.issues import Issue, IssueKind  # noqa: E402
from oischeck.primitives import RESERVED_PARAMETERS  # noqa: E402
from oischeck.validator import OisValidator, ValidationResult, parse_ois, validate_ois  # noqa: E402

__all__ = [
    "__version__",
    "Issue",
    "IssueKind",
    "OisValidator",
    "RESERVED_PARAMETERS",
    "ValidationResult",
    "parse_ois",
    "validate_ois",
]
