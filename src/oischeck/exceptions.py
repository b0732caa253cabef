"""Exception hierarchy for oischeck.

All exceptions inherit from :class:`OischeckError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`oischeck.exit_codes`.

Document problems found by the validator are *not* raised: they are returned
as :class:`~oischeck.issues.Issue` lists. Exceptions are reserved for
primitive predicates (which the schema turns into issues), for callers that
explicitly ask to raise, and for failures outside the document itself.

Subclass hierarchy::

    OischeckError (exit 1)
    +-- FormatError              (exit 3)
    |   +-- VersionMismatchError (exit 3)
    +-- InvalidDocumentError     (exit 3)
    +-- DocumentLoadError        (exit 4)
    +-- ConfigError              (exit 2)
    +-- ValidatorContractError   (exit 1)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from oischeck.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_DOCUMENT,
    EXIT_INVALID_USAGE,
    EXIT_LOAD_ERROR,
)

if TYPE_CHECKING:
    from oischeck.issues import Issue


class OischeckError(Exception):
    """Base exception for all oischeck errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class FormatError(OischeckError):
    """Raised when a primitive value fails a format predicate."""

    exit_code = EXIT_INVALID_DOCUMENT


class VersionMismatchError(FormatError):
    """Raised when ``oisFormat`` is not compatible with the reference version.

    Args:
        version: The offending ``oisFormat`` value.
        reference: The reference version it was compared against.
    """

    def __init__(self, version: str, reference: str):
        super().__init__(
            f'oisFormat major.minor version must match major.minor version of "{reference}" '
            f'(got "{version}")'
        )
        self.version = version
        self.reference = reference


class InvalidDocumentError(OischeckError):
    """Raised on request when a document has validation issues.

    Raised by :meth:`~oischeck.validator.ValidationResult.raise_for_issues`,
    :func:`~oischeck.validator.parse_ois` and
    :meth:`~oischeck.validator.OisValidator.parse_structure`;
    :meth:`~oischeck.validator.OisValidator.validate` returns the issue list.
    """

    exit_code = EXIT_INVALID_DOCUMENT

    def __init__(self, issues: list[Issue]):
        count = len(issues)
        super().__init__(f"OIS document has {count} validation issue{'s' if count != 1 else ''}")
        self.issues = issues


class DocumentLoadError(OischeckError):
    """Raised when a document cannot be read, fetched, or decoded."""

    exit_code = EXIT_LOAD_ERROR


class ConfigError(OischeckError):
    """Raised for configuration problems (bad reference version, invalid project config)."""

    exit_code = EXIT_INVALID_USAGE


class ValidatorContractError(OischeckError):
    """Raised when the rule engine is called with something other than a typed document.

    This signals a programming error in the caller, not a problem with the
    document being validated.
    """
