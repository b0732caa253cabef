"""Atomic value checks used by the OIS schema and rules.

Each ``validate_*`` function returns ``None`` on success and raises
:class:`~oischeck.exceptions.FormatError` (or its subclass
:class:`~oischeck.exceptions.VersionMismatchError`) on failure. The schema in
:mod:`oischeck.models` wraps these calls and turns the exceptions into
validation issues, so the functions can also be used on their own.
"""

from __future__ import annotations

import re

from oischeck.exceptions import FormatError, VersionMismatchError

RESERVED_PARAMETERS: tuple[str, ...] = (
    "_type",
    "_path",
    "_times",
    "_minConfirmations",
    "_gasPrice",
)
"""Names of the reserved parameters, in declaration order."""

NUMERIC_RESERVED_PARAMETERS: frozenset[str] = frozenset({"_minConfirmations", "_gasPrice"})
"""Reserved parameters whose value must be a non-negative integer string."""

RELAY_METADATA_TYPES: tuple[str, ...] = (
    "relayChainId",
    "relayChainType",
    "relayRequesterAddress",
    "relaySponsorAddress",
    "relaySponsorWalletAddress",
    "relayRequestId",
)
"""Security scheme types that relay request metadata to the API."""

PATH_TEMPLATE_PATTERN = r"^/\S*$"
"""Path templates start with ``/`` and contain no whitespace."""

SEMVER_MESSAGE = 'Expected semantic versioning "x.y.z"'

_PATH_TEMPLATE_RE = re.compile(PATH_TEMPLATE_PATTERN)
_PLACEHOLDER_RE = re.compile(r"{[^}]+}")
_INTEGER_RE = re.compile(r"[+-]?\d+")


def validate_semver(value: str) -> None:
    """Check that *value* is an ``x.y.z`` version made of digits only.

    Leading zeros are allowed (``"00.01.02"`` is accepted), pre-release
    and build suffixes are not.

    Raises:
        FormatError: If *value* does not have exactly three numeric parts.
    """
    parts = value.split(".")
    if len(parts) != 3 or not all(part.isdigit() and part.isascii() for part in parts):
        raise FormatError(SEMVER_MESSAGE)


def validate_version_compatible(value: str, reference: str) -> None:
    """Check that *value* is semver and shares major.minor with *reference*.

    Args:
        value: The version found in the document (``oisFormat``).
        reference: The version the validator was configured with.

    Raises:
        FormatError: If *value* is not a semantic version.
        VersionMismatchError: If the major or minor component differs.
    """
    validate_semver(value)
    if value.split(".")[:2] != reference.split(".")[:2]:
        raise VersionMismatchError(value, reference)


def validate_path_template(value: str) -> None:
    """Check that *value* starts with ``/`` and contains no whitespace.

    Raises:
        FormatError: If the path template is malformed.
    """
    if not _PATH_TEMPLATE_RE.fullmatch(value):
        raise FormatError(f'Invalid path "{value}": must start with "/" and contain no whitespace')


def validate_non_negative_integer_string(value: str) -> None:
    """Check that *value* is a base-10 integer greater than or equal to zero.

    Raises:
        FormatError: If *value* is not an integer or is negative.
    """
    if not _INTEGER_RE.fullmatch(value) or int(value) < 0:
        raise FormatError(f'Expected a non-negative integer, got "{value}"')


def is_reserved_parameter_name(value: str) -> bool:
    """Return ``True`` if *value* is one of :data:`RESERVED_PARAMETERS`."""
    return value in RESERVED_PARAMETERS


def extract_path_placeholders(template: str) -> list[str]:
    """Return the ``{name}`` placeholders of a path template, braces stripped.

    Example::

        >>> extract_path_placeholders("/users/{id}/{action}")
        ['id', 'action']
    """
    return [match.lstrip("{").rstrip("}") for match in _PLACEHOLDER_RE.findall(template)]
