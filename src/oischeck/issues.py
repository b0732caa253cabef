"""Validation issues and their conversion from Pydantic errors.

Every problem found in a document -- whether by the structural schema or by a
cross-field rule -- is reported as an :class:`Issue`. Issues carry a short
``code`` tag, a human ``message`` and the ``path`` from the document root to
the offending node, which downstream tooling uses to highlight the JSON
location. Code-specific details (``keys``, ``expected``, ``received``,
``pattern``, ``params``) are only set where they apply.

The structural pass produces Pydantic :class:`~pydantic.ValidationError`
objects; :func:`issues_from_validation_error` translates them into issues,
grouping unknown keys per object and removing Pydantic-specific location
segments (dict-key markers and discriminated-union tags).
"""

from __future__ import annotations

import enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from oischeck.models import SECURITY_SCHEME_TYPES

PathItem = Union[str, int]


class IssueKind(str, enum.Enum):
    """Broad category of an issue.

    ``STRUCTURAL``, ``FORMAT`` and ``VERSION_MISMATCH`` issues come from the
    structural pass; ``SEMANTIC`` issues mostly come from the cross-field
    rules (a reserved name used as an operation parameter name is the one
    semantic check made by the schema).
    """

    STRUCTURAL = "structural"
    FORMAT = "format"
    SEMANTIC = "semantic"
    VERSION_MISMATCH = "version_mismatch"


class Issue(BaseModel):
    """A single validation problem located in the document.

    Example::

        Issue(
            code="custom",
            kind=IssueKind.SEMANTIC,
            message='Parameter "from" in "query" is used multiple times',
            path=["endpoints", 0, "parameters", 3],
        )
    """

    model_config = ConfigDict(frozen=True)

    code: str = Field(description="Short tag: custom, invalid_type, unrecognized_keys, ...")
    kind: IssueKind
    message: str
    path: list[PathItem] = Field(default_factory=list)
    keys: Optional[list[str]] = None
    expected: Optional[str] = None
    received: Optional[str] = None
    pattern: Optional[str] = None
    params: Optional[dict[str, Any]] = None

    @classmethod
    def semantic(cls, message: str, path: list[PathItem]) -> Issue:
        """Build a ``custom`` issue as emitted by the cross-field rules."""
        return cls(code="custom", kind=IssueKind.SEMANTIC, message=message, path=list(path))

    @property
    def pointer(self) -> str:
        """The path rendered as an RFC 6901 JSON pointer (``""`` for the root)."""
        return "".join(
            "/" + str(item).replace("~", "~0").replace("/", "~1") for item in self.path
        )

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-compatible dict containing only the fields that are set."""
        return self.model_dump(mode="json", exclude_none=True)


# --- Pydantic error conversion ---

_EXPECTED_TYPES = {
    "string_type": "string",
    "int_type": "integer",
    "int_from_float": "integer",
    "float_type": "number",
    "bool_type": "boolean",
    "list_type": "array",
    "dict_type": "object",
    "model_type": "object",
    "model_attributes_type": "object",
}

_FORMAT_ERROR_TYPES = frozenset({"string_pattern_mismatch", "invalid_format"})

_DICT_KEY_MARKER = "[key]"


def json_type_name(value: Any) -> str:
    """Return the JSON type name of a parsed value (``"null"``, ``"array"``, ...)."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _clean_location(loc: tuple[PathItem, ...]) -> list[PathItem]:
    """Turn a Pydantic error location into a document path.

    Drops the ``[key]`` marker Pydantic appends for invalid dict keys and the
    tag segment it inserts after ``securitySchemes.<name>`` for the
    discriminated security scheme union.
    """
    path: list[PathItem] = []
    for index, item in enumerate(loc):
        if item == _DICT_KEY_MARKER:
            continue
        if (
            index >= 2
            and loc[index - 2] == "securitySchemes"
            and isinstance(item, str)
            and item in SECURITY_SCHEME_TYPES
            and index < len(loc) - 1
        ):
            continue
        path.append(item)
    return path


def _convert_error(error: dict[str, Any], path: list[PathItem]) -> Issue:
    """Convert one non-``extra_forbidden`` Pydantic error into an :class:`Issue`."""
    error_type: str = error["type"]
    ctx: dict[str, Any] = error.get("ctx") or {}
    message: str = error["msg"]

    if error_type == "missing":
        return Issue(
            code="invalid_type",
            kind=IssueKind.STRUCTURAL,
            message="Required",
            path=path,
            received="undefined",
        )

    if error_type in _EXPECTED_TYPES:
        expected = _EXPECTED_TYPES[error_type]
        received = json_type_name(error.get("input"))
        return Issue(
            code="invalid_type",
            kind=IssueKind.STRUCTURAL,
            message=f"Expected {expected}, received {received}",
            path=path,
            expected=expected,
            received=received,
        )

    if error_type == "literal_error":
        return Issue(
            code="invalid_enum_value",
            kind=IssueKind.STRUCTURAL,
            message=message,
            path=path,
            expected=str(ctx.get("expected")),
            received=json_type_name(error.get("input")),
        )

    if error_type in ("union_tag_invalid", "union_tag_not_found"):
        return Issue(
            code="invalid_union_discriminator",
            kind=IssueKind.STRUCTURAL,
            message=message,
            path=path,
            expected=ctx.get("expected_tags"),
        )

    if error_type in _FORMAT_ERROR_TYPES:
        pattern = ctx.get("pattern")
        if error_type == "string_pattern_mismatch":
            message = f'Invalid string: must match pattern "{pattern}"'
        return Issue(
            code="invalid_format",
            kind=IssueKind.FORMAT,
            message=message,
            path=path,
            pattern=pattern,
        )

    if error_type == "greater_than_equal":
        return Issue(code="too_small", kind=IssueKind.FORMAT, message=message, path=path)

    if error_type == "too_long":
        return Issue(code="too_big", kind=IssueKind.STRUCTURAL, message=message, path=path)

    if error_type == "version_mismatch":
        return Issue(
            code="custom",
            kind=IssueKind.VERSION_MISMATCH,
            message=message,
            path=path,
            params={"version": ctx.get("version"), "reference": ctx.get("reference")},
        )

    if error_type == "custom":
        return Issue(code="custom", kind=IssueKind.SEMANTIC, message=message, path=path)

    return Issue(code=error_type, kind=IssueKind.STRUCTURAL, message=message, path=path)


def issues_from_validation_error(exc: ValidationError) -> list[Issue]:
    """Translate every error of *exc* into issues, preserving their order.

    Unknown keys are reported once per object: all ``extra_forbidden`` errors
    sharing a parent path become a single ``unrecognized_keys`` issue whose
    ``keys`` lists the offending names, placed where the first one appeared.

    Args:
        exc: The error raised by ``Ois.model_validate`` (or any model of
            :mod:`oischeck.models`).

    Returns:
        The issues in the order Pydantic reported them.
    """
    slots: list[Union[Issue, tuple[PathItem, ...]]] = []
    unknown_keys: dict[tuple[PathItem, ...], list[str]] = {}

    for error in exc.errors(include_url=False):
        path = _clean_location(tuple(error["loc"]))
        if error["type"] == "extra_forbidden":
            parent = tuple(path[:-1])
            if parent not in unknown_keys:
                unknown_keys[parent] = []
                slots.append(parent)
            unknown_keys[parent].append(str(path[-1]))
        else:
            slots.append(_convert_error(error, path))

    issues: list[Issue] = []
    for slot in slots:
        if isinstance(slot, Issue):
            issues.append(slot)
            continue
        keys = unknown_keys[slot]
        listed = ", ".join(f"'{key}'" for key in keys)
        issues.append(
            Issue(
                code="unrecognized_keys",
                kind=IssueKind.STRUCTURAL,
                message=f"Unrecognized key(s) in object: {listed}",
                path=list(slot),
                keys=keys,
            )
        )
    return issues
