"""Validation driver: structural schema first, then the cross-field rules.

:class:`OisValidator` is the main entry point. It validates a parsed document
against the strict schema in :mod:`oischeck.models`; only when that pass
succeeds does it run every rule of :data:`~oischeck.rules.RULES`, in order,
collecting all of their issues. Nothing short-circuits: a single document can
surface many issues at once.

The validator holds nothing but its reference version, so one instance can be
shared freely and :meth:`OisValidator.validate` can be called concurrently.

Example::

    validator = OisValidator(reference_version="2.3.0")
    result = validator.validate(document)
    if result.success:
        print(result.ois.title)
    else:
        for issue in result.issues:
            print(issue.pointer, issue.message)
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from oischeck import __version__
from oischeck.exceptions import (
    ConfigError,
    FormatError,
    InvalidDocumentError,
    ValidatorContractError,
)
from oischeck.issues import Issue, issues_from_validation_error
from oischeck.models import REFERENCE_VERSION_CONTEXT_KEY, Ois
from oischeck.primitives import validate_semver
from oischeck.rules import RULES

logger = logging.getLogger(__name__)


class ValidationResult(BaseModel):
    """Outcome of validating one document.

    Exactly one of the two situations holds: ``ois`` is the typed document
    and ``issues`` is empty, or ``ois`` is ``None`` and ``issues`` lists every
    problem found.
    """

    ois: Optional[Ois] = None
    issues: list[Issue] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        """``True`` when the document passed every check."""
        return not self.issues

    def raise_for_issues(self) -> Ois:
        """Return the typed document, or raise if validation found issues.

        Raises:
            InvalidDocumentError: Carrying the full issue list.
        """
        if self.issues or self.ois is None:
            raise InvalidDocumentError(self.issues)
        return self.ois


class OisValidator:
    """Validates OIS documents against a fixed reference version.

    Args:
        reference_version: The version whose major.minor a document's
            ``oisFormat`` must match. Defaults to the installed oischeck
            version.

    Raises:
        ConfigError: If *reference_version* is not a semantic version.
    """

    def __init__(self, reference_version: str = __version__) -> None:
        try:
            validate_semver(reference_version)
        except FormatError as exc:
            raise ConfigError(
                f'Reference version "{reference_version}" is not a semantic version "x.y.z"'
            ) from exc
        self._reference_version = reference_version

    @property
    def reference_version(self) -> str:
        """The version ``oisFormat`` is checked against."""
        return self._reference_version

    def parse_structure(self, data: Any) -> Ois:
        """Run the structural pass only and return the typed document.

        Raises:
            InvalidDocumentError: With the structural issues when the
                document does not match the schema.
        """
        try:
            return Ois.model_validate(
                data, context={REFERENCE_VERSION_CONTEXT_KEY: self._reference_version}
            )
        except ValidationError as exc:
            issues = issues_from_validation_error(exc)
            logger.debug("Structural validation failed with %d issue(s)", len(issues))
            raise InvalidDocumentError(issues) from exc

    def validate(self, data: Any) -> ValidationResult:
        """Validate a parsed document.

        Args:
            data: The document as a JSON-compatible Python value (normally a
                ``dict`` produced by :func:`json.load` or
                :func:`~oischeck.loader.load_document`). It is never mutated.

        Returns:
            A :class:`ValidationResult`. Structural issues are returned alone;
            the cross-field rules only run on structurally valid documents.
        """
        try:
            ois = self.parse_structure(data)
        except InvalidDocumentError as exc:
            return ValidationResult(issues=exc.issues)

        issues = self.check_rules(ois)
        if issues:
            return ValidationResult(issues=issues)
        return ValidationResult(ois=ois)

    def check_rules(self, ois: Ois) -> list[Issue]:
        """Run every cross-field rule on an already validated document.

        Args:
            ois: A typed document, as produced by the structural pass.

        Returns:
            The concatenated issues of all rules, in rule order.

        Raises:
            ValidatorContractError: If *ois* is not an :class:`~oischeck.models.Ois`.
        """
        if not isinstance(ois, Ois):
            raise ValidatorContractError(
                f"Cross-field rules require a validated Ois document, got {type(ois).__name__}"
            )
        issues: list[Issue] = []
        for rule in RULES:
            found = rule(ois)
            if found:
                logger.debug("Rule %s reported %d issue(s)", rule.__name__, len(found))
            issues.extend(found)
        return issues


def validate_ois(data: Any, reference_version: Optional[str] = None) -> ValidationResult:
    """Validate *data* with a one-off :class:`OisValidator`.

    Args:
        data: The parsed document.
        reference_version: Optional override of the reference version.
    """
    validator = OisValidator(reference_version or __version__)
    return validator.validate(data)


def parse_ois(data: Any, reference_version: Optional[str] = None) -> Ois:
    """Validate *data* and return the typed document.

    Raises:
        InvalidDocumentError: If validation found any issue.
    """
    return validate_ois(data, reference_version).raise_for_issues()
