"""Tests for oischeck.models -- the strict structural schema.

Structural problems are checked through the issues they produce, since that
is what callers see.
"""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import BaseModel, ValidationError

from oischeck import __version__
from oischeck.issues import Issue, IssueKind, issues_from_validation_error
from oischeck.models import (
    TITLE_PATTERN,
    CheckConfig,
    Endpoint,
    EndpointParameter,
    FixedParameter,
    Ois,
    OperationParameter,
    ReservedParameter,
)
from oischeck.primitives import PATH_TEMPLATE_PATTERN, SEMVER_MESSAGE
from oischeck.validator import OisValidator


def _model_issues(model: type[BaseModel], data: Any) -> list[Issue]:
    with pytest.raises(ValidationError) as exc_info:
        model.model_validate(data)
    return issues_from_validation_error(exc_info.value)


def _reserved_name_issue(path: list) -> Issue:
    return Issue(
        code="custom",
        kind=IssueKind.SEMANTIC,
        message='"_type" cannot be used because it is a name of a reserved parameter',
        path=path,
    )


# ---------------------------------------------------------------------------
# Reference document
# ---------------------------------------------------------------------------


class TestReferenceDocument:
    """The shared fixture is a valid document."""

    def test_parses(self, ois_raw: dict[str, Any]) -> None:
        ois = Ois.model_validate(ois_raw)
        assert ois.title == "coinlayer"
        assert ois.ois_format == __version__
        assert ois.endpoints[0].operation is not None
        assert ois.endpoints[0].operation.path == "/convert"

    def test_aliases_map_to_python_names(self, ois_raw: dict[str, Any]) -> None:
        ois = Ois.model_validate(ois_raw)
        endpoint = ois.endpoints[0]
        assert endpoint.fixed_operation_parameters[0].operation_parameter.key == ("query", "to")
        assert [p.name for p in endpoint.reserved_parameters] == ["_type", "_path", "_times"]
        security = ois.api_specifications.components.security_schemes
        assert security["coinlayerSecurityScheme"].location == "query"

    def test_to_document_restores_original_keys(self, ois_raw: dict[str, Any]) -> None:
        assert Ois.model_validate(ois_raw).to_document() == ois_raw

    def test_models_are_frozen(self, ois_raw: dict[str, Any]) -> None:
        ois = Ois.model_validate(ois_raw)
        with pytest.raises(ValidationError):
            ois.title = "changed"

    def test_input_is_not_mutated(self, ois_raw: dict[str, Any], validator: OisValidator) -> None:
        import copy

        before = copy.deepcopy(ois_raw)
        validator.validate(ois_raw)
        assert ois_raw == before


# ---------------------------------------------------------------------------
# Unknown keys
# ---------------------------------------------------------------------------


class TestUnknownKeys:
    """Every modeled object rejects unknown keys."""

    def test_root_unknown_key(self, ois_raw: dict[str, Any], validator: OisValidator) -> None:
        result = validator.validate({**ois_raw, "unknownProp": "someValue"})
        assert result.issues == [
            Issue(
                code="unrecognized_keys",
                kind=IssueKind.STRUCTURAL,
                message="Unrecognized key(s) in object: 'unknownProp'",
                path=[],
                keys=["unknownProp"],
            )
        ]

    def test_unknown_keys_grouped_per_object(
        self, ois_raw: dict[str, Any], validator: OisValidator
    ) -> None:
        ois_raw["endpoints"][0]["foo"] = 1
        ois_raw["endpoints"][0]["bar"] = 2
        result = validator.validate(ois_raw)
        assert len(result.issues) == 1
        issue = result.issues[0]
        assert issue.code == "unrecognized_keys"
        assert issue.path == ["endpoints", 0]
        assert issue.keys == ["foo", "bar"]
        assert issue.message == "Unrecognized key(s) in object: 'foo', 'bar'"

    def test_unknown_keys_in_different_objects(
        self, ois_raw: dict[str, Any], validator: OisValidator
    ) -> None:
        ois_raw["extra"] = True
        ois_raw["apiSpecifications"]["servers"][0]["port"] = 80
        result = validator.validate(ois_raw)
        assert sorted(issue.pointer for issue in result.issues) == [
            "",
            "/apiSpecifications/servers/0",
        ]
        assert all(issue.code == "unrecognized_keys" for issue in result.issues)


# ---------------------------------------------------------------------------
# Types and required fields
# ---------------------------------------------------------------------------


class TestTypes:
    """Strict typing: no coercion, required fields reported as such."""

    def test_missing_field_in_security_scheme(
        self, ois_raw: dict[str, Any], validator: OisValidator
    ) -> None:
        del ois_raw["apiSpecifications"]["components"]["securitySchemes"]["coinlayerSecurityScheme"]["name"]
        result = validator.validate(ois_raw)
        assert result.issues == [
            Issue(
                code="invalid_type",
                kind=IssueKind.STRUCTURAL,
                message="Required",
                path=[
                    "apiSpecifications",
                    "components",
                    "securitySchemes",
                    "coinlayerSecurityScheme",
                    "name",
                ],
                received="undefined",
            )
        ]

    def test_wrong_type(self, ois_raw: dict[str, Any], validator: OisValidator) -> None:
        ois_raw["title"] = 123
        [issue] = validator.validate(ois_raw).issues
        assert issue.code == "invalid_type"
        assert issue.path == ["title"]
        assert issue.expected == "string"
        assert issue.received == "number"
        assert issue.message == "Expected string, received number"

    def test_numbers_are_not_coerced_to_strings(
        self, ois_raw: dict[str, Any], validator: OisValidator
    ) -> None:
        ois_raw["endpoints"][0]["parameters"][1]["default"] = 1
        [issue] = validator.validate(ois_raw).issues
        assert issue.code == "invalid_type"
        assert issue.path == ["endpoints", 0, "parameters", 1, "default"]

    def test_booleans_are_not_integers(self, ois_raw: dict[str, Any], validator: OisValidator) -> None:
        ois_raw["endpoints"][0]["postProcessingSpecificationV2"] = {
            "environment": "Node",
            "timeoutMs": True,
            "value": "(payload) => payload;",
        }
        [issue] = validator.validate(ois_raw).issues
        assert issue.code == "invalid_type"
        assert issue.received == "boolean"
        assert issue.path == ["endpoints", 0, "postProcessingSpecificationV2", "timeoutMs"]

    def test_document_must_be_an_object(self, validator: OisValidator) -> None:
        [issue] = validator.validate([]).issues
        assert issue.code == "invalid_type"
        assert issue.path == []
        assert issue.received == "array"

    def test_sibling_issues_are_all_reported(
        self, ois_raw: dict[str, Any], validator: OisValidator
    ) -> None:
        ois_raw["title"] = 1
        ois_raw["version"] = "1.0"
        issues = validator.validate(ois_raw).issues
        assert [issue.path for issue in issues] == [["title"], ["version"]]

    @pytest.mark.parametrize(
        ("key", "expected"),
        [
            ("operation", "object"),
            ("preProcessingSpecifications", "array"),
            ("postProcessingSpecificationV2", "object"),
            ("description", "string"),
        ],
    )
    def test_explicit_null_for_optional_endpoint_key(
        self, key: str, expected: str, ois_raw: dict[str, Any], validator: OisValidator
    ) -> None:
        ois_raw["endpoints"][0][key] = None
        [issue] = validator.validate(ois_raw).issues
        assert issue.code == "invalid_type"
        assert issue.path == ["endpoints", 0, key]
        assert issue.expected == expected
        assert issue.received == "null"

    @pytest.mark.parametrize(
        ("key", "expected"), [("operationParameter", "object"), ("required", "boolean")]
    )
    def test_explicit_null_for_optional_parameter_key(
        self, key: str, expected: str, ois_raw: dict[str, Any], validator: OisValidator
    ) -> None:
        ois_raw["endpoints"][0]["parameters"][0][key] = None
        [issue] = validator.validate(ois_raw).issues
        assert issue.code == "invalid_type"
        assert issue.path == ["endpoints", 0, "parameters", 0, key]
        assert issue.expected == expected

    def test_explicit_null_for_reserved_value(
        self, ois_raw: dict[str, Any], validator: OisValidator
    ) -> None:
        ois_raw["endpoints"][0]["reservedParameters"][2]["default"] = None
        [issue] = validator.validate(ois_raw).issues
        assert issue.path == ["endpoints", 0, "reservedParameters", 2, "default"]
        assert issue.message == "Expected string, received null"

    def test_omitted_optional_keys_are_none(self, ois_raw: dict[str, Any]) -> None:
        endpoint = Ois.model_validate(ois_raw).endpoints[0]
        assert endpoint.description is None
        assert endpoint.pre_processing_specification_v2 is None
        assert endpoint.parameters[2].default is None


# ---------------------------------------------------------------------------
# Formats
# ---------------------------------------------------------------------------


class TestFormats:
    """Single-value format checks performed by the schema."""

    def test_invalid_semver(self, ois_raw: dict[str, Any], validator: OisValidator) -> None:
        ois_raw["version"] = "1.0"
        assert validator.validate(ois_raw).issues == [
            Issue(code="invalid_format", kind=IssueKind.FORMAT, message=SEMVER_MESSAGE, path=["version"])
        ]

    def test_ois_format_version_mismatch(
        self, ois_raw: dict[str, Any], validator: OisValidator
    ) -> None:
        ois_raw["oisFormat"] = "0.0.0"
        [issue] = validator.validate(ois_raw).issues
        assert issue.code == "custom"
        assert issue.kind == IssueKind.VERSION_MISMATCH
        assert issue.path == ["oisFormat"]
        assert issue.message.startswith(
            f'oisFormat major.minor version must match major.minor version of "{__version__}"'
        )
        assert issue.params == {"version": "0.0.0", "reference": __version__}

    def test_ois_format_not_semver(self, ois_raw: dict[str, Any], validator: OisValidator) -> None:
        ois_raw["oisFormat"] = "2.3"
        [issue] = validator.validate(ois_raw).issues
        assert issue.code == "invalid_format"
        assert issue.path == ["oisFormat"]

    def test_invalid_path_template(self, ois_raw: dict[str, Any], validator: OisValidator) -> None:
        paths = ois_raw["apiSpecifications"]["paths"]
        paths["my-path"] = {"get": {"parameters": []}}
        [issue] = validator.validate(ois_raw).issues
        assert issue.code == "invalid_format"
        assert issue.kind == IssueKind.FORMAT
        assert issue.path == ["apiSpecifications", "paths", "my-path"]
        assert issue.pattern == PATH_TEMPLATE_PATTERN

    def test_path_template_with_trailing_newline(
        self, ois_raw: dict[str, Any], validator: OisValidator
    ) -> None:
        paths = ois_raw["apiSpecifications"]["paths"]
        paths["/convert\n"] = paths.pop("/convert")
        ois_raw["endpoints"][0]["operation"]["path"] = "/convert\n"
        issues = validator.validate(ois_raw).issues
        assert [issue.path for issue in issues] == [
            ["apiSpecifications", "paths", "/convert\n"],
            ["endpoints", 0, "operation", "path"],
        ]
        assert {issue.code for issue in issues} == {"invalid_format"}

    def test_invalid_endpoint_operation_path(
        self, ois_raw: dict[str, Any], validator: OisValidator
    ) -> None:
        ois_raw["endpoints"][0]["operation"]["path"] = "/my path"
        [issue] = validator.validate(ois_raw).issues
        assert issue.code == "invalid_format"
        assert issue.path == ["endpoints", 0, "operation", "path"]

    @pytest.mark.parametrize("title", ["bad/title", "", "x" * 65, "Caf\u00e9"])
    def test_invalid_title(self, title: str, ois_raw: dict[str, Any], validator: OisValidator) -> None:
        ois_raw["title"] = title
        [issue] = validator.validate(ois_raw).issues
        assert issue.code == "invalid_format"
        assert issue.path == ["title"]
        assert issue.pattern == TITLE_PATTERN
        assert issue.message == f'Invalid string: must match pattern "{TITLE_PATTERN}"'

    def test_title_allows_spaces_and_dashes(
        self, ois_raw: dict[str, Any], validator: OisValidator
    ) -> None:
        ois_raw["title"] = "Coin layer-API 2"
        assert validator.validate(ois_raw).success

    def test_invalid_server_url(self, ois_raw: dict[str, Any], validator: OisValidator) -> None:
        ois_raw["apiSpecifications"]["servers"][0]["url"] = "not a url"
        [issue] = validator.validate(ois_raw).issues
        assert issue.code == "invalid_format"
        assert issue.message == 'Invalid url "not a url"'
        assert issue.path == ["apiSpecifications", "servers", 0, "url"]

    def test_endpoint_parameter_name_without_whitespace(self) -> None:
        [issue] = _model_issues(EndpointParameter, {"name": "two words"})
        assert issue.code == "invalid_format"
        assert issue.path == ["name"]

    def test_negative_timeout(self, ois_raw: dict[str, Any], validator: OisValidator) -> None:
        ois_raw["endpoints"][0]["preProcessingSpecifications"] = [
            {"environment": "Node", "timeoutMs": -1, "value": "output = input;"}
        ]
        [issue] = validator.validate(ois_raw).issues
        assert issue.code == "too_small"
        assert issue.path == ["endpoints", 0, "preProcessingSpecifications", 0, "timeoutMs"]

    def test_security_requirement_must_be_empty(
        self, ois_raw: dict[str, Any], validator: OisValidator
    ) -> None:
        ois_raw["apiSpecifications"]["security"]["coinlayerSecurityScheme"] = ["scope"]
        [issue] = validator.validate(ois_raw).issues
        assert issue.code == "too_big"
        assert issue.path == ["apiSpecifications", "security", "coinlayerSecurityScheme"]


# ---------------------------------------------------------------------------
# Enumerations and unions
# ---------------------------------------------------------------------------


class TestEnumerations:

    def test_unsupported_method(self, ois_raw: dict[str, Any], validator: OisValidator) -> None:
        ois_raw["apiSpecifications"]["paths"]["/convert"]["put"] = {"parameters": []}
        [issue] = validator.validate(ois_raw).issues
        assert issue.code == "invalid_enum_value"
        assert issue.path == ["apiSpecifications", "paths", "/convert", "put"]

    def test_unknown_parameter_location(self) -> None:
        [issue] = _model_issues(OperationParameter, {"in": "body", "name": "x"})
        assert issue.code == "invalid_enum_value"
        assert issue.path == ["in"]

    def test_processing_location_allowed(self) -> None:
        parameter = OperationParameter.model_validate({"in": "processing", "name": "x"})
        assert parameter.key == ("processing", "x")

    def test_unknown_reserved_parameter(self) -> None:
        [issue] = _model_issues(ReservedParameter, {"name": "_foo"})
        assert issue.code == "invalid_enum_value"
        assert issue.path == ["name"]

    def test_v2_processing_only_supports_node(self, ois_raw: dict[str, Any], validator: OisValidator) -> None:
        ois_raw["endpoints"][0]["postProcessingSpecificationV2"] = {
            "environment": "Node async",
            "timeoutMs": 5000,
            "value": "(payload) => payload;",
        }
        [issue] = validator.validate(ois_raw).issues
        assert issue.code == "invalid_enum_value"
        assert issue.path == ["endpoints", 0, "postProcessingSpecificationV2", "environment"]

    def test_unknown_security_scheme_type(
        self, ois_raw: dict[str, Any], validator: OisValidator
    ) -> None:
        schemes = ois_raw["apiSpecifications"]["components"]["securitySchemes"]
        schemes["coinlayerSecurityScheme"]["type"] = "oauth2"
        [issue] = validator.validate(ois_raw).issues
        assert issue.code == "invalid_union_discriminator"
        assert issue.path == [
            "apiSpecifications",
            "components",
            "securitySchemes",
            "coinlayerSecurityScheme",
        ]

    @pytest.mark.parametrize(
        "scheme",
        [
            {"type": "http", "scheme": "bearer"},
            {"type": "http", "scheme": "basic"},
            {"type": "relayChainId", "in": "header", "name": "chain-id"},
            {"type": "relayRequesterAddress", "in": "query", "name": "requester"},
        ],
    )
    def test_other_security_scheme_types(
        self, scheme: dict[str, Any], ois_raw: dict[str, Any], validator: OisValidator
    ) -> None:
        ois_raw["apiSpecifications"]["components"]["securitySchemes"]["other"] = scheme
        assert validator.validate(ois_raw).success

    def test_http_scheme_has_no_location(self, ois_raw: dict[str, Any], validator: OisValidator) -> None:
        ois_raw["apiSpecifications"]["components"]["securitySchemes"]["other"] = {
            "type": "http",
            "scheme": "bearer",
            "in": "header",
        }
        [issue] = validator.validate(ois_raw).issues
        assert issue.code == "unrecognized_keys"
        assert issue.path == ["apiSpecifications", "components", "securitySchemes", "other"]


# ---------------------------------------------------------------------------
# Reserved names and parameter values
# ---------------------------------------------------------------------------


class TestParameters:

    def test_reserved_name_in_operation_parameter(self) -> None:
        issues = _model_issues(OperationParameter, {"in": "header", "name": "_type"})
        assert issues == [_reserved_name_issue(["name"])]

    def test_reserved_name_in_endpoint_parameter(self) -> None:
        issues = _model_issues(
            EndpointParameter, {"name": "param", "operationParameter": {"in": "header", "name": "_type"}}
        )
        assert issues == [_reserved_name_issue(["operationParameter", "name"])]

    def test_fixed_parameter_value_may_be_any_json(self) -> None:
        fixed = FixedParameter.model_validate(
            {"operationParameter": {"in": "query", "name": "params"}, "value": ["finalized", False]}
        )
        assert fixed.value == ["finalized", False]

    def test_reserved_parameter_value_prefers_default(self) -> None:
        assert ReservedParameter.model_validate({"name": "_times", "default": "", "fixed": "2"}).value == ""
        assert ReservedParameter.model_validate({"name": "_times", "fixed": "2"}).value == "2"
        assert ReservedParameter.model_validate({"name": "_times"}).value is None

    def test_endpoint_has_processing(self, ois_raw: dict[str, Any]) -> None:
        raw = ois_raw["endpoints"][0]
        assert Endpoint.model_validate(raw).has_processing() is False
        raw["postProcessingSpecifications"] = [
            {"environment": "Node async", "timeoutMs": 0, "value": "output = input;"}
        ]
        assert Endpoint.model_validate(raw).has_processing() is True

    def test_empty_processing_lists_do_not_count(self, ois_raw: dict[str, Any]) -> None:
        raw = ois_raw["endpoints"][0]
        raw["preProcessingSpecifications"] = []
        raw["postProcessingSpecifications"] = []
        assert Endpoint.model_validate(raw).has_processing() is False


# ---------------------------------------------------------------------------
# Configuration model
# ---------------------------------------------------------------------------


class TestCheckConfig:

    def test_defaults(self) -> None:
        config = CheckConfig()
        assert config.reference_version == __version__
        assert config.output_format == "auto"

    def test_rejects_unknown_keys(self) -> None:
        with pytest.raises(ValidationError):
            CheckConfig.model_validate({"referenceVersion": "2.3.0"})

    def test_rejects_unknown_format(self) -> None:
        with pytest.raises(ValidationError):
            CheckConfig(output_format="xml")
