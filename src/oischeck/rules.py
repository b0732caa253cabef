"""Cross-field consistency rules for structurally valid OIS documents.

Each rule is a pure function taking a typed :class:`~oischeck.models.Ois`
and returning the list of :class:`~oischeck.issues.Issue` it found (empty
when the document satisfies the rule). Rules never mutate the document and
never depend on each other, so all of them always run and their issues are
simply concatenated by :class:`~oischeck.validator.OisValidator`.

:data:`RULES` fixes the execution order, which determines the order of the
reported issues:

1. :func:`check_security_references`
2. :func:`check_path_parameters`
3. :func:`check_unique_operation_parameters`
4. :func:`check_unique_endpoint_parameter_names`
5. :func:`check_single_parameter_usage`
6. :func:`check_api_call_skip`
7. :func:`check_processing_versions`
8. :func:`check_endpoint_parameters_match`
9. :func:`check_reserved_parameters`

Rules scoped to a single subtree also expose a helper taking that subtree and
its path (for example :func:`check_reserved_parameter_list`) so they can be
exercised without building a whole document.
"""

from __future__ import annotations

from collections import Counter
from typing import Callable, Optional

from oischeck.exceptions import FormatError
from oischeck.issues import Issue, PathItem
from oischeck.models import (
    Endpoint,
    EndpointParameter,
    FixedParameter,
    Ois,
    Operation,
    OperationParameter,
    ReservedParameter,
)
from oischeck.primitives import (
    NUMERIC_RESERVED_PARAMETERS,
    extract_path_placeholders,
    validate_non_negative_integer_string,
)

Rule = Callable[[Ois], list[Issue]]

_PROCESSING_SCHEMA_REQUIRED = (
    'At least one processing schema must be defined when "operation" is not specified '
    'and "fixedOperationParameters" is empty array.'
)
_FIXED_PARAMETERS_MUST_BE_EMPTY = (
    '"fixedOperationParameters" must be empty array when "operation" is not specified.'
)
_NO_MATCHING_OPERATION = 'No matching API specification found in "apiSpecifications" section'
_NO_MATCHING_PARAMETER = (
    'No matching API specification parameter found in "apiSpecifications" section'
)


def _used_multiple_times(parameter: OperationParameter) -> str:
    return f'Parameter "{parameter.name}" in "{parameter.location}" is used multiple times'


# --- 1. Security ---


def check_security_references(ois: Ois) -> list[Issue]:
    """Every enabled security scheme must be declared in ``components.securitySchemes``.

    One issue per undeclared name, located at its position within
    ``apiSpecifications.security``.
    """
    api = ois.api_specifications
    issues: list[Issue] = []
    for index, scheme_name in enumerate(api.security):
        if scheme_name not in api.components.security_schemes:
            issues.append(
                Issue.semantic(
                    f'Security scheme "{scheme_name}" is not defined in "components.securitySchemes"',
                    ["apiSpecifications", "security", index],
                )
            )
    return issues


# --- 2. Path templates ---


def check_operation_path_parameters(
    path_template: str, operation: Operation, path: list[PathItem]
) -> list[Issue]:
    """Compare the placeholders of *path_template* with the operation's ``path`` parameters.

    Args:
        path_template: The key of the operation in ``apiSpecifications.paths``.
        operation: The operation declared for one method of that path.
        path: Document path of the operation's ``parameters`` list.
    """
    placeholders = extract_path_placeholders(path_template)
    path_parameter_names = {p.name for p in operation.parameters if p.location == "path"}
    issues: list[Issue] = []

    for placeholder in placeholders:
        if placeholder not in path_parameter_names:
            issues.append(
                Issue.semantic(f'Path parameter "{placeholder}" is not found in "parameters"', path)
            )

    for index, parameter in enumerate(operation.parameters):
        if parameter.location == "path" and parameter.name not in placeholders:
            issues.append(
                Issue.semantic(
                    f'Parameter "{parameter.name}" is not found in the URL path',
                    [*path, index],
                )
            )
    return issues


def check_path_parameters(ois: Ois) -> list[Issue]:
    """Path placeholders and ``path`` parameters must match, per path and method."""
    issues: list[Issue] = []
    for path_template, operations in ois.api_specifications.paths.items():
        for method, operation in operations.items():
            issues.extend(
                check_operation_path_parameters(
                    path_template,
                    operation,
                    ["apiSpecifications", "paths", path_template, method, "parameters"],
                )
            )
    return issues


# --- 3. Operation parameter uniqueness ---


def check_operation_parameter_duplicates(
    parameters: list[OperationParameter], path: list[PathItem]
) -> list[Issue]:
    """Report every member of each group of parameters sharing ``(location, name)``."""
    counts = Counter(parameter.key for parameter in parameters)
    return [
        Issue.semantic(_used_multiple_times(parameter), [*path, index])
        for index, parameter in enumerate(parameters)
        if counts[parameter.key] > 1
    ]


def check_unique_operation_parameters(ois: Ois) -> list[Issue]:
    """No operation may declare the same ``(location, name)`` twice."""
    issues: list[Issue] = []
    for path_template, operations in ois.api_specifications.paths.items():
        for method, operation in operations.items():
            issues.extend(
                check_operation_parameter_duplicates(
                    operation.parameters,
                    ["apiSpecifications", "paths", path_template, method, "parameters"],
                )
            )
    return issues


# --- 4. Endpoint parameter names ---


def check_endpoint_parameter_names(
    parameters: list[EndpointParameter], path: list[PathItem]
) -> list[Issue]:
    """Report every endpoint parameter whose ``name`` is used more than once."""
    counts = Counter(parameter.name for parameter in parameters)
    return [
        Issue.semantic(
            f'Parameter names must be unique, but parameter "{parameter.name}" is used multiple times',
            [*path, index],
        )
        for index, parameter in enumerate(parameters)
        if counts[parameter.name] > 1
    ]


def check_unique_endpoint_parameter_names(ois: Ois) -> list[Issue]:
    """Endpoint parameter names must be unique within each endpoint."""
    issues: list[Issue] = []
    for endpoint_index, endpoint in enumerate(ois.endpoints):
        issues.extend(
            check_endpoint_parameter_names(
                endpoint.parameters, ["endpoints", endpoint_index, "parameters"]
            )
        )
    return issues


# --- 5. Single usage of operation parameters per endpoint ---


def check_endpoint_parameter_usage(endpoint: Endpoint, path: list[PathItem]) -> list[Issue]:
    """Each operation parameter may be bound at most once by an endpoint.

    Checks duplicates within ``parameters``, duplicates within
    ``fixedOperationParameters``, and parameters bound by both lists. A
    parameter bound by both lists yields two issues, one at each index, so
    that either entry can be located.

    Args:
        endpoint: The endpoint to check.
        path: Document path of the endpoint.
    """
    bound: list[Optional[OperationParameter]] = [p.operation_parameter for p in endpoint.parameters]
    fixed: list[OperationParameter] = [
        p.operation_parameter for p in endpoint.fixed_operation_parameters
    ]
    issues: list[Issue] = []

    for section, parameters in (("parameters", bound), ("fixedOperationParameters", fixed)):
        counts = Counter(p.key for p in parameters if p is not None)
        for index, parameter in enumerate(parameters):
            if parameter is not None and counts[parameter.key] > 1:
                issues.append(
                    Issue.semantic(_used_multiple_times(parameter), [*path, section, index])
                )

    fixed_keys = [p.key for p in fixed]
    for index, parameter in enumerate(bound):
        if parameter is None or parameter.key not in fixed_keys:
            continue
        message = (
            f'Parameter "{parameter.name}" in "{parameter.location}" is used in both '
            '"parameters" and "fixedOperationParameters"'
        )
        issues.append(Issue.semantic(message, [*path, "parameters", index]))
        issues.append(
            Issue.semantic(
                message, [*path, "fixedOperationParameters", fixed_keys.index(parameter.key)]
            )
        )
    return issues


def check_single_parameter_usage(ois: Ois) -> list[Issue]:
    """No endpoint may bind the same operation parameter more than once."""
    issues: list[Issue] = []
    for endpoint_index, endpoint in enumerate(ois.endpoints):
        issues.extend(check_endpoint_parameter_usage(endpoint, ["endpoints", endpoint_index]))
    return issues


# --- 6. Skipping the API call ---


def check_endpoint_api_call_skip(endpoint: Endpoint, path: list[PathItem]) -> list[Issue]:
    """An endpoint without ``operation`` must rely on processing alone.

    ``fixedOperationParameters`` must then be empty, and when it is, at least
    one processing specification (pre or post, v1 or v2) must be defined.
    """
    if endpoint.operation is not None:
        return []
    if endpoint.fixed_operation_parameters:
        return [Issue.semantic(_FIXED_PARAMETERS_MUST_BE_EMPTY, path)]
    if not endpoint.has_processing():
        return [Issue.semantic(_PROCESSING_SCHEMA_REQUIRED, path)]
    return []


def check_api_call_skip(ois: Ois) -> list[Issue]:
    """Endpoints skipping the API call must be consistent (see :func:`check_endpoint_api_call_skip`)."""
    issues: list[Issue] = []
    for endpoint_index, endpoint in enumerate(ois.endpoints):
        issues.extend(check_endpoint_api_call_skip(endpoint, ["endpoints", endpoint_index]))
    return issues


# --- 7. Processing specification versions ---


def check_endpoint_processing_versions(endpoint: Endpoint, path: list[PathItem]) -> list[Issue]:
    """At most one processing version may be used for pre- and for post-processing."""
    issues: list[Issue] = []
    if (
        endpoint.pre_processing_specification_v2 is not None
        and endpoint.pre_processing_specifications is not None
    ):
        issues.append(
            Issue.semantic(
                'Only one of "preProcessingSpecificationV2" and "preProcessingSpecifications" '
                "can be defined",
                path,
            )
        )
    if (
        endpoint.post_processing_specification_v2 is not None
        and endpoint.post_processing_specifications is not None
    ):
        issues.append(
            Issue.semantic(
                'Only one of "postProcessingSpecificationV2" and "postProcessingSpecifications" '
                "can be defined",
                path,
            )
        )
    return issues


def check_processing_versions(ois: Ois) -> list[Issue]:
    """No endpoint may mix processing versions for the same phase."""
    issues: list[Issue] = []
    for endpoint_index, endpoint in enumerate(ois.endpoints):
        issues.extend(
            check_endpoint_processing_versions(endpoint, ["endpoints", endpoint_index])
        )
    return issues


# --- 8. Endpoints vs. API specification ---


def _binds(endpoint: Endpoint, parameter: OperationParameter) -> bool:
    """Return ``True`` if *endpoint* binds *parameter* through either parameter list."""
    bound = [p.operation_parameter for p in endpoint.parameters]
    bound.extend(p.operation_parameter for p in endpoint.fixed_operation_parameters)
    return any(p is not None and p.key == parameter.key for p in bound)


def _unresolved_bindings(
    operation: Operation,
    section: str,
    parameters: list[EndpointParameter] | list[FixedParameter],
    path: list[PathItem],
) -> list[Issue]:
    return [
        Issue.semantic(_NO_MATCHING_PARAMETER, [*path, section, index])
        for index, parameter in enumerate(parameters)
        if parameter.operation_parameter is not None
        and not operation.declares(parameter.operation_parameter)
    ]


def check_endpoint_parameters_match(ois: Ois) -> list[Issue]:
    """Endpoints and the API specification must agree on operation parameters.

    Forward direction: for each operation referenced by at least one endpoint,
    every declared parameter must be bound by each referencing endpoint.
    Operations no endpoint references are not checked.

    Backward direction: every ``operationParameter`` bound by an endpoint must
    be declared by the operation the endpoint references. An endpoint whose
    operation does not exist gets a single issue instead.
    """
    api = ois.api_specifications
    issues: list[Issue] = []

    for path_template, operations in api.paths.items():
        for method, operation in operations.items():
            for endpoint_index, endpoint in enumerate(ois.endpoints):
                reference = endpoint.operation
                if reference is None or (reference.method, reference.path) != (method, path_template):
                    continue
                for parameter in operation.parameters:
                    if not _binds(endpoint, parameter):
                        issues.append(
                            Issue.semantic(
                                f'Parameter "{parameter.name}" not found in '
                                '"fixedOperationParameters" or "parameters"',
                                ["endpoints", endpoint_index],
                            )
                        )

    for endpoint_index, endpoint in enumerate(ois.endpoints):
        if endpoint.operation is None:
            continue
        path: list[PathItem] = ["endpoints", endpoint_index]
        operation = api.find_operation(endpoint.operation.method, endpoint.operation.path)
        if operation is None:
            issues.append(Issue.semantic(_NO_MATCHING_OPERATION, path))
            continue
        issues.extend(_unresolved_bindings(operation, "parameters", endpoint.parameters, path))
        issues.extend(
            _unresolved_bindings(
                operation, "fixedOperationParameters", endpoint.fixed_operation_parameters, path
            )
        )
    return issues


# --- 9. Reserved parameters ---


def check_reserved_parameter_list(
    parameters: list[ReservedParameter], path: list[PathItem]
) -> list[Issue]:
    """Validate an endpoint's ``reservedParameters`` list.

    The list must contain ``_type``. Each entry may set at most one of
    ``default`` and ``fixed``, and a set, non-empty value of
    ``_minConfirmations`` or ``_gasPrice`` must be a non-negative integer.

    Args:
        parameters: The reserved parameters of one endpoint.
        path: Document path of the ``reservedParameters`` list.
    """
    issues: list[Issue] = []
    if not any(parameter.name == "_type" for parameter in parameters):
        issues.append(
            Issue.semantic('Reserved parameters must contain object with { "name": "_type" }', path)
        )

    for index, parameter in enumerate(parameters):
        if parameter.default is not None and parameter.fixed is not None:
            issues.append(
                Issue.semantic(
                    'Reserved parameter must use at most one of "default" and "fixed" properties',
                    [*path, index],
                )
            )
        value = parameter.value
        if parameter.name in NUMERIC_RESERVED_PARAMETERS and value:
            try:
                validate_non_negative_integer_string(value)
            except FormatError:
                issues.append(
                    Issue.semantic(
                        f"Reserved parameter {parameter.name} must be a non-negative integer if present",
                        [*path, index],
                    )
                )
    return issues


def check_reserved_parameters(ois: Ois) -> list[Issue]:
    """Validate every endpoint's reserved parameters (see :func:`check_reserved_parameter_list`)."""
    issues: list[Issue] = []
    for endpoint_index, endpoint in enumerate(ois.endpoints):
        issues.extend(
            check_reserved_parameter_list(
                endpoint.reserved_parameters, ["endpoints", endpoint_index, "reservedParameters"]
            )
        )
    return issues


RULES: tuple[Rule, ...] = (
    check_security_references,
    check_path_parameters,
    check_unique_operation_parameters,
    check_unique_endpoint_parameter_names,
    check_single_parameter_usage,
    check_api_call_skip,
    check_processing_versions,
    check_endpoint_parameters_match,
    check_reserved_parameters,
)
"""All cross-field rules, in execution order."""
