"""Canonical Pydantic models for OIS documents and oischeck configuration.

This is the single source of truth for data shapes in the project. The models
fall into two groups:

**Document models** -- the strict structural schema of an OIS document:
    :class:`Ois`, :class:`ApiSpecification`, :class:`ApiComponents`,
    :class:`Server`, the security schemes (:class:`ApiKeySecurityScheme`,
    :class:`HttpSecurityScheme`, :class:`RelaySecurityScheme`),
    :class:`Operation`, :class:`OperationParameter`, :class:`Endpoint`,
    :class:`EndpointOperation`, :class:`EndpointParameter`,
    :class:`FixedParameter`, :class:`ReservedParameter`,
    :class:`ProcessingSpecification` and :class:`ProcessingSpecificationV2`.

**Configuration models** -- :class:`CheckConfig`.

Document models are strict: every object rejects unknown keys
(``extra="forbid"``), values are never coerced (``strict=True``), and
instances are frozen. Optional keys may be omitted (the attribute is then
``None``) but an explicit JSON ``null`` is a type error. Field names follow Python conventions while the JSON
names are kept as aliases, so documents must be validated with
``Ois.model_validate(data)`` using their original camelCase keys.

Only shape and single-value formats are checked here. Relationships between
fields (parameter bindings, duplicates, security references, ...) are checked
afterwards by :mod:`oischeck.rules`.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from pydantic_core import PydanticCustomError

from oischeck import __version__
from oischeck.exceptions import FormatError, VersionMismatchError
from oischeck.primitives import (
    PATH_TEMPLATE_PATTERN,
    RELAY_METADATA_TYPES,
    is_reserved_parameter_name,
    validate_path_template,
    validate_semver,
    validate_version_compatible,
)

TITLE_PATTERN = r"^[\s0-9A-Za-z_-]{1,64}$"
"""Titles are 1-64 ASCII letters, digits, underscores, spaces or dashes."""

ENDPOINT_PARAMETER_NAME_PATTERN = r"^\S+$"
"""Endpoint parameter names must not contain whitespace."""

REFERENCE_VERSION_CONTEXT_KEY = "reference_version"
"""Validation-context key carrying the version ``oisFormat`` is checked against."""

_STRICT = ConfigDict(extra="forbid", strict=True, frozen=True)

_URL_ADAPTER: TypeAdapter[AnyUrl] = TypeAdapter(AnyUrl)


def _custom_error(error_type: str, message: str, **context: Any) -> PydanticCustomError:
    """Build a Pydantic error whose message is exactly *message*."""
    return PydanticCustomError(error_type, "{message}", {"message": message, **context})


def _check_non_reserved_name(value: str) -> str:
    if is_reserved_parameter_name(value):
        raise _custom_error(
            "custom",
            f'"{value}" cannot be used because it is a name of a reserved parameter',
        )
    return value


def _check_path_template(value: str) -> str:
    try:
        validate_path_template(value)
    except FormatError as exc:
        raise _custom_error("invalid_format", str(exc), pattern=PATH_TEMPLATE_PATTERN) from exc
    return value


def _check_semver(value: str) -> str:
    try:
        validate_semver(value)
    except FormatError as exc:
        raise _custom_error("invalid_format", str(exc)) from exc
    return value


def _check_url(value: str) -> str:
    try:
        _URL_ADAPTER.validate_python(value)
    except ValidationError as exc:
        raise _custom_error("invalid_format", f'Invalid url "{value}"', pattern="url") from exc
    return value


NonReservedName = Annotated[str, AfterValidator(_check_non_reserved_name)]
PathTemplate = Annotated[str, AfterValidator(_check_path_template)]
SemVer = Annotated[str, AfterValidator(_check_semver)]
Url = Annotated[str, AfterValidator(_check_url)]
NonNegativeInt = Annotated[int, Field(ge=0)]
EmptyList = Annotated[list[Any], Field(max_length=0)]

ParameterTarget = Literal["path", "query", "header", "cookie", "processing"]
Method = Literal["get", "post"]
SecuritySchemeTarget = Literal["query", "header", "cookie"]
ReservedParameterName = Literal["_type", "_path", "_times", "_minConfirmations", "_gasPrice"]
RelayMetadataType = Literal[
    "relayChainId",
    "relayChainType",
    "relayRequesterAddress",
    "relaySponsorAddress",
    "relaySponsorWalletAddress",
    "relayRequestId",
]


# --- Parameters ---


class OperationParameter(BaseModel):
    """A parameter of an HTTP operation, identified by its location and name.

    ``processing`` is a pseudo-location: the value is only visible to the
    processing snippets and never sent to the API.
    """

    model_config = _STRICT

    location: ParameterTarget = Field(alias="in")
    name: NonReservedName

    @property
    def key(self) -> tuple[str, str]:
        """The ``(location, name)`` identity used for matching and duplicates."""
        return (self.location, self.name)


class EndpointParameter(BaseModel):
    """A parameter the requester may pass to an endpoint.

    When ``operation_parameter`` is set, the value is forwarded to that API
    parameter. ``description``, ``example`` and ``required`` come from OAS and
    carry no meaning for validation.
    """

    model_config = _STRICT

    # Keys defaulting to None may be omitted but never set to null.
    name: str = Field(pattern=ENDPOINT_PARAMETER_NAME_PATTERN)
    operation_parameter: OperationParameter = Field(
        default=None, alias="operationParameter"
    )
    description: str = None
    example: str = None
    default: str = None
    required: bool = None


class FixedParameter(BaseModel):
    """An API parameter whose value is hard-coded by the endpoint.

    ``value`` may be any JSON value (string, number, array, object, ...).
    """

    model_config = _STRICT

    operation_parameter: OperationParameter = Field(alias="operationParameter")
    value: Any = None


class ReservedParameter(BaseModel):
    """One of the oracle-specific reserved parameters (``_type``, ``_path``, ...).

    At most one of ``default`` and ``fixed`` may be set; this and the numeric
    format of ``_minConfirmations``/``_gasPrice`` are enforced by
    :func:`oischeck.rules.check_reserved_parameters`. The empty string is a
    valid value and counts as set.
    """

    model_config = _STRICT

    name: ReservedParameterName
    default: str = None
    fixed: str = None

    @property
    def value(self) -> Optional[str]:
        """The ``default`` value if set, otherwise ``fixed``."""
        return self.default if self.default is not None else self.fixed


# --- Processing ---


class ProcessingSpecification(BaseModel):
    """A v1 processing snippet (several may be chained per endpoint)."""

    model_config = _STRICT

    environment: Literal["Node", "Node async"]
    value: str
    timeout_ms: NonNegativeInt = Field(alias="timeoutMs")


class ProcessingSpecificationV2(BaseModel):
    """A v2 processing snippet (a single function per endpoint)."""

    model_config = _STRICT

    environment: Literal["Node"]
    value: str
    timeout_ms: NonNegativeInt = Field(alias="timeoutMs")


# --- Endpoints ---


class EndpointOperation(BaseModel):
    """Reference from an endpoint to an operation in ``apiSpecifications.paths``."""

    model_config = _STRICT

    method: Method
    path: PathTemplate


class Endpoint(BaseModel):
    """An oracle-facing endpoint bound to (at most) one API operation.

    Without an ``operation`` the API call is skipped and the endpoint only
    runs its processing snippets.
    """

    model_config = _STRICT

    name: str
    operation: EndpointOperation = None
    parameters: list[EndpointParameter]
    fixed_operation_parameters: list[FixedParameter] = Field(alias="fixedOperationParameters")
    reserved_parameters: list[ReservedParameter] = Field(alias="reservedParameters")

    pre_processing_specifications: list[ProcessingSpecification] = Field(
        default=None, alias="preProcessingSpecifications"
    )
    post_processing_specifications: list[ProcessingSpecification] = Field(
        default=None, alias="postProcessingSpecifications"
    )
    pre_processing_specification_v2: ProcessingSpecificationV2 = Field(
        default=None, alias="preProcessingSpecificationV2"
    )
    post_processing_specification_v2: ProcessingSpecificationV2 = Field(
        default=None, alias="postProcessingSpecificationV2"
    )

    # OAS descriptive fields, accepted and ignored
    description: str = None
    external_docs: str = Field(default=None, alias="externalDocs")
    summary: str = None

    def has_processing(self) -> bool:
        """Return ``True`` if any pre- or post-processing snippet is defined."""
        return bool(
            self.pre_processing_specifications
            or self.post_processing_specifications
            or self.pre_processing_specification_v2
            or self.post_processing_specification_v2
        )


# --- API specification ---


class ApiKeySecurityScheme(BaseModel):
    """An API key sent in a query parameter, header, or cookie."""

    model_config = _STRICT

    type: Literal["apiKey"]
    location: SecuritySchemeTarget = Field(alias="in")
    name: str


class HttpSecurityScheme(BaseModel):
    """HTTP ``Authorization`` header authentication."""

    model_config = _STRICT

    type: Literal["http"]
    scheme: Literal["bearer", "basic"]


class RelaySecurityScheme(BaseModel):
    """Relays request metadata (chain ID, requester address, ...) to the API."""

    model_config = _STRICT

    type: RelayMetadataType
    location: SecuritySchemeTarget = Field(alias="in")
    name: str


SecurityScheme = Annotated[
    Union[ApiKeySecurityScheme, HttpSecurityScheme, RelaySecurityScheme],
    Field(discriminator="type"),
]

SECURITY_SCHEME_TYPES: frozenset[str] = frozenset({"apiKey", "http", *RELAY_METADATA_TYPES})
"""Every ``type`` tag of the security scheme union."""


class ApiComponents(BaseModel):
    model_config = _STRICT

    security_schemes: dict[str, SecurityScheme] = Field(alias="securitySchemes")


class Server(BaseModel):
    model_config = _STRICT

    url: Url


class Operation(BaseModel):
    """Parameters declared for one path + method pair."""

    model_config = _STRICT

    parameters: list[OperationParameter]

    def declares(self, parameter: OperationParameter) -> bool:
        """Return ``True`` if *parameter* matches a declared parameter by location and name."""
        return any(declared.key == parameter.key for declared in self.parameters)


class ApiSpecification(BaseModel):
    """The OAS-like description of the third-party API.

    ``security`` is a set of enabled scheme names encoded as a mapping to
    empty lists, mirroring OAS security requirement objects.
    """

    model_config = _STRICT

    components: ApiComponents
    paths: dict[PathTemplate, dict[Method, Operation]]
    servers: list[Server]
    security: dict[str, EmptyList]

    def find_operation(self, method: str, path: str) -> Optional[Operation]:
        """Return the operation declared for *method* and *path*, if any."""
        return self.paths.get(path, {}).get(method)


# --- Document ---


class Ois(BaseModel):
    """A complete Oracle Integration Specification document.

    ``oisFormat`` is checked against the reference version passed in the
    validation context under :data:`REFERENCE_VERSION_CONTEXT_KEY`; without
    a context the installed oischeck version is used.

    Example::

        ois = Ois.model_validate(document, context={"reference_version": "2.3.0"})
    """

    model_config = _STRICT

    ois_format: str = Field(alias="oisFormat")
    title: str = Field(pattern=TITLE_PATTERN)
    version: SemVer
    api_specifications: ApiSpecification = Field(alias="apiSpecifications")
    endpoints: list[Endpoint]

    @field_validator("ois_format")
    @classmethod
    def check_ois_format(cls, value: str, info: ValidationInfo) -> str:
        reference = (info.context or {}).get(REFERENCE_VERSION_CONTEXT_KEY, __version__)
        try:
            validate_version_compatible(value, reference)
        except VersionMismatchError as exc:
            raise _custom_error(
                "version_mismatch", str(exc), version=exc.version, reference=exc.reference
            ) from exc
        except FormatError as exc:
            raise _custom_error("invalid_format", str(exc)) from exc
        return value

    def to_document(self) -> dict[str, Any]:
        """Serialise back to a JSON-compatible dict with the original keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


# --- Configuration ---


class CheckConfig(BaseModel):
    """Effective oischeck configuration, resolved by :func:`oischeck.config.resolve_config`.

    Loaded from the project-local ``oischeck.json`` and overridden by the
    ``OISCHECK_REFERENCE_VERSION`` environment variable and CLI flags.
    """

    model_config = ConfigDict(extra="forbid")

    reference_version: str = Field(
        default=__version__,
        description="Version whose major.minor the document's oisFormat must match",
    )
    output_format: Literal["auto", "json", "plain", "rich"] = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )
