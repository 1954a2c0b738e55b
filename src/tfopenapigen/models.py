"""Pydantic models for the generator configuration and shared enumerations.

The configuration is a YAML document naming which OpenAPI operations back
each Terraform resource and data source, where the provider schema lives,
and which per-attribute override rules to apply.  It is loaded by
:func:`~tfopenapigen.config.load_config` and validated into the frozen models
defined here:

* :class:`OperationLocator` -- a ``path`` + ``method`` pair or an
  ``operation_id`` pointing at one operation in the OpenAPI document.
* :class:`ResourceConfig`, :class:`DataSourceConfig`,
  :class:`ProviderConfig` -- one descriptor per entity kind.
* Override rules -- :class:`IgnoreRule`, :class:`RenameRule`,
  :class:`ComputabilityRule`, :class:`DescriptionRule`.
* :class:`GeneratorOptions` and :class:`GeneratorConfig` -- the root.

Example configuration::

    provider:
      name: petstore
    resources:
      pet:
        create: {path: /pet, method: POST}
        read: {path: "/pet/{petId}", method: GET}
        schema_overrides:
          - ignore: tags
    data_sources:
      pets:
        read: {path: /pet/findByStatus, method: GET}
"""

from __future__ import annotations

import enum
import re
from typing import Any, ClassVar, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_IDENTIFIER_RE = re.compile(r"^[a-z_][a-z0-9_]*$")


# --- Enumerations ---


class EntityKind(str, enum.Enum):
    """The closed set of things the generator produces IR for."""

    RESOURCE = "resource"
    DATA_SOURCE = "data_source"
    PROVIDER = "provider"


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised by OpenAPI 3.x path-item objects."""

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"
    HEAD = "head"
    OPTIONS = "options"
    TRACE = "trace"


class Verb(str, enum.Enum):
    """CRUD role an operation plays for an entity.

    ``PARAMETERS`` is not configurable: the explorer uses it for the schema it
    synthesises from the ``read`` operation's path and query parameters.
    """

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    PARAMETERS = "parameters"

    @property
    def is_write(self) -> bool:
        """Whether the verb contributes client-settable (input) fields."""
        return self in (Verb.CREATE, Verb.UPDATE, Verb.PARAMETERS)

    @property
    def is_read(self) -> bool:
        """Whether the verb contributes server-returned (output) fields."""
        return self is Verb.READ


class Computability(str, enum.Enum):
    """Whether a field is set by the practitioner, the server, or both."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    COMPUTED = "computed"
    OPTIONAL_COMPUTED = "optional_computed"


class OneOfPolicy(str, enum.Enum):
    """How ``oneOf``/``anyOf`` schemas with several resolvable branches are reduced.

    * ``SINGLE`` -- resolve only when exactly one non-null branch is usable.
    * ``FIRST`` -- take the first usable branch in document order.
    * ``MERGE`` -- union object branches; a field is required only when every
      branch requires it.
    """

    SINGLE = "single"
    FIRST = "first"
    MERGE = "merge"


# --- Operation locators ---


class OperationLocator(BaseModel):
    """Reference to one operation in the OpenAPI document.

    Either ``path`` and ``method`` or ``operation_id`` must be given.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: Optional[str] = None
    method: Optional[HTTPMethod] = None
    operation_id: Optional[str] = None

    @field_validator("method", mode="before")
    @classmethod
    def _lowercase_method(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.lower()
        return value

    @model_validator(mode="after")
    def _check_form(self) -> "OperationLocator":
        if self.operation_id is not None:
            if self.path is not None or self.method is not None:
                raise ValueError("use either 'operation_id' or 'path' + 'method', not both")
            return self
        if not self.path or self.method is None:
            raise ValueError("an operation needs 'path' and 'method' (or 'operation_id')")
        if not self.path.startswith("/"):
            raise ValueError(f"operation path must start with '/': {self.path!r}")
        return self

    def describe(self) -> str:
        if self.operation_id is not None:
            return f"operationId {self.operation_id}"
        assert self.method is not None
        return f"{self.method.value.upper()} {self.path}"


# --- Override rules ---


class RenameTarget(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str
    to: str

    @field_validator("to")
    @classmethod
    def _check_identifier(cls, value: str) -> str:
        if not _IDENTIFIER_RE.match(value):
            raise ValueError(f"'{value}' is not a valid attribute name")
        return value


class ComputabilityTarget(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str
    value: Computability


class DescriptionTarget(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str
    text: str


class IgnoreRule(BaseModel):
    """Remove the addressed attribute (and its children) from the schema."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ignore: str

    @property
    def path(self) -> str:
        return self.ignore

    def describe(self) -> str:
        return f"ignore {self.ignore}"


class RenameRule(BaseModel):
    """Expose the addressed attribute under a different name."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    rename: RenameTarget

    @property
    def path(self) -> str:
        return self.rename.path

    def describe(self) -> str:
        return f"rename {self.rename.path} -> {self.rename.to}"


class ComputabilityRule(BaseModel):
    """Force the computability of the addressed attribute."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    computability: ComputabilityTarget

    @property
    def path(self) -> str:
        return self.computability.path

    def describe(self) -> str:
        return f"computability {self.computability.path} = {self.computability.value.value}"


class DescriptionRule(BaseModel):
    """Replace the description of the addressed attribute."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    description: DescriptionTarget

    @property
    def path(self) -> str:
        return self.description.path

    def describe(self) -> str:
        return f"description {self.description.path}"


OverrideRule = Union[IgnoreRule, RenameRule, ComputabilityRule, DescriptionRule]


# --- Entity descriptors ---


class EntityConfig(BaseModel):
    """Common shape of resource and data source descriptors.

    Verb keys (``create``, ``read``, ...) may appear at the top level of the
    entity or under ``operations``; they are gathered into :attr:`operations`
    in declaration order, which the merger uses as its tie-breaking order.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: ClassVar[EntityKind]
    allowed_verbs: ClassVar[tuple[Verb, ...]] = ()

    operations: dict[Verb, OperationLocator] = Field(default_factory=dict)
    schema_overrides: list[OverrideRule] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _collect_operations(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        operations = dict(data.pop("operations", None) or {})
        for key in list(data):
            if key in _CONFIGURABLE_VERBS:
                if key in operations:
                    raise ValueError(f"operation '{key}' is declared twice")
                operations[key] = data.pop(key)
        data["operations"] = operations
        return data

    @model_validator(mode="after")
    def _check_verbs(self) -> "EntityConfig":
        for verb in self.operations:
            if verb not in self.allowed_verbs:
                allowed = ", ".join(v.value for v in self.allowed_verbs)
                raise ValueError(
                    f"operation '{verb.value}' is not supported for a {self.kind.value} "
                    f"(expected one of: {allowed})"
                )
        if not self.operations:
            raise ValueError(f"a {self.kind.value} needs at least one operation")
        return self

    @property
    def verb_order(self) -> list[Verb]:
        return list(self.operations)


class ResourceConfig(EntityConfig):
    """A Terraform resource backed by create/read/update/delete operations."""

    kind: ClassVar[EntityKind] = EntityKind.RESOURCE
    allowed_verbs: ClassVar[tuple[Verb, ...]] = (
        Verb.CREATE,
        Verb.READ,
        Verb.UPDATE,
        Verb.DELETE,
    )

    @model_validator(mode="after")
    def _check_schema_source(self) -> "ResourceConfig":
        if Verb.CREATE not in self.operations and Verb.READ not in self.operations:
            raise ValueError("a resource needs a 'create' or 'read' operation")
        return self


class DataSourceConfig(EntityConfig):
    """A Terraform data source backed by a single read operation."""

    kind: ClassVar[EntityKind] = EntityKind.DATA_SOURCE
    allowed_verbs: ClassVar[tuple[Verb, ...]] = (Verb.READ,)


class ProviderConfig(BaseModel):
    """The provider block.

    The provider has no operations.  Its schema is assembled from an optional
    ``schema_ref`` pointer plus synthetic attributes for the named security
    schemes and header parameters.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: ClassVar[EntityKind] = EntityKind.PROVIDER

    name: str
    schema_ref: Optional[str] = Field(
        default=None, description="JSON pointer to the provider schema, e.g. '#/components/schemas/Config'"
    )
    security_schemes: list[str] = Field(default_factory=list)
    header_parameters: list[str] = Field(default_factory=list)
    schema_overrides: list[OverrideRule] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not _IDENTIFIER_RE.match(value):
            raise ValueError(f"provider name '{value}' must be a lowercase identifier")
        return value

    @field_validator("schema_ref")
    @classmethod
    def _check_ref(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.startswith("#/"):
            raise ValueError(f"schema_ref must be a local JSON pointer starting with '#/': {value!r}")
        return value


# --- Root ---


class GeneratorOptions(BaseModel):
    """Run-wide knobs."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    oneof_policy: OneOfPolicy = OneOfPolicy.SINGLE
    fail_fast: bool = Field(
        default=True,
        description="Stop at the first entity error instead of collecting all of them",
    )


class GeneratorConfig(BaseModel):
    """Root of the generator configuration document."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    provider: ProviderConfig
    resources: dict[str, ResourceConfig] = Field(default_factory=dict)
    data_sources: dict[str, DataSourceConfig] = Field(default_factory=dict)
    options: GeneratorOptions = Field(default_factory=GeneratorOptions)

    @field_validator("resources", "data_sources", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("resources", "data_sources")
    @classmethod
    def _check_names(cls, value: dict[str, Any]) -> dict[str, Any]:
        for name in value:
            if not _IDENTIFIER_RE.match(name):
                raise ValueError(f"entity name '{name}' must be a lowercase identifier")
        return value


_CONFIGURABLE_VERBS = frozenset(
    verb.value for verb in Verb if verb is not Verb.PARAMETERS
)
