"""Frozen models of the Framework IR document.

The Framework IR is the contract with the downstream provider code
generator.  Its JSON layout tags every attribute with its type kind as a
key::

    {
      "name": "tags",
      "list": {
        "computed_optional_required": "optional",
        "element_type": {"string": {}}
      }
    }

Nested kinds carry their children under ``attributes`` (``single_nested``)
or ``nested_object.attributes`` (``list_nested``, ``map_nested``).  Objects
inside plain collections are described by ``object.attribute_types``.

Every model serialises through ``to_dict()``; keys are emitted in a fixed
order and ``None`` values are omitted, which keeps
:meth:`Specification.to_json` byte-stable.
"""

from __future__ import annotations

import enum
import json
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field

IR_VERSION = "0.1"

VALIDATOR_IMPORT_ROOT = "github.com/hashicorp/terraform-plugin-framework-validators"


class IRKind(str, enum.Enum):
    """Type kind keys used by the Framework IR."""

    BOOL = "bool"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    STRING = "string"
    LIST = "list"
    SET = "set"
    MAP = "map"
    OBJECT = "object"
    SINGLE_NESTED = "single_nested"
    LIST_NESTED = "list_nested"
    MAP_NESTED = "map_nested"

    @property
    def has_element_type(self) -> bool:
        return self in (IRKind.LIST, IRKind.SET, IRKind.MAP)

    @property
    def has_nested_object(self) -> bool:
        return self in (IRKind.LIST_NESTED, IRKind.MAP_NESTED)


class ComputedOptionalRequired(str, enum.Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"
    COMPUTED = "computed"
    COMPUTED_OPTIONAL = "computed_optional"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# --- Element types ---


class ElementType(_Frozen):
    """Type of a collection element or of an object attribute."""

    kind: IRKind
    element_type: Optional["ElementType"] = None
    attribute_types: Optional[list["ObjectAttributeType"]] = None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.kind is IRKind.OBJECT:
            body["attribute_types"] = [a.to_dict() for a in self.attribute_types or []]
        elif self.element_type is not None:
            body["element_type"] = self.element_type.to_dict()
        return {self.kind.value: body}


class ObjectAttributeType(_Frozen):
    name: str
    type: ElementType

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, **self.type.to_dict()}


# --- Validators and defaults ---


class ValidatorImport(_Frozen):
    path: str


class CustomValidator(_Frozen):
    """A validator expressed as Go source for the downstream generator."""

    imports: list[ValidatorImport] = Field(default_factory=list)
    schema_definition: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "custom": {
                "imports": [{"path": i.path} for i in self.imports],
                "schema_definition": self.schema_definition,
            }
        }


class StaticDefault(_Frozen):
    static: Any

    def to_dict(self) -> dict[str, Any]:
        return {"static": self.static}


# --- Attributes ---


class Attribute(_Frozen):
    """One attribute entry of a resource, data source or provider schema."""

    name: str
    kind: IRKind
    computability: ComputedOptionalRequired
    description: Optional[str] = None
    sensitive: Optional[bool] = None
    deprecation_message: Optional[str] = None
    element_type: Optional[ElementType] = None
    attributes: Optional[list["Attribute"]] = None
    validators: Optional[list[CustomValidator]] = None
    default: Optional[StaticDefault] = None

    def to_dict(self, computability_key: str = "computed_optional_required") -> dict[str, Any]:
        body: dict[str, Any] = {computability_key: self.computability.value}
        if self.description:
            body["description"] = self.description
        if self.sensitive:
            body["sensitive"] = True
        if self.deprecation_message:
            body["deprecation_message"] = self.deprecation_message
        if self.element_type is not None:
            body["element_type"] = self.element_type.to_dict()
        if self.attributes is not None:
            nested = [a.to_dict(computability_key) for a in self.attributes]
            if self.kind.has_nested_object:
                body["nested_object"] = {"attributes": nested}
            else:
                body["attributes"] = nested
        if self.validators:
            body["validators"] = [v.to_dict() for v in self.validators]
        if self.default is not None:
            body["default"] = self.default.to_dict()
        return {"name": self.name, self.kind.value: body}


# --- Entities ---


class EntityIR(_Frozen):
    name: str
    description: Optional[str] = None
    attributes: list[Attribute] = Field(default_factory=list)

    computability_key: ClassVar[str] = "computed_optional_required"

    def schema_dict(self) -> dict[str, Any]:
        schema: dict[str, Any] = {}
        if self.description:
            schema["description"] = self.description
        schema["attributes"] = [a.to_dict(self.computability_key) for a in self.attributes]
        return schema

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "schema": self.schema_dict()}


class ResourceIR(EntityIR):
    pass


class DataSourceIR(EntityIR):
    pass


class ProviderIR(EntityIR):
    """The provider block; attributes use ``optional_required`` since nothing is computed."""

    computability_key: ClassVar[str] = "optional_required"

    def to_dict(self) -> dict[str, Any]:
        if not self.attributes and not self.description:
            return {"name": self.name}
        return {"name": self.name, "schema": self.schema_dict()}


class Specification(_Frozen):
    """The complete Framework IR document."""

    version: str = IR_VERSION
    provider: ProviderIR
    resources: list[ResourceIR] = Field(default_factory=list)
    data_sources: list[DataSourceIR] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "provider": self.provider.to_dict(),
            "resources": [r.to_dict() for r in self.resources],
            "data_sources": [d.to_dict() for d in self.data_sources],
        }

    def to_json(self) -> str:
        """Serialise with a two-space indent and a trailing newline."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + "\n"


ElementType.model_rebuild()
Attribute.model_rebuild()
