"""Convert a validated canonical attribute tree into Framework IR attributes."""

from __future__ import annotations

import json
from typing import Any, Optional

from tfopenapigen.ir import (
    VALIDATOR_IMPORT_ROOT,
    Attribute,
    ComputedOptionalRequired,
    CustomValidator,
    ElementType,
    IRKind,
    ObjectAttributeType,
    StaticDefault,
    ValidatorImport,
)
from tfopenapigen.models import Computability
from tfopenapigen.schema.attribute import AttributeType, CanonicalAttribute

DEPRECATION_MESSAGE = "This attribute is deprecated."

_PRIMITIVE_KINDS: dict[AttributeType, IRKind] = {
    AttributeType.BOOL: IRKind.BOOL,
    AttributeType.INT32: IRKind.INT32,
    AttributeType.INT64: IRKind.INT64,
    AttributeType.FLOAT32: IRKind.FLOAT32,
    AttributeType.FLOAT64: IRKind.FLOAT64,
    AttributeType.STRING: IRKind.STRING,
}

_COMPUTABILITY: dict[Computability, ComputedOptionalRequired] = {
    Computability.REQUIRED: ComputedOptionalRequired.REQUIRED,
    Computability.OPTIONAL: ComputedOptionalRequired.OPTIONAL,
    Computability.COMPUTED: ComputedOptionalRequired.COMPUTED,
    Computability.OPTIONAL_COMPUTED: ComputedOptionalRequired.COMPUTED_OPTIONAL,
}

# Primitive kinds that accept a static default, with the Python types allowed for it.
_DEFAULT_TYPES: dict[IRKind, tuple[type, ...]] = {
    IRKind.BOOL: (bool,),
    IRKind.INT32: (int,),
    IRKind.INT64: (int,),
    IRKind.FLOAT32: (int, float),
    IRKind.FLOAT64: (int, float),
    IRKind.STRING: (str,),
}


def serialize_attributes(node: CanonicalAttribute, provider: bool = False) -> list[Attribute]:
    """Serialise the children of *node* in order.

    Args:
        node: The root (or any nested) canonical attribute.
        provider: Provider attributes are only ever ``required`` or
            ``optional``; computed values become ``optional``.
    """
    return [serialize_attribute(child, provider) for child in (node.attribute_children() or {}).values()]


def serialize_attribute(node: CanonicalAttribute, provider: bool = False) -> Attribute:
    kind, element, nested_from = _shape(node)
    computability = _COMPUTABILITY[node.computability]
    if provider and computability not in (ComputedOptionalRequired.REQUIRED, ComputedOptionalRequired.OPTIONAL):
        computability = ComputedOptionalRequired.OPTIONAL

    return Attribute(
        name=node.name,
        kind=kind,
        computability=computability,
        description=node.description or None,
        sensitive=True if node.sensitive else None,
        deprecation_message=DEPRECATION_MESSAGE if node.deprecated else None,
        element_type=serialize_element(element) if element is not None else None,
        attributes=serialize_attributes(nested_from, provider) if nested_from is not None else None,
        validators=_enum_validators(kind, node.enum),
        default=_static_default(kind, computability, node.default, provider),
    )


def serialize_element(node: CanonicalAttribute) -> ElementType:
    """Element descriptor of a collection; objects become ``object`` attribute types."""
    kind = node.inferred_type
    if kind.is_primitive:
        return ElementType(kind=_PRIMITIVE_KINDS[kind])
    if kind.is_nested:
        object_type = ElementType(
            kind=IRKind.OBJECT,
            attribute_types=[
                ObjectAttributeType(name=name, type=serialize_element(child))
                for name, child in (node.children or {}).items()
            ],
        )
        if kind is AttributeType.LIST_NESTED:
            return ElementType(kind=IRKind.LIST, element_type=object_type)
        return object_type
    assert node.element_type is not None
    return ElementType(kind=IRKind(kind.value), element_type=serialize_element(node.element_type))


def _shape(
    node: CanonicalAttribute,
) -> tuple[IRKind, Optional[CanonicalAttribute], Optional[CanonicalAttribute]]:
    """IR kind, element to describe, and node whose children become nested attributes."""
    kind = node.inferred_type
    if kind.is_primitive:
        return _PRIMITIVE_KINDS[kind], None, None
    if kind is AttributeType.SINGLE_NESTED:
        return IRKind.SINGLE_NESTED, None, node
    if kind is AttributeType.LIST_NESTED:
        return IRKind.LIST_NESTED, None, node
    element = node.element_type
    assert element is not None
    if kind is AttributeType.MAP and element.inferred_type is AttributeType.SINGLE_NESTED:
        return IRKind.MAP_NESTED, None, element
    return IRKind(kind.value), element, None


def _enum_validators(kind: IRKind, values: Optional[list[Any]]) -> Optional[list[CustomValidator]]:
    if not values:
        return None
    if kind is IRKind.STRING and all(isinstance(v, str) for v in values):
        package = "stringvalidator"
        arguments = ", ".join(json.dumps(v, ensure_ascii=False) for v in values)
    elif kind is IRKind.INT64 and all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        package = "int64validator"
        arguments = ", ".join(str(v) for v in values)
    else:
        return None
    return [
        CustomValidator(
            imports=[ValidatorImport(path=f"{VALIDATOR_IMPORT_ROOT}/{package}")],
            schema_definition=f"{package}.OneOf({arguments})",
        )
    ]


def _static_default(
    kind: IRKind,
    computability: ComputedOptionalRequired,
    value: Any,
    provider: bool,
) -> Optional[StaticDefault]:
    """Static defaults only apply to ``computed_optional`` primitives of a matching type."""
    if value is None or provider or computability is not ComputedOptionalRequired.COMPUTED_OPTIONAL:
        return None
    allowed = _DEFAULT_TYPES.get(kind)
    if allowed is None or not isinstance(value, allowed):
        return None
    if kind is not IRKind.BOOL and isinstance(value, bool):
        return None
    return StaticDefault(static=value)
