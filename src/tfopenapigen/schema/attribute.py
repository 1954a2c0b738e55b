"""The canonical attribute tree produced by the schema merger.

A :class:`CanonicalAttribute` is one field of the eventual Framework IR after
the schemas of every contributing operation have been unified.  The tree is
built by :func:`~tfopenapigen.schema.merger.merge`, mutated in place by the
override rules in :mod:`tfopenapigen.mapper.overrides`, and finally
serialised into frozen IR models.

Shape invariant (checked by :meth:`CanonicalAttribute.check_consistency`):

* primitive types have neither ``children`` nor ``element_type``;
* ``single_nested`` and ``list_nested`` always have ``children``;
* ``list``, ``set`` and ``map`` always have an ``element_type`` and no
  ``children``.

Element types are themselves :class:`CanonicalAttribute` values with an
empty name; an object inside a collection is an element of type
``single_nested``.
"""

from __future__ import annotations

import enum
from typing import Any, Iterator, Optional

from pydantic import BaseModel, Field

from tfopenapigen.models import Computability


class AttributeType(str, enum.Enum):
    """Terraform-style type inferred for a canonical attribute."""

    BOOL = "bool"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    STRING = "string"
    LIST = "list"
    SET = "set"
    MAP = "map"
    SINGLE_NESTED = "single_nested"
    LIST_NESTED = "list_nested"

    @property
    def is_primitive(self) -> bool:
        return self in _PRIMITIVES

    @property
    def is_collection(self) -> bool:
        return self in (AttributeType.LIST, AttributeType.SET, AttributeType.MAP)

    @property
    def is_nested(self) -> bool:
        return self in (AttributeType.SINGLE_NESTED, AttributeType.LIST_NESTED)


_PRIMITIVES = frozenset(
    {
        AttributeType.BOOL,
        AttributeType.INT32,
        AttributeType.INT64,
        AttributeType.FLOAT32,
        AttributeType.FLOAT64,
        AttributeType.STRING,
    }
)


class CanonicalAttribute(BaseModel):
    """One merged field of an entity schema.

    Attributes:
        name: Terraform attribute name, unique within the parent.
        inferred_type: The unified :class:`AttributeType`.
        computability: Who sets the value (practitioner, server, or both).
        description: First non-empty description across contributing schemas.
        children: Ordered child attributes (nested types only).
        element_type: Element descriptor (``list``/``set``/``map`` only).
        sensitive: Value must be hidden in plans (passwords, credentials).
        deprecated: The source schema is marked deprecated.
        enum: Allowed values, when every contributing schema declares them.
        default: Static default from the schema (primitive types only).
        read_only_origin: The field appears only in read responses.
    """

    name: str = ""
    inferred_type: AttributeType
    computability: Computability = Computability.OPTIONAL
    description: str = ""
    children: Optional[dict[str, "CanonicalAttribute"]] = None
    element_type: Optional["CanonicalAttribute"] = None
    sensitive: bool = False
    deprecated: bool = False
    enum: Optional[list[Any]] = None
    default: Any = None
    read_only_origin: bool = False
    sources: list[str] = Field(default_factory=list, description="Contributing '<verb>:<schema path>' entries")

    def check_consistency(self) -> None:
        """Raise ``ValueError`` if the type and the ``children``/``element_type`` shape disagree."""
        kind = self.inferred_type
        if kind.is_primitive and (self.children is not None or self.element_type is not None):
            raise ValueError(f"primitive attribute '{self.name}' cannot have children or an element type")
        if kind.is_nested and (self.children is None or self.element_type is not None):
            raise ValueError(f"nested attribute '{self.name}' needs children and no element type")
        if kind.is_collection and (self.element_type is None or self.children is not None):
            raise ValueError(f"collection attribute '{self.name}' needs an element type and no children")
        for child in (self.children or {}).values():
            child.check_consistency()
        if self.element_type is not None:
            self.element_type.check_consistency()

    def child(self, name: str) -> Optional["CanonicalAttribute"]:
        """Look up a direct child, descending through a map's object element."""
        children = self.attribute_children()
        return children.get(name) if children is not None else None

    def attribute_children(self) -> Optional[dict[str, "CanonicalAttribute"]]:
        """The mapping that holds this node's addressable sub-attributes.

        Nested types own their children; a ``map`` of objects exposes the
        children of its element so that override paths can reach them.
        """
        if self.children is not None:
            return self.children
        element = self.element_type
        if self.inferred_type is AttributeType.MAP and element is not None and element.children is not None:
            return element.children
        return None

    def walk(self, prefix: str = "") -> Iterator[tuple[str, "CanonicalAttribute"]]:
        """Yield ``(dotted_path, node)`` for every addressable descendant, depth first."""
        for name, child in (self.attribute_children() or {}).items():
            path = f"{prefix}.{name}" if prefix else name
            yield path, child
            yield from child.walk(path)

    def type_label(self) -> str:
        """Human-readable type, e.g. ``list[string]`` or ``single_nested``."""
        if self.element_type is not None:
            return f"{self.inferred_type.value}[{self.element_type.type_label()}]"
        return self.inferred_type.value


CanonicalAttribute.model_rebuild()
