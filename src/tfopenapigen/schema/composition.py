"""Reduce one schema node to a single structural candidate.

:func:`flatten` looks through ``allOf``/``oneOf``/``anyOf`` compositions and
returns exactly one variant of :data:`Candidate`:

* :class:`Primitive` -- a scalar with an inferred :class:`AttributeType`;
* :class:`ListOf` -- an array (``unique`` when ``uniqueItems`` is set);
* :class:`MapOf` -- an object keyed by dynamic names (``additionalProperties``);
* :class:`ObjectShape` -- an object with a fixed, ordered field set;
* :class:`Unresolved` -- a composition that cannot be reduced to one type.

``allOf`` members are merged field by field.  ``oneOf``/``anyOf`` follow the
configured :class:`~tfopenapigen.models.OneOfPolicy`.  Branches of type
``null`` only express nullability and are skipped.

This module is pure: it never descends into properties or items, so it
cannot loop on self-referential schemas.  Recursion through properties is
handled by the merger.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

from tfopenapigen.models import OneOfPolicy
from tfopenapigen.parser.document import SchemaKind, SchemaNode
from tfopenapigen.schema.attribute import AttributeType


@dataclass(frozen=True)
class Primitive:
    type: AttributeType
    node: SchemaNode


@dataclass(frozen=True)
class ListOf:
    item: Optional[SchemaNode]
    unique: bool
    node: SchemaNode


@dataclass(frozen=True)
class MapOf:
    """A map; ``value`` is ``None`` for free-form (string-valued) maps."""

    value: Optional[SchemaNode]
    node: SchemaNode


@dataclass(frozen=True)
class ObjectShape:
    """An object with known fields in declaration order.

    ``members`` lists every schema node that contributed fields (the object
    itself, or each ``allOf`` branch), so the merger can record them on its
    recursion chain.
    ``shadowed`` names fields declared by more than one merged member; the
    first declaration is kept.
    """

    fields: dict[str, SchemaNode]
    required: frozenset[str]
    node: SchemaNode
    members: tuple[SchemaNode, ...] = field(default=())
    shadowed: tuple[str, ...] = field(default=())


@dataclass(frozen=True)
class Unresolved:
    reason: str
    node: SchemaNode


Candidate = Union[Primitive, ListOf, MapOf, ObjectShape, Unresolved]


def primitive_type(openapi_type: Optional[str], fmt: Optional[str]) -> AttributeType:
    """Map an OpenAPI ``type`` + ``format`` pair to an :class:`AttributeType`.

    ``integer`` is ``int64`` unless ``format: int32``; ``number`` is
    ``float64`` unless ``format: float``.  Unknown types fall back to
    ``string``.
    """
    if openapi_type == "boolean":
        return AttributeType.BOOL
    if openapi_type == "integer":
        return AttributeType.INT32 if fmt == "int32" else AttributeType.INT64
    if openapi_type == "number":
        return AttributeType.FLOAT32 if fmt == "float" else AttributeType.FLOAT64
    return AttributeType.STRING


def flatten(node: SchemaNode, policy: OneOfPolicy = OneOfPolicy.SINGLE) -> Candidate:
    """Reduce *node* to one :data:`Candidate`."""
    return _flatten(node, policy, frozenset())


def _flatten(node: SchemaNode, policy: OneOfPolicy, visiting: frozenset[int]) -> Candidate:
    if node.node_id in visiting:
        return Unresolved("composition refers back to itself", node)
    visiting = visiting | {node.node_id}

    kind = node.kind
    if kind is SchemaKind.ALL_OF:
        return _flatten_all_of(node, policy, visiting)
    if kind in (SchemaKind.ONE_OF, SchemaKind.ANY_OF):
        return _flatten_one_of(node, policy, visiting)
    if kind is SchemaKind.ARRAY:
        return ListOf(item=node.items, unique=node.unique_items, node=node)
    if kind is SchemaKind.OBJECT:
        properties = node.properties
        if properties:
            return ObjectShape(fields=properties, required=node.required, node=node, members=(node,))
        extra = node.additional_properties
        return MapOf(value=extra if isinstance(extra, SchemaNode) else None, node=node)
    if kind is SchemaKind.PRIMITIVE:
        return Primitive(primitive_type(node.type, node.format), node)
    return Primitive(_infer_untyped(node), node)


def _infer_untyped(node: SchemaNode) -> AttributeType:
    values = node.enum or []
    if values and all(isinstance(v, bool) for v in values):
        return AttributeType.BOOL
    if values and all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        return AttributeType.INT64
    if values and all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
        return AttributeType.FLOAT64
    return AttributeType.STRING


def is_annotation(node: SchemaNode) -> bool:
    """True for a member that only annotates, e.g. ``{description: ...}``."""
    return node.kind is SchemaKind.UNKNOWN and not node.enum


def describe(node: SchemaNode) -> str:
    """The description of *node*, falling back to its ``allOf`` annotation members."""
    if node.description or node.kind is not SchemaKind.ALL_OF:
        return node.description
    for member in node.branches:
        if is_annotation(member) and member.description:
            return member.description
    return ""


def _non_null(
branches: list[SchemaNode]) -> list[SchemaNode]:
    return [b for b in branches if not b.is_null]


def _flatten_all_of(node: SchemaNode, policy: OneOfPolicy, visiting: frozenset[int]) -> Candidate:
    members = _non_null(node.branches)
    if not members:
        return Unresolved("allOf has no usable members", node)
    # Annotation members such as {description: ...} refine the field without shaping it.
    branches = [b for b in members if not is_annotation(b)] or members
    candidates = [_flatten(b, policy, visiting) for b in branches]
    for candidate in candidates:
        if isinstance(candidate, Unresolved):
            return Unresolved(f"allOf member: {candidate.reason}", node)
    if len(candidates) == 1:
        return _rebase(candidates[0], node)

    objects = [c for c in candidates if isinstance(c, ObjectShape)]
    if len(objects) == len(candidates):
        return _merge_objects(objects, node, required_mode="union")
    same = _same_primitive(candidates)
    if same is not None:
        return Primitive(same, node)
    return Unresolved(
        "allOf combines incompatible members (" + ", ".join(_label(c) for c in candidates) + ")",
        node,
    )


def _flatten_one_of(node: SchemaNode, policy: OneOfPolicy, visiting: frozenset[int]) -> Candidate:
    keyword = "oneOf" if node.kind is SchemaKind.ONE_OF else "anyOf"
    branches = _non_null(node.branches)
    if not branches:
        return Unresolved(f"{keyword} has no non-null members", node)
    candidates = [_flatten(b, policy, visiting) for b in branches]
    resolvable = [c for c in candidates if not isinstance(c, Unresolved)]
    if not resolvable:
        return Unresolved(f"no {keyword} member can be resolved", node)
    if len(resolvable) == 1:
        return _rebase(resolvable[0], node)

    same = _same_primitive(resolvable)
    if same is not None:
        return Primitive(same, node)

    if policy is OneOfPolicy.FIRST:
        return _rebase(resolvable[0], node)
    if policy is OneOfPolicy.MERGE:
        objects = [c for c in resolvable if isinstance(c, ObjectShape)]
        if len(objects) == len(resolvable):
            return _merge_objects(objects, node, required_mode="intersection")
        return Unresolved(
            f"{keyword} members cannot be merged (" + ", ".join(_label(c) for c in resolvable) + ")",
            node,
        )
    return Unresolved(
        f"{keyword} has {len(resolvable)} resolvable members ("
        + ", ".join(_label(c) for c in resolvable)
        + "); set options.oneof_policy to 'first' or 'merge' to choose",
        node,
    )


def _same_primitive(candidates: list[Candidate]) -> Optional[AttributeType]:
    types = {c.type for c in candidates if isinstance(c, Primitive)}
    if len(types) == 1 and all(isinstance(c, Primitive) for c in candidates):
        return next(iter(types))
    return None


def _merge_objects(objects: list[ObjectShape], node: SchemaNode, required_mode: str) -> ObjectShape:
    fields: dict[str, SchemaNode] = {}
    members: list[SchemaNode] = []
    shadowed: list[str] = []
    for shape in objects:
        shadowed.extend(name for name in shape.shadowed if name not in shadowed)
        for name, child in shape.fields.items():
            first = fields.setdefault(name, child)
            if first is not child and name not in shadowed:
                shadowed.append(name)
        members.extend(m for m in shape.members if m not in members)

    if required_mode == "union":
        required = frozenset().union(*(shape.required for shape in objects))
    else:
        required = frozenset.intersection(*(shape.required for shape in objects))
        required = frozenset(name for name in required if all(name in s.fields for s in objects))
    return ObjectShape(fields=fields, required=required, node=node, members=tuple(members), shadowed=tuple(shadowed))


def _rebase(candidate: Candidate, node: SchemaNode) -> Candidate:
    """Keep the structure of *candidate* but attribute it to the composing *node*.

    The composing node carries the field-level description, so a branch
    chosen from ``oneOf`` does not lose it.
    """
    if isinstance(candidate, ObjectShape):
        return ObjectShape(
            fields=candidate.fields,
            required=candidate.required,
            node=node,
            members=candidate.members,
            shadowed=candidate.shadowed,
        )
    return candidate


def _label(candidate: Candidate) -> str:
    if isinstance(candidate, Primitive):
        return candidate.type.value
    if isinstance(candidate, ListOf):
        return "array"
    if isinstance(candidate, MapOf):
        return "map"
    if isinstance(candidate, ObjectShape):
        return candidate.node.ref_name or "object"
    return "unresolved"
