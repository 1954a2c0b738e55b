"""Unify the schemas an entity's operations contribute into one attribute tree.

Each verb of an entity (``create``, ``read``, ``update``, and the synthetic
``parameters``) contributes at most one root schema.  :func:`merge` walks
those schemas in parallel, field by field:

1. every contributing schema for a field is flattened to a single
   :data:`~tfopenapigen.schema.composition.Candidate`;
2. the candidates' structural types are unified across verbs
   (``list``/``set`` -> ``list``, ``int32``/``int64`` -> ``int64``,
   ``float32``/``float64`` -> ``float64``; anything else is a
   :class:`~tfopenapigen.exceptions.TypeConflictError`);
3. computability follows from which verbs carry the field and whether a
   write verb requires it;
4. object children are unioned under their Terraform names, in first-seen
   order over the configured verb order.

Self-referential schemas are bounded by tracking, for every contribution,
the chain of schema ``node_id`` values entered above it.  A schema may occur
at most twice on one chain; the contribution that would enter it a third
time is cut and a :class:`~tfopenapigen.diagnostics.RecursiveSchemaWarning`
is recorded.

Example::

    root = merge(schema_set, OneOfPolicy.SINGLE, diagnostics)
    for path, attribute in root.walk():
        print(path, attribute.type_label(), attribute.computability.value)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from tfopenapigen.diagnostics import (
    Diagnostics,
    MissingVerbSchemaWarning,
    RecursiveSchemaWarning,
    ShadowedPropertyWarning,
    UnresolvedPolymorphismWarning,
)
from tfopenapigen.exceptions import TypeConflictError
from tfopenapigen.models import Computability, OneOfPolicy, Verb
from tfopenapigen.naming import terraform_identifier
from tfopenapigen.parser.document import SchemaNode
from tfopenapigen.schema.attribute import AttributeType, CanonicalAttribute
from tfopenapigen.schema.composition import (
    Candidate,
    ListOf,
    MapOf,
    ObjectShape,
    Primitive,
    Unresolved,
    describe,
    flatten,
)

if TYPE_CHECKING:
    from tfopenapigen.explorer import EntitySchemaSet

logger = logging.getLogger(__name__)

# A schema may be entered this many times on one ancestry chain.
MAX_SCHEMA_OCCURRENCES = 2

_WIDENINGS: dict[frozenset[AttributeType], AttributeType] = {
    frozenset({AttributeType.LIST, AttributeType.SET}): AttributeType.LIST,
    frozenset({AttributeType.INT32, AttributeType.INT64}): AttributeType.INT64,
    frozenset({AttributeType.FLOAT32, AttributeType.FLOAT64}): AttributeType.FLOAT64,
}


@dataclass(frozen=True)
class Contribution:
    """One verb's schema for one field, plus the schemas entered above it."""

    verb: Verb
    node: SchemaNode
    chain: tuple[int, ...] = ()
    required: bool = False


def merge(
    schema_set: "EntitySchemaSet",
    policy: OneOfPolicy = OneOfPolicy.SINGLE,
    diagnostics: Optional[Diagnostics] = None,
) -> CanonicalAttribute:
    """Merge every contribution of *schema_set* into a ``single_nested`` root.

    Args:
        schema_set: The entity's contributing schemas, in verb order.
        policy: How ``oneOf``/``anyOf`` with several usable members reduce.
        diagnostics: Collector for non-fatal warnings; a private one is used
            when omitted.

    Returns:
        The root :class:`CanonicalAttribute`.  Its ``children`` may be empty
        when no verb contributed an object schema.

    Raises:
        TypeConflictError: If a field has incompatible types across verbs.
    """
    if diagnostics is None:
        diagnostics = Diagnostics()
    merger = SchemaMerger(schema_set.entity_name, policy, diagnostics)
    return merger.merge_root(schema_set.contributions)


def unify_types(types: list[AttributeType]) -> Optional[AttributeType]:
    """Unify structural types across verbs, or return ``None`` when they conflict.

    The result does not depend on the order of *types*.
    """
    distinct = frozenset(types)
    if len(distinct) == 1:
        return next(iter(distinct))
    return _WIDENINGS.get(distinct)


class SchemaMerger:
    """Stateful walk for one entity; see :func:`merge`."""

    def __init__(self, entity: str, policy: OneOfPolicy, diagnostics: Diagnostics) -> None:
        self.entity = entity
        self.policy = policy
        self.diagnostics = diagnostics

    # --- Roots ---

    def merge_root(self, contributions: dict[Verb, SchemaNode]) -> CanonicalAttribute:
        objects: list[tuple[Contribution, ObjectShape]] = []
        for verb, node in contributions.items():
            candidate = flatten(node, self.policy)
            if isinstance(candidate, ObjectShape):
                contribution = Contribution(verb, node, chain=self._members(candidate, (node.node_id,)))
                objects.append((contribution, candidate))
            elif isinstance(candidate, Unresolved):
                self._warn(UnresolvedPolymorphismWarning, "", f"{verb.value} schema ignored: {candidate.reason}")
            else:
                self.diagnostics.warn(
                    MissingVerbSchemaWarning(
                        entity=self.entity,
                        message=f"{verb.value} schema is not an object; it contributes no attributes",
                    )
                )

        root = CanonicalAttribute(
            name="",
            inferred_type=AttributeType.SINGLE_NESTED,
            computability=_computability([c for c, _ in objects]),
            description=_first_description(c.node for c, _ in objects),
            children=self._merge_fields(objects, ""),
            sources=_verb_sources(c for c, _ in objects),
        )
        logger.debug(
            "Merged %s: %d top-level attributes from %s",
            self.entity,
            len(root.children or {}),
            ", ".join(root.sources) or "no operations",
        )
        return root

    # --- Objects ---

    def _merge_fields(
        self, objects: list[tuple[Contribution, ObjectShape]], path: str
    ) -> dict[str, CanonicalAttribute]:
        per_field: dict[str, list[Contribution]] = {}
        for parent, shape in objects:
            for prop_name in shape.shadowed:
                self._warn(
                    ShadowedPropertyWarning,
                    f"{path}.{terraform_identifier(prop_name)}" if path else terraform_identifier(prop_name),
                    "declared by several composed members; the first definition is used",
                )
            for prop_name, child in shape.fields.items():
                if child.read_only and parent.verb.is_write:
                    continue
                if child.write_only and parent.verb.is_read:
                    continue
                name = terraform_identifier(prop_name)
                required = parent.verb.is_write and prop_name in shape.required
                per_field.setdefault(name, []).append(
                    Contribution(parent.verb, child, chain=parent.chain, required=required)
                )

        children: dict[str, CanonicalAttribute] = {}
        for name, contributions in per_field.items():
            child_path = f"{path}.{name}" if path else name
            attribute = self._merge_field(name, contributions, child_path)
            if attribute is not None:
                children[name] = attribute
        return children

    def _merge_field(
        self, name: str, contributions: list[Contribution], path: str
    ) -> Optional[CanonicalAttribute]:
        resolved = self._resolve(contributions, path)
        if not resolved:
            return None
        attribute = self._build(resolved, path, as_element=False)
        if attribute is None:
            return None
        attribute.name = name
        attribute.computability = _computability([c for c, _ in resolved])
        if (
            attribute.computability is Computability.OPTIONAL
            and attribute.default is not None
            and attribute.inferred_type.is_primitive
        ):
            attribute.computability = Computability.OPTIONAL_COMPUTED
        attribute.read_only_origin = all(c.verb.is_read for c, _ in resolved)
        return attribute

    # --- Candidates ---

    def _resolve(
        self, contributions: list[Contribution], path: str
    ) -> list[tuple[Contribution, Candidate]]:
        """Flatten each contribution, cutting recursion and dropping the field on unresolved polymorphism."""
        resolved: list[tuple[Contribution, Candidate]] = []
        cut: list[Contribution] = []
        for contribution in contributions:
            node = contribution.node
            if contribution.chain.count(node.node_id) >= MAX_SCHEMA_OCCURRENCES:
                cut.append(contribution)
                continue
            candidate = flatten(node, self.policy)
            if isinstance(candidate, Unresolved):
                self._warn(UnresolvedPolymorphismWarning, path, f"field dropped: {candidate.reason}")
                return []
            chain = self._members(candidate, contribution.chain + (node.node_id,))
            resolved.append(
                (Contribution(contribution.verb, node, chain=chain, required=contribution.required), candidate)
            )

        if cut:
            label = cut[0].node.ref_name or f"schema #{cut[0].node.node_id}"
            if resolved:
                detail = f"recursive reference to {label} not expanded for " + ", ".join(
                    sorted({c.verb.value for c in cut})
                )
            else:
                detail = f"recursive reference to {label} cut after {MAX_SCHEMA_OCCURRENCES} levels"
            self._warn(RecursiveSchemaWarning, path, detail)
        return resolved

    def _build(
        self,
        resolved: list[tuple[Contribution, Candidate]],
        path: str,
        as_element: bool,
    ) -> Optional[CanonicalAttribute]:
        """Build one attribute (or element descriptor) from already resolved candidates."""
        typed = [(c, candidate, self._structural_type(candidate, as_element)) for c, candidate in resolved]
        unified = unify_types([t for _, _, t in typed])
        if unified is None:
            raise TypeConflictError(
                self.entity,
                path or "<root>",
                [f"{c.verb.value}: {t.value}" for c, _, t in typed],
            )

        nodes = [c.node for c, _ in resolved]
        attribute = CanonicalAttribute(
            inferred_type=unified,
            description=_first_description(nodes),
            sensitive=any(n.format == "password" for n in nodes),
            deprecated=any(n.deprecated for n in nodes),
            sources=_verb_sources(c for c, _ in resolved),
        )

        if unified.is_primitive:
            attribute.enum = _common_enum(nodes)
            attribute.default = next((n.default for n in nodes if n.default is not None), None)
            return attribute

        if unified is AttributeType.SINGLE_NESTED:
            objects = [(c, cand) for c, cand in resolved if isinstance(cand, ObjectShape)]
            attribute.children = self._merge_fields(objects, path)
            return attribute

        if unified in (AttributeType.LIST, AttributeType.SET, AttributeType.LIST_NESTED):
            items = [
                Contribution(c.verb, cand.item, chain=c.chain, required=c.required)
                for c, cand in resolved
                if isinstance(cand, ListOf) and cand.item is not None
            ]
            untyped = [c for c, cand in resolved if isinstance(cand, ListOf) and cand.item is None]
            if unified is AttributeType.LIST_NESTED:
                item_resolved = self._resolve(items, path)
                objects = [(c, cand) for c, cand in item_resolved if isinstance(cand, ObjectShape)]
                if not objects:
                    return None
                attribute.children = self._merge_fields(objects, path)
                if not attribute.description:
                    attribute.description = _first_description(c.node for c, _ in objects)
                return attribute
            element = self._element(items, path, fallback=bool(untyped))
            if element is None:
                return None
            attribute.element_type = element
            return attribute

        # Map
        values = [
            Contribution(c.verb, cand.value, chain=c.chain, required=c.required)
            for c, cand in resolved
            if isinstance(cand, MapOf) and cand.value is not None
        ]
        free_form = any(isinstance(cand, MapOf) and cand.value is None for _, cand in resolved)
        element = self._element(values, path, fallback=free_form)
        if element is None:
            return None
        attribute.element_type = element
        return attribute

    def _element(
        self, contributions: list[Contribution], path: str, fallback: bool
    ) -> Optional[CanonicalAttribute]:
        """Element descriptor of a collection; untyped items fall back to ``string``."""
        if not contributions:
            return CanonicalAttribute(inferred_type=AttributeType.STRING)
        resolved = self._resolve(contributions, path)
        if not resolved:
            return None
        element = self._build(resolved, path, as_element=True)
        if element is None:
            return None
        if fallback and element.inferred_type is not AttributeType.STRING:
            raise TypeConflictError(
                self.entity, path, ["untyped items: string", f"typed items: {element.type_label()}"]
            )
        if element.inferred_type is AttributeType.SINGLE_NESTED and not element.children:
            return None
        return element

    def _structural_type(self, candidate: Candidate, as_element: bool) -> AttributeType:
        if isinstance(candidate, Primitive):
            return candidate.type
        if isinstance(candidate, ObjectShape):
            return AttributeType.SINGLE_NESTED
        if isinstance(candidate, MapOf):
            return AttributeType.MAP
        if isinstance(candidate, ListOf):
            item = flatten(candidate.item, self.policy) if candidate.item is not None else None
            if isinstance(item, ObjectShape):
                # Collections of objects nest their attributes; inside another collection they stay lists.
                return AttributeType.LIST if as_element else AttributeType.LIST_NESTED
            if candidate.unique and (item is None or isinstance(item, Primitive)):
                return AttributeType.SET
            return AttributeType.LIST
        raise AssertionError(f"unexpected candidate {candidate!r}")

    def _members(self, candidate: Candidate, chain: tuple[int, ...]) -> tuple[int, ...]:
        if isinstance(candidate, ObjectShape):
            extra = tuple(m.node_id for m in candidate.members if m.node_id not in chain[-1:])
            return chain + extra
        return chain

    def _warn(self, kind: type, path: str, message: str) -> None:
        self.diagnostics.warn(kind(entity=self.entity, path=path, message=message))


# --- Helpers ---


def _computability(contributions: list[Contribution]) -> Computability:
    in_write = any(c.verb.is_write for c in contributions)
    in_read = any(c.verb.is_read for c in contributions)
    if any(c.required for c in contributions if c.verb.is_write):
        return Computability.REQUIRED
    if in_write and in_read:
        return Computability.OPTIONAL_COMPUTED
    if in_write:
        return Computability.OPTIONAL
    return Computability.COMPUTED


def _first_description(nodes: Any) -> str:
    for node in nodes:
        description = describe(node)
        if description:
            return description
    return ""


def _common_enum(nodes: list[SchemaNode]) -> Optional[list[Any]]:
    """The first declared enum, when every contributing schema declares one."""
    enums = [n.enum for n in nodes]
    if not enums or any(not values for values in enums):
        return None
    return list(enums[0])


def _verb_sources(contributions: Any) -> list[str]:
    sources: list[str] = []
    for contribution in contributions:
        if contribution.verb.value not in sources:
            sources.append(contribution.verb.value)
    return sources
