"""Structural checks run after overrides and before serialisation."""

from __future__ import annotations

from tfopenapigen.diagnostics import Diagnostics, EmptyBlockWarning
from tfopenapigen.exceptions import OverrideConflictError
from tfopenapigen.models import Computability
from tfopenapigen.schema.attribute import AttributeType, CanonicalAttribute


def validate_tree(root: CanonicalAttribute, entity: str, diagnostics: Diagnostics) -> CanonicalAttribute:
    """Drop empty nested blocks and reject impossible ``required`` attributes.

    Nested attributes left without children (usually after ``ignore``
    rules) are removed bottom-up, so a parent emptied by the removal is
    removed too.  Each removal records an
    :class:`~tfopenapigen.diagnostics.EmptyBlockWarning`.

    Raises:
        OverrideConflictError: If a ``required`` attribute only exists in
            read responses, or sits below a ``computed`` attribute.
    """
    _prune_empty(root, "", entity, diagnostics)
    _check_required(root, "", entity, computed_ancestor=False)
    root.check_consistency()
    return root


def _is_empty_block(node: CanonicalAttribute) -> bool:
    if node.inferred_type.is_nested:
        return not node.children
    element = node.element_type
    if element is not None and element.inferred_type is AttributeType.SINGLE_NESTED:
        return not element.children
    return False


def _prune_empty(node: CanonicalAttribute, prefix: str, entity: str, diagnostics: Diagnostics) -> None:
    children = node.attribute_children()
    if children is None:
        return
    for name in list(children):
        child = children[name]
        path = f"{prefix}.{name}" if prefix else name
        _prune_empty(child, path, entity, diagnostics)
        if _is_empty_block(child):
            del children[name]
            diagnostics.warn(
                EmptyBlockWarning(
                    entity=entity,
                    path=path,
                    message=f"{child.inferred_type.value} attribute has no attributes left and was dropped",
                )
            )


def _check_required(node: CanonicalAttribute, prefix: str, entity: str, computed_ancestor: bool) -> None:
    for name, child in (node.attribute_children() or {}).items():
        path = f"{prefix}.{name}" if prefix else name
        if child.computability is Computability.REQUIRED:
            if child.read_only_origin:
                raise OverrideConflictError(
                    entity,
                    "attribute only appears in read responses and cannot be required",
                    field_path=path,
                )
            if computed_ancestor:
                raise OverrideConflictError(
                    entity,
                    "required attribute is nested under a computed attribute",
                    field_path=path,
                )
        _check_required(
            child,
            path,
            entity,
            computed_ancestor or child.computability is Computability.COMPUTED,
        )
