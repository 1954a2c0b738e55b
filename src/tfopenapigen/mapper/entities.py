"""Turn one entity's canonical tree into its Resource, Data Source or Provider IR."""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

from tfopenapigen.diagnostics import Diagnostics
from tfopenapigen.ir import DataSourceIR, ProviderIR, ResourceIR
from tfopenapigen.mapper.overrides import apply_overrides
from tfopenapigen.mapper.serializer import serialize_attributes
from tfopenapigen.mapper.validation import validate_tree
from tfopenapigen.models import EntityKind, OverrideRule
from tfopenapigen.schema.attribute import CanonicalAttribute

logger = logging.getLogger(__name__)

EntityIRType = Union[ResourceIR, DataSourceIR, ProviderIR]


def apply(
    tree: CanonicalAttribute,
    overrides: Sequence[OverrideRule],
    *,
    entity: str,
    kind: EntityKind,
    diagnostics: Optional[Diagnostics] = None,
) -> EntityIRType:
    """Apply *overrides* to *tree*, validate it and serialise it for *kind*.

    The tree is mutated in place and must not be used afterwards.

    Args:
        tree: The merged root attribute of the entity.
        overrides: The entity's override rules, in declaration order.
        entity: Entity name, used in diagnostics and errors.
        kind: Which IR model to produce.
        diagnostics: Collector for non-fatal warnings.

    Returns:
        A :class:`~tfopenapigen.ir.ResourceIR`,
        :class:`~tfopenapigen.ir.DataSourceIR` or
        :class:`~tfopenapigen.ir.ProviderIR`.

    Raises:
        OverrideConflictError: On rename collisions or impossible
            ``required`` attributes.
    """
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    apply_overrides(tree, overrides, entity, diagnostics)
    validate_tree(tree, entity, diagnostics)
    description = tree.description or None

    if kind is EntityKind.RESOURCE:
        result: EntityIRType = ResourceIR(
            name=entity, description=description, attributes=serialize_attributes(tree)
        )
    elif kind is EntityKind.DATA_SOURCE:
        result = DataSourceIR(name=entity, description=description, attributes=serialize_attributes(tree))
    elif kind is EntityKind.PROVIDER:
        result = ProviderIR(
            name=entity, description=description, attributes=serialize_attributes(tree, provider=True)
        )
    else:
        raise AssertionError(f"unhandled entity kind: {kind!r}")

    logger.debug("%s: %d attributes after overrides", entity, len(result.attributes))
    return result
