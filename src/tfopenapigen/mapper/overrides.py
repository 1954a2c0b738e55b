"""Apply user override rules to a canonical attribute tree, in place.

Rules run in declaration order and address attributes by dot-separated
paths of Terraform names (``owner.address.city``).  A path is resolved
against the tree as it stands when the rule runs, so a rule that follows a
``rename`` must use the new name.

Missing targets never fail the entity: ``ignore`` records an
:class:`~tfopenapigen.diagnostics.IgnoredPathWarning` (re-ignoring is a
no-op), the other rules an
:class:`~tfopenapigen.diagnostics.OverrideTargetWarning`.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from tfopenapigen.diagnostics import Diagnostics, IgnoredPathWarning, OverrideTargetWarning
from tfopenapigen.exceptions import OverrideConflictError
from tfopenapigen.models import (
    ComputabilityRule,
    DescriptionRule,
    IgnoreRule,
    OverrideRule,
    RenameRule,
)
from tfopenapigen.schema.attribute import CanonicalAttribute

logger = logging.getLogger(__name__)


def locate(
    root: CanonicalAttribute, path: str
) -> Optional[tuple[dict[str, CanonicalAttribute], str, CanonicalAttribute]]:
    """Find the attribute at *path*.

    Returns:
        ``(siblings, name, node)`` where *siblings* is the mutable mapping
        holding the node, or ``None`` when any segment is missing.
    """
    segments = [s for s in path.split(".") if s]
    if not segments:
        return None
    current = root
    for depth, segment in enumerate(segments):
        children = current.attribute_children()
        if children is None or segment not in children:
            return None
        if depth == len(segments) - 1:
            return children, segment, children[segment]
        current = children[segment]
    return None


def apply_overrides(
    root: CanonicalAttribute,
    rules: Sequence[OverrideRule],
    entity: str,
    diagnostics: Diagnostics,
) -> CanonicalAttribute:
    """Apply *rules* to *root* in order and return it.

    Raises:
        OverrideConflictError: If a ``rename`` collides with a sibling.
    """
    for rule in rules:
        if isinstance(rule, IgnoreRule):
            _ignore(root, rule, entity, diagnostics)
        elif isinstance(rule, RenameRule):
            _rename(root, rule, entity, diagnostics)
        elif isinstance(rule, ComputabilityRule):
            target = _target(root, rule, entity, diagnostics)
            if target is not None:
                target.computability = rule.computability.value
        elif isinstance(rule, DescriptionRule):
            target = _target(root, rule, entity, diagnostics)
            if target is not None:
                target.description = rule.description.text
        else:
            raise AssertionError(f"unhandled override rule: {rule!r}")
        logger.debug("%s: applied '%s'", entity, rule.describe())
    return root


def _ignore(root: CanonicalAttribute, rule: IgnoreRule, entity: str, diagnostics: Diagnostics) -> None:
    found = locate(root, rule.ignore)
    if found is None:
        diagnostics.warn(
            IgnoredPathWarning(
                entity=entity,
                path=rule.ignore,
                message="no attribute at this path; the ignore rule has no effect",
            )
        )
        return
    siblings, name, _ = found
    del siblings[name]


def _rename(root: CanonicalAttribute, rule: RenameRule, entity: str, diagnostics: Diagnostics) -> None:
    found = locate(root, rule.path)
    if found is None:
        _missing_target(rule, entity, diagnostics)
        return
    siblings, name, node = found
    new_name = rule.rename.to
    if new_name == name:
        return
    if new_name in siblings:
        raise OverrideConflictError(
            entity,
            f"cannot rename to '{new_name}': a sibling attribute already has that name",
            field_path=rule.path,
            rule=rule.describe(),
        )
    # Rebuild in place so the renamed attribute keeps its position.
    entries = list(siblings.items())
    siblings.clear()
    for key, value in entries:
        siblings[new_name if key == name else key] = value
    node.name = new_name


def _target(
    root: CanonicalAttribute,
    rule: OverrideRule,
    entity: str,
    diagnostics: Diagnostics,
) -> Optional[CanonicalAttribute]:
    found = locate(root, rule.path)
    if found is None:
        _missing_target(rule, entity, diagnostics)
        return None
    return found[2]


def _missing_target(rule: OverrideRule, entity: str, diagnostics: Diagnostics) -> None:
    diagnostics.warn(
        OverrideTargetWarning(
            entity=entity,
            path=rule.path,
            message=f"no attribute at this path; '{rule.describe()}' has no effect",
        )
    )
