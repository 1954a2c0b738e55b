"""Resolve ``$ref`` JSON Reference pointers into a shared object graph.

Every internal ``$ref`` (``#/components/schemas/Pet``) is replaced by the
object found at that pointer, and every location in the document is built
exactly once: all references to the same pointer resolve to the *same*
Python object.  A schema that references itself therefore becomes a genuine
object cycle instead of an infinitely deep tree, and consumers can detect
recursion by object identity (see
:class:`~tfopenapigen.parser.document.SchemaArena`).

Only internal references (``#/...``) are supported; external file or URL
references raise :class:`~tfopenapigen.exceptions.SpecParseError`.  A
``$ref`` with sibling keys (``{"$ref": ..., "description": ...}``) resolves
to a shallow copy of the target with the siblings applied on top.

The input document is never mutated.
"""

from __future__ import annotations

import logging
from typing import Any

from tfopenapigen.exceptions import SpecParseError

logger = logging.getLogger(__name__)


def resolve_refs(spec: dict[str, Any]) -> dict[str, Any]:
    """Return a new document with every internal ``$ref`` resolved.

    Args:
        spec: The raw OpenAPI document as returned by
            :func:`~tfopenapigen.parser.loader.load_spec`.

    Returns:
        The resolved document.  It may contain reference cycles.

    Raises:
        SpecParseError: On external references, dangling pointers and
            ``$ref`` chains that only point at each other.
    """
    return RefResolver(spec).resolve()


def pointer_from_ref(ref: str) -> str:
    """Convert ``#/a/b`` into the JSON pointer ``/a/b``.

    Raises:
        SpecParseError: If *ref* is not an internal reference.
    """
    if ref == "#":
        return ""
    if not ref.startswith("#/"):
        raise SpecParseError(
            f"External $ref not supported: {ref}. Only internal references (#/...) are handled."
        )
    return ref[1:]


def _escape(segment: str) -> str:
    return segment.replace("~", "~0").replace("/", "~1")


def _navigate(root: Any, pointer: str) -> Any:
    """Follow an RFC 6901 pointer through the raw (unresolved) document."""
    current: Any = root
    if not pointer:
        return current
    for raw_segment in pointer[1:].split("/"):
        segment = raw_segment.replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict):
            if segment not in current:
                raise SpecParseError(f"Cannot resolve $ref '#{pointer}': key '{segment}' not found")
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise SpecParseError(
                    f"Cannot resolve $ref '#{pointer}': invalid array index '{segment}'"
                ) from exc
        else:
            raise SpecParseError(
                f"Cannot resolve $ref '#{pointer}': cannot navigate into {type(current).__name__}"
            )
    return current


class RefResolver:
    """Build the resolved graph, memoising every container by its JSON pointer.

    After :meth:`resolve`, :attr:`pointers` maps ``id()`` of each resolved
    container to the pointer it was first built from, which lets the document
    model recover component names for schemas.
    """

    def __init__(self, spec: dict[str, Any]) -> None:
        self._root = spec
        self._memo: dict[str, Any] = {}
        self._aliasing: set[str] = set()
        self.pointers: dict[int, str] = {}

    def resolve(self) -> dict[str, Any]:
        return self._resolve(self._root, "")

    def resolve_pointer(self, pointer: str) -> Any:
        """Resolve the value at *pointer*, reusing the memoised object when present."""
        if pointer in self._memo:
            return self._memo[pointer]
        return self._resolve(_navigate(self._root, pointer), pointer)

    def _remember(self, pointer: str, obj: Any) -> None:
        self._memo[pointer] = obj
        self.pointers.setdefault(id(obj), pointer)

    def _resolve(self, obj: Any, pointer: str) -> Any:
        if isinstance(obj, dict):
            if pointer in self._memo:
                return self._memo[pointer]
            ref = obj.get("$ref")
            if isinstance(ref, str):
                return self._resolve_reference(obj, ref, pointer)
            resolved: dict[str, Any] = {}
            self._remember(pointer, resolved)
            for key, value in obj.items():
                resolved[key] = self._resolve(value, f"{pointer}/{_escape(str(key))}")
            return resolved

        if isinstance(obj, list):
            if pointer in self._memo:
                return self._memo[pointer]
            items: list[Any] = []
            self._remember(pointer, items)
            items.extend(self._resolve(item, f"{pointer}/{index}") for index, item in enumerate(obj))
            return items

        return obj

    def _resolve_reference(self, obj: dict[str, Any], ref: str, pointer: str) -> Any:
        target_pointer = pointer_from_ref(ref)
        if target_pointer in self._aliasing:
            raise SpecParseError(f"Circular $ref alias at '#{pointer}' -> '{ref}'")

        self._aliasing.add(pointer)
        try:
            target = self.resolve_pointer(target_pointer)
        finally:
            self._aliasing.discard(pointer)

        siblings = {key: value for key, value in obj.items() if key != "$ref"}
        if not siblings or not isinstance(target, dict):
            self._memo[pointer] = target
            return target

        merged: dict[str, Any] = {}
        self._remember(pointer, merged)
        merged.update(target)
        for key, value in siblings.items():
            merged[key] = self._resolve(value, f"{pointer}/{_escape(str(key))}")
        logger.debug("Merged $ref %s with sibling keys %s", ref, sorted(siblings))
        return merged
