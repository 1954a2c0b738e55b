"""Non-fatal generation warnings and the per-run collector that gathers them.

Warnings never block output.  They degrade a single field or entity (a
recursive schema is cut, an unresolvable ``oneOf`` is dropped, a verb without
a body schema contributes nothing) and are surfaced to the user after the
run.  Each warning class has a stable ``code`` so that the rendered line
(``[warning:<code>] <entity>.<path>: <message>``) can be filtered in CI logs.

The :class:`Diagnostics` collector is created by the caller and threaded
explicitly through the Explorer, Merger and Mapper; there is no module-level
warning registry.
"""

from __future__ import annotations

import logging
from typing import ClassVar, Iterable, Iterator

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class GenerationWarning(BaseModel):
    """Base class for every non-fatal diagnostic."""

    model_config = ConfigDict(frozen=True)

    code: ClassVar[str] = "generation"

    entity: str
    path: str = ""
    message: str

    def render(self) -> str:
        """Format the warning as a single prefixed log line."""
        location = f"{self.entity}.{self.path}" if self.path else self.entity
        return f"[warning:{self.code}] {location}: {self.message}"


class RecursiveSchemaWarning(GenerationWarning):
    """A self-referential schema was cut to keep the attribute tree bounded."""

    code: ClassVar[str] = "recursive-schema"


class UnresolvedPolymorphismWarning(GenerationWarning):
    """A ``oneOf``/``anyOf``/``allOf`` could not be reduced to one type; the field was dropped."""

    code: ClassVar[str] = "unresolved-polymorphism"


class MissingVerbSchemaWarning(GenerationWarning):
    """A resolved operation had no usable request or response body schema."""

    code: ClassVar[str] = "missing-verb-schema"


class IgnoredPathWarning(GenerationWarning):
    """An ``ignore`` override addressed an attribute that does not exist."""

    code: ClassVar[str] = "ignored-path"


class OverrideTargetWarning(GenerationWarning):
    """A ``rename``/``computability``/``description`` override addressed a missing attribute."""

    code: ClassVar[str] = "override-target"


class EmptyBlockWarning(GenerationWarning):
    """A nested attribute lost all of its children and was dropped."""

    code: ClassVar[str] = "empty-block"


class ShadowedPropertyWarning(GenerationWarning):
    """A property declared by several composed members; the first wins."""

    code: ClassVar[str] = "shadowed-property"


class Diagnostics:
    """Ordered, de-duplicated collection of :class:`GenerationWarning` values.

    Example::

        diagnostics = Diagnostics()
        diagnostics.warn(MissingVerbSchemaWarning(entity="pet", message="..."))
        for warning in diagnostics:
            print(warning.render())
    """

    def __init__(self) -> None:
        self._warnings: list[GenerationWarning] = []
        self._seen: set[tuple[str, str, str, str]] = set()

    def warn(self, warning: GenerationWarning) -> None:
        key = (warning.code, warning.entity, warning.path, warning.message)
        if key in self._seen:
            return
        self._seen.add(key)
        self._warnings.append(warning)
        logger.debug("%s", warning.render())

    def extend(self, warnings: Iterable[GenerationWarning]) -> None:
        for warning in warnings:
            self.warn(warning)

    @property
    def warnings(self) -> list[GenerationWarning]:
        return list(self._warnings)

    def of_type(self, kind: type[GenerationWarning]) -> list[GenerationWarning]:
        """Return the collected warnings that are instances of *kind*."""
        return [w for w in self._warnings if isinstance(w, kind)]

    def __iter__(self) -> Iterator[GenerationWarning]:
        return iter(list(self._warnings))

    def __len__(self) -> int:
        return len(self._warnings)
