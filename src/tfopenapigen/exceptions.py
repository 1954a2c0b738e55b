"""Exception hierarchy for tfopenapigen.

All exceptions inherit from :class:`TfOpenAPIGenError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`tfopenapigen.exit_codes`. The command line catches
``TfOpenAPIGenError`` and exits with the appropriate code.

Errors raised while mapping a single resource, data source or the provider
derive from :class:`EntityError` and name the offending entity and field
path, so that :func:`~tfopenapigen.assembly.generate_ir` can keep them
entity-scoped.

Subclass hierarchy::

    TfOpenAPIGenError (exit 1)
    +-- InvalidUsageError          (exit 2)
    +-- ConfigError                (exit 3)
    +-- SpecParseError             (exit 4)
    +-- EntityError                (exit 5)
        +-- ConfigResolutionError
        |   +-- NotFoundError
        |   +-- AmbiguousReferenceError
        +-- TypeConflictError
        +-- OverrideConflictError
"""

from __future__ import annotations

from typing import Optional, Sequence

from tfopenapigen.exit_codes import (
    EXIT_CONFIG_ERROR,
    EXIT_ENTITY_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SPEC_PARSE_ERROR,
)


class TfOpenAPIGenError(Exception):
    """Base exception for all tfopenapigen errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(TfOpenAPIGenError):
    """Raised for invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(TfOpenAPIGenError):
    """Raised when the generator configuration is missing, malformed or invalid."""

    exit_code = EXIT_CONFIG_ERROR


class SpecParseError(TfOpenAPIGenError):
    """Raised when the OpenAPI document cannot be loaded, parsed or resolved."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class EntityError(TfOpenAPIGenError):
    """Base class for errors that are fatal to one entity only.

    Args:
        entity: Name of the resource, data source or provider.
        message: Description of the problem.
        field_path: Dotted attribute path inside the entity, when the error
            concerns a single field.
    """

    exit_code = EXIT_ENTITY_ERROR

    def __init__(self, entity: str, message: str, field_path: str = ""):
        self.entity = entity
        self.field_path = field_path
        self.detail = message
        super().__init__(self._render())

    def _render(self) -> str:
        location = f"{self.entity}.{self.field_path}" if self.field_path else self.entity
        return f"{location}: {self.detail}"


class ConfigResolutionError(EntityError):
    """Raised when an operation locator cannot be resolved in the document."""


class NotFoundError(ConfigResolutionError):
    """Raised when a locator, schema pointer or parameter name matches nothing."""


class AmbiguousReferenceError(ConfigResolutionError):
    """Raised when a locator matches more than one operation."""

    def __init__(self, entity: str, message: str, candidates: Sequence[str] = ()):
        self.candidates = list(candidates)
        if self.candidates:
            message = f"{message} (candidates: {', '.join(self.candidates)})"
        super().__init__(entity, message)


class TypeConflictError(EntityError):
    """Raised when one field has structurally incompatible types across verbs.

    Args:
        entity: Entity being merged.
        field_path: Dotted path of the conflicting field.
        conflicting_types: The inferred types, one per contributing verb,
            formatted as ``"<verb>: <type>"``.
    """

    def __init__(self, entity: str, field_path: str, conflicting_types: Sequence[str]):
        self.conflicting_types = list(conflicting_types)
        super().__init__(
            entity,
            f"irreconcilable types across operations ({', '.join(self.conflicting_types)})",
            field_path=field_path,
        )


class OverrideConflictError(EntityError):
    """Raised when an override rule produces a name collision or an invalid computability."""

    def __init__(self, entity: str, message: str, field_path: str = "", rule: Optional[str] = None):
        self.rule = rule
        super().__init__(entity, message, field_path=field_path)
