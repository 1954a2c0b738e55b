"""Locate the operations and schemas behind each configured entity.

The explorer is a pure lookup step.  For every resource and data source it
resolves the configured :class:`~tfopenapigen.models.OperationLocator` values
against the :class:`~tfopenapigen.parser.document.DocumentModel` and picks the
schema each verb contributes:

* ``create`` / ``update`` -- the request body schema;
* ``read`` -- the success response schema;
* ``parameters`` -- an object synthesised from the ``read`` operation's path
  and query parameters;
* ``delete`` -- resolved so that a bad locator is reported, but contributes
  nothing.

The provider has no operations.  Its schema is assembled from the optional
``schema_ref`` pointer plus one attribute per configured security scheme and
header parameter.

The result is one :class:`EntitySchemaSet` per entity, in configuration
order.  Verbs without a usable body schema are recorded as
:class:`~tfopenapigen.diagnostics.MissingVerbSchemaWarning` on the set and
simply do not contribute.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from tfopenapigen.diagnostics import GenerationWarning, MissingVerbSchemaWarning
from tfopenapigen.exceptions import (
    AmbiguousReferenceError,
    ConfigResolutionError,
    NotFoundError,
)
from tfopenapigen.models import (
    DataSourceConfig,
    EntityKind,
    GeneratorConfig,
    OperationLocator,
    OverrideRule,
    ProviderConfig,
    ResourceConfig,
    Verb,
)
from tfopenapigen.naming import terraform_identifier
from tfopenapigen.parser.document import DocumentModel, Operation, SchemaKind, SchemaNode

logger = logging.getLogger(__name__)


@dataclass
class EntitySchemaSet:
    """The schemas one entity's operations contribute, keyed by verb.

    Attributes:
        entity_name: Configured name of the resource, data source or provider.
        kind: Which of the three entity kinds this is.
        contributions: Verb to root schema, in the configured verb order
            (``parameters`` last).
        operations: Every resolved operation, including ``delete``.
        overrides: The entity's override rules, in declaration order.
        warnings: Non-fatal problems found while exploring.
    """

    entity_name: str
    kind: EntityKind
    contributions: dict[Verb, SchemaNode] = field(default_factory=dict)
    operations: dict[Verb, Operation] = field(default_factory=dict)
    overrides: list[OverrideRule] = field(default_factory=list)
    warnings: list[GenerationWarning] = field(default_factory=list)

    @property
    def verbs(self) -> list[Verb]:
        return list(self.contributions)


# --- Entry points ---


def find(kind: EntityKind, document: DocumentModel, config: GeneratorConfig) -> list[EntitySchemaSet]:
    """Explore every configured entity of *kind*, in configuration order.

    Raises:
        NotFoundError: A locator, schema pointer or provider name matches nothing.
        AmbiguousReferenceError: A locator matches more than one operation.
    """
    if kind is EntityKind.RESOURCE:
        return find_resources(document, config)
    if kind is EntityKind.DATA_SOURCE:
        return find_data_sources(document, config)
    if kind is EntityKind.PROVIDER:
        return [find_provider(document, config)]
    raise AssertionError(f"unhandled entity kind: {kind!r}")


def find_resources(document: DocumentModel, config: GeneratorConfig) -> list[EntitySchemaSet]:
    return [explore_entity(name, entity, document) for name, entity in config.resources.items()]


def find_data_sources(document: DocumentModel, config: GeneratorConfig) -> list[EntitySchemaSet]:
    return [explore_entity(name, entity, document) for name, entity in config.data_sources.items()]


def find_provider(document: DocumentModel, config: GeneratorConfig) -> EntitySchemaSet:
    return explore_provider(config.provider, document)


def explore_entity(
    name: str,
    entity: Union[ResourceConfig, DataSourceConfig],
    document: DocumentModel,
) -> EntitySchemaSet:
    """Resolve one resource or data source into its :class:`EntitySchemaSet`.

    Args:
        name: The entity's configured name.
        entity: Its configuration descriptor.
        document: The document model to search.

    Returns:
        The entity's schema set.

    Raises:
        NotFoundError: If any locator does not resolve.
        AmbiguousReferenceError: If a locator resolves to several operations.
    """
    operations = {
        verb: resolve_operation(name, verb, locator, document)
        for verb, locator in entity.operations.items()
    }
    warnings: list[GenerationWarning] = []
    contributions: dict[Verb, SchemaNode] = {}

    for verb, operation in operations.items():
        if verb is Verb.DELETE:
            continue
        if verb.is_write:
            node = operation.request_schema()
            source = "request body"
        else:
            node, status = operation.response_schema()
            source = "success response"
            if node is not None:
                logger.debug("%s: %s uses the %s response", name, operation.describe(), status)
        if node is None:
            warnings.append(
                MissingVerbSchemaWarning(
                    entity=name,
                    message=f"{verb.value} operation {operation.describe()} has no {source} schema; "
                    "it contributes no attributes",
                )
            )
            continue
        if entity.kind is EntityKind.DATA_SOURCE and node.kind is SchemaKind.ARRAY:
            node = _wrap_collection(name, node, document)
        contributions[verb] = node

    read = operations.get(Verb.READ)
    if read is not None:
        parameters = _parameter_schema(read, document, inputs=entity.kind is EntityKind.DATA_SOURCE)
        if parameters is not None:
            contributions[Verb.PARAMETERS] = parameters

    return EntitySchemaSet(
        entity_name=name,
        kind=entity.kind,
        contributions=contributions,
        operations=operations,
        overrides=list(entity.schema_overrides),
        warnings=warnings,
    )


# --- Locator resolution ---


def resolve_operation(
    entity: str,
    verb: Verb,
    locator: OperationLocator,
    document: DocumentModel,
) -> Operation:
    """Find the one operation *locator* refers to.

    An exact ``(path, method)`` match wins.  Otherwise a path that only
    differs in template parameter names (``/pets/{id}`` for
    ``/pets/{petId}``) is accepted when it is the only such path.

    Raises:
        NotFoundError: Nothing matches.
        AmbiguousReferenceError: More than one operation matches.
    """
    if locator.operation_id is not None:
        matches = document.find_operation_id(locator.operation_id)
        if not matches:
            raise NotFoundError(
                entity, f"{verb.value} operation {locator.describe()} not found in the document"
            )
        if len(matches) > 1:
            raise AmbiguousReferenceError(
                entity,
                f"{verb.value} operation {locator.describe()} matches {len(matches)} operations",
                candidates=[op.describe() for op in matches],
            )
        return matches[0]

    assert locator.path is not None and locator.method is not None
    operation = document.operation(locator.path, locator.method)
    if operation is not None:
        return operation

    equivalent = [
        op
        for path in document.equivalent_paths(locator.path)
        if path != locator.path
        for op in [document.operation(path, locator.method)]
        if op is not None
    ]
    if len(equivalent) == 1:
        logger.debug(
            "%s: %s resolved to %s by template equivalence",
            entity,
            locator.describe(),
            equivalent[0].describe(),
        )
        return equivalent[0]
    if len(equivalent) > 1:
        raise AmbiguousReferenceError(
            entity,
            f"{verb.value} operation {locator.describe()} matches several templated paths",
            candidates=[op.describe() for op in equivalent],
        )

    message = f"{verb.value} operation {locator.describe()} not found in the document"
    if locator.path in document.paths():
        message += f" (the path exists but has no {locator.method.value.upper()} operation)"
    raise NotFoundError(entity, message)


# --- Synthetic schemas ---


def _wrap_collection(name: str, node: SchemaNode, document: DocumentModel) -> SchemaNode:
    """Expose an array response as a single ``list_nested`` attribute named after the data source."""
    logger.debug("%s: read response is an array; exposing it as attribute '%s'", name, name)
    return document.synthetic_object({name: node.raw})


def _parameter_schema(
    operation: Operation,
    document: DocumentModel,
    inputs: bool,
) -> Optional[SchemaNode]:
    """An object schema with one property per path/query parameter of *operation*.

    Args:
        inputs: Data source mode.  Path parameters and required query
            parameters are required.  Otherwise (resources) nothing is
            required, since identifiers are only known after creation.
    """
    properties: dict[str, dict[str, Any]] = {}
    required: list[str] = []
    for param in operation.parameters_in("path", "query"):
        param_name = str(param.get("name") or "")
        if not param_name or param_name in properties:
            continue
        properties[param_name] = _parameter_property(param)
        if inputs and (param.get("in") == "path" or param.get("required")):
            required.append(param_name)
    if not properties:
        return None
    return document.synthetic_object(properties, required)


def _parameter_property(param: dict[str, Any]) -> dict[str, Any]:
    schema = param.get("schema")
    if not isinstance(schema, dict):
        content = param.get("content") or {}
        media = next((m for m in content.values() if isinstance(m, dict) and isinstance(m.get("schema"), dict)), None)
        schema = media["schema"] if media is not None else {"type": "string"}
    description = param.get("description")
    if description and not schema.get("description"):
        schema = dict(schema, description=description)
    if param.get("deprecated") and not schema.get("deprecated"):
        schema = dict(schema, deprecated=True)
    return schema


# --- Provider ---


def explore_provider(provider: ProviderConfig, document: DocumentModel) -> EntitySchemaSet:
    """Assemble the provider schema.

    The pieces (``schema_ref``, security schemes, header parameters) are
    combined with ``allOf`` and contributed under the ``parameters`` verb, so
    every provider attribute is practitioner-supplied.

    Raises:
        NotFoundError: If the pointer, a security scheme or a header
            parameter does not exist.
        ConfigResolutionError: If a security scheme type has no attribute
            mapping (``oauth2``, ``openIdConnect``, ``mutualTLS``).
    """
    entity = provider.name
    ref_node: Optional[SchemaNode] = None
    if provider.schema_ref is not None:
        ref_node = document.schema_at(provider.schema_ref)
        if ref_node is None:
            raise NotFoundError(entity, f"schema_ref {provider.schema_ref} not found in the document")

    synthetic: dict[str, dict[str, Any]] = {}
    for scheme_name in provider.security_schemes:
        scheme = document.security_scheme(scheme_name)
        if scheme is None:
            raise NotFoundError(entity, f"security scheme '{scheme_name}' not found in components.securitySchemes")
        synthetic.update(_security_attributes(entity, scheme_name, scheme))

    for header in provider.header_parameters:
        params = document.header_parameters(header)
        if not params:
            raise NotFoundError(entity, f"header parameter '{header}' not found in the document")
        param = params[0]
        property_name = terraform_identifier(str(param.get("name") or header))
        schema: dict[str, Any] = {"type": "string"}
        if param.get("description"):
            schema["description"] = str(param["description"])
        synthetic.setdefault(property_name, schema)

    synthetic_node = document.synthetic_object(synthetic) if synthetic else None
    contributions: dict[Verb, SchemaNode] = {}
    if ref_node is not None and synthetic_node is not None:
        contributions[Verb.PARAMETERS] = document.arena.synthetic({"allOf": [ref_node.raw, synthetic_node.raw]})
    elif ref_node is not None or synthetic_node is not None:
        contributions[Verb.PARAMETERS] = ref_node or synthetic_node

    return EntitySchemaSet(
        entity_name=entity,
        kind=EntityKind.PROVIDER,
        contributions=contributions,
        overrides=list(provider.schema_overrides),
    )


def _security_attributes(entity: str, scheme_name: str, scheme: dict[str, Any]) -> dict[str, dict[str, Any]]:
    scheme_type = scheme.get("type")
    if scheme_type == "apiKey":
        key_name = str(scheme.get("name") or scheme_name)
        location = scheme.get("in", "header")
        return {
            terraform_identifier(key_name): _credential(
                scheme, f"API key sent in the '{key_name}' {location}"
            )
        }
    if scheme_type == "http":
        http_scheme = str(scheme.get("scheme") or "").lower()
        if http_scheme == "bearer":
            return {"token": _credential(scheme, "Bearer token")}
        if http_scheme == "basic":
            return {
                "username": _credential(scheme, "Username for HTTP basic authentication"),
                "password": _credential(scheme, "Password for HTTP basic authentication"),
            }
        raise ConfigResolutionError(
            entity, f"security scheme '{scheme_name}' uses unsupported HTTP scheme '{http_scheme}'"
        )
    raise ConfigResolutionError(
        entity, f"security scheme '{scheme_name}' of type '{scheme_type}' cannot be mapped to provider attributes"
    )


def _credential(scheme: dict[str, Any], fallback: str) -> dict[str, Any]:
    return {
        "type": "string",
        "format": "password",
        "description": str(scheme.get("description") or fallback),
    }
