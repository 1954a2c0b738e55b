"""Run Explorer -> Merger -> Mapper for every entity and assemble the Specification.

Each entity is processed in isolation, in configuration order: resources,
then data sources, then the provider.  Errors are entity-scoped
(:class:`~tfopenapigen.exceptions.EntityError`), and what happens to them
depends on the error policy:

* fail-fast (the default, ``options.fail_fast: true``) -- the first entity
  error propagates to the caller;
* collect -- the failing entity is left out of the Specification, the error
  is recorded on the :class:`GenerationResult`, and the remaining entities
  are still generated.

Warnings are always collected and never block output.

Example::

    document = DocumentModel.from_dict(load_spec("openapi.yaml"))
    config = load_config("tfopenapigen_config.yml")
    result = generate_ir(document, config, fail_fast=False)
    for error in result.errors:
        print(f"[error] {error}")
    print(result.specification.to_json())
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from tfopenapigen.diagnostics import Diagnostics, GenerationWarning
from tfopenapigen.exceptions import EntityError
from tfopenapigen.explorer import EntitySchemaSet, explore_entity, explore_provider
from tfopenapigen.ir import DataSourceIR, ProviderIR, ResourceIR, Specification
from tfopenapigen.mapper import apply
from tfopenapigen.models import (
    DataSourceConfig,
    EntityKind,
    GeneratorConfig,
    GeneratorOptions,
    ProviderConfig,
    ResourceConfig,
)
from tfopenapigen.parser.document import DocumentModel
from tfopenapigen.schema.merger import merge

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Outcome of :func:`generate_ir`.

    Attributes:
        specification: The assembled IR.  In collect mode it omits the
            entities listed in :attr:`errors`.
        errors: Entity errors collected in collect mode, in processing order.
        warnings: Every non-fatal warning, in the order it was raised.
    """

    specification: Specification
    errors: list[EntityError] = field(default_factory=list)
    warnings: list[GenerationWarning] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def generate_ir(
    document: DocumentModel,
    config: GeneratorConfig,
    fail_fast: Optional[bool] = None,
) -> GenerationResult:
    """Generate the Framework IR for every configured entity.

    Args:
        document: The resolved OpenAPI document.
        config: The generator configuration.
        fail_fast: Overrides ``config.options.fail_fast`` when not ``None``.

    Returns:
        A :class:`GenerationResult`.

    Raises:
        EntityError: In fail-fast mode, the first entity error encountered.
    """
    if fail_fast is None:
        fail_fast = config.options.fail_fast
    diagnostics = Diagnostics()
    errors: list[EntityError] = []

    def run(name: str, kind: EntityKind, entity: Union[ResourceConfig, DataSourceConfig, ProviderConfig]):  # noqa: ANN202
        try:
            return build_entity(name, kind, entity, document, config.options, diagnostics)
        except EntityError as exc:
            if fail_fast:
                raise
            logger.debug("Collected error for %s %s: %s", kind.value, name, exc)
            errors.append(exc)
            return None

    resources: list[ResourceIR] = []
    for name, resource in config.resources.items():
        built = run(name, EntityKind.RESOURCE, resource)
        if built is not None:
            resources.append(built)

    data_sources: list[DataSourceIR] = []
    for name, data_source in config.data_sources.items():
        built = run(name, EntityKind.DATA_SOURCE, data_source)
        if built is not None:
            data_sources.append(built)

    provider = run(config.provider.name, EntityKind.PROVIDER, config.provider)
    if provider is None:
        provider = ProviderIR(name=config.provider.name)

    specification = Specification(provider=provider, resources=resources, data_sources=data_sources)
    logger.debug(
        "Generated %d resources, %d data sources (%d errors, %d warnings)",
        len(resources),
        len(data_sources),
        len(errors),
        len(diagnostics),
    )
    return GenerationResult(specification=specification, errors=errors, warnings=diagnostics.warnings)


def explore(
    name: str,
    kind: EntityKind,
    entity: Union[ResourceConfig, DataSourceConfig, ProviderConfig],
    document: DocumentModel,
) -> EntitySchemaSet:
    """Explore one entity of any kind."""
    if kind is EntityKind.PROVIDER:
        assert isinstance(entity, ProviderConfig)
        return explore_provider(entity, document)
    assert isinstance(entity, (ResourceConfig, DataSourceConfig))
    return explore_entity(name, entity, document)


def build_entity(
    name: str,
    kind: EntityKind,
    entity: Union[ResourceConfig, DataSourceConfig, ProviderConfig],
    document: DocumentModel,
    options: GeneratorOptions,
    diagnostics: Diagnostics,
) -> Union[ResourceIR, DataSourceIR, ProviderIR]:
    """Run the full pipeline for a single entity.

    Raises:
        EntityError: Any entity-scoped failure from exploring, merging or mapping.
    """
    schema_set = explore(name, kind, entity, document)
    diagnostics.extend(schema_set.warnings)
    tree = merge(schema_set, options.oneof_policy, diagnostics)
    return apply(tree, schema_set.overrides, entity=name, kind=kind, diagnostics=diagnostics)
