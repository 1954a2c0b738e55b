"""tfopenapigen -- Generate Terraform provider Framework IR from OpenAPI 3.x documents.

A YAML configuration names which OpenAPI operations back each Terraform
resource and data source, and where the provider schema comes from.  The
generator merges the schemas of every contributing operation into one
canonical attribute tree per entity, applies the configured overrides, and
emits the Framework IR JSON consumed by the provider code generator.

Typical workflow::

    tfopenapigen inspect paths openapi.yaml          # find the operations
    tfopenapigen generate openapi.yaml -o ir.json    # reads tfopenapigen_config.yml

Modules:
    app: Typer application and CLI entry point.
    models: Configuration models and shared enumerations.
    config: Configuration file discovery and loading.
    explorer: Operation lookup and schema selection per entity.
    schema: Composition flattening and cross-operation schema merging.
    mapper: Overrides, validation and IR serialisation.
    assembly: The end-to-end pipeline and its error policy.
    ir: Frozen Framework IR models.
    exceptions: Exception hierarchy with exit-code mapping.
    diagnostics: Non-fatal generation warnings.
    output: stdout/stderr formatting with Rich support.
"""

__version__ = "0.1.0"
