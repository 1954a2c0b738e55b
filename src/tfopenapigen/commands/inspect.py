"""Inspect commands -- examine a document before writing the configuration.

* ``tfopenapigen inspect paths SPEC`` lists every operation with the
  request and success-response schemas the explorer would pick.
* ``tfopenapigen inspect entities SPEC`` resolves the configured entities
  and shows which operation backs each verb.
"""

from __future__ import annotations

from typing import Optional

import typer

from tfopenapigen.exceptions import EntityError, TfOpenAPIGenError
from tfopenapigen.output import error, get_output, info

inspect_app = typer.Typer(no_args_is_help=True)


def _load_document(spec: str):  # noqa: ANN202
    """Load and resolve *spec*, exiting with the error's code on failure."""
    from tfopenapigen.parser import DocumentModel, load_spec

    try:
        return DocumentModel.from_dict(load_spec(spec))
    except TfOpenAPIGenError as exc:
        error(f"Failed to load spec: {exc}")
        raise typer.Exit(code=exc.exit_code) from None


def _schema_label(node) -> str:  # noqa: ANN001
    if node is None:
        return "-"
    return node.ref_name or node.kind.value


@inspect_app.command("paths")
def inspect_paths(
    spec: str = typer.Argument(..., help="OpenAPI 3.x document: file path, URL, or '-'."),
) -> None:
    """List all operations with their request and response schemas.

    Example::

        tfopenapigen inspect paths openapi.yaml
    """
    document = _load_document(spec)
    operations = document.operations()
    if not operations:
        info("No operations defined in this document.")
        return

    headers = ["Method", "Path", "Operation ID", "Request", "Response"]
    rows: list[list[str]] = []
    for op in operations:
        response, status = op.response_schema()
        response_label = _schema_label(response)
        if status is not None:
            response_label = f"{response_label} ({status})"
        rows.append([
            op.method.value.upper(),
            op.path,
            op.operation_id or "-",
            _schema_label(op.request_schema()),
            response_label,
        ])

    title = document.title or "Document"
    get_output().print_table(headers, rows, title=f"{title} -- Operations ({len(rows)})")


@inspect_app.command("entities")
def inspect_entities(
    spec: str = typer.Argument(..., help="OpenAPI 3.x document: file path, URL, or '-'."),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Generator configuration file."
    ),
) -> None:
    """Show how each configured entity resolves against the document.

    Entities whose locators do not resolve are listed with the error
    instead of aborting the listing.

    Example::

        tfopenapigen inspect entities openapi.yaml --config tfopenapigen_config.yml
    """
    from tfopenapigen.assembly import explore
    from tfopenapigen.config import load_config, resolve_config_path
    from tfopenapigen.models import EntityKind

    try:
        generator_config = load_config(resolve_config_path(config))
    except TfOpenAPIGenError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    document = _load_document(spec)

    entities = [
        *((name, EntityKind.RESOURCE, entity) for name, entity in generator_config.resources.items()),
        *((name, EntityKind.DATA_SOURCE, entity) for name, entity in generator_config.data_sources.items()),
        (generator_config.provider.name, EntityKind.PROVIDER, generator_config.provider),
    ]

    headers = ["Kind", "Name", "Operations", "Contributing"]
    rows: list[list[str]] = []
    for name, kind, entity in entities:
        try:
            schema_set = explore(name, kind, entity, document)
        except EntityError as exc:
            rows.append([kind.value, name, f"error: {exc.detail}", "-"])
            continue
        operations = ", ".join(
            f"{verb.value}={op.describe()}" for verb, op in schema_set.operations.items()
        )
        contributing = ", ".join(verb.value for verb in schema_set.verbs)
        rows.append([kind.value, name, operations or "-", contributing or "-"])

    get_output().print_table(headers, rows, title=f"Entities ({len(rows)})")
