"""Generate command -- turn an OpenAPI document into Framework IR.

Loads the generator configuration and the OpenAPI document, runs
:func:`~tfopenapigen.assembly.generate_ir`, prints every warning (and, in
collect mode, every entity error) to stderr, and writes the IR to stdout or
to ``--output``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from tfopenapigen.exceptions import EntityError, InvalidUsageError, TfOpenAPIGenError
from tfopenapigen.exit_codes import EXIT_ENTITY_ERROR
from tfopenapigen.output import debug, diagnostic, error, get_output, success, suggest


def generate_command(
    spec: str = typer.Argument(
        ..., help="OpenAPI 3.x document: file path, http(s) URL, or '-' for stdin."
    ),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Generator configuration (default: $TFOPENAPIGEN_CONFIG or ./tfopenapigen_config.yml).",
    ),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Write the IR to this file instead of stdout."
    ),
    collect_errors: bool = typer.Option(
        False,
        "--collect-errors",
        help="Report every failing entity and still write the IR for the others.",
    ),
) -> None:
    """Generate the Framework IR for the configured resources, data sources and provider.

    Example::

        tfopenapigen generate openapi.yaml --config tfopenapigen_config.yml -o ir.json
        tfopenapigen generate --collect-errors https://example.com/openapi.json
    """
    from tfopenapigen.assembly import generate_ir
    from tfopenapigen.config import load_config, resolve_config_path
    from tfopenapigen.parser import DocumentModel, load_spec

    try:
        if output and Path(output).is_dir():
            raise InvalidUsageError(f"--output must be a file path, not a directory: {output}")
        config_path = resolve_config_path(config)
        debug(f"Using configuration {config_path}")
        generator_config = load_config(config_path)
        document = DocumentModel.from_dict(load_spec(spec))
        debug(f"Loaded OpenAPI {document.openapi_version} document '{document.title}'")
        result = generate_ir(document, generator_config, fail_fast=False if collect_errors else None)
    except EntityError as exc:
        diagnostic(f"[error] {exc}", fatal=True)
        suggest("Use --collect-errors to generate the remaining entities anyway.")
        raise typer.Exit(code=exc.exit_code) from None
    except TfOpenAPIGenError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    for warning in result.warnings:
        diagnostic(warning.render())
    for entity_error in result.errors:
        diagnostic(f"[error] {entity_error}", fatal=True)

    text = result.specification.to_json()
    specification = result.specification
    summary = (
        f"{len(specification.resources)} resources, "
        f"{len(specification.data_sources)} data sources"
    )
    if output:
        get_output().write_file(output, text)
        success(f"Wrote IR for {summary} to {output}")
    else:
        get_output().print_data(text)

    if result.errors:
        error(f"{len(result.errors)} entities failed; their IR was not generated")
        raise typer.Exit(code=EXIT_ENTITY_ERROR)
