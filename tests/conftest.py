"""Shared test fixtures for tfopenapigen.

Provides reusable fixtures for loading the petstore fixture document and
configuration, building small in-memory OpenAPI documents, managing output
state, and running CLI commands.  These fixtures are automatically
discovered by pytest and available to all test modules without explicit
imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import pytest

from tfopenapigen.config import load_config
from tfopenapigen.diagnostics import Diagnostics
from tfopenapigen.explorer import EntitySchemaSet
from tfopenapigen.models import EntityKind, GeneratorConfig, OneOfPolicy, Verb
from tfopenapigen.output import OutputFormat, OutputManager, reset_output, set_output
from tfopenapigen.parser import DocumentModel
from tfopenapigen.schema import merge


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Petstore fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_raw() -> dict[str, Any]:
    """Load the raw petstore document."""
    with open(FIXTURES_DIR / "petstore.json") as f:
        return json.load(f)


@pytest.fixture
def petstore_document(petstore_raw: dict[str, Any]) -> DocumentModel:
    """The resolved petstore document model."""
    return DocumentModel.from_dict(petstore_raw)


@pytest.fixture
def petstore_config() -> GeneratorConfig:
    """The generator configuration shipped next to the petstore document."""
    return load_config(FIXTURES_DIR / "tfopenapigen_config.yml")


# ---------------------------------------------------------------------------
# In-memory documents
# ---------------------------------------------------------------------------


def openapi_document(
    paths: Optional[dict[str, Any]] = None,
    schemas: Optional[dict[str, Any]] = None,
    **components: Any,
) -> dict[str, Any]:
    """A minimal OpenAPI 3.0 document around *paths* and component *schemas*."""
    raw: dict[str, Any] = {
        "openapi": "3.0.3",
        "info": {"title": "Test API", "version": "1.0.0"},
        "paths": paths or {},
    }
    all_components = dict(components)
    if schemas:
        all_components["schemas"] = schemas
    if all_components:
        raw["components"] = all_components
    return raw


@pytest.fixture
def make_document():
    """Factory building a :class:`DocumentModel` from paths and components."""

    def _make(
        paths: Optional[dict[str, Any]] = None,
        schemas: Optional[dict[str, Any]] = None,
        **components: Any,
    ) -> DocumentModel:
        return DocumentModel.from_dict(openapi_document(paths, schemas, **components))

    return _make


@pytest.fixture
def merge_schemas():
    """Factory merging one schema per verb and returning ``(root, diagnostics)``.

    Each contribution is stored as a component schema so that ``$ref``
    pointers inside it resolve against *schemas*.
    """

    def _merge(
        contributions: dict[Verb, dict[str, Any]],
        schemas: Optional[dict[str, Any]] = None,
        policy: OneOfPolicy = OneOfPolicy.SINGLE,
        entity: str = "thing",
    ):
        all_schemas = dict(schemas or {})
        for verb, schema in contributions.items():
            all_schemas[f"_{verb.value}"] = schema
        document = DocumentModel.from_dict(openapi_document(schemas=all_schemas))
        schema_set = EntitySchemaSet(
            entity_name=entity,
            kind=EntityKind.RESOURCE,
            contributions={
                verb: document.schema_at(f"#/components/schemas/_{verb.value}")
                for verb in contributions
            },
        )
        diagnostics = Diagnostics()
        return merge(schema_set, policy, diagnostics), diagnostics

    return _merge


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test from an empty temporary directory.

    Clears ``TFOPENAPIGEN_CONFIG`` so the default ``./tfopenapigen_config.yml``
    lookup resolves inside *tmp_path*.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.delenv("TFOPENAPIGEN_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
