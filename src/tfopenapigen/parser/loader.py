"""Read an OpenAPI document from a file, a URL or stdin.

All I/O for the raw document lives here, before the generator core runs:

* :func:`load_spec` -- read and parse JSON or YAML from any supported source.
* :func:`validate_openapi_version` -- accept OpenAPI 3.x, reject Swagger 2.

The returned plain dict is handed to
:meth:`~tfopenapigen.parser.document.DocumentModel.from_dict`, which resolves
``$ref`` pointers and builds the read-only document model.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import httpx
import yaml

from tfopenapigen.exceptions import SpecParseError

_YAML_SUFFIXES = (".yaml", ".yml")


def load_spec(source: str | Path) -> dict[str, Any]:
    """Load an OpenAPI document from a URL, a file path, or stdin (``"-"``).

    Args:
        source: An ``http(s)://`` URL, a local path, or ``"-"``.

    Returns:
        The parsed document.

    Raises:
        SpecParseError: If the source cannot be read or parsed.
    """
    source_str = str(source)
    if source_str == "-":
        return _parse_content(sys.stdin.read(), hint="", origin="stdin")
    if source_str.startswith(("http://", "https://")):
        return _load_from_url(source_str)
    return _load_from_file(Path(source_str))


def _load_from_url(url: str) -> dict[str, Any]:
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SpecParseError(
            f"HTTP {exc.response.status_code} fetching OpenAPI document from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SpecParseError(f"Failed to fetch OpenAPI document from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type or url.endswith(_YAML_SUFFIXES):
        hint = "yaml"
    return _parse_content(response.text, hint=hint, origin=url)


def _load_from_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise SpecParseError(f"OpenAPI document not found: {path}")
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecParseError(f"Failed to read OpenAPI document {path}: {exc}") from exc

    suffix = path.suffix.lower()
    hint = "json" if suffix == ".json" else "yaml" if suffix in _YAML_SUFFIXES else ""
    return _parse_content(content, hint=hint, origin=str(path))


def _parse_content(content: str, hint: str, origin: str) -> dict[str, Any]:
    """Parse *content* as JSON or YAML.

    JSON is tried first unless the hint says YAML; every JSON document is
    also YAML, so the YAML fallback only matters for real YAML input.
    """
    if not content.strip():
        raise SpecParseError(f"OpenAPI document is empty: {origin}")

    json_error: Exception | None = None
    if hint != "yaml":
        try:
            return _expect_mapping(json.loads(content), origin)
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise SpecParseError(f"Invalid JSON in {origin}: {exc}") from exc
            json_error = exc

    try:
        return _expect_mapping(yaml.safe_load(content), origin)
    except yaml.YAMLError as exc:
        msg = f"Failed to parse {origin} as JSON or YAML"
        if json_error is not None:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise SpecParseError(msg) from exc


def _expect_mapping(value: Any, origin: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        kind = type(value).__name__ if value is not None else "empty document"
        raise SpecParseError(f"OpenAPI document {origin} must be an object (got {kind})")
    return value


def validate_openapi_version(spec: dict[str, Any]) -> str:
    """Return the document's ``openapi`` version, rejecting anything but 3.x.

    Raises:
        SpecParseError: For Swagger 2.x, a missing field or a non-3.x version.
    """
    if "swagger" in spec:
        raise SpecParseError(
            f"Swagger {spec['swagger']} is not supported; convert the document to OpenAPI 3.x first"
        )

    version = spec.get("openapi")
    if version is None:
        raise SpecParseError("Missing 'openapi' field. Is this an OpenAPI 3.x document?")

    version_str = str(version)
    if not version_str.startswith("3."):
        raise SpecParseError(
            f"Unsupported OpenAPI version: {version_str}. Only OpenAPI 3.x is supported."
        )
    return version_str
