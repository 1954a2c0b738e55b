"""Tests for tfopenapigen.parser.resolver."""

from __future__ import annotations

import copy

import pytest

from tfopenapigen.exceptions import SpecParseError
from tfopenapigen.parser.resolver import RefResolver, pointer_from_ref, resolve_refs


def _spec(**schemas):
    return {
        "paths": {
            "/pets": {
                "get": {
                    "responses": {
                        "200": {
                            "content": {
                                "application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}
                            }
                        }
                    }
                }
            }
        },
        "components": {"schemas": schemas},
    }


class TestResolveRefs:
    """Test the top-level resolve_refs function."""

    def test_resolves_simple_ref(self) -> None:
        spec = _spec(Pet={"type": "object", "properties": {"name": {"type": "string"}}})
        resolved = resolve_refs(spec)
        schema = resolved["paths"]["/pets"]["get"]["responses"]["200"]["content"]["application/json"]["schema"]
        assert schema["properties"]["name"] == {"type": "string"}
        assert "$ref" not in schema

    def test_same_pointer_resolves_to_same_object(self) -> None:
        spec = _spec(Pet={"type": "object"})
        resolved = resolve_refs(spec)
        from_path = resolved["paths"]["/pets"]["get"]["responses"]["200"]["content"]["application/json"]["schema"]
        assert from_path is resolved["components"]["schemas"]["Pet"]

    def test_self_reference_becomes_cycle(self) -> None:
        spec = _spec(
            Pet={"type": "object"},
            Node={
                "type": "object",
                "properties": {"children": {"type": "array", "items": {"$ref": "#/components/schemas/Node"}}},
            },
        )
        resolved = resolve_refs(spec)
        node = resolved["components"]["schemas"]["Node"]
        assert node["properties"]["children"]["items"] is node

    def test_input_is_not_mutated(self) -> None:
        spec = _spec(Pet={"type": "object", "properties": {"owner": {"$ref": "#/components/schemas/Owner"}}}, Owner={"type": "object"})
        before = copy.deepcopy(spec)
        resolve_refs(spec)
        assert spec == before

    def test_ref_with_siblings_is_shallow_copy(self) -> None:
        spec = _spec(
            Pet={
                "type": "object",
                "properties": {"status": {"$ref": "#/components/schemas/Status", "description": "Current status"}},
            },
            Status={"type": "string", "description": "A status", "enum": ["a", "b"]},
        )
        resolved = resolve_refs(spec)
        status = resolved["components"]["schemas"]["Pet"]["properties"]["status"]
        assert status["description"] == "Current status"
        assert status["enum"] == ["a", "b"]
        assert resolved["components"]["schemas"]["Status"]["description"] == "A status"

    def test_external_ref_raises(self) -> None:
        spec = _spec(Pet={"$ref": "other.yaml#/Pet"})
        with pytest.raises(SpecParseError, match="External \\$ref not supported"):
            resolve_refs(spec)

    def test_dangling_pointer_raises(self) -> None:
        spec = _spec(Pet={"$ref": "#/components/schemas/Missing"})
        with pytest.raises(SpecParseError, match="key 'Missing' not found"):
            resolve_refs(spec)

    def test_alias_loop_raises(self) -> None:
        spec = _spec(
            Pet={"$ref": "#/components/schemas/A"},
            A={"$ref": "#/components/schemas/B"},
            B={"$ref": "#/components/schemas/A"},
        )
        with pytest.raises(SpecParseError, match="Circular \\$ref alias"):
            resolve_refs(spec)

    def test_escaped_pointer_segments(self) -> None:
        spec = {
            "paths": {"/a/b": {"get": {"x": 1}}},
            "components": {"schemas": {"Alias": {"$ref": "#/paths/~1a~1b/get"}}},
        }
        assert resolve_refs(spec)["components"]["schemas"]["Alias"] == {"x": 1}


class TestPointers:
    def test_pointer_from_ref(self) -> None:
        assert pointer_from_ref("#/components/schemas/Pet") == "/components/schemas/Pet"
        assert pointer_from_ref("#") == ""

    def test_resolver_records_first_pointer(self) -> None:
        spec = _spec(Pet={"type": "object"})
        resolver = RefResolver(spec)
        resolved = resolver.resolve()
        pet = resolved["components"]["schemas"]["Pet"]
        assert resolver.pointers[id(pet)] == "/components/schemas/Pet"
