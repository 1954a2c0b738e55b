"""Tests for tfopenapigen.schema.composition -- flattening one schema node."""

from __future__ import annotations

from typing import Any

import pytest

from tfopenapigen.models import OneOfPolicy
from tfopenapigen.schema.attribute import AttributeType
from tfopenapigen.schema.composition import (
    ListOf,
    MapOf,
    ObjectShape,
    Primitive,
    Unresolved,
    describe,
    flatten,
    primitive_type,
)


@pytest.fixture
def node_for(make_document):
    """Return a SchemaNode for an inline schema, with ``$ref`` resolved against *schemas*."""

    def _node(schema: dict[str, Any], **schemas: Any):
        document = make_document(schemas={**schemas, "_target": schema})
        return document.schema_at("#/components/schemas/_target")

    return _node


_CAT = {"type": "object", "required": ["name", "lives"], "properties": {"name": {"type": "string"}, "lives": {"type": "integer"}}}
_DOG = {"type": "object", "required": ["name"], "properties": {"name": {"type": "string"}, "breed": {"type": "string"}}}


class TestPrimitiveType:
    @pytest.mark.parametrize(
        ("openapi_type", "fmt", "expected"),
        [
            ("boolean", None, AttributeType.BOOL),
            ("integer", None, AttributeType.INT64),
            ("integer", "int32", AttributeType.INT32),
            ("integer", "int64", AttributeType.INT64),
            ("number", None, AttributeType.FLOAT64),
            ("number", "float", AttributeType.FLOAT32),
            ("number", "double", AttributeType.FLOAT64),
            ("string", "date-time", AttributeType.STRING),
            (None, None, AttributeType.STRING),
        ],
    )
    def test_mapping(self, openapi_type, fmt, expected) -> None:
        assert primitive_type(openapi_type, fmt) is expected


class TestPlainSchemas:
    def test_primitive(self, node_for) -> None:
        candidate = flatten(node_for({"type": "integer", "format": "int32"}))
        assert isinstance(candidate, Primitive)
        assert candidate.type is AttributeType.INT32

    def test_array(self, node_for) -> None:
        candidate = flatten(node_for({"type": "array", "uniqueItems": True, "items": {"type": "string"}}))
        assert isinstance(candidate, ListOf)
        assert candidate.unique
        assert candidate.item.type == "string"

    def test_object(self, node_for) -> None:
        node = node_for(_CAT)
        candidate = flatten(node)
        assert isinstance(candidate, ObjectShape)
        assert list(candidate.fields) == ["name", "lives"]
        assert candidate.required == frozenset({"name", "lives"})
        assert candidate.members == (node,)

    def test_map(self, node_for) -> None:
        candidate = flatten(node_for({"type": "object", "additionalProperties": {"type": "integer"}}))
        assert isinstance(candidate, MapOf)
        assert candidate.value.type == "integer"

    def test_free_form_object_is_string_map(self, node_for) -> None:
        candidate = flatten(node_for({"type": "object"}))
        assert isinstance(candidate, MapOf)
        assert candidate.value is None

    def test_untyped_enum_is_inferred(self, node_for) -> None:
        assert flatten(node_for({"enum": [1, 2, 3]})).type is AttributeType.INT64
        assert flatten(node_for({"enum": [True, False]})).type is AttributeType.BOOL
        assert flatten(node_for({"enum": [1, 2.5]})).type is AttributeType.FLOAT64
        assert flatten(node_for({"description": "free"})).type is AttributeType.STRING


class TestAllOf:
    def test_objects_merge_with_union_of_required(self, node_for) -> None:
        candidate = flatten(
            node_for(
                {"allOf": [{"$ref": "#/components/schemas/Cat"}, {"$ref": "#/components/schemas/Dog"}]},
                Cat=_CAT,
                Dog=_DOG,
            )
        )
        assert isinstance(candidate, ObjectShape)
        assert list(candidate.fields) == ["name", "lives", "breed"]
        assert candidate.required == frozenset({"name", "lives"})
        assert [m.ref_name for m in candidate.members] == ["Cat", "Dog"]

    def test_first_definition_of_a_field_wins(self, node_for) -> None:
        candidate = flatten(
            node_for(
                {
                    "allOf": [
                        {"type": "object", "properties": {"id": {"type": "string", "description": "first"}}},
                        {"type": "object", "properties": {"id": {"type": "integer"}}},
                    ]
                }
            )
        )
        assert candidate.fields["id"].description == "first"
        assert candidate.shadowed == ("id",)

    def test_only_repeated_fields_are_shadowed(self, node_for) -> None:
        candidate = flatten(
            node_for(
                {"allOf": [{"$ref": "#/components/schemas/Cat"}, {"$ref": "#/components/schemas/Dog"}]},
                Cat=_CAT,
                Dog=_DOG,
            )
        )
        # Both members declare ``name``.
        assert candidate.shadowed == ("name",)
        single = flatten(node_for({"allOf": [{"$ref": "#/components/schemas/Dog"}]}, Dog=_DOG))
        assert single.shadowed == ()

    def test_shadowed_fields_survive_nesting(self, node_for) -> None:
        candidate = flatten(
            node_for(
                {
                    "allOf": [
                        {"allOf": [{"$ref": "#/components/schemas/Cat"}, {"$ref": "#/components/schemas/Dog"}]},
                        {"type": "object", "properties": {"owner": {"type": "string"}}},
                    ]
                },
                Cat=_CAT,
                Dog=_DOG,
            )
        )
        assert list(candidate.fields) == ["name", "lives", "breed", "owner"]
        assert candidate.shadowed == ("name",)

    def test_single_member_keeps_composing_node(self, node_for) -> None:
        node = node_for({"allOf": [{"$ref": "#/components/schemas/Cat"}], "description": "A cat"}, Cat=_CAT)
        candidate = flatten(node)
        assert isinstance(candidate, ObjectShape)
        assert candidate.node is node

    def test_same_primitive_members_collapse(self, node_for) -> None:
        candidate = flatten(node_for({"allOf": [{"type": "string"}, {"type": "string", "maxLength": 3}]}))
        assert isinstance(candidate, Primitive)
        assert candidate.type is AttributeType.STRING

    def test_untyped_refinement_keeps_structure(self, node_for) -> None:
        candidate = flatten(
            node_for({"allOf": [{"type": "array", "items": {"type": "string"}}, {"description": "tags"}]})
        )
        assert isinstance(candidate, ListOf)

    def test_annotation_member_keeps_object(self, node_for) -> None:
        node = node_for(
            {"allOf": [{"$ref": "#/components/schemas/Cat"}, {"description": "The household cat"}]},
            Cat=_CAT,
        )
        candidate = flatten(node)
        assert isinstance(candidate, ObjectShape)
        assert candidate.node is node
        assert list(candidate.fields) == ["name", "lives"]
        assert describe(node) == "The household cat"

    def test_annotation_member_keeps_primitive(self, node_for) -> None:
        candidate = flatten(node_for({"allOf": [{"type": "integer", "format": "int32"}, {"title": "Count"}]}))
        assert isinstance(candidate, Primitive)
        assert candidate.type is AttributeType.INT32

    def test_only_annotation_members(self, node_for) -> None:
        candidate = flatten(node_for({"allOf": [{"description": "anything"}]}))
        assert isinstance(candidate, Primitive)
        assert candidate.type is AttributeType.STRING

    def test_incompatible_members(self, node_for) -> None:
        candidate = flatten(node_for({"allOf": [{"type": "string"}, {"$ref": "#/components/schemas/Cat"}]}, Cat=_CAT))
        assert isinstance(candidate, Unresolved)
        assert "incompatible members (string, Cat)" in candidate.reason

    def test_own_properties_join_members(self, node_for) -> None:
        candidate = flatten(
            node_for(
                {"allOf": [{"$ref": "#/components/schemas/Dog"}], "properties": {"owner": {"type": "string"}}},
                Dog=_DOG,
            )
        )
        assert list(candidate.fields) == ["name", "breed", "owner"]

    def test_self_composition_is_unresolved(self, node_for) -> None:
        candidate = flatten(node_for({"allOf": [{"$ref": "#/components/schemas/_target"}]}))
        assert isinstance(candidate, Unresolved)


class TestOneOf:
    def test_null_branch_is_ignored(self, node_for) -> None:
        candidate = flatten(node_for({"oneOf": [{"type": "null"}, {"type": "integer"}]}))
        assert isinstance(candidate, Primitive)
        assert candidate.type is AttributeType.INT64

    def test_same_primitive_branches_collapse(self, node_for) -> None:
        candidate = flatten(node_for({"anyOf": [{"type": "string", "format": "uuid"}, {"type": "string"}]}))
        assert isinstance(candidate, Primitive)
        assert candidate.type is AttributeType.STRING

    def test_only_null_is_unresolved(self, node_for) -> None:
        candidate = flatten(node_for({"oneOf": [{"type": "null"}]}))
        assert isinstance(candidate, Unresolved)
        assert candidate.reason == "oneOf has no non-null members"

    def test_single_policy_refuses_to_choose(self, node_for) -> None:
        node = node_for(
            {"oneOf": [{"$ref": "#/components/schemas/Cat"}, {"$ref": "#/components/schemas/Dog"}]},
            Cat=_CAT,
            Dog=_DOG,
        )
        candidate = flatten(node, OneOfPolicy.SINGLE)
        assert isinstance(candidate, Unresolved)
        assert "2 resolvable members (Cat, Dog)" in candidate.reason
        assert "oneof_policy" in candidate.reason

    def test_first_policy(self, node_for) -> None:
        node = node_for(
            {"oneOf": [{"$ref": "#/components/schemas/Cat"}, {"$ref": "#/components/schemas/Dog"}]},
            Cat=_CAT,
            Dog=_DOG,
        )
        candidate = flatten(node, OneOfPolicy.FIRST)
        assert isinstance(candidate, ObjectShape)
        assert list(candidate.fields) == ["name", "lives"]
        assert candidate.node is node

    def test_merge_policy_intersects_required(self, node_for) -> None:
        node = node_for(
            {"anyOf": [{"$ref": "#/components/schemas/Cat"}, {"$ref": "#/components/schemas/Dog"}]},
            Cat=_CAT,
            Dog=_DOG,
        )
        candidate = flatten(node, OneOfPolicy.MERGE)
        assert isinstance(candidate, ObjectShape)
        assert list(candidate.fields) == ["name", "lives", "breed"]
        assert candidate.required == frozenset({"name"})

    def test_merge_policy_needs_objects(self, node_for) -> None:
        node = node_for({"oneOf": [{"type": "string"}, {"type": "array", "items": {"type": "string"}}]})
        candidate = flatten(node, OneOfPolicy.MERGE)
        assert isinstance(candidate, Unresolved)
        assert "cannot be merged (string, array)" in candidate.reason


class TestDescribe:
    def test_own_description_wins(self, node_for) -> None:
        node = node_for({"allOf": [{"$ref": "#/components/schemas/Cat"}, {"description": "member"}], "description": "own"}, Cat=_CAT)
        assert describe(node) == "own"

    def test_structural_member_description_is_not_borrowed(self, node_for) -> None:
        cat = {**_CAT, "description": "A cat"}
        assert describe(node_for({"allOf": [{"$ref": "#/components/schemas/Cat"}]}, Cat=cat)) == ""

    def test_plain_schema(self, node_for) -> None:
        assert describe(node_for({"type": "string", "title": "Name"})) == "Name"
