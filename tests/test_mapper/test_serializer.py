"""Tests for tfopenapigen.mapper.serializer and tfopenapigen.mapper.entities."""

from __future__ import annotations

from typing import Any

import pytest

from tfopenapigen.diagnostics import Diagnostics
from tfopenapigen.ir import DataSourceIR, ProviderIR, ResourceIR
from tfopenapigen.mapper import apply
from tfopenapigen.mapper.serializer import serialize_attribute, serialize_attributes
from tfopenapigen.models import Computability, EntityKind, IgnoreRule
from tfopenapigen.schema.attribute import AttributeType, CanonicalAttribute


def _attr(kind: AttributeType, name: str = "field", **kwargs: Any) -> CanonicalAttribute:
    return CanonicalAttribute(name=name, inferred_type=kind, **kwargs)


def _string(name: str, **kwargs: Any) -> CanonicalAttribute:
    return _attr(AttributeType.STRING, name, **kwargs)


def _dump(node: CanonicalAttribute, provider: bool = False) -> dict[str, Any]:
    key = "optional_required" if provider else "computed_optional_required"
    return serialize_attribute(node, provider).to_dict(key)


class TestPrimitives:
    def test_required_string(self) -> None:
        node = _string("name", computability=Computability.REQUIRED, description="Pet name")
        assert _dump(node) == {
            "name": "name",
            "string": {"computed_optional_required": "required", "description": "Pet name"},
        }

    @pytest.mark.parametrize(
        ("computability", "expected"),
        [
            (Computability.OPTIONAL, "optional"),
            (Computability.COMPUTED, "computed"),
            (Computability.OPTIONAL_COMPUTED, "computed_optional"),
        ],
    )
    def test_computability(self, computability, expected) -> None:
        node = _attr(AttributeType.INT64, computability=computability)
        assert _dump(node)["int64"]["computed_optional_required"] == expected

    def test_sensitive_and_deprecated(self) -> None:
        node = _string("secret", sensitive=True, deprecated=True)
        body = _dump(node)["string"]
        assert body["sensitive"] is True
        assert body["deprecation_message"] == "This attribute is deprecated."

    def test_empty_description_is_omitted(self) -> None:
        assert _dump(_string("tag")) == {"name": "tag", "string": {"computed_optional_required": "optional"}}


class TestValidators:
    def test_string_enum(self) -> None:
        node = _string("status", enum=["available", "sold"])
        assert _dump(node)["string"]["validators"] == [
            {
                "custom": {
                    "imports": [{"path": "github.com/hashicorp/terraform-plugin-framework-validators/stringvalidator"}],
                    "schema_definition": 'stringvalidator.OneOf("available", "sold")',
                }
            }
        ]

    def test_int64_enum(self) -> None:
        node = _attr(AttributeType.INT64, enum=[1, 2, 3])
        validator = _dump(node)["int64"]["validators"][0]["custom"]
        assert validator["schema_definition"] == "int64validator.OneOf(1, 2, 3)"

    def test_unsupported_enum_is_skipped(self) -> None:
        node = _attr(AttributeType.BOOL, enum=[True])
        assert "validators" not in _dump(node)["bool"]


class TestDefaults:
    def test_computed_optional_default(self) -> None:
        node = _attr(AttributeType.BOOL, computability=Computability.OPTIONAL_COMPUTED, default=False)
        assert _dump(node)["bool"]["default"] == {"static": False}

    def test_float_accepts_integer_default(self) -> None:
        node = _attr(AttributeType.FLOAT64, computability=Computability.OPTIONAL_COMPUTED, default=1)
        assert _dump(node)["float64"]["default"] == {"static": 1}

    @pytest.mark.parametrize(
        ("kind", "default"),
        [
            (AttributeType.INT32, 10),
            (AttributeType.FLOAT32, 0.5),
            (AttributeType.FLOAT32, 2),
        ],
    )
    def test_narrow_numeric_defaults(self, kind, default) -> None:
        node = _attr(kind, computability=Computability.OPTIONAL_COMPUTED, default=default)
        assert _dump(node)[kind.value]["default"] == {"static": default}

    @pytest.mark.parametrize(
        ("kind", "computability", "default"),
        [
            (AttributeType.STRING, Computability.REQUIRED, "x"),
            (AttributeType.STRING, Computability.OPTIONAL_COMPUTED, 3),
            (AttributeType.INT64, Computability.OPTIONAL_COMPUTED, True),
            (AttributeType.INT32, Computability.OPTIONAL_COMPUTED, False),
            (AttributeType.FLOAT32, Computability.OPTIONAL_COMPUTED, "1.5"),
        ],
    )
    def test_no_default(self, kind, computability, default) -> None:
        node = _attr(kind, computability=computability, default=default)
        assert "default" not in _dump(node)[kind.value]

    def test_provider_never_gets_defaults(self) -> None:
        node = _string("region", computability=Computability.OPTIONAL_COMPUTED, default="eu")
        assert _dump(node, provider=True) == {"name": "region", "string": {"optional_required": "optional"}}


class TestCollections:
    def test_list_of_strings(self) -> None:
        node = _attr(AttributeType.LIST, "tags", element_type=_attr(AttributeType.STRING, ""))
        assert _dump(node) == {
            "name": "tags",
            "list": {"computed_optional_required": "optional", "element_type": {"string": {}}},
        }

    def test_set_of_int(self) -> None:
        node = _attr(AttributeType.SET, "ids", element_type=_attr(AttributeType.INT64, ""))
        assert _dump(node)["set"]["element_type"] == {"int64": {}}

    def test_list_of_list_of_objects(self) -> None:
        inner = _attr(
            AttributeType.LIST,
            "",
            element_type=_attr(AttributeType.SINGLE_NESTED, "", children={"id": _string("id")}),
        )
        node = _attr(AttributeType.LIST, "groups", computability=Computability.COMPUTED, element_type=inner)
        assert _dump(node)["list"]["element_type"] == {
            "list": {"element_type": {"object": {"attribute_types": [{"name": "id", "string": {}}]}}}
        }

    def test_map_of_objects_is_map_nested(self) -> None:
        node = _attr(
            AttributeType.MAP,
            "labels",
            element_type=_attr(AttributeType.SINGLE_NESTED, "", children={"value": _string("value")}),
        )
        assert _dump(node) == {
            "name": "labels",
            "map_nested": {
                "computed_optional_required": "optional",
                "nested_object": {
                    "attributes": [{"name": "value", "string": {"computed_optional_required": "optional"}}]
                },
            },
        }


class TestNested:
    def test_single_nested(self) -> None:
        node = _attr(AttributeType.SINGLE_NESTED, "owner", children={"email": _string("email")})
        assert _dump(node) == {
            "name": "owner",
            "single_nested": {
                "computed_optional_required": "optional",
                "attributes": [{"name": "email", "string": {"computed_optional_required": "optional"}}],
            },
        }

    def test_list_nested(self) -> None:
        node = _attr(
            AttributeType.LIST_NESTED,
            "children",
            computability=Computability.COMPUTED,
            children={"name": _string("name", computability=Computability.COMPUTED)},
        )
        assert _dump(node) == {
            "name": "children",
            "list_nested": {
                "computed_optional_required": "computed",
                "nested_object": {
                    "attributes": [{"name": "name", "string": {"computed_optional_required": "computed"}}]
                },
            },
        }

    def test_provider_children_are_never_computed(self) -> None:
        node = _attr(
            AttributeType.SINGLE_NESTED,
            "retry",
            computability=Computability.OPTIONAL_COMPUTED,
            children={"max": _attr(AttributeType.INT64, "max", computability=Computability.COMPUTED)},
        )
        assert _dump(node, provider=True) == {
            "name": "retry",
            "single_nested": {
                "optional_required": "optional",
                "attributes": [{"name": "max", "int64": {"optional_required": "optional"}}],
            },
        }


class TestApply:
    def _tree(self) -> CanonicalAttribute:
        return _attr(
            AttributeType.SINGLE_NESTED,
            "",
            description="A pet",
            children={"name": _string("name", computability=Computability.REQUIRED), "tag": _string("tag")},
        )

    @pytest.mark.parametrize(
        ("kind", "model"),
        [
            (EntityKind.RESOURCE, ResourceIR),
            (EntityKind.DATA_SOURCE, DataSourceIR),
            (EntityKind.PROVIDER, ProviderIR),
        ],
    )
    def test_dispatch_by_kind(self, kind, model) -> None:
        result = apply(self._tree(), [], entity="pet", kind=kind)
        assert type(result) is model
        assert result.name == "pet"
        assert result.description == "A pet"
        assert [a.name for a in result.attributes] == ["name", "tag"]

    def test_overrides_then_serialisation(self) -> None:
        diagnostics = Diagnostics()
        result = apply(
            self._tree(), [IgnoreRule(ignore="tag")], entity="pet", kind=EntityKind.RESOURCE, diagnostics=diagnostics
        )
        assert [a.name for a in result.attributes] == ["name"]
        assert len(diagnostics) == 0

    def test_serialize_attributes_keeps_order(self) -> None:
        names = [a.name for a in serialize_attributes(self._tree())]
        assert names == ["name", "tag"]
