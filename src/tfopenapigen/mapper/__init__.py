"""Overrides, structural validation and Framework IR serialisation."""

from tfopenapigen.mapper.entities import apply
from tfopenapigen.mapper.overrides import apply_overrides, locate
from tfopenapigen.mapper.serializer import serialize_attributes
from tfopenapigen.mapper.validation import validate_tree

__all__ = ["apply", "apply_overrides", "locate", "serialize_attributes", "validate_tree"]
