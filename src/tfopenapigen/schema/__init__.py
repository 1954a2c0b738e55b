"""Schema merging: composition flattening, type inference and cross-verb unification."""

from tfopenapigen.schema.attribute import AttributeType, CanonicalAttribute
from tfopenapigen.schema.composition import flatten
from tfopenapigen.schema.merger import merge, unify_types

__all__ = ["AttributeType", "CanonicalAttribute", "flatten", "merge", "unify_types"]
