"""OpenAPI document loading -- read, resolve ``$ref`` pointers, and model.

This sub-package prepares the read-only :class:`DocumentModel` the generator
core consumes.  None of it is part of the core algorithm; it only turns bytes
into a navigable object graph.

Typical usage::

    from tfopenapigen.parser import DocumentModel, load_spec

    document = DocumentModel.from_dict(load_spec("openapi.yaml"))

Sub-modules:

* :mod:`~tfopenapigen.parser.loader` -- file / URL / stdin I/O, JSON and YAML
  parsing, OpenAPI version validation.
* :mod:`~tfopenapigen.parser.resolver` -- ``$ref`` resolution into a shared,
  possibly cyclic object graph.
* :mod:`~tfopenapigen.parser.document` -- :class:`DocumentModel`,
  :class:`Operation` and :class:`SchemaNode` views.
"""

from tfopenapigen.parser.document import DocumentModel, Operation, SchemaKind, SchemaNode
from tfopenapigen.parser.loader import load_spec, validate_openapi_version
from tfopenapigen.parser.resolver import resolve_refs

__all__ = [
    "DocumentModel",
    "Operation",
    "SchemaKind",
    "SchemaNode",
    "load_spec",
    "validate_openapi_version",
    "resolve_refs",
]
