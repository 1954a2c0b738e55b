"""Read-only document model over a ``$ref``-resolved OpenAPI document.

The generator core never touches raw dictionaries directly.  It asks a
:class:`DocumentModel` for operations by ``(path, method)`` or
``operationId``, and inspects schemas through :class:`SchemaNode` views.

Schema identity
---------------

:class:`SchemaArena` assigns each distinct schema object a small integer
``node_id`` in first-visit order.  Because the resolver shares one object per
JSON pointer, every reference to ``#/components/schemas/Node`` yields the same
``node_id``; the merger tracks these ids on its recursion chain to cut
self-referential schemas.

Example::

    raw = load_spec("openapi.yaml")
    document = DocumentModel.from_dict(raw)
    operation = document.operation("/pets/{petId}", "get")
    schema, status = operation.response_schema()
    for name, child in schema.properties.items():
        print(name, child.type, child.format)
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from tfopenapigen.models import HTTPMethod
from tfopenapigen.parser.loader import validate_openapi_version
from tfopenapigen.parser.resolver import RefResolver, pointer_from_ref

_HTTP_METHODS = tuple(m.value for m in HTTPMethod)
_PRIMITIVE_TYPES = frozenset({"string", "integer", "number", "boolean"})
_TEMPLATE_PARAM_RE = re.compile(r"\{[^/}]+\}")
_SCHEMA_POINTER_RE = re.compile(r"^/components/schemas/([^/]+)$")


class SchemaKind(str, enum.Enum):
    """Structural tag of a :class:`SchemaNode`."""

    PRIMITIVE = "primitive"
    ARRAY = "array"
    OBJECT = "object"
    ONE_OF = "one_of"
    ANY_OF = "any_of"
    ALL_OF = "all_of"
    UNKNOWN = "unknown"


class SchemaArena:
    """Hands out :class:`SchemaNode` views with stable identities.

    Synthetic schemas created by the explorer are kept alive here so that
    ``id()`` values are never reused during a run.
    """

    def __init__(self, pointers: Optional[dict[int, str]] = None) -> None:
        self._pointers = pointers or {}
        self._ids: dict[int, int] = {}
        self._nodes: dict[int, SchemaNode] = {}
        self._owned: list[dict[str, Any]] = []
        self._own_shapes: dict[int, dict[str, Any]] = {}

    def node(self, raw: dict[str, Any]) -> "SchemaNode":
        key = id(raw)
        existing = self._nodes.get(key)
        if existing is not None:
            return existing
        node_id = len(self._ids)
        self._ids[key] = node_id
        pointer = self._pointers.get(key, "")
        match = _SCHEMA_POINTER_RE.match(pointer)
        ref_name = match.group(1).replace("~1", "/").replace("~0", "~") if match else None
        node = SchemaNode(raw=raw, node_id=node_id, arena=self, ref_name=ref_name)
        self._nodes[key] = node
        return node

    def synthetic(self, raw: dict[str, Any]) -> "SchemaNode":
        """Register a schema dict built by the generator itself."""
        self._owned.append(raw)
        return self.node(raw)

    def own_shape(self, raw: dict[str, Any]) -> "SchemaNode":
        """The object part of an ``allOf`` schema that also declares properties."""
        shape = self._own_shapes.get(id(raw))
        if shape is None:
            shape = {k: v for k, v in raw.items() if k not in ("allOf", "oneOf", "anyOf")}
            shape.setdefault("type", "object")
            self._own_shapes[id(raw)] = shape
        return self.node(shape)

    def __len__(self) -> int:
        return len(self._ids)


class SchemaNode:
    """Read-only view of one schema object.

    Attributes are computed from the underlying dict on access; child views
    are obtained through the owning arena so identities stay stable.
    """

    __slots__ = ("raw", "node_id", "ref_name", "_arena")

    def __init__(
        self,
        raw: dict[str, Any],
        node_id: int,
        arena: SchemaArena,
        ref_name: Optional[str] = None,
    ) -> None:
        self.raw = raw
        self.node_id = node_id
        self.ref_name = ref_name
        self._arena = arena

    def __repr__(self) -> str:
        label = f" {self.ref_name}" if self.ref_name else ""
        return f"<SchemaNode #{self.node_id}{label} {self.kind.value}>"

    @property
    def type(self) -> Optional[str]:
        """The declared type; the first non-null member of an OpenAPI 3.1 type array."""
        value = self.raw.get("type")
        if isinstance(value, list):
            non_null = [t for t in value if t != "null"]
            return str(non_null[0]) if non_null else None
        return str(value) if value is not None else None

    @property
    def nullable(self) -> bool:
        value = self.raw.get("type")
        if isinstance(value, list) and "null" in value:
            return True
        return bool(self.raw.get("nullable", False))

    @property
    def is_null(self) -> bool:
        """True for ``{"type": "null"}`` branches used to express nullability."""
        value = self.raw.get("type")
        return value == "null" or value == ["null"]

    @property
    def kind(self) -> SchemaKind:
        if "allOf" in self.raw:
            return SchemaKind.ALL_OF
        if "oneOf" in self.raw:
            return SchemaKind.ONE_OF
        if "anyOf" in self.raw:
            return SchemaKind.ANY_OF
        declared = self.type
        if declared == "array" or (declared is None and "items" in self.raw):
            return SchemaKind.ARRAY
        if declared == "object" or (
            declared is None and ("properties" in self.raw or "additionalProperties" in self.raw)
        ):
            return SchemaKind.OBJECT
        if declared in _PRIMITIVE_TYPES:
            return SchemaKind.PRIMITIVE
        return SchemaKind.UNKNOWN

    @property
    def format(self) -> Optional[str]:
        value = self.raw.get("format")
        return str(value) if value is not None else None

    @property
    def description(self) -> str:
        value = self.raw.get("description") or self.raw.get("title") or ""
        return str(value).strip()

    @property
    def properties(self) -> dict[str, "SchemaNode"]:
        props = self.raw.get("properties") or {}
        return {
            str(name): self._arena.node(schema)
            for name, schema in props.items()
            if isinstance(schema, dict)
        }

    @property
    def required(self) -> frozenset[str]:
        value = self.raw.get("required")
        if isinstance(value, list):
            return frozenset(str(v) for v in value)
        return frozenset()

    @property
    def items(self) -> Optional["SchemaNode"]:
        value = self.raw.get("items")
        return self._arena.node(value) if isinstance(value, dict) else None

    @property
    def additional_properties(self) -> Union["SchemaNode", bool, None]:
        """The value schema of a map, ``True`` for free-form values, or ``None``."""
        value = self.raw.get("additionalProperties")
        if isinstance(value, dict):
            return self._arena.node(value) if value else True
        if value is True:
            return True
        return None

    @property
    def unique_items(self) -> bool:
        return bool(self.raw.get("uniqueItems", False))

    @property
    def enum(self) -> Optional[list[Any]]:
        value = self.raw.get("enum")
        if isinstance(value, list):
            return [v for v in value if v is not None]
        return None

    @property
    def default(self) -> Any:
        return self.raw.get("default")

    @property
    def deprecated(self) -> bool:
        return bool(self.raw.get("deprecated", False))

    @property
    def read_only(self) -> bool:
        return bool(self.raw.get("readOnly", False))

    @property
    def write_only(self) -> bool:
        return bool(self.raw.get("writeOnly", False))

    @property
    def branches(self) -> list["SchemaNode"]:
        """Members of ``allOf``/``oneOf``/``anyOf``.

        For ``allOf`` schemas that also declare their own ``properties``, the
        enclosing object is appended as an extra branch.
        """
        kind = self.kind
        key = {SchemaKind.ALL_OF: "allOf", SchemaKind.ONE_OF: "oneOf", SchemaKind.ANY_OF: "anyOf"}.get(kind)
        if key is None:
            return []
        members = [self._arena.node(b) for b in self.raw.get(key) or [] if isinstance(b, dict)]
        if kind is SchemaKind.ALL_OF and ("properties" in self.raw or "additionalProperties" in self.raw):
            members.append(self._arena.own_shape(self.raw))
        return members


@dataclass(frozen=True)
class Operation:
    """One ``path`` + ``method`` pair of the resolved document."""

    path: str
    method: HTTPMethod
    raw: dict[str, Any] = field(repr=False)
    parameters: list[dict[str, Any]] = field(default_factory=list, repr=False)
    document: Optional["DocumentModel"] = field(default=None, repr=False, compare=False)

    @property
    def operation_id(self) -> Optional[str]:
        return self.raw.get("operationId")

    @property
    def summary(self) -> str:
        return str(self.raw.get("summary") or "")

    def describe(self) -> str:
        return f"{self.method.value.upper()} {self.path}"

    def request_schema(self) -> Optional[SchemaNode]:
        """The request body schema, preferring JSON media types."""
        body = self.raw.get("requestBody")
        if not isinstance(body, dict):
            return None
        schema = _pick_media_schema(body.get("content"))
        if schema is None or self.document is None:
            return None
        return self.document.node(schema)

    def response_schema(self) -> tuple[Optional[SchemaNode], Optional[str]]:
        """The success response schema and the status code it came from.

        Status codes are tried in the order ``200``, ``201``, any other
        ``2xx`` in document order, ``2XX``, ``default``; the first one
        carrying a schema wins.
        """
        responses = self.raw.get("responses")
        if not isinstance(responses, dict) or self.document is None:
            return None, None
        for status in _success_statuses(responses):
            response = responses[status]
            if not isinstance(response, dict):
                continue
            schema = _pick_media_schema(response.get("content"))
            if schema is not None:
                return self.document.node(schema), str(status)
        return None, None

    def parameters_in(self, *locations: str) -> list[dict[str, Any]]:
        return [p for p in self.parameters if p.get("in") in locations]


class DocumentModel:
    """Read-only access to the paths, operations and components of a document.

    Build it with :meth:`from_dict`; the constructor expects an already
    resolved document.
    """

    def __init__(
        self,
        resolved: dict[str, Any],
        openapi_version: str,
        resolver: Optional[RefResolver] = None,
    ) -> None:
        self._doc = resolved
        self._resolver = resolver
        self.openapi_version = openapi_version
        self.arena = SchemaArena(resolver.pointers if resolver is not None else None)
        self._operations: Optional[list[Operation]] = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "DocumentModel":
        """Validate the version, resolve references and wrap the result.

        Raises:
            SpecParseError: For unsupported versions or unresolvable references.
        """
        version = validate_openapi_version(raw)
        resolver = RefResolver(raw)
        return cls(resolver.resolve(), version, resolver)

    @property
    def title(self) -> str:
        info = self._doc.get("info") or {}
        return str(info.get("title") or "")

    def node(self, raw: dict[str, Any]) -> SchemaNode:
        return self.arena.node(raw)

    def synthetic_object(
        self,
        properties: dict[str, dict[str, Any]],
        required: Optional[list[str]] = None,
        description: str = "",
    ) -> SchemaNode:
        """Build an object schema around existing (or new) property schemas."""
        raw: dict[str, Any] = {"type": "object", "properties": dict(properties)}
        if required:
            raw["required"] = list(required)
        if description:
            raw["description"] = description
        return self.arena.synthetic(raw)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def operations(self) -> list[Operation]:
        """Every operation in document order (paths, then methods as declared)."""
        if self._operations is None:
            self._operations = list(self._iter_operations())
        return list(self._operations)

    def _iter_operations(self):  # noqa: ANN202
        paths = self._doc.get("paths") or {}
        for path, path_item in paths.items():
            if not isinstance(path_item, dict):
                continue
            path_params = [p for p in path_item.get("parameters") or [] if isinstance(p, dict)]
            for method_str, raw in path_item.items():
                if method_str not in _HTTP_METHODS or not isinstance(raw, dict):
                    continue
                op_params = [p for p in raw.get("parameters") or [] if isinstance(p, dict)]
                yield Operation(
                    path=str(path),
                    method=HTTPMethod(method_str),
                    raw=raw,
                    parameters=_merge_parameters(path_params, op_params),
                    document=self,
                )

    def operation(self, path: str, method: str | HTTPMethod) -> Optional[Operation]:
        method_value = method.value if isinstance(method, HTTPMethod) else method.lower()
        for op in self.operations():
            if op.path == path and op.method.value == method_value:
                return op
        return None

    def find_operation_id(self, operation_id: str) -> list[Operation]:
        return [op for op in self.operations() if op.operation_id == operation_id]

    def paths(self) -> list[str]:
        return [str(p) for p in (self._doc.get("paths") or {})]

    def equivalent_paths(self, path: str) -> list[str]:
        """Paths that match *path* once template parameter names are ignored."""
        wanted = _TEMPLATE_PARAM_RE.sub("{}", path.rstrip("/") or "/")
        return [
            candidate
            for candidate in self.paths()
            if _TEMPLATE_PARAM_RE.sub("{}", candidate.rstrip("/") or "/") == wanted
        ]

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    def schema_at(self, ref: str) -> Optional[SchemaNode]:
        """The schema a local ``#/...`` pointer addresses, or ``None``."""
        current: Any = self._doc
        pointer = pointer_from_ref(ref)
        for raw_segment in pointer[1:].split("/") if pointer else []:
            segment = raw_segment.replace("~1", "/").replace("~0", "~")
            if not isinstance(current, dict) or segment not in current:
                return None
            current = current[segment]
        return self.node(current) if isinstance(current, dict) else None

    def security_scheme(self, name: str) -> Optional[dict[str, Any]]:
        schemes = (self._doc.get("components") or {}).get("securitySchemes") or {}
        scheme = schemes.get(name)
        return scheme if isinstance(scheme, dict) else None

    def header_parameters(self, name: str) -> list[dict[str, Any]]:
        """Header parameter objects called *name*.

        ``#/components/parameters`` entries are matched by key or by
        ``name``; operation-level header parameters by ``name`` (case
        insensitive, as HTTP headers are).
        """
        found: list[dict[str, Any]] = []
        components = (self._doc.get("components") or {}).get("parameters") or {}
        for key, param in components.items():
            if not isinstance(param, dict) or param.get("in") != "header":
                continue
            if key == name or str(param.get("name", "")).lower() == name.lower():
                found.append(param)
        for op in self.operations():
            for param in op.parameters_in("header"):
                if str(param.get("name", "")).lower() == name.lower() and param not in found:
                    found.append(param)
        return found


def _merge_parameters(
    path_params: list[dict[str, Any]],
    op_params: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Operation-level parameters override path-level ones with the same ``name`` and ``in``."""
    overridden = {(p.get("name", ""), p.get("in", "")) for p in op_params}
    merged = [p for p in path_params if (p.get("name", ""), p.get("in", "")) not in overridden]
    merged.extend(op_params)
    return merged


def _pick_media_schema(content: Any) -> Optional[dict[str, Any]]:
    """Pick the schema of the preferred media type from a ``content`` map."""
    if not isinstance(content, dict):
        return None
    with_schema = [
        (str(media_type), media["schema"])
        for media_type, media in content.items()
        if isinstance(media, dict) and isinstance(media.get("schema"), dict)
    ]
    if not with_schema:
        return None
    for media_type, schema in with_schema:
        if media_type.split(";")[0].strip() == "application/json":
            return schema
    for media_type, schema in with_schema:
        if "json" in media_type:
            return schema
    return with_schema[0][1]


def _success_statuses(responses: dict[Any, Any]) -> list[Any]:
    """Success status keys in preference order.

    Keys are returned as they appear in *responses*: YAML documents often
    use unquoted ``200:``, which loads as an ``int``.
    """
    keys = {str(k): k for k in responses}
    ordered = [code for code in ("200", "201") if code in keys]
    ordered += [k for k in keys if len(k) == 3 and k.startswith("2") and k.isdigit() and k not in ordered]
    ordered += [k for k in keys if k.upper() == "2XX"]
    ordered += [k for k in keys if k == "default"]
    return [keys[code] for code in ordered]
