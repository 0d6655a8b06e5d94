"""Turn extracted endpoints into typed graph nodes and edges.

The builder never materializes the whole tree up front.  :meth:`initial`
returns the root and one node per endpoint; :meth:`children` generates the
immediate children of a container on demand and caches them, so expanding
the same node twice yields identical nodes (same IDs, same data).

Node hierarchy::

    api-root (api)
    +-- endpoint-<endpoint id> (endpoint)
        +-- ...-request (request)          -> schema root
        +-- ...-response-<code> (response) -> schema root
        +-- ...-parameters (schema, container) -> one property per parameter

Every response gets a node, including one with no content or a non-object
schema; only a response whose media schema is a mapping can be expanded.
Likewise every parameter gets a property node, schema or not, and only
parameter schemas with properties, items or a ``$ref`` expand further.
Endpoint and parameter IDs are allocated per position, so two operations
sharing an ``operationId`` still get distinct nodes.

Schema recursion, given a schema and a parent:

* ``$ref`` -> one terminal ``schema`` node named after the ref's last
  segment, attached by a ``reference`` edge and never expanded;
* object with ``properties`` -> one ``property`` node per property,
  labeled ``name*: type`` when required;
* array with ``items`` -> one ``array`` node, recursing into ``items``;
* anything else -> no children.

Malformed fragments are skipped; no method here raises on document shape.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Callable, Optional, Sequence

from specview.graph.ids import IdAllocator
from specview.models import (
    EdgeKind,
    Endpoint,
    GraphEdge,
    GraphNode,
    NodeKind,
    Parameter,
    ParseResult,
    ResponseDescriptor,
)
from specview.parser.extractor import schema_type_name

logger = logging.getLogger(__name__)

ROOT_ID = "api-root"

Child = tuple[GraphNode, GraphEdge]

# Depth bound for build_full; resolved documents keep a $ref at every cycle
# point, but a custom resolver may hand back shared, self-containing objects.
MAX_FULL_DEPTH = 64


class SchemaGraphBuilder:
    """Lazily build the graph of one parsed document.

    Args:
        endpoints: Endpoints in extraction order.
        title: Label of the root node.
        api_version: ``info.version`` shown on the root node.
        spec_version_label: ``"OpenAPI 3.0.3"`` and the like.
    """

    def __init__(
        self,
        endpoints: Sequence[Endpoint],
        title: str = "API",
        api_version: str = "",
        spec_version_label: str = "",
    ) -> None:
        self._endpoints = list(endpoints)
        self._title = title or "API"
        self._api_version = api_version
        self._spec_version_label = spec_version_label

        self._ids = IdAllocator()
        self._ids.reserve(ROOT_ID)
        self._expanders: dict[str, Callable[[], list[Child]]] = {}
        self._cache: dict[str, list[Child]] = {}
        self._initial: Optional[tuple[list[GraphNode], list[GraphEdge]]] = None

    @classmethod
    def from_result(cls, result: ParseResult) -> "SchemaGraphBuilder":
        """Create a builder for the output of one parse cycle."""
        return cls(
            result.endpoints,
            title=result.title,
            api_version=result.api_version,
            spec_version_label=result.spec_version_label,
        )

    # ------------------------------------------------------------------ #
    # Public surface
    # ------------------------------------------------------------------ #

    def initial(self) -> tuple[list[GraphNode], list[GraphEdge]]:
        """Return the root node, one node per endpoint, and their edges."""
        if self._initial is None:
            root = GraphNode(
                id=ROOT_ID,
                kind=NodeKind.API,
                label=self._title,
                data={
                    "title": self._title,
                    "version": self._api_version,
                    "spec_version": self._spec_version_label,
                    "endpoint_count": len(self._endpoints),
                },
            )
            nodes = [root]
            edges: list[GraphEdge] = []
            for index, endpoint in enumerate(self._endpoints):
                node, edge = self._endpoint_node(index, endpoint)
                nodes.append(node)
                edges.append(edge)
            self._initial = (nodes, edges)

        nodes, edges = self._initial
        return [n.model_copy(deep=True) for n in nodes], list(edges)

    def is_container(self, node_id: str) -> bool:
        """Whether *node_id* has children to materialize."""
        return node_id in self._expanders

    def children(self, node_id: str) -> list[Child]:
        """Return the immediate children of *node_id* with their incoming edges.

        Unknown IDs and leaves yield an empty list.  Results are cached, and
        each call returns fresh node copies so callers may move them.
        """
        if node_id not in self._cache:
            expander = self._expanders.get(node_id)
            self._cache[node_id] = expander() if expander else []
        return [(n.model_copy(deep=True), e) for n, e in self._cache[node_id]]

    def build_full(
        self, max_depth: int = MAX_FULL_DEPTH
    ) -> tuple[list[GraphNode], list[GraphEdge], list[str]]:
        """Materialize the whole tree breadth-first.

        Returns:
            ``(nodes, edges, expanded_ids)`` where ``expanded_ids`` lists
            every container that was opened.
        """
        nodes, edges = self.initial()
        expanded: list[str] = []
        queue = deque((n.id, 1) for n in nodes if n.id != ROOT_ID)

        while queue:
            node_id, depth = queue.popleft()
            if not self.is_container(node_id):
                continue
            if depth > max_depth:
                logger.debug("Depth limit reached at %s", node_id)
                continue
            expanded.append(node_id)
            for child, edge in self.children(node_id):
                nodes.append(child)
                edges.append(edge)
                queue.append((child.id, depth + 1))

        return nodes, edges, expanded

    # ------------------------------------------------------------------ #
    # Node factories
    # ------------------------------------------------------------------ #

    def _register(self, node: GraphNode, expander: Optional[Callable[[], list[Child]]]) -> None:
        if expander is not None:
            node.expandable = True
            self._expanders[node.id] = expander

    def _edge(self, source: str, target: str, kind: EdgeKind = EdgeKind.STRUCTURAL) -> GraphEdge:
        return GraphEdge(id=f"{source}->{target}", source_id=source, target_id=target, kind=kind)

    def _endpoint_node(self, index: int, endpoint: Endpoint) -> Child:
        node_id = self._ids.allocate("endpoint", endpoint.id, slot=index)
        node = GraphNode(
            id=node_id,
            kind=NodeKind.ENDPOINT,
            label=endpoint.path,
            parent_id=ROOT_ID,
            data={
                "endpoint_id": endpoint.id,
                "method": endpoint.method,
                "path": endpoint.path,
                "summary": endpoint.summary,
                "description": endpoint.description,
                "tags": list(endpoint.tags),
            },
        )
        has_children = bool(
            endpoint.responses or endpoint.parameters or _request_schema(endpoint) is not None
        )
        self._register(
            node, (lambda: self._endpoint_children(node_id, endpoint)) if has_children else None
        )
        return node, self._edge(ROOT_ID, node_id)

    def _endpoint_children(self, parent_id: str, endpoint: Endpoint) -> list[Child]:
        children: list[Child] = []

        if _request_schema(endpoint) is not None:
            children.append(self._request_node(parent_id, endpoint))

        for response in endpoint.responses:
            children.append(self._response_node(parent_id, response))

        if endpoint.parameters:
            children.append(self._parameters_node(parent_id, endpoint.parameters))

        return children

    def _request_node(self, parent_id: str, endpoint: Endpoint) -> Child:
        body = endpoint.request_body
        assert body is not None and body.content is not None
        schema = body.content.schema_
        node_id = self._ids.allocate(parent_id, "request")
        node = GraphNode(
            id=node_id,
            kind=NodeKind.REQUEST,
            label=f"Request body ({body.content.type})" if body.content.type else "Request body",
            parent_id=parent_id,
            data={
                "content_type": body.content.type,
                "required": body.required,
                "description": body.description,
            },
        )
        self._register(node, lambda: self._schema_root(node_id, schema))
        return node, self._edge(parent_id, node_id)

    def _response_node(self, parent_id: str, response: ResponseDescriptor) -> Child:
        """One node per response; expandable only when its schema is a mapping."""
        node_id = self._ids.allocate(parent_id, f"response-{response.status_code}")
        content = response.content
        schema = content.schema_ if content is not None else None
        label = response.status_code
        if response.description:
            label = f"{response.status_code} {response.description}"
        node = GraphNode(
            id=node_id,
            kind=NodeKind.RESPONSE,
            label=label,
            parent_id=parent_id,
            data={
                "status_code": response.status_code,
                "description": response.description,
                "content_type": content.type if content is not None else None,
            },
        )
        if isinstance(schema, dict):
            self._register(node, lambda: self._schema_root(node_id, schema))
        return node, self._edge(parent_id, node_id)

    def _parameters_node(self, parent_id: str, parameters: list[Parameter]) -> Child:
        node_id = self._ids.allocate(parent_id, "parameters")
        node = GraphNode(
            id=node_id,
            kind=NodeKind.SCHEMA,
            label=f"Parameters ({len(parameters)})",
            parent_id=parent_id,
            data={"container": "parameters", "count": len(parameters)},
        )
        self._register(
            node, lambda: [self._parameter_node(node_id, p, i) for i, p in enumerate(parameters)]
        )
        return node, self._edge(parent_id, node_id)

    def _parameter_node(self, parent_id: str, parameter: Parameter, index: int) -> Child:
        node_id = self._ids.allocate(
            parent_id, f"{parameter.location}.{parameter.name}", slot=index
        )
        marker = "*" if parameter.required else ""
        node = GraphNode(
            id=node_id,
            kind=NodeKind.PROPERTY,
            label=f"{parameter.name}{marker}: {parameter.type}",
            parent_id=parent_id,
            data={
                "name": parameter.name,
                "in": parameter.location,
                "required": parameter.required,
                "type": parameter.type,
                "format": parameter.format,
                "description": parameter.description,
            },
        )
        schema = parameter.schema_
        if _has_schema_children(schema):
            self._register(node, lambda: self._schema_children(node_id, schema))
        return node, self._edge(parent_id, node_id)

    def _schema_root(self, parent_id: str, schema: Any) -> list[Child]:
        """The single child of a request or response node."""
        if not isinstance(schema, dict):
            return []
        if _ref_of(schema) is not None:
            return [self._reference_node(parent_id, schema)]

        node_id = self._ids.allocate(parent_id, "schema")
        type_name = schema_type_name(schema)
        title = schema.get("title")
        node = GraphNode(
            id=node_id,
            kind=NodeKind.SCHEMA,
            label=str(title) if isinstance(title, str) and title else type_name,
            parent_id=parent_id,
            data={"type": type_name, "description": schema.get("description") or ""},
        )
        if _has_schema_children(schema):
            self._register(node, lambda: self._schema_children(node_id, schema))
        return [(node, self._edge(parent_id, node_id))]

    def _schema_children(self, parent_id: str, schema: Any) -> list[Child]:
        if not isinstance(schema, dict):
            return []
        if _ref_of(schema) is not None:
            return [self._reference_node(parent_id, schema)]

        properties = schema.get("properties")
        if isinstance(properties, dict) and properties:
            required = schema.get("required")
            required_names = set(required) if isinstance(required, list) else set()
            return [
                self._property_node(parent_id, str(name), prop, str(name) in required_names)
                for name, prop in properties.items()
                if isinstance(prop, dict)
            ]

        items = schema.get("items")
        if isinstance(items, dict):
            return [self._array_node(parent_id, items)]
        return []

    def _property_node(self, parent_id: str, name: str, prop: dict[str, Any], required: bool) -> Child:
        node_id = self._ids.allocate(parent_id, name)
        type_name = schema_type_name(prop)
        marker = "*" if required else ""
        data: dict[str, Any] = {"name": name, "type": type_name, "required": required}
        for key in ("format", "example", "description", "enum"):
            if key in prop:
                data[key] = prop[key]
        node = GraphNode(
            id=node_id,
            kind=NodeKind.PROPERTY,
            label=f"{name}{marker}: {type_name}",
            parent_id=parent_id,
            data=data,
        )
        if _has_schema_children(prop):
            self._register(node, lambda: self._schema_children(node_id, prop))
        return node, self._edge(parent_id, node_id)

    def _array_node(self, parent_id: str, items: dict[str, Any]) -> Child:
        node_id = self._ids.allocate(parent_id, "items")
        item_type = schema_type_name(items)
        node = GraphNode(
            id=node_id,
            kind=NodeKind.ARRAY,
            label=f"{item_type}[]",
            parent_id=parent_id,
            data={"item_type": item_type},
        )
        if _has_schema_children(items):
            self._register(node, lambda: self._schema_children(node_id, items))
        return node, self._edge(parent_id, node_id)

    def _reference_node(self, parent_id: str, schema: dict[str, Any]) -> Child:
        ref = _ref_of(schema) or ""
        node_id = self._ids.allocate(parent_id, "ref")
        name = ref.rstrip("/").rsplit("/", 1)[-1] or ref
        node = GraphNode(
            id=node_id,
            kind=NodeKind.SCHEMA,
            label=name,
            parent_id=parent_id,
            data={"ref": ref},
        )
        return node, self._edge(parent_id, node_id, kind=EdgeKind.REFERENCE)


def _request_schema(endpoint: Endpoint) -> Optional[dict[str, Any]]:
    body = endpoint.request_body
    if body is None or body.content is None:
        return None
    schema = body.content.schema_
    return schema if isinstance(schema, dict) else None


def _ref_of(schema: dict[str, Any]) -> Optional[str]:
    ref = schema.get("$ref")
    return ref if isinstance(ref, str) and ref else None


def _has_schema_children(schema: Any) -> bool:
    """Mirror of :meth:`SchemaGraphBuilder._schema_children` without building anything."""
    if not isinstance(schema, dict):
        return False
    if _ref_of(schema) is not None:
        return True
    properties = schema.get("properties")
    if isinstance(properties, dict) and properties:
        return any(isinstance(p, dict) for p in properties.values())
    return isinstance(schema.get("items"), dict)
