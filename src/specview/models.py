"""Canonical Pydantic models shared across all specview modules.

This is the single source of truth for data shapes in the project.  Every
other module imports from here rather than defining its own models.  The
models fall into four groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`OutputConfig`, :class:`ResolverConfig`, :class:`LayoutConfig`,
    and :class:`GlobalConfig`.

**Document records** -- owned by the storage collaborator (the document
library):
    :class:`SpecFormat` and :class:`SpecDocument`.

**Parser output models** -- produced by the parse pipeline and consumed by
the graph builder and the CLI:
    :class:`Severity`, :class:`Diagnostic`, :class:`HTTPMethod`,
    :class:`Parameter`, :class:`MediaContent`, :class:`RequestBody`,
    :class:`ResponseDescriptor`, :class:`Endpoint`, :class:`ErrorCategory`,
    :class:`Diagnosis`, and :class:`ParseResult`.

**Graph models** -- the node/edge model handed to renderers:
    :class:`NodeKind`, :class:`EdgeKind`, :class:`Position`,
    :class:`GraphNode`, :class:`GraphEdge`, and :class:`GraphModel`.

All models use Pydantic v2.  Fields whose OpenAPI name collides with a
Python keyword or a ``BaseModel`` attribute (``in``, ``schema``) are declared
under a safe name with an alias and ``populate_by_name`` enabled.
"""

from __future__ import annotations

import enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# --- Configuration ---


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class ResolverConfig(BaseModel):
    """Settings for the reference-resolution step of the parse pipeline."""

    timeout_seconds: float = Field(
        default=30.0, description="Upper bound on a single resolver call"
    )
    validate_schema: bool = Field(
        default=True,
        description="Run openapi-spec-validator after inlining references",
    )


class LayoutConfig(BaseModel):
    """Constants for the deterministic graph layout.

    With the defaults the API root sits at ``(400, 100)`` and endpoints
    spiral around ``(400, 300)``.
    """

    root_x: float = 400.0
    root_y: float = 100.0
    center_x: float = 400.0
    center_y: float = 300.0
    base_radius: float = Field(default=250.0, description="Spiral base radius")
    radius_jitter: float = Field(
        default=50.0, description="Radius added per (index mod 3) step"
    )
    child_offset: float = Field(
        default=120.0, description="Vertical gap between a parent and its first child"
    )
    row_height: float = Field(default=80.0, description="Height of one stacked row")
    indent: float = Field(
        default=0.0, description="Horizontal offset of an endpoint's children"
    )
    schema_indent: float = Field(
        default=40.0, description="Horizontal offset of deeper schema children"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/specview/config.json``.

    Loaded and saved by :func:`~specview.config.load_global_config` and
    :func:`~specview.config.save_global_config`.  See
    :func:`~specview.config.resolve_config` for the precedence chain.
    """

    output: OutputConfig = Field(default_factory=OutputConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)


# --- Document records ---


class SpecFormat(str, enum.Enum):
    """Serialisation format of a stored document."""

    YAML = "yaml"
    JSON = "json"


class SpecDocument(BaseModel):
    """A stored OpenAPI/Swagger document.

    The record shape mirrors what the document library persists.  The parse
    pipeline reads only :attr:`content` and :attr:`format`; ``format`` is a
    hint and may disagree with the actual content.
    """

    id: str
    name: str
    content: Union[str, dict[str, Any]]
    format: SpecFormat = SpecFormat.YAML
    version: str = "1.0.0"
    last_modified: Optional[int] = Field(
        default=None, description="Milliseconds since the epoch"
    )
    tags: list[str] = Field(default_factory=list)
    favorite: bool = False


# --- Parser output ---


class Severity(str, enum.Enum):
    """Severity of a :class:`Diagnostic`."""

    ERROR = "error"
    WARNING = "warning"


class Diagnostic(BaseModel):
    """A structured validation or parse finding.

    Diagnostics are frozen: a parse cycle appends new ones and replaces the
    whole list on the next cycle, never editing an existing record.
    """

    model_config = ConfigDict(frozen=True)

    path: Optional[str] = None
    message: str
    severity: Severity


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised on an OpenAPI path-item object.

    ``HEAD`` counts as an operation for structural validation but is not
    extracted into an :class:`Endpoint`.
    """

    GET = "get"
    POST = "post"
    PUT = "put"
    DELETE = "delete"
    PATCH = "patch"
    OPTIONS = "options"
    HEAD = "head"


class Parameter(BaseModel):
    """A single parameter of an :class:`Endpoint`.

    ``type`` and ``format`` come from the parameter's ``schema`` (OpenAPI 3)
    or from the parameter itself (Swagger 2).  The raw schema is kept so
    the graph builder can expand object and array parameters.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    location: str = Field(alias="in")
    description: str = ""
    required: bool = False
    type: str = "string"
    format: Optional[str] = None
    schema_: Optional[dict[str, Any]] = Field(default=None, alias="schema")


class MediaContent(BaseModel):
    """The first media type of a ``content`` map and its schema."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = ""
    schema_: Optional[Any] = Field(default=None, alias="schema")


class RequestBody(BaseModel):
    """Parsed ``requestBody`` of an operation."""

    description: str = ""
    required: bool = False
    content: Optional[MediaContent] = None


class ResponseDescriptor(BaseModel):
    """Parsed response for a single status code."""

    status_code: str
    description: str = ""
    content: Optional[MediaContent] = None


class Endpoint(BaseModel):
    """One HTTP operation (method + path) of the document.

    ``id`` is stable across re-parses of an unchanged document: it is the
    kebab-case ``operationId`` when present, otherwise it is synthesised
    from the method and path.
    """

    id: str
    method: str
    path: str
    summary: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    parameters: list[Parameter] = Field(default_factory=list)
    request_body: Optional[RequestBody] = None
    responses: list[ResponseDescriptor] = Field(default_factory=list)


class ErrorCategory(str, enum.Enum):
    """Taxonomy produced by :func:`~specview.parser.classifier.classify_error`."""

    SCHEMA = "schema-error"
    REFERENCE = "reference-error"
    TYPE = "type-error"
    MISSING_REQUIRED = "missing-required-property"
    GENERIC = "generic"


class Diagnosis(BaseModel):
    """A classified, redacted explanation of a resolver/validator failure.

    Attributes:
        category: Which rule of the classifier matched.
        explanation: Short text suitable for a diagnostic line
            (``"Reference error: Could not resolve ..."``).
        summary: Headline suitable for a top-level error banner.
    """

    category: ErrorCategory
    explanation: str
    summary: str


class FailureStage(str, enum.Enum):
    """Where a failed parse cycle stopped."""

    PARSE = "parse"
    RESOLVE = "resolve"
    INTERNAL = "internal"


class ParseResult(BaseModel):
    """Output of one parse cycle, the contract handed to renderers.

    ``document`` holds the resolved document when resolution succeeded (or
    the normalized one when it did not) and is excluded from serialisation.
    ``failure`` names the stage that set ``error``.
    """

    endpoints: list[Endpoint] = Field(default_factory=list)
    diagnostics: list[Diagnostic] = Field(default_factory=list)
    spec_version_label: str = ""
    title: str = ""
    api_version: str = ""
    error: Optional[str] = None
    failure: Optional[FailureStage] = None
    diagnosis: Optional[Diagnosis] = None
    document: Optional[Any] = Field(default=None, exclude=True)

    @property
    def has_errors(self) -> bool:
        """Whether any diagnostic has error severity."""
        return any(d.severity == Severity.ERROR for d in self.diagnostics)


# --- Graph ---


class NodeKind(str, enum.Enum):
    """Closed set of graph node variants."""

    API = "api"
    ENDPOINT = "endpoint"
    REQUEST = "request"
    RESPONSE = "response"
    SCHEMA = "schema"
    PROPERTY = "property"
    ARRAY = "array"


class EdgeKind(str, enum.Enum):
    """``structural`` links a node to its parent; ``reference`` ends a ``$ref`` chain."""

    STRUCTURAL = "structural"
    REFERENCE = "reference"


class Position(BaseModel):
    """Canvas coordinates assigned by the layout engine."""

    x: float = 0.0
    y: float = 0.0


class GraphNode(BaseModel):
    """A node of the document graph.

    ``data`` depends on ``kind``: method/path for endpoints, status code for
    responses, required/format/example for properties, and so on.
    ``parent_id`` is the structural parent (``None`` only for the root) and
    ``expandable`` tells renderers whether :meth:`GraphView.toggle
    <specview.graph.expansion.GraphView.toggle>` will materialize children.
    """

    id: str
    kind: NodeKind
    label: str
    position: Position = Field(default_factory=Position)
    parent_id: Optional[str] = None
    expandable: bool = False
    data: dict[str, Any] = Field(default_factory=dict)


class GraphEdge(BaseModel):
    """A directed edge from ``source_id`` to ``target_id``."""

    id: str
    source_id: str
    target_id: str
    kind: EdgeKind = EdgeKind.STRUCTURAL


class GraphModel(BaseModel):
    """Serialisable snapshot of a graph view."""

    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)
    expansion_state: list[str] = Field(default_factory=list)
