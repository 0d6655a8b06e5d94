"""Extract endpoints from a resolved OpenAPI/Swagger document.

:func:`extract_endpoints` walks the ``paths`` object and maps every
recognised operation into an :class:`~specview.models.Endpoint`.  Mapping
is isolated per operation: when one operation is malformed, the failure is
recorded as a ``warning`` diagnostic scoped to ``paths.<path>.<method>`` and
the walk continues with the next operation.

Internally the work is split into small helpers, one per section of the
operation object:

* ``_map_operation`` -- assembles the Endpoint and derives its stable ID.
* ``_extract_parameters`` -- OpenAPI 3 ``schema``-style and Swagger 2
  inline-type parameters.
* ``_extract_request_body`` -- ``requestBody`` or a Swagger 2 ``in: body``
  parameter.
* ``_extract_responses`` -- string- and object-valued response entries.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from pydantic import ValidationError

from specview.exceptions import OperationMappingError
from specview.models import (
    Diagnostic,
    Endpoint,
    MediaContent,
    Parameter,
    RequestBody,
    ResponseDescriptor,
    Severity,
)

logger = logging.getLogger(__name__)

# Methods that become endpoints, in extraction order.  HEAD is recognised by
# the validator but not extracted.
EXTRACTED_METHODS: tuple[str, ...] = ("get", "post", "put", "delete", "patch", "options")

# Word splitter matching lodash's kebabCase: acronyms, capitalised words,
# lowercase runs, and digit runs.
_WORD_RE = re.compile(r"[A-Z]{2,}(?=[A-Z][a-z]|[0-9]|\b|_)|[A-Z]?[a-z]+|[A-Z]+|[0-9]+")

_SECTION_MESSAGES = {
    "parameters": "Invalid parameters in {method} {path}",
    "responses": "Invalid responses in {method} {path}",
    "requestBody": "Invalid request body in {method} {path}",
}


def extract_endpoints(document: Any) -> tuple[list[Endpoint], list[Diagnostic]]:
    """Map every operation of *document* into an :class:`Endpoint`.

    Args:
        document: The resolved document tree.  Anything without a mapping
            ``paths`` yields no endpoints.

    Returns:
        A ``(endpoints, diagnostics)`` tuple.  ``diagnostics`` holds one
        ``warning`` per operation that could not be mapped.
    """
    endpoints: list[Endpoint] = []
    diagnostics: list[Diagnostic] = []

    if not isinstance(document, dict):
        return endpoints, diagnostics
    paths = document.get("paths")
    if not isinstance(paths, dict):
        return endpoints, diagnostics

    produces = document.get("produces")

    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        path = str(path)

        for method in EXTRACTED_METHODS:
            operation = path_item.get(method)
            if operation is None:
                continue
            try:
                endpoints.append(
                    _map_operation(path, method, operation, default_produces=produces)
                )
            except (OperationMappingError, ValidationError, TypeError, AttributeError) as exc:
                logger.warning("Error mapping %s %s: %s", method.upper(), path, exc)
                diagnostics.append(
                    Diagnostic(
                        path=f"paths.{path}.{method}",
                        message=_mapping_message(method, path, exc),
                        severity=Severity.WARNING,
                    )
                )

    return endpoints, diagnostics


def endpoint_id(method: str, path: str, operation_id: Optional[str] = None) -> str:
    """Derive the stable ID of an endpoint.

    Args:
        method: HTTP method (any case).
        path: The path template, e.g. ``/pets/{petId}``.
        operation_id: The operation's ``operationId``, if any.

    Returns:
        ``kebab_case(operation_id)`` when it yields a non-empty slug,
        otherwise ``"<method>-<path>"`` with ``/`` replaced by ``-`` and
        braces by ``_`` (``get--pets-_petId_``).

    Example::

        >>> endpoint_id("get", "/pets", "listPets")
        'list-pets'
        >>> endpoint_id("GET", "/pets/{petId}")
        'get--pets-_petId_'
    """
    if operation_id:
        slug = kebab_case(str(operation_id))
        if slug:
            return slug
    synthesized = path.replace("/", "-")
    synthesized = re.sub(r"[{}]", "_", synthesized)
    return f"{method.lower()}-{synthesized}"


def kebab_case(text: str) -> str:
    """Split *text* into words at case, digit, and punctuation boundaries and join with ``-``.

    >>> kebab_case("listPetsByID")
    'list-pets-by-id'
    >>> kebab_case("get_user v2")
    'get-user-v-2'
    """
    return "-".join(word.lower() for word in _WORD_RE.findall(text))


# ---------------------------------------------------------------------------
# Per-operation mapping
# ---------------------------------------------------------------------------


def _map_operation(
    path: str,
    method: str,
    operation: Any,
    default_produces: Any = None,
) -> Endpoint:
    """Build one :class:`Endpoint` from an operation object.

    Raises:
        OperationMappingError: When a section has the wrong container type.
        ValidationError: When a field cannot be coerced into the model.
    """
    if not isinstance(operation, dict):
        raise OperationMappingError(
            "operation", f"operation must be an object, got {type(operation).__name__}"
        )

    raw_params = operation.get("parameters") or []
    if not isinstance(raw_params, list):
        raise OperationMappingError("parameters", "parameters must be a list")

    raw_responses = operation.get("responses") or {}
    if not isinstance(raw_responses, dict):
        raise OperationMappingError("responses", "responses must be an object")

    produces = operation.get("produces") or default_produces
    tags = operation.get("tags") or []

    return Endpoint(
        id=endpoint_id(method, path, operation.get("operationId")),
        method=method.upper(),
        path=path,
        summary=operation.get("summary") or "",
        description=operation.get("description") or "",
        tags=[str(t) for t in tags] if isinstance(tags, list) else [],
        parameters=_extract_parameters(raw_params),
        request_body=_extract_request_body(operation.get("requestBody"), raw_params),
        responses=_extract_responses(raw_responses, produces),
    )


def _extract_parameters(raw_params: list[Any]) -> list[Parameter]:
    """Convert raw parameter objects into :class:`Parameter` models.

    Swagger 2 ``in: body`` parameters are skipped here; they become the
    request body instead.

    Raises:
        OperationMappingError: If an entry is not an object.
    """
    parameters: list[Parameter] = []
    for param in raw_params:
        if not isinstance(param, dict):
            raise OperationMappingError(
                "parameters", f"parameter must be an object, got {type(param).__name__}"
            )
        if param.get("in") == "body":
            continue

        schema = param.get("schema")
        if not isinstance(schema, dict):
            schema = None
        source = schema if schema is not None else param

        param_format = source.get("format")
        parameters.append(
            Parameter(
                name=str(param.get("name") or ""),
                location=str(param.get("in") or ""),
                description=param.get("description") or "",
                required=bool(param.get("required", False)),
                type=schema_type_name(source, default="string"),
                format=str(param_format) if param_format is not None else None,
                schema_=schema,
            )
        )
    return parameters


def _extract_request_body(body: Any, raw_params: list[Any]) -> Optional[RequestBody]:
    """Extract ``requestBody`` (OpenAPI 3) or the ``in: body`` parameter (Swagger 2).

    Raises:
        OperationMappingError: If ``requestBody`` is present but not an object.
    """
    if body is not None:
        if not isinstance(body, dict):
            raise OperationMappingError("requestBody", "requestBody must be an object")
        return RequestBody(
            description=body.get("description") or "",
            required=bool(body.get("required", False)),
            content=resolve_content(body.get("content")),
        )

    for param in raw_params:
        if isinstance(param, dict) and param.get("in") == "body":
            return RequestBody(
                description=param.get("description") or "",
                required=bool(param.get("required", False)),
                content=MediaContent(type="application/json", schema_=param.get("schema")),
            )
    return None


def _extract_responses(raw_responses: dict[Any, Any], produces: Any) -> list[ResponseDescriptor]:
    """Extract one :class:`ResponseDescriptor` per status code.

    A string-valued entry is taken as the description.  An object-valued
    entry takes its ``content`` from the first media type; a Swagger 2
    response-level ``schema`` is used when there is no ``content``.
    """
    responses: list[ResponseDescriptor] = []
    for status_code, response in raw_responses.items():
        if isinstance(response, str):
            responses.append(
                ResponseDescriptor(status_code=str(status_code), description=response)
            )
            continue
        if not isinstance(response, dict):
            responses.append(ResponseDescriptor(status_code=str(status_code)))
            continue

        content = resolve_content(response.get("content"))
        if content is None and isinstance(response.get("schema"), dict):
            media_type = produces[0] if isinstance(produces, list) and produces else "application/json"
            content = MediaContent(type=str(media_type), schema_=response["schema"])

        responses.append(
            ResponseDescriptor(
                status_code=str(status_code),
                description=response.get("description") or "",
                content=content,
            )
        )
    return responses


def resolve_content(content: Any) -> Optional[MediaContent]:
    """Take the first media type of a ``content`` map.

    Returns:
        ``None`` when *content* is missing, not a mapping, or empty.
    """
    if not isinstance(content, dict) or not content:
        return None
    media_type, media = next(iter(content.items()))
    schema = media.get("schema") if isinstance(media, dict) else None
    return MediaContent(type=str(media_type), schema_=schema)


def schema_type_name(schema: Any, default: str = "any") -> str:
    """Return a display type for *schema*.

    Handles OpenAPI 3.1 type arrays (``["string", "null"]``) by taking the
    first non-null entry, infers ``object``/``array`` from ``properties``/
    ``items``, and names a ``$ref`` by its final segment.
    """
    if not isinstance(schema, dict):
        return default

    type_value = schema.get("type")
    if isinstance(type_value, list):
        non_null = [str(t) for t in type_value if t != "null"]
        type_value = non_null[0] if non_null else None
    if type_value:
        return str(type_value)

    ref = schema.get("$ref")
    if isinstance(ref, str) and ref:
        return ref.rstrip("/").rsplit("/", 1)[-1] or default
    if isinstance(schema.get("properties"), dict):
        return "object"
    if "items" in schema:
        return "array"
    return default


def _mapping_message(method: str, path: str, exc: Exception) -> str:
    section = getattr(exc, "section", None)
    template = _SECTION_MESSAGES.get(section or "")
    if template is None:
        text = str(exc)
        for key in ("parameters", "responses", "requestBody"):
            if key in text:
                template = _SECTION_MESSAGES[key]
                break
    if template is None:
        template = "Error processing endpoint {method} {path}"
    return template.format(method=method.upper(), path=path)
