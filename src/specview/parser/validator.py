"""Structural validation of a normalized OpenAPI/Swagger document.

:func:`validate_structure` runs a fixed, ordered rule set over a document
tree and returns a list of :class:`~specview.models.Diagnostic` records.  It
is deliberately shallow: it checks the handful of top-level fields a viewer
needs (version identifier, ``info``, ``paths``) and leaves full schema
validation to the resolver collaborator.

The validator never raises, whatever shape the input has, so a document can
be reported as invalid and still flow through endpoint extraction.
"""

from __future__ import annotations

from typing import Any

from specview.models import Diagnostic, HTTPMethod, Severity

SUPPORTED_OPENAPI_VERSIONS = frozenset({"3.0.0", "3.0.1", "3.0.2", "3.0.3", "3.1.0"})
SUPPORTED_SWAGGER_VERSION = "2.0"

_OPERATION_KEYS = frozenset(m.value for m in HTTPMethod)


def validate_structure(document: Any) -> list[Diagnostic]:
    """Check the top-level shape of *document*.

    Rules, in order (several may fire):

    1. Falsy document -> error; nothing else is checked.
    2. Non-mapping document -> error; nothing else is checked.
    3. Neither ``openapi`` nor ``swagger`` -> error.  Otherwise an
       ``openapi`` value outside the supported 3.0.x/3.1.0 set, or a
       ``swagger`` value other than ``"2.0"``, -> warning.
    4. ``info`` missing -> error.  Otherwise missing ``info.title`` and
       missing ``info.version`` -> one error each.
    5. ``paths`` missing or empty -> warning.  Non-empty ``paths`` without
       any HTTP method key -> warning on ``paths``.

    Args:
        document: The normalized document tree (possibly malformed).

    Returns:
        Diagnostics in rule order; empty for a structurally sound document.
    """
    diagnostics: list[Diagnostic] = []

    if not document:
        diagnostics.append(_error("Specification is empty or undefined"))
        return diagnostics

    if not isinstance(document, dict):
        diagnostics.append(
            _error(
                "Specification must be an object "
                f"(got {type(document).__name__})"
            )
        )
        return diagnostics

    diagnostics.extend(_check_version(document))
    diagnostics.extend(_check_info(document))
    diagnostics.extend(_check_paths(document))
    return diagnostics


def spec_version_label(document: Any) -> str:
    """Return a display label such as ``"OpenAPI 3.0.3"`` or ``"Swagger 2.0"``.

    Args:
        document: The normalized document tree.

    Returns:
        ``"Unknown"`` when no version identifier is present.
    """
    if not isinstance(document, dict):
        return "Unknown"
    if document.get("openapi"):
        return f"OpenAPI {document['openapi']}"
    if document.get("swagger"):
        return f"Swagger {document['swagger']}"
    return "Unknown"


def _check_version(document: dict[str, Any]) -> list[Diagnostic]:
    openapi = document.get("openapi")
    swagger = document.get("swagger")

    if not openapi and not swagger:
        return [
            _error(
                "Invalid API spec format: Missing OpenAPI/Swagger version identifier"
            )
        ]

    if openapi:
        if str(openapi) not in SUPPORTED_OPENAPI_VERSIONS:
            return [
                _warning(
                    f"OpenAPI version {openapi} may not be fully supported. "
                    "Recommended versions: 3.0.x or 3.1.0"
                )
            ]
    elif str(swagger) != SUPPORTED_SWAGGER_VERSION:
        return [
            _warning(
                f"Swagger version {swagger} may not be fully supported. "
                "Recommended version: 2.0"
            )
        ]
    return []


def _check_info(document: dict[str, Any]) -> list[Diagnostic]:
    info = document.get("info")
    if not info:
        return [_error('Missing required "info" object in specification')]

    # A non-mapping info has neither field.
    if not isinstance(info, dict):
        info = {}

    found: list[Diagnostic] = []
    if not info.get("title"):
        found.append(
            _error("API specification is missing required title", path="info.title")
        )
    if not info.get("version"):
        found.append(
            _error(
                "API specification is missing version information",
                path="info.version",
            )
        )
    return found


def _check_paths(document: dict[str, Any]) -> list[Diagnostic]:
    paths = document.get("paths")
    if not paths or not isinstance(paths, dict):
        return [
            _warning("API specification contains no endpoints (empty paths object)")
        ]

    has_operations = any(
        isinstance(path_item, dict)
        and any(str(key).lower() in _OPERATION_KEYS for key in path_item)
        for path_item in paths.values()
    )
    if not has_operations:
        return [
            _warning(
                "API specification contains paths but no HTTP operations "
                "(GET, POST, etc.)",
                path="paths",
            )
        ]
    return []


def _error(message: str, path: str | None = None) -> Diagnostic:
    return Diagnostic(path=path, message=message, severity=Severity.ERROR)


def _warning(message: str, path: str | None = None) -> Diagnostic:
    return Diagnostic(path=path, message=message, severity=Severity.WARNING)
