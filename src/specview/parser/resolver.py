"""Reference-resolution collaborator: inline ``$ref`` pointers and validate.

The parse pipeline treats resolution as a black box with a one-line
contract: *normalized document in, resolved document or failure out*.
:class:`ReferenceResolver` is that contract.  Two implementations ship here:

* :class:`DefaultResolver` -- inlines internal references with
  :func:`resolve_refs` and then, unless disabled, validates the original
  document with ``openapi-spec-validator``.  Both steps are synchronous and
  run in a worker thread so the event loop stays responsive.
* :class:`CallableResolver` -- adapts any sync or async callable (useful for
  tests and for plugging in a different resolver library).

:func:`resolve_refs` performs a recursive deep-copy traversal, replacing
every ``{"$ref": "#/..."}`` with the referenced object.  Circular references
are detected via a ``seen`` set and left unresolved, so a self-referencing
schema keeps its ``$ref`` dict at the cycle point.  The graph builder relies
on that: a surviving ``$ref`` becomes a terminal reference node.
"""

from __future__ import annotations

import abc
import asyncio
import copy
import inspect
from typing import Any, Awaitable, Callable, Union

from openapi_spec_validator import validate as validate_openapi

from specview.exceptions import ResolutionError


class ReferenceResolver(abc.ABC):
    """Interface of the reference-resolution collaborator."""

    @abc.abstractmethod
    async def resolve(self, document: dict[str, Any]) -> dict[str, Any]:
        """Return a resolved copy of *document*.

        Implementations must not mutate *document* and should raise
        :class:`~specview.exceptions.ResolutionError` (or any exception
        with a meaningful message) on failure.
        """


class DefaultResolver(ReferenceResolver):
    """Inline internal references, then validate with openapi-spec-validator.

    Args:
        validate_schema: When ``False`` the validation step is skipped and
            only reference inlining is performed.
    """

    def __init__(self, validate_schema: bool = True) -> None:
        self._validate_schema = validate_schema

    async def resolve(self, document: dict[str, Any]) -> dict[str, Any]:
        return await asyncio.to_thread(self._resolve_sync, document)

    def _resolve_sync(self, document: dict[str, Any]) -> dict[str, Any]:
        resolved = resolve_refs(document)
        if self._validate_schema:
            try:
                validate_openapi(document)
            except Exception as exc:
                # jsonschema errors carry a short ``message``; str() embeds
                # the whole failing schema and instance.
                message = getattr(exc, "message", None) or str(exc)
                raise ResolutionError(str(message)) from exc
        return resolved


ResolverCallable = Callable[
    [dict[str, Any]], Union[dict[str, Any], Awaitable[dict[str, Any]]]
]


class CallableResolver(ReferenceResolver):
    """Adapt a plain function or coroutine function to :class:`ReferenceResolver`.

    Synchronous callables run in a worker thread.
    """

    def __init__(self, func: ResolverCallable) -> None:
        self._func = func

    async def resolve(self, document: dict[str, Any]) -> dict[str, Any]:
        if inspect.iscoroutinefunction(self._func):
            return await self._func(document)
        result = await asyncio.to_thread(self._func, document)
        if inspect.isawaitable(result):
            result = await result
        return result


# ---------------------------------------------------------------------------
# $ref inlining
# ---------------------------------------------------------------------------


def resolve_refs(spec: dict[str, Any]) -> dict[str, Any]:
    """Resolve all internal ``$ref`` JSON Reference pointers in *spec*.

    Creates a deep copy of the input and recursively replaces every
    ``{"$ref": "#/..."}`` dict with the object it points to.

    Args:
        spec: The normalized document.

    Returns:
        A **new** dictionary with all resolvable ``$ref`` pointers replaced
        by their targets.  Circular references keep their ``$ref`` dict.

    Raises:
        ResolutionError: If a ``$ref`` points to a missing location or is
            external (does not start with ``#/``).

    Example::

        resolved = resolve_refs(document)
        # resolved["paths"]["/pets"]["get"]["responses"]["200"]["content"]
        # now holds the inlined schema instead of a $ref pointer.
    """
    root = copy.deepcopy(spec)
    return _deep_resolve(root, root, seen=None)


def _resolve_ref(ref: str, root: dict[str, Any]) -> Any:
    """Resolve a single ``$ref`` string against the root document.

    Handles RFC 6901 escaping (``~0`` for ``~``, ``~1`` for ``/``).

    Raises:
        ResolutionError: If the reference is external or any pointer
            segment does not exist.
    """
    if not isinstance(ref, str) or not ref.startswith("#/"):
        raise ResolutionError(
            f"Could not resolve reference $ref {ref}: "
            "only internal references (#/...) are supported"
        )

    segments = ref[2:].split("/")

    current: Any = root
    for segment in segments:
        segment = segment.replace("~1", "/").replace("~0", "~")

        if isinstance(current, dict):
            if segment not in current:
                raise ResolutionError(
                    f"Could not resolve reference $ref {ref}: "
                    f"key '{segment}' not found"
                )
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise ResolutionError(
                    f"Could not resolve reference $ref {ref}: "
                    f"invalid array index '{segment}'"
                ) from exc
        else:
            raise ResolutionError(
                f"Could not resolve reference $ref {ref}: "
                f"cannot navigate into {type(current).__name__}"
            )

    return current


def _deep_resolve(obj: Any, root: dict[str, Any], seen: set[str] | None = None) -> Any:
    """Recursively resolve all ``$ref`` pointers within *obj*.

    ``seen`` holds the references on the current resolution stack; a copy is
    made per branch so sibling references do not interfere.
    """
    if seen is None:
        seen = set()

    if isinstance(obj, dict):
        if "$ref" in obj:
            ref = obj["$ref"]
            if isinstance(ref, str) and ref in seen:
                return obj
            resolved = _resolve_ref(ref, root)
            return _deep_resolve(resolved, root, seen | {ref})

        return {key: _deep_resolve(value, root, seen) for key, value in obj.items()}

    if isinstance(obj, list):
        return [_deep_resolve(item, root, seen) for item in obj]

    return obj
