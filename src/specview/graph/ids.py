"""Deterministic node identities.

``make_id(parent, key)`` is a pure function: the sanitized parent ID, a
hyphen, and the sanitized key.  :class:`IdAllocator` wraps it for one graph
instance and guarantees uniqueness:

* the same ``(parent, key)`` pair always gets the same ID back, unless
  the caller tells siblings apart with a ``slot``;
* a *different* pair that sanitizes to an already-issued ID gets a
  ``_2``, ``_3``, ... suffix in allocation order;
* an empty key gets a short random suffix, the only non-deterministic case.
"""

from __future__ import annotations

import re
import uuid
from typing import Any, Optional

_UNSAFE_RE = re.compile(r"[\s./{}:]")


def sanitize(value: Any) -> str:
    """Replace whitespace and ``./{}:`` characters with ``_``.

    >>> sanitize("/pets/{petId}")
    '_pets__petId_'
    """
    return _UNSAFE_RE.sub("_", str(value))


def make_id(parent: str, key: Any) -> str:
    """Join a parent ID and a local key into a child ID.

    >>> make_id("endpoint-list-pets", "response 200")
    'endpoint-list-pets-response_200'
    """
    return f"{sanitize(parent)}-{sanitize(key)}"


class IdAllocator:
    """Issue unique, repeatable IDs for one graph."""

    def __init__(self) -> None:
        self._by_pair: dict[tuple[str, str, Optional[int]], str] = {}
        self._issued: set[str] = set()

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._issued

    def allocate(self, parent: str, key: Any, slot: Optional[int] = None) -> str:
        """Return the ID for ``(parent, key)``.

        Siblings that may legitimately share a key (two operations with the
        same ``operationId``) pass their position as *slot*, so each gets
        its own ID while a repeat call for the same position stays stable.
        """
        key_text = "" if key is None else str(key)
        pair = (parent, key_text, slot)
        if pair in self._by_pair:
            return self._by_pair[pair]

        if key_text.strip():
            base = make_id(parent, key_text)
        else:
            base = make_id(parent, uuid.uuid4().hex[:6])

        node_id = base
        suffix = 2
        while node_id in self._issued:
            node_id = f"{base}_{suffix}"
            suffix += 1

        self._by_pair[pair] = node_id
        self._issued.add(node_id)
        return node_id

    def reserve(self, node_id: str) -> str:
        """Mark a fixed ID (the root) as issued."""
        self._issued.add(node_id)
        return node_id
