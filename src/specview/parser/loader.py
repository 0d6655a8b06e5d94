"""Load document text and normalize it into an in-memory tree.

This module owns the two ends of ingestion:

* **I/O** -- :func:`load_source` fetches raw text from a URL, a local file,
  or stdin and returns it together with a format hint derived from the
  content type or file extension.
* **Normalization** -- :func:`normalize_content` turns raw text (or an
  already-parsed object) into a Python tree.  Format detection is purely
  lexical (:func:`detect_format`): text starting with ``{`` or ``[`` is
  JSON, anything else is YAML.  The declared or detected format is tried
  first and the other one second, so a document whose stored ``format``
  disagrees with its content still loads.

It also carries two helpers for the document library: :func:`convert_format`
(YAML <-> JSON) and :func:`extract_info` (best-effort title/version).
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Optional

import httpx
import yaml

from specview.exceptions import SpecParseError
from specview.models import SpecFormat

_DEFAULT_TITLE = "Untitled Spec"
_DEFAULT_VERSION = "1.0.0"


# ---------------------------------------------------------------------------
# I/O
# ---------------------------------------------------------------------------


def load_source(source: str) -> tuple[str, Optional[SpecFormat]]:
    """Load raw document text from URL, file path, or stdin (``'-'``).

    Args:
        source: A URL (http/https), file path, or ``'-'`` for stdin.

    Returns:
        A ``(text, hint)`` tuple.  ``hint`` is the format suggested by the
        content type or file extension, or ``None`` when nothing suggests one.

    Raises:
        SpecParseError: If the source cannot be read or is empty.
    """
    if source == "-":
        return _load_from_stdin(), None
    elif source.startswith(("http://", "https://")):
        return _load_from_url(source)
    else:
        return _load_from_file(source)


def _load_from_stdin() -> str:
    """Read all of stdin.

    Raises:
        SpecParseError: If stdin cannot be read or holds only whitespace.
    """
    try:
        content = sys.stdin.read()
    except Exception as exc:
        raise SpecParseError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise SpecParseError("No input received from stdin")
    return content


def _load_from_url(url: str) -> tuple[str, Optional[SpecFormat]]:
    """Fetch a document over HTTP(S).

    The response content type is used as the format hint.

    Raises:
        SpecParseError: On HTTP errors or network failures.
    """
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SpecParseError(
            f"HTTP {exc.response.status_code} fetching spec from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SpecParseError(f"Failed to fetch spec from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint: Optional[SpecFormat] = None
    if "json" in content_type:
        hint = SpecFormat.JSON
    elif "yaml" in content_type or "yml" in content_type:
        hint = SpecFormat.YAML
    return response.text, hint


def _load_from_file(path: str) -> tuple[str, Optional[SpecFormat]]:
    """Read a local file, using its extension as the format hint.

    Raises:
        SpecParseError: If the file is missing, unreadable, or empty.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise SpecParseError(f"Spec file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecParseError(f"Failed to read spec file {path}: {exc}") from exc

    if not content.strip():
        raise SpecParseError(f"Spec file is empty: {path}")

    suffix = file_path.suffix.lower()
    hint: Optional[SpecFormat] = None
    if suffix == ".json":
        hint = SpecFormat.JSON
    elif suffix in (".yaml", ".yml"):
        hint = SpecFormat.YAML
    return content, hint


# ---------------------------------------------------------------------------
# Format detection & normalization
# ---------------------------------------------------------------------------


def detect_format(text: str) -> SpecFormat:
    """Classify raw text as JSON or YAML by its first significant character.

    Args:
        text: Raw document text.

    Returns:
        :attr:`SpecFormat.JSON` when the trimmed text starts with ``{`` or
        ``[``, otherwise :attr:`SpecFormat.YAML`.
    """
    stripped = text.strip()
    if stripped.startswith(("{", "[")):
        return SpecFormat.JSON
    return SpecFormat.YAML


def normalize_content(
    content: Any,
    declared_format: Optional[SpecFormat | str] = None,
) -> Any:
    """Parse document content into a Python tree.

    Mappings and lists are returned unchanged (the same object, never
    mutated).  Strings are parsed with the declared format -- or the
    detected one when nothing is declared -- and, on failure, with the
    other format.

    Args:
        content: Raw text or an already-parsed object.
        declared_format: Format the caller believes the text is in.  Only a
            hint: a wrong declaration costs one failed parse attempt.

    Returns:
        The parsed tree.  Mapping keys parsed from YAML are always strings,
        so an unquoted ``200:`` becomes ``"200"``.  Empty YAML yields ``None``.

    Raises:
        SpecParseError: If the content is neither text nor an object, or if
            both parsers reject the text.  The message carries both
            underlying parser errors.
    """
    if isinstance(content, (dict, list)):
        return content
    if not isinstance(content, str):
        raise SpecParseError(
            "Invalid specification format - must be a string or object "
            f"(got {type(content).__name__})"
        )

    first = _coerce_format(declared_format) or detect_format(content)
    second = SpecFormat.YAML if first == SpecFormat.JSON else SpecFormat.JSON

    errors: list[str] = []
    for fmt in (first, second):
        try:
            return _parse_as(content, fmt)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            errors.append(f"{fmt.value.upper()} error: {exc}")

    raise SpecParseError(
        "Failed to parse spec as JSON or YAML\n  " + "\n  ".join(errors)
    )


def _coerce_format(value: Optional[SpecFormat | str]) -> Optional[SpecFormat]:
    """Turn a loose format hint into a :class:`SpecFormat`, ignoring junk."""
    if value is None or isinstance(value, SpecFormat):
        return value
    try:
        return SpecFormat(str(value).lower())
    except ValueError:
        return None


def _parse_as(content: str, fmt: SpecFormat) -> Any:
    """Parse *content* strictly as *fmt*."""
    if fmt == SpecFormat.JSON:
        return json.loads(content)
    return _string_keys(yaml.safe_load(content))


def _string_keys(node: Any) -> Any:
    """Stringify mapping keys, e.g. the ``200`` PyYAML reads from an unquoted ``200:``."""
    if isinstance(node, dict):
        return {str(key): _string_keys(value) for key, value in node.items()}
    if isinstance(node, list):
        return [_string_keys(item) for item in node]
    return node


# ---------------------------------------------------------------------------
# Library helpers
# ---------------------------------------------------------------------------


def convert_format(content: str, target: SpecFormat | str) -> str:
    """Re-serialise document text in *target* format.

    Text already in the target format (by :func:`detect_format`) is returned
    as-is.

    Args:
        content: Raw document text.
        target: ``json`` or ``yaml``.

    Returns:
        The converted text.  JSON is indented by two spaces; YAML keeps key
        order and does not wrap long lines.

    Raises:
        SpecParseError: If the text cannot be parsed or the target format is
            unknown.
    """
    target_format = _coerce_format(target)
    if target_format is None:
        raise SpecParseError(f"Unknown target format: {target}")
    if detect_format(content) == target_format:
        return content

    tree = normalize_content(content)
    if target_format == SpecFormat.JSON:
        return json.dumps(tree, indent=2, ensure_ascii=False, default=str)
    return yaml.safe_dump(
        tree, sort_keys=False, allow_unicode=True, width=float("inf")
    )


def extract_info(content: Any) -> dict[str, Optional[str]]:
    """Best-effort extraction of ``info.title``/``info.version``/``info.description``.

    Never raises: unparseable content yields the defaults.

    Args:
        content: Raw text or an already-parsed document.

    Returns:
        A dict with ``title``, ``version``, and ``description`` keys.
    """
    try:
        tree = normalize_content(content)
    except SpecParseError:
        tree = None

    info = tree.get("info") if isinstance(tree, dict) else None
    if not isinstance(info, dict):
        info = {}

    return {
        "title": str(info.get("title") or _DEFAULT_TITLE),
        "version": str(info.get("version") or _DEFAULT_VERSION),
        "description": info.get("description"),
    }
