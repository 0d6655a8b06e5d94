"""Persistent state: the global config file and the document library.

Both live in per-user directories.  Linux and the BSDs follow the XDG base
directory variables; every other platform keeps everything under
``~/.specview``.

=================  ==========================================
``config.json``    :class:`~specview.models.GlobalConfig`
``library.json``   list of :class:`~specview.models.SpecDocument`
``logs/``          crash logs written by :func:`specview.app.main`
=================  ==========================================

Writes go through :func:`_atomic_write` so an interrupted save never
leaves a truncated file behind.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
import time
import uuid
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from specview.exceptions import ConfigError, NotFoundError
from specview.models import GlobalConfig, SpecDocument, SpecFormat

_APP_NAME = "specview"
_CONFIG_FILENAME = "config.json"
_LIBRARY_FILENAME = "library.json"

ENV_RESOLVE_TIMEOUT = "SPECVIEW_RESOLVE_TIMEOUT"


# --- Directories ---


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _user_dir(xdg_var: str, xdg_default: str, fallback: str) -> Path:
    """Pick the XDG location or the ``~/.specview`` one and make sure it exists."""
    if _is_xdg_platform():
        base = os.environ.get(xdg_var) or str(Path.home() / xdg_default)
        path = Path(base) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}" / fallback
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """``$XDG_CONFIG_HOME/specview`` (``~/.config/specview``) or ``~/.specview``."""
    return _user_dir("XDG_CONFIG_HOME", ".config", "")


def get_data_dir() -> Path:
    """``$XDG_DATA_HOME/specview`` (``~/.local/share/specview``) or ``~/.specview/data``."""
    return _user_dir("XDG_DATA_HOME", os.path.join(".local", "share"), "data")


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* via a sibling temp file and ``os.replace``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    handle, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(handle, "w", encoding="utf-8") as stream:
            stream.write(data)
            stream.flush()
            os.fsync(stream.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Read ``config.json``; a missing file means all defaults.

    Raises:
        ConfigError: The file is not JSON or does not validate.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        return GlobalConfig.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    _atomic_write(_global_config_path(), config.model_dump_json(indent=2) + "\n")


def resolve_config(
    cli_format: Optional[str] = None,
    cli_timeout: Optional[float] = None,
) -> GlobalConfig:
    """Layer command-line values and ``SPECVIEW_RESOLVE_TIMEOUT`` over ``config.json``.

    A flag beats the environment variable, which beats the file, which
    beats the built-in defaults.

    Raises:
        ConfigError: The file is broken or a timeout is not a positive number.
    """
    config = load_global_config()
    overrides = [(os.environ.get(ENV_RESOLVE_TIMEOUT) or None, ENV_RESOLVE_TIMEOUT)]
    overrides.append((cli_timeout, "--timeout"))
    for value, source in overrides:
        if value is not None:
            config.resolver.timeout_seconds = _parse_timeout(value, source)
    if cli_format is not None:
        config.output.format = cli_format
    return config


def _parse_timeout(value: Any, source: str) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid timeout from {source}: {value!r}") from exc
    if timeout <= 0:
        raise ConfigError(f"Timeout from {source} must be positive, got {value!r}")
    return timeout


# --- Document library ---


def _library_path() -> Path:
    return get_data_dir() / _LIBRARY_FILENAME


def list_documents() -> list[SpecDocument]:
    """Return every stored document, in insertion order.

    A library file holding a single object instead of a list is accepted.

    Raises:
        ConfigError: If the library file cannot be parsed.
    """
    path = _library_path()
    if not path.is_file():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Failed to parse stored library at {path}: {exc}") from exc

    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ConfigError(f"Invalid data format in library file {path}")

    try:
        return [SpecDocument.model_validate(item) for item in data]
    except ValidationError as exc:
        raise ConfigError(f"Invalid document record in {path}: {exc}") from exc


def search_documents(term: str = "") -> list[SpecDocument]:
    """Return stored documents matching *term*, favorites first, newest first.

    A document matches when *term* occurs, ignoring case, in its name or in
    any of its tags.  An empty term matches everything.  Documents without a
    ``last_modified`` stamp sort after stamped ones of the same favorite
    state.

    Raises:
        ConfigError: If the library file cannot be parsed.
    """
    needle = term.lower()
    matches = [
        doc
        for doc in list_documents()
        if needle in doc.name.lower() or any(needle in tag.lower() for tag in doc.tags)
    ]
    return sorted(matches, key=lambda doc: (not doc.favorite, -(doc.last_modified or 0)))


def _write_library(documents: list[SpecDocument]) -> None:
    data = [doc.model_dump(mode="json") for doc in documents]
    _atomic_write(_library_path(), json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def get_document(doc_id: str) -> SpecDocument:
    """Look up a stored document by ID.

    Raises:
        NotFoundError: If no document has that ID.
    """
    for doc in list_documents():
        if doc.id == doc_id:
            return doc
    raise NotFoundError(f"Document '{doc_id}' not found in library")


def add_document(
    name: str,
    content: str,
    format: SpecFormat,
    version: str = "1.0.0",
    tags: Optional[list[str]] = None,
) -> SpecDocument:
    """Create and store a new document record with a fresh ID."""
    doc = SpecDocument(
        id=uuid.uuid4().hex[:12],
        name=name,
        content=content,
        format=format,
        version=version,
        last_modified=int(time.time() * 1000),
        tags=list(tags or []),
    )
    documents = list_documents()
    documents.append(doc)
    _write_library(documents)
    return doc


def save_document(document: SpecDocument) -> SpecDocument:
    """Replace the stored record with the same ID, stamping ``last_modified``.

    Raises:
        NotFoundError: If no document has that ID.
    """
    documents = list_documents()
    for index, existing in enumerate(documents):
        if existing.id == document.id:
            updated = document.model_copy(update={"last_modified": int(time.time() * 1000)})
            documents[index] = updated
            _write_library(documents)
            return updated
    raise NotFoundError(f"Document '{document.id}' not found in library")


def remove_document(doc_id: str) -> SpecDocument:
    """Delete a stored document and return it.

    Raises:
        NotFoundError: If no document has that ID.
    """
    documents = list_documents()
    remaining = [doc for doc in documents if doc.id != doc_id]
    if len(remaining) == len(documents):
        raise NotFoundError(f"Document '{doc_id}' not found in library")
    removed = next(doc for doc in documents if doc.id == doc_id)
    _write_library(remaining)
    return removed
