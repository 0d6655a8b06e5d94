"""Shared plumbing for commands that operate on one document.

Every document-reading command accepts either a positional ``SOURCE`` (file
path, URL, or ``-`` for stdin) or ``--doc ID`` naming a library record.
:func:`load_document` turns that choice into a
:class:`~specview.models.SpecDocument`; :func:`open_session` runs the parse
pipeline over it and returns the populated
:class:`~specview.pipeline.SpecSession`.
"""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

import typer

from specview.exceptions import InvalidUsageError, SpecviewError
from specview.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_RESOLUTION_ERROR,
    EXIT_SPEC_PARSE_ERROR,
)
from specview.models import FailureStage, ParseResult, SpecDocument
from specview.output import debug, error, get_output

_FAILURE_EXIT_CODES = {
    FailureStage.PARSE: EXIT_SPEC_PARSE_ERROR,
    FailureStage.RESOLVE: EXIT_RESOLUTION_ERROR,
}


def load_document(source: Optional[str], doc_id: Optional[str]) -> SpecDocument:
    """Resolve the command's document from a source or a library ID.

    Raises:
        InvalidUsageError: If neither or both of *source* and *doc_id* are
            given.
        NotFoundError: If *doc_id* is not in the library.
        SpecParseError: If *source* cannot be read.
    """
    from specview.config import get_document
    from specview.parser.loader import detect_format, load_source

    if source and doc_id:
        raise InvalidUsageError("Pass either SOURCE or --doc, not both")
    if doc_id:
        return get_document(doc_id)
    if not source:
        raise InvalidUsageError("Provide a SOURCE (file, URL, or '-') or --doc ID")

    text, hint = load_source(source)
    name = "stdin" if source == "-" else (Path(source).name or source)
    return SpecDocument(
        id=f"source:{source}",
        name=name,
        content=text,
        format=hint or detect_format(text),
    )


def _settings(ctx: typer.Context) -> dict[str, Any]:
    obj = ctx.obj if isinstance(ctx.obj, dict) else {}
    return obj


def open_session(ctx: typer.Context, document: SpecDocument):  # noqa: ANN201
    """Parse *document* with the effective configuration.

    Returns:
        A :class:`~specview.pipeline.SpecSession` whose ``result`` and
        ``view`` are populated.
    """
    from specview.config import resolve_config
    from specview.pipeline import ParsePipeline, SpecSession

    config = resolve_config(cli_timeout=_settings(ctx).get("timeout"))
    pipeline = ParsePipeline.from_config(config.resolver)
    session = SpecSession(pipeline, layout=config.layout)

    debug(f"Parsing {document.name} (timeout {pipeline.timeout:g}s)")
    asyncio.run(session.select(document))
    return session


@contextmanager
def exit_on_error() -> Iterator[None]:
    """Print a :class:`SpecviewError` and exit with its code."""
    try:
        yield
    except SpecviewError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def fail_on_error(result: ParseResult) -> None:
    """Report a failed parse cycle and exit.

    Exits with :data:`EXIT_SPEC_PARSE_ERROR` when the text never became a
    document, with :data:`EXIT_RESOLUTION_ERROR` when resolution failed,
    and with :data:`EXIT_GENERIC_FAILURE` when the cycle itself broke.
    Does nothing for a successful cycle.
    """
    if result.error is None:
        return

    output = get_output()
    output.print_diagnostics(result.diagnostics)
    output.error(result.error)
    raise typer.Exit(code=_FAILURE_EXIT_CODES.get(result.failure, EXIT_GENERIC_FAILURE))
