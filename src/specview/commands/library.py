"""Library commands -- manage the stored document collection.

Provides the ``specview library`` sub-command group over the JSON document
library kept under the data directory (see :mod:`specview.config`).  Stored
documents can be passed to any document command with ``--doc ID``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import typer

from specview.commands.source import exit_on_error
from specview.output import get_output, info, print_data, success


library_app = typer.Typer(no_args_is_help=True)


def _format_timestamp(millis: Optional[int]) -> str:
    if not millis:
        return "-"
    return datetime.fromtimestamp(millis / 1000).strftime("%Y-%m-%d %H:%M")


@library_app.command("list")
def library_list(
    favorites: bool = typer.Option(False, "--favorites", help="Only favorite documents."),
    tag: Optional[str] = typer.Option(None, "--tag", "-t", help="Only documents with this tag."),
    search: str = typer.Option(
        "", "--search", "-s", help="Case-insensitive substring of the name or a tag."
    ),
) -> None:
    """List stored documents, favorites first and then most recently modified.

    Example::

        specview library list
        specview library list --search pet
        specview library list --favorites --json
    """
    from specview.config import search_documents

    with exit_on_error():
        documents = search_documents(search)

    if favorites:
        documents = [d for d in documents if d.favorite]
    if tag:
        documents = [d for d in documents if tag in d.tags]

    if not documents:
        info("No documents in the library. Add one with: specview library add <file>")
        return

    rows = [
        [
            d.id,
            d.name,
            d.format.value,
            d.version,
            "*" if d.favorite else "",
            ", ".join(d.tags),
            _format_timestamp(d.last_modified),
        ]
        for d in documents
    ]
    get_output().print_table(
        ["ID", "Name", "Format", "Version", "Favorite", "Tags", "Modified"],
        rows,
        title=f"Library ({len(rows)})",
    )


@library_app.command("add")
def library_add(
    source: str = typer.Argument(..., help="Spec file path, URL, or '-' for stdin."),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Display name (default: info.title)."),
    tags: Optional[list[str]] = typer.Option(None, "--tag", "-t", help="Tag (repeatable)."),
) -> None:
    """Store a document in the library.

    The name and version default to the document's ``info.title`` and
    ``info.version``.  The stored ID is printed on stdout.

    Example::

        specview library add openapi.yaml --tag internal
    """
    from specview.config import add_document
    from specview.parser.loader import detect_format, extract_info, load_source

    with exit_on_error():
        text, hint = load_source(source)
        details = extract_info(text)
        document = add_document(
            name=name or details["title"] or source,
            content=text,
            format=hint or detect_format(text),
            version=details["version"] or "1.0.0",
            tags=tags,
        )

    success(f"Added '{document.name}' ({document.format.value})")
    print_data(document.id)


@library_app.command("remove")
def library_remove(
    doc_id: str = typer.Argument(..., help="Document ID."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Remove a document from the library.

    Example::

        specview library remove 3f2a9c1b7d4e --force
    """
    from specview.config import get_document, remove_document

    with exit_on_error():
        document = get_document(doc_id)
        if not force:
            confirmed = typer.confirm(f"Remove '{document.name}' from the library?")
            if not confirmed:
                info("Cancelled.")
                raise typer.Exit()
        remove_document(doc_id)

    success(f"Removed '{document.name}'")


@library_app.command("show")
def library_show(
    doc_id: str = typer.Argument(..., help="Document ID."),
    raw: bool = typer.Option(False, "--raw", help="Print the stored content only."),
) -> None:
    """Show a stored document's metadata, or its content with ``--raw``.

    Example::

        specview library show 3f2a9c1b7d4e
        specview library show 3f2a9c1b7d4e --raw > openapi.yaml
    """
    import json

    from specview.config import get_document

    with exit_on_error():
        document = get_document(doc_id)

    if raw:
        content = document.content
        if not isinstance(content, str):
            content = json.dumps(content, indent=2, ensure_ascii=False)
        print_data(content)
        return

    data = document.model_dump(mode="json", exclude={"content"})
    data["last_modified"] = _format_timestamp(document.last_modified)
    data["size"] = len(document.content) if isinstance(document.content, str) else None
    get_output().print_structured(data)


@library_app.command("favorite")
def library_favorite(
    doc_id: str = typer.Argument(..., help="Document ID."),
    off: bool = typer.Option(False, "--off", help="Clear the favorite flag instead."),
) -> None:
    """Mark a document as favorite (or clear the mark with ``--off``).

    Example::

        specview library favorite 3f2a9c1b7d4e
    """
    from specview.config import get_document, save_document

    with exit_on_error():
        document = get_document(doc_id)
        document = save_document(document.model_copy(update={"favorite": not off}))

    state = "marked as favorite" if document.favorite else "no longer a favorite"
    success(f"'{document.name}' {state}")


@library_app.command("convert")
def library_convert(
    doc_id: str = typer.Argument(..., help="Document ID."),
    to: str = typer.Option(..., "--to", help="Target format: json or yaml."),
    save: bool = typer.Option(False, "--save", help="Store the converted content."),
) -> None:
    """Convert a stored document between YAML and JSON.

    Prints the converted text unless ``--save`` is given, in which case the
    stored record is updated in place.

    Example::

        specview library convert 3f2a9c1b7d4e --to json
        specview library convert 3f2a9c1b7d4e --to yaml --save
    """
    import json

    from specview.config import get_document, save_document
    from specview.exceptions import InvalidUsageError
    from specview.models import SpecFormat
    from specview.parser.loader import convert_format

    with exit_on_error():
        try:
            target = SpecFormat(to.lower())
        except ValueError:
            raise InvalidUsageError(f"Unknown format '{to}'. Use json or yaml.") from None

        document = get_document(doc_id)
        content = document.content
        if not isinstance(content, str):
            content = json.dumps(content, indent=2, ensure_ascii=False)
        converted = convert_format(content, target)

        if save:
            document = save_document(
                document.model_copy(update={"content": converted, "format": target})
            )

    if save:
        success(f"Converted '{document.name}' to {target.value}")
    else:
        print_data(converted)
