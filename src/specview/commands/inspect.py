"""Inspect commands -- validate a document and list what it defines.

Provides the ``specview inspect`` sub-command group:

* ``validate`` -- structural and resolver diagnostics; exits 9 when any
  diagnostic has error severity.
* ``endpoints`` -- one row per extracted operation.
* ``info`` -- title, versions, and counts.
* ``classify`` -- run the error classifier over a raw message.

All document commands take a ``SOURCE`` (file, URL, ``-``) or ``--doc ID``.
"""

from __future__ import annotations

from typing import Optional

import typer

from specview.commands.source import exit_on_error, fail_on_error, load_document, open_session
from specview.exit_codes import EXIT_VALIDATION_FAILURE
from specview.output import get_output, info, success


inspect_app = typer.Typer(no_args_is_help=True)


@inspect_app.command("validate")
def inspect_validate(
    ctx: typer.Context,
    source: Optional[str] = typer.Argument(None, help="Spec file path, URL, or '-' for stdin."),
    doc: Optional[str] = typer.Option(None, "--doc", "-d", help="Library document ID."),
) -> None:
    """Validate a document and list its diagnostics.

    Prints one row per diagnostic on stdout and a summary with fix
    suggestions on stderr.

    Example::

        specview inspect validate openapi.yaml
        specview --json inspect validate --doc 3f2a9c1b7d4e
    """
    from specview.parser.classifier import suggest_fix, summarize_diagnostics

    with exit_on_error():
        document = load_document(source, doc)
        session = open_session(ctx, document)
    result = session.result
    assert result is not None

    output = get_output()
    if result.diagnostics:
        rows = [
            [d.severity.value, d.path or "-", d.message, suggest_fix(d) or ""]
            for d in result.diagnostics
        ]
        output.print_table(
            ["Severity", "Path", "Message", "Suggestion"],
            rows,
            title=f"{document.name} -- Diagnostics ({len(rows)})",
        )
        info(summarize_diagnostics(result.diagnostics))
    else:
        success(f"{document.name}: no problems found ({result.spec_version_label})")

    if result.error:
        output.error(result.error)
    if result.has_errors:
        raise typer.Exit(code=EXIT_VALIDATION_FAILURE)


@inspect_app.command("endpoints")
def inspect_endpoints(
    ctx: typer.Context,
    source: Optional[str] = typer.Argument(None, help="Spec file path, URL, or '-' for stdin."),
    doc: Optional[str] = typer.Option(None, "--doc", "-d", help="Library document ID."),
    tag: Optional[str] = typer.Option(None, "--tag", "-t", help="Only endpoints with this tag."),
) -> None:
    """List the operations defined by a document.

    Example::

        specview inspect endpoints openapi.yaml --tag pets
    """
    with exit_on_error():
        document = load_document(source, doc)
        session = open_session(ctx, document)
    result = session.result
    assert result is not None
    fail_on_error(result)

    endpoints = result.endpoints
    if tag:
        endpoints = [e for e in endpoints if tag in e.tags]

    output = get_output()
    output.print_diagnostics(result.diagnostics, suggestions=False)
    if not endpoints:
        info("No endpoints found.")
        return

    rows = [
        [
            e.method,
            e.path,
            e.id,
            e.summary or "-",
            ", ".join(r.status_code for r in e.responses) or "-",
        ]
        for e in endpoints
    ]
    output.print_table(
        ["Method", "Path", "ID", "Summary", "Responses"],
        rows,
        title=f"{result.title or document.name} -- Endpoints ({len(rows)})",
    )


@inspect_app.command("info")
def inspect_info(
    ctx: typer.Context,
    source: Optional[str] = typer.Argument(None, help="Spec file path, URL, or '-' for stdin."),
    doc: Optional[str] = typer.Option(None, "--doc", "-d", help="Library document ID."),
) -> None:
    """Show title, versions, and counts for a document.

    Example::

        specview inspect info https://petstore3.swagger.io/api/v3/openapi.json
    """
    with exit_on_error():
        document = load_document(source, doc)
        session = open_session(ctx, document)
    result = session.result
    assert result is not None

    tags = sorted({t for e in result.endpoints for t in e.tags})
    data = {
        "name": document.name,
        "title": result.title or None,
        "version": result.api_version or None,
        "spec_version": result.spec_version_label,
        "endpoints": len(result.endpoints),
        "errors": sum(1 for d in result.diagnostics if d.severity.value == "error"),
        "warnings": sum(1 for d in result.diagnostics if d.severity.value == "warning"),
        "tags": ", ".join(tags) if tags else None,
    }
    if result.error:
        data["error"] = result.error
    get_output().print_structured(data)


@inspect_app.command("classify")
def inspect_classify(
    message: str = typer.Argument(..., help="Raw resolver or validator error message."),
) -> None:
    """Classify a raw error message the way the parse pipeline does.

    Example::

        specview inspect classify "Could not resolve reference \\$ref #/x"
    """
    from specview.parser.classifier import classify_error

    diagnosis = classify_error(message)
    get_output().print_structured(diagnosis.model_dump(mode="json"))
