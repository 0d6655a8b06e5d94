"""Graph commands -- render or export the document graph.

* ``graph show`` prints the graph as a tree.  ``--expand`` opens containers
  in the order given (a parent must come before its children) and ``--all``
  opens everything.
* ``graph export`` writes the :class:`~specview.models.GraphModel` as JSON,
  positions included, to stdout or a file.
"""

from __future__ import annotations

from typing import Optional

import typer

from specview.commands.source import exit_on_error, fail_on_error, load_document, open_session
from specview.output import get_output, success, warning


graph_app = typer.Typer(no_args_is_help=True)


@graph_app.command("show")
def graph_show(
    ctx: typer.Context,
    source: Optional[str] = typer.Argument(None, help="Spec file path, URL, or '-' for stdin."),
    doc: Optional[str] = typer.Option(None, "--doc", "-d", help="Library document ID."),
    expand: Optional[list[str]] = typer.Option(
        None, "--expand", "-e", help="Node ID to expand (repeatable)."
    ),
    expand_all: bool = typer.Option(False, "--all", "-a", help="Expand every node."),
) -> None:
    """Print the document graph as a tree.

    Expandable nodes are marked ``+`` (collapsed) or ``-`` (expanded);
    node IDs are printed next to their labels for use with ``--expand``.

    Example::

        specview graph show openapi.yaml
        specview graph show openapi.yaml -e endpoint-list-pets
        specview --json graph show openapi.yaml --all
    """
    with exit_on_error():
        document = load_document(source, doc)
        session = open_session(ctx, document)
    assert session.result is not None and session.view is not None
    fail_on_error(session.result)

    view = session.view
    if expand_all:
        view.expand_all()
    else:
        for node_id in expand or []:
            if not view.expand(node_id) and not view.is_expanded(node_id):
                warning(f"Cannot expand '{node_id}': not a visible container node")

    get_output().print_graph(view.to_model())


@graph_app.command("export")
def graph_export(
    ctx: typer.Context,
    source: Optional[str] = typer.Argument(None, help="Spec file path, URL, or '-' for stdin."),
    doc: Optional[str] = typer.Option(None, "--doc", "-d", help="Library document ID."),
    expand_all: bool = typer.Option(False, "--all", "-a", help="Export the fully expanded graph."),
    output_path: Optional[str] = typer.Option(
        None, "--output", "-o", help="Write JSON to this file instead of stdout."
    ),
) -> None:
    """Export the graph model (nodes, edges, expansion state) as JSON.

    Example::

        specview graph export openapi.yaml --all -o graph.json
    """
    from specview.graph.layout import apply_layout
    from specview.models import GraphModel

    with exit_on_error():
        document = load_document(source, doc)
        session = open_session(ctx, document)
    assert session.result is not None and session.view is not None
    fail_on_error(session.result)

    if expand_all:
        nodes, edges, expanded = session.view.builder.build_full()
        apply_layout(nodes, session.view.layout)
        model = GraphModel(nodes=nodes, edges=edges, expansion_state=sorted(expanded))
    else:
        model = session.view.to_model()

    payload = model.model_dump_json(indent=2)
    if output_path:
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(payload + "\n")
        success(f"Wrote {len(model.nodes)} nodes and {len(model.edges)} edges to {output_path}")
    else:
        get_output().print_data(payload)
