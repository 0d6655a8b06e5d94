"""Terminal output for specview: data on stdout, everything else on stderr.

Conventions follow `clig.dev <https://clig.dev/>`_.  Primary data (endpoint
tables, graph trees, JSON documents) is the only thing written to stdout, so
a command's output can be piped into ``jq`` or captured with
``--output-file``.  Status lines, warnings, errors, and fix suggestions go to
stderr.

Rich rendering is used when stdout is a terminal and colour has not been
turned off with ``NO_COLOR``, ``TERM=dumb``, or ``--no-color``.  Otherwise
output degrades to plain tab-separated text.

:class:`OutputManager` holds the settings of one invocation and is installed
by :func:`~specview.app.main_callback` via :func:`set_output`.  Commands use
the module-level shortcuts (:func:`info`, :func:`error`, ...) for messages
and :func:`get_output` for tables, graphs, and structured data.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Iterator, NamedTuple, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table
from rich.tree import Tree

from specview.models import Diagnostic, GraphModel, GraphNode, NodeKind, Severity
from specview.parser.classifier import suggest_fix


class OutputFormat(str, Enum):
    """How primary data is rendered.

    ``AUTO`` becomes ``RICH`` on an interactive, colour-capable terminal and
    ``PLAIN`` everywhere else.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class _Level(NamedTuple):
    """Rendering rules for one kind of stderr message."""

    plain_prefix: str
    markup: str
    hidden_when_quiet: bool = False
    verbose_only: bool = False


_LEVELS: dict[str, _Level] = {
    "info": _Level("", "{text}", hidden_when_quiet=True),
    "success": _Level("", "[green]{text}[/green]", hidden_when_quiet=True),
    "suggest": _Level("→ ", "[dim]→ {text}[/dim]", hidden_when_quiet=True),
    "warning": _Level("Warning: ", "[yellow]Warning:[/yellow] {text}"),
    "error": _Level("Error: ", "[bold red]Error:[/bold red] {text}"),
    "debug": _Level("[debug] ", "[dim]\\[debug] {text}[/dim]", verbose_only=True),
}

_KIND_STYLES = {
    NodeKind.API: "bold",
    NodeKind.ENDPOINT: "bold cyan",
    NodeKind.REQUEST: "magenta",
    NodeKind.RESPONSE: "green",
    NodeKind.SCHEMA: "blue",
    NodeKind.ARRAY: "yellow",
}


class OutputManager:
    """Per-invocation output settings and the two Rich consoles.

    Args:
        format: Requested data format; ``AUTO`` is resolved here.
        no_color: Force colourless output regardless of the environment.
        quiet: Hide info, success, and suggestion messages.  Warnings and
            errors are always shown.
        verbose: Show debug messages.
        output_file: Send primary data to this path instead of stdout.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
        output_file: Optional[str] = None,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._output_file = output_file

        if format == OutputFormat.AUTO:
            rich_ok = _is_tty() and not self._no_color
            format = OutputFormat.RICH if rich_ok else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=format == OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    # ------------------------------------------------------------------ #
    # stdout
    # ------------------------------------------------------------------ #

    def print_data(self, text: str) -> None:
        """Write one chunk of primary data (appended when writing to a file)."""
        self._write(text)

    def print_structured(self, data: Any) -> None:
        """Render a dict or list: JSON, ``key<TAB>value`` lines, or highlighted JSON.

        An output file always receives JSON and is overwritten.
        """
        rendered = _to_json(data)
        if self._output_file:
            self._write(rendered, overwrite=True)
        elif self._format == OutputFormat.JSON:
            self._write(rendered)
        elif self._format == OutputFormat.PLAIN:
            for line in _plain_lines(data):
                self._write(line)
        else:
            self._stdout.print(Syntax(rendered, "json", theme="monokai", word_wrap=True))

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Render rows as JSON records, tab-separated lines, or a Rich table."""
        if self._format == OutputFormat.JSON:
            self._write(_to_json([dict(zip(headers, row)) for row in rows]))
            return

        if self._format == OutputFormat.PLAIN:
            for cells in [headers, *rows]:
                self._write("\t".join(cells))
            return

        table = Table(title=title, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*(escape(cell) for cell in row))
        self._stdout.print(table)

    def print_graph(self, model: GraphModel) -> None:
        """Render a graph snapshot as an indented tree, or dump it as JSON.

        Each line shows ``+``/``-`` for collapsed/expanded containers and
        the node ID, which ``graph show --expand`` accepts.  A node whose
        parent is not in the snapshot is printed as a root.
        """
        if self._format == OutputFormat.JSON:
            self._write(model.model_dump_json(indent=2))
            return

        roots, children = _index_tree(model.nodes)
        expanded = set(model.expansion_state)

        if self._format == OutputFormat.PLAIN:
            for depth, node in _walk(roots, children):
                self._write(f"{'  ' * depth}{_node_text(node, expanded)}\t{node.id}")
            return

        for root in roots:
            tree = Tree(_rich_node_text(root, expanded))
            pending = [(tree, root)]
            while pending:
                branch, node = pending.pop()
                for child in children.get(node.id, []):
                    pending.append((branch.add(_rich_node_text(child, expanded)), child))
            self._stdout.print(tree)

    # ------------------------------------------------------------------ #
    # stderr
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        self._emit("info", message)

    def success(self, message: str) -> None:
        self._emit("success", message)

    def suggest(self, message: str) -> None:
        self._emit("suggest", message)

    def warning(self, message: str) -> None:
        self._emit("warning", message)

    def error(self, message: str) -> None:
        self._emit("error", message)

    def debug(self, message: str) -> None:
        self._emit("debug", message)

    def print_diagnostics(self, diagnostics: Sequence[Diagnostic], suggestions: bool = True) -> None:
        """Report each diagnostic as an error or warning, followed by its fix hint."""
        for diagnostic in diagnostics:
            text = diagnostic.message
            if diagnostic.path:
                text = f"{diagnostic.path}: {text}"
            self._emit("error" if diagnostic.severity == Severity.ERROR else "warning", text)
            hint = suggest_fix(diagnostic) if suggestions else None
            if hint:
                self._emit("suggest", hint)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _emit(self, level: str, message: str) -> None:
        rules = _LEVELS[level]
        if rules.verbose_only and not self._verbose:
            return
        if rules.hidden_when_quiet and self._quiet:
            return
        if self._no_color:
            print(f"{rules.plain_prefix}{message}", file=sys.stderr, flush=True)
        else:
            self._stderr.print(rules.markup.format(text=escape(message)))

    def _write(self, text: str, overwrite: bool = False) -> None:
        if not self._output_file:
            print(text, file=sys.stdout, flush=True)
            return
        with open(self._output_file, "w" if overwrite else "a", encoding="utf-8") as f:
            f.write(text if text.endswith("\n") else text + "\n")


# ------------------------------------------------------------------ #
# Rendering helpers
# ------------------------------------------------------------------ #


def _to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _plain_lines(data: Any) -> Iterator[str]:
    if isinstance(data, dict):
        for key, value in data.items():
            yield f"{key}\t{value}"
    elif isinstance(data, list):
        for item in data:
            if isinstance(item, dict):
                yield "\t".join(str(v) for v in item.values())
            else:
                yield str(item)
    else:
        yield str(data)


def _index_tree(nodes: list[GraphNode]) -> tuple[list[GraphNode], dict[str, list[GraphNode]]]:
    """Split *nodes* into roots and a parent -> children map, keeping node order."""
    present = {node.id for node in nodes}
    roots: list[GraphNode] = []
    children: dict[str, list[GraphNode]] = {}
    for node in nodes:
        if node.parent_id in present:
            children.setdefault(node.parent_id, []).append(node)
        else:
            roots.append(node)
    return roots, children


def _walk(
    roots: list[GraphNode], children: dict[str, list[GraphNode]]
) -> Iterator[tuple[int, GraphNode]]:
    """Depth-first, pre-order traversal yielding ``(depth, node)``."""
    stack = [(0, node) for node in reversed(roots)]
    while stack:
        depth, node = stack.pop()
        yield depth, node
        stack.extend((depth + 1, child) for child in reversed(children.get(node.id, [])))


def _node_text(node: GraphNode, expanded: set[str]) -> str:
    marker = ""
    if node.expandable:
        marker = "- " if node.id in expanded else "+ "
    if node.kind == NodeKind.ENDPOINT:
        return f"{marker}{node.data.get('method', '')} {node.label}"
    return f"{marker}{node.label}"


def _rich_node_text(node: GraphNode, expanded: set[str]) -> str:
    text = escape(_node_text(node, expanded))
    style = _KIND_STYLES.get(node.kind)
    if style:
        text = f"[{style}]{text}[/{style}]"
    return f"{text} [dim]{escape(node.id)}[/dim]"


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """``NO_COLOR`` (any value, even empty) or ``TERM=dumb`` turns colour off."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Process-wide manager
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one if needed."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Drop the installed manager so the next call builds a fresh one."""
    global _output
    _output = None


def print_data(text: str) -> None:
    get_output().print_data(text)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
