"""The expansion state machine over a lazily built graph.

A container node is either collapsed or expanded.  :class:`GraphView`
keeps the materialized nodes and edges consistent with the expansion
state: a node is present iff its structural parent is expanded (endpoint
nodes hang off the root, which is always open).

Collapsing walks ``parent_id`` links, never ID prefixes, so an endpoint
whose ID happens to look like another node's prefix is not touched.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from specview.graph.builder import MAX_FULL_DEPTH, ROOT_ID, SchemaGraphBuilder
from specview.graph.layout import apply_layout
from specview.models import GraphEdge, GraphModel, GraphNode, LayoutConfig

logger = logging.getLogger(__name__)


class GraphView:
    """Materialized view of a :class:`SchemaGraphBuilder` graph.

    Args:
        builder: Source of nodes and edges.
        expansion_state: IDs to reopen after the initial build.  IDs that
            do not name a materialized container are dropped.
        layout: Layout constants.

    Example::

        view = GraphView(SchemaGraphBuilder.from_result(result))
        view.toggle("endpoint-list-pets")   # True: responses appear
        view.toggle("endpoint-list-pets")   # True: back to the start
        view.toggle("api-root")             # False: nothing to toggle
    """

    def __init__(
        self,
        builder: SchemaGraphBuilder,
        expansion_state: Optional[Iterable[str]] = None,
        layout: Optional[LayoutConfig] = None,
    ) -> None:
        self._builder = builder
        self._layout = layout or LayoutConfig()
        self._nodes: dict[str, GraphNode] = {}
        self._edges: dict[str, GraphEdge] = {}
        self._expanded: set[str] = set()
        self.rebuild(expansion_state)

    # ------------------------------------------------------------------ #
    # Read surface
    # ------------------------------------------------------------------ #

    @property
    def builder(self) -> SchemaGraphBuilder:
        return self._builder

    @property
    def layout(self) -> LayoutConfig:
        return self._layout

    @property
    def nodes(self) -> list[GraphNode]:
        return list(self._nodes.values())

    @property
    def edges(self) -> list[GraphEdge]:
        return list(self._edges.values())

    @property
    def expansion_state(self) -> frozenset[str]:
        return frozenset(self._expanded)

    def get(self, node_id: str) -> Optional[GraphNode]:
        return self._nodes.get(node_id)

    def is_expanded(self, node_id: str) -> bool:
        return node_id in self._expanded

    def can_toggle(self, node_id: str) -> bool:
        """Whether *node_id* is materialized and has children."""
        return node_id in self._nodes and self._builder.is_container(node_id)

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #

    def toggle(self, node_id: str) -> bool:
        """Expand a collapsed container or collapse an expanded one.

        Returns:
            ``True`` when the graph changed; ``False`` for unknown,
            non-materialized, and leaf nodes.
        """
        if node_id in self._expanded:
            return self.collapse(node_id)
        return self.expand(node_id)

    def expand(self, node_id: str) -> bool:
        """Materialize the immediate children of *node_id*."""
        if not self._expand(node_id):
            return False
        self._relayout()
        return True

    def collapse(self, node_id: str) -> bool:
        """Remove every descendant of *node_id* and the edges touching them."""
        if node_id not in self._expanded or node_id not in self._nodes:
            return False

        removed = self._descendants(node_id)
        for removed_id in removed:
            self._nodes.pop(removed_id, None)
        self._edges = {
            edge_id: edge
            for edge_id, edge in self._edges.items()
            if edge.source_id not in removed and edge.target_id not in removed
        }
        self._expanded.discard(node_id)
        self._expanded -= removed

        logger.debug("Collapsed %s (%d nodes removed)", node_id, len(removed))
        self._relayout()
        return True

    def expand_all(self, max_depth: int = MAX_FULL_DEPTH) -> int:
        """Open every container, breadth-first.  Returns the number opened."""
        opened = 0
        pending = [n.id for n in self._nodes.values()]
        depth = 0
        while pending and depth < max_depth:
            depth += 1
            next_pending: list[str] = []
            for node_id in pending:
                if self._expand(node_id):
                    opened += 1
                    next_pending.extend(c.id for c, _ in self._builder.children(node_id))
            pending = next_pending
        self._relayout()
        return opened

    def rebuild(self, expansion_state: Optional[Iterable[str]] = None) -> None:
        """Rematerialize from the builder, reopening *expansion_state*.

        With no argument the current expansion state is kept.  IDs that no
        longer name a reachable container are pruned.
        """
        wanted = set(self._expanded if expansion_state is None else expansion_state)

        nodes, edges = self._builder.initial()
        self._nodes = {n.id: n for n in nodes}
        self._edges = {e.id: e for e in edges}
        self._expanded = set()

        # Parents must open before their children; repeat until no progress.
        progress = True
        while progress and wanted:
            progress = False
            for node_id in list(wanted):
                if self._expand(node_id):
                    wanted.discard(node_id)
                    progress = True

        if wanted:
            logger.debug("Pruned stale expansion IDs: %s", sorted(wanted))
        self._relayout()

    def to_model(self) -> GraphModel:
        """Snapshot the view for serialisation."""
        return GraphModel(
            nodes=[n.model_copy(deep=True) for n in self._nodes.values()],
            edges=list(self._edges.values()),
            expansion_state=sorted(self._expanded),
        )

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _expand(self, node_id: str) -> bool:
        if node_id in self._expanded or node_id == ROOT_ID:
            return False
        if not self.can_toggle(node_id):
            return False

        for child, edge in self._builder.children(node_id):
            self._nodes[child.id] = child
            self._edges[edge.id] = edge
        self._expanded.add(node_id)
        return True

    def _descendants(self, node_id: str) -> set[str]:
        by_parent: dict[str, list[str]] = {}
        for node in self._nodes.values():
            if node.parent_id is not None:
                by_parent.setdefault(node.parent_id, []).append(node.id)

        found: set[str] = set()
        stack = list(by_parent.get(node_id, []))
        while stack:
            current = stack.pop()
            if current in found:
                continue
            found.add(current)
            stack.extend(by_parent.get(current, []))
        return found

    def _relayout(self) -> None:
        apply_layout(list(self._nodes.values()), self._layout)
