"""Deterministic 2D layout.

* The root sits at ``(root_x, root_y)``.
* Endpoint ``i`` sits on a golden-angle spiral around
  ``(center_x, center_y)``: angle ``i * pi * (3 - sqrt(5))``, radius
  ``base_radius + (i % 3) * radius_jitter``.
* Children of an open container are stacked below it.  The first child is
  ``child_offset`` below the parent and every further row adds
  ``row_height``; a sibling's open subtree occupies one row per
  materialized descendant, so nested stacks never overlap.

:func:`apply_layout` depends only on the node list (order and parent links)
and is recomputed from scratch after every expansion change.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

from specview.models import GraphNode, LayoutConfig, NodeKind, Position

GOLDEN_ANGLE = math.pi * (3 - math.sqrt(5))


def spiral_position(index: int, config: LayoutConfig) -> Position:
    """Position of the *index*-th endpoint on the spiral."""
    angle = index * GOLDEN_ANGLE
    radius = config.base_radius + (index % 3) * config.radius_jitter
    return Position(
        x=config.center_x + radius * math.cos(angle),
        y=config.center_y + radius * math.sin(angle),
    )


def apply_layout(
    nodes: Sequence[GraphNode], config: Optional[LayoutConfig] = None
) -> list[GraphNode]:
    """Assign a position to every node in place.

    Args:
        nodes: The materialized nodes.  Siblings are placed in list order.
        config: Layout constants; defaults to :class:`LayoutConfig`.

    Returns:
        The same nodes, as a list.
    """
    config = config or LayoutConfig()
    by_id = {node.id: node for node in nodes}
    children: dict[str, list[GraphNode]] = {}
    for node in nodes:
        if node.parent_id is not None and node.parent_id in by_id:
            children.setdefault(node.parent_id, []).append(node)

    sizes: dict[str, int] = {}

    def subtree_rows(node_id: str) -> int:
        # Rows taken by the materialized descendants of node_id.
        if node_id not in sizes:
            sizes[node_id] = sum(1 + subtree_rows(c.id) for c in children.get(node_id, []))
        return sizes[node_id]

    def stack(parent: GraphNode) -> None:
        indent = config.indent if parent.kind == NodeKind.ENDPOINT else config.schema_indent
        row = 0
        for child in children.get(parent.id, []):
            child.position = Position(
                x=parent.position.x + indent,
                y=parent.position.y + config.child_offset + row * config.row_height,
            )
            stack(child)
            row += 1 + subtree_rows(child.id)

    roots = [n for n in nodes if n.parent_id is None or n.parent_id not in by_id]
    for root in roots:
        if root.kind == NodeKind.API:
            root.position = Position(x=config.root_x, y=config.root_y)
            for index, endpoint in enumerate(children.get(root.id, [])):
                endpoint.position = spiral_position(index, config)
                stack(endpoint)
        else:
            stack(root)

    return list(nodes)
