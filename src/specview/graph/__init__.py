"""Document graph -- build, lay out, and expand/collapse.

Typical usage::

    from specview.graph import GraphView, SchemaGraphBuilder

    view = GraphView(SchemaGraphBuilder.from_result(result))
    view.toggle("endpoint-list-pets")
    model = view.to_model()

Sub-modules:

* :mod:`~specview.graph.ids` -- Deterministic, collision-free node IDs.
* :mod:`~specview.graph.builder` -- Lazy node/edge generation from endpoints
  and schemas.
* :mod:`~specview.graph.layout` -- Root, golden-angle spiral, and vertical
  child stacks.
* :mod:`~specview.graph.expansion` -- :class:`GraphView`, the expansion
  state machine.
"""

from specview.graph.builder import ROOT_ID, SchemaGraphBuilder
from specview.graph.expansion import GraphView
from specview.graph.ids import IdAllocator, make_id, sanitize
from specview.graph.layout import apply_layout

__all__ = [
    "GraphView",
    "IdAllocator",
    "ROOT_ID",
    "SchemaGraphBuilder",
    "apply_layout",
    "make_id",
    "sanitize",
]
