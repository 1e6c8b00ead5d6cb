"""
graph/
-----
Core data layer.  Public API:

    from graph import Graph, Node, Edge, InvalidGraphError
    from graph import NodeState, EdgeState
    from graph import PRESETS, get_preset
"""

from graph.node    import Node,  NodeState
from graph.edge    import Edge,  EdgeState
from graph.graph   import Graph, Adjacent, GraphElement, InvalidGraphError, parse_element
from graph.presets import PRESETS, Preset, get_preset, list_presets

__all__ = [
    "Node",      "NodeState",
    "Edge",      "EdgeState",
    "Graph",     "Adjacent",   "GraphElement",
    "InvalidGraphError",
    "parse_element",
    "PRESETS",   "Preset",     "get_preset",   "list_presets",
]
