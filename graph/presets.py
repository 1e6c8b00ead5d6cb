"""
presets.py — Built-in Teaching Graphs
======================================
The fixed graphs a learner can pick from the graph-type dropdown.

Each preset is a plain spec dict (the same shape Graph.load() accepts) plus
the start node the run should default to.  `custom` is the empty canvas the
edit mode starts from.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from graph.graph import Graph


@dataclass(frozen=True)
class Preset:
    key:           str
    label:         str
    directed:      bool
    nodes:         List[str]
    edges:         List[tuple]                    # (source, target) or (source, target, weight)
    default_start: Optional[str]  = None
    weighted:      bool           = False
    positions:     Dict[str, tuple] = field(default_factory=dict)

    def spec(self) -> dict:
        nodes = []
        for nid in self.nodes:
            node = {"id": nid}
            if nid in self.positions:
                node["x"], node["y"] = self.positions[nid]
            nodes.append(node)
        edges = []
        for e in self.edges:
            edge = {"id": f"{e[0]}-{e[1]}", "source": e[0], "target": e[1]}
            if len(e) > 2:
                edge["weight"] = e[2]
            edges.append(edge)
        return {"directed": self.directed, "nodes": nodes, "edges": edges}

    def build(self) -> Graph:
        return Graph().load(self.spec())

    def to_dict(self) -> dict:
        return {
            "key":           self.key,
            "label":         self.label,
            "directed":      self.directed,
            "weighted":      self.weighted,
            "default_start": self.default_start,
            "graph":         self.spec(),
        }


def _grid_edges(ids: List[str], rows: int, cols: int) -> List[tuple]:
    edges = []
    for r in range(rows):
        for c in range(cols):
            u = ids[r * cols + c]
            if c + 1 < cols:
                edges.append((u, ids[r * cols + c + 1]))
            if r + 1 < rows:
                edges.append((u, ids[(r + 1) * cols + c]))
    return edges


_GRID_IDS = list("ABCDEFGHI")


PRESETS: Dict[str, Preset] = {

    "tree": Preset(
        key="tree", label="Tree (directed)", directed=True,
        nodes=list("ABCDEF"),
        edges=[("A", "B"), ("A", "C"), ("B", "D"), ("B", "E"), ("C", "F")],
        default_start="A",
    ),

    "cyclic": Preset(
        key="cyclic", label="Cycle (directed)", directed=True,
        nodes=list("ABC"),
        edges=[("A", "B"), ("B", "C"), ("C", "A")],
        default_start="A",
    ),

    "disconnected": Preset(
        key="disconnected", label="Disconnected (directed)", directed=True,
        nodes=list("ABCDE"),
        edges=[("A", "B"), ("B", "C"), ("D", "E")],
        default_start="A",
    ),

    "undirected": Preset(
        key="undirected", label="Undirected", directed=False,
        nodes=list("ABCDE"),
        edges=[("A", "B"), ("A", "C"), ("B", "D"), ("C", "E")],
        default_start="A",
    ),

    "grid": Preset(
        key="grid", label="3×3 Grid", directed=False,
        nodes=_GRID_IDS,
        edges=_grid_edges(_GRID_IDS, 3, 3),
        default_start="A",
    ),

    "dijkstra_example1": Preset(
        key="dijkstra_example1", label="Weighted example 1 (undirected)", directed=False,
        nodes=list("ABCDE"),
        edges=[
            ("A", "B", 3), ("A", "C", 1), ("B", "D", 3), ("C", "E", 4),
            ("A", "D", 2), ("D", "E", 1), ("C", "D", 5), ("B", "E", 2),
        ],
        default_start="A", weighted=True,
        positions={"A": (100, 300), "B": (300, 150), "C": (300, 450), "D": (500, 300), "E": (700, 300)},
    ),

    "dijkstra_example2": Preset(
        key="dijkstra_example2", label="Weighted example 2 (directed)", directed=True,
        nodes=list("ABCDEF"),
        edges=[
            ("A", "B", 1), ("A", "C", 4), ("B", "D", 1), ("B", "E", 2), ("C", "E", 3),
            ("C", "F", 7), ("D", "F", 5), ("E", "F", 2), ("E", "A", 2), ("E", "C", 1),
        ],
        default_start="A", weighted=True,
        positions={"A": (200, 300), "B": (300, 100), "C": (400, 400), "D": (600, 100), "E": (500, 200), "F": (700, 300)},
    ),

    "custom": Preset(
        key="custom", label="Custom (edit mode)", directed=True,
        nodes=[], edges=[], default_start=None,
    ),
}


def get_preset(key: str) -> Optional[Preset]:
    """Return a Preset by key, or None."""
    return PRESETS.get(key)


def list_presets(weighted: Optional[bool] = None) -> List[Preset]:
    """All presets in declaration order, optionally filtered by weightedness."""
    return [p for p in PRESETS.values() if weighted is None or p.weighted == weighted or p.key == "custom"]
