"""
graph.py — Graph Container
==========================
Single source of truth for the graph.  Engines and the session both talk
to this object.

Responsibilities:
  1. Load / validate a whole graph spec      (load / from_dict)
  2. Incremental edits for edit mode         (add / remove)
  3. Adjacency queries                       (adjacency, edge_between)
  4. Import from an adjacency-list text      (text → graph)
  5. Serialisation round-trip                (to_dict / from_dict)

Design decisions:
  - Nodes & edges stored in plain dicts keyed by id for O(1) lookup.
    Dict insertion order IS the definition order, and both the BFS
    neighbour order and the Dijkstra tie-break rely on it.
  - A separate adjacency dict  `_adj[node_id] → [(neighbour_id, edge_id)]`
    is maintained incrementally so neighbour queries are O(degree), not O(E).
  - `load()` validates into a scratch Graph first and only then swaps the
    contents in, so a rejected spec never leaves a half-built graph behind.
"""

import logging
import math
from typing import Dict, Iterable, List, NamedTuple, Optional, Set, Tuple, Union

from graph.node import Node
from graph.edge import Edge, Number

logger = logging.getLogger(__name__)


GraphElement = Union[Node, Edge]


class InvalidGraphError(ValueError):
    """Malformed graph spec: unknown endpoint, duplicate id, bad weight."""


class Adjacent(NamedTuple):
    neighbor: str
    weight:   Number
    edge_id:  str


# ---------------------------------------------------------------------------
# Element parsing (tagged union dispatch)
# ---------------------------------------------------------------------------
def parse_element(raw: Union[dict, str]) -> GraphElement:
    """
    Turn one raw element into a Node or an Edge.

    Accepts a bare node id string, a tagged dict (`{"kind": "edge", …}`), an
    untagged dict (an edge is anything carrying a `source`), or a
    Cytoscape-style wrapper `{"data": {...}, "position": {...}}`.
    """
    if isinstance(raw, str):
        return Node(raw)
    if not isinstance(raw, dict):
        raise InvalidGraphError(f"Cannot parse graph element: {raw!r}")

    data = raw
    if isinstance(raw.get("data"), dict):
        data = dict(raw["data"])
        position = raw.get("position") or {}
        data.setdefault("x", position.get("x"))
        data.setdefault("y", position.get("y"))

    kind = data.get("kind")
    if kind is None:
        kind = "edge" if "source" in data else "node"

    try:
        if kind == "node":
            return Node.from_dict(data)
        if kind == "edge":
            return Edge.from_dict(data)
    except KeyError as exc:
        raise InvalidGraphError(f"Graph element {data!r} is missing {exc.args[0]!r}") from exc
    raise InvalidGraphError(f"Unknown graph element kind: {kind!r}")


def _check_weight(edge: Edge) -> None:
    w = edge.weight
    if w is None:
        return
    if isinstance(w, bool) or not isinstance(w, (int, float)):
        raise InvalidGraphError(f"Edge {edge.id} has a non-numeric weight: {w!r}")
    if math.isnan(w) or math.isinf(w):
        raise InvalidGraphError(f"Edge {edge.id} has a non-finite weight: {w!r}")
    if w < 0:
        raise InvalidGraphError(f"Edge {edge.id} has a negative weight ({w}); negative weights are not supported")


class Graph:
    """
    Attributes:
        nodes      : {node_id: Node}
        edges      : {edge_id: Edge}
        directed   : bool – graph-level directedness
        _adj       : {node_id: [(neighbour_id, edge_id), …]}
    """

    def __init__(self, directed: bool = False):
        self.nodes:    Dict[str, Node] = {}
        self.edges:    Dict[str, Edge] = {}
        self.directed: bool            = directed
        self._adj:     Dict[str, List[Tuple[str, str]]] = {}   # node_id → [(nbr, edge_id)]

    # ==================================================================
    # LOAD (wholesale replacement)
    # ==================================================================
    def load(self, spec: dict) -> "Graph":
        """
        Replace the whole graph from a spec dict.

        Spec shape: {"directed": bool, "nodes": [...], "edges": [...]}
        or {"directed": bool, "elements": [...]} with mixed elements.
        Raises InvalidGraphError and keeps the old contents on failure.
        """
        if not isinstance(spec, dict):
            raise InvalidGraphError("Graph spec must be a mapping")

        raw_elements = list(spec.get("nodes", [])) + list(spec.get("edges", []))
        raw_elements += list(spec.get("elements", []))
        elements = [parse_element(raw) for raw in raw_elements]

        scratch = Graph(directed=bool(spec.get("directed", False)))
        # nodes first so edges may be listed before their endpoints
        for el in elements:
            if isinstance(el, Node):
                scratch.add_node(el)
        for el in elements:
            if isinstance(el, Edge):
                scratch.add_edge(el)

        self.nodes    = scratch.nodes
        self.edges    = scratch.edges
        self.directed = scratch.directed
        self._adj     = scratch._adj
        logger.info("Loaded graph: %r", self)
        return self

    # ==================================================================
    # NODE CRUD
    # ==================================================================
    def add_node(self, node: Node) -> Node:
        if not isinstance(node.id, str) or not node.id:
            raise InvalidGraphError(f"Node id must be a non-empty string, got {node.id!r}")
        if node.id in self.nodes:
            raise InvalidGraphError(f"Duplicate node id: {node.id}")
        self.nodes[node.id] = node
        self._adj.setdefault(node.id, [])
        return node

    def create_node(self, node_id: str, label: Optional[str] = None) -> Node:
        """Convenience: create + add in one call."""
        return self.add_node(Node(node_id, label=label))

    def remove_node(self, node_id: str) -> None:
        if node_id not in self.nodes:
            return
        # remove every edge touching this node
        touching = [eid for eid, e in self.edges.items() if node_id in (e.source, e.target)]
        for eid in touching:
            self.remove_edge(eid)
        del self.nodes[node_id]
        self._adj.pop(node_id, None)

    def get_node(self, node_id: str) -> Optional[Node]:
        return self.nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self.nodes

    # ==================================================================
    # EDGE CRUD
    # ==================================================================
    def add_edge(self, edge: Edge) -> Edge:
        if not isinstance(edge.id, str) or not edge.id:
            raise InvalidGraphError(f"Edge id must be a non-empty string, got {edge.id!r}")
        for endpoint in (edge.source, edge.target):
            if not isinstance(endpoint, str) or endpoint not in self.nodes:
                raise InvalidGraphError(f"Edge {edge.id} references unknown node: {endpoint}")
        if edge.id in self.edges:
            raise InvalidGraphError(f"Duplicate edge id: {edge.id}")
        _check_weight(edge)

        self.edges[edge.id] = edge
        # maintain adjacency
        self._adj[edge.source].append((edge.target, edge.id))
        if not self.directed:
            self._adj[edge.target].append((edge.source, edge.id))
        return edge

    def create_edge(
        self,
        source: str,
        target: str,
        weight: Optional[Number] = None,
        edge_id: Optional[str] = None,
    ) -> Edge:
        return self.add_edge(Edge(source=source, target=target, weight=weight, edge_id=edge_id))

    def remove_edge(self, edge_id: str) -> None:
        if edge_id not in self.edges:
            return
        e = self.edges[edge_id]
        for end in (e.source, e.target):
            self._adj[end][:] = [(n, eid) for n, eid in self._adj.get(end, []) if eid != edge_id]
        del self.edges[edge_id]

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        return self.edges.get(edge_id)

    def edge_between(self, u: str, v: str) -> Optional[Edge]:
        """First edge (definition order) usable to go u → v."""
        for nbr, eid in self._adj.get(u, []):
            if nbr == v:
                return self.edges[eid]
        return None

    # ==================================================================
    # ADJACENCY QUERIES
    # ==================================================================
    def adjacency(self, node_id: str) -> List[Adjacent]:
        """
        Outgoing (directed) or incident (undirected) neighbours of node_id,
        in edge-definition order.  Unknown nodes have no neighbours.
        """
        return [
            Adjacent(nbr, self.edges[eid].cost, eid)
            for nbr, eid in self._adj.get(node_id, [])
        ]

    def degree(self, node_id: str) -> int:
        return len(self._adj.get(node_id, []))

    # ==================================================================
    # SERIALISATION
    # ==================================================================
    def elements(self) -> List[GraphElement]:
        return [*self.nodes.values(), *self.edges.values()]

    def to_dict(self) -> dict:
        return {
            "directed": self.directed,
            "nodes":    [n.to_dict() for n in self.nodes.values()],
            "edges":    [e.to_dict() for e in self.edges.values()],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Graph":
        return cls().load(data)

    @classmethod
    def from_elements(cls, elements: Iterable[Union[dict, str]], directed: bool = False) -> "Graph":
        return cls().load({"directed": directed, "elements": list(elements)})

    # ---------- Import from Adjacency List (text) ----------
    @classmethod
    def from_adjacency_list(cls, text: str, directed: bool = True) -> "Graph":
        """
        Parse a simple text adjacency list.

        Supported formats (one node per line):
            A: B C D            → A connects to B, C, D  (no weight)
            A: B(3) C(7)        → A→B weight 3, A→C weight 7
            0 → 1,2,3           → alternate arrow syntax
            0 -> 1(5), 2(3)     → comma-separated with weights
        """
        adjacency: Dict[str, List[Tuple[str, Optional[Number]]]] = {}

        for lineno, line in enumerate(text.strip().splitlines(), start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            # split on ':' or '→'
            for sep in (":", "→", "->"):
                if sep in line:
                    src, _, rest = line.partition(sep)
                    break
            else:
                raise InvalidGraphError(f"Line {lineno}: expected 'node: neighbours', got {line!r}")

            src = src.strip()
            adjacency.setdefault(src, [])

            for token in rest.replace(",", " ").split():
                # parse optional weight: "B(3)" or "B"
                if "(" in token and token.endswith(")"):
                    tgt, w_str = token[:-1].split("(", 1)
                    try:
                        w: Optional[Number] = float(w_str)
                    except ValueError:
                        raise InvalidGraphError(f"Line {lineno}: bad weight {w_str!r}") from None
                    if w.is_integer():
                        w = int(w)
                else:
                    tgt, w = token, None
                adjacency.setdefault(tgt, [])
                adjacency[src].append((tgt, w))

        # add edges (deduplicate for undirected)
        seen_edges: Set = set()
        edges = []
        for src, targets in adjacency.items():
            for tgt, w in targets:
                key = frozenset([src, tgt]) if not directed else (src, tgt)
                if key in seen_edges:
                    continue
                seen_edges.add(key)
                edge = {"id": f"{src}-{tgt}", "source": src, "target": tgt}
                if w is not None:
                    edge["weight"] = w
                edges.append(edge)

        return cls().load({"directed": directed, "nodes": list(adjacency), "edges": edges})

    # ==================================================================
    # UTILITY
    # ==================================================================
    def node_count(self) -> int:
        return len(self.nodes)

    def edge_count(self) -> int:
        return len(self.edges)

    def has_negative_edges(self) -> bool:
        return any(e.weight is not None and e.weight < 0 for e in self.edges.values())

    def node_ids(self) -> List[str]:
        return list(self.nodes.keys())

    def __repr__(self) -> str:
        return f"Graph(nodes={self.node_count()}, edges={self.edge_count()}, directed={self.directed})"
