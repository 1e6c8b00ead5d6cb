"""
dijkstra.py — Dijkstra's Shortest-Path Algorithm
==================================================
Steppable Dijkstra.  One step_once() call is one "select → relax → finalise":

  1. Selection: the unvisited node with the smallest tentative distance.
     Ties go to whichever node was defined first in the graph; the
     tie-break is deterministic but carries no meaning.
  2. Relaxation, in adjacency order, of every edge to an unvisited
     neighbour:  dist[u] + w < dist[v]  →  update dist, parent, and swap
     v's confirmed edge for u→v.
  3. u is marked visited only after all its relaxations, so it can never be
     selected again nor relax anything once final.
  4. Nothing unvisited with a finite distance left  →  COMPLETE.  Nodes
     still at ∞ raise an UnreachableNodeWarning (not an error).

A linear scan replaces the heap: graphs here have dozens of nodes, and the
scan makes the tie-break trivially reproducible for the practice quiz.

Correctness note: Dijkstra requires non-negative weights.  Graph already
refuses negative weights; the engine re-checks on construction.
"""

import logging
import warnings
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

from graph import Graph, InvalidGraphError
from graph.edge import Number
from traversal.base import TraversalEngine
from traversal.errors import UnreachableNodeWarning
from traversal.snapshot import INF, Comparison, DijkstraSnapshot, Snapshot, format_number

logger = logging.getLogger(__name__)


COMPLETE_MESSAGE = "🎉 Dijkstra complete! All shortest paths confirmed."


# ---------------------------------------------------------------------------
# Pseudocode
# ---------------------------------------------------------------------------
PSEUDOCODE: List[str] = [
    "def Dijkstra(graph, start):",                         # 0
    "    dist ← {v: ∞ for v in V};  dist[start] ← 0",       # 1
    "    visited ← {}",                                    # 2
    "    while some unvisited v has dist[v] < ∞:",         # 3
    "        u ← unvisited node with min dist",            # 4
    "        for (v, w) in adj(u), v unvisited:",          # 5
    "            if dist[u] + w < dist[v]:",               # 6
    "                dist[v] ← dist[u] + w;  parent[v] ← u",  # 7
    "        visited.add(u)",                              # 8
    "    done",                                            # 9
]


class DijkstraEngine(TraversalEngine):
    """
    Attributes (beyond TraversalEngine):
        distance     : {node_id: tentative distance}, ∞ when unreached.
        active_edges : Edge ids compared during the last step.
        comparisons  : The Comparison records of the last step.
        _parent_edge : {node_id: edge_id} of the currently confirmed
                       incoming edge, so an improvement can swap it out.
    """

    key           = "dijkstra"
    label         = "Dijkstra's Algorithm"
    PSEUDOCODE    = PSEUDOCODE
    SELECT_PROMPT = "Which unvisited node has the smallest tentative distance?"
    EXPAND_PROMPT = "Which neighbours of {node} get a shorter distance? (may be ∅)"

    def _validate_graph(self, graph: Graph) -> None:
        if graph.has_negative_edges():
            raise InvalidGraphError("Dijkstra does not support negative edge weights")

    def _init_state(self) -> None:
        self.distance:     Dict[str, Number]  = {nid: INF for nid in self.graph.node_ids()}
        self.active_edges: FrozenSet[str]     = frozenset()
        self.comparisons:  Tuple[Comparison, ...] = ()
        self._parent_edge: Dict[str, str]     = {}
        if self.start is not None:
            self.distance[self.start] = 0

    def _ready_narration(self) -> str:
        if self.start is None:
            return super()._ready_narration()
        return f"Ready. Starting from {self.start}. Every distance is ∞ except {self.start} = 0."

    # ------------------------------------------------------------------
    # Step
    # ------------------------------------------------------------------
    def _select(self, distance: Mapping[str, Number], visited: FrozenSet[str]) -> Optional[str]:
        """Unvisited node with the smallest finite distance; first defined wins ties."""
        best: Optional[str] = None
        best_dist: Number = INF
        for nid in self.graph.node_ids():
            if nid in visited:
                continue
            d = distance.get(nid, INF)
            if d < best_dist:
                best, best_dist = nid, d
        return best

    def _advance(self) -> bool:
        u = self._select(self.distance, self.visited)
        if u is None:
            self._finish()
            return False

        self.current = u
        self.pseudocode_line = 4
        base = self.distance[u]

        comparisons: List[Comparison] = []
        for adj in self.graph.adjacency(u):
            v = adj.neighbor
            if v in self.visited or v == u:
                continue
            cmp = Comparison(
                source=u,
                target=v,
                edge_id=adj.edge_id,
                base=base,
                weight=adj.weight,
                previous=self.distance[v],
                candidate=base + adj.weight,
            )
            comparisons.append(cmp)
            if cmp.improved:
                self.distance[v] = cmp.candidate
                self.parent[v] = u
                old_edge = self._parent_edge.get(v)
                if old_edge is not None:
                    self.confirmed_edges.discard(old_edge)
                self._parent_edge[v] = adj.edge_id
                self.confirmed_edges.add(adj.edge_id)

        # finalise only after every relaxation from u is applied
        self.visited.add(u)
        self.visit_order.append(u)
        self.comparisons = tuple(comparisons)
        self.active_edges = frozenset(c.edge_id for c in comparisons)
        self.current = None
        self.last_processed = u
        self.pseudocode_line = 8

        narration = self._describe(u, base, self.comparisons)
        if self._select(self.distance, self.visited) is None:
            self._finish(narration)
        else:
            self.narration = narration
        return True

    @staticmethod
    def _describe(u: str, base: Number, comparisons: Tuple[Comparison, ...]) -> str:
        head = f"Selected {u} (distance {format_number(base)})."
        if not comparisons:
            return f"{head} No unvisited neighbours."
        parts = [
            f"{c.source}→{c.target}: {c.text} {'updated' if c.improved else 'kept'}"
            for c in comparisons
        ]
        return f"{head} {'; '.join(parts)}"

    def _finish(self, prefix: str = "") -> None:
        unreachable = [nid for nid in self.graph.node_ids() if nid not in self.visited]
        if unreachable:
            names = ", ".join(unreachable)
            message = f"⚠️ Remaining nodes unreachable: [{names}]. Dijkstra complete."
            logger.warning("Unreachable from %s: %s", self.start, names)
            warnings.warn(
                f"Nodes unreachable from {self.start}: {names}",
                UnreachableNodeWarning,
                stacklevel=4,
            )
        else:
            message = COMPLETE_MESSAGE
        self._complete(f"{prefix} {message}" if prefix else message)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def snapshot(self) -> DijkstraSnapshot:
        with self._lock:
            return DijkstraSnapshot(
                **self._base_fields(),
                distance=dict(self.distance),
                active_edges=self.active_edges,
                comparisons=self.comparisons,
            )

    def shortest_path(self, target: str) -> Tuple[List[str], Number]:
        """(path start → target, total weight); ([], ∞) when unreached."""
        with self._lock:
            if self.distance.get(target, INF) == INF:
                return [], INF
            return self.path_to(target), self.distance[target]

    def path_edges(self) -> List[str]:
        """Confirmed shortest-path-tree edges, in graph definition order."""
        with self._lock:
            return [eid for eid in self.graph.edges if eid in self.confirmed_edges]

    # ------------------------------------------------------------------
    # Ground truth
    # ------------------------------------------------------------------
    def ground_truth_selection(self, state: Snapshot) -> Optional[str]:
        if state.is_complete:
            return None
        return self._select(state.distance, state.visited)

    def ground_truth_expansion(self, state: Snapshot, selected: str) -> Tuple[str, ...]:
        base = state.distance.get(selected, INF)
        if base == INF:
            return ()
        improved: List[str] = []
        for adj in self.graph.adjacency(selected):
            v = adj.neighbor
            if v in state.visited or v == selected or v in improved:
                continue
            if base + adj.weight < state.distance.get(v, INF):
                improved.append(v)
        return tuple(improved)

    def hint(self, state: Snapshot) -> str:
        pending = [
            f"{nid}={format_number(d)}"
            for nid, d in state.distance.items()
            if nid not in state.visited
        ]
        if not pending:
            return "Every node is already finalised."
        return f"Tentative distances of unvisited nodes: {', '.join(pending)}"
