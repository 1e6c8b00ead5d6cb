"""
bfs.py — Breadth-First Search
==============================
Steppable BFS.  One step_once() call is one full
"dequeue → visit → enqueue neighbours" transition:

  1. Queue empty  →  COMPLETE, no-op
  2. Dequeue the front node (FIFO: earliest discovered goes first)
  3. Mark it visited
  4. Collect neighbours that are neither visited nor already queued
  5. Append them to the queue tail in adjacency order
  6. Their discovery edges become confirmed + frontier; frontier edges whose
     target is now visited drop out of the frontier
  7. Queue empty afterwards  →  COMPLETE

The "not already queued" filter in step 4 is what keeps every node in the
queue at most once; without it a node reachable from two queued parents
would be enqueued twice and dequeued out of breadth-first order.
"""

import logging
from collections import deque
from typing import Deque, Dict, FrozenSet, Iterable, List, Optional, Tuple

from traversal.base import TraversalEngine
from traversal.snapshot import BfsSnapshot, Snapshot

logger = logging.getLogger(__name__)


COMPLETE_MESSAGE = "🎉 Congratulations! BFS complete."


# ---------------------------------------------------------------------------
# Pseudocode: each string is one displayed line; index = pseudocode_line
# ---------------------------------------------------------------------------
PSEUDOCODE: List[str] = [
    "def BFS(graph, start):",                              # 0
    "    queue ← [start]",                                 # 1
    "    visited ← {}",                                    # 2
    "    while queue is not empty:",                       # 3
    "        node ← queue.dequeue()",                      # 4
    "        visited.add(node)",                           # 5
    "        for nbr in adj(node):",                       # 6
    "            if nbr not visited and nbr not queued:",  # 7
    "                queue.enqueue(nbr)",                  # 8
    "    done",                                            # 9
]


def _names(ids: Iterable[str]) -> str:
    return ", ".join(ids)


class BfsEngine(TraversalEngine):
    """
    Attributes (beyond TraversalEngine):
        queue          : deque of node ids waiting to be processed.
        frontier_edges : {edge_id: discovered node} for discovery edges whose
                         target is still queued.
        depth          : {node_id: hop count from start}.
    """

    key           = "bfs"
    label         = "Breadth-First Search"
    PSEUDOCODE    = PSEUDOCODE
    SELECT_PROMPT = "Which node will be dequeued next?"
    EXPAND_PROMPT = "Which neighbours of {node} will be enqueued? (may be ∅)"

    def _init_state(self) -> None:
        self.queue:          Deque[str]     = deque([self.start] if self.start is not None else [])
        self.frontier_edges: Dict[str, str] = {}
        self.depth:          Dict[str, int] = {}
        if self.start is not None:
            self.depth[self.start] = 0

    def _ready_narration(self) -> str:
        if self.start is None:
            return super()._ready_narration()
        return f"Ready. Starting from {self.start}. Queue: [{self.start}]"

    # ------------------------------------------------------------------
    # Step
    # ------------------------------------------------------------------
    def _advance(self) -> bool:
        if not self.queue:
            self._complete(COMPLETE_MESSAGE)
            return False

        cur = self.queue.popleft()
        self.current = cur
        self.pseudocode_line = 4

        # idempotent: a node can only be queued once, but never double-count
        if cur not in self.visited:
            self.visited.add(cur)
            self.visit_order.append(cur)

        discovered = self._discoverable(cur, self.queue, self.visited)
        logger.debug("bfs: %s discovers %s", cur, [nbr for nbr, _ in discovered])
        self.queue.extend(nbr for nbr, _ in discovered)

        self.frontier_edges = {
            eid: nbr for eid, nbr in self.frontier_edges.items() if nbr not in self.visited
        }
        for nbr, eid in discovered:
            self.confirmed_edges.add(eid)
            self.frontier_edges[eid] = nbr
            self.parent[nbr] = cur
            self.depth[nbr] = self.depth.get(cur, 0) + 1

        self.current = None
        self.last_processed = cur
        self.pseudocode_line = 8 if discovered else 5

        enqueued = _names(nbr for nbr, _ in discovered) or "∅"
        narration = f"Dequeued {cur}. Enqueued [{enqueued}]. Queue: [{_names(self.queue)}]"
        if self.queue:
            self.narration = narration
        else:
            self._complete(f"{narration} 🎉 BFS complete.")
        return True

    def _discoverable(
        self,
        cur: str,
        pending: Iterable[str],
        visited: FrozenSet[str],
    ) -> List[Tuple[str, str]]:
        """[(neighbour, edge_id)] that processing `cur` would enqueue."""
        pending = set(pending)
        found: List[Tuple[str, str]] = []
        seen = {cur}
        for adj in self.graph.adjacency(cur):
            nbr = adj.neighbor
            if nbr in visited or nbr in pending or nbr in seen:
                continue
            seen.add(nbr)
            found.append((nbr, adj.edge_id))
        return found

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def snapshot(self) -> BfsSnapshot:
        with self._lock:
            return BfsSnapshot(
                **self._base_fields(),
                queue=tuple(self.queue),
                frontier_edges=frozenset(self.frontier_edges),
                depth=dict(self.depth),
            )

    # ------------------------------------------------------------------
    # Ground truth
    # ------------------------------------------------------------------
    def ground_truth_selection(self, state: Snapshot) -> Optional[str]:
        if state.is_complete or not state.queue:
            return None
        return state.queue[0]

    def ground_truth_expansion(self, state: Snapshot, selected: str) -> Tuple[str, ...]:
        pending = list(state.queue)
        if selected in pending:
            pending.remove(selected)
        visited = frozenset(state.visited | {selected})
        return tuple(nbr for nbr, _ in self._discoverable(selected, pending, visited))

    def hint(self, state: Snapshot) -> str:
        if not state.queue:
            return "The queue is empty."
        return f"Queue (front → back): [{_names(state.queue)}]"
