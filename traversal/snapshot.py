"""
snapshot.py — Traversal State Snapshots
========================================
Every engine hands out frozen snapshots of its state.  A snapshot is a
frozen-in-time picture of everything the presentation layer (and the
practice controller) needs:

    • The queue (BFS) or the tentative distance table (Dijkstra)
    • The visited set, in the order nodes were processed
    • Parent pointers (discovery tree / shortest-path tree)
    • Edge classification: frontier / active / confirmed
    • The narration line describing the last transition
    • Which line of pseudocode the last transition corresponds to

Design decisions:
  - Snapshots are plain frozen dataclasses with no behaviour that touches
    the engine.  The engine is the only writer; everyone else reads copies.
  - Ground-truth computations take a snapshot as an explicit argument,
    never the live engine state, so a quiz answer can't be computed
    against state that is about to change.
  - `to_dict()` is JSON-safe: ∞ is encoded as None.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple

from graph.edge import EdgeState, Number
from graph.node import NodeState


INF = math.inf


def format_number(value: Optional[Number]) -> str:
    """3 → "3", 3.0 → "3", 2.5 → "2.5", ∞ → "∞"."""
    if value is None or value == INF:
        return "∞"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _json_number(value: Number) -> Optional[Number]:
    return None if value == INF else value


class EngineStatus(Enum):
    READY    = "ready"      # constructed / reset, nothing stepped yet
    RUNNING  = "running"    # at least one step taken, more to go
    STEPPING = "stepping"   # inside step_once (never observable from outside)
    COMPLETE = "complete"   # nothing left to do; step_once is a no-op


# ---------------------------------------------------------------------------
# Dijkstra relaxation comparison
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Comparison:
    """One `dist[u] + w  vs  dist[v]` test made while relaxing u's edges."""

    source:    str
    target:    str
    edge_id:   str
    base:      Number        # dist[source]
    weight:    Number
    previous:  Number        # dist[target] before the test
    candidate: Number        # base + weight

    @property
    def improved(self) -> bool:
        return self.candidate < self.previous

    @property
    def text(self) -> str:
        op = "<" if self.improved else "≥"
        return f"{format_number(self.base)} + {format_number(self.weight)} {op} {format_number(self.previous)}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source":    self.source,
            "target":    self.target,
            "edge_id":   self.edge_id,
            "base":      _json_number(self.base),
            "weight":    self.weight,
            "previous":  _json_number(self.previous),
            "candidate": _json_number(self.candidate),
            "improved":  self.improved,
            "text":      self.text,
        }


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Snapshot:
    """
    Attributes:
        algorithm       : Registry key of the engine ("bfs" / "dijkstra").
        status          : EngineStatus at the time of the snapshot.
        start           : Start node id (None until one is chosen).
        step_count      : Number of steps performed since the last reset.
        current         : Node inside the dequeue/select transition.  Always
                          None outside step_once; kept for listeners.
        last_processed  : Node dequeued / selected by the most recent step.
        visited         : Set of fully processed node ids.
        visit_order     : The same nodes in the order they were processed.
        parent          : {node_id: parent_id}; the start maps to None.
        confirmed_edges : Edge ids on the discovery / shortest-path tree.
        narration       : Human-readable description of the last transition.
        pseudocode_line : 0-based index into the engine's PSEUDOCODE.
    """

    algorithm:        str                        = ""
    status:           EngineStatus               = EngineStatus.READY
    start:            Optional[str]              = None
    step_count:       int                        = 0
    current:          Optional[str]              = None
    last_processed:   Optional[str]              = None
    visited:          FrozenSet[str]             = frozenset()
    visit_order:      Tuple[str, ...]            = ()
    parent:           Dict[str, Optional[str]]   = field(default_factory=dict)
    confirmed_edges:  FrozenSet[str]             = frozenset()
    narration:        str                        = ""
    pseudocode_line:  int                        = 0

    @property
    def is_complete(self) -> bool:
        return self.status is EngineStatus.COMPLETE

    def node_states(self) -> Dict[str, str]:
        states: Dict[str, str] = {}
        if self.start is not None and self.status is EngineStatus.READY:
            states[self.start] = NodeState.START.value
        for nid in self.visited:
            states[nid] = NodeState.VISITED.value
        if self.last_processed is not None:
            states[self.last_processed] = NodeState.CURRENT.value
        return states

    def edge_states(self) -> Dict[str, str]:
        return {eid: EdgeState.CONFIRMED.value for eid in self.confirmed_edges}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "algorithm":       self.algorithm,
            "status":          self.status.value,
            "start":           self.start,
            "step_count":      self.step_count,
            "current":         self.current,
            "last_processed":  self.last_processed,
            "visited":         list(self.visit_order),
            "parent":          dict(self.parent),
            "confirmed_edges": sorted(self.confirmed_edges),
            "node_states":     self.node_states(),
            "edge_states":     self.edge_states(),
            "narration":       self.narration,
            "pseudocode_line": self.pseudocode_line,
        }


@dataclass(frozen=True)
class BfsSnapshot(Snapshot):
    queue:           Tuple[str, ...]  = ()
    frontier_edges:  FrozenSet[str]   = frozenset()
    depth:           Dict[str, int]   = field(default_factory=dict)

    def node_states(self) -> Dict[str, str]:
        states = super().node_states()
        for nid in self.queue:
            states.setdefault(nid, NodeState.FRONTIER.value)
        return states

    def edge_states(self) -> Dict[str, str]:
        states = super().edge_states()
        for eid in self.frontier_edges:
            states[eid] = EdgeState.FRONTIER.value
        return states

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "queue":          list(self.queue),
            "frontier_edges": sorted(self.frontier_edges),
            "depth":          dict(self.depth),
        })
        return data


@dataclass(frozen=True)
class DijkstraSnapshot(Snapshot):
    distance:      Dict[str, Number]         = field(default_factory=dict)
    active_edges:  FrozenSet[str]            = frozenset()
    comparisons:   Tuple[Comparison, ...]    = ()

    def node_states(self) -> Dict[str, str]:
        states = super().node_states()
        for nid, d in self.distance.items():
            if d != INF:
                states.setdefault(nid, NodeState.FRONTIER.value)
        return states

    def edge_states(self) -> Dict[str, str]:
        states = super().edge_states()
        for eid in self.active_edges:
            states.setdefault(eid, EdgeState.ACTIVE.value)
        return states

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "distance":      {nid: _json_number(d) for nid, d in self.distance.items()},
            "distance_text": {nid: format_number(d) for nid, d in self.distance.items()},
            "active_edges":  sorted(self.active_edges),
            "comparisons":   [c.to_dict() for c in self.comparisons],
        })
        return data


# ---------------------------------------------------------------------------
# Step completion event
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class StepEvent:
    """
    Emitted to engine listeners each time step_once changes state.  The
    presentation layer drives its staggered animations from this.

    Attributes:
        step_number : step_count after the step.
        node        : Node dequeued / selected, None on a completion-only call.
        performed   : True if a dequeue/selection actually happened.
        snapshot    : Engine state right after the step.
    """

    step_number: int
    node:        Optional[str]
    performed:   bool
    snapshot:    Snapshot
