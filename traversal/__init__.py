"""
traversal/__init__.py — Algorithm Registry
===========================================
Single source of truth for every traversal the tutor can animate.

    from traversal import REGISTRY, get_algorithm

REGISTRY is a dict:
    {
        "bfs":      AlgoInfo(key, label, engine_cls, pseudocode, weighted, …),
        "dijkstra": AlgoInfo(…),
    }

The session and the HTTP layer both consume AlgoInfo, so adding an
algorithm is: write a TraversalEngine subclass, add one entry here.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Type

from traversal.base      import TraversalEngine
from traversal.bfs       import BfsEngine
from traversal.dijkstra  import DijkstraEngine
from traversal.errors    import IllegalOperationError, InvalidGraphError, UnreachableNodeWarning
from traversal.snapshot  import (
    INF,
    BfsSnapshot,
    Comparison,
    DijkstraSnapshot,
    EngineStatus,
    Snapshot,
    StepEvent,
    format_number,
)


# ---------------------------------------------------------------------------
# AlgoInfo: metadata card for each algorithm
# ---------------------------------------------------------------------------
@dataclass
class AlgoInfo:
    key:               str                      # registry key, e.g. "bfs"
    label:             str                      # human label, e.g. "Breadth-First Search"
    engine_cls:        Type[TraversalEngine]    # the steppable engine
    pseudocode:        List[str]                # lines for the side-panel
    weighted:          bool      = False        # reads edge weights?
    default_preset:    str       = "tree"       # graph shown when the page opens
    tags:              List[str] = field(default_factory=list)
    complexity_time:   str       = ""           # e.g. "O(V + E)"
    complexity_space:  str       = ""           # e.g. "O(V)"
    description:       str       = ""           # one-liner for the UI card

    def to_dict(self) -> dict:
        return {
            "key":              self.key,
            "label":            self.label,
            "pseudocode":       list(self.pseudocode),
            "weighted":         self.weighted,
            "default_preset":   self.default_preset,
            "tags":             list(self.tags),
            "complexity_time":  self.complexity_time,
            "complexity_space": self.complexity_space,
            "description":      self.description,
        }


# ---------------------------------------------------------------------------
# THE REGISTRY
# ---------------------------------------------------------------------------
REGISTRY: Dict[str, AlgoInfo] = {

    "bfs": AlgoInfo(
        key="bfs", label=BfsEngine.label, engine_cls=BfsEngine, pseudocode=BfsEngine.PSEUDOCODE,
        default_preset="tree",
        tags=["unweighted", "traversal", "queue"],
        complexity_time="O(V + E)", complexity_space="O(V)",
        description="Explores layer-by-layer: the earliest discovered node is always processed first.",
    ),

    "dijkstra": AlgoInfo(
        key="dijkstra", label=DijkstraEngine.label, engine_cls=DijkstraEngine,
        pseudocode=DijkstraEngine.PSEUDOCODE, weighted=True,
        default_preset="dijkstra_example1",
        tags=["weighted", "shortest-path", "relaxation"],
        complexity_time="O(V² + E)", complexity_space="O(V)",
        description="Greedily finalises the closest node, then relaxes its edges. Non-negative weights only.",
    ),
}


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------
def get_algorithm(key: str) -> Optional[AlgoInfo]:
    """Return AlgoInfo by key, or None."""
    return REGISTRY.get(key)


def list_algorithms() -> List[AlgoInfo]:
    """Return all registered algorithms in insertion order."""
    return list(REGISTRY.values())


__all__ = [
    "AlgoInfo",
    "REGISTRY",
    "get_algorithm",
    "list_algorithms",
    "TraversalEngine",
    "BfsEngine",
    "DijkstraEngine",
    "IllegalOperationError",
    "InvalidGraphError",
    "UnreachableNodeWarning",
    "INF",
    "BfsSnapshot",
    "Comparison",
    "DijkstraSnapshot",
    "EngineStatus",
    "Snapshot",
    "StepEvent",
    "format_number",
]
