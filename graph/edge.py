"""
edge.py — Graph Edge
====================
Connects two nodes.  The second variant of the GraphElement tagged union.

Design decisions:
  - `source` and `target` are node-id strings, NOT Node references.
    This keeps edges serialisable and avoids circular references.
  - `weight` is Optional: BFS graphs leave it out entirely, Dijkstra reads
    `cost`, which falls back to 1 when no weight was given.
  - Directedness lives on the Graph, not on the edge.  An edge only knows
    its endpoints; the Graph decides whether B→A may use edge A-B.
"""

from enum import Enum
from typing import Optional, Union


Number = Union[int, float]

DEFAULT_WEIGHT = 1


# ---------------------------------------------------------------------------
# Edge State Enum: classification the engines hand to the renderer
# ---------------------------------------------------------------------------
class EdgeState(Enum):
    DEFAULT    = "default"     # thin, neutral grey
    FRONTIER   = "frontier"    # BFS: just discovered, target still queued
    ACTIVE     = "active"      # Dijkstra: compared during the last step
    CONFIRMED  = "confirmed"   # on the discovery / shortest-path tree


# ---------------------------------------------------------------------------
# Edge
# ---------------------------------------------------------------------------
class Edge:
    """
    Attributes:
        id     : Unique identifier, "A-B" by default.
        source : ID of the tail node.
        target : ID of the head node.
        weight : Non-negative number, or None when the graph is unweighted.
    """

    kind = "edge"

    __slots__ = ("id", "source", "target", "weight")

    def __init__(
        self,
        source: str,
        target: str,
        weight: Optional[Number] = None,
        edge_id: Optional[str] = None,
    ):
        self.id:     str              = edge_id or f"{source}-{target}"
        self.source: str              = source
        self.target: str              = target
        self.weight: Optional[Number] = weight

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @property
    def cost(self) -> Number:
        """Weight as Dijkstra sees it."""
        return DEFAULT_WEIGHT if self.weight is None else self.weight

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------
    def to_dict(self) -> dict:
        data = {
            "kind":   self.kind,
            "id":     self.id,
            "source": self.source,
            "target": self.target,
        }
        if self.weight is not None:
            data["weight"] = self.weight
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Edge":
        return cls(
            source=str(data["source"]),
            target=str(data["target"]),
            weight=data.get("weight"),
            edge_id=data.get("id"),
        )

    # ------------------------------------------------------------------
    # Dunder
    # ------------------------------------------------------------------
    def __repr__(self) -> str:
        return f"Edge({self.id}: {self.source}→{self.target}, w={self.weight})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Edge) and self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)
