from enum import Enum
from typing import Optional


# ---------------------------------------------------------------------------
# Node State Enum: how the presentation layer should paint a node
# ---------------------------------------------------------------------------
class NodeState(Enum):
    UNVISITED  = "unvisited"   # default grey
    FRONTIER   = "frontier"    # blue, queued / has a tentative distance
    CURRENT    = "current"     # highlighted, processed by the last step
    VISITED    = "visited"     # green, fully processed
    START      = "start"       # teal, start node before the first step


# ---------------------------------------------------------------------------
# Node
# ---------------------------------------------------------------------------
class Node:
    """
    One half of the GraphElement tagged union (the other is Edge).

    Attributes:
        id     : Unique identifier, user-supplied ("A", "B", …).
        label  : Human-readable name; defaults to the id.
        x, y   : Optional preset canvas position.  The core never reads these,
                 they ride along so a preset layout survives a round-trip.
    """

    kind = "node"

    __slots__ = ("id", "label", "x", "y")

    def __init__(
        self,
        node_id: str,
        label: Optional[str] = None,
        x: Optional[float] = None,
        y: Optional[float] = None,
    ):
        self.id: str               = node_id
        self.label: str            = label or node_id
        self.x: Optional[float]    = x
        self.y: Optional[float]    = y

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------
    def to_dict(self) -> dict:
        data = {"kind": self.kind, "id": self.id, "label": self.label}
        if self.x is not None and self.y is not None:
            data["x"] = self.x
            data["y"] = self.y
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Node":
        return cls(
            node_id=str(data["id"]),
            label=data.get("label"),
            x=data.get("x"),
            y=data.get("y"),
        )

    # ------------------------------------------------------------------
    # Dunder
    # ------------------------------------------------------------------
    def __repr__(self) -> str:
        return f"Node(id={self.id}, label={self.label})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Node) and self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)
