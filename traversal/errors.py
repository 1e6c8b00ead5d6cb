"""
errors.py — Traversal error taxonomy
=====================================
InvalidGraphError lives with the graph (it is raised at load time);
the two classes here belong to a running traversal.
"""

from graph.graph import InvalidGraphError


class IllegalOperationError(RuntimeError):
    """
    The caller broke the stepping contract: manual step while autoplay owns
    stepping, applying a practice step that was never earned, submitting a
    guess in the wrong phase, …  Always raised synchronously; the engine is
    left exactly as it was.
    """


class UnreachableNodeWarning(UserWarning):
    """Dijkstra finished with nodes still at distance ∞.  Not fatal."""


__all__ = ["InvalidGraphError", "IllegalOperationError", "UnreachableNodeWarning"]
