"""
Pytest configuration and shared fixtures.

This file is automatically loaded by pytest and provides
fixtures available to all test files.
"""

import pytest

from graph import Graph, get_preset


class FakeClock:
    """Manually advanced stand-in for time.monotonic."""

    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tree_graph() -> Graph:
    """Directed tree A→B, A→C, B→D, B→E, C→F."""
    return get_preset("tree").build()


@pytest.fixture
def dijkstra_graph() -> Graph:
    """Undirected weighted example: A-B:3, A-C:1, B-D:3, C-E:4, A-D:2, D-E:1, C-D:5, B-E:2."""
    return get_preset("dijkstra_example1").build()


@pytest.fixture
def disconnected_spec() -> dict:
    """Weighted graph where X and Y can't be reached from A."""
    return {
        "directed": True,
        "nodes": ["A", "B", "X", "Y"],
        "edges": [
            {"source": "A", "target": "B", "weight": 2},
            {"source": "X", "target": "Y", "weight": 1},
        ],
    }


@pytest.fixture
def client():
    """Flask test client with a clean session registry."""
    import main

    main.app.config["TESTING"] = True
    main.SESSIONS.clear()
    with main.app.test_client() as test_client:
        yield test_client
    main.SESSIONS.clear()
