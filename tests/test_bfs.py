"""Unit tests for the steppable BFS engine."""

from collections import deque

import pytest

from graph import Graph, get_preset
from traversal import BfsEngine, EngineStatus, IllegalOperationError


def _collect(engine):
    snapshots = []
    while engine.step_once():
        snapshots.append(engine.snapshot())
    return snapshots


def reference_hops(graph: Graph, start: str) -> dict:
    """Textbook BFS hop counts."""
    hops = {start: 0}
    frontier = deque([start])
    while frontier:
        u = frontier.popleft()
        for adj in graph.adjacency(u):
            if adj.neighbor not in hops:
                hops[adj.neighbor] = hops[u] + 1
                frontier.append(adj.neighbor)
    return hops


class TestTreeWalkthrough:
    """Test the directed-tree walkthrough step by step."""

    def test_ready_state(self, tree_graph):
        """Fresh engine waits with the start queued."""
        engine = BfsEngine(tree_graph, "A")
        state = engine.snapshot()
        assert state.status is EngineStatus.READY
        assert state.queue == ("A",)
        assert state.visited == frozenset()
        assert state.narration == "Ready. Starting from A. Queue: [A]"

    def test_first_step(self, tree_graph):
        """Dequeuing A enqueues its children."""
        engine = BfsEngine(tree_graph, "A")
        assert engine.step_once() is True
        state = engine.snapshot()
        assert state.narration == "Dequeued A. Enqueued [B, C]. Queue: [B, C]"
        assert state.queue == ("B", "C")
        assert state.visited == {"A"}
        assert state.last_processed == "A"
        assert state.current is None
        assert state.confirmed_edges == {"A-B", "A-C"}
        assert state.frontier_edges == {"A-B", "A-C"}
        assert state.status is EngineStatus.RUNNING

    def test_display_classes(self, tree_graph):
        """Queued nodes and their discovery edges show as frontier."""
        engine = BfsEngine(tree_graph, "A")
        assert engine.snapshot().node_states() == {"A": "start"}
        engine.step_once()
        state = engine.snapshot()
        assert state.node_states() == {"A": "current", "B": "frontier", "C": "frontier"}
        assert state.edge_states() == {"A-B": "frontier", "A-C": "frontier"}
        engine.step_once()
        assert engine.snapshot().edge_states()["A-B"] == "confirmed"

    def test_leaf_step_enqueues_nothing(self, tree_graph):
        """A leaf reports an empty enqueue."""
        engine = BfsEngine(tree_graph, "A")
        engine.run_to_completion(max_steps=3)
        engine.step_once()
        assert engine.snapshot().narration == "Dequeued D. Enqueued [∅]. Queue: [E, F]"

    def test_full_run(self, tree_graph):
        """Six steps, layer by layer, then complete."""
        engine = BfsEngine(tree_graph, "A")
        assert engine.run_to_completion() == 6
        state = engine.snapshot()
        assert state.visit_order == tuple("ABCDEF")
        assert state.is_complete
        assert state.narration == "Dequeued F. Enqueued [∅]. Queue: [] 🎉 BFS complete."
        assert state.parent == {"A": None, "B": "A", "C": "A", "D": "B", "E": "B", "F": "C"}
        assert state.depth == {"A": 0, "B": 1, "C": 1, "D": 2, "E": 2, "F": 2}
        assert state.frontier_edges == frozenset()

    def test_completion_is_idempotent(self, tree_graph):
        """Stepping a finished run changes nothing."""
        engine = BfsEngine(tree_graph, "A")
        engine.run_to_completion()
        before = engine.snapshot()
        assert engine.step_once() is False
        assert engine.snapshot() == before


class TestInvariants:
    """Test BFS ordering guarantees on every preset."""

    @pytest.mark.parametrize("key", ["tree", "cyclic", "disconnected", "undirected", "grid"])
    def test_nondecreasing_depth(self, key):
        """Nodes are processed in non-decreasing distance from the start."""
        preset = get_preset(key)
        engine = BfsEngine(preset.build(), preset.default_start)
        engine.run_to_completion()
        state = engine.snapshot()
        depths = [state.depth[n] for n in state.visit_order]
        assert depths == sorted(depths)

    @pytest.mark.parametrize("key", ["tree", "cyclic", "disconnected", "undirected", "grid"])
    def test_visit_order_matches_hop_counts(self, key):
        """Visit order is non-decreasing in true hop count, and covers exactly the reachable nodes."""
        preset = get_preset(key)
        graph = preset.build()
        engine = BfsEngine(graph, preset.default_start)
        engine.run_to_completion()
        hops = reference_hops(graph, preset.default_start)
        order = engine.snapshot().visit_order
        assert set(order) == set(hops)
        distances = [hops[n] for n in order]
        assert distances == sorted(distances)
        assert all(engine.snapshot().depth[n] == hops[n] for n in order)

    @pytest.mark.parametrize("key", ["cyclic", "undirected", "grid"])
    def test_no_node_queued_twice(self, key):
        """The queue never holds a node twice, nor a visited node."""
        preset = get_preset(key)
        engine = BfsEngine(preset.build(), preset.default_start)
        for state in _collect(engine):
            assert len(set(state.queue)) == len(state.queue)
            assert not set(state.queue) & state.visited
        assert len(engine.visit_order) == len(set(engine.visit_order))

    def test_unreachable_nodes_stay_unvisited(self):
        """BFS only covers the start's component."""
        engine = BfsEngine(get_preset("disconnected").build(), "A")
        engine.run_to_completion()
        assert engine.snapshot().visit_order == ("A", "B", "C")

    def test_cycle_terminates(self):
        """A directed cycle is walked once."""
        engine = BfsEngine(get_preset("cyclic").build(), "A")
        assert engine.run_to_completion() == 3


class TestLifecycle:
    """Test reset and start-node handling."""

    def test_reset_restores_ready(self, tree_graph):
        """reset() wipes the run but keeps the start."""
        engine = BfsEngine(tree_graph, "B")
        engine.run_to_completion()
        engine.reset()
        state = engine.snapshot()
        assert state.status is EngineStatus.READY
        assert state.start == "B"
        assert state.queue == ("B",)
        assert state.step_count == 0

    def test_unknown_start(self, tree_graph):
        """Starting from a missing node is rejected."""
        with pytest.raises(IllegalOperationError):
            BfsEngine(tree_graph, "Z")

    def test_default_start_is_first_node(self, tree_graph):
        """Without a start, the first defined node is used."""
        assert BfsEngine(tree_graph).start == "A"

    def test_empty_graph(self):
        """An empty graph completes immediately."""
        engine = BfsEngine(Graph())
        assert engine.step_once() is False
        assert engine.is_complete

    def test_listener_sees_each_step(self, tree_graph):
        """A StepEvent follows every step."""
        events = []
        engine = BfsEngine(tree_graph, "A")
        engine.add_listener(events.append)
        engine.run_to_completion()
        performed = [e for e in events if e.performed]
        assert [e.node for e in performed] == list("ABCDEF")
        assert performed[0].snapshot.visited == {"A"}

    def test_path_to(self, tree_graph):
        """Parent pointers give the discovery path."""
        engine = BfsEngine(tree_graph, "A")
        engine.run_to_completion()
        assert engine.path_to("E") == ["A", "B", "E"]

    def test_failed_step_restarts_run(self, tree_graph, monkeypatch):
        """A step that raises leaves a fresh READY run, not a stuck one."""
        engine = BfsEngine(tree_graph, "A")
        engine.step_once()

        def broken(node_id):
            raise RuntimeError("adjacency unavailable")

        monkeypatch.setattr(tree_graph, "adjacency", broken)
        with pytest.raises(RuntimeError):
            engine.step_once()
        state = engine.snapshot()
        assert state.status is EngineStatus.READY
        assert state.step_count == 0
        assert state.queue == ("A",)

        monkeypatch.undo()
        assert engine.run_to_completion() == 6


class TestGroundTruth:
    """Test the answers practice mode checks against."""

    def test_selection_is_queue_front(self, tree_graph):
        """The next dequeued node is the queue front."""
        engine = BfsEngine(tree_graph, "A")
        engine.step_once()
        assert engine.ground_truth_selection(engine.snapshot()) == "B"

    def test_expansion_matches_step(self, tree_graph):
        """Predicted enqueues equal what the step actually enqueues."""
        engine = BfsEngine(tree_graph, "A")
        while not engine.is_complete:
            state = engine.snapshot()
            node = engine.ground_truth_selection(state)
            predicted = engine.ground_truth_expansion(state, node)
            engine.step_once()
            after = engine.snapshot()
            assert after.last_processed == node
            if predicted:
                assert after.queue[-len(predicted):] == predicted

    def test_expansion_skips_queued(self):
        """Already-queued neighbours are not enqueued again."""
        g = Graph().load({
            "directed": True,
            "nodes": ["S", "A", "B"],
            "edges": [{"source": "S", "target": "A"}, {"source": "S", "target": "B"}, {"source": "A", "target": "B"}],
        })
        engine = BfsEngine(g, "S")
        engine.step_once()
        state = engine.snapshot()
        assert engine.ground_truth_expansion(state, "A") == ()

    def test_complete_has_no_selection(self, tree_graph):
        """Nothing to predict once complete."""
        engine = BfsEngine(tree_graph, "A")
        engine.run_to_completion()
        assert engine.ground_truth_selection(engine.snapshot()) is None
