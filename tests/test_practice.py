"""Unit tests for the prediction (practice mode) controller."""

import pytest

from engine import Phase, PredictionController
from graph import get_preset
from traversal import BfsEngine, DijkstraEngine, IllegalOperationError


@pytest.fixture
def bfs_quiz(tree_graph):
    controller = PredictionController(BfsEngine(tree_graph, "A"))
    controller.enable()
    return controller


@pytest.fixture
def dijkstra_quiz(dijkstra_graph):
    controller = PredictionController(DijkstraEngine(dijkstra_graph, "A"))
    controller.enable()
    return controller


def answer_round(controller):
    """Answer the current question correctly and apply the step."""
    state = controller.engine.snapshot()
    node = controller.engine.ground_truth_selection(state)
    controller.submit_selection_guess(node)
    for nbr in controller.engine.ground_truth_expansion(state, node):
        controller.toggle_expansion_guess(nbr)
    controller.submit_expansion_guess()
    return controller.apply_step_if_allowed()


class TestLifecycle:
    """Test enabling and disabling practice mode."""

    def test_enable_resets_engine(self, tree_graph):
        """Turning practice on rewinds the run and asks the first question."""
        engine = BfsEngine(tree_graph, "A")
        engine.run_to_completion(max_steps=2)
        controller = PredictionController(engine)
        controller.enable()
        assert engine.step_count == 0
        assert controller.phase is Phase.SELECTING
        assert controller.narration == "Which node will be dequeued next?"

    def test_disable_leaves_engine(self, bfs_quiz):
        """Turning practice off keeps the traversal where it is."""
        answer_round(bfs_quiz)
        bfs_quiz.disable()
        assert bfs_quiz.phase is Phase.IDLE
        assert bfs_quiz.engine.step_count == 1

    def test_submissions_need_practice_on(self, tree_graph):
        """Guesses are rejected while practice is off."""
        controller = PredictionController(BfsEngine(tree_graph, "A"))
        with pytest.raises(IllegalOperationError):
            controller.submit_selection_guess("A")
        with pytest.raises(IllegalOperationError):
            controller.request_hint()


class TestSelection:
    """Test the 'which node is next' question."""

    def test_correct_selection(self, bfs_quiz):
        """A right answer moves to the expansion question."""
        feedback = bfs_quiz.submit_selection_guess("A")
        assert feedback.correct
        assert bfs_quiz.phase is Phase.EXPANDING
        assert bfs_quiz.challenge_target == "A"
        assert bfs_quiz.selection.score == 1
        assert bfs_quiz.narration == "✅ Correct! A is next. Which neighbours of A will be enqueued? (may be ∅)"

    def test_wrong_selection_hides_answer(self, bfs_quiz):
        """Without reveal, only the wrong guess is reported."""
        feedback = bfs_quiz.submit_selection_guess("B")
        assert not feedback.correct
        assert feedback.extra == ("B",)
        assert feedback.missing == ()
        assert bfs_quiz.phase is Phase.SELECTING
        assert bfs_quiz.selection.attempts == 1
        assert bfs_quiz.selection.score == 0
        assert "correct_answer" not in bfs_quiz.snapshot().to_dict()

    def test_wrong_selection_reveals_answer(self, tree_graph):
        """With reveal, the correct node is listed as missing."""
        controller = PredictionController(BfsEngine(tree_graph, "A"), reveal_answers=True)
        controller.enable()
        feedback = controller.submit_selection_guess("C")
        assert feedback.missing == ("A",)
        assert controller.snapshot().to_dict()["correct_answer"] == ["A"]

    def test_unknown_node_rejected(self, bfs_quiz):
        """Ids that aren't in the graph are an error, not a wrong answer."""
        with pytest.raises(IllegalOperationError):
            bfs_quiz.submit_selection_guess("nope")
        assert bfs_quiz.selection.attempts == 0

    def test_wrong_phase_rejected(self, bfs_quiz):
        """Expansion answers can't be submitted before selecting."""
        with pytest.raises(IllegalOperationError):
            bfs_quiz.submit_expansion_guess()
        with pytest.raises(IllegalOperationError):
            bfs_quiz.toggle_expansion_guess("B")

    def test_candidates_exclude_visited(self, bfs_quiz):
        """Visited nodes are not offered."""
        answer_round(bfs_quiz)
        assert bfs_quiz.candidates() == tuple("BCDEF")


class TestExpansion:
    """Test the 'which neighbours' question and step gating."""

    def test_partial_guess(self, bfs_quiz):
        """Missing and extra neighbours are both reported."""
        bfs_quiz.submit_selection_guess("A")
        bfs_quiz.toggle_expansion_guess("B")
        bfs_quiz.toggle_expansion_guess("D")
        feedback = bfs_quiz.submit_expansion_guess()
        assert not feedback.correct
        assert feedback.missing == ("C",)
        assert feedback.extra == ("D",)
        assert not bfs_quiz.authorized

    def test_toggle_removes(self, bfs_quiz):
        """Toggling twice takes a node back out."""
        bfs_quiz.submit_selection_guess("A")
        bfs_quiz.toggle_expansion_guess("B")
        assert bfs_quiz.toggle_expansion_guess("B") == ()

    def test_target_not_toggleable(self, bfs_quiz):
        """The node being processed isn't a neighbour choice."""
        bfs_quiz.submit_selection_guess("A")
        with pytest.raises(IllegalOperationError):
            bfs_quiz.toggle_expansion_guess("A")

    def test_apply_requires_correct_answer(self, bfs_quiz):
        """Applying without a correct prediction changes nothing."""
        with pytest.raises(IllegalOperationError):
            bfs_quiz.apply_step_if_allowed()
        bfs_quiz.submit_selection_guess("A")
        bfs_quiz.toggle_expansion_guess("B")
        bfs_quiz.submit_expansion_guess()
        with pytest.raises(IllegalOperationError):
            bfs_quiz.apply_step_if_allowed()
        assert bfs_quiz.engine.step_count == 0

    def test_correct_answer_authorizes_one_step(self, bfs_quiz):
        """A correct answer applies exactly one step, then a new round starts."""
        bfs_quiz.submit_selection_guess("A")
        bfs_quiz.toggle_expansion_guess("C")
        bfs_quiz.toggle_expansion_guess("B")
        assert bfs_quiz.submit_expansion_guess().correct
        assert bfs_quiz.apply_step_if_allowed() is True
        assert bfs_quiz.engine.step_count == 1
        assert bfs_quiz.phase is Phase.SELECTING
        with pytest.raises(IllegalOperationError):
            bfs_quiz.apply_step_if_allowed()
        assert bfs_quiz.engine.step_count == 1

    def test_editing_guess_withdraws_authorization(self, bfs_quiz):
        """Changing the answer after a correct submission needs a resubmit."""
        bfs_quiz.submit_selection_guess("A")
        bfs_quiz.toggle_expansion_guess("B")
        bfs_quiz.toggle_expansion_guess("C")
        bfs_quiz.submit_expansion_guess()
        bfs_quiz.toggle_expansion_guess("D")
        with pytest.raises(IllegalOperationError):
            bfs_quiz.apply_step_if_allowed()

    def test_empty_guess_for_leaf(self, bfs_quiz):
        """∅ is the right answer when nothing gets enqueued."""
        for _ in range(3):
            answer_round(bfs_quiz)
        bfs_quiz.submit_selection_guess("D")
        feedback = bfs_quiz.submit_expansion_guess()
        assert feedback.correct
        assert feedback.guess == ()
        assert bfs_quiz.narration.startswith("✅ Correct: [∅].")

    def test_auto_apply(self, tree_graph):
        """With auto_apply the step happens on the correct submission."""
        controller = PredictionController(BfsEngine(tree_graph, "A"), auto_apply=True)
        controller.enable()
        controller.submit_selection_guess("A")
        controller.toggle_expansion_guess("B")
        controller.toggle_expansion_guess("C")
        controller.submit_expansion_guess()
        assert controller.engine.step_count == 1
        assert controller.phase is Phase.SELECTING
        assert controller.last_feedback.correct


class TestFullRuns:
    """Test playing a whole traversal through the quiz."""

    def test_bfs_quiz_to_completion(self, bfs_quiz):
        """Six perfect rounds finish the run and go idle."""
        for _ in range(6):
            answer_round(bfs_quiz)
        assert bfs_quiz.engine.is_complete
        assert bfs_quiz.phase is Phase.IDLE
        assert bfs_quiz.selection.score == 6
        assert bfs_quiz.expansion.score == 6
        assert bfs_quiz.narration.endswith("🎉 BFS complete.")
        with pytest.raises(IllegalOperationError):
            bfs_quiz.submit_selection_guess("A")

    def test_dijkstra_quiz(self, dijkstra_quiz):
        """Dijkstra asks for the closest node, then the improved neighbours."""
        dijkstra_quiz.submit_selection_guess("A")
        for nbr in ("B", "C", "D"):
            dijkstra_quiz.toggle_expansion_guess(nbr)
        assert dijkstra_quiz.submit_expansion_guess().correct
        dijkstra_quiz.apply_step_if_allowed()

        assert not dijkstra_quiz.submit_selection_guess("D").correct
        assert dijkstra_quiz.submit_selection_guess("C").correct
        dijkstra_quiz.toggle_expansion_guess("E")
        dijkstra_quiz.toggle_expansion_guess("D")
        feedback = dijkstra_quiz.submit_expansion_guess()
        assert feedback.extra == ("D",)
        assert dijkstra_quiz.selection.to_dict() == {"score": 2, "attempts": 3, "accuracy": 2 / 3}

    def test_dijkstra_quiz_to_completion(self, dijkstra_quiz):
        """Every round of the weighted example can be answered."""
        while not dijkstra_quiz.engine.is_complete:
            answer_round(dijkstra_quiz)
        assert dijkstra_quiz.engine.snapshot().visit_order == ("A", "C", "D", "B", "E")

    def test_hint_counts(self, bfs_quiz):
        """Hints show the queue and are counted."""
        answer_round(bfs_quiz)
        assert bfs_quiz.request_hint() == "Queue (front → back): [B, C]"
        assert bfs_quiz.hints_used == 1

    def test_rebind_restarts_round(self, bfs_quiz):
        """Switching engines while practising starts over on the new one."""
        answer_round(bfs_quiz)
        preset = get_preset("undirected")
        bfs_quiz.bind(BfsEngine(preset.build(), "A"))
        assert bfs_quiz.selection.attempts == 0
        assert bfs_quiz.phase is Phase.SELECTING
        assert bfs_quiz.candidates() == tuple("ABCDE")
