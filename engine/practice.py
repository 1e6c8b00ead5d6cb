"""
practice.py — Prediction (Practice Mode) Controller
====================================================
Turns a traversal engine into a two-question quiz per step:

    SELECTING  "Which node is processed next?"        submit_selection_guess()
    EXPANDING  "Which of its neighbours are affected?" toggle / submit_expansion_guess()

Only a correct expansion answer authorizes the engine to advance, and it
authorizes exactly one step_once().  With auto_apply the step happens as
soon as the answer is right; otherwise apply_step_if_allowed() does it.

State machine:
    IDLE       →  enable()                       →  SELECTING
    SELECTING  →  correct selection              →  EXPANDING
    SELECTING  →  wrong selection                →  SELECTING
    EXPANDING  →  correct expansion (+ apply)    →  SELECTING | IDLE (run complete)
    EXPANDING  →  wrong expansion                →  EXPANDING
    any        →  disable()                      →  IDLE

Design decisions:
  - Ground truth is recomputed from a fresh engine snapshot at every
    submission.  The controller never trusts an answer it cached earlier.
  - A quiz mismatch is feedback, not an error.  Contract violations (wrong
    phase, unknown node id, applying without authorization) raise
    IllegalOperationError and leave the engine untouched.
  - The correct answer is only exposed by snapshot() when reveal_answers
    is on.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import config
from traversal import IllegalOperationError, TraversalEngine

logger = logging.getLogger(__name__)


class Phase(Enum):
    IDLE      = "idle"
    SELECTING = "selecting"
    EXPANDING = "expanding"


def _names(ids) -> str:
    return ", ".join(ids) or "∅"


# ---------------------------------------------------------------------------
# Feedback & scores
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Feedback:
    """Result of one submission.  `missing` / `extra` are empty when correct."""

    phase:    Phase
    correct:  bool
    guess:    Tuple[str, ...]
    missing:  Tuple[str, ...] = ()
    extra:    Tuple[str, ...] = ()
    message:  str             = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase":   self.phase.value,
            "correct": self.correct,
            "guess":   list(self.guess),
            "missing": list(self.missing),
            "extra":   list(self.extra),
            "message": self.message,
        }


@dataclass
class PhaseScore:
    score:    int = 0
    attempts: int = 0

    def record(self, correct: bool) -> None:
        self.attempts += 1
        if correct:
            self.score += 1

    @property
    def accuracy(self) -> Optional[float]:
        return self.score / self.attempts if self.attempts else None

    def to_dict(self) -> Dict[str, Any]:
        return {"score": self.score, "attempts": self.attempts, "accuracy": self.accuracy}


@dataclass(frozen=True)
class PredictionSnapshot:
    enabled:           bool
    phase:             Phase
    auto_apply:        bool
    authorized:        bool
    challenge_target:  Optional[str]
    prompt:            str
    candidates:        Tuple[str, ...]
    expansion_guess:   Tuple[str, ...]
    last_feedback:     Optional[Feedback]
    selection:         PhaseScore         = field(default_factory=PhaseScore)
    expansion:         PhaseScore         = field(default_factory=PhaseScore)
    hints_used:        int                = 0
    narration:         str                = ""
    correct_answer:    Optional[Tuple[str, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "enabled":          self.enabled,
            "phase":            self.phase.value,
            "auto_apply":       self.auto_apply,
            "authorized":       self.authorized,
            "challenge_target": self.challenge_target,
            "prompt":           self.prompt,
            "candidate_options": list(self.candidates),
            "expansion_guess":  list(self.expansion_guess),
            "last_feedback":    self.last_feedback.to_dict() if self.last_feedback else None,
            "selection":        self.selection.to_dict(),
            "expansion":        self.expansion.to_dict(),
            "hints_used":       self.hints_used,
            "narration":        self.narration,
        }
        if self.correct_answer is not None:
            data["correct_answer"] = list(self.correct_answer)
        return data


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------
class PredictionController:
    """
    Attributes:
        engine           : The engine being quizzed (None until bound).
        enabled          : Practice mode on/off.
        phase            : Current Phase.
        challenge_target : Node confirmed by a correct selection guess.
        expansion_guess  : Neighbours currently toggled on, in toggle order.
        authorized       : True between a correct expansion and the step.
        selection        : PhaseScore for selection guesses.
        expansion        : PhaseScore for expansion guesses.
        hints_used       : request_hint() calls since practice was enabled.
    """

    def __init__(
        self,
        engine: Optional[TraversalEngine] = None,
        auto_apply: bool = config.PRACTICE_AUTO_APPLY,
        reveal_answers: bool = config.PRACTICE_REVEAL_ANSWERS,
        exclude_visited: bool = config.PRACTICE_EXCLUDE_VISITED,
    ):
        self.engine          = engine
        self.auto_apply      = auto_apply
        self.reveal_answers  = reveal_answers
        self.exclude_visited = exclude_visited
        self.enabled         = False
        self.selection       = PhaseScore()
        self.expansion       = PhaseScore()
        self.hints_used      = 0
        self._clear_round()

    def _clear_round(self) -> None:
        self.phase:            Phase              = Phase.IDLE
        self.challenge_target: Optional[str]      = None
        self.expansion_guess:  List[str]          = []
        self.authorized:       bool               = False
        self.last_feedback:    Optional[Feedback] = None
        self.narration:        str                = ""
        self._answer:          Optional[Tuple[str, ...]] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def bind(self, engine: TraversalEngine) -> None:
        """Quiz a different engine (new graph or algorithm)."""
        self.engine = engine
        if self.enabled:
            self.restart()
        else:
            self._clear_round()

    def enable(self) -> None:
        """Practice on: engine back to READY, scores cleared, first question asked."""
        self._require_engine()
        self.enabled = True
        logger.info("practice mode on (%s)", self.engine.key)
        self.restart()

    def disable(self) -> None:
        """Practice off: back to IDLE.  The engine is left exactly as it is."""
        self.enabled = False
        self._clear_round()
        logger.info("practice mode off")

    def restart(self) -> None:
        """Reset the engine and the scores, then ask the first question."""
        self._require_engine()
        self.engine.reset()
        self.selection  = PhaseScore()
        self.expansion  = PhaseScore()
        self.hints_used = 0
        self._begin_round()

    def _begin_round(self, lead: str = "", keep_feedback: bool = False) -> None:
        feedback = self.last_feedback
        self._clear_round()
        if keep_feedback:
            self.last_feedback = feedback
        state = self.engine.snapshot()
        if self.engine.ground_truth_selection(state) is None:
            self.narration = state.narration
            return
        self.phase     = Phase.SELECTING
        self.narration = f"{lead}{self.engine.SELECT_PROMPT}"

    # ------------------------------------------------------------------
    # Selection phase
    # ------------------------------------------------------------------
    def submit_selection_guess(self, node_id: str) -> Feedback:
        self._require_phase(Phase.SELECTING)
        self._require_node(node_id)

        state = self.engine.snapshot()
        truth = self.engine.ground_truth_selection(state)
        correct = node_id == truth
        self.selection.record(correct)

        if correct:
            self.challenge_target = truth
            self._answer          = self.engine.ground_truth_expansion(state, truth)
            self.expansion_guess  = []
            self.phase            = Phase.EXPANDING
            message = f"✅ Correct! {truth} is next. " + self.engine.EXPAND_PROMPT.format(node=truth)
            feedback = Feedback(Phase.SELECTING, True, (node_id,), message=message)
        else:
            self._answer = (truth,)
            if self.reveal_answers:
                message = f"❌ Not quite. You chose {node_id}, but {truth} is next."
                missing = (truth,)
            else:
                message = f"❌ Not quite. You chose {node_id}. Try again."
                missing = ()
            feedback = Feedback(Phase.SELECTING, False, (node_id,), missing=missing, extra=(node_id,), message=message)

        logger.debug("selection guess %s: %s", node_id, "correct" if correct else "wrong")
        self.last_feedback = feedback
        self.narration     = feedback.message
        return feedback

    # ------------------------------------------------------------------
    # Expansion phase
    # ------------------------------------------------------------------
    def toggle_expansion_guess(self, node_id: str) -> Tuple[str, ...]:
        """Add/remove a neighbour from the guess.  Any edit withdraws a pending authorization."""
        self._require_phase(Phase.EXPANDING)
        self._require_node(node_id)
        if node_id == self.challenge_target:
            raise IllegalOperationError(f"{node_id} is the node being processed, not a neighbour choice")

        if node_id in self.expansion_guess:
            self.expansion_guess.remove(node_id)
        else:
            self.expansion_guess.append(node_id)
        self.authorized    = False
        self.last_feedback = None
        return tuple(self.expansion_guess)

    def submit_expansion_guess(self) -> Feedback:
        self._require_phase(Phase.EXPANDING)

        state = self.engine.snapshot()
        truth = self.engine.ground_truth_expansion(state, self.challenge_target)
        self._answer = truth
        guess   = tuple(self.expansion_guess)
        missing = tuple(n for n in truth if n not in guess)
        extra   = tuple(n for n in guess if n not in truth)
        correct = not missing and not extra
        self.expansion.record(correct)

        if correct:
            self.authorized = True
            tail = "Applying the step." if self.auto_apply else "Apply the step to continue."
            message = f"✅ Correct: [{_names(truth)}]. {tail}"
        else:
            self.authorized = False
            parts = []
            if missing:
                parts.append(f"missing [{_names(missing)}]")
            if extra:
                parts.append(f"extra [{_names(extra)}]")
            message = f"❌ Not quite: {'; '.join(parts)}."

        feedback = Feedback(Phase.EXPANDING, correct, guess, missing=missing, extra=extra, message=message)
        logger.debug("expansion guess [%s] for %s: %s", _names(guess), self.challenge_target,
                     "correct" if correct else "wrong")
        self.last_feedback = feedback
        self.narration     = message

        if correct and self.auto_apply:
            self.apply_step_if_allowed()
        return feedback

    # ------------------------------------------------------------------
    # Gated step
    # ------------------------------------------------------------------
    def apply_step_if_allowed(self) -> bool:
        """Run the one step a correct expansion answer earned."""
        if not self.enabled or self.phase is not Phase.EXPANDING or not self.authorized:
            logger.warning("step rejected: no correct prediction pending")
            raise IllegalOperationError("Predict the next step correctly before applying it")

        # the engine must still be where the question was asked
        if self.engine.ground_truth_selection(self.engine.snapshot()) != self.challenge_target:
            self._begin_round()
            raise IllegalOperationError("The traversal moved on; answer the new question")

        self.authorized = False
        performed = self.engine.step_once()
        if self.engine.is_complete:
            self._clear_round()
            self.narration = self.engine.narration
        else:
            self._begin_round(lead=f"{self.engine.narration} ", keep_feedback=True)
        return performed

    # ------------------------------------------------------------------
    # Hints
    # ------------------------------------------------------------------
    def request_hint(self) -> str:
        if not self.enabled:
            raise IllegalOperationError("Hints are only available in practice mode")
        self.hints_used += 1
        return self.engine.hint(self.engine.snapshot())

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def candidates(self) -> Tuple[str, ...]:
        if self.engine is None or self.phase is Phase.IDLE:
            return ()
        ids = self.engine.graph.node_ids()
        if self.phase is Phase.EXPANDING:
            return tuple(n for n in ids if n != self.challenge_target)
        if self.exclude_visited:
            visited = self.engine.snapshot().visited
            return tuple(n for n in ids if n not in visited)
        return tuple(ids)

    def prompt(self) -> str:
        if self.engine is None or self.phase is Phase.IDLE:
            return ""
        if self.phase is Phase.EXPANDING:
            return self.engine.EXPAND_PROMPT.format(node=self.challenge_target)
        return self.engine.SELECT_PROMPT

    def snapshot(self) -> PredictionSnapshot:
        return PredictionSnapshot(
            enabled=self.enabled,
            phase=self.phase,
            auto_apply=self.auto_apply,
            authorized=self.authorized,
            challenge_target=self.challenge_target,
            prompt=self.prompt(),
            candidates=self.candidates(),
            expansion_guess=tuple(self.expansion_guess),
            last_feedback=self.last_feedback,
            selection=PhaseScore(self.selection.score, self.selection.attempts),
            expansion=PhaseScore(self.expansion.score, self.expansion.attempts),
            hints_used=self.hints_used,
            narration=self.narration,
            correct_answer=self._answer if self.reveal_answers else None,
        )

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------
    def _require_engine(self) -> None:
        if self.engine is None:
            raise IllegalOperationError("No traversal loaded")

    def _require_phase(self, phase: Phase) -> None:
        if not self.enabled:
            raise IllegalOperationError("Practice mode is off")
        if self.phase is not phase:
            logger.warning("%s submission rejected in phase %s", phase.value, self.phase.value)
            raise IllegalOperationError(f"Not expecting a {phase.value} answer (phase is {self.phase.value})")

    def _require_node(self, node_id: str) -> None:
        if not self.engine.graph.has_node(node_id):
            raise IllegalOperationError(f"Unknown node: {node_id}")
