"""
recorder.py — Run Recorder & Analytics
========================================
Listens to an engine's StepEvents and keeps what the history panel and the
end-of-run summary need.

Usage:
    rec = RunRecorder()
    rec.attach(engine)               # subscribes to step events
    engine.run_to_completion()
    rec.metrics()                    # the summary card
    rec.export()                     # JSON-ready history + metrics

The recorder never drives the engine; it only observes it, so it works the
same under manual stepping, autoplay and practice mode.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from traversal import DijkstraSnapshot, StepEvent, TraversalEngine

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# History entry: one line of the step log
# ---------------------------------------------------------------------------
@dataclass
class HistoryEntry:
    step_number: int
    node:        Optional[str]
    narration:   str
    performed:   bool


# ---------------------------------------------------------------------------
# Metrics dataclass: what the summary card renders
# ---------------------------------------------------------------------------
@dataclass
class RunMetrics:
    algorithm:           str            = ""
    start:               Optional[str]  = None
    total_steps:         int            = 0
    nodes_visited:       int            = 0
    edges_compared:      int            = 0    # adjacency entries looked at while expanding
    edges_confirmed:     int            = 0    # size of the discovery / shortest-path tree
    completed:           bool           = False
    unreached:           List[str]      = field(default_factory=list)
    selection_score:     int            = 0
    selection_attempts:  int            = 0
    expansion_score:     int            = 0
    expansion_attempts:  int            = 0
    quiz_accuracy:       Optional[float] = None


# ---------------------------------------------------------------------------
# Recorder
# ---------------------------------------------------------------------------
class RunRecorder:
    """
    Attributes:
        history     : HistoryEntry per emitted StepEvent.
        visit_order : Nodes in the order the steps processed them.
        engine      : The engine being observed.
    """

    def __init__(self):
        self.engine:         Optional[TraversalEngine] = None
        self.history:        List[HistoryEntry]        = []
        self.visit_order:    List[str]                 = []
        self.edges_compared: int                       = 0

    def attach(self, engine: TraversalEngine) -> None:
        """Observe `engine` from now on (detaching from any previous one)."""
        self.detach()
        self.engine = engine
        engine.add_listener(self.record)
        self.clear()
        logger.debug("recording %s run from %s", engine.key, engine.start)

    def detach(self) -> None:
        if self.engine is not None:
            self.engine.remove_listener(self.record)
            self.engine = None

    def clear(self) -> None:
        """Forget the recorded run (called on reset)."""
        self.history        = []
        self.visit_order    = []
        self.edges_compared = 0

    # ------------------------------------------------------------------
    # Listener
    # ------------------------------------------------------------------
    def record(self, event: StepEvent) -> None:
        self.history.append(HistoryEntry(
            step_number=event.step_number,
            node=event.node,
            narration=event.snapshot.narration,
            performed=event.performed,
        ))
        if not event.performed or event.node is None:
            return
        self.visit_order.append(event.node)
        if isinstance(event.snapshot, DijkstraSnapshot):
            self.edges_compared += len(event.snapshot.comparisons)
        elif self.engine is not None:
            self.edges_compared += self.engine.graph.degree(event.node)

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------
    def metrics(self, practice=None) -> RunMetrics:
        """Summary of the run so far.  Pass the PredictionController for quiz scores."""
        m = RunMetrics(edges_compared=self.edges_compared, total_steps=len(self.visit_order))
        if self.engine is not None:
            state = self.engine.snapshot()
            m.algorithm       = state.algorithm
            m.start           = state.start
            m.nodes_visited   = len(state.visited)
            m.edges_confirmed = len(state.confirmed_edges)
            m.completed       = state.is_complete
            m.unreached       = [n for n in self.engine.graph.node_ids() if n not in state.visited]
        if practice is not None:
            m.selection_score    = practice.selection.score
            m.selection_attempts = practice.selection.attempts
            m.expansion_score    = practice.expansion.score
            m.expansion_attempts = practice.expansion.attempts
            attempts = m.selection_attempts + m.expansion_attempts
            if attempts:
                m.quiz_accuracy = (m.selection_score + m.expansion_score) / attempts
        return m

    def export(self, practice=None) -> Dict[str, Any]:
        """Serialisable record of the run."""
        return {
            "history":     [asdict(h) for h in self.history],
            "visit_order": list(self.visit_order),
            "metrics":     asdict(self.metrics(practice)),
        }
