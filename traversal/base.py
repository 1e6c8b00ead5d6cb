"""
base.py — Steppable Traversal Engine
=====================================
Shared skeleton of the BFS and Dijkstra engines.

State machine:
    READY    →  step_once()  →  STEPPING  →  RUNNING
    RUNNING  →  step_once()  →  STEPPING  →  RUNNING | COMPLETE
    COMPLETE →  step_once()  →  COMPLETE   (returns False, touches nothing)
    STEPPING →  (_advance raises) → READY   (exception re-raised)
    any      →  reset()      →  READY

A step is atomic: every piece of state for that step is final by the time
step_once() returns, and only then is a StepEvent emitted to listeners.
Each engine instance owns an RLock held for the whole step so a threaded
host can't interleave two steps or read a half-applied one.

Subclasses implement:
    _init_state()                      – algorithm-specific fields on reset
    _advance()                         – one dequeue/selection + expansion
    snapshot()                         – frozen copy of the state
    ground_truth_selection(state)      – which node the next step processes
    ground_truth_expansion(state, n)   – which neighbours that step affects
    hint(state)                        – a practice-mode nudge
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Set, Tuple

from graph import Graph
from traversal.errors import IllegalOperationError
from traversal.snapshot import EngineStatus, Snapshot, StepEvent

logger = logging.getLogger(__name__)


StepListener = Callable[[StepEvent], None]


class TraversalEngine(ABC):

    key:           str       = ""
    label:         str       = ""
    PSEUDOCODE:    List[str] = []
    SELECT_PROMPT: str       = "Which node is processed next?"
    EXPAND_PROMPT: str       = "Which neighbours of {node} are affected? (may be ∅)"

    def __init__(self, graph: Graph, start: Optional[str] = None):
        self._validate_graph(graph)
        self.graph:       Graph              = graph
        self.start:       Optional[str]      = None
        self._lock                           = threading.RLock()
        self._listeners:  List[StepListener] = []
        self.reset(start)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def _validate_graph(self, graph: Graph) -> None:
        """Hook for engines with extra requirements on the graph."""

    def reset(self, start: Optional[str] = None) -> None:
        """
        Back to READY.  `start` picks a new start node; without it the old
        start is kept if it still exists, else the first node in the graph.
        """
        with self._lock:
            if start is not None:
                if not self.graph.has_node(start):
                    raise IllegalOperationError(f"Unknown start node: {start}")
                self.start = start
            elif self.start is None or not self.graph.has_node(self.start):
                ids = self.graph.node_ids()
                self.start = ids[0] if ids else None

            self.status:          EngineStatus             = EngineStatus.READY
            self.step_count:      int                      = 0
            self.current:         Optional[str]            = None
            self.last_processed:  Optional[str]            = None
            self.visited:         Set[str]                 = set()
            self.visit_order:     List[str]                = []
            self.parent:          Dict[str, Optional[str]] = {}
            self.confirmed_edges: Set[str]                 = set()
            self.pseudocode_line: int                      = 1
            if self.start is not None:
                self.parent[self.start] = None
            self._init_state()
            self.narration: str = self._ready_narration()
            logger.debug("%s reset (start=%s)", self.key, self.start)

    @abstractmethod
    def _init_state(self) -> None:
        ...

    def _ready_narration(self) -> str:
        if self.start is None:
            return "Choose a start node to begin."
        return f"Ready. Starting from {self.start}."

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------
    def step_once(self) -> bool:
        """
        Perform one dequeue/selection step.  Returns True if a step was
        performed, False if the traversal was (or just became) complete.
        Never raises for a well-formed graph.
        """
        with self._lock:
            if self.status is EngineStatus.COMPLETE:
                return False

            if self.start is None:
                self._complete("No start node selected; nothing to traverse.")
                performed = False
            else:
                self.status = EngineStatus.STEPPING
                try:
                    performed = self._advance()
                except Exception:
                    # discard the half-applied step
                    logger.exception("%s step %d failed; resetting", self.key, self.step_count + 1)
                    self.reset()
                    raise
                if self.status is EngineStatus.STEPPING:
                    self.status = EngineStatus.RUNNING

            if performed:
                self.step_count += 1
                logger.debug("%s step %d: %s", self.key, self.step_count, self.narration)

            event = StepEvent(
                step_number=self.step_count,
                node=self.last_processed if performed else None,
                performed=performed,
                snapshot=self.snapshot(),
            )
            self._emit(event)
            return performed

    @abstractmethod
    def _advance(self) -> bool:
        ...

    def run_to_completion(self, max_steps: Optional[int] = None) -> int:
        """Step until complete (or max_steps).  Returns steps performed."""
        taken = 0
        while max_steps is None or taken < max_steps:
            if not self.step_once():
                break
            taken += 1
        return taken

    def _complete(self, narration: str) -> None:
        self.status          = EngineStatus.COMPLETE
        self.current         = None
        self.narration       = narration
        self.pseudocode_line = len(self.PSEUDOCODE) - 1
        logger.info("%s complete after %d step(s)", self.key, self.step_count)

    @property
    def is_complete(self) -> bool:
        return self.status is EngineStatus.COMPLETE

    # ------------------------------------------------------------------
    # Listeners (step completion signal)
    # ------------------------------------------------------------------
    def add_listener(self, listener: StepListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: StepListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: StepEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @abstractmethod
    def snapshot(self) -> Snapshot:
        ...

    def _base_fields(self) -> dict:
        return dict(
            algorithm=self.key,
            status=self.status,
            start=self.start,
            step_count=self.step_count,
            current=self.current,
            last_processed=self.last_processed,
            visited=frozenset(self.visited),
            visit_order=tuple(self.visit_order),
            parent=dict(self.parent),
            confirmed_edges=frozenset(self.confirmed_edges),
            narration=self.narration,
            pseudocode_line=self.pseudocode_line,
        )

    def path_to(self, target: str) -> List[str]:
        """Start → target along parent pointers; [] if target not reached yet."""
        with self._lock:
            if target != self.start and target not in self.parent:
                return []
            path: List[str] = []
            cur: Optional[str] = target
            while cur is not None:
                path.append(cur)
                cur = self.parent.get(cur)
            path.reverse()
            return path

    # ------------------------------------------------------------------
    # Ground truth (practice mode)
    # ------------------------------------------------------------------
    @abstractmethod
    def ground_truth_selection(self, state: Snapshot) -> Optional[str]:
        ...

    @abstractmethod
    def ground_truth_expansion(self, state: Snapshot, selected: str) -> Tuple[str, ...]:
        ...

    @abstractmethod
    def hint(self, state: Snapshot) -> str:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(start={self.start}, status={self.status.value}, steps={self.step_count})"
