"""
session.py — One Learner's Traversal Session
==============================================
Everything a single learner can do, as plain method calls:

    s = TraversalSession(algorithm="bfs")          # loads the "tree" preset
    s.step_once()
    s.toggle_practice(True)
    s.submit_selection_guess("A")
    s.snapshot()                                   # JSON-ready output surface

A session owns exactly one Graph, one engine, one Autoplay timer, one
PredictionController and one RunRecorder.  Nothing is module-level, so two
sessions never see each other's state.

Ordering rule:
  Every operation that replaces or edits the graph, resets, moves the
  start node, or toggles practice mode cancels autoplay FIRST.  Autoplay's
  cancel() waits for an in-flight tick, so no stale tick can step the new
  run.

Graph changes are validated on a scratch copy and only swapped in once the
new graph and its engine are both built; a rejected change leaves the
previous graph and run exactly as they were.
"""

import logging
import threading
import time
from functools import wraps
from typing import Any, Dict, Optional

import config
from engine.autoplay import Autoplay
from engine.practice import Feedback, PredictionController
from engine.recorder import RunRecorder
from graph import Graph, Preset, get_preset
from graph.edge import Number
from traversal import AlgoInfo, IllegalOperationError, TraversalEngine, get_algorithm

logger = logging.getLogger(__name__)


def _locked(method):
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


class TraversalSession:
    """
    Attributes:
        algorithm : AlgoInfo of the active traversal.
        graph     : The Graph being traversed.
        preset    : Key of the preset the graph came from (None if custom).
        engine    : The active TraversalEngine.
        autoplay  : Autoplay timer driving engine.step_once.
        practice  : PredictionController quizzing the engine.
        recorder  : RunRecorder observing the engine.
    """

    def __init__(
        self,
        algorithm: str = config.DEFAULT_ALGORITHM,
        preset: Optional[str] = None,
        graph_spec: Optional[dict] = None,
        start: Optional[str] = None,
        interval_ms: Optional[float] = None,
        auto_apply: bool = config.PRACTICE_AUTO_APPLY,
        reveal_answers: bool = config.PRACTICE_REVEAL_ANSWERS,
        exclude_visited: bool = config.PRACTICE_EXCLUDE_VISITED,
        clock=None,
    ):
        self._lock    = threading.RLock()
        self.algorithm: AlgoInfo                 = self._lookup_algorithm(algorithm)
        self.graph:     Graph                    = Graph()
        self.preset:    Optional[str]            = None
        self.engine:    Optional[TraversalEngine] = None
        self.recorder = RunRecorder()
        self.practice = PredictionController(
            auto_apply=auto_apply,
            reveal_answers=reveal_answers,
            exclude_visited=exclude_visited,
        )
        self.autoplay = Autoplay(self._autoplay_step, interval_ms, clock=clock or time.monotonic)

        if graph_spec is not None:
            self.select_graph(graph_spec, start=start)
        else:
            key = preset or config.DEFAULT_PRESETS.get(self.algorithm.key, self.algorithm.default_preset)
            self.select_preset(key, start=start)

    # ------------------------------------------------------------------
    # Graph selection
    # ------------------------------------------------------------------
    @_locked
    def select_graph(self, spec: dict, algorithm: Optional[str] = None, start: Optional[str] = None) -> None:
        """Replace the graph (and optionally the algorithm) wholesale."""
        info = self._lookup_algorithm(algorithm) if algorithm else self.algorithm
        self.autoplay.cancel()
        graph = Graph().load(spec)
        self._install(graph, info, start, preset=None)

    @_locked
    def select_preset(self, name: str, algorithm: Optional[str] = None, start: Optional[str] = None) -> None:
        preset: Optional[Preset] = get_preset(name)
        if preset is None:
            raise IllegalOperationError(f"Unknown preset: {name}")
        info = self._lookup_algorithm(algorithm) if algorithm else self.algorithm
        self.autoplay.cancel()
        self._install(preset.build(), info, start or preset.default_start, preset=preset.key)

    @_locked
    def select_algorithm(self, key: str) -> None:
        """Switch traversal on the current graph, keeping the start node."""
        info = self._lookup_algorithm(key)
        self.autoplay.cancel()
        self._install(Graph.from_dict(self.graph.to_dict()), info, self.engine.start, preset=self.preset)

    @_locked
    def import_graph(self, text: str, directed: bool = True, start: Optional[str] = None) -> None:
        """Replace the graph from adjacency-list text ("A: B(3), C")."""
        self.autoplay.cancel()
        self._install(Graph.from_adjacency_list(text, directed=directed), self.algorithm, start, preset=None)

    def _install(self, graph: Graph, info: AlgoInfo, start: Optional[str], preset: Optional[str]) -> None:
        # engine construction validates the graph; nothing is swapped until it succeeds
        engine = info.engine_cls(graph, start)
        self.graph     = graph
        self.algorithm = info
        self.preset    = preset
        self.engine    = engine
        self.recorder.attach(engine)
        self.practice.bind(engine)
        logger.info("session loaded %s on %r (start=%s)", info.key, graph, engine.start)

    @staticmethod
    def _lookup_algorithm(key: str) -> AlgoInfo:
        info = get_algorithm(key)
        if info is None:
            raise IllegalOperationError(f"Unknown algorithm: {key}")
        return info

    # ------------------------------------------------------------------
    # Edit mode
    # ------------------------------------------------------------------
    @_locked
    def add_node(self, node_id: str, label: Optional[str] = None) -> None:
        self._edit(lambda g: g.create_node(node_id, label=label))

    @_locked
    def add_edge(
        self,
        source: str,
        target: str,
        weight: Optional[Number] = None,
        edge_id: Optional[str] = None,
    ) -> None:
        self._edit(lambda g: g.create_edge(source, target, weight=weight, edge_id=edge_id))

    @_locked
    def remove_element(self, element_id: str) -> None:
        """Remove a node (with its edges) or an edge, by id."""
        if self.graph.has_node(element_id):
            self._edit(lambda g: g.remove_node(element_id))
        elif self.graph.get_edge(element_id) is not None:
            self._edit(lambda g: g.remove_edge(element_id))
        else:
            raise IllegalOperationError(f"No node or edge with id {element_id}")

    def _edit(self, change) -> None:
        self.autoplay.cancel()
        graph = Graph.from_dict(self.graph.to_dict())
        change(graph)
        start = self.engine.start if graph.has_node(self.engine.start) else None
        self._install(graph, self.algorithm, start, preset=None)

    # ------------------------------------------------------------------
    # Run control
    # ------------------------------------------------------------------
    @_locked
    def set_start_node(self, node_id: str) -> None:
        if not self.graph.has_node(node_id):
            raise IllegalOperationError(f"Unknown start node: {node_id}")
        self.autoplay.cancel()
        self.engine.reset(node_id)
        self.recorder.clear()
        if self.practice.enabled:
            self.practice.restart()

    @_locked
    def reset(self) -> None:
        self.autoplay.cancel()
        self.engine.reset()
        self.recorder.clear()
        if self.practice.enabled:
            self.practice.restart()

    @_locked
    def step_once(self) -> bool:
        """Manual Step button."""
        if self.practice.enabled:
            logger.warning("manual step rejected: practice mode is on")
            raise IllegalOperationError("Practice mode: predict the step before applying it")
        if self.autoplay.is_playing and config.LOCK_MANUAL_STEP_DURING_AUTOPLAY:
            logger.warning("manual step rejected: autoplay is running")
            raise IllegalOperationError("Pause autoplay before stepping manually")
        return self.engine.step_once()

    def run_to_completion(self) -> int:
        steps = 0
        while self.step_once():
            steps += 1
        return steps

    # ------------------------------------------------------------------
    # Autoplay
    # ------------------------------------------------------------------
    @_locked
    def start_autoplay(self, interval_ms: Optional[float] = None) -> bool:
        if self.practice.enabled:
            logger.warning("autoplay rejected: practice mode is on")
            raise IllegalOperationError("Autoplay is disabled in practice mode")
        if self.engine.is_complete:
            return False
        return self.autoplay.start(interval_ms)

    @_locked
    def pause_autoplay(self) -> bool:
        return self.autoplay.pause()

    @_locked
    def set_speed(self, preset: str) -> None:
        self.autoplay.set_speed(preset)

    @_locked
    def tick(self, generation: Optional[int] = None) -> bool:
        return self.autoplay.tick(generation)

    def _autoplay_step(self) -> bool:
        return self.engine.step_once()

    # ------------------------------------------------------------------
    # Practice mode
    # ------------------------------------------------------------------
    @_locked
    def toggle_practice(self, on: bool) -> None:
        self.autoplay.cancel()
        if on:
            self.practice.enable()
            self.recorder.clear()
        else:
            self.practice.disable()

    @_locked
    def set_auto_apply(self, on: bool) -> None:
        self.practice.auto_apply = bool(on)

    @_locked
    def submit_selection_guess(self, node_id: str) -> Feedback:
        return self.practice.submit_selection_guess(node_id)

    @_locked
    def toggle_expansion_guess(self, node_id: str):
        return self.practice.toggle_expansion_guess(node_id)

    @_locked
    def submit_expansion_guess(self) -> Feedback:
        return self.practice.submit_expansion_guess()

    @_locked
    def apply_step_if_allowed(self) -> bool:
        return self.practice.apply_step_if_allowed()

    @_locked
    def request_hint(self) -> str:
        return self.practice.request_hint()

    # ------------------------------------------------------------------
    # Output surface
    # ------------------------------------------------------------------
    @_locked
    def snapshot(self) -> Dict[str, Any]:
        state    = self.engine.snapshot()
        practice = self.practice.snapshot()
        narration = practice.narration if practice.enabled and practice.narration else state.narration
        return {
            "algorithm":  self.algorithm.to_dict(),
            "preset":     self.preset,
            "graph":      self.graph.to_dict(),
            "engine":     state.to_dict(),
            "practice":   practice.to_dict(),
            "autoplay":   self.autoplay.to_dict(),
            "narration":  narration,
        }

    @_locked
    def history(self) -> Dict[str, Any]:
        return self.recorder.export(self.practice)
