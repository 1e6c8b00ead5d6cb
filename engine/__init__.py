"""
engine/
-------
Session & playback layer.

    from engine import TraversalSession, Autoplay, PredictionController, RunRecorder
"""

from engine.autoplay import Autoplay, AutoplayState, clamp_interval
from engine.practice import Feedback, Phase, PhaseScore, PredictionController, PredictionSnapshot
from engine.recorder import HistoryEntry, RunMetrics, RunRecorder
from engine.session  import TraversalSession

__all__ = [
    "Autoplay",
    "AutoplayState",
    "clamp_interval",
    "Feedback",
    "Phase",
    "PhaseScore",
    "PredictionController",
    "PredictionSnapshot",
    "HistoryEntry",
    "RunMetrics",
    "RunRecorder",
    "TraversalSession",
]
