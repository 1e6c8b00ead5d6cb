"""
autoplay.py — Autoplay Timer
============================
Drives a step function on a fixed cadence, the way the Play button does.

State machine:
    STOPPED   →  start()   →  PLAYING
    PLAYING   →  pause()   →  STOPPED
    PLAYING   →  (step function returns False) → FINISHED
    FINISHED  →  start()   →  PLAYING      (caller resets the run first)

The timer is cooperative: the host calls tick() from its event loop (or a
client polls it), and tick() steps once whenever the interval has elapsed.
There is exactly one timer per instance, so start() while PLAYING is a no-op.

Every start()/pause()/cancel() bumps `generation`.  A tick carrying an
older generation is dropped, so a tick that was scheduled before a pause or
a reset can never apply a step to the new run.  cancel() takes the same lock
tick() holds while stepping: once cancel() returns, no step is in flight.
"""

import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional

import config
from traversal import IllegalOperationError

logger = logging.getLogger(__name__)


class AutoplayState(Enum):
    STOPPED  = "stopped"
    PLAYING  = "playing"
    FINISHED = "finished"


def clamp_interval(interval_ms: float) -> int:
    """Keep the cadence inside the configured bounds."""
    return int(min(config.AUTOPLAY_MAX_INTERVAL_MS, max(config.AUTOPLAY_MIN_INTERVAL_MS, interval_ms)))


class Autoplay:
    """
    Attributes:
        state       : Current AutoplayState.
        interval_ms : Milliseconds between steps (clamped).
        generation  : Incremented whenever the timer is (re)armed or cancelled.
        steps_taken : Steps performed by this timer since the last start().
    """

    def __init__(
        self,
        step_fn: Callable[[], bool],
        interval_ms: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._step_fn     = step_fn
        self._clock       = clock
        self._lock        = threading.RLock()
        self._last_tick:  float         = 0.0
        self.state:       AutoplayState = AutoplayState.STOPPED
        self.generation:  int           = 0
        self.steps_taken: int           = 0
        self.interval_ms: int           = clamp_interval(
            config.AUTOPLAY_DEFAULT_INTERVAL_MS if interval_ms is None else interval_ms
        )

    # ------------------------------------------------------------------
    # Play / Pause
    # ------------------------------------------------------------------
    def start(self, interval_ms: Optional[float] = None) -> bool:
        """Arm the timer.  Returns False (and changes nothing) if already playing."""
        with self._lock:
            if self.state is AutoplayState.PLAYING:
                return False
            if interval_ms is not None:
                self.interval_ms = clamp_interval(interval_ms)
            self.generation  += 1
            self.steps_taken  = 0
            self.state        = AutoplayState.PLAYING
            self._last_tick   = self._clock()
            logger.debug("autoplay started (every %d ms, gen %d)", self.interval_ms, self.generation)
            return True

    def pause(self) -> bool:
        """Stop playing.  Returns False if the timer wasn't playing."""
        with self._lock:
            if self.state is not AutoplayState.PLAYING:
                return False
            self.cancel()
            return True

    def cancel(self) -> None:
        """Drop any pending tick.  Safe to call in any state."""
        with self._lock:
            self.generation += 1
            if self.state is AutoplayState.PLAYING:
                self.state = AutoplayState.STOPPED
                logger.debug("autoplay cancelled (gen %d)", self.generation)

    # ------------------------------------------------------------------
    # Tick  (call this from your event loop / timer)
    # ------------------------------------------------------------------
    def tick(self, generation: Optional[int] = None) -> bool:
        """
        Step once if playing and the interval has elapsed.  `generation`
        is the value the caller saw when it scheduled this tick; a stale
        one is ignored.  Returns True if a step was taken.
        """
        with self._lock:
            if self.state is not AutoplayState.PLAYING:
                return False
            if generation is not None and generation != self.generation:
                logger.debug("dropping stale tick (gen %d, now %d)", generation, self.generation)
                return False
            now = self._clock()
            if (now - self._last_tick) * 1000 < self.interval_ms:
                return False
            self._last_tick = now
            if not self._step_fn():
                self.state = AutoplayState.FINISHED
                self.generation += 1
                logger.debug("autoplay finished after %d step(s)", self.steps_taken)
                return False
            self.steps_taken += 1
            return True

    def due_in(self) -> float:
        """Seconds until the next tick would step (0 when due, inf when not playing)."""
        with self._lock:
            if self.state is not AutoplayState.PLAYING:
                return float("inf")
            elapsed = self._clock() - self._last_tick
            return max(0.0, self.interval_ms / 1000 - elapsed)

    # ------------------------------------------------------------------
    # Speed
    # ------------------------------------------------------------------
    def set_speed(self, preset: str) -> None:
        """Switch to a named cadence from config.SPEED_PRESETS."""
        interval = config.SPEED_PRESETS.get(preset) if isinstance(preset, str) else None
        if interval is None:
            raise IllegalOperationError(f"Unknown speed preset: {preset}")
        self.interval_ms = clamp_interval(interval)

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------
    @property
    def is_playing(self) -> bool:
        return self.state is AutoplayState.PLAYING

    def to_dict(self) -> dict:
        return {
            "state":       self.state.value,
            "interval_ms": self.interval_ms,
            "generation":  self.generation,
            "steps_taken": self.steps_taken,
        }
