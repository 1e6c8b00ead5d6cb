"""
Configuration constants for the traversal tutor.

Everything tunable lives here.  Values can be overridden from environment
variables (or a local .env file); never hardcode secrets.
"""

import os
import secrets

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    return int(raw) if raw else default


# =============================================================================
# Server Configuration
# =============================================================================

# Flask session signing key; random per process unless provided
SECRET_KEY = os.environ.get("TRAVERSAL_TUTOR_SECRET_KEY") or secrets.token_hex(32)

HOST = os.environ.get("TRAVERSAL_TUTOR_HOST", "127.0.0.1")
PORT = _env_int("TRAVERSAL_TUTOR_PORT", 5000)
DEBUG = _env_bool("TRAVERSAL_TUTOR_DEBUG", False)

LOG_LEVEL = os.environ.get("TRAVERSAL_TUTOR_LOG_LEVEL", "INFO").upper()

# In-memory learner sessions kept before the least recently used is dropped
MAX_SESSIONS = _env_int("TRAVERSAL_TUTOR_MAX_SESSIONS", 256)

# =============================================================================
# Traversal Defaults
# =============================================================================

DEFAULT_ALGORITHM = os.environ.get("TRAVERSAL_TUTOR_ALGORITHM", "bfs")

# Graph shown when an algorithm page opens
DEFAULT_PRESETS = {
    "bfs": "tree",
    "dijkstra": "dijkstra_example1",
}

# =============================================================================
# Autoplay Configuration
# =============================================================================

# Bounds on the autoplay cadence (milliseconds per step)
AUTOPLAY_MIN_INTERVAL_MS = 200
AUTOPLAY_MAX_INTERVAL_MS = 1500
AUTOPLAY_DEFAULT_INTERVAL_MS = _env_int("TRAVERSAL_TUTOR_AUTOPLAY_MS", 800)

SPEED_PRESETS = {
    "slow":   1500,   # teaching mode
    "medium": 800,
    "fast":   400,
    "turbo":  200,
}

# Reject manual Step clicks while autoplay is running
LOCK_MANUAL_STEP_DURING_AUTOPLAY = _env_bool("TRAVERSAL_TUTOR_LOCK_MANUAL_STEP", True)

# =============================================================================
# Practice Mode Configuration
# =============================================================================

# Apply the step as soon as the expansion guess is correct
PRACTICE_AUTO_APPLY = _env_bool("TRAVERSAL_TUTOR_AUTO_APPLY", False)

# Show the correct node after a wrong selection guess
PRACTICE_REVEAL_ANSWERS = _env_bool("TRAVERSAL_TUTOR_REVEAL_ANSWERS", False)

# Leave visited nodes out of the selection candidates
PRACTICE_EXCLUDE_VISITED = _env_bool("TRAVERSAL_TUTOR_EXCLUDE_VISITED", True)
