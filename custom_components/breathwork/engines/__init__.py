"""Pure logic engines for Breathwork.

Engines hold no state and import nothing from Home Assistant; managers own
persistence and call into them with record snapshots.
"""

from .completion_engine import CompletionEngine
from .lock_engine import LockEngine
from .reset_quota_engine import ResetDecision, ResetQuotaEngine
from .streak_engine import StreakEngine

__all__ = [
    "CompletionEngine",
    "LockEngine",
    "ResetDecision",
    "ResetQuotaEngine",
    "StreakEngine",
]
