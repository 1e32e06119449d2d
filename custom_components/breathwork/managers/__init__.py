"""Manager modules for Breathwork integration.

Managers orchestrate workflows and coordinate between engines.
They are stateful, event-aware, and own all remote/local store I/O.
"""

from .base_manager import BaseManager
from .reset_manager import ResetManager
from .statistics_manager import StatisticsManager
from .sync_manager import CompletionResult, SyncManager, SyncResult
from .system_manager import SystemManager

__all__ = [
    "BaseManager",
    "CompletionResult",
    "ResetManager",
    "StatisticsManager",
    "SyncManager",
    "SyncResult",
    "SystemManager",
]
