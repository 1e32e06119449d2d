"""Type definitions for Breathwork records.

Records are plain JSON-compatible dicts; the TypedDicts below describe their
fixed keys for static analysis only. Runtime code still reads with .get() and
validates shapes where a record crosses a store boundary.

IMPORTANT: This file must NOT import from coordinator.py or any manager.
Only import from typing.
"""

from typing import Any, Literal, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

ISODatetime = str  # ISO 8601 datetime string "2024-03-10T12:00:00+00:00"
MonthKey = str  # "YYYY-MM"
SessionKey = str  # "{day}-{session}", e.g. "3-evening"
TrackKind = Literal["standard", "extended"]

# Day number for standard tracks, composite session key for extended tracks
CompletionKey = int | SessionKey


# =============================================================================
# Program
# =============================================================================


class ProgramRecord(TypedDict):
    """Per-user program document.

    track_kind is the discriminator: completed_days holds ints for
    "standard" and SessionKey strings for "extended".
    """

    track_kind: TrackKind
    current_day: int
    completed_days: list[CompletionKey]
    start_date: ISODatetime
    last_updated: ISODatetime
    is_active: bool
    days: list[dict[str, Any]]


class DayView(TypedDict, total=False):
    """Read-only projection of one Day for the UI layer.

    Opaque content keys from the content generator are merged in as well.
    """

    day: int
    session: NotRequired[str]
    locked: bool
    completed: bool


# =============================================================================
# Stats
# =============================================================================


class StatsRecord(TypedDict):
    """Per-user lifetime statistics; survives program resets."""

    total_sessions: int
    total_minutes: float
    current_streak: int
    longest_streak: int
    last_session_date: ISODatetime | None
    last_session_technique: str | None
    # Insertion order is first-seen order (used to break ranking ties)
    technique_counts: dict[str, int]
    favorite_techniques: list[str]


# =============================================================================
# Reset Quota
# =============================================================================


class ResetQuotaRecord(TypedDict):
    """Per-user monthly reset counter."""

    reset_count: int
    month_key: MonthKey


# =============================================================================
# Outbox
# =============================================================================


class PendingCompletion(TypedDict):
    """Completion made while the remote store was unreachable.

    key is None for a stats-only entry (program already written).
    """

    key: CompletionKey | None
    technique: str
    duration_minutes: float
    completed_at: ISODatetime
