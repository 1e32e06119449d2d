"""Streak Engine - Pure statistics computation for completed sessions.

Streaks count consecutive calendar days with at least one session:
- first session ever (or unusable last_session_date): streak = 1
- same calendar day: unchanged
- next calendar day: +1
- gap of 2+ days, or a date before the last session: restart at 1

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
StatisticsManager persists the returned snapshots.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils import dt_utils

if TYPE_CHECKING:
    from datetime import datetime
    from zoneinfo import ZoneInfo

    from ..type_defs import StatsRecord


class StreakEngine:
    """Pure logic engine for session streaks and technique rankings."""

    @staticmethod
    def empty_stats() -> StatsRecord:
        """Return a stats record for a user with no sessions."""
        return {
            const.DATA_STATS_TOTAL_SESSIONS: 0,  # type: ignore[typeddict-item]
            const.DATA_STATS_TOTAL_MINUTES: 0.0,
            const.DATA_STATS_CURRENT_STREAK: 0,
            const.DATA_STATS_LONGEST_STREAK: 0,
            const.DATA_STATS_LAST_SESSION_DATE: None,
            const.DATA_STATS_LAST_SESSION_TECHNIQUE: None,
            const.DATA_STATS_TECHNIQUE_COUNTS: {},
            const.DATA_STATS_FAVORITE_TECHNIQUES: [],
        }

    @staticmethod
    def next_streak(
        current_streak: int,
        last_session_date: str | datetime | None,
        session_date: datetime,
        tz: ZoneInfo | None = None,
    ) -> int:
        """Return the streak after a session on session_date."""
        diff_days = dt_utils.calendar_days_between(last_session_date, session_date, tz)
        if diff_days is None:
            return 1
        if diff_days == 0:
            # Stats created before any session still count as a first session
            return max(current_streak, 1)
        if diff_days == 1:
            return current_streak + 1
        return 1

    @staticmethod
    def rank_techniques(technique_counts: dict[str, int]) -> list[str]:
        """Order techniques by descending count, ties in first-seen order.

        Relies on sorted() being stable and dicts keeping insertion order.
        """
        return [
            technique
            for technique, _count in sorted(
                technique_counts.items(), key=lambda item: -item[1]
            )
        ]

    @staticmethod
    def apply_completion(
        stats: dict[str, Any] | None,
        session_date: datetime,
        technique: str,
        duration_minutes: float = 0,
        tz: ZoneInfo | None = None,
    ) -> dict[str, Any]:
        """Return a new stats snapshot including one completed session.

        Args:
            stats: Current stats (None for a user's first session)
            session_date: Instant the session was completed
            technique: Technique identifier used in the session
            duration_minutes: Session length added to total_minutes
            tz: Timezone for calendar-day arithmetic
        """
        updated: dict[str, Any] = StreakEngine.empty_stats()  # type: ignore[assignment]
        if stats:
            updated.update(copy.deepcopy(stats))

        streak = StreakEngine.next_streak(
            updated.get(const.DATA_STATS_CURRENT_STREAK) or 0,
            updated.get(const.DATA_STATS_LAST_SESSION_DATE),
            session_date,
            tz,
        )
        updated[const.DATA_STATS_CURRENT_STREAK] = streak
        updated[const.DATA_STATS_LONGEST_STREAK] = max(
            updated.get(const.DATA_STATS_LONGEST_STREAK) or 0, streak
        )
        updated[const.DATA_STATS_TOTAL_SESSIONS] = (
            updated.get(const.DATA_STATS_TOTAL_SESSIONS) or 0
        ) + 1
        updated[const.DATA_STATS_TOTAL_MINUTES] = (
            updated.get(const.DATA_STATS_TOTAL_MINUTES) or 0
        ) + max(duration_minutes, 0)

        counts = dict(updated.get(const.DATA_STATS_TECHNIQUE_COUNTS) or {})
        counts[technique] = counts.get(technique, 0) + 1
        updated[const.DATA_STATS_TECHNIQUE_COUNTS] = counts
        updated[const.DATA_STATS_FAVORITE_TECHNIQUES] = StreakEngine.rank_techniques(counts)

        updated[const.DATA_STATS_LAST_SESSION_DATE] = dt_utils.dt_to_iso(session_date)
        updated[const.DATA_STATS_LAST_SESSION_TECHNIQUE] = technique
        return updated

    @staticmethod
    def effective_streak(
        stats: dict[str, Any] | None, now: datetime, tz: ZoneInfo | None = None
    ) -> int:
        """Return the streak as of now: 0 once a whole calendar day was missed.

        Stored current_streak only changes on a session, so a display layer
        reading it after a gap would otherwise show a stale streak.
        """
        if not stats:
            return 0
        diff_days = dt_utils.calendar_days_between(
            stats.get(const.DATA_STATS_LAST_SESSION_DATE), now, tz
        )
        if diff_days is None or diff_days > 1:
            return 0
        return stats.get(const.DATA_STATS_CURRENT_STREAK) or 0
