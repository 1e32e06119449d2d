"""Lock Engine - Pure unlock evaluation for program days.

Unlock state is derived, never stored: every read of a program re-runs these
checks against the current instant.

Rules by track:
- standard: day N opens once day N-1 is completed AND at least N-1 calendar
  days have passed since start_date.
- extended: day N opens once it is at or below current_day, or when it is the
  day after current_day, both sessions of day N-1 are completed and today is a
  later calendar day than last_updated.

Day 1 is always open. Anything malformed (day < 1, unknown track, unparseable
start_date) evaluates as locked.

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
All functions are static methods that operate on passed-in data.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .. import const
from ..utils import dt_utils

if TYPE_CHECKING:
    from datetime import datetime
    from zoneinfo import ZoneInfo

    from ..type_defs import DayView


class LockEngine:
    """Pure logic for day/session lock evaluation.

    All methods are static - no instance state.
    """

    @staticmethod
    def track_length(track_kind: str | None) -> int | None:
        """Return the number of days for a track kind, or None if unknown."""
        if track_kind is None:
            return None
        return const.TRACK_LENGTHS.get(track_kind)

    @staticmethod
    def is_locked(
        program: dict[str, Any] | None,
        day_number: int,
        now: datetime,
        tz: ZoneInfo | None = None,
    ) -> bool:
        """Return True if day_number may not be started at now.

        Args:
            program: Program record snapshot
            day_number: 1-indexed day to evaluate
            now: Current instant
            tz: Timezone for calendar-day arithmetic (default: dt_utils default)
        """
        if not program or day_number < const.FIRST_DAY:
            return True

        track_kind = program.get(const.DATA_PROGRAM_TRACK_KIND)
        length = LockEngine.track_length(track_kind)
        if length is None or day_number > length:
            return True

        start_date = dt_utils.dt_parse(program.get(const.DATA_PROGRAM_START_DATE))
        if start_date is None:
            const.LOGGER.debug("Program has no usable start_date, day %s locked", day_number)
            return True

        if day_number == const.FIRST_DAY:
            return False

        completed = program.get(const.DATA_PROGRAM_COMPLETED_DAYS) or []
        previous_day = day_number - 1

        match track_kind:
            case const.TRACK_STANDARD:
                elapsed = dt_utils.calendar_days_between(start_date, now, tz)
                return not (
                    previous_day in completed
                    and elapsed is not None
                    and elapsed >= previous_day
                )
            case const.TRACK_EXTENDED:
                current_day = program.get(const.DATA_PROGRAM_CURRENT_DAY, const.FIRST_DAY)
                if day_number <= current_day:
                    return False
                if day_number != current_day + 1:
                    return True
                return not (
                    LockEngine._both_sessions_completed(completed, previous_day)
                    and LockEngine._is_later_calendar_day(program, now, tz)
                )
            case _:
                return True

    @staticmethod
    def is_session_locked(
        program: dict[str, Any] | None,
        day_number: int,
        session: str,
        now: datetime,
        tz: ZoneInfo | None = None,
    ) -> bool:
        """Return True if a session of an extended day may not be started.

        The morning session follows the day's lock; the evening session also
        waits for that day's morning session.
        """
        if session not in const.EXTENDED_SESSIONS:
            return True
        if LockEngine.is_locked(program, day_number, now, tz):
            return True
        if session == const.SESSION_MORNING:
            return False
        completed = (program or {}).get(const.DATA_PROGRAM_COMPLETED_DAYS) or []
        morning_key = f"{day_number}{const.SESSION_KEY_SEPARATOR}{const.SESSION_MORNING}"
        return morning_key not in completed

    @staticmethod
    def pending_rollover(
        program: dict[str, Any] | None,
        now: datetime,
        tz: ZoneInfo | None = None,
    ) -> int | None:
        """Return the day current_day should advance to at now, or None.

        Only extended programs advance by date rollover; standard programs
        advance current_day when a day is completed. Returns None when the
        program was already updated today, the final day is reached, or the
        current day's sessions are not both completed.
        """
        if not program or not program.get(const.DATA_PROGRAM_IS_ACTIVE, True):
            return None

        match program.get(const.DATA_PROGRAM_TRACK_KIND):
            case const.TRACK_STANDARD:
                return None
            case const.TRACK_EXTENDED:
                current_day = program.get(const.DATA_PROGRAM_CURRENT_DAY, const.FIRST_DAY)
                length = const.TRACK_LENGTHS[const.TRACK_EXTENDED]
                if current_day >= length:
                    return None
                if not LockEngine._is_later_calendar_day(program, now, tz):
                    return None
                completed = program.get(const.DATA_PROGRAM_COMPLETED_DAYS) or []
                if not LockEngine._both_sessions_completed(completed, current_day):
                    return None
                return current_day + 1
            case _:
                return None

    @staticmethod
    def project_days(
        program: dict[str, Any] | None,
        now: datetime,
        tz: ZoneInfo | None = None,
    ) -> list[DayView]:
        """Build read-only day views with derived locked/completed flags.

        Content records are copied, never mutated. Records without a "day"
        field take their 1-based position; extended records without a
        "session" field default to morning.
        """
        if not program:
            return []

        track_kind = program.get(const.DATA_PROGRAM_TRACK_KIND)
        completed = program.get(const.DATA_PROGRAM_COMPLETED_DAYS) or []
        views: list[DayView] = []

        for index, content in enumerate(program.get(const.DATA_PROGRAM_DAYS) or []):
            view: dict[str, Any] = dict(content) if isinstance(content, dict) else {}
            day_number = view.get(const.DATA_DAY_NUMBER) or index + 1
            view[const.DATA_DAY_NUMBER] = day_number

            match track_kind:
                case const.TRACK_STANDARD:
                    view[const.DATA_DAY_LOCKED] = LockEngine.is_locked(
                        program, day_number, now, tz
                    )
                    view[const.DATA_DAY_COMPLETED] = day_number in completed
                case const.TRACK_EXTENDED:
                    session = view.get(const.DATA_DAY_SESSION) or const.SESSION_MORNING
                    view[const.DATA_DAY_SESSION] = session
                    view[const.DATA_DAY_LOCKED] = LockEngine.is_session_locked(
                        program, day_number, session, now, tz
                    )
                    view[const.DATA_DAY_COMPLETED] = (
                        f"{day_number}{const.SESSION_KEY_SEPARATOR}{session}" in completed
                    )
                case _:
                    view[const.DATA_DAY_LOCKED] = True
                    view[const.DATA_DAY_COMPLETED] = False

            views.append(view)  # type: ignore[arg-type]

        return views

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _both_sessions_completed(completed: list[Any], day_number: int) -> bool:
        return all(
            f"{day_number}{const.SESSION_KEY_SEPARATOR}{session}" in completed
            for session in const.EXTENDED_SESSIONS
        )

    @staticmethod
    def _is_later_calendar_day(
        program: dict[str, Any], now: datetime, tz: ZoneInfo | None
    ) -> bool:
        # Unparseable last_updated never unlocks
        elapsed = dt_utils.calendar_days_between(
            program.get(const.DATA_PROGRAM_LAST_UPDATED), now, tz
        )
        return elapsed is not None and elapsed > 0
