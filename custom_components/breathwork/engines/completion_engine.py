"""Completion Engine - Pure completion ledger for program records.

This engine provides stateless, pure Python functions for:
- Building and parsing completion keys (day numbers / "{day}-{session}")
- Validating keys against a program's track
- Idempotent completion of a day or session
- Creating fresh program records
- Progress reporting

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
All functions are static methods that operate on passed-in data and return
new snapshots; input records are never mutated. Persistence belongs in
SyncManager.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from .. import const
from ..exceptions import MalformedRecord, OutOfRangeError
from ..utils import dt_utils
from .lock_engine import LockEngine

if TYPE_CHECKING:
    from datetime import datetime
    from zoneinfo import ZoneInfo

    from ..type_defs import CompletionKey, ProgramRecord


class CompletionEngine:
    """Pure logic engine for the program completion ledger.

    All methods are static - no instance state.
    """

    # =========================================================================
    # Keys
    # =========================================================================

    @staticmethod
    def session_key(day_number: int, session: str) -> str:
        """Build an extended-track completion key, e.g. "3-evening"."""
        return f"{day_number}{const.SESSION_KEY_SEPARATOR}{session}"

    @staticmethod
    def parse_session_key(key: str) -> tuple[int, str]:
        """Split "3-evening" into (3, "evening").

        Raises:
            OutOfRangeError: If the key is not "{int}-{session}"
        """
        day_part, sep, session = key.partition(const.SESSION_KEY_SEPARATOR)
        if not sep or not day_part.isdigit() or session not in const.EXTENDED_SESSIONS:
            raise OutOfRangeError(f"Malformed session key: {key!r}")
        return int(day_part), session

    @staticmethod
    def build_key(
        program: dict[str, Any], day_number: int, session: str | None = None
    ) -> CompletionKey:
        """Build the completion key appropriate for the program's track."""
        match program.get(const.DATA_PROGRAM_TRACK_KIND):
            case const.TRACK_STANDARD:
                return day_number
            case const.TRACK_EXTENDED:
                if session is None:
                    raise OutOfRangeError(
                        f"Day {day_number} of an extended program needs a session"
                    )
                return CompletionEngine.session_key(day_number, session)
            case other:
                raise MalformedRecord(f"Unknown track kind: {other!r}")

    @staticmethod
    def validate_key(program: dict[str, Any], key: CompletionKey) -> int:
        """Check a key against the program's track and return its day number.

        Raises:
            OutOfRangeError: Day outside 1..track_length, unknown session, or
                key type not matching the track
            MalformedRecord: Unknown track kind
        """
        track_kind = program.get(const.DATA_PROGRAM_TRACK_KIND)
        length = LockEngine.track_length(track_kind)
        if length is None:
            raise MalformedRecord(f"Unknown track kind: {track_kind!r}")

        match track_kind:
            case const.TRACK_STANDARD:
                # bool is an int subclass; reject it explicitly
                if not isinstance(key, int) or isinstance(key, bool):
                    raise OutOfRangeError(f"Standard track expects a day number, got {key!r}")
                day_number = key
            case const.TRACK_EXTENDED:
                if not isinstance(key, str):
                    raise OutOfRangeError(f"Extended track expects a session key, got {key!r}")
                day_number, _session = CompletionEngine.parse_session_key(key)
            case _:
                raise MalformedRecord(f"Unknown track kind: {track_kind!r}")

        if not const.FIRST_DAY <= day_number <= length:
            raise OutOfRangeError(
                f"Day {day_number} is outside 1..{length} for the {track_kind} track"
            )
        return day_number

    # =========================================================================
    # Ledger
    # =========================================================================

    @staticmethod
    def is_completed(program: dict[str, Any] | None, key: CompletionKey) -> bool:
        """Return True if key is already recorded in completed_days."""
        if not program:
            return False
        return key in (program.get(const.DATA_PROGRAM_COMPLETED_DAYS) or [])

    @staticmethod
    def complete(
        program: dict[str, Any],
        key: CompletionKey,
        now: datetime,
        tz: ZoneInfo | None = None,
    ) -> dict[str, Any]:
        """Record a completion and return the new program snapshot.

        Idempotent: if key is already completed the input snapshot is returned
        unchanged (same object), so callers can detect a repeat with `is`.

        standard: current_day advances to min(current_day + 1, track_length).
        extended: current_day only advances by date rollover. A rollover that
        is already due is applied first so stamping last_updated cannot close
        a day that was open.

        Raises:
            OutOfRangeError: Invalid key for the track (no mutation)
            MalformedRecord: Unknown track kind
        """
        CompletionEngine.validate_key(program, key)
        if CompletionEngine.is_completed(program, key):
            return program

        updated = copy.deepcopy(program)
        completed = list(updated.get(const.DATA_PROGRAM_COMPLETED_DAYS) or [])
        completed.append(key)
        updated[const.DATA_PROGRAM_COMPLETED_DAYS] = completed

        current_day = updated.get(const.DATA_PROGRAM_CURRENT_DAY, const.FIRST_DAY)
        match updated[const.DATA_PROGRAM_TRACK_KIND]:
            case const.TRACK_STANDARD:
                length = const.TRACK_LENGTHS[const.TRACK_STANDARD]
                updated[const.DATA_PROGRAM_CURRENT_DAY] = min(current_day + 1, length)
            case const.TRACK_EXTENDED:
                next_day = LockEngine.pending_rollover(program, now, tz)
                if next_day is not None:
                    updated[const.DATA_PROGRAM_CURRENT_DAY] = next_day

        # last_updated never moves backwards (replayed offline completions)
        stamp = now
        previous = dt_utils.dt_parse(program.get(const.DATA_PROGRAM_LAST_UPDATED))
        if previous is not None and previous > now:
            stamp = previous
        updated[const.DATA_PROGRAM_LAST_UPDATED] = dt_utils.dt_to_iso(stamp)
        return updated

    @staticmethod
    def advance(program: dict[str, Any], next_day: int, now: datetime) -> dict[str, Any]:
        """Return a snapshot with current_day set to next_day and last_updated stamped."""
        updated = copy.deepcopy(program)
        updated[const.DATA_PROGRAM_CURRENT_DAY] = next_day
        updated[const.DATA_PROGRAM_LAST_UPDATED] = dt_utils.dt_to_iso(now)
        return updated

    # =========================================================================
    # Program lifecycle / reporting
    # =========================================================================

    @staticmethod
    def create_program(
        track_kind: str, days: list[dict[str, Any]], now: datetime
    ) -> ProgramRecord:
        """Create a fresh program record starting at day 1.

        Raises:
            MalformedRecord: Unknown track kind
        """
        if track_kind not in const.TRACK_LENGTHS:
            raise MalformedRecord(f"Unknown track kind: {track_kind!r}")
        now_iso = dt_utils.dt_to_iso(now)
        return {
            const.DATA_PROGRAM_TRACK_KIND: track_kind,  # type: ignore[typeddict-item]
            const.DATA_PROGRAM_CURRENT_DAY: const.FIRST_DAY,
            const.DATA_PROGRAM_COMPLETED_DAYS: [],
            const.DATA_PROGRAM_START_DATE: now_iso,
            const.DATA_PROGRAM_LAST_UPDATED: now_iso,
            const.DATA_PROGRAM_IS_ACTIVE: True,
            const.DATA_PROGRAM_DAYS: [dict(day) for day in days],
        }

    @staticmethod
    def validate_program(record: Any) -> dict[str, Any]:
        """Return record if it has the fields every program needs.

        Raises:
            MalformedRecord: Not a dict, unknown track kind, or missing fields
        """
        if not isinstance(record, dict):
            raise MalformedRecord(f"Program record is not an object: {type(record).__name__}")
        if LockEngine.track_length(record.get(const.DATA_PROGRAM_TRACK_KIND)) is None:
            raise MalformedRecord(
                f"Unknown track kind: {record.get(const.DATA_PROGRAM_TRACK_KIND)!r}"
            )
        if not isinstance(record.get(const.DATA_PROGRAM_COMPLETED_DAYS, []), list):
            raise MalformedRecord("completed_days must be a list")
        if not isinstance(record.get(const.DATA_PROGRAM_CURRENT_DAY, const.FIRST_DAY), int):
            raise MalformedRecord("current_day must be an integer")
        return record

    @staticmethod
    def completed_count(program: dict[str, Any] | None) -> int:
        """Return the number of recorded completions."""
        if not program:
            return const.DEFAULT_ZERO
        return len(program.get(const.DATA_PROGRAM_COMPLETED_DAYS) or [])

    @staticmethod
    def progress_percent(program: dict[str, Any] | None) -> float:
        """Return completion progress as a percentage (0.0-100.0).

        Extended tracks count sessions, so a full track is 42 completions.
        """
        if not program:
            return 0.0
        track_kind = program.get(const.DATA_PROGRAM_TRACK_KIND)
        length = LockEngine.track_length(track_kind)
        if not length:
            return 0.0
        total = length * len(const.EXTENDED_SESSIONS) if track_kind == const.TRACK_EXTENDED else length
        return round(min(CompletionEngine.completed_count(program) / total, 1.0) * 100, 1)
