"""Record builders and YAML scenario loading for Breathwork tests.

Scenario files in tests/scenarios describe a program snapshot plus a list of
checks (instant, day, expected lock state), so the progression rules can be
read as data.
"""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import yaml

from custom_components.breathwork import const

SCENARIO_DIR = Path(__file__).parent.parent / "scenarios"


def utc(year: int, month: int, day: int, hour: int = 12, minute: int = 0) -> datetime:
    """Return an aware UTC datetime (noon by default, safe from tz edges)."""
    return datetime(year, month, day, hour, minute, tzinfo=UTC)


def iso(year: int, month: int, day: int, hour: int = 12, minute: int = 0) -> str:
    """Return utc(...) as an ISO string."""
    return utc(year, month, day, hour, minute).isoformat()


def make_program(
    track_kind: str = const.TRACK_STANDARD,
    current_day: int = 1,
    completed_days: list[Any] | None = None,
    start_date: str | None = None,
    last_updated: str | None = None,
    is_active: bool = True,
    days: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build a program record; dates default to 2024-01-01 noon UTC."""
    start = start_date if start_date is not None else iso(2024, 1, 1)
    if days is None:
        days = default_days(track_kind)
    return {
        const.DATA_PROGRAM_TRACK_KIND: track_kind,
        const.DATA_PROGRAM_CURRENT_DAY: current_day,
        const.DATA_PROGRAM_COMPLETED_DAYS: list(completed_days or []),
        const.DATA_PROGRAM_START_DATE: start,
        const.DATA_PROGRAM_LAST_UPDATED: last_updated if last_updated is not None else start,
        const.DATA_PROGRAM_IS_ACTIVE: is_active,
        const.DATA_PROGRAM_DAYS: days,
    }


def default_days(track_kind: str) -> list[dict[str, Any]]:
    """Return placeholder day content for a track."""
    length = const.TRACK_LENGTHS[track_kind]
    if track_kind == const.TRACK_EXTENDED:
        return [
            {"day": day, "session": session, "title": f"Day {day} {session}"}
            for day in range(1, length + 1)
            for session in const.EXTENDED_SESSIONS
        ]
    return [{"day": day, "title": f"Day {day}"} for day in range(1, length + 1)]


def load_scenario(name: str) -> dict[str, Any]:
    """Load tests/scenarios/<name>.yaml and build its program record."""
    with (SCENARIO_DIR / f"{name}.yaml").open(encoding="utf-8") as handle:
        raw = yaml.safe_load(handle)

    program_data = raw["program"]
    raw["program"] = make_program(
        track_kind=program_data["track_kind"],
        current_day=program_data.get("current_day", 1),
        completed_days=program_data.get("completed_days", []),
        start_date=str(program_data["start_date"]),
        last_updated=str(program_data.get("last_updated", program_data["start_date"])),
    )
    return raw
