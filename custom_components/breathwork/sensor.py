# File: sensor.py
"""Sensors for the Breathwork integration.

One device per account with three sensors:
- program_progress: percent complete; attributes carry the projected day
  views (locked/completed per day) and the sync/degraded status
- session_streak: current streak of consecutive practice days
- resets_remaining: program resets left this month (-1 = unlimited)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.components.sensor import SensorEntity, SensorStateClass
from homeassistant.const import PERCENTAGE

from . import const
from .engines import LockEngine
from .entity import BreathworkCoordinatorEntity

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .coordinator import BreathworkDataCoordinator


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    """Set up sensors for a Breathwork config entry."""
    coordinator: BreathworkDataCoordinator = hass.data[const.DOMAIN][entry.entry_id][
        const.COORDINATOR
    ]
    async_add_entities(
        [
            ProgramProgressSensor(coordinator),
            SessionStreakSensor(coordinator),
            ResetsRemainingSensor(coordinator),
        ]
    )


class ProgramProgressSensor(BreathworkCoordinatorEntity, SensorEntity):
    """Percent of the active program completed."""

    _attr_translation_key = const.TRANS_KEY_SENSOR_PROGRAM_PROGRESS
    _attr_native_unit_of_measurement = PERCENTAGE
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_icon = "mdi:weather-windy"

    def __init__(self, coordinator: BreathworkDataCoordinator) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, const.SENSOR_UID_SUFFIX_PROGRAM_PROGRESS)

    @property
    def native_value(self) -> float | None:
        """Return progress, or None when there is no program."""
        if self.coordinator.program is None:
            return None
        return self.coordinator.progress_percent()

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return program details, day views and sync status."""
        program = self.coordinator.program or {}
        result = self.coordinator.data
        track_kind = program.get(const.DATA_PROGRAM_TRACK_KIND)
        return {
            const.ATTR_TRACK_KIND: track_kind,
            const.ATTR_TRACK_LENGTH: LockEngine.track_length(track_kind),
            const.ATTR_CURRENT_DAY: program.get(const.DATA_PROGRAM_CURRENT_DAY),
            const.ATTR_COMPLETED_COUNT: len(
                program.get(const.DATA_PROGRAM_COMPLETED_DAYS) or []
            ),
            const.ATTR_DAYS: self.coordinator.day_views(),
            const.ATTR_DEGRADED: self.coordinator.degraded,
            const.ATTR_SOURCE: result.source if result else None,
            const.ATTR_ERROR_TYPE: result.error_type if result else None,
            const.ATTR_LAST_SYNCED: (
                result.synced_at.isoformat() if result and result.synced_at else None
            ),
            const.ATTR_ROLLOVER_PENDING: bool(result and result.rollover_pending),
            const.ATTR_PENDING_COMPLETIONS: len(
                self.coordinator.sync_manager.pending_completions
            ),
        }


class SessionStreakSensor(BreathworkCoordinatorEntity, SensorEntity):
    """Consecutive calendar days with at least one session."""

    _attr_translation_key = const.TRANS_KEY_SENSOR_SESSION_STREAK
    _attr_native_unit_of_measurement = "d"
    _attr_icon = "mdi:fire"

    def __init__(self, coordinator: BreathworkDataCoordinator) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, const.SENSOR_UID_SUFFIX_SESSION_STREAK)

    @property
    def native_value(self) -> int:
        """Return the streak as of now."""
        return self.coordinator.current_streak()

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return lifetime statistics."""
        stats = self.coordinator.stats or {}
        return {
            const.ATTR_LONGEST_STREAK: stats.get(const.DATA_STATS_LONGEST_STREAK, 0),
            const.ATTR_TOTAL_SESSIONS: stats.get(const.DATA_STATS_TOTAL_SESSIONS, 0),
            const.ATTR_TOTAL_MINUTES: stats.get(const.DATA_STATS_TOTAL_MINUTES, 0),
            const.ATTR_FAVORITE_TECHNIQUES: stats.get(
                const.DATA_STATS_FAVORITE_TECHNIQUES, []
            ),
            const.ATTR_LAST_SESSION_DATE: stats.get(const.DATA_STATS_LAST_SESSION_DATE),
        }


class ResetsRemainingSensor(BreathworkCoordinatorEntity, SensorEntity):
    """Program resets left this month."""

    _attr_translation_key = const.TRANS_KEY_SENSOR_RESETS_REMAINING
    _attr_icon = "mdi:restart"

    def __init__(self, coordinator: BreathworkDataCoordinator) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, const.SENSOR_UID_SUFFIX_RESETS_REMAINING)

    @property
    def native_value(self) -> int:
        """Return remaining resets (UNLIMITED_RESETS for premium)."""
        return self.coordinator.remaining_resets()

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return quota details."""
        quota = self.coordinator.quota or {}
        return {
            const.ATTR_UNLIMITED: self.coordinator.is_premium,
            const.ATTR_MONTH_KEY: quota.get(const.DATA_QUOTA_MONTH_KEY),
        }
