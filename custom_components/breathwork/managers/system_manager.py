# File: managers/system_manager.py
"""System Manager for the Breathwork integration.

Timer owner: registers the periodic rollover check and turns calendar-day
changes into a MIDNIGHT_ROLLOVER signal. Domain managers subscribe to the
signal and do their own work; nothing calls this manager directly.

The check runs on a coarse interval (default once a minute) instead of an
exact midnight trigger, so a host that was suspended over midnight still
notices the new day on its next tick.

Signals Emitted:
- SIGNAL_SUFFIX_MIDNIGHT_ROLLOVER: payload {"calendar_day": "YYYY-MM-DD"}
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from homeassistant.core import callback
from homeassistant.helpers.event import async_track_time_interval
from homeassistant.util import dt as dt_util

from .. import const
from ..utils import dt_utils
from .base_manager import BaseManager

if TYPE_CHECKING:
    from datetime import date, datetime

    from homeassistant.core import HomeAssistant

    from ..coordinator import BreathworkDataCoordinator


class SystemManager(BaseManager):
    """Owns the periodic rollover timer for one config entry."""

    def __init__(
        self,
        hass: HomeAssistant,
        coordinator: BreathworkDataCoordinator,
        check_interval: timedelta = const.ROLLOVER_CHECK_INTERVAL,
    ) -> None:
        """Initialize system manager.

        Args:
            hass: Home Assistant instance
            coordinator: Parent coordinator
            check_interval: How often to compare the calendar day
        """
        super().__init__(hass, coordinator)
        self.check_interval = check_interval
        self._last_calendar_day: date | None = None

    @property
    def last_calendar_day(self) -> date | None:
        """Return the calendar day seen on the most recent tick."""
        return self._last_calendar_day

    async def async_setup(self) -> None:
        """Register the rollover timer; cancelled when the entry unloads."""
        self._last_calendar_day = dt_utils.calendar_day(dt_util.utcnow())
        unsub = async_track_time_interval(
            self.hass, self._on_rollover_tick, self.check_interval
        )
        self.coordinator.config_entry.async_on_unload(unsub)
        const.LOGGER.debug(
            "SystemManager initialized: rollover check every %s for entry %s",
            self.check_interval,
            self.entry_id,
        )

    @callback
    def _on_rollover_tick(self, now: datetime) -> None:
        """Emit MIDNIGHT_ROLLOVER when the local calendar day has changed."""
        today = dt_utils.calendar_day(now)
        if today is None or today == self._last_calendar_day:
            return

        const.LOGGER.debug(
            "SystemManager: calendar day changed %s -> %s", self._last_calendar_day, today
        )
        self._last_calendar_day = today
        self.emit(const.SIGNAL_SUFFIX_MIDNIGHT_ROLLOVER, calendar_day=today.isoformat())
