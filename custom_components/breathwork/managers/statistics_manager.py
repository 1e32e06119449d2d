# File: managers/statistics_manager.py
"""Statistics Manager for the Breathwork integration.

Persists the per-user stats record. StreakEngine computes every new snapshot;
this manager fetches the authoritative copy, writes the result remote-first
and mirrors it into the local cache. The same remote-wins refresh keeps the
cached reset quota current.

Stats are never deleted here: program resets leave them untouched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.util import dt as dt_util

from .. import const
from ..engines import StreakEngine
from ..exceptions import is_retryable
from ..utils.retry_utils import async_call_with_retry
from .base_manager import BaseManager

if TYPE_CHECKING:
    from datetime import datetime

    from homeassistant.core import HomeAssistant

    from ..coordinator import BreathworkDataCoordinator


class StatisticsManager(BaseManager):
    """Reads and writes the stats record for one account."""

    def __init__(
        self, hass: HomeAssistant, coordinator: BreathworkDataCoordinator
    ) -> None:
        """Initialize statistics manager."""
        super().__init__(hass, coordinator)

    async def async_setup(self) -> None:
        """Nothing to subscribe to; stats change only through direct calls."""
        const.LOGGER.debug("StatisticsManager initialized for entry %s", self.entry_id)

    @property
    def stats(self) -> dict[str, Any] | None:
        """Return the cached stats record."""
        return self.coordinator.local_cache.get(const.RECORD_STATS)

    async def async_apply_session(
        self,
        technique: str,
        duration_minutes: float = 0,
        session_date: datetime | None = None,
    ) -> dict[str, Any]:
        """Record one completed session in the stats record.

        Raises:
            NetworkUnavailable: Remote store unreachable; nothing was written
            RemoteStoreError: Remote store rejected the request
        """
        session_date = session_date or dt_util.utcnow()
        remote_store = self.coordinator.remote_store

        current = await async_call_with_retry(
            lambda: remote_store.async_get(const.RECORD_STATS),
            self.coordinator.retry_policy,
            is_retryable,
        )
        updated = StreakEngine.apply_completion(
            current, session_date, technique, duration_minutes
        )
        await remote_store.async_set(const.RECORD_STATS, updated)
        self.coordinator.local_cache.set(const.RECORD_STATS, updated)

        const.LOGGER.debug(
            "Stats updated: total_sessions=%s, current_streak=%s, technique=%s",
            updated[const.DATA_STATS_TOTAL_SESSIONS],
            updated[const.DATA_STATS_CURRENT_STREAK],
            technique,
        )
        return updated

    async def async_refresh(self) -> None:
        """Mirror the remote stats and reset-quota records into the cache.

        Remote wins: an absent remote record removes the cached copy.

        Raises:
            NetworkUnavailable: Remote store unreachable; cache left as is
        """
        remote_store = self.coordinator.remote_store
        local_cache = self.coordinator.local_cache

        for kind in (const.RECORD_STATS, const.RECORD_RESET_QUOTA):
            record = await async_call_with_retry(
                lambda kind=kind: remote_store.async_get(kind),
                self.coordinator.retry_policy,
                is_retryable,
            )
            if record is None:
                local_cache.remove(kind)
            else:
                local_cache.set(kind, record)
