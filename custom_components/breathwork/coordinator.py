# File: coordinator.py
"""Coordinator for the Breathwork integration.

Wires the remote store, the local cache and the managers for one account,
and runs a reconciliation on every refresh. Entities read the cached records
through the properties below; unlock state is projected on read, never
stored.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed
from homeassistant.util import dt as dt_util

from . import const
from .engines import CompletionEngine, LockEngine, StreakEngine
from .exceptions import BreathworkError, NetworkUnavailable
from .managers import (
    ResetManager,
    StatisticsManager,
    SyncManager,
    SyncResult,
    SystemManager,
)
from .utils.retry_utils import RetryPolicy

if TYPE_CHECKING:
    from datetime import datetime

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .remote_store import BreathworkRemoteStore
    from .store import BreathworkLocalCache
    from .type_defs import DayView


class BreathworkDataCoordinator(DataUpdateCoordinator[SyncResult]):
    """Coordinator for one Breathwork account."""

    config_entry: ConfigEntry

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        remote_store: BreathworkRemoteStore,
        local_cache: BreathworkLocalCache,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the BreathworkDataCoordinator."""
        update_interval_minutes = config_entry.options.get(
            const.CONF_UPDATE_INTERVAL, const.DEFAULT_UPDATE_INTERVAL
        )
        super().__init__(
            hass,
            const.LOGGER,
            config_entry=config_entry,
            name=f"{const.DOMAIN}{const.COORDINATOR_SUFFIX}",
            update_interval=timedelta(minutes=update_interval_minutes),
        )
        self.remote_store = remote_store
        self.local_cache = local_cache
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=const.DEFAULT_RETRY_MAX_ATTEMPTS,
            base_delay=const.DEFAULT_RETRY_BASE_DELAY,
            max_delay=const.DEFAULT_RETRY_MAX_DELAY,
            jitter=const.DEFAULT_RETRY_JITTER,
        )
        self._pending_trigger = const.TRIGGER_REFRESH

        rollover_seconds = config_entry.options.get(
            const.CONF_ROLLOVER_CHECK_INTERVAL, const.DEFAULT_ROLLOVER_CHECK_INTERVAL
        )
        self.sync_manager = SyncManager(hass, self)
        self.statistics_manager = StatisticsManager(hass, self)
        self.reset_manager = ResetManager(hass, self)
        self.system_manager = SystemManager(
            hass, self, check_interval=timedelta(seconds=rollover_seconds)
        )

    async def async_setup_managers(self) -> None:
        """Load the local cache and start every manager."""
        await self.local_cache.async_initialize()
        for manager in (
            self.sync_manager,
            self.statistics_manager,
            self.reset_manager,
            self.system_manager,
        ):
            await manager.async_setup()

    # -------------------------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------------------------

    async def _async_update_data(self) -> SyncResult:
        """Reconcile the program, then mirror stats and quota when online."""
        trigger, self._pending_trigger = self._pending_trigger, const.TRIGGER_REFRESH
        try:
            result = await self.sync_manager.async_reconcile(trigger)
            if not result.degraded:
                try:
                    await self.statistics_manager.async_refresh()
                except NetworkUnavailable as err:
                    const.LOGGER.warning("Stats refresh skipped: %s", err)
        except BreathworkError as err:
            raise UpdateFailed(f"Error syncing Breathwork data: {err}") from err
        return result

    async def async_request_sync(self, trigger: str) -> None:
        """Request a debounced refresh, labelled with what triggered it."""
        self._pending_trigger = trigger
        await self.async_request_refresh()

    # -------------------------------------------------------------------------------------
    # Read-only views for entities
    # -------------------------------------------------------------------------------------

    @property
    def user_id(self) -> str:
        """Return the account this coordinator syncs."""
        return self.config_entry.data[const.CONF_USER_ID]

    @property
    def is_premium(self) -> bool:
        """Return the premium tier flag (options override setup data)."""
        return bool(
            self.config_entry.options.get(
                const.CONF_PREMIUM_TIER,
                self.config_entry.data.get(const.CONF_PREMIUM_TIER, const.DEFAULT_PREMIUM_TIER),
            )
        )

    @property
    def program(self) -> dict[str, Any] | None:
        """Return the cached program record."""
        return self.local_cache.get(const.RECORD_PROGRAM)

    @property
    def stats(self) -> dict[str, Any] | None:
        """Return the cached stats record."""
        return self.local_cache.get(const.RECORD_STATS)

    @property
    def quota(self) -> dict[str, Any] | None:
        """Return the cached reset-quota record."""
        return self.local_cache.get(const.RECORD_RESET_QUOTA)

    @property
    def degraded(self) -> bool:
        """Return True when the last sync fell back to the cache."""
        return bool(self.data and self.data.degraded)

    def day_views(self, now: datetime | None = None) -> list[DayView]:
        """Project the cached program's days with locked/completed flags."""
        return LockEngine.project_days(self.program, now or dt_util.utcnow())

    def progress_percent(self) -> float:
        """Return completion progress of the cached program."""
        return CompletionEngine.progress_percent(self.program)

    def current_streak(self, now: datetime | None = None) -> int:
        """Return the streak as of now from the cached stats."""
        return StreakEngine.effective_streak(self.stats, now or dt_util.utcnow())

    def remaining_resets(self, now: datetime | None = None) -> int:
        """Return resets left this month."""
        return self.reset_manager.remaining_resets(now)
