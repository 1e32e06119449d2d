# File: managers/reset_manager.py
"""Reset Manager for the Breathwork integration.

Executes program resets allowed by ResetQuotaEngine. A reset:
1. reads the authoritative quota (non-premium only),
2. denies with QuotaExceeded when the monthly allowance is used up,
3. persists the incremented quota, then deletes the remote program (the
   previous quota is written back if the delete fails),
4. clears the cached program; queued completions keep their stats.

Stats are never touched by a reset. A reset needs the remote store: when it
is unreachable NetworkUnavailable reaches the caller and nothing changes.

Signals Emitted:
- SIGNAL_SUFFIX_PROGRAM_RESET: payload {"remaining_resets": int}
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.util import dt as dt_util

from .. import const
from ..engines import ResetDecision, ResetQuotaEngine
from ..exceptions import BreathworkError, QuotaExceeded, is_retryable
from ..utils.retry_utils import async_call_with_retry
from .base_manager import BaseManager

if TYPE_CHECKING:
    from datetime import datetime

    from homeassistant.core import HomeAssistant

    from ..coordinator import BreathworkDataCoordinator


class ResetManager(BaseManager):
    """Applies the monthly reset policy and deletes the program on reset."""

    def __init__(
        self, hass: HomeAssistant, coordinator: BreathworkDataCoordinator
    ) -> None:
        """Initialize reset manager."""
        super().__init__(hass, coordinator)

    async def async_setup(self) -> None:
        """Nothing to subscribe to; resets are user-initiated."""
        const.LOGGER.debug("ResetManager initialized for entry %s", self.entry_id)

    def remaining_resets(self, now: datetime | None = None) -> int:
        """Return resets left this month from the cached quota."""
        return ResetQuotaEngine.remaining_resets(
            self.coordinator.local_cache.get(const.RECORD_RESET_QUOTA),
            now or dt_util.utcnow(),
            self.coordinator.is_premium,
        )

    async def async_reset_program(
        self, is_premium: bool, now: datetime | None = None
    ) -> ResetDecision:
        """Reset the user's program if the monthly quota allows it.

        Raises:
            QuotaExceeded: Allowance used up (remaining_resets=0); no mutation
            NetworkUnavailable / RemoteStoreError: Remote store failed
        """
        now = now or dt_util.utcnow()
        remote_store = self.coordinator.remote_store
        local_cache = self.coordinator.local_cache
        sync_manager = self.coordinator.sync_manager

        async with sync_manager.write_lock:
            quota = None
            if not is_premium:
                quota = await async_call_with_retry(
                    lambda: remote_store.async_get(const.RECORD_RESET_QUOTA),
                    self.coordinator.retry_policy,
                    is_retryable,
                )

            decision = ResetQuotaEngine.try_reset(quota, now, is_premium)
            if not decision.allowed:
                const.LOGGER.info("Program reset denied: monthly limit reached")
                raise QuotaExceeded(remaining_resets=decision.remaining_resets)

            if decision.quota is not None:
                await remote_store.async_set(const.RECORD_RESET_QUOTA, dict(decision.quota))
            try:
                await remote_store.async_delete(const.RECORD_PROGRAM)
            except BreathworkError:
                if decision.quota is not None:
                    await self._async_restore_quota(quota)
                raise

            if decision.quota is not None:
                local_cache.set(const.RECORD_RESET_QUOTA, decision.quota)
            local_cache.remove(const.RECORD_PROGRAM)
            sync_manager.detach_queued_completions()

        const.LOGGER.info(
            "Program reset, remaining resets this month: %s", decision.remaining_resets
        )
        self.emit(
            const.SIGNAL_SUFFIX_PROGRAM_RESET,
            remaining_resets=decision.remaining_resets,
        )
        return decision

    async def _async_restore_quota(self, previous: dict[str, Any] | None) -> None:
        """Write back the quota read before a reset whose delete failed."""
        remote_store = self.coordinator.remote_store
        try:
            if previous is None:
                await remote_store.async_delete(const.RECORD_RESET_QUOTA)
            else:
                await remote_store.async_set(const.RECORD_RESET_QUOTA, previous)
        except BreathworkError as err:
            const.LOGGER.error(
                "Program reset failed and the quota could not be restored: %s", err
            )
