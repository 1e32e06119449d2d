# File: store.py
"""Local cache for the Breathwork integration.

Mirrors the remote program, stats and reset-quota records (plus the outbox of
completions waiting for a remote write) using Home Assistant's Storage helper,
so the last known state survives restarts and is readable while offline.

Reads and writes go to an in-memory dict and are synchronous; persistence to
disk is scheduled with Store.async_delay_save.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from homeassistant.core import callback
from homeassistant.helpers.storage import Store

from . import const

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant


class BreathworkLocalCache:
    """Per-entry local mirror of the user's records.

    Keys are record kinds (const.RECORD_*) or const.CACHE_PENDING_COMPLETIONS.
    Values are deep-copied on the way in and out so callers can never mutate
    the cache by accident.
    """

    def __init__(self, hass: HomeAssistant, entry_id: str) -> None:
        """Initialize the cache.

        Args:
            hass: Home Assistant core object.
            entry_id: Config entry the cache belongs to (one file per entry).
        """
        self.hass = hass
        self._storage_key = f"{const.STORAGE_KEY}.{entry_id}"
        self._store: Store[dict[str, Any]] = Store(
            hass, const.STORAGE_VERSION, self._storage_key
        )
        self._data: dict[str, Any] = {}

    async def async_initialize(self) -> None:
        """Load cached records from storage during startup."""
        existing_data = await self._store.async_load()
        if existing_data is None:
            const.LOGGER.info("No local cache found for %s, starting empty", self._storage_key)
            self._data = {}
            return

        self._data = existing_data
        const.LOGGER.debug("Loaded local cache with keys: %s", list(self._data.keys()))

    @property
    def data(self) -> dict[str, Any]:
        """Return a copy of everything cached (used by diagnostics)."""
        return copy.deepcopy(self._data)

    # -------------------------------------------------------------------------------------
    # Synchronous cache API
    # -------------------------------------------------------------------------------------

    def get(self, key: str) -> Any | None:
        """Return the cached value for key, or None if absent."""
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    @callback
    def set(self, key: str, value: Any) -> None:
        """Cache a value and schedule a save."""
        self._data[key] = copy.deepcopy(value)
        self._schedule_save()

    @callback
    def remove(self, key: str) -> None:
        """Drop a cached value (no-op if absent) and schedule a save."""
        if self._data.pop(key, None) is not None:
            self._schedule_save()

    @callback
    def _schedule_save(self) -> None:
        self._store.async_delay_save(lambda: self._data, const.STORAGE_SAVE_DELAY)

    # -------------------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------------------

    async def async_save(self) -> None:
        """Write the cache to disk now.

        Errors are logged, not raised: the cache is a convenience mirror and a
        failed save must not fail the operation that triggered it.
        """
        try:
            await self._store.async_save(self._data)
            const.LOGGER.debug("Local cache saved to %s", self._store.path)
        except OSError as err:
            const.LOGGER.error(
                "Failed to save local cache due to file system error: %s. "
                "Check disk space and file permissions for %s",
                err,
                self._store.path,
            )
        except (TypeError, ValueError) as err:
            const.LOGGER.error(
                "Failed to save local cache due to non-serializable data: %s", err
            )

    async def async_delete_storage(self) -> None:
        """Clear the cache and remove its file from disk."""
        self._data = {}
        try:
            await self._store.async_remove()
            const.LOGGER.info("Local cache removed: %s", self._store.path)
        except OSError as err:
            const.LOGGER.error(
                "Failed to remove local cache file %s: %s. Check file permissions",
                self._store.path,
                err,
            )
