# File: __init__.py
"""Initialization file for the Breathwork integration.

Handles setting up the integration: builds the remote store adapter and the
local cache for the config entry, starts the coordinator and its managers,
registers services and forwards the sensor platform.
"""

from __future__ import annotations

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from . import const
from .coordinator import BreathworkDataCoordinator
from .remote_store import BreathworkRemoteStore
from .services import async_setup_services, async_unload_services
from .store import BreathworkLocalCache


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up Breathwork from a config entry.

    Raises:
        ConfigEntryNotReady: The first sync failed (raised by the coordinator)
    """
    const.LOGGER.info("Starting Breathwork setup for user %s", entry.data[const.CONF_USER_ID])
    const.set_default_timezone(hass)

    remote_store = BreathworkRemoteStore(
        hass,
        entry.data[const.CONF_REMOTE_URL],
        entry.data[const.CONF_USER_ID],
        entry.data.get(const.CONF_API_TOKEN),
    )
    local_cache = BreathworkLocalCache(hass, entry.entry_id)

    coordinator = BreathworkDataCoordinator(hass, entry, remote_store, local_cache)
    await coordinator.async_setup_managers()
    await coordinator.async_config_entry_first_refresh()

    hass.data.setdefault(const.DOMAIN, {})[entry.entry_id] = {
        const.COORDINATOR: coordinator,
    }

    async_setup_services(hass)
    await hass.config_entries.async_forward_entry_setups(entry, const.PLATFORMS)

    entry.async_on_unload(entry.add_update_listener(async_update_options))
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry; the timers registered with async_on_unload stop here."""
    const.LOGGER.info("Unloading Breathwork entry %s", entry.entry_id)

    unload_ok = await hass.config_entries.async_unload_platforms(entry, const.PLATFORMS)
    if unload_ok:
        coordinator = hass.data[const.DOMAIN].pop(entry.entry_id)[const.COORDINATOR]
        await coordinator.async_shutdown()
        await coordinator.local_cache.async_save()
        if not hass.data[const.DOMAIN]:
            await async_unload_services(hass)

    return unload_ok


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Delete the local cache file when the entry is removed."""
    const.LOGGER.info("Removing Breathwork entry %s and its local cache", entry.entry_id)
    await BreathworkLocalCache(hass, entry.entry_id).async_delete_storage()


async def async_update_options(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload the entry so new intervals and tier take effect."""
    await hass.config_entries.async_reload(entry.entry_id)
