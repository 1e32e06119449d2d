"""Diagnostics support for Breathwork integration.

Exports the config entry (token redacted), the cached records and the last
sync outcome for troubleshooting offline/degraded behavior.
"""

from dataclasses import asdict
from typing import Any

from homeassistant.components.diagnostics import async_redact_data
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from . import const
from .coordinator import BreathworkDataCoordinator


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    coordinator: BreathworkDataCoordinator = hass.data[const.DOMAIN][entry.entry_id][
        const.COORDINATOR
    ]

    last_result = coordinator.sync_manager.last_result
    last_sync: dict[str, Any] | None = None
    if last_result is not None:
        last_sync = asdict(last_result)
        last_sync.pop("program", None)
        if last_result.synced_at is not None:
            last_sync["synced_at"] = last_result.synced_at.isoformat()

    return {
        "entry": {
            "data": async_redact_data(dict(entry.data), const.TO_REDACT),
            "options": dict(entry.options),
        },
        "cache": coordinator.local_cache.data,
        "last_sync": last_sync,
        "retry_scheduled": coordinator.sync_manager.retry_scheduled,
    }
