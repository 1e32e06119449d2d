# File: services.py
"""Defines custom services for the Breathwork integration.

These services let scripts, automations and dashboards send completion
events and reset requests into the progression engine.

Every service takes an optional config_entry_id; without it the first
loaded Breathwork entry is used.
"""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant.core import HomeAssistant, ServiceCall, ServiceResponse, SupportsResponse
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import config_validation as cv

from . import const
from .coordinator import BreathworkDataCoordinator

# --- Service Schemas ---
_ENTRY_FIELD = {vol.Optional(const.FIELD_CONFIG_ENTRY_ID): cv.string}

COMPLETE_SESSION_SCHEMA = vol.Schema(
    {
        **_ENTRY_FIELD,
        vol.Required(const.FIELD_DAY): vol.All(vol.Coerce(int), vol.Range(min=1)),
        vol.Optional(const.FIELD_SESSION): vol.In(const.EXTENDED_SESSIONS),
        vol.Optional(const.FIELD_TECHNIQUE, default=const.DEFAULT_TECHNIQUE): cv.string,
        vol.Optional(const.FIELD_DURATION_MINUTES, default=0): vol.All(
            vol.Coerce(float), vol.Range(min=0)
        ),
    }
)

RECORD_PRACTICE_SCHEMA = vol.Schema(
    {
        **_ENTRY_FIELD,
        vol.Required(const.FIELD_TECHNIQUE): cv.string,
        vol.Optional(const.FIELD_DURATION_MINUTES, default=0): vol.All(
            vol.Coerce(float), vol.Range(min=0)
        ),
    }
)

RESET_PROGRAM_SCHEMA = vol.Schema(_ENTRY_FIELD)

CREATE_PROGRAM_SCHEMA = vol.Schema(
    {
        **_ENTRY_FIELD,
        vol.Required(const.FIELD_TRACK_KIND): vol.In(const.TRACK_KINDS),
        vol.Optional(const.FIELD_DAYS, default=list): vol.All(
            cv.ensure_list, [vol.Schema(dict)]
        ),
    }
)

REFRESH_SCHEMA = vol.Schema(_ENTRY_FIELD)


def _get_coordinator(hass: HomeAssistant, call: ServiceCall) -> BreathworkDataCoordinator:
    """Return the coordinator a service call targets."""
    entries: dict[str, Any] = hass.data.get(const.DOMAIN, {})
    entry_id = call.data.get(const.FIELD_CONFIG_ENTRY_ID) or next(iter(entries), None)
    if entry_id is None or entry_id not in entries:
        raise HomeAssistantError(f"No loaded Breathwork entry found ({entry_id})")
    return entries[entry_id][const.COORDINATOR]


def async_setup_services(hass: HomeAssistant) -> None:
    """Register Breathwork services."""
    if hass.services.has_service(const.DOMAIN, const.SERVICE_COMPLETE_SESSION):
        return

    async def handle_complete_session(call: ServiceCall) -> ServiceResponse:
        """Handle completing a program day or session."""
        coordinator = _get_coordinator(hass, call)
        result = await coordinator.sync_manager.async_complete_session(
            day=call.data[const.FIELD_DAY],
            session=call.data.get(const.FIELD_SESSION),
            technique=call.data[const.FIELD_TECHNIQUE],
            duration_minutes=call.data[const.FIELD_DURATION_MINUTES],
        )
        const.LOGGER.info(
            "Complete Session: %s (new=%s, queued=%s)", result.key, result.is_new, result.queued
        )
        coordinator.async_update_listeners()
        return {"key": result.key, "is_new": result.is_new, "queued": result.queued}

    async def handle_record_practice(call: ServiceCall) -> None:
        """Handle a free practice session outside the program."""
        coordinator = _get_coordinator(hass, call)
        await coordinator.sync_manager.async_record_practice(
            technique=call.data[const.FIELD_TECHNIQUE],
            duration_minutes=call.data[const.FIELD_DURATION_MINUTES],
        )
        coordinator.async_update_listeners()

    async def handle_reset_program(call: ServiceCall) -> ServiceResponse:
        """Handle a program reset request (subject to the monthly quota)."""
        coordinator = _get_coordinator(hass, call)
        decision = await coordinator.reset_manager.async_reset_program(
            is_premium=coordinator.is_premium
        )
        coordinator.async_update_listeners()
        return {"remaining_resets": decision.remaining_resets}

    async def handle_create_program(call: ServiceCall) -> None:
        """Handle starting a new program from generated day content."""
        coordinator = _get_coordinator(hass, call)
        await coordinator.sync_manager.async_create_program(
            call.data[const.FIELD_TRACK_KIND], call.data[const.FIELD_DAYS]
        )
        coordinator.async_update_listeners()

    async def handle_refresh(call: ServiceCall) -> None:
        """Handle a manual sync (the 'screen focus' trigger)."""
        coordinator = _get_coordinator(hass, call)
        await coordinator.async_request_sync(const.TRIGGER_FOCUS)

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_COMPLETE_SESSION,
        handle_complete_session,
        schema=COMPLETE_SESSION_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_RECORD_PRACTICE,
        handle_record_practice,
        schema=RECORD_PRACTICE_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_RESET_PROGRAM,
        handle_reset_program,
        schema=RESET_PROGRAM_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_CREATE_PROGRAM,
        handle_create_program,
        schema=CREATE_PROGRAM_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_REFRESH,
        handle_refresh,
        schema=REFRESH_SCHEMA,
    )

    const.LOGGER.info("Breathwork services have been registered successfully")


async def async_unload_services(hass: HomeAssistant) -> None:
    """Unregister Breathwork services when the last entry is unloaded."""
    services = [
        const.SERVICE_COMPLETE_SESSION,
        const.SERVICE_RECORD_PRACTICE,
        const.SERVICE_RESET_PROGRAM,
        const.SERVICE_CREATE_PROGRAM,
        const.SERVICE_REFRESH,
    ]

    for service in services:
        if hass.services.has_service(const.DOMAIN, service):
            hass.services.async_remove(const.DOMAIN, service)

    const.LOGGER.info("Breathwork services have been unregistered")
