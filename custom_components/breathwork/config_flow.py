# File: config_flow.py
"""Config flow for the Breathwork integration.

Collects the account to sync (user id, remote store URL, API token) and the
premium tier flag, and checks that the remote store is reachable with those
credentials before creating the entry. One entry per user id.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.core import callback
from homeassistant.helpers import selector

from . import const
from .exceptions import BreathworkError, NetworkUnavailable, RemoteStoreError
from .options_flow import BreathworkOptionsFlowHandler
from .remote_store import BreathworkRemoteStore

_AUTH_STATUSES = (HTTPStatus.UNAUTHORIZED, HTTPStatus.FORBIDDEN)


def build_user_schema(defaults: dict[str, Any] | None = None) -> vol.Schema:
    """Return the schema for the user step, pre-filled with defaults."""
    defaults = defaults or {}
    return vol.Schema(
        {
            vol.Required(
                const.CONF_USER_ID, default=defaults.get(const.CONF_USER_ID, "")
            ): selector.TextSelector(),
            vol.Required(
                const.CONF_REMOTE_URL, default=defaults.get(const.CONF_REMOTE_URL, "")
            ): selector.TextSelector(
                selector.TextSelectorConfig(type=selector.TextSelectorType.URL)
            ),
            vol.Optional(
                const.CONF_API_TOKEN, default=defaults.get(const.CONF_API_TOKEN, "")
            ): selector.TextSelector(
                selector.TextSelectorConfig(type=selector.TextSelectorType.PASSWORD)
            ),
            vol.Optional(
                const.CONF_PREMIUM_TIER,
                default=defaults.get(const.CONF_PREMIUM_TIER, const.DEFAULT_PREMIUM_TIER),
            ): selector.BooleanSelector(),
        }
    )


class BreathworkConfigFlow(config_entries.ConfigFlow, domain=const.DOMAIN):
    """Config Flow for Breathwork."""

    VERSION = 1

    async def async_step_user(self, user_input: dict[str, Any] | None = None):
        """Ask for the account and validate the remote store connection."""
        errors: dict[str, str] = {}

        if user_input is not None:
            user_id = user_input[const.CONF_USER_ID].strip()
            await self.async_set_unique_id(user_id)
            self._abort_if_unique_id_configured()

            remote_store = BreathworkRemoteStore(
                self.hass,
                user_input[const.CONF_REMOTE_URL],
                user_id,
                user_input.get(const.CONF_API_TOKEN) or None,
            )
            try:
                await remote_store.async_validate()
            except NetworkUnavailable as err:
                const.LOGGER.warning("Cannot connect to remote store: %s", err)
                errors["base"] = const.ERROR_CANNOT_CONNECT
            except RemoteStoreError as err:
                const.LOGGER.warning("Remote store rejected validation: %s", err)
                errors["base"] = (
                    const.ERROR_INVALID_AUTH
                    if err.status in _AUTH_STATUSES
                    else const.ERROR_UNKNOWN
                )
            except BreathworkError as err:
                # A malformed program is the sync's problem, not the connection's
                const.LOGGER.warning("Remote store returned unexpected data: %s", err)

            if not errors:
                return self.async_create_entry(
                    title=f"{const.BREATHWORK_TITLE} ({user_id})",
                    data={**user_input, const.CONF_USER_ID: user_id},
                )

        return self.async_show_form(
            step_id=const.CONFIG_FLOW_STEP_USER,
            data_schema=build_user_schema(user_input),
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Return the Options Flow."""
        return BreathworkOptionsFlowHandler()
