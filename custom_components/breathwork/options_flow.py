# File: options_flow.py
"""Options Flow for the Breathwork integration.

Edits the premium tier flag and the sync/rollover intervals. Saving the
options reloads the entry (see async_update_options in __init__.py).
"""

from typing import Any

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.helpers import selector

from . import const


class BreathworkOptionsFlowHandler(config_entries.OptionsFlow):
    """Options Flow for tier and interval settings."""

    async def async_step_init(self, user_input: dict[str, Any] | None = None):
        """Show and store the settings form."""
        if user_input is not None:
            const.LOGGER.debug("Breathwork options updated: %s", user_input)
            return self.async_create_entry(title="", data=user_input)

        options = self.config_entry.options
        data = self.config_entry.data
        schema = vol.Schema(
            {
                vol.Optional(
                    const.CONF_PREMIUM_TIER,
                    default=options.get(
                        const.CONF_PREMIUM_TIER,
                        data.get(const.CONF_PREMIUM_TIER, const.DEFAULT_PREMIUM_TIER),
                    ),
                ): selector.BooleanSelector(),
                vol.Optional(
                    const.CONF_UPDATE_INTERVAL,
                    default=options.get(
                        const.CONF_UPDATE_INTERVAL, const.DEFAULT_UPDATE_INTERVAL
                    ),
                ): vol.All(vol.Coerce(int), vol.Range(min=1, max=1440)),
                vol.Optional(
                    const.CONF_ROLLOVER_CHECK_INTERVAL,
                    default=options.get(
                        const.CONF_ROLLOVER_CHECK_INTERVAL,
                        const.DEFAULT_ROLLOVER_CHECK_INTERVAL,
                    ),
                ): vol.All(vol.Coerce(int), vol.Range(min=10, max=3600)),
            }
        )
        return self.async_show_form(step_id=const.OPTIONS_FLOW_STEP_INIT, data_schema=schema)
