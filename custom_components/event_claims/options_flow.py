# File: options_flow.py
"""Options Flow for the Event Claims integration.

Polling, timeout and claim rule settings. Saving reloads the entry through the
update listener registered in __init__.py.
"""

from typing import Any, Optional

from homeassistant import config_entries

from . import const
from . import flow_helpers as fh


class EventClaimsOptionsFlowHandler(config_entries.OptionsFlow):
    """Options Flow for claim rule settings."""

    def __init__(self, _config_entry: config_entries.ConfigEntry):
        """Initialize the options flow."""

    async def async_step_init(self, user_input: Optional[dict[str, Any]] = None):
        """Show and save the options form."""
        if user_input is not None:
            options = fh.build_options_data(user_input)
            const.LOGGER.debug("DEBUG: Saving Event Claims options: %s", options)
            return self.async_create_entry(title="", data=options)

        return self.async_show_form(
            step_id="init",
            data_schema=fh.build_options_schema(dict(self.config_entry.options)),
        )
