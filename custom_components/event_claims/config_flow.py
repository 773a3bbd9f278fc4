# File: config_flow.py
"""Config flow for the Event Claims integration.

One config entry per backend user. The connection is checked by fetching the
user's coin balance before the entry is created.
"""

from typing import Any, Optional

from homeassistant import config_entries
from homeassistant.core import callback
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from . import const
from . import flow_helpers as fh
from .api import EventApiClient, EventApiError
from .options_flow import EventClaimsOptionsFlowHandler

# abstract-method: is_matching is not required for config flows in current HA versions
# pylint: disable=abstract-method


class EventClaimsConfigFlow(config_entries.ConfigFlow, domain=const.DOMAIN):
    """Config Flow for Event Claims."""

    VERSION = 1

    async def async_step_user(self, user_input: Optional[dict[str, Any]] = None):
        """Ask for the backend URL and the user to claim for."""
        errors: dict[str, str] = {}

        if user_input is not None:
            errors = fh.validate_user_inputs(user_input)
            if not errors:
                data = fh.build_user_data(user_input)
                api = EventApiClient(
                    async_get_clientsession(self.hass), data[const.CONF_BASE_URL]
                )

                await self.async_set_unique_id(
                    f"{api.base_url}#{data[const.CONF_USER_ID]}"
                )
                self._abort_if_unique_id_configured()

                try:
                    await api.async_fetch_coins(data[const.CONF_USER_ID])
                except EventApiError as err:
                    const.LOGGER.warning(
                        "WARNING: Could not reach Event Claims backend at %s: %s",
                        api.base_url,
                        err,
                    )
                    errors["base"] = const.TRANS_KEY_ERROR_CANNOT_CONNECT
                else:
                    const.LOGGER.info(
                        "INFO: Creating Event Claims entry for user %s",
                        data[const.CONF_USER_ID],
                    )
                    return self.async_create_entry(
                        title=data[const.CONF_NAME],
                        data=data,
                        options=fh.build_options_data({}),
                    )

        return self.async_show_form(
            step_id="user",
            data_schema=fh.build_user_schema(user_input),
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Return the Options Flow."""
        return EventClaimsOptionsFlowHandler(config_entry)
