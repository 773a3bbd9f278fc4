"""Diagnostics support for Event Claims integration.

Returns the latest decisions together with the raw progress cache, so a claim
that shows the wrong state can be traced back to server or cached data.
"""

from typing import Any

from homeassistant.components.diagnostics import async_redact_data
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from . import const
from .coordinator import EventClaimsCoordinator

TO_REDACT = {const.CONF_BASE_URL}


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    coordinator: EventClaimsCoordinator = hass.data[const.DOMAIN][entry.entry_id][
        const.COORDINATOR
    ]

    return {
        "entry": {
            "data": async_redact_data(dict(entry.data), TO_REDACT),
            "options": dict(entry.options),
        },
        "coordinator_data": coordinator.data,
        "cache": coordinator.cache.data,
    }
