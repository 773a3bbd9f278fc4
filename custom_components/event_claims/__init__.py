# File: __init__.py
"""Initialization file for the Event Claims integration.

Handles setting up the integration: loading the progress cache, creating the
backend client and the coordinator, and forwarding to the platforms.
"""

from __future__ import annotations

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.util import dt as dt_util

from . import const
from .api import EventApiClient
from .coordinator import EventClaimsCoordinator
from .store import ProgressCache
from .utils import dt_utils


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up the integration from a config entry."""
    const.LOGGER.info("INFO: Starting setup for Event Claims entry: %s", entry.entry_id)

    # Period keys and claim days follow the Home Assistant timezone
    dt_utils.set_default_timezone(dt_util.get_default_time_zone())

    cache = ProgressCache(hass, f"{const.STORAGE_KEY}_{entry.entry_id}")
    await cache.async_initialize()

    api = EventApiClient(
        async_get_clientsession(hass),
        entry.data[const.CONF_BASE_URL],
        timeout=entry.options.get(const.CONF_TIMEOUT, const.DEFAULT_TIMEOUT),
        default_window_minutes=entry.options.get(
            const.CONF_PRAYER_WINDOW_MINUTES, const.DEFAULT_PRAYER_WINDOW_MINUTES
        ),
    )

    coordinator = EventClaimsCoordinator(hass, entry, api, cache)

    try:
        await coordinator.async_config_entry_first_refresh()
    except ConfigEntryNotReady as e:
        const.LOGGER.error("ERROR: Failed to refresh coordinator data: %s", e)
        raise

    hass.data.setdefault(const.DOMAIN, {})[entry.entry_id] = {
        const.COORDINATOR: coordinator,
        const.PROGRESS_CACHE: cache,
    }

    await hass.config_entries.async_forward_entry_setups(entry, const.PLATFORMS)
    entry.async_on_unload(entry.add_update_listener(_async_update_listener))

    const.LOGGER.info("INFO: Event Claims setup complete for entry: %s", entry.entry_id)
    return True


async def _async_update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload the entry when options change."""
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    const.LOGGER.info("INFO: Unloading Event Claims entry: %s", entry.entry_id)

    unload_ok = await hass.config_entries.async_unload_platforms(entry, const.PLATFORMS)
    if unload_ok:
        hass.data[const.DOMAIN].pop(entry.entry_id)

    return unload_ok


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle removal of a config entry by dropping its progress cache."""
    const.LOGGER.info("INFO: Removing Event Claims entry: %s", entry.entry_id)

    cache = ProgressCache(hass, f"{const.STORAGE_KEY}_{entry.entry_id}")
    await cache.async_clear()

    const.LOGGER.info("INFO: Event Claims cache cleared: %s", entry.entry_id)
