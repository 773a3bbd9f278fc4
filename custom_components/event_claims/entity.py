"""Base entity classes for Event Claims integration."""

from __future__ import annotations

from homeassistant.config_entries import ConfigEntry
from homeassistant.helpers.device_registry import DeviceEntryType, DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from . import const
from .coordinator import EventClaimsCoordinator


def create_user_device_info(config_entry: ConfigEntry) -> DeviceInfo:
    """Create device info for the backend user behind a config entry."""
    return DeviceInfo(
        identifiers={(const.DOMAIN, config_entry.entry_id)},
        name=config_entry.title,
        manufacturer=const.EVENT_CLAIMS_TITLE,
        model="Employee Events",
        entry_type=DeviceEntryType.SERVICE,
    )


class EventClaimsCoordinatorEntity(CoordinatorEntity[EventClaimsCoordinator]):
    """Base entity class for Event Claims entities with typed coordinator access.

    Every entity of one config entry belongs to the same user device.
    """

    _attr_has_entity_name = True

    def __init__(
        self, coordinator: EventClaimsCoordinator, entry: ConfigEntry
    ) -> None:
        """Initialize the entity and attach it to the user device."""
        super().__init__(coordinator)
        self._entry = entry
        self._attr_device_info = create_user_device_info(entry)

    @property
    def coordinator(self) -> EventClaimsCoordinator:
        """Return typed coordinator.

        Uses object.__getattribute__ to access the private _coordinator attribute
        set by the parent CoordinatorEntity class.
        """
        return object.__getattribute__(self, "_coordinator")

    @coordinator.setter
    def coordinator(self, value: EventClaimsCoordinator) -> None:
        """Set coordinator with proper typing."""
        object.__setattr__(self, "_coordinator", value)
