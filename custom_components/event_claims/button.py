# File: button.py
# pyright: reportIncompatibleVariableOverride=false
"""Buttons for Event Claims integration.

One claim button per claim type. The button is only available while the
latest decision for its claim type is eligible; pressing it submits the claim
through the coordinator.
"""

from __future__ import annotations

from homeassistant.components.button import ButtonEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from . import const
from .coordinator import ClaimNotAllowedError, EventClaimsCoordinator
from .entity import EventClaimsCoordinatorEntity

# Set to 1 (serialized) for action buttons that modify state
PARALLEL_UPDATES = 1


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up claim buttons."""
    coordinator: EventClaimsCoordinator = hass.data[const.DOMAIN][entry.entry_id][
        const.COORDINATOR
    ]
    async_add_entities(
        EventClaimButton(coordinator, entry, claim_type)
        for claim_type in const.CLAIM_TYPES
    )


class EventClaimButton(EventClaimsCoordinatorEntity, ButtonEntity):
    """Button that submits a claim for the current period."""

    def __init__(
        self,
        coordinator: EventClaimsCoordinator,
        entry: ConfigEntry,
        claim_type: str,
    ) -> None:
        """Initialize the claim button."""
        super().__init__(coordinator, entry)
        self._claim_type = claim_type
        self._attr_unique_id = (
            f"{entry.entry_id}_{claim_type}{const.BUTTON_UID_SUFFIX_CLAIM}"
        )
        self._attr_translation_key = f"claim_{claim_type}"
        self._attr_icon = const.CLAIM_TYPE_ICONS.get(claim_type)

    @property
    def available(self) -> bool:
        """Available only while the claim is eligible."""
        decision = self.coordinator.get_decision(self._claim_type)
        return (
            super().available
            and decision is not None
            and decision[const.DATA_DECISION_STATUS] == const.CLAIM_STATUS_ELIGIBLE
        )

    async def async_press(self) -> None:
        """Submit the claim.

        Raises:
            HomeAssistantError: not eligible, rejected by the server or
                backend unreachable. Shown to the user by the frontend.
        """
        try:
            await self.coordinator.async_submit_claim(self._claim_type)
        except ClaimNotAllowedError as err:
            const.LOGGER.warning(
                "WARNING: Claim button for '%s' pressed while not eligible: %s",
                self._claim_type,
                err,
            )
            raise HomeAssistantError(
                translation_domain=const.DOMAIN,
                translation_key=const.TRANS_KEY_ERROR_CLAIM_NOT_ALLOWED,
                translation_placeholders={"claim_type": self._claim_type},
            ) from err
