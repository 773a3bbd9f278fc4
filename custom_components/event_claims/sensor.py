# File: sensor.py
# pyright: reportIncompatibleVariableOverride=false
"""Sensors for Event Claims integration.

1) EventClaimStatusSensor: one per claim type. State is the tri-state decision
   (not_yet_eligible / eligible / closed); attributes carry the merged progress
   record and claim-type specific details (window, next claim date, redeemable
   points, ...).
2) EventCoinsSensor: the user's coin balance, cached for offline display.
"""

from __future__ import annotations

from typing import Any

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorStateClass,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from . import const
from .coordinator import EventClaimsCoordinator
from .entity import EventClaimsCoordinatorEntity
from .utils import dt_utils, math_utils

# Read-only sensors, coordinator handles updates
PARALLEL_UPDATES = 0


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up sensors for Event Claims integration."""
    coordinator: EventClaimsCoordinator = hass.data[const.DOMAIN][entry.entry_id][
        const.COORDINATOR
    ]

    entities: list[SensorEntity] = [
        EventClaimStatusSensor(coordinator, entry, claim_type)
        for claim_type in const.CLAIM_TYPES
    ]
    entities.append(EventCoinsSensor(coordinator, entry))
    async_add_entities(entities)


class EventClaimStatusSensor(EventClaimsCoordinatorEntity, SensorEntity):
    """Claim decision for one claim type in its current period."""

    _attr_device_class = SensorDeviceClass.ENUM
    _attr_options = const.CLAIM_STATUSES

    def __init__(
        self,
        coordinator: EventClaimsCoordinator,
        entry: ConfigEntry,
        claim_type: str,
    ) -> None:
        """Initialize the sensor.

        Args:
            coordinator: EventClaimsCoordinator instance for data access.
            entry: ConfigEntry for this integration instance.
            claim_type: One of const.CLAIM_TYPES.
        """
        super().__init__(coordinator, entry)
        self._claim_type = claim_type
        self._attr_unique_id = (
            f"{entry.entry_id}_{claim_type}{const.SENSOR_UID_SUFFIX_CLAIM_STATUS}"
        )
        self._attr_translation_key = f"{claim_type}_status"
        self._attr_icon = const.CLAIM_TYPE_ICONS.get(claim_type)

    @property
    def native_value(self) -> str | None:
        """Return the decision status."""
        decision = self.coordinator.get_decision(self._claim_type)
        if decision is None:
            return None
        return decision[const.DATA_DECISION_STATUS]

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Expose the merged record and claim-type details."""
        decision = self.coordinator.get_decision(self._claim_type)
        if decision is None:
            return {const.ATTR_CLAIM_TYPE: self._claim_type}

        record = decision[const.DATA_DECISION_RECORD]
        progress = record.get(const.DATA_RECORD_PROGRESS_COUNT, 0)
        target = record.get(const.DATA_RECORD_TARGET_COUNT, 0)
        attributes: dict[str, Any] = {
            const.ATTR_CLAIM_TYPE: self._claim_type,
            const.ATTR_PERIOD_KEY: record.get(const.DATA_RECORD_PERIOD_KEY),
            const.ATTR_PROGRESS_COUNT: progress,
            const.ATTR_TARGET_COUNT: target,
            const.ATTR_PROGRESS_PCT: math_utils.calculate_percentage(progress, target),
            const.ATTR_BROKEN: record.get(const.DATA_RECORD_BROKEN, False),
            const.ATTR_BROKEN_REASON: record.get(const.DATA_RECORD_BROKEN_REASON),
            const.ATTR_CLAIMED: record.get(const.DATA_RECORD_CLAIMED, False),
            const.ATTR_CLAIM_STATUS: record.get(const.DATA_RECORD_CLAIM_STATUS),
            const.ATTR_REASON: decision[const.DATA_DECISION_REASON],
            const.ATTR_USING_CACHED: self.coordinator.is_using_cached(
                self._claim_type
            ),
        }

        data = self.coordinator.data
        if self._claim_type == const.CLAIM_TYPE_DISCIPLINE_MONTHLY:
            options = self._entry.options
            attributes[const.ATTR_NEXT_CLAIM_DATE] = (
                dt_utils.next_discipline_claim_date(
                    dt_utils.dt_now_local(),
                    options.get(
                        const.CONF_DISCIPLINE_CLAIM_MODE,
                        const.DEFAULT_DISCIPLINE_CLAIM_MODE,
                    ),
                    options.get(
                        const.CONF_DISCIPLINE_CLAIM_DAY,
                        const.DEFAULT_DISCIPLINE_CLAIM_DAY,
                    ),
                ).isoformat()
            )
            attributes.update(data.get(const.DATA_DISCIPLINE_META, {}))

        elif self._claim_type in const.PRAYER_SLOTS:
            window = data.get(const.DATA_WINDOWS, {}).get(
                const.PRAYER_SLOTS[self._claim_type]
            )
            attributes[const.ATTR_WINDOW] = (
                dt_utils.window_label(window) if window else None
            )

        elif self._claim_type == const.CLAIM_TYPE_TIDINESS:
            attributes[const.ATTR_ITEMS_TOTAL] = len(
                data.get(const.DATA_TIDINESS_ITEMS, [])
            )

        elif self._claim_type == const.CLAIM_TYPE_REDEMPTION:
            points = math_utils.redeemable_points(
                self.coordinator.coins, self.coordinator.redeem_divisor
            )
            month_cap = data.get(const.DATA_MONTH_CAP) or {}
            attributes[const.ATTR_REDEEMABLE_POINTS] = points
            attributes[const.ATTR_REDEEM_TOTAL_IDR] = math_utils.redeem_total_idr(
                points, self.coordinator.redeem_rate_idr
            )
            attributes[const.ATTR_MONTH_CAP_USED_IDR] = month_cap.get("used_idr")
            attributes[const.ATTR_MONTH_CAP_REMAIN_IDR] = month_cap.get("remain_idr")
            attributes[const.ATTR_OPEN_REQUESTS] = len(
                data.get(const.DATA_OPEN_REQUESTS, [])
            )

        return attributes


class EventCoinsSensor(EventClaimsCoordinatorEntity, SensorEntity):
    """Coin balance of the user."""

    _attr_translation_key = "coins"
    _attr_state_class = SensorStateClass.TOTAL
    _attr_icon = const.ICON_COINS

    def __init__(self, coordinator: EventClaimsCoordinator, entry: ConfigEntry) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, entry)
        self._attr_unique_id = f"{entry.entry_id}{const.SENSOR_UID_SUFFIX_COINS}"

    @property
    def native_value(self) -> int:
        """Return the coin balance."""
        return self.coordinator.coins

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Expose what the balance is worth."""
        points = math_utils.redeemable_points(
            self.coordinator.coins, self.coordinator.redeem_divisor
        )
        return {
            const.ATTR_REDEEMABLE_POINTS: points,
            const.ATTR_REDEEM_TOTAL_IDR: math_utils.redeem_total_idr(
                points, self.coordinator.redeem_rate_idr
            ),
        }
