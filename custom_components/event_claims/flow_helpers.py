# File: flow_helpers.py
"""Helpers for the Event Claims config and options flows.

Schema builders, input normalization and validation shared by both flows.
"""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant.helpers import selector

from . import const

# Numeric options: (min, max, default)
_NUMBER_OPTIONS: dict[str, tuple[int, int | None, int]] = {
    const.CONF_UPDATE_INTERVAL: (1, 60, const.DEFAULT_UPDATE_INTERVAL),
    const.CONF_TIMEOUT: (1, 60, const.DEFAULT_TIMEOUT),
    const.CONF_DISCIPLINE_TARGET_DAYS: (1, 31, const.DEFAULT_DISCIPLINE_TARGET_DAYS),
    const.CONF_DISCIPLINE_CLAIM_DAY: (1, 28, const.DEFAULT_DISCIPLINE_CLAIM_DAY),
    const.CONF_REDEEM_DIVISOR: (1, None, const.DEFAULT_REDEEM_DIVISOR),
    const.CONF_REDEEM_RATE_IDR: (1, None, const.DEFAULT_REDEEM_RATE_IDR),
    const.CONF_MONTHLY_CAP_IDR: (0, None, const.DEFAULT_MONTHLY_CAP_IDR),
    const.CONF_PRAYER_WINDOW_MINUTES: (
        1,
        120,
        const.DEFAULT_PRAYER_WINDOW_MINUTES,
    ),
}


def _number_selector(minimum: int, maximum: int | None) -> selector.NumberSelector:
    config: dict[str, Any] = {
        "mode": selector.NumberSelectorMode.BOX,
        "min": minimum,
        "step": 1,
    }
    if maximum is not None:
        config["max"] = maximum
    return selector.NumberSelector(selector.NumberSelectorConfig(**config))


# ----------------------------------------------------------------------------------
# USER STEP
# ----------------------------------------------------------------------------------


def build_user_schema(default: dict[str, Any] | None = None) -> vol.Schema:
    """Build schema for the connection step."""
    default = default or {}
    return vol.Schema(
        {
            vol.Required(
                const.CONF_BASE_URL, default=default.get(const.CONF_BASE_URL, "")
            ): selector.TextSelector(
                selector.TextSelectorConfig(type=selector.TextSelectorType.URL)
            ),
            vol.Required(
                const.CONF_USER_ID, default=default.get(const.CONF_USER_ID, 1)
            ): _number_selector(1, None),
            vol.Optional(
                const.CONF_NAME,
                default=default.get(const.CONF_NAME, const.EVENT_CLAIMS_TITLE),
            ): selector.TextSelector(),
        }
    )


def build_user_data(user_input: dict[str, Any]) -> dict[str, Any]:
    """Normalize connection input for storage in the config entry."""
    return {
        const.CONF_BASE_URL: str(user_input[const.CONF_BASE_URL]).strip(),
        const.CONF_USER_ID: int(user_input[const.CONF_USER_ID]),
        const.CONF_NAME: str(
            user_input.get(const.CONF_NAME) or const.EVENT_CLAIMS_TITLE
        ).strip(),
    }


def validate_user_inputs(user_input: dict[str, Any]) -> dict[str, str]:
    """Validate connection input that can be checked without the network."""
    errors: dict[str, str] = {}
    base_url = str(user_input.get(const.CONF_BASE_URL, "")).strip()
    if not base_url.startswith(("http://", "https://")):
        errors[const.CONF_BASE_URL] = const.TRANS_KEY_ERROR_INVALID_URL
    try:
        if int(user_input.get(const.CONF_USER_ID, 0)) <= 0:
            errors[const.CONF_USER_ID] = const.TRANS_KEY_ERROR_INVALID_USER_ID
    except (TypeError, ValueError):
        errors[const.CONF_USER_ID] = const.TRANS_KEY_ERROR_INVALID_USER_ID
    return errors


# ----------------------------------------------------------------------------------
# OPTIONS
# ----------------------------------------------------------------------------------


def build_options_schema(default: dict[str, Any] | None = None) -> vol.Schema:
    """Build schema for the options step."""
    default = default or {}
    fields: dict[Any, Any] = {}
    for key, (minimum, maximum, fallback) in _NUMBER_OPTIONS.items():
        fields[vol.Required(key, default=default.get(key, fallback))] = (
            _number_selector(minimum, maximum)
        )

    fields[
        vol.Required(
            const.CONF_DISCIPLINE_CLAIM_MODE,
            default=default.get(
                const.CONF_DISCIPLINE_CLAIM_MODE, const.DEFAULT_DISCIPLINE_CLAIM_MODE
            ),
        )
    ] = selector.SelectSelector(
        selector.SelectSelectorConfig(
            options=const.CLAIM_MODES,
            mode=selector.SelectSelectorMode.DROPDOWN,
            translation_key=const.CONF_DISCIPLINE_CLAIM_MODE,
        )
    )
    return vol.Schema(fields)


def build_options_data(user_input: dict[str, Any]) -> dict[str, Any]:
    """Convert selector output (floats) into the stored option values."""
    options: dict[str, Any] = {
        key: int(user_input.get(key, fallback))
        for key, (_minimum, _maximum, fallback) in _NUMBER_OPTIONS.items()
    }
    mode = user_input.get(
        const.CONF_DISCIPLINE_CLAIM_MODE, const.DEFAULT_DISCIPLINE_CLAIM_MODE
    )
    options[const.CONF_DISCIPLINE_CLAIM_MODE] = (
        mode if mode in const.CLAIM_MODES else const.DEFAULT_DISCIPLINE_CLAIM_MODE
    )
    return options
