"""Tests for the Event Claims config and options flows."""

from unittest.mock import patch

import aiohttp
from homeassistant import config_entries
from homeassistant.core import HomeAssistant
from homeassistant.data_entry_flow import FlowResultType
from pytest_homeassistant_custom_component.common import MockConfigEntry
from pytest_homeassistant_custom_component.test_util.aiohttp import (
    AiohttpClientMocker,
)

from custom_components.event_claims import const
from custom_components.event_claims.flow_helpers import (
    build_options_data,
    validate_user_inputs,
)
from tests.helpers import BASE_URL, POINTS_URL, USER_ID

USER_INPUT = {
    const.CONF_BASE_URL: BASE_URL,
    const.CONF_USER_ID: USER_ID,
    const.CONF_NAME: "Budi",
}


def _mock_coins(aioclient_mock: AiohttpClientMocker) -> None:
    aioclient_mock.get(
        POINTS_URL,
        params={"action": const.API_ACTION_GET},
        json={"success": True, "data": {"coins": 97}},
    )


async def test_user_step_creates_entry(
    hass: HomeAssistant, aioclient_mock: AiohttpClientMocker
) -> None:
    """A reachable backend creates an entry with default options."""
    _mock_coins(aioclient_mock)

    result = await hass.config_entries.flow.async_init(
        const.DOMAIN, context={"source": config_entries.SOURCE_USER}
    )
    assert result["type"] == FlowResultType.FORM
    assert result["step_id"] == "user"

    with patch(
        "custom_components.event_claims.async_setup_entry", return_value=True
    ) as mock_setup:
        result = await hass.config_entries.flow.async_configure(
            result["flow_id"], user_input=USER_INPUT
        )
        await hass.async_block_till_done()

    assert result["type"] == FlowResultType.CREATE_ENTRY
    assert result["title"] == "Budi"
    assert result["data"] == USER_INPUT
    assert result["options"] == build_options_data({})
    assert result["result"].unique_id == f"{BASE_URL}#{USER_ID}"
    assert len(mock_setup.mock_calls) == 1


async def test_user_step_cannot_connect(
    hass: HomeAssistant, aioclient_mock: AiohttpClientMocker
) -> None:
    """A transport failure keeps the form open with a base error."""
    aioclient_mock.get(POINTS_URL, exc=aiohttp.ClientConnectionError())

    result = await hass.config_entries.flow.async_init(
        const.DOMAIN, context={"source": config_entries.SOURCE_USER}
    )
    result = await hass.config_entries.flow.async_configure(
        result["flow_id"], user_input=USER_INPUT
    )

    assert result["type"] == FlowResultType.FORM
    assert result["errors"] == {"base": const.TRANS_KEY_ERROR_CANNOT_CONNECT}


async def test_user_step_server_rejects(
    hass: HomeAssistant, aioclient_mock: AiohttpClientMocker
) -> None:
    """success=false from the backend is also reported as cannot_connect."""
    aioclient_mock.get(
        POINTS_URL, json={"success": False, "message": "User tidak ditemukan"}
    )

    result = await hass.config_entries.flow.async_init(
        const.DOMAIN, context={"source": config_entries.SOURCE_USER}
    )
    result = await hass.config_entries.flow.async_configure(
        result["flow_id"], user_input=USER_INPUT
    )

    assert result["errors"] == {"base": const.TRANS_KEY_ERROR_CANNOT_CONNECT}


async def test_user_step_invalid_url(hass: HomeAssistant) -> None:
    """A URL without a scheme is rejected before any request."""
    result = await hass.config_entries.flow.async_init(
        const.DOMAIN, context={"source": config_entries.SOURCE_USER}
    )
    result = await hass.config_entries.flow.async_configure(
        result["flow_id"],
        user_input={**USER_INPUT, const.CONF_BASE_URL: "hr.example.com/api"},
    )

    assert result["type"] == FlowResultType.FORM
    assert result["errors"] == {const.CONF_BASE_URL: const.TRANS_KEY_ERROR_INVALID_URL}


async def test_user_step_already_configured(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    aioclient_mock: AiohttpClientMocker,
) -> None:
    """The same backend user cannot be added twice, trailing slash or not."""
    mock_config_entry.add_to_hass(hass)
    _mock_coins(aioclient_mock)

    result = await hass.config_entries.flow.async_init(
        const.DOMAIN, context={"source": config_entries.SOURCE_USER}
    )
    result = await hass.config_entries.flow.async_configure(
        result["flow_id"],
        user_input={**USER_INPUT, const.CONF_BASE_URL: BASE_URL.rstrip("/")},
    )

    assert result["type"] == FlowResultType.ABORT
    assert result["reason"] == const.TRANS_KEY_ERROR_ALREADY_CONFIGURED


def test_validate_user_inputs() -> None:
    """Offline validation of the connection step."""
    assert validate_user_inputs(USER_INPUT) == {}
    assert validate_user_inputs({**USER_INPUT, const.CONF_USER_ID: 0}) == {
        const.CONF_USER_ID: const.TRANS_KEY_ERROR_INVALID_USER_ID
    }
    assert validate_user_inputs({**USER_INPUT, const.CONF_USER_ID: "abc"}) == {
        const.CONF_USER_ID: const.TRANS_KEY_ERROR_INVALID_USER_ID
    }


async def test_options_flow(
    hass: HomeAssistant, mock_config_entry: MockConfigEntry
) -> None:
    """Options are saved as integers with the chosen claim mode."""
    mock_config_entry.add_to_hass(hass)

    result = await hass.config_entries.options.async_init(mock_config_entry.entry_id)
    assert result["type"] == FlowResultType.FORM
    assert result["step_id"] == "init"

    user_input = {
        **build_options_data({}),
        const.CONF_UPDATE_INTERVAL: 10.0,
        const.CONF_REDEEM_DIVISOR: 20.0,
        const.CONF_DISCIPLINE_CLAIM_MODE: const.CLAIM_MODE_WEEKLY_FRIDAY,
    }
    result = await hass.config_entries.options.async_configure(
        result["flow_id"], user_input=user_input
    )

    assert result["type"] == FlowResultType.CREATE_ENTRY
    options = mock_config_entry.options
    assert options[const.CONF_UPDATE_INTERVAL] == 10
    assert isinstance(options[const.CONF_UPDATE_INTERVAL], int)
    assert options[const.CONF_REDEEM_DIVISOR] == 20
    assert options[const.CONF_DISCIPLINE_CLAIM_MODE] == const.CLAIM_MODE_WEEKLY_FRIDAY


def test_options_data_rejects_unknown_mode() -> None:
    """An unknown claim mode falls back to the default."""
    options = build_options_data({const.CONF_DISCIPLINE_CLAIM_MODE: "hourly"})

    assert options[const.CONF_DISCIPLINE_CLAIM_MODE] == (
        const.DEFAULT_DISCIPLINE_CLAIM_MODE
    )
