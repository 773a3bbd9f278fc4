"""Tests for EventClaimsCoordinator: fetch, cache fallback and claim submission.

The integration is set up through its config entry against a mocked backend.
Time is frozen at Saturday 2025-03-15 12:05 in Asia/Jakarta, inside the zuhur
window (12:00-12:20) and outside the ashar one.
"""

from typing import Any

import aiohttp
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import entity_registry as er
import pytest
from pytest_homeassistant_custom_component.common import MockConfigEntry
from pytest_homeassistant_custom_component.test_util.aiohttp import (
    AiohttpClientMocker,
)

from custom_components.event_claims import const
from custom_components.event_claims.coordinator import (
    ClaimNotAllowedError,
    EventClaimsCoordinator,
)
from custom_components.event_claims.diagnostics import (
    async_get_config_entry_diagnostics,
)
from custom_components.event_claims.store import build_points_key
from tests.helpers import (
    DISCIPLINE_URL,
    POINTS_URL,
    PRAYER_URL,
    TIDINESS_URL,
    USER_ID,
    mock_backend,
)

FROZEN_UTC = "2025-03-15 05:05:00+00:00"  # 12:05 in Jakarta


def _backend_down(aioclient_mock: AiohttpClientMocker) -> None:
    aioclient_mock.clear_requests()
    for url in (DISCIPLINE_URL, TIDINESS_URL, PRAYER_URL, POINTS_URL):
        aioclient_mock.get(url, exc=aiohttp.ClientConnectionError())
        aioclient_mock.post(url, exc=aiohttp.ClientConnectionError())


def _entity_id(hass: HomeAssistant, platform: str, unique_id: str) -> str:
    entity_id = er.async_get(hass).async_get_entity_id(
        platform, const.DOMAIN, unique_id
    )
    assert entity_id is not None
    return entity_id


@pytest.fixture
async def coordinator(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    aioclient_mock: AiohttpClientMocker,
    freezer: Any,
) -> EventClaimsCoordinator:
    """Set up the integration against a healthy backend."""
    await hass.config.async_set_time_zone("Asia/Jakarta")
    freezer.move_to(FROZEN_UTC)
    mock_backend(aioclient_mock)

    mock_config_entry.add_to_hass(hass)
    assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
    await hass.async_block_till_done()

    return hass.data[const.DOMAIN][mock_config_entry.entry_id][const.COORDINATOR]


# =============================================================================
# REFRESH
# =============================================================================


async def test_initial_decisions(coordinator: EventClaimsCoordinator) -> None:
    """Healthy backend: every claim type is decided from server data."""
    statuses = {
        claim_type: coordinator.get_decision(claim_type)["status"]
        for claim_type in const.CLAIM_TYPES
    }
    assert statuses == {
        const.CLAIM_TYPE_DISCIPLINE_MONTHLY: const.CLAIM_STATUS_ELIGIBLE,
        const.CLAIM_TYPE_TIDINESS: const.CLAIM_STATUS_ELIGIBLE,
        const.CLAIM_TYPE_PRAYER_ZUHUR: const.CLAIM_STATUS_ELIGIBLE,
        const.CLAIM_TYPE_PRAYER_ASHAR: const.CLAIM_STATUS_NOT_YET_ELIGIBLE,
        const.CLAIM_TYPE_REDEMPTION: const.CLAIM_STATUS_ELIGIBLE,
    }
    assert not any(
        coordinator.is_using_cached(claim_type) for claim_type in const.CLAIM_TYPES
    )
    assert coordinator.coins == 97
    assert coordinator.cache.get_number(build_points_key(USER_ID)) == 97


async def test_backend_outage_uses_cache(
    hass: HomeAssistant,
    coordinator: EventClaimsCoordinator,
    aioclient_mock: AiohttpClientMocker,
) -> None:
    """NetworkError on every fetch: cached records decide, refresh succeeds."""
    _backend_down(aioclient_mock)

    await coordinator.async_refresh()

    assert coordinator.last_update_success
    assert all(
        coordinator.is_using_cached(claim_type) for claim_type in const.CLAIM_TYPES
    )
    decision = coordinator.get_decision(const.CLAIM_TYPE_DISCIPLINE_MONTHLY)
    assert decision["record"]["progress_count"] == 24
    assert decision["status"] == const.CLAIM_STATUS_ELIGIBLE
    assert coordinator.coins == 97
    # Same-day windows are kept from the last good fetch
    assert (
        coordinator.get_decision(const.CLAIM_TYPE_PRAYER_ZUHUR)["status"]
        == const.CLAIM_STATUS_ELIGIBLE
    )


async def test_stale_server_value_does_not_regress(
    coordinator: EventClaimsCoordinator, aioclient_mock: AiohttpClientMocker
) -> None:
    """Server reports 20 after 24 was cached: visible progress stays at 24."""
    aioclient_mock.clear_requests()
    mock_backend(aioclient_mock, progress_days=20)

    await coordinator.async_refresh()

    record = coordinator.get_decision(const.CLAIM_TYPE_DISCIPLINE_MONTHLY)["record"]
    assert record["progress_count"] == 24


async def test_prayer_status_missing_uses_cache(
    coordinator: EventClaimsCoordinator, aioclient_mock: AiohttpClientMocker
) -> None:
    """A backend without the prayer status action still decides from the window."""
    aioclient_mock.clear_requests()
    aioclient_mock.get(
        PRAYER_URL,
        params={"action": const.API_ACTION_STATUS},
        status=404,
        text="Not Found",
    )
    mock_backend(aioclient_mock)

    await coordinator.async_refresh()

    assert coordinator.last_update_success
    assert coordinator.is_using_cached(const.CLAIM_TYPE_PRAYER_ZUHUR)
    assert not coordinator.is_using_cached(const.CLAIM_TYPE_DISCIPLINE_MONTHLY)
    assert (
        coordinator.get_decision(const.CLAIM_TYPE_PRAYER_ZUHUR)["status"]
        == const.CLAIM_STATUS_ELIGIBLE
    )


async def test_cold_start_with_backend_down(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    aioclient_mock: AiohttpClientMocker,
    freezer: Any,
) -> None:
    """No cache and no backend: setup still succeeds with zero progress."""
    await hass.config.async_set_time_zone("Asia/Jakarta")
    freezer.move_to(FROZEN_UTC)
    _backend_down(aioclient_mock)

    mock_config_entry.add_to_hass(hass)
    assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
    await hass.async_block_till_done()

    coordinator = hass.data[const.DOMAIN][mock_config_entry.entry_id][
        const.COORDINATOR
    ]
    decision = coordinator.get_decision(const.CLAIM_TYPE_DISCIPLINE_MONTHLY)
    assert decision["status"] == const.CLAIM_STATUS_NOT_YET_ELIGIBLE
    assert decision["record"]["progress_count"] == 0
    assert (
        coordinator.get_decision(const.CLAIM_TYPE_PRAYER_ZUHUR)["reason"]
        == const.REASON_INVALID_WINDOW
    )


# =============================================================================
# SUBMISSION
# =============================================================================


async def test_submit_accepted_marks_claimed(
    coordinator: EventClaimsCoordinator, aioclient_mock: AiohttpClientMocker
) -> None:
    """An accepted claim is cached as claimed and closes the decision."""
    aioclient_mock.post(
        DISCIPLINE_URL,
        params={"action": const.API_ACTION_SUBMIT_MONTHLY},
        json={"success": True, "data": {"id": 1}},
    )

    result = await coordinator.async_submit_claim(const.CLAIM_TYPE_DISCIPLINE_MONTHLY)
    await coordinator.async_refresh()

    assert result["accepted"] is True
    cached = coordinator.cache.get(
        USER_ID, "monthly:2025-03", const.CLAIM_TYPE_DISCIPLINE_MONTHLY
    )
    assert cached["claimed"] is True
    decision = coordinator.get_decision(const.CLAIM_TYPE_DISCIPLINE_MONTHLY)
    assert decision["status"] == const.CLAIM_STATUS_CLOSED
    assert decision["reason"] == const.REASON_ALREADY_CLAIMED


async def test_submit_rejected_never_marks_claimed(
    coordinator: EventClaimsCoordinator, aioclient_mock: AiohttpClientMocker
) -> None:
    """A rejection surfaces the server message and leaves the claim open."""
    aioclient_mock.post(
        DISCIPLINE_URL,
        json={
            "success": False,
            "message": "Sudah klaim bulan ini",
            "severity": "warning",
        },
    )

    with pytest.raises(HomeAssistantError, match="Sudah klaim bulan ini"):
        await coordinator.async_submit_claim(const.CLAIM_TYPE_DISCIPLINE_MONTHLY)

    cached = coordinator.cache.get(
        USER_ID, "monthly:2025-03", const.CLAIM_TYPE_DISCIPLINE_MONTHLY
    )
    assert cached["claimed"] is False
    assert (
        coordinator.get_decision(const.CLAIM_TYPE_DISCIPLINE_MONTHLY)["status"]
        == const.CLAIM_STATUS_ELIGIBLE
    )


async def test_submit_network_failure_never_marks_claimed(
    coordinator: EventClaimsCoordinator, aioclient_mock: AiohttpClientMocker
) -> None:
    """Transport failure on submit gives the generic retry message."""
    aioclient_mock.post(TIDINESS_URL, exc=aiohttp.ClientConnectionError())

    with pytest.raises(HomeAssistantError, match="try again"):
        await coordinator.async_submit_claim(const.CLAIM_TYPE_TIDINESS)

    cached = coordinator.cache.get(
        USER_ID, "daily:2025-03-15", const.CLAIM_TYPE_TIDINESS
    )
    assert cached["claimed"] is False


async def test_submit_not_eligible(coordinator: EventClaimsCoordinator) -> None:
    """Claims outside their window are refused locally."""
    with pytest.raises(ClaimNotAllowedError):
        await coordinator.async_submit_claim(const.CLAIM_TYPE_PRAYER_ASHAR)


async def test_submit_redemption_sends_floor_points(
    coordinator: EventClaimsCoordinator, aioclient_mock: AiohttpClientMocker
) -> None:
    """97 coins at divisor 10 convert 9 points."""
    aioclient_mock.post(
        POINTS_URL,
        params={"action": const.API_ACTION_CONVERT},
        json={"success": True, "data": {"coins_after": 7}},
    )

    await coordinator.async_submit_claim(const.CLAIM_TYPE_REDEMPTION)

    body = next(
        call[2]
        for call in aioclient_mock.mock_calls
        if call[0] == "post" and "points.php" in str(call[1])
    )
    assert body == {"user_id": USER_ID, "points": 9, "rate_idr": 1}


async def test_redemption_reopens_after_approval(
    coordinator: EventClaimsCoordinator, aioclient_mock: AiohttpClientMocker
) -> None:
    """Convert, wait for approval, earn coins, convert again in the same month."""
    aioclient_mock.post(
        POINTS_URL,
        params={"action": const.API_ACTION_CONVERT},
        json={"success": True, "data": {"coins_after": 7}},
    )
    await coordinator.async_submit_claim(const.CLAIM_TYPE_REDEMPTION)

    # Request is open server-side
    aioclient_mock.clear_requests()
    mock_backend(
        aioclient_mock, coins=7, open_requests=[{"id": 11, "status": "pending"}]
    )
    await coordinator.async_refresh()
    decision = coordinator.get_decision(const.CLAIM_TYPE_REDEMPTION)
    assert decision["status"] == const.CLAIM_STATUS_CLOSED
    assert decision["reason"] == const.REASON_ALREADY_CLAIMED

    # Approved, and the user earned more coins
    aioclient_mock.clear_requests()
    mock_backend(aioclient_mock, coins=50)
    await coordinator.async_refresh()
    decision = coordinator.get_decision(const.CLAIM_TYPE_REDEMPTION)
    assert decision["status"] == const.CLAIM_STATUS_ELIGIBLE
    assert decision["record"]["claimed"] is False
    assert decision["record"]["claim_status"] is None


# =============================================================================
# ENTITIES
# =============================================================================


async def test_sensor_states(
    hass: HomeAssistant,
    coordinator: EventClaimsCoordinator,
    mock_config_entry: MockConfigEntry,
) -> None:
    """Claim status sensors expose decision and record."""
    entry_id = mock_config_entry.entry_id
    state = hass.states.get(
        _entity_id(hass, "sensor", f"{entry_id}_discipline_monthly_claim_status")
    )
    assert state.state == const.CLAIM_STATUS_ELIGIBLE
    assert state.attributes[const.ATTR_PROGRESS_COUNT] == 24
    assert state.attributes[const.ATTR_PROGRESS_PCT] == 100
    assert state.attributes[const.ATTR_USING_CACHED] is False
    assert state.attributes[const.ATTR_NEXT_CLAIM_DATE] == "2025-03-15"

    zuhur = hass.states.get(
        _entity_id(hass, "sensor", f"{entry_id}_prayer_zuhur_claim_status")
    )
    assert zuhur.attributes[const.ATTR_WINDOW] == "12:00-12:20"

    redemption = hass.states.get(
        _entity_id(hass, "sensor", f"{entry_id}_redemption_claim_status")
    )
    assert redemption.attributes[const.ATTR_REDEEMABLE_POINTS] == 9

    coins = hass.states.get(_entity_id(hass, "sensor", f"{entry_id}_coins"))
    assert coins.state == "97"


async def test_claim_button(
    hass: HomeAssistant,
    coordinator: EventClaimsCoordinator,
    mock_config_entry: MockConfigEntry,
    aioclient_mock: AiohttpClientMocker,
) -> None:
    """Eligible buttons submit; ineligible ones are unavailable."""
    entry_id = mock_config_entry.entry_id
    aioclient_mock.post(
        TIDINESS_URL,
        params={"action": const.API_ACTION_CLAIM},
        json={"success": True, "data": {"points": 3}},
    )

    ashar_button = _entity_id(hass, "button", f"{entry_id}_prayer_ashar_claim")
    assert hass.states.get(ashar_button).state == "unavailable"

    await hass.services.async_call(
        "button",
        "press",
        {"entity_id": _entity_id(hass, "button", f"{entry_id}_tidiness_claim")},
        blocking=True,
    )
    await hass.async_block_till_done()

    assert any(
        call[0] == "post" and "kerapihan.php" in str(call[1])
        for call in aioclient_mock.mock_calls
    )
    cached = coordinator.cache.get(
        USER_ID, "daily:2025-03-15", const.CLAIM_TYPE_TIDINESS
    )
    assert cached["claimed"] is True


# =============================================================================
# LIFECYCLE
# =============================================================================


async def test_diagnostics_redacts_url(
    hass: HomeAssistant,
    coordinator: EventClaimsCoordinator,
    mock_config_entry: MockConfigEntry,
) -> None:
    """Diagnostics include decisions and cache without the backend URL."""
    diagnostics = await async_get_config_entry_diagnostics(hass, mock_config_entry)

    assert diagnostics["entry"]["data"][const.CONF_BASE_URL] == "**REDACTED**"
    assert const.DATA_DECISIONS in diagnostics["coordinator_data"]
    assert diagnostics["cache"]["entries"]


async def test_remove_entry_clears_cache(
    hass: HomeAssistant,
    coordinator: EventClaimsCoordinator,
    mock_config_entry: MockConfigEntry,
    hass_storage: dict[str, Any],
) -> None:
    """Removing the entry deletes its progress cache."""
    storage_key = f"{const.STORAGE_KEY}_{mock_config_entry.entry_id}"
    assert storage_key in hass_storage

    await hass.config_entries.async_remove(mock_config_entry.entry_id)
    await hass.async_block_till_done()

    assert storage_key not in hass_storage
    assert mock_config_entry.entry_id not in hass.data[const.DOMAIN]
