"""Shared fixtures for Event Claims tests."""

from typing import Any

import pytest
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.event_claims import const
from custom_components.event_claims.flow_helpers import build_options_data
from tests.helpers import BASE_URL, USER_ID

# pylint: disable=invalid-name
pytest_plugins = "pytest_homeassistant_custom_component"
# pylint: enable=invalid-name


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations: Any) -> Any:
    """Enable custom integrations in tests."""
    # pylint: disable=unused-argument
    yield


@pytest.fixture
def mock_config_entry() -> MockConfigEntry:
    """Return a config entry for user 7 with default options."""
    return MockConfigEntry(
        domain=const.DOMAIN,
        title="Budi",
        data={
            const.CONF_BASE_URL: BASE_URL,
            const.CONF_USER_ID: USER_ID,
            const.CONF_NAME: "Budi",
        },
        options=build_options_data({}),
        unique_id=f"{BASE_URL}#{USER_ID}",
    )
