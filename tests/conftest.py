"""Shared fixtures for Breathwork tests."""

from collections.abc import AsyncGenerator, Generator
from typing import Any
from unittest.mock import patch
from zoneinfo import ZoneInfo

import pytest
from homeassistant.config_entries import ConfigEntryState
from homeassistant.core import HomeAssistant
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.breathwork import const
from custom_components.breathwork.coordinator import BreathworkDataCoordinator
from custom_components.breathwork.utils import dt_utils
from custom_components.breathwork.utils.retry_utils import RetryPolicy
from tests.helpers import FakeRemoteStore, InMemoryLocalCache

# pylint: disable=invalid-name
pytest_plugins = "pytest_homeassistant_custom_component"
# pylint: enable=invalid-name
# pylint: disable=redefined-outer-name


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations: Any) -> Any:
    """Enable custom integrations in tests."""
    # pylint: disable=unused-argument
    yield


@pytest.fixture(autouse=True)
def reset_default_timezone() -> Generator[None]:
    """Keep calendar-day arithmetic in UTC unless a test sets otherwise."""
    dt_utils.set_default_timezone(ZoneInfo("UTC"))
    yield
    dt_utils.set_default_timezone(ZoneInfo("UTC"))


@pytest.fixture
def mock_config_entry() -> MockConfigEntry:
    """Return a mock config entry for a non-premium account."""
    return MockConfigEntry(
        domain=const.DOMAIN,
        title="Breathwork (user-1)",
        data={
            const.CONF_USER_ID: "user-1",
            const.CONF_REMOTE_URL: "https://remote.example.com/api",
            const.CONF_API_TOKEN: "secret-token",
            const.CONF_PREMIUM_TIER: False,
        },
        options={},
        entry_id="test_entry_id",
        unique_id="user-1",
    )


@pytest.fixture
def fake_remote() -> FakeRemoteStore:
    """Return an empty, online fake remote store."""
    return FakeRemoteStore()


@pytest.fixture
def fake_cache() -> InMemoryLocalCache:
    """Return an empty in-memory local cache."""
    return InMemoryLocalCache()


@pytest.fixture
async def coordinator(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    fake_remote: FakeRemoteStore,
    fake_cache: InMemoryLocalCache,
) -> AsyncGenerator[BreathworkDataCoordinator]:
    """Return a coordinator wired to fakes with a zero-delay retry policy.

    Only the sync manager is set up (dispatcher subscription); the rollover
    timer is exercised separately in test_system_manager.
    """
    mock_config_entry.add_to_hass(hass)
    coord = BreathworkDataCoordinator(
        hass,
        mock_config_entry,
        fake_remote,  # type: ignore[arg-type]
        fake_cache,  # type: ignore[arg-type]
        retry_policy=RetryPolicy.no_delay(max_attempts=3),
    )
    await coord.sync_manager.async_setup()
    yield coord
    await coord.sync_manager.async_shutdown()
    await coord.async_shutdown()


@pytest.fixture
async def init_integration(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    fake_remote: FakeRemoteStore,
) -> AsyncGenerator[MockConfigEntry]:
    """Set up the Breathwork integration with the fake remote store."""
    mock_config_entry.add_to_hass(hass)

    with patch(
        "custom_components.breathwork.BreathworkRemoteStore",
        return_value=fake_remote,
    ):
        assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
        await hass.async_block_till_done()

    yield mock_config_entry

    if mock_config_entry.state is ConfigEntryState.LOADED:
        await hass.config_entries.async_unload(mock_config_entry.entry_id)
        await hass.async_block_till_done()
