"""Integration tests: setup, sensors, services, diagnostics and unload.

The remote store is replaced by FakeRemoteStore (seeded below with a standard
program two days in); everything else is the production code path, including
the Storage-backed local cache.
"""

from unittest.mock import patch

import pytest
import voluptuous as vol
from homeassistant.config_entries import ConfigEntryState
from homeassistant.const import STATE_UNKNOWN
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import entity_registry as er
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.breathwork import const
from custom_components.breathwork.diagnostics import async_get_config_entry_diagnostics
from custom_components.breathwork.exceptions import DayLockedError
from tests.helpers import FakeRemoteStore, make_program

# pylint: disable=redefined-outer-name


@pytest.fixture
def fake_remote() -> FakeRemoteStore:
    """Remote store holding a standard program with days 1 and 2 done."""
    return FakeRemoteStore(
        {const.RECORD_PROGRAM: make_program(completed_days=[1, 2], current_day=3)}
    )


def sensor_entity_id(hass: HomeAssistant, uid_suffix: str) -> str:
    """Look up a sensor's entity_id by its unique_id suffix."""
    entity_id = er.async_get(hass).async_get_entity_id(
        "sensor", const.DOMAIN, f"test_entry_id{uid_suffix}"
    )
    assert entity_id is not None
    return entity_id


async def call(hass: HomeAssistant, service: str, data: dict | None = None, **kwargs):
    """Call a Breathwork service and wait for it."""
    return await hass.services.async_call(
        const.DOMAIN, service, data or {}, blocking=True, **kwargs
    )


# =============================================================================
# Setup and sensors
# =============================================================================


async def test_setup_creates_sensors(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """Three sensors reflect the synced program, stats and quota."""
    assert init_integration.state is ConfigEntryState.LOADED

    progress = hass.states.get(
        sensor_entity_id(hass, const.SENSOR_UID_SUFFIX_PROGRAM_PROGRESS)
    )
    assert progress.state == "40.0"
    assert progress.attributes[const.ATTR_TRACK_KIND] == const.TRACK_STANDARD
    assert progress.attributes[const.ATTR_TRACK_LENGTH] == 5
    assert progress.attributes[const.ATTR_CURRENT_DAY] == 3
    assert progress.attributes[const.ATTR_DEGRADED] is False
    assert progress.attributes[const.ATTR_SOURCE] == const.SOURCE_REMOTE
    days = progress.attributes[const.ATTR_DAYS]
    assert [day[const.DATA_DAY_COMPLETED] for day in days] == [
        True,
        True,
        False,
        False,
        False,
    ]
    assert [day[const.DATA_DAY_LOCKED] for day in days] == [
        False,
        False,
        False,
        True,
        True,
    ]

    streak = hass.states.get(sensor_entity_id(hass, const.SENSOR_UID_SUFFIX_SESSION_STREAK))
    assert streak.state == "0"

    resets = hass.states.get(
        sensor_entity_id(hass, const.SENSOR_UID_SUFFIX_RESETS_REMAINING)
    )
    assert resets.state == "3"
    assert resets.attributes[const.ATTR_UNLIMITED] is False


async def test_setup_offline_is_degraded(
    hass: HomeAssistant, mock_config_entry: MockConfigEntry
) -> None:
    """An unreachable remote still loads, flagged as degraded."""
    offline_remote = FakeRemoteStore()
    offline_remote.offline = True
    mock_config_entry.add_to_hass(hass)

    with (
        patch(
            "custom_components.breathwork.BreathworkRemoteStore",
            return_value=offline_remote,
        ),
        patch.object(const, "DEFAULT_RETRY_BASE_DELAY", 0.0),
        patch.object(const, "DEFAULT_RETRY_MAX_DELAY", 0.0),
        patch.object(const, "DEFAULT_RETRY_JITTER", 0.0),
    ):
        assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
        await hass.async_block_till_done()

    progress = hass.states.get(
        sensor_entity_id(hass, const.SENSOR_UID_SUFFIX_PROGRAM_PROGRESS)
    )
    assert progress.state == STATE_UNKNOWN
    assert progress.attributes[const.ATTR_DEGRADED] is True
    assert progress.attributes[const.ATTR_ERROR_TYPE] == const.ERROR_TYPE_NETWORK

    assert await hass.config_entries.async_unload(mock_config_entry.entry_id)
    await hass.async_block_till_done()


# =============================================================================
# Services
# =============================================================================


async def test_complete_session_service(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
    fake_remote: FakeRemoteStore,
) -> None:
    """Completing day 3 returns the outcome and updates the progress sensor."""
    response = await call(
        hass,
        const.SERVICE_COMPLETE_SESSION,
        {const.FIELD_DAY: 3, const.FIELD_TECHNIQUE: "box", const.FIELD_DURATION_MINUTES: 8},
        return_response=True,
    )

    assert response == {"key": 3, "is_new": True, "queued": False}
    assert fake_remote.records[const.RECORD_PROGRAM][const.DATA_PROGRAM_COMPLETED_DAYS] == [
        1,
        2,
        3,
    ]
    progress = hass.states.get(
        sensor_entity_id(hass, const.SENSOR_UID_SUFFIX_PROGRAM_PROGRESS)
    )
    assert progress.state == "60.0"
    streak = hass.states.get(sensor_entity_id(hass, const.SENSOR_UID_SUFFIX_SESSION_STREAK))
    assert streak.state == "1"


async def test_complete_locked_day_raises(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """Day 5 is locked until days 3 and 4 are done."""
    with pytest.raises(DayLockedError):
        await call(hass, const.SERVICE_COMPLETE_SESSION, {const.FIELD_DAY: 5})


async def test_complete_invalid_day_rejected(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """The schema rejects day 0."""
    with pytest.raises(vol.Invalid):
        await call(hass, const.SERVICE_COMPLETE_SESSION, {const.FIELD_DAY: 0})


async def test_unknown_entry_rejected(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """A config_entry_id that is not loaded is an error."""
    with pytest.raises(HomeAssistantError):
        await call(
            hass,
            const.SERVICE_REFRESH,
            {const.FIELD_CONFIG_ENTRY_ID: "not_an_entry"},
        )


async def test_record_practice_service(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
    fake_remote: FakeRemoteStore,
) -> None:
    """Free practice counts towards stats only."""
    await call(
        hass,
        const.SERVICE_RECORD_PRACTICE,
        {const.FIELD_TECHNIQUE: "478", const.FIELD_DURATION_MINUTES: 4},
    )

    assert fake_remote.records[const.RECORD_STATS][const.DATA_STATS_TOTAL_SESSIONS] == 1
    assert fake_remote.records[const.RECORD_PROGRAM][const.DATA_PROGRAM_COMPLETED_DAYS] == [
        1,
        2,
    ]
    streak = hass.states.get(sensor_entity_id(hass, const.SENSOR_UID_SUFFIX_SESSION_STREAK))
    assert streak.state == "1"
    assert streak.attributes[const.ATTR_FAVORITE_TECHNIQUES] == ["478"]


async def test_reset_program_service(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
    fake_remote: FakeRemoteStore,
) -> None:
    """A reset deletes the program and counts against the monthly quota."""
    response = await call(hass, const.SERVICE_RESET_PROGRAM, return_response=True)

    assert response == {"remaining_resets": 2}
    assert const.RECORD_PROGRAM not in fake_remote.records
    progress = hass.states.get(
        sensor_entity_id(hass, const.SENSOR_UID_SUFFIX_PROGRAM_PROGRESS)
    )
    assert progress.state == STATE_UNKNOWN
    resets = hass.states.get(
        sensor_entity_id(hass, const.SENSOR_UID_SUFFIX_RESETS_REMAINING)
    )
    assert resets.state == "2"


async def test_create_program_service(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
    fake_remote: FakeRemoteStore,
) -> None:
    """Creating an extended program replaces the current one."""
    await call(
        hass,
        const.SERVICE_CREATE_PROGRAM,
        {
            const.FIELD_TRACK_KIND: const.TRACK_EXTENDED,
            const.FIELD_DAYS: [{"day": 1, "session": "morning", "title": "Warm up"}],
        },
    )

    program = fake_remote.records[const.RECORD_PROGRAM]
    assert program[const.DATA_PROGRAM_TRACK_KIND] == const.TRACK_EXTENDED
    assert program[const.DATA_PROGRAM_COMPLETED_DAYS] == []
    progress = hass.states.get(
        sensor_entity_id(hass, const.SENSOR_UID_SUFFIX_PROGRAM_PROGRESS)
    )
    assert progress.state == "0.0"
    assert progress.attributes[const.ATTR_TRACK_LENGTH] == 21
    assert progress.attributes[const.ATTR_DAYS][0][const.DATA_DAY_LOCKED] is False


async def test_refresh_service(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """The refresh service syncs with the focus trigger."""
    await call(hass, const.SERVICE_REFRESH)
    await hass.async_block_till_done()

    coordinator = hass.data[const.DOMAIN][init_integration.entry_id][const.COORDINATOR]
    assert coordinator.data.trigger == const.TRIGGER_FOCUS


# =============================================================================
# Diagnostics and unload
# =============================================================================


async def test_diagnostics(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """Diagnostics redact the token and include the cache and last sync."""
    diagnostics = await async_get_config_entry_diagnostics(hass, init_integration)

    assert diagnostics["entry"]["data"][const.CONF_API_TOKEN] == "**REDACTED**"
    assert diagnostics["entry"]["data"][const.CONF_USER_ID] == "user-1"
    assert const.RECORD_PROGRAM in diagnostics["cache"]
    assert diagnostics["last_sync"]["trigger"] == const.TRIGGER_REFRESH
    assert diagnostics["last_sync"]["degraded"] is False
    assert "program" not in diagnostics["last_sync"]
    assert isinstance(diagnostics["last_sync"]["synced_at"], str)
    assert diagnostics["retry_scheduled"] is False


async def test_unload_removes_services(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """Unloading the last entry removes the services."""
    assert hass.services.has_service(const.DOMAIN, const.SERVICE_COMPLETE_SESSION)

    assert await hass.config_entries.async_unload(init_integration.entry_id)
    await hass.async_block_till_done()

    assert init_integration.state is ConfigEntryState.NOT_LOADED
    assert not hass.services.has_service(const.DOMAIN, const.SERVICE_COMPLETE_SESSION)
    assert const.DOMAIN not in hass.data or not hass.data[const.DOMAIN]
