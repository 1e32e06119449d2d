"""Tests for managers/system_manager.py (periodic rollover check)."""

from collections.abc import AsyncGenerator
from datetime import timedelta
from typing import Any

from freezegun.api import FrozenDateTimeFactory
import pytest
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from pytest_homeassistant_custom_component.common import async_fire_time_changed

from custom_components.breathwork import const
from custom_components.breathwork.managers import SystemManager
from custom_components.breathwork.managers.base_manager import get_event_signal
from tests.helpers import utc

# pylint: disable=redefined-outer-name


class _Entry:
    """Config entry stand-in that records unload callbacks."""

    entry_id = "test_entry_id"

    def __init__(self) -> None:
        self.on_unload: list[Any] = []

    def async_on_unload(self, func: Any) -> None:
        self.on_unload.append(func)


class _Coordinator:
    """Minimal stand-in: SystemManager only needs config_entry."""

    def __init__(self) -> None:
        self.config_entry = _Entry()


@pytest.fixture
async def system_manager(
    hass: HomeAssistant,
    freezer: FrozenDateTimeFactory,
) -> AsyncGenerator[SystemManager]:
    """Start a SystemManager at 2024-01-01 23:58 UTC with a 60s interval."""
    freezer.move_to(utc(2024, 1, 1, 23, 58))
    coordinator = _Coordinator()
    manager = SystemManager(
        hass,
        coordinator,  # type: ignore[arg-type]
        check_interval=timedelta(seconds=60),
    )
    await manager.async_setup()
    yield manager
    for unsub in coordinator.config_entry.on_unload:
        unsub()


def _capture(hass: HomeAssistant) -> list[dict[str, Any]]:
    events: list[dict[str, Any]] = []

    @callback
    def _on_event(payload: dict[str, Any]) -> None:
        events.append(payload)

    async_dispatcher_connect(
        hass,
        get_event_signal("test_entry_id", const.SIGNAL_SUFFIX_MIDNIGHT_ROLLOVER),
        _on_event,
    )
    return events


async def test_no_signal_before_midnight(
    hass: HomeAssistant,
    system_manager: SystemManager,
    freezer: FrozenDateTimeFactory,
) -> None:
    """Ticks on the same calendar day emit nothing."""
    events = _capture(hass)

    freezer.tick(timedelta(seconds=61))
    async_fire_time_changed(hass)
    await hass.async_block_till_done()

    assert events == []
    assert system_manager.last_calendar_day.isoformat() == "2024-01-01"


async def test_signal_once_after_midnight(
    hass: HomeAssistant,
    system_manager: SystemManager,
    freezer: FrozenDateTimeFactory,
) -> None:
    """The first tick of a new day emits once; later ticks do not repeat it."""
    events = _capture(hass)

    for _ in range(4):
        freezer.tick(timedelta(seconds=61))
        async_fire_time_changed(hass)
        await hass.async_block_till_done()

    assert events == [{"calendar_day": "2024-01-02"}]
    assert system_manager.last_calendar_day.isoformat() == "2024-01-02"
