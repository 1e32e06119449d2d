"""Base manager class for Breathwork managers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.dispatcher import (
    async_dispatcher_connect,
    async_dispatcher_send,
)

from .. import const

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.core import HomeAssistant

    from ..coordinator import BreathworkDataCoordinator


def get_event_signal(entry_id: str, suffix: str) -> str:
    """Build an instance-scoped dispatcher signal name.

    Format: 'breathwork_{entry_id}_{suffix}', so two config entries (two
    accounts) never hear each other's events.
    """
    return f"{const.DOMAIN}_{entry_id}_{suffix}"


class BaseManager(ABC):
    """Base class for all Breathwork managers with scoped event support.

    Provides:
    - Instance-scoped event emitting (emit)
    - Instance-scoped event listening (listen)
    - Automatic cleanup via coordinator's config_entry.async_on_unload

    Subclasses must implement:
    - async_setup(): Subscribe to events, register timers
    """

    def __init__(
        self, hass: HomeAssistant, coordinator: BreathworkDataCoordinator
    ) -> None:
        """Initialize manager.

        Args:
            hass: Home Assistant instance
            coordinator: Parent coordinator managing this integration instance
        """
        self.hass = hass
        self.coordinator = coordinator
        self.entry_id = coordinator.config_entry.entry_id

    def emit(self, suffix: str, **payload: Any) -> None:
        """Emit instance-scoped event to other managers.

        Args:
            suffix: Signal suffix constant (e.g., const.SIGNAL_SUFFIX_PROGRAM_UPDATED)
            **payload: Event data passed to listeners as a single dict
        """
        signal = get_event_signal(self.entry_id, suffix)
        const.LOGGER.debug(
            "Emitting event '%s' for instance %s with payload keys: %s",
            suffix,
            self.entry_id,
            list(payload.keys()),
        )
        async_dispatcher_send(self.hass, signal, payload)

    def listen(self, suffix: str, callback: Callable[..., Any]) -> None:
        """Subscribe to instance-scoped event with automatic cleanup.

        The subscription is removed when the config entry is unloaded. Sync
        and async callbacks are both supported by the dispatcher.
        """
        signal = get_event_signal(self.entry_id, suffix)
        unsub = async_dispatcher_connect(self.hass, signal, callback)
        self.coordinator.config_entry.async_on_unload(unsub)
        const.LOGGER.debug(
            "Manager %s listening to event '%s' for instance %s",
            self.__class__.__name__,
            suffix,
            self.entry_id,
        )

    @abstractmethod
    async def async_setup(self) -> None:
        """Set up the manager (subscribe to events, register timers).

        Called once during coordinator initialization.
        """
