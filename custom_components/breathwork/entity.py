"""Base entity classes for Breathwork integration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.helpers.device_registry import DeviceEntryType, DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from . import const
from .coordinator import BreathworkDataCoordinator

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry


def create_account_device_info(config_entry: ConfigEntry) -> DeviceInfo:
    """Create device info grouping all sensors of one Breathwork account."""
    return DeviceInfo(
        identifiers={(const.DOMAIN, config_entry.entry_id)},
        name=f"{const.BREATHWORK_TITLE} ({config_entry.data[const.CONF_USER_ID]})",
        manufacturer=const.BREATHWORK_TITLE,
        model="Breathing Program",
        entry_type=DeviceEntryType.SERVICE,
    )


class BreathworkCoordinatorEntity(CoordinatorEntity[BreathworkDataCoordinator]):
    """Base entity class for Breathwork sensors with typed coordinator access."""

    _attr_has_entity_name = True

    def __init__(self, coordinator: BreathworkDataCoordinator, uid_suffix: str) -> None:
        """Initialize the entity.

        Args:
            coordinator: Coordinator of the account this entity belongs to
            uid_suffix: const.SENSOR_UID_SUFFIX_* appended to the entry id
        """
        super().__init__(coordinator)
        entry = coordinator.config_entry
        self._attr_unique_id = f"{entry.entry_id}{uid_suffix}"
        self._attr_device_info = create_account_device_info(entry)

    @property
    def coordinator(self) -> BreathworkDataCoordinator:
        """Return typed coordinator."""
        return object.__getattribute__(self, "_coordinator")

    @coordinator.setter
    def coordinator(self, value: BreathworkDataCoordinator) -> None:
        """Set coordinator with proper typing."""
        object.__setattr__(self, "_coordinator", value)
