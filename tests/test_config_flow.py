"""Tests for the Breathwork config and options flows."""

from unittest.mock import AsyncMock, patch

import pytest
from homeassistant import config_entries
from homeassistant.core import HomeAssistant
from homeassistant.data_entry_flow import FlowResultType
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.breathwork import const
from custom_components.breathwork.exceptions import (
    MalformedRecord,
    NetworkUnavailable,
    RemoteStoreError,
)

VALIDATE = (
    "custom_components.breathwork.config_flow.BreathworkRemoteStore.async_validate"
)

USER_INPUT = {
    const.CONF_USER_ID: " user-1 ",
    const.CONF_REMOTE_URL: "https://remote.example.com/api",
    const.CONF_API_TOKEN: "secret-token",
    const.CONF_PREMIUM_TIER: False,
}


@pytest.fixture
def skip_setup():
    """Do not actually set up the entry created by the flow."""
    with patch(
        "custom_components.breathwork.async_setup_entry", return_value=True
    ) as mock_setup:
        yield mock_setup


async def test_user_step_creates_entry(hass: HomeAssistant, skip_setup) -> None:
    """A reachable store creates an entry keyed by the trimmed user id."""
    result = await hass.config_entries.flow.async_init(
        const.DOMAIN, context={"source": config_entries.SOURCE_USER}
    )
    assert result["type"] is FlowResultType.FORM
    assert result["step_id"] == const.CONFIG_FLOW_STEP_USER

    with patch(VALIDATE, new=AsyncMock(return_value=None)):
        result = await hass.config_entries.flow.async_configure(
            result["flow_id"], USER_INPUT
        )

    assert result["type"] is FlowResultType.CREATE_ENTRY
    assert result["title"] == "Breathwork (user-1)"
    assert result["data"][const.CONF_USER_ID] == "user-1"
    assert result["result"].unique_id == "user-1"


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (NetworkUnavailable("down"), const.ERROR_CANNOT_CONNECT),
        (RemoteStoreError("nope", status=401), const.ERROR_INVALID_AUTH),
        (RemoteStoreError("nope", status=403), const.ERROR_INVALID_AUTH),
        (RemoteStoreError("teapot", status=418), const.ERROR_UNKNOWN),
    ],
)
async def test_user_step_errors(
    hass: HomeAssistant, error: Exception, expected: str
) -> None:
    """Connection and auth failures are shown on the form."""
    result = await hass.config_entries.flow.async_init(
        const.DOMAIN, context={"source": config_entries.SOURCE_USER}
    )

    with patch(VALIDATE, new=AsyncMock(side_effect=error)):
        result = await hass.config_entries.flow.async_configure(
            result["flow_id"], USER_INPUT
        )

    assert result["type"] is FlowResultType.FORM
    assert result["errors"] == {"base": expected}


async def test_malformed_program_does_not_block_setup(
    hass: HomeAssistant, skip_setup
) -> None:
    """A reachable store with an odd program record still creates the entry."""
    result = await hass.config_entries.flow.async_init(
        const.DOMAIN, context={"source": config_entries.SOURCE_USER}
    )

    with patch(VALIDATE, new=AsyncMock(side_effect=MalformedRecord("odd"))):
        result = await hass.config_entries.flow.async_configure(
            result["flow_id"], USER_INPUT
        )

    assert result["type"] is FlowResultType.CREATE_ENTRY


async def test_duplicate_account_aborts(
    hass: HomeAssistant, mock_config_entry: MockConfigEntry
) -> None:
    """The same user id cannot be configured twice."""
    mock_config_entry.add_to_hass(hass)
    result = await hass.config_entries.flow.async_init(
        const.DOMAIN, context={"source": config_entries.SOURCE_USER}
    )

    result = await hass.config_entries.flow.async_configure(result["flow_id"], USER_INPUT)

    assert result["type"] is FlowResultType.ABORT
    assert result["reason"] == "already_configured"


async def test_options_flow(
    hass: HomeAssistant, mock_config_entry: MockConfigEntry
) -> None:
    """Options store tier and intervals."""
    mock_config_entry.add_to_hass(hass)

    result = await hass.config_entries.options.async_init(mock_config_entry.entry_id)
    assert result["type"] is FlowResultType.FORM
    assert result["step_id"] == const.OPTIONS_FLOW_STEP_INIT

    result = await hass.config_entries.options.async_configure(
        result["flow_id"],
        {
            const.CONF_PREMIUM_TIER: True,
            const.CONF_UPDATE_INTERVAL: 30,
            const.CONF_ROLLOVER_CHECK_INTERVAL: 120,
        },
    )

    assert result["type"] is FlowResultType.CREATE_ENTRY
    assert mock_config_entry.options == {
        const.CONF_PREMIUM_TIER: True,
        const.CONF_UPDATE_INTERVAL: 30,
        const.CONF_ROLLOVER_CHECK_INTERVAL: 120,
    }
