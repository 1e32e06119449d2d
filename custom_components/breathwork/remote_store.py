# File: remote_store.py
"""Remote store adapter for the Breathwork integration.

The authoritative copy of each per-user record lives in a REST document store:

    GET    {remote_url}/users/{user_id}/{kind}   → 200 JSON object | 404 absent
    PUT    {remote_url}/users/{user_id}/{kind}   → replace
    PATCH  {remote_url}/users/{user_id}/{kind}   → shallow merge
    DELETE {remote_url}/users/{user_id}/{kind}   → 2xx | 404 (already absent)

Failures are classified for the caller:
- connection errors, timeouts and 502/503/504 → NetworkUnavailable
- any other non-2xx → RemoteStoreError (carries the status)
- a body that is not a JSON object → MalformedRecord
"""

from __future__ import annotations

import asyncio
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

import aiohttp
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from . import const
from .exceptions import MalformedRecord, NetworkUnavailable, RemoteStoreError

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant


class BreathworkRemoteStore:
    """Async client for one user's records in the remote document store."""

    def __init__(
        self,
        hass: HomeAssistant,
        base_url: str,
        user_id: str,
        api_token: str | None = None,
        timeout: float = const.DEFAULT_REMOTE_TIMEOUT,
    ) -> None:
        """Initialize the adapter.

        Args:
            hass: Home Assistant instance (provides the shared client session)
            base_url: Root URL of the document store
            user_id: Account whose records are read and written
            api_token: Bearer token sent with every request
            timeout: Per-request timeout in seconds
        """
        self.hass = hass
        self.base_url = base_url.rstrip("/")
        self.user_id = user_id
        self._api_token = api_token
        self._timeout = timeout

    def record_url(self, kind: str) -> str:
        """Return the document URL for a record kind."""
        return f"{self.base_url}/users/{self.user_id}/{kind}"

    @property
    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_token:
            headers["Authorization"] = f"Bearer {self._api_token}"
        return headers

    # -------------------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------------------

    async def async_get(self, kind: str) -> dict[str, Any] | None:
        """Fetch a record, or None if the store has no such document."""
        return await self._async_request("GET", kind)

    async def async_set(
        self, kind: str, record: dict[str, Any], merge: bool = False
    ) -> None:
        """Write a record; merge=True updates only the given fields."""
        await self._async_request("PATCH" if merge else "PUT", kind, record)

    async def async_delete(self, kind: str) -> None:
        """Delete a record. Deleting an absent record is not an error."""
        await self._async_request("DELETE", kind)

    async def async_validate(self) -> None:
        """Check that the store is reachable and accepts the credentials.

        Used by the config flow; raises the same errors as async_get.
        """
        await self.async_get(const.RECORD_PROGRAM)

    # -------------------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------------------

    async def _async_request(
        self, method: str, kind: str, payload: dict[str, Any] | None = None
    ) -> dict[str, Any] | None:
        url = self.record_url(kind)
        session = async_get_clientsession(self.hass)
        const.LOGGER.debug("Remote %s %s", method, url)

        try:
            async with asyncio.timeout(self._timeout):
                async with session.request(
                    method, url, json=payload, headers=self._headers
                ) as response:
                    if response.status == HTTPStatus.NOT_FOUND:
                        return None
                    if response.status in const.REMOTE_UNAVAILABLE_STATUSES:
                        raise NetworkUnavailable(
                            f"Remote store unavailable (HTTP {response.status}) for {kind}",
                            error_type=const.ERROR_TYPE_SERVER,
                        )
                    if not 200 <= response.status < 300:
                        raise RemoteStoreError(
                            f"HTTP {response.status} on {method} {kind}",
                            status=response.status,
                        )
                    if method != "GET":
                        return None
                    try:
                        body = await response.json(content_type=None)
                    except ValueError as err:
                        raise MalformedRecord(f"Invalid JSON in {kind} record") from err
        except TimeoutError as err:
            raise NetworkUnavailable(
                f"Timed out after {self._timeout}s on {method} {kind}",
                error_type=const.ERROR_TYPE_TIMEOUT,
            ) from err
        except aiohttp.ClientError as err:
            raise NetworkUnavailable(
                f"Cannot reach remote store for {kind}: {err}",
                error_type=const.ERROR_TYPE_NETWORK,
            ) from err

        if body is None:
            return None
        if not isinstance(body, dict):
            raise MalformedRecord(
                f"{kind} record is not an object: {type(body).__name__}"
            )
        return body
