# File: managers/sync_manager.py
"""Sync Manager for the Breathwork integration.

Keeps the local cache converged with the authoritative remote store and runs
the date-rollover check. Every trigger (coordinator refresh, midnight
rollover, retry timer) runs the same strictly sequential protocol:

1. Fetch the remote program (retried per RetryPolicy). If unreachable, serve
   the cached snapshot flagged as degraded and stop.
2. Remote wins: overwrite the cached program with the remote one (or drop it
   if the remote has none).
3. Replay completions queued while offline.
4. If a rollover is due, write the advanced program remote-first, then mirror
   it locally. A failed write is logged and retried; local state never
   advances without the remote write.

Write phases are serialized with an asyncio.Lock. Repeating a trigger is safe
because both the ledger and the rollover check are idempotent.

Signals Consumed:
- SIGNAL_SUFFIX_MIDNIGHT_ROLLOVER: request a coordinator sync

Signals Emitted:
- SIGNAL_SUFFIX_PROGRAM_UPDATED: program written (rollover, completion, create)
- SIGNAL_SUFFIX_SESSION_COMPLETED: a new session completion was recorded
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.event import async_call_later
from homeassistant.util import dt as dt_util

from .. import const
from ..engines import CompletionEngine, LockEngine
from ..exceptions import (
    BreathworkError,
    DayLockedError,
    MalformedRecord,
    NetworkUnavailable,
    ProgramNotFound,
    is_retryable,
)
from ..utils import dt_utils
from ..utils.retry_utils import async_call_with_retry
from .base_manager import BaseManager

if TYPE_CHECKING:
    from datetime import datetime

    from homeassistant.core import CALLBACK_TYPE, HomeAssistant

    from ..coordinator import BreathworkDataCoordinator
    from ..type_defs import CompletionKey, PendingCompletion


@dataclass(frozen=True, slots=True)
class SyncResult:
    """Outcome of one reconciliation.

    Attributes:
        program: Program snapshot callers should display (None if no program)
        degraded: True when served from the cache because the remote failed
        source: const.SOURCE_REMOTE or const.SOURCE_CACHE
        trigger: What started the reconciliation
        synced_at: When the reconciliation ran
        advanced_to: Day current_day was advanced to, if a rollover was written
        rollover_pending: A rollover is due but its remote write failed
        replayed: Number of queued completions delivered
        error_type: Failure classification when degraded
    """

    program: dict[str, Any] | None
    degraded: bool
    source: str
    trigger: str = const.TRIGGER_REFRESH
    synced_at: datetime | None = None
    advanced_to: int | None = None
    rollover_pending: bool = False
    replayed: int = 0
    error_type: str | None = None


@dataclass(frozen=True, slots=True)
class CompletionResult:
    """Outcome of a session completion request.

    Attributes:
        key: Completion key (day number or "{day}-{session}")
        program: Program snapshot after the request
        is_new: False when the key was already completed (no side effects)
        queued: True when the remote was unreachable and the event is in the
            outbox waiting for the next successful sync
        stats: Stats snapshot after the session, when it could be written
    """

    key: CompletionKey
    program: dict[str, Any] | None
    is_new: bool
    queued: bool = False
    stats: dict[str, Any] | None = field(default=None)


class SyncManager(BaseManager):
    """Reconciles the program record and writes completions for one account."""

    def __init__(
        self, hass: HomeAssistant, coordinator: BreathworkDataCoordinator
    ) -> None:
        """Initialize sync manager."""
        super().__init__(hass, coordinator)
        self._write_lock = asyncio.Lock()
        self._retry_unsub: CALLBACK_TYPE | None = None
        self._retry_attempt = 0
        self._last_result: SyncResult | None = None

    async def async_setup(self) -> None:
        """Subscribe to the rollover signal."""
        self.listen(const.SIGNAL_SUFFIX_MIDNIGHT_ROLLOVER, self._on_midnight_rollover)
        self.coordinator.config_entry.async_on_unload(self.async_shutdown)
        const.LOGGER.debug("SyncManager initialized for entry %s", self.entry_id)

    # -------------------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------------------

    @property
    def write_lock(self) -> asyncio.Lock:
        """Return the lock serializing writes to the user's records."""
        return self._write_lock

    @property
    def last_result(self) -> SyncResult | None:
        """Return the most recent reconciliation outcome."""
        return self._last_result

    @property
    def retry_scheduled(self) -> bool:
        """Return True while a rollover retry timer is pending."""
        return self._retry_unsub is not None

    @property
    def pending_completions(self) -> list[PendingCompletion]:
        """Return completions waiting for a remote write."""
        return self.coordinator.local_cache.get(const.CACHE_PENDING_COMPLETIONS) or []

    # -------------------------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------------------------

    async def async_reconcile(
        self, trigger: str = const.TRIGGER_REFRESH, now: datetime | None = None
    ) -> SyncResult:
        """Run one fetch → merge → replay → rollover pass.

        Raises:
            RemoteStoreError: Remote store rejected the request (not degraded)
        """
        now = now or dt_util.utcnow()
        local_cache = self.coordinator.local_cache
        const.LOGGER.debug("Reconciling program (trigger=%s)", trigger)

        # Fetch under the lock so the writes below never act on a stale read
        async with self._write_lock:
            try:
                remote_program = await self._async_fetch_program()
            except NetworkUnavailable as err:
                const.LOGGER.warning(
                    "Remote store unavailable (%s), using cached program: %s",
                    err.error_type,
                    err,
                )
                return self._degraded_result(trigger, now, err.error_type)
            except MalformedRecord as err:
                const.LOGGER.error(
                    "Remote program is malformed, using cached program: %s", err
                )
                return self._degraded_result(trigger, now, const.ERROR_TYPE_MALFORMED)

            if remote_program is None:
                local_cache.remove(const.RECORD_PROGRAM)
            else:
                local_cache.set(const.RECORD_PROGRAM, remote_program)
            program = remote_program

            program, replayed = await self._async_replay_outbox(program)

            advanced_to: int | None = None
            rollover_pending = False
            next_day = LockEngine.pending_rollover(program, now)
            if next_day is not None and program is not None:
                advanced = CompletionEngine.advance(program, next_day, now)
                try:
                    await self.coordinator.remote_store.async_set(
                        const.RECORD_PROGRAM, advanced
                    )
                except BreathworkError as err:
                    const.LOGGER.warning(
                        "Rollover to day %s not written, will retry: %s", next_day, err
                    )
                    rollover_pending = True
                    if is_retryable(err):
                        self._schedule_retry()
                else:
                    local_cache.set(const.RECORD_PROGRAM, advanced)
                    program = advanced
                    advanced_to = next_day
                    self._retry_attempt = 0
                    const.LOGGER.info("Program advanced to day %s", next_day)
                    self.emit(
                        const.SIGNAL_SUFFIX_PROGRAM_UPDATED, current_day=next_day
                    )

        result = SyncResult(
            program=program,
            degraded=False,
            source=const.SOURCE_REMOTE,
            trigger=trigger,
            synced_at=now,
            advanced_to=advanced_to,
            rollover_pending=rollover_pending,
            replayed=replayed,
        )
        self._last_result = result
        return result

    def _degraded_result(self, trigger: str, now: datetime, error_type: str) -> SyncResult:
        cached = self.coordinator.local_cache.get(const.RECORD_PROGRAM)
        result = SyncResult(
            program=cached,
            degraded=True,
            source=const.SOURCE_CACHE,
            trigger=trigger,
            synced_at=now,
            rollover_pending=LockEngine.pending_rollover(cached, now) is not None,
            error_type=error_type,
        )
        self._last_result = result
        return result

    async def _async_fetch_program(self) -> dict[str, Any] | None:
        remote_store = self.coordinator.remote_store
        record = await async_call_with_retry(
            lambda: remote_store.async_get(const.RECORD_PROGRAM),
            self.coordinator.retry_policy,
            is_retryable,
        )
        if record is None:
            return None
        return CompletionEngine.validate_program(record)

    # -------------------------------------------------------------------------------------
    # Completions
    # -------------------------------------------------------------------------------------

    async def async_complete_session(
        self,
        day: int,
        session: str | None = None,
        technique: str = const.DEFAULT_TECHNIQUE,
        duration_minutes: float = 0,
        now: datetime | None = None,
    ) -> CompletionResult:
        """Record a completed day (standard) or session (extended).

        Remote-first: the program is written to the remote store before the
        cache. Stats are updated only for a new completion. When the remote is
        unreachable the event is queued and the cached program is left as is.

        Raises:
            ProgramNotFound: No program exists (remote or cached)
            OutOfRangeError: Invalid day/session for the track
            DayLockedError: The day or session is still locked
            RemoteStoreError: Remote store rejected the write
        """
        now = now or dt_util.utcnow()
        local_cache = self.coordinator.local_cache

        async with self._write_lock:
            try:
                program = await self._async_fetch_program()
            except NetworkUnavailable as err:
                const.LOGGER.warning("Remote store unavailable, queueing completion: %s", err)
                cached = local_cache.get(const.RECORD_PROGRAM)
                if cached is None:
                    raise ProgramNotFound("No cached program to complete a session in") from err
                key = self._checked_key(cached, day, session, now)
                already_queued = any(
                    entry.get(const.DATA_PENDING_KEY) == key
                    for entry in self.pending_completions
                )
                is_new = not CompletionEngine.is_completed(cached, key) and not already_queued
                if is_new:
                    self._enqueue(key, technique, duration_minutes, now)
                return CompletionResult(
                    key=key, program=cached, is_new=is_new, queued=is_new or already_queued
                )

            if program is None:
                local_cache.remove(const.RECORD_PROGRAM)
                raise ProgramNotFound("No active program for this account")
            local_cache.set(const.RECORD_PROGRAM, program)

            key = self._checked_key(program, day, session, now)
            updated = CompletionEngine.complete(program, key, now)
            if updated is program:
                const.LOGGER.debug("Completion %s already recorded", key)
                return CompletionResult(key=key, program=program, is_new=False)

            try:
                await self.coordinator.remote_store.async_set(const.RECORD_PROGRAM, updated)
            except NetworkUnavailable as err:
                const.LOGGER.warning("Program write failed, queueing completion %s: %s", key, err)
                self._enqueue(key, technique, duration_minutes, now)
                return CompletionResult(key=key, program=program, is_new=True, queued=True)
            local_cache.set(const.RECORD_PROGRAM, updated)

            stats = await self._async_apply_stats(technique, duration_minutes, now)

        const.LOGGER.info("Recorded completion %s", key)
        self.emit(const.SIGNAL_SUFFIX_SESSION_COMPLETED, key=key, technique=technique)
        self.emit(
            const.SIGNAL_SUFFIX_PROGRAM_UPDATED,
            current_day=updated.get(const.DATA_PROGRAM_CURRENT_DAY),
        )
        return CompletionResult(key=key, program=updated, is_new=True, stats=stats)

    async def async_record_practice(
        self,
        technique: str,
        duration_minutes: float = 0,
        now: datetime | None = None,
    ) -> dict[str, Any] | None:
        """Record a free practice session (stats only, no program change).

        Returns the new stats, or None if the session was queued offline.
        """
        now = now or dt_util.utcnow()
        async with self._write_lock:
            return await self._async_apply_stats(technique, duration_minutes, now)

    async def _async_apply_stats(
        self, technique: str, duration_minutes: float, now: datetime
    ) -> dict[str, Any] | None:
        try:
            return await self.coordinator.statistics_manager.async_apply_session(
                technique, duration_minutes, now
            )
        except BreathworkError as err:
            const.LOGGER.warning("Stats write failed, queueing session: %s", err)
            self._enqueue(None, technique, duration_minutes, now)
            return None

    def _checked_key(
        self, program: dict[str, Any], day: int, session: str | None, now: datetime
    ) -> CompletionKey:
        key = CompletionEngine.build_key(program, day, session)
        CompletionEngine.validate_key(program, key)
        if CompletionEngine.is_completed(program, key):
            return key
        if isinstance(key, str):
            _day, key_session = CompletionEngine.parse_session_key(key)
            locked = LockEngine.is_session_locked(program, day, key_session, now)
        else:
            locked = LockEngine.is_locked(program, day, now)
        if locked:
            raise DayLockedError(f"Completion {key} is locked")
        return key

    # -------------------------------------------------------------------------------------
    # Program lifecycle
    # -------------------------------------------------------------------------------------

    async def async_create_program(
        self,
        track_kind: str,
        days: list[dict[str, Any]],
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Start a new program, replacing any existing one.

        Queued completions of the previous program keep their stats but no
        longer apply to a program.

        Raises:
            MalformedRecord: Unknown track kind
            NetworkUnavailable / RemoteStoreError: Remote write failed
        """
        now = now or dt_util.utcnow()
        program: dict[str, Any] = dict(CompletionEngine.create_program(track_kind, days, now))

        async with self._write_lock:
            await self.coordinator.remote_store.async_set(const.RECORD_PROGRAM, program)
            self.coordinator.local_cache.set(const.RECORD_PROGRAM, program)
            self.detach_queued_completions()

        const.LOGGER.info("Created %s program with %s days", track_kind, len(days))
        self.emit(const.SIGNAL_SUFFIX_PROGRAM_UPDATED, current_day=const.FIRST_DAY)
        return program

    # -------------------------------------------------------------------------------------
    # Outbox
    # -------------------------------------------------------------------------------------

    def _enqueue(
        self,
        key: CompletionKey | None,
        technique: str,
        duration_minutes: float,
        completed_at: datetime,
    ) -> None:
        pending = self.pending_completions
        pending.append(
            {
                const.DATA_PENDING_KEY: key,
                const.DATA_PENDING_TECHNIQUE: technique,
                const.DATA_PENDING_DURATION: duration_minutes,
                const.DATA_PENDING_COMPLETED_AT: dt_utils.dt_to_iso(completed_at),
            }
        )
        self.coordinator.local_cache.set(const.CACHE_PENDING_COMPLETIONS, pending)

    def detach_queued_completions(self) -> None:
        """Turn queued program completions into stats-only entries.

        Used when the program they belonged to is replaced or reset: the
        sessions still happened, so they still count towards stats.
        """
        pending = self.pending_completions
        if not pending:
            return
        for entry in pending:
            entry[const.DATA_PENDING_KEY] = None
        self.coordinator.local_cache.set(const.CACHE_PENDING_COMPLETIONS, pending)

    async def _async_replay_outbox(
        self, program: dict[str, Any] | None
    ) -> tuple[dict[str, Any] | None, int]:
        """Deliver queued completions in order; stop at the first failed write.

        Caller holds the write lock.
        """
        pending = self.pending_completions
        if not pending:
            return program, 0

        local_cache = self.coordinator.local_cache
        remaining: list[PendingCompletion] = list(pending)
        replayed = 0

        while remaining:
            entry = remaining[0]
            key = entry.get(const.DATA_PENDING_KEY)
            completed_at = (
                dt_utils.dt_parse(entry.get(const.DATA_PENDING_COMPLETED_AT))
                or dt_util.utcnow()
            )

            if key is not None and program is not None:
                try:
                    updated = CompletionEngine.complete(program, key, completed_at)
                except BreathworkError as err:
                    const.LOGGER.warning("Dropping queued completion %s: %s", key, err)
                    remaining.pop(0)
                    continue
                if updated is program:
                    # Already on the remote (earlier partial delivery)
                    remaining.pop(0)
                    continue
                try:
                    await self.coordinator.remote_store.async_set(
                        const.RECORD_PROGRAM, updated
                    )
                except BreathworkError as err:
                    const.LOGGER.warning("Outbox replay paused: %s", err)
                    break
                local_cache.set(const.RECORD_PROGRAM, updated)
                program = updated
                # Program delivered; the stats part is still owed
                entry = {**entry, const.DATA_PENDING_KEY: None}
                remaining[0] = entry

            try:
                await self.coordinator.statistics_manager.async_apply_session(
                    entry.get(const.DATA_PENDING_TECHNIQUE) or const.DEFAULT_TECHNIQUE,
                    entry.get(const.DATA_PENDING_DURATION) or 0,
                    completed_at,
                )
            except BreathworkError as err:
                const.LOGGER.warning("Outbox replay paused: %s", err)
                break
            remaining.pop(0)
            replayed += 1

        if remaining:
            local_cache.set(const.CACHE_PENDING_COMPLETIONS, remaining)
        else:
            local_cache.remove(const.CACHE_PENDING_COMPLETIONS)
        if replayed:
            const.LOGGER.info("Delivered %s queued completion(s)", replayed)
        return program, replayed

    # -------------------------------------------------------------------------------------
    # Triggers / retry
    # -------------------------------------------------------------------------------------

    async def _on_midnight_rollover(self, payload: dict[str, Any]) -> None:
        """Calendar day changed: sync so a due rollover is written."""
        const.LOGGER.debug("Rollover check for %s", payload.get("calendar_day"))
        await self.coordinator.async_request_sync(const.TRIGGER_ROLLOVER)

    def _schedule_retry(self) -> None:
        if self._retry_unsub is not None:
            return
        policy = self.coordinator.retry_policy
        if self._retry_attempt >= policy.max_attempts:
            const.LOGGER.debug("Retry budget spent, waiting for the next trigger")
            return
        delay = policy.delay_for(self._retry_attempt)
        self._retry_attempt += 1
        self._retry_unsub = async_call_later(self.hass, delay, self._async_on_retry)

    async def _async_on_retry(self, _now: datetime) -> None:
        self._retry_unsub = None
        await self.coordinator.async_request_sync(const.TRIGGER_RETRY)

    async def async_shutdown(self) -> None:
        """Cancel a pending retry; in-flight writes are left to finish."""
        if self._retry_unsub is not None:
            self._retry_unsub()
            self._retry_unsub = None
