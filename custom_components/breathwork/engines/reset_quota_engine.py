"""Reset Quota Engine - Pure monthly reset allowance policy.

Non-premium accounts may reset their program MAX_MONTHLY_RESETS times per
calendar month. The counter is keyed by "YYYY-MM" and starts over whenever
the stored month differs from the current one. Premium accounts are never
limited and their quota record is neither read nor written.

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
ResetManager executes allowed resets.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils import dt_utils

if TYPE_CHECKING:
    from datetime import datetime
    from zoneinfo import ZoneInfo

    from ..type_defs import ResetQuotaRecord


@dataclass(frozen=True, slots=True)
class ResetDecision:
    """Outcome of a reset attempt.

    Attributes:
        allowed: Whether the reset may be executed
        remaining_resets: Resets left this month after this one
            (UNLIMITED_RESETS for premium, 0 when denied)
        quota: Quota record to persist, or None when nothing changes
    """

    allowed: bool
    remaining_resets: int
    quota: ResetQuotaRecord | None


class ResetQuotaEngine:
    """Pure logic engine for the monthly reset allowance."""

    @staticmethod
    def resets_used(
        quota: dict[str, Any] | None, now: datetime, tz: ZoneInfo | None = None
    ) -> int:
        """Return resets already used in now's month (0 if quota is stale/absent)."""
        if not quota or quota.get(const.DATA_QUOTA_MONTH_KEY) != dt_utils.month_key(now, tz):
            return 0
        count = quota.get(const.DATA_QUOTA_RESET_COUNT)
        return count if isinstance(count, int) and count > 0 else 0

    @staticmethod
    def remaining_resets(
        quota: dict[str, Any] | None,
        now: datetime,
        is_premium: bool,
        tz: ZoneInfo | None = None,
    ) -> int:
        """Return resets still available this month (read-only)."""
        if is_premium:
            return const.UNLIMITED_RESETS
        used = ResetQuotaEngine.resets_used(quota, now, tz)
        return max(const.MAX_MONTHLY_RESETS - used, 0)

    @staticmethod
    def try_reset(
        quota: dict[str, Any] | None,
        now: datetime,
        is_premium: bool,
        tz: ZoneInfo | None = None,
    ) -> ResetDecision:
        """Decide a reset attempt and compute the quota to persist if allowed.

        Example:
            quota {"reset_count": 3, "month_key": "2024-05"} at 2024-06-02
            → allowed=True, remaining_resets=2,
              quota={"reset_count": 1, "month_key": "2024-06"}
        """
        if is_premium:
            return ResetDecision(
                allowed=True, remaining_resets=const.UNLIMITED_RESETS, quota=None
            )

        used = ResetQuotaEngine.resets_used(quota, now, tz)
        if used >= const.MAX_MONTHLY_RESETS:
            return ResetDecision(allowed=False, remaining_resets=0, quota=None)

        reset_count = used + 1
        return ResetDecision(
            allowed=True,
            remaining_resets=const.MAX_MONTHLY_RESETS - reset_count,
            quota={
                const.DATA_QUOTA_RESET_COUNT: reset_count,  # type: ignore[typeddict-item]
                const.DATA_QUOTA_MONTH_KEY: dt_utils.month_key(now, tz),
            },
        )
