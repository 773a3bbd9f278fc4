"""Eligibility Engine - Pure logic for claim eligibility and progress merging.

This engine provides stateless, pure Python functions for:
- Monotonic merging of progress records (server vs. local cache)
- Tri-state claim decisions (not_yet_eligible / eligible / closed)
- One condition handler per claim type, registered in a handler registry

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
All functions are static/class methods that operate on passed-in data.
The caller supplies `now`; the engine never reads the clock.
State management (fetching, caching, submitting) belongs in the coordinator.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, cast

from .. import const
from ..utils import dt_utils, math_utils

if TYPE_CHECKING:
    from ..type_defs import ClaimDecision, ProgressRecord, RuleConfig


# =============================================================================
# TYPE ALIASES
# =============================================================================

# Handler signature: (now, period_key, merged_record, config) -> (eligible, reason)
ConditionHandler = Callable[
    [datetime, str, "ProgressRecord", "RuleConfig"], tuple[bool, str]
]


# =============================================================================
# ELIGIBILITY ENGINE
# =============================================================================


class EligibilityEngine:
    """Pure logic engine for claim eligibility.

    All methods are static - no instance state. This enables easy unit testing
    without any Home Assistant mocking.

    PURITY CONTRACT:
    - All data comes via parameters (now, records, config)
    - No side effects, no storage access, no network access
    - decide() never raises; unexpected errors degrade to not_yet_eligible

    Decision Flow (shared by every claim type):
        1. Merge server and cached records (or use whichever exists, or zero)
        2. claimed, or a pending/approved claim on the server → closed
        3. broken → closed (absorbing for the period)
        4. claim-type condition holds → eligible
        5. otherwise → not_yet_eligible
    """

    # =========================================================================
    # CONDITION HANDLER REGISTRY
    # =========================================================================

    _CONDITION_HANDLERS: dict[str, ConditionHandler] = {}

    @classmethod
    def _register_handlers(cls) -> None:
        """Populate _CONDITION_HANDLERS once."""
        if cls._CONDITION_HANDLERS:
            return

        cls._CONDITION_HANDLERS = {
            const.CLAIM_TYPE_DISCIPLINE_MONTHLY: cls._check_discipline_monthly,
            const.CLAIM_TYPE_TIDINESS: cls._check_tidiness,
            const.CLAIM_TYPE_PRAYER_ZUHUR: cls._check_prayer_window,
            const.CLAIM_TYPE_PRAYER_ASHAR: cls._check_prayer_window,
            const.CLAIM_TYPE_REDEMPTION: cls._check_redemption,
        }

    # =========================================================================
    # RECORD HELPERS
    # =========================================================================

    @staticmethod
    def zero_record(
        user_id: int,
        period_key: str,
        target_count: int = const.DEFAULT_ZERO,
    ) -> ProgressRecord:
        """Return the cold-start record for a period."""
        return {
            const.DATA_RECORD_USER_ID: user_id,
            const.DATA_RECORD_PERIOD_KEY: period_key,
            const.DATA_RECORD_PROGRESS_COUNT: const.DEFAULT_ZERO,
            const.DATA_RECORD_TARGET_COUNT: target_count,
            const.DATA_RECORD_BROKEN: False,
            const.DATA_RECORD_BROKEN_REASON: None,
            const.DATA_RECORD_CLAIMED: False,
            const.DATA_RECORD_CLAIM_STATUS: None,
        }  # type: ignore[return-value]

    @staticmethod
    def merge_records(
        existing: ProgressRecord,
        incoming: ProgressRecord,
    ) -> ProgressRecord:
        """Monotonically merge two records for the same period.

        - progress_count: max of both
        - broken / claimed: sticky (logical OR)
        - broken_reason: from whichever side is broken, incoming's if both are
        - target_count: incoming's when positive, else existing's
        - claim_status: incoming's whenever the field is present, None included,
          else existing's

        The numeric and boolean fields are commutative and idempotent, so the
        arrival order of a stale fetch and a fresh one does not matter.
        claim_status is not: it mirrors the server's current approval state.
        """
        existing_broken = bool(existing.get(const.DATA_RECORD_BROKEN))
        incoming_broken = bool(incoming.get(const.DATA_RECORD_BROKEN))

        if incoming_broken:
            broken_reason = incoming.get(const.DATA_RECORD_BROKEN_REASON)
            if broken_reason is None and existing_broken:
                broken_reason = existing.get(const.DATA_RECORD_BROKEN_REASON)
        elif existing_broken:
            broken_reason = existing.get(const.DATA_RECORD_BROKEN_REASON)
        else:
            broken_reason = None

        incoming_target = incoming.get(const.DATA_RECORD_TARGET_COUNT) or 0
        target = (
            incoming_target
            if incoming_target > 0
            else existing.get(const.DATA_RECORD_TARGET_COUNT) or 0
        )

        if const.DATA_RECORD_CLAIM_STATUS in incoming:
            claim_status = incoming[const.DATA_RECORD_CLAIM_STATUS]
        else:
            claim_status = existing.get(const.DATA_RECORD_CLAIM_STATUS)

        merged = {
            const.DATA_RECORD_USER_ID: incoming.get(
                const.DATA_RECORD_USER_ID, existing.get(const.DATA_RECORD_USER_ID)
            ),
            const.DATA_RECORD_PERIOD_KEY: incoming.get(
                const.DATA_RECORD_PERIOD_KEY,
                existing.get(const.DATA_RECORD_PERIOD_KEY),
            ),
            const.DATA_RECORD_PROGRESS_COUNT: max(
                existing.get(const.DATA_RECORD_PROGRESS_COUNT) or 0,
                incoming.get(const.DATA_RECORD_PROGRESS_COUNT) or 0,
            ),
            const.DATA_RECORD_TARGET_COUNT: target,
            const.DATA_RECORD_BROKEN: existing_broken or incoming_broken,
            const.DATA_RECORD_BROKEN_REASON: broken_reason,
            const.DATA_RECORD_CLAIMED: bool(existing.get(const.DATA_RECORD_CLAIMED))
            or bool(incoming.get(const.DATA_RECORD_CLAIMED)),
            const.DATA_RECORD_CLAIM_STATUS: claim_status,
        }
        return cast("ProgressRecord", merged)

    @staticmethod
    def is_blocking_status(claim_status: str | None) -> bool:
        """Return True if a server approval state blocks another claim."""
        return claim_status in const.BLOCKING_APPROVAL_STATES

    # =========================================================================
    # MAIN DECISION
    # =========================================================================

    @classmethod
    def decide(
        cls,
        claim_type: str,
        now: datetime,
        period_key: str,
        server_record: ProgressRecord | None,
        cached_record: ProgressRecord | None,
        config: RuleConfig,
        user_id: int = const.DEFAULT_ZERO,
    ) -> ClaimDecision:
        """Decide whether a claim is currently allowed.

        Pure function - no side effects. Never raises.

        Args:
            claim_type: One of const.CLAIM_TYPES
            now: Evaluation instant supplied by the caller
            period_key: Period the decision applies to
            server_record: Authoritative record, or None when the fetch failed
            cached_record: Local cache record, or None on cold start
            config: Claim-type specific configuration
            user_id: Used only when a zero record has to be synthesized

        Returns:
            ClaimDecision with status, merged record and a short reason
        """
        cls._register_handlers()

        if server_record is not None and cached_record is not None:
            record = cls.merge_records(cached_record, server_record)
        elif server_record is not None:
            record = server_record
        elif cached_record is not None:
            record = cached_record
        else:
            record = cls.zero_record(user_id, period_key)

        if record.get(const.DATA_RECORD_CLAIMED) or cls.is_blocking_status(
            record.get(const.DATA_RECORD_CLAIM_STATUS)
        ):
            return cls._make_decision(
                const.CLAIM_STATUS_CLOSED, record, const.REASON_ALREADY_CLAIMED
            )

        if record.get(const.DATA_RECORD_BROKEN):
            return cls._make_decision(
                const.CLAIM_STATUS_CLOSED, record, const.REASON_BROKEN
            )

        handler = cls._CONDITION_HANDLERS.get(claim_type)
        if handler is None:
            const.LOGGER.warning(
                "WARNING: No eligibility rule for claim type '%s'", claim_type
            )
            return cls._make_decision(
                const.CLAIM_STATUS_NOT_YET_ELIGIBLE, record, const.REASON_ERROR
            )

        try:
            eligible, reason = handler(now, period_key, record, config)
        except Exception as err:  # pylint: disable=broad-exception-caught
            const.LOGGER.error(
                "ERROR: Eligibility rule for '%s' failed on %s: %s",
                claim_type,
                period_key,
                err,
            )
            return cls._make_decision(
                const.CLAIM_STATUS_NOT_YET_ELIGIBLE, record, const.REASON_ERROR
            )

        status = (
            const.CLAIM_STATUS_ELIGIBLE
            if eligible
            else const.CLAIM_STATUS_NOT_YET_ELIGIBLE
        )
        return cls._make_decision(status, record, reason)

    @staticmethod
    def _make_decision(
        status: str, record: ProgressRecord, reason: str
    ) -> ClaimDecision:
        return {
            const.DATA_DECISION_STATUS: status,
            const.DATA_DECISION_RECORD: record,
            const.DATA_DECISION_REASON: reason,
        }  # type: ignore[return-value]

    # =========================================================================
    # CONDITION HANDLERS
    # =========================================================================

    @staticmethod
    def _check_discipline_monthly(
        now: datetime,
        period_key: str,
        record: ProgressRecord,
        config: RuleConfig,
    ) -> tuple[bool, str]:
        """progress >= target, inside the claim month, on a claim day."""
        target = record.get(const.DATA_RECORD_TARGET_COUNT) or config.get(
            "target_days", const.DEFAULT_DISCIPLINE_TARGET_DAYS
        )
        if record.get(const.DATA_RECORD_PROGRESS_COUNT, 0) < target:
            return False, const.REASON_BELOW_TARGET

        if not dt_utils.period_contains(period_key, now):
            return False, const.REASON_OUTSIDE_CLAIM_MONTH

        if not dt_utils.is_discipline_claim_day(
            now,
            config.get("claim_mode", const.DEFAULT_DISCIPLINE_CLAIM_MODE),
            config.get("claim_day", const.DEFAULT_DISCIPLINE_CLAIM_DAY),
        ):
            return False, const.REASON_NOT_CLAIM_DAY

        return True, const.REASON_CLAIMABLE

    @staticmethod
    def _check_tidiness(
        now: datetime,
        period_key: str,
        record: ProgressRecord,
        config: RuleConfig,
    ) -> tuple[bool, str]:
        """At least one point-earning item was checked today."""
        if record.get(const.DATA_RECORD_PROGRESS_COUNT, 0) > 0:
            return True, const.REASON_CLAIMABLE
        return False, const.REASON_NO_POINTS

    @staticmethod
    def _check_prayer_window(
        now: datetime,
        period_key: str,
        record: ProgressRecord,
        config: RuleConfig,
    ) -> tuple[bool, str]:
        """Inside the slot's window on the period's day.

        A window crossing midnight is treated as a configuration error and is
        never eligible.
        """
        window = config.get("window")
        if not window:
            return False, const.REASON_INVALID_WINDOW

        opens_at = window["opens_at_minute_of_day"]
        duration = window["duration_minutes"]
        if (
            not 0 <= opens_at < dt_utils.MINUTES_PER_DAY
            or duration <= 0
            or opens_at + duration > dt_utils.MINUTES_PER_DAY
        ):
            return False, const.REASON_INVALID_WINDOW

        if not dt_utils.period_contains(period_key, now):
            return False, const.REASON_OUTSIDE_WINDOW

        if dt_utils.is_within_window(now, window):
            return True, const.REASON_CLAIMABLE
        return False, const.REASON_OUTSIDE_WINDOW

    @staticmethod
    def _check_redemption(
        now: datetime,
        period_key: str,
        record: ProgressRecord,
        config: RuleConfig,
    ) -> tuple[bool, str]:
        """floor(coins / divisor) > 0 and the monthly cap is not exhausted.

        The cap is enforced server-side; the remaining amount here mirrors the
        last reported value.
        """
        points = math_utils.redeemable_points(
            config.get("coin_balance", 0),
            config.get("redeem_divisor", const.DEFAULT_REDEEM_DIVISOR),
        )
        if points <= 0:
            return False, const.REASON_INSUFFICIENT_COINS

        remain = config.get("remain_cap_idr")
        if remain is None:
            target = record.get(const.DATA_RECORD_TARGET_COUNT, 0)
            remain = (
                target - record.get(const.DATA_RECORD_PROGRESS_COUNT, 0)
                if target > 0
                else config.get("monthly_cap_idr", const.DEFAULT_MONTHLY_CAP_IDR)
            )
        if remain <= 0:
            return False, const.REASON_CAP_REACHED

        return True, const.REASON_CLAIMABLE
