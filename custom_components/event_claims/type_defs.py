"""Type definitions for Event Claims data structures.

TypedDict is used for structures with fixed keys (records, windows, requests,
decisions). Coordinator buckets keyed by claim type stay `dict[str, Any]`.

IMPORTANT: This file must NOT import from coordinator.py or any module that
imports the coordinator, to avoid circular dependencies.

NOTE: TypedDict is STATIC ANALYSIS ONLY. Payloads from the backend are
normalized in api.py before they are typed as these structures.
"""

from typing import Any, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

UserId = int
ClaimType = str  # One of const.CLAIM_TYPES
PeriodKey = str  # "daily:2025-03-15", "weekly:2025-03-10-2025-03-16", "monthly:2025-03"
DecisionStatus = str  # One of const.CLAIM_STATUSES
ISODatetime = str


# =============================================================================
# Progress and Windows
# =============================================================================


class ProgressRecord(TypedDict):
    """Accumulated progress toward a periodic goal for one user.

    `broken` and `claimed` only ever move from False to True within a period.
    `claim_status` is the server's approval state, for display only.
    """

    user_id: UserId
    period_key: PeriodKey
    progress_count: int
    target_count: int
    broken: bool
    broken_reason: str | None
    claimed: bool
    claim_status: NotRequired[str | None]


class EligibilityWindow(TypedDict):
    """A recurring same-day window (e.g. adzan time + 20 minutes)."""

    opens_at_minute_of_day: int
    duration_minutes: int
    timezone: str


# =============================================================================
# Claims
# =============================================================================


class ClaimRequest(TypedDict):
    """An attempted claim. Immutable once built; the server decides approval."""

    user_id: UserId
    period_key: PeriodKey
    claim_type: ClaimType
    submitted_at: ISODatetime
    points: NotRequired[int]
    rate_idr: NotRequired[int]
    slot: NotRequired[str]


class SubmitResult(TypedDict):
    """Outcome of a claim submission as reported by the backend."""

    accepted: bool
    reason: str | None
    severity: str | None
    data: dict[str, Any]


class ClaimDecision(TypedDict):
    """Result of EligibilityEngine.decide()."""

    status: DecisionStatus
    record: ProgressRecord
    reason: str


class MonthCap(TypedDict):
    """Monthly redemption cap mirrored from the backend."""

    used_idr: int
    remain_idr: int


# =============================================================================
# Rule Configuration
# =============================================================================


class RuleConfig(TypedDict, total=False):
    """Per-evaluation configuration handed to the eligibility engine.

    Only the keys relevant to the evaluated claim type need to be present.
    """

    # Discipline
    target_days: int
    claim_mode: str
    claim_day: int
    # Prayer
    window: EligibilityWindow | None
    # Redemption
    coin_balance: int
    redeem_divisor: int
    remain_cap_idr: int
    monthly_cap_idr: int
