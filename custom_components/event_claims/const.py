# File: const.py
"""Constants for the Event Claims integration.

This file centralizes configuration keys, defaults, storage keys, claim types,
API endpoints and platform identifiers for consistency across the integration.
"""

import logging

from homeassistant.const import Platform

# ------------------------------------------------------------------------------------------------
# General / Integration Information
# ------------------------------------------------------------------------------------------------
EVENT_CLAIMS_TITLE = "Event Claims"

DOMAIN = "event_claims"

LOGGER = logging.getLogger(__package__)

PLATFORMS = [
    Platform.BUTTON,
    Platform.SENSOR,
]

# Coordinator
COORDINATOR = "coordinator"
COORDINATOR_SUFFIX = "_coordinator"

# Storage and Versioning
PROGRESS_CACHE = "progress_cache"
STORAGE_KEY = "event_claims_cache"
STORAGE_VERSION = 1

DEFAULT_ZERO = 0

# ------------------------------------------------------------------------------------------------
# Configuration Keys
# ------------------------------------------------------------------------------------------------
CONF_BASE_URL = "base_url"
CONF_USER_ID = "user_id"
CONF_NAME = "name"

CONF_UPDATE_INTERVAL = "update_interval"
CONF_TIMEOUT = "timeout"
CONF_DISCIPLINE_TARGET_DAYS = "discipline_target_days"
CONF_DISCIPLINE_CLAIM_MODE = "discipline_claim_mode"
CONF_DISCIPLINE_CLAIM_DAY = "discipline_claim_day"
CONF_REDEEM_DIVISOR = "redeem_divisor"
CONF_REDEEM_RATE_IDR = "redeem_rate_idr"
CONF_MONTHLY_CAP_IDR = "monthly_cap_idr"
CONF_PRAYER_WINDOW_MINUTES = "prayer_window_minutes"

# Defaults
DEFAULT_UPDATE_INTERVAL = 5  # minutes
DEFAULT_TIMEOUT = 8  # seconds
DEFAULT_DISCIPLINE_TARGET_DAYS = 24
DEFAULT_DISCIPLINE_CUTOFF = "07:50:00"
DEFAULT_DISCIPLINE_CLAIM_DAY = 2
DEFAULT_REDEEM_DIVISOR = 10
DEFAULT_REDEEM_RATE_IDR = 1
DEFAULT_MONTHLY_CAP_IDR = 300_000
DEFAULT_PRAYER_WINDOW_MINUTES = 20
DEFAULT_PRAYER_TIMEZONE = "Asia/Jakarta"
DEFAULT_TIDINESS_TARGET = 1

# Discipline claim modes
CLAIM_MODE_ANYTIME = "anytime"
CLAIM_MODE_MONTHLY_FIXED_DAY = "monthly_fixed_day"
CLAIM_MODE_WEEKLY_FRIDAY = "weekly_friday"
CLAIM_MODE_DISABLED = "disabled"
CLAIM_MODES = [
    CLAIM_MODE_ANYTIME,
    CLAIM_MODE_MONTHLY_FIXED_DAY,
    CLAIM_MODE_WEEKLY_FRIDAY,
    CLAIM_MODE_DISABLED,
]
DEFAULT_DISCIPLINE_CLAIM_MODE = CLAIM_MODE_ANYTIME

# ------------------------------------------------------------------------------------------------
# Claim Types
# ------------------------------------------------------------------------------------------------
CLAIM_TYPE_DISCIPLINE_MONTHLY = "discipline_monthly"
CLAIM_TYPE_TIDINESS = "tidiness"
CLAIM_TYPE_PRAYER_ZUHUR = "prayer_zuhur"
CLAIM_TYPE_PRAYER_ASHAR = "prayer_ashar"
CLAIM_TYPE_REDEMPTION = "redemption"

CLAIM_TYPES = [
    CLAIM_TYPE_DISCIPLINE_MONTHLY,
    CLAIM_TYPE_TIDINESS,
    CLAIM_TYPE_PRAYER_ZUHUR,
    CLAIM_TYPE_PRAYER_ASHAR,
    CLAIM_TYPE_REDEMPTION,
]

PRAYER_SLOT_ZUHUR = "zuhur"
PRAYER_SLOT_ASHAR = "ashar"
PRAYER_SLOTS = {
    CLAIM_TYPE_PRAYER_ZUHUR: PRAYER_SLOT_ZUHUR,
    CLAIM_TYPE_PRAYER_ASHAR: PRAYER_SLOT_ASHAR,
}

# Period kinds
PERIOD_DAILY = "daily"
PERIOD_WEEKLY = "weekly"
PERIOD_MONTHLY = "monthly"

CLAIM_TYPE_PERIOD_KIND = {
    CLAIM_TYPE_DISCIPLINE_MONTHLY: PERIOD_MONTHLY,
    CLAIM_TYPE_TIDINESS: PERIOD_DAILY,
    CLAIM_TYPE_PRAYER_ZUHUR: PERIOD_DAILY,
    CLAIM_TYPE_PRAYER_ASHAR: PERIOD_DAILY,
    CLAIM_TYPE_REDEMPTION: PERIOD_MONTHLY,
}

# Local cache namespaces, one per claim type
CACHE_KEY_PREFIX = "ev"
CACHE_NAMESPACES = {
    CLAIM_TYPE_DISCIPLINE_MONTHLY: "disc-monthly",
    CLAIM_TYPE_TIDINESS: "ker",
    CLAIM_TYPE_PRAYER_ZUHUR: "ib-zuhur",
    CLAIM_TYPE_PRAYER_ASHAR: "ib-ashar",
    CLAIM_TYPE_REDEMPTION: "redeem",
}
CACHE_NAMESPACE_POINTS = "points"

# ------------------------------------------------------------------------------------------------
# Decision Statuses and Reasons
# ------------------------------------------------------------------------------------------------
CLAIM_STATUS_NOT_YET_ELIGIBLE = "not_yet_eligible"
CLAIM_STATUS_ELIGIBLE = "eligible"
CLAIM_STATUS_CLOSED = "closed"
CLAIM_STATUSES = [
    CLAIM_STATUS_NOT_YET_ELIGIBLE,
    CLAIM_STATUS_ELIGIBLE,
    CLAIM_STATUS_CLOSED,
]

REASON_ALREADY_CLAIMED = "already_claimed"
REASON_BROKEN = "broken"
REASON_BELOW_TARGET = "below_target"
REASON_OUTSIDE_CLAIM_MONTH = "outside_claim_month"
REASON_NOT_CLAIM_DAY = "not_claim_day"
REASON_NO_POINTS = "no_points"
REASON_OUTSIDE_WINDOW = "outside_window"
REASON_INVALID_WINDOW = "invalid_window"
REASON_INSUFFICIENT_COINS = "insufficient_coins"
REASON_CAP_REACHED = "cap_reached"
REASON_CLAIMABLE = "claimable"
REASON_ERROR = "error"

# Server-side approval states (display only)
APPROVAL_PENDING = "pending"
APPROVAL_APPROVED = "approved"
APPROVAL_REJECTED = "rejected"
BLOCKING_APPROVAL_STATES = (APPROVAL_PENDING, APPROVAL_APPROVED)

# ------------------------------------------------------------------------------------------------
# Data Keys
# ------------------------------------------------------------------------------------------------
DATA_RECORD_USER_ID = "user_id"
DATA_RECORD_PERIOD_KEY = "period_key"
DATA_RECORD_PROGRESS_COUNT = "progress_count"
DATA_RECORD_TARGET_COUNT = "target_count"
DATA_RECORD_BROKEN = "broken"
DATA_RECORD_BROKEN_REASON = "broken_reason"
DATA_RECORD_CLAIMED = "claimed"
DATA_RECORD_CLAIM_STATUS = "claim_status"

DATA_DECISION_STATUS = "status"
DATA_DECISION_RECORD = "record"
DATA_DECISION_REASON = "reason"

DATA_WINDOW_OPENS_AT = "opens_at_minute_of_day"
DATA_WINDOW_DURATION = "duration_minutes"
DATA_WINDOW_TIMEZONE = "timezone"

DATA_CACHE_ENTRIES = "entries"
DATA_CACHE_NUMBERS = "numbers"

# Coordinator data buckets
DATA_DECISIONS = "decisions"
DATA_USING_CACHED = "using_cached"
DATA_COINS = "coins"
DATA_MONTH_CAP = "month_cap"
DATA_WINDOWS = "windows"
DATA_OPEN_REQUESTS = "open_requests"
DATA_TIDINESS_ITEMS = "tidiness_items"
DATA_DISCIPLINE_META = "discipline_meta"
DATA_LAST_UPDATED = "last_updated"

# ------------------------------------------------------------------------------------------------
# Remote API
# ------------------------------------------------------------------------------------------------
API_EVENT_DISCIPLINE = "event/kedisiplinan.php"
API_EVENT_TIDINESS = "event/kerapihan.php"
API_EVENT_PRAYER = "event/ibadah.php"
API_EVENT_POINTS = "event/points.php"

API_ACTION_MONTHLY_PROGRESS = "monthly_progress"
API_ACTION_SUBMIT_MONTHLY = "submit_monthly"
API_ACTION_ITEMS = "items"
API_ACTION_USER_STATUS = "user_status"
API_ACTION_CLAIM = "claim"
API_ACTION_TIMES = "times"
API_ACTION_STATUS = "status"
API_ACTION_SUBMIT = "submit"
API_ACTION_GET = "get"
API_ACTION_MONTH_CAP = "month_cap"
API_ACTION_REQUESTS = "requests"
API_ACTION_CONVERT = "convert"

API_SEVERITY_WARNING = "warning"
API_SEVERITY_ERROR = "error"

MESSAGE_GENERIC_RETRY = "Claim could not be submitted. Please try again."

# ------------------------------------------------------------------------------------------------
# Entities
# ------------------------------------------------------------------------------------------------
SENSOR_UID_SUFFIX_CLAIM_STATUS = "_claim_status"
SENSOR_UID_SUFFIX_COINS = "_coins"
BUTTON_UID_SUFFIX_CLAIM = "_claim"

ATTR_CLAIM_TYPE = "claim_type"
ATTR_PERIOD_KEY = "period_key"
ATTR_PROGRESS_COUNT = "progress_count"
ATTR_TARGET_COUNT = "target_count"
ATTR_PROGRESS_PCT = "progress_pct"
ATTR_BROKEN = "broken"
ATTR_BROKEN_REASON = "broken_reason"
ATTR_CLAIMED = "claimed"
ATTR_CLAIM_STATUS = "claim_status"
ATTR_REASON = "reason"
ATTR_USING_CACHED = "using_cached"
ATTR_WINDOW = "window"
ATTR_NEXT_CLAIM_DATE = "next_claim_date"
ATTR_REDEEMABLE_POINTS = "redeemable_points"
ATTR_REDEEM_TOTAL_IDR = "redeem_total_idr"
ATTR_MONTH_CAP_USED_IDR = "month_cap_used_idr"
ATTR_MONTH_CAP_REMAIN_IDR = "month_cap_remain_idr"
ATTR_OPEN_REQUESTS = "open_requests"
ATTR_ITEMS_TOTAL = "items_total"

CLAIM_TYPE_ICONS = {
    CLAIM_TYPE_DISCIPLINE_MONTHLY: "mdi:calendar-check",
    CLAIM_TYPE_TIDINESS: "mdi:tshirt-crew",
    CLAIM_TYPE_PRAYER_ZUHUR: "mdi:mosque",
    CLAIM_TYPE_PRAYER_ASHAR: "mdi:mosque",
    CLAIM_TYPE_REDEMPTION: "mdi:cash-multiple",
}
ICON_COINS = "mdi:circle-multiple"

# Translation keys
TRANS_KEY_ERROR_CANNOT_CONNECT = "cannot_connect"
TRANS_KEY_ERROR_INVALID_USER_ID = "invalid_user_id"
TRANS_KEY_ERROR_INVALID_URL = "invalid_url"
TRANS_KEY_ERROR_ALREADY_CONFIGURED = "already_configured"
TRANS_KEY_ERROR_CLAIM_NOT_ALLOWED = "claim_not_allowed"
TRANS_KEY_ERROR_CLAIM_REJECTED = "claim_rejected"
