# File: utils/math_utils.py
"""Math and calculation utilities for Event Claims.

Pure Python math functions with ZERO Home Assistant dependencies.

⚠️ UTILS PURITY: NO `homeassistant.*` imports allowed.

Functions:
    - clamp: Bound a value between two limits
    - redeemable_points: Integer-floor coin to point conversion
    - redeem_total_idr: Rupiah value of a number of points
    - calculate_percentage: Progress percentage, clamped to 0..100
    - to_int: Tolerant numeric coercion for backend payloads
    - to_bool: Tolerant boolean coercion for backend payloads
"""

from __future__ import annotations

import logging
from typing import Any

_LOGGER = logging.getLogger(__name__)

# Strings the backend uses for truthy / falsy flags
TRUTHY_STRINGS = frozenset({"1", "true", "ok", "on-time", "ontime", "yes"})


def clamp(value: int, low: int, high: int) -> int:
    """Bound value to [low, high]."""
    return min(high, max(low, value))


def redeemable_points(coin_balance: int, divisor: int) -> int:
    """Return how many whole points a coin balance converts to.

    Integer floor division: 97 coins at divisor 10 → 9 points.
    A non-positive divisor or balance yields 0.
    """
    if divisor <= 0 or coin_balance <= 0:
        return 0
    return coin_balance // divisor


def redeem_total_idr(points: int, rate_idr: int) -> int:
    """Return the rupiah value of points at rate_idr per point."""
    return max(0, points) * max(0, rate_idr)


def calculate_percentage(progress: int, target: int) -> int:
    """Return progress as a rounded percentage of target, clamped to 0..100.

    Examples:
        calculate_percentage(12, 24) → 50
        calculate_percentage(30, 24) → 100
        calculate_percentage(5, 0) → 0
    """
    if target <= 0:
        return 0
    return clamp(round(progress / target * 100), 0, 100)


def to_int(value: Any, default: int = 0) -> int:
    """Coerce a backend numeric field; missing or garbage values give default."""
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        _LOGGER.debug("Coercing non-numeric value %r to %s", value, default)
        return default


def to_bool(value: Any) -> bool:
    """Coerce a backend boolean flag.

    Accepts real booleans, 1/0, and strings such as "1", "true", "ok",
    "on-time". Anything else, including None, is False.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if value is None:
        return False
    return str(value).strip().lower() in TRUTHY_STRINGS
