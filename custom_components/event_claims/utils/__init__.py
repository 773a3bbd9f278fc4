# File: utils/__init__.py
"""Pure Python utilities for Event Claims.

This module contains pure Python functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

Submodules:
    - dt_utils: Minute-of-day parsing, eligibility windows, period keys
    - math_utils: Redemption arithmetic, percentages, payload coercion
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
