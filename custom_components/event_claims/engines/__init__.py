"""Engine modules for Event Claims integration.

Contains specialized computation engines:
- eligibility_engine: Monotonic progress merging and claim eligibility rules
"""

from .eligibility_engine import EligibilityEngine

__all__ = [
    "EligibilityEngine",
]
