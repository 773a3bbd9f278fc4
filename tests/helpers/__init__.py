"""Test helpers for Event Claims integration tests.

    from tests.helpers import BASE_URL, USER_ID, mock_backend
"""

from tests.helpers.backend import (
    BASE_URL,
    DISCIPLINE_URL,
    POINTS_URL,
    PRAYER_URL,
    TIDINESS_URL,
    USER_ID,
    mock_backend,
)

__all__ = [
    "BASE_URL",
    "DISCIPLINE_URL",
    "POINTS_URL",
    "PRAYER_URL",
    "TIDINESS_URL",
    "USER_ID",
    "mock_backend",
]
