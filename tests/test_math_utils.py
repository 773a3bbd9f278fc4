"""Tests for math_utils - pure helpers, no HA fixtures needed."""

import pytest

from custom_components.event_claims.utils import math_utils


class TestRedemption:
    """Test coin to point conversion."""

    def test_floor_division(self) -> None:
        """97 coins at divisor 10 give 9 points, never 9.7 rounded up."""
        assert math_utils.redeemable_points(97, 10) == 9

    def test_exact(self) -> None:
        """Exact multiples convert fully."""
        assert math_utils.redeemable_points(100, 10) == 10

    def test_below_divisor(self) -> None:
        """Fewer coins than the divisor give nothing."""
        assert math_utils.redeemable_points(9, 10) == 0

    @pytest.mark.parametrize(("coins", "divisor"), [(-5, 10), (50, 0), (50, -1)])
    def test_non_positive_inputs(self, coins: int, divisor: int) -> None:
        """Negative balance or invalid divisor give 0."""
        assert math_utils.redeemable_points(coins, divisor) == 0

    def test_redeem_total(self) -> None:
        """Total rupiah is points times rate."""
        assert math_utils.redeem_total_idr(9, 1000) == 9000
        assert math_utils.redeem_total_idr(-1, 1000) == 0


class TestPercentage:
    """Test progress percentage."""

    def test_half(self) -> None:
        """12 of 24 is 50 percent."""
        assert math_utils.calculate_percentage(12, 24) == 50

    def test_clamped(self) -> None:
        """Progress beyond target is capped at 100."""
        assert math_utils.calculate_percentage(30, 24) == 100

    def test_zero_target(self) -> None:
        """A zero target reports 0 percent."""
        assert math_utils.calculate_percentage(5, 0) == 0


class TestCoercion:
    """Test tolerant payload coercion."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(None, 0), ("12", 12), ("12.7", 12), (3.9, 3), (True, 1), ("x", 0), ({}, 0)],
    )
    def test_to_int(self, value: object, expected: int) -> None:
        """Numbers, numeric strings and garbage."""
        assert math_utils.to_int(value) == expected

    def test_to_int_default(self) -> None:
        """Missing values use the supplied default."""
        assert math_utils.to_int(None, 24) == 24
        assert math_utils.to_int("inf", 7) == 7

    @pytest.mark.parametrize(
        "value", [True, 1, "1", "true", "OK", "on-time", "ontime", " yes "]
    )
    def test_to_bool_truthy(self, value: object) -> None:
        """Backend truthy flags."""
        assert math_utils.to_bool(value) is True

    @pytest.mark.parametrize("value", [False, 0, 2, None, "", "no", "late", "0"])
    def test_to_bool_falsy(self, value: object) -> None:
        """Everything else is False."""
        assert math_utils.to_bool(value) is False
