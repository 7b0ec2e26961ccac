"""
Tests for the money helpers.
"""
from decimal import Decimal

import pytest

from tripfund.core import money
from tripfund.core.exceptions import ValidationError


def test_float_input_is_converted_through_str():
    assert money.to_decimal(0.1) == Decimal("0.1")
    assert money.add(0.1, 0.2) == Decimal("0.3")


def test_none_is_zero():
    assert money.to_decimal(None) == Decimal(0)
    assert money.total([]) == Decimal(0)


@pytest.mark.parametrize("value", ["abc", True, float("nan"), [1]])
def test_invalid_amounts_are_rejected(value):
    with pytest.raises(ValidationError):
        money.to_decimal(value)


def test_quantize_rounds_half_up():
    assert money.quantize("2.345") == Decimal("2.35")
    assert money.quantize("-2.345") == Decimal("-2.35")
    assert money.quantize(3) == Decimal("3.00")


def test_negligible_threshold_is_one_cent():
    assert money.is_negligible("0.009")
    assert not money.is_negligible("0.01")
    assert money.equals_within("10.00", "10.01")
    assert not money.equals_within("10.00", "10.02")


def test_split_evenly_hands_out_remainder_cents_first():
    shares = money.split_evenly(Decimal("100.00"), 3)
    assert shares == [Decimal("33.34"), Decimal("33.33"), Decimal("33.33")]
    assert sum(shares) == Decimal("100.00")


def test_split_into_zero_parts_fails():
    with pytest.raises(ValidationError):
        money.split_evenly(Decimal("10"), 0)


def test_format_amount():
    assert money.format_amount("7.5") == "7.50"
