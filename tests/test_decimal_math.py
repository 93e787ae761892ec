from decimal import Decimal

import pytest

from veritas.decimal_math import (
    checked_add,
    checked_div,
    checked_mul,
    checked_pct_diff,
    checked_powi,
    checked_sub,
    clamp_to_scale,
    is_significant_change,
    saturating_add,
    saturating_sub,
)

MAX = Decimal(2**96 - 1)


def test_clamping():
    value = Decimal("302.92938638770920892670435169")
    assert clamp_to_scale(value) == Decimal("302.929386387")


def test_clamping_digits():
    value = Decimal("302929386387709.20892670435169")
    assert clamp_to_scale(value) == Decimal("302929386387709.208")


def test_clamping_digits_2():
    value = Decimal("30292938638770920892670435169")
    assert clamp_to_scale(value) is None


def test_clamping_zero():
    assert clamp_to_scale(Decimal("0.000")) == 0


def test_clamping_short_value_unchanged():
    assert clamp_to_scale(Decimal("1.5")) == Decimal("1.5")


def test_checked_div_by_zero():
    assert checked_div(Decimal(1), Decimal(0)) is None


def test_checked_div_rounds_to_28_places():
    result = checked_div(Decimal(1), Decimal(3))
    assert result == Decimal("0." + "3" * 28)


def test_checked_mul_overflow():
    assert checked_mul(MAX, Decimal(2)) is None


def test_checked_add_overflow_and_normal():
    assert checked_add(MAX, Decimal(1)) is None
    assert checked_add(Decimal("1.25"), Decimal("2.5")) == Decimal("3.75")


def test_checked_sub():
    assert checked_sub(Decimal("5"), Decimal("7.5")) == Decimal("-2.5")
    assert checked_sub(-MAX, Decimal(1)) is None


def test_checked_powi():
    assert checked_powi(Decimal(10), -3) == Decimal("0.001")
    assert checked_powi(Decimal(10), 6) == Decimal(1_000_000)
    assert checked_powi(Decimal(10), 29) is None
    assert checked_powi(Decimal(0), -1) is None


def test_saturating():
    assert saturating_add(MAX, Decimal(1)) == MAX
    assert saturating_sub(-MAX, Decimal(1)) == -MAX
    assert saturating_add(Decimal(2), Decimal(3)) == Decimal(5)


def test_pct_diff():
    assert checked_pct_diff(Decimal(100), Decimal(90)) == Decimal("0.1")
    assert checked_pct_diff(Decimal(0), Decimal(90)) is None


@pytest.mark.parametrize(
    ("old", "new", "expected"),
    [
        (Decimal(100), Decimal("100.2"), True),
        (Decimal(100), Decimal("99.8"), True),
        (Decimal(100), Decimal("100.05"), False),
        (Decimal(100), Decimal("100.1"), False),
        (Decimal(0), Decimal(5), False),
    ],
)
def test_is_significant_change(old, new, expected):
    assert is_significant_change(old, new) is expected