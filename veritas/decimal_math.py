"""Checked decimal arithmetic bounded to a 96-bit mantissa and 28 fractional digits.

Every ``checked_*`` function returns ``None`` where the result cannot be
represented (overflow, division by zero) instead of raising.
"""

from __future__ import annotations

import math
from decimal import ROUND_DOWN, ROUND_HALF_EVEN, Context, Decimal, localcontext

from veritas.constants import POINT_ONE_PERCENT

_MAX_MANTISSA = 2**96 - 1
_MAX = Decimal(_MAX_MANTISSA)
_MIN = -_MAX
_MAX_SCALE = 28
_CTX = Context(prec=120, rounding=ROUND_HALF_EVEN, Emax=10**6, Emin=-(10**6))

# Target column spec: Decimal(18, 9)
_CLAMP_MAX_DIGITS = 18
_CLAMP_MAX_SCALE = 9

NumberLike = Decimal | int


def _dec(value: NumberLike) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(value)


def _fit(value: Decimal) -> Decimal | None:
    """Round ``value`` into the representable range, or ``None`` if it overflows."""
    if not value.is_finite():
        return None
    with localcontext(_CTX):
        if abs(value) > _MAX:
            return None
        if value.as_tuple().exponent < -_MAX_SCALE:
            value = value.quantize(Decimal(1).scaleb(-_MAX_SCALE), rounding=ROUND_HALF_EVEN)
        while True:
            exponent = value.as_tuple().exponent
            if exponent >= 0:
                return value
            mantissa = abs(int(value.scaleb(-exponent)))
            if mantissa <= _MAX_MANTISSA:
                return value
            value = value.quantize(Decimal(1).scaleb(exponent + 1), rounding=ROUND_HALF_EVEN)


def _compute(op) -> Decimal | None:
    try:
        with localcontext(_CTX):
            result = op()
    except ArithmeticError:
        return None
    return _fit(result)


def checked_add(a: NumberLike, b: NumberLike) -> Decimal | None:
    """Return ``a + b``, or ``None`` on overflow."""
    return _compute(lambda: _dec(a) + _dec(b))


def checked_sub(a: NumberLike, b: NumberLike) -> Decimal | None:
    """Return ``a - b``, or ``None`` on overflow."""
    return _compute(lambda: _dec(a) - _dec(b))


def checked_mul(a: NumberLike, b: NumberLike) -> Decimal | None:
    """Return ``a * b``, or ``None`` on overflow."""
    return _compute(lambda: _dec(a) * _dec(b))


def checked_div(a: NumberLike, b: NumberLike) -> Decimal | None:
    """Return ``a / b``, or ``None`` on division by zero or overflow."""
    divisor = _dec(b)
    if divisor == 0:
        return None
    return _compute(lambda: _dec(a) / divisor)


def checked_powi(base: NumberLike, exponent: int) -> Decimal | None:
    """Return ``base ** exponent`` for an integer exponent, or ``None`` if not representable."""
    base = _dec(base)
    if exponent < 0 and base == 0:
        return None
    return _compute(lambda: base ** int(exponent))


def saturating_add(a: NumberLike, b: NumberLike) -> Decimal:
    """Return ``a + b`` clamped to the representable range."""
    with localcontext(_CTX):
        exact = _dec(a) + _dec(b)
    fitted = _fit(exact)
    if fitted is None:
        return _MAX if exact > 0 else _MIN
    return fitted


def saturating_sub(a: NumberLike, b: NumberLike) -> Decimal:
    """Return ``a - b`` clamped to the representable range."""
    with localcontext(_CTX):
        exact = _dec(a) - _dec(b)
    fitted = _fit(exact)
    if fitted is None:
        return _MAX if exact > 0 else _MIN
    return fitted


def checked_pct_diff(old: NumberLike, new: NumberLike) -> Decimal | None:
    """Return ``|new / old - 1|``, or ``None`` if it cannot be computed."""
    ratio = checked_div(new, old)
    if ratio is None:
        return None
    diff = checked_sub(ratio, 1)
    return None if diff is None else abs(diff)


def is_significant_change(old: NumberLike, new: NumberLike) -> bool:
    """True when ``new`` differs from ``old`` by more than 0.1%."""
    diff = checked_pct_diff(old, new)
    return diff is not None and diff > POINT_ONE_PERCENT


def clamp_to_scale(value: NumberLike) -> Decimal | None:
    """Truncate ``value`` to fit 18 significant digits with at most 9 decimals.

    Returns ``None`` if the integer part alone needs more than 18 digits.
    """
    with localcontext(_CTX):
        normalized = _dec(value).normalize()
        _, digits, exponent = normalized.as_tuple()
        if exponent >= 0:
            mantissa = int("".join(map(str, digits))) * 10**exponent
            scale = 0
        else:
            mantissa = int("".join(map(str, digits)))
            scale = -exponent

        if mantissa == 0:
            return normalized

        digit_count = math.floor(math.log10(float(mantissa))) + 1
        if digit_count > _CLAMP_MAX_DIGITS:
            excess = digit_count - _CLAMP_MAX_DIGITS
            if scale < excess:
                return None
            scale -= excess

        scale = min(scale, _CLAMP_MAX_SCALE)
        return normalized.quantize(Decimal(1).scaleb(-scale), rounding=ROUND_DOWN)