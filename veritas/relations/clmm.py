"""Concentrated-liquidity (tick based) pool pricing and depth estimation."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from typing import Mapping

from veritas.decimal_math import (
    checked_div,
    checked_mul,
    checked_powi,
    checked_sub,
    saturating_add,
)
from veritas.structs import LiqAmount, LiqLevels
from veritas.u256 import checked_shift_word_left, shift_word_left

logger = logging.getLogger(__name__)

MIN_SQRT_PRICE = 4295048016
MAX_SQRT_PRICE = 79226673515401279992447579055

# Precision multiplier applied before truncating Q64.64 values.
SCALE_FACTOR = 1_000_000
_SCALE_FACTOR_SQUARED = SCALE_FACTOR * SCALE_FACTOR
_SCALE_FACTOR_DECIMAL_SQUARED = Decimal(_SCALE_FACTOR_SQUARED)
_SCALE_FACTOR_FLOAT_SQUARED = float(SCALE_FACTOR) * float(SCALE_FACTOR)

# Roughly $10k worth of SOL.
SOL_LIQ_THRESHOLD = Decimal(70)

U64_MAX = 2**64 - 1
U128_MAX = 2**128 - 1
I128_MIN = -(2**127)
I128_MAX = 2**127 - 1
U256_MAX = 2**256 - 1
I32_MIN = -(2**31)
I32_MAX = 2**31 - 1

_LOG_B_2_X32 = 59543866431248
_BIT_PRECISION = 14
_LOG_B_P_ERR_MARGIN_LOWER_X64 = 184467440737095516
_LOG_B_P_ERR_MARGIN_UPPER_X64 = 15793534762490258745

_INTEGER_RE = re.compile(r"[+-]?\d+")

# K = tick index, V = tick
ClmmTickMap = dict[int, "ClmmTickParsed"]


def _parse_int(text: str, low: int, high: int, name: str) -> int:
    if not _INTEGER_RE.fullmatch(text):
        raise ValueError(f"invalid integer for {name}: {text!r}")
    value = int(text)
    if not low <= value <= high:
        raise ValueError(f"{name} out of range: {text}")
    return value


@dataclass(frozen=True)
class ClmmTickParsed:
    """One initialised tick of a concentrated-liquidity pool."""

    liquidity_gross: int
    liquidity_net: int
    fee_growth_outside_a: int
    fee_growth_outside_b: int

    @classmethod
    def from_strings(
        cls,
        liquidity_gross: str,
        liquidity_net: str,
        fee_growth_outside_a: str,
        fee_growth_outside_b: str,
    ) -> ClmmTickParsed:
        """Parse a tick from its decimal string fields; raises ``ValueError`` on bad input."""
        return cls(
            liquidity_gross=_parse_int(liquidity_gross, 0, U128_MAX, "liquidity_gross"),
            liquidity_net=_parse_int(liquidity_net, I128_MIN, I128_MAX, "liquidity_net"),
            fee_growth_outside_a=_parse_int(
                fee_growth_outside_a, 0, U128_MAX, "fee_growth_outside_a"
            ),
            fee_growth_outside_b=_parse_int(
                fee_growth_outside_b, 0, U128_MAX, "fee_growth_outside_b"
            ),
        )


@dataclass(frozen=True)
class DeltaAmount:
    """A token delta that either fits in 64 bits or exceeds that maximum."""

    value: int = 0
    exceeds_max: bool = False

    @classmethod
    def valid(cls, value: int) -> DeltaAmount:
        return cls(value, False)

    @classmethod
    def exceeding(cls) -> DeltaAmount:
        return cls(U64_MAX, True)

    def extract_value(self) -> int:
        """The delta, saturated to the 64-bit maximum."""
        return U64_MAX if self.exceeds_max else self.value


def _u128(value: int) -> int | None:
    return value if 0 <= value <= U128_MAX else None


def _u256(value: int) -> int | None:
    return value if 0 <= value <= U256_MAX else None


def _i32(value: int) -> int | None:
    return value if I32_MIN <= value <= I32_MAX else None


def _saturate_i32(value: int) -> int:
    return max(I32_MIN, min(I32_MAX, value))


def _wrap_i32(value: int) -> int:
    return ((value - I32_MIN) % 2**32) + I32_MIN


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b >= 0) else -quotient


def get_clmm_price(
    sqrt_price_x64: int | None,
    usd_per_origin_units: Decimal,
    decimals_a: int,
    decimals_b: int,
    is_reverse: bool,
) -> Decimal | None:
    """USD price of the destination token from the pool's Q64.64 sqrt price."""
    if sqrt_price_x64 is None:
        return None
    price_units = sqrt_price_to_decimal_price(sqrt_price_x64, decimals_a, decimals_b)
    if price_units is None:
        return None
    if is_reverse:
        return checked_div(usd_per_origin_units, price_units)
    return checked_mul(price_units, usd_per_origin_units)


def get_clmm_liquidity(
    amt_source: Decimal,
    amt_dest: Decimal,
    price_source_usd: Decimal,
    price_dest_usd: Decimal,
) -> LiqAmount | None:
    """Total USD value held in the pool."""
    liq_origin = checked_mul(amt_source, price_source_usd)
    if liq_origin is None:
        return None
    liq_dest = checked_mul(amt_dest, price_dest_usd)
    if liq_dest is None:
        return None
    return LiqAmount.amount(saturating_add(liq_origin, liq_dest))


def get_clmm_liq_levels_dumb(
    amt_source: Decimal, origin_tokens_per_sol: Decimal
) -> LiqLevels | None:
    """Zero impact if the pool holds more than the SOL threshold of the origin token."""
    amt_sol_units = checked_div(amt_source, origin_tokens_per_sol)
    if amt_sol_units is None:
        return None
    if amt_sol_units > SOL_LIQ_THRESHOLD:
        return LiqLevels.ZERO
    return None


def _impact(after: Decimal | None, pool_price: Decimal) -> Decimal | None:
    if after is None:
        return None
    ratio = checked_div(after, pool_price)
    if ratio is None:
        return None
    return checked_sub(ratio, 1)


def get_clmm_liq_levels(
    ticks_by_index: Mapping[int, ClmmTickParsed],
    current_tick_index: int | None,
    current_sqrt_price: int | None,
    tick_spacing: int | None,
    origin_tokens_per_sol: Decimal,
    is_reverse: bool,
    decimals_a: int,
    decimals_b: int,
) -> LiqLevels | None:
    """Simulate swaps of 1, 10 and 1000 SOL worth across ticks and report price impact.

    ``current_tick_index`` must be the actual current tick, not a tick-array start.
    """
    if tick_spacing is None or current_tick_index is None or current_sqrt_price is None:
        return None
    current_tick = ticks_by_index.get(current_tick_index)
    if current_tick is None:
        return None
    pool_price = sqrt_price_to_decimal_price(current_sqrt_price, decimals_a, decimals_b)
    if pool_price is None:
        return None
    sqrt_price_limit = MIN_SQRT_PRICE if is_reverse else MAX_SQRT_PRICE
    decimal_factor = checked_powi(10, decimals_a if is_reverse else decimals_b)
    if decimal_factor is None:
        return None
    minmax_factor = 88 * 5 * tick_spacing
    absolute_min_tick_index = _saturate_i32(current_tick_index - minmax_factor)
    absolute_max_tick_index = _saturate_i32(current_tick_index + minmax_factor)

    scaled_tokens = checked_mul(origin_tokens_per_sol, decimal_factor)
    if scaled_tokens is None:
        return None
    one_sol_tokens = int(scaled_tokens.to_integral_value(rounding=ROUND_FLOOR))
    if not 0 <= one_sol_tokens <= U64_MAX:
        return None
    ten_sol_tokens = one_sol_tokens * 10
    if ten_sol_tokens > U64_MAX:
        return None
    thousand_sol_tokens = ten_sol_tokens * 100
    if thousand_sol_tokens > U64_MAX:
        return None

    one_sol_price_after: Decimal | None = None
    ten_sol_price_after: Decimal | None = None
    thousand_sol_price_after: Decimal | None = None
    one_sol_price_set = False
    ten_sol_price_set = False

    finished = False
    while not finished and thousand_sol_tokens > 0 and sqrt_price_limit != current_sqrt_price:
        if one_sol_tokens > 0:
            amount_to_use = one_sol_tokens
        elif ten_sol_tokens > 0:
            amount_to_use = ten_sol_tokens
        else:
            amount_to_use = thousand_sol_tokens

        next_tick_index = get_very_next_tick_index(current_tick_index, tick_spacing, is_reverse)
        if next_tick_index is None:
            return None
        next_tick = ticks_by_index.get(next_tick_index)
        while (
            next_tick is None
            and absolute_min_tick_index < next_tick_index < absolute_max_tick_index
        ):
            next_tick_index = get_very_next_tick_index(next_tick_index, tick_spacing, is_reverse)
            if next_tick_index is None:
                return None
            next_tick = ticks_by_index.get(next_tick_index)

        next_tick_sqrt_price = sqrt_price_from_tick_index(next_tick_index)
        if next_tick_sqrt_price is None:
            return None
        if is_reverse:
            target_sqrt_price = max(next_tick_sqrt_price, sqrt_price_limit)
        else:
            target_sqrt_price = min(next_tick_sqrt_price, sqrt_price_limit)

        while True:
            step = tick_swap_step(
                amount_to_use,
                current_tick.liquidity_gross,
                current_sqrt_price,
                target_sqrt_price,
                is_reverse,
            )
            if step is None:
                return None
            amount_used, next_sqrt_price = step
            logger.debug(
                "tick %d -> %d: used %d, sqrt price %d",
                current_tick_index,
                next_tick_index,
                amount_used,
                next_sqrt_price,
            )

            one_sol_tokens = max(one_sol_tokens - amount_used, 0)
            ten_sol_tokens = max(ten_sol_tokens - amount_used, 0)
            thousand_sol_tokens = max(thousand_sol_tokens - amount_used, 0)
            amount_to_use = max(amount_to_use - amount_used, 0)

            will_break = False
            if next_sqrt_price == next_tick_sqrt_price:
                if next_tick is not None:
                    current_tick = next_tick
                    current_tick_index = next_tick_index
                else:
                    will_break = True
            else:
                current_tick_index = sqrt_price_to_tick_index(next_sqrt_price)
            current_sqrt_price = next_sqrt_price

            if not one_sol_price_set and one_sol_tokens == 0:
                one_sol_price_after = sqrt_price_to_decimal_price(
                    current_sqrt_price, decimals_a, decimals_b
                )
                one_sol_price_set = True

            if not ten_sol_price_set and ten_sol_tokens == 0:
                ten_sol_price_after = sqrt_price_to_decimal_price(
                    current_sqrt_price, decimals_a, decimals_b
                )
                ten_sol_price_set = True

            if thousand_sol_tokens == 0:
                thousand_sol_price_after = sqrt_price_to_decimal_price(
                    current_sqrt_price, decimals_a, decimals_b
                )
                finished = True
                break

            if will_break:
                finished = True
                break

            if amount_to_use == 0 or current_sqrt_price == target_sqrt_price:
                break

    return LiqLevels(
        one_sol_depth=_impact(one_sol_price_after, pool_price),
        ten_sol_depth=_impact(ten_sol_price_after, pool_price),
        thousand_sol_depth=_impact(thousand_sol_price_after, pool_price),
    )


def get_tick_array_start_idx(tick_index: int, space_factor: int) -> int | None:
    """Start index of the tick array holding ``tick_index`` (truncating division)."""
    if space_factor == 0:
        return None
    quotient = _i32(_trunc_div(tick_index, space_factor))
    if quotient is None:
        return None
    return _i32(quotient * space_factor)


def get_tick_array_offset(tick_index: int, tick_spacing: int, ticks_per_array: int) -> int:
    """Position of ``tick_index`` within its tick array."""
    quotient = _trunc_div(tick_index, tick_spacing)
    remainder = quotient - _trunc_div(quotient, ticks_per_array) * ticks_per_array
    return abs(remainder)


def get_very_next_tick_index(
    current_tick_index: int, tick_spacing: int, is_reverse: bool
) -> int | None:
    """The neighbouring tick one spacing away in the swap direction."""
    step = -1 if is_reverse else 1
    return _i32(tick_spacing * step + current_tick_index)


def tick_swap_step(
    amount_remaining: int,
    current_liq: int,
    current_sqrt_price: int,
    final_sqrt_price: int,
    is_reverse: bool,
) -> tuple[int, int] | None:
    """Swap within one tick range; returns ``(amount_used, next_sqrt_price)``."""
    initial_delta = get_liq_delta(current_sqrt_price, final_sqrt_price, current_liq, is_reverse)
    if initial_delta is None:
        return None
    overflowed = initial_delta.exceeds_max

    if not overflowed and initial_delta.extract_value() <= amount_remaining:
        next_sqrt_price = final_sqrt_price
    else:
        next_sqrt_price = get_new_price_from_amount_in(
            amount_remaining, current_sqrt_price, current_liq, is_reverse
        )
        if next_sqrt_price is None:
            return None

    is_max_swap = next_sqrt_price == final_sqrt_price
    if not is_max_swap or overflowed:
        fixed_delta = get_liq_delta(current_sqrt_price, next_sqrt_price, current_liq, is_reverse)
        if fixed_delta is None:
            return None
    else:
        fixed_delta = initial_delta

    return fixed_delta.extract_value(), next_sqrt_price


def get_liq_delta(
    current_sqrt_price: int, next_sqrt_price: int, liquidity: int, is_reverse: bool
) -> DeltaAmount | None:
    """Token amount needed to move between two sqrt prices at ``liquidity``."""
    lower, upper = sorted((current_sqrt_price, next_sqrt_price))
    diff = upper - lower

    if is_reverse:
        product = _u256(liquidity * diff)
        if product is None:
            return None
        numerator = checked_shift_word_left(product)
        if numerator is None:
            return None
        denom = _u256(upper * lower)
        if denom is None or denom == 0:
            return None
        result = numerator // denom
        if result > U64_MAX:
            return DeltaAmount.exceeding()
        if result + 1 > U64_MAX:
            return None
        return DeltaAmount.valid(result + 1)

    delta = _u128(liquidity * diff)
    if delta is None:
        return None
    token_amt = delta >> 64
    if token_amt > U64_MAX or token_amt + 1 > U64_MAX:
        return None
    return DeltaAmount.valid(token_amt + 1)


def get_new_price_from_amount_in(
    amount_in: int, current_sqrt_price: int, liquidity: int, is_reverse: bool
) -> int | None:
    """Sqrt price after swapping ``amount_in`` tokens into the range."""
    if is_reverse:
        product = _u256(current_sqrt_price * amount_in)
        if product is None:
            return None
        liq_price = _u256(liquidity * current_sqrt_price)
        if liq_price is None:
            return None
        numerator = checked_shift_word_left(liq_price)
        if numerator is None:
            return None
        denom = _u256(shift_word_left(liquidity) + product)
        if denom is None or denom == 0:
            return None
        return _u128(numerator // denom)

    if liquidity == 0:
        return None
    delta = (amount_in << 64) // liquidity
    return _u128(current_sqrt_price + delta)


def sqrt_price_from_tick_index(tick: int) -> int | None:
    """Approximate Q64.64 sqrt price of a tick, or ``None`` if it is not finite."""
    try:
        t = math.sqrt(1.0001 ** float(tick))
    except OverflowError:
        return None
    t_scaled = t * _SCALE_FACTOR_FLOAT_SQUARED
    if math.isinf(t_scaled) or math.isnan(t_scaled):
        return None
    t_scaled_int = max(0, min(U128_MAX, int(t_scaled)))
    shifted = (t_scaled_int << 64) & U128_MAX
    return shifted // _SCALE_FACTOR_SQUARED


def sqrt_price_to_tick_index(sqrt_price: int) -> int:
    """The greatest tick whose sqrt price does not exceed ``sqrt_price``.

    Raises ``ValueError`` for a zero or out-of-range price.
    """
    if not 0 < sqrt_price <= U128_MAX:
        raise ValueError(f"sqrt price out of range: {sqrt_price}")
    msb = sqrt_price.bit_length() - 1
    log2p_integer_x32 = (msb - 64) << 32

    bit = 0x8000_0000_0000_0000
    precision = 0
    log2p_fraction_x64 = 0
    r = sqrt_price >> (msb - 63) if msb >= 64 else sqrt_price << (63 - msb)

    while bit > 0 and precision < _BIT_PRECISION:
        r *= r
        is_r_more_than_two = r >> 127
        r >>= 63 + is_r_more_than_two
        log2p_fraction_x64 += bit * is_r_more_than_two
        bit >>= 1
        precision += 1

    log2p_x32 = log2p_integer_x32 + (log2p_fraction_x64 >> 32)
    logbp_x64 = log2p_x32 * _LOG_B_2_X32

    tick_low = _wrap_i32((logbp_x64 - _LOG_B_P_ERR_MARGIN_LOWER_X64) >> 64)
    tick_high = _wrap_i32((logbp_x64 + _LOG_B_P_ERR_MARGIN_UPPER_X64) >> 64)

    if tick_low == tick_high:
        return tick_low
    high_sqrt_price = sqrt_price_from_tick_index(tick_high)
    if high_sqrt_price is None:
        raise ValueError(f"cannot compute sqrt price of tick {tick_high}")
    return tick_high if high_sqrt_price <= sqrt_price else tick_low


def sqrt_price_to_decimal_price(
    sqrt_price: int, decimals_a: int, decimals_b: int
) -> Decimal | None:
    """Units of token B per unit of token A from a Q64.64 sqrt price."""
    scaled_x64 = _u128(sqrt_price * SCALE_FACTOR)
    if scaled_x64 is None:
        return None
    sqrt_price_scaled = Decimal(scaled_x64 >> 64)
    price_scaled = checked_mul(sqrt_price_scaled, sqrt_price_scaled)
    if price_scaled is None:
        return None
    price_atoms = checked_div(price_scaled, _SCALE_FACTOR_DECIMAL_SQUARED)
    if price_atoms is None:
        return None
    decimal_factor = checked_powi(10, decimals_a - decimals_b)
    if decimal_factor is None:
        return None
    return checked_mul(price_atoms, decimal_factor)