"""Bin-based (discrete liquidity) pool pricing and depth estimation."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from typing import Mapping, Sequence

from veritas.decimal_math import (
    checked_add,
    checked_div,
    checked_mul,
    checked_powi,
    checked_sub,
    saturating_add,
    saturating_sub,
)
from veritas.structs import LiqAmount, LiqLevels

logger = logging.getLogger(__name__)

# Precision multiplier applied before truncating Q64.64 prices.
SCALE_FACTOR = 1_000_000
_SCALE_FACTOR_DECIMAL = Decimal(SCALE_FACTOR)
U128_MAX = 2**128 - 1
# Bins within one bin array are indexed 0..=69.
LAST_BIN_INDEX = 69

_UNSIGNED_RE = re.compile(r"\+?\d+")

# K = bin array index, V = bins of that array
DlmmBinMap = dict[int, list["DlmmBinParsed"]]


def _to_u128(value: Decimal) -> int | None:
    if value < 0:
        return None
    result = int(value)
    return result if result <= U128_MAX else None


@dataclass
class DlmmBinParsed:
    """One bin: its Q64.64 price (Y atoms per X atom) and its X and Y holdings."""

    price: int
    token_amounts: list[Decimal]

    def __post_init__(self) -> None:
        self.token_amounts = list(self.token_amounts)
        if len(self.token_amounts) != 2:
            raise ValueError(f"a bin holds exactly two amounts, got {len(self.token_amounts)}")

    @classmethod
    def from_part(cls, price: str, token_amounts: Sequence[Decimal]) -> DlmmBinParsed:
        """Build a bin from a decimal price string and its token amounts.

        Raises ``ValueError`` on a malformed price or fewer than two amounts.
        """
        if not _UNSIGNED_RE.fullmatch(price):
            raise ValueError(f"invalid bin price: {price!r}")
        parsed = int(price)
        if parsed > U128_MAX:
            raise ValueError(f"bin price out of range: {price}")
        amounts = list(token_amounts)
        if len(amounts) < 2:
            raise ValueError("a bin part needs two token amounts")
        return cls(parsed, amounts[:2])

    def get_price(self, is_reverse: bool) -> Decimal | None:
        """Atoms of the destination per atom of the origin in this bin."""
        if is_reverse:
            if self.price == 0:
                return None
            atoms = (SCALE_FACTOR << 64) // self.price
        else:
            scaled = self.price * SCALE_FACTOR
            if scaled > U128_MAX:
                return None
            atoms = scaled >> 64
        return checked_div(Decimal(atoms), _SCALE_FACTOR_DECIMAL)


def _copy_bin(bin_: DlmmBinParsed) -> DlmmBinParsed:
    return DlmmBinParsed(bin_.price, list(bin_.token_amounts))


def get_dlmm_price(
    decimals_x: int,
    decimals_y: int,
    usd_per_origin_units: Decimal,
    bins_by_account: Mapping[int, Sequence[DlmmBinParsed]],
    active_bin: tuple[int, int] | None,
    is_reverse: bool,
) -> Decimal | None:
    """USD price of the destination token from the active bin.

    Raises ``IndexError`` if the active bin lies outside its bin array.
    """
    if active_bin is None:
        return None
    bin_arr_ix, vec_ix = active_bin
    bin_arr = bins_by_account.get(bin_arr_ix)
    if bin_arr is None:
        return None
    bin_ = bin_arr[vec_ix]

    bin_price = bin_.get_price(is_reverse)
    if bin_price is None:
        return None
    exponent = decimals_y - decimals_x if is_reverse else decimals_x - decimals_y
    decimal_factor = checked_powi(10, exponent)
    if decimal_factor is None:
        return None
    bin_price_units = checked_mul(bin_price, decimal_factor)
    if bin_price_units is None:
        return None
    return checked_mul(usd_per_origin_units, bin_price_units)


def _impact(after: Decimal | None, pool_price: Decimal) -> Decimal | None:
    if after is None:
        return None
    ratio = checked_div(after, pool_price)
    if ratio is None:
        return None
    return checked_sub(ratio, 1)


def get_dlmm_liq_levels(
    bins_by_account: Mapping[int, Sequence[DlmmBinParsed]],
    active_binarray: tuple[int, int] | None,
    origin_tokens_per_sol: Decimal,
    is_reverse: bool,
    decimals_x: int,
    decimals_y: int,
) -> LiqLevels | None:
    """Simulate swaps of 1, 10 and 1000 SOL worth across bins and report price impact.

    The bins passed in are never modified.
    """
    started = time.perf_counter()
    if active_binarray is None:
        return None
    binarray_ix, bin_vec_ix = active_binarray
    bin_side_ix = 1 if is_reverse else 0
    step = -1 if is_reverse else 1
    decimal_factor = checked_powi(10, decimals_x if is_reverse else decimals_y)
    if decimal_factor is None:
        return None

    scaled = checked_mul(origin_tokens_per_sol, decimal_factor)
    if scaled is None:
        raise OverflowError("tokens per SOL overflowed when scaled to atoms")
    one_sol_tokens = scaled.to_integral_value(rounding=ROUND_FLOOR)
    ten_sol_tokens = checked_mul(one_sol_tokens, 10)
    thousand_sol_tokens = checked_mul(one_sol_tokens, 1000)
    if ten_sol_tokens is None or thousand_sol_tokens is None:
        return None

    curr_binarray = bins_by_account.get(binarray_ix)
    if curr_binarray is None or not 0 <= bin_vec_ix < len(curr_binarray):
        return None
    curr_bin = _copy_bin(curr_binarray[bin_vec_ix])
    pool_price = curr_bin.get_price(is_reverse)
    if pool_price is None:
        return None

    one_sol_price_after: Decimal | None = None
    ten_sol_price_after: Decimal | None = None
    thousand_sol_price_after: Decimal | None = None
    one_sol_price_set = ten_sol_price_set = thousand_sol_price_set = False

    zero = Decimal(0)
    while thousand_sol_tokens > 0:
        if one_sol_tokens > 0:
            amount_in = one_sol_tokens
        elif ten_sol_tokens > 0:
            amount_in = ten_sol_tokens
        else:
            amount_in = thousand_sol_tokens

        used = bin_swap(amount_in, curr_bin, is_reverse)
        if used is None:
            return None
        holdings = curr_bin.token_amounts[bin_side_ix]

        if used == 0 and holdings != 0:
            break

        one_sol_tokens = max(saturating_sub(one_sol_tokens, used), zero)
        ten_sol_tokens = max(saturating_sub(ten_sol_tokens, used), zero)
        thousand_sol_tokens = max(saturating_sub(thousand_sol_tokens, used), zero)

        if not one_sol_price_set and one_sol_tokens <= 0:
            one_sol_price_after = curr_bin.get_price(is_reverse)
            one_sol_price_set = True
        if not ten_sol_price_set and ten_sol_tokens <= 0:
            ten_sol_price_after = curr_bin.get_price(is_reverse)
            ten_sol_price_set = True
        if not thousand_sol_price_set and thousand_sol_tokens <= 0:
            thousand_sol_price_after = curr_bin.get_price(is_reverse)
            thousand_sol_price_set = True

        if holdings <= 0:
            if (bin_vec_ix == 0 and is_reverse) or bin_vec_ix >= LAST_BIN_INDEX:
                binarray_ix += step
                bin_vec_ix = LAST_BIN_INDEX if is_reverse else 0
                next_binarray = bins_by_account.get(binarray_ix)
                if next_binarray is None:
                    # Out of range or not enough information
                    break
                curr_binarray = next_binarray
            elif is_reverse:
                bin_vec_ix -= 1
            else:
                bin_vec_ix += 1

            if not 0 <= bin_vec_ix < len(curr_binarray):
                logger.error(
                    "bin index %d outside the [0, %d] bin range", bin_vec_ix, LAST_BIN_INDEX
                )
                break
            curr_bin = _copy_bin(curr_binarray[bin_vec_ix])

    levels = LiqLevels(
        one_sol_depth=_impact(one_sol_price_after, pool_price),
        ten_sol_depth=_impact(ten_sol_price_after, pool_price),
        thousand_sol_depth=_impact(thousand_sol_price_after, pool_price),
    )
    logger.debug("get_dlmm_liq_levels took %.6fs", time.perf_counter() - started)
    return levels


def bin_swap(amt_in: Decimal, bin: DlmmBinParsed, rev_dir: bool) -> Decimal | None:
    """Swap ``amt_in`` atoms through one bin, updating its holdings in place.

    Returns the amount of input consumed, or ``None`` if it cannot be computed.
    """
    bin_price = bin.price
    amt = _to_u128(amt_in.to_integral_value(rounding=ROUND_FLOOR))
    x_amt = _to_u128(bin.token_amounts[0])
    y_amt = _to_u128(bin.token_amounts[1])
    if amt is None or x_amt is None or y_amt is None or bin_price == 0:
        return None

    if rev_dir:
        # Swap in X, get Y
        out_side, in_side, available = 1, 0, y_amt
        max_in = ((y_amt << 64) & U128_MAX) // bin_price
        if max_in == 0:
            bin.token_amounts[out_side] = Decimal(0)
            return Decimal(0)
        actual_in = min(max_in, amt)
        product = actual_in * bin_price
        if product > U128_MAX:
            return None
        amount_out = product >> 64
    else:
        # Swap in Y, get X
        out_side, in_side, available = 0, 1, x_amt
        product = x_amt * bin_price
        if product > U128_MAX:
            return None
        max_in = product >> 64
        if max_in == 0:
            bin.token_amounts[out_side] = Decimal(0)
            return Decimal(0)
        actual_in = min(max_in, amt)
        amount_out = ((actual_in << 64) & U128_MAX) // bin_price

    if amount_out == 0:
        bin.token_amounts[out_side] = Decimal(0)
        return Decimal(0)

    actual_out = Decimal(min(amount_out, available))
    actual_in_decimal = Decimal(actual_in)
    new_out = checked_sub(bin.token_amounts[out_side], actual_out)
    new_in = checked_add(bin.token_amounts[in_side], actual_in_decimal)
    if new_out is None or new_in is None:
        raise OverflowError("bin holdings overflowed")
    bin.token_amounts[out_side] = new_out
    bin.token_amounts[in_side] = new_in
    return actual_in_decimal


def get_dlmm_liquidity(
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