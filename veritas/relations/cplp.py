"""Constant-product liquidity pool pricing."""

from __future__ import annotations

from decimal import Decimal

from veritas.decimal_math import (
    checked_add,
    checked_div,
    checked_mul,
    checked_sub,
    saturating_add,
)
from veritas.structs import LiqAmount, LiqLevels


def get_cplp_price(
    amt_origin: Decimal, amt_dest: Decimal, usd_price_origin: Decimal
) -> Decimal | None:
    """USD price of the destination token from pool reserves (in units)."""
    ratio = checked_div(amt_origin, amt_dest)
    if ratio is None:
        return None
    return checked_mul(ratio, usd_price_origin)


def _impact_after(
    amt_a: Decimal, product: Decimal, tokens_in: Decimal, current_price: Decimal
) -> Decimal | None:
    post_a = checked_add(amt_a, tokens_in)
    if post_a is None:
        return None
    post_b = checked_div(product, post_a)
    if post_b is None:
        return None
    price = checked_div(post_a, post_b)
    if price is None:
        return None
    ratio = checked_div(price, current_price)
    if ratio is None:
        return None
    return checked_sub(ratio, 1)


def get_cplp_liq_levels(
    amt_a: Decimal, amt_b: Decimal, tokens_per_sol: Decimal
) -> LiqLevels | None:
    """Price impact of swapping 1, 10 and 1000 SOL worth of token A into the pool."""
    current_price_a = checked_div(amt_a, amt_b)
    if current_price_a is None:
        return None
    product = checked_mul(amt_a, amt_b)
    if product is None:
        return None
    tokens_ten = checked_mul(tokens_per_sol, 10)
    if tokens_ten is None:
        return None
    tokens_thousand = checked_mul(tokens_per_sol, 1000)
    if tokens_thousand is None:
        return None

    return LiqLevels(
        one_sol_depth=_impact_after(amt_a, product, tokens_per_sol, current_price_a),
        ten_sol_depth=_impact_after(amt_a, product, tokens_ten, current_price_a),
        thousand_sol_depth=_impact_after(amt_a, product, tokens_thousand, current_price_a),
    )


def get_cplp_liquidity(
    amt_a: Decimal, amt_b: Decimal, price_source_usd: Decimal, price_dest_usd: Decimal
) -> LiqAmount | None:
    """Total USD value held in the pool."""
    liq_origin = checked_mul(amt_a, price_source_usd)
    if liq_origin is None:
        return None
    liq_dest = checked_mul(amt_b, price_dest_usd)
    if liq_dest is None:
        return None
    return LiqAmount.amount(saturating_add(liq_origin, liq_dest))