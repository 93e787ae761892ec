"""Fixed-ratio relations, with and without reference-weighted liquidity."""

from __future__ import annotations

from decimal import Decimal

from veritas.decimal_math import checked_mul
from veritas.structs import LiqAmount, LiqLevels


def get_fixed_price(amt_per_parent: Decimal, usd_price_origin: Decimal) -> Decimal | None:
    """USD price of the destination: a fixed amount of the origin token."""
    return checked_mul(amt_per_parent, usd_price_origin)


def get_fixed_liq_levels() -> LiqLevels:
    """Fixed relations never move in price."""
    return LiqLevels.ZERO


def get_fixed_liquidity() -> LiqAmount:
    """Fixed relations always take precedence, so their liquidity is infinite."""
    return LiqAmount.infinite()


def get_fixed_ref_price(usd_price_origin: Decimal, amt_parent_per_dest: Decimal) -> Decimal | None:
    """USD price of the destination from the parent's price and the fixed ratio."""
    return checked_mul(usd_price_origin, amt_parent_per_dest)


def get_fixed_ref_liquidity(amt_parent: Decimal, price_source_usd: Decimal) -> LiqAmount | None:
    """Liquidity weighted by the USD value of the parent amount."""
    value = checked_mul(price_source_usd, amt_parent)
    if value is None:
        return None
    return LiqAmount.amount(value)