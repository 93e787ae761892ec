"""Relations whose price derives from a weighted basket of other mints."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable

from veritas.decimal_math import checked_add, checked_mul, checked_powi
from veritas.graph import MintPricingGraph, get_price_by_node_idx

CARROT_MARKET_ID = "CRTx1JouZhzSU6XytsE42UQraoGqiHgxabocVfARTy2s"


@dataclass(frozen=True)
class IndexPart:
    """One component of a basket: a mint, its node, decimals and atoms per parent."""

    mint: str
    node_idx: int
    decimals: int
    ratio: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "mint": self.mint,
            "node_idx": self.node_idx,
            "decimals": self.decimals,
            "ratio": str(self.ratio),
        }


def get_carrot_price(
    graph: MintPricingGraph, decimals_parent: int, parts: Iterable[IndexPart]
) -> Decimal | None:
    """USD price of one Carrot unit from the prices of its underlying parts.

    Returns ``None`` if a part is unpriced or a product overflows; raises
    ``OverflowError`` if the running sum overflows.
    """
    total = Decimal(0)
    for part in parts:
        usd_price = get_price_by_node_idx(graph, part.node_idx)
        if usd_price is None:
            return None
        decimal_factor = checked_powi(10, -part.decimals)
        if decimal_factor is None:
            return None
        scaled = checked_mul(part.ratio, decimal_factor)
        if scaled is None:
            return None
        value = checked_mul(scaled, usd_price)
        if value is None:
            return None
        new_total = checked_add(total, value)
        if new_total is None:
            raise OverflowError("index price sum overflowed")
        total = new_total

    parent_factor = checked_powi(10, decimals_parent)
    if parent_factor is None:
        return None
    return checked_mul(total, parent_factor)


def get_index_like_price(
    graph: MintPricingGraph, market_id: str, parts: Iterable[IndexPart], decimals_parent: int
) -> Decimal | None:
    """Price an index-like market; unknown markets have no price."""
    if market_id == CARROT_MARKET_ID:
        return get_carrot_price(graph, decimals_parent, parts)
    return None