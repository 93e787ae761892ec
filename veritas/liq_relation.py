"""Liquidity relations between two mints: pricing, liquidity and depth per kind."""

from __future__ import annotations

import abc
import copy
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any

from veritas.decimal_math import checked_div
from veritas.graph import MintPricingGraph
from veritas.relations.clmm import ClmmTickParsed, get_clmm_liq_levels_dumb, get_clmm_liquidity, get_clmm_price
from veritas.relations.cplp import get_cplp_liq_levels, get_cplp_liquidity, get_cplp_price
from veritas.relations.dlmm import (
    DlmmBinParsed,
    get_dlmm_liq_levels,
    get_dlmm_liquidity,
    get_dlmm_price,
)
from veritas.relations.fixed import (
    get_fixed_liq_levels,
    get_fixed_liquidity,
    get_fixed_price,
    get_fixed_ref_liquidity,
    get_fixed_ref_price,
)
from veritas.relations.index_like import IndexPart, get_index_like_price
from veritas.structs import LiqAmount, LiqLevels


def _reciprocal(value: Decimal) -> Decimal:
    if value == 0:
        raise ZeroDivisionError("cannot reverse a zero ratio")
    result = checked_div(1, value)
    if result is None:
        raise OverflowError(f"reciprocal of {value} overflowed")
    return result


class LiqRelation(abc.ABC):
    """A relation that can price its destination mint from its origin mint."""

    @abc.abstractmethod
    def get_price(self, usd_price_origin: Decimal, graph: MintPricingGraph) -> Decimal | None:
        """USD price of the destination, or ``None`` if it cannot be computed."""

    @abc.abstractmethod
    def get_liq_levels(self, tokens_origin_per_sol: Decimal) -> LiqLevels | None:
        """Price impact levels; ``tokens_origin_per_sol`` is in units of the origin."""

    @abc.abstractmethod
    def get_liquidity(
        self, price_source_usd: Decimal, price_dest_usd: Decimal
    ) -> LiqAmount | None:
        """USD liquidity, or ``None`` if it cannot be computed."""

    @abc.abstractmethod
    def reversed(self) -> LiqRelation:
        """The same relation seen from the other side."""

    @abc.abstractmethod
    def _fields(self) -> dict[str, Any]:
        ...

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form, tagged by ``type``."""
        return {"type": type(self).__name__, **self._fields()}


@dataclass(kw_only=True)
class CpLp(LiqRelation):
    """Constant-product pool; amounts in units."""

    amt_origin: Decimal
    amt_dest: Decimal
    pool_id: str

    def get_price(self, usd_price_origin, graph):
        return get_cplp_price(self.amt_origin, self.amt_dest, usd_price_origin)

    def get_liq_levels(self, tokens_origin_per_sol):
        return get_cplp_liq_levels(self.amt_origin, self.amt_dest, tokens_origin_per_sol)

    def get_liquidity(self, price_source_usd, price_dest_usd):
        return get_cplp_liquidity(self.amt_origin, self.amt_dest, price_source_usd, price_dest_usd)

    def reversed(self):
        return replace(self, amt_origin=self.amt_dest, amt_dest=self.amt_origin)

    def _fields(self):
        return {
            "amt_origin": str(self.amt_origin),
            "amt_dest": str(self.amt_dest),
            "pool_id": self.pool_id,
        }


@dataclass(kw_only=True)
class Fixed(LiqRelation):
    """Fixed ratio of parent to underlying."""

    amt_per_parent: Decimal

    def get_price(self, usd_price_origin, graph):
        return get_fixed_price(self.amt_per_parent, usd_price_origin)

    def get_liq_levels(self, tokens_origin_per_sol):
        return get_fixed_liq_levels()

    def get_liquidity(self, price_source_usd, price_dest_usd):
        return get_fixed_liquidity()

    def reversed(self):
        """Raises ``ZeroDivisionError`` for a zero ratio."""
        return Fixed(amt_per_parent=_reciprocal(self.amt_per_parent))

    def _fields(self):
        return {"amt_per_parent": str(self.amt_per_parent)}


@dataclass(kw_only=True)
class Dlmm(LiqRelation):
    """Bin-based pool; amounts in units, active bin as ``(bin_array, bin_in_array)``."""

    amt_origin: Decimal
    amt_dest: Decimal
    decimals_x: int
    decimals_y: int
    pool_id: str
    active_bin_account: tuple[int, int] | None = None
    bins_by_account: dict[int, list[DlmmBinParsed]] = field(default_factory=dict)
    is_reverse: bool = False

    def get_price(self, usd_price_origin, graph):
        return get_dlmm_price(
            self.decimals_x,
            self.decimals_y,
            usd_price_origin,
            self.bins_by_account,
            self.active_bin_account,
            self.is_reverse,
        )

    def get_liq_levels(self, tokens_origin_per_sol):
        return get_dlmm_liq_levels(
            self.bins_by_account,
            self.active_bin_account,
            tokens_origin_per_sol,
            self.is_reverse,
            self.decimals_x,
            self.decimals_y,
        )

    def get_liquidity(self, price_source_usd, price_dest_usd):
        return get_dlmm_liquidity(self.amt_origin, self.amt_dest, price_source_usd, price_dest_usd)

    def reversed(self):
        return replace(
            self,
            amt_origin=self.amt_dest,
            amt_dest=self.amt_origin,
            bins_by_account=copy.deepcopy(self.bins_by_account),
            is_reverse=not self.is_reverse,
        )

    def _fields(self):
        active = self.active_bin_account
        return {
            "amt_origin": str(self.amt_origin),
            "amt_dest": str(self.amt_dest),
            "decimals_x": self.decimals_x,
            "decimals_y": self.decimals_y,
            "active_bin_account": None if active is None else list(active),
            "is_reverse": self.is_reverse,
            "pool_id": self.pool_id,
        }


@dataclass(kw_only=True)
class Clmm(LiqRelation):
    """Concentrated-liquidity pool priced from its Q64.64 sqrt price."""

    amt_origin: Decimal
    amt_dest: Decimal
    decimals_a: int
    decimals_b: int
    pool_id: str
    ticks_by_account: dict[int, ClmmTickParsed] = field(default_factory=dict)
    current_price_x64: int | None = None
    current_tick_index: int | None = None
    tick_spacing: int | None = None
    is_reverse: bool = False

    def get_price(self, usd_price_origin, graph):
        return get_clmm_price(
            self.current_price_x64,
            usd_price_origin,
            self.decimals_a,
            self.decimals_b,
            self.is_reverse,
        )

    def get_liq_levels(self, tokens_origin_per_sol):
        return get_clmm_liq_levels_dumb(self.amt_origin, tokens_origin_per_sol)

    def get_liquidity(self, price_source_usd, price_dest_usd):
        return get_clmm_liquidity(self.amt_origin, self.amt_dest, price_source_usd, price_dest_usd)

    def reversed(self):
        return replace(
            self,
            amt_origin=self.amt_dest,
            amt_dest=self.amt_origin,
            ticks_by_account=dict(self.ticks_by_account),
            is_reverse=not self.is_reverse,
        )

    def _fields(self):
        return {
            "amt_origin": str(self.amt_origin),
            "amt_dest": str(self.amt_dest),
            "decimals_a": self.decimals_a,
            "decimals_b": self.decimals_b,
            "current_price_x64": self.current_price_x64,
            "current_tick_index": self.current_tick_index,
            "tick_spacing": self.tick_spacing,
            "is_reverse": self.is_reverse,
            "pool_id": self.pool_id,
        }


@dataclass(kw_only=True)
class IndexLike(LiqRelation):
    """A basket of mints pricing one parent mint."""

    market_id: str
    decimals_parent: int
    parts: list[IndexPart] = field(default_factory=list)

    def get_price(self, usd_price_origin, graph):
        return get_index_like_price(graph, self.market_id, self.parts, self.decimals_parent)

    def get_liq_levels(self, tokens_origin_per_sol):
        return LiqLevels.ZERO

    def get_liquidity(self, price_source_usd, price_dest_usd):
        return LiqAmount.infinite()

    def reversed(self):
        return replace(self, parts=list(self.parts))

    def _fields(self):
        return {
            "market_id": self.market_id,
            "decimals_parent": self.decimals_parent,
            "parts": [part.to_dict() for part in self.parts],
        }


@dataclass(kw_only=True)
class FixedRef(LiqRelation):
    """Fixed ratio whose liquidity is weighted by the parent's USD value."""

    amt_parent_per_dest: Decimal
    amt_parent: Decimal

    def get_price(self, usd_price_origin, graph):
        return get_fixed_ref_price(usd_price_origin, self.amt_parent_per_dest)

    def get_liq_levels(self, tokens_origin_per_sol):
        return LiqLevels.ZERO

    def get_liquidity(self, price_source_usd, price_dest_usd):
        return get_fixed_ref_liquidity(self.amt_parent, price_source_usd)

    def reversed(self):
        """Raises ``ZeroDivisionError`` for a zero ratio."""
        return FixedRef(
            amt_parent_per_dest=_reciprocal(self.amt_parent_per_dest),
            amt_parent=self.amt_parent,
        )

    def _fields(self):
        return {
            "amt_parent_per_dest": str(self.amt_parent_per_dest),
            "amt_parent": str(self.amt_parent),
        }