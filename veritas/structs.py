"""Liquidity depth and amount values attached to pricing relations."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, ClassVar


def _dump(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


@dataclass(frozen=True)
class LiqLevels:
    """Price impact (fractional change) of swapping 1, 10 and 1000 SOL worth.

    ``None`` means infinite impact, which is never acceptable.
    """

    one_sol_depth: Decimal | None
    ten_sol_depth: Decimal | None
    thousand_sol_depth: Decimal | None

    ZERO: ClassVar[LiqLevels]
    INFINITE: ClassVar[LiqLevels]

    def acceptable(self, max_price_impact: Decimal) -> bool:
        """True if the 10 SOL impact is below ``max_price_impact``."""
        return self.ten_sol_depth is not None and self.ten_sol_depth < max_price_impact

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form, decimals as strings."""
        return {
            "one_sol_depth": _dump(self.one_sol_depth),
            "ten_sol_depth": _dump(self.ten_sol_depth),
            "thousand_sol_depth": _dump(self.thousand_sol_depth),
        }


LiqLevels.ZERO = LiqLevels(Decimal(0), Decimal(0), Decimal(0))
LiqLevels.INFINITE = LiqLevels(None, None, None)


@dataclass(frozen=True)
class LiqAmount:
    """A USD liquidity amount, or infinite liquidity (fixed relations)."""

    value: Decimal | None = None

    @classmethod
    def amount(cls, value: Decimal) -> LiqAmount:
        return cls(value)

    @classmethod
    def infinite(cls) -> LiqAmount:
        return cls(None)

    @property
    def is_infinite(self) -> bool:
        return self.value is None

    def to_dict(self) -> dict[str, str] | str:
        """Return the JSON-ready form: ``{"Amount": "<value>"}`` or ``"Inf"``."""
        if self.value is None:
            return "Inf"
        return {"Amount": str(self.value)}