"""Response shapes describing a node and its relations."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from veritas.liq_relation import LiqRelation
from veritas.structs import LiqAmount, LiqLevels


@dataclass
class RelationWithLiq:
    """A relation with its computed liquidity, depth and derived price."""

    relation: LiqRelation
    liquidity_amount: LiqAmount | None = None
    liquidity_levels: LiqLevels | None = None
    derived_price: Decimal | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "relation": self.relation.to_dict(),
            "liquidity_amount": None
            if self.liquidity_amount is None
            else self.liquidity_amount.to_dict(),
            "liquidity_levels": None
            if self.liquidity_levels is None
            else self.liquidity_levels.to_dict(),
            "derived_price": None if self.derived_price is None else str(self.derived_price),
        }


@dataclass
class NodeRelationInfo:
    """Relations between a node and one neighbouring mint."""

    mint: str
    incoming_relations: list[RelationWithLiq] = field(default_factory=list)
    outgoing_relations: list[RelationWithLiq] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mint": self.mint,
            "incoming_relations": [r.to_dict() for r in self.incoming_relations],
            "outgoing_relations": [r.to_dict() for r in self.outgoing_relations],
        }


@dataclass
class NodeInfo:
    """A mint, its calculated price and everything that relates to it."""

    mint: str
    calculated_price: Decimal | None = None
    non_vertex_relations: list[RelationWithLiq] = field(default_factory=list)
    neighbors: list[NodeRelationInfo] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mint": self.mint,
            "calculated_price": None
            if self.calculated_price is None
            else str(self.calculated_price),
            "non_vertex_relations": [r.to_dict() for r in self.non_vertex_relations],
            "neighbors": [n.to_dict() for n in self.neighbors],
        }