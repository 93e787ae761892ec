"""The mint pricing graph: nodes are mints, edges are liquidity relations."""

from __future__ import annotations

import copy
import enum
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterator

from veritas.structs import LiqAmount, LiqLevels

# K = mint, V = node index
MintIndicesMap = dict[str, int]
# K = market discriminant, V = up to two edges (A -> B and B -> A)
EdgeIndicesMap = dict[str, "EdgeIndexMapValue"]
# K = mint, V = oracle USD price
OraclePriceCache = dict[str, Decimal]


class PriceSource(enum.Enum):
    """Where a node's USD price came from."""

    ORACLE = "Oracle"
    RELATION = "Relation"


@dataclass(frozen=True)
class USDPriceWithSource:
    """A USD price tagged with its source."""

    source: PriceSource
    price: Decimal

    @classmethod
    def oracle(cls, price: Decimal) -> USDPriceWithSource:
        return cls(PriceSource.ORACLE, price)

    @classmethod
    def relation(cls, price: Decimal) -> USDPriceWithSource:
        return cls(PriceSource.RELATION, price)

    def extract_price(self) -> Decimal:
        return self.price

    def is_oracle(self) -> bool:
        return self.source is PriceSource.ORACLE


@dataclass
class PriceAndLiqInfo:
    """Cached price, liquidity and depth of one edge."""

    price: Decimal | None = None
    liq: LiqAmount | None = None
    liq_levels: LiqLevels | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "price": None if self.price is None else str(self.price),
            "liq": None if self.liq is None else self.liq.to_dict(),
            "liq_levels": None if self.liq_levels is None else self.liq_levels.to_dict(),
        }


@dataclass
class MintNode:
    """A mint on the graph.

    ``cached_fixed_relation`` holds the index of a ``Fixed`` edge pointing to
    this node, which takes precedence over every other relation.
    ``non_vertex_relations`` holds relations that cannot be expressed as a
    single edge (e.g. index-like baskets), keyed by market id.
    """

    mint: str
    dirty: bool = False
    usd_price: USDPriceWithSource | None = None
    cached_fixed_relation: int | None = None
    non_vertex_relations: dict[str, Any] = field(default_factory=dict)

    def clone(self) -> MintNode:
        """Return an independent copy, relations included."""
        return MintNode(
            mint=self.mint,
            dirty=self.dirty,
            usd_price=self.usd_price,
            cached_fixed_relation=self.cached_fixed_relation,
            non_vertex_relations={
                key: copy.deepcopy(relation)
                for key, relation in self.non_vertex_relations.items()
            },
        )


def _naive_now() -> datetime:
    return datetime.now().replace(microsecond=0)


@dataclass
class MintEdge:
    """A directed liquidity relation between two mints."""

    id: str
    inner_relation: Any
    last_updated: datetime = field(default_factory=_naive_now)
    dirty: bool = False
    cached_price_and_liq: PriceAndLiqInfo | None = None

    def clone(self) -> MintEdge:
        """Return an independent copy, relation included."""
        return MintEdge(
            id=self.id,
            inner_relation=copy.deepcopy(self.inner_relation),
            last_updated=self.last_updated,
            dirty=self.dirty,
            cached_price_and_liq=copy.deepcopy(self.cached_price_and_liq),
        )


@dataclass
class EdgeIndexMapValue:
    """The forward and reverse edge of one market."""

    normal: int | None = None
    reverse: int | None = None


class MintPricingGraph:
    """A directed graph of ``MintNode`` weights joined by ``MintEdge`` weights."""

    def __init__(self) -> None:
        self._nodes: list[MintNode] = []
        self._edges: list[tuple[int, int, MintEdge]] = []

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def add_node(self, node: MintNode) -> int:
        """Add a node and return its index."""
        self._nodes.append(node)
        return len(self._nodes) - 1

    def add_edge(self, source: int, target: int, edge: MintEdge) -> int:
        """Add a directed edge and return its index.

        Raises ``IndexError`` if either endpoint does not exist.
        """
        for index in (source, target):
            if not 0 <= index < len(self._nodes):
                raise IndexError(f"node index {index} out of bounds")
        self._edges.append((source, target, edge))
        return len(self._edges) - 1

    def node_weight(self, index: int) -> MintNode | None:
        if 0 <= index < len(self._nodes):
            return self._nodes[index]
        return None

    def edge_weight(self, index: int) -> MintEdge | None:
        if 0 <= index < len(self._edges):
            return self._edges[index][2]
        return None

    def edge_endpoints(self, index: int) -> tuple[int, int] | None:
        if 0 <= index < len(self._edges):
            source, target, _ = self._edges[index]
            return source, target
        return None

    def nodes(self) -> Iterator[tuple[int, MintNode]]:
        yield from enumerate(self._nodes)

    def edges(self) -> Iterator[tuple[int, int, int, MintEdge]]:
        """Yield ``(edge_index, source, target, edge)``."""
        for index, (source, target, edge) in enumerate(self._edges):
            yield index, source, target, edge

    def incoming(self, node: int) -> Iterator[tuple[int, int, MintEdge]]:
        """Yield ``(edge_index, source, edge)`` for edges ending at ``node``."""
        for index, source, target, edge in self.edges():
            if target == node:
                yield index, source, edge

    def outgoing(self, node: int) -> Iterator[tuple[int, int, MintEdge]]:
        """Yield ``(edge_index, target, edge)`` for edges starting at ``node``."""
        for index, source, target, edge in self.edges():
            if source == node:
                yield index, target, edge


def get_price_by_node_idx(graph: MintPricingGraph, node: int) -> Decimal | None:
    """USD price of the node at ``node``, or ``None`` if absent or unpriced."""
    weight = graph.node_weight(node)
    if weight is None or weight.usd_price is None:
        return None
    return weight.usd_price.extract_price()


def get_price_by_mint(
    graph: MintPricingGraph, mint_indices: MintIndicesMap, mint: str
) -> Decimal | None:
    """USD price of ``mint``, or ``None`` if unknown or unpriced."""
    index = mint_indices.get(mint)
    if index is None:
        return None
    return get_price_by_node_idx(graph, index)