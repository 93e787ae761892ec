from decimal import Decimal

import pytest

from veritas.graph import MintNode, MintPricingGraph, USDPriceWithSource
from veritas.relations.index_like import (
    CARROT_MARKET_ID,
    IndexPart,
    get_carrot_price,
    get_index_like_price,
)


@pytest.fixture
def graph():
    g = MintPricingGraph()
    g.add_node(MintNode("a", usd_price=USDPriceWithSource.oracle(Decimal(2))))
    g.add_node(MintNode("b", usd_price=USDPriceWithSource.relation(Decimal(1))))
    g.add_node(MintNode("unpriced"))
    return g


def part_a(ratio=Decimal(1_000_000)):
    return IndexPart("a", 0, 6, ratio)


def part_b(ratio=Decimal(500_000_000)):
    return IndexPart("b", 1, 9, ratio)


def test_single_part_price(graph):
    assert get_carrot_price(graph, 0, [part_a()]) == Decimal(2)


def test_parts_are_additive(graph):
    a = get_carrot_price(graph, 6, [part_a()])
    b = get_carrot_price(graph, 6, [part_b()])
    both = get_carrot_price(graph, 6, [part_a(), part_b()])
    assert both == a + b


def test_parent_decimals_scale_price(graph):
    base = get_carrot_price(graph, 3, [part_a(), part_b()])
    scaled = get_carrot_price(graph, 4, [part_a(), part_b()])
    assert scaled == base * 10


def test_empty_parts_price_zero(graph):
    assert get_carrot_price(graph, 6, []) == 0


def test_unpriced_part_is_none(graph):
    assert get_carrot_price(graph, 6, [part_a(), IndexPart("unpriced", 2, 6, Decimal(1))]) is None


def test_missing_node_is_none(graph):
    assert get_carrot_price(graph, 6, [IndexPart("ghost", 99, 6, Decimal(1))]) is None


def test_sum_overflow_raises(graph):
    huge = IndexPart("b", 1, 0, Decimal(2**95))
    with pytest.raises(OverflowError):
        get_carrot_price(graph, 0, [huge, huge])


def test_index_like_dispatches_carrot(graph):
    parts = [part_a(), part_b()]
    assert get_index_like_price(graph, CARROT_MARKET_ID, parts, 6) == get_carrot_price(graph, 6, parts)


def test_index_like_unknown_market_is_none(graph):
    assert get_index_like_price(graph, "other-market", [part_a()], 6) is None


def test_index_part_to_dict():
    part = IndexPart("mint-x", 7, 8, Decimal("12.5"))
    assert part.to_dict() == {"mint": "mint-x", "node_idx": 7, "decimals": 8, "ratio": "12.5"}
    assert Decimal(part.to_dict()["ratio"]) == part.ratio