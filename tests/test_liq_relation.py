from decimal import Decimal

import pytest

from veritas.graph import MintNode, MintPricingGraph, USDPriceWithSource
from veritas.liq_relation import Clmm, CpLp, Dlmm, Fixed, FixedRef, IndexLike
from veritas.relations.clmm import get_clmm_price
from veritas.relations.cplp import get_cplp_liq_levels, get_cplp_price
from veritas.relations.dlmm import DlmmBinParsed, get_dlmm_price
from veritas.relations.fixed import get_fixed_ref_liquidity
from veritas.relations.index_like import CARROT_MARKET_ID, IndexPart, get_carrot_price
from veritas.structs import LiqLevels

SQRT_PRICE = 7283686479546985089


def _cplp():
    return CpLp(amt_origin=Decimal(100), amt_dest=Decimal(50), pool_id="pool-1")


def _dlmm():
    bins = {
        -1: [
            DlmmBinParsed(2077304150623053846, [Decimal(244853211743), Decimal(921247)]),
        ]
    }
    return Dlmm(
        amt_origin=Decimal(10),
        amt_dest=Decimal(20),
        decimals_x=9,
        decimals_y=6,
        pool_id="pool-2",
        active_bin_account=(-1, 0),
        bins_by_account=bins,
    )


def _clmm():
    return Clmm(
        amt_origin=Decimal(1000),
        amt_dest=Decimal(5),
        decimals_a=9,
        decimals_b=6,
        pool_id="pool-3",
        current_price_x64=SQRT_PRICE,
    )


def test_cplp_price_dispatches():
    graph = MintPricingGraph()
    price = _cplp().get_price(Decimal(2), graph)
    assert price == get_cplp_price(Decimal(100), Decimal(50), Decimal(2))


def test_cplp_liq_levels_dispatches():
    assert _cplp().get_liq_levels(Decimal(1)) == get_cplp_liq_levels(
        Decimal(100), Decimal(50), Decimal(1)
    )


def test_cplp_reversed_twice_is_identity():
    relation = _cplp()
    once = relation.reversed()
    assert once.amt_origin == relation.amt_dest
    assert once.amt_dest == relation.amt_origin
    assert once.reversed() == relation


def test_fixed_reversed_reciprocal():
    assert Fixed(amt_per_parent=Decimal(4)).reversed().amt_per_parent == Decimal("0.25")


def test_fixed_reversed_zero_raises():
    with pytest.raises(ZeroDivisionError):
        Fixed(amt_per_parent=Decimal(0)).reversed()


def test_fixed_liquidity_is_infinite_and_flat():
    relation = Fixed(amt_per_parent=Decimal(3))
    assert relation.get_liquidity(Decimal(1), Decimal(1)).is_infinite
    assert relation.get_liq_levels(Decimal(1)) == LiqLevels.ZERO
    assert relation.get_price(Decimal(2), MintPricingGraph()) == Decimal(6)


def test_fixed_ref_round_trip_and_liquidity():
    relation = FixedRef(amt_parent_per_dest=Decimal(2), amt_parent=Decimal(7))
    assert relation.reversed().reversed() == relation
    assert relation.get_liquidity(Decimal(3), Decimal(1)) == get_fixed_ref_liquidity(
        Decimal(7), Decimal(3)
    )


def test_dlmm_price_dispatches():
    relation = _dlmm()
    expected = get_dlmm_price(
        9, 6, Decimal(1), relation.bins_by_account, relation.active_bin_account, False
    )
    assert relation.get_price(Decimal(1), MintPricingGraph()) == expected


def test_dlmm_reversed_flips_direction_and_copies_bins():
    relation = _dlmm()
    flipped = relation.reversed()
    assert flipped.is_reverse is True
    assert flipped.amt_origin == relation.amt_dest
    flipped.bins_by_account[-1][0].token_amounts[0] = Decimal(0)
    assert relation.bins_by_account[-1][0].token_amounts[0] == Decimal(244853211743)


def test_dlmm_to_dict_skips_bins():
    data = _dlmm().to_dict()
    assert data["type"] == "Dlmm"
    assert data["active_bin_account"] == [-1, 0]
    assert "bins_by_account" not in data


def test_clmm_price_both_directions():
    relation = _clmm()
    graph = MintPricingGraph()
    usd = Decimal("1.0001")
    assert relation.get_price(usd, graph) == get_clmm_price(SQRT_PRICE, usd, 9, 6, False)
    assert relation.reversed().get_price(usd, graph) == get_clmm_price(SQRT_PRICE, usd, 9, 6, True)


def test_clmm_liq_levels_use_threshold():
    relation = _clmm()
    assert relation.get_liq_levels(Decimal(1)) == LiqLevels.ZERO
    assert relation.reversed().get_liq_levels(Decimal(1)) is None


def test_index_like_prices_from_graph():
    graph = MintPricingGraph()
    idx = graph.add_node(MintNode(mint="A", usd_price=USDPriceWithSource.oracle(Decimal(2))))
    parts = [IndexPart(mint="A", node_idx=idx, decimals=6, ratio=Decimal(500000))]
    relation = IndexLike(market_id=CARROT_MARKET_ID, decimals_parent=6, parts=parts)
    expected = get_carrot_price(graph, 6, parts)
    assert expected is not None
    assert relation.get_price(Decimal(1), graph) == expected


def test_index_like_unknown_market_and_constants():
    relation = IndexLike(market_id="unknown", decimals_parent=6, parts=[])
    assert relation.get_price(Decimal(1), MintPricingGraph()) is None
    assert relation.get_liquidity(Decimal(1), Decimal(1)).is_infinite
    assert relation.get_liq_levels(Decimal(1)) == LiqLevels.ZERO
    assert relation.reversed() == relation


def test_cplp_to_dict_tagged():
    assert _cplp().to_dict() == {
        "type": "CpLp",
        "amt_origin": "100",
        "amt_dest": "50",
        "pool_id": "pool-1",
    }