import pytest

from veritas.constants import STEP_MINT, USDC_MINT, USDT_MINT, WSOL_MINT
from veritas.decimal_cache import DECIMALS_QUERY, MintDecimals, build_decimal_cache

HARD_CODED = {USDC_MINT: 6, USDT_MINT: 6, WSOL_MINT: 9, STEP_MINT: 9}


def _sync_source(rows, seen=None):
    def fetch(query):
        if seen is not None:
            seen.append(query)
        return list(rows)

    return fetch


def _async_source(rows):
    async def gen():
        for row in rows:
            yield row

    def fetch(query):
        return gen()

    return fetch


@pytest.mark.asyncio
async def test_skip_preloads_returns_empty_without_fetching():
    calls = []

    def fetch(query):
        calls.append(query)
        return []

    cache = await build_decimal_cache(fetch, True)
    assert cache == {}
    assert calls == []


@pytest.mark.asyncio
async def test_hard_coded_values_present_with_no_rows():
    cache = await build_decimal_cache(_sync_source([]), False)
    assert cache == HARD_CODED


@pytest.mark.asyncio
async def test_rows_added_and_query_passed():
    seen = []
    rows = [MintDecimals("mintA", 5), MintDecimals("mintB", 8)]
    cache = await build_decimal_cache(_sync_source(rows, seen), False)
    assert cache["mintA"] == 5
    assert cache["mintB"] == 8
    assert seen == [DECIMALS_QUERY]
    assert "lookup_mint_info" in seen[0]


@pytest.mark.asyncio
async def test_rows_without_decimals_skipped():
    rows = [MintDecimals("mintA", None), MintDecimals("mintB", 3)]
    cache = await build_decimal_cache(_sync_source(rows), False)
    assert "mintA" not in cache
    assert cache["mintB"] == 3
    assert len(cache) == len(HARD_CODED) + 1


@pytest.mark.asyncio
async def test_rows_override_hard_coded_values():
    rows = [MintDecimals(USDC_MINT, 2)]
    cache = await build_decimal_cache(_sync_source(rows), False)
    assert cache[USDC_MINT] == 2
    assert cache[WSOL_MINT] == 9


@pytest.mark.asyncio
async def test_async_iterable_source():
    rows = [MintDecimals("mintC", 4), MintDecimals("mintD", None)]
    cache = await build_decimal_cache(_async_source(rows), False)
    assert cache["mintC"] == 4
    assert "mintD" not in cache


@pytest.mark.asyncio
async def test_awaitable_source():
    async def fetch(query):
        return [MintDecimals("mintE", 1)]

    cache = await build_decimal_cache(fetch, False)
    assert cache["mintE"] == 1


@pytest.mark.asyncio
async def test_fetch_error_propagates():
    def fetch(query):
        raise ConnectionError("down")

    with pytest.raises(ConnectionError, match="down"):
        await build_decimal_cache(fetch, False)