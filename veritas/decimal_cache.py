"""A cache of token decimals keyed by mint."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable

from veritas.constants import STEP_MINT, USDC_MINT, USDT_MINT, WSOL_MINT

logger = logging.getLogger(__name__)

# K = mint, V = decimals
DecimalCache = dict[str, int]

DECIMALS_QUERY = """
        SELECT
            base58Encode(mint) AS mint_pk,
            finalizeAggregation(decimals) AS decimals
        FROM lookup_mint_info lmi FINAL
        WHERE decimals > 0
    """

_HARD_CODED_DECIMALS: tuple[tuple[str, int], ...] = (
    (USDC_MINT, 6),
    (USDT_MINT, 6),
    (WSOL_MINT, 9),
    (STEP_MINT, 9),
)


@dataclass(frozen=True)
class MintDecimals:
    """One row of the mint lookup: a mint and its decimals, if known."""

    mint_pk: str
    decimals: int | None = None


async def build_decimal_cache(
    fetch_rows: Callable[[str], Any], skip_preloads: bool
) -> DecimalCache:
    """Build the mint-to-decimals cache.

    ``fetch_rows`` is called with the lookup query and returns ``MintDecimals``
    rows as an iterable, an async iterable, or an awaitable of either. Rows
    without decimals are skipped. With ``skip_preloads`` nothing is fetched and
    the cache is empty.
    """
    if skip_preloads:
        return {}
    logger.info("Building decimal cache...")

    cache: DecimalCache = dict(_HARD_CODED_DECIMALS)

    rows = fetch_rows(DECIMALS_QUERY)
    if inspect.isawaitable(rows):
        rows = await rows

    def _store(row: MintDecimals) -> None:
        if row.decimals is not None:
            cache[row.mint_pk] = row.decimals

    if hasattr(rows, "__aiter__"):
        async for row in rows:
            _store(row)
    else:
        for row in rows:
            _store(row)

    logger.info("Decimal cache built with %d mints", len(cache))
    return cache