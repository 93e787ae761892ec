# veritas

A library for working out token prices in US dollars from the pools and
contracts that tie tokens to one another. Each token is a `MintNode` in a
`MintPricingGraph`; each pool or contract is a `LiqRelation` held by a
`MintEdge`. Every relation can derive the price of its destination token
from the price of its origin, its liquidity in dollars, and its depth: the
price impact of swapping 1, 10 and 1000 SOL worth of tokens.

It has no dependencies outside the standard library.

## Installing

```
pip install .
pip install ".[test]"   # with pytest and pytest-asyncio
```

## Example

```python
from decimal import Decimal

from veritas.liq_relation import CpLp

pool = CpLp(amt_origin=Decimal("1000"), amt_dest=Decimal("10"), pool_id="pool-1")
price = pool.get_price(Decimal("1"), graph=None)            # Decimal("100")
liquidity = pool.get_liquidity(Decimal("1"), Decimal("100"))
levels = pool.get_liq_levels(Decimal("150"))
print(price, liquidity.to_dict(), levels.acceptable(Decimal("0.25")))
```

`reversed()` gives the same relation seen from the other side, so one pool
can sit on two edges, A → B and B → A.

## Modules

- `veritas.liq_relation` – the abstract `LiqRelation` and its kinds:
  `CpLp` (constant-product pools), `Fixed`, `FixedRef`, `Dlmm`, `Clmm` and
  `IndexLike`. Each has `get_price`, `get_liquidity`, `get_liq_levels`,
  `reversed` and `to_dict` (tagged by `"type"`). `Clmm.get_liq_levels` uses
  a simple threshold: zero impact when the pool holds more than 70 SOL worth
  of the origin token, otherwise `None`.
- `veritas.relations.cplp`, `veritas.relations.fixed`,
  `veritas.relations.dlmm`, `veritas.relations.clmm`,
  `veritas.relations.index_like` – the maths for each kind. `dlmm` walks bins
  (`DlmmBinParsed`, `bin_swap`); `clmm` converts between Q64.64 sqrt prices
  and ticks (`sqrt_price_from_tick_index`, `sqrt_price_to_tick_index`,
  `sqrt_price_to_decimal_price`) and offers `get_clmm_liq_levels`, a full
  tick-by-tick swap simulation over a map of `ClmmTickParsed`.
  `index_like` prices the Carrot basket from the prices of its `IndexPart`s
  on the graph; other markets have no price.
- `veritas.graph` – `MintPricingGraph` (`add_node`, `add_edge`,
  `node_weight`, `edge_weight`, `edge_endpoints`, `nodes`, `edges`,
  `incoming`, `outgoing`), `MintNode`, `MintEdge`, `EdgeIndexMapValue`,
  `PriceAndLiqInfo`, `USDPriceWithSource` with its `PriceSource`, and the
  lookups `get_price_by_node_idx` and `get_price_by_mint`.
- `veritas.structs` – `LiqLevels` (with `ZERO`, `INFINITE` and
  `acceptable`, which checks the 10 SOL impact) and `LiqAmount` (a dollar
  amount, or infinite for fixed relations).
- `veritas.decimal_math` – `Decimal` arithmetic bounded to a 96-bit mantissa
  and 28 decimal places: `checked_add`, `checked_sub`, `checked_mul`,
  `checked_div`, `checked_powi`, `saturating_add`, `saturating_sub`, plus
  `checked_pct_diff`, `is_significant_change` (more than 0.1%) and
  `clamp_to_scale` (truncate to 18 digits with at most 9 decimals).
- `veritas.u256` – 256-bit values as four 64-bit words: `from_words`,
  `to_words`, `shift_word_left`, `checked_shift_word_left`.
- `veritas.option_helper` – `OptionCell` with `replace_if`.
- `veritas.api_types` – `NodeInfo`, `NodeRelationInfo` and
  `RelationWithLiq`, each with `to_dict()` for JSON output.
- `veritas.decimal_cache` – `build_decimal_cache(fetch_rows, skip_preloads)`
  builds a mint → decimals map from `MintDecimals` rows returned by a
  callable you supply, seeded with USDC, USDT, wrapped SOL and STEP.
- `veritas.async_utils` – `await_fut_sync` runs an awaitable to completion
  on a fresh event loop; `spawn_task_as_thread` runs one on its own thread
  and returns a `TaskThread` whose `join()` gives its result.
- `veritas.constants` – well-known mints, oracle feed accounts and pricing
  thresholds.

## Errors

Most calculations that would overflow or divide by zero return `None`
instead of raising, so a relation that cannot be priced simply drops out.
A few cases raise: reversing a `Fixed` or `FixedRef` relation with a zero
ratio raises `ZeroDivisionError`; an overflowing basket sum in the Carrot
price raises `OverflowError`; malformed tick or bin strings given to
`ClmmTickParsed.from_strings` or `DlmmBinParsed.from_part` raise
`ValueError`.

## What this package does not do

It is a library of building blocks. It does not connect to a database or
load pools from one (`build_decimal_cache` only consumes the rows you hand
it), it does not listen for updates or run a service, it has no command
line, and it does not itself walk the graph to propagate prices from
oracle-priced nodes to the rest; that loop is left to the caller.

## Running the tests

```
pytest
```