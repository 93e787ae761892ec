"""Well-known mints, oracle feeds and pricing thresholds."""

from decimal import Decimal

USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
USDT_MINT = "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"
WSOL_MINT = "So11111111111111111111111111111111111111112"
STEP_MINT = "StepAscQoEioFxxWGnh2sLBDFp9d8rvKz2Yp39iDpyT"
EMPTY_PUBKEY = "11111111111111111111111111111111"

SOL_FEED_ACCOUNT_ID = "7UVimffxr9ow1uXYxsr4LHAcV58mLzhmwaeKvJ1pjLiE"
USDC_FEED_ACCOUNT_ID = "Dpw1EAVrSB1ibxiDQyTAW6Zip3J4Btk2x4SgApQCeFbX"
USDT_FEED_ACCOUNT_ID = "HT2PLQBcG5EiCcNSaMHAjSgd9F98ecpATbk4Sk5oYuM"

# (oracle feed account, mint it prices)
ORACLE_FEED_MAP_PAIRS: tuple[tuple[str, str], ...] = (
    (USDC_FEED_ACCOUNT_ID, USDC_MINT),
    (SOL_FEED_ACCOUNT_ID, WSOL_MINT),
    (USDT_FEED_ACCOUNT_ID, USDT_MINT),
)

SWAP_LIMIT_EXEMPT_TOKENS: tuple[str, ...] = (STEP_MINT,)

POINT_ONE_PERCENT = Decimal("0.001")
MAX_SENSIBLE_PRICE_USD = Decimal(175_000)
MIN_SWAP_VOLUME_USD = Decimal(100)
MIN_EXEMPT_SWAP_VOLUME_USD = Decimal(5)