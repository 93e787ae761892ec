"""Token pricing through a graph of liquidity relations."""

__version__ = "1.0.0"