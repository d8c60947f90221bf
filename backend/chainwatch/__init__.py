"""Dual-chain transaction monitor: Ethereum block scanner, Bitcoin mempool poller, live stream."""

__version__ = "1.0.0"
