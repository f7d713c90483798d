"""ABOUTME: REST transport for public market data and signed trade requests"""

from .client import BlinkTradeRest

__all__ = ["BlinkTradeRest"]
