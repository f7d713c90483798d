"""ABOUTME: WebSocket transport with session lifecycle and push subscriptions"""

from .client import BlinkTradeWS
from .subscriptions import Subscription, SubscriptionKind, SubscriptionRegistry

__all__ = [
    "BlinkTradeWS",
    "Subscription",
    "SubscriptionKind",
    "SubscriptionRegistry"
]
