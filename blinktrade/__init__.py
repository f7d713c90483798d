"""ABOUTME: BlinkTrade SDK - REST and WebSocket clients for the BlinkTrade exchange API"""

from .api import (
    BlinkTradeRest,
    BlinkTradeWS,
    RequestHandle,
    Side,
    WithdrawStatus,
    Pagination,
    Login,
    Order,
    OrderClient,
    ListWithdraws,
    Withdraw,
    Deposit,
    Trades,
    to_satoshi,
    from_satoshi,
    BlinkTradeError,
    RequestRejected,
    SecondFactorRequired
)
from .auth.models import Credentials, RestCredentials

__version__ = "1.0.0"

__all__ = [
    "BlinkTradeRest",
    "BlinkTradeWS",
    "RequestHandle",
    "Side",
    "WithdrawStatus",
    "Pagination",
    "Login",
    "Order",
    "OrderClient",
    "ListWithdraws",
    "Withdraw",
    "Deposit",
    "Trades",
    "to_satoshi",
    "from_satoshi",
    "BlinkTradeError",
    "RequestRejected",
    "SecondFactorRequired",
    "Credentials",
    "RestCredentials"
]
