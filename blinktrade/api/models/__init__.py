"""ABOUTME: Data models and enumerations for the BlinkTrade trading API"""

from .enums import (
    Side,
    WithdrawStatus,
    Currency,
    ExecType,
    SessionState,
    MessageType,
    PushEvent,
    BALANCE_EVENT,
    ERROR_EVENT,
    EXECUTION_REPORT_EVENTS
)
from .requests import (
    Pagination,
    Login,
    Order,
    OrderClient,
    ListWithdraws,
    Withdraw,
    Deposit,
    Trades,
    to_satoshi,
    from_satoshi
)

__all__ = [
    "Side",
    "WithdrawStatus",
    "Currency",
    "ExecType",
    "SessionState",
    "MessageType",
    "PushEvent",
    "BALANCE_EVENT",
    "ERROR_EVENT",
    "EXECUTION_REPORT_EVENTS",
    "Pagination",
    "Login",
    "Order",
    "OrderClient",
    "ListWithdraws",
    "Withdraw",
    "Deposit",
    "Trades",
    "to_satoshi",
    "from_satoshi"
]
