"""ABOUTME: BlinkTrade trading API client with REST and WebSocket transports"""

# 트랜스포트 (권장 사용)
from .rest.client import BlinkTradeRest
from .ws.client import BlinkTradeWS

# 베이스 클래스
from .base.transport import BaseTransport
from .base.events import RequestHandle, TransportEventEmitter

# 모델과 예외
from .models.enums import Side, WithdrawStatus, Currency, ExecType, SessionState
from .models.requests import (
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
from .base.exceptions import (
    BlinkTradeError,
    RequestRejected,
    SecondFactorRequired,
    InvalidCredentialsError,
    SessionError,
    NotConnectedError,
    NotAuthenticatedError,
    ConnectionLostError
)

__all__ = [
    # 트랜스포트
    "BlinkTradeRest",
    "BlinkTradeWS",
    
    # 베이스 클래스
    "BaseTransport",
    "RequestHandle",
    "TransportEventEmitter",
    
    # 모델
    "Side",
    "WithdrawStatus",
    "Currency",
    "ExecType",
    "SessionState",
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
    
    # 예외
    "BlinkTradeError",
    "RequestRejected",
    "SecondFactorRequired",
    "InvalidCredentialsError",
    "SessionError",
    "NotConnectedError",
    "NotAuthenticatedError",
    "ConnectionLostError"
]
