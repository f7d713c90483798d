"""
ABOUTME: Enumerations for orders, withdrawals, session state and wire message types
"""

from enum import Enum, IntEnum
from typing import Union


class Side(str, Enum):
    """주문 방향"""
    BUY = "1"
    SELL = "2"
    
    @classmethod
    def parse(cls, value: Union["Side", str, int]) -> "Side":
        """'1'/'2', 1/2, 'buy'/'sell' 모두 허용"""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        aliases = {"buy": cls.BUY, "sell": cls.SELL}
        if text in aliases:
            return aliases[text]
        return cls(text)


class WithdrawStatus(IntEnum):
    """출금 상태 (비트 플래그 형태의 숫자 코드)"""
    PENDING = 1
    IN_PROGRESS = 2
    COMPLETED = 4
    CANCELLED = 8
    
    @classmethod
    def parse(cls, value: Union["WithdrawStatus", str, int]) -> "WithdrawStatus":
        """'1' 같은 숫자 문자열도 허용"""
        return cls(int(value))
    
    @property
    def wire(self) -> str:
        """전송용 숫자 문자열"""
        return str(int(self))


class Currency(str, Enum):
    """공개 엔드포인트 통화"""
    USD = "USD"
    BRL = "BRL"
    VEF = "VEF"
    CLP = "CLP"
    VND = "VND"
    PKR = "PKR"


class ExecType(str, Enum):
    """체결 보고 유형"""
    NEW = "0"
    PARTIAL = "1"
    EXECUTION = "2"
    CANCELED = "4"
    REJECTED = "8"
    
    @property
    def event_name(self) -> str:
        """에미터 이벤트 이름 (예: EXECUTION_REPORT:NEW)"""
        return f"{EXECUTION_REPORT_PREFIX}:{self.name}"


class SessionState(Enum):
    """WebSocket 세션 상태"""
    DISCONNECTED = "disconnected"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    LOGGED_OUT = "logged_out"


class MessageType(str, Enum):
    """요청/응답 메시지 유형"""
    # 세션
    LOGIN = "login"
    LOGOUT = "logout"
    HEARTBEAT = "heartbeat"
    PROFILE = "profile"
    # 거래
    BALANCE = "balance"
    MY_ORDERS = "my_orders"
    NEW_ORDER = "new_order"
    CANCEL_ORDER = "cancel_order"
    TRADE_HISTORY = "trade_history"
    # 입출금
    LIST_WITHDRAWS = "list_withdraws"
    REQUEST_WITHDRAW = "request_withdraw"
    REQUEST_DEPOSIT = "request_deposit"
    DEPOSIT_METHODS = "deposit_methods"
    # 구독
    SUBSCRIBE_TICKER = "subscribe_ticker"
    UNSUBSCRIBE_TICKER = "unsubscribe_ticker"
    SUBSCRIBE_ORDERBOOK = "subscribe_orderbook"
    UNSUBSCRIBE_ORDERBOOK = "unsubscribe_orderbook"


class PushEvent(str, Enum):
    """서버 푸시 메시지 유형"""
    TICKER = "ticker"
    ORDERBOOK = "orderbook"
    BALANCE = "balance"
    EXECUTION_REPORT = "execution_report"


# 에미터 이벤트 이름
BALANCE_EVENT = "BALANCE"
ERROR_EVENT = "ERROR"
EXECUTION_REPORT_PREFIX = "EXECUTION_REPORT"
EXECUTION_REPORT_EVENTS = tuple(f"{EXECUTION_REPORT_PREFIX}:{e.name}" for e in ExecType)
