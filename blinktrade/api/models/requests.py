"""
ABOUTME: Request data models (orders, withdrawals, deposits, pagination, login) and satoshi helpers
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from blinktrade.auth.config import BlinkTradeConfig
from blinktrade.api.models.enums import Side, WithdrawStatus

SATOSHI = Decimal("100000000")


def to_satoshi(value: Union[int, float, str, Decimal]) -> int:
    """
    통화 단위 값을 satoshi 정수로 변환
    
    Args:
        value: 예) 1800, "0.5", Decimal("0.00000001")
        
    Returns:
        1e8 배율의 정수
    """
    return int((Decimal(str(value)) * SATOSHI).to_integral_value())


def to_integral(value: Union[int, float, str, Decimal]) -> int:
    """가장 가까운 정수로 반올림 (0.29 * 1e8 같은 부동소수 오차 보정)"""
    return int(Decimal(str(value)).to_integral_value())


def from_satoshi(value: int) -> Decimal:
    """satoshi 정수를 통화 단위 Decimal로 변환"""
    return Decimal(int(value)) / SATOSHI


def _compact(payload: Dict[str, Any]) -> Dict[str, Any]:
    """None 값 제거 (서버 기본값 사용)"""
    return {k: v for k, v in payload.items() if v is not None}


@dataclass
class Pagination:
    """목록 조회 페이지 정보 (서버가 검증하므로 그대로 전달)"""
    page: Optional[int] = None
    page_size: Optional[int] = None
    
    def to_payload(self) -> Dict[str, Any]:
        return _compact({"page": self.page, "page_size": self.page_size})


@dataclass
class Login:
    """로그인 정보"""
    username: str
    password: str
    second_factor: Optional[str] = None
    
    def to_payload(self, broker_id: int) -> Dict[str, Any]:
        return _compact({
            "username": self.username,
            "password": self.password,
            "second_factor": self.second_factor,
            "broker_id": broker_id
        })
    
    def __repr__(self) -> str:
        # 비밀번호/2차 인증값은 출력하지 않음
        return f"Login(username={self.username!r})"


@dataclass
class Order:
    """
    주문 정보
    
    price/amount는 satoshi 단위 정수 (예: 1800 * 1e8, 0.5 * 1e8).
    """
    side: Union[Side, str]
    price: int
    amount: int
    symbol: str
    client_order_id: Optional[int] = None
    
    def to_payload(self, broker_id: int) -> Dict[str, Any]:
        return {
            "client_order_id": self.client_order_id,
            "symbol": self.symbol,
            "side": Side.parse(self.side).value,
            "price": to_integral(self.price),
            "order_qty": to_integral(self.amount),
            "broker_id": broker_id
        }


@dataclass
class OrderClient:
    """취소 대상 주문 (client_id를 넘기면 취소 응답과 연결 가능)"""
    order_id: int
    client_id: Optional[int] = None
    
    def to_payload(self) -> Dict[str, Any]:
        return _compact({"order_id": self.order_id, "client_order_id": self.client_id})


@dataclass
class ListWithdraws:
    """출금 목록 조회 조건"""
    status_list: List[Union[WithdrawStatus, str, int]] = field(default_factory=list)
    pagination: Optional[Pagination] = None
    
    def to_payload(self) -> Dict[str, Any]:
        payload = {"status_list": [WithdrawStatus.parse(s).wire for s in self.status_list]}
        if self.pagination is not None:
            payload.update(self.pagination.to_payload())
        return payload


@dataclass
class Withdraw:
    """
    출금 요청
    
    data는 브로커/출금 방식별 필수 항목 (계좌 정보, 비트코인 주소 등)이며
    원격 서버에서만 검증한다.
    """
    data: Dict[str, Any]
    amount: int
    method: str = BlinkTradeConfig.DEFAULT_WITHDRAW_METHOD
    currency: str = BlinkTradeConfig.DEFAULT_CRYPTO_CURRENCY
    
    def to_payload(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "amount": to_integral(self.amount),
            "currency": self.currency,
            "data": dict(self.data)
        }


@dataclass
class Deposit:
    """입금 요청 (deposit_method_id는 request_deposit_methods로 확인)"""
    value: Optional[int] = None
    currency: str = BlinkTradeConfig.DEFAULT_CRYPTO_CURRENCY
    deposit_method_id: Optional[int] = None
    
    def to_payload(self, broker_id: int) -> Dict[str, Any]:
        return _compact({
            "currency": self.currency,
            "value": self.value,
            "deposit_method_id": self.deposit_method_id,
            "broker_id": broker_id
        })


@dataclass
class Trades:
    """공개 체결 내역 조회 옵션 (생략 시 서버 기본값)"""
    limit: Optional[int] = None
    since: Optional[str] = None
    
    def to_params(self) -> Dict[str, Any]:
        return _compact({"limit": self.limit, "since": self.since})
