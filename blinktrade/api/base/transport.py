"""
ABOUTME: Base transport class providing the trading surface shared by REST and WebSocket clients
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Dict, Optional, Union

from blinktrade.auth.models import Credentials
from blinktrade.api.base.events import RequestHandle, TransportEventEmitter
from blinktrade.api.models.enums import BALANCE_EVENT, MessageType
from blinktrade.api.models.requests import (
    Deposit,
    ListWithdraws,
    Order,
    OrderClient,
    Pagination,
    Withdraw
)


class BaseTransport(ABC):
    """BlinkTrade 공통 트랜스포트 (잔고, 주문, 취소, 입출금)"""

    def __init__(self, credentials: Credentials):
        """
        초기화

        Args:
            credentials: 접속 정보 (생성 후 변경 불가)
        """
        self.credentials = credentials
        self.logger = self._setup_logger()

        # 트랜스포트 공유 이벤트 채널 (BALANCE, EXECUTION_REPORT:* 등)
        self.emitter = TransportEventEmitter()

    def _setup_logger(self) -> logging.Logger:
        """로거 설정"""
        logger = logging.getLogger(self.__class__.__name__)
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)
            logger.setLevel(logging.INFO)
        return logger

    @property
    def broker_id(self) -> int:
        return self.credentials.broker_id

    @abstractmethod
    def _request(self,
                 msg_type: MessageType,
                 data: Dict[str, Any],
                 **options) -> RequestHandle:
        """
        요청 전송 (트랜스포트별 구현 필요)

        Args:
            msg_type: 메시지 유형
            data: 요청 본문
            **options: 트랜스포트별 옵션 (client_order_id 등)

        Returns:
            요청 핸들
        """
        pass

    def _spawn(self, coro: Awaitable, emitter: Optional[TransportEventEmitter] = None) -> RequestHandle:
        """코루틴을 태스크로 실행하고 핸들로 감싼다"""
        task = asyncio.ensure_future(coro)
        return RequestHandle(task, emitter or self.emitter)

    def _on_result(self, msg_type: MessageType, result: Any) -> None:
        """응답 후처리 (잔고 응답은 BALANCE 이벤트로도 발행)"""
        if msg_type == MessageType.BALANCE:
            self._emit_safely(self.emitter, BALANCE_EVENT, result)

    def _emit_safely(self, emitter: TransportEventEmitter, event: str, *args: Any) -> bool:
        """
        이벤트 발행 (리스너 예외는 로그로 남기고 요청 처리에는 전파하지 않음)

        Returns:
            리스너 존재 여부
        """
        try:
            return emitter.emit(event, *args)
        except Exception as e:
            self.logger.error(f"Listener error on {event}: {e!r}")
            return False

    @staticmethod
    def _new_client_order_id() -> int:
        """클라이언트 주문 ID (ClOrdID) 생성"""
        return uuid.uuid4().int % 10 ** 9

    # ============= 공통 거래 API =============

    def balance(self) -> RequestHandle:
        """
        잔고 조회

        Events: `BALANCE`
        """
        return self._request(MessageType.BALANCE, {})

    def my_orders(self, pagination: Optional[Pagination] = None) -> RequestHandle:
        """미체결 주문 조회"""
        data = pagination.to_payload() if pagination else {}
        return self._request(MessageType.MY_ORDERS, data)

    def send_order(self, order: Order) -> RequestHandle:
        """
        주문 전송

        client_order_id가 없으면 생성해서 채운다. 결과에는 서버가 부여한
        order_id가 포함된다.
        """
        data = order.to_payload(self.broker_id)
        if data["client_order_id"] is None:
            data["client_order_id"] = self._new_client_order_id()

        self.logger.info(
            f"Sending order: side={data['side']} symbol={data['symbol']} "
            f"price={data['price']} qty={data['order_qty']} clOrdID={data['client_order_id']}"
        )
        return self._request(
            MessageType.NEW_ORDER,
            data,
            client_order_id=data["client_order_id"]
        )

    def cancel_order(self, param: Union[int, OrderClient]) -> RequestHandle:
        """
        주문 취소

        Args:
            param: 주문 ID 또는 OrderClient (client_id 포함 시 취소 보고와 연결)
        """
        if not isinstance(param, OrderClient):
            param = OrderClient(order_id=param)

        data = param.to_payload()
        self.logger.info(f"Cancelling order: {data}")
        return self._request(
            MessageType.CANCEL_ORDER,
            data,
            client_order_id=param.client_id
        )

    def list_withdraws(self, params: Optional[ListWithdraws] = None) -> RequestHandle:
        """출금 목록 조회"""
        params = params or ListWithdraws()
        return self._request(MessageType.LIST_WITHDRAWS, params.to_payload())

    def request_withdraw(self, withdraw: Withdraw) -> RequestHandle:
        """출금 요청"""
        data = withdraw.to_payload()
        self.logger.info(
            f"Requesting withdraw: method={data['method']} amount={data['amount']} currency={data['currency']}"
        )
        return self._request(MessageType.REQUEST_WITHDRAW, data)

    def request_deposit(self, deposit: Optional[Deposit] = None) -> RequestHandle:
        """입금 요청 (암호화폐는 입금 주소, 법정화폐는 입금 정보 반환)"""
        deposit = deposit or Deposit()
        return self._request(MessageType.REQUEST_DEPOSIT, deposit.to_payload(self.broker_id))

    def request_deposit_methods(self) -> RequestHandle:
        """법정화폐 입금 방식 코드 조회"""
        return self._request(MessageType.DEPOSIT_METHODS, {"broker_id": self.broker_id})
