"""
ABOUTME: WebSocket transport managing one authenticated session, request multiplexing and push subscriptions
"""

import asyncio
import functools
import itertools
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Set, Union

import websockets

from blinktrade.auth.config import DEFAULT_BROKER_ID
from blinktrade.auth.models import Credentials
from blinktrade.api.base.events import RequestHandle, TransportEventEmitter
from blinktrade.api.base.exceptions import (
    BlinkTradeError,
    ConnectionLostError,
    DataParsingError,
    NotAuthenticatedError,
    NotConnectedError,
    RequestRejected,
    SecondFactorRequired,
    SessionError,
    rejection_from_payload
)
from blinktrade.api.base.transport import BaseTransport
from blinktrade.api.models.enums import (
    BALANCE_EVENT,
    ERROR_EVENT,
    EXECUTION_REPORT_EVENTS,
    ExecType,
    MessageType,
    PushEvent,
    SessionState
)
from blinktrade.api.models.requests import Login, Pagination
from blinktrade.api.protocol import Frame, build_request, encode, parse_frame
from blinktrade.api.ws.subscriptions import Subscription, SubscriptionKind, SubscriptionRegistry

SUBSCRIBE_TYPES = {MessageType.SUBSCRIBE_TICKER, MessageType.SUBSCRIBE_ORDERBOOK}

# 주문 요청을 완료시킬 수 있는 체결 보고 유형
_ORDER_SETTLING_EXEC_TYPES = {
    MessageType.NEW_ORDER: {ExecType.NEW, ExecType.PARTIAL, ExecType.EXECUTION, ExecType.REJECTED},
    MessageType.CANCEL_ORDER: {ExecType.CANCELED}
}


@dataclass
class PendingRequest:
    """응답 대기 중인 요청"""
    msg_type: MessageType
    future: asyncio.Future
    sent_at: float
    client_order_id: Optional[int] = None

    def settled_by(self, exec_type: ExecType, client_order_id: Any) -> bool:
        """체결 보고로 완료되는 요청인지 확인"""
        if self.client_order_id is None or client_order_id is None:
            return False
        if str(self.client_order_id) != str(client_order_id):
            return False
        return exec_type in _ORDER_SETTLING_EXEC_TYPES.get(self.msg_type, set())


class BlinkTradeWS(BaseTransport):
    """BlinkTrade WebSocket 클라이언트

    하나의 연결 위에서 여러 요청을 req_id로 구분해 동시에 처리한다.
    재연결 정책은 호출자가 결정한다 (heartbeat로 연결 상태 확인).
    """

    def __init__(self,
                 url: Optional[str] = None,
                 prod: bool = False,
                 broker_id: int = DEFAULT_BROKER_ID):
        """
        초기화

        Args:
            url: 사용자 지정 WebSocket URL
            prod: 실서버 여부 (기본 testnet)
            broker_id: 브로커 ID
        """
        super().__init__(Credentials(url=url, prod=prod, broker_id=broker_id))

        # WebSocket URL
        self.ws_url = self.credentials.endpoint("ws_url")

        # 연결 상태
        self.websocket = None
        self.is_connected = False
        self.state = SessionState.DISCONNECTED
        self.profile_data: Optional[Dict[str, Any]] = None

        # 구독 관리
        self.subscriptions = SubscriptionRegistry()

        # 응답 대기 요청 (req_id → PendingRequest)
        self._pending: Dict[int, PendingRequest] = {}
        self._req_ids = itertools.count(1)

        # 메시지 핸들러 태스크
        self._message_handler_task: Optional[asyncio.Task] = None
        self._send_tasks: Set[asyncio.Future] = set()

    # ============= 연결 관리 =============

    def connect(self) -> RequestHandle:
        """
        WebSocket 연결

        프레임 전송이 가능해지면 완료된다 (인증은 포함하지 않음).
        """
        return self._spawn(self._connect())

    async def _connect(self) -> Dict[str, Any]:
        if self.is_connected:
            self.logger.info("Already connected")
            return self.get_connection_status()

        self.logger.info(f"Connecting to WebSocket: {self.ws_url}")
        try:
            self.websocket = await websockets.connect(self.ws_url)
        except (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as e:
            self.logger.error(f"WebSocket connection failed: {e}")
            raise

        self.is_connected = True
        self._set_state(SessionState.UNAUTHENTICATED)

        # 메시지 수신 시작
        self._message_handler_task = asyncio.create_task(self._message_handler())

        self.logger.info(f"WebSocket connected: {self.ws_url}")
        return self.get_connection_status()

    async def disconnect(self):
        """WebSocket 연결 해제 (대기 요청 거부, 구독/리스너 해제)"""
        self.logger.info("Disconnecting WebSocket...")
        websocket = self.websocket

        # 메시지 핸들러 태스크 취소
        task = self._message_handler_task
        if task and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        # WebSocket 연결 종료
        if websocket is not None:
            await websocket.close()

        self._teardown(ConnectionLostError("WebSocket disconnected"))
        self.logger.info("WebSocket disconnected")

    def _teardown(self, exc: BlinkTradeError) -> None:
        """연결 종료 정리 (중복 호출 가능)"""
        pending, self._pending = self._pending, {}
        for request in pending.values():
            if not request.future.done():
                request.future.set_exception(exc)

        for subscription in self.subscriptions.clear():
            subscription.release()

        self.emitter.remove_all_listeners()

        self.websocket = None
        self.is_connected = False
        self.profile_data = None
        self._set_state(SessionState.DISCONNECTED)

    async def _message_handler(self):
        """메시지 수신 처리 루프"""
        self.logger.info("Message handler started")
        websocket = self.websocket
        reason = "WebSocket connection closed"

        try:
            async for message in websocket:
                try:
                    self._process_message(message)
                except Exception as e:
                    self.logger.error(f"Error processing message: {e}")
                    self._emit_safely(self.emitter, ERROR_EVENT, e, message)

        except websockets.exceptions.ConnectionClosed as e:
            self.logger.warning(f"WebSocket connection closed: {e}")
            reason = f"WebSocket connection closed: {e}"

        finally:
            self._teardown(ConnectionLostError(reason))

    def _set_state(self, state: SessionState) -> None:
        if state is not self.state:
            self.logger.debug(f"Session state: {self.state.value} -> {state.value}")
            self.state = state

    # ============= 요청 / 응답 =============

    def _request(self,
                 msg_type: MessageType,
                 data: Dict[str, Any],
                 emitter: Optional[TransportEventEmitter] = None,
                 client_order_id: Optional[int] = None,
                 requires_auth: bool = True,
                 **options) -> RequestHandle:
        loop = asyncio.get_running_loop()
        req_id = next(self._req_ids)
        handle = RequestHandle(loop.create_future(), emitter or self.emitter, req_id=req_id)

        try:
            self._ensure_state(msg_type, requires_auth)
        except SessionError as e:
            self.logger.warning(f"Rejecting {msg_type.value}: {e}")
            handle.future.set_exception(e)
            return handle

        self._pending[req_id] = PendingRequest(
            msg_type=msg_type,
            future=handle.future,
            sent_at=loop.time(),
            client_order_id=client_order_id
        )
        self._send_in_background(build_request(msg_type, req_id, data), req_id)
        return handle

    def _rejected(self, exc: BlinkTradeError) -> RequestHandle:
        """이미 거부된 핸들 생성"""
        future = asyncio.get_running_loop().create_future()
        future.set_exception(exc)
        return RequestHandle(future, self.emitter)

    def _ensure_state(self, msg_type: MessageType, requires_auth: bool) -> None:
        if not self.is_connected or self.websocket is None:
            raise NotConnectedError("WebSocket is not connected")
        if requires_auth and self.state is not SessionState.AUTHENTICATED:
            raise NotAuthenticatedError(
                f"{msg_type.value} requires an authenticated session (state={self.state.value})"
            )

    def _send_in_background(self, message: Dict[str, Any], req_id: Optional[int] = None) -> None:
        task = asyncio.ensure_future(self._send(message))
        self._send_tasks.add(task)
        task.add_done_callback(functools.partial(self._on_send_done, req_id))

    async def _send(self, message: Dict[str, Any]) -> None:
        websocket = self.websocket
        if websocket is None:
            raise NotConnectedError("WebSocket is not connected")

        self.logger.debug(f"Sending: {message['type']} req_id={message['req_id']}")
        await websocket.send(encode(message))

    def _on_send_done(self, req_id: Optional[int], task: asyncio.Future) -> None:
        self._send_tasks.discard(task)
        if task.cancelled():
            exc = ConnectionLostError("Send cancelled")
        else:
            exc = task.exception()
        if exc is None:
            return

        self.logger.error(f"Failed to send message (req_id={req_id}): {exc}")
        pending = self._pending.pop(req_id, None) if req_id is not None else None
        if pending is not None:
            self._fail(req_id, pending, exc)

    def _process_message(self, message: Union[str, bytes]) -> None:
        """메시지 처리 (응답 / 푸시 구분)"""
        frame = parse_frame(message)
        if frame.is_event:
            self._dispatch_event(frame)
        else:
            self._resolve(frame)

    def _resolve(self, frame: Frame) -> None:
        pending = self._pending.pop(frame.req_id, None)
        if pending is None:
            self.logger.debug(f"Unmatched response: type={frame.type} req_id={frame.req_id}")
            return
        if pending.future.done():
            return

        if frame.is_error:
            self.logger.error(f"API Error [{pending.msg_type.value}]: {frame.error}")
            self._fail(frame.req_id, pending, rejection_from_payload(frame.error))
            return

        try:
            result = self._on_success(pending, frame.data)
        except Exception as e:
            self.logger.error(f"Invalid response [{pending.msg_type.value}]: {e}")
            self._fail(frame.req_id, pending, e)
            return

        # Future 완료 후 이벤트 발행
        pending.future.set_result(result)
        self._on_result(pending.msg_type, result)

    def _on_success(self, pending: PendingRequest, data: Any) -> Any:
        """응답 성공 시 세션 상태 반영 후 결과 반환"""
        msg_type = pending.msg_type

        if msg_type == MessageType.LOGIN:
            self.profile_data = data
            self._set_state(SessionState.AUTHENTICATED)
            self.logger.info("Login successful")

        elif msg_type == MessageType.LOGOUT:
            self._release_subscriptions()
            self.profile_data = None
            self._set_state(SessionState.LOGGED_OUT)
            self.logger.info("Logged out")

        elif msg_type == MessageType.HEARTBEAT:
            if not isinstance(data, dict):
                raise DataParsingError(f"Heartbeat response must be an object: {data!r}")
            data = dict(data)
            loop = asyncio.get_running_loop()
            data["latency_ms"] = round((loop.time() - pending.sent_at) * 1000, 3)

        return data

    def _fail(self, req_id: int, pending: PendingRequest, exc: BaseException) -> None:
        """요청 실패 처리 (세션/구독 정리 후 Future 거부)"""
        if pending.msg_type == MessageType.LOGIN:
            self._set_state(SessionState.UNAUTHENTICATED)
            if isinstance(exc, SecondFactorRequired):
                self.logger.info("Login requires second factor")

        elif pending.msg_type in SUBSCRIBE_TYPES:
            subscription = self.subscriptions.pop(req_id)
            if subscription is not None:
                subscription.release()

        if not pending.future.done():
            pending.future.set_exception(exc)

    # ============= 푸시 이벤트 =============

    def _dispatch_event(self, frame: Frame) -> None:
        try:
            event = PushEvent(frame.event)
        except ValueError:
            self.logger.warning(f"Unknown push event: {frame.event}")
            return

        if event in (PushEvent.TICKER, PushEvent.ORDERBOOK):
            subscription = self.subscriptions.get(frame.req_id)
            if subscription is None or subscription.kind.push_event is not event:
                self.logger.debug(f"Dropping {event.value} for inactive subscription {frame.req_id}")
                return
            self._emit_safely(subscription.handle.emitter, frame.data["symbol"], frame.data)

        elif event is PushEvent.BALANCE:
            self._emit_safely(self.emitter, BALANCE_EVENT, frame.data)

        elif event is PushEvent.EXECUTION_REPORT:
            self._dispatch_execution_report(frame.data)

    def _dispatch_execution_report(self, data: Dict[str, Any]) -> None:
        exec_type = ExecType(str(data["exec_type"]))
        client_order_id = data.get("client_order_id")

        for req_id, pending in list(self._pending.items()):
            if not pending.settled_by(exec_type, client_order_id):
                continue
            del self._pending[req_id]
            if exec_type is ExecType.REJECTED:
                pending.future.set_exception(RequestRejected(data))
            else:
                pending.future.set_result(data)

        self.logger.debug(f"Execution report: {exec_type.name} order={data.get('order_id')}")
        self._emit_safely(self.emitter, exec_type.event_name, data)

    # ============= 세션 API =============

    def login(self,
              params: Optional[Login] = None,
              *,
              username: Optional[str] = None,
              password: Optional[str] = None,
              second_factor: Optional[str] = None) -> RequestHandle:
        """
        로그인

        2차 인증이 필요한 계정은 SecondFactorRequired로 거부되며,
        second_factor를 채워 다시 호출하면 된다.
        """
        if params is None:
            params = Login(username=username, password=password, second_factor=second_factor)

        if self.is_connected and self.state in (SessionState.AUTHENTICATING, SessionState.AUTHENTICATED):
            return self._rejected(SessionError(f"Cannot login in state {self.state.value}"))

        handle = self._request(
            MessageType.LOGIN,
            params.to_payload(self.broker_id),
            requires_auth=False
        )
        if not handle.done():
            self._set_state(SessionState.AUTHENTICATING)
            self.logger.info(f"Logging in as {params.username}")
        return handle

    def logout(self) -> RequestHandle:
        """로그아웃 (연결은 유지)"""
        return self._request(MessageType.LOGOUT, {"broker_id": self.broker_id})

    def heartbeat(self) -> RequestHandle:
        """지연 측정용 테스트 요청 (결과에 latency_ms 포함)"""
        data = {"send_time": int(time.time() * 1000)}
        return self._request(MessageType.HEARTBEAT, data, requires_auth=False)

    def profile(self) -> RequestHandle:
        """프로필 조회"""
        return self._request(MessageType.PROFILE, {})

    def trade_history(self, pagination: Optional[Pagination] = None) -> RequestHandle:
        """최근 24시간 체결 내역 조회"""
        data = pagination.to_payload() if pagination else {}
        return self._request(MessageType.TRADE_HISTORY, data)

    # ============= 구독 =============

    def subscribe_ticker(self,
                         symbols: Union[str, Iterable[str]],
                         callback: Optional[Callable] = None) -> RequestHandle:
        """
        실시간 시세 구독

        Args:
            symbols: 심볼 (단일 또는 리스트)
            callback: 심볼별 이벤트 리스너

        Returns:
            구독 핸들 (req_id로 구독 해제, 이벤트 이름은 심볼)
        """
        return self._subscribe(SubscriptionKind.TICKER, symbols, callback)

    def subscribe_orderbook(self,
                            symbols: Union[str, Iterable[str]],
                            callback: Optional[Callable] = None,
                            market_depth: int = 0) -> RequestHandle:
        """
        실시간 호가창 구독

        Args:
            symbols: 심볼 (단일 또는 리스트)
            callback: 심볼별 이벤트 리스너
            market_depth: 호가 단계 수 (0 = 전체)
        """
        return self._subscribe(
            SubscriptionKind.ORDERBOOK,
            symbols,
            callback,
            {"market_depth": market_depth}
        )

    def _subscribe(self,
                   kind: SubscriptionKind,
                   symbols: Union[str, Iterable[str]],
                   callback: Optional[Callable],
                   extra: Optional[Dict[str, Any]] = None) -> RequestHandle:
        # 단일 심볼을 리스트로 변환
        if isinstance(symbols, str):
            symbols = [symbols]
        symbols = tuple(symbols)

        data = {"symbols": list(symbols)}
        data.update(extra or {})

        # 구독 전용 에미터 (해제 시 다른 구독에 영향 없음)
        handle = self._request(kind.subscribe_type, data, emitter=TransportEventEmitter())
        if handle.done():
            return handle

        self.subscriptions.add(Subscription(
            req_id=handle.req_id,
            kind=kind,
            symbols=symbols,
            handle=handle,
            callback=callback
        ))
        if callback is not None:
            for symbol in symbols:
                handle.on(symbol, callback)

        self.logger.info(f"Subscribing {kind.value}: {list(symbols)} (req_id={handle.req_id})")
        return handle

    def unsubscribe_ticker(self, req_id: int) -> int:
        """시세 구독 해제 (응답을 기다리지 않음)"""
        return self._unsubscribe(SubscriptionKind.TICKER, req_id)

    def unsubscribe_orderbook(self, req_id: int) -> int:
        """호가창 구독 해제 (응답을 기다리지 않음)"""
        return self._unsubscribe(SubscriptionKind.ORDERBOOK, req_id)

    def _unsubscribe(self, kind: SubscriptionKind, req_id: int) -> int:
        subscription = self.subscriptions.get(req_id)
        if subscription is None or subscription.kind is not kind:
            self.logger.warning(f"No active {kind.value} subscription: {req_id}")
            return req_id

        self.subscriptions.pop(req_id)
        subscription.release()

        if self.is_connected:
            message = build_request(
                kind.unsubscribe_type,
                next(self._req_ids),
                {"subscription_id": req_id, "symbols": list(subscription.symbols)}
            )
            self._send_in_background(message)

        self.logger.info(f"Unsubscribed {kind.value}: {list(subscription.symbols)} (req_id={req_id})")
        return req_id

    def _release_subscriptions(self) -> None:
        for subscription in self.subscriptions.clear():
            subscription.release()

    def execution_report(self, callback: Optional[Callable] = None) -> RequestHandle:
        """
        체결 보고 리스너 등록

        Events:
            `EXECUTION_REPORT:NEW`, `EXECUTION_REPORT:PARTIAL`, `EXECUTION_REPORT:EXECUTION`,
            `EXECUTION_REPORT:CANCELED`, `EXECUTION_REPORT:REJECTED`

        Returns:
            즉시 완료되는 핸들 (결과는 이벤트 이름 목록)
        """
        future = asyncio.get_running_loop().create_future()
        future.set_result(list(EXECUTION_REPORT_EVENTS))
        handle = RequestHandle(future, self.emitter)

        if callback is not None:
            for event_name in EXECUTION_REPORT_EVENTS:
                handle.on(event_name, callback)
        return handle

    # ============= 상태 조회 =============

    def get_subscriptions(self) -> Dict[int, Dict]:
        """현재 구독 목록 반환"""
        return self.subscriptions.snapshot()

    def get_connection_status(self) -> Dict[str, Any]:
        """연결 상태 반환"""
        return {
            "is_connected": self.is_connected,
            "state": self.state.value,
            "subscription_count": len(self.subscriptions),
            "pending_requests": len(self._pending),
            "ws_url": self.ws_url
        }

    async def __aenter__(self):
        """비동기 컨텍스트 매니저 진입"""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """비동기 컨텍스트 매니저 종료"""
        await self.disconnect()
