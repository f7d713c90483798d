"""
BlinkTrade 테스트 공용 픽스처
실제 서버 대신 메모리 WebSocket과 모의 거래소를 사용
"""

import asyncio
import itertools
import json
from typing import Any, Callable, Dict, List, Optional, Set
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio

from blinktrade.api.ws.client import BlinkTradeWS


class FakeWebSocket:
    """메모리 기반 WebSocket (websockets 연결 객체 대체)"""

    def __init__(self, responder: Optional[Callable[[Dict[str, Any]], List[Dict[str, Any]]]] = None):
        self.responder = responder
        self.sent: List[Dict[str, Any]] = []
        self.closed = False
        self._incoming: asyncio.Queue = asyncio.Queue()

    async def send(self, message: str):
        if self.closed:
            raise ConnectionError("socket closed")
        frame = json.loads(message)
        self.sent.append(frame)
        if self.responder is not None:
            for reply in self.responder(frame):
                self.push(reply)

    def push(self, frame: Dict[str, Any]):
        """서버 → 클라이언트 메시지 주입"""
        self._incoming.put_nowait(json.dumps(frame))

    def push_raw(self, raw: str):
        self._incoming.put_nowait(raw)

    async def close(self):
        self.closed = True
        self._incoming.put_nowait(None)

    def sent_of(self, msg_type: str) -> List[Dict[str, Any]]:
        return [frame for frame in self.sent if frame["type"] == msg_type]

    def __aiter__(self):
        return self

    async def __anext__(self):
        message = await self._incoming.get()
        if message is None:
            raise StopAsyncIteration
        return message


class FakeExchange:
    """요청 유형별로 응답/푸시를 만들어 주는 모의 거래소"""

    ACCOUNTS = {
        "trader": {"password": "secret", "second_factor": None, "user_id": 90000001},
        "guarded": {"password": "secret", "second_factor": "123456", "user_id": 90000002}
    }

    def __init__(self):
        self.hold: Set[str] = set()
        self.report_first = False
        self._order_ids = itertools.count(1459028830811)

    def __call__(self, frame: Dict[str, Any]) -> List[Dict[str, Any]]:
        msg_type = frame["type"]
        if msg_type in self.hold or msg_type.startswith("unsubscribe_"):
            return []

        handler = getattr(self, f"_on_{msg_type}", None)
        if handler is None:
            return [self.reply(frame, {"request": frame["data"]})]
        return handler(frame)

    @staticmethod
    def reply(frame: Dict[str, Any], data: Any) -> Dict[str, Any]:
        return {"type": frame["type"], "req_id": frame["req_id"], "data": data}

    @staticmethod
    def error(frame: Dict[str, Any], error: Any) -> Dict[str, Any]:
        return {"type": frame["type"], "req_id": frame["req_id"], "error": error}

    @staticmethod
    def execution_report(data: Dict[str, Any]) -> Dict[str, Any]:
        return {"event": "execution_report", "data": data}

    def _on_login(self, frame):
        data = frame["data"]
        account = self.ACCOUNTS.get(data.get("username"))
        if account is None or account["password"] != data.get("password"):
            return [self.error(frame, {"description": "Invalid username or password", "user_status": 3})]

        if account["second_factor"] and data.get("second_factor") != account["second_factor"]:
            return [self.error(frame, {
                "description": "Second factor required",
                "need_second_factor": True,
                "user_status": 3
            })]

        return [self.reply(frame, {
            "user_id": account["user_id"],
            "username": data["username"],
            "broker_id": data["broker_id"],
            "user_status": 1
        })]

    def _on_logout(self, frame):
        return [self.reply(frame, {"user_status": 2})]

    def _on_heartbeat(self, frame):
        return [self.reply(frame, {
            "test_req_id": frame["req_id"],
            "send_time": frame["data"]["send_time"]
        })]

    def _on_balance(self, frame):
        return [self.reply(frame, {"5": {"BTC": 150000000, "BTC_locked": 0, "BRL": 100000000000}})]

    def _on_new_order(self, frame):
        data = frame["data"]
        exec_type = "8" if data["price"] <= 0 else "0"
        report = self.execution_report({
            "order_id": next(self._order_ids),
            "client_order_id": data["client_order_id"],
            "symbol": data["symbol"],
            "side": data["side"],
            "price": data["price"],
            "order_qty": data["order_qty"],
            "exec_type": exec_type,
            "ord_status": exec_type
        })
        if exec_type == "8":
            return [report]

        response = self.reply(frame, {
            "order_id": report["data"]["order_id"],
            "client_order_id": data["client_order_id"],
            "ord_status": "0"
        })
        return [report, response] if self.report_first else [response, report]

    def _on_cancel_order(self, frame):
        data = frame["data"]
        report = self.execution_report({
            "order_id": data["order_id"],
            "client_order_id": data.get("client_order_id"),
            "exec_type": "4",
            "ord_status": "4"
        })
        return [self.reply(frame, {"order_id": data["order_id"], "ord_status": "4"}), report]

    def _on_subscribe_ticker(self, frame):
        return [self.reply(frame, {"symbols": frame["data"]["symbols"]})]

    def _on_subscribe_orderbook(self, frame):
        return [self.reply(frame, {"symbols": frame["data"]["symbols"]})]


@pytest.fixture
def drain():
    """이벤트 루프를 몇 차례 양보해 백그라운드 송수신을 처리"""
    async def _drain(times: int = 10):
        for _ in range(times):
            await asyncio.sleep(0)
    return _drain


@pytest.fixture
def exchange():
    return FakeExchange()


@pytest_asyncio.fixture
async def fake_ws(exchange):
    return FakeWebSocket(responder=exchange)


@pytest_asyncio.fixture
async def ws_client(fake_ws):
    """연결된 (로그인 전) WebSocket 클라이언트"""
    client = BlinkTradeWS(broker_id=5)
    with patch("blinktrade.api.ws.client.websockets.connect", new=AsyncMock(return_value=fake_ws)):
        await client.connect()
    yield client
    await client.disconnect()


@pytest_asyncio.fixture
async def logged_in(ws_client):
    """로그인 완료된 WebSocket 클라이언트"""
    await ws_client.login(username="trader", password="secret")
    return ws_client
