"""
BlinkTrade REST 클라이언트 테스트
공개 엔드포인트 URL, 서명 헤더, 오류 payload 전달 검증
"""

import asyncio
import json

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from blinktrade.api.base.exceptions import DataParsingError, InvalidCredentialsError, RequestRejected
from blinktrade.api.models.requests import Order, Pagination, Trades, to_satoshi
from blinktrade.api.rest.client import BlinkTradeRest
from blinktrade.auth.signer import sign_nonce


def mock_response(payload, status=200, text=None):
    """aiohttp 응답 컨텍스트 매니저 Mock (text 지정 시 JSON 파싱 실패)"""
    response = MagicMock()
    response.status = status
    if text is None:
        response.json = AsyncMock(return_value=payload)
    else:
        response.json = AsyncMock(side_effect=json.JSONDecodeError("Expecting value", text, 0))
        response.text = AsyncMock(return_value=text)

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)
    return context


class TestBlinkTradeRestInit:
    """REST 클라이언트 초기화 테스트"""

    def test_testnet_default(self):
        client = BlinkTradeRest()

        assert client.base_url == "https://api.testnet.blinktrade.com"
        assert client.broker_id == 11
        assert client.credentials.currency == "USD"

    def test_prod(self):
        client = BlinkTradeRest(prod=True)

        assert client.base_url == "https://api.blinktrade.com"

    def test_custom_url(self):
        """사용자 지정 URL이 환경 기본값보다 우선"""
        client = BlinkTradeRest(url="http://localhost:8080/", prod=True)

        assert client.base_url == "http://localhost:8080"

    def test_from_env(self):
        """환경변수에서 생성"""
        with patch.dict('os.environ', {
            'BLINKTRADE_API_KEY': 'env_key',
            'BLINKTRADE_API_SECRET': 'env_secret',
            'BLINKTRADE_BROKER_ID': '4',
            'BLINKTRADE_CURRENCY': 'BRL'
        }):
            client = BlinkTradeRest.from_env()

        assert client.credentials.key == "env_key"
        assert client.credentials.can_trade is True
        assert client.broker_id == 4
        assert client.credentials.currency == "BRL"


class TestPublicEndpoints:
    """공개 API 테스트"""

    def setup_method(self):
        """각 테스트 전 초기화"""
        self.client = BlinkTradeRest(prod=False, currency="BRL")

    @pytest.mark.asyncio
    async def test_ticker(self):
        """시세 조회"""
        # Given
        payload = {"pair": "BTCBRL", "high": 1910, "low": 1780, "last": 1800, "vol": 1.5}

        with patch('aiohttp.ClientSession.get') as mock_get:
            mock_get.return_value = mock_response(payload)

            # When
            result = await self.client.ticker()

            # Then
            assert result == payload
            args, kwargs = mock_get.call_args
            assert args[0] == "https://api.testnet.blinktrade.com/api/v1/BRL/ticker"
            assert kwargs["params"] == {"crypto_currency": "BTC"}

        await self.client.close()

    @pytest.mark.asyncio
    async def test_orderbook(self):
        """호가 조회"""
        payload = {"pair": "LTCBRL", "bids": [[1800, 10000000, 90000001]], "asks": []}

        with patch('aiohttp.ClientSession.get') as mock_get:
            mock_get.return_value = mock_response(payload)

            result = await self.client.orderbook("LTC")

            assert result["bids"][0][0] == 1800
            args, kwargs = mock_get.call_args
            assert args[0].endswith("/api/v1/BRL/orderbook")
            assert kwargs["params"] == {"crypto_currency": "LTC"}

        await self.client.close()

    @pytest.mark.asyncio
    async def test_trades_params(self):
        """생략한 옵션은 전송하지 않음"""
        with patch('aiohttp.ClientSession.get') as mock_get:
            mock_get.return_value = mock_response([])

            await self.client.trades()
            assert mock_get.call_args[1]["params"] == {}

            await self.client.trades(limit=100, since="1459000000")
            assert mock_get.call_args[1]["params"] == {"limit": 100, "since": "1459000000"}

            await self.client.trades(Trades(limit=5))
            assert mock_get.call_args[1]["params"] == {"limit": 5}

        await self.client.close()

    @pytest.mark.asyncio
    async def test_concurrent_calls_independent(self):
        """동시 호출 결과가 섞이지 않음"""
        def fake_get(url, params=None, headers=None):
            return mock_response({"pair": f"{params['crypto_currency']}BRL"})

        with patch('aiohttp.ClientSession.get', side_effect=fake_get):
            btc, ltc = await asyncio.gather(self.client.ticker("BTC"), self.client.ticker("LTC"))

        assert btc == {"pair": "BTCBRL"}
        assert ltc == {"pair": "LTCBRL"}

        await self.client.close()

    @pytest.mark.asyncio
    async def test_public_handle_has_own_emitter(self):
        """공개 호출 핸들은 각자 별도 에미터"""
        with patch('aiohttp.ClientSession.get') as mock_get:
            mock_get.return_value = mock_response({})

            first = self.client.ticker()
            second = self.client.ticker()
            await first
            await second

        assert first.emitter is not second.emitter
        assert first.emitter is not self.client.emitter

        await self.client.close()

    @pytest.mark.asyncio
    async def test_http_error(self):
        """HTTP 오류 상태는 payload 그대로 거부"""
        payload = {"status": "error", "description": "Invalid currency"}

        with patch('aiohttp.ClientSession.get') as mock_get:
            mock_get.return_value = mock_response(payload, status=404)

            with pytest.raises(RequestRejected) as exc_info:
                await self.client.ticker()

        assert exc_info.value.payload == payload
        assert str(exc_info.value) == "Invalid currency"

        await self.client.close()

    @pytest.mark.asyncio
    async def test_http_error_html_body(self):
        """JSON이 아닌 오류 본문 (게이트웨이 HTML)은 상태 코드와 함께 거부"""
        html = "<html><body>502 Bad Gateway</body></html>"

        with patch('aiohttp.ClientSession.get') as mock_get:
            mock_get.return_value = mock_response(None, status=502, text=html)

            with pytest.raises(RequestRejected) as exc_info:
                await self.client.ticker()

        assert exc_info.value.payload == {"status": 502, "description": html}

        await self.client.close()

    @pytest.mark.asyncio
    async def test_invalid_json_success_body(self):
        """정상 상태인데 JSON이 아니면 파싱 오류"""
        with patch('aiohttp.ClientSession.get') as mock_get:
            mock_get.return_value = mock_response(None, status=200, text="maintenance")

            with pytest.raises(DataParsingError):
                await self.client.orderbook()

        await self.client.close()


class TestTradeEndpoints:
    """Trade API 테스트"""

    def setup_method(self):
        """각 테스트 전 초기화"""
        self.client = BlinkTradeRest(key="test_api_key", secret="test_api_secret", broker_id=5)

    @pytest.mark.asyncio
    async def test_signed_request(self):
        """요청마다 서명 헤더 포함"""
        # Given
        payload = {"type": "balance", "req_id": 1, "data": {"5": {"BTC": 150000000}}}

        with patch('aiohttp.ClientSession.post') as mock_post:
            mock_post.return_value = mock_response(payload)

            # When
            result = await self.client.balance()

            # Then
            assert result == {"5": {"BTC": 150000000}}

            args, kwargs = mock_post.call_args
            assert args[0] == "https://api.testnet.blinktrade.com/tapi/v1/message"

            headers = kwargs["headers"]
            assert headers["APIKey"] == "test_api_key"
            assert headers["Signature"] == sign_nonce("test_api_secret", headers["Nonce"])
            assert headers["Content-Type"] == "application/json"

            assert kwargs["json"] == {"type": "balance", "req_id": 1, "data": {}}

        await self.client.close()

    @pytest.mark.asyncio
    async def test_nonce_increases(self):
        """nonce는 요청마다 증가"""
        with patch('aiohttp.ClientSession.post') as mock_post:
            mock_post.return_value = mock_response({"type": "my_orders", "req_id": 1, "data": {}})

            await self.client.my_orders()
            first = int(mock_post.call_args[1]["headers"]["Nonce"])
            await self.client.my_orders()
            second = int(mock_post.call_args[1]["headers"]["Nonce"])

        assert second > first

        await self.client.close()

    @pytest.mark.asyncio
    async def test_send_order(self):
        """주문 본문 구성"""
        response = {"type": "new_order", "req_id": 1,
                    "data": {"order_id": 1459028830811, "client_order_id": 42, "ord_status": "0"}}

        with patch('aiohttp.ClientSession.post') as mock_post:
            mock_post.return_value = mock_response(response)

            result = await self.client.send_order(Order(
                side="sell",
                price=to_satoshi(1800),
                amount=to_satoshi("0.5"),
                symbol="BTCBRL",
                client_order_id=42
            ))

            assert result["order_id"] == 1459028830811
            assert mock_post.call_args[1]["json"]["data"] == {
                "client_order_id": 42,
                "symbol": "BTCBRL",
                "side": "2",
                "price": 180000000000,
                "order_qty": 50000000,
                "broker_id": 5
            }

        await self.client.close()

    @pytest.mark.asyncio
    async def test_error_payload_passthrough(self):
        """서버 오류 payload를 변형 없이 전달"""
        error = {"description": "Insufficient funds", "code": 101, "balance": {"BTC": 0}}

        with patch('aiohttp.ClientSession.post') as mock_post:
            mock_post.return_value = mock_response({"type": "new_order", "req_id": 1, "error": error})

            with pytest.raises(RequestRejected) as exc_info:
                await self.client.send_order(Order(side="1", price=1, amount=1, symbol="BTCBRL"))

        assert exc_info.value.payload == error

        await self.client.close()

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        """API Key 없으면 전송하지 않고 거부"""
        client = BlinkTradeRest()

        with patch('aiohttp.ClientSession.post') as mock_post:
            with pytest.raises(InvalidCredentialsError):
                await client.balance()

            mock_post.assert_not_called()

    @pytest.mark.asyncio
    async def test_pagination_passed_through(self):
        """페이지 값은 검증 없이 그대로 전달"""
        with patch('aiohttp.ClientSession.post') as mock_post:
            mock_post.return_value = mock_response({"type": "my_orders", "req_id": 1, "data": {}})

            await self.client.my_orders(Pagination(page=0, page_size=-5))

            assert mock_post.call_args[1]["json"]["data"] == {"page": 0, "page_size": -5}

        await self.client.close()

    @pytest.mark.asyncio
    async def test_balance_event(self):
        """잔고 응답은 BALANCE 이벤트로도 전달"""
        received = []

        with patch('aiohttp.ClientSession.post') as mock_post:
            mock_post.return_value = mock_response({"type": "balance", "req_id": 1, "data": {"5": {"BRL": 1}}})

            await self.client.balance().on("BALANCE", received.append)

        assert received == [{"5": {"BRL": 1}}]

        await self.client.close()

    @pytest.mark.asyncio
    async def test_balance_listener_error_isolated(self):
        """BALANCE 리스너 예외가 잔고 요청 결과를 막지 않음"""
        def broken(data):
            raise RuntimeError("listener failed")

        with patch('aiohttp.ClientSession.post') as mock_post:
            mock_post.return_value = mock_response({"type": "balance", "req_id": 1, "data": {"5": {"BRL": 1}}})

            result = await self.client.balance().on("BALANCE", broken)

        assert result == {"5": {"BRL": 1}}

        await self.client.close()

    @pytest.mark.asyncio
    async def test_deposit_methods(self):
        with patch('aiohttp.ClientSession.post') as mock_post:
            mock_post.return_value = mock_response({"type": "deposit_methods", "req_id": 1, "data": []})

            await self.client.request_deposit_methods()

            assert mock_post.call_args[1]["json"] == {
                "type": "deposit_methods",
                "req_id": 1,
                "data": {"broker_id": 5}
            }

        await self.client.close()
