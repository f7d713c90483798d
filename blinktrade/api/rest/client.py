"""
ABOUTME: Stateless REST transport for public market data and signed trade requests
"""

import itertools
from typing import Any, Dict, Optional

import aiohttp

from blinktrade.auth.config import BlinkTradeConfig, COMMON_HEADERS, DEFAULT_BROKER_ID
from blinktrade.auth.models import RestCredentials
from blinktrade.auth.signer import NonceGenerator, sign_nonce
from blinktrade.api.base.events import RequestHandle, TransportEventEmitter
from blinktrade.api.base.exceptions import (
    DataParsingError,
    InvalidCredentialsError,
    RequestRejected,
    rejection_from_payload
)
from blinktrade.api.base.transport import BaseTransport
from blinktrade.api.models.enums import MessageType
from blinktrade.api.models.requests import Trades
from blinktrade.api.protocol import build_request, parse_frame


class BlinkTradeRest(BaseTransport):
    """BlinkTrade REST 클라이언트

    요청마다 새로 HTTP 왕복을 수행한다 (재시도/캐시 없음).
    """

    def __init__(self,
                 key: str = "",
                 secret: str = "",
                 url: Optional[str] = None,
                 prod: bool = False,
                 broker_id: int = DEFAULT_BROKER_ID,
                 currency: str = BlinkTradeConfig.DEFAULT_CURRENCY,
                 credentials: Optional[RestCredentials] = None):
        """
        초기화

        Args:
            key: API Key (Trade 엔드포인트에만 필요)
            secret: API Secret (Trade 엔드포인트에만 필요)
            url: 사용자 지정 REST base URL
            prod: 실서버 여부 (기본 testnet)
            broker_id: 브로커 ID
            currency: 공개 엔드포인트 통화
            credentials: 이미 구성된 인증 정보 (지정 시 나머지 인자 무시)
        """
        if credentials is None:
            credentials = RestCredentials(
                url=url,
                prod=prod,
                broker_id=broker_id,
                key=key,
                secret=secret,
                currency=currency
            )
        super().__init__(credentials)

        # API Base URL
        self.base_url = credentials.endpoint("rest_url").rstrip("/")

        # 세션 관리
        self._session: Optional[aiohttp.ClientSession] = None

        self._nonces = NonceGenerator()
        self._req_ids = itertools.count(1)

        self.logger.info(
            f"REST transport initialized: {self.base_url} "
            f"(env={credentials.env}, broker={credentials.broker_id}, key={credentials.key_preview})"
        )

    @classmethod
    def from_env(cls) -> "BlinkTradeRest":
        """환경변수에서 인증정보를 읽어 생성"""
        return cls(credentials=RestCredentials.from_env())

    async def _get_session(self) -> aiohttp.ClientSession:
        """HTTP 세션 가져오기 (재사용)"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self):
        """세션 종료"""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        """비동기 컨텍스트 매니저 진입"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """비동기 컨텍스트 매니저 종료"""
        await self.close()

    # ============= 공개 API =============

    def ticker(self, crypto_currency: str = BlinkTradeConfig.DEFAULT_CRYPTO_CURRENCY) -> RequestHandle:
        """현재 거래소 상태 요약 조회"""
        return self._spawn(
            self._public_get("ticker", {"crypto_currency": crypto_currency}),
            TransportEventEmitter()
        )

    def trades(self,
               trades: Optional[Trades] = None,
               limit: Optional[int] = None,
               since: Optional[str] = None) -> RequestHandle:
        """
        최근 체결 내역 조회

        Args:
            trades: 조회 옵션 (limit/since 대신 사용 가능)
            limit: 최대 건수 (서버 기본 1000)
            since: 조회 시작 시각 (Unix time)
        """
        trades = trades or Trades(limit=limit, since=since)
        return self._spawn(self._public_get("trades", trades.to_params()), TransportEventEmitter())

    def orderbook(self, crypto_currency: str = BlinkTradeConfig.DEFAULT_CRYPTO_CURRENCY) -> RequestHandle:
        """호가창 조회"""
        return self._spawn(
            self._public_get("orderbook", {"crypto_currency": crypto_currency}),
            TransportEventEmitter()
        )

    async def _public_get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        공개 엔드포인트 GET 요청

        Args:
            endpoint: ticker / trades / orderbook
            params: Query parameters (None 값은 제외)

        Returns:
            응답 본문
        """
        url = f"{self.base_url}{BlinkTradeConfig.PUBLIC_API_PATH}/{self.credentials.currency}/{endpoint}"
        params = {k: v for k, v in (params or {}).items() if v is not None}

        self.logger.debug(f"Request: GET {url} params={params}")

        session = await self._get_session()
        async with session.get(url, params=params, headers={"Accept": "application/json"}) as response:
            status = response.status
            result = await self._read_body(response)

        return self._handle_response(status, result)

    # ============= Trade API =============

    def _request(self, msg_type: MessageType, data: Dict[str, Any], **options) -> RequestHandle:
        return self._spawn(self._trade_request(msg_type, data))

    def _signed_headers(self) -> Dict[str, str]:
        """요청별 서명 헤더 구성"""
        nonce = self._nonces.next()
        headers = dict(COMMON_HEADERS)
        headers.update({
            "APIKey": self.credentials.key,
            "Nonce": nonce,
            "Signature": sign_nonce(self.credentials.secret, nonce)
        })
        return headers

    async def _trade_request(self, msg_type: MessageType, data: Dict[str, Any]) -> Any:
        """
        서명된 Trade 요청 실행

        Raises:
            InvalidCredentialsError: API Key/Secret 누락
            RequestRejected: 서버 오류 응답
        """
        if not self.credentials.can_trade:
            raise InvalidCredentialsError("API key and secret are required for trade requests")

        req_id = next(self._req_ids)
        url = f"{self.base_url}{BlinkTradeConfig.TRADE_API_PATH}"
        body = build_request(msg_type, req_id, data)

        self.logger.debug(f"Request: POST {url} type={msg_type.value} req_id={req_id}")

        session = await self._get_session()
        async with session.post(url, headers=self._signed_headers(), json=body) as response:
            status = response.status
            result = await self._read_body(response)

        payload = self._handle_response(status, result)
        frame = parse_frame(payload)
        if frame.is_error:
            self.logger.error(f"API Error [{msg_type.value}]: {frame.error}")
            raise rejection_from_payload(frame.error)

        self._on_result(msg_type, frame.data)
        return frame.data

    async def _read_body(self, response: aiohttp.ClientResponse) -> Any:
        """
        응답 본문 읽기

        오류 상태의 본문이 JSON이 아니면 (프록시 HTML 등) 텍스트로 반환한다.

        Raises:
            DataParsingError: 정상 상태인데 JSON이 아닌 경우
        """
        try:
            return await response.json(content_type=None)
        except ValueError as e:
            if response.status >= 400:
                return await response.text()
            raise DataParsingError(f"Invalid JSON response (status={response.status}): {e}") from e

    def _handle_response(self, status: int, result: Any) -> Any:
        """
        HTTP 응답 처리 및 에러 체크

        Raises:
            RequestRejected: HTTP 오류 상태 (서버 payload 그대로 보관)
        """
        if status >= 400:
            payload = result if isinstance(result, dict) else {"status": status, "description": result}
            self.logger.error(f"HTTP Error [{status}]: {payload}")
            raise RequestRejected(payload)
        return result
