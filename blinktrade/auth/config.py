"""
BlinkTrade 접속 설정 및 상수
"""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class BlinkTradeConfig:
    """BlinkTrade API 설정 상수"""
    
    # REST 경로
    PUBLIC_API_PATH = "/api/v1"
    TRADE_API_PATH = "/tapi/v1/message"
    
    # 기본값
    DEFAULT_CURRENCY = "USD"
    DEFAULT_CRYPTO_CURRENCY = "BTC"
    DEFAULT_WITHDRAW_METHOD = "bitcoin"
    
    # 환경변수 이름
    ENV_PREFIX = "BLINKTRADE_"


# 브로커 ID 기본값 (생성자에서 생략 시)
DEFAULT_BROKER_ID = 11

# 환경별 엔드포인트
ENDPOINTS: Dict[str, Dict[str, str]] = {
    "prod": {
        "rest_url": "https://api.blinktrade.com",
        "ws_url": "wss://ws.blinktrade.com/trade/"
    },
    "testnet": {
        "rest_url": "https://api.testnet.blinktrade.com",
        "ws_url": "wss://api.testnet.blinktrade.com/trade/"
    }
}

# HTTP 헤더 템플릿
COMMON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "User-Agent": "BlinkTrade-Python/1.0"
}
