"""
BlinkTrade 인증 정보 데이터 모델
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .config import BlinkTradeConfig, DEFAULT_BROKER_ID, ENDPOINTS


def _env(name: str, default: str = "") -> str:
    return os.getenv(f"{BlinkTradeConfig.ENV_PREFIX}{name}", default)


def _env_flag(name: str) -> bool:
    return _env(name, "0").strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class Credentials:
    """공통 접속 정보 (생성 후 변경 불가)"""
    url: Optional[str] = None
    prod: bool = False
    broker_id: int = DEFAULT_BROKER_ID
    
    @property
    def env(self) -> str:
        """환경 이름 (prod/testnet)"""
        return "prod" if self.prod else "testnet"
    
    def endpoint(self, name: str) -> str:
        """
        엔드포인트 URL 반환
        
        사용자 지정 url이 있으면 환경별 기본값보다 우선한다.
        
        Args:
            name: "rest_url" 또는 "ws_url"
            
        Returns:
            URL 문자열
        """
        if self.url:
            return self.url
        return ENDPOINTS[self.env][name]


@dataclass(frozen=True)
class RestCredentials(Credentials):
    """REST 전용 인증 정보 (API Key/Secret 포함)"""
    key: str = ""
    secret: str = ""
    currency: str = BlinkTradeConfig.DEFAULT_CURRENCY
    
    @property
    def can_trade(self) -> bool:
        """Trade 엔드포인트 호출 가능 여부"""
        return bool(self.key and self.secret)
    
    @property
    def key_preview(self) -> str:
        """로그용 API Key 일부"""
        if not self.key:
            return "(empty)"
        return self.key[:6] + "..." if len(self.key) > 6 else self.key
    
    @classmethod
    def from_env(cls) -> "RestCredentials":
        """환경변수(.env 포함)에서 인증정보 로드"""
        load_dotenv()
        return cls(
            url=_env("URL") or None,
            prod=_env_flag("PROD"),
            broker_id=int(_env("BROKER_ID", str(DEFAULT_BROKER_ID))),
            key=_env("API_KEY"),
            secret=_env("API_SECRET"),
            currency=_env("CURRENCY", BlinkTradeConfig.DEFAULT_CURRENCY)
        )
