"""ABOUTME: Credentials, endpoint configuration and request signing for BlinkTrade transports"""

from .config import BlinkTradeConfig, ENDPOINTS, DEFAULT_BROKER_ID
from .models import Credentials, RestCredentials
from .signer import NonceGenerator, sign_nonce

__all__ = [
    "BlinkTradeConfig",
    "ENDPOINTS",
    "DEFAULT_BROKER_ID",
    "Credentials",
    "RestCredentials",
    "NonceGenerator",
    "sign_nonce"
]
