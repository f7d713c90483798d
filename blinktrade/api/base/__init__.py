"""ABOUTME: Base classes and common functionality for all BlinkTrade transports"""

from .transport import BaseTransport
from .events import RequestHandle, TransportEventEmitter
from .exceptions import (
    BlinkTradeError,
    RequestRejected,
    SecondFactorRequired,
    InvalidCredentialsError,
    SessionError,
    NotConnectedError,
    NotAuthenticatedError,
    ConnectionLostError,
    DataParsingError
)

__all__ = [
    "BaseTransport",
    "RequestHandle",
    "TransportEventEmitter",
    "BlinkTradeError",
    "RequestRejected",
    "SecondFactorRequired",
    "InvalidCredentialsError",
    "SessionError",
    "NotConnectedError",
    "NotAuthenticatedError",
    "ConnectionLostError",
    "DataParsingError"
]
