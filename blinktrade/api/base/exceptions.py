"""
ABOUTME: Custom exception classes for the BlinkTrade client
"""

from typing import Any, Dict, Optional


class BlinkTradeError(Exception):
    """BlinkTrade 클라이언트 기본 예외 클래스"""
    pass


class RequestRejected(BlinkTradeError):
    """서버가 거부한 요청 (서버 오류 payload를 그대로 보관)"""
    
    def __init__(self, payload: Optional[Dict[str, Any]] = None, message: Optional[str] = None):
        self.payload = payload if payload is not None else {}
        if message is None:
            message = str(
                self.payload.get("description")
                or self.payload.get("message")
                or self.payload
            )
        super().__init__(message)
    
    @property
    def need_second_factor(self) -> bool:
        """2차 인증 필요 여부"""
        return bool(self.payload.get("need_second_factor"))


class SecondFactorRequired(RequestRejected):
    """2차 인증값 없이 로그인 시도"""
    pass


class InvalidCredentialsError(BlinkTradeError):
    """API Key/Secret 누락"""
    pass


class SessionError(BlinkTradeError):
    """세션 상태와 맞지 않는 호출"""
    pass


class NotConnectedError(SessionError):
    """WebSocket 미연결"""
    pass


class NotAuthenticatedError(SessionError):
    """로그인 전 인증 필요 호출"""
    pass


class ConnectionLostError(BlinkTradeError):
    """연결 종료로 중단된 요청"""
    pass


class DataParsingError(BlinkTradeError):
    """메시지 파싱 오류"""
    pass


def rejection_from_payload(payload: Any) -> RequestRejected:
    """
    서버 오류 payload를 예외로 변환
    
    Args:
        payload: 응답의 error 필드 (dict가 아니면 description으로 감싼다)
        
    Returns:
        RequestRejected 또는 SecondFactorRequired
    """
    if not isinstance(payload, dict):
        payload = {"description": payload}
    if payload.get("need_second_factor"):
        return SecondFactorRequired(payload)
    return RequestRejected(payload)
