"""
ABOUTME: JSON envelope used on the WebSocket session and the REST trade endpoint
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from blinktrade.api.base.exceptions import DataParsingError
from blinktrade.api.models.enums import MessageType


@dataclass(frozen=True)
class Frame:
    """수신 메시지

    응답: type/req_id와 data 또는 error
    푸시: event/req_id(구독 ID, 없을 수 있음)와 data
    """
    type: Optional[str] = None
    req_id: Optional[int] = None
    data: Any = field(default_factory=dict)
    error: Optional[Any] = None
    event: Optional[str] = None

    @property
    def is_event(self) -> bool:
        return self.event is not None

    @property
    def is_error(self) -> bool:
        return self.error is not None


def build_request(msg_type: Union[MessageType, str], req_id: int, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    요청 메시지 구성

    Args:
        msg_type: 메시지 유형
        req_id: 클라이언트 생성 상관 ID
        data: 요청 본문

    Returns:
        전송용 dict
    """
    return {
        "type": MessageType(msg_type).value,
        "req_id": req_id,
        "data": data or {}
    }


def encode(message: Dict[str, Any]) -> str:
    return json.dumps(message)


def parse_frame(raw: Union[str, bytes, Dict[str, Any]]) -> Frame:
    """
    수신 메시지 파싱

    Raises:
        DataParsingError: JSON이 아니거나 형식이 맞지 않는 경우
    """
    if isinstance(raw, dict):
        message = raw
    else:
        try:
            message = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise DataParsingError(f"Invalid JSON frame: {e}") from e

    if not isinstance(message, dict):
        raise DataParsingError(f"Frame must be an object: {message!r}")

    req_id = message.get("req_id")
    if req_id is not None:
        try:
            req_id = int(req_id)
        except (TypeError, ValueError) as e:
            raise DataParsingError(f"Invalid req_id: {req_id!r}") from e

    data = message.get("data")
    if data is None:
        data = {}

    frame = Frame(
        type=message.get("type"),
        req_id=req_id,
        data=data,
        error=message.get("error"),
        event=message.get("event")
    )

    if not frame.is_event and frame.req_id is None:
        raise DataParsingError(f"Response frame without req_id: {message!r}")

    return frame
