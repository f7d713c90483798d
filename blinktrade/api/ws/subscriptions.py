"""
ABOUTME: Registry of live ticker/order book subscriptions keyed by request id
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from blinktrade.api.base.events import RequestHandle
from blinktrade.api.models.enums import MessageType, PushEvent


class SubscriptionKind(Enum):
    """구독 종류"""
    TICKER = "ticker"
    ORDERBOOK = "orderbook"

    @property
    def subscribe_type(self) -> MessageType:
        return MessageType(f"subscribe_{self.value}")

    @property
    def unsubscribe_type(self) -> MessageType:
        return MessageType(f"unsubscribe_{self.value}")

    @property
    def push_event(self) -> PushEvent:
        return PushEvent(self.value)


@dataclass
class Subscription:
    """구독 정보"""
    req_id: int
    kind: SubscriptionKind
    symbols: Tuple[str, ...]
    handle: RequestHandle
    callback: Optional[Callable] = None
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def acknowledged(self) -> bool:
        """서버 구독 확인 여부"""
        future = self.handle.future
        return future.done() and not future.cancelled() and future.exception() is None

    def to_dict(self) -> Dict:
        return {
            "req_id": self.req_id,
            "kind": self.kind.value,
            "symbols": list(self.symbols),
            "acknowledged": self.acknowledged,
            "created_at": self.created_at.isoformat()
        }

    def release(self) -> None:
        """구독 전용 에미터의 리스너 전부 해제"""
        self.handle.remove_all_listeners()
        self.handle.emitter.remove_all_listeners()


class SubscriptionRegistry:
    """요청 ID → 구독 정보 매핑 (WebSocket 세션 동안 유지)"""

    def __init__(self):
        self._subscriptions: Dict[int, Subscription] = {}

    def add(self, subscription: Subscription) -> None:
        if subscription.req_id in self._subscriptions:
            raise ValueError(f"Subscription {subscription.req_id} already registered")
        self._subscriptions[subscription.req_id] = subscription

    def get(self, req_id: Optional[int]) -> Optional[Subscription]:
        if req_id is None:
            return None
        return self._subscriptions.get(req_id)

    def pop(self, req_id: int) -> Optional[Subscription]:
        return self._subscriptions.pop(req_id, None)

    def clear(self) -> List[Subscription]:
        """전체 해제 후 해제된 구독 목록 반환"""
        removed = list(self._subscriptions.values())
        self._subscriptions.clear()
        return removed

    def snapshot(self) -> Dict[int, Dict]:
        return {req_id: s.to_dict() for req_id, s in self._subscriptions.items()}

    def __len__(self) -> int:
        return len(self._subscriptions)
