"""
ABOUTME: Request handles combining a one-shot completion future with a multi-event emitter
"""

import asyncio
from typing import Any, Callable, Generator, Iterable, List, Optional, Tuple, Union

from pyee.asyncio import AsyncIOEventEmitter

# pyee가 내부적으로 발행하는 이벤트 (on_any 대상 아님)
INTERNAL_EVENTS = frozenset({"new_listener"})


class TransportEventEmitter(AsyncIOEventEmitter):
    """pyee 이벤트 에미터에 on_any / many 지원 추가"""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        super().__init__(loop=loop)
        self._any_listeners: List[Callable] = []

    def on_any(self, f: Callable) -> Callable:
        """
        모든 이벤트 리스너 등록

        리스너는 (event, *args) 형태로 호출된다.
        """
        self._any_listeners.append(f)
        return f

    def off_any(self, f: Optional[Callable] = None) -> None:
        """on_any 리스너 제거 (f가 None이면 전부 제거)"""
        if f is None:
            self._any_listeners.clear()
        elif f in self._any_listeners:
            self._any_listeners.remove(f)

    def any_listeners(self) -> List[Callable]:
        return list(self._any_listeners)

    def many(self, event: str, times: int, f: Callable) -> Callable:
        """
        n회 실행 후 자동 제거되는 리스너 등록

        Args:
            event: 이벤트 이름
            times: 실행 횟수
            f: 리스너

        Returns:
            실제 등록된 래퍼 (remove_listener에 사용)
        """
        remaining = [times]

        def _listener(*args, **kwargs):
            remaining[0] -= 1
            if remaining[0] <= 0 and _listener in self.listeners(event):
                self.remove_listener(event, _listener)
            return f(*args, **kwargs)

        if times > 0:
            self.on(event, _listener)
        return _listener

    def emit(self, event: str, *args: Any, **kwargs: Any) -> bool:
        if event in INTERNAL_EVENTS:
            return super().emit(event, *args, **kwargs)

        for f in list(self._any_listeners):
            self._emit_run(f, (event,) + args, kwargs)
        handled = super().emit(event, *args, **kwargs)
        return handled or bool(self._any_listeners)

    def remove_all_listeners(self, event: Optional[str] = None) -> None:
        super().remove_all_listeners(event)
        if event is None:
            self._any_listeners.clear()


class RequestHandle:
    """
    요청 핸들

    한 번만 완료되는 Future와 여러 번 발생하는 이벤트 채널을 함께 제공한다.
    Future가 완료되어도 이벤트 전달은 계속되며, 이 핸들을 통해 등록한
    리스너만 remove_all_listeners로 일괄 해제된다.
    """

    def __init__(self,
                 future: asyncio.Future,
                 emitter: TransportEventEmitter,
                 req_id: Optional[int] = None):
        """
        초기화

        Args:
            future: 완료 신호
            emitter: 이벤트 채널 (트랜스포트 공유 또는 구독 전용)
            req_id: 요청 ID (구독 해제 시 사용)
        """
        self.future = future
        self.emitter = emitter
        self.req_id = req_id
        self._listeners: List[Tuple[Optional[str], Callable]] = []

    def __await__(self) -> Generator[Any, None, Any]:
        return self.future.__await__()

    def __repr__(self) -> str:
        state = "done" if self.future.done() else "pending"
        return f"<RequestHandle req_id={self.req_id} {state}>"

    # ============= Future =============

    def done(self) -> bool:
        return self.future.done()

    def result(self) -> Any:
        return self.future.result()

    def exception(self) -> Optional[BaseException]:
        return self.future.exception()

    def add_done_callback(self, fn: Callable[[asyncio.Future], None]) -> "RequestHandle":
        self.future.add_done_callback(fn)
        return self

    # ============= 이벤트 =============

    def on(self, event: str, listener: Callable) -> "RequestHandle":
        """이벤트 리스너 등록 (해제 전까지 유지)"""
        self.emitter.on(event, listener)
        self._listeners.append((event, listener))
        return self

    def on_any(self, listener: Callable) -> "RequestHandle":
        """이벤트 이름과 무관하게 모든 이벤트 수신"""
        self.emitter.on_any(listener)
        self._listeners.append((None, listener))
        return self

    def off_any(self, listener: Optional[Callable] = None) -> "RequestHandle":
        """on_any 리스너 제거"""
        if listener is None:
            for event, registered in self._listeners:
                if event is None:
                    self.emitter.off_any(registered)
            self._listeners = [item for item in self._listeners if item[0] is not None]
        else:
            if listener in self.emitter.any_listeners():
                self.emitter.off_any(listener)
            self._forget(None, listener)
        return self

    def once(self, event: str, listener: Callable) -> "RequestHandle":
        """한 번만 실행되는 리스너 등록"""
        self.emitter.once(event, listener)
        self._listeners.append((event, listener))
        return self

    def many(self, events: Union[str, Iterable[str]], times: int, listener: Callable) -> "RequestHandle":
        """
        n회 실행 후 제거되는 리스너 등록

        Args:
            events: 이벤트 이름 또는 이름 목록 (이벤트마다 n회)
            times: 실행 횟수
            listener: 리스너
        """
        if isinstance(events, str):
            events = [events]
        for event in events:
            wrapper = self.emitter.many(event, times, listener)
            self._listeners.append((event, wrapper))
        return self

    def remove_listener(self, event: str, listener: Callable) -> "RequestHandle":
        """리스너 제거"""
        if listener in self.emitter.listeners(event):
            self.emitter.remove_listener(event, listener)
        self._forget(event, listener)
        return self

    def remove_all_listeners(self, events: Optional[Iterable[str]] = None) -> "RequestHandle":
        """
        이 핸들로 등록한 리스너 일괄 제거

        Args:
            events: 대상 이벤트 이름 목록 (None이면 전부, on_any 포함)
        """
        targets = set(events) if events is not None else None
        kept = []
        for event, listener in self._listeners:
            if targets is not None and event not in targets:
                kept.append((event, listener))
                continue
            if event is None:
                self.emitter.off_any(listener)
            elif listener in self.emitter.listeners(event):
                self.emitter.remove_listener(event, listener)
        self._listeners = kept
        return self

    def _forget(self, event: Optional[str], listener: Callable) -> None:
        self._listeners = [
            item for item in self._listeners
            if not (item[0] == event and item[1] is listener)
        ]
