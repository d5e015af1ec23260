"""
SessionStatePublisherの実装

現在のセッション状態を1つだけ保持し、複数の購読者へ配信する。
購読者ごとのキュー管理とバックプレッシャー制御を行う。
"""
import asyncio
import logging
from typing import List, Optional

from fedsign.models import Disconnected, SessionState

logger = logging.getLogger(__name__)

# 購読終了を知らせる番兵
_CLOSED = object()


class StateSubscription:
    """状態の購読

    購読時点の現在値から始まり、以降に配信されたすべての値を返す非同期イテレータ。
    close() されない限り終了しない。
    """

    def __init__(self, publisher: "SessionStatePublisher", queue: asyncio.Queue):
        self._publisher = publisher
        self._queue = queue
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> "StateSubscription":
        return self

    async def __anext__(self) -> SessionState:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item

    def pending(self) -> List[SessionState]:
        """待たずに取り出せる値をすべて取り出す"""
        items = []
        while not self._queue.empty():
            item = self._queue.get_nowait()
            if item is _CLOSED:
                break
            items.append(item)
        return items

    def close(self) -> None:
        """購読を解除する。待機中の __anext__ は StopAsyncIteration で終わる"""
        if self._closed:
            return
        self._closed = True
        self._publisher._unsubscribe(self._queue)
        SessionStatePublisher._offer(self._queue, _CLOSED)

    async def __aenter__(self) -> "StateSubscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()


class SessionStatePublisher:
    """セッション状態のパブリッシャー

    書き込みはイベントループのスレッドからのみ行い、呼ばれた順に適用される。
    同じ値の連続配信も重複排除しない。
    """

    def __init__(self, initial: Optional[SessionState] = None, queue_maxsize: int = 100):
        """
        Args:
            initial (SessionState): 初期状態。省略時は Disconnected
            queue_maxsize (int): 購読者ごとのキューの最大サイズ。これを超えると古い値から破棄される。
        """
        self._current: SessionState = initial if initial is not None else Disconnected()
        self._subscribers: List[asyncio.Queue] = []
        self._queue_maxsize = queue_maxsize

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def current(self) -> SessionState:
        """最新の状態を返す"""
        return self._current

    def subscribe(self) -> StateSubscription:
        """
        状態を購読する。現在値が最初に届く。

        キューが queue_maxsize を超えると古い値から破棄されるため、
        取り出しが遅い購読者は初期値や途中の Failed を受け取れないことがある。
        最新の値は常に残る。

        Returns:
            StateSubscription: 状態が配信される購読
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_maxsize)
        queue.put_nowait(self._current)
        self._subscribers.append(queue)
        logger.debug(f"New state subscriber (total={len(self._subscribers)})")
        return StateSubscription(self, queue)

    def publish(self, state: SessionState) -> None:
        """
        現在値を置き換え、すべての購読者へ配信する。

        Args:
            state (SessionState): 新しい状態
        """
        self._current = state
        for q in list(self._subscribers):
            self._offer(q, state)

    def _unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)
        logger.debug(f"State subscriber removed (total={len(self._subscribers)})")

    @staticmethod
    def _offer(queue: asyncio.Queue, item: object) -> None:
        try:
            queue.put_nowait(item)
        except asyncio.QueueFull:
            # キューが満杯の場合、古い値を捨てて新しい値を入れる (Drop-Oldest)
            try:
                _ = queue.get_nowait()
                queue.put_nowait(item)
                logger.debug("State queue full, dropped oldest value.")
            except (asyncio.QueueEmpty, asyncio.QueueFull):
                pass
