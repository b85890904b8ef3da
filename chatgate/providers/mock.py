import threading
from collections import deque
from typing import Iterable, List

from .base import BaseBackend
from ..stream import BufferedResponseStream, ResponseStream
from ..types import ChatResponseStream, Conversation


class MockBackend(BaseBackend):
    """
    In-memory backend replaying pre-supplied batches of events.

    Each `send` consumes the next batch; once the queue is exhausted every
    call yields an empty stream. The queue may be shared by concurrent
    callers and is guarded by a lock.
    """

    def __init__(self, batches: Iterable[Iterable[ChatResponseStream]]):
        self._batches = deque(list(batch) for batch in batches)
        self._lock = threading.Lock()

    async def send(self, conversation: Conversation) -> ResponseStream:
        with self._lock:
            batch: List[ChatResponseStream] = self._batches.popleft() if self._batches else []
        return BufferedResponseStream(batch)

    @property
    def remaining(self) -> int:
        with self._lock:
            return len(self._batches)
