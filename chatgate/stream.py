"""
Pull-based cursors over backend responses.

Every backend answer, whether a live network stream or a fully
materialized list, is consumed through the same `ResponseStream` interface.
"""
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Callable, List, Optional

from .types import ChatResponseStream


class ResponseStream(ABC):
    """
    Single-consumer, forward-only sequence of chat events.

    End of stream is signalled by `recv()` returning None. A stream must
    not be polled from more than one task at a time.
    """

    @property
    def request_id(self) -> Optional[str]:
        """
        Opaque backend request id, for diagnostics.
        """
        return None

    @abstractmethod
    async def recv(self) -> Optional[ChatResponseStream]:
        """
        Receive the next event, or None once the stream is exhausted.
        """
        pass

    async def aclose(self) -> None:
        """
        Release any underlying connection.
        """
        pass

    def __aiter__(self) -> AsyncIterator[ChatResponseStream]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[ChatResponseStream]:
        while True:
            event = await self.recv()
            if event is None:
                return
            yield event

    async def __aenter__(self) -> "ResponseStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class BufferedResponseStream(ResponseStream):
    """
    Stream over events that are already in memory.

    Events are kept in reverse order so each `recv()` is a pop from the end.
    """

    def __init__(self, events: List[ChatResponseStream]):
        self._events = list(reversed(events))

    async def recv(self) -> Optional[ChatResponseStream]:
        if not self._events:
            return None
        return self._events.pop()

    def __len__(self) -> int:
        return len(self._events)

    async def aclose(self) -> None:
        self._events.clear()


class LiveResponseStream(ResponseStream):
    """
    Stream backed by an enterprise backend's event stream handle.

    Args:
        handle: Object exposing `async recv()` returning the next native
                event or None, and optionally `request_id` and `close()`.
        convert: Maps a native event to a chat event, or None to skip it.
        on_error: Maps an exception raised while receiving or converting
                  to the exception that should be raised instead. The
                  handle is closed before it is raised.
    """

    def __init__(
        self,
        handle: Any,
        convert: Callable[[Any], Optional[ChatResponseStream]],
        on_error: Callable[[Exception], Exception],
    ):
        self._handle = handle
        self._convert = convert
        self._on_error = on_error
        self._closed = False

    @property
    def request_id(self) -> Optional[str]:
        return getattr(self._handle, "request_id", None)

    async def recv(self) -> Optional[ChatResponseStream]:
        while not self._closed:
            try:
                native = await self._handle.recv()
                if native is None:
                    return None
                event = self._convert(native)
            except Exception as e:
                await self.aclose()
                raise self._on_error(e) from e

            if event is not None:
                return event
        return None

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        close = getattr(self._handle, "close", None)
        if close is not None:
            result = close()
            if hasattr(result, "__await__"):
                await result
