from abc import ABC, abstractmethod
from enum import Enum

from ..stream import ResponseStream
from ..types import Conversation


class BackendKind(str, Enum):
    """
    The fixed set of backends a gateway can dispatch to.
    """
    ASSISTANT = "assistant"
    DEVELOPER = "developer"
    GEMINI = "gemini"
    MOCK = "mock"


class BaseBackend(ABC):
    """
    Abstract base class for chat backends.
    """

    @abstractmethod
    async def send(self, conversation: Conversation) -> ResponseStream:
        """
        Translate a conversation, send it and return its event stream.

        Args:
            conversation (Conversation): The canonical conversation.

        Returns:
            ResponseStream: Cursor over the canonical chat events.

        Raises:
            GatewayError: Any classified conversion or backend failure.
        """
        pass

    async def aclose(self) -> None:
        """
        Release resources held by the backend client.
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
