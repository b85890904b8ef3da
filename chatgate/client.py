import logging
from pathlib import Path
from typing import Iterable, Optional

import dotenv
import httpx

from .config import (
    Endpoint, GeminiConfig, config_exists, get_config_path, in_cloudshell,
    load_config, use_sendmessage,
)
from .errors import ConfigNotFoundError, ConfigurationError
from .providers.base import BackendKind, BaseBackend
from .providers.enterprise import AssistantBackend, DeveloperBackend, ServiceSession
from .providers.gemini import GeminiBackend, GeminiClient
from .providers.mock import MockBackend
from .stream import ResponseStream
from .types import AuthProfile, ChatResponseStream, Conversation

logger = logging.getLogger(__name__)

# Load environment variables
dotenv.load_dotenv()


class Gateway:
    """
    Single entry point for sending conversations to a chat backend.

    The backend is chosen once, when the gateway is constructed, and is
    never revisited per request. A gateway holds no per-request state and
    may be shared by concurrent independent `send_message` calls.
    """

    def __init__(self, backend: BaseBackend, profile: Optional[AuthProfile] = None):
        self._kind = backend_kind(backend)
        self._backend = backend
        self._profile = profile

    @property
    def backend(self) -> BackendKind:
        return self._kind

    @property
    def profile(self) -> Optional[AuthProfile]:
        return self._profile

    # ==========================================================================
    # Construction
    # ==========================================================================

    @classmethod
    async def create(
        cls,
        session: Optional[ServiceSession] = None,
        config_path: Optional[Path] = None,
    ) -> "Gateway":
        """
        Build a gateway, selecting the backend by static precedence.

        1. A Gemini configuration file exists -> Gemini backend. Any load or
           validation failure is fatal, except the file having disappeared,
           which falls through to the next step.
        2. `CHATGATE_USE_SENDMESSAGE` is set or the process runs in
           CloudShell -> developer backend.
        3. Otherwise -> the default assistant backend.

        Args:
            session (ServiceSession, optional): Provider of enterprise clients
                and the auth profile. Required when step 2 or 3 applies.
            config_path (Path, optional): Override of the Gemini config path.

        Returns:
            Gateway: The configured gateway.

        Raises:
            ConfigurationError: If the Gemini config is invalid, or an
                enterprise backend is selected without a session.
        """
        path = config_path or get_config_path()
        if config_exists(path):
            logger.info(f"Gemini configuration found at {path}")
            try:
                return cls.from_config(load_config(path))
            except ConfigNotFoundError:
                logger.debug("Gemini configuration vanished, falling back to enterprise backends")

        if use_sendmessage() or in_cloudshell():
            return cls.new_developer(_require_session(session), Endpoint.load_developer())

        return cls.new_assistant(_require_session(session), Endpoint.load_assistant())

    @classmethod
    def from_config(
        cls,
        config: GeminiConfig,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "Gateway":
        logger.debug(f"Using Gemini backend with model {config.model}")
        return cls(GeminiBackend(GeminiClient(config, http_client=http_client)))

    @classmethod
    def new_developer(cls, session: ServiceSession, endpoint: Endpoint) -> "Gateway":
        logger.debug(f"Using developer backend at {endpoint.url}")
        return cls(DeveloperBackend(session.developer_client(endpoint)))

    @classmethod
    def new_assistant(cls, session: ServiceSession, endpoint: Endpoint) -> "Gateway":
        logger.debug(f"Using assistant backend at {endpoint.url}")
        client = session.assistant_client(endpoint)

        try:
            profile = session.get_auth_profile()
        except Exception as e:
            logger.error(f"Failed to get auth profile: {e}")
            profile = None

        return cls(AssistantBackend(client, profile), profile)

    @classmethod
    def mock(cls, batches: Iterable[Iterable[ChatResponseStream]]) -> "Gateway":
        """
        Build a gateway over an in-memory queue of event batches.

        The k-th `send_message` call replays the k-th batch; calls past the
        end of the queue yield empty streams.
        """
        return cls(MockBackend(batches))

    # ==========================================================================
    # Chat
    # ==========================================================================

    async def send_message(self, conversation: Conversation) -> ResponseStream:
        """
        Send a conversation and return a cursor over the reply's events.

        The conversation is handed over to the gateway and should not be
        modified by the caller afterwards.

        Args:
            conversation (Conversation): History plus the current user turn.

        Returns:
            ResponseStream: Ordered, finite stream of AssistantResponseEvent
                            and ToolUseEvent values. `request_id` is set for
                            enterprise backends only.

        Raises:
            GatewayError: A conversion, configuration, transport or backend
                          failure, classified by kind.
        """
        logger.debug(f"Sending conversation to {self.backend.value}: {conversation!r}")
        return await self._backend.send(conversation)

    async def aclose(self) -> None:
        await self._backend.aclose()

    def __repr__(self) -> str:
        return f"Gateway(backend={self.backend.value!r})"


def backend_kind(backend: BaseBackend) -> BackendKind:
    """
    Resolve which of the fixed backend variants an instance is.

    Raises:
        ConfigurationError: If the backend is not one of the known variants.
    """
    match backend:
        case AssistantBackend():
            return BackendKind.ASSISTANT
        case DeveloperBackend():
            return BackendKind.DEVELOPER
        case GeminiBackend():
            return BackendKind.GEMINI
        case MockBackend():
            return BackendKind.MOCK
        case _:
            raise ConfigurationError(f"Unknown backend: {type(backend).__name__}")


def _require_session(session: Optional[ServiceSession]) -> ServiceSession:
    if session is None:
        raise ConfigurationError("An enterprise backend was selected but no service session was given")
    return session
