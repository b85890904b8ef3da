"""
Enterprise assistant backends.

Both backends talk to streaming RPC services through opaque clients supplied
by a `ServiceSession`. The clients accept a structured conversation object
and return a handle to a live event stream, or raise `ServiceError`.
"""
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from .base import BaseBackend
from ..config import Endpoint
from ..errors import (
    BackendError, ContextWindowOverflowError, ConversionError, GatewayError,
    QuotaBreachError, ServiceError, TransportError,
)
from ..normalizer import service_event_to_chat_event
from ..stream import LiveResponseStream, ResponseStream
from ..types import (
    AssistantResponseMessage, AuthProfile, ChatMessage, Conversation,
    ToolResult, ToolResultContentBlock, ToolResultStatus, ToolSpecification,
    ToolUse, UserInputMessage,
)

logger = logging.getLogger(__name__)

CONTEXT_OVERFLOW_CODE = "ValidationException"
CONTEXT_OVERFLOW_MESSAGE = "Input is too long."


class ServiceSession(ABC):
    """
    Source of authenticated enterprise clients and the user's auth profile.

    Credential resolution and transport setup live behind this interface.
    """

    @abstractmethod
    def assistant_client(self, endpoint: Endpoint) -> Any:
        """
        Client exposing `async generate_assistant_response(conversation_state=..., profile_arn=...)`.
        """
        pass

    @abstractmethod
    def developer_client(self, endpoint: Endpoint) -> Any:
        """
        Client exposing `async send_message(conversation_state=...)`.
        """
        pass

    def get_auth_profile(self) -> Optional[AuthProfile]:
        return None


# =============================================================================
# Request Building
# =============================================================================

def build_service_conversation(conversation: Conversation, backend: str = "assistant") -> Dict[str, Any]:
    """
    Wrap the current message and full history into one conversation object.

    Each history entry is converted on its own; the first failure aborts
    the whole build so that no partial request is ever sent.

    Args:
        conversation (Conversation): The canonical conversation.
        backend (str): Origin tag attached to conversion errors.

    Returns:
        Dict[str, Any]: The conversation state accepted by the service clients.

    Raises:
        ConversionError: If any message cannot be converted.
    """
    state: Dict[str, Any] = {}
    if conversation.conversation_id is not None:
        state["conversationId"] = conversation.conversation_id

    try:
        current = _convert_user_message(conversation.user_input_message)
    except ConversionError as e:
        raise ConversionError(f"Current message: {e.message}", backend) from e
    state["currentMessage"] = {"userInputMessage": current}
    state["chatTriggerType"] = "MANUAL"

    if conversation.history is not None:
        history = []
        for index, message in enumerate(conversation.history):
            try:
                history.append(convert_chat_message(message))
            except ConversionError as e:
                raise ConversionError(f"History entry {index}: {e.message}", backend) from e
        state["history"] = history

    return state


def convert_chat_message(message: ChatMessage) -> Dict[str, Any]:
    if isinstance(message, UserInputMessage):
        return {"userInputMessage": _convert_user_message(message)}
    if isinstance(message, AssistantResponseMessage):
        return {"assistantResponseMessage": _convert_assistant_message(message)}
    raise ConversionError(f"Unsupported chat message type: {type(message).__name__}")


def _convert_user_message(message: UserInputMessage) -> Dict[str, Any]:
    converted: Dict[str, Any] = {"content": message.content}

    context: Dict[str, Any] = {}
    if message.tools:
        context["tools"] = [_convert_tool(tool) for tool in message.tools]
    if message.tool_results:
        context["toolResults"] = [_convert_tool_result(r) for r in message.tool_results]
    if context:
        converted["userInputMessageContext"] = context

    return converted


def _convert_assistant_message(message: AssistantResponseMessage) -> Dict[str, Any]:
    converted: Dict[str, Any] = {"content": message.content}
    if message.message_id is not None:
        converted["messageId"] = message.message_id
    if message.tool_uses:
        converted["toolUses"] = [_convert_tool_use(t) for t in message.tool_uses]
    return converted


def _convert_tool(tool: ToolSpecification) -> Dict[str, Any]:
    return {
        "toolSpecification": {
            "name": tool.name,
            "description": tool.description,
            "inputSchema": {"json": _document(tool.input_schema or {}, f"schema of tool {tool.name!r}")},
        }
    }


def _convert_tool_use(tool_use: ToolUse) -> Dict[str, Any]:
    if not tool_use.tool_use_id or not tool_use.name:
        raise ConversionError("Tool use requires both an id and a name")
    return {
        "toolUseId": tool_use.tool_use_id,
        "name": tool_use.name,
        "input": _document(tool_use.input, f"input of tool use {tool_use.tool_use_id!r}"),
    }


def _convert_tool_result(result: ToolResult) -> Dict[str, Any]:
    if not result.content:
        raise ConversionError(f"Tool result {result.tool_use_id!r} has no content")
    try:
        status = ToolResultStatus(result.status)
    except ValueError as e:
        raise ConversionError(f"Tool result {result.tool_use_id!r} has unknown status {result.status!r}") from e
    return {
        "toolUseId": result.tool_use_id,
        "content": [_convert_block(block, result.tool_use_id) for block in result.content],
        "status": status.value,
    }


def _convert_block(block: ToolResultContentBlock, tool_use_id: str) -> Dict[str, Any]:
    has_text = block.text is not None
    has_json = block.json is not None
    if has_text == has_json:
        raise ConversionError(
            f"Tool result {tool_use_id!r} block must hold exactly one of text or json"
        )
    if has_text:
        return {"text": block.text}
    return {"json": _document(block.json, f"tool result {tool_use_id!r}")}


def _document(value: Any, what: str) -> Any:
    """
    Check a value is a JSON document and return it.
    """
    try:
        json.dumps(value, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise ConversionError(f"The {what} is not a JSON document: {e}") from e
    return value


# =============================================================================
# Error Classification
# =============================================================================

def classify_assistant_error(error: Exception) -> GatewayError:
    """
    Map an assistant service failure to a gateway error.

    HTTP 429 from this service means the user's quota is exhausted, which
    is distinct from transient rate limiting. Context window overflow is
    recognised only by an exact code and message pair.
    """
    if isinstance(error, GatewayError):
        return error
    if not isinstance(error, ServiceError):
        return BackendError(f"Assistant service failed: {error}", "assistant")

    if error.status == 429:
        return QuotaBreachError("quota has reached its limit", "assistant")
    if error.code == CONTEXT_OVERFLOW_CODE and error.message == CONTEXT_OVERFLOW_MESSAGE:
        return ContextWindowOverflowError("the context window has overflowed", "assistant")
    if error.status is None:
        return TransportError(f"Assistant service unreachable: {error.message}", "assistant")
    return BackendError(
        f"Assistant service error: {error.message}",
        "assistant",
        status=error.status,
        code=error.code,
    )


def classify_developer_error(error: Exception) -> GatewayError:
    if isinstance(error, GatewayError):
        return error
    if not isinstance(error, ServiceError):
        return BackendError(f"Developer service failed: {error}", "developer")

    if error.status is None:
        return TransportError(f"Developer service unreachable: {error.message}", "developer")
    return BackendError(
        f"Developer service error: {error.message}",
        "developer",
        status=error.status,
        code=error.code,
    )


# =============================================================================
# Backends
# =============================================================================

class AssistantBackend(BaseBackend):
    """
    Default enterprise assistant backend (`GenerateAssistantResponse`).
    """

    def __init__(self, client: Any, profile: Optional[AuthProfile] = None):
        self.client = client
        self.profile = profile

    async def send(self, conversation: Conversation) -> ResponseStream:
        state = build_service_conversation(conversation, "assistant")
        profile_arn = self.profile.arn if self.profile else None

        try:
            handle = await self.client.generate_assistant_response(
                conversation_state=state,
                profile_arn=profile_arn,
            )
        except Exception as e:
            error = classify_assistant_error(e)
            logger.error(f"Assistant request failed: {error}")
            raise error from e

        return LiveResponseStream(handle, service_event_to_chat_event, classify_assistant_error)


class DeveloperBackend(BaseBackend):
    """
    Developer backend (`SendMessage`), used in sandboxed CLI environments.
    """

    def __init__(self, client: Any):
        self.client = client

    async def send(self, conversation: Conversation) -> ResponseStream:
        state = build_service_conversation(conversation, "developer")

        try:
            handle = await self.client.send_message(conversation_state=state)
        except Exception as e:
            error = classify_developer_error(e)
            logger.error(f"Developer request failed: {error}")
            raise error from e

        return LiveResponseStream(handle, service_event_to_chat_event, classify_developer_error)
