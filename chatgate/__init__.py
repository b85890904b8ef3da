from .client import Gateway
from .types import (
    AssistantResponseEvent, AssistantResponseMessage, AuthProfile,
    ChatMessage, ChatResponseStream, Conversation, ToolResult,
    ToolResultContentBlock, ToolResultStatus, ToolSpecification, ToolUse,
    ToolUseEvent, UserInputMessage, UserInputMessageContext,
)
from .errors import (
    ApiError, BackendError, ConfigNotFoundError, ConfigurationError,
    ContextWindowOverflowError, ConversionError, GatewayError,
    QuotaBreachError, RateLimitError, SerializationError, ServiceError,
    TransportError,
)
from .config import GeminiConfig, load_config
from .conversion import ToolCallCorrelator, conversation_to_gemini_request
from .schema import simplify_schema
from .stream import ResponseStream
from .providers import BackendKind, ServiceSession
from .rich_chat_printer import RichStreamPrinter

__all__ = [
    "Gateway",
    "AssistantResponseEvent",
    "AssistantResponseMessage",
    "AuthProfile",
    "ChatMessage",
    "ChatResponseStream",
    "Conversation",
    "ToolResult",
    "ToolResultContentBlock",
    "ToolResultStatus",
    "ToolSpecification",
    "ToolUse",
    "ToolUseEvent",
    "UserInputMessage",
    "UserInputMessageContext",
    "ApiError",
    "BackendError",
    "ConfigNotFoundError",
    "ConfigurationError",
    "ContextWindowOverflowError",
    "ConversionError",
    "GatewayError",
    "QuotaBreachError",
    "RateLimitError",
    "SerializationError",
    "ServiceError",
    "TransportError",
    "GeminiConfig",
    "load_config",
    "ToolCallCorrelator",
    "conversation_to_gemini_request",
    "simplify_schema",
    "ResponseStream",
    "BackendKind",
    "ServiceSession",
    "RichStreamPrinter",
]
