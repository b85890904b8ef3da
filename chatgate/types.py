from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, List, Dict, Any, Union, TypedDict, Optional

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Canonical Conversation Model
# =============================================================================


class ToolResultStatus(str, Enum):
    """
    Outcome of an externally executed tool.
    """
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class ToolUse:
    """
    Assistant-issued invocation of an external tool.

    `tool_use_id` is unique within a conversation but opaque to backends.
    """
    tool_use_id: str
    name: str
    input: Any = field(default_factory=dict)


@dataclass
class ToolResultContentBlock:
    """
    One typed block of a tool result: either text or a structured document.
    """
    text: Optional[str] = None
    json: Any = None

    @classmethod
    def from_text(cls, text: str) -> "ToolResultContentBlock":
        return cls(text=text)

    @classmethod
    def from_json(cls, document: Any) -> "ToolResultContentBlock":
        return cls(json=document)


@dataclass
class ToolResult:
    """
    Result of a tool use, reported back keyed by the tool use id.
    """
    tool_use_id: str
    content: List[ToolResultContentBlock]
    status: ToolResultStatus = ToolResultStatus.SUCCESS


@dataclass
class ToolSpecification:
    """
    Declaration of a callable function offered to the model.

    `input_schema` is an arbitrary JSON-Schema-like mapping.
    """
    name: str
    description: str
    input_schema: Optional[Dict[str, Any]] = None


@dataclass
class UserInputMessageContext:
    tools: Optional[List[ToolSpecification]] = None
    tool_results: Optional[List[ToolResult]] = None


@dataclass
class UserInputMessage:
    """
    A user turn, optionally carrying tool results and tool declarations.
    """
    content: str
    user_input_message_context: Optional[UserInputMessageContext] = None

    @property
    def tool_results(self) -> List[ToolResult]:
        ctx = self.user_input_message_context
        return list(ctx.tool_results or []) if ctx else []

    @property
    def tools(self) -> List[ToolSpecification]:
        ctx = self.user_input_message_context
        return list(ctx.tools or []) if ctx else []


@dataclass
class AssistantResponseMessage:
    """
    An assistant turn, optionally carrying tool uses.
    """
    content: str
    message_id: Optional[str] = None
    tool_uses: Optional[List[ToolUse]] = None


# A history entry is exactly one of the two turn types
ChatMessage = Union[UserInputMessage, AssistantResponseMessage]


@dataclass
class Conversation:
    """
    Canonical conversation: chronological history plus the current user turn.
    """
    user_input_message: UserInputMessage
    history: Optional[List[ChatMessage]] = None
    conversation_id: Optional[str] = None


@dataclass(frozen=True)
class AuthProfile:
    arn: str
    profile_name: Optional[str] = None


# =============================================================================
# Canonical Chat Events
# =============================================================================

@dataclass
class AssistantResponseEvent:
    """
    A delta of assistant text.
    """
    content: str


@dataclass
class ToolUseEvent:
    """
    Incremental tool use announcement.

    Backends emit a name-only event first, then one carrying the serialized
    arguments with `stop=True`.
    """
    tool_use_id: str
    name: str
    input: Optional[str] = None
    stop: Optional[bool] = None


ChatResponseStream = Union[AssistantResponseEvent, ToolUseEvent]


# =============================================================================
# Gemini REST Wire Types
# =============================================================================

class GeminiFunctionCall(TypedDict):
    name: str
    args: Any


class GeminiFunctionResponse(TypedDict):
    name: str
    response: Dict[str, Any]


class GeminiPart(TypedDict, total=False):
    """
    Exactly one of `text`, `functionCall` or `functionResponse` is set.
    """
    text: str
    functionCall: GeminiFunctionCall
    functionResponse: GeminiFunctionResponse


class GeminiContent(TypedDict):
    role: Literal["user", "model"]
    parts: List[GeminiPart]


class GeminiFunctionDeclaration(TypedDict):
    name: str
    description: str
    parameters: Dict[str, Any]


class GeminiTool(TypedDict):
    functionDeclarations: List[GeminiFunctionDeclaration]


class GeminiGenerationConfig(TypedDict, total=False):
    temperature: float
    maxOutputTokens: int
    topK: int
    topP: float


class GeminiRequest(TypedDict, total=False):
    contents: List[GeminiContent]
    tools: List[GeminiTool]
    generationConfig: GeminiGenerationConfig


class GeminiResponseFunctionCall(BaseModel):
    name: str
    args: Any = Field(default_factory=dict)


class GeminiResponsePart(BaseModel):
    """
    A part of a model answer. Unknown part kinds parse with every field None.
    """
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = None
    function_call: Optional[GeminiResponseFunctionCall] = Field(default=None, alias="functionCall")
    function_response: Optional[Dict[str, Any]] = Field(default=None, alias="functionResponse")


class GeminiResponseContent(BaseModel):
    role: Optional[str] = None
    parts: List[GeminiResponsePart] = Field(default_factory=list)


class GeminiCandidate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: GeminiResponseContent = Field(default_factory=GeminiResponseContent)
    finish_reason: Optional[str] = Field(default=None, alias="finishReason")


class GeminiResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    candidates: List[GeminiCandidate] = Field(default_factory=list)
    usage_metadata: Optional[Dict[str, Any]] = Field(default=None, alias="usageMetadata")
