"""
Conversion of canonical conversations into Gemini REST requests.
"""
import logging
import uuid
from typing import Any, Dict, Iterable, List

from .errors import ConversionError
from .schema import simplify_schema
from .types import (
    AssistantResponseMessage, ChatMessage, Conversation, GeminiContent,
    GeminiFunctionCall, GeminiFunctionDeclaration, GeminiFunctionResponse,
    GeminiRequest, GeminiTool, ToolResult, ToolResultContentBlock,
    ToolResultStatus, ToolSpecification, ToolUse, UserInputMessage,
)

logger = logging.getLogger(__name__)

# Output budget sent with every Gemini request
MAX_OUTPUT_TOKENS = 4096


class ToolCallCorrelator:
    """
    Maps tool use ids to tool names for a single request-building pass.

    Gemini reports function responses by function name, while the canonical
    conversation keys tool results by the opaque tool use id.
    """

    def __init__(self):
        self._names: Dict[str, str] = {}

    def record(self, tool_use: ToolUse) -> None:
        self._names[tool_use.tool_use_id] = tool_use.name

    def resolve(self, tool_use_id: str) -> str:
        """
        Look up the tool name for an id, falling back to the id itself.
        """
        name = self._names.get(tool_use_id)
        if name is None:
            logger.warning(f"No prior tool use for result {tool_use_id!r}, using the id as its name")
            return tool_use_id
        return name

    def __contains__(self, tool_use_id: str) -> bool:
        return tool_use_id in self._names

    def __len__(self) -> int:
        return len(self._names)


def conversation_to_gemini_request(
    conversation: Conversation,
    temperature: float,
) -> GeminiRequest:
    """
    Flatten a conversation into Gemini `contents`.

    History is processed first, then the current user message, in order.
    Each canonical message yields zero or more content entries:
    - non-empty text becomes one text entry;
    - each tool use becomes a `functionCall` entry with role "model";
    - each tool result becomes a `functionResponse` entry with role "user",
      named after the tool it answers.

    Args:
        conversation (Conversation): The canonical conversation.
        temperature (float): Sampling temperature from the client config.

    Returns:
        GeminiRequest: The request body, ready to be sent as JSON.
    """
    correlator = ToolCallCorrelator()
    contents: List[GeminiContent] = []

    messages: List[ChatMessage] = list(conversation.history or [])
    messages.append(conversation.user_input_message)

    for message in messages:
        contents.extend(_message_to_contents(message, correlator))

    request: GeminiRequest = {"contents": contents}

    tools = conversation.user_input_message.tools
    if tools:
        request["tools"] = tools_to_gemini_tools(tools)

    request["generationConfig"] = {
        "temperature": temperature,
        "maxOutputTokens": MAX_OUTPUT_TOKENS,
    }
    return request


def _message_to_contents(
    message: ChatMessage,
    correlator: ToolCallCorrelator,
) -> Iterable[GeminiContent]:
    if isinstance(message, AssistantResponseMessage):
        if message.content:
            yield {"role": "model", "parts": [{"text": message.content}]}

        for tool_use in message.tool_uses or []:
            correlator.record(tool_use)
            function_call: GeminiFunctionCall = {
                "name": tool_use.name,
                "args": tool_use.input,
            }
            yield {"role": "model", "parts": [{"functionCall": function_call}]}

    elif isinstance(message, UserInputMessage):
        if message.content:
            yield {"role": "user", "parts": [{"text": message.content}]}

        for result in message.tool_results:
            function_response = tool_result_to_function_response(
                correlator.resolve(result.tool_use_id),
                tool_result_content(result),
                result.status,
            )
            yield {"role": "user", "parts": [{"functionResponse": function_response}]}

    else:
        raise ConversionError(f"Unsupported chat message type: {type(message).__name__}", "gemini")


def tool_result_content(result: ToolResult) -> Any:
    """
    Reduce a tool result to the single JSON value Gemini receives.

    Only the first content block is used: text becomes a string, a
    structured document is passed through as-is.
    """
    if not result.content:
        return None
    return _block_value(result.content[0])


def _block_value(block: ToolResultContentBlock) -> Any:
    if block.text is not None:
        return block.text
    return block.json


def tool_result_to_function_response(
    name: str,
    content: Any,
    status: ToolResultStatus,
) -> GeminiFunctionResponse:
    """
    Build a Gemini function response.

    Successful results are wrapped as {"result": content}, failures as
    {"error": content}.
    """
    if ToolResultStatus(status) is ToolResultStatus.SUCCESS:
        response = {"result": content}
    else:
        response = {"error": content}
    return {"name": name, "response": response}


def tools_to_gemini_tools(tools: List[ToolSpecification]) -> List[GeminiTool]:
    """
    Convert tool declarations into a single Gemini tool entry.

    Parameter schemas are simplified because Gemini rejects most JSON
    Schema keywords.
    """
    declarations: List[GeminiFunctionDeclaration] = [
        {
            "name": tool.name,
            "description": tool.description,
            "parameters": simplify_schema(tool.input_schema or {}),
        }
        for tool in tools
    ]
    return [{"functionDeclarations": declarations}]


def add_function_response_to_conversation(
    contents: List[GeminiContent],
    function_call: GeminiFunctionCall,
    function_response: GeminiFunctionResponse,
) -> None:
    """
    Append a model function call and the user's response to it.
    """
    contents.append({"role": "model", "parts": [{"functionCall": function_call}]})
    contents.append({"role": "user", "parts": [{"functionResponse": function_response}]})


def generate_tool_use_id(prefix: str = "tool") -> str:
    """
    Create a tool use id for backends that do not assign one.
    """
    return f"{prefix}-{uuid.uuid4().hex}"
