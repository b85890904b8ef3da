"""
Response normalizer - converts backend responses into canonical chat events.
"""
import json
import logging
from typing import Any, List, Mapping, Optional

from .conversion import generate_tool_use_id
from .errors import SerializationError
from .types import (
    AssistantResponseEvent, ChatResponseStream, GeminiResponse, ToolUseEvent,
)

logger = logging.getLogger(__name__)


def gemini_response_to_events(response: GeminiResponse) -> List[ChatResponseStream]:
    """
    Convert an aggregate Gemini response into an ordered list of chat events.

    Only the first candidate is used. Its parts map as follows:
    - text -> one AssistantResponseEvent;
    - function call -> two ToolUseEvents sharing a freshly generated id,
      the first carrying only the name, the second the serialized arguments
      and `stop=True`. This mirrors the incremental shape the streaming
      backends emit;
    - function response -> nothing (these only belong in requests).

    Args:
        response (GeminiResponse): The parsed response body.

    Returns:
        List[ChatResponseStream]: Events in source order.
    """
    events: List[ChatResponseStream] = []
    if not response.candidates:
        logger.debug("Gemini response has no candidates")
        return events

    for part in response.candidates[0].content.parts:
        if part.text is not None:
            events.append(AssistantResponseEvent(content=part.text))
        elif part.function_call is not None:
            tool_use_id = generate_tool_use_id()
            name = part.function_call.name
            events.append(ToolUseEvent(tool_use_id=tool_use_id, name=name))
            events.append(ToolUseEvent(
                tool_use_id=tool_use_id,
                name=name,
                input=json.dumps(part.function_call.args, separators=(",", ":")),
                stop=True,
            ))

    return events


def service_event_to_chat_event(event: Any) -> Optional[ChatResponseStream]:
    """
    Relabel a native enterprise stream event as a canonical chat event.

    Native events are single-key mappings such as
    {"assistantResponseEvent": {"content": "..."}} or
    {"toolUseEvent": {"toolUseId": ..., "name": ..., "input": ..., "stop": ...}}.
    Event kinds with no canonical counterpart (metadata, code references,
    and so on) map to None and are skipped by the caller.

    Raises:
        SerializationError: If a known event kind carries a non-object body.
    """
    if isinstance(event, (AssistantResponseEvent, ToolUseEvent)):
        return event
    if not isinstance(event, Mapping):
        return None

    if "assistantResponseEvent" in event:
        body = _event_body(event, "assistantResponseEvent")
        return AssistantResponseEvent(content=body.get("content", ""))

    if "toolUseEvent" in event:
        body = _event_body(event, "toolUseEvent")
        return ToolUseEvent(
            tool_use_id=body.get("toolUseId", ""),
            name=body.get("name", ""),
            input=body.get("input"),
            stop=body.get("stop"),
        )

    return None


def _event_body(event: Mapping, kind: str) -> Mapping:
    body = event[kind] or {}
    if not isinstance(body, Mapping):
        raise SerializationError(f"Malformed {kind}: expected an object, got {type(body).__name__}")
    return body
