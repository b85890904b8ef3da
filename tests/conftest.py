import json
from typing import Any, List, Optional
from unittest.mock import MagicMock

import pytest

from chatgate.providers.enterprise import ServiceSession
from chatgate.types import (
    AssistantResponseMessage, Conversation, ToolResult,
    ToolResultContentBlock, ToolUse, UserInputMessage,
    UserInputMessageContext,
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove environment flags that affect backend selection."""
    for name in (
        "CHATGATE_USE_SENDMESSAGE",
        "AWS_EXECUTION_ENV",
        "CHATGATE_ENDPOINT_URL",
        "CHATGATE_REGION",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def home_dir(tmp_path, monkeypatch):
    """Point the user's home directory at an empty temporary directory."""
    monkeypatch.setenv("HOME", str(tmp_path))
    return tmp_path


@pytest.fixture
def write_gemini_config(home_dir):
    """Write a Gemini config file into the temporary home directory."""
    def _write(payload: Any) -> None:
        config_dir = home_dir / ".chatgate"
        config_dir.mkdir(exist_ok=True)
        raw = payload if isinstance(payload, str) else json.dumps(payload)
        (config_dir / "gemini_config.json").write_text(raw)
    return _write


class FakeStreamHandle:
    """Live event stream handle as returned by the enterprise clients."""

    def __init__(self, events: List[Any], request_id: Optional[str] = "req-123", error: Optional[Exception] = None):
        self._events = list(events)
        self.request_id = request_id
        self._error = error
        self.closed = False

    async def recv(self):
        if self._events:
            return self._events.pop(0)
        if self._error is not None:
            raise self._error
        return None

    def close(self):
        self.closed = True


class FakeSession(ServiceSession):
    def __init__(self, profile=None, profile_error: Optional[Exception] = None):
        self.assistant = MagicMock(name="assistant_client")
        self.developer = MagicMock(name="developer_client")
        self.endpoints = []
        self._profile = profile
        self._profile_error = profile_error

    def assistant_client(self, endpoint):
        self.endpoints.append(endpoint)
        return self.assistant

    def developer_client(self, endpoint):
        self.endpoints.append(endpoint)
        return self.developer

    def get_auth_profile(self):
        if self._profile_error is not None:
            raise self._profile_error
        return self._profile


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def tool_conversation():
    """
    A read-file round trip: the assistant called fs_read, the user returns
    its output and asks a follow-up.
    """
    return Conversation(
        user_input_message=UserInputMessage(
            content="What does it say?",
            user_input_message_context=UserInputMessageContext(
                tool_results=[
                    ToolResult(
                        tool_use_id="t1",
                        content=[ToolResultContentBlock.from_text("file body")],
                    )
                ],
            ),
        ),
        history=[
            UserInputMessage(content="Read the file"),
            AssistantResponseMessage(
                content="Reading it now",
                tool_uses=[ToolUse(tool_use_id="t1", name="fs_read", input={"path": "/a"})],
            ),
        ],
    )
