import asyncio

import httpx
import pytest

from chatgate.client import Gateway
from chatgate.config import Endpoint, GeminiConfig
from chatgate.errors import ConfigurationError
from chatgate.providers.base import BackendKind, BaseBackend
from chatgate.stream import BufferedResponseStream
from chatgate.types import (
    AssistantResponseEvent, AuthProfile, Conversation, ToolUseEvent,
    UserInputMessage,
)

from conftest import FakeSession

HELLO = "Hello! How can I assist you today?"


def conversation(text="Hello"):
    return Conversation(user_input_message=UserInputMessage(content=text))


async def collect(stream):
    return [event async for event in stream]


class TestMockGateway:

    @pytest.mark.asyncio
    async def test_replays_hello(self):
        gateway = Gateway.mock([[AssistantResponseEvent(content=HELLO)]])

        stream = await gateway.send_message(conversation())

        assert gateway.backend is BackendKind.MOCK
        assert stream.request_id is None
        assert await stream.recv() == AssistantResponseEvent(content=HELLO)
        assert await stream.recv() is None

    @pytest.mark.asyncio
    async def test_batches_in_order_then_empty(self):
        first = [AssistantResponseEvent(content="one")]
        second = [
            ToolUseEvent(tool_use_id="t1", name="fs_read"),
            ToolUseEvent(tool_use_id="t1", name="fs_read", input="{}", stop=True),
        ]
        gateway = Gateway.mock([first, second])

        assert await collect(await gateway.send_message(conversation())) == first
        assert await collect(await gateway.send_message(conversation())) == second
        assert await collect(await gateway.send_message(conversation())) == []

    @pytest.mark.asyncio
    async def test_concurrent_sends_each_get_one_batch(self):
        batches = [[AssistantResponseEvent(content=str(i))] for i in range(5)]
        gateway = Gateway.mock(batches)

        streams = await asyncio.gather(*(gateway.send_message(conversation()) for _ in range(5)))
        results = [await collect(s) for s in streams]

        assert sorted(r[0].content for r in results) == ["0", "1", "2", "3", "4"]


class TestBackendSelection:

    @pytest.mark.asyncio
    async def test_gemini_config_wins(self, clean_env, monkeypatch, write_gemini_config, fake_session):
        monkeypatch.setenv("CHATGATE_USE_SENDMESSAGE", "1")
        write_gemini_config({"api_key": "k"})

        gateway = await Gateway.create(fake_session)

        assert gateway.backend is BackendKind.GEMINI
        assert gateway.profile is None
        assert fake_session.endpoints == []
        await gateway.aclose()

    @pytest.mark.asyncio
    async def test_invalid_gemini_config_is_fatal(self, clean_env, write_gemini_config, fake_session):
        write_gemini_config({"api_key": "k", "temperature": 2})

        with pytest.raises(ConfigurationError):
            await Gateway.create(fake_session)

    @pytest.mark.asyncio
    async def test_sendmessage_flag(self, clean_env, home_dir, monkeypatch, fake_session):
        monkeypatch.setenv("CHATGATE_USE_SENDMESSAGE", "true")

        gateway = await Gateway.create(fake_session)

        assert gateway.backend is BackendKind.DEVELOPER
        assert fake_session.endpoints == [Endpoint.load_developer()]

    @pytest.mark.asyncio
    async def test_cloudshell(self, clean_env, home_dir, monkeypatch, fake_session):
        monkeypatch.setenv("AWS_EXECUTION_ENV", "CloudShell")

        gateway = await Gateway.create(fake_session)

        assert gateway.backend is BackendKind.DEVELOPER

    @pytest.mark.asyncio
    async def test_default_assistant_with_profile(self, clean_env, home_dir):
        profile = AuthProfile(arn="arn:aws:codewhisperer:us-east-1:123:profile/ABC")
        session = FakeSession(profile=profile)

        gateway = await Gateway.create(session)

        assert gateway.backend is BackendKind.ASSISTANT
        assert gateway.profile == profile
        assert session.endpoints == [Endpoint.load_assistant()]

    @pytest.mark.asyncio
    async def test_profile_failure_is_not_fatal(self, clean_env, home_dir):
        session = FakeSession(profile_error=RuntimeError("no token"))

        gateway = await Gateway.create(session)

        assert gateway.backend is BackendKind.ASSISTANT
        assert gateway.profile is None

    @pytest.mark.asyncio
    async def test_enterprise_without_session(self, clean_env, home_dir):
        with pytest.raises(ConfigurationError):
            await Gateway.create()

    @pytest.mark.asyncio
    async def test_explicit_config_path(self, clean_env, home_dir, tmp_path):
        path = tmp_path / "gemini.json"
        path.write_text('{"api_key": "k", "model": "gemini-1.5-flash"}')

        gateway = await Gateway.create(config_path=path)

        assert gateway.backend is BackendKind.GEMINI
        await gateway.aclose()


class TestGatewaySend:

    @pytest.mark.asyncio
    async def test_from_config_sends_through_gemini(self):
        def handler(request):
            return httpx.Response(200, json={
                "candidates": [{"content": {"role": "model", "parts": [{"text": HELLO}]}}],
            })

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        gateway = Gateway.from_config(GeminiConfig(api_key="k"), http_client=http_client)

        stream = await gateway.send_message(conversation())

        assert stream.request_id is None
        assert await collect(stream) == [AssistantResponseEvent(content=HELLO)]
        assert repr(gateway) == "Gateway(backend='gemini')"
        await http_client.aclose()


class TestBackendKind:

    def test_unknown_backend_rejected(self):
        class CustomBackend(BaseBackend):
            async def send(self, conversation):
                return BufferedResponseStream([])

        with pytest.raises(ConfigurationError, match="Unknown backend"):
            Gateway(CustomBackend())
