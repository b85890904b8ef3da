import io

import pytest
from rich.console import Console

from chatgate.rich_chat_printer import RichStreamPrinter
from chatgate.stream import BufferedResponseStream
from chatgate.types import AssistantResponseEvent, ToolUseEvent


class TestRichStreamPrinter:

    @pytest.mark.asyncio
    async def test_print_stream_summary(self):
        console = Console(file=io.StringIO(), force_terminal=False)
        printer = RichStreamPrinter(console=console)
        stream = BufferedResponseStream([
            AssistantResponseEvent(content="Reading "),
            AssistantResponseEvent(content="**file**"),
            ToolUseEvent(tool_use_id="t1", name="fs_read"),
            ToolUseEvent(tool_use_id="t1", name="fs_read", input='{"path":"/a"}', stop=True),
        ])

        summary = await printer.print_stream(stream)

        assert summary == {
            "text": "Reading **file**",
            "tool_uses": [{"id": "t1", "name": "fs_read", "input": {"path": "/a"}}],
            "request_id": None,
        }

    def test_unparseable_input_kept_raw(self):
        printer = RichStreamPrinter()
        printer.handle_event(ToolUseEvent(tool_use_id="t", name="x", input="{oops", stop=True))
        assert printer.get_tool_uses()[0]["input"] == "{oops"
