"""
Rich stream printer module for displaying gateway chat event streams.
"""
import json
from typing import Any, Dict, List, Optional

from rich.console import Console, Group
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.text import Text

from .stream import ResponseStream
from .types import AssistantResponseEvent, ChatResponseStream, ToolUseEvent


class RichStreamPrinter:
    """
    Live display of a `ResponseStream` using rich.

    Assistant text is rendered as markdown; each completed tool use is shown
    in its own panel with its JSON arguments.

    Attributes:
        title: Title for the display panel
        code_theme: Theme for code blocks
        inline_code_theme: Theme for inline code
        refresh_rate: Refresh rate for Live display
        show_request_id: Whether to show the backend request id in the title
        border_style: Border style while streaming
    """

    def __init__(
        self,
        title: str = "Assistant",
        code_theme: str = "coffee",
        inline_code_theme: str = "monokai",
        refresh_rate: int = 30,
        show_request_id: bool = True,
        border_style: str = "blue",
        console: Optional[Console] = None,
    ):
        self.title = title
        self.code_theme = code_theme
        self.inline_code_theme = inline_code_theme
        self.refresh_rate = refresh_rate
        self.show_request_id = show_request_id
        self.border_style = border_style
        self.console = console or Console()
        self._full_text = ""
        self._tool_uses: List[Dict[str, Any]] = []
        self._request_id: Optional[str] = None

    async def print_stream(self, stream: ResponseStream) -> Dict[str, Any]:
        """
        Consume a response stream and render it as it arrives.

        Args:
            stream: The stream returned by `Gateway.send_message`

        Returns:
            A summary dict: {"text": str, "tool_uses": [...], "request_id": ...}
        """
        self._full_text = ""
        self._tool_uses = []
        self._request_id = stream.request_id

        with Live(Panel("", border_style=self.border_style),
                  refresh_per_second=self.refresh_rate,
                  console=self.console) as live:
            async with stream:
                async for event in stream:
                    self.handle_event(event)
                    self._update_display(live, is_final=False)
            self._update_display(live, is_final=True)

        return self.summary()

    def handle_event(self, event: ChatResponseStream) -> None:
        """Fold a single event into the accumulated state."""
        if isinstance(event, AssistantResponseEvent):
            self._full_text += event.content
        elif isinstance(event, ToolUseEvent) and event.stop:
            self._tool_uses.append({
                "id": event.tool_use_id,
                "name": event.name,
                "input": _parse_input(event.input),
            })

    def summary(self) -> Dict[str, Any]:
        return {
            "text": self._full_text,
            "tool_uses": list(self._tool_uses),
            "request_id": self._request_id,
        }

    def _update_display(self, live: Live, is_final: bool = False) -> None:
        """Update the Live display with current content."""
        live.update(
            Panel(
                self._build_content(),
                title=self._build_title(),
                border_style="green" if is_final else self.border_style,
                padding=(1, 2)
            )
        )

    def _build_title(self) -> str:
        title = f"[bold]{self.title}[/bold]"
        if self.show_request_id and self._request_id:
            title += f" [dim]({self._request_id})[/dim]"
        return title

    def _build_content(self) -> Any:
        renderables: List[Any] = []
        if self._full_text.strip():
            renderables.append(Markdown(
                self._full_text,
                code_theme=self.code_theme,
                inline_code_theme=self.inline_code_theme
            ))

        for tool_use in self._tool_uses:
            arguments = json.dumps(tool_use["input"], indent=2, default=str)
            renderables.append(Panel(
                Syntax(arguments, "json", theme="lightbulb", background_color="default"),
                title=f"[bold]Tool: {tool_use['name']}[/bold]",
                border_style="dim"
            ))

        if not renderables:
            return Text("(waiting for response...)", style="dim italic")
        return Group(*renderables)

    def get_full_text(self) -> str:
        return self._full_text

    def get_tool_uses(self) -> List[Dict[str, Any]]:
        return list(self._tool_uses)


def _parse_input(raw: Optional[str]) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw
