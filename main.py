"""
Interactive chat demo for the gateway.

Uses the Gemini backend when ~/.chatgate/gemini_config.json exists, or a
canned mock backend with --mock.
"""
import argparse
import asyncio
import logging
from typing import List

from rich.console import Console

from chatgate import (
    AssistantResponseEvent, AssistantResponseMessage, ChatMessage,
    Conversation, Gateway, GatewayError, RichStreamPrinter, ToolUse,
    UserInputMessage,
)

console = Console()

MOCK_REPLY = "Hello! How can I assist you today?"


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chat with a gateway backend")
    parser.add_argument("--mock", action="store_true", help="use the in-memory mock backend")
    parser.add_argument("--verbose", "-v", action="store_true", help="enable debug logging")
    return parser.parse_args()


async def build_gateway(use_mock: bool) -> Gateway:
    if use_mock:
        # Enough canned replies for a short session
        return Gateway.mock([[AssistantResponseEvent(content=MOCK_REPLY)] for _ in range(10)])
    return await Gateway.create()


async def interactive_conversation(gateway: Gateway):
    """Keep a running history and stream each reply."""
    printer = RichStreamPrinter(title=f"Assistant ({gateway.backend.value})", border_style="cyan")
    history: List[ChatMessage] = []

    while True:
        console.print("\n[bold yellow]You:[/bold yellow]", end=" ")
        user_input = input().strip()

        if user_input.lower() in ['exit', 'quit', 'bye']:
            console.print("[green]Goodbye![/green]")
            break
        if not user_input:
            continue

        message = UserInputMessage(content=user_input)
        conversation = Conversation(user_input_message=message, history=list(history))

        try:
            stream = await gateway.send_message(conversation)
            result = await printer.print_stream(stream)
        except GatewayError as e:
            console.print(f"[bold red]{type(e).__name__}:[/bold red] {e}")
            continue

        history.append(message)
        history.append(AssistantResponseMessage(
            content=result["text"],
            tool_uses=[
                ToolUse(tool_use_id=t["id"], name=t["name"], input=t["input"] or {})
                for t in result["tool_uses"]
            ] or None,
        ))


async def main():
    args = parse_args()
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    try:
        gateway = await build_gateway(args.mock)
    except GatewayError as e:
        console.print(f"[bold red]Could not start:[/bold red] {e}")
        console.print("[dim]Create ~/.chatgate/gemini_config.json or run with --mock[/dim]")
        return

    console.print(f"[bold cyan]=== Chat ({gateway.backend.value}) ===[/bold cyan]")
    try:
        await interactive_conversation(gateway)
    except (KeyboardInterrupt, EOFError):
        console.print("\n[yellow]Interrupted by user[/yellow]")
    finally:
        await gateway.aclose()


if __name__ == "__main__":
    asyncio.run(main())
