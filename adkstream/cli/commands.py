"""
send and chat commands.
"""

from argparse import ArgumentParser, Namespace
from typing import TYPE_CHECKING, ClassVar

from rich.console import Console

from .base import Command
from .display import ExchangeDisplay, JsonDisplay
from .util import send_cancellable

if TYPE_CHECKING:
    from ..client import CoordinatorClient

RESET_COMMANDS = {"/reset", "/new"}
QUIT_COMMANDS = {"/quit", "/exit"}


class SendCommand(Command):
    """Send one message and print the reply."""

    name = "send"
    aliases: ClassVar[list[str]] = ["ask"]
    description = "Send a single message to the coordinator agent"

    def add_arguments(self, parser: ArgumentParser) -> None:
        parser.add_argument("message", help="Message text")
        parser.add_argument("--json", action="store_true", help="Print the raw result as JSON")

    def execute(self, args: Namespace, client: "CoordinatorClient") -> int:
        console = Console()
        display = JsonDisplay(console) if args.json else ExchangeDisplay(console)

        if args.json:
            result = client.send_message(args.message)
        else:
            with console.status("Coordinator Agent is thinking...", spinner="dots"):
                result = client.send_message(args.message)

        display.show(result)
        return 0 if result.ok else 1


class ChatCommand(Command):
    """Interactive conversation in one session."""

    name = "chat"
    aliases: ClassVar[list[str]] = []
    description = "Start an interactive chat (/reset for a new session, /quit to exit)"

    def add_arguments(self, parser: ArgumentParser) -> None:
        parser.add_argument(
            "--no-pause",
            action="store_true",
            help="Show specialist replies without the pause after the routing banner",
        )

    def execute(self, args: Namespace, client: "CoordinatorClient") -> int:
        console = Console()
        display = ExchangeDisplay(console, pause=0.0 if args.no_pause else 1.0)
        console.print(f"[dim]Connected to {client.base_url} (app: {client.app_name})[/dim]")
        console.print("[dim]Ctrl-C cancels a pending reply. /reset starts over, /quit exits.[/dim]")

        while True:
            try:
                message = console.input("[bold]You[/bold] › ").strip()
            except EOFError:
                console.print()
                return 0

            if not message:
                continue
            if message in QUIT_COMMANDS:
                return 0
            if message in RESET_COMMANDS:
                client.reset_session()
                console.print(f"[dim]New session {client.session_id}[/dim]")
                continue

            result = send_cancellable(client, message)
            if result is not None:
                display.show(result)


COMMANDS: list[Command] = [SendCommand(), ChatCommand()]
