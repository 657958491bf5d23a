"""
Interactive ValtStorage shell.

Reads a line, dispatches the verb to the shared command handlers and prompts
again until ``exit``, Ctrl+C or end of input.
"""

import signal
import sys
from typing import Any, Callable, Dict, List, Optional

from rich.text import Text

from valtstorage import commands, terminal
from valtstorage.api import ValtStorageClient
from valtstorage.commands import CommandResult
from valtstorage.config import Settings, get_settings
from valtstorage.log import get_logger

logger = get_logger(__name__)

console = terminal.console

# verb -> (argument name for error messages, usage line)
ARGUMENT_COMMANDS = {
    "upload": ("file path", "upload <file>"),
    "download": ("share URL", "download <shareUrl>"),
    "scan": ("share URL", "scan <shareUrl>"),
    "info": ("share URL", "info <shareUrl>"),
    "record": ("share URL", "record <shareUrl>"),
}


class ValtStorageShell:
    """The read-eval loop and the verb dispatcher behind it."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[ValtStorageClient] = None):
        self.settings = settings or get_settings()
        self.client = client

    def _signal_handler(self, signum: int, frame: Any):
        """Ctrl+C leaves the shell from anywhere, even mid-command."""
        console.print()
        self.shutdown()

    def shutdown(self):
        console.print("[warning]Exiting ValtStorage CLI. Goodbye![/]")
        sys.exit(0)

    def clear(self):
        terminal.clear_screen()
        terminal.show_banner(self.settings)

    def _handlers(self, interactive: bool) -> Dict[str, Callable[[str], CommandResult]]:
        settings, client = self.settings, self.client
        return {
            "upload": lambda arg: commands.upload(arg, settings, client, interactive),
            "download": lambda arg: commands.download(arg, settings, client, interactive),
            "scan": lambda arg: commands.scan(arg, settings, interactive),
            "info": lambda arg: commands.info(arg, settings, client, interactive),
            "record": lambda arg: commands.record(arg, settings, client, interactive),
        }

    def run_command(self, command_line: str, interactive: bool = True) -> Optional[CommandResult]:
        """Parses and executes one line of input."""
        if not command_line or not command_line.strip():
            return None
        parts = command_line.strip().split()
        command = parts[0].lower()
        args: List[str] = parts[1:]

        if command == "exit":
            self.shutdown()
        if command == "clear":
            self.clear()
            return CommandResult(success=True)
        if command == "help":
            terminal.show_help()
            return CommandResult(success=True)
        if command == "config":
            return commands.configure(args, self.settings)

        if command in ARGUMENT_COMMANDS:
            what, usage = ARGUMENT_COMMANDS[command]
            if len(args) != 1:
                message = f"Missing {what}" if not args else f"Expected one {what}, got {len(args)}"
                console.print(f"[error]Error: {message}[/]")
                console.print(f"[warning]Usage: {usage}[/]")
                return CommandResult(success=False, message=message)
            return self._handlers(interactive)[command](args[0])

        console.print(f"[error]Unknown command: {command}[/]")
        console.print('[warning]Type "help" to see available commands[/]')
        return CommandResult(success=False, message=f"Unknown command: {command}")

    def start(self):
        """The main entry point and application loop."""
        signal.signal(signal.SIGINT, self._signal_handler)
        terminal.install_completer()
        terminal.set_window_title(self.settings.window_title)
        self.clear()
        terminal.show_help()

        while True:
            try:
                line = console.input(Text("valtstorage > ", style="primary"))
            except (KeyboardInterrupt, EOFError):
                console.print()
                self.shutdown()
                break

            try:
                self.run_command(line, interactive=True)
            except Exception as e:
                logger.debug("Command failed", exc_info=True)
                console.print(f"[error]Error: {e}[/]")
                continue


def dispatch(line: str, settings: Optional[Settings] = None, interactive: bool = False) -> Optional[CommandResult]:
    """Run one shell line outside the loop."""
    return ValtStorageShell(settings).run_command(line, interactive=interactive)
