"""
Terminal helpers: the themed rich console, banner, help table, prompts and
readline tab completion for the interactive shell.
"""

from typing import Callable, List, Optional, Sequence

from rich import box
from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from valtstorage.config import Settings

try:
    import readline
except ImportError:  # Windows without pyreadline
    readline = None

WEBSITE = "https://valtstorage.cloud"

SHELL_COMMANDS = ["upload", "download", "scan", "info", "record", "config", "help", "exit", "clear"]

HELP_ROWS = [
    ("upload <file>", "Upload a file to ValtStorage"),
    ("download <shareUrl>", "Download a file from ValtStorage"),
    ("scan <shareUrl>", "View blockchain verification in your browser"),
    ("info <shareUrl>", "Show details of a shared file"),
    ("record <shareUrl>", "Show the blockchain record of a shared file"),
    ("config [show|set|env|theme|reset]", "Show or change CLI settings"),
    ("help", "Show this help message"),
    ("exit", "Exit the ValtStorage CLI"),
    ("clear", "Clear the terminal screen"),
]

console = Console()
_theme_pushed = False


def build_theme(settings: Settings) -> Theme:
    """Rich styles named after the palette roles of the active theme."""
    styles = {role: settings.color(role) for role in
              ("primary", "secondary", "success", "error", "warning", "info", "border")}
    styles["subtle"] = "dim white"
    styles["accent"] = "bold"
    return Theme(styles)


def use_theme(settings: Settings) -> None:
    """Point the shared console at the settings' palette."""
    global _theme_pushed
    if _theme_pushed:
        console.pop_theme()
    console.push_theme(build_theme(settings))
    _theme_pushed = True


def show_banner(settings: Settings) -> None:
    """Displays the boxed title banner."""
    banner_text = Text("VALTSTORAGE.CLOUD", style="bold primary", justify="center")
    subtitle_text = Text("Decentralized Storage with Proof of Activity", style="info", justify="center")

    console.print(Panel(
        Align.center(Text.assemble(banner_text, "\n", subtitle_text)),
        box=box.DOUBLE,
        border_style=settings.color("border"),
        padding=(1, 4),
    ))


def show_help() -> None:
    """Displays the command reference."""
    table = Table(
        title="[secondary]Available commands[/]",
        box=box.ROUNDED,
        padding=(0, 1),
        show_header=True,
        header_style="accent",
        border_style="border",
    )
    table.add_column("Command", style="primary", min_width=22)
    table.add_column("Description", style="info", min_width=35)

    for cmd, desc in HELP_ROWS:
        table.add_row(cmd, desc)

    console.print(table)
    console.print(f"For more information visit: [primary]{WEBSITE}[/]")


def show_footer() -> None:
    console.print()
    console.rule(style="subtle")
    console.print(f"[subtle]ValtStorage CLI • {WEBSITE}[/]", justify="center")
    console.rule(style="subtle")


def clear_screen() -> None:
    console.clear()


def set_window_title(title: str) -> None:
    console.set_window_title(title)


def prompt_return_to_main_menu() -> bool:
    """Ask whether to go back to the shell prompt. Ctrl+C or EOF means no."""
    try:
        return Confirm.ask("\n[primary]Return to main menu?[/]", default=True, console=console)
    except (KeyboardInterrupt, EOFError):
        return False


def wait_for_keypress(message: str = "Press Enter to continue...") -> None:
    try:
        console.input(f"\n[primary]{message}[/]")
    except (KeyboardInterrupt, EOFError):
        pass


def make_completer(commands: Sequence[str]) -> Callable[[str, int], Optional[str]]:
    """Readline completer over the first word of the line."""
    def completer(text: str, state: int) -> Optional[str]:
        hits: List[str] = [c for c in commands if c.startswith(text.lower())]
        return hits[state] if state < len(hits) else None
    return completer


def install_completer(commands: Sequence[str] = SHELL_COMMANDS) -> bool:
    """Hook tab completion into readline. Returns False where readline is missing."""
    if readline is None:
        return False
    readline.set_completer(make_completer(commands))
    if "libedit" in (readline.__doc__ or ""):
        readline.parse_and_bind("bind ^I rl_complete")
    else:
        readline.parse_and_bind("tab: complete")
    return True


use_theme(Settings())
