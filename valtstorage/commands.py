"""
Command handlers shared by the one-shot CLI and the interactive shell.

Each handler validates its input, runs one API call under the cosmetic
progress bar, prints the outcome and returns a CommandResult. Nothing is
retried and no state is kept between calls.
"""

import webbrowser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from rich import box
from rich.panel import Panel
from rich.table import Table

from valtstorage import terminal
from valtstorage.api import ValtStorageClient
from valtstorage.config import ENVIRONMENT_URLS, THEMES, Settings, coerce_value, get_settings
from valtstorage.errors import ValidationError, ValtStorageError
from valtstorage.log import get_logger
from valtstorage.progress import SimulatedProgress
from valtstorage.share import extract_id, scan_url

logger = get_logger(__name__)

console = terminal.console


@dataclass
class CommandResult:
    """Outcome of one command."""

    success: bool
    message: Optional[str] = None
    filename: Optional[str] = None
    scan_url: Optional[str] = None
    share_url: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    return_to_menu: Optional[bool] = None


def format_size(size: Union[int, float]) -> str:
    """Human readable byte count (1.5 MB)."""
    size = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def _finish(result: CommandResult, settings: Settings, interactive: bool) -> CommandResult:
    """Footer, then the dedicated-window prompts."""
    terminal.show_footer()
    if settings.use_dedicated_window:
        if interactive and settings.interactive_mode:
            result.return_to_menu = terminal.prompt_return_to_main_menu()
        elif not interactive and not settings.interactive_mode:
            terminal.wait_for_keypress()
    return result


def _client(settings: Settings, client: Optional[ValtStorageClient]) -> ValtStorageClient:
    return client if client is not None else ValtStorageClient(settings)


def _files_table(files: List[Dict[str, Any]]) -> Table:
    table = Table(box=box.ROUNDED, header_style="accent", border_style="border", padding=(0, 1))
    table.add_column("File", style="primary", min_width=20)
    table.add_column("Size", style="info", justify="right")
    table.add_column("Type", style="secondary")
    for entry in files:
        table.add_row(
            str(entry.get("name", "?")),
            format_size(entry.get("size", 0)),
            str(entry.get("mime_type", "unknown")),
        )
    return table


def upload(
    file_path: str,
    settings: Optional[Settings] = None,
    client: Optional[ValtStorageClient] = None,
    interactive: bool = False,
) -> CommandResult:
    """Upload a local file and print its share link."""
    settings = settings or get_settings()

    path = Path(file_path)
    if not path.is_file():
        console.print(f"[error]Error: File not found: {file_path}[/]")
        return _finish(CommandResult(success=False, message=f"File not found: {file_path}"), settings, interactive)

    console.print(f"[primary]Uploading {path.name} to ValtStorage...[/]")

    try:
        with SimulatedProgress("Uploading...", console, settings.progress_update_interval):
            response = _client(settings, client).upload_file(path)
    except (ValtStorageError, OSError) as e:
        logger.debug(f"Upload of {path} failed: {e}")
        console.print(f"\n[error]Error uploading file: {e}[/]")
        return _finish(CommandResult(success=False, message=str(e)), settings, interactive)

    link = response.get("share_url", "")
    verify_url = scan_url(link) if link else None

    console.print("\n[success]🔐 File uploaded successfully![/]")
    console.print(f"[primary]📋 Share URL:[/] [bold]{link}[/]")
    if verify_url:
        console.print(f"[secondary]🔍 View blockchain record:[/] [bold]{verify_url}[/]")
    if response.get("expires_at"):
        console.print(f"[info]⏳ Expires at: {response['expires_at']}[/]")
    if response.get("files"):
        console.print(_files_table(response["files"]))
    console.print("\n[success]Your file is now securely stored with 7-layer protection on the decentralized network.[/]")

    return _finish(
        CommandResult(success=True, share_url=link, scan_url=verify_url, data=response),
        settings,
        interactive,
    )


def download(
    reference: str,
    settings: Optional[Settings] = None,
    client: Optional[ValtStorageClient] = None,
    interactive: bool = False,
    output_dir: Union[str, Path] = ".",
) -> CommandResult:
    """Download a shared file into ``output_dir``."""
    settings = settings or get_settings()
    console.print("[primary]Downloading from ValtStorage...[/]")

    try:
        share_id = extract_id(reference)
    except ValidationError as e:
        console.print(f"[error]Error: {e}[/]")
        return _finish(CommandResult(success=False, message=str(e)), settings, interactive)

    target: Optional[Path] = None
    partial: Optional[Path] = None
    try:
        with SimulatedProgress("Downloading...", console, settings.progress_update_interval) as bar:
            stream = _client(settings, client).download_file(share_id)
            bar.update_status("Saving file...")
            try:
                directory = Path(output_dir)
                directory.mkdir(parents=True, exist_ok=True)
                target = directory / (stream.filename or f"valtstorage-{share_id}.zip")
                with open(target, "wb") as f:
                    partial = target
                    for chunk in stream:
                        f.write(chunk)
            finally:
                stream.close()
            partial = None
    except (ValtStorageError, OSError) as e:
        if partial is not None and partial.exists():
            partial.unlink()
        console.print(f"\n[error]Error downloading file: {e}[/]")
        return _finish(CommandResult(success=False, message=str(e)), settings, interactive)

    console.print(f"\n[success]✅ File saved: [bold]{target}[/][/]")
    console.print("\n[success]Your file has been securely retrieved from the decentralized network.[/]")
    return _finish(CommandResult(success=True, filename=str(target)), settings, interactive)


def scan(
    reference: str,
    settings: Optional[Settings] = None,
    interactive: bool = False,
) -> CommandResult:
    """Open the valt.scan page for a share in the browser."""
    settings = settings or get_settings()
    console.print("[primary]Opening blockchain explorer in your browser...[/]")

    try:
        url = scan_url(reference)
    except ValidationError as e:
        console.print(f"[error]Error: {e}[/]")
        return _finish(CommandResult(success=False, message=str(e)), settings, interactive)

    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as e:
        logger.debug(f"webbrowser.open failed: {e}")
        opened = False

    if not opened:
        console.print("\n[error]Error opening browser: no usable browser found[/]")
        console.print(f"\n[warning]Please manually open this URL in your browser: [bold]{url}[/][/]")
        return _finish(CommandResult(success=False, scan_url=url, message="Could not open browser"), settings, interactive)

    console.print(f"\n[success]Browser opened to: [bold]{url}[/][/]")
    console.print("\n[secondary]Verifying file integrity and blockchain records...[/]")
    return _finish(CommandResult(success=True, scan_url=url), settings, interactive)


def info(
    reference: str,
    settings: Optional[Settings] = None,
    client: Optional[ValtStorageClient] = None,
    interactive: bool = False,
) -> CommandResult:
    """Show the metadata of a shared file."""
    settings = settings or get_settings()

    try:
        share_id = extract_id(reference)
        with SimulatedProgress("Fetching file info...", console, settings.progress_update_interval):
            details = _client(settings, client).get_file_info(share_id)
    except ValtStorageError as e:
        console.print(f"\n[error]Error fetching file info: {e}[/]")
        return _finish(CommandResult(success=False, message=str(e)), settings, interactive)

    console.print(Panel(
        f"[accent]Share:[/] [primary]{details.get('share_url', share_id)}[/]\n"
        f"[accent]Expires:[/] [info]{details.get('expires_at', 'unknown')}[/]",
        title="[secondary]📁 Shared File[/]",
        border_style="border",
        box=box.ROUNDED,
        padding=(0, 1),
    ))
    if details.get("files"):
        console.print(_files_table(details["files"]))

    return _finish(CommandResult(success=True, data=details), settings, interactive)


def record(
    reference: str,
    settings: Optional[Settings] = None,
    client: Optional[ValtStorageClient] = None,
    interactive: bool = False,
) -> CommandResult:
    """Show the blockchain record of a shared file."""
    settings = settings or get_settings()

    try:
        share_id = extract_id(reference)
        with SimulatedProgress("Reading blockchain record...", console, settings.progress_update_interval):
            data = _client(settings, client).get_blockchain_record(share_id)
    except ValtStorageError as e:
        console.print(f"\n[error]Error fetching blockchain record: {e}[/]")
        return _finish(CommandResult(success=False, message=str(e)), settings, interactive)

    verified = "[success]✓ Verified[/]" if data.get("is_verified") else "[warning]⚠  Not verified[/]"
    console.print(Panel(
        f"[accent]Record:[/] [primary]{data.get('record_id', share_id)}[/] • {verified}\n"
        f"[accent]File:[/] [info]{data.get('file_name', '?')}[/] "
        f"([info]{format_size(data.get('file_size', 0))}[/], [info]{data.get('file_type', '?')}[/])\n"
        f"[accent]Status:[/] [info]{data.get('status', '?')}[/] • "
        f"[accent]Downloads:[/] [info]{data.get('download_count', 0)}[/] • "
        f"[accent]Expires in:[/] [info]{data.get('expires_in', '?')}[/]",
        title="[secondary]⛓  Blockchain Record[/]",
        border_style="border",
        box=box.ROUNDED,
        padding=(0, 1),
    ))

    transactions = data.get("transactions") or []
    if transactions:
        table = Table(box=box.ROUNDED, header_style="accent", border_style="border", padding=(0, 1))
        table.add_column("Transaction", style="primary")
        table.add_column("Type", style="secondary")
        table.add_column("Timestamp", style="info")
        table.add_column("Confirmed", justify="center")
        for tx in transactions:
            table.add_row(
                str(tx.get("id", "?")),
                str(tx.get("transaction_type", "?")),
                str(tx.get("timestamp", "?")),
                "[success]✓[/]" if tx.get("confirmed") else "[warning]pending[/]",
            )
        console.print(table)

    return _finish(
        CommandResult(success=True, scan_url=scan_url(share_id), data=data),
        settings,
        interactive,
    )


def configure(args: List[str], settings: Optional[Settings] = None) -> CommandResult:
    """
    Show or change settings; changes are written to the config file.

    ``config``/``config show``, ``config set KEY VALUE``, ``config env NAME``,
    ``config theme NAME``, ``config reset``.
    """
    settings = settings or get_settings()
    action = args[0].lower() if args else "show"

    if action == "show":
        table = Table(
            title=f"[secondary]⚙  Settings[/] [subtle]({settings.path})[/]",
            box=box.ROUNDED, header_style="accent", border_style="border", padding=(0, 1),
        )
        table.add_column("Key", style="primary")
        table.add_column("Value", style="info")
        for key, value in settings.to_dict().items():
            if key != "terminal_colors":
                table.add_row(key, str(value))
        console.print(table)
        return CommandResult(success=True, data=settings.to_dict())

    if action == "set":
        if len(args) < 3:
            return _usage("Missing setting name or value", "config set <key> <value>")
        key, raw = args[1], " ".join(args[2:])
        try:
            value = coerce_value(key, raw)
        except KeyError:
            return _fail(f"Unknown setting: {key}. Known settings: {', '.join(Settings.keys())}")
        except ValueError as e:
            return _fail(f"Invalid value for {key}: {e}")
        if key == "environment":
            return configure(["env", value], settings)
        saved = settings.set(key, value, persist=True)
    elif action == "env":
        if len(args) < 2:
            return _usage("Missing environment name", f"config env <{'|'.join(ENVIRONMENT_URLS)}>")
        if args[1] not in ENVIRONMENT_URLS:
            return _fail(f"Invalid environment: {args[1]}. Must be one of: {', '.join(ENVIRONMENT_URLS)}")
        saved = settings.set_environment(args[1], persist=True)
    elif action == "theme":
        if len(args) < 2:
            return _usage("Missing theme name", f"config theme <{'|'.join(THEMES)}>")
        if args[1] not in THEMES:
            return _fail(f"Unknown theme: {args[1]}. Available themes: {', '.join(THEMES)}")
        saved = settings.set("terminal_theme", args[1], persist=True)
    elif action == "reset":
        saved = settings.reset(persist=True)
    else:
        return _usage(f"Unknown config action: {action}", "config [show|set|env|theme|reset]")

    terminal.use_theme(settings)
    if not saved:
        console.print(f"[warning]⚠  Setting changed for this session only; could not write {settings.path}[/]")
        return CommandResult(success=False, message="Could not save configuration")
    console.print(f"[success]✓ Configuration saved to {settings.path}[/]")
    return CommandResult(success=True, data=settings.to_dict())


def _fail(message: str) -> CommandResult:
    console.print(f"[error]Error: {message}[/]")
    return CommandResult(success=False, message=message)


def _usage(message: str, usage: str) -> CommandResult:
    console.print(f"[error]Error: {message}[/]")
    console.print(f"[warning]Usage: {usage}[/]")
    return CommandResult(success=False, message=message)
