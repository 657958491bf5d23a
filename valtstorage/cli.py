"""
Command-line entry point.

``valtstorage upload ./document.pdf`` runs one command and exits; plain
``valtstorage`` opens the interactive shell.
"""

import sys
from pathlib import Path
from typing import List, Optional

import click

from valtstorage import __version__, commands, terminal
from valtstorage.commands import CommandResult
from valtstorage.config import Settings, get_settings, set_settings
from valtstorage.log import configure_logging
from valtstorage.shell import ValtStorageShell

EXAMPLES = """\b
Examples:
  $ valtstorage upload ./document.pdf
  $ valtstorage download https://valtstorage.cloud/share/V1234567A
  $ valtstorage scan V1234567A

For more information visit: https://valtstorage.cloud
"""


def _exit_with(result: CommandResult) -> None:
    sys.exit(0 if result.success else 1)


@click.group(epilog=EXAMPLES, context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="valtstorage")
@click.option("--debug", is_flag=True, help="Log diagnostics to stderr")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Use this settings file instead of ~/.valtstorage/config.json",
)
def cli(debug: bool, config_path: Optional[Path]) -> None:
    """Secure file storage and sharing with blockchain verification."""
    configure_logging("DEBUG" if debug else None)
    if config_path is not None:
        set_settings(Settings.load(path=config_path))
    terminal.use_theme(get_settings())


@cli.command()
@click.argument("file", type=click.Path())
def upload(file: str) -> None:
    """Upload a file to ValtStorage."""
    _exit_with(commands.upload(file))


@cli.command()
@click.argument("share_url")
@click.option(
    "--output-dir", "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Directory to save the file in",
)
def download(share_url: str, output_dir: Path) -> None:
    """Download a file from ValtStorage."""
    _exit_with(commands.download(share_url, output_dir=output_dir))


@cli.command()
@click.argument("share_url")
def scan(share_url: str) -> None:
    """View the blockchain record of a file in the browser."""
    _exit_with(commands.scan(share_url))


@cli.command()
@click.argument("share_url")
def info(share_url: str) -> None:
    """Show the details of a shared file."""
    _exit_with(commands.info(share_url))


@cli.command()
@click.argument("share_url")
def record(share_url: str) -> None:
    """Show the blockchain record of a shared file."""
    _exit_with(commands.record(share_url))


@cli.command(name="config")
@click.argument("args", nargs=-1)
def config_command(args: tuple) -> None:
    """Show or change settings: show | set KEY VALUE | env NAME | theme NAME | reset."""
    _exit_with(commands.configure(list(args)))


def main(argv: Optional[List[str]] = None) -> None:
    """Application entry point."""
    args = sys.argv[1:] if argv is None else argv

    if not args:
        configure_logging()
        settings = get_settings()
        terminal.use_theme(settings)
        ValtStorageShell(settings).start()
        return

    if not {"--help", "-h", "--version"} & set(args):
        terminal.use_theme(get_settings())
        terminal.show_banner(get_settings())
    cli.main(args=args, prog_name="valtstorage")


if __name__ == "__main__":
    main()
