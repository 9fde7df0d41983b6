"""Command-line interface for Quire.

This module defines the CLI commands using the Click framework.

Commands:
- new: Scaffold a new Quire project.
- build: Build an input tree into an output directory.
- watch: Build, serve with live reload, and rebuild on every change.
"""

from __future__ import annotations

import shutil
from datetime import date
from pathlib import Path

import click
import questionary

from . import __version__
from .build import build_site, load_config
from .console import Console
from .errors import QuireError, WatchError
from .utils import titleize

# Path to the starter project copied by `quire new`
_STARTER_DIR = Path(__file__).parent / "starter"


@click.group()
@click.version_option(version=__version__, prog_name="quire")
def cli():
    """Quire static site builder."""


@cli.command()
@click.argument("name")
def new(name: str):
    """Scaffold a new Quire project."""
    target = Path(name).resolve()
    if target.exists():
        raise click.ClickException(f"Refusing to initialize into existing path: {target}")
    _scaffold(target)
    click.echo(f"New Quire site created at {target}")


@cli.command()
@click.argument("input_dir", type=click.Path(path_type=Path))
@click.argument("output_dir", type=click.Path(path_type=Path))
@click.option("--yes", "-y", is_flag=True, help="Overwrite existing output without asking")
def build(input_dir: Path, output_dir: Path, yes: bool):
    """Build INPUT_DIR into OUTPUT_DIR."""
    console = Console()
    confirm = None if yes else _confirm_overwrite
    try:
        result = build_site(input_dir, output_dir, confirm=confirm)
    except QuireError as exc:
        console.failure(exc)
        raise SystemExit(1) from None
    console.built(result)


@cli.command()
@click.argument("input_dir", type=click.Path(path_type=Path))
@click.argument("output_dir", type=click.Path(path_type=Path))
@click.option("--port", type=int, required=False, help="Port to run the dev server (overrides quire.yaml)")
@click.option(
    "--ws-port",
    type=int,
    required=False,
    help="Port for the live reload websocket server (overrides quire.yaml ws_port)",
)
@click.option("--no-serve", is_flag=True, help="Only rebuild; do not start the dev server")
def watch(input_dir: Path, output_dir: Path, port: int | None, ws_port: int | None, no_serve: bool):
    """Build INPUT_DIR into OUTPUT_DIR and rebuild on every change."""
    from .server import DevServer
    from .watch import WatchLoop

    config = load_config(input_dir)
    console = Console()
    server = None
    if not no_serve:
        http_port = int(port or config.get("port", 3030))
        resolved_ws = ws_port if ws_port is not None else config.get("ws_port")
        server = DevServer(output_dir, http_port=http_port, ws_port=resolved_ws)
        server.start()
        console.serving(server.address)

    loop = WatchLoop(
        input_dir,
        output_dir,
        reloader=server,
        reporter=console,
        debounce=float(config.get("debounce_ms", 250)) / 1000,
    )
    console.message(f"Watching {input_dir}")
    try:
        loop.run()
    except KeyboardInterrupt:
        loop.stop()
    except WatchError as exc:
        console.failure(exc)
        raise SystemExit(1) from None
    finally:
        if server is not None:
            server.stop()


def _confirm_overwrite(path: Path) -> bool:
    """Ask before clearing an existing output directory."""
    answer = questionary.confirm(
        f"{path} already exists. Continue?",
        default=False,
        instruction="(all contents will be overwritten except .git/ and CNAME) ",
        style=_questionary_style(),
    ).ask()
    return bool(answer)


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("instruction", "fg:yellow"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()


def _scaffold(root: Path) -> None:
    """Create the directory structure and files for a new Quire project.

    Args:
        root: Root directory for the new project.
    """
    for src_path in _STARTER_DIR.rglob("*"):
        if src_path.is_dir():
            continue
        dest_path = root / src_path.relative_to(_STARTER_DIR)
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src_path, dest_path)

    today = date.today().isoformat()
    (root / "index.md").write_text(f"# {titleize(root.name)}\n", encoding="utf-8")
    posts = root / "posts"
    posts.mkdir(parents=True, exist_ok=True)
    (posts / f"{today}-hello-world.md").write_text(
        f"<!--metadata\ndate = {today}\n-->\n\n# Hello, World!\n", encoding="utf-8"
    )
