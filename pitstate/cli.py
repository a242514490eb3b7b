"""
pitstate CLI - build, start and stop test states.

Usage:
  pitstate build mongo "several users"   # Build the fixture image
  pitstate start mongo "several users"   # Start it and wait until ready
  pitstate status mongo "several users"  # Show the container holding its name
  pitstate stop mongo "several users"    # Remove the container
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

# Load .env file if it exists
from dotenv import load_dotenv
load_dotenv(Path.cwd() / ".env")

from rich.console import Console
from rich.table import Table
from rich import box

from .config import settings
from .models.errors import PitStateException
from .services.container.utils import DOCKER_ERRORS, describe_error
from .services.state import StateManager
from .utils.logging import setup_logging

console = Console()


# ============================================================================
# Commands
# ============================================================================

async def cmd_build(manager: StateManager, args) -> None:
    console.print(f"[bold]Building[/bold] {args.provider}/{args.fixture}")
    name = await manager.build(args.provider, args.fixture, sys.stdout)
    console.print(f"[green]Built image[/green] {name}")


async def cmd_start(manager: StateManager, args) -> None:
    with console.status(f"Starting {args.provider}/{args.fixture}..."):
        state = await manager.start(args.provider, args.fixture)

    table = Table(title="State container", box=box.ROUNDED)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("ID", state.id[:12])
    table.add_row("Name", state.name)
    table.add_row("Host", state.host)
    for container_port, host_port in state.ports.items():
        table.add_row(f"Port {container_port}", str(host_port) if host_port else "-")
    console.print(table)


async def cmd_stop(manager: StateManager, args) -> None:
    container_id = await manager.stop(args.provider, args.fixture)
    console.print(f"[green]Removed container[/green] {container_id[:12]}")


async def cmd_status(manager: StateManager, args) -> None:
    name = manager.name_for(args.provider, args.fixture)
    container_id = await manager.status(args.provider, args.fixture)
    if container_id is None:
        console.print(f"[yellow]No container[/yellow] named {name}")
    else:
        console.print(f"[green]{name}[/green] held by container {container_id[:12]}")


HANDLERS = {
    "build": cmd_build,
    "start": cmd_start,
    "stop": cmd_stop,
    "status": cmd_status,
}


async def run(args, manager: Optional[StateManager] = None) -> int:
    """Run one command; returns the process exit status."""
    if manager is None:
        try:
            manager = StateManager(states_dir=args.states_dir)
        except DOCKER_ERRORS as e:
            console.print(
                f"[red]Error:[/red] Cannot connect to docker: {describe_error(e)}"
            )
            return 1
    try:
        await HANDLERS[args.command](manager, args)
    except PitStateException as e:
        console.print(f"[red]Error:[/red] {e.message}")
        return 1
    finally:
        manager.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pitstate",
        description="Disposable test states backed by docker containers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s build mongo "several users"
  %(prog)s start mongo "several users"
  %(prog)s stop mongo "several users"
""",
    )
    parser.add_argument(
        "--states-dir",
        default=settings.states_dir,
        help="Base directory of the fixtures (default: %(default)s)",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for command, help_text in (
        ("build", "Build the fixture image"),
        ("start", "Start a ready container from the fixture image"),
        ("stop", "Remove the fixture's container"),
        ("status", "Show the container holding the fixture's name"),
    ):
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument("provider", help="State provider (e.g. mongo)")
        sub.add_argument("fixture", help="Fixture name (e.g. 'several users')")

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level, log_format="console")

    try:
        sys.exit(asyncio.run(run(args)))
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
