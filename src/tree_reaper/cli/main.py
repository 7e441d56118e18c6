"""Command-line interface for tree-reaper."""

import asyncio
from pathlib import Path

import click
from rich.console import Console
from rich.tree import Tree

from ..core.config import DEFAULT_CONFIG_PATH, ReaperConfig, load_config
from ..core.enumerator import read_process_table
from ..core.liveness import wait_for_exit
from ..core.signals import parse_signal, signal_name
from ..core.strategy import select_strategy
from ..core.terminator import kill_process_tree, kill_process_tree_async
from ..utils.rich_logging import setup_rich_logging


console = Console()


@click.group()
@click.option(
    "--config", "-c",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help=f"Config file (default: {DEFAULT_CONFIG_PATH} if present)",
)
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.pass_context
def cli(ctx, config_path, verbose):
    """tree-reaper - kill a process together with everything it spawned."""
    ctx.ensure_object(dict)
    if config_path is None:
        config = load_config(DEFAULT_CONFIG_PATH) if DEFAULT_CONFIG_PATH.exists() else ReaperConfig()
    else:
        config = load_config(config_path)
    setup_rich_logging("DEBUG" if verbose else config.log_level)
    ctx.obj["config"] = config


@cli.command()
@click.argument("pid", type=int)
@click.option("--signal", "-s", "signal_opt", default=None, help="Signal name or number")
@click.option("--async", "use_async", is_flag=True, help="Use the snapshot-based async sweep")
@click.option("--wait", "wait_seconds", type=float, default=None, help="Seconds to wait for PID to exit")
@click.pass_context
def kill(ctx, pid, signal_opt, use_async, wait_seconds):
    """Kill PID and all of its descendants."""
    config = ctx.obj["config"]

    try:
        sig = parse_signal(signal_opt or config.default_signal)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--signal")

    strategy = select_strategy(config=config)
    console.print(
        f"[bold]Killing process tree of {pid}[/] with {signal_name(sig)} "
        f"({strategy.name} strategy{', async' if use_async else ''})"
    )

    if use_async:
        asyncio.run(kill_process_tree_async(pid, sig, strategy=strategy))
    else:
        kill_process_tree(pid, sig, strategy=strategy)

    if wait_seconds is None:
        console.print("[green]✓ Sweep finished[/]")
        return

    if wait_for_exit(pid, timeout=wait_seconds):
        console.print(f"[green]✓ Process {pid} is gone[/]")
    else:
        console.print(f"[red]Process {pid} still running after {wait_seconds}s[/]")
        ctx.exit(1)


@cli.command()
@click.argument("pid", type=int)
@click.pass_context
def tree(ctx, pid):
    """Show the current descendant tree of PID."""
    config = ctx.obj["config"]

    try:
        table = asyncio.run(
            read_process_table(
                ps_executable=config.ps_executable,
                timeout=config.command_timeout,
            )
        )
    except Exception as e:
        console.print(f"[red]Error: could not read process table: {e}[/]")
        ctx.exit(1)

    if pid not in table.pids:
        console.print(f"[yellow]Process {pid} is not running[/]")
        ctx.exit(1)

    root = Tree(f"[bold]{pid}[/]")
    branches = {pid: root}
    # Pre-order: a parent's branch always exists before its children
    for descendant in table.descendants(pid):
        parent = table.parents[descendant]
        branches[descendant] = branches[parent].add(str(descendant))

    console.print(root)


def main():
    """Console script entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
