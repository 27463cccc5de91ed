"""Main CLI entry point."""

from __future__ import annotations

import typer
from rich.console import Console

from clusterpool._config import PoolConfig
from clusterpool._version import __version__
from clusterpool.cli import config, pool, run
from clusterpool.cli._utils import configure_logging

app = typer.Typer(
    name="clusterpool",
    help="clusterpool - warm, shared clusters for short-lived jobs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

app.add_typer(pool.app, name="pool", help="Cluster pool management")
app.add_typer(config.app, name="config", help="Configuration management")
app.command(name="run", context_settings={"allow_interspersed_args": False})(run.run)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"clusterpool version {__version__}")


@app.callback()
def main(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output in JSON format",
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """clusterpool - warm, shared clusters for short-lived jobs."""
    ctx.ensure_object(dict)
    ctx.obj["json"] = json_output
    configure_logging(verbose or PoolConfig.load().debug)


if __name__ == "__main__":
    app()
