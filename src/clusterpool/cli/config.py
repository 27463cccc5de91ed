"""Configuration CLI commands."""

from __future__ import annotations

import typer
from rich.console import Console

from clusterpool._config import (
    CONFIG_FILE,
    PoolConfig,
    get_config_value,
    set_config_value,
)

app = typer.Typer(help="Configuration management.")
console = Console()


@app.command("get")
def get(
    key: str = typer.Argument(..., help="Configuration key, e.g. region or pooling.limit"),
) -> None:
    """Get a configuration value.

    Example:
        clusterpool config get pooling.limit
    """
    value = get_config_value(key)

    if value is None:
        console.print(f"[dim]No value set for '{key}'[/dim]")
    else:
        console.print(value)


@app.command("set")
def set_value(
    key: str = typer.Argument(..., help="Configuration key"),
    value: str = typer.Argument(..., help="Configuration value"),
) -> None:
    """Set a configuration value.

    Example:
        clusterpool config set region europe-west1
        clusterpool config set pooling.limit 4
    """
    if value.lower() in ("true", "false"):
        typed_value: str | bool | int | float = value.lower() == "true"
    elif value.isdigit():
        typed_value = int(value)
    elif value.replace(".", "", 1).isdigit():
        typed_value = float(value)
    else:
        typed_value = value

    set_config_value(key, typed_value)
    console.print(f"[green]Set {key} = {value}[/green]")


@app.command("list")
def list_config() -> None:
    """List all configuration values."""
    config = PoolConfig.load()

    console.print("[bold]Current Configuration[/bold]\n")

    console.print(f"  api_url: {config.base_url}")
    console.print(f"  project: {config.project or '[dim]not set[/dim]'}")
    console.print(f"  region: {config.region}")
    console.print(f"  client_id: {config.client_id or '[dim]not set[/dim]'}")
    console.print(f"  timeout: {config.timeout}")
    console.print(f"  max_retries: {config.max_retries}")
    console.print(f"  debug: {config.debug}")
    console.print(f"  verify_ssl: {config.verify_ssl}")
    console.print("  [bold]pooling[/bold]")
    console.print(f"    limit: {config.pooling.limit}")
    console.print(f"    max_age_minutes: {config.pooling.max_age_minutes}")
    console.print(f"    heartbeat_minutes: {config.pooling.heartbeat_minutes}")

    console.print(f"\n[dim]Config file: {CONFIG_FILE}[/dim]")


@app.command("path")
def show_path() -> None:
    """Show configuration file path."""
    console.print(str(CONFIG_FILE))
