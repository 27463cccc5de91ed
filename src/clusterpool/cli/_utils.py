"""CLI utilities."""

from __future__ import annotations

import json
import logging
from datetime import timedelta
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from clusterpool._config import PoolConfig
from clusterpool.client import PoolClient
from clusterpool.exceptions import CredentialsError, PoolError
from clusterpool.models.pooling import AllocationArgs, ClusterSpec, PoolingConfig

console = Console()
error_console = Console(stderr=True)


def configure_logging(verbose: bool = False) -> None:
    """Send clusterpool logs to stderr through rich."""
    level = logging.DEBUG if verbose else logging.INFO
    handler = RichHandler(console=error_console, show_path=False, rich_tracebacks=True)
    root = logging.getLogger("clusterpool")
    root.handlers[:] = [handler]
    root.setLevel(level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def get_client() -> PoolClient:
    """Build a PoolClient from the config file and environment."""
    try:
        return PoolClient()
    except CredentialsError as e:
        error_console.print(f"[red]Credentials error:[/red] {e}")
        error_console.print("\nSet CLUSTERPOOL_ACCESS_TOKEN or CLUSTERPOOL_APPLICATION_CREDENTIALS.")
        raise typer.Exit(1) from None


def build_args(
    client_id: str | None,
    *,
    limit: int | None = None,
    max_age_minutes: int | None = None,
    grow: bool = False,
    pooled: bool = True,
    name: str | None = None,
    node_count: int = 2,
) -> AllocationArgs:
    """Allocation arguments from CLI options, falling back to config defaults."""
    config = PoolConfig.load()
    resolved_client_id = client_id or config.client_id
    if not resolved_client_id:
        error_console.print("[red]Error:[/red] --client-id is required (or set client_id in config)")
        raise typer.Exit(1)

    pooling = None
    if pooled:
        pooling = PoolingConfig(
            limit=limit if limit is not None else config.pooling.limit,
            max_age=timedelta(
                minutes=max_age_minutes
                if max_age_minutes is not None
                else config.pooling.max_age_minutes
            ),
            grow_to_limit=grow,
        )

    return AllocationArgs(
        client_id=resolved_client_id,
        pooling=pooling,
        cluster=ClusterSpec(name=name, node_count=node_count),
        heartbeat_interval=timedelta(minutes=config.pooling.heartbeat_minutes),
    )


def output_json(data: Any) -> None:
    """Output data as JSON."""
    if hasattr(data, "model_dump"):
        data = data.model_dump(mode="json")
    elif isinstance(data, list) and data and hasattr(data[0], "model_dump"):
        data = [item.model_dump(mode="json") for item in data]

    console.print_json(json.dumps(data, default=str))


def output_table(
    rows: list[dict[str, Any]],
    columns: list[tuple[str, str]],
    title: str | None = None,
) -> None:
    """Output rows as a Rich table.

    Args:
        rows: List of dicts
        columns: List of (key, header) tuples
        title: Optional table title
    """
    table = Table(title=title, show_header=True, header_style="bold")

    for _, header in columns:
        table.add_column(header)

    for item in rows:
        row = []
        for key, _ in columns:
            value = item.get(key)
            if value is None:
                value = "-"
            elif hasattr(value, "isoformat"):
                value = value.strftime("%Y-%m-%d %H:%M:%S")
            row.append(str(value))
        table.add_row(*row)

    console.print(table)


def handle_error(e: Exception) -> None:
    """Handle and display an error."""
    if isinstance(e, PoolError):
        error_console.print(f"[red]Error:[/red] {e.message}")
    else:
        error_console.print(f"[red]Error:[/red] {e}")

    raise typer.Exit(1)


def get_json_flag(ctx: typer.Context) -> bool:
    """Get JSON output flag from context."""
    return ctx.obj.get("json", False) if ctx.obj else False
