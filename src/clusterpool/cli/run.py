"""Run CLI command."""

from __future__ import annotations

import os
import subprocess
from typing import Optional

import typer
from rich.console import Console

from clusterpool.cli._utils import build_args, get_client, handle_error
from clusterpool.exceptions import AcquireError, PoolError
from clusterpool.submitter import create_submitter

CLUSTER_ENV = "CLUSTERPOOL_CLUSTER"
USER_ENV = "CLUSTERPOOL_USER"

console = Console()


def run(
    command: list[str] = typer.Argument(..., help="Command to run once a cluster is bound"),
    client_id: Optional[str] = typer.Option(None, "--client-id", "-c", help="Pool owner"),
    pooled: bool = typer.Option(True, "--pool/--no-pool", help="Borrow from the pool or use a fresh cluster"),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Number of slots in the pool"),
    max_age: Optional[int] = typer.Option(None, "--max-age", help="Minutes a cluster stays reusable"),
    grow: bool = typer.Option(False, "--grow", help="Fill the pool up to --limit before reusing"),
    node_count: int = typer.Option(2, "--nodes", "-n", help="Worker nodes for a new cluster"),
) -> None:
    """Run a command against an acquired cluster.

    The cluster name is passed to the command in CLUSTERPOOL_CLUSTER.

    Examples:
        clusterpool run -c nightly-etl -- ./submit.sh
        clusterpool run -c adhoc --no-pool -- spark-submit job.py
    """
    args = build_args(
        client_id,
        limit=limit,
        max_age_minutes=max_age,
        grow=grow,
        pooled=pooled,
        node_count=node_count,
    )
    client = get_client()
    submitter = create_submitter(args, client.clock, client.allocator.placement_generator)

    def job(cluster_name: str) -> int:
        console.print(f"[dim]Running on cluster {cluster_name}[/dim]")
        env = {**os.environ, CLUSTER_ENV: cluster_name}
        if client.user_id:
            env[USER_ENV] = client.user_id
        return subprocess.run(command, env=env).returncode

    try:
        returncode = submitter.submit(args, job, client.cluster_service)
    except AcquireError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1) from None
    except PoolError as e:
        handle_error(e)
        return
    finally:
        client.close()

    raise typer.Exit(returncode)
