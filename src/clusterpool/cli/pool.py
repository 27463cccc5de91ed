"""Pool CLI commands."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from clusterpool.cli._utils import (
    build_args,
    get_client,
    get_json_flag,
    handle_error,
    output_json,
    output_table,
)
from clusterpool.exceptions import PoolError
from clusterpool.models.pooling import pool_filter
from clusterpool.pooling.allocator import is_usable

app = typer.Typer(help="Cluster pool commands.")
console = Console()

ClientIdOption = typer.Option(None, "--client-id", "-c", help="Pool owner (defaults to config)")
LimitOption = typer.Option(None, "--limit", "-l", help="Number of slots in the pool")
MaxAgeOption = typer.Option(None, "--max-age", help="Minutes a cluster stays reusable")


@app.command("list")
def list_pool(
    ctx: typer.Context,
    client_id: Optional[str] = ClientIdOption,
    limit: Optional[int] = LimitOption,
    max_age: Optional[int] = MaxAgeOption,
) -> None:
    """List the clusters in a client's pool."""
    args = build_args(client_id, limit=limit, max_age_minutes=max_age)
    client = get_client()
    try:
        clusters = client.cluster_service.list_clusters(args, pool_filter(args.client_id))
    except PoolError as e:
        handle_error(e)
        return
    finally:
        client.close()

    if get_json_flag(ctx):
        output_json(clusters)
        return
    if not clusters:
        console.print(f"[dim]Pool of {args.client_id} is empty.[/dim]")
        return

    now = client.clock()
    rows = [
        {
            "name": cluster.name,
            "state": cluster.state.value,
            "token": cluster.placement.token if cluster.placement else None,
            "age": str(cluster.age(now)).split(".")[0],
            "usable": "yes" if is_usable(cluster, args.pooling, now) else "no",
            "heartbeat": cluster.heartbeat,
        }
        for cluster in sorted(clusters, key=lambda c: c.name)
    ]
    output_table(
        rows,
        columns=[
            ("name", "Name"),
            ("state", "State"),
            ("token", "Placement"),
            ("age", "Age"),
            ("usable", "Usable"),
            ("heartbeat", "Heartbeat"),
        ],
        title=f"Pool {args.client_id}",
    )


@app.command("acquire")
def acquire(
    ctx: typer.Context,
    client_id: Optional[str] = ClientIdOption,
    limit: Optional[int] = LimitOption,
    max_age: Optional[int] = MaxAgeOption,
    grow: bool = typer.Option(False, "--grow", help="Fill the pool up to --limit before reusing"),
    node_count: int = typer.Option(2, "--nodes", "-n", help="Worker nodes for a new cluster"),
) -> None:
    """Acquire a cluster from the pool and print its name."""
    args = build_args(
        client_id, limit=limit, max_age_minutes=max_age, grow=grow, node_count=node_count
    )
    client = get_client()
    try:
        acquired = client.acquire(args)
    except PoolError as e:
        handle_error(e)
        return
    finally:
        client.close()

    if not acquired:
        console.print(f"[red]Failed to acquire a cluster for {args.client_id}[/red]")
        raise typer.Exit(1)

    if get_json_flag(ctx):
        output_json({"client_id": args.client_id, "cluster": args.cluster.name})
    else:
        console.print(args.cluster.name)


@app.command("release")
def release(
    name: str = typer.Option(..., "--name", help="Cluster acquired earlier"),
    client_id: Optional[str] = ClientIdOption,
) -> None:
    """Release a cluster back to the pool, deleting it if it errored."""
    args = build_args(client_id, name=name)
    client = get_client()
    try:
        released = client.release(args)
    except PoolError as e:
        handle_error(e)
        return
    finally:
        client.close()

    if not released:
        console.print(f"[yellow]Could not delete broken cluster {name}[/yellow]")
        raise typer.Exit(1)
    console.print(f"[green]Released {name}[/green]")


@app.command("reap")
def reap(
    ctx: typer.Context,
    client_id: Optional[str] = ClientIdOption,
) -> None:
    """Delete errored and heartbeat-expired clusters from the pool."""
    args = build_args(client_id)
    client = get_client()
    try:
        deleted = client.reap(args)
    except PoolError as e:
        handle_error(e)
        return
    finally:
        client.close()

    if get_json_flag(ctx):
        output_json(deleted)
    elif deleted:
        for name in deleted:
            console.print(f"[green]Deleted {name}[/green]")
    else:
        console.print("[dim]Nothing to collect.[/dim]")
