"""Events subcommand: import, stats, export."""

from __future__ import annotations

import time
from pathlib import Path

import typer

from fpmmindex.chain import normalize_address
from fpmmindex.storage.db import get_connection, init_schema
from fpmmindex.storage.event_log import import_events, log_stats, read_jsonl_events
from fpmmindex.storage.export import export_events_to_parquet

app = typer.Typer(help="Raw chain event log: import, statistics, export")


@app.command("import")
def import_cmd(
    ctx: typer.Context,
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON-lines file of decoded logs"),
) -> None:
    """Append decoded chain events to the log. Events already logged are ignored."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        accepted, skipped = import_events(
            conn,
            read_jsonl_events(path),
            ingest_ts=int(time.time() * 1000),
            batch_size=settings.import_batch_size,
        )
        typer.echo(f"Imported {accepted} events from {path}")
        if skipped:
            typer.echo(f"Skipped {skipped} events without block_number/log_index/timestamp/kind")
    finally:
        conn.close()


@app.command("stats")
def stats(ctx: typer.Context) -> None:
    """Show event log statistics (counts, block range, by kind and address)."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        s = log_stats(conn)
        typer.echo(f"Total events: {s['total_events']}")
        typer.echo(f"Blocks: {s.get('min_block')} - {s.get('max_block')}")
        if s.get("by_kind"):
            typer.echo("By kind:")
            for row in s["by_kind"]:
                typer.echo(f"  {row['kind']:<22} {row['count']}")
        if s.get("by_address"):
            typer.echo("By address (top 20):")
            for row in s["by_address"]:
                typer.echo(f"  {row['address']}  {row['count']}")
    finally:
        conn.close()


@app.command("export")
def export(
    ctx: typer.Context,
    address: str | None = typer.Option(None, "--address", "-a", help="Filter by emitting contract"),
    output: str = typer.Option("events.parquet", "--output", "-o", help="Output path"),
) -> None:
    """Export raw events to Parquet."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        count = export_events_to_parquet(conn, output, address=normalize_address(address) if address else None)
        typer.echo(f"Exported {count} events to {output}")
    finally:
        conn.close()
