"""Index subcommand: run, status, export."""

from __future__ import annotations

import typer

from fpmmindex.collateral import registry_from_settings
from fpmmindex.indexer.processor import EventProcessor
from fpmmindex.indexer.replay import run_index
from fpmmindex.models.processing import IndexCursor
from fpmmindex.storage.db import get_connection, init_schema
from fpmmindex.storage.export import export_entities_to_parquet
from fpmmindex.storage.store import DuckDBStore

app = typer.Typer(help="Fold the event log into market, position and volume state")


@app.command("run")
def run_cmd(
    ctx: typer.Context,
    to_block: int | None = typer.Option(None, "--to-block", help="Stop after this block"),
) -> None:
    """Process every logged event after the stored cursor."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        processor = EventProcessor(
            DuckDBStore(conn),
            registry_from_settings(settings),
            price_precision=settings.price_precision,
        )
        result = run_index(conn, processor, to_block=to_block, checkpoint_every=settings.checkpoint_every)
        typer.echo(f"Processed {result.events_seen} events")
        for status, count in sorted(result.statuses.items()):
            typer.echo(f"  {status:<8} {count}")
        if result.cursor:
            typer.echo(f"Cursor at block {result.cursor[0]} log {result.cursor[1]}")
    finally:
        conn.close()


@app.command("status")
def status(ctx: typer.Context) -> None:
    """Show cursor position and materialized entity counts."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        store = DuckDBStore(conn)
        cursor = store.load(IndexCursor, IndexCursor().id)
        if cursor is None:
            typer.echo("Not indexed yet. Run: fpmm index run")
        else:
            typer.echo(
                f"Cursor: block {cursor.block_number} log {cursor.log_index} "
                f"({cursor.events_processed} events folded)"
            )
        for entity_type, count in store.count_by_type().items():
            typer.echo(f"  {entity_type:<30} {count}")
    finally:
        conn.close()


@app.command("export")
def export(
    ctx: typer.Context,
    entity_type: str = typer.Argument(..., help="Entity type, e.g. market, trade, user_position"),
    output: str = typer.Option(None, "--output", "-o", help="Output path (default: <entity_type>.parquet)"),
) -> None:
    """Export one materialized entity type to Parquet."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    output = output or f"{entity_type}.parquet"
    try:
        count = export_entities_to_parquet(conn, output, entity_type)
        typer.echo(f"Exported {count} {entity_type} rows to {output}")
    finally:
        conn.close()
