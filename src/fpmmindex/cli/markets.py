"""Markets subcommand: list, show."""

from __future__ import annotations

import typer

from fpmmindex.chain import normalize_address
from fpmmindex.models import Market, PoolMembership
from fpmmindex.storage.db import get_connection, init_schema
from fpmmindex.storage.store import DuckDBStore

app = typer.Typer(help="Inspect materialized market state")


@app.command("list")
def list_markets(ctx: typer.Context) -> None:
    """List indexed markets with liquidity and volume."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        markets = list(DuckDBStore(conn).iter_entities(Market))
        for m in markets:
            typer.echo(
                f"  {m.id}  N={m.outcome_slot_count}  L={m.scaled_liquidity_parameter:.4f}  "
                f"vol={m.scaled_collateral_volume:.4f}  trades={m.trades_quantity}"
            )
        typer.echo(f"Total: {len(markets)} markets")
    finally:
        conn.close()


@app.command("show")
def show(
    ctx: typer.Context,
    market_id: str = typer.Argument(..., help="Market contract address"),
) -> None:
    """Show reserves, prices, accumulators and LP holders of one market."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        store = DuckDBStore(conn)
        market_id = normalize_address(market_id)
        market = store.load(Market, market_id)
        if market is None:
            typer.echo(f"Market {market_id} not indexed")
            raise typer.Exit(1)
        typer.echo(f"Market {market.id}")
        typer.echo(f"  collateral      {market.collateral_token}  fee {market.fee}")
        typer.echo(f"  total supply    {market.total_supply}")
        typer.echo(f"  liquidity       {market.liquidity_parameter} ({market.scaled_liquidity_parameter})")
        for i, (amount, price) in enumerate(zip(market.outcome_token_amounts, market.outcome_token_prices)):
            typer.echo(f"  outcome {i:<3}     reserve {amount}  price {price:.6f}")
        typer.echo(
            f"  volume          {market.collateral_volume} "
            f"(buy {market.collateral_buy_volume}, sell {market.collateral_sell_volume})"
        )
        typer.echo(f"  fees            {market.fee_volume}")
        typer.echo(
            f"  trades          {market.trades_quantity} "
            f"({market.buys_quantity} buys, {market.sells_quantity} sells)"
        )
        holders = [m for m in store.iter_entities(PoolMembership) if m.market == market.id and m.amount > 0]
        if holders:
            typer.echo("  LP holders:")
            for m in holders:
                typer.echo(f"    {m.holder}  {m.amount}")
    finally:
        conn.close()
