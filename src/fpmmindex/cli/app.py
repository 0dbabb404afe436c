"""Root CLI app - entry point and command registration."""

from pathlib import Path

import typer

from fpmmindex.config import get_settings
from fpmmindex.config.settings import configure_logging

app = typer.Typer(
    name="fpmm",
    help="FPMM index - fold market maker chain events into queryable market, position and volume state.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Path | None = typer.Option(
        None, "--config-dir", "-C", help="Config directory (default: ./config or package config)"
    ),
    profile: str | None = typer.Option(
        None, "--profile", "-p", help="Config profile (e.g. dev) to overlay on default.toml"
    ),
) -> None:
    """Configure logging and store options in context."""
    settings = get_settings(profile, config_dir)
    configure_logging(settings)
    ctx.obj = {"settings": settings, "config_dir": config_dir, "profile": profile}


# Subcommands registered from other modules
from fpmmindex.cli import events, index, markets  # noqa: E402

app.add_typer(events.app, name="events")
app.add_typer(index.app, name="index")
app.add_typer(markets.app, name="markets")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
