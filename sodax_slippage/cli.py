"""CLI entry point for the SODAX slippage monitor."""

import asyncio
import json
import sys
from json import JSONDecodeError
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console

from sodax_slippage.client import decode_records
from sodax_slippage.core.config import MonitorConfig, load_config
from sodax_slippage.core.errors import EventDecodeError, MonitorError
from sodax_slippage.core.telemetry import build_telemetry_reporter
from sodax_slippage.engine import ReconciliationEngine
from sodax_slippage.models import RawEvent
from sodax_slippage.service import MonitorSnapshot, SlippageMonitor, build_snapshot
from sodax_slippage.views import (
    SortField,
    filter_intents,
    render_intents_table,
    render_summary,
    sort_intents,
)

app = typer.Typer(
    name="sodax-slippage",
    help="Pair SODAX intent quotes with their fills and report slippage",
)

console = Console()

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
)


def setup_logging(log_dir: Path, verbose: bool = False) -> None:
    """Send monitor logs to stderr and to a daily file under ``log_dir``.

    Per-event pairing decisions are logged at DEBUG, so they reach the console
    only with ``verbose``; the file always keeps them.
    """
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level="DEBUG" if verbose else "INFO")
    logger.add(
        log_dir / "slippage_{time:YYYY-MM-DD}.log",
        rotation="00:00",
        retention="7 days",
        level="DEBUG",
    )


def build_monitor(config: MonitorConfig) -> SlippageMonitor:
    """Wire a monitor with a fresh engine for this process."""
    telemetry = build_telemetry_reporter(file_path=config.telemetry_file)
    return SlippageMonitor.from_config(config, telemetry=telemetry)


def print_snapshot(
    snapshot: MonitorSnapshot,
    *,
    token: str | None = None,
    sort: SortField = SortField.TIME,
    limit: int | None = None,
    as_json: bool = False,
) -> None:
    if as_json:
        typer.echo(json.dumps(snapshot.to_dict(), indent=2))
        return

    intents = sort_intents(filter_intents(snapshot.intents, token), sort)
    if limit:
        intents = intents[:limit]
    console.print(render_summary(snapshot.stats))
    console.print(render_intents_table(intents))
    console.print(f"Last updated: {snapshot.last_updated.isoformat()}", style="dim")


@app.command()
def snapshot(
    token: str | None = typer.Option(None, "--token", help="Filter by quoted token symbol"),
    sort: SortField = typer.Option(SortField.TIME, "--sort", help="Sort order"),
    limit: int | None = typer.Option(None, "--limit", min=1, help="Maximum rows to display"),
    as_json: bool = typer.Option(False, "--json", help="Print the snapshot as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Backfill from sodaxscan once and print paired intents."""

    config = load_config()
    setup_logging(config.log_dir, verbose)

    monitor = build_monitor(config)
    try:
        result = asyncio.run(monitor.refresh())
    except MonitorError as exc:
        typer.secho(f"Failed to fetch data: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    print_snapshot(result, token=token, sort=sort, limit=limit, as_json=as_json)


@app.command()
def watch(
    interval: float | None = typer.Option(
        None, "--interval", min=0.0, help="Seconds between polls (defaults to config)"
    ),
    iterations: int | None = typer.Option(
        None, "--iterations", min=1, help="Stop after this many refreshes"
    ),
    token: str | None = typer.Option(None, "--token", help="Filter by quoted token symbol"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Backfill, then poll for new quotes and fills until interrupted."""

    config = load_config()
    if interval is not None:
        config = config.model_copy(update={"poll_interval_seconds": interval})
    setup_logging(config.log_dir, verbose)

    monitor = build_monitor(config)

    def _render(snapshot: MonitorSnapshot) -> None:
        print_snapshot(snapshot, token=token)

    try:
        asyncio.run(monitor.run(iterations=iterations, on_snapshot=_render))
    except KeyboardInterrupt:  # pragma: no cover - user initiated
        typer.echo("Stopping slippage monitor.")


@app.command()
def replay(
    events_file: Path = typer.Argument(..., help="JSON file of indexer messages"),
    token: str | None = typer.Option(None, "--token", help="Filter by quoted token symbol"),
    sort: SortField = typer.Option(SortField.TIME, "--sort", help="Sort order"),
    as_json: bool = typer.Option(False, "--json", help="Print the snapshot as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Reconcile messages from a saved JSON file without touching the network."""

    config = load_config()
    setup_logging(config.log_dir, verbose)

    try:
        payload = json.loads(events_file.read_text(encoding="utf-8"))
        events = decode_records(payload, RawEvent)
    except (OSError, JSONDecodeError, EventDecodeError) as exc:
        typer.secho(f"Unable to read {events_file}: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    engine = ReconciliationEngine()
    batch = engine.ingest_batch(events)
    print_snapshot(
        build_snapshot(engine, explorer_urls=config.explorer_urls, batch=batch),
        token=token,
        sort=sort,
        as_json=as_json,
    )


if __name__ == "__main__":
    app()
