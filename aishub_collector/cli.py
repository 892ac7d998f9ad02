"""aishub-collector CLI.

Commands:
  run     start the polling loop (ctrl-C to stop)
  status  show the vessel series collected so far
"""
from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone

import typer
from rich.console import Console
from rich.table import Table

from aishub_collector.config import settings
from aishub_collector.errors import SettingsError, ShipListError, StoreError

app = typer.Typer(
    name="aishub-collector",
    help="Collect AISHub vessel reports into per-vessel CSV series.",
    no_args_is_help=True,
)
console = Console()
logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Timestamped diagnostics on stdout."""
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


@app.command("run")
def run():
    """Poll AISHub until stopped."""
    from aishub_collector.modules.collector import Collector
    from aishub_collector.modules.series_store import SeriesStore
    from aishub_collector.modules.settings_store import SettingsStore
    from aishub_collector.modules.ship_list import load_ship_list

    _configure_logging()
    console.print("Starting AISHub Data Collector... Press ctrl+C to stop.")

    settings_store = SettingsStore(settings.SETTINGS_FILE)
    try:
        # Fail fast on bad configuration before the first request
        settings_store.load()
        ships = load_ship_list(settings.SHIPS_FILE)
    except (SettingsError, ShipListError) as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(1)

    if not ships.imo and not ships.mmsi:
        logger.warning(
            "%s lists no vessels; every vessel matching the other filters will be stored",
            settings.SHIPS_FILE,
        )
    else:
        logger.info("Tracking %d vessels by IMO and %d by MMSI", len(ships.imo), len(ships.mmsi))

    collector = Collector(
        settings_store,
        settings.SHIPS_FILE,
        SeriesStore(settings.DATA_DIR),
        base_url=settings.AISHUB_BASE_URL,
        timeout=settings.HTTP_TIMEOUT,
    )
    try:
        collector.run_forever()
    except KeyboardInterrupt:
        console.print("Stopped.")
    except StoreError as e:
        logger.critical("Error saving data: %s", e)
        console.print(f"[red]Error saving data: {e}. Fix the data directory and restart.[/red]")
        raise typer.Exit(1)
    except (SettingsError, ShipListError) as e:
        logger.critical("Configuration error: %s", e)
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(1)


@app.command("status")
def status():
    """List collected vessel series with row counts and last report time."""
    from aishub_collector.modules.series_store import SeriesStore

    summaries = SeriesStore(settings.DATA_DIR).list_series()
    if not summaries:
        console.print(f"[yellow]No series in {settings.DATA_DIR} yet.[/yellow]")
        return

    table = Table(title="Vessel series")
    table.add_column("Key")
    table.add_column("File")
    table.add_column("Rows", justify="right")
    table.add_column("Last report (UTC)")
    for s in summaries:
        if s.error:
            last = f"[red]{s.error}[/red]"
        elif s.last_timestamp:
            last = datetime.fromtimestamp(s.last_timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        else:
            last = "-"
        table.add_row(s.kind.upper(), s.path.name, str(s.rows), last)
    console.print(table)


if __name__ == "__main__":
    app()
