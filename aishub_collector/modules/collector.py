"""Polling loop: fetch, decode and persist AISHub data on a fixed interval.

One cycle at a time on a single thread:

    Collecting -> Success | RateLimited | Failed -> Sleeping -> Collecting ...

Settings and the ship list are reloaded at the start of every cycle, so the
interval and filters can be edited while the collector runs. A rate-limit
answer bumps the persisted interval by one minute (the smallest step AISHub
allows). Transport and response errors abandon the cycle. Persistence
errors are not handled here: StoreError propagates and ends the run.

Usage:
    from aishub_collector.modules.collector import Collector
    Collector(SettingsStore("settings.json"), "ships.csv", SeriesStore("data")).run_forever()
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Callable

from aishub_collector.errors import RateLimitedError, ResponseDecodeError, TransportError
from aishub_collector.modules.request_builder import DEFAULT_BASE_URL, build_request_url
from aishub_collector.modules.response_decoder import decode_response
from aishub_collector.modules.series_store import SeriesStore
from aishub_collector.modules.settings_store import SettingsStore
from aishub_collector.modules.ship_list import load_ship_list
from aishub_collector.modules.transport import fetch_body
from aishub_collector.schemas.poll_settings import PollSettings

logger = logging.getLogger(__name__)

# Minutes added to update_interval after a rate-limit answer
INTERVAL_INCREMENT_MINUTES = 1


class CycleOutcome(str, Enum):
    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    FAILED = "failed"


@dataclass
class CycleResult:
    """What one poll cycle did and how long to sleep before the next."""
    outcome: CycleOutcome
    interval_minutes: int
    stats: dict[str, int] = field(default_factory=dict)
    error: str | None = None


class Collector:
    def __init__(
        self,
        settings_store: SettingsStore,
        ship_list_path: Path | str,
        store: SeriesStore,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float | None = None,
        fetch: Callable[..., str] = fetch_body,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings_store = settings_store
        self.ship_list_path = Path(ship_list_path)
        self.store = store
        self.base_url = base_url
        self.timeout = timeout
        self._fetch = fetch
        self._sleep = sleep

    def run_cycle(self) -> CycleResult:
        """Run one Collecting step and return the resulting state.

        Raises:
            SettingsError / ShipListError: configuration became unreadable.
            StoreError: the fetched data could not be persisted.
        """
        poll_settings = self.settings_store.load()
        ships = load_ship_list(self.ship_list_path)
        url = build_request_url(poll_settings, ships.imo, ships.mmsi, self.base_url)

        try:
            body = self._fetch(url, compression=poll_settings.compression, timeout=self.timeout)
            records = decode_response(body)
        except RateLimitedError:
            return self._back_off(poll_settings)
        except (TransportError, ResponseDecodeError) as exc:
            # The interval may have been edited while the request was in flight
            interval = self.settings_store.load().update_interval
            logger.error(
                "Error getting data from AISHub API: %s; trying again after %d minute(s)",
                exc, interval,
            )
            return CycleResult(CycleOutcome.FAILED, interval, error=str(exc))

        stats = self.store.append(records)
        logger.info(
            "AISHub: %d records received, %d stored, %d already recorded",
            len(records), stats["stored"], stats["duplicates"],
        )
        return CycleResult(CycleOutcome.SUCCESS, poll_settings.update_interval, stats=stats)

    def _back_off(self, poll_settings: PollSettings) -> CycleResult:
        updated = poll_settings.model_copy(
            update={"update_interval": poll_settings.update_interval + INTERVAL_INCREMENT_MINUTES}
        )
        self.settings_store.save(updated)
        logger.warning(
            "Too frequent requests made to AISHub API. Increased update interval by %d minute(s) "
            "to %d minutes; check that the interval in %s is large enough.",
            INTERVAL_INCREMENT_MINUTES, updated.update_interval, self.settings_store.path,
        )
        return CycleResult(
            CycleOutcome.RATE_LIMITED, updated.update_interval, error="rate limited"
        )

    def run_forever(self, max_cycles: int | None = None) -> None:
        """Poll until the process is stopped (or *max_cycles* cycles have run)."""
        started = time.monotonic()
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            runtime = timedelta(seconds=int(time.monotonic() - started))
            logger.info("Collecting data from AISHub (running for %s)", runtime)
            result = self.run_cycle()
            cycles += 1
            self._sleep(result.interval_minutes * 60)
