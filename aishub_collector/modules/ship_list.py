"""Tracked fleet loader: reads ships.csv into IMO and MMSI key lists.

The file has a header row followed by one vessel per line: column 0 is the
IMO number, column 1 the MMSI. A vessel with an IMO number is tracked by IMO
only, its MMSI is ignored. Bad rows are logged and skipped rather than
aborting the load.
"""
from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import NamedTuple

from aishub_collector.errors import ShipListError

logger = logging.getLogger(__name__)


class ShipList(NamedTuple):
    imo: list[str]
    mmsi: list[str]


def _is_valid_key(value: str) -> bool:
    return value.isdigit()


def load_ship_list(path: Path | str) -> ShipList:
    """Load the tracked vessel keys from *path*."""
    imo: list[str] = []
    mmsi: list[str] = []
    try:
        with open(path, newline="", encoding="utf-8") as f:
            reader = csv.reader(f)
            next(reader, None)  # header
            for line_no, row in enumerate(reader, start=2):
                imo_key = row[0].strip() if row else ""
                mmsi_key = row[1].strip() if len(row) > 1 else ""
                if imo_key:
                    if not _is_valid_key(imo_key):
                        logger.warning(
                            "Ignoring %s line %d: IMO %r is not a number", path, line_no, imo_key
                        )
                        continue
                    imo.append(imo_key)
                elif mmsi_key:
                    if not _is_valid_key(mmsi_key):
                        logger.warning(
                            "Ignoring %s line %d: MMSI %r is not a number", path, line_no, mmsi_key
                        )
                        continue
                    mmsi.append(mmsi_key)
    except (OSError, csv.Error, UnicodeDecodeError) as exc:
        raise ShipListError(f"Error reading {path}: {exc}") from exc

    return ShipList(imo=imo, mmsi=mmsi)
