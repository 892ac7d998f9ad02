"""Per-vessel append-only CSV series.

Layout under the data directory::

    imo/{name}_{imo}.csv
    mmsi/{name}_{mmsi}.csv

Records are routed by IMO number when it is known, otherwise by MMSI; a
record with neither cannot be identified and is dropped. A record is only
appended when its timestamp is strictly greater than the last one already in
the series, which makes re-appending the same batch a no-op and keeps every
series ordered by time.

Each append is one write followed by flush and fsync. A row left half
written by an interrupted run is cut off on the next access; any other
damage (missing header, unreadable last row) raises StoreError rather than
being appended to.
"""
from __future__ import annotations

import csv
import io
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from aishub_collector.errors import StoreError
from aishub_collector.schemas.vessel_record import CSV_HEADER, VesselField, VesselRecord

logger = logging.getLogger(__name__)

KIND_IMO = "imo"
KIND_MMSI = "mmsi"

_TAIL_CHUNK = 64 * 1024


@dataclass
class SeriesSummary:
    """Overview of one series file, for status reporting."""
    kind: str
    path: Path
    rows: int = 0
    last_timestamp: int | None = None
    error: str | None = None


def _render_row(cells: list[str]) -> str:
    buf = io.StringIO()
    csv.writer(buf, lineterminator="\n").writerow(cells)
    return buf.getvalue()


_HEADER_LINE = _render_row(CSV_HEADER).encode("utf-8")


def _safe_name(name: str) -> str:
    """Keep vessel names from escaping the series directory."""
    for char in ("/", "\\", os.sep, "\x00"):
        name = name.replace(char, "_")
    return name


def _has_complete_header(path: Path) -> bool:
    """Check the first line of an existing series file.

    Returns False when the file holds nothing but the start of the header
    line (an interrupted header write).

    Raises:
        StoreError: the file starts with anything else.
    """
    with path.open("rb") as f:
        head = f.read(len(_HEADER_LINE))
    if head == _HEADER_LINE:
        return True
    if _HEADER_LINE.startswith(head):
        return False
    raise StoreError(f"{path} does not start with the series header")


def _read_series(path: Path) -> tuple[int, list[str] | None]:
    """Return (data row count, last data row) of a series file.

    Raises:
        StoreError: the header is not the canonical one or the file is not CSV.
    """
    try:
        with path.open(newline="", encoding="utf-8") as f:
            reader = csv.reader(f)
            header = next(reader, None)
            if header is None:
                return 0, None
            if header != CSV_HEADER:
                raise StoreError(f"{path} does not start with the series header")
            rows = 0
            last: list[str] | None = None
            for row in reader:
                if not row:
                    continue
                rows += 1
                last = row
    except (OSError, csv.Error, UnicodeDecodeError) as exc:
        raise StoreError(f"Error reading series {path}: {exc}") from exc
    return rows, last


def _row_timestamp(path: Path, row: list[str]) -> int:
    if len(row) != len(CSV_HEADER):
        raise StoreError(f"Last row of {path} has {len(row)} cells, expected {len(CSV_HEADER)}")
    try:
        return int(row[VesselField.TIMESTAMP])
    except ValueError as exc:
        raise StoreError(f"Last row of {path} has an invalid timestamp: {exc}") from exc


def _repair_tail(path: Path) -> None:
    """Cut off a trailing partial row (anything after the last newline)."""
    with path.open("rb+") as f:
        size = f.seek(0, os.SEEK_END)
        if size == 0:
            return
        f.seek(size - 1)
        if f.read(1) == b"\n":
            return
        keep = 0
        pos = size
        while pos > 0:
            step = min(_TAIL_CHUNK, pos)
            pos -= step
            f.seek(pos)
            idx = f.read(step).rfind(b"\n")
            if idx != -1:
                keep = pos + idx + 1
                break
        f.truncate(keep)
        f.flush()
        os.fsync(f.fileno())
    logger.warning(
        "Removed %d bytes of partially written data from the end of %s", size - keep, path
    )


class SeriesStore:
    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir)

    def series_path(self, record: VesselRecord) -> Path | None:
        """Series file for *record*, or None when it has neither IMO nor MMSI."""
        if record.imo_number != 0:
            kind, key = KIND_IMO, record.imo_number
        elif record.mmsi_number != 0:
            kind, key = KIND_MMSI, record.mmsi_number
        else:
            return None
        return self.data_dir / kind / f"{_safe_name(record.name)}_{key}.csv"

    def last_timestamp(self, path: Path) -> int:
        """Timestamp of the last row in *path*; 0 for a missing, empty or header-only file."""
        if not path.exists():
            return 0
        _, last = _read_series(path)
        if last is None:
            return 0
        return _row_timestamp(path, last)

    def _open_series(self, path: Path) -> int:
        """Make sure *path* is a usable series file and return its tail timestamp."""
        if path.exists():
            if _has_complete_header(path):
                _repair_tail(path)
            elif path.stat().st_size:
                logger.warning("Rewriting partially written header of %s", path)
                self._write(path, "", mode="w")
        if not path.exists() or path.stat().st_size == 0:
            self._write(path, _render_row(CSV_HEADER), mode="w")
            logger.info("Created series %s", path)
            return 0
        return self.last_timestamp(path)

    @staticmethod
    def _write(path: Path, text: str, mode: str = "a") -> None:
        with path.open(mode, newline="", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())

    def append(self, records: Iterable[VesselRecord]) -> dict[str, int]:
        """Append new observations to their vessel series.

        Returns {"stored": int, "duplicates": int, "unidentified": int}.

        Raises:
            StoreError: on the first file operation that fails; the rest of
                the batch is not processed.
        """
        stats = {"stored": 0, "duplicates": 0, "unidentified": 0}
        try:
            for kind in (KIND_IMO, KIND_MMSI):
                (self.data_dir / kind).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreError(f"Error creating data directory {self.data_dir}: {exc}") from exc

        tails: dict[Path, int] = {}
        for record in records:
            path = self.series_path(record)
            if path is None:
                logger.debug("Dropping record without IMO or MMSI: %r", record.name)
                stats["unidentified"] += 1
                continue

            try:
                if path not in tails:
                    tails[path] = self._open_series(path)
                if record.timestamp <= tails[path]:
                    stats["duplicates"] += 1
                    continue
                self._write(path, _render_row(record.to_row()))
            except (OSError, ValueError) as exc:
                raise StoreError(f"Error writing series {path}: {exc}") from exc
            tails[path] = record.timestamp
            stats["stored"] += 1

        logger.debug("Series append: %s", stats)
        return stats

    def list_series(self) -> list[SeriesSummary]:
        """Summarise every series file, IMO series first."""
        summaries: list[SeriesSummary] = []
        for kind in (KIND_IMO, KIND_MMSI):
            directory = self.data_dir / kind
            if not directory.is_dir():
                continue
            for path in sorted(directory.glob("*.csv")):
                summary = SeriesSummary(kind=kind, path=path)
                try:
                    summary.rows, last = _read_series(path)
                    if last is not None:
                        summary.last_timestamp = _row_timestamp(path, last)
                except StoreError as exc:
                    summary.error = str(exc)
                summaries.append(summary)
        return summaries
