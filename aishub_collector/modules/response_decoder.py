"""AISHub CSV response decoding.

The API does not promise a column order or even a fixed column set, so the
header row is resolved into a ColumnMapping once per response and every data
row is then read through that mapping. Unknown columns and malformed rows are
logged and skipped; a single bad row never aborts the response.

Field meanings: https://www.aishub.net/api
"""
from __future__ import annotations

import csv
import io
import logging
from typing import Iterator, Sequence

from pydantic import ValidationError

from aishub_collector.errors import RateLimitedError, ResponseDecodeError
from aishub_collector.schemas.vessel_record import FIELD_BY_TAG, VesselField, VesselRecord

logger = logging.getLogger(__name__)

# Body AISHub sends instead of data when requests come too often
RATE_LIMIT_SENTINEL = "Too frequent requests!"


class ColumnMapping:
    """Column position of each canonical field in one response (None = absent)."""

    def __init__(self) -> None:
        self._positions: list[int | None] = [None] * len(VesselField)
        self.width = 0

    def __getitem__(self, field: VesselField) -> int | None:
        return self._positions[field]

    def __setitem__(self, field: VesselField, position: int) -> None:
        self._positions[field] = position

    def present(self) -> Iterator[tuple[VesselField, int]]:
        """Yield (field, column) for every field found in the header."""
        for field in VesselField:
            position = self._positions[field]
            if position is not None:
                yield field, position

    def __len__(self) -> int:
        return sum(1 for p in self._positions if p is not None)


def is_rate_limited(body: str) -> bool:
    return body.strip() == RATE_LIMIT_SENTINEL


def build_column_mapping(header: Sequence[str]) -> ColumnMapping:
    """Resolve header cells to canonical fields.

    Matching is exact and case-sensitive. Unrecognised columns are skipped
    with a warning since AISHub may add columns over time.
    """
    mapping = ColumnMapping()
    mapping.width = len(header)
    for position, cell in enumerate(header):
        field = FIELD_BY_TAG.get(cell)
        if field is None:
            logger.warning("Ignoring unknown column in AISHub response: %r", cell)
            continue
        if mapping[field] is not None:
            logger.warning("Duplicate column %r in AISHub response, using the first", cell)
            continue
        mapping[field] = position
    return mapping


def decode_row(row: Sequence[str], mapping: ColumnMapping) -> VesselRecord:
    """Build a VesselRecord from one data row.

    Fields whose column is absent, or whose cell is empty, keep the AIS
    "not available" default.

    Raises:
        ValueError: the row has the wrong number of cells.
        pydantic.ValidationError: a cell does not parse as its field's type.
    """
    if len(row) != mapping.width:
        raise ValueError(f"expected {mapping.width} cells, got {len(row)}")
    values = {}
    for field, position in mapping.present():
        cell = row[position]
        if cell == "":
            continue
        values[field.attribute] = cell
    return VesselRecord.model_validate(values)


def _iter_rows(reader) -> Iterator[list[str]]:
    """Yield rows, logging and skipping lines the csv module cannot split."""
    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except csv.Error as exc:
            logger.warning("Skipping unreadable line %d of AISHub response: %s", reader.line_num, exc)
            continue
        if row:
            yield row


def decode_response(body: str) -> list[VesselRecord]:
    """Decode an AISHub CSV body into records, in row order.

    Raises:
        RateLimitedError: the body is the rate-limit message, not a table.
        ResponseDecodeError: the body is empty or has no recognised column.
    """
    if is_rate_limited(body):
        raise RateLimitedError(RATE_LIMIT_SENTINEL)

    # Strip a UTF-8 BOM so it does not hide the first column name
    reader = csv.reader(io.StringIO(body.lstrip("\ufeff")))
    try:
        header = next(reader, None)
    except csv.Error as exc:
        raise ResponseDecodeError(f"AISHub response header is not valid CSV: {exc}") from exc
    if not header:
        raise ResponseDecodeError("AISHub response is empty")

    mapping = build_column_mapping(header)
    if not len(mapping):
        raise ResponseDecodeError(
            f"AISHub response has no recognised columns: {body[:120]!r}"
        )

    records: list[VesselRecord] = []
    for row in _iter_rows(reader):
        try:
            records.append(decode_row(row, mapping))
        except (ValueError, ValidationError) as exc:
            logger.warning(
                "Skipping malformed row %d of AISHub response: %s", reader.line_num, exc
            )

    logger.debug("Decoded %d records from AISHub response", len(records))
    return records
