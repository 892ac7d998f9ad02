"""Tests for the per-vessel append-only series store (series_store.py)."""
import csv
from unittest.mock import patch

import pytest

from aishub_collector.errors import StoreError
from aishub_collector.modules.response_decoder import decode_response
from aishub_collector.modules.series_store import SeriesStore
from aishub_collector.schemas.vessel_record import CSV_HEADER, VesselRecord

HEADER_LINE = ",".join(CSV_HEADER) + "\n"


def _rows(path):
    with path.open(newline="") as f:
        return list(csv.reader(f))


def _timestamps(path):
    idx = CSV_HEADER.index("TSTAMP")
    return [int(row[idx]) for row in _rows(path)[1:]]


# =====================================================================
# Routing and file creation
# =====================================================================

class TestRouting:
    def test_first_mmsi_record_creates_series_with_header(self, data_dir):
        store = SeriesStore(data_dir)
        record = VesselRecord(mmsi_number=123456789, name="KATLA", timestamp=1700000000)

        stats = store.append([record])

        path = data_dir / "mmsi" / "KATLA_123456789.csv"
        assert path.exists()
        rows = _rows(path)
        assert rows[0] == CSV_HEADER
        assert rows[1:] == [record.to_row()]
        assert stats == {"stored": 1, "duplicates": 0, "unidentified": 0}

    def test_imo_takes_precedence_over_mmsi(self, data_dir):
        store = SeriesStore(data_dir)
        record = VesselRecord(imo_number=123, mmsi_number=456, name="BOTH", timestamp=10)

        store.append([record])

        assert (data_dir / "imo" / "BOTH_123.csv").exists()
        assert list((data_dir / "mmsi").iterdir()) == []

    def test_record_without_identifier_is_dropped(self, data_dir):
        store = SeriesStore(data_dir)

        stats = store.append([VesselRecord(name="GHOST", timestamp=10)])

        assert stats["unidentified"] == 1
        assert stats["stored"] == 0
        assert list((data_dir / "imo").iterdir()) == []
        assert list((data_dir / "mmsi").iterdir()) == []

    def test_path_separator_in_name_stays_in_series_dir(self, data_dir):
        store = SeriesStore(data_dir)
        path = store.series_path(VesselRecord(mmsi_number=1, name="A/B"))
        assert path == data_dir / "mmsi" / "A_B_1.csv"

    def test_nul_in_decoded_name_is_stored(self, data_dir):
        records = decode_response("MMSI,NAME,TSTAMP\n123456789,A\x00B,100\n")

        stats = SeriesStore(data_dir).append(records)

        path = data_dir / "mmsi" / "A_B_123456789.csv"
        assert stats["stored"] == 1
        assert _timestamps(path) == [100]

    def test_unnamed_vessel(self, data_dir):
        store = SeriesStore(data_dir)
        path = store.series_path(VesselRecord(imo_number=9000001))
        assert path == data_dir / "imo" / "_9000001.csv"


# =====================================================================
# Deduplication
# =====================================================================

class TestDeduplication:
    def test_appending_same_batch_twice_is_a_noop(self, data_dir):
        store = SeriesStore(data_dir)
        batch = [
            VesselRecord(imo_number=9000001, name="A", timestamp=100),
            VesselRecord(mmsi_number=123456789, name="B", timestamp=200),
        ]
        store.append(batch)
        snapshot = {p: p.read_bytes() for p in data_dir.rglob("*.csv")}

        stats = store.append(batch)

        assert stats == {"stored": 0, "duplicates": 2, "unidentified": 0}
        assert {p: p.read_bytes() for p in data_dir.rglob("*.csv")} == snapshot

    def test_equal_timestamp_across_cycles_stored_once(self, data_dir):
        store = SeriesStore(data_dir)
        store.append([VesselRecord(imo_number=9000001, name="A", timestamp=100)])
        store.append([VesselRecord(imo_number=9000001, name="A", timestamp=100)])

        assert _timestamps(data_dir / "imo" / "A_9000001.csv") == [100]

    def test_older_record_discarded_even_with_new_fields(self, data_dir):
        store = SeriesStore(data_dir)
        store.append([VesselRecord(imo_number=9000001, name="A", timestamp=100, destination="X")])
        stats = store.append(
            [VesselRecord(imo_number=9000001, name="A", timestamp=99, destination="Y")]
        )

        path = data_dir / "imo" / "A_9000001.csv"
        assert stats["duplicates"] == 1
        assert _timestamps(path) == [100]
        assert _rows(path)[1][CSV_HEADER.index("DEST")] == "X"

    def test_timestamps_strictly_increase_within_a_batch(self, data_dir):
        store = SeriesStore(data_dir)
        batch = [
            VesselRecord(mmsi_number=1, name="A", timestamp=t) for t in (200, 100, 200, 300, 250)
        ]

        stats = store.append(batch)

        assert _timestamps(data_dir / "mmsi" / "A_1.csv") == [200, 300]
        assert stats["stored"] == 2
        assert stats["duplicates"] == 3

    def test_newer_record_appended_after_existing_rows(self, data_dir):
        store = SeriesStore(data_dir)
        for ts in (100, 150, 400):
            store.append([VesselRecord(mmsi_number=1, name="A", timestamp=ts)])

        assert _timestamps(data_dir / "mmsi" / "A_1.csv") == [100, 150, 400]


# =====================================================================
# Damaged files from interrupted runs
# =====================================================================

class TestFileRecovery:
    def _series(self, data_dir):
        path = data_dir / "imo" / "A_9000001.csv"
        path.parent.mkdir(parents=True)
        return path

    def test_last_timestamp_of_missing_file(self, data_dir):
        assert SeriesStore(data_dir).last_timestamp(data_dir / "imo" / "none.csv") == 0

    def test_header_only_file(self, data_dir):
        path = self._series(data_dir)
        path.write_text(HEADER_LINE)
        store = SeriesStore(data_dir)

        assert store.last_timestamp(path) == 0
        store.append([VesselRecord(imo_number=9000001, name="A", timestamp=5)])
        assert _timestamps(path) == [5]

    def test_empty_file_gets_header(self, data_dir):
        path = self._series(data_dir)
        path.write_text("")

        SeriesStore(data_dir).append([VesselRecord(imo_number=9000001, name="A", timestamp=5)])

        rows = _rows(path)
        assert rows[0] == CSV_HEADER
        assert len(rows) == 2

    def test_partial_trailing_row_is_removed(self, data_dir, caplog):
        path = self._series(data_dir)
        full = ",".join(VesselRecord(imo_number=9000001, name="A", timestamp=100).to_row())
        path.write_text(HEADER_LINE + full + "\n" + "0,0,0,CALL")

        SeriesStore(data_dir).append([VesselRecord(imo_number=9000001, name="A", timestamp=200)])

        assert _timestamps(path) == [100, 200]
        assert "partially written" in caplog.text

    def test_partial_header_is_rewritten(self, data_dir):
        path = self._series(data_dir)
        path.write_text("A,B,C,CALL")

        SeriesStore(data_dir).append([VesselRecord(imo_number=9000001, name="A", timestamp=7)])

        assert _rows(path)[0] == CSV_HEADER
        assert _timestamps(path) == [7]

    def test_headerless_file_is_rejected(self, data_dir):
        path = self._series(data_dir)
        path.write_text("1,2,3\n")

        with pytest.raises(StoreError):
            SeriesStore(data_dir).append([VesselRecord(imo_number=9000001, name="A", timestamp=7)])
        assert path.read_text() == "1,2,3\n"

    def test_headerless_file_with_partial_row_is_left_untouched(self, data_dir):
        path = self._series(data_dir)
        path.write_text("1,2,3\n4,5")

        with pytest.raises(StoreError):
            SeriesStore(data_dir).append([VesselRecord(imo_number=9000001, name="A", timestamp=7)])
        assert path.read_text() == "1,2,3\n4,5"

    def test_foreign_single_line_is_not_adopted(self, data_dir):
        path = self._series(data_dir)
        path.write_text("some,foreign,data")

        with pytest.raises(StoreError):
            SeriesStore(data_dir).append([VesselRecord(imo_number=9000001, name="A", timestamp=7)])
        assert path.read_text() == "some,foreign,data"

    def test_header_without_newline_is_rewritten(self, data_dir):
        path = self._series(data_dir)
        path.write_text(HEADER_LINE.rstrip("\n"))

        SeriesStore(data_dir).append([VesselRecord(imo_number=9000001, name="A", timestamp=7)])

        assert _rows(path)[0] == CSV_HEADER
        assert _timestamps(path) == [7]

    def test_corrupt_last_timestamp_is_rejected(self, data_dir):
        path = self._series(data_dir)
        row = VesselRecord(imo_number=9000001, name="A").to_row()
        row[CSV_HEADER.index("TSTAMP")] = "soon"
        path.write_text(HEADER_LINE + ",".join(row) + "\n")

        with pytest.raises(StoreError):
            SeriesStore(data_dir).append([VesselRecord(imo_number=9000001, name="A", timestamp=7)])


# =====================================================================
# Write failures
# =====================================================================

class TestWriteFailures:
    def test_write_error_raises_store_error(self, data_dir):
        store = SeriesStore(data_dir)
        with patch.object(SeriesStore, "_write", side_effect=OSError("No space left on device")):
            with pytest.raises(StoreError, match="No space left"):
                store.append([VesselRecord(mmsi_number=1, name="A", timestamp=1)])

    def test_failure_aborts_rest_of_batch(self, data_dir):
        store = SeriesStore(data_dir)
        batch = [
            VesselRecord(mmsi_number=1, name="A", timestamp=1),
            VesselRecord(mmsi_number=2, name="B", timestamp=1),
        ]
        with patch.object(SeriesStore, "_write", side_effect=OSError("read-only file system")) as mock_write:
            with pytest.raises(StoreError):
                store.append(batch)
        assert mock_write.call_count == 1

    def test_invalid_path_raises_store_error(self, data_dir):
        store = SeriesStore(data_dir)
        with patch.object(SeriesStore, "_write", side_effect=ValueError("embedded null byte")):
            with pytest.raises(StoreError, match="embedded null byte"):
                store.append([VesselRecord(mmsi_number=1, name="A", timestamp=1)])

    def test_unwritable_data_dir(self, tmp_path):
        blocker = tmp_path / "data"
        blocker.write_text("not a directory")
        with pytest.raises(StoreError):
            SeriesStore(blocker).append([VesselRecord(mmsi_number=1, timestamp=1)])


# =====================================================================
# Status listing
# =====================================================================

def test_list_series(data_dir):
    store = SeriesStore(data_dir)
    store.append([
        VesselRecord(imo_number=9000001, name="A", timestamp=100),
        VesselRecord(imo_number=9000001, name="A", timestamp=200),
        VesselRecord(mmsi_number=123456789, name="B", timestamp=50),
    ])
    (data_dir / "mmsi" / "BROKEN_1.csv").write_text("garbage\n")

    summaries = store.list_series()

    assert [(s.kind, s.path.name) for s in summaries] == [
        ("imo", "A_9000001.csv"),
        ("mmsi", "BROKEN_1.csv"),
        ("mmsi", "B_123456789.csv"),
    ]
    assert (summaries[0].rows, summaries[0].last_timestamp) == (2, 200)
    assert summaries[1].error is not None
    assert (summaries[2].rows, summaries[2].last_timestamp) == (1, 50)
