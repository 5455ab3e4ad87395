"""Tests for row windowing and the data handler."""

from pathlib import Path

from repoingest.chunking.data_chunker import data_format_for, row_windows
from repoingest.handlers.data import DataHandler
from repoingest.models.types import HandlerContext, HandlerOptions


FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _handler(max_rows: int) -> DataHandler:
    return DataHandler(
        HandlerOptions(chunk_bytes=1200, overlap_bytes=200, max_rows_per_chunk=max_rows)
    )


class TestRowWindows:
    """Line grouping."""

    def test_last_window_shorter(self) -> None:
        windows = row_windows("a,b\n1,2\n3,4", 2)

        assert [(w.start, w.end) for w in windows] == [(0, 2), (2, 3)]
        assert windows[0].text == "a,b\n1,2"
        assert windows[1].text == "3,4"

    def test_non_positive_max_rows_is_one(self) -> None:
        assert len(row_windows("x\ny\nz", 0)) == 3

    def test_empty_text(self) -> None:
        assert row_windows("", 10) == []

    def test_data_format(self) -> None:
        assert data_format_for("a/b.csv") == "csv"
        assert data_format_for("events.JSONL") == "jsonl"
        assert data_format_for("package.json") == "json"


class TestDataHandler:
    """PreparedChunks with row ranges."""

    def test_supports_data_extensions(self) -> None:
        handler = _handler(10)
        ctx = HandlerContext()

        assert handler.supports("data.csv", b"a,b\n", ctx)
        assert handler.supports("config.json", b"{}", ctx)
        assert handler.supports("log.jsonl", b"{}\n", ctx)
        assert not handler.supports("notes.txt", b"a,b\n", ctx)

    def test_csv_row_ranges(self) -> None:
        chunks = _handler(2).process("data.csv", b"a,b\n1,2\n3,4", HandlerContext())

        assert len(chunks) == 2
        assert [c.metadata["row_range"] for c in chunks] == [[0, 2], [2, 3]]
        assert all(c.metadata["data_format"] == "csv" for c in chunks)
        assert all(c.metadata["ingest_mode"] == "data" for c in chunks)
        assert [c.chunk_index for c in chunks] == [0, 1]

    def test_header_is_an_ordinary_row(self) -> None:
        data = (FIXTURES_DIR / "data" / "people.csv").read_bytes()
        chunks = _handler(3).process("people.csv", data, HandlerContext())

        assert chunks[0].text.splitlines()[0] == "name,role"
        assert [c.metadata["row_range"] for c in chunks] == [[0, 3], [3, 5]]

    def test_empty_file_gets_fallback_chunk(self) -> None:
        """Zero rows still produce exactly one chunk, without row_range."""
        chunks = _handler(5).process("empty.json", b"", HandlerContext())

        assert len(chunks) == 1
        assert chunks[0].metadata == {"ingest_mode": "data"}
        assert chunks[0].text == ""

    def test_blank_rows_only_gets_fallback_chunk(self) -> None:
        chunks = _handler(1).process("blank.jsonl", b"\n\n", HandlerContext())

        assert len(chunks) == 1
        assert "row_range" not in chunks[0].metadata
