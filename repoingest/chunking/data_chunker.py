"""Row windowing for tabular and line-oriented data files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from repoingest.chunking.overlap import split_lines


@dataclass
class RowWindow:
    """A run of consecutive lines covering rows [start, end)."""

    text: str
    start: int
    end: int


def data_format_for(path: str) -> str:
    """csv, jsonl, or json (the default for anything else)."""
    ext = Path(path).suffix.lower()
    if ext == ".csv":
        return "csv"
    if ext == ".jsonl":
        return "jsonl"
    return "json"


def row_windows(text: str, max_rows_per_chunk: int) -> list[RowWindow]:
    """Group lines into windows of at most max_rows_per_chunk rows.

    The last window may be shorter. A header row is an ordinary row.
    A non-positive max_rows_per_chunk is treated as 1.
    """
    rows = split_lines(text)
    step = max(max_rows_per_chunk, 1)
    windows: list[RowWindow] = []
    for start in range(0, len(rows), step):
        end = min(start + step, len(rows))
        windows.append(RowWindow(text="\n".join(rows[start:end]), start=start, end=end))
    return windows
