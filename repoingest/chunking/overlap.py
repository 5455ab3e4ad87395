"""Byte-window chunking shared by every text handler.

Windows are measured in UTF-8 bytes and may cut through a multi-byte
character. Each window is decoded lossily, so a split character shows up
as U+FFFD at the window edge.
"""

from __future__ import annotations


def decode_lossy(data: bytes) -> str:
    """Decode UTF-8, replacing invalid sequences with U+FFFD."""
    return data.decode("utf-8", errors="replace")


def byte_windows(size: int, chunk_bytes: int, overlap_bytes: int) -> list[tuple[int, int]]:
    """Compute [start, end) windows over a buffer of the given size.

    Each window after the first starts at
    ``previous_end - min(overlap_bytes, chunk_bytes, window_length)``.
    The last window ends exactly at ``size``. An overlap as large as the
    window is reduced by one byte so every window advances.
    """
    if chunk_bytes <= 0:
        return []

    windows: list[tuple[int, int]] = []
    start = 0
    while start < size:
        end = min(start + chunk_bytes, size)
        windows.append((start, end))
        if end == size:
            break
        overlap = min(max(overlap_bytes, 0), chunk_bytes, end - start)
        # the next window must start past this one
        overlap = min(overlap, end - start - 1)
        start = end - overlap
    return windows


def chunk_with_overlap(
    content: str | bytes,
    chunk_bytes: int,
    overlap_bytes: int,
) -> list[str]:
    """Slide a byte window over content and return the decoded windows.

    Args:
        content: Text (encoded as UTF-8) or raw bytes
        chunk_bytes: Window size in bytes; 0 yields no chunks
        overlap_bytes: Bytes shared by consecutive windows

    Returns:
        List of lossily decoded windows, in order
    """
    data = content.encode("utf-8") if isinstance(content, str) else content
    return [
        decode_lossy(data[start:end])
        for start, end in byte_windows(len(data), chunk_bytes, overlap_bytes)
    ]


def split_lines(text: str) -> list[str]:
    """Split on LF, dropping one trailing empty line and any trailing CR."""
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]
