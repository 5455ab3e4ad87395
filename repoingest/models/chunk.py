"""Chunk dataclasses representing pipeline stages.

SymbolInfo -> SymbolChunk -> PreparedChunk -> MemoryRecord

Handlers emit PreparedChunks; from there on the pipeline is
handler-agnostic. The driver labels each chunk and wraps it into a
MemoryRecord for the memory store.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from repoingest.config import INDEXER_AGENT_NAME, INDEXER_CONFIDENCE


def content_hash(data: bytes | str) -> str:
    """Hex SHA-256 of raw bytes or UTF-8 encoded text."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def sanitize_symbol_name(name: str) -> str:
    """Replace every non-alphanumeric character with an underscore."""
    return "".join(c if c.isalnum() else "_" for c in name)


def make_symbol_chunk_id(
    path: str,
    symbol_name: str,
    start_byte: int,
    part_index: int,
    part_count: int,
) -> str:
    """Deterministic chunk id for one part of a code symbol.

    Built only from the path, the symbol and its byte offset, so the same
    content at the same position produces the same id on every run.
    """
    return (
        f"{path}#sym-{sanitize_symbol_name(symbol_name)}-{start_byte}"
        f"-p{part_index}of{part_count}"
    )


@dataclass
class SymbolInfo:
    """A located syntactic unit (function, class, struct, ...)."""

    name: str
    kind: str
    start_byte: int
    end_byte: int


@dataclass
class SymbolChunk:
    """One slice of a symbol's source range.

    part_count is 1 unless the symbol body exceeded the chunk size and was
    split with overlap.
    """

    text: str
    symbol: SymbolInfo
    part_index: int = 0
    part_count: int = 1


@dataclass
class PreparedChunk:
    """The unit every handler emits."""

    text: str
    chunk_index: int
    chunk_id_hint: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class Labels:
    """Labeler output attached to a chunk before it is stored."""

    topic: str
    project: str
    summary: str
    open_questions: list[str] = field(default_factory=list)


@dataclass
class MemoryRecord:
    """What the memory store receives for one chunk."""

    chunk_id: str
    text: str
    labels: Labels
    metadata: dict[str, Any] = field(default_factory=dict)
    agent_name: str = INDEXER_AGENT_NAME
    confidence: float = INDEXER_CONFIDENCE
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
