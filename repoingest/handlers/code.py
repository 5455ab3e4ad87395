"""CodeHandler: tree-sitter symbol chunking for source files."""

from __future__ import annotations

import logging
from typing import Any

from repoingest.chunking.ast_chunker import chunk_code_symbols, language_for_path
from repoingest.chunking.overlap import chunk_with_overlap, decode_lossy
from repoingest.core.errors import ChunkingError
from repoingest.handlers.base import is_utf8, passes_binary_gate
from repoingest.models.chunk import PreparedChunk, SymbolChunk, make_symbol_chunk_id
from repoingest.models.types import HandlerContext, HandlerOptions

logger = logging.getLogger(__name__)


class CodeHandler:
    """Chunks source files along symbol boundaries.

    Each chunk carries the symbol it belongs to and a chunk id hint that is
    stable across runs. Files with no extractable symbols are byte-windowed
    instead; that fallback never fails.
    """

    name = "code"

    def __init__(self, options: HandlerOptions) -> None:
        self.options = options

    def supports(self, path: str, data: bytes, ctx: HandlerContext) -> bool:
        if not passes_binary_gate(data, ctx):
            return False
        if language_for_path(path) is None:
            return False
        return is_utf8(data)

    def process(self, path: str, data: bytes, ctx: HandlerContext) -> list[PreparedChunk]:
        language = language_for_path(path)
        if language is None:
            return []

        try:
            symbol_chunks = chunk_code_symbols(
                data, language, self.options.chunk_bytes, self.options.overlap_bytes
            )
        except (ChunkingError, ValueError) as exc:
            logger.warning("ast_fallback path=%s reason=%s", path, exc)
            symbol_chunks = []

        if not symbol_chunks:
            return self._window_chunks(data, language)

        return [
            PreparedChunk(
                text=sc.text,
                chunk_index=idx,
                chunk_id_hint=make_symbol_chunk_id(
                    path,
                    sc.symbol.name,
                    sc.symbol.start_byte,
                    sc.part_index,
                    sc.part_count,
                ),
                metadata=self._symbol_metadata(sc, language),
            )
            for idx, sc in enumerate(symbol_chunks)
        ]

    def _window_chunks(self, data: bytes, language: str) -> list[PreparedChunk]:
        content = decode_lossy(data)
        return [
            PreparedChunk(
                text=text,
                chunk_index=idx,
                metadata={"ingest_mode": "code", "language": language},
            )
            for idx, text in enumerate(
                chunk_with_overlap(content, self.options.chunk_bytes, self.options.overlap_bytes)
            )
        ]

    @staticmethod
    def _symbol_metadata(sc: SymbolChunk, language: str) -> dict[str, Any]:
        return {
            "ingest_mode": "code",
            "language": language,
            "symbols": [
                {
                    "name": sc.symbol.name,
                    "kind": sc.symbol.kind,
                    "start_byte": sc.symbol.start_byte,
                    "end_byte": sc.symbol.end_byte,
                    "part_index": sc.part_index,
                    "part_count": sc.part_count,
                }
            ],
        }
