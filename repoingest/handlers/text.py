"""PlainTextHandler: byte windows for any other UTF-8 file."""

from __future__ import annotations

from repoingest.chunking.overlap import chunk_with_overlap, decode_lossy
from repoingest.config import TEXT_EXCLUDED_EXTENSIONS
from repoingest.handlers.base import is_utf8, passes_binary_gate
from repoingest.models.chunk import PreparedChunk
from repoingest.models.types import HandlerContext, HandlerOptions, extension_of


class PlainTextHandler:
    """Catch-all for decodable text.

    Refuses markdown and csv/jsonl extensions itself, so those files never
    land here even if the registry order changes.
    """

    name = "text"

    def __init__(self, options: HandlerOptions) -> None:
        self.options = options

    def supports(self, path: str, data: bytes, ctx: HandlerContext) -> bool:
        if not passes_binary_gate(data, ctx):
            return False
        if not is_utf8(data):
            return False
        return extension_of(path) not in TEXT_EXCLUDED_EXTENSIONS

    def process(self, path: str, data: bytes, ctx: HandlerContext) -> list[PreparedChunk]:
        return [
            PreparedChunk(text=text, chunk_index=idx, metadata={"ingest_mode": "text"})
            for idx, text in enumerate(
                chunk_with_overlap(
                    decode_lossy(data), self.options.chunk_bytes, self.options.overlap_bytes
                )
            )
        ]
