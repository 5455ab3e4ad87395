"""DataHandler: row windows for CSV, JSON and JSONL files."""

from __future__ import annotations

from repoingest.chunking.data_chunker import data_format_for, row_windows
from repoingest.chunking.overlap import decode_lossy
from repoingest.config import DATA_EXTENSIONS
from repoingest.handlers.base import is_utf8, passes_binary_gate
from repoingest.models.chunk import PreparedChunk
from repoingest.models.types import HandlerContext, HandlerOptions, extension_of


class DataHandler:
    """Groups lines into fixed-size row windows.

    Always emits at least one chunk: a file with no non-empty window
    becomes a single chunk holding its whole content, without row_range.
    """

    name = "data"

    def __init__(self, options: HandlerOptions) -> None:
        self.options = options

    def supports(self, path: str, data: bytes, ctx: HandlerContext) -> bool:
        if not passes_binary_gate(data, ctx):
            return False
        return extension_of(path) in DATA_EXTENSIONS and is_utf8(data)

    def process(self, path: str, data: bytes, ctx: HandlerContext) -> list[PreparedChunk]:
        content = decode_lossy(data)
        data_format = data_format_for(path)

        prepared: list[PreparedChunk] = []
        for window in row_windows(content, self.options.max_rows_per_chunk):
            if not window.text:
                continue
            prepared.append(
                PreparedChunk(
                    text=window.text,
                    chunk_index=len(prepared),
                    metadata={
                        "ingest_mode": "data",
                        "data_format": data_format,
                        "row_range": [window.start, window.end],
                    },
                )
            )

        if not prepared:
            prepared.append(
                PreparedChunk(text=content, chunk_index=0, metadata={"ingest_mode": "data"})
            )
        return prepared
