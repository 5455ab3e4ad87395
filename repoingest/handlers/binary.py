"""BinaryHandler: a single placeholder chunk referencing a binary file."""

from __future__ import annotations

from repoingest.chunking.binary import is_binary
from repoingest.models.chunk import PreparedChunk
from repoingest.models.types import HandlerContext


class BinaryHandler:
    """Claims anything the classifier calls binary, whatever its extension.

    Binary content is never chunked; the memory store only learns that
    the file exists and how large it is. Registered only when the policy
    allows binaries.
    """

    name = "binary"

    def supports(self, path: str, data: bytes, ctx: HandlerContext) -> bool:
        return is_binary(data, ctx.binary_threshold)

    def process(self, path: str, data: bytes, ctx: HandlerContext) -> list[PreparedChunk]:
        return [
            PreparedChunk(
                text=f"<binary file: {path}>",
                chunk_index=0,
                metadata={
                    "ingest_mode": "binary",
                    "binary_size": len(data),
                    "binary_path": path,
                },
            )
        ]
