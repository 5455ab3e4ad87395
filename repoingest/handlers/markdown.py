"""MarkdownHandler: heading-aware sectioning for markdown files."""

from __future__ import annotations

from typing import Any

from repoingest.chunking.md_chunker import split_sections
from repoingest.chunking.overlap import chunk_with_overlap, decode_lossy
from repoingest.config import MARKDOWN_EXTENSIONS
from repoingest.handlers.base import is_utf8, passes_binary_gate
from repoingest.models.chunk import PreparedChunk
from repoingest.models.types import HandlerContext, HandlerOptions, extension_of


class MarkdownHandler:
    """Splits markdown at headings, then byte-windows each section.

    Every chunk of a section carries the section heading as
    metadata["markdown_heading"]; chunk_index runs across the whole file.
    """

    name = "markdown"

    def __init__(self, options: HandlerOptions) -> None:
        self.options = options

    def supports(self, path: str, data: bytes, ctx: HandlerContext) -> bool:
        if not passes_binary_gate(data, ctx):
            return False
        return extension_of(path) in MARKDOWN_EXTENSIONS and is_utf8(data)

    def process(self, path: str, data: bytes, ctx: HandlerContext) -> list[PreparedChunk]:
        sections = split_sections(decode_lossy(data), self.options.heading_depth)

        prepared: list[PreparedChunk] = []
        for section in sections:
            for text in chunk_with_overlap(
                section.body, self.options.chunk_bytes, self.options.overlap_bytes
            ):
                metadata: dict[str, Any] = {"ingest_mode": "text"}
                if section.heading:
                    metadata["markdown_heading"] = section.heading
                prepared.append(
                    PreparedChunk(text=text, chunk_index=len(prepared), metadata=metadata)
                )
        return prepared
