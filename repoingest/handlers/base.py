"""Content handler protocol and shared predicates.

A handler is a structural interface: any object with a name, a supports
predicate and a process method satisfies it. Handlers are pure functions
of (path, bytes, context); they never touch the manifest or the store.
"""

from __future__ import annotations

from typing import Protocol

from repoingest.chunking.binary import is_binary
from repoingest.models.chunk import PreparedChunk
from repoingest.models.types import HandlerContext


class IngestHandler(Protocol):
    """Decides whether it applies to a file and how to chunk it."""

    @property
    def name(self) -> str:
        """Registry name used by force_handlers and handlers_disabled."""
        ...

    def supports(self, path: str, data: bytes, ctx: HandlerContext) -> bool:
        """Whether this handler accepts the file."""
        ...

    def process(self, path: str, data: bytes, ctx: HandlerContext) -> list[PreparedChunk]:
        """Split the file into PreparedChunks."""
        ...


def is_utf8(data: bytes) -> bool:
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return True


def passes_binary_gate(data: bytes, ctx: HandlerContext) -> bool:
    """False when binaries are disallowed and the classifier says binary."""
    if ctx.allow_binary:
        return True
    return not is_binary(data, ctx.binary_threshold)
