"""Pipeline data model."""

from repoingest.models.chunk import (
    Labels,
    MemoryRecord,
    PreparedChunk,
    SymbolChunk,
    SymbolInfo,
)
from repoingest.models.manifest import IngestManifest, ManifestEntry
from repoingest.models.types import (
    HandlerContext,
    HandlerOptions,
    HandlerOverride,
    IngestPolicy,
    RepositoryFile,
)

__all__ = [
    "HandlerContext",
    "HandlerOptions",
    "HandlerOverride",
    "IngestManifest",
    "IngestPolicy",
    "Labels",
    "ManifestEntry",
    "MemoryRecord",
    "PreparedChunk",
    "RepositoryFile",
    "SymbolChunk",
    "SymbolInfo",
]
