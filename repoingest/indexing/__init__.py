"""Memory store implementations."""

from repoingest.indexing.lance_store import LanceMemoryStore

__all__ = ["LanceMemoryStore"]
