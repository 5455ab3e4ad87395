"""Content chunking primitives."""

from repoingest.chunking.binary import is_binary
from repoingest.chunking.overlap import chunk_with_overlap

__all__ = ["chunk_with_overlap", "is_binary"]
