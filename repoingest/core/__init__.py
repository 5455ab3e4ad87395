"""Core error types."""

from repoingest.core.errors import (
    ChunkingError,
    GitError,
    IngestError,
    LabelError,
    PolicyError,
    StorageError,
)

__all__ = [
    "ChunkingError",
    "GitError",
    "IngestError",
    "LabelError",
    "PolicyError",
    "StorageError",
]
