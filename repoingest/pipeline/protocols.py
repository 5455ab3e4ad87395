"""Collaborator protocols (structural interfaces).

The labeler, the memory store and the LLM completion client sit outside
the indexing core. Each is defined by a Protocol; no base classes, no
inheritance.
"""

from __future__ import annotations

from typing import Protocol

from repoingest.models.chunk import Labels, MemoryRecord


class Labeler(Protocol):
    """Attaches topic/project/summary/open_questions to a chunk."""

    def label(self, path: str, text: str, use_llm: bool) -> Labels:
        """Return labels; raise LabelError when labeling fails."""
        ...


class MemoryStore(Protocol):
    """Persists finished chunks."""

    def write(self, record: MemoryRecord) -> str:
        """Store one record and return its opaque id; raise StorageError on failure."""
        ...


class CompletionClient(Protocol):
    """Single-prompt text completion, used by the LLM labeler."""

    def complete(self, prompt: str) -> str:
        """Return the raw completion text for a prompt."""
        ...
