"""Run-scoped chunk deduplication by content hash."""

from __future__ import annotations


class ChunkDeduplicator:
    """Remembers chunk hashes seen during one run.

    Lives inside the run context; nothing outside the driver touches it.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()

    def first_sighting(self, chunk_hash: str) -> bool:
        """Record a hash; True if it had not been seen before this call."""
        if chunk_hash in self._seen:
            return False
        self._seen.add(chunk_hash)
        return True

    def __contains__(self, chunk_hash: object) -> bool:
        return chunk_hash in self._seen

    def __len__(self) -> int:
        return len(self._seen)
