"""Ingest manifest types for tracking indexing state across runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from repoingest.config import MANIFEST_VERSION


@dataclass
class ManifestEntry:
    """Per-file tracking in the manifest.

    Every file that produced chunks in some run gets an entry. This is
    how the pipeline knows what is already indexed.
    """

    content_hash: str
    mtime: int
    chunk_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "hash": self.content_hash,
            "mtime": self.mtime,
            "chunk_ids": list(self.chunk_ids),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ManifestEntry:
        return cls(
            content_hash=str(data["hash"]),
            mtime=int(data["mtime"]),
            chunk_ids=[str(c) for c in data.get("chunk_ids", [])],
        )


@dataclass
class IngestManifest:
    """Root manifest. Serialized to the manifest JSON file."""

    version: int = MANIFEST_VERSION
    files: dict[str, ManifestEntry] = field(default_factory=dict)

    def is_unchanged(self, path: str, file_hash: str, mtime: int) -> bool:
        """True iff a stored entry matches both hash and mtime."""
        entry = self.files.get(path)
        if entry is None:
            return False
        return entry.content_hash == file_hash and entry.mtime == mtime

    def record(self, path: str, entry: ManifestEntry) -> None:
        """Insert or replace the entry for a path."""
        self.files[path] = entry

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "files": {path: entry.to_dict() for path, entry in self.files.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IngestManifest:
        files = {
            str(path): ManifestEntry.from_dict(entry)
            for path, entry in data.get("files", {}).items()
        }
        return cls(version=int(data.get("version", MANIFEST_VERSION)), files=files)
