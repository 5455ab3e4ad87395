"""Core type definitions: ingest policy, handler options, run context, files."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from repoingest.config import (
    DEFAULT_ALLOW_EXTENSIONS,
    DEFAULT_BINARY_THRESHOLD,
    DEFAULT_DENY_EXTENSIONS,
    DEFAULT_HEADING_DEPTH,
    DEFAULT_MAX_ROWS_PER_CHUNK,
)


def extension_of(path: str) -> str | None:
    """Lower-cased extension without the dot, or None.

    Dotfiles such as ``.gitignore`` have no extension.
    """
    suffix = Path(path).suffix
    if not suffix:
        return None
    return suffix[1:].lower()


@dataclass(frozen=True)
class HandlerOverride:
    """Per-handler settings from the policy file. Unset fields inherit."""

    chunk_bytes: int | None = None
    overlap_bytes: int | None = None
    max_file_bytes: int | None = None
    heading_depth: int | None = None
    max_rows_per_chunk: int | None = None


@dataclass(frozen=True)
class HandlerOptions:
    """Effective settings for one handler after overrides are applied."""

    chunk_bytes: int
    overlap_bytes: int
    max_file_bytes: int | None = None
    heading_depth: int = DEFAULT_HEADING_DEPTH
    max_rows_per_chunk: int = DEFAULT_MAX_ROWS_PER_CHUNK


@dataclass(frozen=True)
class IngestPolicy:
    """Immutable ingest configuration for one run.

    Optional scalar fields are None when the policy file leaves them unset,
    so the caller's flag value applies. The deny list always wins over the
    allow list.
    """

    allow_extensions: frozenset[str] | None = None
    deny_extensions: frozenset[str] | None = None
    max_file_bytes: int | None = None
    manifest_path: str | None = None
    binary_threshold: float | None = None
    allow_binary: bool | None = None
    handlers_disabled: frozenset[str] = frozenset()
    handler_overrides: dict[str, HandlerOverride] = field(default_factory=dict)
    force_handlers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def default(cls) -> IngestPolicy:
        """Built-in policy used when no usable policy file exists."""
        return cls(
            allow_extensions=DEFAULT_ALLOW_EXTENSIONS,
            deny_extensions=DEFAULT_DENY_EXTENSIONS,
            binary_threshold=DEFAULT_BINARY_THRESHOLD,
            allow_binary=False,
        )

    def handler_enabled(self, name: str) -> bool:
        return name.lower() not in self.handlers_disabled

    def options_for(
        self,
        name: str,
        default_chunk_bytes: int,
        default_overlap_bytes: int,
    ) -> HandlerOptions:
        """Resolve the effective options for a handler.

        Args:
            name: Handler name ("code", "markdown", ...)
            default_chunk_bytes: Global chunk size (CLI flag)
            default_overlap_bytes: Global overlap size (CLI flag)

        Returns:
            HandlerOptions with per-handler overrides layered on top
        """
        override = self.handler_overrides.get(name.lower(), HandlerOverride())
        return HandlerOptions(
            chunk_bytes=(
                override.chunk_bytes
                if override.chunk_bytes is not None
                else default_chunk_bytes
            ),
            overlap_bytes=(
                override.overlap_bytes
                if override.overlap_bytes is not None
                else default_overlap_bytes
            ),
            max_file_bytes=(
                override.max_file_bytes
                if override.max_file_bytes is not None
                else self.max_file_bytes
            ),
            heading_depth=(
                override.heading_depth
                if override.heading_depth is not None
                else DEFAULT_HEADING_DEPTH
            ),
            max_rows_per_chunk=(
                override.max_rows_per_chunk
                if override.max_rows_per_chunk is not None
                else DEFAULT_MAX_ROWS_PER_CHUNK
            ),
        )


@dataclass(frozen=True)
class HandlerContext:
    """Run-scoped settings every handler sees. Never mutated mid-run."""

    allow_binary: bool = False
    binary_threshold: float = DEFAULT_BINARY_THRESHOLD


@dataclass
class RepositoryFile:
    """A candidate file, read once per run."""

    path: str
    raw_bytes: bytes
    size: int
    mtime: int
