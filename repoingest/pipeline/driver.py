"""Pipeline driver: discovery -> filter -> manifest skip -> dispatch -> store.

Files are processed one at a time in discovery order, chunks in
generation order. Each label and write call is a blocking round trip.
The run context (dedup set + manifest) is threaded through the driver
only; handlers never see it.

The manifest is saved once, after the last file. Any label or write
failure propagates out of run() before that save, so a failed run leaves
the previous manifest on disk untouched, even for files that were fully
indexed before the failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from repoingest.chunking.overlap import chunk_with_overlap, decode_lossy
from repoingest.config import (
    DEFAULT_BINARY_THRESHOLD,
    DEFAULT_CHUNK_BYTES,
    DEFAULT_MANIFEST_PATH,
    DEFAULT_MAX_FILE_BYTES,
    DEFAULT_OVERLAP_BYTES,
)
from repoingest.core.errors import ChunkingError, GitError
from repoingest.discovery.git import files_changed_since, list_tracked_files
from repoingest.handlers.base import IngestHandler
from repoingest.handlers.registry import HandlerRegistry
from repoingest.models.chunk import MemoryRecord, PreparedChunk, content_hash
from repoingest.models.manifest import IngestManifest, ManifestEntry
from repoingest.models.types import IngestPolicy, RepositoryFile
from repoingest.pipeline.dedup import ChunkDeduplicator
from repoingest.pipeline.manifest_store import load_manifest, save_manifest
from repoingest.pipeline.policy import (
    build_context,
    effective_max_file_bytes,
    filter_reason,
)
from repoingest.pipeline.protocols import Labeler, MemoryStore

logger = logging.getLogger(__name__)


def label_source(use_llm: bool) -> str:
    return "llm_indexer" if use_llm else "heuristic"


@dataclass
class IndexRepoOptions:
    """Flag-level settings for a repository run."""

    chunk_bytes: int = DEFAULT_CHUNK_BYTES
    overlap_bytes: int = DEFAULT_OVERLAP_BYTES
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES
    use_llm_labels: bool = True
    changed_since: str | None = None
    binary_threshold: float = DEFAULT_BINARY_THRESHOLD
    allow_binary: bool = False


@dataclass
class IndexStats:
    """Counters reported at the end of a run."""

    files_seen: int = 0
    files_processed: int = 0
    files_skipped: int = 0
    chunks_stored: int = 0
    chunks_deduped: int = 0


@dataclass
class RunContext:
    """State scoped to one pipeline run."""

    manifest: IngestManifest
    dedup: ChunkDeduplicator = field(default_factory=ChunkDeduplicator)
    stats: IndexStats = field(default_factory=IndexStats)


class RepoIndexer:
    """Indexes repository files incrementally into a memory store."""

    def __init__(
        self,
        root: Path,
        policy: IngestPolicy,
        labeler: Labeler,
        store: MemoryStore,
        options: IndexRepoOptions | None = None,
    ) -> None:
        """Resolve the run configuration.

        Args:
            root: Repository root; file paths are relative to it
            policy: Loaded ingest policy
            labeler: Labeling collaborator
            store: Memory store collaborator
            options: CLI-level settings (defaults if omitted)
        """
        self.root = root
        self.policy = policy
        self.labeler = labeler
        self.store = store
        self.options = options or IndexRepoOptions()

        self.ctx = build_context(
            policy, self.options.allow_binary, self.options.binary_threshold
        )
        self.max_file_bytes = effective_max_file_bytes(policy, self.options.max_file_bytes)
        self.registry = HandlerRegistry.build(
            policy, self.ctx, self.options.chunk_bytes, self.options.overlap_bytes
        )
        self.manifest_path = root / (policy.manifest_path or DEFAULT_MANIFEST_PATH)

    def run(self, files: Iterable[str], changed_only: set[str] | None = None) -> IndexStats:
        """Index every candidate file, then persist the manifest.

        Args:
            files: Repository-relative paths in discovery order
            changed_only: If given, paths outside this set are skipped

        Returns:
            Run statistics

        Raises:
            LabelError: A chunk could not be labeled (manifest not saved)
            StorageError: A chunk could not be written (manifest not saved)
        """
        run = RunContext(manifest=load_manifest(self.manifest_path))
        logger.info(
            "index_run_started root=%s chunk_bytes=%d overlap_bytes=%d "
            "max_file_bytes=%d handlers=%s",
            self.root,
            self.options.chunk_bytes,
            self.options.overlap_bytes,
            self.max_file_bytes,
            ",".join(self.registry.names),
        )

        for path in files:
            run.stats.files_seen += 1
            if changed_only is not None and path not in changed_only:
                run.stats.files_skipped += 1
                continue
            if self._index_path(path, run):
                run.stats.files_processed += 1
            else:
                run.stats.files_skipped += 1

        save_manifest(self.manifest_path, run.manifest)

        stats = run.stats
        logger.info(
            "index_run_complete files_processed=%d files_skipped=%d "
            "chunks_stored=%d chunks_deduped=%d",
            stats.files_processed,
            stats.files_skipped,
            stats.chunks_stored,
            stats.chunks_deduped,
        )
        return stats

    def _read_file(self, path: str) -> RepositoryFile | None:
        full_path = self.root / path
        try:
            if not full_path.is_file():
                logger.debug("file_skipped path=%s reason=not_regular", path)
                return None
            stat = full_path.stat()
            data = full_path.read_bytes()
        except OSError as exc:
            logger.warning("file_unreadable path=%s reason=%s", path, exc)
            return None
        return RepositoryFile(
            path=path, raw_bytes=data, size=stat.st_size, mtime=int(stat.st_mtime)
        )

    def _index_path(self, path: str, run: RunContext) -> bool:
        """Run one file through the state machine. True if the manifest was updated."""
        file = self._read_file(path)
        if file is None:
            return False

        reason = filter_reason(file, self.policy, self.max_file_bytes, self.ctx)
        if reason is not None:
            logger.debug("file_skipped path=%s reason=%s", path, reason)
            return False

        file_hash = content_hash(file.raw_bytes)
        if run.manifest.is_unchanged(path, file_hash, file.mtime):
            logger.debug("file_skipped path=%s reason=unchanged", path)
            return False

        handler = self.registry.resolve(path, file.raw_bytes, self.ctx)
        if handler is None:
            logger.debug("file_skipped path=%s reason=no_handler", path)
            return False

        handler_opts = self.registry.options_for(handler.name)
        if (
            handler_opts is not None
            and handler_opts.max_file_bytes is not None
            and file.size > handler_opts.max_file_bytes
        ):
            logger.debug(
                "file_skipped path=%s reason=too_large_for_handler handler=%s",
                path,
                handler.name,
            )
            return False

        prepared = handler.process(path, file.raw_bytes, self.ctx)
        if not prepared:
            logger.debug("file_skipped path=%s reason=no_chunks handler=%s", path, handler.name)
            return False

        chunk_ids: list[str] = []
        for idx, chunk in enumerate(prepared):
            chunk_id = self._store_chunk(file, file_hash, handler, idx, chunk, run)
            if chunk_id is not None:
                chunk_ids.append(chunk_id)

        run.manifest.record(
            path, ManifestEntry(content_hash=file_hash, mtime=file.mtime, chunk_ids=chunk_ids)
        )
        return True

    def _store_chunk(
        self,
        file: RepositoryFile,
        file_hash: str,
        handler: IngestHandler,
        idx: int,
        chunk: PreparedChunk,
        run: RunContext,
    ) -> str | None:
        """Label and write one chunk; None if it was a duplicate."""
        chunk_hash = content_hash(chunk.text)
        if not run.dedup.first_sighting(chunk_hash):
            run.stats.chunks_deduped += 1
            logger.debug("chunk_deduped path=%s chunk_index=%d", file.path, idx)
            return None

        use_llm = self.options.use_llm_labels
        labels = self.labeler.label(file.path, chunk.text, use_llm)
        chunk_id = chunk.chunk_id_hint or f"{file.path}#chunk-{idx}-{file_hash[:8]}"

        metadata: dict[str, Any] = dict(chunk.metadata)
        metadata.setdefault("path", file.path)
        metadata.setdefault("file_hash", f"sha256:{file_hash}")
        metadata.setdefault("hash", f"sha256:{chunk_hash}")
        metadata.setdefault("chunk_bytes", len(chunk.text.encode("utf-8")))
        metadata.setdefault("label_source", label_source(use_llm))
        metadata.setdefault("body", chunk.text)
        metadata.setdefault("chunk_index", chunk.chunk_index)
        metadata.setdefault("chunk_id", chunk_id)
        metadata.setdefault("file_len", file.size)

        memory_id = self.store.write(
            MemoryRecord(chunk_id=chunk_id, text=chunk.text, labels=labels, metadata=metadata)
        )
        run.stats.chunks_stored += 1
        logger.info(
            "chunk_stored path=%s handler=%s chunk_index=%d memory_id=%s",
            file.path,
            handler.name,
            idx,
            memory_id,
        )
        return chunk_id


def index_repo(
    root: Path,
    policy: IngestPolicy,
    labeler: Labeler,
    store: MemoryStore,
    options: IndexRepoOptions | None = None,
) -> IndexStats:
    """List tracked files with git and index them.

    Raises:
        GitError: If listing or diffing fails, or no files are tracked
    """
    options = options or IndexRepoOptions()
    files = list_tracked_files(root)
    if not files:
        raise GitError("git ls-files", "returned no files (check repository)")

    changed_only = (
        files_changed_since(options.changed_since, root)
        if options.changed_since is not None
        else None
    )
    indexer = RepoIndexer(root, policy, labeler, store, options)
    return indexer.run(files, changed_only)


def index_file(
    path: Path,
    labeler: Labeler,
    store: MemoryStore,
    chunk_bytes: int = DEFAULT_CHUNK_BYTES,
    overlap_bytes: int = DEFAULT_OVERLAP_BYTES,
    use_llm_labels: bool = True,
) -> list[str]:
    """Chunk one file with overlap and store every chunk.

    No handler dispatch, dedup or manifest: the whole file is byte-windowed.

    Returns:
        Memory ids in chunk order

    Raises:
        ChunkingError: If the file is empty or whitespace only
    """
    content = decode_lossy(path.read_bytes())
    if not content.strip():
        raise ChunkingError(str(path), "file is empty")

    chunks = chunk_with_overlap(content, chunk_bytes, overlap_bytes)
    logger.info(
        "index_file_started path=%s chunks=%d chunk_bytes=%d overlap_bytes=%d",
        path,
        len(chunks),
        chunk_bytes,
        overlap_bytes,
    )

    memory_ids: list[str] = []
    for idx, text in enumerate(chunks):
        labels = labeler.label(str(path), text, use_llm_labels)
        chunk_id = f"{path}#chunk-{idx}"
        metadata = {
            "path": str(path),
            "hash": f"sha256:{content_hash(text)}",
            "chunk_bytes": len(text.encode("utf-8")),
            "label_source": label_source(use_llm_labels),
            "body": text,
            "chunk_index": idx,
            "chunk_id": chunk_id,
        }
        memory_id = store.write(
            MemoryRecord(chunk_id=chunk_id, text=text, labels=labels, metadata=metadata)
        )
        logger.info("chunk_stored path=%s chunk_index=%d memory_id=%s", path, idx, memory_id)
        memory_ids.append(memory_id)
    return memory_ids


def index_chunk(
    path: Path,
    labeler: Labeler,
    store: MemoryStore,
    max_bytes: int = 2000,
    use_llm_labels: bool = True,
) -> str:
    """Store the first max_bytes of a file as a single chunk.

    Returns:
        The memory id

    Raises:
        ChunkingError: If the truncated content is whitespace only
    """
    content = decode_lossy(path.read_bytes()[:max_bytes])
    if not content.strip():
        raise ChunkingError(str(path), "file is empty after truncation")

    labels = labeler.label(str(path), content, use_llm_labels)
    metadata = {
        "path": str(path),
        "hash": f"sha256:{content_hash(content)}",
        "chunk_bytes": len(content.encode("utf-8")),
        "label_source": label_source(use_llm_labels),
        "body": content,
    }
    memory_id = store.write(
        MemoryRecord(chunk_id=str(path), text=content, labels=labels, metadata=metadata)
    )
    logger.info("chunk_stored path=%s memory_id=%s", path, memory_id)
    return memory_id
