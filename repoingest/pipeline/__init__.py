"""Indexing pipeline: policy, manifest, dedup and the driver."""

from repoingest.pipeline.dedup import ChunkDeduplicator
from repoingest.pipeline.driver import (
    IndexRepoOptions,
    IndexStats,
    RepoIndexer,
    index_chunk,
    index_file,
    index_repo,
)
from repoingest.pipeline.manifest_store import load_manifest, save_manifest
from repoingest.pipeline.policy import load_policy

__all__ = [
    "ChunkDeduplicator",
    "IndexRepoOptions",
    "IndexStats",
    "RepoIndexer",
    "index_chunk",
    "index_file",
    "index_repo",
    "load_manifest",
    "load_policy",
    "save_manifest",
]
