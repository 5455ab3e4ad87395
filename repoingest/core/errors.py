"""Error hierarchy for the ingest pipeline.

Errors that abort a run (labeling, storage, git) carry enough context to
report which file or operation failed. Check .retryable where present to
decide whether re-running the command is worthwhile.
"""

from __future__ import annotations


class IngestError(Exception):
    """Base error for the ingest pipeline.

    All repoingest-specific errors inherit from this.
    """

    pass


# =============================================================================
# Configuration Errors
# =============================================================================


class PolicyError(IngestError):
    """Ingest policy file could not be parsed.

    Attributes:
        path: The policy file path
        reason: Human-readable error description

    Retry: Never retryable - fix the policy file. load_policy() catches
    this and falls back to the built-in defaults.
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid ingest policy {path}: {reason}")


# =============================================================================
# Chunking Errors
# =============================================================================


class ChunkingError(IngestError):
    """Failed to chunk content structurally.

    Attributes:
        source_uri: The file that failed to chunk
        reason: Human-readable error description

    Retry: Never retryable. The code handler falls back to byte windows.
    """

    def __init__(self, source_uri: str, reason: str) -> None:
        self.source_uri = source_uri
        self.reason = reason
        super().__init__(f"Failed to chunk {source_uri}: {reason}")


# =============================================================================
# Collaborator Errors
# =============================================================================


class LabelError(IngestError):
    """Labeling a chunk failed.

    Attributes:
        path: The file the chunk came from
        reason: Human-readable error description
        retryable: True for transport failures, False for misconfiguration

    Retry: Usually retryable for LLM timeouts and rate limits.
    """

    def __init__(self, path: str, reason: str, retryable: bool = True) -> None:
        self.path = path
        self.reason = reason
        self.retryable = retryable
        super().__init__(f"Failed to label chunk from {path}: {reason}")


class StorageError(IngestError):
    """Memory store operation failed.

    Attributes:
        operation: The operation that failed (insert, open)
        reason: Human-readable error description
        retryable: Whether the operation can be retried

    Retry: Check .retryable - True for transient failures like timeouts.
    """

    def __init__(self, operation: str, reason: str, retryable: bool = False) -> None:
        self.operation = operation
        self.reason = reason
        self.retryable = retryable
        super().__init__(f"Storage {operation} failed: {reason}")


class GitError(IngestError):
    """Git file listing or diffing failed.

    Attributes:
        command: The git command that failed
        reason: Human-readable error description

    Retry: Never retryable - without a file list there is nothing to index.
    """

    def __init__(self, command: str, reason: str) -> None:
        self.command = command
        self.reason = reason
        super().__init__(f"{command} failed: {reason}")
