"""repoingest: content-aware incremental indexing of repository files."""

__version__ = "0.1.0"
