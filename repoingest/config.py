"""Handler registry table and pipeline constants.

This table IS the architecture. Adding a new content handler means adding
one row here and one module under repoingest.handlers. The dispatcher
walks this table in order; the first handler that supports a file wins.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class HandlerDef:
    """Immutable definition of a content handler slot."""

    name: str
    description: str
    requires_allow_binary: bool = False


# Priority order: code, markdown, data, text, binary
HANDLERS: tuple[HandlerDef, ...] = (
    HandlerDef(
        name="code",
        description="Source files chunked along tree-sitter symbols",
    ),
    HandlerDef(
        name="markdown",
        description="Markdown split at headings up to heading_depth",
    ),
    HandlerDef(
        name="data",
        description="CSV / JSON / JSONL grouped into row windows",
    ),
    HandlerDef(
        name="text",
        description="Any other UTF-8 file, byte-windowed with overlap",
    ),
    HandlerDef(
        name="binary",
        description="Placeholder chunk referencing a binary file",
        requires_allow_binary=True,
    ),
)

# Chunking defaults (bytes)
DEFAULT_CHUNK_BYTES: int = 1200
DEFAULT_OVERLAP_BYTES: int = 200
DEFAULT_MAX_FILE_BYTES: int = 200_000

# Non-printable ratio at or above which a buffer counts as binary
DEFAULT_BINARY_THRESHOLD: float = 0.33

DEFAULT_HEADING_DEPTH: int = 6
DEFAULT_MAX_ROWS_PER_CHUNK: int = 200

DEFAULT_POLICY_PATH: str = ".repoingest_config.json"
DEFAULT_MANIFEST_PATH: str = ".repoingest_manifest.json"
MANIFEST_VERSION: int = 1

DEFAULT_ALLOW_EXTENSIONS: frozenset[str] = frozenset({
    "rs", "md", "toml", "json", "yml", "yaml",
    "ts", "tsx", "js", "jsx", "py", "go", "cs",
})
DEFAULT_DENY_EXTENSIONS: frozenset[str] = frozenset({"lock", "bin", "exe", "dll"})

MARKDOWN_EXTENSIONS: frozenset[str] = frozenset({"md", "markdown"})
DATA_EXTENSIONS: frozenset[str] = frozenset({"csv", "json", "jsonl"})
# Extensions the plain-text handler leaves to more specific handlers
TEXT_EXCLUDED_EXTENSIONS: frozenset[str] = frozenset({"md", "markdown", "csv", "jsonl"})

# Labeling
DEFAULT_LABEL_MODEL: str = "gpt-4o-mini"
INDEXER_AGENT_NAME: str = "Indexer"
INDEXER_CONFIDENCE: float = 0.99
