"""repoingest CLI - index repository content into the memory store.

Usage:
    repoingest index-repo [--chunk-bytes N] [--overlap-bytes N] [--max-file-bytes N]
                          [--no-llm-labels] [--changed-since REF]
                          [--binary-threshold F] [--allow-binary]
    repoingest index-file PATH [--chunk-bytes N] [--overlap-bytes N] [--no-llm-labels]
    repoingest index-chunk PATH [--max-bytes N] [--no-llm-labels]

Examples:
    # Incremental run over the current repository, heuristic labels
    repoingest index-repo --no-llm-labels

    # Only files touched since the previous commit
    repoingest index-repo --changed-since HEAD~1
"""

from __future__ import annotations

import argparse
import logging
import math
import sys
from pathlib import Path

import openai

from repoingest.config import (
    DEFAULT_BINARY_THRESHOLD,
    DEFAULT_CHUNK_BYTES,
    DEFAULT_MAX_FILE_BYTES,
    DEFAULT_OVERLAP_BYTES,
    DEFAULT_POLICY_PATH,
)
from repoingest.core.errors import IngestError, LabelError
from repoingest.indexing.lance_store import LanceMemoryStore
from repoingest.labeling.llm import ChunkLabeler
from repoingest.labeling.openai_client import OpenAICompletionClient
from repoingest.pipeline.driver import (
    IndexRepoOptions,
    index_chunk,
    index_file,
    index_repo,
)
from repoingest.pipeline.policy import load_policy

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = ".repoingest/memory.lance"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repoingest",
        description="Index repository content into the memory store",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument(
        "--db",
        default=DEFAULT_DB_PATH,
        help=f"LanceDB directory for stored memories (default: {DEFAULT_DB_PATH})",
    )
    parser.add_argument(
        "--project",
        default=None,
        help="Project slug for labels (default: repository directory name)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    repo = subparsers.add_parser(
        "index-repo", help="Index tracked files incrementally using the manifest"
    )
    repo.add_argument("--root", type=Path, default=Path("."), help="Repository root")
    repo.add_argument(
        "--policy",
        default=None,
        help=f"Ingest policy JSON (default: <root>/{DEFAULT_POLICY_PATH})",
    )
    _add_chunk_args(repo)
    repo.add_argument(
        "--max-file-bytes",
        type=int,
        default=DEFAULT_MAX_FILE_BYTES,
        help="Maximum file size to ingest; larger files are skipped",
    )
    repo.add_argument(
        "--changed-since",
        default=None,
        metavar="REF",
        help="Only ingest files changed since the given git ref (e.g. HEAD~1)",
    )
    repo.add_argument(
        "--binary-threshold",
        type=_ratio,
        default=DEFAULT_BINARY_THRESHOLD,
        help="Non-printable ratio (0-1) at which a file counts as binary",
    )
    repo.add_argument(
        "--allow-binary",
        action="store_true",
        help="Ingest files detected as binary (as placeholder chunks)",
    )
    _add_label_args(repo)

    file_cmd = subparsers.add_parser(
        "index-file", help="Chunk one file with overlap and index every chunk"
    )
    file_cmd.add_argument("path", type=Path)
    _add_chunk_args(file_cmd)
    _add_label_args(file_cmd)

    chunk_cmd = subparsers.add_parser(
        "index-chunk", help="Index the first bytes of one file as a single chunk"
    )
    chunk_cmd.add_argument("path", type=Path)
    chunk_cmd.add_argument(
        "--max-bytes", type=int, default=2000, help="Bytes of the file to ingest"
    )
    _add_label_args(chunk_cmd)

    return parser


def _ratio(value: str) -> float:
    ratio = float(value)
    if not math.isfinite(ratio):
        raise argparse.ArgumentTypeError(f"expected a finite number, got {value!r}")
    return ratio


def _add_chunk_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--chunk-bytes", type=int, default=DEFAULT_CHUNK_BYTES, help="Target chunk size in bytes"
    )
    parser.add_argument(
        "--overlap-bytes",
        type=int,
        default=DEFAULT_OVERLAP_BYTES,
        help="Overlap between chunks in bytes",
    )


def _add_label_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--no-llm-labels",
        action="store_true",
        help="Use heuristic labels instead of the LLM",
    )


def build_labeler(project: str, use_llm: bool) -> ChunkLabeler:
    """Heuristic-only labeler, or one backed by the OpenAI client."""
    if not use_llm:
        return ChunkLabeler(project)
    try:
        client = OpenAICompletionClient()
    except openai.OpenAIError as exc:
        raise LabelError("<config>", str(exc), retryable=False) from exc
    return ChunkLabeler(project, client)


def open_store(db_path: str) -> LanceMemoryStore:
    store = LanceMemoryStore(db_path)
    store.create_or_open()
    return store


def cmd_index_repo(args: argparse.Namespace) -> int:
    root = args.root.resolve()
    policy = load_policy(args.policy or root / DEFAULT_POLICY_PATH)
    options = IndexRepoOptions(
        chunk_bytes=args.chunk_bytes,
        overlap_bytes=args.overlap_bytes,
        max_file_bytes=args.max_file_bytes,
        use_llm_labels=not args.no_llm_labels,
        changed_since=args.changed_since,
        binary_threshold=args.binary_threshold,
        allow_binary=args.allow_binary,
    )
    labeler = build_labeler(args.project or root.name, options.use_llm_labels)
    stats = index_repo(root, policy, labeler, open_store(args.db), options)
    print(
        f"Indexing complete. Files processed: {stats.files_processed}. "
        f"Chunks stored: {stats.chunks_stored} (unique by hash)."
    )
    return 0


def cmd_index_file(args: argparse.Namespace) -> int:
    labeler = build_labeler(args.project or Path.cwd().name, not args.no_llm_labels)
    memory_ids = index_file(
        args.path,
        labeler,
        open_store(args.db),
        chunk_bytes=args.chunk_bytes,
        overlap_bytes=args.overlap_bytes,
        use_llm_labels=not args.no_llm_labels,
    )
    print(f"Completed indexing {args.path} ({len(memory_ids)} chunks)")
    return 0


def cmd_index_chunk(args: argparse.Namespace) -> int:
    labeler = build_labeler(args.project or Path.cwd().name, not args.no_llm_labels)
    memory_id = index_chunk(
        args.path,
        labeler,
        open_store(args.db),
        max_bytes=args.max_bytes,
        use_llm_labels=not args.no_llm_labels,
    )
    print(f"Stored chunk from {args.path} as {memory_id}")
    return 0


COMMANDS = {
    "index-repo": cmd_index_repo,
    "index-file": cmd_index_file,
    "index-chunk": cmd_index_chunk,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        return COMMANDS[args.command](args)
    except (IngestError, OSError) as exc:
        logger.error("command_failed command=%s error=%s", args.command, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
