"""Heuristic labels derived from the path and the first lines of a chunk."""

from __future__ import annotations

from pathlib import Path

from repoingest.chunking.overlap import split_lines
from repoingest.models.chunk import Labels

HEURISTIC_SUMMARY_LINES = 4
HEURISTIC_SUMMARY_CHARS = 240
FALLBACK_SUMMARY_LINES = 3
FALLBACK_SUMMARY_CHARS = 280
EMPTY_SUMMARY = "Code/document chunk"


def derive_topic_from_path(path: str) -> str:
    """Parent directory name, else the file stem, else "chunk"."""
    parts = path.split("/")
    if len(parts) >= 2:
        return parts[-2]
    return Path(path).stem or "chunk"


def heuristic_summary(content: str) -> str:
    head = " ".join(split_lines(content)[:HEURISTIC_SUMMARY_LINES]).strip()
    if not head:
        return EMPTY_SUMMARY
    return head[:HEURISTIC_SUMMARY_CHARS]


def fallback_summary(content: str) -> str:
    """Summary used when the LLM reply has none."""
    summary = " ".join(split_lines(content)[:FALLBACK_SUMMARY_LINES])
    return summary[:FALLBACK_SUMMARY_CHARS]


def label_heuristic(path: str, content: str, project: str) -> Labels:
    return Labels(
        topic=derive_topic_from_path(path),
        project=project,
        summary=heuristic_summary(content),
        open_questions=[],
    )
