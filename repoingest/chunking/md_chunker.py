"""Markdown sectioning for documentation files.

Splits markdown on heading lines up to a configured depth. Heading lines
stay in the body of the section they open; deeper headings are ordinary
body lines. Content before the first heading forms a section with no
heading.
"""

from __future__ import annotations

from dataclasses import dataclass

from repoingest.chunking.overlap import split_lines
from repoingest.config import DEFAULT_HEADING_DEPTH


@dataclass
class MarkdownSection:
    """One heading-delimited section of a markdown file.

    heading is empty for content before the first qualifying heading.
    """

    heading: str
    body: str


def heading_level(line: str) -> int:
    """Number of leading '#' characters after leading whitespace."""
    stripped = line.lstrip()
    return len(stripped) - len(stripped.lstrip("#"))


def split_sections(text: str, heading_depth: int = DEFAULT_HEADING_DEPTH) -> list[MarkdownSection]:
    """Split markdown text into heading sections.

    Args:
        text: Markdown document
        heading_depth: Deepest heading level (number of '#') that opens a
            new section

    Returns:
        Sections in document order; every body ends with a newline
    """
    sections: list[MarkdownSection] = []
    current_heading = ""
    body_lines: list[str] = []

    for line in split_lines(text):
        level = heading_level(line)
        if 0 < level <= heading_depth:
            if body_lines:
                sections.append(MarkdownSection(current_heading, _join_body(body_lines)))
                body_lines = []
            current_heading = line.lstrip().lstrip("#").strip()
        body_lines.append(line)

    if body_lines:
        sections.append(MarkdownSection(current_heading, _join_body(body_lines)))

    return sections


def _join_body(lines: list[str]) -> str:
    return "".join(f"{line}\n" for line in lines)
