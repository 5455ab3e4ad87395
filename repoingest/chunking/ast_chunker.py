"""Symbol-aligned code chunking with tree-sitter.

Chunks source code by AST structure:
1. Parse the file with the grammar for its extension
2. Collect every node whose kind is in the language's symbol allowlist
   (nested symbols included, e.g. an impl block and its methods)
3. Each symbol becomes one chunk, or several overlapping parts when its
   byte span exceeds chunk_bytes
4. Callers fall back to plain byte windows when nothing is found
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import tree_sitter_c_sharp as ts_csharp
import tree_sitter_go as ts_go
import tree_sitter_javascript as ts_javascript
import tree_sitter_python as ts_python
import tree_sitter_rust as ts_rust
import tree_sitter_typescript as ts_typescript
from tree_sitter import Language, Node, Parser

from repoingest.chunking.overlap import chunk_with_overlap, decode_lossy
from repoingest.core.errors import ChunkingError
from repoingest.models.chunk import SymbolChunk, SymbolInfo


@dataclass(frozen=True)
class LanguageSpec:
    """Everything the chunker needs to know about one grammar."""

    name: str
    loader: Callable[[], object]
    symbol_kinds: frozenset[str]

    def language(self) -> Language:
        return Language(self.loader())

    def parse(self, source: bytes) -> Node:
        parser = Parser(self.language())
        return parser.parse(source).root_node


_JS_LIKE_KINDS = frozenset({
    "function_declaration",
    "method_definition",
    "class_declaration",
    "arrow_function",
})

LANGUAGES: dict[str, LanguageSpec] = {
    "rust": LanguageSpec(
        name="rust",
        loader=ts_rust.language,
        symbol_kinds=frozenset({
            "function_item",
            "impl_item",
            "struct_item",
            "enum_item",
            "trait_item",
            "mod_item",
        }),
    ),
    "typescript": LanguageSpec(
        name="typescript",
        loader=ts_typescript.language_typescript,
        symbol_kinds=_JS_LIKE_KINDS,
    ),
    "tsx": LanguageSpec(
        name="tsx",
        loader=ts_typescript.language_tsx,
        symbol_kinds=_JS_LIKE_KINDS,
    ),
    "javascript": LanguageSpec(
        name="javascript",
        loader=ts_javascript.language,
        symbol_kinds=_JS_LIKE_KINDS,
    ),
    "python": LanguageSpec(
        name="python",
        loader=ts_python.language,
        symbol_kinds=frozenset({"function_definition", "class_definition"}),
    ),
    "go": LanguageSpec(
        name="go",
        loader=ts_go.language,
        symbol_kinds=frozenset({
            "function_declaration",
            "method_declaration",
            "type_spec",
        }),
    ),
    "c_sharp": LanguageSpec(
        name="c_sharp",
        loader=ts_csharp.language,
        symbol_kinds=frozenset({
            "class_declaration",
            "interface_declaration",
            "struct_declaration",
            "method_declaration",
            "constructor_declaration",
        }),
    ),
}

# Map file extensions to language names
EXTENSION_MAP: dict[str, str] = {
    ".rs": "rust",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".jsx": "javascript",
    ".py": "python",
    ".go": "go",
    ".cs": "c_sharp",
}

# Alternate identifier fields tried after "name"
_ALT_NAME_FIELDS: tuple[str, ...] = ("identifier", "declarator", "property_identifier")


def language_for_path(path: str) -> str | None:
    """Language name for a file path, or None if unsupported."""
    return EXTENSION_MAP.get(Path(path).suffix.lower())


def _node_text(node: Node, source: bytes) -> str:
    start, end = node.start_byte, node.end_byte
    if start >= len(source) or end > len(source) or start >= end:
        return ""
    return decode_lossy(source[start:end])


def symbol_name(node: Node, source: bytes) -> str:
    """Resolve a display name for a symbol node.

    Tries the "name" field, then a few alternate identifier fields, then
    the first named child, and finally falls back to the node kind.
    """
    for field_name in ("name", *_ALT_NAME_FIELDS):
        name_node = node.child_by_field_name(field_name)
        if name_node is not None:
            text = _node_text(name_node, source).strip()
            if text:
                return text

    first = node.named_child(0) if node.named_child_count > 0 else None
    if first is not None:
        text = _node_text(first, source).strip()
        if text:
            return text

    return node.type


def extract_symbols(source: bytes, language: str) -> list[SymbolInfo]:
    """Parse source and return its symbols ordered by start offset.

    Args:
        source: Raw source bytes
        language: Key into LANGUAGES

    Returns:
        SymbolInfo list sorted by start_byte (outer symbols first on ties)

    Raises:
        ChunkingError: If the language is not supported
    """
    spec = LANGUAGES.get(language)
    if spec is None:
        raise ChunkingError(language, f"Unsupported language: {language}")

    root = spec.parse(source)
    symbols: list[SymbolInfo] = []
    stack: list[Node] = [root]

    while stack:
        node = stack.pop()
        if node.type in spec.symbol_kinds:
            symbols.append(
                SymbolInfo(
                    name=symbol_name(node, source),
                    kind=node.type,
                    start_byte=node.start_byte,
                    end_byte=node.end_byte,
                )
            )
        stack.extend(node.named_children)

    symbols.sort(key=lambda s: (s.start_byte, -s.end_byte))
    return symbols


def chunk_code_symbols(
    source: bytes,
    language: str,
    chunk_bytes: int,
    overlap_bytes: int,
) -> list[SymbolChunk]:
    """Split source into one chunk per symbol, subdividing large symbols.

    Args:
        source: Raw source bytes
        language: Key into LANGUAGES
        chunk_bytes: Maximum symbol span kept whole; 0 disables splitting
        overlap_bytes: Overlap between parts of a split symbol

    Returns:
        SymbolChunks in symbol order; empty when no symbols were found
    """
    chunks: list[SymbolChunk] = []

    for sym in extract_symbols(source, language):
        if sym.end_byte > len(source) or sym.start_byte >= sym.end_byte:
            continue
        body = source[sym.start_byte : sym.end_byte]
        text = decode_lossy(body)
        if not text.strip():
            continue

        if chunk_bytes > 0 and len(body) > chunk_bytes:
            parts = chunk_with_overlap(body, chunk_bytes, overlap_bytes)
            for idx, part in enumerate(parts):
                chunks.append(
                    SymbolChunk(text=part, symbol=sym, part_index=idx, part_count=len(parts))
                )
        else:
            chunks.append(SymbolChunk(text=text, symbol=sym))

    return chunks
