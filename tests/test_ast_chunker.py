"""Tests for the tree-sitter symbol chunker."""

from pathlib import Path

import pytest

from repoingest.chunking.ast_chunker import (
    chunk_code_symbols,
    extract_symbols,
    language_for_path,
)
from repoingest.core.errors import ChunkingError
from repoingest.models.chunk import make_symbol_chunk_id, sanitize_symbol_name


FIXTURES_DIR = Path(__file__).parent / "fixtures"


class TestLanguageDetection:
    """Extension to grammar mapping."""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("src/main.rs", "rust"),
            ("web/app.ts", "typescript"),
            ("web/App.tsx", "tsx"),
            ("web/index.js", "javascript"),
            ("web/view.jsx", "javascript"),
            ("tools/run.py", "python"),
            ("cmd/server.go", "go"),
            ("Api/Controller.cs", "c_sharp"),
            ("LIB.RS", "rust"),
        ],
    )
    def test_known_extensions(self, path: str, expected: str) -> None:
        assert language_for_path(path) == expected

    def test_unknown_extension(self) -> None:
        assert language_for_path("README.md") is None
        assert language_for_path("Makefile") is None


class TestRustChunking:
    """Rust symbols."""

    def test_function_and_struct(self) -> None:
        """Two top-level items give exactly two unsplit chunks."""
        source = b"fn foo() {}\nstruct Bar {}\n"
        chunks = chunk_code_symbols(source, "rust", 200, 50)

        assert len(chunks) == 2
        assert [c.symbol.kind for c in chunks] == ["function_item", "struct_item"]
        assert [c.symbol.name for c in chunks] == ["foo", "Bar"]
        assert all(c.part_count == 1 for c in chunks)

    def test_nested_symbols_are_collected(self) -> None:
        """impl blocks and the methods inside them are both symbols."""
        source = (FIXTURES_DIR / "rust" / "geometry.rs").read_bytes()
        symbols = extract_symbols(source, "rust")

        kinds = [s.kind for s in symbols]
        assert kinds.count("impl_item") == 2
        names = {s.name for s in symbols}
        assert {"Point", "new", "distance", "Shape", "fmt"} <= names

    def test_symbols_sorted_by_start(self) -> None:
        source = (FIXTURES_DIR / "rust" / "geometry.rs").read_bytes()
        symbols = extract_symbols(source, "rust")

        starts = [s.start_byte for s in symbols]
        assert starts == sorted(starts)

    def test_chunk_text_matches_byte_range(self) -> None:
        source = (FIXTURES_DIR / "rust" / "geometry.rs").read_bytes()
        for chunk in chunk_code_symbols(source, "rust", 10_000, 0):
            sym = chunk.symbol
            assert source[sym.start_byte : sym.end_byte].decode("utf-8") == chunk.text

    def test_impl_name_falls_back_to_first_named_child(self) -> None:
        """impl_item has no name field; the implemented type is used."""
        source = b"impl Widget {\n    fn run(&self) {}\n}\n"
        symbols = extract_symbols(source, "rust")

        impl = next(s for s in symbols if s.kind == "impl_item")
        assert impl.name == "Widget"


class TestLargeSymbolSplitting:
    """Symbols larger than chunk_bytes are split with overlap."""

    def test_large_function_splits(self) -> None:
        body = "\n".join(f"    let v{i} = {i};" for i in range(40))
        source = f"fn big() {{\n{body}\n}}\n".encode("utf-8")
        chunks = chunk_code_symbols(source, "rust", 100, 20)

        assert len(chunks) > 1
        assert all(c.symbol.name == "big" for c in chunks)
        assert [c.part_index for c in chunks] == list(range(len(chunks)))
        assert {c.part_count for c in chunks} == {len(chunks)}
        assert all(len(c.text.encode("utf-8")) <= 100 for c in chunks)

    def test_symbol_exactly_chunk_size_not_split(self) -> None:
        source = b"fn foo() {}"
        chunks = chunk_code_symbols(source, "rust", len(source), 5)

        assert len(chunks) == 1
        assert chunks[0].part_count == 1


class TestGoChunking:
    """Go types, functions and methods."""

    def test_symbols_in_source_order(self) -> None:
        source = (FIXTURES_DIR / "go" / "server.go").read_bytes()
        symbols = extract_symbols(source, "go")

        assert [(s.kind, s.name) for s in symbols] == [
            ("type_spec", "Server"),
            ("type_spec", "Handler"),
            ("function_declaration", "NewServer"),
            ("method_declaration", "Start"),
        ]

    def test_type_name_excludes_body(self) -> None:
        """A struct is named by its identifier, not its field list."""
        source = b"package main\n\ntype Server struct {\n\taddr string\n\tport int\n}\n"
        symbols = extract_symbols(source, "go")

        assert len(symbols) == 1
        assert symbols[0].name == "Server"

    def test_grouped_types_named_individually(self) -> None:
        source = b"package main\n\ntype (\n\tID int\n\tName string\n)\n"
        symbols = extract_symbols(source, "go")

        assert [s.name for s in symbols] == ["ID", "Name"]

    def test_chunk_text_matches_byte_range(self) -> None:
        source = (FIXTURES_DIR / "go" / "server.go").read_bytes()
        for chunk in chunk_code_symbols(source, "go", 10_000, 0):
            sym = chunk.symbol
            assert source[sym.start_byte : sym.end_byte].decode("utf-8") == chunk.text


class TestCSharpChunking:
    """C# types, constructors and methods."""

    def test_symbols_in_source_order(self) -> None:
        source = (FIXTURES_DIR / "c_sharp" / "UserService.cs").read_bytes()
        symbols = extract_symbols(source, "c_sharp")

        assert [(s.kind, s.name) for s in symbols] == [
            ("interface_declaration", "IUserService"),
            ("class_declaration", "UserService"),
            ("constructor_declaration", "UserService"),
            ("method_declaration", "Describe"),
            ("struct_declaration", "UserId"),
        ]

    def test_class_contains_its_members(self) -> None:
        source = (FIXTURES_DIR / "c_sharp" / "UserService.cs").read_bytes()
        symbols = extract_symbols(source, "c_sharp")

        cls = next(s for s in symbols if s.kind == "class_declaration")
        members = [s for s in symbols if s.kind in ("constructor_declaration", "method_declaration")]
        assert all(cls.start_byte < m.start_byte and m.end_byte <= cls.end_byte for m in members)


class TestOtherLanguages:
    """Python and TypeScript grammars."""

    def test_python_classes_and_functions(self) -> None:
        source = (FIXTURES_DIR / "python" / "service.py").read_bytes()
        symbols = extract_symbols(source, "python")

        assert [s.name for s in symbols] == [
            "UserService",
            "__init__",
            "get_user",
            "load_config",
        ]
        assert symbols[0].kind == "class_definition"

    def test_typescript_class_methods_and_function(self) -> None:
        source = (FIXTURES_DIR / "typescript" / "client.ts").read_bytes()
        names = {s.name for s in extract_symbols(source, "typescript")}

        assert {"ApiClient", "getUser", "buildClient"} <= names

    def test_no_symbols(self) -> None:
        assert chunk_code_symbols(b"x = 1\nprint(x)\n", "python", 200, 50) == []

    def test_unsupported_language_raises(self) -> None:
        with pytest.raises(ChunkingError):
            extract_symbols(b"whatever", "cobol")


class TestChunkIds:
    """Stable id hints for symbol chunks."""

    def test_sanitize_symbol_name(self) -> None:
        assert sanitize_symbol_name("impl<T> Foo::bar") == "impl_T__Foo__bar"

    def test_symbol_chunk_id_format(self) -> None:
        chunk_id = make_symbol_chunk_id("src/lib.rs", "Foo::new", 120, 1, 3)
        assert chunk_id == "src/lib.rs#sym-Foo__new-120-p1of3"
