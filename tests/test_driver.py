"""Tests for the pipeline driver's per-file state machine."""

import json
from pathlib import Path

import pytest

from repoingest.config import DEFAULT_MANIFEST_PATH
from repoingest.core.errors import ChunkingError, GitError, StorageError
from repoingest.models.chunk import content_hash
from repoingest.models.types import HandlerOverride, IngestPolicy
from repoingest.pipeline import driver
from repoingest.pipeline.driver import (
    IndexRepoOptions,
    RepoIndexer,
    index_chunk,
    index_file,
    index_repo,
)
from tests.fixtures.fakes import FailingStore, RecordingLabeler, RecordingStore, make_repo


HEURISTIC = IndexRepoOptions(use_llm_labels=False)


def _indexer(
    root: Path,
    store: RecordingStore,
    labeler: RecordingLabeler | None = None,
    policy: IngestPolicy | None = None,
    options: IndexRepoOptions = HEURISTIC,
) -> RepoIndexer:
    return RepoIndexer(root, policy or IngestPolicy(), labeler or RecordingLabeler(), store, options)


def _manifest(root: Path) -> dict:
    return json.loads((root / DEFAULT_MANIFEST_PATH).read_text())


class TestFirstRun:
    """A fresh repository is fully indexed."""

    def test_every_file_dispatched_and_stored(self, tmp_path: Path) -> None:
        files = make_repo(
            tmp_path,
            {
                "src/main.rs": "fn foo() {}\nstruct Bar {}\n",
                "README.md": "# Title\nBody line\n## Sub\nMore text",
                "data.csv": "a,b\n1,2\n3,4",
                "notes.txt": "plain notes\n",
            },
        )
        store = RecordingStore()

        stats = _indexer(tmp_path, store).run(files)

        assert stats.files_seen == 4
        assert stats.files_processed == 4
        assert stats.chunks_stored == len(store.records) == 2 + 2 + 1 + 1
        modes = {r.metadata["path"]: r.metadata["ingest_mode"] for r in store.records}
        assert modes == {
            "src/main.rs": "code",
            "README.md": "text",
            "data.csv": "data",
            "notes.txt": "text",
        }

    def test_manifest_records_written_chunk_ids(self, tmp_path: Path) -> None:
        files = make_repo(tmp_path, {"src/main.rs": "fn foo() {}\nstruct Bar {}\n"})
        store = RecordingStore()

        _indexer(tmp_path, store).run(files)
        entry = _manifest(tmp_path)["files"]["src/main.rs"]

        assert entry["hash"] == content_hash((tmp_path / "src/main.rs").read_bytes())
        assert entry["mtime"] == int((tmp_path / "src/main.rs").stat().st_mtime)
        assert entry["chunk_ids"] == store.chunk_ids == [
            "src/main.rs#sym-foo-0-p0of1",
            "src/main.rs#sym-Bar-12-p0of1",
        ]

    def test_fallback_chunk_id_and_metadata(self, tmp_path: Path) -> None:
        files = make_repo(tmp_path, {"notes.txt": "plain notes\n"})
        store = RecordingStore()

        _indexer(tmp_path, store).run(files)
        record = store.records[0]
        file_hash = content_hash(b"plain notes\n")
        chunk_hash = content_hash("plain notes\n")

        assert record.chunk_id == f"notes.txt#chunk-0-{file_hash[:8]}"
        assert record.metadata["file_hash"] == f"sha256:{file_hash}"
        assert record.metadata["hash"] == f"sha256:{chunk_hash}"
        assert record.metadata["label_source"] == "heuristic"
        assert record.metadata["body"] == "plain notes\n"
        assert record.metadata["chunk_id"] == record.chunk_id
        assert record.metadata["file_len"] == 12
        assert record.metadata["chunk_bytes"] == 12

    def test_labeler_receives_llm_flag(self, tmp_path: Path) -> None:
        files = make_repo(tmp_path, {"notes.txt": "hello\n"})
        labeler = RecordingLabeler()

        _indexer(
            tmp_path, RecordingStore(), labeler, options=IndexRepoOptions(use_llm_labels=True)
        ).run(files)

        assert labeler.calls == [("notes.txt", "hello\n", True)]


class TestIncrementalRuns:
    """The manifest makes re-runs cheap."""

    def test_unchanged_file_makes_no_calls(self, tmp_path: Path) -> None:
        files = make_repo(tmp_path, {"src/main.rs": "fn foo() {}\n", "notes.txt": "hi\n"})
        _indexer(tmp_path, RecordingStore()).run(files)

        labeler = RecordingLabeler()
        store = RecordingStore()
        stats = _indexer(tmp_path, store, labeler).run(files)

        assert labeler.calls == []
        assert store.records == []
        assert stats.files_processed == 0
        assert stats.files_skipped == 2

    def test_changed_file_reindexed(self, tmp_path: Path) -> None:
        files = make_repo(tmp_path, {"notes.txt": "first\n", "other.txt": "stable\n"})
        _indexer(tmp_path, RecordingStore()).run(files)

        (tmp_path / "notes.txt").write_text("second version\n")
        store = RecordingStore()
        _indexer(tmp_path, store).run(files)

        assert [r.metadata["path"] for r in store.records] == ["notes.txt"]
        entry = _manifest(tmp_path)["files"]["notes.txt"]
        assert entry["hash"] == content_hash(b"second version\n")
        assert "other.txt" in _manifest(tmp_path)["files"]

    def test_changed_only_filter(self, tmp_path: Path) -> None:
        files = make_repo(tmp_path, {"a.txt": "alpha\n", "b.txt": "beta\n"})
        store = RecordingStore()

        stats = _indexer(tmp_path, store).run(files, changed_only={"b.txt"})

        assert [r.metadata["path"] for r in store.records] == ["b.txt"]
        assert stats.files_seen == 2
        assert stats.files_skipped == 1

    def test_policy_manifest_path(self, tmp_path: Path) -> None:
        files = make_repo(tmp_path, {"a.txt": "alpha\n"})
        policy = IngestPolicy(manifest_path="state.json")

        _indexer(tmp_path, RecordingStore(), policy=policy).run(files)

        assert (tmp_path / "state.json").exists()
        assert not (tmp_path / DEFAULT_MANIFEST_PATH).exists()


class TestDedup:
    """Identical chunks are written once per run."""

    def test_duplicate_file_contributes_no_ids(self, tmp_path: Path) -> None:
        files = make_repo(tmp_path, {"a.txt": "same text\n", "b.txt": "same text\n"})
        labeler = RecordingLabeler()
        store = RecordingStore()

        stats = _indexer(tmp_path, store, labeler).run(files)
        manifest = _manifest(tmp_path)["files"]

        assert len(store.records) == 1
        assert len(labeler.calls) == 1
        assert stats.chunks_deduped == 1
        assert manifest["a.txt"]["chunk_ids"] != []
        assert manifest["b.txt"]["chunk_ids"] == []

    def test_dedup_does_not_span_runs(self, tmp_path: Path) -> None:
        make_repo(tmp_path, {"a.txt": "same text\n"})
        _indexer(tmp_path, RecordingStore()).run(["a.txt"])

        make_repo(tmp_path, {"b.txt": "same text\n"})
        store = RecordingStore()
        _indexer(tmp_path, store).run(["a.txt", "b.txt"])

        assert [r.metadata["path"] for r in store.records] == ["b.txt"]


class TestSkips:
    """Files that never reach a handler, or whose handler refuses them."""

    def test_filtered_files(self, tmp_path: Path) -> None:
        files = make_repo(
            tmp_path,
            {
                "empty.txt": "",
                "big.txt": "x" * 500,
                "Cargo.lock": "lock contents\n",
                "blob.bin": b"\x89PNG\x00\x00\xff",
                "ok.rs": "fn ok() {}\n",
            },
        )
        store = RecordingStore()
        policy = IngestPolicy(deny_extensions=frozenset({"lock"}))
        options = IndexRepoOptions(use_llm_labels=False, max_file_bytes=100)

        stats = _indexer(tmp_path, store, policy=policy, options=options).run(files)

        assert [r.metadata["path"] for r in store.records] == ["ok.rs"]
        assert stats.files_skipped == 4
        assert list(_manifest(tmp_path)["files"]) == ["ok.rs"]

    def test_missing_and_directory_paths(self, tmp_path: Path) -> None:
        (tmp_path / "subdir").mkdir()
        store = RecordingStore()

        stats = _indexer(tmp_path, store).run(["gone.txt", "subdir"])

        assert store.records == []
        assert stats.files_skipped == 2

    def test_per_handler_size_limit(self, tmp_path: Path) -> None:
        files = make_repo(tmp_path, {"notes.txt": "y" * 50, "main.rs": "fn a() {}\n" * 6})
        policy = IngestPolicy(handler_overrides={"text": HandlerOverride(max_file_bytes=10)})
        store = RecordingStore()

        _indexer(tmp_path, store, policy=policy).run(files)

        assert {r.metadata["path"] for r in store.records} == {"main.rs"}
        assert "notes.txt" not in _manifest(tmp_path)["files"]

    def test_binary_placeholder_when_allowed(self, tmp_path: Path) -> None:
        files = make_repo(tmp_path, {"logo.png": b"\x89PNG\r\n\x1a\n\x00\x00\xff"})
        store = RecordingStore()
        options = IndexRepoOptions(use_llm_labels=False, allow_binary=True)

        _indexer(tmp_path, store, options=options).run(files)

        assert [r.text for r in store.records] == ["<binary file: logo.png>"]


class TestFailures:
    """A failed write aborts the run before the manifest is saved."""

    def test_write_failure_leaves_no_manifest(self, tmp_path: Path) -> None:
        files = make_repo(tmp_path, {"a.txt": "alpha\n", "b.txt": "beta\n"})
        store = FailingStore(fail_after=1)

        with pytest.raises(StorageError):
            _indexer(tmp_path, store).run(files)

        assert len(store.records) == 1
        assert not (tmp_path / DEFAULT_MANIFEST_PATH).exists()

    def test_write_failure_keeps_previous_manifest(self, tmp_path: Path) -> None:
        files = make_repo(tmp_path, {"a.txt": "alpha\n"})
        _indexer(tmp_path, RecordingStore()).run(files)
        before = (tmp_path / DEFAULT_MANIFEST_PATH).read_text()

        files += make_repo(tmp_path, {"b.txt": "beta\n", "c.txt": "gamma\n"})
        with pytest.raises(StorageError):
            _indexer(tmp_path, FailingStore(fail_after=1)).run(files)

        assert (tmp_path / DEFAULT_MANIFEST_PATH).read_text() == before

    def test_unreadable_manifest_reindexes_everything(self, tmp_path: Path) -> None:
        files = make_repo(tmp_path, {"a.txt": "alpha\n"})
        (tmp_path / DEFAULT_MANIFEST_PATH).write_text("not json")
        store = RecordingStore()

        _indexer(tmp_path, store).run(files)

        assert len(store.records) == 1


class TestIndexRepo:
    """git discovery wrapper."""

    def test_no_tracked_files_is_fatal(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(driver, "list_tracked_files", lambda root: [])

        with pytest.raises(GitError):
            index_repo(tmp_path, IngestPolicy(), RecordingLabeler(), RecordingStore(), HEURISTIC)

    def test_changed_since_limits_files(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        files = make_repo(tmp_path, {"a.txt": "alpha\n", "b.txt": "beta\n"})
        monkeypatch.setattr(driver, "list_tracked_files", lambda root: files)
        monkeypatch.setattr(driver, "files_changed_since", lambda ref, root: {"a.txt"})
        store = RecordingStore()

        options = IndexRepoOptions(use_llm_labels=False, changed_since="HEAD~1")
        stats = index_repo(tmp_path, IngestPolicy(), RecordingLabeler(), store, options)

        assert [r.metadata["path"] for r in store.records] == ["a.txt"]
        assert stats.files_processed == 1


class TestSingleFileCommands:
    """index_file and index_chunk bypass dispatch and the manifest."""

    def test_index_file_windows_whole_file(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.md"
        path.write_text("z" * 250)
        store = RecordingStore()

        ids = index_file(path, RecordingLabeler(), store, chunk_bytes=100, overlap_bytes=20,
                         use_llm_labels=False)

        assert ids == ["mem-1", "mem-2", "mem-3"]
        assert [r.chunk_id for r in store.records] == [f"{path}#chunk-{i}" for i in range(3)]
        assert store.records[0].metadata["label_source"] == "heuristic"

    def test_index_file_empty_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "blank.txt"
        path.write_text("  \n")

        with pytest.raises(ChunkingError):
            index_file(path, RecordingLabeler(), RecordingStore())

    def test_index_chunk_truncates(self, tmp_path: Path) -> None:
        path = tmp_path / "long.txt"
        path.write_text("q" * 5000)
        store = RecordingStore()

        memory_id = index_chunk(path, RecordingLabeler(), store, max_bytes=2000)

        assert memory_id == "mem-1"
        assert len(store.records[0].text) == 2000
        assert store.records[0].metadata["label_source"] == "llm_indexer"
