"""In-memory collaborators for pipeline tests."""

from tests.fixtures.fakes.collaborators import (
    FailingStore,
    FakeCompletionClient,
    RecordingLabeler,
    RecordingStore,
    make_repo,
)

__all__ = [
    "FailingStore",
    "FakeCompletionClient",
    "RecordingLabeler",
    "RecordingStore",
    "make_repo",
]
