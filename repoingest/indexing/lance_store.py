"""LanceDB-backed memory store.

Stores labeled chunks with their metadata. There is no vector column:
this store only persists records; embedding and search happen elsewhere.
"""

from __future__ import annotations

import json
import uuid
from typing import Any

import lancedb
import pyarrow as pa

from repoingest.core.errors import StorageError
from repoingest.models.chunk import MemoryRecord


MEMORY_SCHEMA = pa.schema([
    pa.field("id", pa.string()),
    pa.field("chunk_id", pa.string()),
    pa.field("agent_name", pa.string()),
    pa.field("topic", pa.string()),
    pa.field("project", pa.string()),
    pa.field("summary", pa.string()),
    pa.field("open_questions", pa.list_(pa.string())),
    pa.field("full_content", pa.string()),
    pa.field("confidence", pa.float64()),
    pa.field("timestamp", pa.string()),
    pa.field("metadata_json", pa.string()),
])


class LanceMemoryStore:
    """Satisfies the MemoryStore protocol on top of a LanceDB table."""

    TABLE_NAME = "memories"

    def __init__(self, db_path: str, table_name: str = TABLE_NAME) -> None:
        """Initialize connection to LanceDB.

        Args:
            db_path: Path to the LanceDB database directory.
            table_name: Table holding the memory records.
        """
        self._db = lancedb.connect(db_path)
        self._table_name = table_name
        self._table: Any = None

    def create_or_open(self) -> None:
        """Create the memory table if it doesn't exist, or open existing."""
        try:
            existing_tables = self._db.list_tables().tables
            if self._table_name in existing_tables:
                self._table = self._db.open_table(self._table_name)
            else:
                self._table = self._db.create_table(self._table_name, schema=MEMORY_SCHEMA)
        except (OSError, ValueError, RuntimeError) as exc:
            raise StorageError("open", str(exc)) from exc

    def write(self, record: MemoryRecord) -> str:
        """Insert one record and return its generated id.

        Raises:
            StorageError: If the table is not open or the insert fails
        """
        if self._table is None:
            raise StorageError("insert", "table not initialized; call create_or_open() first")

        memory_id = uuid.uuid4().hex
        try:
            self._table.add([self._to_row(memory_id, record)])
        except (OSError, ValueError, RuntimeError, pa.ArrowException) as exc:
            raise StorageError("insert", str(exc), retryable=True) from exc
        return memory_id

    def count(self) -> int:
        if self._table is None:
            raise StorageError("count", "table not initialized; call create_or_open() first")
        count: int = self._table.count_rows()
        return count

    def all_records(self) -> list[dict[str, Any]]:
        """Every stored row as a dictionary, metadata decoded."""
        if self._table is None:
            raise StorageError("scan", "table not initialized; call create_or_open() first")
        rows: list[dict[str, Any]] = self._table.to_arrow().to_pylist()
        for row in rows:
            row["metadata"] = json.loads(row.pop("metadata_json") or "{}")
        return rows

    @staticmethod
    def _to_row(memory_id: str, record: MemoryRecord) -> dict[str, Any]:
        return {
            "id": memory_id,
            "chunk_id": record.chunk_id,
            "agent_name": record.agent_name,
            "topic": record.labels.topic,
            "project": record.labels.project,
            "summary": record.labels.summary,
            "open_questions": list(record.labels.open_questions),
            "full_content": record.text,
            "confidence": record.confidence,
            "timestamp": record.timestamp.isoformat(),
            "metadata_json": json.dumps(record.metadata, sort_keys=True),
        }
