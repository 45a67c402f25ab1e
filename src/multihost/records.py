"""Record store used for credentials and upload history.

The production deployment talks to a relational database; this module
defines the small query surface the uploader relies on and an in-memory
implementation used by the CLI, local runs and tests.
"""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from threading import RLock
from typing import Dict, List, Mapping, Optional, Protocol
from uuid import uuid4

Record = Dict[str, object]


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class RecordStore(Protocol):
    def create(self, table: str, data: Mapping[str, object]) -> Record: ...

    def get(self, table: str, record_id: str) -> Optional[Record]: ...

    def update(self, table: str, record_id: str, changes: Mapping[str, object]) -> Optional[Record]: ...

    def delete(self, table: str, record_id: str) -> bool: ...

    def find_many(
        self,
        table: str,
        where: Optional[Mapping[str, object]] = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> List[Record]: ...


class InMemoryRecordStore:
    """Thread-safe dict-backed :class:`RecordStore`."""

    def __init__(self) -> None:
        self._tables: Dict[str, Dict[str, Record]] = {}
        self._lock = RLock()
        self._sequence = 0

    def _table(self, name: str) -> Dict[str, Record]:
        return self._tables.setdefault(name, {})

    def create(self, table: str, data: Mapping[str, object]) -> Record:
        now = _utcnow_iso()
        with self._lock:
            self._sequence += 1
            record: Record = {
                **copy.deepcopy(dict(data)),
                "id": uuid4().hex,
                "created_at": now,
                "updated_at": now,
                "_seq": self._sequence,
            }
            self._table(table)[record["id"]] = record
            return self._public(record)

    def get(self, table: str, record_id: str) -> Optional[Record]:
        with self._lock:
            record = self._table(table).get(record_id)
            return self._public(record) if record is not None else None

    def update(self, table: str, record_id: str, changes: Mapping[str, object]) -> Optional[Record]:
        with self._lock:
            record = self._table(table).get(record_id)
            if record is None:
                return None
            record.update(copy.deepcopy(dict(changes)))
            record["updated_at"] = _utcnow_iso()
            return self._public(record)

    def delete(self, table: str, record_id: str) -> bool:
        with self._lock:
            return self._table(table).pop(record_id, None) is not None

    def find_many(
        self,
        table: str,
        where: Optional[Mapping[str, object]] = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> List[Record]:
        where = where or {}
        with self._lock:
            rows = [
                record
                for record in self._table(table).values()
                if all(record.get(key) == value for key, value in where.items())
            ]
            # Insertion sequence breaks ties between identical timestamps.
            if order_by:
                rows.sort(key=lambda row: (row.get(order_by) or "", row["_seq"]), reverse=descending)
            else:
                rows.sort(key=lambda row: row["_seq"], reverse=descending)
            if limit is not None:
                rows = rows[:limit]
            return [self._public(row) for row in rows]

    @staticmethod
    def _public(record: Record) -> Record:
        return {key: copy.deepcopy(value) for key, value in record.items() if not key.startswith("_")}


__all__ = ["InMemoryRecordStore", "Record", "RecordStore"]
