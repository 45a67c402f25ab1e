"""Upload history kept per user."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .models import BatchStatus, UploadOutcome, batch_status
from .records import Record, RecordStore

LOGGER = logging.getLogger(__name__)

TABLE = "upload_history"


@dataclass(slots=True)
class HistoryEntry:
    id: str
    user_id: str
    filename: str
    status: BatchStatus
    providers: List[str] = field(default_factory=list)
    results: List[Dict[str, object]] = field(default_factory=list)
    url: str | None = None
    created_at: str | None = None

    @classmethod
    def from_record(cls, record: Record) -> "HistoryEntry":
        return cls(
            id=str(record["id"]),
            user_id=str(record.get("user_id")),
            filename=str(record.get("filename")),
            status=BatchStatus(record.get("status", BatchStatus.FAILED.value)),
            providers=list(record.get("providers") or []),
            results=list(record.get("results") or []),
            url=record.get("url"),  # type: ignore[arg-type]
            created_at=record.get("created_at"),  # type: ignore[arg-type]
        )

    def as_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "filename": self.filename,
            "status": self.status.value,
            "providers": list(self.providers),
            "results": list(self.results),
            "url": self.url,
            "created_at": self.created_at,
        }


class UploadHistory:
    def __init__(self, records: RecordStore, *, limit: int = 100) -> None:
        self._records = records
        self.limit = limit

    def record(self, user_id: str, filename: str, outcomes: Sequence[UploadOutcome]) -> HistoryEntry:
        status = batch_status(outcomes)
        first_url = next((outcome.url for outcome in outcomes if outcome.success and outcome.url), None)
        record = self._records.create(
            TABLE,
            {
                "user_id": user_id,
                "filename": filename,
                "status": status.value,
                "providers": [outcome.provider for outcome in outcomes],
                "results": [outcome.as_dict() for outcome in outcomes],
                "url": first_url,
            },
        )
        LOGGER.debug("Recorded %s upload of %s for user %s", status.value, filename, user_id)
        return HistoryEntry.from_record(record)

    def list_for_user(self, user_id: str) -> List[HistoryEntry]:
        rows = self._records.find_many(
            TABLE, {"user_id": user_id}, order_by="created_at", descending=True, limit=self.limit
        )
        return [HistoryEntry.from_record(row) for row in rows]

    def list_recent(self, limit: Optional[int] = None) -> List[HistoryEntry]:
        rows = self._records.find_many(TABLE, order_by="created_at", descending=True, limit=limit or self.limit)
        return [HistoryEntry.from_record(row) for row in rows]

    def delete(self, user_id: str, entry_id: str) -> bool:
        record = self._records.get(TABLE, entry_id)
        if record is None or record.get("user_id") != user_id:
            return False
        return self._records.delete(TABLE, entry_id)

    def clear(self, user_id: str) -> int:
        removed = 0
        for row in self._records.find_many(TABLE, {"user_id": user_id}):
            if self._records.delete(TABLE, str(row["id"])):
                removed += 1
        return removed


__all__ = ["HistoryEntry", "UploadHistory"]
