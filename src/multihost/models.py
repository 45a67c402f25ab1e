"""Provider-neutral data model for uploads, listings and account details."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .errors import UnknownProviderError


class ProviderId(str, Enum):
    """The closed set of supported hosting providers."""

    DOODSTREAM = "doodstream"
    STREAMTAPE = "streamtape"
    VIDGUARD = "vidguard"
    BIGWARP = "bigwarp"

    @classmethod
    def parse(cls, value: object) -> "ProviderId":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise UnknownProviderError(value)

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    ProviderId.DOODSTREAM: "DoodStream",
    ProviderId.STREAMTAPE: "StreamTape",
    ProviderId.VIDGUARD: "VidGuard",
    ProviderId.BIGWARP: "BigWarp",
}


class ItemKind(str, Enum):
    FOLDER = "folder"
    FILE = "file"


class BatchStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass(slots=True)
class UploadOptions:
    """Optional hints passed along with an upload."""

    folder_id: str | None = None
    description: str | None = None


@dataclass(slots=True)
class UploadOutcome:
    """Result of one upload attempt against one provider."""

    provider: str
    success: bool
    url: str | None = None
    file_id: str | None = None
    error: str | None = None

    @classmethod
    def succeeded(cls, provider: str, *, url: str | None = None, file_id: str | None = None) -> "UploadOutcome":
        return cls(provider=getattr(provider, "value", provider), success=True, url=url, file_id=file_id)

    @classmethod
    def failed(cls, provider: str, error: str) -> "UploadOutcome":
        return cls(provider=getattr(provider, "value", provider), success=False, error=error or "Unknown error")

    def as_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {"provider": self.provider, "success": self.success}
        if self.success:
            if self.url is not None:
                payload["url"] = self.url
            if self.file_id is not None:
                payload["id"] = self.file_id
        else:
            payload["error"] = self.error
        return payload


def batch_status(outcomes: Iterable[UploadOutcome]) -> BatchStatus:
    """Summarise a set of outcomes as success, partial or failed."""
    flags = [outcome.success for outcome in outcomes]
    if flags and all(flags):
        return BatchStatus.SUCCESS
    if any(flags):
        return BatchStatus.PARTIAL
    return BatchStatus.FAILED


@dataclass(slots=True)
class ListingItem:
    """A folder or file stored at a provider.

    Use :meth:`folder` and :meth:`file` rather than the raw constructor so
    folders never pick up file-only attributes.
    """

    id: str
    name: str
    kind: ItemKind
    created_at: str | None = None
    size: int | None = None
    url: str | None = None
    thumbnail_url: str | None = None
    view_count: int | None = None
    duration_seconds: float | None = None

    @classmethod
    def folder(cls, id: str, name: str, *, created_at: str | None = None) -> "ListingItem":
        return cls(id=str(id), name=name, kind=ItemKind.FOLDER, created_at=created_at)

    @classmethod
    def file(
        cls,
        id: str,
        name: str,
        *,
        created_at: str | None = None,
        size: int | None = None,
        url: str | None = None,
        thumbnail_url: str | None = None,
        view_count: int | None = None,
        duration_seconds: float | None = None,
    ) -> "ListingItem":
        return cls(
            id=str(id),
            name=name,
            kind=ItemKind.FILE,
            created_at=created_at,
            size=size,
            url=url,
            thumbnail_url=thumbnail_url,
            view_count=view_count,
            duration_seconds=duration_seconds,
        )

    def as_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {"id": self.id, "name": self.name, "kind": self.kind.value}
        for key in ("created_at", "size", "url", "thumbnail_url", "view_count", "duration_seconds"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload


@dataclass(slots=True)
class FolderListing:
    folders: List[ListingItem] = field(default_factory=list)
    files: List[ListingItem] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.folders) + len(self.files)

    def items(self) -> List[ListingItem]:
        """Folders first, then files."""
        return [*self.folders, *self.files]

    def as_dict(self) -> Dict[str, object]:
        return {
            "folders": [item.as_dict() for item in self.folders],
            "files": [item.as_dict() for item in self.files],
            "total": self.total,
        }


@dataclass(slots=True)
class AccountInfo:
    """Normalised account details; ``None`` means the provider did not say."""

    username: str | None = None
    email: str | None = None
    storage_used: int | None = None
    storage_total: int | None = None
    balance: float | None = None
    currency: str | None = None
    role: str | None = None
    created_at: str | None = None
    file_count: int | None = None
    premium_expires_at: str | None = None

    def as_dict(self) -> Dict[str, object]:
        return {
            item.name: getattr(self, item.name)
            for item in fields(self)
            if getattr(self, item.name) is not None
        }


@dataclass(slots=True)
class ActionResult:
    """Outcome of a folder or file mutation."""

    success: bool
    error: str | None = None
    unsupported: bool = False
    data: Optional[Dict[str, object]] = None
    http_status: int = 200

    @classmethod
    def ok(cls, data: Optional[Dict[str, object]] = None) -> "ActionResult":
        return cls(success=True, data=data)

    def as_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {"success": self.success}
        if not self.success:
            payload["error"] = self.error
            if self.unsupported:
                payload["unsupported"] = True
        if self.data:
            payload["data"] = self.data
        return payload


__all__ = [
    "AccountInfo",
    "ActionResult",
    "BatchStatus",
    "FolderListing",
    "ItemKind",
    "ListingItem",
    "ProviderId",
    "UploadOptions",
    "UploadOutcome",
    "batch_status",
]
