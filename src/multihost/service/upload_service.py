"""Fan-out upload orchestration across hosting providers."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from ..config import UploaderConfig
from ..errors import UploadValidationError
from ..history import UploadHistory
from ..models import BatchStatus, ProviderId, UploadOptions, UploadOutcome, batch_status
from ..providers.registry import ProviderRegistry

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class IncomingFile:
    filename: str
    content: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(slots=True)
class FileUploadResult:
    filename: str
    uploads: List[UploadOutcome] = field(default_factory=list)

    @property
    def status(self) -> BatchStatus:
        return batch_status(self.uploads)

    def as_dict(self) -> Dict[str, object]:
        return {
            "filename": self.filename,
            "status": self.status.value,
            "uploads": [outcome.as_dict() for outcome in self.uploads],
        }


@dataclass(slots=True)
class UploadBatchResult:
    results: List[FileUploadResult]
    provider_count: int

    @property
    def outcomes(self) -> List[UploadOutcome]:
        return [outcome for result in self.results for outcome in result.uploads]

    @property
    def success(self) -> bool:
        return any(outcome.success for outcome in self.outcomes)

    @property
    def status(self) -> BatchStatus:
        return batch_status(self.outcomes)

    @property
    def message(self) -> str:
        return f"Processed {len(self.results)} file(s) with {self.provider_count} provider(s)"

    def as_dict(self) -> Dict[str, object]:
        return {
            "success": self.success,
            "status": self.status.value,
            "results": [result.as_dict() for result in self.results],
            "message": self.message,
        }


@dataclass(slots=True)
class RemoteUploadResult:
    url: str
    results: List[UploadOutcome]

    @property
    def success(self) -> bool:
        return any(outcome.success for outcome in self.results)

    @property
    def status(self) -> BatchStatus:
        return batch_status(self.results)

    @property
    def message(self) -> str:
        return "Remote upload completed" if self.success else "All remote uploads failed"

    def as_dict(self) -> Dict[str, object]:
        return {
            "success": self.success,
            "status": self.status.value,
            "results": [outcome.as_dict() for outcome in self.results],
            "message": self.message,
        }


class UploadOrchestrator:
    """Validate upload requests, then drive every selected provider concurrently.

    One provider failing, for any reason, never cancels or hides the
    outcome of another: each adapter call is isolated and converted into an
    :class:`UploadOutcome`. Results keep the order providers were requested in.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        config: UploaderConfig | None = None,
        history: Optional[UploadHistory] = None,
    ) -> None:
        self.registry = registry
        self.config = config or UploaderConfig()
        self.history = history

    def validate_files(self, files: Sequence[IncomingFile]) -> None:
        if not files:
            raise UploadValidationError("No files provided")
        allowed = {content_type.lower() for content_type in self.config.allowed_video_types}
        for item in files:
            if item.size > self.config.max_upload_bytes:
                raise UploadValidationError(
                    f"File {item.filename} exceeds maximum size of {self.config.max_upload_mb:g}MB"
                )
            content_type = (item.content_type or "").split(";", 1)[0].strip().lower()
            if content_type not in allowed:
                raise UploadValidationError(
                    f"File {item.filename} has unsupported type: {item.content_type or 'unknown'}"
                )

    def _options(self, options: UploadOptions | None, *, describe: bool = True) -> UploadOptions:
        options = options or UploadOptions()
        description = options.description or None
        if describe and description is None:
            description = self.config.default_description
        return UploadOptions(folder_id=options.folder_id or None, description=description)

    async def _isolated(self, provider: ProviderId, call) -> UploadOutcome:
        try:
            return await call
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("%s upload raised unexpectedly", provider.label)
            return UploadOutcome.failed(provider, str(exc) or type(exc).__name__)

    async def _fan_out_file(
        self, user_id: str, item: IncomingFile, providers: Iterable[ProviderId], options: UploadOptions
    ) -> FileUploadResult:
        calls = [
            self._isolated(provider, self.registry.resolve(provider).upload(user_id, item.content, item.filename, options))
            for provider in providers
        ]
        outcomes = await asyncio.gather(*calls)
        return FileUploadResult(filename=item.filename, uploads=list(outcomes))

    async def upload_files(
        self,
        user_id: str,
        files: Sequence[IncomingFile],
        providers: Iterable[ProviderId | str],
        options: UploadOptions | None = None,
    ) -> UploadBatchResult:
        selected = self.registry.validate(providers)
        self.validate_files(files)
        options = self._options(options)
        LOGGER.info(
            "Uploading %d file(s) for user %s to %s",
            len(files),
            user_id,
            ", ".join(provider.value for provider in selected),
        )

        results: List[FileUploadResult] = []
        for item in files:
            result = await self._fan_out_file(user_id, item, selected, options)
            LOGGER.info("Upload of %s finished with status %s", item.filename, result.status.value)
            if self.history is not None:
                self.history.record(user_id, item.filename, result.uploads)
            results.append(result)
        return UploadBatchResult(results=results, provider_count=len(selected))

    async def upload_remote(
        self,
        user_id: str,
        url: str,
        providers: Iterable[ProviderId | str],
        options: UploadOptions | None = None,
    ) -> RemoteUploadResult:
        url = (url or "").strip() if isinstance(url, str) else ""
        if not url:
            raise UploadValidationError("URL is required")
        selected = self.registry.validate(providers)
        options = self._options(options, describe=False)
        LOGGER.info("Remote upload for user %s to %s", user_id, ", ".join(p.value for p in selected))

        calls = [
            self._isolated(provider, self.registry.resolve(provider).upload_remote(user_id, url, options))
            for provider in selected
        ]
        outcomes = list(await asyncio.gather(*calls))
        if self.history is not None:
            self.history.record(user_id, url, outcomes)
        return RemoteUploadResult(url=url, results=outcomes)


__all__ = [
    "FileUploadResult",
    "IncomingFile",
    "RemoteUploadResult",
    "UploadBatchResult",
    "UploadOrchestrator",
]
