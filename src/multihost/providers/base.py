"""Shared contract for hosting-provider adapters.

Every provider exposes the same coroutine operations; how each one maps
onto HTTP calls is left entirely to the concrete adapter. This module only
holds the contract, error-to-result conversion and a few transport helpers.
"""

from __future__ import annotations

import asyncio
import json
import logging
import mimetypes
import re
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Mapping, Optional

import requests

from ..config import UploaderConfig
from ..credentials import CredentialStore
from ..errors import (
    ProviderError,
    TransientUpstreamError,
    UnsupportedOperationError,
    UploadValidationError,
    UpstreamLogicalError,
    UpstreamTransportError,
)
from ..models import (
    AccountInfo,
    ActionResult,
    FolderListing,
    ItemKind,
    ProviderId,
    UploadOptions,
    UploadOutcome,
)

LOGGER = logging.getLogger(__name__)

ROOT_FOLDER = "0"
_EMBEDDED_JSON = re.compile(r"\{.*\}", re.DOTALL)


def guess_video_type(filename: str) -> str:
    guessed = mimetypes.guess_type(filename)[0]
    return guessed if guessed and guessed.startswith("video/") else "video/mp4"


def envelope_message(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        for key in ("msg", "message", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return None


def envelope_status(payload: Any) -> Optional[int]:
    if not isinstance(payload, dict):
        return None
    try:
        return int(payload.get("status"))
    except (TypeError, ValueError):
        return None


def result_dict(payload: Any) -> Dict[str, Any]:
    """The envelope's ``result`` object, or an empty dict when it is absent or not an object."""
    result = payload.get("result") if isinstance(payload, dict) else None
    return result if isinstance(result, dict) else {}


def parse_json_body(response: Any) -> Any:
    """Decode a response body, tolerating JSON wrapped in an HTML page.

    Returns ``None`` when no JSON document can be recovered.
    """
    content_type = str(response.headers.get("content-type") or "").lower()
    if "json" in content_type:
        try:
            return response.json()
        except ValueError:
            return None
    body = (response.text or "").strip()
    if not body:
        return None
    candidates = [body] if body[0] in "{[" else []
    match = _EMBEDDED_JSON.search(body)
    if match:
        candidates.append(match.group(0))
    for candidate in candidates:
        try:
            return json.loads(candidate)
        except ValueError:
            continue
    return None


class ProviderAdapter(ABC):
    """Uniform operations over one hosting provider.

    Args:
        credentials: Store used to look up the caller's secret per call.
        config: Timeouts, retry and upload settings.
        http: Object exposing ``request(method, url, **kwargs)`` with the
            ``requests`` signature. Defaults to the ``requests`` module.
    """

    provider: ClassVar[ProviderId]

    def __init__(self, credentials: CredentialStore, config: UploaderConfig | None = None, *, http=None) -> None:
        self.credentials = credentials
        self.config = config or UploaderConfig()
        self._http = http if http is not None else requests

    @property
    def name(self) -> str:
        return self.provider.value

    @property
    def label(self) -> str:
        return self.provider.label

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    # ------------------------------------------------------------------ #
    # Transport helpers
    # ------------------------------------------------------------------ #
    def _secret(self, user_id: str) -> str:
        return self.credentials.require(self.provider, user_id)

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Mapping[str, object]] = None,
        data: Optional[Mapping[str, object]] = None,
        files: Optional[Mapping[str, object]] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: float | None = None,
        transient: bool = False,
    ):
        """Issue one HTTP call on a worker thread so the event loop keeps running."""
        timeout = timeout or self.config.request_timeout
        LOGGER.debug("%s %s %s", self.label, method, url.split("?", 1)[0])
        try:
            return await asyncio.to_thread(
                self._http.request,
                method,
                url,
                params=params,
                data=data,
                files=files,
                headers=headers,
                timeout=timeout,
            )
        except requests.Timeout as exc:
            error = TransientUpstreamError if transient else UpstreamTransportError
            raise error(self.provider, f"{self.label} request timed out after {timeout:.0f}s") from exc
        except requests.RequestException as exc:
            # Exception text can echo the query string, which carries the key.
            error = TransientUpstreamError if transient else UpstreamTransportError
            raise error(self.provider, f"Could not reach {self.label}: {type(exc).__name__}") from exc

    def _read_json(self, response, *, transient: bool = False) -> Any:
        error = TransientUpstreamError if transient else UpstreamTransportError
        status = int(response.status_code)
        if not 200 <= status < 300:
            reason = (getattr(response, "reason", "") or "").strip()
            raise error(
                self.provider,
                f"{self.label} API request failed: {status} {reason}".rstrip(),
                status_code=status,
            )
        payload = parse_json_body(response)
        if payload is None:
            LOGGER.debug("%s returned a non-JSON body: %.200s", self.label, response.text)
            raise error(self.provider, f"Invalid API response format from {self.label}", status_code=status)
        return payload

    async def _get_json(self, url: str, params: Mapping[str, object], **kwargs) -> Any:
        response = await self._send("GET", url, params=params, **kwargs)
        return self._read_json(response)

    def _ensure_success(self, payload: Any, fallback: str, *, expected_msg: str | None = None) -> Dict[str, Any]:
        """Check the provider's own success marker, surfacing its message verbatim."""
        ok = envelope_status(payload) == 200
        if ok and expected_msg is not None:
            ok = payload.get("msg") == expected_msg
        if not ok:
            raise UpstreamLogicalError(self.provider, envelope_message(payload) or fallback)
        return payload

    def _unsupported(self, action: str) -> UnsupportedOperationError:
        return UnsupportedOperationError(self.provider, f"{action} not supported for {self.label}")

    async def _guard(self, action: str, call) -> ActionResult:
        try:
            data = await call
        except UnsupportedOperationError as exc:
            return ActionResult(success=False, error=str(exc), unsupported=True, http_status=exc.http_status)
        except ProviderError as exc:
            LOGGER.warning("%s %s failed: %s", self.label, action, exc)
            return ActionResult(success=False, error=str(exc), http_status=exc.http_status)
        LOGGER.info("%s %s succeeded", self.label, action)
        return ActionResult.ok(data if isinstance(data, dict) else None)

    # ------------------------------------------------------------------ #
    # Public contract
    # ------------------------------------------------------------------ #
    async def upload(
        self,
        user_id: str,
        content: bytes,
        filename: str,
        options: UploadOptions | None = None,
    ) -> UploadOutcome:
        options = options or UploadOptions()
        LOGGER.info("%s upload started for %s (%d bytes)", self.label, filename, len(content))
        try:
            outcome = await self._upload(user_id, content, filename, options)
        except ProviderError as exc:
            LOGGER.warning("%s upload of %s failed: %s", self.label, filename, exc)
            return UploadOutcome.failed(self.provider, str(exc))
        LOGGER.info("Uploaded %s to %s: %s", filename, self.label, outcome.url or outcome.file_id)
        return outcome

    async def upload_remote(self, user_id: str, source_url: str, options: UploadOptions | None = None) -> UploadOutcome:
        options = options or UploadOptions()
        try:
            outcome = await self._upload_remote(user_id, source_url, options)
        except ProviderError as exc:
            LOGGER.warning("%s remote upload failed: %s", self.label, exc)
            return UploadOutcome.failed(self.provider, str(exc))
        LOGGER.info("%s accepted remote upload: %s", self.label, outcome.url or outcome.file_id)
        return outcome

    async def list_folder(self, user_id: str, folder_id: str | None = None) -> FolderListing:
        """List a folder; raises :class:`ProviderError` when the listing cannot be fetched."""
        return await self._list_folder(user_id, str(folder_id or ROOT_FOLDER))

    async def create_folder(self, user_id: str, name: str, parent_id: str | None = None) -> ActionResult:
        name = _required_name(name, "Folder name is required")
        return await self._guard("create folder", self._create_folder(user_id, name, parent_id or None))

    async def rename_item(self, user_id: str, item_id: str, kind: ItemKind | str, new_name: str) -> ActionResult:
        new_name = _required_name(new_name, "Name is required")
        if _parse_kind(kind) is ItemKind.FOLDER:
            return await self._guard("rename folder", self._rename_folder(user_id, str(item_id), new_name))
        return await self._guard("rename file", self._rename_file(user_id, str(item_id), new_name))

    async def move_file(self, user_id: str, file_id: str, dest_folder_id: str) -> ActionResult:
        if not str(dest_folder_id or "").strip():
            raise UploadValidationError("Folder ID is required")
        return await self._guard("move file", self._move_file(user_id, str(file_id), str(dest_folder_id)))

    async def delete_item(self, user_id: str, item_id: str, kind: ItemKind | str) -> ActionResult:
        if _parse_kind(kind) is ItemKind.FOLDER:
            return await self._guard("delete folder", self._delete_folder(user_id, str(item_id)))
        return await self._guard("delete file", self._delete_file(user_id, str(item_id)))

    async def get_account_info(self, user_id: str) -> AccountInfo:
        """Fetch account details; raises :class:`ProviderError` on failure."""
        return await self._account_info(user_id)

    # ------------------------------------------------------------------ #
    # Provider specific hooks
    # ------------------------------------------------------------------ #
    @abstractmethod
    async def _upload(self, user_id: str, content: bytes, filename: str, options: UploadOptions) -> UploadOutcome: ...

    @abstractmethod
    async def _upload_remote(self, user_id: str, source_url: str, options: UploadOptions) -> UploadOutcome: ...

    @abstractmethod
    async def _list_folder(self, user_id: str, folder_id: str) -> FolderListing: ...

    @abstractmethod
    async def _create_folder(self, user_id: str, name: str, parent_id: str | None) -> Any: ...

    @abstractmethod
    async def _rename_folder(self, user_id: str, folder_id: str, name: str) -> Any: ...

    @abstractmethod
    async def _rename_file(self, user_id: str, file_id: str, name: str) -> Any: ...

    async def _move_file(self, user_id: str, file_id: str, dest_folder_id: str) -> Any:
        raise self._unsupported("File move")

    @abstractmethod
    async def _delete_folder(self, user_id: str, folder_id: str) -> Any: ...

    @abstractmethod
    async def _delete_file(self, user_id: str, file_id: str) -> Any: ...

    @abstractmethod
    async def _account_info(self, user_id: str) -> AccountInfo: ...


def _required_name(value: str, message: str) -> str:
    value = (value or "").strip()
    if not value:
        raise UploadValidationError(message)
    return value


def _parse_kind(kind: ItemKind | str) -> ItemKind:
    try:
        return ItemKind(getattr(kind, "value", kind))
    except ValueError as exc:
        raise UploadValidationError(f"Unknown item kind: {kind}") from exc


__all__ = [
    "ProviderAdapter",
    "ROOT_FOLDER",
    "envelope_message",
    "envelope_status",
    "guess_video_type",
    "parse_json_body",
    "result_dict",
]
