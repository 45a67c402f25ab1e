"""BigWarp adapter.

BigWarp's upload-server endpoint is frequently overloaded, so that single
step runs under a :class:`~multihost.retry.RetryPolicy`. It also rejects
requests without a browser User-Agent.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..errors import RetryExhaustedError, UpstreamLogicalError, UpstreamTransportError
from ..models import AccountInfo, FolderListing, ListingItem, ProviderId, UploadOptions, UploadOutcome
from ..retry import RetryPolicy
from .base import ProviderAdapter, envelope_message, envelope_status, guess_video_type, result_dict
from .listing import parse_float, parse_int, parse_items, parse_timestamp, text

LOGGER = logging.getLogger(__name__)

API_BASE = "https://bigwarp.io/api"
SITE_URL = "https://bigwarp.io"

OVERLOADED_MESSAGE = "BigWarp servers are temporarily overloaded. Please try again in a few minutes."
UPLOAD_OVERLOADED_MESSAGE = "Service Temporarily Unavailable - Server overloaded, please try again later"


def watch_url(filecode: object) -> str:
    return f"{SITE_URL}/{filecode}.html"


def _folder(entry: Dict[str, Any]) -> Optional[ListingItem]:
    if entry.get("fld_id") is None:
        return None
    return ListingItem.folder(entry["fld_id"], text(entry.get("name")))


def _file(entry: Dict[str, Any]) -> Optional[ListingItem]:
    if entry.get("file_code") is None:
        return None
    return ListingItem.file(
        entry["file_code"],
        text(entry.get("title")),
        created_at=parse_timestamp(entry.get("uploaded")),
        size=parse_int(entry.get("size")),
        url=entry.get("link") or None,
        thumbnail_url=entry.get("thumbnail") or None,
        view_count=parse_int(entry.get("views")),
        duration_seconds=parse_float(entry.get("length")),
    )


class BigWarpAdapter(ProviderAdapter):
    provider = ProviderId.BIGWARP

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.config.retry_attempts,
            backoff_seconds=self.config.retry_backoff_seconds,
            label="BigWarp upload server lookup",
        )

    async def _call(
        self, path: str, user_id: str, fallback: str, *, expected_msg: str | None = None, **params: object
    ) -> Dict[str, Any]:
        payload = await self._get_json(f"{API_BASE}/{path}", {"key": self._secret(user_id), **params})
        return self._ensure_success(payload, fallback, expected_msg=expected_msg)

    async def _fetch_upload_server(self, secret: str) -> Any:
        response = await self._send(
            "GET",
            f"{API_BASE}/upload/server",
            params={"key": secret},
            headers={"User-Agent": self.config.user_agent},
            transient=True,
        )
        return self._read_json(response, transient=True)

    async def _upload_server(self, secret: str) -> str:
        try:
            payload = await self.retry_policy.run(self._fetch_upload_server, secret)
        except RetryExhaustedError as exc:
            raise UpstreamTransportError(self.provider, OVERLOADED_MESSAGE) from exc
        server = payload.get("result") if isinstance(payload, dict) else None
        if envelope_status(payload) != 200 or not server:
            message = envelope_message(payload) or "Please try again later"
            raise UpstreamLogicalError(self.provider, f"BigWarp upload servers unavailable: {message}")
        return str(server)

    async def _upload(self, user_id: str, content: bytes, filename: str, options: UploadOptions) -> UploadOutcome:
        secret = self._secret(user_id)
        server = await self._upload_server(secret)

        form: Dict[str, object] = {"key": secret, "html_redirect": "0"}
        if options.description:
            form["file_title"] = options.description
        response = await self._send(
            "POST",
            server,
            data=form,
            files={"file": (filename, content, guess_video_type(filename))},
            headers={"Accept": "application/json"},
            timeout=self.config.upload_timeout,
        )
        if int(response.status_code) == 500 and "<html" in (response.text or "").lower():
            raise UpstreamTransportError(self.provider, UPLOAD_OVERLOADED_MESSAGE, status_code=500)
        payload = self._ensure_success(self._read_json(response), "Upload processing failed")

        uploaded = payload.get("files")
        first = uploaded[0] if isinstance(uploaded, list) and uploaded else None
        if not isinstance(first, dict) or first.get("status") != "OK" or not first.get("filecode"):
            raise UpstreamLogicalError(self.provider, "Upload completed but file processing failed")
        filecode = str(first["filecode"])
        return UploadOutcome.succeeded(self.provider, url=watch_url(filecode), file_id=filecode)

    async def _upload_remote(self, user_id: str, source_url: str, options: UploadOptions) -> UploadOutcome:
        payload = await self._call("upload/url", user_id, "Remote upload failed", url=source_url)
        filecode = result_dict(payload).get("filecode")
        if not filecode:
            raise UpstreamLogicalError(self.provider, "Remote upload accepted but no file code returned")
        return UploadOutcome.succeeded(self.provider, url=watch_url(filecode), file_id=str(filecode))

    async def _list_folder(self, user_id: str, folder_id: str) -> FolderListing:
        payload = await self._call("folder/list", user_id, "Failed to list folder", fld_id=folder_id, files=1)
        result = result_dict(payload)
        return FolderListing(
            folders=parse_items(result.get("folders"), _folder),
            files=parse_items(result.get("files"), _file),
        )

    async def _create_folder(self, user_id: str, name: str, parent_id: str | None) -> Any:
        params: Dict[str, object] = {"name": name}
        if parent_id:
            params["parent_id"] = parent_id
        payload = await self._call("folder/create", user_id, "Failed to create folder", **params)
        return payload.get("result")

    async def _rename_folder(self, user_id: str, folder_id: str, name: str) -> Any:
        await self._call("folder/edit", user_id, "Failed to rename folder", expected_msg="OK", fld_id=folder_id, name=name)

    async def _rename_file(self, user_id: str, file_id: str, name: str) -> Any:
        await self._call(
            "file/edit", user_id, "Failed to rename file", expected_msg="OK", file_code=file_id, file_title=name
        )

    async def _delete_folder(self, user_id: str, folder_id: str) -> Any:
        await self._call("folder/delete", user_id, "Failed to delete folder", fld_id=folder_id)

    async def _delete_file(self, user_id: str, file_id: str) -> Any:
        await self._call("file/delete", user_id, "Failed to delete file", file_code=file_id)

    async def _account_info(self, user_id: str) -> AccountInfo:
        payload = await self._call("account/info", user_id, "Failed to get account info")
        result = result_dict(payload)
        used = parse_int(result.get("storage_used"))
        left = parse_int(result.get("storage_left"))
        return AccountInfo(
            username=result.get("login"),
            email=result.get("email"),
            storage_used=used,
            storage_total=(used or 0) + left if left is not None else None,
            balance=parse_float(result.get("balance")),
            currency="$",
            role="premium" if parse_int(result.get("premium")) == 1 else "free",
            file_count=parse_int(result.get("files_total")),
            premium_expires_at=result.get("premium_expire") or None,
        )


__all__ = ["BigWarpAdapter", "watch_url"]
