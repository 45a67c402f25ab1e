"""StreamTape adapter.

StreamTape authenticates with a ``login`` and ``key`` pair, stored as one
``login:key`` secret. The secret is split before any request is made so a
malformed value fails without touching the network.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional, Tuple

from ..credentials import split_composite_secret
from ..errors import UpstreamLogicalError
from ..models import AccountInfo, FolderListing, ListingItem, ProviderId, UploadOptions, UploadOutcome
from .base import ProviderAdapter, envelope_message, guess_video_type, parse_json_body, result_dict
from .listing import parse_int, parse_items, parse_timestamp, text

LOGGER = logging.getLogger(__name__)

API_BASE = "https://api.streamtape.com"
_WATCH_URL = re.compile(r"https://streamtape\.com/v/([^/\s\"'<>]+)")


def _folder(entry: Dict[str, Any]) -> Optional[ListingItem]:
    if entry.get("id") is None:
        return None
    return ListingItem.folder(entry["id"], text(entry.get("name")))


def _file(entry: Dict[str, Any]) -> Optional[ListingItem]:
    if entry.get("linkid") is None:
        return None
    return ListingItem.file(
        entry["linkid"],
        text(entry.get("name")),
        created_at=parse_timestamp(entry.get("created_at")),
        size=parse_int(entry.get("size")),
        url=entry.get("link") or None,
        thumbnail_url=entry.get("thumbnail") or None,
        view_count=parse_int(entry.get("downloads")),
    )


class StreamTapeAdapter(ProviderAdapter):
    provider = ProviderId.STREAMTAPE

    def _login_key(self, user_id: str) -> Tuple[str, str]:
        return split_composite_secret(self._secret(user_id), self.provider)

    async def _call(self, path: str, user_id: str, fallback: str, **params: object) -> Dict[str, Any]:
        login, key = self._login_key(user_id)
        payload = await self._get_json(f"{API_BASE}/{path}", {"login": login, "key": key, **params})
        return self._ensure_success(payload, fallback)

    async def _upload(self, user_id: str, content: bytes, filename: str, options: UploadOptions) -> UploadOutcome:
        params: Dict[str, object] = {}
        if options.folder_id:
            params["folder"] = options.folder_id
        ticket = await self._call("file/ul", user_id, "Failed to get upload URL", **params)
        upload_url = result_dict(ticket).get("url")
        if not upload_url:
            raise UpstreamLogicalError(self.provider, "Failed to get upload URL: no server returned")

        response = await self._send(
            "POST",
            upload_url,
            files={"file1": (filename, content, guess_video_type(filename))},
            timeout=self.config.upload_timeout,
        )
        if not 200 <= int(response.status_code) < 300:
            self._read_json(response)

        # The upload host answers with JSON or with an HTML page embedding the watch URL.
        payload = parse_json_body(response)
        result = result_dict(payload)
        if result.get("url"):
            match = _WATCH_URL.search(str(result["url"]))
            file_id = result.get("id") or (match.group(1) if match else None)
            return UploadOutcome.succeeded(self.provider, url=str(result["url"]), file_id=file_id)
        if isinstance(payload, dict) and payload.get("status") not in (None, 200):
            raise UpstreamLogicalError(self.provider, envelope_message(payload) or "Upload failed")

        match = _WATCH_URL.search(response.text or "")
        if not match:
            raise UpstreamLogicalError(self.provider, "Failed to extract file URL from upload response")
        return UploadOutcome.succeeded(self.provider, url=match.group(0), file_id=match.group(1))

    async def _upload_remote(self, user_id: str, source_url: str, options: UploadOptions) -> UploadOutcome:
        params: Dict[str, object] = {"url": source_url}
        if options.folder_id:
            params["folder"] = options.folder_id
        payload = await self._call("remotedl/add", user_id, "Remote upload failed", **params)
        remote_id = result_dict(payload).get("id")
        # Remote downloads are queued; the watch URL is only known once the fetch completes.
        return UploadOutcome.succeeded(self.provider, file_id=str(remote_id) if remote_id else None)

    async def _list_folder(self, user_id: str, folder_id: str) -> FolderListing:
        payload = await self._call("file/listfolder", user_id, "Failed to list folder", folder=folder_id)
        result = result_dict(payload)
        return FolderListing(
            folders=parse_items(result.get("folders"), _folder),
            files=parse_items(result.get("files"), _file),
        )

    async def _create_folder(self, user_id: str, name: str, parent_id: str | None) -> Any:
        params: Dict[str, object] = {"name": name}
        if parent_id:
            params["pid"] = parent_id
        payload = await self._call("file/createfolder", user_id, "Failed to create folder", **params)
        return payload.get("result")

    async def _rename_folder(self, user_id: str, folder_id: str, name: str) -> Any:
        await self._call("file/renamefolder", user_id, "Failed to rename folder", folder=folder_id, name=name)

    async def _rename_file(self, user_id: str, file_id: str, name: str) -> Any:
        await self._call("file/rename", user_id, "Failed to rename file", file=file_id, name=name)

    async def _move_file(self, user_id: str, file_id: str, dest_folder_id: str) -> Any:
        await self._call("file/move", user_id, "Failed to move file", file=file_id, folder=dest_folder_id)

    async def _delete_folder(self, user_id: str, folder_id: str) -> Any:
        await self._call("file/deletefolder", user_id, "Failed to delete folder", folder=folder_id)

    async def _delete_file(self, user_id: str, file_id: str) -> Any:
        payload = await self._call("file/delete", user_id, "Failed to delete file", file=file_id)
        if "result" in payload and payload["result"] is not True:
            raise UpstreamLogicalError(self.provider, "Failed to delete file")

    async def _account_info(self, user_id: str) -> AccountInfo:
        login, _ = self._login_key(user_id)
        payload = await self._call("account/info", user_id, "Failed to get account info")
        result = result_dict(payload)
        return AccountInfo(
            username=login,
            email=result.get("email"),
            created_at=parse_timestamp(result.get("signup_at")),
        )


__all__ = ["StreamTapeAdapter"]
