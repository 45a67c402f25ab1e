"""VidGuard adapter.

VidGuard's folder listing only returns subfolders, so a listing is built
from two concurrent calls (folders and videos) merged together.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..errors import UpstreamLogicalError
from ..models import AccountInfo, FolderListing, ListingItem, ProviderId, UploadOptions, UploadOutcome
from .base import ROOT_FOLDER, ProviderAdapter, envelope_message, envelope_status, guess_video_type, result_dict
from .listing import merge_split_listing, parse_float, parse_int, parse_items, parse_timestamp, text

LOGGER = logging.getLogger(__name__)

API_BASE = "https://api.vidguard.to/v1"
SITE_URL = "https://vidguard.to"
DONE = "Done"
FILE_PAGE_SIZE = 100


def watch_url(hash_id: object) -> str:
    return f"{SITE_URL}/v/{hash_id}"


def _folder(entry: Dict[str, Any]) -> Optional[ListingItem]:
    if entry.get("ID") is None:
        return None
    return ListingItem.folder(entry["ID"], text(entry.get("name")), created_at=parse_timestamp(entry.get("CreatedAt")))


def _file(entry: Dict[str, Any]) -> Optional[ListingItem]:
    hash_id = entry.get("HashID")
    if not hash_id:
        return None
    return ListingItem.file(
        hash_id,
        text(entry.get("Name")),
        created_at=parse_timestamp(entry.get("CreatedAt")),
        size=parse_int(entry.get("Size")),
        url=watch_url(hash_id),
        thumbnail_url=entry.get("Poster") or None,
        view_count=parse_int(entry.get("Views")),
        duration_seconds=parse_float(entry.get("Duration")),
    )


class VidGuardAdapter(ProviderAdapter):
    provider = ProviderId.VIDGUARD

    async def _call(
        self, path: str, user_id: str, fallback: str, *, expected_msg: str | None = None, **params: object
    ) -> Dict[str, Any]:
        payload = await self._get_json(f"{API_BASE}/{path}", {"key": self._secret(user_id), **params})
        return self._ensure_success(payload, fallback, expected_msg=expected_msg)

    async def _upload(self, user_id: str, content: bytes, filename: str, options: UploadOptions) -> UploadOutcome:
        secret = self._secret(user_id)
        server = await self._get_json(f"{API_BASE}/upload/server", {"key": secret})
        upload_url = result_dict(server).get("url")
        if envelope_status(server) != 200 or not upload_url:
            message = envelope_message(server) or "Unknown error"
            raise UpstreamLogicalError(self.provider, f"Failed to get upload server URL: {message}")

        response = await self._send(
            "POST",
            upload_url,
            data={"key": secret, "folder": options.folder_id or ROOT_FOLDER},
            files={"file": (filename, content, guess_video_type(filename))},
            timeout=self.config.upload_timeout,
        )
        payload = self._ensure_success(self._read_json(response), "Upload failed")
        result = result_dict(payload)
        hash_id = result.get("HashID")
        path = result.get("URL")
        if path:
            url = path if str(path).startswith("http") else f"{SITE_URL}{path}"
        elif hash_id:
            url = watch_url(hash_id)
        else:
            raise UpstreamLogicalError(self.provider, "Upload completed but no file data returned")
        return UploadOutcome.succeeded(self.provider, url=url, file_id=str(hash_id) if hash_id else None)

    async def _upload_remote(self, user_id: str, source_url: str, options: UploadOptions) -> UploadOutcome:
        form: Dict[str, object] = {"key": self._secret(user_id), "url": source_url}
        if options.folder_id:
            form["folder"] = options.folder_id
        response = await self._send("POST", f"{API_BASE}/remote/upload", data=form)
        payload = self._ensure_success(self._read_json(response), "Remote upload failed")
        queued = payload.get("result")
        first = queued[0] if isinstance(queued, list) and queued and isinstance(queued[0], dict) else {}
        remote_id = first.get("id")
        url = first.get("URL") or (watch_url(remote_id) if remote_id else None)
        return UploadOutcome.succeeded(self.provider, url=url, file_id=str(remote_id) if remote_id else None)

    async def _list_folders(self, user_id: str, folder_id: str) -> List[ListingItem]:
        payload = await self._call("folder/list", user_id, "Failed to list folders", folder=folder_id)
        return parse_items(payload.get("result"), _folder)

    async def _list_videos(self, user_id: str, folder_id: str) -> List[ListingItem]:
        payload = await self._call(
            "video/list",
            user_id,
            "Failed to list videos",
            expected_msg=DONE,
            folder=folder_id,
            limit=FILE_PAGE_SIZE,
            deleted=0,
        )
        return parse_items(payload.get("result"), _file)

    async def _list_folder(self, user_id: str, folder_id: str) -> FolderListing:
        # A missing key fails the whole listing rather than two empty halves.
        self._secret(user_id)
        return await merge_split_listing(
            self._list_folders(user_id, folder_id),
            self._list_videos(user_id, folder_id),
            label=self.label,
        )

    async def _create_folder(self, user_id: str, name: str, parent_id: str | None) -> Any:
        payload = await self._call(
            "folder/new", user_id, "Failed to create folder", name=name, folder=parent_id or ROOT_FOLDER
        )
        return payload.get("result")

    async def _rename_folder(self, user_id: str, folder_id: str, name: str) -> Any:
        await self._call("folder/rename", user_id, "Failed to rename folder", id=folder_id, name=name)

    async def _rename_file(self, user_id: str, file_id: str, name: str) -> Any:
        await self._call("video/rename", user_id, "Failed to rename file", expected_msg=DONE, id=file_id, name=name)

    async def _move_file(self, user_id: str, file_id: str, dest_folder_id: str) -> Any:
        await self._call(
            "video/move", user_id, "Failed to move file", expected_msg=DONE, id=file_id, folder=dest_folder_id
        )

    async def _delete_folder(self, user_id: str, folder_id: str) -> Any:
        await self._call("folder/delete", user_id, "Failed to delete folder", id=folder_id)

    async def _delete_file(self, user_id: str, file_id: str) -> Any:
        await self._call("video/delete", user_id, "Failed to delete file", id=file_id)

    async def _account_info(self, user_id: str) -> AccountInfo:
        payload = await self._call("user/info", user_id, "Failed to get account info")
        result = result_dict(payload)
        return AccountInfo(
            username=result.get("Email"),
            email=result.get("Email"),
            balance=parse_float(result.get("Balance")),
            currency=result.get("Currency") or None,
            role=result.get("Role") or None,
            created_at=parse_timestamp(result.get("CreatedAt")),
        )


__all__ = ["VidGuardAdapter", "watch_url"]
