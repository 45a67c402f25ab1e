"""DoodStream adapter."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..errors import UpstreamLogicalError
from ..models import AccountInfo, FolderListing, ListingItem, ProviderId, UploadOptions, UploadOutcome
from .base import ROOT_FOLDER, ProviderAdapter, envelope_message, envelope_status, guess_video_type, result_dict
from .listing import parse_float, parse_int, parse_items, parse_timestamp, text

LOGGER = logging.getLogger(__name__)

UPLOAD_API = "https://doodstream.com/api"
MANAGE_API = "https://doodapi.com/api"
ACCOUNT_URL = "https://doodapi.co/api/account/info"
WATCH_URL = "https://dood.to/d/{}"


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
        url=entry.get("download_url") or None,
        thumbnail_url=entry.get("single_img") or None,
        view_count=parse_int(entry.get("views")),
        duration_seconds=parse_float(entry.get("length")),
    )


def _premium_active(expires: Any) -> bool:
    if not expires:
        return False
    try:
        moment = datetime.fromisoformat(str(expires).strip().replace("Z", "+00:00"))
    except ValueError:
        return False
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment > datetime.now(timezone.utc)


class DoodStreamAdapter(ProviderAdapter):
    provider = ProviderId.DOODSTREAM

    async def _call(self, path: str, user_id: str, fallback: str, **params: object) -> Dict[str, Any]:
        payload = await self._get_json(f"{MANAGE_API}/{path}", {"key": self._secret(user_id), **params})
        return self._ensure_success(payload, fallback)

    async def _upload(self, user_id: str, content: bytes, filename: str, options: UploadOptions) -> UploadOutcome:
        secret = self._secret(user_id)
        server = await self._get_json(f"{UPLOAD_API}/upload/server", {"key": secret})
        if envelope_status(server) != 200 or not server.get("result"):
            message = envelope_message(server) or "Unknown error"
            raise UpstreamLogicalError(self.provider, f"Failed to get upload server URL: {message}")

        response = await self._send(
            "POST",
            f"{server['result']}?{secret}",
            data={"api_key": secret, "fld_id": options.folder_id or ROOT_FOLDER},
            files={"file": (filename, content, guess_video_type(filename))},
            timeout=self.config.upload_timeout,
        )
        payload = self._ensure_success(self._read_json(response), "Upload failed")
        uploaded = payload.get("result")
        first = uploaded[0] if isinstance(uploaded, list) and uploaded else None
        if not isinstance(first, dict) or not first.get("filecode"):
            raise UpstreamLogicalError(self.provider, "Upload completed but no file data returned")
        return UploadOutcome.succeeded(self.provider, url=first.get("download_url"), file_id=str(first["filecode"]))

    async def _upload_remote(self, user_id: str, source_url: str, options: UploadOptions) -> UploadOutcome:
        params: Dict[str, object] = {"key": self._secret(user_id), "url": source_url}
        if options.folder_id:
            params["fld_id"] = options.folder_id
        if options.description:
            params["new_title"] = options.description
        payload = self._ensure_success(
            await self._get_json(f"{UPLOAD_API}/upload/url", params), "Remote upload failed"
        )
        filecode = result_dict(payload).get("filecode")
        if not filecode:
            raise UpstreamLogicalError(self.provider, "Remote upload accepted but no file code returned")
        return UploadOutcome.succeeded(self.provider, url=WATCH_URL.format(filecode), file_id=str(filecode))

    async def _list_folder(self, user_id: str, folder_id: str) -> FolderListing:
        payload = await self._call("folder/list", user_id, "Failed to list folder", fld_id=folder_id, only_folders=0)
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
        await self._call("folder/rename", user_id, "Failed to rename folder", fld_id=folder_id, name=name)

    async def _rename_file(self, user_id: str, file_id: str, name: str) -> Any:
        await self._call("file/rename", user_id, "Failed to rename file", file_code=file_id, title=name)

    async def _delete_folder(self, user_id: str, folder_id: str) -> Any:
        await self._call("folder/delete", user_id, "Failed to delete folder", fld_id=folder_id)

    async def _delete_file(self, user_id: str, file_id: str) -> Any:
        await self._call("file/delete", user_id, "Failed to delete file", file_code=file_id)

    async def _account_info(self, user_id: str) -> AccountInfo:
        payload = self._ensure_success(
            await self._get_json(ACCOUNT_URL, {"key": self._secret(user_id)}), "Failed to get account info"
        )
        result = result_dict(payload)
        used = parse_int(result.get("storage_used"))
        left = parse_int(result.get("storage_left"))
        # The provider spells this field "premim_expire".
        expires = result.get("premim_expire") or None
        return AccountInfo(
            username=result.get("email"),
            email=result.get("email"),
            storage_used=used,
            storage_total=(used or 0) + left if left is not None else None,
            balance=parse_float(result.get("balance")),
            role="premium" if _premium_active(expires) else "free",
            premium_expires_at=expires,
        )


__all__ = ["DoodStreamAdapter"]
