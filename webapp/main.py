"""FastAPI application exposing the multi-provider uploader."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

# Load environment variables from .env file
load_dotenv()

from multihost.config import UploaderConfig, get_config
from multihost.credentials import CredentialStore, join_composite_secret, split_composite_secret
from multihost.errors import ProviderError, UnsupportedOperationError, UploadValidationError
from multihost.history import UploadHistory
from multihost.models import ActionResult, ItemKind, ProviderId, UploadOptions
from multihost.providers.registry import ProviderRegistry, build_registry
from multihost.records import InMemoryRecordStore, RecordStore
from multihost.service.account_service import collect_account_info
from multihost.service.upload_service import IncomingFile, UploadOrchestrator
from .session import Identity, current_identity, require_admin

app = FastAPI(title="Multi-Host Video Uploader")
LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class AppServices:
    config: UploaderConfig
    records: RecordStore
    credentials: CredentialStore
    history: UploadHistory
    registry: ProviderRegistry
    orchestrator: UploadOrchestrator

    @classmethod
    def create(
        cls,
        config: UploaderConfig | None = None,
        *,
        records: RecordStore | None = None,
        http=None,
    ) -> "AppServices":
        config = config or get_config()
        records = records if records is not None else InMemoryRecordStore()
        credentials = CredentialStore(records)
        history = UploadHistory(records, limit=config.history_limit)
        registry = build_registry(credentials, config, http=http)
        return cls(
            config=config,
            records=records,
            credentials=credentials,
            history=history,
            registry=registry,
            orchestrator=UploadOrchestrator(registry, config, history=history),
        )


_SERVICES: AppServices | None = None


def get_services() -> AppServices:
    global _SERVICES
    if _SERVICES is None:
        _SERVICES = AppServices.create()
        LOGGER.info("Initialised uploader services")
    return _SERVICES


@app.exception_handler(UploadValidationError)
async def _validation_error_handler(request: Request, exc: UploadValidationError) -> JSONResponse:
    return JSONResponse(status_code=exc.http_status, content={"success": False, "error": str(exc)})


@app.exception_handler(ProviderError)
async def _provider_error_handler(request: Request, exc: ProviderError) -> JSONResponse:
    LOGGER.warning("%s %s failed: %s", request.method, request.url.path, exc)
    content: dict[str, object] = {"success": False, "error": str(exc), "provider": exc.provider}
    if isinstance(exc, UnsupportedOperationError):
        content["unsupported"] = True
    return JSONResponse(status_code=exc.http_status, content=content)


class KeyUpdate(BaseModel):
    provider: str
    key: str | None = Field(None, description="API key, or 'login:key' for StreamTape")
    login: str | None = Field(None, description="StreamTape login, joined with key before storage")


class RemoteUploadRequest(BaseModel):
    url: str = ""
    providers: list[str] = Field(default_factory=list)
    folder_id: str | None = None
    description: str | None = None


class FolderCreate(BaseModel):
    name: str = ""
    parent_id: str | None = None


class RenameRequest(BaseModel):
    name: str = ""


class MoveRequest(BaseModel):
    folder_id: str = ""


def _parse_provider_list(raw: str | None) -> list[str]:
    if not raw:
        raise UploadValidationError("No providers specified")
    try:
        value = json.loads(raw)
    except ValueError as exc:
        raise UploadValidationError("Invalid providers format") from exc
    if not isinstance(value, list) or not value:
        raise UploadValidationError("Providers must be a non-empty array")
    return [str(item) for item in value]


def _action_response(result: ActionResult) -> JSONResponse:
    return JSONResponse(status_code=200 if result.success else result.http_status, content=result.as_dict())


# ---------------------------------------------------------------------- #
# Providers and keys
# ---------------------------------------------------------------------- #
@app.get("/api/providers")
async def list_providers(services: AppServices = Depends(get_services)) -> dict[str, object]:
    return {
        "success": True,
        "providers": [{"id": provider.value, "label": provider.label} for provider in services.registry.providers],
    }


@app.get("/api/keys")
async def get_key_status(
    identity: Identity = Depends(current_identity),
    services: AppServices = Depends(get_services),
) -> dict[str, object]:
    return {"success": True, "providers": services.credentials.key_status(identity.user_id)}


@app.put("/api/keys")
async def save_key(
    payload: KeyUpdate,
    identity: Identity = Depends(current_identity),
    services: AppServices = Depends(get_services),
) -> dict[str, object]:
    provider = ProviderId.parse(payload.provider)
    secret = payload.key or ""
    if provider is ProviderId.STREAMTAPE:
        if payload.login:
            secret = join_composite_secret(payload.login, secret)
        elif secret.strip():
            split_composite_secret(secret, provider)
    services.credentials.set(provider, identity.user_id, secret)
    return {"success": True, "provider": provider.value}


@app.delete("/api/keys/{provider}")
async def delete_key(
    provider: str,
    identity: Identity = Depends(current_identity),
    services: AppServices = Depends(get_services),
) -> dict[str, object]:
    removed = services.credentials.delete(provider, identity.user_id)
    return {"success": True, "deleted": removed}


# ---------------------------------------------------------------------- #
# Uploads
# ---------------------------------------------------------------------- #
@app.post("/api/upload", response_class=JSONResponse)
async def upload_videos(
    files: Optional[List[UploadFile]] = File(None),
    providers: str | None = Form(None),
    folder_id: str | None = Form(None),
    description: str | None = Form(None),
    identity: Identity = Depends(current_identity),
    services: AppServices = Depends(get_services),
) -> dict[str, object]:
    provider_names = _parse_provider_list(providers)
    services.registry.validate(provider_names)
    incoming: list[IncomingFile] = []
    for upload in files or []:
        incoming.append(
            IncomingFile(
                filename=upload.filename or "upload",
                content=await upload.read(),
                content_type=upload.content_type,
            )
        )
        await upload.close()
    result = await services.orchestrator.upload_files(
        identity.user_id,
        incoming,
        provider_names,
        UploadOptions(folder_id=folder_id, description=description),
    )
    return result.as_dict()


@app.post("/api/upload/remote", response_class=JSONResponse)
async def upload_remote(
    payload: RemoteUploadRequest,
    identity: Identity = Depends(current_identity),
    services: AppServices = Depends(get_services),
) -> dict[str, object]:
    result = await services.orchestrator.upload_remote(
        identity.user_id,
        payload.url,
        payload.providers,
        UploadOptions(folder_id=payload.folder_id, description=payload.description),
    )
    return result.as_dict()


# ---------------------------------------------------------------------- #
# Provider storage management
# ---------------------------------------------------------------------- #
@app.get("/api/provider/{provider}/folders")
async def list_folder(
    provider: str,
    folder_id: str = "0",
    identity: Identity = Depends(current_identity),
    services: AppServices = Depends(get_services),
) -> dict[str, object]:
    adapter = services.registry.resolve(provider)
    listing = await adapter.list_folder(identity.user_id, folder_id)
    return {"success": True, "provider": adapter.name, "folder_id": folder_id, **listing.as_dict()}


@app.post("/api/provider/{provider}/folders")
async def create_folder(
    provider: str,
    payload: FolderCreate,
    identity: Identity = Depends(current_identity),
    services: AppServices = Depends(get_services),
) -> JSONResponse:
    adapter = services.registry.resolve(provider)
    return _action_response(await adapter.create_folder(identity.user_id, payload.name, payload.parent_id))


@app.put("/api/provider/{provider}/folders/{folder_id}/rename")
async def rename_folder(
    provider: str,
    folder_id: str,
    payload: RenameRequest,
    identity: Identity = Depends(current_identity),
    services: AppServices = Depends(get_services),
) -> JSONResponse:
    adapter = services.registry.resolve(provider)
    return _action_response(await adapter.rename_item(identity.user_id, folder_id, ItemKind.FOLDER, payload.name))


@app.delete("/api/provider/{provider}/folders/{folder_id}")
async def delete_folder(
    provider: str,
    folder_id: str,
    identity: Identity = Depends(current_identity),
    services: AppServices = Depends(get_services),
) -> JSONResponse:
    adapter = services.registry.resolve(provider)
    return _action_response(await adapter.delete_item(identity.user_id, folder_id, ItemKind.FOLDER))


@app.put("/api/provider/{provider}/files/{file_id}/rename")
async def rename_file(
    provider: str,
    file_id: str,
    payload: RenameRequest,
    identity: Identity = Depends(current_identity),
    services: AppServices = Depends(get_services),
) -> JSONResponse:
    adapter = services.registry.resolve(provider)
    return _action_response(await adapter.rename_item(identity.user_id, file_id, ItemKind.FILE, payload.name))


@app.put("/api/provider/{provider}/files/{file_id}/move")
async def move_file(
    provider: str,
    file_id: str,
    payload: MoveRequest,
    identity: Identity = Depends(current_identity),
    services: AppServices = Depends(get_services),
) -> JSONResponse:
    adapter = services.registry.resolve(provider)
    return _action_response(await adapter.move_file(identity.user_id, file_id, payload.folder_id))


@app.delete("/api/provider/{provider}/files/{file_id}")
async def delete_file(
    provider: str,
    file_id: str,
    identity: Identity = Depends(current_identity),
    services: AppServices = Depends(get_services),
) -> JSONResponse:
    adapter = services.registry.resolve(provider)
    return _action_response(await adapter.delete_item(identity.user_id, file_id, ItemKind.FILE))


# ---------------------------------------------------------------------- #
# Account and history
# ---------------------------------------------------------------------- #
@app.get("/api/account")
async def account_info(
    identity: Identity = Depends(current_identity),
    services: AppServices = Depends(get_services),
) -> dict[str, object]:
    accounts = await collect_account_info(services.registry, services.credentials, identity.user_id)
    return {"success": True, "accounts": accounts}


@app.get("/api/history")
async def list_history(
    identity: Identity = Depends(current_identity),
    services: AppServices = Depends(get_services),
) -> dict[str, object]:
    entries = services.history.list_for_user(identity.user_id)
    return {"success": True, "history": [entry.as_dict() for entry in entries]}


@app.delete("/api/history/{entry_id}")
async def delete_history_entry(
    entry_id: str,
    identity: Identity = Depends(current_identity),
    services: AppServices = Depends(get_services),
) -> dict[str, object]:
    if not services.history.delete(identity.user_id, entry_id):
        raise HTTPException(status_code=404, detail="History entry not found")
    return {"success": True}


@app.delete("/api/history")
async def clear_history(
    identity: Identity = Depends(current_identity),
    services: AppServices = Depends(get_services),
) -> dict[str, object]:
    return {"success": True, "deleted": services.history.clear(identity.user_id)}


# ---------------------------------------------------------------------- #
# Admin
# ---------------------------------------------------------------------- #
@app.get("/api/admin/history")
async def admin_history(
    limit: int | None = None,
    identity: Identity = Depends(require_admin),
    services: AppServices = Depends(get_services),
) -> dict[str, object]:
    entries = services.history.list_recent(limit)
    return {"success": True, "history": [entry.as_dict() for entry in entries]}


@app.get("/api/admin/keys")
async def admin_keys(
    identity: Identity = Depends(require_admin),
    services: AppServices = Depends(get_services),
) -> dict[str, object]:
    return {"success": True, "keys": services.credentials.list_all()}


@app.delete("/api/admin/keys/{key_id}")
async def admin_delete_key(
    key_id: str,
    identity: Identity = Depends(require_admin),
    services: AppServices = Depends(get_services),
) -> dict[str, object]:
    removed = services.credentials.delete_by_id(key_id)
    if removed is None:
        raise HTTPException(status_code=404, detail="Key not found")
    LOGGER.info("Admin %s removed key %s", identity.user_id, key_id)
    return {"success": True, "deleted": removed}
