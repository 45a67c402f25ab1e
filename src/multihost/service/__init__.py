"""Service layer driving adapters on behalf of the web app and CLI."""

from .account_service import collect_account_info
from .upload_service import (
    FileUploadResult,
    IncomingFile,
    RemoteUploadResult,
    UploadBatchResult,
    UploadOrchestrator,
)

__all__ = [
    "FileUploadResult",
    "IncomingFile",
    "RemoteUploadResult",
    "UploadBatchResult",
    "UploadOrchestrator",
    "collect_account_info",
]
