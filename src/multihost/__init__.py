"""Upload videos to several hosting providers at once and manage what is stored there."""

from .config import UploaderConfig, build_config_from_env, get_config
from .credentials import CredentialStore
from .errors import MultiHostError, ProviderError, UploadValidationError
from .history import UploadHistory
from .models import ProviderId, UploadOptions, UploadOutcome
from .records import InMemoryRecordStore

__all__ = [
    "CredentialStore",
    "InMemoryRecordStore",
    "MultiHostError",
    "ProviderError",
    "ProviderId",
    "UploadHistory",
    "UploadOptions",
    "UploadOutcome",
    "UploadValidationError",
    "UploaderConfig",
    "build_config_from_env",
    "get_config",
]
