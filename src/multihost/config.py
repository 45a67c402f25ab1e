"""Runtime configuration for the multi-provider uploader."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Tuple

LOGGER = logging.getLogger(__name__)

MIB = 1024 * 1024

DEFAULT_VIDEO_TYPES: Tuple[str, ...] = (
    "video/mp4",
    "video/avi",
    "video/mov",
    "video/wmv",
    "video/flv",
    "video/webm",
    "video/mkv",
    # Registered names sent by browsers and mimetypes
    "video/quicktime",
    "video/x-msvideo",
    "video/x-matroska",
    "video/x-ms-wmv",
    "video/x-flv",
)

DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


@dataclass(slots=True)
class UploaderConfig:
    """Runtime settings shared by adapters, the orchestrator and the web app."""

    request_timeout: float = 30.0
    upload_timeout: float = 600.0
    max_upload_bytes: int = 100 * MIB
    allowed_video_types: Tuple[str, ...] = DEFAULT_VIDEO_TYPES
    retry_attempts: int = 3
    retry_backoff_seconds: float = 2.0
    default_description: str = "Uploaded via multi-provider uploader"
    history_limit: int = 100
    user_agent: str = DEFAULT_USER_AGENT
    local_user_id: str = "local"
    # Single-tenant secrets keyed by provider id
    provider_keys: Dict[str, str] = field(default_factory=dict)

    @property
    def max_upload_mb(self) -> float:
        return self.max_upload_bytes / MIB


def _positive_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be greater than zero, got {raw!r}")
    return value


def _positive_int(name: str, default: int) -> int:
    value = _positive_float(name, float(default))
    if value != int(value):
        raise ValueError(f"{name} must be a whole number, got {value!r}")
    return int(value)


def _provider_keys_from_env() -> Dict[str, str]:
    keys: Dict[str, str] = {}
    for provider, env_var in (
        ("doodstream", "DOODSTREAM_API_KEY"),
        ("vidguard", "VIDGUARD_API_KEY"),
        ("bigwarp", "BIGWARP_API_KEY"),
        ("streamtape", "STREAMTAPE_API_KEY"),
    ):
        value = (os.getenv(env_var) or "").strip()
        if value:
            keys[provider] = value

    # StreamTape may also be configured as two separate variables.
    login = (os.getenv("STREAMTAPE_LOGIN") or "").strip()
    key = (os.getenv("STREAMTAPE_KEY") or "").strip()
    if "streamtape" not in keys and login and key:
        keys["streamtape"] = f"{login}:{key}"
    return keys


def build_config_from_env() -> UploaderConfig:
    """Populate :class:`UploaderConfig` from environment variables.

    Environment variables:
        UPLOADER_REQUEST_TIMEOUT: Seconds allowed for API calls (default: 30).
        UPLOADER_UPLOAD_TIMEOUT: Seconds allowed for multipart uploads (default: 600).
        UPLOADER_MAX_UPLOAD_MB: Largest accepted file in MiB (default: 100).
        UPLOADER_ALLOWED_TYPES: Comma separated MIME types accepted for uploads.
        UPLOADER_RETRY_ATTEMPTS: Attempts for retried provider steps (default: 3).
        UPLOADER_RETRY_BACKOFF: Linear backoff step in seconds (default: 2).
        UPLOADER_DEFAULT_DESCRIPTION: Title/description sent with uploads.
        UPLOADER_HISTORY_LIMIT: Number of history entries returned (default: 100).
        UPLOADER_USER_AGENT: User-Agent for providers that reject scripted clients.
        UPLOADER_LOCAL_USER: User id used by the CLI (default: "local").
        DOODSTREAM_API_KEY, VIDGUARD_API_KEY, BIGWARP_API_KEY,
        STREAMTAPE_API_KEY (or STREAMTAPE_LOGIN + STREAMTAPE_KEY):
            Optional single-tenant provider secrets.

    Raises:
        ValueError: If a numeric variable is malformed or not positive.
    """
    allowed_raw = os.getenv("UPLOADER_ALLOWED_TYPES")
    if allowed_raw:
        allowed = tuple(part.strip().lower() for part in allowed_raw.split(",") if part.strip())
    else:
        allowed = DEFAULT_VIDEO_TYPES

    config = UploaderConfig(
        request_timeout=_positive_float("UPLOADER_REQUEST_TIMEOUT", 30.0),
        upload_timeout=_positive_float("UPLOADER_UPLOAD_TIMEOUT", 600.0),
        max_upload_bytes=int(_positive_float("UPLOADER_MAX_UPLOAD_MB", 100.0) * MIB),
        allowed_video_types=allowed or DEFAULT_VIDEO_TYPES,
        retry_attempts=_positive_int("UPLOADER_RETRY_ATTEMPTS", 3),
        retry_backoff_seconds=_positive_float("UPLOADER_RETRY_BACKOFF", 2.0),
        default_description=os.getenv(
            "UPLOADER_DEFAULT_DESCRIPTION", "Uploaded via multi-provider uploader"
        ),
        history_limit=_positive_int("UPLOADER_HISTORY_LIMIT", 100),
        user_agent=os.getenv("UPLOADER_USER_AGENT", DEFAULT_USER_AGENT),
        local_user_id=os.getenv("UPLOADER_LOCAL_USER", "local"),
        provider_keys=_provider_keys_from_env(),
    )
    LOGGER.debug(
        "Loaded uploader config (timeout=%.1fs, max_upload=%.0fMiB, seeded providers=%s)",
        config.request_timeout,
        config.max_upload_mb,
        sorted(config.provider_keys),
    )
    return config


_CACHED_CONFIG: UploaderConfig | None = None


def get_config(force_refresh: bool = False) -> UploaderConfig:
    """Return a cached :class:`UploaderConfig` built from the environment."""
    global _CACHED_CONFIG

    if not force_refresh and _CACHED_CONFIG is not None:
        return _CACHED_CONFIG

    _CACHED_CONFIG = build_config_from_env()
    return _CACHED_CONFIG


__all__ = ["DEFAULT_VIDEO_TYPES", "UploaderConfig", "build_config_from_env", "get_config"]
