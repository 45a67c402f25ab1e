"""Per-user provider API keys."""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Tuple

from .errors import CredentialMissingError, MalformedCredentialError, UploadValidationError
from .models import ProviderId
from .records import Record, RecordStore

LOGGER = logging.getLogger(__name__)

TABLE = "provider_keys"
COMPOSITE_DELIMITER = ":"


def split_composite_secret(secret: str, provider: ProviderId | str = ProviderId.STREAMTAPE) -> Tuple[str, str]:
    """Split a ``login:key`` secret on its first delimiter.

    Raises:
        MalformedCredentialError: If the delimiter is missing or either half is empty.
    """
    login, sep, key = (secret or "").partition(COMPOSITE_DELIMITER)
    login, key = login.strip(), key.strip()
    if not sep or not login or not key:
        label = ProviderId.parse(provider).label
        raise MalformedCredentialError(provider, f'{label} API key must be in format "login:key"')
    return login, key


def join_composite_secret(login: str, key: str) -> str:
    login = (login or "").strip()
    key = (key or "").strip()
    if not login or not key:
        raise UploadValidationError("Both login and key are required")
    if COMPOSITE_DELIMITER in login:
        raise UploadValidationError(f"Login must not contain '{COMPOSITE_DELIMITER}'")
    return f"{login}{COMPOSITE_DELIMITER}{key}"


class CredentialStore:
    """Stores at most one secret per (user, provider) pair."""

    def __init__(self, records: RecordStore) -> None:
        self._records = records

    def _find(self, provider: ProviderId, user_id: str) -> Optional[Record]:
        rows = self._records.find_many(TABLE, {"user_id": user_id, "provider": provider.value}, limit=1)
        return rows[0] if rows else None

    def get(self, provider: ProviderId | str, user_id: str) -> Optional[str]:
        provider = ProviderId.parse(provider)
        record = self._find(provider, user_id)
        if record is None:
            return None
        secret = str(record.get("api_key") or "")
        return secret or None

    def require(self, provider: ProviderId | str, user_id: str) -> str:
        provider = ProviderId.parse(provider)
        secret = self.get(provider, user_id)
        if not secret:
            raise CredentialMissingError(provider, f"{provider.label} API key not configured")
        return secret

    def set(self, provider: ProviderId | str, user_id: str, secret: str) -> None:
        provider = ProviderId.parse(provider)
        if not isinstance(secret, str) or not secret.strip():
            raise UploadValidationError("API key cannot be empty")
        secret = secret.strip()
        existing = self._find(provider, user_id)
        if existing is not None:
            self._records.update(TABLE, str(existing["id"]), {"api_key": secret})
        else:
            self._records.create(TABLE, {"user_id": user_id, "provider": provider.value, "api_key": secret})
        LOGGER.info("Stored %s API key for user %s", provider.label, user_id)

    def delete(self, provider: ProviderId | str, user_id: str) -> bool:
        provider = ProviderId.parse(provider)
        removed = False
        for record in self._records.find_many(TABLE, {"user_id": user_id, "provider": provider.value}):
            removed = self._records.delete(TABLE, str(record["id"])) or removed
        if removed:
            LOGGER.info("Deleted %s API key for user %s", provider.label, user_id)
        return removed

    def key_status(self, user_id: str) -> Dict[str, bool]:
        configured = {
            str(record.get("provider")): bool(str(record.get("api_key") or "").strip())
            for record in self._records.find_many(TABLE, {"user_id": user_id})
        }
        return {provider.value: configured.get(provider.value, False) for provider in ProviderId}

    def configured_providers(self, user_id: str) -> List[ProviderId]:
        status = self.key_status(user_id)
        return [provider for provider in ProviderId if status[provider.value]]

    def seed(self, user_id: str, keys: Mapping[str, str]) -> None:
        for provider, secret in keys.items():
            self.set(provider, user_id, secret)

    # ------------------------------------------------------------------ #
    # Admin helpers
    # ------------------------------------------------------------------ #
    def list_all(self) -> List[Dict[str, object]]:
        """Every stored key across users, newest first, without secrets."""
        return [
            {
                "id": record["id"],
                "user_id": record.get("user_id"),
                "provider": record.get("provider"),
                "created_at": record.get("created_at"),
            }
            for record in self._records.find_many(TABLE, order_by="created_at", descending=True)
        ]

    def delete_by_id(self, record_id: str) -> Optional[Dict[str, object]]:
        record = self._records.get(TABLE, record_id)
        if record is None:
            return None
        self._records.delete(TABLE, record_id)
        LOGGER.info("Admin removed %s key %s for user %s", record.get("provider"), record_id, record.get("user_id"))
        return {"id": record["id"], "provider": record.get("provider"), "user_id": record.get("user_id")}


__all__ = ["CredentialStore", "join_composite_secret", "split_composite_secret"]
