"""Concurrent account-info lookups across configured providers."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict

from ..credentials import CredentialStore
from ..errors import ProviderError
from ..models import ProviderId
from ..providers.registry import ProviderRegistry

LOGGER = logging.getLogger(__name__)


async def _account_entry(registry: ProviderRegistry, provider: ProviderId, user_id: str) -> Dict[str, object]:
    try:
        info = await registry.resolve(provider).get_account_info(user_id)
    except ProviderError as exc:
        LOGGER.warning("%s account lookup failed: %s", provider.label, exc)
        return {"error": str(exc)}
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Unexpected %s account lookup failure", provider.label)
        return {"error": str(exc) or type(exc).__name__}
    return info.as_dict()


async def collect_account_info(
    registry: ProviderRegistry, credentials: CredentialStore, user_id: str
) -> Dict[str, Dict[str, object]]:
    """Return ``{provider: account details | {"error": message}}`` for each configured provider."""
    providers = [provider for provider in credentials.configured_providers(user_id) if provider in registry]
    entries = await asyncio.gather(*(_account_entry(registry, provider, user_id) for provider in providers))
    return {provider.value: entry for provider, entry in zip(providers, entries)}


__all__ = ["collect_account_info"]
