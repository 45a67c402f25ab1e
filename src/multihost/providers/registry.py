"""Lookup from provider identifier to adapter instance."""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Type

from ..config import UploaderConfig
from ..credentials import CredentialStore
from ..errors import UnknownProviderError, UploadValidationError
from ..models import ProviderId
from .base import ProviderAdapter
from .bigwarp import BigWarpAdapter
from .doodstream import DoodStreamAdapter
from .streamtape import StreamTapeAdapter
from .vidguard import VidGuardAdapter

ADAPTER_TYPES: Mapping[ProviderId, Type[ProviderAdapter]] = MappingProxyType(
    {
        ProviderId.DOODSTREAM: DoodStreamAdapter,
        ProviderId.STREAMTAPE: StreamTapeAdapter,
        ProviderId.VIDGUARD: VidGuardAdapter,
        ProviderId.BIGWARP: BigWarpAdapter,
    }
)


class ProviderRegistry:
    """Immutable mapping of :class:`ProviderId` to its adapter.

    ``resolve`` never performs I/O; unknown identifiers fail before any
    adapter is touched.
    """

    def __init__(self, adapters: Mapping[ProviderId, ProviderAdapter]) -> None:
        self._adapters: Mapping[ProviderId, ProviderAdapter] = MappingProxyType(dict(adapters))

    def resolve(self, name: ProviderId | str) -> ProviderAdapter:
        provider = ProviderId.parse(name)
        try:
            return self._adapters[provider]
        except KeyError as exc:
            raise UnknownProviderError(provider.value) from exc

    def validate(self, names: Iterable[ProviderId | str] | None) -> List[ProviderId]:
        """Parse requested providers, keeping one entry per requested name in order."""
        if isinstance(names, (str, ProviderId)):
            names = [names]
        resolved: List[ProviderId] = []
        for name in names or []:
            provider = ProviderId.parse(name)
            if provider not in self._adapters:
                raise UnknownProviderError(provider.value)
            resolved.append(provider)
        if not resolved:
            raise UploadValidationError("Providers must be a non-empty array")
        return resolved

    @property
    def providers(self) -> List[ProviderId]:
        return list(self._adapters)

    def __contains__(self, name: object) -> bool:
        try:
            return ProviderId.parse(name) in self._adapters
        except UnknownProviderError:
            return False

    def __iter__(self) -> Iterator[ProviderAdapter]:
        return iter(self._adapters.values())

    def __len__(self) -> int:
        return len(self._adapters)


def build_registry(credentials: CredentialStore, config: UploaderConfig | None = None, http=None) -> ProviderRegistry:
    """Create one adapter per supported provider sharing the given collaborators."""
    config = config or UploaderConfig()
    adapters: Dict[ProviderId, ProviderAdapter] = {
        provider: adapter_type(credentials, config, http=http) for provider, adapter_type in ADAPTER_TYPES.items()
    }
    return ProviderRegistry(adapters)


__all__ = ["ADAPTER_TYPES", "ProviderRegistry", "build_registry"]
