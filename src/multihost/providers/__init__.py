"""Provider adapters and the registry that resolves them."""

from .base import ProviderAdapter
from .bigwarp import BigWarpAdapter
from .doodstream import DoodStreamAdapter
from .registry import ProviderRegistry, build_registry
from .streamtape import StreamTapeAdapter
from .vidguard import VidGuardAdapter

__all__ = [
    "BigWarpAdapter",
    "DoodStreamAdapter",
    "ProviderAdapter",
    "ProviderRegistry",
    "StreamTapeAdapter",
    "VidGuardAdapter",
    "build_registry",
]
