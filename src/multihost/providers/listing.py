"""Helpers for turning provider listing payloads into :class:`ListingItem` objects."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..errors import ProviderError
from ..models import FolderListing, ListingItem

LOGGER = logging.getLogger(__name__)

# Epoch values above this are taken to be milliseconds.
_MILLISECOND_THRESHOLD = 100_000_000_000


def parse_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


def parse_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_timestamp(value: Any) -> Optional[str]:
    """Epoch seconds/milliseconds become ISO-8601 UTC; other strings pass through."""
    if value is None or value == "":
        return None
    number = parse_float(value)
    if number is None:
        return str(value)
    if number > _MILLISECOND_THRESHOLD:
        number /= 1000.0
    try:
        return datetime.fromtimestamp(number, tz=timezone.utc).isoformat()
    except (OverflowError, OSError, ValueError):
        return str(value)


def records(value: Any) -> List[Dict[str, Any]]:
    """Entries of a listing array; anything that is not a list counts as empty."""
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, dict)]


def parse_items(value: Any, parser: Callable[[Dict[str, Any]], Optional[ListingItem]]) -> List[ListingItem]:
    items: List[ListingItem] = []
    for entry in records(value):
        item = parser(entry)
        if item is not None:
            items.append(item)
    return items


def text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


async def _half(call: Awaitable[List[ListingItem]], what: str, label: str) -> List[ListingItem]:
    try:
        return await call
    except ProviderError as exc:
        LOGGER.warning("%s %s listing failed, showing none: %s", label, what, exc)
        return []


async def merge_split_listing(
    folders_call: Awaitable[List[ListingItem]],
    files_call: Awaitable[List[ListingItem]],
    *,
    label: str,
) -> FolderListing:
    """Run a folder call and a file call together and union whatever succeeded."""
    folders, files = await asyncio.gather(
        _half(folders_call, "folder", label),
        _half(files_call, "file", label),
    )
    return FolderListing(folders=folders, files=files)


__all__ = [
    "merge_split_listing",
    "parse_float",
    "parse_int",
    "parse_items",
    "parse_timestamp",
    "records",
    "text",
]
