from __future__ import annotations

import pytest

from multihost.errors import UnknownProviderError
from multihost.models import (
    AccountInfo,
    ActionResult,
    BatchStatus,
    FolderListing,
    ListingItem,
    ProviderId,
    UploadOutcome,
    batch_status,
)


def test_provider_parse_is_case_insensitive():
    assert ProviderId.parse(" VidGuard ") is ProviderId.VIDGUARD
    assert ProviderId.STREAMTAPE.label == "StreamTape"


@pytest.mark.parametrize("value", ["mega", "", None, 3])
def test_provider_parse_rejects_unknown(value):
    with pytest.raises(UnknownProviderError):
        ProviderId.parse(value)


def test_outcome_serialisation():
    ok = UploadOutcome.succeeded(ProviderId.BIGWARP, url="https://bigwarp.io/a.html", file_id="a")
    failed = UploadOutcome.failed(ProviderId.DOODSTREAM, "")

    assert ok.as_dict() == {"provider": "bigwarp", "success": True, "url": "https://bigwarp.io/a.html", "id": "a"}
    assert failed.as_dict() == {"provider": "doodstream", "success": False, "error": "Unknown error"}


@pytest.mark.parametrize(
    "flags, expected",
    [
        ([True, True], BatchStatus.SUCCESS),
        ([True, False, False], BatchStatus.PARTIAL),
        ([False, False], BatchStatus.FAILED),
        ([], BatchStatus.FAILED),
    ],
)
def test_batch_status(flags, expected):
    outcomes = [
        UploadOutcome.succeeded("vidguard", url="u") if flag else UploadOutcome.failed("vidguard", "x")
        for flag in flags
    ]

    assert batch_status(outcomes) is expected


def test_folders_never_carry_file_fields():
    folder = ListingItem.folder(7, "Clips", created_at="2024-01-01")

    assert folder.as_dict() == {"id": "7", "name": "Clips", "kind": "folder", "created_at": "2024-01-01"}


def test_listing_puts_folders_first():
    listing = FolderListing(
        folders=[ListingItem.folder("f", "Folder")],
        files=[ListingItem.file("a", "clip", size=10)],
    )

    assert [item.id for item in listing.items()] == ["f", "a"]
    assert listing.as_dict()["total"] == 2


def test_account_info_omits_unknown_fields():
    assert AccountInfo(email="me@example.com", balance=0.0).as_dict() == {"email": "me@example.com", "balance": 0.0}


def test_action_result_payloads():
    assert ActionResult.ok().as_dict() == {"success": True}
    unsupported = ActionResult(success=False, error="nope", unsupported=True, http_status=400)
    assert unsupported.as_dict() == {"success": False, "error": "nope", "unsupported": True}
