from __future__ import annotations

import asyncio

import pytest

from multihost.config import MIB, UploaderConfig
from multihost.errors import UnknownProviderError, UploadValidationError
from multihost.history import UploadHistory
from multihost.models import ProviderId, UploadOptions, UploadOutcome
from multihost.providers.registry import ProviderRegistry, build_registry
from multihost.service.upload_service import IncomingFile, UploadOrchestrator


class DummyAdapter:
    def __init__(self, provider: ProviderId, *, error: Exception | None = None, delay: float = 0.0) -> None:
        self.provider = provider
        self.error = error
        self.delay = delay
        self.calls: list[tuple] = []

    async def upload(self, user_id, content, filename, options):
        self.calls.append(("upload", user_id, filename, options))
        return await self._finish(f"https://{self.provider.value}.example/{filename}")

    async def upload_remote(self, user_id, url, options):
        self.calls.append(("remote", user_id, url, options))
        return await self._finish(f"https://{self.provider.value}.example/remote")

    async def _finish(self, url: str) -> UploadOutcome:
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return UploadOutcome.succeeded(self.provider, url=url)


def _orchestrator(*adapters: DummyAdapter, history=None, config=None) -> UploadOrchestrator:
    registry = ProviderRegistry({adapter.provider: adapter for adapter in adapters})
    return UploadOrchestrator(registry, config or UploaderConfig(), history=history)


def _clip(name: str = "clip.mp4", size: int = 16, content_type: str = "video/mp4") -> IncomingFile:
    return IncomingFile(filename=name, content=b"\0" * size, content_type=content_type)


def test_result_has_one_entry_per_provider_even_when_one_raises():
    failing = DummyAdapter(ProviderId.DOODSTREAM, error=RuntimeError("socket closed"))
    working = DummyAdapter(ProviderId.VIDGUARD)
    orchestrator = _orchestrator(failing, working)

    result = asyncio.run(orchestrator.upload_files("u1", [_clip()], ["doodstream", "vidguard"]))

    uploads = result.as_dict()["results"][0]["uploads"]
    assert uploads == [
        {"provider": "doodstream", "success": False, "error": "socket closed"},
        {"provider": "vidguard", "success": True, "url": "https://vidguard.example/clip.mp4"},
    ]
    assert result.success
    assert result.status.value == "partial"


def test_results_keep_request_order_not_completion_order():
    slow = DummyAdapter(ProviderId.BIGWARP, delay=0.05)
    fast = DummyAdapter(ProviderId.STREAMTAPE)
    orchestrator = _orchestrator(slow, fast)

    result = asyncio.run(orchestrator.upload_files("u1", [_clip()], ["bigwarp", "streamtape"]))

    assert [outcome.provider for outcome in result.results[0].uploads] == ["bigwarp", "streamtape"]


def test_batch_fails_only_when_every_provider_fails():
    adapters = [
        DummyAdapter(ProviderId.DOODSTREAM, error=RuntimeError("a")),
        DummyAdapter(ProviderId.BIGWARP, error=RuntimeError("b")),
    ]

    result = asyncio.run(_orchestrator(*adapters).upload_files("u1", [_clip()], ["doodstream", "bigwarp"]))

    assert result.success is False
    assert result.as_dict()["status"] == "failed"


def test_multiple_files_are_processed_independently():
    adapter = DummyAdapter(ProviderId.VIDGUARD)
    orchestrator = _orchestrator(adapter)

    result = asyncio.run(orchestrator.upload_files("u1", [_clip("a.mp4"), _clip("b.webm", content_type="video/webm")], ["vidguard"]))

    payload = result.as_dict()
    assert [row["filename"] for row in payload["results"]] == ["a.mp4", "b.webm"]
    assert payload["message"] == "Processed 2 file(s) with 1 provider(s)"
    assert [call[2] for call in adapter.calls] == ["a.mp4", "b.webm"]


def test_unknown_provider_is_rejected_before_any_adapter_call():
    adapter = DummyAdapter(ProviderId.VIDGUARD)
    orchestrator = _orchestrator(adapter)

    with pytest.raises(UnknownProviderError):
        asyncio.run(orchestrator.upload_files("u1", [_clip()], ["vidguard", "dropbox"]))
    assert adapter.calls == []


@pytest.mark.parametrize(
    "files, message",
    [
        ([], "No files provided"),
        ([_clip(size=2 * MIB)], "exceeds maximum size of 1MB"),
        ([_clip("notes.txt", content_type="text/plain")], "unsupported type: text/plain"),
    ],
)
def test_file_validation_happens_before_upload(files, message):
    adapter = DummyAdapter(ProviderId.VIDGUARD)
    orchestrator = _orchestrator(adapter, config=UploaderConfig(max_upload_bytes=MIB))

    with pytest.raises(UploadValidationError, match=message):
        asyncio.run(orchestrator.upload_files("u1", files, ["vidguard"]))
    assert adapter.calls == []


def test_default_description_is_applied():
    adapter = DummyAdapter(ProviderId.BIGWARP)
    config = UploaderConfig(default_description="From tests")

    asyncio.run(_orchestrator(adapter, config=config).upload_files("u1", [_clip()], ["bigwarp"], UploadOptions(folder_id="")))

    options = adapter.calls[0][3]
    assert options.description == "From tests"
    assert options.folder_id is None


def test_history_records_each_file(records):
    history = UploadHistory(records)
    orchestrator = _orchestrator(DummyAdapter(ProviderId.VIDGUARD), history=history)

    asyncio.run(orchestrator.upload_files("u1", [_clip("a.mp4"), _clip("b.mp4")], ["vidguard"]))

    assert sorted(entry.filename for entry in history.list_for_user("u1")) == ["a.mp4", "b.mp4"]


def test_remote_upload_fans_out_and_reports():
    working = DummyAdapter(ProviderId.DOODSTREAM)
    failing = DummyAdapter(ProviderId.STREAMTAPE, error=RuntimeError("nope"))
    orchestrator = _orchestrator(working, failing)

    result = asyncio.run(orchestrator.upload_remote("u1", " https://example.com/a.mp4 ", ["doodstream", "streamtape"]))

    assert result.as_dict() == {
        "success": True,
        "status": "partial",
        "results": [
            {"provider": "doodstream", "success": True, "url": "https://doodstream.example/remote"},
            {"provider": "streamtape", "success": False, "error": "nope"},
        ],
        "message": "Remote upload completed",
    }
    assert working.calls[0][2] == "https://example.com/a.mp4"
    assert working.calls[0][3].description is None


def test_remote_upload_all_failed_message():
    orchestrator = _orchestrator(DummyAdapter(ProviderId.BIGWARP, error=RuntimeError("x")))

    result = asyncio.run(orchestrator.upload_remote("u1", "https://example.com/a.mp4", ["bigwarp"]))

    assert result.message == "All remote uploads failed"


def test_remote_upload_requires_url():
    adapter = DummyAdapter(ProviderId.BIGWARP)

    with pytest.raises(UploadValidationError, match="URL is required"):
        asyncio.run(_orchestrator(adapter).upload_remote("u1", "  ", ["bigwarp"]))
    assert adapter.calls == []


def test_mixed_credentials_end_to_end(credentials, config, http, respond):
    credentials.set("vidguard", "u1", "vg-key")
    http.add("https://api.vidguard.to/v1/upload/server", respond({"status": 200, "result": {"url": "https://up.vidguard.to/x"}}))
    http.add("https://up.vidguard.to/x", respond({"status": 200, "result": {"URL": "/v/abc123", "HashID": "abc123"}}))
    orchestrator = UploadOrchestrator(build_registry(credentials, config, http=http), config)
    clip = IncomingFile(filename="clip.mp4", content=b"\0" * (10 * MIB), content_type="video/mp4")

    result = asyncio.run(orchestrator.upload_files("u1", [clip], ["doodstream", "vidguard"]))

    assert result.as_dict()["results"][0]["uploads"] == [
        {"provider": "doodstream", "success": False, "error": "DoodStream API key not configured"},
        {"provider": "vidguard", "success": True, "url": "https://vidguard.to/v/abc123", "id": "abc123"},
    ]
    assert result.success is True
    assert all(call["base"].startswith("https://") and "doodstream" not in call["base"] for call in http.calls)


def test_repeated_provider_gets_one_entry_per_request():
    adapter = DummyAdapter(ProviderId.VIDGUARD)
    orchestrator = _orchestrator(adapter)

    result = asyncio.run(orchestrator.upload_files("u1", [_clip()], ["vidguard", "vidguard"]))

    assert [upload["provider"] for upload in result.as_dict()["results"][0]["uploads"]] == ["vidguard", "vidguard"]
    assert len(adapter.calls) == 2


@pytest.mark.parametrize(
    "name, content_type",
    [
        ("a.mov", "video/quicktime"),
        ("a.avi", "video/x-msvideo"),
        ("a.mkv", "video/x-matroska"),
        ("a.wmv", "video/x-ms-wmv"),
        ("a.flv", "video/x-flv"),
    ],
)
def test_registered_video_types_are_accepted(name, content_type):
    adapter = DummyAdapter(ProviderId.VIDGUARD)
    orchestrator = _orchestrator(adapter)

    result = asyncio.run(orchestrator.upload_files("u1", [_clip(name, content_type=content_type)], ["vidguard"]))

    assert result.success
    assert adapter.calls[0][2] == name
