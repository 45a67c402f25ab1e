from __future__ import annotations

import json

import pytest

from multihost.config import UploaderConfig
from scripts import upload_videos


@pytest.fixture
def cli_config(monkeypatch):
    config = UploaderConfig(retry_backoff_seconds=0.0, provider_keys={"vidguard": "vg-key"})
    monkeypatch.setattr(upload_videos, "get_config", lambda: config)
    return config


def test_uploads_local_file(tmp_path, capsys, cli_config, http, respond):
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"\0" * 64)
    http.add("https://api.vidguard.to/v1/upload/server", respond({"status": 200, "result": {"url": "https://up.vidguard.to/x"}}))
    http.add("https://up.vidguard.to/x", respond({"status": 200, "result": {"URL": "/v/abc123", "HashID": "abc123"}}))

    exit_code = upload_videos.main([str(video), "--providers", "vidguard,doodstream"], http=http)

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "https://vidguard.to/v/abc123" in out
    assert "DoodStream API key not configured" in out
    assert "Processed 1 file(s) with 2 provider(s)" in out


def test_json_output_and_failure_exit_code(tmp_path, capsys, cli_config, http):
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"\0")

    exit_code = upload_videos.main([str(video), "--providers", "bigwarp", "--json"], http=http)

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 1
    assert payload["success"] is False
    assert payload["results"][0]["uploads"][0]["error"] == "BigWarp API key not configured"


def test_remote_url(capsys, cli_config, http, respond):
    http.add("https://api.vidguard.to/v1/remote/upload", respond({"status": 200, "result": [{"id": "r1"}]}))

    exit_code = upload_videos.main(["--remote-url", "https://example.com/a.mp4", "--providers", "vidguard"], http=http)

    assert exit_code == 0
    assert "Remote upload completed" in capsys.readouterr().out


def test_validation_errors_exit_with_2(tmp_path, cli_config, http):
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"\0")

    assert upload_videos.main([str(video), "--providers", "mega"], http=http) == 2
    assert upload_videos.main([str(tmp_path / "missing.mp4"), "--providers", "vidguard"], http=http) == 2
    assert upload_videos.main(["--providers", "vidguard"], http=http) == 2
    assert http.calls == []


def test_uploads_quicktime_file(tmp_path, capsys, cli_config, http, respond):
    video = tmp_path / "clip.mov"
    video.write_bytes(b"\0" * 16)
    http.add("https://api.vidguard.to/v1/upload/server", respond({"status": 200, "result": {"url": "https://up.vidguard.to/x"}}))
    http.add("https://up.vidguard.to/x", respond({"status": 200, "result": {"URL": "/v/mov1", "HashID": "mov1"}}))

    exit_code = upload_videos.main([str(video), "--providers", "vidguard"], http=http)

    assert exit_code == 0
    assert "https://vidguard.to/v/mov1" in capsys.readouterr().out
