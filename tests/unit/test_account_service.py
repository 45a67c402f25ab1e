from __future__ import annotations

import asyncio

from multihost.providers.registry import build_registry
from multihost.service.account_service import collect_account_info


def test_collects_configured_providers_and_isolates_failures(credentials, config, http, respond):
    credentials.set("vidguard", "u1", "vg-key")
    credentials.set("bigwarp", "u1", "bw-key")
    http.add(
        "https://api.vidguard.to/v1/user/info",
        respond({"status": 200, "result": {"Email": "me@example.com", "Balance": 3}}),
    )
    http.add("https://bigwarp.io/api/account/info", respond({"status": 401, "msg": "Invalid key"}))
    registry = build_registry(credentials, config, http=http)

    accounts = asyncio.run(collect_account_info(registry, credentials, "u1"))

    assert accounts == {
        "vidguard": {"username": "me@example.com", "email": "me@example.com", "balance": 3.0},
        "bigwarp": {"error": "Invalid key"},
    }


def test_no_configured_providers(credentials, config, http):
    registry = build_registry(credentials, config, http=http)

    assert asyncio.run(collect_account_info(registry, credentials, "u1")) == {}
    assert http.calls == []


def test_unexpected_adapter_exception_stays_with_its_provider(monkeypatch, credentials, config, http, respond):
    credentials.set("vidguard", "u1", "vg-key")
    credentials.set("doodstream", "u1", "dd-key")
    http.add("https://api.vidguard.to/v1/user/info", respond({"status": 200, "result": {"Email": "me@example.com"}}))
    registry = build_registry(credentials, config, http=http)

    async def broken(user_id):
        raise RuntimeError("adapter bug")

    monkeypatch.setattr(registry.resolve("doodstream"), "get_account_info", broken)

    accounts = asyncio.run(collect_account_info(registry, credentials, "u1"))

    assert accounts["doodstream"] == {"error": "adapter bug"}
    assert accounts["vidguard"]["email"] == "me@example.com"
