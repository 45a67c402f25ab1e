from __future__ import annotations

import pytest

from multihost.credentials import CredentialStore, join_composite_secret, split_composite_secret
from multihost.errors import (
    CredentialMissingError,
    MalformedCredentialError,
    UnknownProviderError,
    UploadValidationError,
)
from multihost.models import ProviderId


def test_set_then_get_returns_trimmed_secret(credentials):
    credentials.set("vidguard", "u1", "  vg-key \n")

    assert credentials.get("vidguard", "u1") == "vg-key"
    assert credentials.get(ProviderId.VIDGUARD, "u1") == "vg-key"


def test_delete_then_get_is_absent(credentials):
    credentials.set("doodstream", "u1", "key")

    assert credentials.delete("doodstream", "u1") is True
    assert credentials.get("doodstream", "u1") is None
    assert credentials.delete("doodstream", "u1") is False


def test_set_overwrites_instead_of_duplicating(credentials, records):
    credentials.set("bigwarp", "u1", "first")
    credentials.set("bigwarp", "u1", "second")

    rows = records.find_many("provider_keys", {"user_id": "u1", "provider": "bigwarp"})
    assert len(rows) == 1
    assert credentials.get("bigwarp", "u1") == "second"


def test_keys_are_scoped_per_user(credentials):
    credentials.set("bigwarp", "alice", "a-key")

    assert credentials.get("bigwarp", "bob") is None


def test_empty_secret_is_rejected(credentials):
    with pytest.raises(UploadValidationError, match="API key cannot be empty"):
        credentials.set("vidguard", "u1", "   ")


def test_unknown_provider_is_rejected(credentials):
    with pytest.raises(UnknownProviderError, match="Invalid provider: mega"):
        credentials.set("mega", "u1", "key")


def test_require_reports_missing_key():
    store = CredentialStore(_EmptyRecords())

    with pytest.raises(CredentialMissingError) as excinfo:
        store.require("streamtape", "u1")
    assert str(excinfo.value) == "StreamTape API key not configured"
    assert excinfo.value.provider == "streamtape"


def test_key_status_is_stable_between_calls(credentials):
    credentials.set("vidguard", "u1", "vg")

    first = credentials.key_status("u1")
    second = credentials.key_status("u1")

    assert first == second == {
        "doodstream": False,
        "streamtape": False,
        "vidguard": True,
        "bigwarp": False,
    }


def test_configured_providers_follow_enum_order(credentials):
    credentials.seed("u1", {"bigwarp": "b", "doodstream": "d"})

    assert credentials.configured_providers("u1") == [ProviderId.DOODSTREAM, ProviderId.BIGWARP]


def test_list_all_hides_secrets(credentials):
    credentials.set("vidguard", "alice", "secret-1")
    credentials.set("bigwarp", "bob", "secret-2")

    listing = credentials.list_all()

    assert {row["user_id"] for row in listing} == {"alice", "bob"}
    assert all("api_key" not in row for row in listing)


def test_delete_by_id(credentials):
    credentials.set("vidguard", "alice", "secret-1")
    record_id = credentials.list_all()[0]["id"]

    removed = credentials.delete_by_id(record_id)

    assert removed == {"id": record_id, "provider": "vidguard", "user_id": "alice"}
    assert credentials.delete_by_id(record_id) is None
    assert credentials.get("vidguard", "alice") is None


def test_split_composite_secret_uses_first_delimiter():
    assert split_composite_secret("login:key:with:colons") == ("login", "key:with:colons")


@pytest.mark.parametrize("secret", ["nodelimiter", ":key", "login:", ""])
def test_split_composite_secret_rejects_malformed(secret):
    with pytest.raises(MalformedCredentialError, match='must be in format "login:key"'):
        split_composite_secret(secret)


def test_join_composite_secret():
    assert join_composite_secret(" me ", " k ") == "me:k"
    with pytest.raises(UploadValidationError):
        join_composite_secret("me", "")


class _EmptyRecords:
    def find_many(self, table, where=None, **kwargs):
        return []
