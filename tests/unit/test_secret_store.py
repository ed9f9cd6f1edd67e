from __future__ import annotations

import json

import pytest

from heartland_hooks.clients.errors import SecretError
from heartland_hooks.config import Settings, get_settings
from heartland_hooks.secret_store import (
    FileSecretSource,
    InlineSecretSource,
    SecretCache,
    get_secret_cache,
    parse_secret,
    secret_source_from_settings,
)

TOKEN = "hl-test-token"


class _CountingSource:
    def __init__(self, values) -> None:
        self._values = list(values)
        self.calls = 0

    def fetch(self):
        self.calls += 1
        return self._values.pop(0)


def test_parse_secret_reads_nested_and_flat_token(secret_json):
    assert parse_secret(secret_json).heartland_token == TOKEN
    assert parse_secret(json.dumps({"token": "flat"})).heartland_token == "flat"


@pytest.mark.parametrize("raw", [None, "", "not-json", "{}", '{"heartland": {"token": ""}}'])
def test_parse_secret_rejects_unusable_bundles(raw):
    with pytest.raises(SecretError):
        parse_secret(raw)


def test_missing_token_message():
    with pytest.raises(SecretError, match="does not contain heartland.token"):
        parse_secret('{"heartland": {}}')


def test_bricklink_credentials(secret_json):
    credentials = parse_secret(secret_json).bricklink_credentials()

    assert credentials.consumer_key == "bl-consumer-key"
    assert credentials.token_secret == "bl-token-secret"


def test_bricklink_credentials_missing_or_incomplete():
    with pytest.raises(SecretError):
        parse_secret(json.dumps({"heartland": {"token": TOKEN}})).bricklink_credentials()
    with pytest.raises(SecretError, match="incomplete"):
        parse_secret(
            json.dumps({"heartland": {"token": TOKEN}, "bricklink": {"consumerKey": "ck"}})
        ).bricklink_credentials()


def test_file_source(tmp_path, secret_json):
    path = tmp_path / "secret.json"
    path.write_text(secret_json, encoding="utf-8")

    assert FileSecretSource(path).fetch() == secret_json
    with pytest.raises(SecretError):
        FileSecretSource(tmp_path / "missing.json").fetch()


def test_cache_loads_once(secret_json):
    source = _CountingSource([secret_json])
    cache = SecretCache(source)

    assert cache.get() is cache.get()
    assert source.calls == 1


def test_cache_does_not_remember_failures(secret_json):
    source = _CountingSource(["", secret_json])
    cache = SecretCache(source)

    with pytest.raises(SecretError):
        cache.get()
    assert cache.get().heartland_token == TOKEN
    assert source.calls == 2


def test_cache_clear_refetches(secret_json):
    source = _CountingSource([secret_json, secret_json])
    cache = SecretCache(source)

    cache.get()
    cache.clear()
    cache.get()

    assert source.calls == 2


def test_source_from_settings_prefers_inline(tmp_path):
    inline = Settings(_env_file=None, operational_secret="{}", operational_secret_file=str(tmp_path / "s.json"))
    file_only = Settings(_env_file=None, operational_secret_file=str(tmp_path / "s.json"))

    assert isinstance(secret_source_from_settings(inline), InlineSecretSource)
    assert isinstance(secret_source_from_settings(file_only), FileSecretSource)
    assert secret_source_from_settings(Settings(_env_file=None)) is None


def test_process_cache_follows_environment(monkeypatch, secret_json):
    assert get_secret_cache() is None

    get_secret_cache.cache_clear()
    get_settings.cache_clear()
    monkeypatch.setenv("OPERATIONAL_SECRET", secret_json)

    cache = get_secret_cache()
    assert cache is not None
    assert cache is get_secret_cache()
    assert cache.get().heartland_token == TOKEN
