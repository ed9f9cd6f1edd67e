from __future__ import annotations

from heartland_hooks.config import (
    DEFAULT_EXCLUDED_ITEM_IDS,
    DEFAULT_TICKET_URL_BASE,
    Settings,
    get_settings,
)

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_DISCOUNT_THRESHOLD = 5.0


def test_get_settings_defaults():
    settings = get_settings()

    assert settings.heartland_api_base_url is None
    assert settings.operational_secret is None
    assert settings.groupme_bot_id is None
    assert settings.heartland_ticket_url_base == DEFAULT_TICKET_URL_BASE
    assert settings.http_timeout_seconds == DEFAULT_TIMEOUT_SECONDS
    assert settings.high_discount_threshold_percent == DEFAULT_DISCOUNT_THRESHOLD
    assert settings.inventory_excluded_item_ids == DEFAULT_EXCLUDED_ITEM_IDS
    assert settings.log_level == "INFO"
    assert settings.has_secret_source is False


def test_get_settings_is_cached():
    assert get_settings() is get_settings()


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("HEARTLAND_API_BASE_URL", "https://bam.retail.heartland.us")
    monkeypatch.setenv("OPERATIONAL_SECRET_FILE", "/run/secrets/operational.json")
    monkeypatch.setenv("GROUPME_BOT_ID", "bot-123")
    monkeypatch.setenv("HIGH_DISCOUNT_THRESHOLD_PERCENT", "7.5")
    monkeypatch.setenv("INVENTORY_EXCLUDED_ITEM_IDS", "1, 2,3")
    monkeypatch.setenv("LOG_JSON", "true")

    settings = Settings()

    assert settings.heartland_api_base_url == "https://bam.retail.heartland.us"
    assert settings.groupme_bot_id == "bot-123"
    assert settings.high_discount_threshold_percent == 7.5
    assert settings.inventory_excluded_item_ids == frozenset({1, 2, 3})
    assert settings.log_json is True
    assert settings.has_secret_source is True


def test_dotenv_file_is_read(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("GROUPME_BOT_ID=from-dotenv\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    assert Settings().groupme_bot_id == "from-dotenv"


def test_field_names_are_accepted():
    settings = Settings(_env_file=None, inventory_excluded_item_ids=[5, 6])

    assert settings.inventory_excluded_item_ids == frozenset({5, 6})
