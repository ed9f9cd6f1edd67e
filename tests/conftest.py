"""
Pytest configuration for the Heartland webhook handlers.

Provides fixtures for:
- A clean environment (no Heartland/secret/GroupMe variables, no cached settings)
- In-memory fakes for the Heartland ticket API and the GroupMe sender
- Settings and secret caches for the configured / unconfigured cases
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional

import pytest

from heartland_hooks.config import Settings, get_settings
from heartland_hooks.domain.models import InventoryValueRow, Page, TicketLine
from heartland_hooks.orchestrator import get_strategy_provider
from heartland_hooks.secret_store import InlineSecretSource, SecretCache, get_secret_cache

HEARTLAND_BASE_URL = "https://bam.retail.heartland.us"
HEARTLAND_TOKEN = "hl-test-token"

_ENV_VARS = (
    "HEARTLAND_API_BASE_URL",
    "OPERATIONAL_SECRET",
    "OPERATIONAL_SECRET_FILE",
    "GROUPME_BOT_ID",
    "HEARTLAND_TICKET_URL_BASE",
    "HTTP_TIMEOUT_SECONDS",
    "HIGH_DISCOUNT_THRESHOLD_PERCENT",
    "INVENTORY_EXCLUDED_ITEM_IDS",
    "APP_ENV",
    "LOG_LEVEL",
    "LOG_JSON",
)


def _clear_caches() -> None:
    get_settings.cache_clear()
    get_secret_cache.cache_clear()
    get_strategy_provider.cache_clear()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """
    Isolate every test from the developer's shell and `.env` file.
    """
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    _clear_caches()
    yield
    _clear_caches()


class FakeTicketApi:
    """
    In-memory stand-in for the Heartland ticket and inventory endpoints.

    Records every call; set `lines_error` / `values_error` to make the
    corresponding call raise.
    """

    def __init__(
        self,
        lines: Iterable[Dict[str, Any]] = (),
        values: Optional[Dict[int, List[Dict[str, Any]]]] = None,
    ) -> None:
        self.lines = list(lines)
        self.values = values or {}
        self.lines_error: Optional[Exception] = None
        self.values_error: Optional[Exception] = None
        self.line_calls: List[Any] = []
        self.value_calls: List[Any] = []

    async def get_ticket_lines(self, ticket_id: int) -> Page[TicketLine]:
        self.line_calls.append(ticket_id)
        if self.lines_error is not None:
            raise self.lines_error
        return Page[TicketLine].model_validate({"total": len(self.lines), "results": self.lines})

    async def get_inventory_values(self, item_id: int) -> Page[InventoryValueRow]:
        self.value_calls.append(item_id)
        if self.values_error is not None:
            raise self.values_error
        rows = self.values.get(item_id, [])
        return Page[InventoryValueRow].model_validate({"total": len(rows), "results": rows})


class RecordingSender:
    """GroupMe stand-in; fails every post when `fail` is set."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.messages: List[str] = []

    async def send_message(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("GroupMe is down")
        self.messages.append(text)


@pytest.fixture
def ticket_api() -> FakeTicketApi:
    return FakeTicketApi()


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def failing_sender() -> RecordingSender:
    return RecordingSender(fail=True)


@pytest.fixture
def bricklink_secret() -> Dict[str, str]:
    return {
        "consumerKey": "bl-consumer-key",
        "consumerSecret": "bl-consumer-secret",
        "tokenValue": "bl-token-value",
        "tokenSecret": "bl-token-secret",
    }


@pytest.fixture
def secret_json(bricklink_secret: Dict[str, str]) -> str:
    return json.dumps({"heartland": {"token": HEARTLAND_TOKEN}, "bricklink": bricklink_secret})


@pytest.fixture
def secret_cache(secret_json: str) -> SecretCache:
    return SecretCache(InlineSecretSource(secret_json))


@pytest.fixture
def unconfigured_settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def configured_settings(secret_json: str) -> Settings:
    return Settings(
        _env_file=None,
        heartland_api_base_url=HEARTLAND_BASE_URL,
        operational_secret=secret_json,
    )
