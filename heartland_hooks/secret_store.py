"""
Operational secret bundle loading.

The handlers need a Heartland API token and, for item enrichment, four
BrickLink OAuth credentials. In production the JSON bundle is injected by the
platform's secret store as an environment variable (``OPERATIONAL_SECRET``) or
a mounted file (``OPERATIONAL_SECRET_FILE``); both are `SecretSource`s.
`SecretCache` fetches and parses the bundle once per process.
"""

from __future__ import annotations

import json
import threading
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from heartland_hooks.clients.errors import SecretError
from heartland_hooks.config import Settings, get_settings
from heartland_hooks.utils.logging import get_logger

log = get_logger(__name__)


class HeartlandCredentials(BaseModel):
    token: str = Field(..., min_length=1)


class BrickLinkCredentials(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    consumer_key: str = Field(..., min_length=1, alias="consumerKey")
    consumer_secret: str = Field(..., min_length=1, alias="consumerSecret")
    token_value: str = Field(..., min_length=1, alias="tokenValue")
    token_secret: str = Field(..., min_length=1, alias="tokenSecret")


class OperationalSecret(BaseModel):
    """
    Parsed secret bundle.

    ``bricklink`` is kept as the raw mapping; call `bricklink_credentials()`
    to validate it only where BrickLink is actually needed.
    """

    model_config = ConfigDict(extra="ignore")

    heartland: HeartlandCredentials
    bricklink: Optional[Dict[str, Any]] = None

    @model_validator(mode="before")
    @classmethod
    def _accept_flat_token(cls, data: Any) -> Any:
        # Older bundles carried the Heartland token at the top level.
        if isinstance(data, dict) and "heartland" not in data and "token" in data:
            return {**data, "heartland": {"token": data["token"]}}
        return data

    @property
    def heartland_token(self) -> str:
        return self.heartland.token

    def bricklink_credentials(self) -> BrickLinkCredentials:
        if not self.bricklink:
            raise SecretError("Operational secret JSON does not contain bricklink credentials")
        try:
            return BrickLinkCredentials.model_validate(self.bricklink)
        except ValidationError as exc:
            raise SecretError(f"Operational secret bricklink credentials are incomplete: {exc}") from exc


def parse_secret(raw: Optional[str]) -> OperationalSecret:
    if not raw:
        raise SecretError("Secret string is empty")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SecretError(f"Secret string is not valid JSON: {exc}") from exc
    try:
        return OperationalSecret.model_validate(data)
    except ValidationError as exc:
        raise SecretError("Operational secret JSON does not contain heartland.token") from exc


@runtime_checkable
class SecretSource(Protocol):
    """Returns the raw secret JSON string."""

    def fetch(self) -> Optional[str]:
        ...


class InlineSecretSource:
    """Secret JSON passed directly, typically through ``OPERATIONAL_SECRET``."""

    def __init__(self, value: Optional[str]) -> None:
        self._value = value

    def fetch(self) -> Optional[str]:
        return self._value


class FileSecretSource:
    """Secret JSON read from a mounted file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def fetch(self) -> Optional[str]:
        try:
            return self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SecretError(f"Cannot read secret file {self.path}: {exc}") from exc


def secret_source_from_settings(settings: Settings) -> Optional[SecretSource]:
    """Inline JSON wins over a file path; None when neither is configured."""
    if settings.operational_secret:
        return InlineSecretSource(settings.operational_secret)
    if settings.operational_secret_file:
        return FileSecretSource(settings.operational_secret_file)
    return None


class SecretCache:
    """
    Fetches and parses the bundle at most once (per successful load).

    Failures are not cached, so a later invocation retries the fetch.
    """

    def __init__(self, source: SecretSource) -> None:
        self._source = source
        self._lock = threading.Lock()
        self._secret: Optional[OperationalSecret] = None

    def get(self) -> OperationalSecret:
        with self._lock:
            if self._secret is None:
                self._secret = parse_secret(self._source.fetch())
                log.info("Operational secret loaded", extra={"source": type(self._source).__name__})
            return self._secret

    def clear(self) -> None:
        with self._lock:
            self._secret = None


@lru_cache(maxsize=1)
def get_secret_cache() -> Optional[SecretCache]:
    """Process-wide cache for the configured source; None when no source is configured."""
    source = secret_source_from_settings(get_settings())
    return SecretCache(source) if source is not None else None


__all__ = [
    "BrickLinkCredentials",
    "FileSecretSource",
    "HeartlandCredentials",
    "InlineSecretSource",
    "OperationalSecret",
    "SecretCache",
    "SecretSource",
    "get_secret_cache",
    "parse_secret",
    "secret_source_from_settings",
]
