"""
Configuration settings for the Heartland webhook handlers.

Uses Pydantic Settings to load environment variables for the Heartland API,
the operational secret bundle, GroupMe notifications, logging, and the
thresholds used by the completion strategies.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Annotated, FrozenSet, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_TICKET_URL_BASE = "https://bamherndon.retail.heartland.us/#sales/tickets/edit"
DEFAULT_EXCLUDED_ITEM_IDS: FrozenSet[int] = frozenset({101996, 106379, 102112})


class Settings(BaseSettings):
    # Heartland
    heartland_api_base_url: Optional[str] = Field(None, alias="HEARTLAND_API_BASE_URL")
    heartland_ticket_url_base: str = Field(
        DEFAULT_TICKET_URL_BASE, alias="HEARTLAND_TICKET_URL_BASE"
    )

    # Operational secret bundle (inline JSON or a path to a JSON file)
    operational_secret: Optional[str] = Field(None, alias="OPERATIONAL_SECRET")
    operational_secret_file: Optional[str] = Field(None, alias="OPERATIONAL_SECRET_FILE")

    # GroupMe
    groupme_bot_id: Optional[str] = Field(None, alias="GROUPME_BOT_ID")

    # HTTP
    http_timeout_seconds: float = Field(10.0, alias="HTTP_TIMEOUT_SECONDS")

    # Strategy thresholds
    high_discount_threshold_percent: float = Field(5.0, alias="HIGH_DISCOUNT_THRESHOLD_PERCENT")
    inventory_excluded_item_ids: Annotated[FrozenSet[int], NoDecode] = Field(
        DEFAULT_EXCLUDED_ITEM_IDS, alias="INVENTORY_EXCLUDED_ITEM_IDS"
    )

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("inventory_excluded_item_ids", mode="before")
    @classmethod
    def _split_item_ids(cls, value: object) -> object:
        """Accept a comma separated list such as ``"101996,106379"``."""
        if isinstance(value, str):
            return frozenset(int(part) for part in value.split(",") if part.strip())
        return value

    @property
    def has_secret_source(self) -> bool:
        return bool(self.operational_secret or self.operational_secret_file)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings", "DEFAULT_TICKET_URL_BASE", "DEFAULT_EXCLUDED_ITEM_IDS"]
