"""
item_created webhook handler.

Newly created Lego set items are enriched from the BrickLink catalog: the
set's catalog image is attached to the Heartland item and the item is tagged
for the storefront. Every step is best effort; the webhook always answers
``{"status": "ok"}``.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Optional

import httpx
from pydantic import ValidationError

from heartland_hooks.clients.bricklink import BrickLinkClient
from heartland_hooks.clients.errors import HeartlandHooksError
from heartland_hooks.clients.heartland import HeartlandApiClient
from heartland_hooks.config import Settings, get_settings
from heartland_hooks.domain.models import ItemCreatedPayload, ItemCustomFields
from heartland_hooks.handlers.transaction import http_response, run_in_process_loop
from heartland_hooks.secret_store import SecretCache, get_secret_cache
from heartland_hooks.utils.logging import get_logger

log = get_logger(__name__)

BRICKLINK_ITEM_TYPE = "SET"
NEW_ITEM_TAG = "add"

OK_BODY: Dict[str, str] = {"status": "ok"}


def parse_item_created(body: str) -> ItemCreatedPayload:
    """
    Raises ValueError for invalid JSON, a non-object payload or a missing numeric id.
    """
    raw = json.loads(body)
    if not isinstance(raw, dict):
        raise ValueError("payload is not an object")
    try:
        return ItemCreatedPayload.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"payload is missing a numeric id: {exc}") from exc


def build_item_tags(custom: Optional[ItemCustomFields]) -> str:
    """``"add, {bam_category}, {category}"`` with blank parts left out."""
    parts = [NEW_ITEM_TAG]
    if custom is not None:
        for value in (custom.bam_category, custom.category):
            if isinstance(value, str) and value.strip():
                parts.append(value.strip())
    return ", ".join(parts)


async def enrich_item(
    payload: ItemCreatedPayload,
    heartland: HeartlandApiClient,
    bricklink: BrickLinkClient,
) -> None:
    """Attach the BrickLink image and set the storefront tags."""
    bricklink_id = payload.bricklink_id
    context = {"item_id": payload.id, "bricklink_id": bricklink_id}

    try:
        catalog_item = await bricklink.get_item(BRICKLINK_ITEM_TYPE, bricklink_id)
    except HeartlandHooksError as exc:
        log.error("Error fetching BrickLink item", extra={**context, "error": str(exc)})
        return

    if catalog_item.image_url:
        try:
            await heartland.update_item_image(payload.id, catalog_item.image_url)
            log.info("Attached BrickLink image to item", extra={**context, "image_url": catalog_item.image_url})
        except HeartlandHooksError as exc:
            log.error("Error attaching image to item", extra={**context, "error": str(exc)})
    else:
        log.warning("BrickLink item did not include image_url; skipping image update", extra=context)

    tags = build_item_tags(payload.custom)
    try:
        await heartland.update_item(payload.id, {"custom": {"tags": tags}})
        log.info("Updated item tags", extra={**context, "tags": tags})
    except HeartlandHooksError as exc:
        log.error("Error updating item tags", extra={**context, "error": str(exc)})


async def handle_item_created_webhook(
    body: Optional[str],
    settings: Optional[Settings] = None,
    secrets: Optional[SecretCache] = None,
    *,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, str]:
    """
    Handle one item_created event.

    With no explicit `settings` the process-wide settings and secret cache are
    used; `http_client` is shared by the Heartland and BrickLink clients.
    """
    if settings is None:
        settings = get_settings()
        if secrets is None:
            secrets = get_secret_cache()

    if not body:
        log.warning("Received item_created webhook with no body")
        return dict(OK_BODY)

    try:
        payload = parse_item_created(body)
    except ValueError as exc:
        log.error("Failed to parse item_created body", extra={"error": str(exc), "raw_body": body})
        return dict(OK_BODY)

    log.info(
        "Parsed Heartland item_created payload",
        extra={"payload": payload.model_dump(by_alias=True, exclude_none=True)},
    )

    base_url = settings.heartland_api_base_url
    if not base_url or secrets is None:
        log.warning("Skipping item enrichment: missing HEARTLAND_API_BASE_URL or OPERATIONAL_SECRET")
        return dict(OK_BODY)

    if payload.bricklink_id is None:
        log.warning("Skipping item enrichment: missing bricklinkId", extra={"item_id": payload.id})
        return dict(OK_BODY)

    try:
        secret = secrets.get()
        credentials = secret.bricklink_credentials()
    except HeartlandHooksError as exc:
        log.error("Cannot enrich item: operational secret unusable", extra={"item_id": payload.id, "error": str(exc)})
        return dict(OK_BODY)

    timeout = settings.http_timeout_seconds
    async with HeartlandApiClient(
        base_url, secret.heartland_token, timeout=timeout, http_client=http_client
    ) as heartland, BrickLinkClient(
        credentials.consumer_key,
        credentials.consumer_secret,
        credentials.token_value,
        credentials.token_secret,
        timeout=timeout,
        http_client=http_client,
    ) as bricklink:
        await enrich_item(payload, heartland, bricklink)

    return dict(OK_BODY)


def handler(event: Mapping[str, Any], context: Any = None) -> Dict[str, Any]:
    """Function-URL / API-gateway style entry point for item_created."""
    log.info(
        "Received Heartland item_created webhook event (envelope)",
        extra={"headers": event.get("headers"), "request_context": event.get("requestContext")},
    )
    return http_response(run_in_process_loop(handle_item_created_webhook(event.get("body"))))


__all__ = ["build_item_tags", "enrich_item", "handle_item_created_webhook", "handler", "parse_item_created"]
