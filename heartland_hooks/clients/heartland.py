"""
Heartland Retail REST client.

Bearer-token authenticated wrapper around the few endpoints the webhook
handlers need: ticket lines, inventory values, item read/update, image
attach and report execution. API reference: https://dev.retail.heartland.us/
"""

from __future__ import annotations

import uuid
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

import httpx
from pydantic import ValidationError

from heartland_hooks.clients.errors import MalformedResponseError
from heartland_hooks.clients.http import JsonApiClient, QueryParams, build_url
from heartland_hooks.domain.models import InventoryItem, InventoryValueRow, Page, TicketLine
from heartland_hooks.utils.logging import get_logger

log = get_logger(__name__)

QueryValue = Union[str, int, float, bool]
ReportQuery = Mapping[str, Union[QueryValue, Sequence[QueryValue], None]]

TICKET_LINES_PER_PAGE = 500
INVENTORY_VALUES_PER_PAGE = 50


def build_query_params(query: ReportQuery) -> List[Tuple[str, QueryValue]]:
    """
    Flatten a report query into ordered key/value pairs.

    List values repeat the key (``group[]=a&group[]=b``); ``None`` values are dropped.
    """
    params: List[Tuple[str, QueryValue]] = []
    for key, value in query.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            params.extend((key, item) for item in value)
            continue
        params.append((key, value))
    return params


class HeartlandApiClient(JsonApiClient):
    """
    Default HTTP implementation of the Heartland API client.

    Configured entirely via constructor so it can be built once per cold start
    and shared by every strategy that needs it.
    """

    service_name = "Heartland API"

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
        retries: int = 3,
        backoff_seconds: float = 0.5,
    ) -> None:
        if not base_url or not token:
            raise ValueError("HeartlandApiClient requires base_url and token")
        super().__init__(
            timeout=timeout,
            http_client=http_client,
            retries=retries,
            backoff_seconds=backoff_seconds,
        )
        self.base_url = base_url
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        params: Optional[QueryParams] = None,
        payload: Any = None,
    ) -> Any:
        url = build_url(self.base_url, path)
        response = await self._send(method, url, headers=self._headers, params=params, payload=payload)
        return self._parse_json(response)

    def _validate(self, model: Any, data: Any, what: str) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise MalformedResponseError(
                f"Unexpected {what} payload from Heartland API: {exc}", service=self.service_name
            ) from exc

    async def get_ticket_lines(self, ticket_id: int) -> Page[TicketLine]:
        """GET /api/sales/tickets/{ticket_id}/lines"""
        data = await self._request_json(
            "GET",
            f"/api/sales/tickets/{ticket_id}/lines",
            params=[("per_page", TICKET_LINES_PER_PAGE)],
        )
        return self._validate(Page[TicketLine], data, "ticket lines")

    async def get_inventory_values(self, item_id: int) -> Page[InventoryValueRow]:
        """GET /api/inventory/values grouped by item and location."""
        data = await self._request_json(
            "GET",
            "/api/inventory/values",
            params=[
                ("group[]", "item_id"),
                ("group[]", "location_id"),
                ("item_id", str(item_id)),
                ("exclude_empty_locations", "true"),
                ("per_page", INVENTORY_VALUES_PER_PAGE),
            ],
        )
        return self._validate(Page[InventoryValueRow], data, "inventory values")

    async def get_item(self, item_id: int) -> InventoryItem:
        data = await self._request_json("GET", f"/api/items/{item_id}")
        return self._validate(InventoryItem, data, "item")

    async def update_item(self, item_id: int, updates: Mapping[str, Any]) -> InventoryItem:
        """PUT a partial item; Heartland merges the given fields."""
        data = await self._request_json("PUT", f"/api/items/{item_id}", payload=dict(updates))
        return self._validate(InventoryItem, data, "item")

    async def update_item_image(self, item_id: int, image_url: str) -> Any:
        """Attach an image to an item by URL; Heartland downloads it."""
        return await self._request_json(
            "POST",
            f"/api/items/{item_id}/images",
            payload={"source": "url", "url": image_url},
        )

    async def run_report(self, report_type: str, query: Optional[ReportQuery] = None) -> Any:
        """
        Run a reporting endpoint and return the raw payload.

        A fresh ``request_client_uuid`` is added to every call so Heartland
        does not serve a cached report.
        """
        params = build_query_params(dict(query or {}))
        params.append(("request_client_uuid", str(uuid.uuid4())))
        log.info(
            "Running Heartland report",
            extra={"report_type": report_type, "param_count": len(params)},
        )
        return await self._request_json("GET", f"/api/reporting/{report_type}", params=params)


__all__ = ["HeartlandApiClient", "ReportQuery", "build_query_params"]
