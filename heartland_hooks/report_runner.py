"""
Heartland reporting queries.

`HeartlandReportRunner.find_items_not_sold` runs the ``analyzer`` report for
one department and returns the items that are still in stock but have not
sold (or been received) for a number of days. Report rows come back keyed by
dotted column names (``"location.name"``, ``"ending_inventory.qty_owned"``)
with loosely typed values, so each row is parsed defensively and rows missing
an identifying column are dropped.
"""

from __future__ import annotations

import json
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from heartland_hooks.clients.heartland import HeartlandApiClient
from heartland_hooks.domain.models import Number, is_number
from heartland_hooks.utils.logging import get_logger

log = get_logger(__name__)

ANALYZER_REPORT = "analyzer"
ITEMS_NOT_SOLD_PER_PAGE = 1000


class ItemsNotSoldRow(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    location_name: str = Field(..., alias="location.name")
    public_id: str = Field(..., alias="item.public_id")
    description: str = Field(..., alias="item.description")
    last_sold_date: Optional[str] = Field(None, alias="current_inventory.last_sold_date")
    days_since_last_sold: Optional[Number] = Field(None, alias="current_inventory.days_since_last_sold")
    last_received_date: Optional[str] = Field(None, alias="current_inventory.last_received_date")
    days_since_last_received: Optional[Number] = Field(
        None, alias="current_inventory.days_since_last_received"
    )
    qty_owned: Number = Field(..., alias="ending_inventory.qty_owned")


class ItemsNotSoldResult(BaseModel):
    results: List[ItemsNotSoldRow] = Field(default_factory=list)
    total: Number = 0
    pages: Number = 1


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _to_number(value: Any) -> Optional[Number]:
    """Finite numbers as-is; numeric strings parsed; anything else None."""
    if is_number(value):
        return value if math.isfinite(value) else None
    if isinstance(value, str) and value.strip():
        try:
            return int(value)
        except ValueError:
            pass
        try:
            parsed = float(value)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def parse_items_not_sold_row(value: Any) -> Optional[ItemsNotSoldRow]:
    row = value if isinstance(value, dict) else {}
    location_name = _as_str(row.get("location.name"))
    public_id = _as_str(row.get("item.public_id"))
    description = _as_str(row.get("item.description"))
    qty_owned = _to_number(row.get("ending_inventory.qty_owned"))

    if location_name is None or public_id is None or description is None or qty_owned is None:
        return None

    return ItemsNotSoldRow(
        location_name=location_name,
        public_id=public_id,
        description=description,
        last_sold_date=_as_str(row.get("current_inventory.last_sold_date")),
        days_since_last_sold=_to_number(row.get("current_inventory.days_since_last_sold")),
        last_received_date=_as_str(row.get("current_inventory.last_received_date")),
        days_since_last_received=_to_number(row.get("current_inventory.days_since_last_received")),
        qty_owned=qty_owned,
    )


def parse_items_not_sold_response(value: Any) -> ItemsNotSoldResult:
    response = value if isinstance(value, dict) else {}
    raw_rows = response.get("results") if isinstance(response.get("results"), list) else []
    results = [row for row in map(parse_items_not_sold_row, raw_rows) if row is not None]
    log.info(
        "Parsed items-not-sold report",
        extra={"raw_rows": len(raw_rows), "rows": len(results)},
    )

    total = _to_number(response.get("total"))
    pages = _to_number(response.get("pages"))
    return ItemsNotSoldResult(
        results=results,
        total=total if total is not None else len(results),
        pages=pages if pages is not None else 1,
    )


def items_not_sold_filters(department: str, days_since_last_sold: int) -> Dict[str, Dict[str, Any]]:
    """
    Item and metric filters for the analyzer report.

    Items of the department that are owned (qty > 0) and whose last sale and
    last receipt are both older than the threshold or never happened.
    """
    days = str(days_since_last_sold)
    item_filters = {"$and": [{"custom@department": {"$in": [department]}}]}
    metric_filters = {
        "$and": [
            {"ending_inventory.qty_owned": {"$gt": ["0"]}},
            {
                "$or": [
                    {"current_inventory.days_since_last_sold": {"$gt": [days]}},
                    {"current_inventory.days_since_last_sold": {"$eq": None}},
                ]
            },
            {
                "$or": [
                    {"current_inventory.days_since_last_received": {"$gt": [days]}},
                    {"current_inventory.days_since_last_received": {"$eq": None}},
                ]
            },
        ]
    }
    return {"item": item_filters, "metric": metric_filters}


class HeartlandReportRunner:
    def __init__(self, api_client: HeartlandApiClient) -> None:
        self._api = api_client

    async def find_items_not_sold(
        self,
        department: str,
        days_since_last_sold: int,
        end_date: Optional[str] = None,
        page: int = 1,
    ) -> ItemsNotSoldResult:
        """
        One page of in-stock items of `department` not sold for `days_since_last_sold` days.

        `end_date` is ``YYYY-MM-DD`` and defaults to today (UTC).
        """
        end_date = end_date or datetime.now(timezone.utc).date().isoformat()
        filters = items_not_sold_filters(department, days_since_last_sold)

        response = await self._api.run_report(
            ANALYZER_REPORT,
            {
                "subtotal": "false",
                "grand_total": "false",
                "exclude_zeroes": "true",
                "include_links": "false",
                "per_page": ITEMS_NOT_SOLD_PER_PAGE,
                "page": page,
                "end_date": end_date,
                "group[]": ["location.name", "item.public_id", "item.description"],
                "metrics[]": [
                    "current_inventory.last_sold_date",
                    "current_inventory.days_since_last_sold",
                    "current_inventory.last_received_date",
                    "current_inventory.days_since_last_received",
                ],
                "sort[]": "item.public_id,desc",
                "charts": "[]",
                "item.filters": json.dumps(filters["item"]),
                "metric.filters": json.dumps(filters["metric"]),
            },
        )
        return parse_items_not_sold_response(response)


__all__ = [
    "HeartlandReportRunner",
    "ItemsNotSoldResult",
    "ItemsNotSoldRow",
    "items_not_sold_filters",
    "parse_items_not_sold_response",
    "parse_items_not_sold_row",
]
