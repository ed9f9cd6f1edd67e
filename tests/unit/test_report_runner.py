from __future__ import annotations

import json
from typing import Any, Dict, List, Tuple

import pytest

from heartland_hooks.report_runner import (
    HeartlandReportRunner,
    items_not_sold_filters,
    parse_items_not_sold_response,
    parse_items_not_sold_row,
)

DEPARTMENT = "Lego"
DAYS = 60
END_DATE = "2024-06-30"


def row(**overrides) -> Dict[str, Any]:
    values = {
        "location.name": "Herndon",
        "item.public_id": "75192",
        "item.description": "Millennium Falcon",
        "current_inventory.last_sold_date": "2024-01-02",
        "current_inventory.days_since_last_sold": 180,
        "current_inventory.last_received_date": None,
        "current_inventory.days_since_last_received": None,
        "ending_inventory.qty_owned": 2,
    }
    values.update(overrides)
    return values


class _FakeReportApi:
    def __init__(self, response: Any) -> None:
        self.response = response
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    async def run_report(self, report_type: str, query: Dict[str, Any]) -> Any:
        self.calls.append((report_type, query))
        return self.response


def test_parse_row():
    parsed = parse_items_not_sold_row(row())

    assert parsed is not None
    assert parsed.location_name == "Herndon"
    assert parsed.public_id == "75192"
    assert parsed.days_since_last_sold == 180
    assert parsed.last_received_date is None
    assert parsed.qty_owned == 2


def test_parse_row_accepts_numeric_strings():
    parsed = parse_items_not_sold_row(
        row(**{"ending_inventory.qty_owned": "3", "current_inventory.days_since_last_sold": "90.5"})
    )

    assert parsed.qty_owned == 3
    assert parsed.days_since_last_sold == 90.5


@pytest.mark.parametrize(
    "overrides",
    [
        {"location.name": None},
        {"item.public_id": 75192},
        {"item.description": None},
        {"ending_inventory.qty_owned": "lots"},
        {"ending_inventory.qty_owned": None},
    ],
)
def test_rows_missing_identity_are_dropped(overrides):
    assert parse_items_not_sold_row(row(**overrides)) is None


def test_non_numeric_day_counts_become_none():
    parsed = parse_items_not_sold_row(row(**{"current_inventory.days_since_last_sold": "never"}))

    assert parsed.days_since_last_sold is None


def test_parse_response_totals():
    result = parse_items_not_sold_response(
        {"total": "12", "pages": 2, "results": [row(), row(**{"location.name": None}), "junk"]}
    )

    assert len(result.results) == 1
    assert result.total == 12
    assert result.pages == 2


def test_parse_response_defaults():
    result = parse_items_not_sold_response({"results": [row(), row()]})

    assert result.total == 2
    assert result.pages == 1
    assert parse_items_not_sold_response(None).results == []


def test_filters():
    filters = items_not_sold_filters(DEPARTMENT, DAYS)

    assert filters["item"] == {"$and": [{"custom@department": {"$in": [DEPARTMENT]}}]}
    clauses = filters["metric"]["$and"]
    assert clauses[0] == {"ending_inventory.qty_owned": {"$gt": ["0"]}}
    assert clauses[1]["$or"][0] == {"current_inventory.days_since_last_sold": {"$gt": ["60"]}}
    assert clauses[2]["$or"][1] == {"current_inventory.days_since_last_received": {"$eq": None}}


@pytest.mark.asyncio
async def test_find_items_not_sold_runs_analyzer_report():
    api = _FakeReportApi({"total": 1, "pages": 1, "results": [row()]})

    result = await HeartlandReportRunner(api).find_items_not_sold(DEPARTMENT, DAYS, end_date=END_DATE, page=2)

    report_type, query = api.calls[0]
    assert report_type == "analyzer"
    assert query["end_date"] == END_DATE
    assert query["page"] == 2
    assert query["per_page"] == 1000
    assert query["group[]"] == ["location.name", "item.public_id", "item.description"]
    assert json.loads(query["item.filters"]) == items_not_sold_filters(DEPARTMENT, DAYS)["item"]
    assert json.loads(query["metric.filters"]) == items_not_sold_filters(DEPARTMENT, DAYS)["metric"]
    assert [r.public_id for r in result.results] == ["75192"]


@pytest.mark.asyncio
async def test_find_items_not_sold_defaults_end_date_to_today():
    api = _FakeReportApi({"results": []})

    await HeartlandReportRunner(api).find_items_not_sold(DEPARTMENT, DAYS)

    end_date = api.calls[0][1]["end_date"]
    assert len(end_date) == len("2024-06-30")
    assert end_date[4] == "-" and end_date[7] == "-"
