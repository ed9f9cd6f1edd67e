from __future__ import annotations

import logging

import pytest

from heartland_hooks.domain.models import Transaction
from heartland_hooks.strategies.inventory_non_negative import InventoryNonNegativeStrategy

BASE_URL = "https://bam.retail.heartland.us"
TICKET_ID = 1001
LOCATION_ID = 7
OTHER_LOCATION_ID = 9
ITEM_ID = 555
EXCLUDED_ITEM_ID = 101996

SALE = Transaction.model_validate(
    {"id": TICKET_ID, "type": "Ticket", "source_location_id": LOCATION_ID}
)


def item_line(item_id: int = ITEM_ID, description: str = "Millennium Falcon") -> dict:
    return {"id": 1, "type": "ItemLine", "item_id": item_id, "item_description": description}


def value_row(qty_available=None, qty_on_hand=None, location_id=LOCATION_ID, item_id=ITEM_ID) -> dict:
    return {
        "item_id": item_id,
        "location_id": location_id,
        "qty_available": qty_available,
        "qty_on_hand": qty_on_hand,
    }


def make_strategy(api, sender=None) -> InventoryNonNegativeStrategy:
    return InventoryNonNegativeStrategy(api, BASE_URL, sender)


def test_supports_sale_and_return_with_location(ticket_api):
    strategy = make_strategy(ticket_api)

    assert strategy.supports(SALE) is True
    assert strategy.supports(
        Transaction.model_validate({"id": 2, "type": "Return", "source_location_id": LOCATION_ID})
    ) is True


@pytest.mark.parametrize(
    "payload",
    [
        {"id": "1001", "type": "Ticket", "source_location_id": LOCATION_ID},
        {"id": TICKET_ID, "type": "Ticket"},
        {"id": TICKET_ID, "type": "Ticket", "source_location_id": "7"},
        {"id": TICKET_ID, "type": "Transfer", "source_location_id": LOCATION_ID},
    ],
)
def test_does_not_support_malformed_or_other_transactions(ticket_api, payload):
    assert make_strategy(ticket_api).supports(Transaction.model_validate(payload)) is False


@pytest.mark.asyncio
async def test_negative_inventory_at_location_fails_and_alerts(ticket_api, sender):
    ticket_api.lines = [item_line()]
    ticket_api.values = {ITEM_ID: [value_row(qty_available=-1, qty_on_hand=0)]}

    passed = await make_strategy(ticket_api, sender).evaluate(SALE)

    assert passed is False
    assert ticket_api.line_calls == [TICKET_ID]
    assert ticket_api.value_calls == [ITEM_ID]
    assert sender.messages == [
        f"Millennium Falcon ({BASE_URL}/#items/edit/{ITEM_ID}) has negative inventory balance"
    ]


@pytest.mark.asyncio
async def test_other_location_negative_row_is_ignored(ticket_api, sender):
    ticket_api.lines = [item_line()]
    ticket_api.values = {
        ITEM_ID: [
            value_row(qty_available=-3, location_id=OTHER_LOCATION_ID),
            value_row(qty_available=2),
        ]
    }

    assert await make_strategy(ticket_api, sender).evaluate(SALE) is True
    assert sender.messages == []


@pytest.mark.asyncio
async def test_on_hand_used_when_available_missing(ticket_api):
    ticket_api.lines = [item_line()]
    ticket_api.values = {ITEM_ID: [value_row(qty_on_hand=-2)]}

    assert await make_strategy(ticket_api).evaluate(SALE) is False


@pytest.mark.asyncio
async def test_row_without_location_counts_for_ticket_location(ticket_api, sender):
    ticket_api.lines = [item_line()]
    ticket_api.values = {ITEM_ID: [value_row(qty_available=-1, location_id=None)]}

    assert await make_strategy(ticket_api, sender).evaluate(SALE) is False
    assert len(sender.messages) == 1


@pytest.mark.asyncio
async def test_one_alert_per_item(ticket_api, sender):
    ticket_api.lines = [item_line(), item_line()]
    ticket_api.values = {
        ITEM_ID: [value_row(qty_available=-1), value_row(qty_available=-4, location_id=None)]
    }

    assert await make_strategy(ticket_api, sender).evaluate(SALE) is False
    assert ticket_api.value_calls == [ITEM_ID]
    assert len(sender.messages) == 1


@pytest.mark.asyncio
async def test_excluded_items_are_not_checked(ticket_api):
    ticket_api.lines = [item_line(item_id=EXCLUDED_ITEM_ID, description="Gift Card")]

    assert await make_strategy(ticket_api).evaluate(SALE) is True
    assert ticket_api.value_calls == []


@pytest.mark.asyncio
async def test_ticket_without_item_lines_passes(ticket_api):
    ticket_api.lines = [{"id": 1, "type": "TaxLine"}, {"id": 2, "type": "ItemLine", "item_id": "x"}]

    assert await make_strategy(ticket_api).evaluate(SALE) is True
    assert ticket_api.value_calls == []


@pytest.mark.asyncio
async def test_line_fetch_failure_fails_check(ticket_api):
    ticket_api.lines_error = RuntimeError("timeout")

    assert await make_strategy(ticket_api).evaluate(SALE) is False


@pytest.mark.asyncio
async def test_inventory_fetch_failure_fails_check(ticket_api):
    ticket_api.lines = [item_line()]
    ticket_api.values_error = RuntimeError("HTTP 500")

    assert await make_strategy(ticket_api).evaluate(SALE) is False


@pytest.mark.asyncio
async def test_alert_failure_does_not_change_verdict(ticket_api, failing_sender, caplog):
    ticket_api.lines = [item_line()]
    ticket_api.values = {ITEM_ID: [value_row(qty_available=-1)]}

    with caplog.at_level(logging.ERROR):
        assert await make_strategy(ticket_api, failing_sender).evaluate(SALE) is False

    assert "[inventory-non-negative] Error posting to GroupMe" in caplog.messages


@pytest.mark.asyncio
async def test_missing_sender_logs_and_still_fails(ticket_api, caplog):
    ticket_api.lines = [item_line()]
    ticket_api.values = {ITEM_ID: [value_row(qty_available=-1)]}

    assert await make_strategy(ticket_api, None).evaluate(SALE) is False
    assert (
        "[inventory-non-negative] No GroupMe client configured; skipping GroupMe alerts"
        in caplog.messages
    )
