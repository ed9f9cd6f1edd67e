"""
Price-adjusted item check.

Cashiers can override an item's price at the register. Any such override on
a sale ticket fails the check and posts one alert per adjusted line with the
delta, the original and adjusted prices and a link to the ticket.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from heartland_hooks.clients.groupme import MessageSender
from heartland_hooks.config import DEFAULT_TICKET_URL_BASE
from heartland_hooks.domain.models import Number, TicketLine, Transaction, is_number
from heartland_hooks.strategies.abstract import CompletionStrategy, TicketApi
from heartland_hooks.strategies.notify import format_amount, notify_best_effort
from heartland_hooks.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class AdjustedLine:
    line_id: Any
    item_id: Any
    description: str
    original_unit_price: Any
    adjusted_unit_price: Any
    price_adjustments: Optional[List[Any]]

    @property
    def delta(self) -> Optional[Number]:
        """
        Price change for the line.

        Sum of itemized ``delta_price`` values when any are present, else
        ``adjusted - original`` when both are numeric, else None (unknown).
        """
        if self.price_adjustments:
            deltas = [
                entry["delta_price"]
                for entry in self.price_adjustments
                if isinstance(entry, dict) and is_number(entry.get("delta_price"))
            ]
            if deltas:
                return sum(deltas)

        if is_number(self.original_unit_price) and is_number(self.adjusted_unit_price):
            return self.adjusted_unit_price - self.original_unit_price

        return None


def find_adjusted_lines(lines: Iterable[TicketLine]) -> List[AdjustedLine]:
    """Item lines carrying an adjusted unit price or a non-empty adjustments list."""
    adjusted: List[AdjustedLine] = []
    for line in lines:
        if not line.is_item_line:
            continue

        has_adjusted_price = line.adjusted_unit_price is not None
        has_adjustments = isinstance(line.price_adjustments, list) and len(line.price_adjustments) > 0
        if not has_adjusted_price and not has_adjustments:
            continue

        if line.label is not None:
            description = line.label
        elif is_number(line.item_id):
            description = f"Item {line.item_id}"
        else:
            description = f"Line {line.id}"

        adjusted.append(
            AdjustedLine(
                line_id=line.id,
                item_id=line.item_id,
                description=description,
                original_unit_price=line.original_unit_price,
                adjusted_unit_price=line.adjusted_unit_price,
                price_adjustments=line.price_adjustments if has_adjustments else None,
            )
        )
    return adjusted


class PriceAdjustedItemStrategy(CompletionStrategy):
    name: str = "price-adjusted-item"

    def __init__(
        self,
        api_client: TicketApi,
        groupme_client: Optional[MessageSender] = None,
        ticket_url_base: str = DEFAULT_TICKET_URL_BASE,
    ) -> None:
        self._api = api_client
        self._groupme = groupme_client
        self._ticket_url_base = ticket_url_base.rstrip("/")

    def supports(self, tx: Transaction) -> bool:
        if not is_number(tx.id):
            log.warning(f"[{self.name}] Transaction id is missing or invalid; skipping")
            return False

        # Only sale tickets; returns legitimately carry adjusted prices.
        return tx.is_sale_ticket

    def ticket_url(self, ticket_id: Any) -> str:
        return f"{self._ticket_url_base}/{ticket_id}"

    async def evaluate(self, tx: Transaction) -> bool:
        ticket_id = tx.id
        context = {"strategy": self.name, "ticket_id": ticket_id}
        log.info(f"[{self.name}] Starting price adjustment check", extra=context)

        try:
            lines = await self._api.get_ticket_lines(ticket_id)
        except Exception as exc:  # noqa: BLE001 - cannot verify prices, so fail the check
            log.error(f"[{self.name}] Error retrieving ticket lines", extra={**context, "error": str(exc)})
            return False

        if not any(line.is_item_line for line in lines.results):
            log.info(f"[{self.name}] No ItemLine rows found for ticket; treating as pass", extra=context)
            return True

        adjusted = find_adjusted_lines(lines.results)
        if not adjusted:
            log.info(f"[{self.name}] No price adjustments detected", extra=context)
            return True

        log.warning(
            f"[{self.name}] Price-adjusted items detected",
            extra={**context, "items": [vars(item) for item in adjusted]},
        )
        messages = [self.message(ticket_id, item) for item in adjusted]
        await notify_best_effort(self._groupme, messages, strategy=self.name)
        return False

    def message(self, ticket_id: Any, item: AdjustedLine) -> str:
        return (
            f"Item {item.description} price was adjusted by {format_amount(item.delta)}"
            f" from {format_amount(item.original_unit_price)}"
            f" to {format_amount(item.adjusted_unit_price)} in ticket {ticket_id}"
            f" ( {self.ticket_url(ticket_id)} )"
        )


__all__ = ["AdjustedLine", "PriceAdjustedItemStrategy", "find_adjusted_lines"]
