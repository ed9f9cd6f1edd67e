"""
High-discount ticket check: fail when discounts exceed a share of the subtotal.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from heartland_hooks.clients.groupme import MessageSender
from heartland_hooks.config import DEFAULT_TICKET_URL_BASE
from heartland_hooks.domain.models import Transaction, is_number
from heartland_hooks.strategies.abstract import CompletionStrategy
from heartland_hooks.strategies.notify import format_amount, notify_best_effort
from heartland_hooks.utils.logging import get_logger

log = get_logger(__name__)


def _exact(value: Any) -> Optional[Decimal]:
    # str() keeps the shortest repr: 0.55 becomes Decimal("0.55"), not its binary expansion
    if not is_number(value):
        return None
    exact = Decimal(str(value))
    return exact if exact.is_finite() else None


def _discount_values(tx: Transaction) -> Optional[tuple]:
    discounts = _exact(tx.total_discounts)
    subtotal = _exact(tx.original_subtotal)
    if discounts is None or subtotal is None or subtotal <= 0:
        return None
    return discounts, subtotal


def discount_percent(tx: Transaction) -> Optional[float]:
    """
    ``total_discounts * 100 / original_subtotal``, or None when either value
    is missing, non-numeric, or the subtotal is not positive.
    """
    values = _discount_values(tx)
    if values is None:
        return None
    discounts, subtotal = values
    return float(discounts) * 100 / float(subtotal)


def exceeds_threshold(tx: Transaction, threshold_percent: float) -> Optional[bool]:
    """
    Exact ``discounts * 100 > threshold * subtotal``, or None when the data is
    unusable. 0.55 off 11.00 is exactly 5% here, while float division gives
    5.000000000000001.
    """
    values = _discount_values(tx)
    if values is None:
        return None
    discounts, subtotal = values
    return discounts * 100 > Decimal(str(threshold_percent)) * subtotal


class HighDiscountTicketStrategy(CompletionStrategy):
    """
    Strictly greater than the threshold fails; a ticket at exactly the
    threshold passes.
    """

    name: str = "high-discount-ticket"

    def __init__(
        self,
        groupme_client: Optional[MessageSender] = None,
        threshold_percent: float = 5.0,
        ticket_url_base: str = DEFAULT_TICKET_URL_BASE,
    ) -> None:
        self._groupme = groupme_client
        self.threshold_percent = threshold_percent
        self._ticket_url_base = ticket_url_base.rstrip("/")

    def supports(self, tx: Transaction) -> bool:
        if not is_number(tx.id):
            log.warning(f"[{self.name}] Transaction id is missing or invalid; skipping")
            return False

        return tx.is_sale_ticket

    def ticket_url(self, ticket_id: Any) -> str:
        return f"{self._ticket_url_base}/{ticket_id}"

    async def evaluate(self, tx: Transaction) -> bool:
        ticket_id = tx.id
        percent = discount_percent(tx)
        if percent is None:
            log.warning(
                f"[{self.name}] Missing or invalid discount data; treating as pass",
                extra={"strategy": self.name, "ticket_id": ticket_id},
            )
            return True

        if not exceeds_threshold(tx, self.threshold_percent):
            return True

        log.warning(
            f"[{self.name}] High discount detected",
            extra={
                "strategy": self.name,
                "ticket_id": ticket_id,
                "total_discounts": tx.total_discounts,
                "original_subtotal": tx.original_subtotal,
                "discount_percent": percent,
            },
        )
        message = (
            f"Ticket {ticket_id} (  {self.ticket_url(ticket_id)}  )  -  "
            f"{format_amount(tx.original_subtotal)} was discounted by {percent:.2f}%"
        )
        await notify_best_effort(self._groupme, [message], strategy=self.name)
        return False


__all__ = ["HighDiscountTicketStrategy", "discount_percent", "exceeds_threshold"]
