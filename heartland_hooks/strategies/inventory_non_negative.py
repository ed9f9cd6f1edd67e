"""
Inventory non-negative check.

Selling or returning an item should never leave its stock at the ticket's
location below zero; when it does, counts are off and staff should recount.
If any item on the ticket has negative inventory at the ticket's location
the check fails and (best-effort) one GroupMe alert per item is posted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Any, Dict, List, Optional

from heartland_hooks.clients.groupme import MessageSender
from heartland_hooks.config import DEFAULT_EXCLUDED_ITEM_IDS
from heartland_hooks.domain.models import Number, Transaction, is_number
from heartland_hooks.strategies.abstract import CompletionStrategy, TicketApi
from heartland_hooks.strategies.notify import notify_best_effort
from heartland_hooks.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class NegativeInventory:
    item_id: Any
    location_id: Any
    qty_on_hand: Optional[Number]
    qty_available: Optional[Number]
    description: str


class InventoryNonNegativeStrategy(CompletionStrategy):
    """
    Fail when any merchandise item on the ticket has negative stock at the ticket's location.

    Inventory rows without a ``location_id`` are treated as belonging to the
    ticket's location. Items in `excluded_item_ids` (non-stock items such as
    gift cards or service SKUs) are never checked.
    """

    name: str = "inventory-non-negative"

    def __init__(
        self,
        api_client: TicketApi,
        heartland_base_url: str,
        groupme_client: Optional[MessageSender] = None,
        excluded_item_ids: AbstractSet[int] = DEFAULT_EXCLUDED_ITEM_IDS,
    ) -> None:
        self._api = api_client
        self._base_url = heartland_base_url.rstrip("/")
        self._groupme = groupme_client
        self.excluded_item_ids = frozenset(excluded_item_ids)

    def supports(self, tx: Transaction) -> bool:
        if not is_number(tx.id):
            log.warning(f"[{self.name}] Transaction id is missing or invalid; skipping")
            return False

        if not is_number(tx.source_location_id):
            log.warning(f"[{self.name}] source_location_id is missing or invalid; skipping")
            return False

        return tx.is_sale_ticket or tx.is_return

    def item_url(self, item_id: Any) -> str:
        return f"{self._base_url}/#items/edit/{item_id}"

    async def evaluate(self, tx: Transaction) -> bool:
        ticket_id = tx.id
        location_id = tx.source_location_id
        context = {"strategy": self.name, "ticket_id": ticket_id, "location_id": location_id}
        log.info(f"[{self.name}] Starting inventory check", extra=context)

        try:
            lines = await self._api.get_ticket_lines(ticket_id)
        except Exception as exc:  # noqa: BLE001 - cannot verify inventory, so fail the check
            log.error(f"[{self.name}] Error retrieving ticket lines", extra={**context, "error": str(exc)})
            return False

        descriptions: Dict[Any, str] = {}
        item_ids: List[Any] = []
        for line in lines.results:
            if not line.is_item_line or not is_number(line.item_id):
                continue
            if line.item_id in self.excluded_item_ids:
                continue
            if line.item_id not in item_ids:
                item_ids.append(line.item_id)
            if line.label and line.item_id not in descriptions:
                descriptions[line.item_id] = line.label

        if not item_ids:
            log.info(f"[{self.name}] No ItemLine rows found for ticket; treating as pass", extra=context)
            return True

        log.info(
            f"[{self.name}] Checking inventory for items",
            extra={**context, "item_ids_count": len(item_ids)},
        )

        negatives: List[NegativeInventory] = []
        for item_id in item_ids:
            try:
                values = await self._api.get_inventory_values(item_id)
            except Exception as exc:  # noqa: BLE001 - cannot verify inventory, so fail the check
                log.error(
                    f"[{self.name}] Error retrieving inventory values",
                    extra={**context, "item_id": item_id, "error": str(exc)},
                )
                return False

            for row in values.results:
                if is_number(row.location_id) and row.location_id != location_id:
                    continue
                if row.effective_qty < 0:
                    row_item_id = row.item_id if is_number(row.item_id) else item_id
                    negatives.append(
                        NegativeInventory(
                            item_id=row_item_id,
                            location_id=row.location_id,
                            qty_on_hand=row.qty_on_hand if is_number(row.qty_on_hand) else None,
                            qty_available=row.qty_available if is_number(row.qty_available) else None,
                            description=descriptions.get(row_item_id, f"Item {row_item_id}"),
                        )
                    )

        if negatives:
            log.warning(
                f"[{self.name}] Negative inventory detected",
                extra={
                    **context,
                    "negative_count": len(negatives),
                    "items": [vars(neg) for neg in negatives],
                },
            )
            await notify_best_effort(self._groupme, self._messages(negatives), strategy=self.name)
            return False

        log.info(f"[{self.name}] All inventory quantities non-negative", extra=context)
        return True

    def _messages(self, negatives: List[NegativeInventory]) -> List[str]:
        """One alert per item, even when several rows for it are negative."""
        messages: List[str] = []
        seen = set()
        for neg in negatives:
            if neg.item_id in seen:
                continue
            seen.add(neg.item_id)
            messages.append(
                f"{neg.description} ({self.item_url(neg.item_id)}) has negative inventory balance"
            )
        return messages


__all__ = ["InventoryNonNegativeStrategy", "NegativeInventory"]
