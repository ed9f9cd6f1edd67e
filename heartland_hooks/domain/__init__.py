"""
Domain package for the Heartland webhook handlers.

Exports the payload and result models shared by clients, strategies,
the orchestrator and the handler shell.
"""

from heartland_hooks.domain.models import (
    CheckReport,
    CheckResult,
    InventoryValueRow,
    ItemCreatedPayload,
    TicketLine,
    Transaction,
    TransactionKind,
    WebhookResponse,
)

__all__ = [
    "CheckReport",
    "CheckResult",
    "InventoryValueRow",
    "ItemCreatedPayload",
    "TicketLine",
    "Transaction",
    "TransactionKind",
    "WebhookResponse",
]
