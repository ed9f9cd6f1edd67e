"""
Strategy interface for transaction completion checks.

Each concrete strategy (type/status, balance, completed timestamp, inventory
non-negative, price adjustment, high discount) implements the
`CompletionStrategy` protocol so the orchestrator can run them uniformly:
a cheap synchronous `supports` gate followed by an async `evaluate` that
returns a pass/fail verdict.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from heartland_hooks.domain.models import InventoryValueRow, Page, TicketLine, Transaction


@runtime_checkable
class CompletionStrategy(Protocol):
    """
    Common interface all completion strategies must implement.

    Strategies are built once per process and reused across invocations, so
    they may hold injected collaborators (API client, GroupMe client, base
    URL) but never per-transaction state.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier, reported in every check result.
    """

    name: str

    def supports(self, tx: Transaction) -> bool:
        """
        Whether this strategy applies to the given transaction.

        May log and return False for malformed input; must not raise.
        """
        ...

    async def evaluate(self, tx: Transaction) -> bool:
        """
        Return True if, according to this strategy, the transaction passes.

        Failures of the strategy's own dependencies are converted to False.
        """
        ...


@runtime_checkable
class TicketApi(Protocol):
    """The slice of the Heartland client the line-based strategies depend on."""

    async def get_ticket_lines(self, ticket_id: int) -> Page[TicketLine]:
        ...

    async def get_inventory_values(self, item_id: int) -> Page[InventoryValueRow]:
        ...


__all__ = ["CompletionStrategy", "TicketApi"]
