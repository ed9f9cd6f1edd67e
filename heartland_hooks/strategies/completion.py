"""
Field-based completion strategies.

These three read only the webhook payload (no I/O) and are always part of
the default strategy list.
"""

from __future__ import annotations

from heartland_hooks.domain.models import Transaction, is_number
from heartland_hooks.strategies.abstract import CompletionStrategy

BALANCE_TOLERANCE = 1e-4


class TypeAndStatusCompletionStrategy(CompletionStrategy):
    """
    Use Heartland's explicit fields: the ``completed?`` flag, then ``status``.
    """

    name: str = "type-and-status"

    def supports(self, tx: Transaction) -> bool:
        return True

    async def evaluate(self, tx: Transaction) -> bool:
        if isinstance(tx.completed, bool):
            return tx.completed
        if isinstance(tx.status, str):
            return tx.status.lower() == "complete"
        return False


class BalanceCompletionStrategy(CompletionStrategy):
    """
    A transaction is settled when its outstanding balance is zero.
    """

    name: str = "balance-based"

    def supports(self, tx: Transaction) -> bool:
        return is_number(tx.balance)

    async def evaluate(self, tx: Transaction) -> bool:
        if not is_number(tx.balance):
            return False
        return abs(tx.balance) < BALANCE_TOLERANCE


class CompletedTimestampStrategy(CompletionStrategy):
    """
    Fallback heuristic: a non-empty completion timestamp means complete.
    """

    name: str = "completed-timestamp"

    def supports(self, tx: Transaction) -> bool:
        return any(isinstance(value, str) and value for value in (tx.completed_at, tx.local_completed_at))

    async def evaluate(self, tx: Transaction) -> bool:
        return bool(tx.completed_at or tx.local_completed_at)


__all__ = [
    "BALANCE_TOLERANCE",
    "BalanceCompletionStrategy",
    "CompletedTimestampStrategy",
    "TypeAndStatusCompletionStrategy",
]
