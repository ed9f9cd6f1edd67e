"""
Coarse transaction classification for the webhook response.
"""

from __future__ import annotations

from heartland_hooks.domain.models import Transaction, TransactionKind, is_number


def classify_transaction(tx: Transaction) -> TransactionKind:
    """
    Classify as sale / return / other.

    The type tag wins; otherwise the sign of ``total`` decides, and a zero,
    missing or non-numeric total is "other".
    """
    if tx.is_sale_ticket:
        return "sale"
    if tx.is_return:
        return "return"

    if is_number(tx.total):
        if tx.total > 0:
            return "sale"
        if tx.total < 0:
            return "return"

    return "other"


__all__ = ["classify_transaction"]
