"""
Strategies package for the Heartland transaction checks.

This module re-exports the strategy interface and the concrete strategy
classes so downstream code can import from `heartland_hooks.strategies` directly.
"""

from heartland_hooks.strategies.abstract import CompletionStrategy, TicketApi
from heartland_hooks.strategies.completion import (
    BalanceCompletionStrategy,
    CompletedTimestampStrategy,
    TypeAndStatusCompletionStrategy,
)
from heartland_hooks.strategies.high_discount_ticket import HighDiscountTicketStrategy
from heartland_hooks.strategies.inventory_non_negative import InventoryNonNegativeStrategy
from heartland_hooks.strategies.price_adjusted_item import PriceAdjustedItemStrategy

__all__ = [
    # Interfaces
    "CompletionStrategy",
    "TicketApi",
    # Concrete strategies
    "BalanceCompletionStrategy",
    "CompletedTimestampStrategy",
    "HighDiscountTicketStrategy",
    "InventoryNonNegativeStrategy",
    "PriceAdjustedItemStrategy",
    "TypeAndStatusCompletionStrategy",
]
