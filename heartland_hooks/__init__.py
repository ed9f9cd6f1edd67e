"""
Heartland Hooks - webhook handlers for Heartland Retail.

This package validates completed sales transactions and enriches newly
created inventory items:

- Pluggable completion strategies run against every transaction webhook
  (status, balance, timestamp, non-negative inventory, price overrides,
  high discounts)
- Best-effort GroupMe alerts for failing checks
- BrickLink catalog lookups for item_created enrichment
- An items-not-sold report query
"""

from __future__ import annotations

__version__ = "0.1.0"

# Public API exports
from heartland_hooks.config import Settings, get_settings
from heartland_hooks.domain.models import CheckReport, CheckResult, Transaction, WebhookResponse
from heartland_hooks.handlers import handle_item_created_webhook, handle_transaction_webhook
from heartland_hooks.orchestrator import (
    StrategyListProvider,
    available_strategies,
    build_default_strategies,
    evaluate_checks,
)
from heartland_hooks.strategies.abstract import CompletionStrategy
from heartland_hooks.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "CheckReport",
    "CheckResult",
    "Transaction",
    "WebhookResponse",
    # Orchestration
    "CompletionStrategy",
    "StrategyListProvider",
    "available_strategies",
    "build_default_strategies",
    "evaluate_checks",
    # Handlers
    "handle_item_created_webhook",
    "handle_transaction_webhook",
    # Logging
    "configure_logging",
    "get_logger",
]
