"""
Orchestrator for running completion strategies against a transaction.

Usage (example from a handler):
    from heartland_hooks.orchestrator import evaluate_checks, get_strategy_provider

    strategies = get_strategy_provider().get()
    report = await evaluate_checks(tx, strategies)
    print(report.overall, [r.name for r in report.results])

The strategy list is built once per process (cold start) by
`StrategyListProvider` and reused for every invocation.
"""

from __future__ import annotations

import threading
from functools import lru_cache
from typing import Callable, List, Optional, Sequence

from heartland_hooks.clients.groupme import GroupMeClient, MessageSender
from heartland_hooks.clients.heartland import HeartlandApiClient
from heartland_hooks.config import Settings, get_settings
from heartland_hooks.domain.models import CheckReport, CheckResult, Transaction
from heartland_hooks.secret_store import SecretCache, get_secret_cache
from heartland_hooks.strategies.abstract import CompletionStrategy
from heartland_hooks.strategies.completion import (
    BalanceCompletionStrategy,
    CompletedTimestampStrategy,
    TypeAndStatusCompletionStrategy,
)
from heartland_hooks.strategies.high_discount_ticket import HighDiscountTicketStrategy
from heartland_hooks.strategies.inventory_non_negative import InventoryNonNegativeStrategy
from heartland_hooks.strategies.price_adjusted_item import PriceAdjustedItemStrategy
from heartland_hooks.utils.logging import get_logger

log = get_logger(__name__)

INVENTORY_LOG_PREFIX = "[inventory-non-negative]"


def _supports(strategy: CompletionStrategy, tx: Transaction) -> bool:
    try:
        return bool(strategy.supports(tx))
    except Exception:  # noqa: BLE001 - a broken gate must not abort the other checks
        log.exception(
            f"[{strategy.name}] Error during supports",
            extra={"strategy": strategy.name, "transaction_id": tx.id},
        )
        return False


async def evaluate_checks(tx: Transaction, strategies: Sequence[CompletionStrategy]) -> CheckReport:
    """
    Evaluate the transaction against all strategies, sequentially and in order.

    - A strategy whose `supports` is False is reported with ``executed=False``
      and does not affect the verdict.
    - Errors raised by `evaluate` are logged and recorded as a failed check.
    - ``overall`` passes only if every executed check passed, and is False
      when no check executed at all.
    """
    results: List[CheckResult] = []
    overall = True
    any_executed = False

    for strategy in strategies:
        if not _supports(strategy, tx):
            results.append(CheckResult(name=strategy.name, executed=False, passed=False))
            continue

        try:
            passed = bool(await strategy.evaluate(tx))
        except Exception as exc:  # noqa: BLE001 - intentional broad catch to isolate failures
            log.exception(
                f"[{strategy.name}] Error during evaluate",
                extra={"strategy": strategy.name, "transaction_id": tx.id, "error": str(exc)},
            )
            passed = False

        results.append(CheckResult(name=strategy.name, executed=True, passed=passed))
        any_executed = True
        if not passed:
            overall = False

    if not any_executed:
        overall = False

    return CheckReport(overall=overall, results=results)


def base_strategies() -> List[CompletionStrategy]:
    """The payload-only strategies that are always part of the list."""
    return [
        TypeAndStatusCompletionStrategy(),
        BalanceCompletionStrategy(),
        CompletedTimestampStrategy(),
    ]


def build_default_strategies(
    settings: Settings,
    secrets: Optional[SecretCache],
) -> List[CompletionStrategy]:
    """
    Build the default strategy list.

    The Heartland-backed strategies (inventory, price adjustment, high
    discount) are appended only when an API base URL and a secret source are
    configured and the secret loads; any failure while building them is
    logged and leaves just the base strategies.
    """
    strategies = base_strategies()

    base_url = settings.heartland_api_base_url
    if not base_url or secrets is None:
        log.warning(
            f"{INVENTORY_LOG_PREFIX} Not added: missing HEARTLAND_API_BASE_URL or OPERATIONAL_SECRET"
        )
        return strategies

    try:
        token = secrets.get().heartland_token
        api_client = HeartlandApiClient(base_url, token, timeout=settings.http_timeout_seconds)

        groupme_client: Optional[MessageSender] = None
        if not settings.groupme_bot_id:
            log.warning(
                f"{INVENTORY_LOG_PREFIX} GROUPME_BOT_ID not set; "
                "inventory strategy will not send GroupMe alerts"
            )
        else:
            groupme_client = GroupMeClient(settings.groupme_bot_id, timeout=settings.http_timeout_seconds)

        strategies.extend(
            [
                InventoryNonNegativeStrategy(
                    api_client,
                    base_url,
                    groupme_client,
                    excluded_item_ids=settings.inventory_excluded_item_ids,
                ),
                PriceAdjustedItemStrategy(
                    api_client,
                    groupme_client,
                    ticket_url_base=settings.heartland_ticket_url_base,
                ),
                HighDiscountTicketStrategy(
                    groupme_client,
                    threshold_percent=settings.high_discount_threshold_percent,
                    ticket_url_base=settings.heartland_ticket_url_base,
                ),
            ]
        )
    except Exception as exc:  # noqa: BLE001 - construction failures must never take down the handler
        log.error(
            f"{INVENTORY_LOG_PREFIX} Error creating inventory strategy",
            extra={"error": str(exc)},
        )

    return strategies


class StrategyListProvider:
    """
    Lazily builds the strategy list once and hands out the same list afterwards.

    Thread-safe; `reset()` forces a rebuild on the next `get()`.
    """

    def __init__(self, factory: Callable[[], List[CompletionStrategy]]) -> None:
        self._factory = factory
        self._lock = threading.Lock()
        self._strategies: Optional[List[CompletionStrategy]] = None

    def get(self) -> List[CompletionStrategy]:
        with self._lock:
            if self._strategies is None:
                self._strategies = self._factory()
                log.info(
                    "Strategy list built",
                    extra={"strategies": [s.name for s in self._strategies]},
                )
            return self._strategies

    def reset(self) -> None:
        with self._lock:
            self._strategies = None


@lru_cache(maxsize=1)
def get_strategy_provider() -> StrategyListProvider:
    """Process-wide provider built from the environment settings."""
    settings = get_settings()
    return StrategyListProvider(lambda: build_default_strategies(settings, get_secret_cache()))


def available_strategies() -> List[str]:
    """Names of the strategies in the process-wide list."""
    return [strategy.name for strategy in get_strategy_provider().get()]


__all__ = [
    "StrategyListProvider",
    "available_strategies",
    "base_strategies",
    "build_default_strategies",
    "evaluate_checks",
    "get_strategy_provider",
]
