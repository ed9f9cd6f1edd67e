"""
Transaction webhook handler.

Parses the webhook body into a `Transaction`, classifies it, runs every
completion strategy and answers with the aggregated verdict. The webhook
always answers 200: malformed bodies are logged and get a ``check: false``
response rather than an error, so Heartland does not keep retrying them.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Coroutine, Dict, Mapping, Optional, TypeVar

from pydantic import ValidationError

from heartland_hooks.classifier import classify_transaction
from heartland_hooks.domain.models import Transaction, WebhookResponse
from heartland_hooks.orchestrator import StrategyListProvider, evaluate_checks, get_strategy_provider
from heartland_hooks.utils.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")


async def handle_transaction_webhook(
    body: Optional[str],
    provider: Optional[StrategyListProvider] = None,
) -> WebhookResponse:
    if not body:
        log.warning("Received webhook with no body")
        return WebhookResponse()

    try:
        tx = Transaction.from_json(body)
    except (ValueError, ValidationError) as exc:
        log.error(
            "Failed to parse webhook body as JSON",
            extra={"error": str(exc), "raw_body": body},
        )
        return WebhookResponse()

    kind = classify_transaction(tx)
    strategies = (provider or get_strategy_provider()).get()
    report = await evaluate_checks(tx, strategies)

    log.info("Heartland transaction summary", extra={"transaction": tx.summary(kind)})
    log.info(
        "Completion checks summary",
        extra={"checks": [result.model_dump() for result in report.results], "check": report.overall},
    )

    return WebhookResponse(
        transaction_kind=kind,
        transaction_id=tx.id,
        transaction_type=tx.type,
        check=report.overall,
        completion_strategy=report.first_passing,
        checks=report.results,
    )


_loop: Optional[asyncio.AbstractEventLoop] = None


def run_in_process_loop(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run `coro` on one event loop kept for the process lifetime.

    The memoized strategy list holds httpx clients whose connection pools are
    bound to the loop they were first used on, so warm invocations must reuse it.
    """
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop.run_until_complete(coro)


def http_response(body: Mapping[str, Any]) -> Dict[str, Any]:
    """Consistent 200 JSON response envelope."""
    return {
        "statusCode": 200,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }


def handler(event: Mapping[str, Any], context: Any = None) -> Dict[str, Any]:
    """
    Function-URL / API-gateway style entry point.

    ``event["body"]`` holds the raw webhook body.
    """
    log.info(
        "Received Heartland webhook event (envelope)",
        extra={"headers": event.get("headers"), "request_context": event.get("requestContext")},
    )
    response = run_in_process_loop(handle_transaction_webhook(event.get("body")))
    return http_response(response.to_body())


__all__ = ["handle_transaction_webhook", "handler", "http_response", "run_in_process_loop"]
