"""
Best-effort staff notifications shared by the alerting strategies.

Alerts are telemetry, not part of the verdict: a missing GroupMe client or a
failed post is logged and swallowed, and the caller's result is unchanged.
"""

from __future__ import annotations

import asyncio
import math
from decimal import Decimal
from typing import Any, Optional, Sequence

from heartland_hooks.clients.groupme import MessageSender
from heartland_hooks.domain.models import is_number
from heartland_hooks.utils.logging import get_logger

log = get_logger(__name__)


def format_amount(value: Any) -> str:
    """Render a price or delta for a message; anything non-numeric is ``unknown``."""
    if not is_number(value):
        return "unknown"
    if isinstance(value, float):
        if not math.isfinite(value):
            return "unknown"
        if value.is_integer():
            return str(int(value))
    if isinstance(value, Decimal) and not value.is_finite():
        return "unknown"
    return str(value)


async def notify_best_effort(
    sender: Optional[MessageSender],
    messages: Sequence[str],
    *,
    strategy: str,
) -> int:
    """
    Post every message, isolating failures per message.

    Returns the number of messages that were delivered.
    """
    if not messages:
        return 0
    if sender is None:
        log.warning(f"[{strategy}] No GroupMe client configured; skipping GroupMe alerts")
        return 0

    outcomes = await asyncio.gather(
        *(sender.send_message(text) for text in messages),
        return_exceptions=True,
    )
    delivered = 0
    for text, outcome in zip(messages, outcomes):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            log.error(
                f"[{strategy}] Error posting to GroupMe",
                extra={"strategy": strategy, "text": text, "error": str(outcome)},
            )
            continue
        delivered += 1
    return delivered


__all__ = ["format_amount", "notify_best_effort"]
