"""
External service clients for the Heartland webhook handlers.

Centralizes outbound HTTP concerns (auth, timeouts, retries, status and JSON
handling). Keep this layer focused on I/O, decoupled from strategy and
handler logic.
"""

from heartland_hooks.clients.bricklink import BrickLinkClient
from heartland_hooks.clients.errors import (
    CatalogReferenceError,
    HeartlandHooksError,
    HttpStatusError,
    MalformedResponseError,
    SecretError,
    TransportError,
)
from heartland_hooks.clients.groupme import GroupMeClient, MessageSender
from heartland_hooks.clients.heartland import HeartlandApiClient

__all__ = [
    "BrickLinkClient",
    "GroupMeClient",
    "HeartlandApiClient",
    "MessageSender",
    "CatalogReferenceError",
    "HeartlandHooksError",
    "HttpStatusError",
    "MalformedResponseError",
    "SecretError",
    "TransportError",
]
