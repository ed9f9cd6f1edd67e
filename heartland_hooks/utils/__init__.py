"""
Utilities package for the Heartland webhook handlers.

Exports shared helpers for logging and other cross-cutting concerns.
Keep this package lightweight and free of domain-specific logic.
"""

from heartland_hooks.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
