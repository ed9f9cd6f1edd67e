"""
Webhook handler shells: parse the delivered body, run the domain logic and
always answer 200 so Heartland does not redeliver.
"""

from heartland_hooks.handlers.item import handle_item_created_webhook
from heartland_hooks.handlers.transaction import handle_transaction_webhook

__all__ = ["handle_item_created_webhook", "handle_transaction_webhook"]
