"""
GroupMe bot client used for staff alerts.

API documentation: https://groupme-js.github.io/GroupMeCommunityDocs/api/
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

import httpx

from heartland_hooks.clients.http import JsonApiClient

GROUPME_BOT_POST_URL = "https://api.groupme.com/v3/bots/post"


@runtime_checkable
class MessageSender(Protocol):
    """Anything that can post a text message to the staff channel."""

    async def send_message(self, text: str) -> None:
        ...


class GroupMeClient(JsonApiClient):
    """Posts messages as a GroupMe bot."""

    service_name = "GroupMe"

    def __init__(
        self,
        bot_id: str,
        *,
        post_url: str = GROUPME_BOT_POST_URL,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not bot_id:
            raise ValueError("GroupMeClient requires a bot_id")
        # POSTs are not retried: a retried post after a lost response would duplicate the alert.
        super().__init__(timeout=timeout, http_client=http_client, retries=1)
        self.bot_id = bot_id
        self.post_url = post_url

    async def send_message(self, text: str) -> None:
        await self._send(
            "POST",
            self.post_url,
            headers={"Content-Type": "application/json"},
            payload={"bot_id": self.bot_id, "text": text},
        )


__all__ = ["GroupMeClient", "MessageSender", "GROUPME_BOT_POST_URL"]
