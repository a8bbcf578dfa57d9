"""HTTP notifiers: generic JSON webhooks and chat-service webhooks.

Delivery uses a synchronous ``httpx.Client``.  A client can be injected
(tests pass one built on ``httpx.MockTransport``); otherwise each notifier
owns a client with the configured timeout.

Chat services differ only in the JSON field that carries the message:

* Slack: ``{"text": ...}``
* Discord: ``{"content": ...}``
* Microsoft Teams: ``{"text": ...}``
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from envsnap.models.config import HookType
from envsnap.models.events import SnapshotEvent
from envsnap.notify._formatting import substitute, substitute_all

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 10.0

_CHAT_FIELDS: dict[HookType, str] = {
    HookType.SLACK: "text",
    HookType.DISCORD: "content",
    HookType.TEAMS: "text",
}


class _HttpNotifier:
    def __init__(
        self,
        url: str,
        *,
        client: httpx.Client | None = None,
        timeout: float = _DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._url = url
        self._client = client or httpx.Client(timeout=timeout)
        self._owns_client = client is None

    def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client:
            self._client.close()

    def build_payload(self, event: SnapshotEvent) -> dict[str, Any]:
        raise NotImplementedError

    def notify(self, event: SnapshotEvent) -> None:
        payload = self.build_payload(event)
        url = substitute(self._url, event)
        response = self._client.post(url, json=payload)
        response.raise_for_status()
        logger.debug(
            "%s webhook delivered for %s (HTTP %d)",
            self.notifier_name,
            event.snapshot_id,
            response.status_code,
        )

    @property
    def notifier_name(self) -> str:
        raise NotImplementedError


class WebhookNotifier(_HttpNotifier):
    """POSTs a JSON body template with placeholders substituted."""

    def __init__(
        self,
        url: str,
        body: dict[str, Any] | None = None,
        *,
        client: httpx.Client | None = None,
        timeout: float = _DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(url, client=client, timeout=timeout)
        self._body = body or {}

    @property
    def notifier_name(self) -> str:
        return "webhook"

    def build_payload(self, event: SnapshotEvent) -> dict[str, Any]:
        return substitute_all(self._body, event)


class ChatWebhookNotifier(_HttpNotifier):
    """Posts a one-line message to a Slack, Discord or Teams webhook."""

    def __init__(
        self,
        kind: HookType,
        url: str,
        message: str = "",
        *,
        client: httpx.Client | None = None,
        timeout: float = _DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        if kind not in _CHAT_FIELDS:
            raise ValueError(f"Not a chat webhook type: {kind.value}")
        super().__init__(url, client=client, timeout=timeout)
        self._kind = kind
        self._message = message

    @property
    def notifier_name(self) -> str:
        return self._kind.value

    def build_payload(self, event: SnapshotEvent) -> dict[str, Any]:
        return {_CHAT_FIELDS[self._kind]: substitute(self._message, event)}
