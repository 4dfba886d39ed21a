"""Posting notifications to chat webhooks."""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from typing import Any

from codesctl.notify import Notification, Notifier


class WebhookError(Exception):
    """The webhook could not be reached or rejected the notification."""


class WebhookNotifier(Notifier):
    """Sends notifications as JSON to a Slack- or Feishu-style webhook."""

    def __init__(self, url: str, format: str = "slack", timeout: float = 10.0) -> None:
        self.url = url
        self.format = format
        self.timeout = timeout

    def payload(self, notification: Notification) -> dict[str, Any]:
        """Build the JSON body for ``notification`` in this webhook's format."""
        text = f"{notification.title}: {notification.message}"
        if self.format == "feishu":
            return {"msg_type": "text", "content": {"text": text}}
        return {"text": text}

    def send(self, notification: Notification) -> None:
        body = json.dumps(self.payload(notification)).encode("utf-8")
        request = urllib.request.Request(
            self.url,
            data=body,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                status = response.status
        except urllib.error.HTTPError as exc:
            status = exc.code
            exc.close()
        except (urllib.error.URLError, OSError, ValueError) as exc:
            raise WebhookError(f"webhook post: {exc}") from exc
        if status >= 300:
            raise WebhookError(f"webhook returned status {status}")

    def name(self) -> str:
        return "webhook"