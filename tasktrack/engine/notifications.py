"""
TaskTrack Notifications — outbound user notifications behind one interface.

The notifier is constructed once at startup from configuration and injected
into whichever service sends messages (currently AuthService on signup and
login). With no notification service configured, build_notifier() returns a
NullNotifier, so callers never check for a missing transport.

HttpNotifier posts rendered templates to a notification micro-service:
    POST {base_url}/api/v1/notifications
    X-API-Key: <api_key>
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import httpx

from tasktrack.engine.config import NotificationsConfig
from tasktrack.engine.logging import AsyncLogQueue, emit, log_notification

logger = logging.getLogger("tasktrack.engine.notifications")

NOTIFICATIONS_PATH = "/api/v1/notifications"

# template name → (subject, body)
TEMPLATES: Dict[str, tuple] = {
    "welcome": (
        "Welcome to TaskTrack",
        "Welcome to TaskTrack, {name}! Thank you for signing up. "
        "Start organizing your tasks and boost your productivity today!",
    ),
    "login": (
        "Welcome back to TaskTrack",
        "Welcome back, {name}! You've successfully logged in to your TaskTrack account. "
        "If this wasn't you, please secure your account immediately.",
    ),
}


@dataclass(frozen=True)
class NotificationResult:
    delivered: bool
    transport: str
    notification_id: Optional[str] = None
    error: Optional[str] = None


def render_template(template: str, **params: Any) -> Dict[str, str]:
    """Render *template* into ``{"subject", "message"}``."""
    if template not in TEMPLATES:
        raise ValueError(f"Unknown notification template '{template}'")
    subject, body = TEMPLATES[template]
    return {"subject": subject, "message": body.format(**params)}


class Notifier(Protocol):
    def send(self, to: str, template: str, **params: Any) -> NotificationResult:
        ...


class NullNotifier:
    """Used when no notification service is configured. Sends nothing."""

    transport = "none"

    def send(self, to: str, template: str, **params: Any) -> NotificationResult:
        render_template(template, **params)
        logger.debug("Notifications not configured; skipping '%s' for %s", template, to)
        return NotificationResult(delivered=False, transport=self.transport)


class HttpNotifier:
    """
    Delivers notifications through the notification micro-service.

    Failures are logged and reported in the result; they never propagate to
    the caller.
    """

    transport = "http"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 15.0,
        sender: str = "",
        log_queue: Optional[AsyncLogQueue] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["X-API-Key"] = api_key
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(timeout, connect=min(timeout, 10.0)),
            transport=transport,
        )
        self._sender = sender
        self._log_queue = log_queue

    def send(self, to: str, template: str, **params: Any) -> NotificationResult:
        rendered = render_template(template, **params)
        body = {
            "event": template,
            "to": to,
            "from": self._sender,
            "subject": rendered["subject"],
            "message": rendered["message"],
            "severity": "info",
        }
        try:
            response = self._client.post(NOTIFICATIONS_PATH, json=body)
            response.raise_for_status()
            notification_id = response.json().get("id")
            result = NotificationResult(
                delivered=True,
                transport=self.transport,
                notification_id=notification_id,
            )
            logger.info("Notification '%s' sent to %s", template, to)
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Notification '%s' to %s failed: %s", template, to, e)
            result = NotificationResult(delivered=False, transport=self.transport, error=str(e))

        emit(self._log_queue, log_notification(
            template=template,
            recipient=to,
            delivered=result.delivered,
            transport=self.transport,
            notification_id=result.notification_id,
            error=result.error,
        ))
        return result

    def close(self) -> None:
        self._client.close()


def build_notifier(
    config: NotificationsConfig,
    log_queue: Optional[AsyncLogQueue] = None,
) -> Notifier:
    """Construct the notifier for *config*. Called once at startup."""
    if not config.is_configured:
        logger.info("Notification service not configured; using NullNotifier")
        return NullNotifier()
    return HttpNotifier(
        base_url=config.base_url,
        api_key=config.api_key,
        timeout=config.timeout,
        sender=config.sender,
        log_queue=log_queue,
    )
