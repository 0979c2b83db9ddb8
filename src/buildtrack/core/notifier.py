"""
Milestone change notification.

When a build changes milestone, an external change-management system is
told about it, addressed by the build's BOM ``external_reference_id``.
Delivery is best-effort: the state machine logs any failure and carries on.

Implementations:
    - :class:`NullNotifier`: does nothing (default when no URL is configured)
    - :class:`WebhookMilestoneNotifier`: JSON ``POST`` to a configured URL
"""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from typing import Protocol, runtime_checkable

from buildtrack.core.errors import BuildTrackError, ErrorCategory
from buildtrack.core.logging import get_logger

logger = get_logger(__name__)


class NotificationError(BuildTrackError):
    """Milestone notification could not be delivered."""

    code = "NOTIFICATION_FAILED"
    default_category = ErrorCategory.NETWORK


@runtime_checkable
class MilestoneNotifier(Protocol):
    """Sink for milestone changes."""

    def notify_milestone_change(
        self, external_reference_id: str, milestone_name: str, comment: str
    ) -> None:
        ...


class NullNotifier:
    """Notifier that drops every notification."""

    def notify_milestone_change(
        self, external_reference_id: str, milestone_name: str, comment: str
    ) -> None:
        logger.debug(
            "notifier.skipped",
            external_reference_id=external_reference_id,
            milestone=milestone_name,
        )


class WebhookMilestoneNotifier:
    """POST ``{"external_reference_id", "milestone", "comment"}`` as JSON.

    Raises :class:`NotificationError` on transport failure or a non-2xx
    response.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.headers = {"Content-Type": "application/json", **(headers or {})}

    def notify_milestone_change(
        self, external_reference_id: str, milestone_name: str, comment: str
    ) -> None:
        payload = {
            "external_reference_id": external_reference_id,
            "milestone": milestone_name,
            "comment": comment,
        }
        body = json.dumps(payload).encode("utf-8")
        req = urllib.request.Request(self.url, data=body, headers=self.headers, method="POST")

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                status = response.status
        except urllib.error.HTTPError as e:
            raise NotificationError(f"Webhook returned HTTP {e.code}", cause=e) from e
        except urllib.error.URLError as e:
            raise NotificationError(f"Webhook unreachable: {e.reason}", cause=e) from e

        if not 200 <= status < 300:
            raise NotificationError(f"Webhook returned HTTP {status}")

        logger.info(
            "notifier.delivered",
            external_reference_id=external_reference_id,
            milestone=milestone_name,
            status=status,
        )


def create_notifier(url: str | None, *, timeout: float = 10.0) -> MilestoneNotifier:
    """Webhook notifier when *url* is set, otherwise :class:`NullNotifier`."""
    if url:
        return WebhookMilestoneNotifier(url, timeout=timeout)
    return NullNotifier()


__all__ = [
    "MilestoneNotifier",
    "NotificationError",
    "NullNotifier",
    "WebhookMilestoneNotifier",
    "create_notifier",
]
