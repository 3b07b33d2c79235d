"""Notifier: delivers a payload to device tokens. Transport is pluggable."""
import logging
from typing import Protocol

from surfcheck.services.notifications.payloads import NotificationPayload

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def send(self, target_tokens: list[str], payload: NotificationPayload) -> int:
        """Deliver to each token; return how many succeeded. Must not raise for per-token failures."""
        ...


class LogNotifier:
    """No transport configured: log and report nothing sent."""

    def send(self, target_tokens: list[str], payload: NotificationPayload) -> int:
        logger.info(
            "Notification %s for %s device(s) not pushed (no transport): %s",
            payload.type.value,
            len(target_tokens),
            payload.title,
        )
        return 0


def default_notifier() -> Notifier:
    from surfcheck.services.notifications.apns import ApnsNotifier, apns_configured

    if apns_configured():
        return ApnsNotifier()
    return LogNotifier()
