"""Main notification orchestrator."""

import logging

from webmon.notifications.email_notifier import send_email
from webmon.notifications.webhook_notifier import send_webhook
from webmon.metrics import notifications_sent_total, notifications_failed_total

logger = logging.getLogger(__name__)


class Notifier:
    """The ``notify(recipient, subject, body)`` capability used by the poller.

    Fans a message out to every configured channel: email to the host's
    notification target and the shared webhook. Delivery failures are logged
    and counted, never raised.
    """

    async def notify(
        self,
        recipient: str,
        subject: str,
        body: str,
        kind: str = "alert",
    ) -> bool:
        """Deliver one notification.

        Returns:
            True if at least one channel accepted the message.
        """
        results = [
            ("email", await send_email(recipient, subject, body, kind)),
            ("webhook", await send_webhook(subject, body, kind)),
        ]

        sent = [name for name, success in results if success]
        failed = [name for name, success in results if not success]

        for name, success in results:
            if success:
                notifications_sent_total.labels(channel=name, type=kind).inc()
            else:
                notifications_failed_total.labels(channel=name, type=kind).inc()

        if sent:
            logger.info("Notification '%s' sent via: %s", subject, ", ".join(sent))
        if failed:
            logger.warning("Notification '%s' failed/skipped: %s", subject, ", ".join(failed))

        return bool(sent)
