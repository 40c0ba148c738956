"""Email notifications via SMTP."""

import html
import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib

from webmon.config import settings

logger = logging.getLogger(__name__)

_HEADER_COLORS = {
    "down": "#e74c3c",
    "recovered": "#27ae60",
}


def _build_html(subject: str, body: str, kind: str) -> str:
    """Wrap a plain-text body in the HTML alert layout."""
    color = _HEADER_COLORS.get(kind, "#2c3e50")
    safe_body = html.escape(body).replace("\n", "<br>")
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
    </head>
    <body style='font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;'>
        <div style='background-color: {color}; color: white; padding: 20px; border-radius: 5px 5px 0 0;'>
            <h1 style='margin: 0;'>{html.escape(subject)}</h1>
        </div>

        <div style='background-color: #f9f9f9; padding: 20px; border: 1px solid #ddd;'>
            <p style='font-size: 16px;'>{safe_body}</p>
        </div>

        <div style='background-color: #ecf0f1; padding: 10px; text-align: center; border-radius: 0 0 5px 5px;'>
            <p style='margin: 0; color: #7f8c8d; font-size: 12px;'>
                webmon - HTTP uptime monitoring
            </p>
        </div>
    </body>
    </html>
    """


async def send_email(recipient: str, subject: str, body: str, kind: str = "alert") -> bool:
    """Send a notification email to a host's notification target.

    Args:
        recipient: Destination address.
        subject: Message subject.
        body: Plain-text message body.
        kind: Notification kind ('down' or 'recovered'), selects styling.

    Returns:
        True if email sent successfully, False otherwise.
    """
    if not settings.smtp_configured:
        logger.debug("SMTP not configured, skipping email notification")
        return False

    message = MIMEMultipart("alternative")
    message["Subject"] = subject
    message["From"] = settings.smtp_from
    message["To"] = recipient
    message.attach(MIMEText(body, "plain"))
    message.attach(MIMEText(_build_html(subject, body, kind), "html"))

    try:
        await aiosmtplib.send(
            message,
            hostname=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_user,
            password=settings.smtp_password,
            start_tls=True,
        )
    except Exception as e:
        logger.error("Failed to send email to %s: %s", recipient, e)
        return False

    logger.info("Email '%s' sent to %s", subject, recipient)
    return True
