"""Main entry point for the webmon application."""

import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler

import uvicorn
from pythonjsonlogger import jsonlogger

from webmon.config import settings
from webmon.version import __version__

LOG_FILE_NAME = "webmon.log"
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3

# Third-party loggers kept at WARNING
QUIET_LOGGERS = ("apscheduler", "httpx", "httpcore", "aiosmtplib", "uvicorn.access")


class MonitorJsonFormatter(jsonlogger.JsonFormatter):
    """One JSON object per line, tagged with the service and its version."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.fromtimestamp(
            record.created, timezone.utc
        ).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["service"] = "webmon"
        log_record["version"] = __version__


def _build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return MonitorJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    return logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")


def configure_logging():
    """Send logs to stdout and to a rotating file under ``data_dir/logs``."""
    log_dir = settings.data_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    formatter = _build_formatter(settings.log_format)
    handlers = [
        logging.StreamHandler(sys.stdout),
        RotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        ),
    ]
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.root.handlers = handlers
    logging.root.setLevel(getattr(logging, settings.log_level.upper()))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


def main():
    """Run the application."""
    configure_logging()

    logger.info("Starting webmon v%s", __version__)
    logger.info("Host file: %s", settings.hosts_path)
    logger.info("Poll interval: %gs, read timeout: %gs",
                settings.poll_interval_seconds, settings.read_timeout_seconds)
    logger.info("Max hosts: %d, failure threshold: %d",
                settings.max_hosts, settings.failure_threshold)
    logger.info("SMTP configured: %s", settings.smtp_configured)
    logger.info("Webhook configured: %s", settings.webhook_configured)
    logger.info("Log format: %s", settings.log_format)

    # Import app here to ensure logging is configured first
    from webmon.web.app import app

    uvicorn.run(
        app,
        host=settings.web_host,
        port=settings.web_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
