"""Application configuration from environment variables."""

import re
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings

# RFC 1123 hostname pattern (allows digits at start)
HOSTNAME_PATTERN = re.compile(
    r'^[a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?(\.[a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?)*$'
)
IPV4_PATTERN = re.compile(r'^(\d{1,3}\.){3}\d{1,3}$')
EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+$')

# Characters that must never reach a URL we build from a hostname
_DANGEROUS_CHARS = set(';&|`$(){}[]<>\\\'\"!#*?~/ ')


def validate_hostname(value: str) -> str:
    """Validate a monitored hostname, optionally with a port suffix.

    Rejects anything that is not a bare host so that a probe URL built as
    ``http://<host>/`` cannot point at a path on someone else's server.

    Raises:
        ValueError: If the hostname is empty, too long or malformed.
    """
    if not value:
        raise ValueError('hostname cannot be empty')
    if len(value) > 253:
        raise ValueError('hostname too long (max 253 chars)')
    if any(c in value for c in _DANGEROUS_CHARS):
        raise ValueError('hostname contains invalid characters')

    host, sep, port = value.partition(':')
    if sep:
        if not port.isdigit() or not 0 < int(port) < 65536:
            raise ValueError('invalid port in hostname')

    if not (HOSTNAME_PATTERN.match(host) or IPV4_PATTERN.match(host)):
        raise ValueError('invalid hostname format')

    return value


def validate_email(value: str) -> str:
    """Minimal sanity check for a notification address."""
    if not value or not EMAIL_PATTERN.match(value):
        raise ValueError('invalid e-mail address')
    return value


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Host definition file (relative paths resolve against data_dir)
    hosts_file: Path = Path("hosts.json")

    # Data storage
    data_dir: Path = Path("/app/data")

    # Polling
    poll_interval_seconds: float = 10.0
    read_timeout_seconds: float = 10.0
    max_hosts: int = 100

    # How many latency data points to keep for each host.
    # This is the primary driver of memory usage.
    history_size: int = 10080  # 7d worth of 1m frequency collections

    # Consecutive failures before a host is reported down
    failure_threshold: int = 3

    @field_validator('poll_interval_seconds', 'read_timeout_seconds')
    @classmethod
    def validate_positive_seconds(cls, v: float) -> float:
        if v <= 0:
            raise ValueError('must be greater than zero')
        return v

    @field_validator('max_hosts', 'history_size', 'failure_threshold')
    @classmethod
    def validate_positive_count(cls, v: int) -> int:
        if v < 1:
            raise ValueError('must be at least 1')
        return v

    @property
    def hosts_path(self) -> Path:
        """Absolute location of the host definition file."""
        if self.hosts_file.is_absolute():
            return self.hosts_file
        return self.data_dir / self.hosts_file

    # SMTP settings
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from: Optional[str] = None

    # Webhook settings
    webhook_url: Optional[str] = None

    # Web server
    web_host: str = "0.0.0.0"
    web_port: int = 8080

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # "text" or "json"

    @property
    def smtp_configured(self) -> bool:
        """Check if SMTP is properly configured."""
        return all([
            self.smtp_host,
            self.smtp_user,
            self.smtp_password,
            self.smtp_from,
        ])

    @property
    def webhook_configured(self) -> bool:
        """Check if webhook is configured."""
        return bool(self.webhook_url)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore unknown environment variables


# Global settings instance
settings = Settings()
