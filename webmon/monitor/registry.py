"""Registry of monitored hosts."""

import logging
import threading
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from webmon.config import validate_email, validate_hostname
from webmon.monitor.errors import (
    AlreadyMonitored,
    CapacityExceeded,
    InvalidHost,
    PersistenceError,
)
from webmon.monitor.host import Host, HostRecord
from webmon.monitor.store import HostStore
from webmon.metrics import monitored_hosts, persistence_errors_total

logger = logging.getLogger(__name__)


class Registry:
    """Owns the hostname -> Host map and its persistence.

    The registry lock covers map structure (insert, reload merge) and the
    snapshot taken for a save. Per-host history and policy state are guarded
    by each host's own lock. Lock order is registry lock, then host lock.
    No network I/O happens under either.
    """

    def __init__(
        self,
        store: HostStore,
        max_hosts: int,
        history_size: int,
        threshold: int,
    ):
        self.store = store
        self.max_hosts = max_hosts
        self.history_size = history_size
        self.threshold = threshold
        self._lock = threading.Lock()
        self._hosts: Dict[str, Host] = {}

    @classmethod
    def open(
        cls,
        store: HostStore,
        max_hosts: int,
        history_size: int,
        threshold: int,
    ) -> "Registry":
        """Build a registry from the host file at startup.

        A missing file starts an empty registry; the file is created on the
        first save.

        Raises:
            PersistenceError: If the file exists but cannot be loaded.
        """
        registry = cls(store, max_hosts, history_size, threshold)
        if not store.exists():
            logger.warning("Host file %s does not exist, starting empty", store.path)
            return registry

        records = store.load(force=True) or {}
        registry._merge(records)

        if len(registry) > max_hosts:
            logger.warning(
                "Host file %s contains %d hosts, more than max_hosts=%d; "
                "monitoring all of them, new additions are refused",
                store.path,
                len(registry),
                max_hosts,
            )
        return registry

    def __len__(self) -> int:
        with self._lock:
            return len(self._hosts)

    def __contains__(self, hostname: object) -> bool:
        with self._lock:
            return hostname in self._hosts

    def get(self, hostname: str) -> Optional[Host]:
        with self._lock:
            return self._hosts.get(hostname)

    def hosts(self) -> Mapping[str, Host]:
        """Read-only snapshot of the current host map."""
        with self._lock:
            return MappingProxyType(dict(self._hosts))

    def add_host(self, hostname: str, email: str) -> Host:
        """Register a new host and persist the host set.

        Raises:
            InvalidHost: If the hostname or e-mail address is malformed.
            AlreadyMonitored: If the hostname is already registered.
            CapacityExceeded: If the registry is full.
            PersistenceError: If the save failed. The host stays registered
                in memory and is written by the next successful save.
        """
        hostname = hostname.strip().lower()
        email = email.strip()
        try:
            validate_hostname(hostname)
            validate_email(email)
        except ValueError as e:
            raise InvalidHost(str(e)) from e

        with self._lock:
            if hostname in self._hosts:
                raise AlreadyMonitored(hostname)
            if len(self._hosts) + 1 > self.max_hosts:
                raise CapacityExceeded(len(self._hosts), self.max_hosts)

            host = Host(hostname, email, self.history_size, self.threshold)
            self._hosts[hostname] = host
            monitored_hosts.set(len(self._hosts))
            logger.info("Added host %s (notify %s)", hostname, email)

            self._save_locked()

        return host

    def reload(self) -> bool:
        """Merge in hosts from the host file if it changed.

        Hosts already registered keep their history and policy state; hosts
        missing from the file are kept (there is no online removal). Load
        errors are logged and leave the registry untouched.

        Returns:
            True if the file was read, False if it was unchanged or failed.
        """
        with self._lock:
            try:
                records = self.store.load()
            except PersistenceError as e:
                persistence_errors_total.labels(operation="load").inc()
                logger.error("Host file reload failed: %s", e)
                return False

            if records is None:
                return False

            added = self._merge_locked(records)

        if added:
            logger.info("Reload added %d hosts", added)
        return True

    def _merge(self, records: Mapping[str, HostRecord]) -> int:
        with self._lock:
            return self._merge_locked(records)

    def _merge_locked(self, records: Mapping[str, HostRecord]) -> int:
        added = 0
        for hostname, record in records.items():
            existing = self._hosts.get(hostname)
            if existing is not None:
                if existing.email != record.email:
                    logger.warning(
                        "Ignoring changed notification target for %s; "
                        "it is fixed once the host is registered",
                        hostname,
                    )
                continue
            self._hosts[hostname] = Host.from_record(
                record, self.history_size, self.threshold
            )
            added += 1
        monitored_hosts.set(len(self._hosts))
        return added

    def save(self) -> None:
        """Persist the current host set.

        Edits made to the host file since it was last read are merged in
        first, so a save never discards hosts added by hand.

        Raises:
            PersistenceError: If the file changed but cannot be read, or the
                write failed. An unreadable file is left as it is.
        """
        with self._lock:
            self._save_locked()

    def _save_locked(self) -> None:
        try:
            self._refresh_locked()
            records = [host.to_record() for host in self._hosts.values()]
            self.store.save(records)
        except PersistenceError as e:
            persistence_errors_total.labels(operation="save").inc()
            logger.error("Saving host file failed: %s", e)
            raise

    def _refresh_locked(self) -> None:
        if not self.store.exists():
            return
        records = self.store.load()
        if records is None:
            return
        added = self._merge_locked(records)
        if added:
            logger.info("Merged %d hosts added to the host file before saving", added)
