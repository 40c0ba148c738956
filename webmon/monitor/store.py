"""Host file persistence.

The host file is a JSON object keyed by hostname::

    {"a.example": {"Host": "a.example", "Email": "ops@a.example"}}

Writes go to a temporary file in the same directory which then replaces the
target, so readers never observe a half-written file.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, Optional

from pydantic import ValidationError

from webmon.config import validate_email, validate_hostname
from webmon.monitor.errors import PersistenceError
from webmon.monitor.host import HostRecord

logger = logging.getLogger(__name__)


class HostStore:
    """Loads and saves the monitored host set, tracking the file mtime."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._last_mtime: Optional[int] = None

    @property
    def last_mtime(self) -> Optional[int]:
        """Modification time (ns) of the last loaded or saved file."""
        return self._last_mtime

    def exists(self) -> bool:
        return self.path.exists()

    def load(self, force: bool = False) -> Optional[Dict[str, HostRecord]]:
        """Read the host file if it changed since the last load or save.

        Args:
            force: Read even if the modification time has not advanced.

        Returns:
            Records keyed by hostname, or None when the file is unchanged
            (or older than what was last seen).

        Raises:
            PersistenceError: If the file cannot be read or decoded, or an
                entry has a malformed hostname or e-mail address. The
                tracked modification time is left untouched.
        """
        try:
            mtime = self.path.stat().st_mtime_ns
        except OSError as e:
            raise PersistenceError(f"load stat {self.path}: {e}") from e

        if not force and self._last_mtime is not None and mtime <= self._last_mtime:
            logger.debug("Host file %s unchanged, skipping reload", self.path)
            return None

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except OSError as e:
            raise PersistenceError(f"load open {self.path}: {e}") from e
        except json.JSONDecodeError as e:
            raise PersistenceError(f"load json decode {self.path}: {e}") from e

        records = self._decode(raw)
        self._last_mtime = mtime
        logger.info("Loaded %d hosts from %s", len(records), self.path)
        return records

    def _decode(self, raw: object) -> Dict[str, HostRecord]:
        # An empty or "null" file means no hosts
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise PersistenceError(
                f"load {self.path}: expected a JSON object keyed by hostname"
            )

        records: Dict[str, HostRecord] = {}
        for key, value in raw.items():
            try:
                record = HostRecord.model_validate(value)
            except ValidationError as e:
                raise PersistenceError(f"load {self.path}: bad entry {key!r}: {e}") from e

            hostname = key.strip().lower()
            email = record.email.strip()
            try:
                validate_hostname(hostname)
                validate_email(email)
            except ValueError as e:
                raise PersistenceError(f"load {self.path}: bad entry {key!r}: {e}") from e

            if hostname in records:
                logger.warning(
                    "Host file entry %r duplicates host %r, keeping the first",
                    key,
                    hostname,
                )
                continue
            if record.host.strip().lower() != hostname:
                logger.warning(
                    "Host file entry %r names host %r, using the entry key",
                    key,
                    record.host,
                )
            records[hostname] = HostRecord(host=hostname, email=email)
        return records

    def save(self, records: Iterable[HostRecord]) -> None:
        """Rewrite the host file with the given records.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        payload = {
            record.host: record.model_dump(by_alias=True)
            for record in records
        }

        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, sort_keys=True)
                f.write("\n")
            os.replace(tmp_name, self.path)
            tmp_name = None
            self._last_mtime = self.path.stat().st_mtime_ns
        except OSError as e:
            raise PersistenceError(f"save {self.path}: {e}") from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.debug("Could not remove temporary file %s", tmp_name)

        logger.debug("Saved %d hosts to %s", len(payload), self.path)
