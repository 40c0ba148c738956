"""Shared pytest fixtures."""

import os
from pathlib import Path
from typing import List, Tuple

import pytest

# Set test environment before importing app modules
os.environ.setdefault(
    "DATA_DIR",
    str(Path(__file__).resolve().parents[1] / "data" / "test_data"),
)


class RecordingNotifier:
    """Stands in for the notify capability and remembers every call."""

    def __init__(self):
        self.sent: List[Tuple[str, str, str, str]] = []

    async def notify(self, recipient, subject, body, kind="alert"):
        self.sent.append((recipient, subject, body, kind))
        return True

    @property
    def kinds(self) -> List[str]:
        return [kind for _, _, _, kind in self.sent]


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def hosts_file(tmp_path):
    """Location of a host file inside the test's temporary directory."""
    return tmp_path / "hosts.json"


@pytest.fixture
def store(hosts_file):
    from webmon.monitor.store import HostStore

    return HostStore(hosts_file)


@pytest.fixture
def registry(store):
    """Empty registry with small limits."""
    from webmon.monitor.registry import Registry

    return Registry(store, max_hosts=3, history_size=5, threshold=3)


@pytest.fixture
def sample_hosts_json():
    """Host file contents in the on-disk format."""
    return {
        "a.example": {"Host": "a.example", "Email": "ops@a.example"},
        "b.example": {"Host": "b.example", "Email": "ops@b.example"},
    }
