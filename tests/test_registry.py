"""Tests for the host registry."""

import json
import os
from unittest.mock import patch

import pytest

from webmon.monitor.errors import (
    AlreadyMonitored,
    CapacityExceeded,
    InvalidHost,
    PersistenceError,
)
from webmon.monitor.probe import Failure, Success
from webmon.monitor.registry import Registry
from webmon.monitor.store import HostStore


def _write(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")


def _bump_mtime(path, seconds=10):
    stat = path.stat()
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + seconds * 1_000_000_000))


class TestAddHost:
    """Tests for add_host."""

    def test_add_host_inserts_and_saves(self, registry, hosts_file):
        host = registry.add_host("a.example", "ops@a.example")

        assert host.hostname == "a.example"
        assert host.email == "ops@a.example"
        assert "a.example" in registry
        data = json.loads(hosts_file.read_text())
        assert data == {"a.example": {"Host": "a.example", "Email": "ops@a.example"}}

    def test_add_host_normalizes_hostname(self, registry):
        host = registry.add_host("  A.Example ", "ops@a.example")

        assert host.hostname == "a.example"

    def test_duplicate_raises_and_keeps_size(self, registry):
        registry.add_host("a.example", "ops@a.example")

        with pytest.raises(AlreadyMonitored):
            registry.add_host("a.example", "someone@else.example")

        assert len(registry) == 1
        assert registry.get("a.example").email == "ops@a.example"

    def test_capacity_exceeded_does_not_mutate(self, registry, hosts_file):
        for name in ("a.example", "b.example", "c.example"):
            registry.add_host(name, f"ops@{name}")
        saved = hosts_file.read_text()

        with pytest.raises(CapacityExceeded) as exc_info:
            registry.add_host("d.example", "ops@d.example")

        assert "3/3" in str(exc_info.value)
        assert len(registry) == 3
        assert "d.example" not in registry
        assert hosts_file.read_text() == saved

    @pytest.mark.parametrize("hostname", [
        "",
        "example.com/big.zip",
        "a.example;rm -rf /",
        "bad host.example",
        "a.example:99999",
    ])
    def test_invalid_hostname_raises(self, registry, hostname):
        with pytest.raises(InvalidHost):
            registry.add_host(hostname, "ops@a.example")
        assert len(registry) == 0

    def test_invalid_email_raises(self, registry):
        with pytest.raises(InvalidHost):
            registry.add_host("a.example", "not-an-address")

    def test_host_with_port_is_accepted(self, registry):
        host = registry.add_host("a.example:8080", "ops@a.example")
        assert host.hostname == "a.example:8080"

    def test_save_failure_keeps_host_in_memory(self, registry):
        with patch.object(registry.store, "save", side_effect=PersistenceError("disk full")):
            with pytest.raises(PersistenceError):
                registry.add_host("a.example", "ops@a.example")

        assert "a.example" in registry

        # The next save writes it out
        registry.save()
        assert registry.store.load(force=True).keys() == {"a.example"}


class TestHostsView:
    """Tests for the read-only view."""

    def test_hosts_is_read_only_snapshot(self, registry):
        registry.add_host("a.example", "ops@a.example")
        view = registry.hosts()

        with pytest.raises(TypeError):
            view["b.example"] = None

        registry.add_host("b.example", "ops@b.example")
        assert list(view) == ["a.example"]


class TestOpenAndReload:
    """Tests for bootstrap and reload."""

    def test_open_missing_file_starts_empty(self, store):
        registry = Registry.open(store, max_hosts=5, history_size=5, threshold=2)
        assert len(registry) == 0

    def test_open_loads_hosts(self, store, hosts_file, sample_hosts_json):
        _write(hosts_file, sample_hosts_json)

        registry = Registry.open(store, max_hosts=5, history_size=5, threshold=2)

        assert set(registry.hosts()) == {"a.example", "b.example"}
        assert registry.get("b.example").email == "ops@b.example"

    def test_open_bad_file_is_fatal(self, store, hosts_file):
        hosts_file.write_text("{broken", encoding="utf-8")

        with pytest.raises(PersistenceError):
            Registry.open(store, max_hosts=5, history_size=5, threshold=2)

    def test_open_accepts_more_hosts_than_max(self, store, hosts_file, sample_hosts_json):
        _write(hosts_file, sample_hosts_json)

        registry = Registry.open(store, max_hosts=1, history_size=5, threshold=2)

        assert len(registry) == 2
        with pytest.raises(CapacityExceeded):
            registry.add_host("c.example", "ops@c.example")

    def test_reload_unchanged_file_leaves_hosts_identical(self, store, hosts_file, sample_hosts_json):
        _write(hosts_file, sample_hosts_json)
        registry = Registry.open(store, max_hosts=5, history_size=5, threshold=2)
        before = dict(registry.hosts())

        assert registry.reload() is False
        assert dict(registry.hosts()) == before
        assert hosts_file.read_text() == json.dumps(sample_hosts_json)

    def test_reload_merges_new_hosts_and_keeps_history(self, store, hosts_file, sample_hosts_json):
        _write(hosts_file, sample_hosts_json)
        registry = Registry.open(store, max_hosts=5, history_size=5, threshold=2)
        existing = registry.get("a.example")
        existing.record(Success(0.05))

        _write(hosts_file, {
            "a.example": {"Host": "a.example", "Email": "changed@a.example"},
            "c.example": {"Host": "c.example", "Email": "ops@c.example"},
        })
        _bump_mtime(hosts_file)

        assert registry.reload() is True
        assert set(registry.hosts()) == {"a.example", "b.example", "c.example"}
        assert registry.get("a.example") is existing
        assert existing.email == "ops@a.example"
        assert existing.status() == "50ms"

    def test_reload_failure_leaves_state(self, store, hosts_file, sample_hosts_json):
        _write(hosts_file, sample_hosts_json)
        registry = Registry.open(store, max_hosts=5, history_size=5, threshold=2)
        hosts_file.write_text("[[[", encoding="utf-8")
        _bump_mtime(hosts_file)

        assert registry.reload() is False
        assert set(registry.hosts()) == {"a.example", "b.example"}

    def test_reload_missing_file_is_not_fatal(self, registry):
        assert registry.reload() is False

    def test_open_lowercases_file_keys(self, store, hosts_file):
        _write(hosts_file, {"A.Example": {"Host": "A.Example", "Email": "ops@a.example"}})
        registry = Registry.open(store, max_hosts=5, history_size=5, threshold=2)

        with pytest.raises(AlreadyMonitored):
            registry.add_host("a.example", "other@a.example")
        assert len(registry) == 1
        assert "a.example" in registry

    def test_open_rejects_path_in_file_key(self, store, hosts_file):
        _write(hosts_file, {
            "evil.com/big.zip": {"Host": "evil.com/big.zip", "Email": "ops@evil.com"},
        })

        with pytest.raises(PersistenceError):
            Registry.open(store, max_hosts=5, history_size=5, threshold=2)


class TestSaveMergesFileEdits:
    """Saving never discards hosts written to the file since the last read."""

    def test_save_merges_hand_edit(self, registry, hosts_file):
        registry.add_host("a.example", "ops@a.example")
        data = json.loads(hosts_file.read_text())
        data["b.example"] = {"Host": "b.example", "Email": "ops@b.example"}
        _write(hosts_file, data)
        _bump_mtime(hosts_file)

        registry.save()

        assert "b.example" in registry
        assert set(json.loads(hosts_file.read_text())) == {"a.example", "b.example"}

    def test_add_host_keeps_concurrent_file_edit(self, registry, hosts_file):
        registry.add_host("a.example", "ops@a.example")
        data = json.loads(hosts_file.read_text())
        data["b.example"] = {"Host": "b.example", "Email": "ops@b.example"}
        _write(hosts_file, data)
        _bump_mtime(hosts_file)

        registry.add_host("c.example", "ops@c.example")

        assert set(registry.hosts()) == {"a.example", "b.example", "c.example"}
        assert set(json.loads(hosts_file.read_text())) == {"a.example", "b.example", "c.example"}

    def test_save_refuses_to_overwrite_unreadable_file(self, registry, hosts_file):
        registry.add_host("a.example", "ops@a.example")
        hosts_file.write_text("{half written", encoding="utf-8")
        _bump_mtime(hosts_file)

        with pytest.raises(PersistenceError):
            registry.save()
        assert hosts_file.read_text() == "{half written"

    def test_save_recreates_deleted_file(self, registry, hosts_file):
        registry.add_host("a.example", "ops@a.example")
        hosts_file.unlink()

        registry.save()

        assert set(json.loads(hosts_file.read_text())) == {"a.example"}


class TestHostState:
    """Per-host history and policy wiring."""

    def test_host_record_returns_notifications(self, registry):
        host = registry.add_host("a.example", "ops@a.example")

        assert host.record(Failure("boom", 0.0)) is None
        assert host.record(Failure("boom", 0.0)) is None
        down = host.record(Failure("boom", 0.0))
        recovered = host.record(Success(0.01))

        assert down.kind.value == "down"
        assert recovered.kind.value == "recovered"
        assert host.policy_state()[1] == 0

    def test_history_is_not_persisted(self, registry, hosts_file):
        host = registry.add_host("a.example", "ops@a.example")
        host.record(Success(0.01))
        registry.save()

        data = json.loads(hosts_file.read_text())
        assert data["a.example"] == {"Host": "a.example", "Email": "ops@a.example"}

    def test_snapshot_length_is_capacity(self, registry):
        host = registry.add_host("a.example", "ops@a.example")
        host.record(Success(0.01))

        assert len(host.snapshot()) == registry.history_size == host.capacity
