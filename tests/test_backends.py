from __future__ import annotations

from pathlib import Path

import pytest

from signoff.backends import MemoryBackend, SQLiteBackend, StorageChange
from signoff.errors import StorageError
from signoff.store import ApprovalStore
from signoff.types import ApprovalStatus


def test_memory_backend_get_set_and_notify() -> None:
    backend = MemoryBackend()
    changes: list[StorageChange] = []
    backend.on_did_change_value("k", changes.append)

    assert backend.get("k") is None
    backend.set("k", "v", origin="me")
    backend.set("other", "x")

    assert backend.get("k") == "v"
    assert changes == [StorageChange(key="k", origin="me", external=False)]


def test_sqlite_backend_persists_across_connections(tmp_path: Path) -> None:
    path = tmp_path / "profiles" / "default" / "storage.sqlite"
    with SQLiteBackend(path) as backend:
        backend.set("k", "v1")
        backend.set("k", "v2")

    with SQLiteBackend(path) as reopened:
        assert reopened.get("k") == "v2"
        assert reopened.get("missing") is None


def test_sqlite_poll_detects_writes_from_other_connection(tmp_path: Path) -> None:
    path = tmp_path / "storage.sqlite"
    with SQLiteBackend(path) as ours, SQLiteBackend(path) as theirs:
        changes: list[StorageChange] = []
        ours.on_did_change_value("k", changes.append)

        assert ours.poll() == 0
        theirs.set("k", "from elsewhere")
        theirs.set("unwatched", "x")

        assert ours.poll() == 1
        assert changes == [StorageChange(key="k", origin=None, external=True)]
        assert ours.poll() == 0


def test_sqlite_poll_ignores_own_writes(tmp_path: Path) -> None:
    with SQLiteBackend(tmp_path / "storage.sqlite") as backend:
        changes: list[StorageChange] = []
        backend.on_did_change_value("k", changes.append)

        backend.set("k", "v")

        assert backend.poll() == 0
        assert changes == [StorageChange(key="k", origin=None, external=False)]


def test_sqlite_closed_backend_raises_storage_error(tmp_path: Path) -> None:
    backend = SQLiteBackend(tmp_path / "storage.sqlite")
    backend.close()
    backend.close()

    with pytest.raises(StorageError, match="closed"):
        backend.get("k")


def test_store_round_trip_across_restart(tmp_path: Path) -> None:
    path = tmp_path / "storage.sqlite"
    with SQLiteBackend(path) as backend, ApprovalStore(backend) as store:
        a = store.add("Push to main", "needs review")
        b = store.add("run build")
        store.set_status(a.id, ApprovalStatus.APPROVED)
        snapshot = store.list()

    with SQLiteBackend(path) as backend, ApprovalStore(backend) as store:
        restored = store.list()

    assert restored == snapshot
    assert [item.id for item in restored] == [b.id, a.id]


def test_store_rebroadcasts_external_change(tmp_path: Path) -> None:
    path = tmp_path / "storage.sqlite"
    with SQLiteBackend(path) as backend_a, SQLiteBackend(path) as backend_b:
        store_a = ApprovalStore(backend_a)
        store_b = ApprovalStore(backend_b)
        seen: list[int] = []
        store_b.on_did_change(lambda: seen.append(len(store_b.list())))

        store_a.add("from another window")
        assert seen == []

        backend_b.poll()

        assert seen == [1]
        assert store_b.list()[0].title == "from another window"


def test_deferred_notify_fires_only_when_delivered() -> None:
    backend = MemoryBackend()
    changes: list[StorageChange] = []
    backend.on_did_change_value("k", changes.append)

    change = backend.set("k", "v", origin="me", notify=False)

    assert backend.get("k") == "v"
    assert changes == []

    backend.notify(change)

    assert changes == [StorageChange(key="k", origin="me", external=False)]


def test_sqlite_deferred_notify(tmp_path: Path) -> None:
    with SQLiteBackend(tmp_path / "storage.sqlite") as backend:
        changes: list[StorageChange] = []
        backend.on_did_change_value("k", changes.append)

        change = backend.set("k", "v", notify=False)
        assert changes == []

        backend.notify(change)
        assert changes == [StorageChange(key="k", origin=None, external=False)]
