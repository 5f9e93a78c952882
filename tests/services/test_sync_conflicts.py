"""Tests for sync conflict tracker."""

import json
from datetime import UTC, datetime

import pytest

from krishiva_cli.services import sync_conflicts
from krishiva_cli.services.sync_conflicts import SyncConflict, SyncConflictTracker


@pytest.fixture
def tracker(tmp_path):
    return SyncConflictTracker(state_dir=tmp_path)


def _conflict(resource_id="u1", resolution="remote_wins") -> SyncConflict:
    return SyncConflict(
        resource_id=resource_id,
        local_data={"name": "Local"},
        remote_data={"name": "Remote"},
        resolution=resolution,
    )


def test_conflict_to_dict():
    data = _conflict().to_dict()
    assert data["resource_type"] == "user"
    assert data["resource_id"] == "u1"
    assert data["resolution"] == "remote_wins"
    assert data["detected_at"].endswith("Z")


def test_tracking(tracker):
    assert not tracker.has_conflicts()
    tracker.add_conflict(_conflict())
    assert tracker.count() == 1
    assert tracker.get_conflicts()[0].resource_id == "u1"
    tracker.clear()
    assert tracker.count() == 0


def test_save_appends_to_log(tracker):
    tracker.add_conflict(_conflict("u1"))
    tracker.save()
    tracker.clear()
    tracker.add_conflict(_conflict("u2", "local_wins"))
    tracker.save()

    saved = json.loads(tracker.conflicts_file.read_text(encoding="utf-8"))
    assert [c["resource_id"] for c in saved] == ["u1", "u2"]
    assert tracker.load_saved() == saved


def test_log_keeps_only_newest_entries(tracker, monkeypatch):
    monkeypatch.setattr(sync_conflicts, "MAX_SAVED_CONFLICTS", 3)
    for i in range(5):
        tracker.add_conflict(_conflict(f"u{i}"))
        tracker.save()
        tracker.clear()

    saved = tracker.load_saved()
    assert [c["resource_id"] for c in saved] == ["u2", "u3", "u4"]


def test_failed_write_keeps_previous_log(tracker, monkeypatch):
    tracker.add_conflict(_conflict("u1"))
    tracker.save()
    tracker.clear()

    def broken_dump(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(sync_conflicts.json, "dump", broken_dump)
    tracker.add_conflict(_conflict("u2"))
    with pytest.raises(OSError):
        tracker.save()
    monkeypatch.undo()

    saved = json.loads(tracker.conflicts_file.read_text(encoding="utf-8"))
    assert [c["resource_id"] for c in saved] == ["u1"]
    assert sorted(p.name for p in tracker.state_dir.iterdir()) == ["sync-conflicts.json"]


def test_save_without_conflicts_writes_nothing(tracker):
    tracker.save()
    assert not tracker.conflicts_file.exists()
    assert tracker.load_saved() == []


def test_corrupt_log_reads_as_empty(tracker):
    tracker.conflicts_file.write_text("[oops", encoding="utf-8")
    assert tracker.load_saved() == []


@pytest.mark.parametrize(
    ("local", "remote", "expected"),
    [
        (None, None, "equal"),
        (None, "2026-01-01T00:00:00Z", "remote"),
        ("2026-01-01T00:00:00Z", None, "local"),
        ("2026-01-02T00:00:00Z", "2026-01-01T00:00:00Z", "local"),
        ("2026-01-01T00:00:00Z", "2026-01-01T00:00:00+00:00", "equal"),
        ("garbage", "2026-01-01T00:00:00Z", "equal"),
    ],
)
def test_compare_timestamp_strings(local, remote, expected):
    assert SyncConflictTracker.compare_timestamps(local, remote) == expected


def test_compare_mixed_naive_and_aware_datetimes():
    naive = datetime(2026, 1, 1, 12, 0)
    aware = datetime(2026, 1, 1, 11, 0, tzinfo=UTC)
    assert SyncConflictTracker.compare_timestamps(naive, aware) == "local"
