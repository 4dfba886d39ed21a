import json
import os
import time

import pytest

from codesctl.monitor import (
    MAX_PENDING_NOTIFICATIONS,
    NotificationMonitor,
    TaskNotification,
    default_notification_dir,
)


def write_notification(directory, name, **fields):
    data = {
        "team": "alpha",
        "taskId": 1,
        "subject": "monitored task",
        "status": "completed",
        "agent": "test-agent",
        "result": "all good",
        "timestamp": "2024-01-01T00:00:00Z",
    }
    data.update(fields)
    path = directory / name
    path.write_text(json.dumps(data))
    return path


def test_poll_piggybacks_notification_and_keeps_file(tmp_path):
    monitor = NotificationMonitor(tmp_path)
    path = write_notification(tmp_path, "alpha__1.json")

    found = monitor.poll()
    assert [n.task_id for n in found] == [1]

    drained = monitor.drain()
    assert len(drained) == 1
    first = drained[0]
    assert first.team == "alpha"
    assert first.status == "completed"
    assert first.result == "all good"
    assert path.exists()


def test_seen_file_is_not_queued_twice(tmp_path):
    monitor = NotificationMonitor(tmp_path)
    write_notification(tmp_path, "alpha__1.json")
    monitor.poll()
    assert monitor.poll() == []
    assert len(monitor.drain()) == 1


def test_pending_notifications_cap_limit(tmp_path):
    monitor = NotificationMonitor(tmp_path)
    for i in range(MAX_PENDING_NOTIFICATIONS + 50):
        write_notification(tmp_path, f"team__{i:03d}.json", taskId=i, subject=f"task-{i}")

    monitor.poll()
    drained = monitor.drain()
    assert len(drained) == 100
    assert drained[0].subject == "task-0"
    assert monitor.drain() == []


def test_invalid_file_is_retried(tmp_path):
    monitor = NotificationMonitor(tmp_path)
    bad = tmp_path / "alpha__2.json"
    bad.write_text("{not json")
    assert monitor.poll() == []

    write_notification(tmp_path, "alpha__2.json", taskId=2)
    assert [n.task_id for n in monitor.poll()] == [2]


def test_wrong_field_type_is_skipped(tmp_path):
    monitor = NotificationMonitor(tmp_path)
    write_notification(tmp_path, "alpha__3.json", taskId="three")
    assert monitor.poll() == []
    assert monitor.drain() == []


def test_non_json_files_and_directories_ignored(tmp_path):
    monitor = NotificationMonitor(tmp_path)
    (tmp_path / "readme.txt").write_text("{}")
    (tmp_path / "nested.json").mkdir()
    write_notification(tmp_path, "alpha__4.json", taskId=4)
    assert [n.task_id for n in monitor.poll()] == [4]


def test_missing_directory_polls_nothing(tmp_path):
    monitor = NotificationMonitor(tmp_path / "absent")
    assert monitor.poll() == []


def test_cleanup_removes_stale_files(tmp_path):
    monitor = NotificationMonitor(tmp_path)
    path = write_notification(tmp_path, "alpha__5.json")
    monitor.poll()
    assert monitor.cleanup(time.time() + 121) == ["alpha__5.json"]
    assert not path.exists()


def test_cleanup_keeps_fresh_files(tmp_path):
    monitor = NotificationMonitor(tmp_path)
    path = write_notification(tmp_path, "alpha__6.json")
    monitor.poll()
    assert monitor.cleanup(time.time()) == []
    assert path.exists()
    assert monitor.poll() == []


def test_cleanup_forgets_deleted_files(tmp_path):
    monitor = NotificationMonitor(tmp_path)
    path = write_notification(tmp_path, "alpha__7.json", taskId=7)
    monitor.poll()
    path.unlink()
    monitor.poll()
    assert monitor.cleanup(time.time()) == []

    write_notification(tmp_path, "alpha__7.json", taskId=7)
    assert [n.task_id for n in monitor.poll()] == [7]


def test_periodic_cleanup_during_poll(tmp_path):
    monitor = NotificationMonitor(tmp_path, cleanup_every=2, stale_after=-10)
    path = write_notification(tmp_path, "alpha__8.json")
    monitor.poll()
    assert path.exists()
    monitor.poll()
    assert not path.exists()


def test_callback_receives_notifications_and_errors_are_ignored(tmp_path):
    received = []

    def callback(notification):
        received.append(notification.task_id)
        raise RuntimeError("client gone")

    monitor = NotificationMonitor(tmp_path, on_notification=callback)
    write_notification(tmp_path, "alpha__9.json", taskId=9)
    monitor.poll()
    assert received == [9]
    assert [n.task_id for n in monitor.drain()] == [9]


def test_ensure_running_and_stop(tmp_path):
    monitor = NotificationMonitor(tmp_path, interval=0.05)
    assert monitor.running() is False
    monitor.ensure_running()
    monitor.ensure_running()
    try:
        assert monitor.running() is True
    finally:
        monitor.stop()
    assert monitor.running() is False


def test_background_thread_picks_up_notification(tmp_path):
    monitor = NotificationMonitor(tmp_path, interval=0.05)
    monitor.ensure_running()
    try:
        path = write_notification(tmp_path, "beta__1.json", team="beta")
        drained = []
        deadline = time.time() + 5
        while not drained and time.time() < deadline:
            time.sleep(0.05)
            drained = monitor.drain()
    finally:
        monitor.stop()
    assert [n.team for n in drained] == ["beta"]
    assert path.exists()


def test_notification_round_trip():
    original = TaskNotification(
        team="alpha", task_id=3, subject="s", status="failed", agent="a",
        error="boom", timestamp="2024-01-01T00:00:00Z",
    )
    data = original.to_dict()
    assert "result" not in data
    assert data["error"] == "boom"
    assert data["taskId"] == 3
    assert TaskNotification.from_dict(data) == original


def test_from_dict_rejects_non_object():
    with pytest.raises(ValueError):
        TaskNotification.from_dict([1, 2])


def test_default_notification_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    assert default_notification_dir() == os.path.join(str(tmp_path), ".codes", "notifications")