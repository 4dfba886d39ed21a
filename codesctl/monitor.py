"""Watching the notification directory and buffering agent task notifications."""

from __future__ import annotations

import json
import logging
import os
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

log = logging.getLogger(__name__)

MAX_PENDING_NOTIFICATIONS = 100

_STRING_FIELDS = {
    "team": "team",
    "subject": "subject",
    "status": "status",
    "agent": "agent",
    "result": "result",
    "error": "error",
    "timestamp": "timestamp",
}


@dataclass
class TaskNotification:
    """A task completion or failure reported by an agent daemon."""

    team: str = ""
    task_id: int = 0
    subject: str = ""
    status: str = ""
    agent: str = ""
    result: str = ""
    error: str = ""
    timestamp: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "TaskNotification":
        """Build a notification from its JSON object; raise ValueError if malformed."""
        if not isinstance(data, dict):
            raise ValueError("notification must be a JSON object")
        values: dict[str, Any] = {}
        for key, attr in _STRING_FIELDS.items():
            value = data.get(key)
            if value is None:
                continue
            if not isinstance(value, str):
                raise ValueError(f"field {key!r} must be a string")
            values[attr] = value
        task_id = data.get("taskId")
        if task_id is not None:
            if isinstance(task_id, bool) or not isinstance(task_id, int):
                raise ValueError("field 'taskId' must be an integer")
            values["task_id"] = task_id
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """The JSON object form; empty result and error are left out."""
        data: dict[str, Any] = {
            "team": self.team,
            "taskId": self.task_id,
            "subject": self.subject,
            "status": self.status,
            "agent": self.agent,
        }
        if self.result:
            data["result"] = self.result
        if self.error:
            data["error"] = self.error
        data["timestamp"] = self.timestamp
        return data


def default_notification_dir() -> Optional[str]:
    """``~/.codes/notifications``, or None when the home directory is unknown."""
    try:
        home = Path.home()
    except (RuntimeError, KeyError, OSError):
        return None
    return str(home / ".codes" / "notifications")


class NotificationMonitor:
    """Polls a directory for notification files and queues them for delivery.

    Files are left on disk for other consumers; each is queued once. Files that
    stay around longer than ``stale_after`` seconds are removed by cleanup.
    """

    def __init__(
        self,
        directory: Optional[os.PathLike[str] | str] = None,
        *,
        interval: float = 3.0,
        on_notification: Optional[Callable[[TaskNotification], None]] = None,
        max_pending: int = MAX_PENDING_NOTIFICATIONS,
        stale_after: float = 120.0,
        cleanup_every: int = 30,
    ) -> None:
        self.directory = directory
        self.interval = interval
        self.on_notification = on_notification
        self.max_pending = max_pending
        self.stale_after = stale_after
        self.cleanup_every = cleanup_every

        self._state_lock = threading.Lock()
        self._pending_lock = threading.Lock()
        self._scan_lock = threading.RLock()
        self._pending: list[TaskNotification] = []
        self._seen: dict[str, float] = {}
        self._existing: set[str] = set()
        self._cleanup_tick = 0
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._started = False
        self._running = False

    def _directory(self) -> Optional[str]:
        if self.directory is not None:
            return os.fspath(self.directory)
        return default_notification_dir()

    def ensure_running(self) -> None:
        """Start the background polling thread unless it is already started."""
        with self._state_lock:
            if self._started:
                return
            self._started = True
            self._running = True
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event,),
                name="notification-monitor",
                daemon=True,
            )
            self._thread.start()

    def stop(self) -> None:
        """Stop the background thread and wait for it to finish."""
        with self._state_lock:
            thread = self._thread
            self._stop_event.set()
            self._thread = None
            self._started = False
            self._running = False
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def running(self) -> bool:
        """Whether the background monitor is active."""
        with self._state_lock:
            return self._running

    def _run(self, stop_event: threading.Event) -> None:
        if self._directory() is None:
            log.warning("monitor: cannot determine notification directory")
            with self._state_lock:
                self._started = False
                self._running = False
            return
        while not stop_event.wait(self.interval):
            self.poll()

    def _queue(self, notification: TaskNotification) -> None:
        with self._pending_lock:
            if len(self._pending) < self.max_pending:
                self._pending.append(notification)

    def _deliver(self, notification: TaskNotification) -> None:
        if self.on_notification is None:
            return
        try:
            self.on_notification(notification)
        except Exception as exc:  # noqa: BLE001 - delivery is best effort
            log.debug("monitor: notification push failed: %s", exc)

    def poll(self) -> list[TaskNotification]:
        """Scan the directory once and return the notifications read for the first time."""
        directory = self._directory()
        if directory is None:
            return []
        with self._scan_lock:
            try:
                with os.scandir(directory) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError:
                return []

            existing: set[str] = set()
            found: list[TaskNotification] = []
            for entry in entries:
                try:
                    is_dir = entry.is_dir(follow_symlinks=False)
                except OSError:
                    is_dir = False
                if is_dir or not entry.name.endswith(".json"):
                    continue
                existing.add(entry.name)
                if entry.name in self._seen:
                    continue
                try:
                    notification = TaskNotification.from_dict(
                        json.loads(Path(entry.path).read_bytes())
                    )
                except (OSError, ValueError):
                    continue
                self._queue(notification)
                self._deliver(notification)
                self._seen[entry.name] = time.time()
                found.append(notification)

            self._existing = existing
            self._cleanup_tick += 1
            if self._cleanup_tick >= self.cleanup_every:
                self._cleanup_tick = 0
                self.cleanup(time.time())
        return found

    def cleanup(self, now: Optional[float] = None) -> list[str]:
        """Forget files gone from disk and delete stale ones; return the deleted names."""
        directory = self._directory()
        if directory is None:
            return []
        now = time.time() if now is None else now
        threshold = now - self.stale_after
        removed: list[str] = []
        with self._scan_lock:
            for name, first_seen in list(self._seen.items()):
                if name not in self._existing:
                    del self._seen[name]
                    continue
                if first_seen < threshold:
                    try:
                        os.remove(os.path.join(directory, name))
                    except OSError:
                        pass
                    del self._seen[name]
                    removed.append(name)
        return removed

    def drain(self) -> list[TaskNotification]:
        """Return and clear every buffered notification."""
        with self._pending_lock:
            out = self._pending
            self._pending = []
        return out