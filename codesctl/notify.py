"""Desktop notifications and fan-out to several notifiers."""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    """A notification to be delivered."""

    title: str
    message: str
    sound: bool = False


class Notifier(ABC):
    """Something that can deliver a notification."""

    @abstractmethod
    def send(self, notification: Notification) -> None:
        """Deliver ``notification``; raise on failure."""

    @abstractmethod
    def name(self) -> str:
        """Short name of this notifier."""


class MultiNotifier(Notifier):
    """Sends each notification to every wrapped notifier."""

    def __init__(self, *notifiers: Notifier) -> None:
        self.notifiers = list(notifiers)

    def send(self, notification: Notification) -> None:
        """Try every notifier, then re-raise the first failure, if any."""
        first_error: Optional[Exception] = None
        for notifier in self.notifiers:
            try:
                notifier.send(notification)
            except Exception as exc:  # noqa: BLE001 - every notifier is attempted
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error

    def name(self) -> str:
        return "multi(" + ",".join(n.name() for n in self.notifiers) + ")"


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


class DarwinNotifier(Notifier):
    """Shows notifications through AppleScript."""

    def send(self, notification: Notification) -> None:
        script = (
            f"display notification {_quote(notification.message)} "
            f"with title {_quote(notification.title)}"
        )
        if notification.sound:
            script += ' sound name "default"'
        subprocess.run(["osascript", "-e", script], check=True)

    def name(self) -> str:
        return "darwin"


class LinuxNotifier(Notifier):
    """Shows notifications with notify-send, if it is installed."""

    def send(self, notification: Notification) -> None:
        path = shutil.which("notify-send")
        if path is None:
            log.info("notify: notify-send not found, skipping desktop notification")
            return
        args = [path, notification.title, notification.message]
        if notification.sound:
            args.append("--hint=string:sound-name:message-new-instant")
        subprocess.run(args, check=True)

    def name(self) -> str:
        return "linux"


_TOAST_SCRIPT = """
[Windows.UI.Notifications.ToastNotificationManager, Windows.UI.Notifications, ContentType = WindowsRuntime] > $null
$template = [Windows.UI.Notifications.ToastNotificationManager]::GetTemplateContent([Windows.UI.Notifications.ToastTemplateType]::ToastText02)
$textNodes = $template.GetElementsByTagName("text")
$textNodes.Item(0).AppendChild($template.CreateTextNode({title})) > $null
$textNodes.Item(1).AppendChild($template.CreateTextNode({message})) > $null
$toast = [Windows.UI.Notifications.ToastNotification]::new($template)
[Windows.UI.Notifications.ToastNotificationManager]::CreateToastNotifier("codes").Show($toast)
"""


class WindowsNotifier(Notifier):
    """Shows toast notifications through PowerShell; failures are only logged."""

    def send(self, notification: Notification) -> None:
        script = _TOAST_SCRIPT.replace("{title}", _quote(notification.title)).replace(
            "{message}", _quote(notification.message)
        )
        try:
            subprocess.run(
                ["powershell", "-NoProfile", "-NonInteractive", "-Command", script],
                check=True,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            log.warning("notify: Windows toast failed, skipping: %s", exc)

    def name(self) -> str:
        return "windows"


class NoopNotifier(Notifier):
    """Discards notifications on platforms without support."""

    def send(self, notification: Notification) -> None:
        return None

    def name(self) -> str:
        return "noop"


def desktop_notifier(platform: Optional[str] = None) -> Notifier:
    """Return the desktop notifier for ``platform`` (default: this system)."""
    platform = sys.platform if platform is None else platform
    if platform == "darwin":
        return DarwinNotifier()
    if platform.startswith("linux"):
        return LinuxNotifier()
    if platform in ("win32", "windows", "cygwin"):
        return WindowsNotifier()
    return NoopNotifier()