"""Project linking and discovery, notifications, a notification monitor and SSH remote host helpers."""

__version__ = "1.0.0"