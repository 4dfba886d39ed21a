"""On-disk cache of the last known status of each remote host."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from codesctl.install import RemoteStatus


def default_cache_path() -> str:
    """``~/.codes/remote-status.json``."""
    return str(Path(os.path.expanduser("~")) / ".codes" / "remote-status.json")


@dataclass
class StatusCache:
    """A JSON file mapping host names to their :class:`RemoteStatus`."""

    path: Optional[os.PathLike[str] | str] = None

    def _file(self) -> Path:
        return Path(self.path) if self.path is not None else Path(default_cache_path())

    def load(self) -> dict[str, RemoteStatus]:
        """Read the cache; a missing or invalid file gives an empty mapping."""
        try:
            document = json.loads(self._file().read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return {}
        if not isinstance(document, dict):
            return {}
        hosts = document.get("hosts")
        if not isinstance(hosts, dict):
            return {}
        try:
            return {
                name: RemoteStatus.from_dict(status)
                for name, status in hosts.items()
                if status is not None
            }
        except ValueError:
            return {}

    def save(self, hosts: Mapping[str, RemoteStatus]) -> None:
        """Write ``hosts`` as the whole cache."""
        document = {"hosts": {name: status.to_dict() for name, status in hosts.items()}}
        target = self._file()
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(document, indent=4), encoding="utf-8")

    def update(self, name: str, status: RemoteStatus) -> None:
        """Store ``status`` for host ``name``."""
        hosts = self.load()
        hosts[name] = status
        self.save(hosts)

    def delete(self, name: str) -> None:
        """Forget host ``name``."""
        hosts = self.load()
        hosts.pop(name, None)
        self.save(hosts)