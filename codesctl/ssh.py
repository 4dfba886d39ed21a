"""Running commands and copying files on remote hosts over SSH."""

from __future__ import annotations

import json
import os
import subprocess
from dataclasses import dataclass
from typing import Optional

_HOST_KEY_OPTION = ["-o", "StrictHostKeyChecking=accept-new"]
_UNSAFE_PATH_CHARS = set(';|&$`"\\')


class RemoteError(Exception):
    """A remote command or transfer failed."""


@dataclass
class RemoteHost:
    """An SSH host that commands can be sent to."""

    name: str
    host: str
    user: str = ""
    port: int = 0
    identity: str = ""

    def user_at_host(self) -> str:
        """The ``user@host`` destination, or just the host when no user is set."""
        return f"{self.user}@{self.host}" if self.user else self.host


def expand_home(path: str) -> str:
    """Replace a leading ``~/`` with the user's home directory."""
    if not path.startswith("~/"):
        return path
    home = os.path.expanduser("~")
    if home == "~":
        return path
    return home + path[1:]


def ssh_args(host: RemoteHost) -> list[str]:
    """Options shared by every ssh invocation for ``host``."""
    args = list(_HOST_KEY_OPTION)
    if host.port:
        args += ["-p", str(host.port)]
    if host.identity:
        args += ["-i", expand_home(host.identity)]
    return args


def _run(argv: list[str], **kwargs) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(argv, check=False, **kwargs)
    except OSError as exc:
        raise RemoteError(f"{argv[0]}: {exc}") from exc


def run_ssh(host: RemoteHost, command: str) -> str:
    """Run ``command`` on ``host`` and return its trimmed standard output."""
    destination = host.user_at_host()
    proc = _run(
        ["ssh", *ssh_args(host), destination, command],
        stdout=subprocess.PIPE,
        text=True,
    )
    if proc.returncode != 0:
        raise RemoteError(f"ssh {destination}: exit status {proc.returncode}")
    return (proc.stdout or "").strip()


def run_ssh_with_agent(host: RemoteHost, command: str) -> str:
    """Run ``command`` with agent forwarding; return combined output, trimmed."""
    destination = host.user_at_host()
    proc = _run(
        ["ssh", *ssh_args(host), "-A", destination, command],
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
    )
    output = (proc.stdout or "").strip()
    if proc.returncode != 0:
        if output:
            raise RemoteError(f"ssh {destination}: {output}")
        raise RemoteError(f"ssh {destination}: exit status {proc.returncode}")
    return output


def run_ssh_interactive(host: RemoteHost, command: str = "") -> None:
    """Open an interactive session with a terminal, optionally running ``command``."""
    argv = ["ssh", "-t", *ssh_args(host), host.user_at_host()]
    if command:
        argv.append(command)
    proc = _run(argv)
    if proc.returncode != 0:
        raise RemoteError(f"ssh {host.user_at_host()}: exit status {proc.returncode}")


def copy_to_remote(host: RemoteHost, local_path: str, remote_path: str) -> None:
    """Copy ``local_path`` to ``remote_path`` on ``host`` with scp."""
    argv = ["scp", *_HOST_KEY_OPTION]
    if host.port:
        argv += ["-P", str(host.port)]
    if host.identity:
        argv += ["-i", expand_home(host.identity)]
    argv += [local_path, f"{host.user_at_host()}:{remote_path}"]
    proc = _run(argv)
    if proc.returncode != 0:
        raise RemoteError(f"scp {host.user_at_host()}: exit status {proc.returncode}")


def check_connection(host: RemoteHost) -> None:
    """Verify that ``host`` is reachable and answers a trivial command."""
    argv = [
        "ssh",
        *ssh_args(host),
        "-o",
        "ConnectTimeout=5",
        host.user_at_host(),
        "echo ok",
    ]
    try:
        proc = subprocess.run(
            argv,
            check=False,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except OSError as exc:
        raise RemoteError(f"connection failed: {exc}") from exc
    if proc.returncode != 0:
        raise RemoteError(f"connection failed: exit status {proc.returncode}")
    if (proc.stdout or "").strip() != "ok":
        raise RemoteError("unexpected response from remote")


def list_remote_dir(host: RemoteHost, directory: str) -> list[str]:
    """List ``directory`` on ``host``; directories carry a trailing ``/``."""
    if _UNSAFE_PATH_CHARS.intersection(directory):
        raise RemoteError("invalid directory path")
    quoted: Optional[str] = json.dumps(directory, ensure_ascii=False)
    output = run_ssh(host, f"ls -1paF {quoted} 2>/dev/null")
    entries = []
    for line in output.split("\n"):
        line = line.strip()
        if line in ("", "./", "../"):
            continue
        entries.append(line)
    return entries