"""Inspecting remote hosts and installing the tools on them."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass
from typing import Any

from codesctl.ssh import RemoteError, RemoteHost, run_ssh

RELEASE_API_ENV = "CODES_RELEASE_API"
RELEASE_DOWNLOAD_ENV = "CODES_RELEASE_DOWNLOAD"
NVM_INSTALLER_ENV = "CODES_NVM_INSTALLER"

_STATUS_SCRIPT = """
for rc in ~/.bashrc ~/.profile ~/.zshrc ~/.bash_profile; do
    [ -f "$rc" ] && . "$rc" 2>/dev/null
done
export PATH="$HOME/bin:$HOME/.local/bin:$HOME/.npm-global/bin:$PATH"
echo "OS=$(uname -s)"; echo "ARCH=$(uname -m)"; echo "CODES=$(command -v codes >/dev/null 2>&1 && codes version 2>/dev/null || echo 'not found')"; echo "CLAUDE=$(command -v claude >/dev/null 2>&1 && echo 'installed' || echo 'not found')"; true"""

_INSTALL_SCRIPT = r"""
set -e
mkdir -p ~/bin

# Resolve latest version
VERSION=$(curl -fsSL {api} \
    | grep '"tag_name"' | sed -E 's/.*"tag_name": *"([^"]+)".*/\1/')
if [ -z "$VERSION" ]; then
    echo "Failed to determine latest version" >&2
    exit 1
fi
echo "Latest version: $VERSION"

ARCHIVE="codes-${{VERSION}}-{os}-{arch}.tar.gz"
URL={download}"/${{VERSION}}/${{ARCHIVE}}"

TMPDIR=$(mktemp -d)
trap 'rm -rf "$TMPDIR"' EXIT

curl -fsSL "$URL" -o "$TMPDIR/$ARCHIVE"
tar -xzf "$TMPDIR/$ARCHIVE" -C "$TMPDIR"
mv "$TMPDIR/codes" ~/bin/codes
chmod +x ~/bin/codes

# Ensure ~/bin is in PATH for future logins
if ! echo "$PATH" | grep -q "$HOME/bin"; then
    for rc in ~/.bashrc ~/.profile ~/.zshrc; do
        if [ -f "$rc" ]; then
            echo 'export PATH="$HOME/bin:$PATH"' >> "$rc"
            break
        fi
    done
fi

~/bin/codes version
"""

_PROFILE_SETUP = """
for rc in ~/.bashrc ~/.profile ~/.zshrc ~/.bash_profile; do
    [ -f "$rc" ] && . "$rc" 2>/dev/null
done
export PATH="$HOME/bin:$HOME/.local/bin:$HOME/.npm-global/bin:$PATH"
# Load nvm if available
export NVM_DIR="$HOME/.nvm"
[ -s "$NVM_DIR/nvm.sh" ] && . "$NVM_DIR/nvm.sh"
"""

_CHECK_SCRIPT = _PROFILE_SETUP + """
command -v npm >/dev/null 2>&1 && echo "npm_ok" || echo "npm_missing"
command -v claude >/dev/null 2>&1 && echo "claude_ok" || echo "claude_missing"
true"""

_NVM_SCRIPT = """
set -e
export NVM_DIR="$HOME/.nvm"
if [ ! -s "$NVM_DIR/nvm.sh" ]; then
    {fetch}
fi
[ -s "$NVM_DIR/nvm.sh" ] && . "$NVM_DIR/nvm.sh"
nvm install --lts 2>&1
echo "NODE_INSTALLED"
"""

_CLAUDE_INSTALL_SCRIPT = _PROFILE_SETUP + """
npm install -g @anthropic-ai/claude-code 2>&1
"""

_OS_NAMES = {
    "linux": "linux",
    "darwin": "darwin",
    "freebsd": "freebsd",
    "openbsd": "openbsd",
    "netbsd": "netbsd",
}

_ARCH_NAMES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv6l": "arm",
    "armv7l": "arm",
    "i686": "386",
    "i386": "386",
    "mips": "mips",
    "mipsel": "mipsle",
    "mips64": "mips64",
    "mips64el": "mips64le",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
    "riscv64": "riscv64",
}


@dataclass
class RemoteStatus:
    """What is installed on a remote host and what platform it runs."""

    codes_installed: bool = False
    codes_version: str = ""
    claude_installed: bool = False
    os: str = ""
    arch: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "RemoteStatus":
        """Build a status from its JSON object; raise ValueError if malformed."""
        if not isinstance(data, dict):
            raise ValueError("remote status must be a JSON object")
        values: dict[str, Any] = {}
        for key, attr, kind in (
            ("codesInstalled", "codes_installed", bool),
            ("codesVersion", "codes_version", str),
            ("claudeInstalled", "claude_installed", bool),
            ("os", "os", str),
            ("arch", "arch", str),
        ):
            value = data.get(key)
            if value is None:
                continue
            if not isinstance(value, kind):
                raise ValueError(f"field {key!r} must be {kind.__name__}")
            values[attr] = value
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """The JSON object form; an empty version is left out."""
        data: dict[str, Any] = {"codesInstalled": self.codes_installed}
        if self.codes_version:
            data["codesVersion"] = self.codes_version
        data["claudeInstalled"] = self.claude_installed
        data["os"] = self.os
        data["arch"] = self.arch
        return data


def parse_status_output(output: str) -> RemoteStatus:
    """Read the ``KEY=value`` lines printed by the status script."""
    status = RemoteStatus()
    for line in output.split("\n"):
        line = line.strip()
        if line.startswith("OS="):
            status.os = line[len("OS="):]
        elif line.startswith("ARCH="):
            status.arch = line[len("ARCH="):]
        elif line.startswith("CODES="):
            value = line[len("CODES="):]
            if value not in ("not found", ""):
                status.codes_installed = True
                status.codes_version = value
        elif line.startswith("CLAUDE="):
            if line[len("CLAUDE="):] != "not found":
                status.claude_installed = True
    return status


def check_remote_status(host: RemoteHost) -> RemoteStatus:
    """Collect installation and platform information from ``host``."""
    return parse_status_output(run_ssh(host, _STATUS_SCRIPT))


def normalize_os(value: str) -> str:
    """Map ``uname -s`` output to a release OS name, or "" if unsupported."""
    return _OS_NAMES.get(value.strip().lower(), "")


def normalize_arch(value: str) -> str:
    """Map ``uname -m`` output to a release architecture name, or "" if unsupported."""
    return _ARCH_NAMES.get(value.strip().lower(), "")


def install_on_remote(host: RemoteHost) -> str:
    """Download the latest release onto ``host`` into ``~/bin``; return the output.

    The release endpoints come from the ``CODES_RELEASE_API`` (latest release
    JSON) and ``CODES_RELEASE_DOWNLOAD`` (archive base URL) environment variables.
    """
    try:
        status = check_remote_status(host)
    except RemoteError as exc:
        raise RemoteError(f"detect platform: {exc}") from exc

    goos = normalize_os(status.os)
    goarch = normalize_arch(status.arch)
    if not goos or not goarch:
        raise RemoteError(f"unsupported platform: {status.os}/{status.arch}")

    api = os.environ.get(RELEASE_API_ENV, "")
    download = os.environ.get(RELEASE_DOWNLOAD_ENV, "").rstrip("/")
    if not api or not download:
        raise RemoteError(
            f"release source not configured: set {RELEASE_API_ENV} and {RELEASE_DOWNLOAD_ENV}"
        )

    script = _INSTALL_SCRIPT.format(
        api=shlex.quote(api),
        download=shlex.quote(download),
        os=goos,
        arch=goarch,
    )
    try:
        return run_ssh(host, script)
    except RemoteError as exc:
        raise RemoteError(f"remote install failed: {exc}") from exc


def install_claude_on_remote(host: RemoteHost) -> str:
    """Install the Claude CLI on ``host`` with npm, installing Node.js via nvm if needed."""
    try:
        check_output = run_ssh(host, _CHECK_SCRIPT)
    except RemoteError as exc:
        raise RemoteError(f"check remote environment: {exc}") from exc

    if "claude_ok" in check_output:
        return "claude already installed"

    if "npm_missing" in check_output:
        installer = os.environ.get(NVM_INSTALLER_ENV, "")
        if installer:
            fetch = f"curl -fsSL {shlex.quote(installer)} | bash"
        else:
            fetch = f'echo "nvm is not installed and {NVM_INSTALLER_ENV} is not set" >&2; exit 1'
        try:
            nvm_output = run_ssh(host, _NVM_SCRIPT.format(fetch=fetch))
        except RemoteError as exc:
            raise RemoteError(f"install Node.js: {exc}") from exc
        if "NODE_INSTALLED" not in nvm_output:
            raise RemoteError("Node.js installation did not complete")

    try:
        return run_ssh(host, _CLAUDE_INSTALL_SCRIPT)
    except RemoteError as exc:
        raise RemoteError(f"claude install failed: {exc}") from exc