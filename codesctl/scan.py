"""Discovering projects from Claude's per-project session directories."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Collection, MutableMapping, Optional, Sequence

from codesctl.context import ProjectEntry


@dataclass
class DiscoveredProject:
    """A project found under ``~/.claude/projects``."""

    path: str
    name: str
    has_claude: bool = False
    last_active: Optional[datetime] = None
    session_count: int = 0


def _has_claude_md(project_path: str) -> bool:
    return os.path.exists(os.path.join(project_path, "CLAUDE.md"))


def _join(base: str, segment: str) -> str:
    return os.path.normpath(os.path.join(base, segment))


def _resolve(base: str, parts: Sequence[str]) -> Optional[str]:
    """Rebuild a path from dash-separated parts, preferring more path components."""
    if not parts:
        return base if os.path.exists(base) else None
    for end in range(1, len(parts) + 1):
        candidate = _join(base, "-".join(parts[:end]))
        if end == len(parts):
            if os.path.exists(candidate):
                return candidate
        elif os.path.isdir(candidate):
            resolved = _resolve(candidate, parts[end:])
            if resolved is not None:
                return resolved
    return None


def decode_claude_project_path(encoded: str) -> Optional[str]:
    """Turn an encoded directory name such as ``-Users-me-code`` back into a path.

    Dashes may be path separators or literal hyphens, so candidates are checked
    against the filesystem. Returns None when no existing path matches.
    """
    if not encoded or encoded[0] != "-":
        return None
    parts = encoded[1:].split("-")
    root = "/"
    if os.name == "nt" and len(parts[0]) == 2 and parts[0][1] == ":":
        root = parts[0] + os.sep
        parts = parts[1:]
    return _resolve(root, parts)


def _session_stats(session_dir: str) -> tuple[int, Optional[datetime]]:
    count = 0
    latest: Optional[datetime] = None
    try:
        with os.scandir(session_dir) as it:
            entries = list(it)
    except OSError:
        return 0, None
    for entry in entries:
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError:
            is_dir = False
        if is_dir or not entry.name.endswith(".jsonl"):
            continue
        count += 1
        try:
            modified = datetime.fromtimestamp(entry.stat().st_mtime)
        except OSError:
            continue
        if latest is None or modified > latest:
            latest = modified
    return count, latest


def scan_claude_projects(home: Optional[os.PathLike[str] | str] = None) -> list[DiscoveredProject]:
    """Return the projects Claude has sessions for, most recently active first."""
    home_dir = Path(home) if home is not None else Path.home()
    projects_dir = home_dir / ".claude" / "projects"
    try:
        with os.scandir(projects_dir) as it:
            entries = sorted(it, key=lambda e: e.name)
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise OSError(f"cannot read {projects_dir}: {exc}") from exc

    discovered: list[DiscoveredProject] = []
    for entry in entries:
        try:
            if not entry.is_dir(follow_symlinks=False):
                continue
        except OSError:
            continue
        decoded = decode_claude_project_path(entry.name)
        if decoded is None:
            continue
        count, latest = _session_stats(entry.path)
        discovered.append(
            DiscoveredProject(
                path=decoded,
                name=os.path.basename(decoded.rstrip(os.sep)) or decoded,
                has_claude=_has_claude_md(decoded),
                last_active=latest,
                session_count=count,
            )
        )

    discovered.sort(key=lambda p: p.last_active or datetime.min, reverse=True)
    return discovered


def unique_alias(base: str, existing: Collection[str]) -> str:
    """Return ``base``, or ``base-2``, ``base-3``... if it is already taken."""
    if base not in existing:
        return base
    suffix = 2
    while f"{base}-{suffix}" in existing:
        suffix += 1
    return f"{base}-{suffix}"


def import_discovered_projects(
    projects: MutableMapping[str, ProjectEntry],
    discovered: Sequence[DiscoveredProject],
) -> tuple[int, int]:
    """Register discovered projects whose paths are new; return (added, skipped)."""
    known_paths = {entry.path for entry in projects.values()}
    added = skipped = 0
    for project in discovered:
        if project.path in known_paths:
            skipped += 1
            continue
        alias = unique_alias(project.name, projects)
        projects[alias] = ProjectEntry(path=project.path)
        known_paths.add(project.path)
        added += 1
    return added, skipped