"""Links between projects and the context summaries built from them."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import MutableMapping, Optional

_SUMMARY_LIMIT = 500


class LinkError(ValueError):
    """A project link could not be created, removed or resolved."""


@dataclass
class ProjectLink:
    """A relationship from one project to another."""

    name: str
    role: str = ""
    auto_inject_paths: list[str] = field(default_factory=list)


@dataclass
class ProjectEntry:
    """A registered project and its links."""

    path: str
    links: list[ProjectLink] = field(default_factory=list)


def link_project(
    projects: MutableMapping[str, ProjectEntry],
    project_name: str,
    linked_project: str,
    role: str = "",
) -> ProjectLink:
    """Link ``project_name`` to ``linked_project`` and return the new link."""
    entry = projects.get(project_name)
    if entry is None:
        raise LinkError(f"project {project_name!r} not found")
    if linked_project not in projects:
        raise LinkError(f"linked project {linked_project!r} not found")
    if any(link.name == linked_project for link in entry.links):
        raise LinkError(f"project {project_name!r} is already linked to {linked_project!r}")
    link = ProjectLink(name=linked_project, role=role)
    entry.links.append(link)
    return link


def unlink_project(
    projects: MutableMapping[str, ProjectEntry],
    project_name: str,
    linked_project: str,
) -> None:
    """Remove the link from ``project_name`` to ``linked_project``."""
    entry = projects.get(project_name)
    if entry is None:
        raise LinkError(f"project {project_name!r} not found")
    remaining = [link for link in entry.links if link.name != linked_project]
    if len(remaining) == len(entry.links):
        raise LinkError(f"project {project_name!r} is not linked to {linked_project!r}")
    entry.links = remaining


def _read_text(path: str) -> Optional[str]:
    try:
        return Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None


def linked_projects_summary(
    projects: MutableMapping[str, ProjectEntry], project_name: str
) -> str:
    """Build a Markdown summary of the projects linked to ``project_name``."""
    entry = projects.get(project_name)
    if entry is None:
        raise LinkError(f"project {project_name!r} not found")
    if not entry.links:
        return ""

    parts = [f"# Linked Projects for {project_name}\n\n"]
    for link in entry.links:
        linked = projects.get(link.name)
        if linked is None:
            continue
        heading = f"## {link.name}"
        if link.role:
            heading += f" ({link.role})"
        parts.append(heading + "\n")
        parts.append(f"Path: {linked.path}\n")

        for rel_path in link.auto_inject_paths:
            content = _read_text(os.path.normpath(f"{linked.path}{os.sep}{rel_path}"))
            if content is None:
                continue
            parts.append(f"\n### {rel_path}\n```\n{content.strip()}\n```\n")

        claude_md = _read_text(os.path.join(linked.path, "CLAUDE.md"))
        if claude_md is not None:
            summary = claude_md.strip()
            if len(summary) > _SUMMARY_LIMIT:
                summary = summary[:_SUMMARY_LIMIT] + "..."
            parts.append(f"\n### CLAUDE.md (summary)\n{summary}\n")
        parts.append("\n")
    return "".join(parts)


def linked_context_args(
    projects: MutableMapping[str, ProjectEntry], project_name: str
) -> Optional[list[str]]:
    """Extra CLI arguments carrying the linked-project summary, or None."""
    try:
        summary = linked_projects_summary(projects, project_name)
    except LinkError:
        return None
    if not summary:
        return None
    return ["--append-system-prompt", summary]