# codesctl

A small library of helpers for working with Claude Code projects from Python.
It needs nothing beyond the standard library.

## What is in it

- `codesctl.context`: `ProjectEntry` and `ProjectLink` records, with
  `link_project`, `unlink_project`, `linked_projects_summary` and
  `linked_context_args`. They work on a mapping of project name to
  `ProjectEntry` that you pass in. The summary is Markdown. For each linked
  project it gives the path, the contents of the link's `auto_inject_paths`
  and the first 500 characters of its `CLAUDE.md`. `linked_context_args`
  returns `["--append-system-prompt", summary]`, or `None` when there is
  nothing to add. Problems raise `LinkError`.
- `codesctl.scan`: `scan_claude_projects(home)` reads
  `<home>/.claude/projects/`. It decodes each encoded directory name, such as
  `-Users-me-code-my-project`, back into an existing path, with literal
  hyphens checked against the filesystem. It returns `DiscoveredProject`
  records, most recently active first. `decode_claude_project_path`,
  `unique_alias` (`name`, `name-2`, `name-3`, ...) and
  `import_discovered_projects(projects, discovered)` are also available. The
  last adds new paths to your mapping and returns `(added, skipped)`.
- `codesctl.notify`: `Notification`, the `Notifier` base class,
  `MultiNotifier` and platform notifiers. `DarwinNotifier` uses `osascript`,
  `LinuxNotifier` uses `notify-send`, `WindowsNotifier` uses `powershell` and
  `NoopNotifier` does nothing. `desktop_notifier(platform)` picks one.
  `MultiNotifier` tries every notifier, then re-raises the first failure.
- `codesctl.webhook`: `WebhookNotifier(url, format)` POSTs JSON in one of two
  formats:
  - `"slack"` (the default) sends `{"text": "title: message"}`.
  - `"feishu"` sends `{"msg_type": "text", "content": {"text": ...}}`.

  It raises `WebhookError` on connection failures and on any status of 300 or
  above.
- `codesctl.monitor`: `NotificationMonitor` polls a directory for `*.json`
  task notifications. The directory defaults to `~/.codes/notifications`. It
  queues each file's `TaskNotification` once, up to 100 pending, and passes it
  to an optional `on_notification` callback. Use `drain()` to fetch and clear
  the queue.
  - `ensure_running()` starts a background thread that polls every 3 seconds,
    and `stop()` ends it.
  - `poll()` does a single scan.
  - `cleanup()` forgets files that have disappeared and deletes files that
    have been left for more than 2 minutes.

  Files are otherwise left on disk for other readers.
- `codesctl.ssh`: `RemoteHost` and wrappers around the `ssh` and `scp`
  programs. The wrappers are `run_ssh`, `run_ssh_with_agent`,
  `run_ssh_interactive`, `copy_to_remote`, `check_connection` and
  `list_remote_dir`. Failures raise `RemoteError`.
- `codesctl.install`: `check_remote_status(host)` returns a `RemoteStatus`
  with the host's OS, architecture and installed tools. `normalize_os` and
  `normalize_arch` map `uname` output to release names.
  - `install_on_remote(host)` downloads the latest release into `~/bin` on the
    host. It reads the release endpoints from the environment variables
    `CODES_RELEASE_API` and `CODES_RELEASE_DOWNLOAD`, and raises `RemoteError`
    if they are unset.
  - `install_claude_on_remote(host)` installs the Claude CLI with npm. When
    npm is missing, it first installs Node.js with nvm, using the installer
    URL from `CODES_NVM_INSTALLER`.
- `codesctl.status_cache`: `StatusCache(path)` keeps a JSON file of
  `RemoteStatus` per host. The file defaults to `~/.codes/remote-status.json`.
  It has `load`, `save`, `update` and `delete` methods.
- `codesctl.output`: `Output(json_mode=...)`. `emit(data, text_fn)` prints
  `{"success": true, "data": ...}` in JSON mode, and otherwise calls
  `text_fn`. `fail(error)` reports the error and raises `SystemExit(1)`.

## Installation

```
pip install .
```

## Examples

Send a notification to the desktop and to a Slack webhook:

```python
import sys
from codesctl.notify import MultiNotifier, Notification, desktop_notifier
from codesctl.webhook import WebhookNotifier

notifier = MultiNotifier(
    desktop_notifier(sys.platform),
    WebhookNotifier("https://hooks.example.com/incoming", "slack"),
)
notifier.send(Notification(title="task done", message="build passed"))
```

Find projects that Claude has already worked in and register them:

```python
from pathlib import Path
from codesctl.scan import import_discovered_projects, scan_claude_projects

projects = {}
found = scan_claude_projects(Path.home())
added, skipped = import_discovered_projects(projects, found)
```

Check what is installed on a remote host and remember it:

```python
from codesctl.ssh import RemoteHost
from codesctl.install import check_remote_status
from codesctl.status_cache import StatusCache

status = check_remote_status(RemoteHost(name="box", host="box.example.com", user="dev"))
StatusCache().update("box", status)
```

## What it does not do

- There is no command-line program. Everything here is called from Python.
- It keeps no configuration file of projects, profiles or remotes. Project
  and link functions change the mapping you pass in, and saving that mapping
  is up to you.
- It runs no server. The notification monitor only queues notifications and
  calls your callback.
- It does not start agents or manage teams and tasks.

## Running the tests

```
pip install .[test]
pytest
```