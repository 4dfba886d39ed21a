"""Printing command results either as JSON documents or as plain text."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from typing import Any, Callable, NoReturn, Optional, TextIO


@dataclass
class Output:
    """Writes results and errors in the mode chosen by ``json_mode``."""

    json_mode: bool = False
    stdout: Optional[TextIO] = None
    stderr: Optional[TextIO] = None

    @property
    def _out(self) -> TextIO:
        return self.stdout if self.stdout is not None else sys.stdout

    @property
    def _err(self) -> TextIO:
        return self.stderr if self.stderr is not None else sys.stderr

    def emit(self, data: Any, text_fn: Callable[[], None]) -> None:
        """Print ``data`` as a JSON result, or call ``text_fn`` in text mode."""
        if not self.json_mode:
            text_fn()
            return
        result: dict[str, Any] = {"success": True}
        if data is not None:
            result["data"] = data
        try:
            rendered = json.dumps(result, indent=2)
        except (TypeError, ValueError) as exc:
            self.fail(exc)
        print(rendered, file=self._out)

    def fail(self, error: BaseException | str) -> NoReturn:
        """Report ``error`` and exit with status 1."""
        message = str(error)
        if self.json_mode:
            result: dict[str, Any] = {"success": False}
            if message:
                result["error"] = message
            print(json.dumps(result, indent=2), file=self._out)
        else:
            print(f"Error: {message}", file=self._err)
        raise SystemExit(1)