"""Terminal output for pipegen commands."""

from __future__ import annotations

import sys
import traceback
from typing import Optional, Sequence


def _err(line: str = "") -> None:
    print(line, file=sys.stderr)


class Console:
    """
    Everything the CLI and the lifecycle manager print goes through here.

    Results go to stdout so `pipegen generate` can be piped into a file;
    warnings, errors and debug lines go to stderr.
    """

    def __init__(self, debug: bool = False):
        self.debug = debug

    # ---- results (stdout) ----

    def print_summary(self, project: str, architecture: str, deploy: str) -> None:
        print(f"Descriptor OK: {project} ({architecture}, deploy={deploy})")

    def print_plan(self, levels: Sequence[Sequence[str]]) -> None:
        """Print the job graph as stages of jobs that can run side by side."""
        print("\nJOB PLAN")
        for n, level in enumerate(levels, start=1):
            print(f"  stage {n}: {', '.join(level)}")

    def print_toolchain(self, tid: str, action: str, default: Optional[str], aliases: Sequence[str]) -> None:
        print(f"{tid} ({action}, default {default or '-'}): {', '.join(aliases)}")

    def print_written(self, path: str) -> None:
        print(f"WROTE: {path}")

    def print_info(self, message: str) -> None:
        print(message)

    # ---- diagnostics (stderr) ----

    def print_warning(self, kind: str, message: str) -> None:
        _err(f"WARNING: {kind}: {message}")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print a structured error block.

        Args:
            title: one-line headline
            message: what went wrong
            details: extra `key: value` lines, indented
            suggestion: how to fix it, printed after a blank line
        """
        _err()
        _err(f"ERROR: {title}")
        _err(message)
        for line in details or ():
            _err(f"  {line}")
        if suggestion:
            _err()
            _err(suggestion)

    def print_exception(self, exc: BaseException) -> None:
        if self.debug:
            traceback.print_exception(type(exc), exc, exc.__traceback__, file=sys.stderr)
        else:
            _err(f"Error: {exc}")

    def print_debug(self, message: str) -> None:
        if self.debug:
            _err(f"[DEBUG] {message}")


_console: Optional[Console] = None


def get_console() -> Console:
    """Process-wide console; a plain one until the CLI installs its own."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    global _console
    _console = console
