"""
Timestamped diagnostic output on stderr.

Every backend collaborator reports through `debug_print`; verbose lines are
only emitted once `set_debug(True)` has been called (the `--debug` flag).
Warnings are always written.
"""

import sys
from datetime import datetime


_debug_enabled: bool = False


def set_debug(enabled: bool):
    """Enable or disable verbose diagnostic output."""
    global _debug_enabled
    _debug_enabled = enabled


def is_debug() -> bool:
    return _debug_enabled


def debug_print(tag: str, msg: str) -> None:
    if not _debug_enabled:
        return
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] {tag}: {msg}", file=sys.stderr)


def warn_print(tag: str, msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] {tag}: WARNING: {msg}", file=sys.stderr)
