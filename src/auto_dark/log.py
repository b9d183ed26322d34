"""Event logging: pretty for a TTY, JSON lines otherwise.

Log lines go to stderr so stdout stays free for command output.
"""

from __future__ import annotations

import json
import sys
from datetime import datetime

from rich.console import Console

# Auto-detect if running in interactive terminal
IS_TTY = sys.stderr.isatty()

LEVEL_COLORS = {"debug": "dim", "info": "green", "warn": "yellow", "error": "red"}

_verbose = False
_console: Console | None = None


def set_verbose(enabled: bool) -> None:
    """Enable or disable debug lines."""
    global _verbose
    _verbose = enabled


def _get_console() -> Console:
    global _console
    if _console is None:
        _console = Console(stderr=True)
    return _console


def _log_json(level: str, msg: str, **kwargs) -> None:
    """Output a JSON log line (Loki-style)."""
    entry = {"ts": datetime.now().isoformat(), "level": level, "msg": msg, **kwargs}
    print(json.dumps(entry, default=str), file=sys.stderr, flush=True)


def _log_pretty(level: str, msg: str, **kwargs) -> None:
    """Output a human-readable log line with rich formatting."""
    console = _get_console()

    ts = datetime.now().strftime("%H:%M:%S")
    color = LEVEL_COLORS.get(level, "white")

    if msg == "watcher_started":
        console.print(
            f"[dim]{ts}[/] [bold {color}]watching[/] method={kwargs.get('method', '?')} "
            f"mode={kwargs.get('mode', '?')}"
        )
    elif msg == "transition":
        appearance = kwargs.get("appearance", "?")
        style = "bold white on black" if appearance == "dark" else "bold black on white"
        console.print(f"[dim]{ts}[/] [{style}] {appearance} [/] [dim]from {kwargs.get('previous', '?')}[/]")
    elif msg in ("detection_failed", "subscription_lost", "observer_failed"):
        console.print(f"[dim]{ts}[/] [{color}]{msg.replace('_', ' ')}[/] {kwargs.get('error', '?')}")
    else:
        fields = " ".join(f"[dim]{k}=[/]{v}" for k, v in kwargs.items())
        console.print(f"[dim]{ts}[/] [{color}]{msg}[/] {fields}".rstrip())


def log(level: str, msg: str, **kwargs) -> None:
    """Log an event - pretty for TTY, JSON for pipes. Debug only when verbose."""
    if level == "debug" and not _verbose:
        return
    if IS_TTY:
        _log_pretty(level, msg, **kwargs)
    else:
        _log_json(level, msg, **kwargs)
