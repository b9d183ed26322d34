"""Freedesktop settings portal access through the D-Bus command line tools.

Reads use ``dbus-send``; change notifications come from a long-running
``dbus-monitor`` process whose output is parsed line by line.
"""

from __future__ import annotations

import re
import shutil
import subprocess
import threading
from dataclasses import dataclass, field
from typing import Callable

from .appearance import Appearance, from_portal_value
from .command import DEFAULT_TIMEOUT, run_command
from .errors import DetectionError, SubscriptionError
from .log import log

PORTAL_SERVICE = "org.freedesktop.portal.Desktop"
PORTAL_PATH = "/org/freedesktop/portal/desktop"
SETTINGS_INTERFACE = "org.freedesktop.portal.Settings"
APPEARANCE_NAMESPACE = "org.freedesktop.appearance"
COLOR_SCHEME_KEY = "color-scheme"

MATCH_RULE = f"type='signal',interface='{SETTINGS_INTERFACE}',member='SettingChanged'"

_UINT32_RE = re.compile(r"uint32\s+(\d+)")
_STRING_RE = re.compile(r'^string\s+"(.*)"$')
_MESSAGE_PREFIXES = ("signal ", "method call ", "method return ", "error ")


def parse_uint32(text: str) -> int:
    """Extract the uint32 from dbus-send/dbus-monitor variant output."""
    match = _UINT32_RE.search(text)
    if not match:
        raise DetectionError(f"No uint32 in portal reply: {text.strip()!r}")
    return int(match.group(1))


def has_bus_client() -> bool:
    """Check that the D-Bus command line tools are on PATH."""
    return shutil.which("dbus-send") is not None


def has_signal_monitor() -> bool:
    """Check that dbus-monitor, needed for push notifications, is on PATH."""
    return shutil.which("dbus-monitor") is not None


def read_color_scheme(timeout: float = DEFAULT_TIMEOUT) -> int:
    """Read the raw color-scheme value from the settings portal."""
    output = run_command(
        [
            "dbus-send",
            "--session",
            "--print-reply=literal",
            f"--dest={PORTAL_SERVICE}",
            PORTAL_PATH,
            f"{SETTINGS_INTERFACE}.Read",
            f"string:{APPEARANCE_NAMESPACE}",
            f"string:{COLOR_SCHEME_KEY}",
        ],
        timeout=timeout,
    )
    return parse_uint32(output)


def is_portal_registered(timeout: float = DEFAULT_TIMEOUT) -> bool:
    """Check whether the portal service is running or activatable on the session bus."""
    for member in ("ListNames", "ListActivatableNames"):
        try:
            output = run_command(
                [
                    "dbus-send",
                    "--session",
                    "--print-reply",
                    "--dest=org.freedesktop.DBus",
                    "/org/freedesktop/DBus",
                    f"org.freedesktop.DBus.{member}",
                ],
                timeout=timeout,
            )
        except DetectionError as e:
            log("debug", "probe_failed", probe=member, error=str(e))
            return False
        if f'"{PORTAL_SERVICE}"' in output:
            return True
    return False


@dataclass(frozen=True)
class SettingChanged:
    """One SettingChanged signal: namespace, key and the rendered variant."""

    namespace: str
    key: str
    value: str

    @property
    def is_color_scheme(self) -> bool:
        return self.namespace == APPEARANCE_NAMESPACE and self.key == COLOR_SCHEME_KEY


class SettingChangedParser:
    """
    Incremental parser for dbus-monitor output.

    A SettingChanged message is a header line followed by three argument
    lines: namespace string, key string, then the variant value. Multi-line
    variants only contribute their first line.
    """

    def __init__(self):
        self._args: list[str] | None = None

    def feed(self, line: str) -> SettingChanged | None:
        if line.startswith(_MESSAGE_PREFIXES):
            self._args = [] if "member=SettingChanged" in line else None
            return None

        stripped = line.strip()
        if self._args is None or not stripped:
            return None

        self._args.append(stripped)
        if len(self._args) < 3:
            return None

        namespace, key, value = self._args
        self._args = None
        return SettingChanged(_unquote(namespace), _unquote(key), value)


def _unquote(arg: str) -> str:
    match = _STRING_RE.match(arg)
    return match.group(1) if match else arg


def appearance_from_event(event: SettingChanged) -> Appearance | None:
    """Translate a color-scheme event; other settings return None."""
    if not event.is_color_scheme:
        return None
    return from_portal_value(parse_uint32(event.value))


@dataclass
class MonitorHandle:
    """A running dbus-monitor subscription."""

    process: subprocess.Popen
    thread: threading.Thread | None = None
    closed: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock)


class PortalSignalSource:
    """Push channel for portal color-scheme changes."""

    def __init__(self, popen: Callable[..., subprocess.Popen] = subprocess.Popen):
        self._popen = popen

    def subscribe(
        self,
        callback: Callable[[Appearance], None],
        on_error: Callable[[DetectionError], None] | None = None,
    ) -> MonitorHandle:
        try:
            process = self._popen(
                ["dbus-monitor", "--session", MATCH_RULE],
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            raise SubscriptionError(f"dbus-monitor failed to start: {e}") from e

        handle = MonitorHandle(process=process)
        handle.thread = threading.Thread(
            target=self._read_loop,
            args=(handle, callback, on_error),
            name="auto-dark-portal",
            daemon=True,
        )
        handle.thread.start()
        return handle

    def unsubscribe(self, handle: MonitorHandle) -> None:
        with handle.lock:
            if handle.closed:
                return
            handle.closed = True

        handle.process.terminate()
        try:
            handle.process.wait(timeout=2)
        except subprocess.TimeoutExpired:
            handle.process.kill()

    def _read_loop(
        self,
        handle: MonitorHandle,
        callback: Callable[[Appearance], None],
        on_error: Callable[[DetectionError], None] | None,
    ) -> None:
        failure = None
        try:
            self._forward(handle, callback, on_error)
        except Exception as e:
            failure = e

        with handle.lock:
            dropped = not handle.closed
        if dropped and failure is not None:
            # Nothing reads the pipe any more
            handle.process.terminate()
        returncode = handle.process.wait()

        if not dropped or on_error is None:
            return
        if failure is not None:
            error = SubscriptionError(f"dbus-monitor output unreadable: {failure}")
            error.__cause__ = failure
        else:
            error = SubscriptionError(f"dbus-monitor exited with status {returncode}")
        on_error(error)

    def _forward(
        self,
        handle: MonitorHandle,
        callback: Callable[[Appearance], None],
        on_error: Callable[[DetectionError], None] | None,
    ) -> None:
        parser = SettingChangedParser()
        for line in handle.process.stdout:
            event = parser.feed(line)
            if event is None:
                continue
            try:
                appearance = appearance_from_event(event)
            except DetectionError as e:
                if on_error is not None:
                    on_error(e)
                continue
            if appearance is not None:
                callback(appearance)
