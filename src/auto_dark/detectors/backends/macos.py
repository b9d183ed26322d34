"""macOS appearance detectors: in-process AppleScript and osascript."""

from __future__ import annotations

import threading

from ...appearance import Appearance, DetectionMethod, from_script_result
from ...command import DEFAULT_TIMEOUT, run_command
from ...errors import DetectionError
from ..registry import DetectorRegistry

APPEARANCE_SCRIPT = (
    'tell application "System Events" to tell appearance preferences to return dark mode'
)


@DetectorRegistry.register
class AppleScriptDetector:
    """
    Runs the appearance AppleScript in process via PyObjC's NSAppleScript.

    NSAppleScript cannot be interrupted, so each call runs on its own worker
    thread and query() gives up after the timeout. A script still running
    from an earlier query blocks new ones until it finishes; those fail
    with DetectionError too. Apple documents NSAppleScript as main-thread
    only. Hosts that hit problems off the main thread should force the
    osascript method.

    Requires: pip install pyobjc-framework-Cocoa
    """

    method = DetectionMethod.SCRIPTING
    name = "AppleScript"

    # One script execution at a time, across all instances
    _running = threading.Lock()

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self._timeout = timeout

    def query(self) -> Appearance:
        try:
            from Foundation import NSAppleScript
        except ImportError:
            raise DetectionError("PyObjC Foundation bridge not installed", self.method) from None

        if not self._running.acquire(timeout=self._timeout):
            raise DetectionError("Previous AppleScript call is still running", self.method)

        reply: dict = {}

        def execute():
            try:
                script = NSAppleScript.alloc().initWithSource_(APPEARANCE_SCRIPT)
                reply["result"] = script.executeAndReturnError_(None)
            except Exception as e:
                reply["exception"] = e
            finally:
                self._running.release()

        worker = threading.Thread(target=execute, name="auto-dark-applescript", daemon=True)
        worker.start()
        worker.join(self._timeout)
        if worker.is_alive():
            raise DetectionError(f"AppleScript timed out after {self._timeout:g}s", self.method)
        if "exception" in reply:
            raise DetectionError(f"AppleScript failed: {reply['exception']}", self.method) from reply["exception"]

        descriptor, error = reply["result"]
        if descriptor is None:
            message = error.get("NSAppleScriptErrorMessage") if error else None
            raise DetectionError(f"AppleScript failed: {message or error}", self.method)

        try:
            return from_script_result(descriptor.stringValue() or "")
        except DetectionError as e:
            e.method = self.method
            raise

    def event_source(self) -> None:
        return None


@DetectorRegistry.register
class OsascriptDetector:
    """
    Shells out to osascript. Slower than AppleScriptDetector and needs
    osascript on PATH, so only used when the native bridge is missing.
    """

    method = DetectionMethod.EXTERNAL_PROCESS
    name = "osascript"

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self._timeout = timeout

    def query(self) -> Appearance:
        try:
            output = run_command(["osascript", "-e", APPEARANCE_SCRIPT], timeout=self._timeout)
            return from_script_result(output)
        except DetectionError as e:
            e.method = self.method
            raise

    def event_source(self) -> None:
        return None
