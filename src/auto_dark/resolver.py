"""Detection method resolution via feature probing."""

from __future__ import annotations

import importlib.util
import shutil
import sys
from typing import Protocol

from . import portal
from .appearance import DetectionMethod
from .command import DEFAULT_TIMEOUT
from .config import Config
from .errors import UnsupportedPlatformError
from .log import log

DARWIN = "darwin"
LINUX = "linux"
WINDOWS = "windows"

# Freedesktop hosts where the settings portal may be present
_FREEDESKTOP_PREFIXES = ("linux", "freebsd", "openbsd", "netbsd", "dragonfly")
_WINDOWS_PLATFORMS = ("win32", "cygwin")


def platform_family(platform: str) -> str | None:
    """Map a sys.platform value to darwin/linux/windows, or None."""
    if platform == "darwin":
        return DARWIN
    if platform.startswith(_FREEDESKTOP_PREFIXES):
        return LINUX
    if platform in _WINDOWS_PLATFORMS:
        return WINDOWS
    return None


class Probes(Protocol):
    """Environment probes consulted by the resolver."""

    platform: str

    def has_native_scripting(self) -> bool: ...

    def has_external_interpreter(self) -> bool: ...

    def has_bus_client(self) -> bool: ...

    def portal_registered(self) -> bool: ...


class SystemProbes:
    """Probes against the running host. Each probe is evaluated lazily."""

    def __init__(self, platform: str | None = None, timeout: float = DEFAULT_TIMEOUT):
        self.platform = platform or sys.platform
        self._timeout = timeout

    def has_native_scripting(self) -> bool:
        """PyObjC's Foundation bridge exposes NSAppleScript."""
        return importlib.util.find_spec("Foundation") is not None

    def has_external_interpreter(self) -> bool:
        return shutil.which("osascript") is not None

    def has_bus_client(self) -> bool:
        return portal.has_bus_client()

    def portal_registered(self) -> bool:
        return portal.is_portal_registered(timeout=self._timeout)


class StrategyResolver:
    """
    Picks the detection method for this host.

    Probes run in fixed priority order and the first match wins:

    1. macOS with the native scripting bridge -> SCRIPTING
    2. macOS with osascript allowed by config -> EXTERNAL_PROCESS
    3. Freedesktop host with a bus client and the portal service -> PORTAL
    4. Windows -> REGISTRY
    """

    def __init__(self, config: Config | None = None, probes: Probes | None = None):
        self._config = config or Config()
        self._probes = probes

    @property
    def probes(self) -> Probes:
        if self._probes is None:
            self._probes = SystemProbes(timeout=self._config.query_timeout)
        return self._probes

    def resolve(self) -> DetectionMethod:
        """
        Return the detection method to use.

        Raises:
            UnsupportedPlatformError: if no mechanism is viable.
        """
        probes = self.probes
        family = platform_family(probes.platform)
        method = None

        if family == DARWIN:
            if probes.has_native_scripting():
                method = DetectionMethod.SCRIPTING
            elif self._config.allow_external_process and probes.has_external_interpreter():
                method = DetectionMethod.EXTERNAL_PROCESS
        elif family == LINUX:
            if probes.has_bus_client() and probes.portal_registered():
                method = DetectionMethod.PORTAL
        elif family == WINDOWS:
            method = DetectionMethod.REGISTRY

        if method is None:
            raise UnsupportedPlatformError(f"No viable detection mechanism on {probes.platform}")

        log("info", "method_resolved", method=method.value, platform=probes.platform)
        return method
