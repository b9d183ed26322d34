"""Windows registry detector."""

from __future__ import annotations

import re

from ...appearance import Appearance, DetectionMethod, from_registry_value
from ...command import DEFAULT_TIMEOUT, run_command
from ...errors import DetectionError
from ..registry import DetectorRegistry

PERSONALIZE_KEY = r"HKCU\Software\Microsoft\Windows\CurrentVersion\Themes\Personalize"
VALUE_NAME = "AppsUseLightTheme"

_DWORD_RE = re.compile(rf"{VALUE_NAME}\s+REG_DWORD\s+(0x[0-9a-fA-F]+|\d+)")


def parse_reg_query(output: str) -> str:
    """Pull the AppsUseLightTheme data out of `reg query` output."""
    match = _DWORD_RE.search(output)
    if not match:
        raise DetectionError(f"{VALUE_NAME} not found in reg output: {output.strip()!r}")
    return match.group(1)


@DetectorRegistry.register
class RegistryDetector:
    """
    Reads AppsUseLightTheme with `reg query`.

    Note the polarity: the value answers "use light theme?", so 0 is dark.
    """

    method = DetectionMethod.REGISTRY
    name = "Windows registry"

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self._timeout = timeout

    def query(self) -> Appearance:
        try:
            output = run_command(["reg", "query", PERSONALIZE_KEY, "/v", VALUE_NAME], timeout=self._timeout)
            return from_registry_value(parse_reg_query(output))
        except DetectionError as e:
            e.method = self.method
            raise

    def event_source(self) -> None:
        return None
