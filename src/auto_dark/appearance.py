"""Appearance values and the raw-signal mapping table."""

from __future__ import annotations

from enum import Enum

from .errors import ConfigError, DetectionError

# Canonical truthy/falsy strings returned by the appearance AppleScript
SCRIPT_TRUE = "true"
SCRIPT_FALSE = "false"

# org.freedesktop.appearance color-scheme values
PORTAL_NO_PREFERENCE = 0
PORTAL_PREFER_DARK = 1
PORTAL_PREFER_LIGHT = 2


class Appearance(Enum):
    """System appearance: dark or light. There is no third state."""

    DARK = "dark"
    LIGHT = "light"

    @property
    def is_dark(self) -> bool:
        return self is Appearance.DARK

    def __str__(self) -> str:
        return self.value


class DetectionMethod(Enum):
    """Which OS mechanism is used to obtain the appearance."""

    SCRIPTING = "applescript"  # in-process AppleScript (PyObjC)
    EXTERNAL_PROCESS = "osascript"  # shell out to osascript
    PORTAL = "dbus"  # freedesktop settings portal over D-Bus
    REGISTRY = "winreg"  # Windows AppsUseLightTheme registry value

    @classmethod
    def parse(cls, name: str) -> DetectionMethod:
        """
        Look up a method by value ("dbus") or member name ("PORTAL").

        Raises:
            ConfigError: if the name matches no method.
        """
        key = name.strip().lower()
        for method in cls:
            if key in (method.value, method.name.lower()):
                return method
        choices = ", ".join(m.value for m in cls)
        raise ConfigError(f"Unknown detection method {name!r} (choose from {choices})")


def from_script_result(text: str) -> Appearance:
    """Map AppleScript "dark mode" output to an Appearance."""
    result = text.strip()
    if result == SCRIPT_TRUE:
        return Appearance.DARK
    if result == SCRIPT_FALSE:
        return Appearance.LIGHT
    raise DetectionError(f"Unexpected AppleScript result: {text!r}")


def from_portal_value(value: int) -> Appearance:
    """
    Map a portal color-scheme value to an Appearance.

    1 means prefer-dark. 0 (no preference) and 2 (prefer-light) are both light.
    """
    if value == PORTAL_PREFER_DARK:
        return Appearance.DARK
    if value in (PORTAL_NO_PREFERENCE, PORTAL_PREFER_LIGHT):
        return Appearance.LIGHT
    raise DetectionError(f"Unexpected color-scheme value: {value!r}")


def from_registry_value(raw: str | int) -> Appearance:
    """
    Map an AppsUseLightTheme value to an Appearance.

    The registry stores "uses light theme", so 0 is dark and any nonzero
    value is light. Accepts ints or decimal/hex strings ("0", "0x1").
    """
    if isinstance(raw, bool):
        raise DetectionError(f"Unexpected AppsUseLightTheme value: {raw!r}")
    if isinstance(raw, int):
        value = raw
    else:
        try:
            value = int(raw.strip(), 0)
        except (ValueError, AttributeError):
            raise DetectionError(f"Unexpected AppsUseLightTheme value: {raw!r}") from None
    return Appearance.DARK if value == 0 else Appearance.LIGHT
