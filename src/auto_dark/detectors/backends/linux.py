"""Freedesktop settings portal detector."""

from __future__ import annotations

from ...appearance import Appearance, DetectionMethod, from_portal_value
from ...command import DEFAULT_TIMEOUT
from ...errors import DetectionError
from ...log import log
from ...portal import PortalSignalSource, has_signal_monitor, read_color_scheme
from ..registry import DetectorRegistry


@DetectorRegistry.register
class PortalDetector:
    """
    Reads org.freedesktop.appearance color-scheme from the settings portal.

    Works on any desktop that ships xdg-desktop-portal (GNOME, KDE, ...).
    Supports push notifications via the portal's SettingChanged signal
    when dbus-monitor is installed.
    """

    method = DetectionMethod.PORTAL
    name = "Settings portal (D-Bus)"

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self._timeout = timeout

    def query(self) -> Appearance:
        try:
            return from_portal_value(read_color_scheme(timeout=self._timeout))
        except DetectionError as e:
            e.method = self.method
            raise

    def event_source(self) -> PortalSignalSource | None:
        """Portal signals via dbus-monitor, or None (poll with dbus-send) when it is missing."""
        if not has_signal_monitor():
            log("debug", "push_unavailable", method=self.method.value, reason="dbus-monitor not found")
            return None
        return PortalSignalSource()
