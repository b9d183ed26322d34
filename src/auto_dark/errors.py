"""Exception types raised by auto-dark."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .appearance import DetectionMethod


class AutoDarkError(Exception):
    """Base class for all auto-dark errors."""


class DetectionError(AutoDarkError):
    """A single appearance query failed.

    Raised for malformed output, a missing command, a non-zero exit status,
    a bus error or a timeout.
    """

    def __init__(self, message: str, method: DetectionMethod | None = None):
        super().__init__(message)
        self.method = method


class SubscriptionError(DetectionError):
    """A push subscription could not be registered or was lost."""


class UnsupportedPlatformError(AutoDarkError):
    """No viable detection mechanism exists on this host."""


class ConfigError(AutoDarkError, ValueError):
    """Invalid configuration value or unreadable config file."""
