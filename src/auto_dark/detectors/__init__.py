"""Appearance detector strategies, one per OS mechanism."""

from __future__ import annotations

from .backends import AppleScriptDetector, OsascriptDetector, PortalDetector, RegistryDetector
from .protocol import DetectorStrategy
from .registry import DetectorRegistry

__all__ = [
    "AppleScriptDetector",
    "DetectorRegistry",
    "DetectorStrategy",
    "OsascriptDetector",
    "PortalDetector",
    "RegistryDetector",
]
