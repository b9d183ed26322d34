"""Detector registry keyed by detection method."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import UnsupportedPlatformError

if TYPE_CHECKING:
    from ..appearance import DetectionMethod
    from ..config import Config
    from .protocol import DetectorStrategy


class DetectorRegistry:
    """
    Registry for detector classes.

    Each DetectionMethod maps to exactly one detector class. Registering a
    second class for the same method replaces the first.
    """

    _detectors: dict[DetectionMethod, type[DetectorStrategy]] = {}

    @classmethod
    def register(cls, detector_class: type[DetectorStrategy]) -> type[DetectorStrategy]:
        """Register a detector class (decorator-friendly)."""
        cls._detectors[detector_class.method] = detector_class
        return detector_class

    @classmethod
    def get(cls, method: DetectionMethod) -> type[DetectorStrategy] | None:
        """Get the detector class for a method."""
        return cls._detectors.get(method)

    @classmethod
    def create(cls, method: DetectionMethod, config: Config | None = None) -> DetectorStrategy:
        """
        Instantiate the detector for a method.

        Raises:
            UnsupportedPlatformError: if no detector is registered for it.
        """
        detector_class = cls._detectors.get(method)
        if detector_class is None:
            raise UnsupportedPlatformError(f"No detector registered for {method.value}")
        if config is None:
            return detector_class()
        return detector_class(timeout=config.query_timeout)

    @classmethod
    def list_detectors(cls) -> list[dict]:
        """List registered detectors."""
        return [
            {"method": method.value, "name": detector_class.name}
            for method, detector_class in cls._detectors.items()
        ]

    @classmethod
    def clear(cls) -> None:
        """Clear all registered detectors (for testing)."""
        cls._detectors.clear()
