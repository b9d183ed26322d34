"""Detector strategy protocol."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..appearance import Appearance, DetectionMethod
    from ..engine import NativeEventSource


@runtime_checkable
class DetectorStrategy(Protocol):
    """
    Protocol for appearance detectors, one per OS mechanism.

    Detectors are stateless: query() may be called repeatedly and from
    several threads.
    """

    method: DetectionMethod
    name: str

    def query(self) -> Appearance:
        """Return the current appearance. Raises DetectionError on failure."""
        ...

    def event_source(self) -> NativeEventSource | None:
        """Return a push channel for appearance changes, or None to poll."""
        ...
