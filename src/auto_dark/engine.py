"""Notification engines: timer polling and native push subscriptions.

Both engines share one interface so the controller does not care which
mode is running:

    subscription = engine.subscribe(on_appearance, on_error)
    ...
    engine.unsubscribe(subscription)

subscribe() delivers the current appearance once before returning, so the
startup state is applied without waiting for the first change or tick.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Protocol

from .config import DEFAULT_INTERVAL
from .errors import DetectionError
from .log import log

if TYPE_CHECKING:
    from .appearance import Appearance
    from .detectors.protocol import DetectorStrategy

AppearanceCallback = Callable[["Appearance"], None]
ErrorCallback = Callable[[DetectionError], None]


def _log_detection_error(error: DetectionError) -> None:
    log("error", "detection_failed", error=str(error))


class EngineMode(Enum):
    POLL = "poll"
    PUSH = "push"


class NativeEventSource(Protocol):
    """A native appearance-change event source (OS hook or bus signal)."""

    def subscribe(self, callback: AppearanceCallback, on_error: ErrorCallback | None = None) -> Any:
        """Register a listener and return an opaque handle."""
        ...

    def unsubscribe(self, handle: Any) -> None:
        """Release a handle returned by subscribe()."""
        ...


@dataclass
class Subscription:
    """Handle for a running timer or native subscription."""

    mode: EngineMode
    callback: AppearanceCallback
    on_error: ErrorCallback | None = None
    active: bool = True
    stop_event: threading.Event = field(default_factory=threading.Event)
    thread: threading.Thread | None = None
    source_handle: Any = None


class NotificationEngine(ABC):
    """Produces appearance samples for a subscriber until unsubscribed."""

    mode: EngineMode

    @abstractmethod
    def subscribe(self, callback: AppearanceCallback, on_error: ErrorCallback | None = None) -> Subscription:
        """
        Start delivering appearances to callback.

        Raises:
            DetectionError: if the initial sample or registration fails.
                Nothing is left running in that case.
        """

    @abstractmethod
    def unsubscribe(self, subscription: Subscription) -> None:
        """Stop delivery. Safe to call more than once."""


class PollingEngine(NotificationEngine):
    """
    Queries a detector on a fixed interval.

    The first query runs synchronously inside subscribe(); later ticks run
    on a daemon thread. A failed tick is reported to on_error and the next
    tick retries, the interval itself throttling retries.
    """

    mode = EngineMode.POLL

    def __init__(self, detector: DetectorStrategy, interval: float = DEFAULT_INTERVAL):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.detector = detector
        self.interval = interval

    def subscribe(self, callback: AppearanceCallback, on_error: ErrorCallback | None = None) -> Subscription:
        callback(self.detector.query())

        subscription = Subscription(self.mode, callback, on_error)
        subscription.thread = threading.Thread(
            target=self._run,
            args=(subscription,),
            name="auto-dark-poll",
            daemon=True,
        )
        subscription.thread.start()
        return subscription

    def tick(self, subscription: Subscription) -> None:
        """Run one poll for a subscription. No-op once unsubscribed."""
        if not subscription.active:
            return
        try:
            appearance = self.detector.query()
        except DetectionError as e:
            (subscription.on_error or _log_detection_error)(e)
            return
        except Exception as e:
            # The poll thread survives any detector failure
            error = DetectionError(f"{type(e).__name__}: {e}", getattr(self.detector, "method", None))
            error.__cause__ = e
            (subscription.on_error or _log_detection_error)(error)
            return
        if subscription.active:
            subscription.callback(appearance)

    def unsubscribe(self, subscription: Subscription) -> None:
        # An in-flight query is not joined; tick() drops its result
        subscription.active = False
        subscription.stop_event.set()

    def _run(self, subscription: Subscription) -> None:
        while not subscription.stop_event.wait(self.interval):
            self.tick(subscription)


class PushEngine(NotificationEngine):
    """
    Forwards events from a native source. Each event already carries the
    new appearance, so no extra query is made per event.
    """

    mode = EngineMode.PUSH

    def __init__(self, source: NativeEventSource, detector: DetectorStrategy | None = None):
        self.source = source
        self.detector = detector

    def subscribe(self, callback: AppearanceCallback, on_error: ErrorCallback | None = None) -> Subscription:
        subscription = Subscription(self.mode, callback, on_error)

        def forward(appearance: Appearance) -> None:
            if subscription.active:
                callback(appearance)

        subscription.source_handle = self.source.subscribe(forward, on_error or _log_detection_error)

        # Query after registering so a change in between is not missed
        if self.detector is not None:
            try:
                callback(self.detector.query())
            except DetectionError:
                self.unsubscribe(subscription)
                raise
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if not subscription.active:
            return
        subscription.active = False
        self.source.unsubscribe(subscription.source_handle)
