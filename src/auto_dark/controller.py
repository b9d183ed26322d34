"""Watcher controller: resolver -> engine -> guard -> apply."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Callable

from .appearance import Appearance, DetectionMethod
from .config import Config
from .detectors import DetectorRegistry
from .engine import NativeEventSource, NotificationEngine, PollingEngine, PushEngine, Subscription
from .errors import AutoDarkError, DetectionError, SubscriptionError
from .guard import Transition, TransitionGuard, Unknown, WatcherState
from .log import log
from .resolver import StrategyResolver

if TYPE_CHECKING:
    from .detectors.protocol import DetectorStrategy

ApplyCallback = Callable[[Appearance], None]
HookCallback = Callable[[], None]
ErrorHandler = Callable[[AutoDarkError], None]
DetectorFactory = Callable[[DetectionMethod, Config], "DetectorStrategy"]


def _callable_name(fn: Callable) -> str:
    return getattr(fn, "__qualname__", None) or repr(fn)


class Controller:
    """
    Watches the system appearance and calls apply() on every change.

    Lifecycle:
        start() resolves a detection method (unless one is forced), applies
        the current appearance immediately and then keeps watching, by
        polling or by native push notifications. stop() tears the engine
        down. Both are idempotent. The last applied appearance survives
        stop(), so a restart with unchanged OS state does not re-apply.

    Callbacks:
        On each transition apply(appearance) runs first, then the observers
        registered with add_observer() in order, then the on_dark()/on_light()
        hooks. A callback that raises is logged and skipped; the others still
        run.

    Threading:
        Engine callbacks may arrive on worker threads. Start, stop and guard
        updates are serialised by one re-entrant lock, so callbacks may call
        stop() themselves. Samples from a subscription that has since been
        stopped are discarded.

    Example:
        controller = Controller(lambda a: print("now", a))
        controller.start()
        ...
        controller.stop()
    """

    def __init__(
        self,
        apply: ApplyCallback | None = None,
        config: Config | None = None,
        *,
        resolver: StrategyResolver | None = None,
        detector_factory: DetectorFactory | None = None,
        native_source: NativeEventSource | None = None,
    ):
        self._config = config or Config()
        self._resolver = resolver or StrategyResolver(self._config)
        self._detector_factory = detector_factory or DetectorRegistry.create
        self._native_source = native_source

        self._apply = apply
        self._observers: list[ApplyCallback] = []
        self._dark_hooks: list[HookCallback] = []
        self._light_hooks: list[HookCallback] = []
        self._error_handlers: list[ErrorHandler] = []

        self._state = WatcherState()
        self._guard = TransitionGuard(self._state)
        self._lock = threading.RLock()
        self._generation = 0

        self._forced_method = self._config.forced_method
        self._method: DetectionMethod | None = None
        self._detector: DetectorStrategy | None = None
        self._engine: NotificationEngine | None = None
        self._subscription: Subscription | None = None

    # -- registration -------------------------------------------------------

    def add_observer(self, callback: ApplyCallback) -> None:
        """Call callback(appearance) after each transition, after apply()."""
        with self._lock:
            self._observers.append(callback)

    def remove_observer(self, callback: ApplyCallback) -> None:
        with self._lock:
            if callback in self._observers:
                self._observers.remove(callback)

    def on_dark(self, hook: HookCallback) -> None:
        """Run hook() whenever the system switches to dark."""
        with self._lock:
            self._dark_hooks.append(hook)

    def on_light(self, hook: HookCallback) -> None:
        """Run hook() whenever the system switches to light."""
        with self._lock:
            self._light_hooks.append(hook)

    def add_error_handler(self, handler: ErrorHandler) -> None:
        """Receive steady-state detection errors and lost subscriptions."""
        with self._lock:
            self._error_handlers.append(handler)

    # -- lifecycle ----------------------------------------------------------

    def start(self) -> None:
        """
        Start watching. No-op if already active.

        Raises:
            UnsupportedPlatformError: if no detection method is viable.
            DetectionError: if the initial detection or push registration
                fails. The controller stays inactive.
        """
        with self._lock:
            if self._state.active:
                return

            method = self._forced_method or self._resolver.resolve()
            detector = self._detector_factory(method, self._config)
            engine = self._build_engine(detector)

            self._method = method
            self._detector = detector
            self._state.active = True
            try:
                self._subscription = self._subscribe(engine)
            except AutoDarkError:
                self._state.active = False
                self._generation += 1
                raise
            self._engine = engine

            log("info", "watcher_started", method=method.value, mode=engine.mode.value)

    def stop(self) -> None:
        """Stop watching. No-op if not active."""
        with self._lock:
            if not self._state.active:
                return
            self._state.active = False
            self._generation += 1
            self._teardown()
            log("info", "watcher_stopped", method=self._method.value if self._method else None)

    def is_active(self) -> bool:
        return self._state.active

    def force_method(self, method: DetectionMethod | None) -> None:
        """
        Pin a detection method, bypassing probing; None restores probing.

        Takes effect on the next start().
        """
        with self._lock:
            self._forced_method = method

    def refresh(self) -> Appearance:
        """Detect now and apply on change, whether or not the watcher runs."""
        with self._lock:
            detector = self._detector
            if detector is None:
                method = self._forced_method or self._resolver.resolve()
                detector = self._detector_factory(method, self._config)

        appearance = detector.query()
        with self._lock:
            self._observe(appearance)
        return appearance

    # -- state --------------------------------------------------------------

    @property
    def method(self) -> DetectionMethod | None:
        """Method used by the current (or last) run."""
        return self._method

    @property
    def last_appearance(self) -> Appearance | Unknown:
        return self._state.last_appearance

    @property
    def engine(self) -> NotificationEngine | None:
        return self._engine

    @property
    def subscription(self) -> Subscription | None:
        return self._subscription

    # -- internals ----------------------------------------------------------

    def _build_engine(self, detector: DetectorStrategy) -> NotificationEngine:
        if self._native_source is not None:
            return PushEngine(self._native_source, detector)
        source = detector.event_source() if self._config.push_notifications else None
        if source is not None:
            return PushEngine(source, detector)
        return PollingEngine(detector, self._config.polling_interval)

    def _subscribe(self, engine: NotificationEngine) -> Subscription:
        self._generation += 1
        generation = self._generation
        return engine.subscribe(
            lambda appearance: self._on_sample(generation, appearance),
            lambda error: self._on_error(generation, error),
        )

    def _teardown(self) -> None:
        engine, subscription = self._engine, self._subscription
        self._engine = None
        self._subscription = None
        if engine is not None and subscription is not None:
            engine.unsubscribe(subscription)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self._state.active

    def _on_sample(self, generation: int, appearance: Appearance) -> None:
        with self._lock:
            if not self._is_current(generation):
                log("debug", "sample_discarded", appearance=appearance.value)
                return
            self._observe(appearance)

    def _observe(self, appearance: Appearance) -> None:
        result = self._guard.observe(appearance)
        if not isinstance(result, Transition):
            log("debug", "suppressed", appearance=appearance.value)
            return

        log("info", "transition", appearance=appearance.value, previous=str(result.previous))
        calls: list[tuple[Callable, tuple]] = []
        if self._apply is not None:
            calls.append((self._apply, (appearance,)))
        calls.extend((fn, (appearance,)) for fn in self._observers)
        hooks = self._dark_hooks if appearance.is_dark else self._light_hooks
        calls.extend((hook, ()) for hook in hooks)

        for fn, args in calls:
            try:
                fn(*args)
            except Exception as e:
                log("error", "observer_failed", observer=_callable_name(fn), error=str(e))

    def _on_error(self, generation: int, error: DetectionError) -> None:
        with self._lock:
            if not self._is_current(generation):
                return
            if isinstance(error, SubscriptionError):
                log("warn", "subscription_lost", error=str(error))
                self._notify_error(error)
                self._recover_subscription()
            else:
                log("error", "detection_failed", method=self._method.value if self._method else None, error=str(error))
                self._notify_error(error)

    def _recover_subscription(self) -> None:
        self._teardown()
        if not self._config.fallback_to_polling or self._detector is None:
            self._state.active = False
            self._generation += 1
            log("warn", "watcher_stopped", reason="subscription_lost")
            return

        engine = PollingEngine(self._detector, self._config.polling_interval)
        try:
            self._subscription = self._subscribe(engine)
        except DetectionError as e:
            self._state.active = False
            self._generation += 1
            log("error", "detection_failed", error=str(e))
            self._notify_error(e)
            return
        self._engine = engine
        log("info", "fallback_polling", interval=self._config.polling_interval)

    def _notify_error(self, error: AutoDarkError) -> None:
        for handler in list(self._error_handlers):
            try:
                handler(error)
            except Exception as e:
                log("error", "observer_failed", observer=_callable_name(handler), error=str(e))
