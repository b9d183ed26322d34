"""Shared pytest fixtures for auto-dark tests."""

from __future__ import annotations

import subprocess
from collections.abc import Iterable

import pytest

from auto_dark.appearance import Appearance, DetectionMethod
from auto_dark.errors import DetectionError, SubscriptionError

# =============================================================================
# Fakes
# =============================================================================

class FakeDetector:
    """Detector returning a scripted sequence; the last item repeats."""

    name = "fake"

    def __init__(self, results: Iterable[Appearance | Exception], method=DetectionMethod.REGISTRY, source=None):
        self.results = list(results)
        self.method = method
        self.calls = 0
        self._source = source

    def query(self) -> Appearance:
        index = min(self.calls, len(self.results) - 1)
        self.calls += 1
        result = self.results[index]
        if isinstance(result, Exception):
            raise result
        return result

    def event_source(self):
        return self._source


class FakeProbes:
    """Probe results for the resolver, counting every probe call."""

    def __init__(
        self,
        platform: str = "linux",
        native_scripting: bool = False,
        external_interpreter: bool = False,
        bus_client: bool = False,
        portal: bool = False,
    ):
        self.platform = platform
        self._results = {
            "native_scripting": native_scripting,
            "external_interpreter": external_interpreter,
            "bus_client": bus_client,
            "portal": portal,
        }
        self.calls: list[str] = []

    def _probe(self, name: str) -> bool:
        self.calls.append(name)
        return self._results[name]

    def has_native_scripting(self) -> bool:
        return self._probe("native_scripting")

    def has_external_interpreter(self) -> bool:
        return self._probe("external_interpreter")

    def has_bus_client(self) -> bool:
        return self._probe("bus_client")

    def portal_registered(self) -> bool:
        return self._probe("portal")


class FakeEventSource:
    """Native event source driven by the test via emit() / fail()."""

    def __init__(self, fail_subscribe: bool = False):
        self.fail_subscribe = fail_subscribe
        self.listeners: dict[int, tuple] = {}
        self.subscribe_calls = 0
        self.unsubscribe_calls = 0
        self._next = 0

    def subscribe(self, callback, on_error=None):
        self.subscribe_calls += 1
        if self.fail_subscribe:
            raise SubscriptionError("bus unavailable")
        self._next += 1
        self.listeners[self._next] = (callback, on_error)
        return self._next

    def unsubscribe(self, handle):
        self.unsubscribe_calls += 1
        self.listeners.pop(handle, None)

    def emit(self, appearance: Appearance) -> None:
        for callback, _ in list(self.listeners.values()):
            callback(appearance)

    def fail(self, error: DetectionError) -> None:
        for _, on_error in list(self.listeners.values()):
            if on_error is not None:
                on_error(error)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def make_detector():
    """Factory for FakeDetector instances."""
    return FakeDetector


@pytest.fixture
def make_probes():
    """Factory for FakeProbes instances."""
    return FakeProbes


@pytest.fixture
def make_event_source():
    """Factory for FakeEventSource instances."""
    return FakeEventSource


@pytest.fixture
def event_source():
    """A fresh FakeEventSource."""
    return FakeEventSource()


@pytest.fixture
def completed():
    """Build a CompletedProcess for patched subprocess.run calls."""

    def _completed(stdout: str = "", returncode: int = 0, stderr: str = ""):
        return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)

    return _completed
