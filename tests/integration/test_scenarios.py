"""End-to-end watcher scenarios with simulated hosts."""

from __future__ import annotations

import io
import threading
from unittest.mock import patch

import pytest

from auto_dark.appearance import Appearance, DetectionMethod
from auto_dark.config import Config
from auto_dark.controller import Controller
from auto_dark.detectors import DetectorRegistry, PortalDetector, RegistryDetector
from auto_dark.errors import UnsupportedPlatformError
from auto_dark.portal import PortalSignalSource
from auto_dark.resolver import StrategyResolver

DARK = Appearance.DARK
LIGHT = Appearance.LIGHT

HEADER = (
    "signal time=1700000000.000000 sender=:1.12 -> destination=(null destination) serial=77 "
    "path=/org/freedesktop/portal/desktop; interface=org.freedesktop.portal.Settings; member=SettingChanged\n"
)


def setting_changed(namespace: str, key: str, value: str) -> str:
    return HEADER + f'   string "{namespace}"\n   string "{key}"\n   variant       {value}\n'


class ScriptedMonitor:
    """dbus-monitor stand-in: the test feeds output lines, terminate() ends the stream."""

    def __init__(self):
        self._lines: list[str] = []
        self._cond = threading.Condition()
        self._done = False
        self.returncode = None
        self.stdout = self._read()

    def feed(self, text: str) -> None:
        with self._cond:
            self._lines.extend(io.StringIO(text))
            self._cond.notify_all()

    def _read(self):
        while True:
            with self._cond:
                self._cond.wait_for(lambda: self._lines or self._done, timeout=5)
                if not self._lines:
                    return
                line = self._lines.pop(0)
            yield line

    def terminate(self):
        with self._cond:
            self._done = True
            self.returncode = -15
            self._cond.notify_all()

    def wait(self, timeout=None):
        return self.returncode

    def kill(self):
        self.terminate()


def test_scenario_a_polling_applies_only_changes(make_detector, make_probes):
    """Poll mode, ticks 0-4 return D, D, L, L, D -> apply(D), apply(L), apply(D)."""
    config = Config(polling_interval=5)
    detector = make_detector([DARK, DARK, LIGHT, LIGHT, DARK])
    applied = []
    controller = Controller(
        applied.append,
        config,
        resolver=StrategyResolver(config, make_probes("win32")),
        detector_factory=lambda method, cfg: detector,
    )

    controller.start()  # tick 0
    try:
        engine, subscription = controller.engine, controller.subscription
        assert engine.interval == 5
        for _ in range(4):  # ticks 1-4
            engine.tick(subscription)
    finally:
        controller.stop()

    assert detector.calls == 5
    assert applied == [DARK, LIGHT, DARK]


def test_scenario_b_push_filters_to_color_scheme(completed, make_probes):
    """Push mode: unrelated keys apply nothing; color-scheme 1 applies dark once."""
    monitor = ScriptedMonitor()
    config = Config(polling_interval=5)
    probes = make_probes("linux", bus_client=True, portal=True)

    class ScriptedPortal(PortalDetector):
        def event_source(self):
            return PortalSignalSource(popen=lambda *a, **kw: monitor)

    applied = []
    controller = Controller(
        applied.append,
        config,
        resolver=StrategyResolver(config, probes),
        detector_factory=lambda method, cfg: ScriptedPortal(timeout=cfg.query_timeout),
    )

    light_reply = completed("   variant       variant          uint32 0\n")
    with patch("auto_dark.command.subprocess.run", return_value=light_reply):
        controller.start()
    assert controller.method is DetectionMethod.PORTAL
    assert applied == [LIGHT]

    dark_seen = threading.Event()
    controller.on_dark(dark_seen.set)

    monitor.feed(setting_changed("org.gnome.desktop.interface", "font-name", 'string "Cantarell 11"'))
    monitor.feed(setting_changed("org.freedesktop.appearance", "accent-color", "struct {\n      double 0.2\n   }"))
    monitor.feed(setting_changed("org.freedesktop.appearance", "color-scheme", "uint32 1"))
    assert dark_seen.wait(timeout=5)

    handle = controller.subscription.source_handle
    controller.stop()
    handle.thread.join(timeout=5)

    assert applied == [LIGHT, DARK]


def test_scenario_c_unsupported_platform(make_probes):
    """No OS family matches and nothing is forced: start() fails, watcher stays inactive."""
    config = Config()
    controller = Controller(lambda a: None, config, resolver=StrategyResolver(config, make_probes("sunos5")))
    with pytest.raises(UnsupportedPlatformError):
        controller.start()
    assert controller.is_active() is False


def test_scenario_d_forced_registry_on_linux(completed, make_probes):
    """A forced registry method bypasses probing on a non-Windows host."""
    config = Config(polling_interval=3600, forced_method=DetectionMethod.REGISTRY)
    probes = make_probes("linux", bus_client=True, portal=True)
    created = []

    def factory(method, cfg):
        detector = DetectorRegistry.create(method, cfg)
        created.append(detector)
        return detector

    applied = []
    controller = Controller(applied.append, config, resolver=StrategyResolver(config, probes), detector_factory=factory)

    reg_output = completed(
        "\nHKEY_CURRENT_USER\\Software\\Microsoft\\Windows\\CurrentVersion\\Themes\\Personalize\n"
        "    AppsUseLightTheme    REG_DWORD    0x0\n\n"
    )
    with patch("auto_dark.command.subprocess.run", return_value=reg_output) as run:
        controller.start()
        controller.stop()

    assert probes.calls == []
    assert isinstance(created[0], RegistryDetector)
    assert run.call_args.args[0][:2] == ["reg", "query"]
    assert applied == [DARK]
