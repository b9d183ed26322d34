"""auto-dark: follow the system dark/light appearance."""

from .appearance import Appearance, DetectionMethod
from .config import Config, load_config
from .controller import Controller
from .errors import (
    AutoDarkError,
    ConfigError,
    DetectionError,
    SubscriptionError,
    UnsupportedPlatformError,
)
from .guard import UNKNOWN, Suppressed, Transition, TransitionGuard
from .resolver import StrategyResolver

__all__ = [
    "Appearance",
    "DetectionMethod",
    "Config",
    "load_config",
    "Controller",
    "AutoDarkError",
    "ConfigError",
    "DetectionError",
    "SubscriptionError",
    "UnsupportedPlatformError",
    "UNKNOWN",
    "Suppressed",
    "Transition",
    "TransitionGuard",
    "StrategyResolver",
]
