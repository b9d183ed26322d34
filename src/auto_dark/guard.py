"""Transition guard: forwards only genuine appearance changes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .appearance import Appearance


class Unknown(Enum):
    """Sentinel type for "no appearance observed yet"."""

    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


UNKNOWN = Unknown.UNKNOWN


@dataclass
class WatcherState:
    """Last applied appearance and whether the watcher is running."""

    last_appearance: Appearance | Unknown = UNKNOWN
    active: bool = False


@dataclass(frozen=True)
class Transition:
    """The appearance changed; apply it."""

    appearance: Appearance
    previous: Appearance | Unknown


@dataclass(frozen=True)
class Suppressed:
    """The appearance is unchanged; do nothing."""

    appearance: Appearance


class TransitionGuard:
    """
    State machine over {UNKNOWN, DARK, LIGHT}, starting at UNKNOWN.

    observe() moves to the new appearance and returns Transition when it
    differs from the current state, otherwise returns Suppressed and leaves
    the state alone.
    """

    def __init__(self, state: WatcherState | None = None):
        self.state = state if state is not None else WatcherState()

    @property
    def current(self) -> Appearance | Unknown:
        return self.state.last_appearance

    def observe(self, appearance: Appearance) -> Transition | Suppressed:
        previous = self.state.last_appearance
        if appearance == previous:
            return Suppressed(appearance)
        self.state.last_appearance = appearance
        return Transition(appearance, previous)

    def reset(self) -> None:
        """Forget the last appearance so the next observation transitions."""
        self.state.last_appearance = UNKNOWN
