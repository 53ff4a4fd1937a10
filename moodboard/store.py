"""
State containers for the Moodboard app.

``MoodState`` owns the current mood, the per-mood tally and the recent
selections. ``ThemeState`` owns the dark/light flag. Both notify their
subscribers synchronously, exactly once per mutation, and expose read-only
views so the only way to change them is through their own methods.
"""

import logging
import random
from collections.abc import Callable, Mapping
from types import MappingProxyType

from .models import (
    Mood,
    asset_for,
    base_color_for,
    gradient_for,
    subtitle_for,
    title_for,
)

HISTORY_LIMIT = 3

LOG = logging.getLogger(__name__)

Listener = Callable[[], None]


class ReentrantMutationError(RuntimeError):
    """Raised when a listener mutates the container that is notifying it."""


class Observable:
    """
    Minimal synchronous change notifier.

    Listeners take no arguments; they re-read whatever state they need.
    """

    def __init__(self) -> None:
        # Keyed by a per-registration token, in subscription order
        self._listeners: dict[object, Listener] = {}
        self._notifying = False

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register ``listener`` to run after every mutation.

        The same callable may be registered more than once; each registration
        is notified and removed independently.

        Returns:
            A callable that removes this registration. Calling it twice is a no-op.
        """
        token = object()
        self._listeners[token] = listener

        def unsubscribe() -> None:
            self._listeners.pop(token, None)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _guard_mutation(self) -> None:
        if self._notifying:
            raise ReentrantMutationError(
                f"{type(self).__name__} cannot be mutated from one of its listeners"
            )

    def _notify(self) -> None:
        """
        Call every listener, even when an earlier one raises.

        Failures are logged as they happen and the first one is re-raised once
        all listeners have run.
        """
        first_error: Exception | None = None
        self._notifying = True
        try:
            # Copy so listeners may unsubscribe while being notified
            for listener in list(self._listeners.values()):
                try:
                    listener()
                except Exception as e:
                    LOG.exception("%s listener failed", type(self).__name__)
                    if first_error is None:
                        first_error = e
        finally:
            self._notifying = False

        if first_error is not None:
            raise first_error


class MoodState(Observable):
    """
    Single source of truth for the mood selection and its statistics.

    Starts on ``Mood.HAPPY`` with every counter at zero and an empty history.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        super().__init__()
        self._rng = rng or random.Random()
        self._current = Mood.HAPPY
        self._counts: dict[Mood, int] = {mood: 0 for mood in Mood}
        self._history: list[Mood] = []

    @property
    def current(self) -> Mood:
        return self._current

    @property
    def counts(self) -> Mapping[Mood, int]:
        """Read-only snapshot of how often each mood was selected."""
        return MappingProxyType(dict(self._counts))

    @property
    def history(self) -> tuple[Mood, ...]:
        """Recent selections, most recent first."""
        return tuple(self._history)

    def set_mood(self, mood: Mood) -> None:
        """
        Select ``mood`` and notify all listeners once.

        Args:
            mood: A Mood, or its string value

        Raises:
            ValueError: If ``mood`` is not one of the Mood values
        """
        mood = Mood(mood)
        self._guard_mutation()

        self._current = mood
        self._counts[mood] += 1
        self._history.insert(0, mood)
        if len(self._history) > HISTORY_LIMIT:
            self._history.pop()

        LOG.debug("Mood set to %s (count=%d)", mood.value, self._counts[mood])
        self._notify()

    def randomize(self) -> Mood:
        """Select a mood uniformly at random and return it."""
        mood = self._rng.choice(list(Mood))
        self.set_mood(mood)
        return mood

    # Derived display attributes for the current mood

    @property
    def asset(self) -> str:
        return asset_for(self._current)

    @property
    def title(self) -> str:
        return title_for(self._current)

    @property
    def subtitle(self) -> str:
        return subtitle_for(self._current)

    @property
    def base_color(self) -> str:
        return base_color_for(self._current)

    @property
    def gradient(self) -> tuple[str, str, str]:
        return gradient_for(self._current)


class ThemeState(Observable):
    """Holds the dark/light flag. Starts light."""

    def __init__(self) -> None:
        super().__init__()
        self._dark = False

    @property
    def dark(self) -> bool:
        return self._dark

    def toggle(self) -> None:
        """Flip between dark and light and notify all listeners once."""
        self._guard_mutation()
        self._dark = not self._dark
        LOG.debug("Theme switched to %s", "dark" if self._dark else "light")
        self._notify()
