"""
Screen rendering for the Moodboard app.

The renderer reads both state containers and produces one immutable
``ScreenView``: everything a client needs to draw the screen. It never
mutates state.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from .models import HexColor, Mood, theme_for
from .store import MoodState, ThemeState

PLACEHOLDER_ASSET = "placeholder:broken_image"

# Views buffered per stream before the oldest is dropped
STREAM_MAX_PENDING = 64

LOG = logging.getLogger(__name__)


class ScreenView(BaseModel):
    """Snapshot of the whole screen derived from the current state."""

    model_config = ConfigDict(frozen=True)

    mood: Mood = Field(..., description="The active mood")
    title: str
    subtitle: str
    asset: str = Field(..., description="Image to show, or the placeholder")
    asset_missing: bool = Field(
        False, description="True when the mood image could not be found"
    )
    base_color: HexColor
    gradient: tuple[HexColor, HexColor, HexColor]
    counts: dict[Mood, int] = Field(..., description="Selections per mood")
    history: list[Mood] = Field(..., description="Recent moods, newest first")
    dark: bool
    theme_mode: str = Field(..., description='"dark" or "light"')
    theme_toggle_tooltip: str
    history_caption: str


def resolve_asset(asset: str, asset_root: Path | None) -> tuple[str, bool]:
    """
    Resolve ``asset`` against ``asset_root``.

    Returns:
        The asset to display and whether the placeholder was substituted.
        Without an ``asset_root`` the asset is trusted as-is.
    """
    if asset_root is None:
        return asset, False
    if (Path(asset_root) / asset).is_file():
        return asset, False

    LOG.warning("Mood asset %s not found under %s", asset, asset_root)
    return PLACEHOLDER_ASSET, True


def render_screen(
    mood_state: MoodState,
    theme_state: ThemeState,
    asset_root: Path | None = None,
) -> ScreenView:
    """Build the screen view for the current mood and theme."""
    theme = theme_for(mood_state.current)
    asset, missing = resolve_asset(theme.asset, asset_root)
    history = list(mood_state.history)
    dark = theme_state.dark

    return ScreenView(
        mood=mood_state.current,
        title=theme.title,
        subtitle=theme.subtitle,
        asset=asset,
        asset_missing=missing,
        base_color=theme.base_color,
        gradient=theme.gradient,
        counts=dict(mood_state.counts),
        history=history,
        dark=dark,
        theme_mode="dark" if dark else "light",
        theme_toggle_tooltip="Light mode" if dark else "Dark mode",
        history_caption="Recent selections" if history else "No history yet",
    )


@asynccontextmanager
async def stream_screen(
    mood_state: MoodState,
    theme_state: ThemeState,
    asset_root: Path | None = None,
    max_pending: int = STREAM_MAX_PENDING,
) -> AsyncGenerator[AsyncGenerator[ScreenView, None], None]:
    """
    Stream screen views to a subscriber.

    The yielded generator produces the view current at context entry first,
    then a fresh view after every change to either container. Views are
    rendered at notification time, so each one reflects exactly one mutation.
    A consumer that falls more than ``max_pending`` views behind loses the
    oldest ones; the newest view is always kept. Listeners are removed when
    the context exits.
    """
    queue: asyncio.Queue[ScreenView] = asyncio.Queue(maxsize=max_pending)

    def on_change() -> None:
        view = render_screen(mood_state, theme_state, asset_root)
        if queue.full():
            queue.get_nowait()
            LOG.debug("Screen stream behind, dropped oldest view")
        queue.put_nowait(view)

    # Rendered and subscribed together so no mutation falls in between
    initial = render_screen(mood_state, theme_state, asset_root)
    unsubscribe_mood = mood_state.subscribe(on_change)
    unsubscribe_theme = theme_state.subscribe(on_change)

    async def screen_generator() -> AsyncGenerator[ScreenView, None]:
        yield initial
        try:
            while True:
                yield await queue.get()
        except (asyncio.CancelledError, GeneratorExit):
            # Client disconnected or generator closed, clean exit
            return

    try:
        yield screen_generator()
    finally:
        unsubscribe_mood()
        unsubscribe_theme()
