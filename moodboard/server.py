"""
FastAPI server for the Moodboard app.

This module is the view layer over the mood and theme state. Clients read the
rendered screen, send the three user actions (pick a mood, pick a random mood,
toggle the theme) and follow screen updates over Server-Sent Events.
"""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from . import __version__
from .config import Settings, get_settings
from .log import configure_logging
from .models import Mood
from .render import ScreenView, render_screen, stream_screen
from .store import MoodState, ThemeState

LOG = logging.getLogger(__name__)


# API Request/Response Schemas
class MoodUpdate(BaseModel):
    """Payload for mood selection requests."""

    mood: Mood = Field(..., description="The mood to select")


class MoodResponse(BaseModel):
    """Response model for the mood endpoint."""

    mood: Mood = Field(..., description="The active mood")
    counts: dict[Mood, int] = Field(..., description="Selections per mood")
    history: list[Mood] = Field(..., description="Recent moods, newest first")


class ThemeResponse(BaseModel):
    """Response model for the theme endpoint."""

    dark: bool = Field(..., description="True when the dark theme is active")


def create_app(
    mood_state: MoodState,
    theme_state: ThemeState,
    settings: Settings | None = None,
) -> FastAPI:
    """
    Create a FastAPI application over the given state containers.

    Args:
        mood_state: The MoodState instance the routes read and mutate
        theme_state: The ThemeState instance the routes read and toggle
        settings: Optional settings; defaults to the environment

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    def screen() -> ScreenView:
        return render_screen(mood_state, theme_state, settings.asset_root)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Lifespan context manager for FastAPI application."""
        LOG.info("Moodboard ready (mood=%s)", mood_state.current.value)
        yield

    app = FastAPI(
        title="Moodboard",
        description="A single-screen mood tracker",
        version=__version__,
        lifespan=lifespan,
    )

    @app.get("/")
    async def root() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "moodboard"}

    @app.get("/screen")
    async def get_screen() -> ScreenView:
        """Get the fully rendered screen."""
        return screen()

    @app.get("/mood")
    async def get_mood() -> MoodResponse:
        """Get the active mood with its tally and recent history."""
        return MoodResponse(
            mood=mood_state.current,
            counts=dict(mood_state.counts),
            history=list(mood_state.history),
        )

    @app.put("/mood")
    async def update_mood(mood_update: MoodUpdate) -> ScreenView:
        """
        Select a mood and notify all subscribers.

        Args:
            mood_update: The mood selection payload

        Returns:
            The screen rendered after the selection
        """
        mood_state.set_mood(mood_update.mood)
        return screen()

    @app.post("/mood/random")
    async def random_mood() -> ScreenView:
        """
        Pick a random mood after the button press delay.

        Returns:
            The screen rendered after the pick
        """
        if settings.random_press_delay > 0:
            await asyncio.sleep(settings.random_press_delay)
        mood_state.randomize()
        return screen()

    @app.get("/theme")
    async def get_theme() -> ThemeResponse:
        """Get the dark/light flag."""
        return ThemeResponse(dark=theme_state.dark)

    @app.post("/theme/toggle")
    async def toggle_theme() -> ScreenView:
        """Switch between dark and light and return the new screen."""
        theme_state.toggle()
        return screen()

    @app.get("/screen/stream")
    async def stream() -> StreamingResponse:
        """
        Stream screen updates via Server-Sent Events.

        The current screen is sent immediately upon connection, then one event
        per mood or theme change.

        Returns:
            StreamingResponse with text/event-stream content type
        """

        async def event_generator() -> AsyncGenerator[str, None]:
            """Generate SSE events for screen updates."""
            try:
                async with stream_screen(
                    mood_state, theme_state, settings.asset_root
                ) as screens:
                    async for view in screens:
                        yield f"data: {view.model_dump_json()}\n\n"
            except asyncio.CancelledError:
                # Client disconnected
                pass
            except Exception as e:
                LOG.exception("Screen stream failed")
                error_data = json.dumps({"error": str(e)})
                yield f"event: error\ndata: {error_data}\n\n"

        return StreamingResponse(
            event_generator(),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "Access-Control-Allow-Origin": "*",
                "Access-Control-Allow-Headers": "*",
            },
        )

    return app


# Default app instance for uvicorn
app = create_app(MoodState(), ThemeState())


def main(host: str | None = None, port: int | None = None) -> None:
    """Main entry point for the server."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "moodboard.server:app",
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
