"""
Command-line interface tools for the Moodboard service.
"""

import asyncio
import json
from collections.abc import Coroutine
from typing import Any, Optional

import httpx
import typer
from httpx_sse import ServerSentEvent, aconnect_sse
from pydantic import ValidationError

from .config import get_settings
from .log import configure_logging
from .models import Mood
from .render import ScreenView

app = typer.Typer(help="Moodboard CLI tools")

BaseUrlOption = typer.Option(
    None, "--url", "-u", help="Base URL of the Moodboard service"
)


def _base_url(base_url: Optional[str]) -> str:
    return base_url or get_settings().base_url


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level, defaults to MOODBOARD_LOG_LEVEL"
    ),
) -> None:
    """Moodboard CLI tools."""
    configure_logging(log_level or get_settings().log_level)


# MARK: - Commands


@app.command("set-mood")
def set_mood(
    mood: Mood = typer.Argument(..., help="The mood to select"),
    base_url: Optional[str] = BaseUrlOption,
) -> None:
    """Select a mood on the Moodboard service."""
    url = _base_url(base_url)

    async def _set_mood() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.put(f"{url}/mood", json={"mood": mood.value})
            response.raise_for_status()
            print(_format_screen(ScreenView.model_validate(response.json())))

    _run_with_error_handling(_set_mood(), url)


@app.command("get-mood")
def get_mood(
    base_url: Optional[str] = BaseUrlOption,
    json_output: bool = typer.Option(False, "--json", "-j", help="Output raw JSON"),
) -> None:
    """Get the current screen from the Moodboard service."""
    url = _base_url(base_url)

    async def _get_mood() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.get(f"{url}/screen")
            response.raise_for_status()
            result = response.json()

            if json_output:
                print(json.dumps(result, indent=2))
                return

            print(_format_screen(ScreenView.model_validate(result)))

    _run_with_error_handling(_get_mood(), url)


@app.command("random")
def random_mood(base_url: Optional[str] = BaseUrlOption) -> None:
    """Select a random mood."""
    url = _base_url(base_url)

    async def _random() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.post(f"{url}/mood/random")
            response.raise_for_status()
            print(_format_screen(ScreenView.model_validate(response.json())))

    _run_with_error_handling(_random(), url)


@app.command("toggle-theme")
def toggle_theme(base_url: Optional[str] = BaseUrlOption) -> None:
    """Switch between the dark and light theme."""
    url = _base_url(base_url)

    async def _toggle() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.post(f"{url}/theme/toggle")
            response.raise_for_status()
            view = ScreenView.model_validate(response.json())
            print(f"Theme: {view.theme_mode}")

    _run_with_error_handling(_toggle(), url)


@app.command()
def stream(base_url: Optional[str] = BaseUrlOption) -> None:
    """Stream screen updates in real-time."""
    url = _base_url(base_url)

    async def _stream() -> None:
        print(f"Streaming from {url}/screen/stream... (Ctrl+C to stop)")

        async with httpx.AsyncClient(timeout=None) as client:
            async with aconnect_sse(
                client, "GET", f"{url}/screen/stream"
            ) as event_source:
                async for sse in event_source.aiter_sse():
                    _handle_sse_event(sse)

    _run_with_error_handling(_stream(), url)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Interface to bind"),
    port: Optional[int] = typer.Option(None, help="Port to listen on"),
) -> None:
    """Run the Moodboard server."""
    from .server import main

    main(host=host, port=port)


# MARK: - Private Helpers


def _format_screen(view: ScreenView) -> str:
    """Render a screen view as a few lines of text."""
    counts = " ".join(f"{mood.label} • {count}" for mood, count in view.counts.items())
    history = ", ".join(mood.label for mood in view.history)
    lines = [
        f"{view.title}: {view.subtitle}",
        f"  {counts}",
        f"  {view.history_caption}" + (f": {history}" if history else ""),
    ]
    return "\n".join(lines)


def _handle_sse_event(sse: ServerSentEvent) -> None:
    """Handle a single SSE event."""
    try:
        raw_data = json.loads(sse.data)

        # The server reports a broken screen stream as an error event
        reported = raw_data.get("error") if isinstance(raw_data, dict) else None
        if sse.event == "error" or reported:
            reason = reported or "unknown error"
            print(f"Screen stream failed on the server: {reason}")
            return

        view = ScreenView.model_validate(raw_data)
        print(f"[{view.theme_mode}] {view.title} > {view.subtitle}")
        if view.asset_missing:
            print("  (mood image missing, showing placeholder)")

    except json.JSONDecodeError:
        print(f"Skipping unreadable screen update: {sse.data!r}")
    except ValidationError as e:
        print(f"Skipping screen update with unexpected shape ({e.error_count()} errors)")


def _run_with_error_handling(coro: Coroutine[Any, Any, Any], base_url: str) -> None:
    """Run a request against the Moodboard server, turning failures into exit codes."""
    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        print("\nStopped")
        raise typer.Exit(0)
    except httpx.ConnectError:
        print(f"Error: no Moodboard server at {base_url} (try `moodboard serve`)")
        raise typer.Exit(1)
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        if status == 422:
            print(f"Error: HTTP {status}, the server rejected the mood or theme request")
        else:
            print(f"Error: HTTP {status} from {e.request.url}")
        raise typer.Exit(1)
    except ValidationError as e:
        print(f"Error: unexpected screen data from {base_url} ({e.error_count()} errors)")
        raise typer.Exit(1)
    except httpx.HTTPError as e:
        print(f"Error: request to {base_url} failed: {str(e) or type(e).__name__}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
