"""
End-to-end tests for the Moodboard API endpoints.

These tests verify the HTTP API: reading the screen, the three user actions and
Server-Sent Events streaming.
"""

import asyncio
import contextlib
import json
import random
import socket
import threading
import time

import httpx
import uvicorn
from fastapi.testclient import TestClient
from httpx_sse import aconnect_sse

from moodboard.config import Settings
from moodboard.server import create_app
from moodboard.store import MoodState, ThemeState

# MARK: - Sync


class TestAPISync:
    """Integration tests covering the complete application flow using HTTP
    synchronous request/response flow."""

    def setup_method(self):
        """Set up a fresh app with new state containers for each test."""
        self.mood_state = MoodState(rng=random.Random(7))
        self.theme_state = ThemeState()
        self.settings = Settings(random_press_delay=0)
        self.app = create_app(self.mood_state, self.theme_state, self.settings)

    def test_health(self):
        with TestClient(self.app) as client:
            response = client.get("/")
            assert response.status_code == 200
            assert response.json() == {"status": "ok", "service": "moodboard"}

    def test_complete_workflow(self):
        """Test the complete workflow: read -> select -> verify -> theme."""
        with TestClient(self.app) as client:
            # 1. Initial screen is happy and light
            initial = client.get("/screen")
            assert initial.status_code == 200
            screen = initial.json()
            assert screen["mood"] == "happy"
            assert screen["title"] == "Happy"
            assert screen["history"] == []
            assert screen["dark"] is False

            # 2. Select moods
            for mood in ("sad", "excited", "happy", "sad"):
                response = client.put("/mood", json={"mood": mood})
                assert response.status_code == 200
                assert response.json()["mood"] == mood

            # 3. Tally and history follow the selections
            mood_response = client.get("/mood")
            assert mood_response.status_code == 200
            assert mood_response.json() == {
                "mood": "sad",
                "counts": {"happy": 1, "sad": 2, "excited": 1},
                "history": ["sad", "happy", "excited"],
            }

            # 4. Toggle the theme twice
            toggled = client.post("/theme/toggle")
            assert toggled.status_code == 200
            assert toggled.json()["theme_mode"] == "dark"
            assert client.get("/theme").json() == {"dark": True}

            client.post("/theme/toggle")
            assert client.get("/theme").json() == {"dark": False}

    def test_random_mood(self):
        """A random pick selects exactly one mood."""
        with TestClient(self.app) as client:
            response = client.post("/mood/random")
            assert response.status_code == 200

            screen = response.json()
            assert screen["mood"] in {"happy", "sad", "excited"}
            assert screen["history"] == [screen["mood"]]
            assert sum(screen["counts"].values()) == 1

        assert self.mood_state.current.value == screen["mood"]

    def test_random_mood_waits_for_press_delay(self):
        """The random pick happens once, after the configured press delay."""
        delay = 0.05
        app = create_app(
            self.mood_state, self.theme_state, Settings(random_press_delay=delay)
        )
        notifications = []
        self.mood_state.subscribe(lambda: notifications.append(self.mood_state.current))

        with TestClient(app) as client:
            started = time.perf_counter()
            response = client.post("/mood/random")
            elapsed = time.perf_counter() - started

        assert response.status_code == 200
        assert elapsed >= delay
        assert sum(self.mood_state.counts.values()) == 1
        assert notifications == [self.mood_state.current]
        assert response.json()["mood"] == self.mood_state.current.value

    def test_unknown_mood_is_rejected(self):
        with TestClient(self.app) as client:
            response = client.put("/mood", json={"mood": "angry"})
            assert response.status_code == 422

        assert sum(self.mood_state.counts.values()) == 0

    def test_state_changes_are_visible_through_the_api(self):
        """The API reads the injected containers, not a copy."""
        self.theme_state.toggle()

        with TestClient(self.app) as client:
            assert client.get("/screen").json()["theme_toggle_tooltip"] == "Light mode"

    def test_missing_asset(self, tmp_path):
        settings = Settings(random_press_delay=0, asset_root=tmp_path)
        app = create_app(self.mood_state, self.theme_state, settings)

        with TestClient(app) as client:
            screen = client.get("/screen").json()

        assert screen["asset_missing"] is True
        assert screen["asset"] == "placeholder:broken_image"


# MARK: - Streaming


class TestAPIStream:
    """Integration tests covering the complete application flow using SSE."""

    def setup_method(self):
        """Set up a fresh app with new state containers for each test."""
        self.mood_state = MoodState()
        self.theme_state = ThemeState()
        self.app = create_app(
            self.mood_state, self.theme_state, Settings(random_press_delay=0)
        )

    async def test_streaming_api(self):
        """Test streaming API with a consumer that collects screen updates."""

        # Start a real HTTP server in a background thread on a free port
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.bind(("127.0.0.1", 0))
        host, port = sock.getsockname()
        sock.close()
        base_url = f"http://{host}:{port}"

        config = uvicorn.Config(
            app=self.app,
            host=host,
            port=port,
            loop="asyncio",
            lifespan="on",
            log_level="warning",
            ws="none",
        )
        server = uvicorn.Server(config)

        def run_server() -> None:
            asyncio.run(server.serve())

        thread = threading.Thread(target=run_server, daemon=True)
        thread.start()

        # Wait for server to be ready
        start = time.time()
        while time.time() - start < 5.0:
            try:
                r = httpx.get(base_url + "/", timeout=0.2)
                if r.status_code == 200:
                    break
            except Exception:
                pass
            time.sleep(0.05)
        else:
            server.should_exit = True
            thread.join(timeout=1.0)
            assert False, "Server did not start in time"

        async with httpx.AsyncClient(
            base_url=base_url, timeout=httpx.Timeout(5.0, read=None)
        ) as client:
            received: list[tuple[str, bool]] = []
            got_initial_screen = asyncio.Event()

            async def consume() -> None:
                async with aconnect_sse(client, "GET", "/screen/stream") as es:
                    assert es.response.status_code == 200
                    content_type = es.response.headers.get("content-type", "")
                    assert content_type.startswith("text/event-stream")

                    async for sse in es.aiter_sse():
                        if sse.event == "error":
                            error_payload = json.loads(sse.data)
                            assert False, f"SSE error event: {error_payload}"

                        payload = json.loads(sse.data)
                        received.append((payload["mood"], payload["dark"]))

                        if len(received) == 1:
                            got_initial_screen.set()

                        if len(received) >= 4:
                            break

            consumer_task = asyncio.create_task(consume())

            try:
                await asyncio.wait_for(got_initial_screen.wait(), timeout=3.0)
            except TimeoutError:
                consumer_task.cancel()
                with contextlib.suppress(Exception):
                    await consumer_task
                server.should_exit = True
                thread.join(timeout=1.0)
                assert False, "Consumer did not receive initial screen in time"

            # Issue three updates via the HTTP API
            resp1 = await client.put("/mood", json={"mood": "sad"})
            assert resp1.status_code == 200
            resp2 = await client.post("/theme/toggle")
            assert resp2.status_code == 200
            resp3 = await client.post("/mood/random")
            assert resp3.status_code == 200
            random_pick = resp3.json()["mood"]

            try:
                await asyncio.wait_for(consumer_task, timeout=3.0)
            except TimeoutError:
                consumer_task.cancel()
                with contextlib.suppress(Exception):
                    await consumer_task
                server.should_exit = True
                thread.join(timeout=1.0)
                assert False, f"Streaming test timed out. Received: {received}"

            assert received == [
                ("happy", False),
                ("sad", False),
                ("sad", True),
                (random_pick, True),
            ]

            final = await client.get("/mood")
            assert final.status_code == 200
            assert sum(final.json()["counts"].values()) == 2

        # Shutdown server
        server.should_exit = True
        thread.join(timeout=2.0)
