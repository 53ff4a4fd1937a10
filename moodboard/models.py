"""
Shared data models for the Moodboard app.

This module defines the mood enumeration, the per-mood display table and the
pure functions that derive a mood's look. The table is checked for coverage
at import time, so adding a Mood variant without a theme fails immediately.
"""

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints


class Mood(str, Enum):
    """The user's selected emotional state."""

    HAPPY = "happy"
    SAD = "sad"
    EXCITED = "excited"

    @property
    def label(self) -> str:
        """Capitalized display name, e.g. ``"Happy"``."""
        return self.value.capitalize()


class IncompleteThemeTableError(LookupError):
    """Raised when a theme table is missing an entry for some Mood."""


HexColor = Annotated[str, StringConstraints(pattern=r"^#[0-9A-F]{6}$")]


class MoodTheme(BaseModel):
    """Everything the screen needs to draw one mood."""

    model_config = ConfigDict(frozen=True)

    asset: str = Field(..., min_length=1, description="Image asset identifier")
    title: str = Field(..., min_length=1, description="Headline under the image")
    subtitle: str = Field(..., min_length=1, description="Encouraging one-liner")
    base_color: HexColor = Field(..., description="Accent color as #RRGGBB")
    gradient: tuple[HexColor, HexColor, HexColor] = Field(
        ..., description="Three background gradient stops as #RRGGBB"
    )


# MARK: - Theme table

MOOD_THEMES: Mapping[Mood, MoodTheme] = {
    Mood.HAPPY: MoodTheme(
        asset="assets/moods/happy.png",
        title="Happy",
        subtitle="Sunshine vibes. Keep smiling!",
        base_color="#2ECC71",
        gradient=("#FFFEEB", "#FFF7BD", "#FFFEEB"),
    ),
    Mood.SAD: MoodTheme(
        asset="assets/moods/sad.png",
        title="Sad",
        subtitle="It’s okay to slow down today.",
        base_color="#3498DB",
        gradient=("#EFF6FF", "#DCEBFF", "#EFF6FF"),
    ),
    Mood.EXCITED: MoodTheme(
        asset="assets/moods/excited.png",
        title="Excited",
        subtitle="Big energy! Let’s go!",
        base_color="#E67E22",
        gradient=("#FFF2E6", "#FFE2C7", "#FFF2E6"),
    ),
}


def ensure_exhaustive(
    table: Mapping[Mood, object], moods: Iterable[Mood] = Mood
) -> None:
    """
    Verify that ``table`` has an entry for every mood.

    Raises:
        IncompleteThemeTableError: naming the moods without an entry
    """
    missing = [mood.value for mood in moods if mood not in table]
    if missing:
        raise IncompleteThemeTableError(
            f"No theme defined for mood(s): {', '.join(missing)}"
        )


ensure_exhaustive(MOOD_THEMES)


# MARK: - Derivation functions


def theme_for(mood: Mood) -> MoodTheme:
    """Return the full display theme for ``mood``."""
    return MOOD_THEMES[Mood(mood)]


def asset_for(mood: Mood) -> str:
    return theme_for(mood).asset


def title_for(mood: Mood) -> str:
    return theme_for(mood).title


def subtitle_for(mood: Mood) -> str:
    return theme_for(mood).subtitle


def base_color_for(mood: Mood) -> str:
    return theme_for(mood).base_color


def gradient_for(mood: Mood) -> tuple[str, str, str]:
    return theme_for(mood).gradient
