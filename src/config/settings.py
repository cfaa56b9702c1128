"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use TERMDECK_ prefix (e.g., TERMDECK_TRANSITION_DURATION_MS=250).

Settings can also be loaded from a .env file in the project root.
"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use TERMDECK_ prefix.

    Examples:
        TERMDECK_DEFAULT_THEME=latte
        TERMDECK_PENDING_POLICY=drop
        TERMDECK_TICK_HZ=30
    """

    model_config = SettingsConfigDict(
        env_prefix="TERMDECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Parser configuration
    column_sentinel: str = Field(
        default="\ue000COLUMN\ue000",
        description="Private-use marker substituted for '|||' lines before markdown parsing",
    )

    # Event loop / transitions
    tick_hz: int = Field(
        default=60,
        ge=1,
        description="Render ticks per second",
    )

    transition_duration_ms: int = Field(
        default=400,
        ge=0,
        description="Duration of every animated transition",
    )

    lines_stagger: float = Field(
        default=0.5,
        ge=0.0,
        lt=1.0,
        description="Fraction of a 'lines' transition over which row start delays are spread",
    )

    sweep_gradient: int = Field(
        default=15,
        ge=0,
        description="Width in cells of the soft leading edge of sweep transitions",
    )

    initial_transition: bool = Field(
        default=True,
        description="Play the first slide's transition from a blank screen at startup",
    )

    frame_cache_size: int = Field(
        default=64,
        ge=2,
        description="Rendered frames kept per session, least recently used dropped first",
    )

    pending_policy: Literal["replace", "drop"] = Field(
        default="replace",
        description="What a navigation key does while another one is already queued",
    )

    # Navigation
    scroll_step: int = Field(default=1, ge=1, description="Rows moved by j/k")
    page_scroll_step: int = Field(default=10, ge=1, description="Rows moved by d/u")

    # Layout
    content_margin_x: int = Field(default=2, ge=0, description="Horizontal content margin")
    content_margin_y: int = Field(default=1, ge=0, description="Vertical content margin")
    column_gap_percent: int = Field(
        default=4,
        ge=0,
        le=50,
        description="Gap between the two columns, as a percentage of the content width",
    )

    # Images
    image_placeholder_height: int = Field(
        default=15,
        ge=1,
        description="Rows reserved for every inline image",
    )
    image_max_width: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Default image width as a percentage of its region",
    )

    # Appearance
    default_theme: str = Field(default="mocha", description="Palette used when nothing else selects one")
    themes_dir: Optional[str] = Field(
        default=None,
        description="Directory of palette YAML files. Defaults to the package themes/ dir",
    )
    figlet_font: str = Field(default="standard", description="Font for bare <!-- figlet --> banners")


# Singleton instance - import this in your code
appsettings = AppSettings()
