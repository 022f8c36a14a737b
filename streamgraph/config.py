"""
config.py — Runtime configuration for the streamgraph pipeline.

Two frozen configs feed the core:
    StreamgraphConfig  timezone / top_n / proportional  (aggregation)
    ChartConfig        width / height / margins          (layout)

Defaults come from the environment (optionally a .env file at the project
root), read once through load_settings().

    STREAMGRAPH_TIMEZONE        IANA zone name           (default "UTC")
    STREAMGRAPH_TOP_N           artists kept             (default 10)
    STREAMGRAPH_PROPORTIONAL    1/true/yes/on            (default false)
    STREAMGRAPH_WIDTH           chart width in px        (default 960)
    STREAMGRAPH_HEIGHT          chart height in px       (default 500)
    STREAMGRAPH_MARGIN_TOP|RIGHT|BOTTOM|LEFT             (20/160/40/50)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path

import pandas as pd
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

DEFAULT_TIMEZONE = "UTC"
DEFAULT_TOP_N    = 10
DEFAULT_WIDTH    = 960
DEFAULT_HEIGHT   = 500
DEFAULT_MARGINS  = {"top": 20, "right": 160, "bottom": 40, "left": 50}

TRUE_STRINGS = {"1", "true", "yes", "on"}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class StreamgraphError(RuntimeError):
    pass


class ConfigurationError(StreamgraphError):
    """Structurally invalid configuration (bad top N, unknown timezone...)."""


# ---------------------------------------------------------------------------
# Core configs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StreamgraphConfig:
    timezone:     str | tzinfo = DEFAULT_TIMEZONE
    top_n:        int          = DEFAULT_TOP_N
    proportional: bool         = False

    def validate(self) -> None:
        if isinstance(self.top_n, bool) or not isinstance(self.top_n, int):
            raise ConfigurationError(f"top_n must be an integer, got {self.top_n!r}")
        if self.top_n < 1:
            raise ConfigurationError(f"top_n must be at least 1, got {self.top_n}")
        if not isinstance(self.proportional, bool):
            raise ConfigurationError(f"proportional must be a boolean, got {self.proportional!r}")
        validate_timezone(self.timezone)


@dataclass(frozen=True)
class ChartConfig:
    width:         int = DEFAULT_WIDTH
    height:        int = DEFAULT_HEIGHT
    margin_top:    int = DEFAULT_MARGINS["top"]
    margin_right:  int = DEFAULT_MARGINS["right"]
    margin_bottom: int = DEFAULT_MARGINS["bottom"]
    margin_left:   int = DEFAULT_MARGINS["left"]

    @property
    def x_range(self) -> tuple[float, float]:
        return float(self.margin_left), float(self.width - self.margin_right)

    @property
    def y_range(self) -> tuple[float, float]:
        # Screen y grows downward: domain 0 sits at the bottom edge.
        return float(self.height - self.margin_bottom), float(self.margin_top)

    def validate(self) -> None:
        x0, x1 = self.x_range
        y_bottom, y_top = self.y_range
        if x1 <= x0 or y_bottom <= y_top:
            raise ConfigurationError(
                f"Chart {self.width}x{self.height} is too small for its margins."
            )


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def validate_timezone(tz: str | tzinfo) -> None:
    if isinstance(tz, str) and not tz.strip():
        raise ConfigurationError("Timezone must not be empty.")
    try:
        pd.Timestamp(0, tz="UTC").tz_convert(tz)
    except Exception as exc:
        raise ConfigurationError(f"Unknown timezone: {tz!r}") from exc


def parse_top_n(text: str | int | None, default: int | None = None) -> int:
    """Turn free-text "top N" input into a positive int."""
    if text is None or (isinstance(text, str) and not text.strip()):
        if default is None:
            raise ConfigurationError("Top N must be a positive whole number.")
        return default
    if isinstance(text, bool):
        raise ConfigurationError("Top N must be a positive whole number.")
    try:
        value = int(str(text).strip())
    except ValueError as exc:
        raise ConfigurationError("Top N must be a positive whole number.") from exc
    if value < 1:
        raise ConfigurationError("Top N must be a positive whole number.")
    return value


def parse_flag(value: str | None, default: bool = False) -> bool:
    if value is None or not str(value).strip():
        return default
    return str(value).strip().lower() in TRUE_STRINGS


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Settings:
    timezone:     str
    top_n:        int
    proportional: bool
    chart:        ChartConfig

    def stream_config(self, **overrides) -> StreamgraphConfig:
        values = {
            "timezone":     self.timezone,
            "top_n":        self.top_n,
            "proportional": self.proportional,
        }
        values.update(overrides)
        return StreamgraphConfig(**values)

    def chart_config(self) -> ChartConfig:
        return self.chart


def load_settings(env_file: Path | None = None) -> Settings:
    load_dotenv(env_file or BASE_DIR / ".env", override=False)

    top_n = _env_int("STREAMGRAPH_TOP_N", DEFAULT_TOP_N)
    if top_n < 1:
        raise ConfigurationError(f"STREAMGRAPH_TOP_N must be at least 1, got {top_n}")

    chart = ChartConfig(
        width=_env_int("STREAMGRAPH_WIDTH", DEFAULT_WIDTH),
        height=_env_int("STREAMGRAPH_HEIGHT", DEFAULT_HEIGHT),
        margin_top=_env_int("STREAMGRAPH_MARGIN_TOP", DEFAULT_MARGINS["top"]),
        margin_right=_env_int("STREAMGRAPH_MARGIN_RIGHT", DEFAULT_MARGINS["right"]),
        margin_bottom=_env_int("STREAMGRAPH_MARGIN_BOTTOM", DEFAULT_MARGINS["bottom"]),
        margin_left=_env_int("STREAMGRAPH_MARGIN_LEFT", DEFAULT_MARGINS["left"]),
    )
    chart.validate()

    return Settings(
        timezone=os.getenv("STREAMGRAPH_TIMEZONE", "").strip() or DEFAULT_TIMEZONE,
        top_n=top_n,
        proportional=parse_flag(os.getenv("STREAMGRAPH_PROPORTIONAL")),
        chart=chart,
    )
