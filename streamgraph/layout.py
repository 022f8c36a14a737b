"""
layout.py — Stack an aggregated Series into drawable bands.

Produces, for a fixed ChartConfig:
    - stacking order (largest total at the bottom)
    - (low, high) band per artist per month, tiling [0, extent]
    - index → x scale, value → y scale (inverted), month time scale
    - one palette color per artist, label anchors at the right edge
    - per-artist polylines of (x, y_low, y_high)

Nothing here draws; see render.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

import numpy as np
import pandas as pd

from .aggregate import MonthKey, Series
from .config import ChartConfig

# Categorical palette (matplotlib tab10 / d3 category10), wraps after 10.
PALETTE = [
    "#1f77b4", "#ff7f0e", "#2ca02c", "#d62728", "#9467bd",
    "#8c564b", "#e377c2", "#7f7f7f", "#bcbd22", "#17becf",
]


# ---------------------------------------------------------------------------
# Scales
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LinearScale:
    domain: tuple[float, float]
    range:  tuple[float, float]

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        span = d1 - d0
        if span == 0:
            # Degenerate domain: everything lands mid-range.
            return (r0 + r1) / 2
        return r0 + (value - d0) / span * (r1 - r0)


@dataclass(frozen=True)
class TimeScale:
    start: pd.Timestamp
    end:   pd.Timestamp
    range: tuple[float, float]

    @classmethod
    def for_months(cls, first: MonthKey, last: MonthKey, pixel_range: tuple[float, float]) -> "TimeScale":
        # Right edge is day 2 of the last month, not its last day, so the
        # final month tick falls inside the domain.
        return cls(
            start=pd.Timestamp(first.first_day()),
            end=pd.Timestamp(last.year, last.month, 2),
            range=pixel_range,
        )

    def __call__(self, when: datetime | pd.Timestamp) -> float:
        offset = (pd.Timestamp(when) - self.start).total_seconds()
        span = (self.end - self.start).total_seconds()
        return LinearScale((0.0, span), self.range)(offset)

    def month_ticks(self) -> list[pd.Timestamp]:
        return list(pd.date_range(self.start, self.end, freq="MS"))


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BandPoint:
    x:      float
    y_low:  float
    y_high: float


@dataclass
class BandShape:
    artist: str
    color:  str
    points: list[BandPoint]


@dataclass(frozen=True)
class LabelAnchor:
    artist: str
    x:      float
    y:      float
    value:  float     # band midpoint in value space


@dataclass
class StreamgraphLayout:
    series:     Series
    chart:      ChartConfig
    order:      list[str]
    bands:      dict[str, list[tuple[float, float]]]
    extent:     list[float]
    x_scale:    LinearScale
    y_scale:    LinearScale
    time_scale: TimeScale
    colors:     dict[str, str]
    labels:     list[LabelAnchor] = field(default_factory=list)
    shapes:     list[BandShape]   = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.order


# ---------------------------------------------------------------------------
# Layout steps
# ---------------------------------------------------------------------------

def stacking_order(series: Series) -> list[str]:
    totals = {artist: sum(series.values[artist]) for artist in series.artists}
    return sorted(series.artists, key=lambda artist: totals[artist], reverse=True)


def stack_bands(series: Series, order: list[str]) -> tuple[np.ndarray, np.ndarray]:
    """Return (lows, highs), shape (artists, months), rows in stacking order."""
    if not order:
        empty = np.zeros((0, series.month_count))
        return empty, empty
    matrix = np.array([series.values[artist] for artist in order], dtype=float)
    highs = np.cumsum(matrix, axis=0)
    # Each low is exactly the previous high so bands never overlap.
    lows = np.vstack([np.zeros((1, series.month_count)), highs[:-1]])
    return lows, highs


def assign_colors(order: list[str]) -> dict[str, str]:
    return {artist: PALETTE[i % len(PALETTE)] for i, artist in enumerate(order)}


def build_layout(series: Series, chart: ChartConfig | None = None) -> StreamgraphLayout:
    chart = chart or ChartConfig()
    chart.validate()

    order = stacking_order(series)
    lows, highs = stack_bands(series, order)
    extent = highs[-1] if order else np.zeros(series.month_count)

    last_index = series.month_count - 1
    x_scale = LinearScale((0.0, float(last_index)), chart.x_range)
    y_scale = LinearScale((0.0, float(extent.max()) if extent.size else 0.0), chart.y_range)
    time_scale = TimeScale.for_months(series.first_month, series.last_month, chart.x_range)
    colors = assign_colors(order)

    bands: dict[str, list[tuple[float, float]]] = {}
    shapes: list[BandShape] = []
    labels: list[LabelAnchor] = []
    for row, artist in enumerate(order):
        pairs = [(float(lo), float(hi)) for lo, hi in zip(lows[row], highs[row])]
        bands[artist] = pairs
        shapes.append(BandShape(
            artist=artist,
            color=colors[artist],
            points=[
                BandPoint(x=x_scale(i), y_low=y_scale(lo), y_high=y_scale(hi))
                for i, (lo, hi) in enumerate(pairs)
            ],
        ))
        lo, hi = pairs[last_index]
        mid = (lo + hi) / 2
        labels.append(LabelAnchor(artist=artist, x=x_scale(last_index), y=y_scale(mid), value=mid))

    return StreamgraphLayout(
        series=series,
        chart=chart,
        order=order,
        bands=bands,
        extent=[float(v) for v in extent],
        x_scale=x_scale,
        y_scale=y_scale,
        time_scale=time_scale,
        colors=colors,
        labels=labels,
        shapes=shapes,
    )
