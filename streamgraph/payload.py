"""
payload.py — Shape a computed layout into the JSON payload served to the
frontend (and written by `python -m streamgraph --format json`).

Payload keys:
    meta, config                 source file, range, request settings
    months, monthly_totals       time axis and pre-selection plays per month
    series                       artist → value per month (selection order)
    order, extent, bands         stacking order, stack top, (low, high) values
    scales, time_ticks           domains/ranges and month tick positions
    shapes, labels               drawable polylines and right-edge labels
    chart, insights
"""

from __future__ import annotations

from .config import StreamgraphConfig
from .insights import build_listening_insights
from .layout import StreamgraphLayout


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

def build_scales(layout: StreamgraphLayout) -> dict:
    time_scale = layout.time_scale
    return {
        "x":    {"domain": list(layout.x_scale.domain), "range": list(layout.x_scale.range)},
        "y":    {"domain": list(layout.y_scale.domain), "range": list(layout.y_scale.range)},
        "time": {
            "domain": [time_scale.start.isoformat(), time_scale.end.isoformat()],
            "range":  list(time_scale.range),
        },
    }


def build_time_ticks(layout: StreamgraphLayout) -> list[dict]:
    time_scale = layout.time_scale
    return [
        {"date": tick.date().isoformat(), "x": time_scale(tick)}
        for tick in time_scale.month_ticks()
    ]


def build_shapes(layout: StreamgraphLayout) -> list[dict]:
    return [
        {
            "artist": shape.artist,
            "color":  shape.color,
            "points": [[p.x, p.y_low, p.y_high] for p in shape.points],
        }
        for shape in layout.shapes
    ]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_payload(layout: StreamgraphLayout, config: StreamgraphConfig, source_file: str = "") -> dict:
    series = layout.series
    return {
        "meta": {
            "source_file": source_file,
            "event_count": series.event_count,
            "first_month": series.first_month.label,
            "last_month":  series.last_month.label,
            "month_count": series.month_count,
        },
        "config": {
            "top_n":        config.top_n,
            "proportional": config.proportional,
            "timezone":     str(config.timezone),
        },
        "months":         [month.label for month in series.months],
        "monthly_totals": series.monthly_totals,
        "series":         {artist: series.values[artist] for artist in series.artists},
        "order":          layout.order,
        "extent":         layout.extent,
        "bands": {
            artist: [{"low": lo, "high": hi} for lo, hi in pairs]
            for artist, pairs in layout.bands.items()
        },
        "scales":     build_scales(layout),
        "time_ticks": build_time_ticks(layout),
        "shapes":     build_shapes(layout),
        "labels": [
            {"artist": label.artist, "x": label.x, "y": label.y, "value": label.value}
            for label in layout.labels
        ],
        "chart":    {"width": layout.chart.width, "height": layout.chart.height},
        "insights": build_listening_insights(layout),
    }
