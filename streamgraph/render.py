"""
render.py — Draw a computed StreamgraphLayout with matplotlib.

The figure is sized so one axis unit is one pixel of the ChartConfig, which
lets the layout's pixel coordinates be drawn as-is (y axis inverted, since
screen y grows downward). No aggregation or scaling happens here beyond the
axis ticks.
"""

from __future__ import annotations

import io

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.ticker as ticker

from .layout import BandShape, StreamgraphLayout

# ── Design tokens ─────────────────────────────────────────────────────────────
BG      = "#0a0e1a"
SURFACE = "#111827"
TEXT    = "#f9fafb"
MUTED   = "#9ca3af"
BORDER  = "#1f2937"
DPI     = 100

MAX_MONTH_LABELS = 12
LABEL_OFFSET_PX  = 6


def apply_theme(ax, fig):
    fig.patch.set_facecolor(BG)
    ax.set_facecolor(SURFACE)
    # Ticks and spines are drawn by hand in chart pixels.
    ax.set_xticks([])
    ax.set_yticks([])
    for spine in ax.spines.values():
        spine.set_visible(False)


def fmt_value(v):
    if abs(v) >= 1_000_000: return f"{v/1_000_000:.1f}M"
    if abs(v) >= 1_000:     return f"{v/1_000:.0f}K"
    return f"{v:.0f}"


def band_outline(shape: BandShape, layout: StreamgraphLayout):
    """(xs, y_lows, y_highs) to fill for one band.

    A single-month series has one point per band; it is widened into a block
    across the plot area so the band still has area.
    """
    xs    = [p.x for p in shape.points]
    lows  = [p.y_low for p in shape.points]
    highs = [p.y_high for p in shape.points]
    if len(xs) == 1:
        x0, x1 = layout.chart.x_range
        return [x0, x1], lows * 2, highs * 2
    return xs, lows, highs


def _draw_axes(ax, layout: StreamgraphLayout, proportional: bool):
    chart = layout.chart
    x0, x1 = chart.x_range
    y_bottom, _ = chart.y_range

    ax.axhline(y_bottom, xmin=x0 / chart.width, xmax=x1 / chart.width,
               color=BORDER, linewidth=1)
    ax.axvline(x0, ymin=chart.margin_bottom / chart.height,
               ymax=1 - chart.margin_top / chart.height, color=BORDER, linewidth=1)

    # Value ticks
    d0, d1 = layout.y_scale.domain
    if d1 > d0:
        for value in ticker.MaxNLocator(nbins=5).tick_values(d0, d1):
            if value < d0 or value > d1:
                continue
            y = layout.y_scale(value)
            ax.plot([x0 - 4, x0], [y, y], color=MUTED, linewidth=0.8)
            ax.axhline(y, xmin=x0 / chart.width, xmax=x1 / chart.width,
                       color=BORDER, linewidth=0.5, linestyle="--", alpha=0.4)
            text = f"{value:.0f}%" if proportional else fmt_value(value)
            ax.text(x0 - 7, y, text, color=MUTED, fontsize=8, ha="right", va="center")

    # Month ticks, one per series column, thinned so labels stay readable
    months = layout.time_scale.month_ticks()
    step = max(1, -(-len(months) // MAX_MONTH_LABELS))
    for i, month in enumerate(months):
        x = layout.x_scale(i)
        ax.plot([x, x], [y_bottom, y_bottom + 4], color=MUTED, linewidth=0.8)
        if i % step == 0:
            ax.text(x, y_bottom + 7, month.strftime("%b %Y"), color=MUTED,
                    fontsize=8, ha="center", va="top")


def draw(layout: StreamgraphLayout, title: str = ""):
    """Build the figure. Caller owns (and must close) the returned figure."""
    chart = layout.chart
    fig = plt.figure(figsize=(chart.width / DPI, chart.height / DPI), dpi=DPI)
    ax = fig.add_axes([0, 0, 1, 1])
    apply_theme(ax, fig)
    ax.set_xlim(0, chart.width)
    ax.set_ylim(chart.height, 0)

    if layout.is_empty:
        ax.text(chart.width / 2, chart.height / 2, "No listening data",
                color=MUTED, fontsize=12, ha="center", va="center")
    else:
        right_edge = {}
        for z, shape in enumerate(layout.shapes):
            xs, lows, highs = band_outline(shape, layout)
            right_edge[shape.artist] = xs[-1]
            ax.fill_between(
                xs, lows, highs,
                color=shape.color,
                alpha=0.85,
                linewidth=0,
                zorder=2 + z,
            )
        for label in layout.labels:
            x = right_edge.get(label.artist, label.x)
            ax.text(x + LABEL_OFFSET_PX, label.y, label.artist,
                    color=layout.colors[label.artist], fontsize=9,
                    ha="left", va="center", zorder=100)
        _draw_axes(ax, layout, layout.series.proportional)

    if title:
        ax.text(chart.margin_left, chart.margin_top / 2, title, color=TEXT,
                fontsize=11, fontweight="bold", ha="left", va="center")
    return fig


def _render(layout: StreamgraphLayout, title: str, fmt: str) -> bytes:
    fig = draw(layout, title)
    try:
        buffer = io.BytesIO()
        fig.savefig(buffer, format=fmt, dpi=DPI, facecolor=BG)
        return buffer.getvalue()
    finally:
        plt.close(fig)


def render_png(layout: StreamgraphLayout, title: str = "") -> bytes:
    return _render(layout, title, "png")


def render_svg(layout: StreamgraphLayout, title: str = "") -> bytes:
    return _render(layout, title, "svg")
