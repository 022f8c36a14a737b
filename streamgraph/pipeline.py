"""
pipeline.py — Orchestrate the streamgraph pipeline.

Sequence:
    1. history.load_history   → [Event]             (CSV export, one-shot)
    2. aggregate.aggregate    → Series              (monthly, top N, gap-filled)
    3. layout.build_layout    → StreamgraphLayout   (bands, scales, geometry)

compute() is the pure part (steps 2–3): one blocking call, no I/O, no shared
state. Re-running with a different config recomputes everything.
"""

from __future__ import annotations

import logging
from typing import Sequence

from .aggregate import aggregate
from .config import ChartConfig, StreamgraphConfig
from .history import Event, HistorySource, load_history
from .layout import StreamgraphLayout, build_layout

logger = logging.getLogger(__name__)


def compute(
    events: Sequence[Event],
    config: StreamgraphConfig,
    chart: ChartConfig | None = None,
) -> StreamgraphLayout:
    series = aggregate(events, config)
    return build_layout(series, chart)


def run_streamgraph(
    source: HistorySource,
    config: StreamgraphConfig,
    chart: ChartConfig | None = None,
) -> StreamgraphLayout:
    """Load a history export and compute its layout. Raises StreamgraphError."""
    # Fail on bad configuration before touching the file.
    config.validate()

    # ── Step 1: Load ─────────────────────────────────────────────────────────
    logger.info("[pipeline] Step 1 — load history")
    events = load_history(source)

    # ── Step 2: Aggregate ────────────────────────────────────────────────────
    logger.info("[pipeline] Step 2 — aggregate (top_n=%d, proportional=%s, tz=%s)",
                config.top_n, config.proportional, config.timezone)
    series = aggregate(events, config)

    # ── Step 3: Layout ───────────────────────────────────────────────────────
    logger.info("[pipeline] Step 3 — layout")
    layout = build_layout(series, chart)

    logger.info(
        "[pipeline] Done: %d events, %d months (%s..%s), %d artists",
        series.event_count, series.month_count,
        series.first_month.label, series.last_month.label, len(layout.order),
    )
    return layout
