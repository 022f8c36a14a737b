"""Monthly per-artist streamgraph of a listening-history export."""

from .aggregate import MonthKey, Series, aggregate
from .config import (
    ChartConfig,
    ConfigurationError,
    StreamgraphConfig,
    StreamgraphError,
)
from .history import Event, HistoryParseError, load_history
from .layout import StreamgraphLayout, build_layout
from .pipeline import compute, run_streamgraph

__all__ = [
    "ChartConfig",
    "ConfigurationError",
    "Event",
    "HistoryParseError",
    "MonthKey",
    "Series",
    "StreamgraphConfig",
    "StreamgraphError",
    "StreamgraphLayout",
    "aggregate",
    "build_layout",
    "compute",
    "load_history",
    "run_streamgraph",
]
