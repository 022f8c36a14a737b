"""
aggregate.py — Turn a flat list of listens into a dense monthly series per
artist.

Steps:
    1. local (year, month) of every event in the configured timezone
    2. observed range [first_month, last_month], inclusive
    3. global top-N artists by total plays (ties: first appearance wins)
    4. per-month counts of the selected artists
    5. optional normalization to a percentage of each month's selected plays
    6. gap-fill: one value per artist per month, 0 where nothing was played

Artists are keyed by name, so listens with an empty artist mbid still group
together.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import NamedTuple, Sequence

import pandas as pd

from .config import StreamgraphConfig
from .history import Event

logger = logging.getLogger(__name__)

EPOCH_YEAR = 1970


# ---------------------------------------------------------------------------
# Month keys
# ---------------------------------------------------------------------------

class MonthKey(NamedTuple):
    year:  int
    month: int

    @classmethod
    def from_datetime(cls, when: datetime | pd.Timestamp, tz=None) -> "MonthKey":
        """Month of `when`, read in `tz` when given (naive values count as UTC)."""
        stamp = pd.Timestamp(when)
        if tz is not None:
            if stamp.tzinfo is None:
                stamp = stamp.tz_localize("UTC")
            stamp = stamp.tz_convert(tz)
        return cls(int(stamp.year), int(stamp.month))

    def next_month(self) -> "MonthKey":
        if self.month == 12:
            return MonthKey(self.year + 1, 1)
        return MonthKey(self.year, self.month + 1)

    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


EPOCH_MONTH = MonthKey(EPOCH_YEAR, 1)


def months_between(first: MonthKey, last: MonthKey) -> int:
    """Whole months from first to last (0 when equal)."""
    return (last.year - first.year) * 12 + (last.month - first.month)


def month_range(first: MonthKey, last: MonthKey) -> list[MonthKey]:
    if last < first:
        return []
    months = [first]
    while months[-1] < last:
        months.append(months[-1].next_month())
    return months


# ---------------------------------------------------------------------------
# Series
# ---------------------------------------------------------------------------

@dataclass
class Series:
    first_month:    MonthKey
    last_month:     MonthKey
    months:         list[MonthKey]
    artists:        list[str]                 # selection order
    values:         dict[str, list[float]]    # artist → one value per month
    monthly_totals: list[int]                 # plays per month before selection
    event_count:    int = 0
    proportional:   bool = False
    top_n:          int = 0
    selected_totals: dict[str, int] = field(default_factory=dict)

    @property
    def month_count(self) -> int:
        return len(self.months)

    @property
    def is_empty(self) -> bool:
        return not self.artists

    def column(self, index: int) -> dict[str, float]:
        return {artist: self.values[artist][index] for artist in self.artists}


def local_months(events: Sequence[Event], tz) -> list[MonthKey]:
    """Month of each event in local time, same order as events."""
    if not events:
        return []
    stamps = pd.to_datetime([e.timestamp for e in events], utc=True).tz_convert(tz)
    return [MonthKey.from_datetime(stamp) for stamp in stamps]


def select_top_artists(events: Sequence[Event], top_n: int) -> list[tuple[str, int]]:
    """
    Rank artists by total plays, keep the first top_n.

    Counter keeps first-appearance order and sorted() is stable, so equal
    counts stay in the order the artists first show up in the events.
    """
    totals = Counter(e.artist for e in events)
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return ranked[:top_n]


def aggregate(events: Sequence[Event], config: StreamgraphConfig) -> Series:
    config.validate()

    if not events:
        logger.debug("No events; falling back to single month %s", EPOCH_MONTH.label)
        return Series(
            first_month=EPOCH_MONTH,
            last_month=EPOCH_MONTH,
            months=[EPOCH_MONTH],
            artists=[],
            values={},
            monthly_totals=[0],
            event_count=0,
            proportional=config.proportional,
            top_n=config.top_n,
        )

    keys = local_months(events, config.timezone)
    first_month, last_month = min(keys), max(keys)
    months = month_range(first_month, last_month)
    index_of = {month: i for i, month in enumerate(months)}

    monthly_totals = [0] * len(months)
    for key in keys:
        monthly_totals[index_of[key]] += 1

    selected = select_top_artists(events, config.top_n)
    artists = [artist for artist, _ in selected]
    logger.debug(
        "Range %s..%s (%d months), %d of %d artists selected",
        first_month.label, last_month.label, len(months),
        len(artists), len({e.artist for e in events}),
    )

    # month index → artist → plays
    counts: dict[int, Counter] = defaultdict(Counter)
    keep = set(artists)
    for event, key in zip(events, keys):
        if event.artist in keep:
            counts[index_of[key]][event.artist] += 1

    values: dict[str, list[float]] = {artist: [0.0] * len(months) for artist in artists}
    for i, by_artist in counts.items():
        month_total = sum(by_artist.values())
        for artist, count in by_artist.items():
            if config.proportional:
                values[artist][i] = 100.0 * count / month_total
            else:
                values[artist][i] = float(count)

    return Series(
        first_month=first_month,
        last_month=last_month,
        months=months,
        artists=artists,
        values=values,
        monthly_totals=monthly_totals,
        event_count=len(events),
        proportional=config.proportional,
        top_n=config.top_n,
        selected_totals=dict(selected),
    )
