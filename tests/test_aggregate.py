from datetime import datetime, timezone

import pytest

from streamgraph.aggregate import (
    EPOCH_MONTH,
    MonthKey,
    aggregate,
    month_range,
    months_between,
    select_top_artists,
)
from streamgraph.config import ConfigurationError, StreamgraphConfig
from streamgraph.history import Event

from .factories import play, plays


# ---------------------------------------------------------------------------
# Month keys
# ---------------------------------------------------------------------------

def test_month_range_crosses_year_boundary():
    months = month_range(MonthKey(2019, 11), MonthKey(2020, 2))
    assert months == [MonthKey(2019, 11), MonthKey(2019, 12), MonthKey(2020, 1), MonthKey(2020, 2)]
    assert months_between(MonthKey(2019, 11), MonthKey(2020, 2)) == 3


def test_month_key_ordering_and_label():
    assert MonthKey(2019, 12) < MonthKey(2020, 1)
    assert MonthKey(2020, 1).next_month() == MonthKey(2020, 2)
    assert MonthKey(2020, 12).next_month() == MonthKey(2021, 1)
    assert MonthKey(2021, 3).label == "2021-03"


def test_month_key_from_datetime():
    late_january = datetime(2020, 1, 31, 23, 30, tzinfo=timezone.utc)
    assert MonthKey.from_datetime(late_january) == MonthKey(2020, 1)
    # 00:30 on 1 February in Berlin.
    assert MonthKey.from_datetime(late_january, "Europe/Berlin") == MonthKey(2020, 2)
    # Naive values are read as UTC before converting.
    assert MonthKey.from_datetime(datetime(2020, 2, 1, 2, 0), "America/New_York") == MonthKey(2020, 1)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def test_proportional_example(example_events):
    series = aggregate(example_events, StreamgraphConfig(top_n=2, proportional=True))

    assert series.first_month == MonthKey(2020, 1)
    assert series.last_month == MonthKey(2020, 2)
    assert series.artists == ["A", "B"]
    assert series.values["A"] == pytest.approx([75.0, 100.0])
    assert series.values["B"] == pytest.approx([25.0, 0.0])


def test_raw_counts_and_monthly_totals(example_events):
    series = aggregate(example_events, StreamgraphConfig(top_n=1))

    assert series.artists == ["A"]
    assert series.values == {"A": [3.0, 2.0]}
    # Totals are counted before top-N filtering.
    assert series.monthly_totals == [4, 2]
    assert series.event_count == 6


def test_gap_filled_across_missing_months():
    events = plays(2019, 11, "A", 2) + plays(2020, 2, "B", 1)
    series = aggregate(events, StreamgraphConfig(top_n=5))

    assert len(series.months) == months_between(series.first_month, series.last_month) + 1 == 4
    assert series.values["A"] == [2.0, 0.0, 0.0, 0.0]
    assert series.values["B"] == [0.0, 0.0, 0.0, 1.0]
    assert series.monthly_totals == [2, 0, 0, 1]


def test_every_artist_has_one_value_per_month():
    events = plays(2018, 6, "A", 4) + plays(2019, 1, "B", 2) + plays(2019, 8, "C", 1)
    series = aggregate(events, StreamgraphConfig(top_n=3))
    assert {len(v) for v in series.values.values()} == {len(series.months)}


def test_proportional_months_sum_to_100_or_zero():
    events = (
        plays(2021, 1, "A", 3) + plays(2021, 1, "B", 4) + plays(2021, 1, "C", 9)
        + plays(2021, 3, "C", 1)
    )
    series = aggregate(events, StreamgraphConfig(top_n=2, proportional=True))

    assert series.artists == ["C", "B"]
    for i in range(series.month_count):
        total = sum(series.values[a][i] for a in series.artists)
        assert total == pytest.approx(100.0) or total == 0.0
    # February has no plays at all.
    assert all(series.values[a][1] == 0.0 for a in series.artists)


def test_month_with_only_unselected_artists_is_all_zero():
    events = plays(2021, 1, "A", 5) + plays(2021, 2, "B", 1)
    series = aggregate(events, StreamgraphConfig(top_n=1, proportional=True))
    assert series.values == {"A": [100.0, 0.0]}


def test_top_n_bound():
    events = []
    for i, name in enumerate("ABCDEFGHIJKL"):
        events += plays(2020, 1 + i % 12, name, i + 1)
    series = aggregate(events, StreamgraphConfig(top_n=4))
    assert len(series.artists) == 4
    assert series.artists == ["L", "K", "J", "I"]


def test_top_n_larger_than_artist_count():
    series = aggregate(plays(2020, 1, "A", 1), StreamgraphConfig(top_n=50))
    assert series.artists == ["A"]


def test_ties_keep_first_appearance_order():
    events = [play(2020, 1, "B"), play(2020, 1, "A"), play(2020, 2, "C"), play(2020, 2, "A"), play(2020, 2, "B")]
    assert select_top_artists(events, 2) == [("B", 2), ("A", 2)]


def test_artist_grouped_by_name_even_without_id():
    events = [
        play(2020, 1, "Burial", artist_id="9ddce51c-2b75-4b3e-ac8c-1db09119a7e4"),
        play(2020, 1, "Burial", artist_id=""),
    ]
    series = aggregate(events, StreamgraphConfig(top_n=5))
    assert series.values == {"Burial": [2.0]}


def test_timezone_moves_event_into_next_month():
    late_january = Event(timestamp=datetime(2020, 1, 31, 20, 0, tzinfo=timezone.utc), artist="A")
    utc = aggregate([late_january], StreamgraphConfig(timezone="UTC"))
    tokyo = aggregate([late_january], StreamgraphConfig(timezone="Asia/Tokyo"))

    assert utc.first_month == MonthKey(2020, 1)
    assert tokyo.first_month == MonthKey(2020, 2)


def test_timezone_can_move_range_back_a_year():
    new_year = Event(timestamp=datetime(2021, 1, 1, 2, 0, tzinfo=timezone.utc), artist="A")
    series = aggregate([new_year], StreamgraphConfig(timezone="America/New_York"))
    assert series.months == [MonthKey(2020, 12)]


def test_deterministic(example_events):
    config = StreamgraphConfig(top_n=2, proportional=True)
    assert aggregate(example_events, config) == aggregate(list(example_events), config)


# ---------------------------------------------------------------------------
# Degenerate input and configuration errors
# ---------------------------------------------------------------------------

def test_empty_events_fall_back_to_epoch_month():
    series = aggregate([], StreamgraphConfig())

    assert series.months == [EPOCH_MONTH]
    assert series.artists == []
    assert series.values == {}
    assert series.monthly_totals == [0]
    assert series.is_empty


@pytest.mark.parametrize("top_n", [0, -3, 2.5, True, "5"])
def test_invalid_top_n_is_configuration_error(top_n):
    with pytest.raises(ConfigurationError):
        aggregate(plays(2020, 1, "A", 1), StreamgraphConfig(top_n=top_n))


def test_unknown_timezone_is_configuration_error():
    with pytest.raises(ConfigurationError):
        aggregate(plays(2020, 1, "A", 1), StreamgraphConfig(timezone="Mars/Olympus_Mons"))


def test_config_checked_even_for_empty_input():
    with pytest.raises(ConfigurationError):
        aggregate([], StreamgraphConfig(top_n=0))
