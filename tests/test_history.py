import io
from datetime import datetime, timezone

import pytest

from streamgraph.history import HistoryParseError, load_history

from .factories import HEADER, csv_row


def test_load_from_path(history_file):
    events = load_history(history_file)

    assert len(events) == 6
    first = events[0]
    assert first.timestamp == datetime(2020, 2, 15, 12, 0, tzinfo=timezone.utc)
    assert first.artist == "Radiohead"
    assert first.artist_id == "a74b1b7f-71a5-4011-9441-d0b5e4122711"
    assert first.album == "OK Computer"


def test_file_order_is_kept(history_csv):
    events = load_history(history_csv.encode("utf-8"))
    assert [e.artist for e in events[:3]] == ["Radiohead", "Radiohead", "Bicep"]


def test_empty_mbid_stays_empty_string(history_csv):
    events = load_history(io.BytesIO(history_csv.encode("utf-8")))
    bicep = next(e for e in events if e.artist == "Bicep")
    assert bicep.artist_id == ""
    assert bicep.track_id == ""


def test_header_only_gives_no_events():
    assert load_history((HEADER + "\n").encode()) == []


def test_latin1_fallback():
    raw = "\n".join([HEADER, csv_row(1579089600, "Beyoncé")]).encode("latin-1")
    (event,) = load_history(raw)
    assert event.artist == "Beyoncé"


def test_missing_column():
    text = "uts,artist,album,track\n1579089600,A,B,C\n"
    with pytest.raises(HistoryParseError, match="artist_mbid"):
        load_history(text.encode())


def test_bad_timestamp_names_row():
    text = "\n".join([HEADER, csv_row(1579089600, "A"), csv_row("yesterday", "B")])
    with pytest.raises(HistoryParseError, match="Row 2"):
        load_history(text.encode())


def test_fractional_timestamp_rejected():
    text = "\n".join([HEADER, csv_row("1579089600.5", "A")])
    with pytest.raises(HistoryParseError):
        load_history(text.encode())


def test_short_row_rejected():
    text = HEADER + "\n1579089600,01 Jan 2020 00:00,A\n"
    with pytest.raises(HistoryParseError, match="missing field"):
        load_history(text.encode())


def test_empty_file():
    with pytest.raises(HistoryParseError, match="empty"):
        load_history(b"")


def test_missing_path(tmp_path):
    with pytest.raises(HistoryParseError):
        load_history(tmp_path / "nope.csv")
