"""
history.py — Load a listening-history CSV export into Event records.

Expected header (last.fm export layout, extra columns such as utc_time are
ignored):

    uts, artist, artist_mbid, album, album_mbid, track, track_mbid

`uts` is Unix seconds. mbid fields may be empty. Any malformed row fails the
whole load; partial results are never returned.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Union

import pandas as pd

from .config import StreamgraphError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = (
    "uts",
    "artist",
    "artist_mbid",
    "album",
    "album_mbid",
    "track",
    "track_mbid",
)

HistorySource = Union[str, Path, bytes, BinaryIO]


class HistoryParseError(StreamgraphError):
    pass


@dataclass(frozen=True)
class Event:
    """One listen."""
    timestamp: datetime
    artist:    str
    artist_id: str = ""
    album:     str = ""
    album_id:  str = ""
    track:     str = ""
    track_id:  str = ""


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def _read_bytes(source: HistorySource) -> bytes:
    if isinstance(source, bytes):
        return source
    if isinstance(source, (str, Path)):
        try:
            return Path(source).read_bytes()
        except OSError as exc:
            raise HistoryParseError(f"Cannot open {source}: {exc}") from exc
    return source.read()


def _decode(raw: bytes) -> str:
    # utf-8 first, latin-1 for older exports with accented names
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def read_history_frame(source: HistorySource) -> pd.DataFrame:
    """Read the CSV as all-string columns and check the header."""
    text = _decode(_read_bytes(source))
    if not text.strip():
        raise HistoryParseError("The history file is empty.")

    try:
        df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise HistoryParseError(f"Malformed CSV: {exc}") from exc

    df.columns = [str(c).strip() for c in df.columns]
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise HistoryParseError(f"Missing required columns: {', '.join(missing)}")

    # Short rows come back as NaN even with keep_default_na=False.
    gaps = df[list(REQUIRED_COLUMNS)].isna()
    if gaps.to_numpy().any():
        first = int(gaps.any(axis=1).to_numpy().argmax())
        fields = [col for col in REQUIRED_COLUMNS if gaps.iloc[first][col]]
        raise HistoryParseError(f"Row {first + 1}: missing field(s) {', '.join(fields)}")
    return df


def parse_uts(value: str, row_number: int) -> datetime:
    text = str(value).strip()
    try:
        seconds = int(text)
    except ValueError as exc:
        raise HistoryParseError(
            f"Row {row_number}: invalid timestamp {value!r} in column 'uts'"
        ) from exc
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise HistoryParseError(
            f"Row {row_number}: timestamp {seconds} is out of range"
        ) from exc


def load_history(source: HistorySource) -> list[Event]:
    df = read_history_frame(source)

    events: list[Event] = []
    # Row numbers are 1-based data rows; header is row 0.
    for row_number, row in enumerate(df[list(REQUIRED_COLUMNS)].itertuples(index=False), start=1):
        events.append(Event(
            timestamp=parse_uts(row.uts, row_number),
            artist=row.artist,
            artist_id=row.artist_mbid,
            album=row.album,
            album_id=row.album_mbid,
            track=row.track,
            track_id=row.track_mbid,
        ))

    logger.info("Loaded %d listening events", len(events))
    return events
