from __future__ import annotations

import pytest

from streamgraph.history import Event

from .factories import HEADER, csv_row, plays


@pytest.fixture
def example_events() -> list[Event]:
    """A ×3 and B ×1 in 2020-01, A ×2 in 2020-02."""
    return plays(2020, 1, "A", 3) + plays(2020, 1, "B", 1) + plays(2020, 2, "A", 2)


@pytest.fixture
def history_csv() -> str:
    # 2020-01-15 12:00 UTC = 1579089600, 2020-02-15 12:00 UTC = 1581768000
    radiohead = "a74b1b7f-71a5-4011-9441-d0b5e4122711"
    rows = [
        csv_row(1581768000, "Radiohead", radiohead, "OK Computer"),
        csv_row(1581768000, "Radiohead", radiohead, "OK Computer"),
        csv_row(1579089600, "Bicep", "", "Isles"),
        csv_row(1579089600, "Radiohead", radiohead, "Kid A"),
        csv_row(1579089600, "Radiohead", radiohead, "Kid A"),
        csv_row(1579089600, "Radiohead", radiohead, "Kid A"),
    ]
    return "\n".join([HEADER, *rows]) + "\n"


@pytest.fixture
def history_file(tmp_path, history_csv):
    path = tmp_path / "scrobbles.csv"
    path.write_text(history_csv, encoding="utf-8")
    return path
