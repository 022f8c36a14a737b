from __future__ import annotations

from .layout import StreamgraphLayout


def _plays(value: int) -> str:
    return f"{value:,} play" + ("" if value == 1 else "s")


def _pct(numerator: float, denominator: float) -> float:
    if denominator <= 0:
        return 0.0
    return round(numerator / denominator * 100, 1)


def build_listening_insights(layout: StreamgraphLayout) -> list[dict]:
    insights: list[dict] = []
    series = layout.series
    if layout.is_empty:
        return insights

    totals = series.selected_totals
    selected_plays = sum(totals.values())
    top_artist = series.artists[0]
    insights.append(
        {
            "title": "Most played artist",
            "explanation": (
                f"{top_artist} leads with {_plays(totals[top_artist])}, "
                f"{_pct(totals[top_artist], selected_plays):.1f}% of plays among the "
                f"top {len(series.artists)} artists."
            ),
            "takeaway": "The widest band in the chart belongs to this artist.",
        }
    )

    busiest = max(range(series.month_count), key=lambda i: series.monthly_totals[i])
    insights.append(
        {
            "title": "Busiest month",
            "explanation": (
                f"{series.months[busiest].label} had {_plays(series.monthly_totals[busiest])} "
                f"out of {_plays(series.event_count)} overall."
            ),
            "takeaway": "Peaks usually line up with new releases or a change of routine.",
        }
    )

    last = series.month_count - 1
    latest = series.column(last)
    leader = max(layout.order, key=lambda artist: latest[artist])
    if latest[leader] > 0:
        insights.append(
            {
                "title": "Current favourite",
                "explanation": (
                    f"In {series.months[last].label}, {leader} had the most plays "
                    f"among your overall top artists."
                ),
                "takeaway": "Its label sits at the right edge of the chart.",
            }
        )

    return insights
