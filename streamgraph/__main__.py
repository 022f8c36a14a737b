"""
Render a listening-history CSV export as a streamgraph.

Usage:
    python -m streamgraph \
        --input  scrobbles.csv \
        --output chart.png \
        --top-n 8 --proportional --timezone Europe/London

--format json writes the computed geometry instead of an image.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .config import ChartConfig, StreamgraphError, load_settings, parse_top_n
from .payload import build_payload
from .pipeline import run_streamgraph
from .render import render_png, render_svg


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="streamgraph",
        description="Monthly per-artist streamgraph from a listening-history CSV.",
    )
    parser.add_argument("--input",  required=True, help="Path to the history CSV export")
    parser.add_argument("--output", required=True, help="Where to write the chart")
    parser.add_argument("--top-n",  default=None,
                        help="Number of artists to keep (default from STREAMGRAPH_TOP_N)")
    parser.add_argument("--proportional", action=argparse.BooleanOptionalAction, default=None,
                        help="Show each month as percentages of that month's plays")
    parser.add_argument("--timezone", default=None,
                        help="IANA timezone used to bucket plays into months")
    parser.add_argument("--format", choices=("png", "svg", "json"), default=None,
                        help="Output format (default: from --output suffix, else png)")
    parser.add_argument("--width",  type=int, default=None)
    parser.add_argument("--height", type=int, default=None)
    parser.add_argument("--title",  default="")
    return parser


def _output_format(args) -> str:
    if args.format:
        return args.format
    suffix = Path(args.output).suffix.lower().lstrip(".")
    return suffix if suffix in ("png", "svg", "json") else "png"


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    try:
        settings = load_settings()
        config = settings.stream_config(
            top_n=parse_top_n(args.top_n, default=settings.top_n),
            proportional=settings.proportional if args.proportional is None else args.proportional,
            timezone=args.timezone or settings.timezone,
        )
        base = settings.chart_config()
        chart = ChartConfig(
            width=base.width if args.width is None else args.width,
            height=base.height if args.height is None else args.height,
            margin_top=base.margin_top,
            margin_right=base.margin_right,
            margin_bottom=base.margin_bottom,
            margin_left=base.margin_left,
        )
        chart.validate()
        layout = run_streamgraph(args.input, config, chart)
    except StreamgraphError as exc:
        print(f"[streamgraph] ERROR: {exc}", file=sys.stderr)
        return 1

    fmt = _output_format(args)
    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)

    if fmt == "json":
        payload = build_payload(layout, config, Path(args.input).name)
        with output.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
    elif fmt == "svg":
        output.write_bytes(render_svg(layout, args.title))
    else:
        output.write_bytes(render_png(layout, args.title))

    print(f"[streamgraph] saved: {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
