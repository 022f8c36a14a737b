"""
main.py — FastAPI backend for the listening streamgraph.

Uploads are processed in memory; nothing is written to disk. Each request
recomputes the whole pipeline from the uploaded file and form settings.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from .config import (
    ConfigurationError,
    StreamgraphConfig,
    StreamgraphError,
    load_settings,
    parse_top_n,
)
from .history import HistoryParseError
from .layout import StreamgraphLayout
from .payload import build_payload
from .pipeline import run_streamgraph
from .render import render_png, render_svg

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

ALLOWED_EXTENSIONS = {".csv"}
IMAGE_FORMATS = {"png": ("image/png", render_png), "svg": ("image/svg+xml", render_svg)}

logger   = logging.getLogger(__name__)
# Read once at import, so a malformed STREAMGRAPH_* value stops startup.
settings = load_settings()

app = FastAPI(title="Listening Streamgraph", version="1.0.0")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _request_config(top_n: str, proportional: bool, timezone: str) -> StreamgraphConfig:
    try:
        config = settings.stream_config(
            top_n=parse_top_n(top_n, default=settings.top_n),
            proportional=proportional,
            timezone=timezone.strip() or settings.timezone,
        )
        config.validate()
    except ConfigurationError as exc:
        logger.warning("Rejected configuration: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return config


def _check_extension(file: UploadFile) -> str:
    filename  = file.filename or ""
    extension = Path(filename).suffix.lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise HTTPException(status_code=400, detail="Unsupported file type. Upload a .csv export.")
    return filename


def _compute(file: UploadFile, config: StreamgraphConfig) -> StreamgraphLayout:
    try:
        return run_streamgraph(file.file, config, settings.chart_config())
    except HistoryParseError as exc:
        logger.warning("History upload rejected: %s", exc)
        raise HTTPException(
            status_code=400, detail=f"Could not read listening history: {exc}"
        ) from exc
    except StreamgraphError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Unexpected error: {exc}") from exc
    finally:
        file.file.close()


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.get("/api/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/api/defaults")
def defaults() -> dict:
    chart = settings.chart_config()
    return {
        "top_n":        settings.top_n,
        "proportional": settings.proportional,
        "timezone":     settings.timezone,
        "chart":        {"width": chart.width, "height": chart.height},
    }


@app.post("/api/streamgraph")
def streamgraph(
    top_n:        str  = Form(default=""),
    proportional: bool = Form(default=False),
    timezone:     str  = Form(default=""),
    file:         UploadFile = File(...),
) -> dict:
    source_file = _check_extension(file)
    config      = _request_config(top_n, proportional, timezone)
    layout      = _compute(file, config)

    logger.info(
        "Streamgraph for %s: %d artists over %d months",
        source_file, len(layout.order), layout.series.month_count,
    )
    return build_payload(layout, config, source_file)


@app.post("/api/streamgraph/image")
def streamgraph_image(
    top_n:        str  = Form(default=""),
    proportional: bool = Form(default=False),
    timezone:     str  = Form(default=""),
    format:       str  = Form(default="png"),
    title:        str  = Form(default=""),
    file:         UploadFile = File(...),
) -> Response:
    fmt = format.strip().lower()
    if fmt not in IMAGE_FORMATS:
        raise HTTPException(status_code=400, detail="Unsupported image format. Use png or svg.")

    _check_extension(file)
    config = _request_config(top_n, proportional, timezone)
    layout = _compute(file, config)

    media_type, renderer = IMAGE_FORMATS[fmt]
    return Response(content=renderer(layout, title.strip()), media_type=media_type)
