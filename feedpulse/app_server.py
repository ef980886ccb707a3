import logging
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from feedpulse.feed_utils import normalize_feed_urls, parse_year
from feedpulse.main.settings import configure_logging, get_settings
from feedpulse.main.tools.errors import (
    FeedPulseError,
    FetchError,
    InternalError,
    ParseError,
    ValidationError,
)
from feedpulse.main.tools.fetcher import aggregate
from feedpulse.main.tools.rss_feed_utils import fetch_feed, new_http_client
from feedpulse.main.tools.rss_finder import find_rss_feed

logger = logging.getLogger(__name__)

app = FastAPI(
    title="FeedPulse API",
    description="Aggregate, filter and sort articles from RSS/Atom feeds.",
    version="0.1.0",
    docs_url="/docs",        # Swagger UI
    redoc_url="/redoc",      # ReDoc UI
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(FeedPulseError)
async def feedpulse_error_handler(request: Request, exc: FeedPulseError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    error = InternalError("Unexpected server error.", details=str(exc))
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.get("/", tags=["Root"], summary="API root")
async def read_root():
    return {"message": "Welcome to the FeedPulse FastAPI server!"}


@app.get("/healthz", tags=["Root"], summary="Health check")
async def healthz():
    return {"status": "healthy"}


@app.get(
    "/api/fetch-and-filter",
    tags=["Feed"],
    summary="Aggregate news",
    description=(
        "Fetch every ``feed`` concurrently, merge their articles, keep those whose "
        "title contains ``keyword`` and that were published in ``year``, and return "
        "at most 50 of them, newest first. Feeds that fail are skipped."
    ),
)
async def fetch_and_filter(
    feed: List[str] = Query(default=[]),
    keyword: Optional[str] = None,
    year: Optional[str] = None,
) -> List[Dict[str, Any]]:
    feed_urls = normalize_feed_urls(feed)
    if not feed_urls:
        raise ValidationError("At least one feed URL is required.")

    try:
        return await aggregate(feed_urls, keyword=keyword or None, year=parse_year(year))
    except FeedPulseError:
        raise
    except Exception as exc:
        logger.exception("Failed to fetch or filter feeds")
        raise InternalError("Failed to process the RSS feeds.", details=str(exc)) from exc


@app.get(
    "/api/fetch-rss",
    tags=["Feed"],
    summary="Fetch one feed",
    description="Fetch and parse a single RSS/Atom feed and return its items unfiltered.",
)
async def fetch_rss(url: Optional[str] = None) -> List[Dict[str, Any]]:
    if not url:
        raise ValidationError("Feed URL is required.")

    try:
        async with new_http_client() as client:
            feed = await fetch_feed(url, client)
    except (FetchError, ParseError) as exc:
        logger.error("Error fetching feed %s: %s", url, exc)
        raise type(exc)(
            "Failed to fetch or parse the RSS feed.",
            details=exc.details or exc.message,
        ) from exc
    return feed["items"]


@app.get(
    "/api/find-rss",
    tags=["Feed"],
    summary="Discover feed URL",
    description="Scan the HTML of ``url`` for an RSS or Atom ``<link>`` and return its absolute URL.",
)
def find_rss(url: Optional[str] = None) -> Dict[str, str]:
    # Plain ``def``: ``requests`` blocks, so FastAPI runs this in its threadpool.
    if not url:
        raise ValidationError("Site URL is required.")
    return {"feedUrl": find_rss_feed(url)}


def main():
    configure_logging()
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
