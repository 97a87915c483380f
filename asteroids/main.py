import logging
import time
from datetime import timedelta
from typing import List

from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
)

from . import schemas
from .config import get_settings, load_client_config
from .exceptions import (
    InvalidDaysError,
    TransportError,
    invalid_days_handler,
    transport_error_handler,
)
from .services import NeoFetcher, utc_today

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Asteroids")
app.add_middleware(CORSMiddleware, allow_origins=settings.cors_origins_list)
app.add_exception_handler(InvalidDaysError, invalid_days_handler)
app.add_exception_handler(TransportError, transport_error_handler)

# Prometheus metrics
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "http_status"],
)
REQUEST_LATENCY = Histogram(
    "http_request_latency_seconds",
    "HTTP request latency",
    ["method", "endpoint"],
)


@app.on_event("startup")
async def startup_event():
    config = load_client_config()
    app.state.fetcher = NeoFetcher(config)
    logger.info(f"NEO feed client ready for {config.base_url}")


@app.on_event("shutdown")
async def shutdown_event():
    fetcher = getattr(app.state, "fetcher", None)
    if fetcher is not None:
        await fetcher.aclose()


def get_fetcher(request: Request) -> NeoFetcher:
    return request.app.state.fetcher


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    method = request.method
    endpoint = request.url.path
    start_time = time.monotonic()
    response = await call_next(request)
    duration = time.monotonic() - start_time
    REQUEST_COUNT.labels(method=method, endpoint=endpoint, http_status=response.status_code).inc()
    REQUEST_LATENCY.labels(method=method, endpoint=endpoint).observe(duration)
    return response


def parse_days(days: str | None = None) -> int:
    if days is None:
        raise InvalidDaysError()
    try:
        value = int(days)
    except ValueError:
        raise InvalidDaysError()
    if value < 0:
        raise InvalidDaysError()
    # the window end must still be a representable date
    try:
        utc_today() + timedelta(days=value)
    except OverflowError:
        raise InvalidDaysError()
    return value


# parse_days is declared first so a bad request is rejected before the
# fetcher is looked up.
@app.get("/api/asteroids/get", response_model=List[schemas.NeoRecord])
async def get_asteroids(
    days: int = Depends(parse_days),
    fetcher: NeoFetcher = Depends(get_fetcher),
):
    return await fetcher.fetch_top_neos(days)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/metrics")
async def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
