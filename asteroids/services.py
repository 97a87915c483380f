import logging
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional

import httpx
from prometheus_client import Counter
from pydantic import ValidationError

from .config import ClientConfig
from .exceptions import TransportError
from .schemas import FeedResponse, NeoDetail, NeoRecord

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
TOP_LIMIT = 3

FEED_REQUESTS = Counter(
    "neo_feed_requests_total",
    "Outbound NEO feed requests",
    ["outcome"],
)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def build_params(start: date, end: date, api_key: str) -> dict:
    return {
        "start_date": start.strftime(DATE_FORMAT),
        "end_date": end.strftime(DATE_FORMAT),
        "api_key": api_key,
    }


def build_record(detail: NeoDetail) -> NeoRecord:
    """Flatten one feed entry, averaging its estimated diameter in km."""
    kilometers = detail.estimated_diameter.kilometers
    approach = detail.close_approach_data[0]
    return NeoRecord(
        name=detail.name,
        diameter=(kilometers.estimated_diameter_max + kilometers.estimated_diameter_min) / 2,
        velocity=approach.relative_velocity.kilometers_per_hour,
        date=approach.close_approach_date,
    )


def select_top(records: List[NeoRecord], limit: int = TOP_LIMIT) -> List[NeoRecord]:
    # sorted() is stable, so equal diameters keep feed order
    return sorted(records, key=lambda r: r.diameter, reverse=True)[:limit]


class NeoFetcher:
    """Fetches the NEO feed for a date window and keeps the largest objects.

    A single instance is shared by all requests. The underlying
    ``httpx.AsyncClient`` holds no per-request state; pass one in to share a
    connection pool, otherwise the fetcher creates and owns its own.
    """

    def __init__(self, config: ClientConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=config.timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def fetch_top_neos(self, days: int, start: Optional[date] = None) -> List[NeoRecord]:
        """Return up to three NEOs approaching in ``[start, start + days]``.

        An unsuccessful status from the feed, or a payload missing any day of
        the window, yields an empty list. Network faults and unreadable
        payloads raise :class:`TransportError`.
        """
        start_date = start or utc_today()
        end_date = start_date + timedelta(days=days)
        params = build_params(start_date, end_date, self.config.api_key)
        logger.debug(f"Requesting NEO feed for {params['start_date']}..{params['end_date']}")

        try:
            resp = await self.client.get(
                self.config.base_url, params=params, timeout=self.config.timeout
            )
        except httpx.HTTPError as exc:
            FEED_REQUESTS.labels(outcome="transport_error").inc()
            logger.error(f"NEO feed request failed: {exc!r}")
            raise TransportError(f"NEO feed request failed: {exc}") from exc

        if not resp.is_success:
            FEED_REQUESTS.labels(outcome="upstream_error").inc()
            logger.warning(f"NEO feed answered {resp.status_code}; returning no objects")
            return []

        feed = self._parse(resp)

        neos: List[NeoRecord] = []
        for i in range(days + 1):
            day = start_date + timedelta(days=i)
            try:
                entries = feed.objects_on(day)
            except ValidationError as exc:
                raise self._bad_shape(exc) from exc
            if entries is None:
                FEED_REQUESTS.labels(outcome="missing_day").inc()
                logger.warning(f"NEO feed has no entry for {day}; returning no objects")
                return []
            neos.extend(build_record(d) for d in entries if d is not None)

        FEED_REQUESTS.labels(outcome="ok").inc()
        return select_top(neos)

    def _parse(self, resp: httpx.Response) -> FeedResponse:
        try:
            return FeedResponse.model_validate(resp.json(parse_float=Decimal))
        except ValidationError as exc:
            raise self._bad_shape(exc) from exc
        except ValueError as exc:
            FEED_REQUESTS.labels(outcome="transport_error").inc()
            logger.error(f"NEO feed body is not JSON: {exc}")
            raise TransportError("NEO feed returned a body that is not JSON") from exc

    def _bad_shape(self, exc: ValidationError) -> TransportError:
        FEED_REQUESTS.labels(outcome="transport_error").inc()
        logger.error(f"NEO feed payload did not match the expected shape: {exc}")
        return TransportError("NEO feed payload has an unexpected shape")
