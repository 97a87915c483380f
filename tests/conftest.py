import os
os.environ.setdefault("NEO_BASE_URL", "https://api.nasa.gov/neo/rest/v1/feed")
os.environ.setdefault("NEO_API_KEY", "DEMO_KEY")
import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from asteroids.main import app
from asteroids.config import ClientConfig
from asteroids.services import NeoFetcher

BASE_URL = "https://api.nasa.gov/neo/rest/v1/feed"
API_KEY = "DEMO_KEY"

# name, diameter min (km), diameter max (km), velocity (km/h)
SAMPLE_NEOS = [
    ("495615 (2015 PQ291)", "0.7665755735", "1.7141150923", "77659.2190847498"),
    ("(2011 SE16)", "0.0305179233", "0.0682401509", "47780.2071293677"),
    ("(2012 VF82)", "0.1838886721", "0.411187571", "51033.7644442416"),
    ("(2016 WY7)", "0.0742258153", "0.1659739687", "63861.979075168"),
    ("(2018 HC1)", "0.0121494041", "0.0271668934", "80702.790658636"),
]


def neo_entry(name, dmin, dmax, kph, approach="2022-11-16"):
    return {
        "id": name,
        "name": name,
        "estimated_diameter": {
            "kilometers": {
                "estimated_diameter_min": float(dmin),
                "estimated_diameter_max": float(dmax),
            },
            "meters": {
                "estimated_diameter_min": float(dmin) * 1000,
                "estimated_diameter_max": float(dmax) * 1000,
            },
        },
        "is_potentially_hazardous_asteroid": False,
        "close_approach_data": [
            {
                "close_approach_date": approach,
                "relative_velocity": {
                    "kilometers_per_second": "1",
                    "kilometers_per_hour": kph,
                },
                "orbiting_body": "Earth",
            }
        ],
    }


class FeedStub:
    """Stands in for the NEO feed and records every request it receives."""

    def __init__(self, payload=None, status_code=200, text=None, exc=None):
        self.payload = payload
        self.status_code = status_code
        self.text = text
        self.exc = exc
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.payload)


@pytest.fixture
def sample_feed():
    def build(*days, entries=None):
        if entries is None:
            entries = [neo_entry(*n) for n in SAMPLE_NEOS]
        return {
            "element_count": len(entries) * len(days),
            "near_earth_objects": {d.isoformat(): list(entries) for d in days},
        }
    return build


@pytest.fixture
def make_fetcher():
    def build(stub):
        config = ClientConfig(base_url=BASE_URL, api_key=API_KEY)
        client = httpx.AsyncClient(transport=httpx.MockTransport(stub))
        return NeoFetcher(config, client)
    return build


@pytest_asyncio.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def feed_stub():
    return FeedStub


@pytest.fixture
def make_entry():
    return neo_entry
