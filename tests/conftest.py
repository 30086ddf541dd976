import pytest

from estate_watch.core.rate_limit import RateLimiter
from estate_watch.services.geocoding import GeocodingClient


class FakeResponse:
    def __init__(self, status_code=200, payload=None, reason="OK", raise_json=False):
        self.status_code = status_code
        self.reason = reason
        self._payload = payload
        self._raise_json = raise_json

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._raise_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeSession:
    """Stands in for requests.Session; answers by URL prefix."""

    def __init__(self, routes=None, default=None):
        self.routes = dict(routes or {})
        self.default = default or FakeResponse(404, None, reason="Not Found")
        self.calls = []

    def _answer(self, method, url, kwargs):
        self.calls.append((method, url, kwargs))
        for prefix, resp in self.routes.items():
            if url.startswith(prefix):
                if isinstance(resp, Exception):
                    raise resp
                return resp
        return self.default

    def get(self, url, **kwargs):
        return self._answer("GET", url, kwargs)

    def post(self, url, **kwargs):
        return self._answer("POST", url, kwargs)


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def no_wait_limiter():
    return RateLimiter(limit=1, interval=0)


@pytest.fixture
def geocoder_for(no_wait_limiter):
    def make(session):
        return GeocodingClient(session=session, limiter=no_wait_limiter)
    return make


def expose_item(native_id, price="1.200 €", size="65 m²", title="Schöne Wohnung",
                address="Hauptstr. 1, Mitte (Mitte), Berlin"):
    return {
        "id": native_id,
        "title": title,
        "address": {"line": address},
        "attributes": [{"label": "", "value": price}, {"label": "", "value": size}],
    }


def search_payload(*items):
    return {"resultListItems": [{"type": "EXPOSE_RESULT", "item": it} for it in items]}


@pytest.fixture
def make_expose():
    return expose_item


@pytest.fixture
def make_search_payload():
    return search_payload
