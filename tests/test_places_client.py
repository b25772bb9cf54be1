import pytest
import requests

from brewcrew import config
from brewcrew.errors import InvalidResponse, MissingCredential, ProviderError
from brewcrew.http import HttpClient, RequestMetrics
from brewcrew.places_client import PlacesClient, build_nearby_search_params


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.headers = {}

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    def __init__(self, responses, clock=None):
        self.responses = list(responses)
        self.clock = clock
        self.calls = []
        self.headers = {}

    def get(self, url, params=None, timeout=None):
        at = self.clock.now if self.clock else 0.0
        self.calls.append({"url": url, "params": dict(params or {}), "at": at})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        pass


def raw_place(idx, **extra):
    place = {
        "place_id": f"p{idx}",
        "name": f"Cafe {idx}",
        "geometry": {"location": {"lat": 35.78 + idx / 1000, "lng": -78.64}},
        "types": ["cafe", "food"],
        "vicinity": f"{idx} Main St",
        "user_ratings_total": idx,
    }
    place.update(extra)
    return place


def make_client(responses, clock=None, api_key="dummy", metrics=None):
    http_client = HttpClient(timeout=1)
    http_client.session = FakeSession(responses, clock=clock)
    clock = clock or FakeClock()
    client = PlacesClient(http_client, api_key, metrics=metrics, sleep=clock.sleep)
    return client, http_client.session


CENTER = {"lat": 35.7796, "lon": -78.6382}


def test_nearby_pages_with_token_delay():
    clock = FakeClock()
    page1 = {
        "status": "OK",
        "results": [raw_place(i) for i in range(20)],
        "next_page_token": "tok-1",
    }
    page2 = {"status": "OK", "results": [raw_place(i) for i in range(20, 25)]}
    metrics = RequestMetrics()
    client, session = make_client(
        [FakeResponse(page1), FakeResponse(page2)], clock=clock, metrics=metrics
    )

    places = client.search_nearby(CENTER, 1500, ["cafe", "coffee_shop"])

    assert len(places) == 25
    assert len(session.calls) == 2
    assert session.calls[1]["at"] - session.calls[0]["at"] >= 2.0
    assert "pagetoken" not in session.calls[0]["params"]
    assert session.calls[1]["params"]["pagetoken"] == "tok-1"
    assert session.calls[0]["params"]["type"] == "cafe|coffee_shop"
    assert session.calls[0]["params"]["location"] == "35.7796,-78.6382"
    assert session.calls[0]["params"]["radius"] == "1500"
    assert metrics.network_nearby == 2
    assert metrics.page_token_waits == 1


def test_nearby_stops_at_result_cap():
    pages = [
        FakeResponse(
            {
                "status": "OK",
                "results": [raw_place(p * 60 + i) for i in range(60)],
                "next_page_token": f"tok-{p}",
            }
        )
        for p in range(3)
    ]
    client, session = make_client(pages)

    places = client.search_nearby(CENTER, 15000, ["bakery"])

    assert len(places) == 120
    assert len(session.calls) == 2


def test_nearby_first_page_has_no_delay():
    clock = FakeClock()
    client, _ = make_client([FakeResponse({"status": "ZERO_RESULTS", "results": []})], clock=clock)

    assert client.search_nearby(CENTER, 1000, ["bakery"]) == []
    assert clock.sleeps == []


def test_missing_credential_before_any_request():
    client, session = make_client([], api_key="")

    with pytest.raises(MissingCredential):
        client.search_nearby(CENTER, 1000, ["cafe"])
    with pytest.raises(MissingCredential):
        client.search_text("coffee shops Raleigh NC")
    assert session.calls == []


def test_provider_status_error():
    client, _ = make_client([FakeResponse({"status": "OVER_QUERY_LIMIT", "results": []})])

    with pytest.raises(ProviderError) as exc_info:
        client.search_text("cafe Durham NC")
    assert exc_info.value.status == "OVER_QUERY_LIMIT"


def test_http_error_status_is_invalid_response():
    client, _ = make_client([FakeResponse({}, status_code=403)])

    with pytest.raises(InvalidResponse) as exc_info:
        client.search_text("cafe Durham NC")
    assert exc_info.value.status_code == 403


def test_non_json_body_is_invalid_response():
    client, _ = make_client([FakeResponse(ValueError("not json"))])

    with pytest.raises(InvalidResponse):
        client.search_text("cafe Durham NC")


def test_transport_failure_is_invalid_response():
    client, _ = make_client([requests.ConnectionError("boom")])

    with pytest.raises(InvalidResponse):
        client.search_nearby(CENTER, 1000, ["cafe"])


def test_text_search_single_request():
    payload = {
        "status": "OK",
        "results": [raw_place(1)],
        "next_page_token": "ignored",
    }
    client, session = make_client([FakeResponse(payload)])

    places = client.search_text("espresso Raleigh NC")

    assert [p.place_id for p in places] == ["p1"]
    assert len(session.calls) == 1
    assert session.calls[0]["url"] == config.PLACES_TEXT_SEARCH_URL
    assert session.calls[0]["params"] == {"query": "espresso Raleigh NC", "key": "dummy"}


def test_build_nearby_params_truncates_radius():
    params = build_nearby_search_params(CENTER, 1234.9, ["bakery"], "k", page_token=None)
    assert params["radius"] == "1234"
    assert "pagetoken" not in params
