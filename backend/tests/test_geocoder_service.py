"""
DevCamper API: Geocoder Client Tests
=====================================

The provider is replaced with httpx.MockTransport; no network access.
"""

import httpx
import pytest
from tenacity import RetryCallState
from tenacity.wait import wait_combine, wait_exponential, wait_random

from devcamper.exceptions import GeocoderError, ValidationError
from devcamper.services.geocoder_service import GeocoderService

BASE_URL = "https://geocoder.test/geocoding/v1/address"

MAPQUEST_RESPONSE = {
    "info": {"statuscode": 0},
    "results": [
        {
            "locations": [
                {
                    "street": "233 Bay State Rd",
                    "adminArea5": "Boston",
                    "adminArea3": "MA",
                    "postalCode": "02215",
                    "adminArea1": "US",
                    "latLng": {"lat": 42.350846, "lng": -71.105463},
                }
            ]
        }
    ],
}


def make_service(handler) -> GeocoderService:
    return GeocoderService(
        base_url=BASE_URL,
        api_key="key-123",
        timeout=1.0,
        transport=httpx.MockTransport(handler),
    )


async def test_geocode_maps_first_location():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json=MAPQUEST_RESPONSE)

    location = await make_service(handler).geocode("233 Bay State Rd Boston MA 02215")

    assert seen == {"key": "key-123", "location": "233 Bay State Rd Boston MA 02215", "maxResults": "1"}
    assert location.latitude == 42.350846
    assert location.longitude == -71.105463
    assert location.city == "Boston"
    assert location.state == "MA"
    assert location.zipcode == "02215"
    assert location.country == "US"
    assert location.formatted_address == "233 Bay State Rd, Boston, MA 02215, US"


async def test_no_match_is_a_validation_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"info": {"statuscode": 0}, "results": [{"locations": []}]})

    with pytest.raises(ValidationError, match="Could not geocode address 'nowhere'"):
        await make_service(handler).geocode("nowhere")


async def test_provider_error_status():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"info": {"statuscode": 403, "messages": ["bad key"]}})

    with pytest.raises(GeocoderError):
        await make_service(handler).geocode("02118")


async def test_http_error_status():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    with pytest.raises(GeocoderError):
        await make_service(handler).geocode("02118")


async def test_transport_errors_are_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json=MAPQUEST_RESPONSE)

    location = await make_service(handler).geocode("02118")

    assert len(calls) == 2
    assert location.city == "Boston"


async def test_gives_up_after_max_attempts():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GeocoderError):
        await make_service(handler).geocode("02118")
    # RETRY_MAX_ATTEMPTS=2 in the test environment
    assert len(calls) == 2


def test_backoff_is_exponential_with_jitter():
    """Exponential backoff plus random jitter, capped by RETRY_MAX_WAIT."""
    strategy = GeocoderService._request.retry.wait
    assert isinstance(strategy, wait_combine)
    assert [type(w) for w in strategy.wait_funcs] == [wait_exponential, wait_random]

    state = RetryCallState(retry_object=None, fn=None, args=(), kwargs={})
    for attempt in (1, 5, 50):
        state.attempt_number = attempt
        # RETRY_MIN_WAIT=0, RETRY_MAX_WAIT=1 in the test environment
        assert 0 <= strategy(state) <= 1
