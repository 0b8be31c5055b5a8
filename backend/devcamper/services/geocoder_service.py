"""
DevCamper API: Geocoder Client
===============================

What:  Resolves free-form addresses and zipcodes to coordinates plus a
       structured address.
How:   httpx against a MapQuest-compatible endpoint; transport failures are
       retried with tenacity (exponential backoff + jitter).
Who:   bootcamp_service, when a bootcamp is created and for radius search.

Response mapping (MapQuest → GeoLocation):
    latLng.lat / latLng.lng  → latitude / longitude
    street                   → street
    adminArea5               → city
    adminArea3               → state
    postalCode               → zipcode
    adminArea1               → country
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from devcamper.config import settings
from devcamper.exceptions import GeocoderError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeoLocation:
    latitude: float
    longitude: float
    formatted_address: str
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    country: Optional[str] = None


class GeocoderService:
    """
    Thin async client for the geocoding provider.

    `transport` exists so tests can plug in httpx.MockTransport.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or settings.geocoder_base_url
        self.api_key = api_key if api_key is not None else settings.geocoder_api_key
        self.timeout = timeout or settings.geocoder_timeout
        self.transport = transport

    async def geocode(self, address: str) -> GeoLocation:
        """
        Raises:
            ValidationError: the provider found no match for `address`
            GeocoderError:   the provider is unreachable or answered with an error
        """
        try:
            payload = await self._request(address)
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Geocoding request failed for '%s': %s", address, str(e))
            raise GeocoderError(context={"address": address, "error": type(e).__name__})

        status = payload.get("info", {}).get("statuscode", 0)
        if status != 0:
            logger.error("Geocoder answered with status %s for '%s'", status, address)
            raise GeocoderError(context={"address": address, "statuscode": status})

        location = self._first_location(payload)
        if location is None:
            raise ValidationError(f"Could not geocode address '{address}'", field="address")
        return self._to_geolocation(location)

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential(multiplier=settings.retry_min_wait, max=settings.retry_max_wait)
        + wait_random(0, settings.retry_min_wait),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _request(self, address: str) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.get(
                self.base_url,
                params={"key": self.api_key, "location": address, "maxResults": 1},
            )
            response.raise_for_status()
            return response.json()

    @staticmethod
    def _first_location(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        for result in payload.get("results") or []:
            for location in result.get("locations") or []:
                if location.get("latLng"):
                    return location
        return None

    @staticmethod
    def _to_geolocation(location: Dict[str, Any]) -> GeoLocation:
        lat_lng = location["latLng"]
        street = location.get("street") or None
        city = location.get("adminArea5") or None
        state = location.get("adminArea3") or None
        zipcode = location.get("postalCode") or None
        country = location.get("adminArea1") or None
        formatted = ", ".join(
            part for part in (street, city, " ".join(filter(None, (state, zipcode))), country)
            if part
        )
        return GeoLocation(
            latitude=float(lat_lng["lat"]),
            longitude=float(lat_lng["lng"]),
            formatted_address=formatted,
            street=street,
            city=city,
            state=state,
            zipcode=zipcode,
            country=country,
        )


geocoder_service = GeocoderService()
