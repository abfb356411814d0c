import logging

import requests
from django.conf import settings

from flights.providers.auth import get_token_cache
from flights.providers.base import FlightProvider, UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://test.api.amadeus.com"

FLIGHT_OFFERS_PATH = "/v2/shopping/flight-offers"
FLIGHT_DATES_PATH = "/v1/shopping/flight-dates"
LOCATIONS_PATH = "/v1/reference-data/locations"
PRICE_METRICS_PATH = "/v1/analytics/itinerary-price-metrics"

MIN_KEYWORD_LENGTH = 2


def _flag(value: bool) -> str:
    return "true" if value else "false"


def _read_body(response):
    try:
        return response.json()
    except ValueError:
        return response.text


class AmadeusProvider(FlightProvider):
    """Read-only client for the Amadeus self-service endpoints.

    Every call attaches a bearer token from the token cache, issues one GET
    and returns the decoded JSON body untouched. Nothing is retried.
    """

    def __init__(self, token_cache=None, base_url=None, timeout=None):
        self.token_cache = token_cache or get_token_cache()
        self.base_url = (base_url or getattr(settings, "AMADEUS_BASE_URL", DEFAULT_BASE_URL)).rstrip("/")
        self.timeout = timeout or getattr(settings, "AMADEUS_TIMEOUT", 15)

    def _request_json(self, path: str, query: dict) -> dict:
        token = self.token_cache.get_token()
        headers = {"Accept": "application/json", "Authorization": f"Bearer {token}"}
        try:
            response = requests.get(self.base_url + path, params=query, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.exception("Amadeus request to %s failed.", path)
            raise UpstreamError(path, body=str(exc)) from exc

        if response.status_code >= 400:
            body = _read_body(response)
            logger.warning(
                "Amadeus error response from %s (%s): %s",
                path,
                response.status_code,
                body,
                extra={"endpoint": path, "status_code": response.status_code, "details": body},
            )
            if response.status_code == 401:
                # Revoked or rotated token; the next call exchanges a fresh one.
                self.token_cache.invalidate()
            raise UpstreamError(path, status=response.status_code, body=body)

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(
                path,
                status=response.status_code,
                body=response.text,
                message="Amadeus response was not valid JSON.",
            ) from exc

    def search_offers(self, criteria) -> dict:
        query = {
            "originLocationCode": criteria.origin,
            "destinationLocationCode": criteria.destination,
            "departureDate": criteria.departure_date.isoformat(),
            "adults": criteria.adults,
            "currencyCode": criteria.currency,
        }
        if criteria.children and criteria.children > 0:
            query["children"] = criteria.children
        if not criteria.one_way and criteria.return_date:
            query["returnDate"] = criteria.return_date.isoformat()
        return self._request_json(FLIGHT_OFFERS_PATH, query)

    def search_flight_dates(self, origin, destination, *, one_way, non_stop=False, duration=None) -> dict:
        query = {
            "origin": origin,
            "destination": destination,
            "oneWay": _flag(one_way),
            "nonStop": _flag(non_stop),
        }
        # Stay length only makes sense for a return trip.
        if duration and not one_way:
            query["duration"] = duration
        return self._request_json(FLIGHT_DATES_PATH, query)

    def search_locations(self, keyword: str) -> dict:
        if not keyword or len(keyword) < MIN_KEYWORD_LENGTH:
            raise ValueError(f"Keyword must be at least {MIN_KEYWORD_LENGTH} characters")
        return self._request_json(LOCATIONS_PATH, {"subType": "CITY,AIRPORT", "keyword": keyword})

    def price_metrics(self, origin, destination, departure_date, *, currency, one_way) -> dict:
        query = {
            "originIataCode": origin,
            "destinationIataCode": destination,
            "departureDate": departure_date.isoformat(),
            "currencyCode": currency,
            "oneWay": _flag(one_way),
        }
        return self._request_json(PRICE_METRICS_PATH, query)
