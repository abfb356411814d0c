"""Entry points used by the HTTP layer.

Every operation returns a ``SearchResult``: either ``ok`` with data, or a
failure carrying the error kind, a message and details. Invalid input is
rejected before any provider call is made. An empty result is a success.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from flights.providers import get_flight_provider
from flights.providers.base import ProviderError, SearchValidationError
from flights.serializers import FlightDatesSerializer, LocationQuerySerializer, PriceMetricsSerializer
from flights.services.calendar import aggregate_date_prices, trip_duration_days
from flights.services.criteria import SearchCriteria
from flights.services.filters import filter_flights
from flights.services.locations import MIN_KEYWORD_LENGTH, LocationSearch
from flights.services.normalize import normalize_flight_offers, normalize_price_metrics

logger = logging.getLogger(__name__)

__all__ = [
    "SearchResult",
    "filter_flights",
    "get_calendar_prices",
    "get_price_metrics",
    "search_flights",
    "search_locations",
]


@dataclass
class SearchResult:
    ok: bool
    data: Any = None
    query: dict = field(default_factory=dict)
    kind: str | None = None
    message: str | None = None
    details: dict = field(default_factory=dict)
    status_code: int = 200

    @classmethod
    def success(cls, data, query=None):
        return cls(ok=True, data=data, query=query or {})

    @classmethod
    def failure(cls, exc: ProviderError):
        return cls(
            ok=False,
            kind=exc.kind,
            message=str(exc),
            details=exc.details,
            status_code=exc.status_code,
        )

    def error_payload(self) -> dict:
        return {"ok": False, "kind": self.kind, "message": self.message, "details": self.details}


def _validated(serializer_class, params) -> dict:
    serializer = serializer_class(data=params)
    if not serializer.is_valid():
        raise SearchValidationError(serializer.errors)
    return serializer.validated_data


def search_flights(params, provider=None) -> SearchResult:
    try:
        criteria = SearchCriteria.from_params(params)
        provider = provider or get_flight_provider()
        query = criteria.as_query()
        raw = provider.search_offers(criteria)
    except ProviderError as exc:
        logger.warning("Flight search failed: %s", exc, extra={"kind": exc.kind})
        return SearchResult.failure(exc)

    return SearchResult.success(normalize_flight_offers(raw, query), query=query)


def get_calendar_prices(params, provider=None) -> SearchResult:
    try:
        data = _validated(FlightDatesSerializer, params)
        duration = trip_duration_days(data.get("departureDate"), data.get("returnDate"), data["oneWay"])
        provider = provider or get_flight_provider()
        raw = provider.search_flight_dates(
            data["origin"],
            data["destination"],
            one_way=data["oneWay"],
            non_stop=data["nonStop"],
            duration=str(duration) if duration else None,
        )
    except ProviderError as exc:
        logger.warning("Flight dates search failed: %s", exc, extra={"kind": exc.kind})
        return SearchResult.failure(exc)

    entries = raw.get("data") if isinstance(raw, dict) else None
    query = {
        "origin": data["origin"],
        "destination": data["destination"],
        "oneWay": data["oneWay"],
        "nonStop": data["nonStop"],
        "duration": duration,
    }
    return SearchResult.success(aggregate_date_prices(entries), query=query)


def get_price_metrics(params, provider=None) -> SearchResult:
    try:
        data = _validated(PriceMetricsSerializer, params)
        provider = provider or get_flight_provider()
        raw = provider.price_metrics(
            data["origin"],
            data["destination"],
            data["date"],
            currency=data["currency"],
            one_way=data["oneWay"],
        )
    except ProviderError as exc:
        logger.warning("Price metrics lookup failed: %s", exc, extra={"kind": exc.kind})
        return SearchResult.failure(exc)

    query = {
        "origin": data["origin"],
        "destination": data["destination"],
        "date": data["date"].isoformat(),
        "currency": data["currency"],
        "oneWay": data["oneWay"],
    }
    return SearchResult.success({"metrics": normalize_price_metrics(raw), "raw": raw}, query=query)


def search_locations(keyword, provider=None) -> SearchResult:
    keyword = (keyword or "").strip()
    if len(keyword) < MIN_KEYWORD_LENGTH:
        return SearchResult.success([], query={"keyword": keyword})

    try:
        data = _validated(LocationQuerySerializer, {"keyword": keyword})
        groups = LocationSearch(provider or get_flight_provider()).search(data["keyword"])
    except ProviderError as exc:
        logger.warning("Location search failed: %s", exc, extra={"kind": exc.kind})
        return SearchResult.failure(exc)

    return SearchResult.success(groups, query={"keyword": keyword})
