import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.utils.dateparse import parse_datetime

DURATION_RE = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?")

UNKNOWN_AIRLINE = "Unknown"


@dataclass(frozen=True)
class Flight:
    id: str
    price: Decimal
    currency: str
    origin: str | None
    destination: str | None
    departure_at: datetime | None
    arrival_at: datetime | None
    airline_name: str
    stops: int
    duration_label: str
    duration_minutes: int = 0
    aircraft_name: str | None = None
    operating_airline_name: str | None = None
    validating_airline_names: list[str] = field(default_factory=list)
    bookable_seats: int | None = None


@dataclass
class NormalizedOffers:
    flights: list[Flight]
    dictionaries: dict


def _parse_duration(value):
    if not value or not isinstance(value, str):
        return 0, 0
    match = DURATION_RE.match(value)
    if not match:
        return 0, 0
    return int(match.group(1) or 0), int(match.group(2) or 0)


def parse_duration_to_minutes(value):
    hours, minutes = _parse_duration(value)
    return hours * 60 + minutes


def format_duration(value):
    """``PT2H5M`` -> ``2h 5m``; anything unreadable becomes ``0h 0m``."""
    hours, minutes = _parse_duration(value)
    return f"{hours}h {minutes}m"


def parse_price(value) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite():
        return None
    return price


def _parse_instant(value):
    if not isinstance(value, str):
        return None
    try:
        return parse_datetime(value)
    except ValueError:
        return None


def _parse_int(value):
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _as_dict(value):
    return value if isinstance(value, dict) else {}


def _as_list(value):
    return value if isinstance(value, list) else []


def resolve_code(mapping, code):
    """Look a provider code up in a response dictionary, falling back to the code."""
    if not code or not isinstance(code, str):
        return None
    return mapping.get(code) or code


def extract_dictionaries(raw) -> dict:
    dictionaries = _as_dict(_as_dict(raw).get("dictionaries"))
    return {
        "carriers": _as_dict(dictionaries.get("carriers")),
        "aircraft": _as_dict(dictionaries.get("aircraft")),
        "locations": _as_dict(dictionaries.get("locations")),
        "currencies": _as_dict(dictionaries.get("currencies")),
    }


def normalize_offer(offer, index, dictionaries, query_params=None) -> Flight:
    """Flatten one raw offer.

    The first itinerary stands for the trip: its first segment gives the
    departure leg and its last segment the arrival leg. Unmapped codes,
    odd durations and broken prices degrade to safe defaults instead of
    failing the batch.
    """
    carriers = dictionaries["carriers"]
    aircraft = dictionaries["aircraft"]
    query_params = query_params or {}

    itineraries = _as_list(offer.get("itineraries"))
    itinerary = _as_dict(itineraries[0]) if itineraries else {}
    segments = [s for s in _as_list(itinerary.get("segments")) if isinstance(s, dict)]
    first = segments[0] if segments else {}
    last = segments[-1] if segments else {}

    departure = _as_dict(first.get("departure"))
    arrival = _as_dict(last.get("arrival"))
    operating = _as_dict(first.get("operating"))
    price_obj = _as_dict(offer.get("price"))

    price = parse_price(price_obj.get("total"))
    currency = price_obj.get("currency") or query_params.get("currency") or getattr(settings, "DEFAULT_CURRENCY", "USD")

    departure_at = _parse_instant(departure.get("at"))
    arrival_at = _parse_instant(arrival.get("at"))
    if departure_at is None and query_params.get("departureDate"):
        departure_at = _parse_instant(f"{query_params['departureDate']}T00:00:00")

    validating = [
        resolve_code(carriers, code)
        for code in _as_list(offer.get("validatingAirlineCodes"))
        if isinstance(code, str) and code
    ]

    duration = itinerary.get("duration")
    return Flight(
        id=str(offer.get("id") or f"flight-{index}"),
        price=price if price is not None else Decimal("0"),
        currency=currency,
        origin=departure.get("iataCode") or query_params.get("origin"),
        destination=arrival.get("iataCode") or query_params.get("destination"),
        departure_at=departure_at,
        arrival_at=arrival_at,
        airline_name=resolve_code(carriers, first.get("carrierCode")) or UNKNOWN_AIRLINE,
        aircraft_name=resolve_code(aircraft, _as_dict(first.get("aircraft")).get("code")),
        operating_airline_name=resolve_code(carriers, operating.get("carrierCode")),
        validating_airline_names=validating,
        stops=max(len(segments) - 1, 0),
        duration_label=format_duration(duration),
        duration_minutes=parse_duration_to_minutes(duration),
        bookable_seats=_parse_int(offer.get("numberOfBookableSeats")),
    )


def normalize_flight_offers(raw, query_params=None) -> NormalizedOffers:
    offers = _as_list(_as_dict(raw).get("data"))
    dictionaries = extract_dictionaries(raw)

    flights = [
        normalize_offer(offer, index, dictionaries, query_params)
        for index, offer in enumerate(offers)
        if isinstance(offer, dict)
    ]
    return NormalizedOffers(flights=flights, dictionaries=dictionaries)


def normalize_price_metrics(raw) -> dict[str, Decimal]:
    """Quartile ranking -> amount for the first metrics record in the response."""
    records = _as_list(_as_dict(raw).get("data"))
    if not records:
        return {}

    metrics = {}
    for item in _as_list(_as_dict(records[0]).get("priceMetrics")):
        if not isinstance(item, dict):
            continue
        ranking = item.get("quartileRanking")
        amount = parse_price(item.get("amount"))
        if ranking and amount is not None:
            metrics[ranking] = amount
    return metrics
