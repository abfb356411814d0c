import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "CAD": "C$",
    "AUD": "A$",
    "JPY": "¥",
    "CHF": "CHF ",
}

TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class FilterState:
    """View filter over normalized flights.

    ``None`` means "no limit" for prices, "any" for stops and "all" for
    airlines; an empty airline collection also means "all".
    """

    price_ceiling: Decimal | None = None
    price_floor: Decimal | None = None
    max_stops: int | None = None
    airlines: frozenset | None = None

    @classmethod
    def from_params(cls, data) -> "FilterState":
        airlines = data.get("airlines")
        return cls(
            price_ceiling=data.get("priceCeiling"),
            price_floor=data.get("priceFloor"),
            max_stops=data.get("maxStops"),
            airlines=frozenset(airlines) if airlines else None,
        )


@dataclass(frozen=True)
class AirlinePriceSummary:
    name: str
    min: Decimal
    max: Decimal
    avg: Decimal


def matches(flight, filter_state: FilterState) -> bool:
    if filter_state.price_ceiling is not None and flight.price > filter_state.price_ceiling:
        return False
    if filter_state.price_floor is not None and flight.price < filter_state.price_floor:
        return False
    if filter_state.max_stops is not None and flight.stops > filter_state.max_stops:
        return False
    if filter_state.airlines and flight.airline_name not in filter_state.airlines:
        return False
    return True


def filter_flights(flights, filter_state: FilterState):
    return [flight for flight in flights if matches(flight, filter_state)]


def airline_price_summary(flights) -> list[AirlinePriceSummary]:
    """Min, max and average price per airline.

    Airlines appear in the order of their first flight in ``flights``;
    the result is deliberately not sorted so the same input always renders
    the same way.
    """
    prices_by_airline: dict[str, list[Decimal]] = {}
    for flight in flights:
        prices_by_airline.setdefault(flight.airline_name, []).append(flight.price)

    summary = []
    for name, prices in prices_by_airline.items():
        avg = (sum(prices, Decimal("0")) / len(prices)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
        summary.append(AirlinePriceSummary(name=name, min=min(prices), max=max(prices), avg=avg))
    return summary


def price_bounds(flights) -> tuple[int, int] | None:
    """Whole-unit range covering every price, used to seed the price slider."""
    prices = [flight.price for flight in flights]
    if not prices:
        return None
    return math.floor(min(prices)), math.ceil(max(prices))


def unique_airlines(flights) -> list[str]:
    return sorted({flight.airline_name for flight in flights})


def sort_flights(flights, sort_by):
    if sort_by == "cheapest":
        return sorted(flights, key=lambda f: f.price)
    if sort_by == "shortest":
        return sorted(flights, key=lambda f: f.duration_minutes)
    if sort_by == "least_stops":
        return sorted(flights, key=lambda f: f.stops)
    return list(flights)


def format_currency(amount, currency_code="USD") -> str:
    symbol = CURRENCY_SYMBOLS.get(currency_code) or f"{currency_code} "
    value = Decimal(str(amount)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    return f"{symbol}{value}"
