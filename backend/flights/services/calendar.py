"""Price calendar: cheapest fare per day and the date-picking protocol."""

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from enum import Enum

from django.utils import timezone
from django.utils.dateparse import parse_date

from flights.services.normalize import parse_price


def _parse_day(value) -> date | None:
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return parse_date(value)
    except ValueError:
        return None


def aggregate_date_prices(entries) -> dict[date, Decimal]:
    """Reduce raw date-price records to the lowest price per departure day.

    Several fare combinations may share a day; only the minimum is kept.
    Records without a readable date or price are skipped. Keys keep the
    order in which each day was first seen.
    """
    by_day: dict[date, Decimal] = {}
    for entry in entries or []:
        if not isinstance(entry, dict):
            continue
        day = _parse_day(entry.get("departureDate"))
        price_obj = entry.get("price")
        price = parse_price(price_obj.get("total") if isinstance(price_obj, dict) else None)
        if day is None or price is None:
            continue
        current = by_day.get(day)
        if current is None or price < current:
            by_day[day] = price
    return by_day


def trip_duration_days(departure, return_date, one_way=False) -> int | None:
    """Whole days between departure and return, or ``None`` when not applicable."""
    if one_way:
        return None
    departure = _parse_day(departure)
    return_date = _parse_day(return_date)
    if departure is None or return_date is None:
        return None
    days = (return_date - departure).days
    return days if days > 0 else None


class SelectionPhase(str, Enum):
    NO_DEPARTURE = "no_departure"
    DEPARTURE_SET = "departure_set"
    FINALIZED = "finalized"


@dataclass(frozen=True)
class DateSelection:
    one_way: bool
    phase: SelectionPhase = SelectionPhase.NO_DEPARTURE
    departure: date | None = None
    return_date: date | None = None

    @classmethod
    def start(cls, one_way: bool, departure: date | None = None) -> "DateSelection":
        # A previously chosen departure carries over into a round-trip pick.
        if departure is not None and not one_way:
            return cls(one_way=one_way, phase=SelectionPhase.DEPARTURE_SET, departure=departure)
        return cls(one_way=one_way)

    @property
    def is_finalized(self) -> bool:
        return self.phase is SelectionPhase.FINALIZED


def select_date(state: DateSelection, clicked: date, today: date | None = None) -> DateSelection:
    """Apply one calendar click and return the new selection.

    One-way: the first valid click is final. Round trip: a click on or
    before the current departure (re)sets the departure; a later click
    sets the return day and finishes. Past days and clicks after the flow
    finished leave the state as it is.
    """
    today = today or timezone.localdate()
    if state.is_finalized or clicked < today:
        return state

    if state.one_way:
        return replace(state, phase=SelectionPhase.FINALIZED, departure=clicked, return_date=None)

    if state.departure is None or clicked <= state.departure:
        return replace(state, phase=SelectionPhase.DEPARTURE_SET, departure=clicked, return_date=None)

    return replace(state, phase=SelectionPhase.FINALIZED, return_date=clicked)
