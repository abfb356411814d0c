import logging
import threading
from dataclasses import dataclass, field

from django.conf import settings

from flights.providers.base import ProviderError

logger = logging.getLogger(__name__)

MIN_KEYWORD_LENGTH = 2
DEFAULT_DEBOUNCE_SECONDS = 0.3


@dataclass
class LocationGroup:
    city_name: str
    label: str
    airports: list[dict] = field(default_factory=list)


def _airport_entry(location: dict) -> dict:
    address = location.get("address") or {}
    return {
        "id": location.get("id"),
        "iataCode": location.get("iataCode"),
        "name": location.get("name") or location.get("detailedName"),
        "countryCode": address.get("countryCode"),
    }


def group_locations(locations) -> list[LocationGroup]:
    """Keep airports only and group them by city, in first-seen city order."""
    groups: dict[str, LocationGroup] = {}
    for location in locations or []:
        if not isinstance(location, dict) or location.get("subType") != "AIRPORT":
            continue
        address = location.get("address") or {}
        city_name = address.get("cityName") or location.get("name") or ""
        group = groups.get(city_name)
        if group is None:
            country = address.get("countryName")
            label = f"{city_name}, {country}" if country else city_name
            group = groups[city_name] = LocationGroup(city_name=city_name, label=label)
        group.airports.append(_airport_entry(location))
    return list(groups.values())


class Debouncer:
    """Runs only the last of a burst of calls, ``delay`` seconds after it.

    Scheduling a call cancels whatever was still pending. ``timer_factory``
    follows the ``threading.Timer(interval, function, args)`` signature.
    """

    def __init__(self, delay: float, timer_factory=threading.Timer):
        self.delay = delay
        self.timer_factory = timer_factory
        self._pending = None
        self._lock = threading.Lock()

    def schedule(self, function, *args):
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
            timer = self.timer_factory(self.delay, function, args)
            if hasattr(timer, "daemon"):
                timer.daemon = True
            self._pending = timer
            timer.start()
            return timer

    def cancel(self):
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None


class LocationSearch:
    def __init__(self, provider, debounce_seconds=None, timer_factory=threading.Timer):
        if debounce_seconds is None:
            debounce_seconds = getattr(settings, "LOCATION_SEARCH_DEBOUNCE_SECONDS", DEFAULT_DEBOUNCE_SECONDS)
        self.provider = provider
        self.debouncer = Debouncer(debounce_seconds, timer_factory=timer_factory)
        self._generation = 0
        self._lock = threading.Lock()

    def search(self, keyword) -> list[LocationGroup]:
        keyword = (keyword or "").strip()
        if len(keyword) < MIN_KEYWORD_LENGTH:
            return []
        payload = self.provider.search_locations(keyword)
        data = payload.get("data") if isinstance(payload, dict) else None
        return group_locations(data)

    def submit(self, keyword, on_result, on_error=None):
        """Debounced lookup for type-ahead input.

        Short keywords clear the suggestions straight away. Otherwise the
        lookup runs once typing pauses, and its result is only delivered
        if no newer keystroke has arrived in the meantime.
        """
        with self._lock:
            self._generation += 1
            generation = self._generation

        keyword = (keyword or "").strip()
        if len(keyword) < MIN_KEYWORD_LENGTH:
            self.debouncer.cancel()
            on_result([])
            return None

        return self.debouncer.schedule(self._run, keyword, generation, on_result, on_error)

    def _is_current(self, generation) -> bool:
        with self._lock:
            return generation == self._generation

    def _run(self, keyword, generation, on_result, on_error):
        if not self._is_current(generation):
            return
        try:
            groups = self.search(keyword)
        except ProviderError as exc:
            if not self._is_current(generation):
                return
            if on_error is None:
                logger.warning("Location search for %r failed: %s", keyword, exc)
                return
            on_error(exc)
            return
        if self._is_current(generation):
            on_result(groups)
