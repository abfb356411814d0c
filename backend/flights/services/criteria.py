from dataclasses import dataclass
from datetime import date

from flights.providers.base import SearchValidationError
from flights.serializers import FlightSearchSerializer


@dataclass(frozen=True)
class SearchCriteria:
    origin: str
    destination: str
    departure_date: date
    return_date: date | None = None
    adults: int = 1
    children: int = 0
    currency: str = "USD"
    one_way: bool = True

    @classmethod
    def from_params(cls, params) -> "SearchCriteria":
        """Validate raw request parameters; raises ``SearchValidationError``."""

        serializer = FlightSearchSerializer(data=params)
        if not serializer.is_valid():
            raise SearchValidationError(serializer.errors)
        data = serializer.validated_data
        return cls(
            origin=data["origin"],
            destination=data["destination"],
            departure_date=data["departureDate"],
            return_date=data.get("returnDate"),
            adults=data["adults"],
            children=data["children"],
            currency=data["currency"],
            one_way=data["oneWay"],
        )

    def as_query(self) -> dict:
        return {
            "origin": self.origin,
            "destination": self.destination,
            "departureDate": self.departure_date.isoformat(),
            "returnDate": self.return_date.isoformat() if self.return_date else None,
            "adults": self.adults,
            "children": self.children,
            "currency": self.currency,
            "oneWay": self.one_way,
        }
