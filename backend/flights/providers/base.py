class ProviderError(Exception):
    kind = "configuration"

    def __init__(self, message, status_code=502, details=None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details or {}


class AuthenticationError(ProviderError):
    """The client-credentials exchange with the provider failed."""

    kind = "authentication"

    def __init__(self, message="Authentication with the flights provider failed.", details=None):
        super().__init__(message, status_code=502, details=details)


class UpstreamError(ProviderError):
    """A provider endpoint answered with a non-success status or could not be reached."""

    kind = "upstream"

    def __init__(self, endpoint, status=None, body=None, message=None):
        self.endpoint = endpoint
        self.status = status
        self.body = body
        super().__init__(
            message or f"Flights provider request to {endpoint} failed.",
            status_code=502,
            details={"endpoint": endpoint, "upstreamStatus": status, "body": body},
        )


class SearchValidationError(ProviderError):
    kind = "validation"

    def __init__(self, errors):
        super().__init__("Invalid search parameters.", status_code=400, details=errors)
        self.errors = errors


class FlightProvider:
    def search_offers(self, criteria):
        """
        Returns the raw offer-search payload for the given criteria.
        """
        raise NotImplementedError

    def search_flight_dates(self, origin, destination, *, one_way, non_stop=False, duration=None):
        raise NotImplementedError

    def search_locations(self, keyword):
        raise NotImplementedError

    def price_metrics(self, origin, destination, departure_date, *, currency, one_way):
        raise NotImplementedError
