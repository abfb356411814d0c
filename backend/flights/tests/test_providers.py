from datetime import date
from unittest.mock import Mock, patch

import requests
from django.test import SimpleTestCase, override_settings

from flights.providers import get_flight_provider
from flights.providers.amadeus import AmadeusProvider
from flights.providers.base import AuthenticationError, ProviderError, UpstreamError
from flights.services.criteria import SearchCriteria


def ok_response(payload):
    response = Mock()
    response.status_code = 200
    response.json.return_value = payload
    return response


def error_response(status_code, payload=None, text=""):
    response = Mock()
    response.status_code = status_code
    if payload is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    response.text = text
    return response


class AmadeusProviderTests(SimpleTestCase):
    def setUp(self):
        self.token_cache = Mock()
        self.token_cache.get_token.return_value = "tok"
        self.provider = AmadeusProvider(token_cache=self.token_cache, base_url="https://api.test", timeout=5)

    def criteria(self, **overrides):
        values = {
            "origin": "MAD",
            "destination": "MUC",
            "departure_date": date(2024, 6, 1),
            "currency": "EUR",
        }
        values.update(overrides)
        return SearchCriteria(**values)

    @patch("flights.providers.amadeus.requests.get")
    def test_search_offers_builds_fixed_query_with_bearer_token(self, mock_get):
        mock_get.return_value = ok_response({"data": []})

        payload = self.provider.search_offers(self.criteria())

        self.assertEqual(payload, {"data": []})
        args, kwargs = mock_get.call_args
        self.assertEqual(args[0], "https://api.test/v2/shopping/flight-offers")
        self.assertEqual(
            kwargs["params"],
            {
                "originLocationCode": "MAD",
                "destinationLocationCode": "MUC",
                "departureDate": "2024-06-01",
                "adults": 1,
                "currencyCode": "EUR",
            },
        )
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer tok")
        self.assertEqual(kwargs["timeout"], 5)

    @patch("flights.providers.amadeus.requests.get")
    def test_children_and_return_date_only_when_relevant(self, mock_get):
        mock_get.return_value = ok_response({"data": []})

        self.provider.search_offers(
            self.criteria(children=2, adults=2, one_way=False, return_date=date(2024, 6, 8))
        )

        params = mock_get.call_args.kwargs["params"]
        self.assertEqual(params["children"], 2)
        self.assertEqual(params["returnDate"], "2024-06-08")

    @patch("flights.providers.amadeus.requests.get")
    def test_flight_dates_sends_duration_only_for_round_trips(self, mock_get):
        mock_get.return_value = ok_response({"data": []})

        self.provider.search_flight_dates("MAD", "MUC", one_way=True, duration="7")
        one_way_params = mock_get.call_args.kwargs["params"]
        self.provider.search_flight_dates("MAD", "MUC", one_way=False, duration="7")
        round_trip_params = mock_get.call_args.kwargs["params"]

        self.assertEqual(
            one_way_params,
            {"origin": "MAD", "destination": "MUC", "oneWay": "true", "nonStop": "false"},
        )
        self.assertEqual(round_trip_params["duration"], "7")
        self.assertEqual(round_trip_params["oneWay"], "false")
        self.assertEqual(mock_get.call_args.args[0], "https://api.test/v1/shopping/flight-dates")

    @patch("flights.providers.amadeus.requests.get")
    def test_location_search_query(self, mock_get):
        mock_get.return_value = ok_response({"data": []})

        self.provider.search_locations("par")

        self.assertEqual(mock_get.call_args.args[0], "https://api.test/v1/reference-data/locations")
        self.assertEqual(mock_get.call_args.kwargs["params"], {"subType": "CITY,AIRPORT", "keyword": "par"})

    @patch("flights.providers.amadeus.requests.get")
    def test_location_search_rejects_short_keyword_without_request(self, mock_get):
        with self.assertRaises(ValueError):
            self.provider.search_locations("p")
        mock_get.assert_not_called()
        self.token_cache.get_token.assert_not_called()

    @patch("flights.providers.amadeus.requests.get")
    def test_price_metrics_query(self, mock_get):
        mock_get.return_value = ok_response({"data": []})

        self.provider.price_metrics("MAD", "CDG", date(2024, 6, 1), currency="EUR", one_way=True)

        self.assertEqual(mock_get.call_args.args[0], "https://api.test/v1/analytics/itinerary-price-metrics")
        self.assertEqual(
            mock_get.call_args.kwargs["params"],
            {
                "originIataCode": "MAD",
                "destinationIataCode": "CDG",
                "departureDate": "2024-06-01",
                "currencyCode": "EUR",
                "oneWay": "true",
            },
        )

    @patch("flights.providers.amadeus.requests.get")
    def test_error_status_raises_upstream_error_with_body(self, mock_get):
        body = {"errors": [{"status": 400, "title": "INVALID DATE"}]}
        mock_get.return_value = error_response(400, body)

        with self.assertLogs("flights.providers.amadeus", level="WARNING"):
            with self.assertRaises(UpstreamError) as ctx:
                self.provider.search_locations("par")

        self.assertEqual(ctx.exception.status, 400)
        self.assertEqual(ctx.exception.body, body)
        self.assertEqual(ctx.exception.endpoint, "/v1/reference-data/locations")
        self.assertEqual(ctx.exception.kind, "upstream")
        mock_get.assert_called_once()

    @patch("flights.providers.amadeus.requests.get")
    def test_unauthorized_response_drops_cached_token(self, mock_get):
        mock_get.return_value = error_response(401, {"errors": [{"title": "Access token expired"}]})

        with self.assertLogs("flights.providers.amadeus", level="WARNING"):
            with self.assertRaises(UpstreamError):
                self.provider.search_locations("par")

        self.token_cache.invalidate.assert_called_once_with()

    @patch("flights.providers.amadeus.requests.get")
    def test_other_errors_keep_cached_token(self, mock_get):
        mock_get.return_value = error_response(500, text="oops")

        with self.assertLogs("flights.providers.amadeus", level="WARNING"):
            with self.assertRaises(UpstreamError):
                self.provider.search_locations("par")

        self.token_cache.invalidate.assert_not_called()

    @patch("flights.providers.amadeus.requests.get")
    def test_error_log_line_names_endpoint_status_and_body(self, mock_get):
        mock_get.return_value = error_response(429, {"errors": [{"title": "TOO MANY REQUESTS"}]})

        with self.assertLogs("flights.providers.amadeus", level="WARNING") as logs:
            with self.assertRaises(UpstreamError):
                self.provider.search_locations("par")

        message = logs.records[0].getMessage()
        self.assertIn("/v1/reference-data/locations", message)
        self.assertIn("429", message)
        self.assertIn("TOO MANY REQUESTS", message)

    @patch("flights.providers.amadeus.requests.get")
    def test_error_body_falls_back_to_text(self, mock_get):
        mock_get.return_value = error_response(500, text="Internal error")

        with self.assertRaises(UpstreamError) as ctx:
            self.provider.search_flight_dates("MAD", "MUC", one_way=True)

        self.assertEqual(ctx.exception.body, "Internal error")

    @patch("flights.providers.amadeus.requests.get")
    def test_network_failure_raises_upstream_error(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("boom")

        with self.assertRaises(UpstreamError) as ctx:
            self.provider.search_offers(self.criteria())

        self.assertIsNone(ctx.exception.status)

    @patch("flights.providers.amadeus.requests.get")
    def test_authentication_failure_stops_before_request(self, mock_get):
        self.token_cache.get_token.side_effect = AuthenticationError()

        with self.assertRaises(AuthenticationError):
            self.provider.search_offers(self.criteria())
        mock_get.assert_not_called()


class ProviderFactoryTests(SimpleTestCase):
    @override_settings(FLIGHTS_PROVIDER=" Amadeus ")
    def test_provider_name_is_case_insensitive(self):
        self.assertIsInstance(get_flight_provider(), AmadeusProvider)

    @override_settings(FLIGHTS_PROVIDER="amadeus-test")
    def test_unlisted_variant_is_rejected(self):
        with self.assertRaises(ProviderError):
            get_flight_provider()

    @override_settings(FLIGHTS_PROVIDER="skyscanner")
    def test_unknown_provider_is_configuration_error(self):
        with self.assertRaises(ProviderError) as ctx:
            get_flight_provider()
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(ctx.exception.kind, "configuration")
