from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from flights.serializers import AirlinePriceSummarySerializer, FlightFilterSerializer, FlightSerializer
from flights.services import search
from flights.services.filters import (
    FilterState,
    airline_price_summary,
    filter_flights,
    price_bounds,
    sort_flights,
    unique_airlines,
)


def _error_response(result):
    return Response(result.error_payload(), status=result.status_code or status.HTTP_502_BAD_GATEWAY)


class HealthView(APIView):
    def get(self, request):
        return Response({"status": "ok"})


class FlightSearchView(APIView):
    def post(self, request):
        raw = request.data if isinstance(request.data, dict) else {}

        # Filters are checked up front so a bad filter never costs a provider call.
        filter_serializer = FlightFilterSerializer(data=raw)
        if not filter_serializer.is_valid():
            return Response(
                {"ok": False, "kind": "validation", "message": "Invalid filters.", "details": filter_serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )
        filters = filter_serializer.validated_data

        result = search.search_flights(raw)
        if not result.ok:
            return _error_response(result)

        all_flights = result.data.flights
        flights = filter_flights(all_flights, FilterState.from_params(filters))
        flights = sort_flights(flights, filters.get("sort"))
        bounds = price_bounds(all_flights)

        return Response(
            {
                "query": result.query,
                "flights": FlightSerializer(flights, many=True).data,
                "summary": AirlinePriceSummarySerializer(airline_price_summary(flights), many=True).data,
                "meta": {
                    "count": len(flights),
                    "total": len(all_flights),
                    "priceRange": list(bounds) if bounds else None,
                    "airlines": unique_airlines(all_flights),
                },
                "dictionaries": result.data.dictionaries,
            }
        )


class FlightDatesView(APIView):
    def get(self, request):
        result = search.get_calendar_prices(request.query_params)
        if not result.ok:
            return _error_response(result)

        prices = [{"date": day.isoformat(), "price": price} for day, price in sorted(result.data.items())]
        return Response({"query": result.query, "prices": prices})


class PriceMetricsView(APIView):
    def get(self, request):
        result = search.get_price_metrics(request.query_params)
        if not result.ok:
            return _error_response(result)
        return Response({"query": result.query, **result.data})
