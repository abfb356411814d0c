from django.urls import path

from flights.views import FlightDatesView, FlightSearchView, HealthView, PriceMetricsView
from flights.views_places import places_autocomplete

urlpatterns = [
    path("health", HealthView.as_view(), name="health"),
    path("flights/search", FlightSearchView.as_view(), name="flight-search"),
    path("flights/dates", FlightDatesView.as_view(), name="flight-dates"),
    path("flights/price-metrics", PriceMetricsView.as_view(), name="price-metrics"),
    path("places/autocomplete", places_autocomplete, name="places-autocomplete"),
]
