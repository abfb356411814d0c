from django.conf import settings
from rest_framework import serializers

from flights.services.filters import format_currency

IATA_RE = r"^[A-Za-z]{3}$"
CURRENCY_RE = r"^[A-Za-z]{3}$"

SORT_CHOICES = ["cheapest", "shortest", "least_stops"]


class LocalDateTimeField(serializers.DateTimeField):
    """Airport-local wall-clock time, rendered without a timezone shift."""

    def enforce_timezone(self, value):
        return value


def _upper(attrs, *names):
    for name in names:
        value = attrs.get(name)
        if isinstance(value, str):
            attrs[name] = value.strip().upper()


class RouteSerializer(serializers.Serializer):
    origin = serializers.RegexField(IATA_RE)
    destination = serializers.RegexField(IATA_RE)

    def validate(self, attrs):
        _upper(attrs, "origin", "destination")
        if attrs["origin"] == attrs["destination"]:
            raise serializers.ValidationError({"destination": "Destination must be different from origin."})
        return attrs


class FlightSearchSerializer(RouteSerializer):
    departureDate = serializers.DateField()
    returnDate = serializers.DateField(required=False, allow_null=True)
    adults = serializers.IntegerField(min_value=1, max_value=9, default=1)
    children = serializers.IntegerField(min_value=0, max_value=9, default=0)
    currency = serializers.RegexField(CURRENCY_RE, required=False, allow_null=True)
    # Unset means "one-way unless a return date was given".
    oneWay = serializers.BooleanField(allow_null=True, default=None)

    def validate(self, attrs):
        attrs = super().validate(attrs)
        _upper(attrs, "currency")
        attrs["currency"] = attrs.get("currency") or getattr(settings, "DEFAULT_CURRENCY", "USD")

        return_date = attrs.get("returnDate")
        one_way = attrs.get("oneWay")
        if one_way is None:
            one_way = return_date is None
        attrs["oneWay"] = one_way

        if one_way and return_date is not None:
            raise serializers.ValidationError({"returnDate": "One-way searches cannot have a return date."})
        if return_date is not None and return_date <= attrs["departureDate"]:
            raise serializers.ValidationError({"returnDate": "Return date must be after depart date."})

        return attrs


class FlightFilterSerializer(serializers.Serializer):
    priceCeiling = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True)
    priceFloor = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True)
    maxStops = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    airlines = serializers.ListField(child=serializers.CharField(), required=False, allow_null=True)
    sort = serializers.ChoiceField(choices=SORT_CHOICES, required=False, allow_null=True)

    def to_internal_value(self, data):
        # Accept "any" for stops and "all" or a comma separated string for airlines.
        if hasattr(data, "dict"):
            data = data.dict()
        data = dict(data)
        if str(data.get("maxStops", "")).strip().lower() == "any":
            data["maxStops"] = None
        airlines = data.get("airlines")
        if isinstance(airlines, str):
            parts = [part.strip() for part in airlines.split(",")]
            data["airlines"] = None if airlines.strip().lower() == "all" else [p for p in parts if p]
        elif isinstance(airlines, list) and [str(a).strip().lower() for a in airlines] == ["all"]:
            data["airlines"] = None
        return super().to_internal_value(data)


class FlightDatesSerializer(RouteSerializer):
    oneWay = serializers.BooleanField(default=False)
    nonStop = serializers.BooleanField(default=False)
    departureDate = serializers.DateField(required=False, allow_null=True)
    returnDate = serializers.DateField(required=False, allow_null=True)

    def validate(self, attrs):
        attrs = super().validate(attrs)
        departure, return_date = attrs.get("departureDate"), attrs.get("returnDate")
        if departure and return_date and return_date <= departure:
            raise serializers.ValidationError({"returnDate": "Return date must be after depart date."})
        return attrs


class PriceMetricsSerializer(RouteSerializer):
    date = serializers.DateField()
    currency = serializers.RegexField(CURRENCY_RE, required=False, allow_null=True)
    oneWay = serializers.BooleanField(allow_null=True, default=None)
    returnDate = serializers.DateField(required=False, allow_null=True)

    def validate(self, attrs):
        attrs = super().validate(attrs)
        _upper(attrs, "currency")
        attrs["currency"] = attrs.get("currency") or getattr(settings, "DEFAULT_CURRENCY", "USD")
        if attrs.get("oneWay") is None:
            attrs["oneWay"] = attrs.get("returnDate") is None
        return attrs


class LocationQuerySerializer(serializers.Serializer):
    keyword = serializers.CharField(min_length=2, trim_whitespace=True)


class FlightSerializer(serializers.Serializer):
    id = serializers.CharField()
    price = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField()
    priceLabel = serializers.SerializerMethodField()
    origin = serializers.CharField()
    destination = serializers.CharField()
    departureAt = LocalDateTimeField(source="departure_at", allow_null=True)
    arrivalAt = LocalDateTimeField(source="arrival_at", allow_null=True)
    airline = serializers.CharField(source="airline_name")
    operatingAirline = serializers.CharField(source="operating_airline_name", allow_null=True)
    validatingAirlines = serializers.ListField(source="validating_airline_names", child=serializers.CharField())
    aircraft = serializers.CharField(source="aircraft_name", allow_null=True)
    stops = serializers.IntegerField()
    duration = serializers.CharField(source="duration_label")
    durationMinutes = serializers.IntegerField(source="duration_minutes")
    numberOfBookableSeats = serializers.IntegerField(source="bookable_seats", allow_null=True)

    def get_priceLabel(self, obj):
        return format_currency(obj.price, obj.currency)


class AirlinePriceSummarySerializer(serializers.Serializer):
    name = serializers.CharField()
    min = serializers.DecimalField(max_digits=12, decimal_places=2)
    max = serializers.DecimalField(max_digits=12, decimal_places=2)
    avg = serializers.DecimalField(max_digits=12, decimal_places=2)
