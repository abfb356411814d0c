from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase

from flights.services.calendar import (
    DateSelection,
    SelectionPhase,
    aggregate_date_prices,
    select_date,
    trip_duration_days,
)

TODAY = date(2024, 6, 1)


def entry(day, total, **extra):
    data = {"type": "flight-date", "departureDate": day, "price": {"total": total}}
    data.update(extra)
    return data


class AggregateDatePricesTests(SimpleTestCase):
    def test_keeps_minimum_per_day(self):
        entries = [
            entry("2024-06-01", "120"),
            entry("2024-06-01", "95"),
            entry("2024-06-02", "200"),
        ]

        self.assertEqual(
            aggregate_date_prices(entries),
            {date(2024, 6, 1): Decimal("95"), date(2024, 6, 2): Decimal("200")},
        )

    def test_equal_price_does_not_replace(self):
        entries = [entry("2024-06-01", "95.00", returnDate="2024-06-08"), entry("2024-06-01", "95")]

        result = aggregate_date_prices(entries)

        self.assertEqual(str(result[date(2024, 6, 1)]), "95.00")

    def test_days_keep_first_seen_order(self):
        entries = [entry("2024-06-03", "10"), entry("2024-06-01", "20"), entry("2024-06-03", "5")]

        self.assertEqual(list(aggregate_date_prices(entries)), [date(2024, 6, 3), date(2024, 6, 1)])

    def test_unreadable_entries_are_skipped(self):
        entries = [
            entry("2024-06-01", "abc"),
            entry("not-a-date", "10"),
            {"departureDate": "2024-06-02"},
            "junk",
            entry("2024-06-02", "50"),
        ]

        self.assertEqual(aggregate_date_prices(entries), {date(2024, 6, 2): Decimal("50")})

    def test_empty_input(self):
        self.assertEqual(aggregate_date_prices(None), {})
        self.assertEqual(aggregate_date_prices([]), {})


class TripDurationTests(SimpleTestCase):
    def test_days_between_dates(self):
        self.assertEqual(trip_duration_days("2024-06-01", "2024-06-08"), 7)
        self.assertEqual(trip_duration_days(date(2024, 6, 1), date(2024, 6, 2)), 1)

    def test_not_applicable(self):
        self.assertIsNone(trip_duration_days("2024-06-01", "2024-06-08", one_way=True))
        self.assertIsNone(trip_duration_days("2024-06-01", None))
        self.assertIsNone(trip_duration_days("2024-06-08", "2024-06-01"))
        self.assertIsNone(trip_duration_days("2024-06-01", "2024-06-01"))


class SelectDateTests(SimpleTestCase):
    def test_round_trip_sequence(self):
        state = DateSelection.start(one_way=False)

        state = select_date(state, date(2024, 6, 10), TODAY)
        self.assertEqual(state.phase, SelectionPhase.DEPARTURE_SET)
        self.assertEqual(state.departure, date(2024, 6, 10))
        self.assertIsNone(state.return_date)

        state = select_date(state, date(2024, 6, 5), TODAY)
        self.assertEqual(state.phase, SelectionPhase.DEPARTURE_SET)
        self.assertEqual(state.departure, date(2024, 6, 5))

        state = select_date(state, date(2024, 6, 20), TODAY)
        self.assertTrue(state.is_finalized)
        self.assertEqual((state.departure, state.return_date), (date(2024, 6, 5), date(2024, 6, 20)))

    def test_click_on_departure_day_resets_departure(self):
        state = DateSelection.start(one_way=False, departure=date(2024, 6, 10))

        state = select_date(state, date(2024, 6, 10), TODAY)

        self.assertEqual(state.phase, SelectionPhase.DEPARTURE_SET)
        self.assertIsNone(state.return_date)

    def test_one_way_first_click_finalizes(self):
        state = select_date(DateSelection.start(one_way=True), date(2024, 7, 1), TODAY)

        self.assertTrue(state.is_finalized)
        self.assertEqual(state.departure, date(2024, 7, 1))
        self.assertIsNone(state.return_date)

    def test_one_way_ignores_preselected_departure(self):
        state = DateSelection.start(one_way=True, departure=date(2024, 6, 10))

        self.assertEqual(state.phase, SelectionPhase.NO_DEPARTURE)
        self.assertEqual(select_date(state, date(2024, 6, 3), TODAY).departure, date(2024, 6, 3))

    def test_past_days_are_ignored(self):
        for initial in (DateSelection.start(one_way=True), DateSelection.start(one_way=False, departure=date(2024, 6, 10))):
            self.assertIs(select_date(initial, date(2024, 5, 31), TODAY), initial)

    def test_today_is_selectable(self):
        state = select_date(DateSelection.start(one_way=False), TODAY, TODAY)

        self.assertEqual(state.departure, TODAY)

    def test_finalized_is_terminal(self):
        state = DateSelection(
            one_way=False,
            phase=SelectionPhase.FINALIZED,
            departure=date(2024, 6, 5),
            return_date=date(2024, 6, 20),
        )

        self.assertIs(select_date(state, date(2024, 6, 2), TODAY), state)
        self.assertIs(select_date(state, date(2024, 6, 25), TODAY), state)

    def test_today_defaults_to_local_date(self):
        state = select_date(DateSelection.start(one_way=True), date(2000, 1, 1))

        self.assertEqual(state.phase, SelectionPhase.NO_DEPARTURE)
