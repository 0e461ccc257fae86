from datetime import date, datetime
from decimal import Decimal

import pytest

from travel_allowance.catalog import MissingRateError
from travel_allowance.ledger import DayByDayReconciler, build_timeline
from travel_allowance.models import Itinerary, Leg


def eligible(entry):
    return sorted(name for name, item in entry.allowances.items() if item.eligible)


@pytest.fixture
def round_trip():
    return Itinerary(
        outbound=(Leg("Homeland", "Alpha", datetime(2025, 1, 1, 8, 0), datetime(2025, 1, 1, 14, 0)),),
        return_legs=(Leg("Alpha", "Homeland", datetime(2025, 1, 3, 16, 0), datetime(2025, 1, 3, 22, 0)),),
    )


def test_one_entry_per_calendar_day(catalog, policy, officer, round_trip):
    ledger = DayByDayReconciler(catalog, policy).build(round_trip, officer, "government")

    assert [entry.day for entry in ledger.entries] == [date(2025, 1, 1), date(2025, 1, 2), date(2025, 1, 3)]
    assert [entry.day_index for entry in ledger.entries] == [1, 2, 3]
    assert [entry.status for entry in ledger.entries] == ["outbound_travel", "destination", "return_travel"]


def test_round_trip_from_home(catalog, policy, officer, round_trip):
    first, middle, last = DayByDayReconciler(catalog, policy).build(round_trip, officer, "government").entries

    assert first.location == "Alpha"
    assert first.rate == Decimal("200")
    assert eligible(first) == ["accommodation", "dinner", "lunch", "other"]
    assert first.day_total == Decimal("180")

    assert eligible(middle) == ["accommodation", "breakfast", "dinner", "lunch", "other"]
    assert middle.day_total == Decimal("200")

    # Arriving home: the origin's rate applies, only meals overlapped in transit.
    assert last.location == "Homeland"
    assert last.rate == Decimal("200")
    assert eligible(last) == ["dinner"]
    assert last.day_total == Decimal("30")


def test_ledger_total(catalog, policy, officer, round_trip):
    ledger = DayByDayReconciler(catalog, policy).build(round_trip, officer, "government")

    assert ledger.total == Decimal("410")
    assert ledger.supplementary_total == Decimal("0")


def test_representation_only_at_destination(catalog, policy, director, round_trip):
    first, middle, last = DayByDayReconciler(catalog, policy).build(round_trip, director, "government").entries

    assert not first.allowances["representation"].eligible
    assert middle.allowances["representation"].amount == Decimal("15")
    assert middle.day_total == Decimal("275")
    assert not last.allowances["representation"].eligible


def test_supplementary_for_first_thirty_days_only(catalog, policy, officer):
    itinerary = Itinerary(
        outbound=(Leg("Homeland", "Alpha", datetime(2025, 1, 1, 8, 0), datetime(2025, 1, 1, 14, 0)),),
        return_legs=(Leg("Alpha", "Homeland", datetime(2025, 2, 4, 16, 0), datetime(2025, 2, 4, 22, 0)),),
    )
    ledger = DayByDayReconciler(catalog, policy).build(itinerary, officer, "external")

    assert len(ledger.entries) == 35
    assert ledger.entries[29].allowances["supplementary"].eligible
    assert not ledger.entries[30].allowances["supplementary"].eligible
    assert ledger.supplementary_total == Decimal("1500")
    assert ledger.entries[1].day_total == Decimal("200")


def test_foreign_start_and_end(catalog, policy, officer):
    itinerary = Itinerary(
        outbound=(Leg("Alpha", "Beta", datetime(2025, 1, 1, 13, 0), datetime(2025, 1, 1, 17, 0)),),
        return_legs=(Leg("Beta", "Alpha", datetime(2025, 1, 2, 10, 0), datetime(2025, 1, 2, 15, 0)),),
    )
    first, last = DayByDayReconciler(catalog, policy).build(itinerary, officer, "government").entries

    assert first.location == "Beta"
    assert eligible(first) == ["accommodation", "breakfast", "lunch", "other"]
    assert first.day_total == Decimal("255")
    assert last.location == "Alpha"
    assert eligible(last) == ["breakfast", "lunch", "other"]
    assert last.day_total == Decimal("70")


def test_same_day_trip_has_no_accommodation(catalog, policy, officer):
    itinerary = Itinerary(
        outbound=(Leg("Homeland", "Alpha", datetime(2025, 1, 1, 7, 0), datetime(2025, 1, 1, 9, 0)),),
        return_legs=(Leg("Alpha", "Homeland", datetime(2025, 1, 1, 15, 0), datetime(2025, 1, 1, 21, 0)),),
    )
    (only,) = DayByDayReconciler(catalog, policy).build(itinerary, officer, "government").entries

    assert eligible(only) == ["dinner", "lunch", "other"]
    assert only.day_total == Decimal("80")


def test_timeline_is_sorted(round_trip):
    timeline = build_timeline(round_trip)

    assert [event.kind for event in timeline] == ["travel_start", "travel_end", "travel_start", "travel_end"]
    assert [event.moment for event in timeline] == sorted(event.moment for event in timeline)


def test_unknown_country_raises(catalog, policy, officer):
    itinerary = Itinerary(
        outbound=(Leg("Homeland", "Gamma", datetime(2025, 1, 1, 8, 0), datetime(2025, 1, 1, 14, 0)),),
        return_legs=(Leg("Gamma", "Homeland", datetime(2025, 1, 3, 8, 0), datetime(2025, 1, 3, 14, 0)),),
    )

    with pytest.raises(MissingRateError):
        DayByDayReconciler(catalog, policy).build(itinerary, officer, "government")
