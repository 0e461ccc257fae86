"""Day-by-day ledger derived independently of the itinerary aggregator."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Dict, List, Literal, Optional, Set, Tuple

from travel_allowance.bands import FIRST_DAY_BANDS, BandContext, first_match
from travel_allowance.catalog import RateCatalog
from travel_allowance.config import AllowancePolicy, default_policy
from travel_allowance.models import (
    COMPONENTS,
    MEAL_COMPONENTS,
    ZERO,
    ComponentAllowance,
    DayLedgerEntry,
    DayStatus,
    FundingSource,
    GradePolicy,
    Itinerary,
    Leg,
)

# Meal start boundaries used when leaving home on the first day.
MEAL_START_HOURS = {"breakfast": 6, "lunch": 12, "dinner": 18}
# Meal windows used to test whether the traveler was in transit on the last day.
MEAL_WINDOWS = {"breakfast": (6, 9), "lunch": (12, 14), "dinner": (18, 20)}


@dataclass(frozen=True)
class TimelineEvent:
    kind: Literal["travel_start", "travel_end"]
    moment: datetime
    location: str
    direction: Literal["outbound", "return"]


@dataclass(frozen=True)
class DayLedger:
    entries: List[DayLedgerEntry]

    @property
    def total(self) -> Decimal:
        return sum((entry.day_total for entry in self.entries), ZERO)

    @property
    def supplementary_total(self) -> Decimal:
        return sum(
            (entry.allowances["supplementary"].amount for entry in self.entries if entry.allowances["supplementary"].eligible),
            ZERO,
        )


def build_timeline(itinerary: Itinerary) -> List[TimelineEvent]:
    events: List[TimelineEvent] = []
    for direction, legs in (("outbound", itinerary.outbound), ("return", itinerary.return_legs)):
        for leg in legs:
            events.append(TimelineEvent("travel_start", leg.departure, leg.from_country, direction))
            events.append(TimelineEvent("travel_end", leg.arrival, leg.to_country, direction))
    return sorted(events, key=lambda event: event.moment)


def _overlaps(start: datetime, end: datetime, window_start: datetime, window_end: datetime) -> bool:
    return start < window_end and end > window_start


class DayByDayReconciler:
    def __init__(self, catalog: RateCatalog, policy: Optional[AllowancePolicy] = None):
        self.catalog = catalog
        self.policy = policy or default_policy()

    def build(self, itinerary: Itinerary, grade: GradePolicy, funding_source: FundingSource) -> DayLedger:
        for leg in itinerary.legs():
            self.catalog.location(leg.from_country)
            self.catalog.location(leg.to_country)

        timeline = build_timeline(itinerary)
        start, end = itinerary.start, itinerary.end
        entries: List[DayLedgerEntry] = []

        current = start.date()
        day_index = 1
        while current <= end.date():
            status, location = self._locate(current, itinerary, timeline)
            rate = self._rate_for_day(current, location, itinerary)
            allowances = self._allowances(current, rate, itinerary, grade)

            if funding_source == "external" and day_index <= self.policy.supplementary_max_days:
                allowances["supplementary"] = ComponentAllowance(True, self.policy.supplementary_daily_rate)
            if grade.representation_percent > 0 and status == "destination" and not self.catalog.is_home(location):
                allowances["representation"] = ComponentAllowance(
                    True, rate * grade.representation_percent / Decimal("100")
                )

            entries.append(
                DayLedgerEntry(
                    day_index=day_index,
                    day=current,
                    status=status,
                    location=location,
                    rate=rate,
                    allowances=allowances,
                )
            )
            current += timedelta(days=1)
            day_index += 1

        return DayLedger(entries=entries)

    def _locate(self, day: date, itinerary: Itinerary, timeline: List[TimelineEvent]) -> Tuple[DayStatus, str]:
        # Last event of the day wins; days without events default to the destination.
        status: DayStatus = "destination"
        location = itinerary.destination
        day_start = datetime.combine(day, time.min)
        next_day = day_start + timedelta(days=1)
        for event in timeline:
            if not day_start <= event.moment < next_day:
                continue
            if event.kind == "travel_start":
                status = "outbound_travel" if event.direction == "outbound" else "return_travel"
            location = event.location
        return status, location

    def _rate_for_day(self, day: date, location: str, itinerary: Itinerary) -> Decimal:
        rate = self.catalog.rate(location).full_day
        first_leg: Leg = itinerary.outbound[0]
        last_leg: Leg = itinerary.return_legs[-1]
        if day == itinerary.start.date() and self.catalog.is_home(first_leg.from_country):
            rate = self.catalog.rate(first_leg.to_country).full_day
        if day == itinerary.end.date() and self.catalog.is_home(last_leg.to_country):
            rate = self.catalog.rate(last_leg.from_country).full_day
        return rate

    def _allowances(
        self, day: date, rate: Decimal, itinerary: Itinerary, grade: GradePolicy
    ) -> Dict[str, ComponentAllowance]:
        daily_allowance = rate * grade.multiplier
        amounts = {name: self.policy.share(daily_allowance, name) for name in COMPONENTS}
        start, end = itinerary.start, itinerary.end

        if day == start.date():
            eligible = self._first_day(itinerary)
            if day != end.date():
                eligible.add("accommodation")
            eligible.add("other")
        elif day == end.date():
            eligible = self._last_day(itinerary)
        else:
            eligible = set(COMPONENTS)

        allowances = {
            name: ComponentAllowance(True, amounts[name]) if name in eligible else ComponentAllowance()
            for name in COMPONENTS
        }
        allowances["supplementary"] = ComponentAllowance()
        allowances["representation"] = ComponentAllowance()
        return allowances

    def _first_day(self, itinerary: Itinerary) -> Set[str]:
        first_leg = itinerary.outbound[0]
        departure_hour = itinerary.start.hour
        if self.catalog.is_home(first_leg.from_country):
            return {meal for meal, boundary in MEAL_START_HOURS.items() if departure_hour < boundary}
        band = first_match(FIRST_DAY_BANDS, BandContext(arrival_hour=departure_hour, departure_hour=departure_hour))
        return set(band.components) if band else set()

    def _last_day(self, itinerary: Itinerary) -> Set[str]:
        last_leg = itinerary.return_legs[-1]
        end = itinerary.end
        eligible: Set[str] = set()
        if self.catalog.is_home(last_leg.to_country):
            for meal, (opens, closes) in MEAL_WINDOWS.items():
                window_start = datetime.combine(end.date(), time(opens))
                window_end = datetime.combine(end.date(), time(closes))
                if _overlaps(last_leg.departure, end, window_start, window_end):
                    eligible.add(meal)
            return eligible

        arrival_hour = end.hour
        if arrival_hour >= 7:
            eligible.add("breakfast")
        if arrival_hour >= 14:
            eligible.add("lunch")
        if arrival_hour >= 18:
            eligible.add("dinner")
        if eligible & set(MEAL_COMPONENTS):
            eligible.add("other")
        return eligible
