from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional, Sequence, Union

FundingSource = Literal["government", "external"]
DayStatus = Literal["outbound_travel", "return_travel", "destination"]

MEAL_COMPONENTS = ("breakfast", "lunch", "dinner")
RATED_COMPONENTS = ("breakfast", "lunch", "dinner", "accommodation")
COMPONENTS = ("breakfast", "lunch", "dinner", "accommodation", "other")

ZERO = Decimal("0")


@dataclass(frozen=True)
class RateRecord:
    full_day: Decimal
    breakfast: Decimal
    lunch: Decimal
    dinner: Decimal
    accommodation: Decimal

    @classmethod
    def zero(cls) -> "RateRecord":
        return cls(ZERO, ZERO, ZERO, ZERO, ZERO)

    @property
    def is_zero(self) -> bool:
        return not any((self.full_day, self.breakfast, self.lunch, self.dinner, self.accommodation))

    def component(self, name: str) -> Decimal:
        return getattr(self, name)


@dataclass(frozen=True)
class HomeJurisdiction:
    """The traveler's home country. Nothing accrues while arriving or staying here."""

    name: str
    rate: RateRecord = field(default_factory=RateRecord.zero)

    is_home = True


@dataclass(frozen=True)
class ForeignCountry:
    name: str
    rate: RateRecord

    is_home = False


Location = Union[HomeJurisdiction, ForeignCountry]


@dataclass(frozen=True)
class GradePolicy:
    grade: str
    multiplier: Decimal
    representation_percent: Decimal


@dataclass(frozen=True)
class Leg:
    from_country: str
    to_country: str
    departure: datetime
    arrival: datetime

    @property
    def duration_hours(self) -> Decimal:
        return Decimal(str((self.arrival - self.departure).total_seconds())) / Decimal("3600")


@dataclass(frozen=True)
class Itinerary:
    outbound: Sequence[Leg]
    return_legs: Sequence[Leg]
    itinerary_id: Optional[str] = None

    @property
    def start(self) -> datetime:
        return self.outbound[0].departure

    @property
    def end(self) -> datetime:
        return self.return_legs[-1].arrival

    @property
    def destination(self) -> str:
        return self.outbound[-1].to_country

    @property
    def dwell_start(self) -> datetime:
        return self.outbound[-1].arrival

    @property
    def dwell_end(self) -> datetime:
        return self.return_legs[0].departure

    @property
    def total_days(self) -> Decimal:
        seconds = Decimal(str((self.end - self.start).total_seconds()))
        return seconds / Decimal("86400")

    def legs(self) -> List[Leg]:
        return [*self.outbound, *self.return_legs]

    def countries(self) -> List[str]:
        seen: List[str] = []
        for leg in self.legs():
            for country in (leg.from_country, leg.to_country):
                if country not in seen:
                    seen.append(country)
        return seen


@dataclass
class EntitlementBreakdown:
    """Running component totals for one country, owned by the resolver that built it."""

    breakfast: Decimal = ZERO
    lunch: Decimal = ZERO
    dinner: Decimal = ZERO
    accommodation: Decimal = ZERO
    other: Decimal = ZERO
    breakfast_count: int = 0
    lunch_count: int = 0
    dinner_count: int = 0
    night_count: int = 0

    @property
    def total(self) -> Decimal:
        return self.breakfast + self.lunch + self.dinner + self.accommodation + self.other

    @property
    def meal_count(self) -> int:
        return self.breakfast_count + self.lunch_count + self.dinner_count

    def grant(self, component: str, amount: Decimal, count: int = 1) -> None:
        setattr(self, component, getattr(self, component) + amount)
        if component == "accommodation":
            self.night_count += count
        elif component in MEAL_COMPONENTS:
            setattr(self, f"{component}_count", getattr(self, f"{component}_count") + count)

    def granted(self) -> List[str]:
        """Rated components granted at least once, in canonical order."""
        counts = {
            "breakfast": self.breakfast_count,
            "lunch": self.lunch_count,
            "dinner": self.dinner_count,
            "accommodation": self.night_count,
        }
        return [name for name in RATED_COMPONENTS if counts[name] > 0]

    def merge(self, other: "EntitlementBreakdown") -> None:
        for name in COMPONENTS:
            setattr(self, name, getattr(self, name) + getattr(other, name))
        self.breakfast_count += other.breakfast_count
        self.lunch_count += other.lunch_count
        self.dinner_count += other.dinner_count
        self.night_count += other.night_count

    def copy(self) -> "EntitlementBreakdown":
        clone = EntitlementBreakdown()
        clone.merge(self)
        return clone


@dataclass(frozen=True)
class ComponentAllowance:
    eligible: bool = False
    amount: Decimal = ZERO


@dataclass(frozen=True)
class DayLedgerEntry:
    day_index: int
    day: date
    status: DayStatus
    location: str
    rate: Decimal
    allowances: Dict[str, ComponentAllowance]

    @property
    def day_total(self) -> Decimal:
        return sum(
            (item.amount for key, item in self.allowances.items() if key != "supplementary" and item.eligible),
            ZERO,
        )
