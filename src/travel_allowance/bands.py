"""Ordered time-of-day band tables.

Each table is evaluated top to bottom and the first band whose predicate
matches decides which components are granted. Hours are fractional
(``hour + minute / 60``).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, FrozenSet, Optional, Sequence, Tuple


@dataclass(frozen=True)
class BandContext:
    arrival_hour: float
    departure_hour: float


@dataclass(frozen=True)
class Band:
    predicate: Callable[[BandContext], bool]
    components: FrozenSet[str]
    reason: str


def fractional_hour(moment: datetime) -> float:
    return moment.hour + moment.minute / 60


def _grant(*components: str) -> FrozenSet[str]:
    return frozenset(components)


# Same-day round trips and short transits within one country. These bands look
# at both ends of the leg; when none matches, the normal arrival bands apply.
TRANSIT_ARRIVAL_BANDS: Tuple[Band, ...] = (
    Band(
        lambda ctx: 6 <= ctx.arrival_hour < 12 and ctx.departure_hour < 12,
        _grant("breakfast"),
        "Same-day transit: arrived 06:00-11:59, departed before 12:00 - breakfast only",
    ),
    Band(
        lambda ctx: 12 <= ctx.arrival_hour < 18 and ctx.departure_hour < 18,
        _grant("lunch"),
        "Same-day transit: arrived 12:00-17:59, departed before 18:00 - lunch only",
    ),
    Band(
        lambda ctx: ctx.arrival_hour >= 18 and ctx.departure_hour >= 18,
        _grant("dinner", "accommodation"),
        "Same-day transit: arrived after 18:00, departed after 18:00 - dinner and accommodation only",
    ),
)

ARRIVAL_BANDS: Tuple[Band, ...] = (
    Band(lambda ctx: ctx.arrival_hour < 6, _grant("accommodation"), "Arrived before 06:00 - accommodation only"),
    Band(lambda ctx: ctx.arrival_hour < 12, _grant("breakfast"), "Arrived between 06:00-11:59 - breakfast only"),
    Band(lambda ctx: ctx.arrival_hour < 18, _grant("lunch"), "Arrived between 12:00-17:59 - lunch only"),
    Band(lambda ctx: True, _grant("dinner", "accommodation"), "Arrived after 18:00 - dinner and accommodation"),
)

DEPARTURE_BANDS: Tuple[Band, ...] = (
    Band(lambda ctx: ctx.departure_hour < 6, _grant("accommodation"), "Departed before 06:00 - accommodation only"),
    Band(lambda ctx: ctx.departure_hour < 12, _grant("breakfast"), "Departed between 06:00-11:59 - breakfast only"),
    Band(
        lambda ctx: ctx.departure_hour < 18,
        _grant("breakfast", "lunch"),
        "Departed between 12:00-17:59 - breakfast and lunch",
    ),
    Band(lambda ctx: ctx.departure_hour < 21, _grant("dinner"), "Departed between 18:00-20:59 - dinner only"),
    Band(
        lambda ctx: True,
        _grant("dinner"),
        "Departed between 21:00-23:59 - dinner only (no breakfast/lunch for departure day)",
    ),
)

# First itinerary day when not leaving from home; the 21:00 split does not exist here.
FIRST_DAY_BANDS: Tuple[Band, ...] = (
    Band(lambda ctx: ctx.departure_hour < 6, _grant("accommodation"), "Departed before 06:00"),
    Band(lambda ctx: ctx.departure_hour < 12, _grant("breakfast"), "Departed between 06:00-11:59"),
    Band(lambda ctx: ctx.departure_hour < 18, _grant("breakfast", "lunch"), "Departed between 12:00-17:59"),
    Band(lambda ctx: True, _grant("dinner"), "Departed after 18:00"),
)


def first_match(bands: Sequence[Band], ctx: BandContext) -> Optional[Band]:
    for band in bands:
        if band.predicate(ctx):
            return band
    return None


def _decide(bands: Sequence[Band], ctx: BandContext) -> Band:
    band = first_match(bands, ctx)
    if band is None:
        raise LookupError(f"No band matches arrival={ctx.arrival_hour} departure={ctx.departure_hour}")
    return band


def arrival_band(ctx: BandContext, same_day_transit: bool) -> Band:
    if same_day_transit:
        band = first_match(TRANSIT_ARRIVAL_BANDS, ctx)
        if band is not None:
            return band
    return _decide(ARRIVAL_BANDS, ctx)


def departure_band(ctx: BandContext) -> Band:
    return _decide(DEPARTURE_BANDS, ctx)
