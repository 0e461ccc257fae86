from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from travel_allowance.bands import BandContext, arrival_band, departure_band, fractional_hour
from travel_allowance.catalog import RateCatalog
from travel_allowance.config import AllowancePolicy, default_policy
from travel_allowance.models import (
    MEAL_COMPONENTS,
    RATED_COMPONENTS,
    ZERO,
    EntitlementBreakdown,
    Leg,
    Location,
    RateRecord,
)

logger = logging.getLogger(__name__)


@dataclass
class LegResolution:
    leg: Leg
    breakdowns: Dict[str, EntitlementBreakdown] = field(default_factory=dict)
    reasons: List[str] = field(default_factory=list)
    arrival_components: Tuple[str, ...] = ()
    departure_components: Tuple[str, ...] = ()

    @property
    def total(self) -> Decimal:
        return sum((b.total for b in self.breakdowns.values()), ZERO)


def _grant_side(
    breakdown: EntitlementBreakdown,
    components: Iterable[str],
    rate: RateRecord,
    multiplier: Decimal,
    policy: AllowancePolicy,
) -> Tuple[str, ...]:
    entitled = set(components)
    granted = tuple(name for name in RATED_COMPONENTS if name in entitled)
    side_total = ZERO
    for name in granted:
        amount = rate.component(name) * multiplier
        breakdown.grant(name, amount)
        side_total += amount
    if any(name in MEAL_COMPONENTS for name in granted):
        breakdown.grant("other", policy.other_on(side_total))
    return granted


def _departure_rates(arrival: Location, departure: Location) -> Tuple[RateRecord, bool, str]:
    """Pick the rate record for the departure side and whether arrival-side grants are excluded."""
    if arrival.is_home:
        return (
            departure.rate,
            False,
            f" - Using departure country rates (returning to {arrival.name}, allowances cut off upon arrival)",
        )
    if departure.is_home:
        return arrival.rate, False, " - Using destination country rates"
    return departure.rate, True, ""


def resolve_leg(
    leg: Leg,
    catalog: RateCatalog,
    multiplier: Decimal,
    policy: Optional[AllowancePolicy] = None,
) -> LegResolution:
    """Resolve the entitlement of a single travel leg.

    The arrival side is evaluated at the destination with the arrival bands;
    the departure side (only when the countries differ) with the departure
    bands. Arriving at the home jurisdiction suppresses the arrival side
    entirely. Raises ``MissingRateError`` before computing anything if either
    country is unknown.
    """
    policy = policy or default_policy()
    arrival = catalog.location(leg.to_country)
    departure = catalog.location(leg.from_country)

    ctx = BandContext(
        arrival_hour=fractional_hour(leg.arrival),
        departure_hour=fractional_hour(leg.departure),
    )
    same_day = leg.arrival.date() == leg.departure.date()
    same_country = arrival.name == departure.name

    result = LegResolution(leg=leg)

    arrival_breakdown = EntitlementBreakdown()
    result.breakdowns[arrival.name] = arrival_breakdown
    if arrival.is_home:
        result.reasons.append(
            f"{arrival.name} (Arrival): Arrived back in {arrival.name} - no allowances calculated "
            "(allowances cut off upon arrival, accommodation and other expenses suspended)"
        )
    else:
        band = arrival_band(ctx, same_day_transit=same_day and same_country)
        result.arrival_components = _grant_side(arrival_breakdown, band.components, arrival.rate, multiplier, policy)
        result.reasons.append(f"{arrival.name} (Arrival): {band.reason}")

    if not same_country:
        band = departure_band(ctx)
        rate, exclude_covered, note = _departure_rates(arrival, departure)
        covered: FrozenSet[str] = frozenset(result.arrival_components) if exclude_covered else frozenset()
        departure_breakdown = EntitlementBreakdown()
        result.breakdowns[departure.name] = departure_breakdown
        result.departure_components = _grant_side(
            departure_breakdown, band.components - covered, rate, multiplier, policy
        )
        result.reasons.append(f"{departure.name} (Departure): {band.reason}{note}")

    logger.debug(
        "Resolved leg %s -> %s: arrival=%s departure=%s total=%s",
        leg.from_country,
        leg.to_country,
        result.arrival_components,
        result.departure_components,
        result.total,
    )
    return result
