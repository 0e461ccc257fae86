from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, time
from decimal import Decimal
from typing import List, Optional

from travel_allowance.config import AllowancePolicy, default_policy
from travel_allowance.models import COMPONENTS, EntitlementBreakdown

logger = logging.getLogger(__name__)


@dataclass
class StayResolution:
    breakdown: EntitlementBreakdown
    full_days: int
    reasons: List[str] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return self.breakdown.total


def full_days_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 86400)


def resolve_stay(
    arrival: datetime,
    departure: datetime,
    daily_rate: Decimal,
    multiplier: Decimal,
    policy: Optional[AllowancePolicy] = None,
) -> StayResolution:
    """Entitlement for a continuous stay at one location.

    Every complete 24h period pays all five components. The arrival day adds
    lunch (arrived before 12:00), dinner (before 18:00) and a night when the
    stay crosses midnight; the departure day adds breakfast (left at 07:00 or
    later) and lunch (14:00 or later). A reversed interval pays nothing.
    """
    policy = policy or default_policy()
    daily_allowance = daily_rate * multiplier
    breakdown = EntitlementBreakdown()
    reasons: List[str] = []

    full_days = full_days_between(arrival, departure)
    if full_days > 0:
        for name in COMPONENTS:
            breakdown.grant(name, policy.share(daily_allowance, name) * full_days, count=full_days)
        reasons.append(f"{full_days} full day(s) at destination, all components eligible.")

    if full_days < 0:
        reasons.append("Stay ends before it starts - no allowance.")
        return StayResolution(breakdown=breakdown, full_days=full_days, reasons=reasons)

    if arrival.hour < 12:
        breakdown.grant("lunch", policy.share(daily_allowance, "lunch"))
        reasons.append(f"Arrival day {arrival.date()}: arrived before 12:00, lunch eligible.")
    if arrival.hour < 18:
        breakdown.grant("dinner", policy.share(daily_allowance, "dinner"))
        reasons.append(f"Arrival day {arrival.date()}: arrived before 18:00, dinner eligible.")
    if full_days > 0 or departure.date() != arrival.date():
        breakdown.grant("accommodation", policy.share(daily_allowance, "accommodation"))
        reasons.append(f"Arrival day {arrival.date()}: overnight stay, accommodation eligible.")

    if departure > datetime.combine(departure.date(), time.min):
        if departure.hour >= 7:
            breakdown.grant("breakfast", policy.share(daily_allowance, "breakfast"))
            reasons.append(f"Departure day {departure.date()}: left at/after 07:00, breakfast eligible.")
        if departure.hour >= 14:
            breakdown.grant("lunch", policy.share(daily_allowance, "lunch"))
            reasons.append(f"Departure day {departure.date()}: left at/after 14:00, lunch eligible.")

    logger.debug("Resolved stay %s -> %s: full_days=%s total=%s", arrival, departure, full_days, breakdown.total)
    return StayResolution(breakdown=breakdown, full_days=full_days, reasons=reasons)
