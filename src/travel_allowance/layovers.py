from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import List, Optional

from travel_allowance.config import AllowancePolicy, default_policy
from travel_allowance.models import EntitlementBreakdown

logger = logging.getLogger(__name__)

END_OF_DAY = time(23, 59, 59, 999999)


@dataclass
class LayoverResolution:
    breakdown: EntitlementBreakdown
    days_walked: int
    reasons: List[str] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return self.breakdown.total


def _at(moment: datetime, hour: int) -> datetime:
    return datetime.combine(moment.date(), time(hour))


def breakfast_eligible(start: datetime, end: datetime) -> bool:
    if start.hour < 7:
        return True
    # Overnight window reaching an early arrival.
    return start.date() != end.date() and end.hour < 6


def lunch_eligible(start: datetime, end: datetime) -> bool:
    if 7 <= start.hour < 12 and (end.hour >= 12 or end > start):
        if end >= _at(start, 12) and start < _at(start, 14):
            return True
    if 12 <= end.hour < 14:
        return True
    return end.hour == 14 and end.minute == 0


def dinner_eligible(start: datetime, end: datetime) -> bool:
    if end.hour >= 18 or end.hour < 6:
        return True
    return end >= _at(start, 18) and start < _at(start, 20)


def resolve_layover(
    departure: datetime,
    arrival: datetime,
    daily_rate: Decimal,
    multiplier: Decimal,
    policy: Optional[AllowancePolicy] = None,
) -> LayoverResolution:
    """Walk a same-direction gap day by day, from ``departure`` to ``arrival``.

    ``departure`` is when the gap starts (the previous leg's arrival) and
    ``arrival`` when it ends (the next leg's departure). Each day is judged on
    its effective window: the real start on day 0, midnight afterwards, and
    the real end on the final date.
    """
    policy = policy or default_policy()
    daily_allowance = daily_rate * multiplier
    breakdown = EntitlementBreakdown()
    reasons: List[str] = []

    current = departure
    day = 0
    while current <= arrival and day < policy.layover_max_days:
        day_start = datetime.combine(current.date(), time.min)
        effective_start = departure if day == 0 else day_start
        last_day = current.date() == arrival.date()
        effective_end = arrival if last_day else datetime.combine(current.date(), END_OF_DAY)

        granted: List[str] = []
        if day == 0:
            if breakfast_eligible(effective_start, effective_end):
                granted.append("breakfast")
        elif effective_end.hour >= 6:
            granted.append("breakfast")
        if lunch_eligible(effective_start, effective_end):
            granted.append("lunch")
        if dinner_eligible(effective_start, effective_end):
            granted.append("dinner")
        if not last_day:
            granted.append("accommodation")

        for name in granted:
            breakdown.grant(name, policy.share(daily_allowance, name))
        if granted:
            reasons.append(f"Layover {current.date()}: {', '.join(granted)}.")

        current = day_start + timedelta(days=1)
        day += 1

    if day >= policy.layover_max_days and current <= arrival:
        logger.warning(
            "Layover walk stopped after %s days (%s -> %s)", policy.layover_max_days, departure, arrival
        )

    meal_days = math.ceil(breakdown.meal_count / 3)
    if meal_days:
        breakdown.grant("other", policy.share(daily_allowance, "other") * meal_days)

    logger.debug("Resolved layover %s -> %s: days=%s total=%s", departure, arrival, day, breakdown.total)
    return LayoverResolution(breakdown=breakdown, days_walked=day, reasons=reasons)
