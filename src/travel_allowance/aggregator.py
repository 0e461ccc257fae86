from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence

from travel_allowance.catalog import RateCatalog
from travel_allowance.config import AllowancePolicy, default_policy
from travel_allowance.layovers import resolve_layover
from travel_allowance.legs import resolve_leg
from travel_allowance.models import ZERO, EntitlementBreakdown, FundingSource, GradePolicy, Itinerary, Leg
from travel_allowance.stays import resolve_stay

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregateResult:
    by_country: Mapping[str, EntitlementBreakdown]
    components: EntitlementBreakdown
    entitlement_total: Decimal
    representation: Decimal
    supplementary: Decimal
    total_days: Decimal
    outbound_travel_hours: Decimal
    return_travel_hours: Decimal
    destination_hours: Decimal
    full_days_at_destination: int
    calculation_steps: List[str] = field(default_factory=list)

    @property
    def grand_total(self) -> Decimal:
        return self.entitlement_total + self.representation + self.supplementary

    @property
    def total_excluding_supplementary(self) -> Decimal:
        return self.entitlement_total + self.representation


class ItineraryAggregator:
    """Sequences leg, layover and stay resolutions over a whole itinerary."""

    def __init__(self, catalog: RateCatalog, policy: Optional[AllowancePolicy] = None):
        self.catalog = catalog
        self.policy = policy or default_policy()

    def aggregate(self, itinerary: Itinerary, grade: GradePolicy, funding_source: FundingSource) -> AggregateResult:
        multiplier = grade.multiplier
        by_country: Dict[str, EntitlementBreakdown] = {}
        steps: List[str] = [f"Applying rule version: {self.policy.rule_version}"]

        outbound_hours = self._walk(itinerary.outbound, "Outbound", multiplier, by_country, steps)

        destination = self.catalog.location(itinerary.destination)
        stay = resolve_stay(
            itinerary.dwell_start,
            itinerary.dwell_end,
            destination.rate.full_day,
            multiplier,
            self.policy,
        )
        self._merge(by_country, destination.name, stay.breakdown)
        steps.append(f"Destination stay in {destination.name}: {stay.full_days} full day(s), subtotal {stay.total}.")
        steps.extend(stay.reasons)

        return_hours = self._walk(itinerary.return_legs, "Return", multiplier, by_country, steps)

        components = EntitlementBreakdown()
        for breakdown in by_country.values():
            components.merge(breakdown)
        entitlement_total = components.total

        total_days = itinerary.total_days
        representation = self._representation(entitlement_total, total_days, grade)
        supplementary = self._supplementary(total_days, funding_source)

        steps.append(f"Entitlement total across {len(by_country)} country subtotal(s) = {entitlement_total}.")
        if representation:
            steps.append(
                f"Representation allowance ({grade.representation_percent}% of implied daily rate) = {representation}."
            )
        if supplementary:
            steps.append(f"Supplementary allowance for external funding = {supplementary}.")

        destination_seconds = (itinerary.dwell_end - itinerary.dwell_start).total_seconds()
        destination_hours = max(ZERO, Decimal(str(destination_seconds)) / Decimal("3600"))

        return AggregateResult(
            by_country=MappingProxyType(by_country),
            components=components,
            entitlement_total=entitlement_total,
            representation=representation,
            supplementary=supplementary,
            total_days=total_days,
            outbound_travel_hours=outbound_hours,
            return_travel_hours=return_hours,
            destination_hours=destination_hours,
            full_days_at_destination=int(destination_hours // 24),
            calculation_steps=steps,
        )

    def _walk(
        self,
        legs: Sequence[Leg],
        direction: str,
        multiplier: Decimal,
        by_country: Dict[str, EntitlementBreakdown],
        steps: List[str],
    ) -> Decimal:
        """Resolve every leg of one direction plus the layovers between them; returns hours spent."""
        hours = ZERO
        for index, leg in enumerate(legs):
            resolution = resolve_leg(leg, self.catalog, multiplier, self.policy)
            for country, breakdown in resolution.breakdowns.items():
                self._merge(by_country, country, breakdown)
            steps.append(f"{direction} leg {index + 1} {leg.from_country} -> {leg.to_country}: subtotal {resolution.total}.")
            steps.extend(resolution.reasons)
            hours += leg.duration_hours

            if index == len(legs) - 1:
                continue
            following = legs[index + 1]
            gap_seconds = (following.departure - leg.arrival).total_seconds()
            hours += Decimal(str(gap_seconds)) / Decimal("3600")

            stopover = self.catalog.location(leg.to_country)
            if stopover.is_home:
                steps.append(f"{direction} layover in {stopover.name}: home jurisdiction, no layover allowance.")
                continue
            layover = resolve_layover(
                leg.arrival,
                following.departure,
                stopover.rate.full_day,
                multiplier,
                self.policy,
            )
            self._merge(by_country, stopover.name, layover.breakdown)
            steps.append(f"{direction} layover in {stopover.name}: subtotal {layover.total}.")
            steps.extend(layover.reasons)
        return hours

    @staticmethod
    def _merge(by_country: Dict[str, EntitlementBreakdown], country: str, breakdown: EntitlementBreakdown) -> None:
        by_country.setdefault(country, EntitlementBreakdown()).merge(breakdown)

    def _representation(self, entitlement_total: Decimal, total_days: Decimal, grade: GradePolicy) -> Decimal:
        # Approximation: the daily rate is implied from the total, not tracked per location.
        if grade.representation_percent <= 0 or total_days <= 0 or grade.multiplier <= 0:
            return ZERO
        implied_daily_rate = entitlement_total / (total_days * grade.multiplier)
        return implied_daily_rate * grade.representation_percent / Decimal("100") * total_days

    def _supplementary(self, total_days: Decimal, funding_source: FundingSource) -> Decimal:
        if funding_source != "external":
            return ZERO
        days = min(max(total_days, ZERO), Decimal(self.policy.supplementary_max_days))
        return days * self.policy.supplementary_daily_rate
