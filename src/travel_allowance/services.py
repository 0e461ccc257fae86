from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Sequence

from travel_allowance.aggregator import AggregateResult, ItineraryAggregator
from travel_allowance.catalog import GradePolicyTable, RateCatalog, default_catalog, default_grades
from travel_allowance.config import AllowancePolicy, default_policy
from travel_allowance.ledger import DayByDayReconciler, DayLedger
from travel_allowance.models import COMPONENTS, EntitlementBreakdown, FundingSource, Itinerary, Leg

logger = logging.getLogger(__name__)

FUNDING_SOURCES = ("government", "external")


class ItineraryValidationError(ValueError):
    """Raised when an itinerary is missing its outbound or return legs."""


class ReconciliationError(ValueError):
    """Raised in strict mode when the day-by-day ledger disagrees with the aggregate."""


@dataclass(frozen=True)
class ReconciliationReport:
    aggregate_total: Decimal
    ledger_total: Decimal
    tolerance: Decimal

    @property
    def difference(self) -> Decimal:
        return self.ledger_total - self.aggregate_total

    @property
    def matched(self) -> bool:
        return abs(self.difference) <= self.tolerance


class AllowanceService:
    """Entitlement calculation with versioned rules and traceable steps."""

    def __init__(
        self,
        catalog: Optional[RateCatalog] = None,
        grades: Optional[GradePolicyTable] = None,
        policy: Optional[AllowancePolicy] = None,
        strict_reconciliation: bool = False,
    ):
        self.catalog = catalog or default_catalog()
        self.grades = grades or default_grades()
        self.policy = policy or default_policy()
        self.strict_reconciliation = strict_reconciliation
        self.aggregator = ItineraryAggregator(self.catalog, self.policy)
        self.reconciler = DayByDayReconciler(self.catalog, self.policy)

    @property
    def rule_version(self) -> str:
        return self.policy.rule_version

    def calculate(
        self,
        grade: str,
        funding_source: FundingSource,
        outbound: Sequence[Leg],
        return_legs: Sequence[Leg],
        itinerary_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Calculate the full entitlement for one itinerary and return a payload for the caller.

        The aggregate and the day-by-day ledger are derived independently and
        cross-checked; the comparison is included under `reconciliation`.
        """
        itinerary = Itinerary(outbound=tuple(outbound), return_legs=tuple(return_legs), itinerary_id=itinerary_id)
        self._validate(itinerary, funding_source)
        grade_policy = self.grades.get(grade)

        aggregate = self.aggregator.aggregate(itinerary, grade_policy, funding_source)
        ledger = self.reconciler.build(itinerary, grade_policy, funding_source)
        report = self.reconcile(aggregate, ledger)

        countries = itinerary.countries()
        return {
            "rule_version": self.rule_version,
            "itinerary_id": itinerary_id,
            "grade": grade,
            "grade_multiplier": str(grade_policy.multiplier),
            "funding_source": funding_source,
            "totals": {
                "entitlement": str(_money(aggregate.entitlement_total)),
                "representation": str(_money(aggregate.representation)),
                "supplementary": str(_money(aggregate.supplementary)),
                "total_payment": str(_money(aggregate.grand_total)),
            },
            "components": _components_payload(aggregate.components, with_counts=True),
            "by_country": {
                country: _components_payload(breakdown) for country, breakdown in aggregate.by_country.items()
            },
            "countries_visited": countries,
            "multiple_rates_used": len(countries) > 1,
            "total_days": str(aggregate.total_days.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)),
            "outbound_travel_hours": str(_money(aggregate.outbound_travel_hours)),
            "return_travel_hours": str(_money(aggregate.return_travel_hours)),
            "destination_hours": str(_money(aggregate.destination_hours)),
            "full_days_at_destination": aggregate.full_days_at_destination,
            "day_by_day": _ledger_payload(ledger),
            "day_by_day_total": str(_money(ledger.total)),
            "reconciliation": {
                "aggregate_total": str(_money(report.aggregate_total)),
                "ledger_total": str(_money(report.ledger_total)),
                "difference": str(_money(report.difference)),
                "matched": report.matched,
            },
            "calculation_steps": aggregate.calculation_steps,
        }

    def reconcile(self, aggregate: AggregateResult, ledger: DayLedger) -> ReconciliationReport:
        # Day totals never include the supplementary allowance.
        report = ReconciliationReport(
            aggregate_total=aggregate.total_excluding_supplementary,
            ledger_total=ledger.total,
            tolerance=self.policy.reconciliation_tolerance,
        )
        if not report.matched:
            message = (
                f"Day-by-day total {_money(report.ledger_total)} differs from aggregate "
                f"{_money(report.aggregate_total)} by {_money(report.difference)}"
            )
            if self.strict_reconciliation:
                raise ReconciliationError(message)
            logger.warning(message)
        return report

    def _validate(self, itinerary: Itinerary, funding_source: str) -> None:
        if not itinerary.outbound:
            raise ItineraryValidationError("At least one outbound leg is required.")
        if not itinerary.return_legs:
            raise ItineraryValidationError("At least one return leg is required.")
        if funding_source not in FUNDING_SOURCES:
            raise ItineraryValidationError(
                f"Unknown funding source {funding_source!r}; expected one of {', '.join(FUNDING_SOURCES)}."
            )


def _components_payload(breakdown: EntitlementBreakdown, with_counts: bool = False) -> Dict[str, Any]:
    payload: Dict[str, Any] = {name: str(_money(getattr(breakdown, name))) for name in COMPONENTS}
    payload["total"] = str(_money(breakdown.total))
    if with_counts:
        payload["breakfast_count"] = breakdown.breakfast_count
        payload["lunch_count"] = breakdown.lunch_count
        payload["dinner_count"] = breakdown.dinner_count
        payload["night_count"] = breakdown.night_count
    return payload


def _ledger_payload(ledger: DayLedger) -> List[Dict[str, Any]]:
    return [
        {
            "day_index": entry.day_index,
            "date": entry.day.isoformat(),
            "status": entry.status,
            "location": entry.location,
            "rate": str(_money(entry.rate)),
            "allowances": {
                name: {"eligible": item.eligible, "amount": str(_money(item.amount))}
                for name, item in entry.allowances.items()
            },
            "day_total": str(_money(entry.day_total)),
        }
        for entry in ledger.entries
    ]


def _money(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
