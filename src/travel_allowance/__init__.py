from .aggregator import AggregateResult, ItineraryAggregator
from .catalog import GradePolicyTable, MissingRateError, RateCatalog, UnknownGradeError
from .config import AllowancePolicy
from .layovers import resolve_layover
from .ledger import DayByDayReconciler, DayLedger
from .legs import resolve_leg
from .models import (
    DayLedgerEntry,
    EntitlementBreakdown,
    ForeignCountry,
    GradePolicy,
    HomeJurisdiction,
    Itinerary,
    Leg,
    RateRecord,
)
from .services import AllowanceService, ItineraryValidationError, ReconciliationError
from .stays import resolve_stay

__all__ = [
    "AggregateResult",
    "AllowancePolicy",
    "AllowanceService",
    "DayByDayReconciler",
    "DayLedger",
    "DayLedgerEntry",
    "EntitlementBreakdown",
    "ForeignCountry",
    "GradePolicy",
    "GradePolicyTable",
    "HomeJurisdiction",
    "Itinerary",
    "ItineraryAggregator",
    "ItineraryValidationError",
    "Leg",
    "MissingRateError",
    "RateCatalog",
    "RateRecord",
    "ReconciliationError",
    "UnknownGradeError",
    "resolve_layover",
    "resolve_leg",
    "resolve_stay",
]
