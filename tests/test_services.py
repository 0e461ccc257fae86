from datetime import datetime
from decimal import Decimal
import unittest

from travel_allowance.catalog import MissingRateError, RateCatalog, UnknownGradeError
from travel_allowance.config import AllowancePolicy
from travel_allowance.models import Leg
from travel_allowance.services import AllowanceService, ItineraryValidationError, ReconciliationError


def small_catalog() -> RateCatalog:
    return RateCatalog.from_mapping(
        "Homeland",
        {
            "Homeland": {"full_day": 0, "breakfast": 0, "lunch": 0, "dinner": 0, "accommodation": 0},
            "Alpha": {"full_day": 200, "breakfast": 20, "lunch": 30, "dinner": 30, "accommodation": 100},
        },
    )


OUTBOUND = [Leg("Homeland", "Alpha", datetime(2025, 1, 1, 8, 0), datetime(2025, 1, 1, 14, 0))]
RETURN = [Leg("Alpha", "Homeland", datetime(2025, 1, 3, 16, 0), datetime(2025, 1, 3, 22, 0))]


class AllowanceServiceTestCase(unittest.TestCase):
    def setUp(self):
        self.service = AllowanceService(catalog=small_catalog(), policy=AllowancePolicy())

    def test_payload_totals_and_ledger(self):
        result = self.service.calculate("officer", "government", OUTBOUND, RETURN, itinerary_id="trip-1")

        self.assertEqual(result["itinerary_id"], "trip-1")
        self.assertEqual(result["totals"]["entitlement"], "690.00")
        self.assertEqual(result["totals"]["total_payment"], "690.00")
        self.assertEqual(result["components"]["night_count"], 3)
        self.assertEqual(result["by_country"]["Alpha"]["total"], "668.00")
        self.assertEqual(result["countries_visited"], ["Homeland", "Alpha"])
        self.assertTrue(result["multiple_rates_used"])
        self.assertEqual(len(result["day_by_day"]), 3)
        self.assertEqual(result["day_by_day"][0]["date"], "2025-01-01")
        self.assertEqual(result["day_by_day_total"], "410.00")

    def test_divergence_is_reported(self):
        result = self.service.calculate("officer", "government", OUTBOUND, RETURN)

        reconciliation = result["reconciliation"]
        self.assertFalse(reconciliation["matched"])
        self.assertEqual(reconciliation["difference"], "-280.00")

    def test_divergence_logs_a_warning(self):
        with self.assertLogs("travel_allowance.services", level="WARNING") as captured:
            self.service.calculate("officer", "government", OUTBOUND, RETURN)

        self.assertIn("differs from aggregate", captured.output[0])

    def test_strict_reconciliation_raises(self):
        strict = AllowanceService(catalog=small_catalog(), policy=AllowancePolicy(), strict_reconciliation=True)

        with self.assertRaises(ReconciliationError):
            strict.calculate("officer", "government", OUTBOUND, RETURN)

    def test_external_funding_adds_supplementary(self):
        result = self.service.calculate("officer", "external", OUTBOUND, RETURN)

        self.assertEqual(result["totals"]["supplementary"], "129.17")
        self.assertEqual(
            Decimal(result["totals"]["total_payment"]),
            Decimal(result["totals"]["entitlement"]) + Decimal(result["totals"]["supplementary"]),
        )
        self.assertTrue(result["day_by_day"][0]["allowances"]["supplementary"]["eligible"])

    def test_requires_outbound_and_return_legs(self):
        with self.assertRaises(ItineraryValidationError):
            self.service.calculate("officer", "government", [], RETURN)
        with self.assertRaises(ItineraryValidationError):
            self.service.calculate("officer", "government", OUTBOUND, [])

    def test_unknown_funding_source(self):
        with self.assertRaises(ItineraryValidationError):
            self.service.calculate("officer", "charity", OUTBOUND, RETURN)

    def test_unknown_grade(self):
        with self.assertRaises(UnknownGradeError):
            self.service.calculate("intern", "government", OUTBOUND, RETURN)

    def test_missing_rate_surfaces(self):
        legs = [Leg("Homeland", "Atlantis", datetime(2025, 1, 1, 8, 0), datetime(2025, 1, 1, 14, 0))]
        with self.assertRaises(MissingRateError):
            self.service.calculate("officer", "government", legs, RETURN)


class DefaultCatalogTestCase(unittest.TestCase):
    def test_rule_version_and_zimbabwe_home(self):
        service = AllowanceService()
        outbound = [Leg("Zimbabwe", "Kenya", datetime(2025, 5, 10, 7, 0), datetime(2025, 5, 10, 12, 30))]
        return_legs = [Leg("Kenya", "Zimbabwe", datetime(2025, 5, 14, 15, 0), datetime(2025, 5, 14, 19, 30))]

        result = service.calculate("director", "government", outbound, return_legs)

        self.assertEqual(result["rule_version"], "ZW_DSA_RULES_2025_01")
        self.assertEqual(result["grade_multiplier"], "1.3")
        self.assertEqual(result["calculation_steps"][0], "Applying rule version: ZW_DSA_RULES_2025_01")
        self.assertGreater(Decimal(result["totals"]["representation"]), Decimal("0"))


if __name__ == "__main__":
    unittest.main()
