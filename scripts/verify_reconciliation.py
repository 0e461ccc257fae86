from __future__ import annotations

from datetime import datetime

from travel_allowance.models import Leg
from travel_allowance.services import AllowanceService


SAMPLE_ITINERARIES = {
    "harare-london": {
        "grade": "director",
        "funding_source": "government",
        "outbound": [
            Leg("Zimbabwe", "South Africa", datetime(2025, 3, 2, 9, 0), datetime(2025, 3, 2, 11, 0)),
            Leg("South Africa", "United Kingdom", datetime(2025, 3, 2, 19, 30), datetime(2025, 3, 3, 6, 15)),
        ],
        "return_legs": [
            Leg("United Kingdom", "Zimbabwe", datetime(2025, 3, 8, 20, 0), datetime(2025, 3, 9, 8, 0)),
        ],
    },
    "externally-funded-nairobi": {
        "grade": "officer",
        "funding_source": "external",
        "outbound": [Leg("Zimbabwe", "Kenya", datetime(2025, 5, 10, 7, 0), datetime(2025, 5, 10, 12, 30))],
        "return_legs": [Leg("Kenya", "Zimbabwe", datetime(2025, 5, 14, 15, 0), datetime(2025, 5, 14, 19, 30))],
    },
}


def main() -> int:
    """Run the sample itineraries and report any aggregate/ledger divergence."""
    service = AllowanceService()
    diverged = []

    for name, itinerary in SAMPLE_ITINERARIES.items():
        result = service.calculate(**itinerary, itinerary_id=name)
        reconciliation = result["reconciliation"]
        print(
            f"{name}: total_payment={result['totals']['total_payment']} "
            f"aggregate={reconciliation['aggregate_total']} ledger={reconciliation['ledger_total']} "
            f"difference={reconciliation['difference']}"
        )
        if not reconciliation["matched"]:
            diverged.append(name)

    if diverged:
        print("Verification failed. Ledger and aggregate diverge for:", ", ".join(diverged))
        return 1

    print("Verification passed. Ledger and aggregate totals agree.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
