from decimal import Decimal

import pytest

from travel_allowance.catalog import RateCatalog
from travel_allowance.config import AllowancePolicy
from travel_allowance.models import GradePolicy


@pytest.fixture
def catalog() -> RateCatalog:
    return RateCatalog.from_mapping(
        "Homeland",
        {
            "Homeland": {"full_day": 0, "breakfast": 0, "lunch": 0, "dinner": 0, "accommodation": 0},
            "Alpha": {"full_day": 200, "breakfast": 20, "lunch": 30, "dinner": 30, "accommodation": 100},
            "Beta": {"full_day": 300, "breakfast": 30, "lunch": 45, "dinner": 45, "accommodation": 150},
        },
    )


@pytest.fixture
def policy() -> AllowancePolicy:
    return AllowancePolicy()


@pytest.fixture
def officer() -> GradePolicy:
    return GradePolicy(grade="officer", multiplier=Decimal("1"), representation_percent=Decimal("0"))


@pytest.fixture
def director() -> GradePolicy:
    return GradePolicy(grade="director", multiplier=Decimal("1.3"), representation_percent=Decimal("7.5"))
