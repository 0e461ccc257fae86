from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping

from travel_allowance.config import DATA_DIR, load_yaml_mapping, to_decimal
from travel_allowance.models import ForeignCountry, GradePolicy, HomeJurisdiction, Location, RateRecord

DEFAULT_RATES_PATH = DATA_DIR / "rates.yaml"
DEFAULT_GRADES_PATH = DATA_DIR / "grades.yaml"


class MissingRateError(LookupError):
    """Raised when a country has no entry in the rate catalog."""

    def __init__(self, country: str):
        super().__init__(f"Country rates not found for {country}")
        self.country = country


class UnknownGradeError(LookupError):
    """Raised when a grade tier has no policy entry."""

    def __init__(self, grade: str):
        super().__init__(f"No grade policy configured for {grade}")
        self.grade = grade


def _rate_record(raw: Mapping[str, Any]) -> RateRecord:
    return RateRecord(
        full_day=to_decimal(raw.get("full_day", 0)),
        breakfast=to_decimal(raw.get("breakfast", 0)),
        lunch=to_decimal(raw.get("lunch", 0)),
        dinner=to_decimal(raw.get("dinner", 0)),
        accommodation=to_decimal(raw.get("accommodation", 0)),
    )


@dataclass(frozen=True)
class RateCatalog:
    """Read-only country rate table with one zero-rated home jurisdiction."""

    home_country: str
    rates: Mapping[str, RateRecord]

    def __post_init__(self) -> None:
        home = self.rates.get(self.home_country)
        if home is None:
            raise ValueError(f"Home jurisdiction {self.home_country} is missing from the rate table")
        if not home.is_zero:
            raise ValueError(f"Home jurisdiction {self.home_country} must carry an all-zero rate record")

    def __contains__(self, country: object) -> bool:
        return country in self.rates

    def countries(self) -> List[str]:
        return sorted(self.rates)

    def is_home(self, country: str) -> bool:
        return country == self.home_country

    def location(self, country: str) -> Location:
        rate = self.rates.get(country)
        if rate is None:
            raise MissingRateError(country)
        if self.is_home(country):
            return HomeJurisdiction(name=country, rate=rate)
        return ForeignCountry(name=country, rate=rate)

    def rate(self, country: str) -> RateRecord:
        return self.location(country).rate

    @classmethod
    def from_mapping(cls, home_country: str, countries: Mapping[str, Mapping[str, Any]]) -> "RateCatalog":
        return cls(
            home_country=home_country,
            rates={name: _rate_record(values) for name, values in countries.items()},
        )

    @classmethod
    def from_yaml(cls, path: Path | str = DEFAULT_RATES_PATH) -> "RateCatalog":
        raw = load_yaml_mapping(path)
        countries = raw.get("countries")
        if not isinstance(countries, dict):
            raise ValueError(f"Rate file must define a 'countries' mapping: {path}")
        return cls.from_mapping(str(raw["home_country"]), countries)


@dataclass(frozen=True)
class GradePolicyTable:
    grades: Mapping[str, GradePolicy]

    def __contains__(self, grade: object) -> bool:
        return grade in self.grades

    def get(self, grade: str) -> GradePolicy:
        policy = self.grades.get(grade)
        if policy is None:
            raise UnknownGradeError(grade)
        return policy

    @classmethod
    def from_mapping(cls, grades: Mapping[str, Mapping[str, Any]]) -> "GradePolicyTable":
        table: Dict[str, GradePolicy] = {}
        for grade, values in grades.items():
            multiplier = to_decimal(values["multiplier"])
            representation = to_decimal(values.get("representation_percent", 0))
            if multiplier < 0 or representation < 0:
                raise ValueError(f"Grade {grade} must have non-negative multiplier and representation percent")
            table[grade] = GradePolicy(grade=grade, multiplier=multiplier, representation_percent=representation)
        return cls(grades=table)

    @classmethod
    def from_yaml(cls, path: Path | str = DEFAULT_GRADES_PATH) -> "GradePolicyTable":
        raw = load_yaml_mapping(path)
        grades = raw.get("grades")
        if not isinstance(grades, dict):
            raise ValueError(f"Grade file must define a 'grades' mapping: {path}")
        return cls.from_mapping(grades)


@lru_cache(maxsize=1)
def default_catalog() -> RateCatalog:
    return RateCatalog.from_yaml()


@lru_cache(maxsize=1)
def default_grades() -> GradePolicyTable:
    return GradePolicyTable.from_yaml()
