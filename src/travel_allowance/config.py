from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping

import yaml

DATA_DIR = Path(__file__).resolve().parent / "data"
DEFAULT_POLICY_PATH = DATA_DIR / "policy.yaml"

DEFAULT_COMPONENT_SHARES: Dict[str, Decimal] = {
    "accommodation": Decimal("50"),
    "lunch": Decimal("15"),
    "dinner": Decimal("15"),
    "breakfast": Decimal("10"),
    "other": Decimal("10"),
}


def load_yaml_mapping(path: Path | str) -> Dict[str, Any]:
    path = Path(path)
    with path.open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle)

    if not isinstance(loaded, dict):
        msg = f"YAML file must contain a dictionary at root: {path}"
        raise ValueError(msg)

    return loaded


def to_decimal(value: Any) -> Decimal:
    return Decimal(str(value))


@dataclass(frozen=True)
class AllowancePolicy:
    """Policy constants shared by every resolver."""

    rule_version: str = "ZW_DSA_RULES_2025_01"
    component_shares: Mapping[str, Decimal] = field(default_factory=lambda: dict(DEFAULT_COMPONENT_SHARES), hash=False)
    other_percent: Decimal = Decimal("10")
    supplementary_daily_rate: Decimal = Decimal("50")
    supplementary_max_days: int = 30
    layover_max_days: int = 100
    reconciliation_tolerance: Decimal = Decimal("0.01")

    def __post_init__(self) -> None:
        missing = set(DEFAULT_COMPONENT_SHARES) - set(self.component_shares)
        if missing:
            raise ValueError(f"component_shares is missing: {', '.join(sorted(missing))}")
        total = sum(self.component_shares.values(), Decimal("0"))
        if total != Decimal("100"):
            raise ValueError(f"component_shares must sum to 100, got {total}")
        object.__setattr__(self, "component_shares", MappingProxyType(dict(self.component_shares)))

    def share(self, daily_allowance: Decimal, component: str) -> Decimal:
        return daily_allowance * self.component_shares[component] / Decimal("100")

    def other_on(self, subtotal: Decimal) -> Decimal:
        return subtotal * self.other_percent / Decimal("100")

    @classmethod
    def from_yaml(cls, path: Path | str = DEFAULT_POLICY_PATH) -> "AllowancePolicy":
        raw = load_yaml_mapping(path)
        shares = raw.get("component_shares") or DEFAULT_COMPONENT_SHARES
        return cls(
            rule_version=str(raw.get("rule_version", cls.rule_version)),
            component_shares={name: to_decimal(value) for name, value in shares.items()},
            other_percent=to_decimal(raw.get("other_percent", cls.other_percent)),
            supplementary_daily_rate=to_decimal(raw.get("supplementary_daily_rate", cls.supplementary_daily_rate)),
            supplementary_max_days=int(raw.get("supplementary_max_days", cls.supplementary_max_days)),
            layover_max_days=int(raw.get("layover_max_days", cls.layover_max_days)),
            reconciliation_tolerance=to_decimal(raw.get("reconciliation_tolerance", cls.reconciliation_tolerance)),
        )


@lru_cache(maxsize=1)
def default_policy() -> AllowancePolicy:
    return AllowancePolicy.from_yaml()
