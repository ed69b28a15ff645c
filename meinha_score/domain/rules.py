"""Score rule configuration: canonical defaults and merging of partial configs"""

import math
from dataclasses import asdict, dataclass, fields, is_dataclass, replace
from typing import Any, Dict, List, Mapping, Optional
from meinha_score.domain.exceptions import InvalidRuleConfigurationError


@dataclass(frozen=True)
class TimingBonus:
    """Points for a payment made early, on the due date, or within tolerance"""

    early: float
    on_time: float
    late_tolerance: float


@dataclass(frozen=True)
class Penalties:
    late_1_to_2: float
    late_3_to_7: float
    late_8_to_30: float
    late_30_plus: float
    overdue_weekly: float
    overdue_max: float
    default: float


@dataclass(frozen=True)
class ScoreRules:
    """
    Every magnitude the score engine uses, in signed points.

    Penalties are negative and bonuses positive. The engine trusts these
    signs; validate_rules() enforces them for admin updates.
    """

    initial_score: float
    max_score: float
    min_score: float
    creditor_creation: float
    payment_bonus: TimingBonus
    debtor_bonus: TimingBonus
    penalties: Penalties


DEFAULT_RULES = ScoreRules(
    initial_score=500,
    max_score=1000,
    min_score=0,
    creditor_creation=2,
    payment_bonus=TimingBonus(early=4, on_time=3, late_tolerance=1),
    debtor_bonus=TimingBonus(early=10, on_time=7, late_tolerance=3),
    penalties=Penalties(
        late_1_to_2=-10,
        late_3_to_7=-25,
        late_8_to_30=-70,
        late_30_plus=-140,
        overdue_weekly=-10,
        overdue_max=-80,
        default=-300,
    ),
)

# Keys used by documents saved by the previous settings store
_LEGACY_KEYS = {
    "initialScore": "initial_score",
    "maxScore": "max_score",
    "minScore": "min_score",
    "creditorCreation": "creditor_creation",
    "paymentBonus": "payment_bonus",
    "debtorBonus": "debtor_bonus",
    "onTime": "on_time",
    "lateTolerance": "late_tolerance",
    "late1to2": "late_1_to_2",
    "late3to7": "late_3_to_7",
    "late8to30": "late_8_to_30",
    "late30plus": "late_30_plus",
    "overdueWeekly": "overdue_weekly",
    "overdueMax": "overdue_max",
}


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _merge(base: Any, overrides: Mapping[str, Any], path: str) -> Any:
    known = {f.name for f in fields(base)}
    normalized: Dict[str, Any] = {}
    for key, value in overrides.items():
        name = _LEGACY_KEYS.get(key, key)
        if name not in known:
            raise InvalidRuleConfigurationError(f"Unknown rule field: {path}{key}")
        normalized[name] = value

    changes: Dict[str, Any] = {}
    for name, value in normalized.items():
        current = getattr(base, name)
        if is_dataclass(current):
            if not isinstance(value, Mapping):
                raise InvalidRuleConfigurationError(f"Rule group {path}{name} must be an object")
            changes[name] = _merge(current, value, f"{path}{name}.")
        elif _is_number(value):
            changes[name] = value
        else:
            raise InvalidRuleConfigurationError(f"Rule field {path}{name} must be a finite number, got {value!r}")

    return replace(base, **changes)


def merge_rules(overrides: Optional[Mapping[str, Any]], base: ScoreRules = DEFAULT_RULES) -> ScoreRules:
    """
    Deep-merge a partial rule document onto a base configuration.

    Missing fields keep the base value, so stored configs written before a
    field existed still load. Unknown fields and non-numeric values raise
    InvalidRuleConfigurationError.
    """
    if not overrides:
        return base
    return _merge(base, overrides, "")


def rules_to_dict(rules: ScoreRules) -> Dict[str, Any]:
    return asdict(rules)


def validate_rules(rules: ScoreRules) -> List[str]:
    """Return the list of invariant violations (empty when the rules are sane)"""
    problems = []

    if not rules.min_score <= rules.initial_score <= rules.max_score:
        problems.append("min_score <= initial_score <= max_score must hold")

    if rules.creditor_creation < 0:
        problems.append("creditor_creation must be >= 0")

    for group_name in ("payment_bonus", "debtor_bonus"):
        group = getattr(rules, group_name)
        for f in fields(group):
            if getattr(group, f.name) < 0:
                problems.append(f"{group_name}.{f.name} must be >= 0")

    for f in fields(rules.penalties):
        if getattr(rules.penalties, f.name) > 0:
            problems.append(f"penalties.{f.name} must be <= 0")

    return problems
