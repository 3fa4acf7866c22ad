"""Per-unit generation profiles loaded from units.yaml."""

from dataclasses import dataclass, fields, replace
from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml

from ..models import ContentUnitType

_DEFAULT_UNITS_FILE = Path(__file__).parent / "units.yaml"


@dataclass(frozen=True)
class UnitProfile:
    """How to call the model for one unit type."""

    unit_type: ContentUnitType
    temperature: float
    max_tokens: int
    timeout_seconds: float
    retries: int
    excerpt_budget: int = 2500
    summary_budget: int = 800
    length_retry_max_tokens: Optional[int] = None

    def with_max_tokens(self, max_tokens: int) -> "UnitProfile":
        return replace(self, max_tokens=max_tokens)


def _check(profile: UnitProfile) -> None:
    name = profile.unit_type.value
    if not 0.0 <= profile.temperature <= 2.0:
        raise ValueError(f"{name}: temperature must be within 0-2, got {profile.temperature}")
    if profile.max_tokens <= 0:
        raise ValueError(f"{name}: max_tokens must be positive")
    if profile.timeout_seconds <= 0:
        raise ValueError(f"{name}: timeout_seconds must be positive")
    if profile.retries < 0:
        raise ValueError(f"{name}: retries cannot be negative")
    if profile.excerpt_budget <= 0 or profile.summary_budget <= 0:
        raise ValueError(f"{name}: excerpt budgets must be positive")


def parse_unit_profiles(data: dict) -> dict[ContentUnitType, UnitProfile]:
    """Build profiles from the parsed units.yaml structure."""
    defaults = data.get("defaults") or {}
    units = data.get("units") or {}
    known = {f.name for f in fields(UnitProfile)} - {"unit_type"}

    unknown_units = set(units) - {u.value for u in ContentUnitType}
    if unknown_units:
        raise ValueError(f"Unknown unit types in profile config: {sorted(unknown_units)}")

    profiles = {}
    for unit_type in ContentUnitType:
        if unit_type.value not in units:
            raise ValueError(f"No profile configured for unit '{unit_type.value}'")
        merged = {**defaults, **(units[unit_type.value] or {})}
        extra = set(merged) - known
        if extra:
            raise ValueError(f"{unit_type.value}: unknown profile keys {sorted(extra)}")
        try:
            profile = UnitProfile(unit_type=unit_type, **merged)
        except TypeError as e:
            raise ValueError(f"{unit_type.value}: incomplete profile ({e})") from e
        _check(profile)
        profiles[unit_type] = profile
    return profiles


@lru_cache(maxsize=4)
def _load_cached(path: Path) -> dict[ContentUnitType, UnitProfile]:
    with open(path) as f:
        return parse_unit_profiles(yaml.safe_load(f) or {})


def load_unit_profiles(path: Optional[Path] = None) -> dict[ContentUnitType, UnitProfile]:
    """Load unit profiles from YAML (the bundled units.yaml by default)."""
    return dict(_load_cached(Path(path) if path else _DEFAULT_UNITS_FILE))
