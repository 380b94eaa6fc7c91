from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, TypeVar

from .models import Holiday, Person, PersonOverride, PersonProfile, TimeOffRecord
from .settings import CalculationParams, FeatureFlags


T = TypeVar("T")


@dataclass
class CalculationContext:
    """Caller-owned snapshot of everything the engine reads besides the records."""

    persons: List[Person] = field(default_factory=list)
    profiles: Dict[str, PersonProfile] = field(default_factory=dict)
    holidays: Dict[str, Dict[date, Holiday]] = field(default_factory=dict)
    time_off: Dict[str, Dict[date, TimeOffRecord]] = field(default_factory=dict)
    overrides: Dict[str, PersonOverride] = field(default_factory=dict)
    flags: FeatureFlags = field(default_factory=FeatureFlags)
    params: CalculationParams = field(default_factory=CalculationParams)

    def holiday_for(self, person_id: str, day: date) -> Optional[Holiday]:
        return lookup_day(self.holidays.get(person_id), day)

    def time_off_for(self, person_id: str, day: date) -> Optional[TimeOffRecord]:
        return lookup_day(self.time_off.get(person_id), day)


def lookup_day(mapping: Optional[Dict], day: date) -> Optional[T]:
    if not mapping:
        return None
    found = mapping.get(day)
    if found is None:
        found = mapping.get(day.isoformat())
    return found
