"""Daily capacity and overtime-parameter resolution.

Every numeric setting is resolved per field through an ordered chain of
tiers. A tier either returns a value or defers (``None``) to the next one:

    per-day override > weekly override > global override > profile > default

The weekly and per-day tiers are only consulted when the person's override is
in the matching mode, and only when that bucket actually carries a value.
"""
from __future__ import annotations
from datetime import date
from typing import Callable, Iterable, List, Optional, Sequence

from .classifier import is_holiday_kind, is_time_off_kind
from .context import CalculationContext, lookup_day
from .models import DayCapacityResult, OverrideMode, OverrideValues, PersonOverride, PersonProfile, TimeRecord
from .timeutils import record_duration_hours, to_number, weekday_key


Tier = Callable[[Optional[PersonOverride], date], Optional[float]]


def override_mode(override: Optional[PersonOverride]) -> Optional[OverrideMode]:
    if override is None:
        return None
    try:
        return OverrideMode(override.mode)
    except ValueError:
        return OverrideMode.GLOBAL


def _field_value(values: Optional[OverrideValues], field_name: str) -> Optional[float]:
    if values is None:
        return None
    return to_number(getattr(values, field_name, None))


def per_day_tier(field_name: str) -> Tier:
    def lookup(override: Optional[PersonOverride], day: date) -> Optional[float]:
        if override_mode(override) is not OverrideMode.PER_DAY:
            return None
        return _field_value(lookup_day(override.per_day, day), field_name)

    return lookup


def weekly_tier(field_name: str) -> Tier:
    def lookup(override: Optional[PersonOverride], day: date) -> Optional[float]:
        if override_mode(override) is not OverrideMode.WEEKLY or not override.weekly:
            return None
        key = weekday_key(day)
        values = override.weekly.get(key)
        if values is None:
            values = next((v for k, v in override.weekly.items() if str(k).upper() == key), None)
        return _field_value(values, field_name)

    return lookup


def global_tier(field_name: str) -> Tier:
    def lookup(override: Optional[PersonOverride], day: date) -> Optional[float]:
        return _field_value(override, field_name)

    return lookup


def override_tiers(field_name: str) -> List[Tier]:
    return [per_day_tier(field_name), weekly_tier(field_name), global_tier(field_name)]


def first_value(tiers: Sequence[Tier], override: Optional[PersonOverride], day: date) -> Optional[float]:
    for tier in tiers:
        value = tier(override, day)
        if value is not None:
            return value
    return None


class OverrideResolver:
    """Resolves capacity, multipliers and tier-2 threshold for one person and day."""

    def __init__(self, context: CalculationContext) -> None:
        self.context = context
        self.capacity_tiers = override_tiers("capacity")
        self.multiplier_tiers = override_tiers("multiplier")
        self.tier2_threshold_tiers = override_tiers("tier2_threshold")
        self.tier2_multiplier_tiers = override_tiers("tier2_multiplier")

    def _override(self, person_id: str) -> Optional[PersonOverride]:
        return self.context.overrides.get(person_id)

    def _profile_capacity(self, person_id: str) -> Optional[float]:
        if not self.context.flags.use_profile_capacity:
            return None
        profile = self.context.profiles.get(person_id)
        if profile is None:
            return None
        return to_number(profile.capacity_hours)

    def capacity(self, person_id: str, day: date) -> float:
        value = first_value(self.capacity_tiers, self._override(person_id), day)
        if value is None:
            value = self._profile_capacity(person_id)
        if value is None:
            value = self.context.params.daily_threshold
        return max(value, 0.0)

    def multiplier(self, person_id: str, day: date) -> float:
        value = first_value(self.multiplier_tiers, self._override(person_id), day)
        if value is None:
            value = self.context.params.overtime_multiplier
        return max(value, 1.0)

    def tier2_threshold(self, person_id: str, day: date) -> float:
        value = first_value(self.tier2_threshold_tiers, self._override(person_id), day)
        if value is None:
            value = self.context.params.tier2_threshold_hours
        return value

    def tier2_multiplier(self, person_id: str, day: date) -> float:
        value = first_value(self.tier2_multiplier_tiers, self._override(person_id), day)
        if value is None:
            value = self.context.params.tier2_multiplier
        return max(value, 1.0)


def is_working_day(profile: Optional[PersonProfile], day: date) -> bool:
    if profile is None or profile.working_days is None:
        return True
    days = profile.working_days
    if isinstance(days, str):
        days = [days]
    elif not isinstance(days, (list, tuple, set, frozenset)):
        return True
    working = {str(d).strip().upper() for d in days}
    return weekday_key(day) in working


class CapacityResolver:
    def __init__(self, context: CalculationContext, overrides: Optional[OverrideResolver] = None) -> None:
        self.context = context
        self.overrides = overrides or OverrideResolver(context)

    def resolve(
        self,
        person_id: str,
        day: date,
        records: Optional[Iterable[TimeRecord]] = None,
    ) -> DayCapacityResult:
        flags = self.context.flags
        base_capacity = self.overrides.capacity(person_id, day)
        result = DayCapacityResult(capacity=base_capacity, base_capacity=base_capacity)

        if flags.use_profile_working_days and not is_working_day(self.context.profiles.get(person_id), day):
            result.is_non_working = True
            result.capacity = 0.0

        if flags.apply_holidays:
            holiday = self.context.holiday_for(person_id, day)
            if holiday is not None:
                result.is_holiday = True
                result.holiday_name = holiday.name or ""
                result.holiday_project_id = holiday.project_id
                result.capacity = 0.0

        if flags.apply_time_off:
            time_off = self.context.time_off_for(person_id, day)
            if time_off is not None:
                if time_off.is_full_day:
                    hours = base_capacity
                else:
                    hours = max(to_number(time_off.hours) or 0.0, 0.0)
                self._apply_time_off(result, hours)

        if records is not None:
            self._detect_from_records(result, list(records))

        if result.is_holiday and not result.holiday_hours:
            result.holiday_hours = base_capacity
        return result

    @staticmethod
    def _apply_time_off(result: DayCapacityResult, hours: float) -> None:
        result.is_time_off = True
        result.time_off_hours = hours
        # a holiday already zeroed capacity; hours are kept for statistics only
        if not result.is_holiday:
            result.capacity = max(0.0, result.capacity - hours)

    def _detect_from_records(self, result: DayCapacityResult, records: List[TimeRecord]) -> None:
        flags = self.context.flags
        if not flags.apply_holidays and not result.is_holiday:
            holiday_records = [r for r in records if is_holiday_kind(r.kind)]
            if holiday_records:
                result.is_holiday = True
                result.holiday_name = holiday_records[0].description or ""
                result.holiday_project_id = holiday_records[0].project_id
                result.capacity = 0.0

        if not flags.apply_time_off and not result.is_time_off:
            time_off_records = [r for r in records if is_time_off_kind(r.kind)]
            if time_off_records:
                hours = sum(record_duration_hours(r) for r in time_off_records)
                self._apply_time_off(result, hours)
