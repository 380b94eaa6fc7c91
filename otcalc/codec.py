"""JSON-compatible encoding of contexts, records and analysis results.

Dates become ISO strings and date- or person-keyed caches become lists of
``[key, value]`` pairs so that snapshots survive ``json.dumps`` and the
process boundary of ``AnalysisWorker``.
"""
from __future__ import annotations
import json
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .context import CalculationContext
from .models import (
    AmountBreakdown,
    AmountSet,
    DayCapacityResult,
    DayData,
    EntryAnalysis,
    Holiday,
    OverrideMode,
    OverrideValues,
    Person,
    PersonAnalysis,
    PersonOverride,
    PersonProfile,
    PersonTotals,
    TimeInterval,
    TimeOffRecord,
    TimeRecord,
)
from .records import amounts_from_payload, record_from_payload
from .settings import CalculationParams, FeatureFlags, Settings
from .timeutils import parse_date


Payload = Dict[str, Any]


def _date_serializer(value):
    if isinstance(value, date):
        return value.isoformat()
    raise TypeError(f"Type {type(value)} not serializable")


def _key(value: Any) -> Any:
    return value.isoformat() if isinstance(value, date) else value


def _pairs(mapping: Optional[Mapping], dump_value: Callable[[Any], Any]) -> List[List[Any]]:
    return [[_key(k), dump_value(v)] for k, v in (mapping or {}).items()]


def _items(data: Any) -> Iterable[Tuple[Any, Any]]:
    if isinstance(data, Mapping):
        return data.items()
    return ((pair[0], pair[1]) for pair in data or [] if len(pair) == 2)


def _date_keyed(data: Any, load_value: Callable[[Any], Any]) -> Dict[date, Any]:
    loaded = {}
    for key, value in _items(data):
        day = parse_date(key)
        if day is not None:
            loaded[day] = load_value(value)
    return loaded


# context


def _dump_holiday(holiday: Holiday) -> Payload:
    payload = asdict(holiday)
    payload["start"] = _key(holiday.start)
    payload["end"] = _key(holiday.end)
    return payload


def _load_holiday(data: Mapping[str, Any]) -> Holiday:
    return Holiday(
        name=data.get("name") or "",
        start=parse_date(data.get("start")),
        end=parse_date(data.get("end")),
        project_id=data.get("project_id"),
    )


def _dump_override(override: PersonOverride) -> Payload:
    return {
        "mode": getattr(override.mode, "value", override.mode),
        "capacity": override.capacity,
        "multiplier": override.multiplier,
        "tier2_threshold": override.tier2_threshold,
        "tier2_multiplier": override.tier2_multiplier,
        "weekly": {str(k): asdict(v) for k, v in (override.weekly or {}).items()},
        "per_day": _pairs(override.per_day, asdict),
    }


def _load_values(data: Optional[Mapping[str, Any]]) -> OverrideValues:
    data = data or {}
    return OverrideValues(
        capacity=data.get("capacity"),
        multiplier=data.get("multiplier"),
        tier2_threshold=data.get("tier2_threshold"),
        tier2_multiplier=data.get("tier2_multiplier"),
    )


def _load_override(data: Mapping[str, Any]) -> PersonOverride:
    return PersonOverride(
        mode=data.get("mode") or OverrideMode.GLOBAL,
        capacity=data.get("capacity"),
        multiplier=data.get("multiplier"),
        tier2_threshold=data.get("tier2_threshold"),
        tier2_multiplier=data.get("tier2_multiplier"),
        weekly={str(k): _load_values(v) for k, v in _items(data.get("weekly"))},
        per_day=_date_keyed(data.get("per_day"), _load_values),
    )


def dump_context(context: CalculationContext) -> Payload:
    return {
        "persons": [asdict(p) for p in context.persons],
        "profiles": _pairs(context.profiles, asdict),
        "holidays": _pairs(context.holidays, lambda by_date: _pairs(by_date, _dump_holiday)),
        "time_off": _pairs(context.time_off, lambda by_date: _pairs(by_date, asdict)),
        "overrides": _pairs(context.overrides, _dump_override),
        "flags": context.flags.model_dump(mode="json"),
        "params": context.params.model_dump(mode="json"),
    }


def _with_defaults(model: Any, defaults: Any, data: Any) -> Any:
    if defaults is None:
        return model.model_validate(data or {})
    return model.model_validate({**defaults.model_dump(), **(data or {})})


def load_context(data: Optional[Mapping[str, Any]], settings: Optional[Settings] = None) -> CalculationContext:
    """Load a dumped context.

    Flags and params missing from ``data`` are taken from ``settings`` when
    given, field by field; values present in ``data`` always win.
    """

    data = data or {}
    flags = settings.flags if settings is not None else None
    params = settings.params if settings is not None else None
    return CalculationContext(
        persons=[Person(id=p["id"], name=p.get("name") or "") for p in data.get("persons") or []],
        profiles={
            pid: PersonProfile(capacity_hours=v.get("capacity_hours"), working_days=v.get("working_days"))
            for pid, v in _items(data.get("profiles"))
        },
        holidays={pid: _date_keyed(v, _load_holiday) for pid, v in _items(data.get("holidays"))},
        time_off={
            pid: _date_keyed(v, lambda t: TimeOffRecord(is_full_day=t.get("is_full_day", True), hours=t.get("hours") or 0.0))
            for pid, v in _items(data.get("time_off"))
        },
        overrides={pid: _load_override(v) for pid, v in _items(data.get("overrides"))},
        flags=_with_defaults(FeatureFlags, flags, data.get("flags")),
        params=_with_defaults(CalculationParams, params, data.get("params")),
    )


# records


def _load_breakdown(data: Optional[Mapping[str, Any]]) -> AmountBreakdown:
    return AmountBreakdown(**(data or {}))


def _load_entry_analysis(data: Optional[Mapping[str, Any]]) -> Optional[EntryAnalysis]:
    if not data:
        return None
    values = dict(data)
    amounts = values.pop("amounts", None) or {}
    values["tags"] = list(values.get("tags") or [])
    return EntryAnalysis(
        amounts=AmountSet(
            earned=_load_breakdown(amounts.get("earned")),
            cost=_load_breakdown(amounts.get("cost")),
            profit=_load_breakdown(amounts.get("profit")),
        ),
        **values,
    )


def dump_record(record: TimeRecord) -> Payload:
    return asdict(record)


def load_record(data: Mapping[str, Any]) -> TimeRecord:
    """Load a dumped record; provider-shaped payloads go through ``record_from_payload``."""

    if "person_id" not in data:
        return record_from_payload(data)
    interval = data.get("interval")
    return TimeRecord(
        id=data.get("id") or "",
        person_id=data.get("person_id") or "",
        person_name=data.get("person_name") or "",
        interval=TimeInterval(**interval) if interval else None,
        billable=data.get("billable") is not False,
        kind=data.get("kind"),
        project_id=data.get("project_id"),
        earned_rate=data.get("earned_rate"),
        cost_rate=data.get("cost_rate"),
        hourly_rate=data.get("hourly_rate"),
        amounts=amounts_from_payload(data.get("amounts")),
        description=data.get("description"),
        analysis=_load_entry_analysis(data.get("analysis")),
    )


def dump_records(records: Iterable[TimeRecord]) -> List[Payload]:
    return [dump_record(r) for r in records]


def load_records(data: Iterable[Mapping[str, Any]]) -> List[TimeRecord]:
    return [load_record(item) for item in data or []]


# analysis


def dump_analysis(results: Iterable[PersonAnalysis]) -> List[Payload]:
    payload = []
    for analysis in results:
        payload.append(
            {
                "person_id": analysis.person_id,
                "person_name": analysis.person_name,
                "totals": asdict(analysis.totals),
                "days": [
                    {"date": day.isoformat(), "meta": asdict(data.meta), "records": dump_records(data.records)}
                    for day, data in analysis.days.items()
                ],
            }
        )
    return payload


def load_analysis(data: Iterable[Mapping[str, Any]]) -> List[PersonAnalysis]:
    results = []
    for item in data or []:
        days = {}
        for day in item.get("days") or []:
            days[parse_date(day["date"])] = DayData(
                meta=DayCapacityResult(**day["meta"]),
                records=load_records(day.get("records")),
            )
        results.append(
            PersonAnalysis(
                person_id=item["person_id"],
                person_name=item.get("person_name") or "",
                days=days,
                totals=PersonTotals(**(item.get("totals") or {})),
            )
        )
    return results


# snapshots


def dump_snapshot(records: Iterable[TimeRecord], context: CalculationContext, date_range=None) -> Payload:
    payload: Payload = {"records": dump_records(records), "context": dump_context(context)}
    if date_range:
        payload["range"] = [_key(date_range[0]), _key(date_range[1])]
    return payload


def load_snapshot_payload(
    payload: Mapping[str, Any], settings: Optional[Settings] = None
) -> Tuple[List[TimeRecord], CalculationContext, Optional[Tuple]]:
    date_range = payload.get("range")
    return (
        load_records(payload.get("records")),
        load_context(payload.get("context"), settings),
        tuple(date_range) if date_range else None,
    )


def load_snapshot(path: Path, settings: Optional[Settings] = None) -> Tuple[List[TimeRecord], CalculationContext, Optional[Tuple]]:
    if not path.exists():
        raise FileNotFoundError(f"Snapshot not found at {path}")
    with path.open("r", encoding="utf-8") as handle:
        return load_snapshot_payload(json.load(handle), settings)


def save_snapshot(path: Path, records: Iterable[TimeRecord], context: CalculationContext, date_range=None) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(dump_snapshot(records, context, date_range), default=_date_serializer, indent=2))
