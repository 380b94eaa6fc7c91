"""Adapters from provider-style payloads to engine types."""
from __future__ import annotations
from collections import defaultdict
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .models import AmountEntry, Holiday, TimeInterval, TimeOffRecord, TimeRecord
from .timeutils import date_range, parse_date, to_number


APPROVED = "APPROVED"


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return None


def _nested_id(payload: Mapping[str, Any], key: str) -> Optional[str]:
    nested = payload.get(key)
    if isinstance(nested, Mapping):
        return nested.get("id")
    return None


def _interval_from_payload(data: Any) -> Optional[TimeInterval]:
    if not isinstance(data, Mapping):
        return None
    return TimeInterval(start=data.get("start"), end=data.get("end"), duration=data.get("duration"))


def amounts_from_payload(data: Any) -> List[AmountEntry]:
    entries = []
    for item in data or []:
        if not isinstance(item, Mapping):
            continue
        amount_type = _first(item, "type", "amountType")
        value = _first(item, "value", "amount")
        entries.append(AmountEntry(type=str(amount_type or ""), value=value))
    return entries


def record_from_payload(payload: Mapping[str, Any]) -> TimeRecord:
    """Build a ``TimeRecord`` from a raw time-entry mapping.

    Accepts the camelCase shape of detailed time reports: ``timeInterval``
    with ``start``/``end``/``duration``, ``userId``/``userName``, ``type`` for
    the record kind and ``projectId`` or a nested ``project``.
    """

    billable = payload.get("billable")
    return TimeRecord(
        id=str(_first(payload, "id", "_id") or ""),
        person_id=str(_first(payload, "userId", "personId", "person_id") or ""),
        person_name=str(_first(payload, "userName", "personName", "person_name") or ""),
        interval=_interval_from_payload(_first(payload, "timeInterval", "interval")),
        billable=billable is not False,
        kind=_first(payload, "type", "kind"),
        project_id=_first(payload, "projectId", "project_id") or _nested_id(payload, "project"),
        earned_rate=_first(payload, "earnedRate", "earned_rate"),
        cost_rate=_first(payload, "costRate", "cost_rate"),
        hourly_rate=_first(payload, "hourlyRate", "hourly_rate"),
        amounts=amounts_from_payload(payload.get("amounts")),
        description=payload.get("description"),
    )


def records_from_payloads(payloads: Iterable[Mapping[str, Any]]) -> List[TimeRecord]:
    return [record_from_payload(p) for p in payloads or [] if isinstance(p, Mapping)]


def expand_holidays(holidays: Mapping[str, Iterable[Holiday]]) -> Dict[str, Dict[date, Holiday]]:
    """Per-person holiday lists to ``{person_id: {date: Holiday}}``.

    A holiday without an end covers its start date only. The first holiday
    listed for a date wins.
    """

    expanded: Dict[str, Dict[date, Holiday]] = {}
    for person_id, person_holidays in (holidays or {}).items():
        by_date: Dict[date, Holiday] = {}
        for holiday in person_holidays or []:
            start = parse_date(holiday.start)
            if start is None:
                continue
            end = parse_date(holiday.end) or start
            for day in date_range(start, end):
                by_date.setdefault(day, holiday)
        expanded[person_id] = by_date
    return expanded


def holiday_from_payload(payload: Mapping[str, Any]) -> Holiday:
    period = payload.get("datePeriod") or {}
    return Holiday(
        name=str(payload.get("name") or ""),
        start=parse_date(_first(period, "startDate", "start")),
        end=parse_date(_first(period, "endDate", "end")),
        project_id=payload.get("projectId"),
    )


def _status(request: Mapping[str, Any]) -> Optional[str]:
    status = request.get("status")
    if isinstance(status, Mapping):
        return status.get("statusType")
    return status


def expand_time_off(requests: Iterable[Mapping[str, Any]]) -> Dict[str, Dict[date, TimeOffRecord]]:
    """Approved time-off requests to ``{person_id: {date: TimeOffRecord}}``.

    Requests that are not approved or have no person are ignored. Multi-day
    periods are expanded to every covered date; an earlier request for the
    same date is kept.
    """

    expanded: Dict[str, Dict[date, TimeOffRecord]] = defaultdict(dict)
    for request in requests or []:
        if not isinstance(request, Mapping) or _status(request) != APPROVED:
            continue
        person_id = _first(request, "userId", "requesterUserId")
        if not person_id:
            continue

        period = request.get("timeOffPeriod") or {}
        inner = period.get("period") or {}
        start = parse_date(_first(inner, "start") or _first(period, "start", "startDate"))
        if start is None:
            continue
        end = parse_date(_first(inner, "end") or _first(period, "end", "endDate")) or start

        half_day_hours = to_number(period.get("halfDayHours"))
        is_full_day = not period.get("halfDay") and (request.get("timeUnit") == "DAYS" or not half_day_hours)
        hours = 0.0 if is_full_day else max(half_day_hours or 0.0, 0.0)

        by_date = expanded[person_id]
        for day in date_range(start, end):
            by_date.setdefault(day, TimeOffRecord(is_full_day=is_full_day, hours=hours))
    return dict(expanded)
