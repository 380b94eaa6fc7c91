from __future__ import annotations
from typing import Optional

from .models import EntryClass, TimeRecord


BREAK_KINDS = frozenset({"BREAK"})
HOLIDAY_KINDS = frozenset({"HOLIDAY", "HOLIDAY_TIME_ENTRY"})
TIME_OFF_KINDS = frozenset({"TIME_OFF", "TIME_OFF_TIME_ENTRY"})
PAID_LEAVE_KINDS = HOLIDAY_KINDS | TIME_OFF_KINDS


def normalize_kind(kind: Optional[str]) -> str:
    if not kind or not isinstance(kind, str):
        return ""
    return kind.strip().upper().replace("-", "_")


def classify_kind(kind: Optional[str]) -> EntryClass:
    normalized = normalize_kind(kind)
    if normalized in BREAK_KINDS:
        return EntryClass.BREAK
    if normalized in PAID_LEAVE_KINDS:
        return EntryClass.PAID_LEAVE
    return EntryClass.WORK


def classify_record(record: TimeRecord) -> EntryClass:
    return classify_kind(record.kind)


def is_holiday_kind(kind: Optional[str]) -> bool:
    return normalize_kind(kind) in HOLIDAY_KINDS


def is_time_off_kind(kind: Optional[str]) -> bool:
    return normalize_kind(kind) in TIME_OFF_KINDS
