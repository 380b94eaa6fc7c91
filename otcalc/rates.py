from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Sequence

from .models import AmountEntry, RateField, TimeRecord
from .timeutils import safe_round, to_number


Extractor = Callable[[TimeRecord, float], Optional[float]]


@dataclass(frozen=True)
class Rates:
    earned: float = 0.0
    cost: float = 0.0

    @property
    def profit(self) -> float:
        return self.earned - self.cost


def rate_value(field: RateField) -> Optional[float]:
    """Read a rate given as a bare number or an ``{"amount": n}`` mapping."""

    if isinstance(field, dict):
        field = field.get("amount")
    value = to_number(field)
    if value is None or value == 0:
        return None
    return value


def _amount_type(entry: Any) -> str:
    if isinstance(entry, AmountEntry):
        return str(entry.type or "").upper()
    if isinstance(entry, dict):
        return str(entry.get("type") or entry.get("amountType") or "").upper()
    return ""


def _amount_value(entry: Any) -> Optional[float]:
    if isinstance(entry, AmountEntry):
        return to_number(entry.value)
    if isinstance(entry, dict):
        value = entry.get("value")
        return to_number(value if value is not None else entry.get("amount"))
    return None


def sum_amounts(amounts: Iterable[Any], amount_type: str) -> float:
    target = amount_type.upper()
    total = 0.0
    for entry in amounts or []:
        if _amount_type(entry) != target:
            continue
        value = _amount_value(entry)
        if value is not None:
            total += value
    return total


def _direct(attribute: str) -> Extractor:
    def extract(record: TimeRecord, duration: float) -> Optional[float]:
        return rate_value(getattr(record, attribute, None))

    return extract


def _from_amounts(amount_type: str) -> Extractor:
    def extract(record: TimeRecord, duration: float) -> Optional[float]:
        if not duration or duration <= 0:
            return None
        total = sum_amounts(record.amounts, amount_type)
        if total == 0:
            return None
        return safe_round(total / duration, 2)

    return extract


EARNED_EXTRACTORS: List[Extractor] = [
    _direct("earned_rate"),
    _direct("hourly_rate"),
    _from_amounts("EARNED"),
]

COST_EXTRACTORS: List[Extractor] = [
    _direct("cost_rate"),
    _from_amounts("COST"),
]


def first_rate(extractors: Sequence[Extractor], record: TimeRecord, duration: float) -> float:
    for extractor in extractors:
        value = extractor(record, duration)
        if value is not None:
            return max(value, 0.0)
    return 0.0


class RateResolver:
    def __init__(
        self,
        earned_extractors: Sequence[Extractor] = tuple(EARNED_EXTRACTORS),
        cost_extractors: Sequence[Extractor] = tuple(COST_EXTRACTORS),
    ) -> None:
        self.earned_extractors = earned_extractors
        self.cost_extractors = cost_extractors

    def resolve(self, record: TimeRecord, duration: float) -> Rates:
        earned = first_rate(self.earned_extractors, record, duration) if record.billable is not False else 0.0
        cost = first_rate(self.cost_extractors, record, duration)
        return Rates(earned=earned, cost=cost)
