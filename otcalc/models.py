from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Union


RateField = Union[float, int, str, Dict[str, Any], None]


class EntryClass(str, Enum):
    WORK = "work"
    BREAK = "break"
    PAID_LEAVE = "paid-leave"


class OverrideMode(str, Enum):
    GLOBAL = "global"
    WEEKLY = "weekly"
    PER_DAY = "perDay"


class AmountDisplay(str, Enum):
    EARNED = "earned"
    COST = "cost"
    PROFIT = "profit"


class DayTag(str, Enum):
    HOLIDAY = "HOLIDAY"
    OFF_DAY = "OFF-DAY"
    TIME_OFF = "TIME-OFF"
    BREAK = "BREAK"


@dataclass
class Person:
    id: str
    name: str


@dataclass
class TimeInterval:
    start: Optional[str] = None
    end: Optional[str] = None
    duration: Optional[str] = None


@dataclass
class AmountEntry:
    type: str
    value: Any = None


@dataclass
class TimeRecord:
    id: str
    person_id: str
    interval: Optional[TimeInterval] = None
    person_name: str = ""
    billable: bool = True
    kind: Optional[str] = None
    project_id: Optional[str] = None
    earned_rate: RateField = None
    cost_rate: RateField = None
    hourly_rate: RateField = None
    amounts: List[AmountEntry] = field(default_factory=list)
    description: Optional[str] = None
    analysis: Optional[EntryAnalysis] = None


@dataclass
class OverrideValues:
    capacity: Any = None
    multiplier: Any = None
    tier2_threshold: Any = None
    tier2_multiplier: Any = None


@dataclass
class PersonOverride(OverrideValues):
    mode: OverrideMode = OverrideMode.GLOBAL
    weekly: Dict[str, OverrideValues] = field(default_factory=dict)
    per_day: Dict[date, OverrideValues] = field(default_factory=dict)


@dataclass
class PersonProfile:
    capacity_hours: Optional[float] = None
    working_days: Optional[List[str]] = None


@dataclass
class Holiday:
    name: str
    start: Optional[date] = None
    end: Optional[date] = None
    project_id: Optional[str] = None


@dataclass
class TimeOffRecord:
    is_full_day: bool = True
    hours: float = 0.0


@dataclass
class DayCapacityResult:
    capacity: float
    base_capacity: float
    is_holiday: bool = False
    is_non_working: bool = False
    is_time_off: bool = False
    holiday_name: str = ""
    holiday_project_id: Optional[str] = None
    holiday_hours: float = 0.0
    time_off_hours: float = 0.0

    @property
    def tags(self) -> List[str]:
        tags = []
        if self.is_holiday:
            tags.append(DayTag.HOLIDAY.value)
        if self.is_non_working:
            tags.append(DayTag.OFF_DAY.value)
        if self.is_time_off:
            tags.append(DayTag.TIME_OFF.value)
        return tags


@dataclass
class AmountBreakdown:
    rate: float = 0.0
    regular_amount: float = 0.0
    overtime_amount_base: float = 0.0
    tier1_premium: float = 0.0
    tier2_premium: float = 0.0
    total_amount_with_ot: float = 0.0
    total_amount_no_ot: float = 0.0
    overtime_rate: float = 0.0

    @property
    def base_amount(self) -> float:
        return round(self.regular_amount + self.overtime_amount_base, 2)


@dataclass
class AmountSet:
    earned: AmountBreakdown
    cost: AmountBreakdown
    profit: AmountBreakdown

    def select(self, display: AmountDisplay) -> AmountBreakdown:
        return getattr(self, AmountDisplay(display).value)


@dataclass
class EntryAnalysis:
    regular: float
    overtime: float
    is_billable: bool
    is_break: bool
    cost: float
    profit: float
    tags: List[str]
    hourly_rate: float
    overtime_rate: float
    regular_amount: float
    overtime_amount_base: float
    tier1_premium: float
    tier2_premium: float
    tier2_hours: float
    total_amount_with_ot: float
    total_amount_no_ot: float
    amounts: AmountSet


@dataclass
class DayData:
    meta: DayCapacityResult
    records: List[TimeRecord] = field(default_factory=list)


@dataclass
class PersonTotals:
    regular: float = 0.0
    overtime: float = 0.0
    total: float = 0.0
    breaks: float = 0.0
    paid_leave_hours: float = 0.0
    billable_worked: float = 0.0
    non_billable_worked: float = 0.0
    billable_ot: float = 0.0
    non_billable_ot: float = 0.0
    amount: float = 0.0
    amount_base: float = 0.0
    amount_earned: float = 0.0
    amount_cost: float = 0.0
    amount_profit: float = 0.0
    amount_earned_base: float = 0.0
    amount_cost_base: float = 0.0
    amount_profit_base: float = 0.0
    profit: float = 0.0
    ot_premium: float = 0.0
    ot_premium_tier2: float = 0.0
    ot_premium_earned: float = 0.0
    ot_premium_cost: float = 0.0
    ot_premium_profit: float = 0.0
    ot_premium_tier2_earned: float = 0.0
    ot_premium_tier2_cost: float = 0.0
    ot_premium_tier2_profit: float = 0.0
    expected_capacity: float = 0.0
    holiday_count: int = 0
    time_off_count: int = 0
    holiday_hours: float = 0.0
    time_off_hours: float = 0.0

    def add_entry(
        self,
        entry_class: EntryClass,
        duration: float,
        analysis: EntryAnalysis,
        display: AmountDisplay,
    ) -> None:
        self.total += duration
        if entry_class is EntryClass.BREAK:
            self.breaks += duration
        elif entry_class is EntryClass.PAID_LEAVE:
            self.paid_leave_hours += duration
        self.regular += analysis.regular
        self.overtime += analysis.overtime
        if analysis.is_billable:
            self.billable_worked += analysis.regular
            self.billable_ot += analysis.overtime
        else:
            self.non_billable_worked += analysis.regular
            self.non_billable_ot += analysis.overtime

        amounts = analysis.amounts
        primary = amounts.select(display)
        self.amount += primary.total_amount_with_ot
        self.amount_base += primary.base_amount
        self.amount_earned += amounts.earned.total_amount_with_ot
        self.amount_earned_base += amounts.earned.base_amount
        self.amount_cost += amounts.cost.total_amount_with_ot
        self.amount_cost_base += amounts.cost.base_amount
        self.amount_profit += amounts.profit.total_amount_with_ot
        self.amount_profit_base += amounts.profit.base_amount

        self.ot_premium += primary.tier1_premium
        self.ot_premium_earned += amounts.earned.tier1_premium
        self.ot_premium_cost += amounts.cost.tier1_premium
        self.ot_premium_profit += amounts.profit.tier1_premium
        self.ot_premium_tier2 += primary.tier2_premium
        self.ot_premium_tier2_earned += amounts.earned.tier2_premium
        self.ot_premium_tier2_cost += amounts.cost.tier2_premium
        self.ot_premium_tier2_profit += amounts.profit.tier2_premium

    def add_day(self, meta: DayCapacityResult) -> None:
        self.expected_capacity += meta.capacity
        if meta.is_holiday:
            self.holiday_count += 1
            self.holiday_hours += meta.holiday_hours
        if meta.is_time_off:
            self.time_off_count += 1
            self.time_off_hours += meta.time_off_hours

    def rounded(self, hour_decimals: int = 4, money_decimals: int = 2) -> "PersonTotals":
        values = {}
        for name, value in vars(self).items():
            if isinstance(value, int):
                values[name] = value
            elif name in _HOUR_FIELDS:
                values[name] = round(value, hour_decimals) + 0.0
            else:
                values[name] = round(value, money_decimals) + 0.0
        values["profit"] = values["amount_profit"]
        return PersonTotals(**values)


_HOUR_FIELDS = frozenset(
    {
        "regular",
        "overtime",
        "total",
        "breaks",
        "paid_leave_hours",
        "billable_worked",
        "non_billable_worked",
        "billable_ot",
        "non_billable_ot",
        "expected_capacity",
        "holiday_hours",
        "time_off_hours",
    }
)


@dataclass
class PersonAnalysis:
    person_id: str
    person_name: str
    days: Dict[date, DayData] = field(default_factory=dict)
    totals: PersonTotals = field(default_factory=PersonTotals)
