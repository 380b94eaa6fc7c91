"""Per-person, per-day overtime and amount analysis.

``AnalysisAggregator.run`` walks every known person through every day of the
range in calendar order. For each day it resolves capacity once, orders the
day's records by start time (stable, so ties keep input order), splits work
records with tail attribution and threads the tier-2 accumulator from one day
to the next.

The aggregator never mutates its input. Each processed record is copied with
its ``analysis`` attached and the annotations are also kept in
``AnalysisAggregator.annotations`` keyed by the identity of the input record.
``calculate_analysis`` writes those annotations back onto the caller's
records.
"""
from __future__ import annotations
from collections import defaultdict
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .amounts import AmountCalculator
from .capacity import CapacityResolver, OverrideResolver
from .classifier import classify_record
from .context import CalculationContext
from .logging import get_logger
from .models import (
    AmountDisplay,
    DayCapacityResult,
    DayData,
    DayTag,
    EntryAnalysis,
    EntryClass,
    PersonAnalysis,
    TimeRecord,
)
from .overtime import OvertimeSplit, TailAttributionEngine, TieredOvertimeAccumulator
from .rates import RateResolver
from .timeutils import (
    HOUR_DECIMALS,
    date_range as dates_between,
    parse_date,
    parse_timestamp,
    record_date,
    record_duration_hours,
    safe_round,
)

logger = get_logger(__name__)

DateRange = Tuple[Optional[object], Optional[object]]

_EPOCH = datetime(1970, 1, 1)


def start_sort_key(record: TimeRecord) -> datetime:
    started = parse_timestamp(record.interval.start if record.interval else None)
    if started is None:
        return _EPOCH
    if started.tzinfo is not None:
        started = started.astimezone(timezone.utc).replace(tzinfo=None)
    return started


def _rounded_split(split: OvertimeSplit, duration: float) -> Tuple[float, float]:
    # overtime is derived from the rounded duration so the pair always sums exactly
    regular = safe_round(split.regular, HOUR_DECIMALS)
    overtime = safe_round(safe_round(duration, HOUR_DECIMALS) - regular, HOUR_DECIMALS)
    return regular, max(overtime, 0.0)


class AnalysisAggregator:
    def __init__(self, context: CalculationContext, rate_resolver: Optional[RateResolver] = None) -> None:
        self.context = context
        self.overrides = OverrideResolver(context)
        self.capacity = CapacityResolver(context, self.overrides)
        self.rates = rate_resolver or RateResolver()
        self.display = AmountDisplay(context.flags.amount_display)
        self.annotations: Dict[int, EntryAnalysis] = {}

    def run(self, records: Optional[Iterable[TimeRecord]], date_range: Optional[DateRange] = None) -> List[PersonAnalysis]:
        self.annotations = {}
        batch = [record for record in (records or []) if record is not None]

        records_by_person: Dict[str, List[TimeRecord]] = defaultdict(list)
        seen_dates: List[date] = []
        for record in batch:
            records_by_person[record.person_id or "unknown"].append(record)
            day = record_date(record)
            if day is not None:
                seen_dates.append(day)

        start, end = self._effective_range(date_range, seen_dates)
        if start is None or end is None:
            logger.info("analysis_skipped", reason="empty_range", records=len(batch))
            return []

        analyses: Dict[str, PersonAnalysis] = {}
        for person in self.context.persons:
            if person is not None and person.id not in analyses:
                analyses[person.id] = PersonAnalysis(person_id=person.id, person_name=person.name or "")
        for person_id, person_records in records_by_person.items():
            if person_id not in analyses:
                name = next((r.person_name for r in person_records if r.person_name), "Unknown")
                analyses[person_id] = PersonAnalysis(person_id=person_id, person_name=name)

        days = dates_between(start, end)
        for person_id, analysis in analyses.items():
            self._analyze_person(analysis, records_by_person.get(person_id, []), days)

        results = sorted(analyses.values(), key=lambda a: (a.person_name.lower(), a.person_id))
        logger.info(
            "analysis_complete",
            persons=len(results),
            records=len(batch),
            annotated=len(self.annotations),
            start=start.isoformat(),
            end=end.isoformat(),
        )
        return results

    @staticmethod
    def _effective_range(date_range: Optional[DateRange], seen: Sequence[date]) -> Tuple[Optional[date], Optional[date]]:
        start = end = None
        if date_range:
            start, end = parse_date(date_range[0]), parse_date(date_range[1])
        if start is None and seen:
            start = min(seen)
        if end is None and seen:
            end = max(seen)
        return start, end

    def _analyze_person(self, analysis: PersonAnalysis, records: List[TimeRecord], days: List[date]) -> None:
        records_by_day: Dict[date, List[TimeRecord]] = defaultdict(list)
        for record in records:
            day = record_date(record)
            if day is None:
                logger.debug("record_skipped", record_id=record.id, person_id=analysis.person_id, reason="no_start_date")
                self._annotate_unusable(record)
                continue
            records_by_day[day].append(record)

        tiers = TieredOvertimeAccumulator(enabled=self.context.flags.enable_tiered_ot)
        for day in days:
            tiers, day_data = self._analyze_day(analysis, day, records_by_day.pop(day, []), tiers)
            analysis.days[day] = day_data
            analysis.totals.add_day(day_data.meta)

        for day, leftovers in records_by_day.items():
            logger.debug("records_out_of_range", person_id=analysis.person_id, day=day.isoformat(), count=len(leftovers))

        analysis.totals = analysis.totals.rounded()
        logger.debug(
            "person_analyzed",
            person_id=analysis.person_id,
            regular=analysis.totals.regular,
            overtime=analysis.totals.overtime,
        )

    def _analyze_day(
        self,
        analysis: PersonAnalysis,
        day: date,
        records: List[TimeRecord],
        tiers: TieredOvertimeAccumulator,
    ) -> Tuple[TieredOvertimeAccumulator, DayData]:
        person_id = analysis.person_id
        meta = self.capacity.resolve(person_id, day, records)
        multiplier = self.overrides.multiplier(person_id, day)
        tier2_threshold = self.overrides.tier2_threshold(person_id, day)
        tier2_multiplier = self.overrides.tier2_multiplier(person_id, day)
        calculator = AmountCalculator(multiplier, tier2_multiplier)
        tail = TailAttributionEngine(meta.capacity)

        processed: List[TimeRecord] = []
        for record in sorted(records, key=start_sort_key):
            duration = record_duration_hours(record)
            entry_class = classify_record(record)
            if entry_class is EntryClass.WORK:
                split = tail.split(duration)
            else:
                split = OvertimeSplit(regular=duration, overtime=0.0)

            tier2_hours = 0.0
            if split.overtime > 0:
                tiers, tier2_hours = tiers.advance(split.overtime, tier2_threshold, calculator.multiplier, tier2_multiplier)

            entry = self._entry_analysis(record, duration, split, tier2_hours, entry_class, meta, calculator)
            analysis.totals.add_entry(entry_class, duration, entry, self.display)
            self.annotations[id(record)] = entry
            processed.append(replace(record, analysis=entry))

        return tiers, DayData(meta=meta, records=processed)

    def _entry_analysis(
        self,
        record: TimeRecord,
        duration: float,
        split: OvertimeSplit,
        tier2_hours: float,
        entry_class: EntryClass,
        meta: DayCapacityResult,
        calculator: AmountCalculator,
    ) -> EntryAnalysis:
        regular, overtime = _rounded_split(split, duration)
        rates = self.rates.resolve(record, duration)
        amounts = calculator.calculate(rates, split.regular, split.overtime, tier2_hours)
        primary = amounts.select(self.display)

        tags = meta.tags
        if entry_class is EntryClass.BREAK:
            tags.append(DayTag.BREAK.value)

        return EntryAnalysis(
            regular=regular,
            overtime=overtime,
            is_billable=record.billable is not False,
            is_break=entry_class is EntryClass.BREAK,
            cost=primary.total_amount_with_ot,
            profit=amounts.profit.total_amount_with_ot,
            tags=tags,
            hourly_rate=primary.rate,
            overtime_rate=primary.overtime_rate,
            regular_amount=primary.regular_amount,
            overtime_amount_base=primary.overtime_amount_base,
            tier1_premium=primary.tier1_premium,
            tier2_premium=primary.tier2_premium,
            tier2_hours=tier2_hours,
            total_amount_with_ot=primary.total_amount_with_ot,
            total_amount_no_ot=primary.total_amount_no_ot,
            amounts=amounts,
        )

    def _annotate_unusable(self, record: TimeRecord) -> None:
        calculator = AmountCalculator(1.0, 1.0)
        self.annotations[id(record)] = self._entry_analysis(
            record,
            0.0,
            OvertimeSplit(),
            0.0,
            classify_record(record),
            DayCapacityResult(capacity=0.0, base_capacity=0.0),
            calculator,
        )


def calculate_analysis(
    records: Optional[Iterable[TimeRecord]],
    context: CalculationContext,
    date_range: Optional[DateRange] = None,
    annotate: bool = True,
) -> List[PersonAnalysis]:
    """Run the engine over a closed batch and, by default, annotate the input records."""

    batch = list(records or [])
    aggregator = AnalysisAggregator(context)
    results = aggregator.run(batch, date_range)
    if annotate:
        for record in batch:
            if record is not None and id(record) in aggregator.annotations:
                record.analysis = aggregator.annotations[id(record)]
    return results
