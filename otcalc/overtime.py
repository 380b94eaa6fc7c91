from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from .timeutils import HOUR_DECIMALS, safe_round


@dataclass(frozen=True)
class OvertimeSplit:
    regular: float = 0.0
    overtime: float = 0.0


class TailAttributionEngine:
    """Splits a day's work records against capacity, earliest records first.

    Records are fed in start order. Once the running total reaches capacity,
    everything after it is overtime, so overtime lands on the latest work of
    the day.
    """

    def __init__(self, capacity: float) -> None:
        self.capacity = max(capacity or 0.0, 0.0)
        self.accumulated = 0.0

    def split(self, duration: float) -> OvertimeSplit:
        duration = max(duration or 0.0, 0.0)
        if self.accumulated >= self.capacity:
            split = OvertimeSplit(regular=0.0, overtime=duration)
        elif self.accumulated + duration <= self.capacity:
            split = OvertimeSplit(regular=duration, overtime=0.0)
        else:
            regular = self.capacity - self.accumulated
            split = OvertimeSplit(regular=regular, overtime=duration - regular)
        self.accumulated += duration
        return split

    def split_all(self, durations: Iterable[float]) -> List[OvertimeSplit]:
        return [self.split(duration) for duration in durations]


def tier2_enabled(threshold: float, multiplier: float, tier2_multiplier: float) -> bool:
    return tier2_multiplier > multiplier and threshold >= 0


@dataclass(frozen=True)
class TieredOvertimeAccumulator:
    """Cumulative overtime for one person across the days of one run.

    Immutable: ``advance`` returns the next state together with the
    tier-2-eligible share of the overtime just added.
    """

    cumulative: float = 0.0
    enabled: bool = True

    def advance(
        self,
        overtime: float,
        threshold: float,
        multiplier: float,
        tier2_multiplier: float,
    ) -> Tuple["TieredOvertimeAccumulator", float]:
        overtime = max(overtime or 0.0, 0.0)
        before = self.cumulative
        after = before + overtime
        tier2_hours = 0.0
        if self.enabled and overtime > 0 and tier2_enabled(threshold, multiplier, tier2_multiplier):
            if before >= threshold:
                tier2_hours = overtime
            elif after > threshold:
                tier2_hours = after - threshold
        next_state = TieredOvertimeAccumulator(cumulative=after, enabled=self.enabled)
        return next_state, safe_round(tier2_hours, HOUR_DECIMALS)
