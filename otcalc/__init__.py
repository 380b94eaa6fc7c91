from .analysis import AnalysisAggregator, calculate_analysis
from .context import CalculationContext
from .models import (
    AmountDisplay,
    DayCapacityResult,
    EntryAnalysis,
    Holiday,
    Person,
    PersonAnalysis,
    PersonOverride,
    PersonProfile,
    PersonTotals,
    TimeInterval,
    TimeOffRecord,
    TimeRecord,
)
from .settings import CalculationParams, FeatureFlags, Settings, get_settings

__all__ = [
    "AmountDisplay",
    "AnalysisAggregator",
    "CalculationContext",
    "CalculationParams",
    "DayCapacityResult",
    "EntryAnalysis",
    "FeatureFlags",
    "Holiday",
    "Person",
    "PersonAnalysis",
    "PersonOverride",
    "PersonProfile",
    "PersonTotals",
    "Settings",
    "TimeInterval",
    "TimeOffRecord",
    "TimeRecord",
    "calculate_analysis",
    "get_settings",
]
