import sys
from pathlib import Path

import pytest
import structlog

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from otcalc.context import CalculationContext
from otcalc.models import Person, TimeInterval, TimeRecord
from otcalc.settings import CalculationParams, FeatureFlags, get_settings


def build_record(
    record_id: str,
    start: str,
    hours: float,
    person_id: str = "u1",
    person_name: str = "Ada",
    kind: str = "REGULAR",
    earned_rate=20,
    **kwargs,
) -> TimeRecord:
    """Record starting at ``start`` (``YYYY-MM-DDTHH:MM``) lasting ``hours``."""

    whole = int(hours)
    minutes = round((hours - whole) * 60)
    duration = f"PT{whole}H{minutes}M" if minutes else f"PT{whole}H"
    return TimeRecord(
        id=record_id,
        person_id=person_id,
        person_name=person_name,
        interval=TimeInterval(start=f"{start}:00Z", duration=duration),
        kind=kind,
        earned_rate=earned_rate,
        **kwargs,
    )


def build_context(persons=None, flags=None, params=None, **kwargs) -> CalculationContext:
    return CalculationContext(
        persons=persons if persons is not None else [Person(id="u1", name="Ada")],
        flags=flags or FeatureFlags(),
        params=params or CalculationParams(),
        **kwargs,
    )


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_record():
    return build_record


@pytest.fixture
def make_context():
    return build_context
