import json
from datetime import date

import pytest

from otcalc import codec
from otcalc.analysis import calculate_analysis
from otcalc.models import (
    AmountEntry,
    Holiday,
    OverrideMode,
    OverrideValues,
    Person,
    PersonOverride,
    PersonProfile,
    TimeOffRecord,
)
from otcalc.settings import CalculationParams, FeatureFlags, Settings

MONDAY = date(2024, 1, 15)


def rich_context(make_context):
    return make_context(
        persons=[Person(id="u1", name="Ada"), Person(id="u2", name="Ben")],
        profiles={"u1": PersonProfile(capacity_hours=7, working_days=["MONDAY", "TUESDAY"])},
        holidays={"u2": {MONDAY: Holiday(name="Winter Day", start=MONDAY, project_id="p-h")}},
        time_off={"u1": {date(2024, 1, 16): TimeOffRecord(is_full_day=False, hours=2)}},
        overrides={
            "u1": PersonOverride(
                mode=OverrideMode.PER_DAY,
                multiplier=1.75,
                weekly={"MONDAY": OverrideValues(capacity=4)},
                per_day={MONDAY: OverrideValues(capacity=6)},
            )
        },
        flags=FeatureFlags(enable_tiered_ot=True, amount_display="cost"),
        params=CalculationParams(tier2_threshold_hours=1, tier2_multiplier=2.5),
    )


def rich_records(make_record):
    return [
        make_record("r1", "2024-01-15T08:00", 9, cost_rate=12),
        make_record("r2", "2024-01-16T08:00", 7, amounts=[AmountEntry(type="COST", value=70)]),
        make_record("r3", "2024-01-15T09:00", 5, person_id="u2", person_name="Ben", earned_rate={"amount": 40}),
    ]


def test_context_survives_json(make_context):
    context = rich_context(make_context)

    loaded = codec.load_context(json.loads(json.dumps(codec.dump_context(context))))

    assert loaded.persons == context.persons
    assert loaded.profiles == context.profiles
    assert loaded.holidays == context.holidays
    assert loaded.time_off == context.time_off
    assert loaded.overrides["u1"].per_day == context.overrides["u1"].per_day
    assert loaded.overrides["u1"].weekly == context.overrides["u1"].weekly
    assert loaded.flags == context.flags
    assert loaded.params == context.params


def test_dumped_caches_are_key_value_pairs(make_context):
    payload = codec.dump_context(rich_context(make_context))

    assert payload["holidays"][0][0] == "u2"
    assert payload["holidays"][0][1][0][0] == "2024-01-15"
    assert payload["overrides"][0][1]["mode"] == "perDay"


def test_analysis_is_identical_after_round_trip(make_context, make_record):
    context = rich_context(make_context)
    records = rich_records(make_record)
    direct = calculate_analysis(records, context, annotate=False)

    snapshot = json.loads(json.dumps(codec.dump_snapshot(records, context)))
    loaded_records, loaded_context, date_range = codec.load_snapshot_payload(snapshot)
    replayed = calculate_analysis(loaded_records, loaded_context, date_range, annotate=False)

    assert [r.totals for r in replayed] == [r.totals for r in direct]


def test_dump_and_load_analysis(make_context, make_record):
    results = calculate_analysis(rich_records(make_record), rich_context(make_context))

    loaded = codec.load_analysis(json.loads(json.dumps(codec.dump_analysis(results))))

    assert loaded == results


def test_records_round_trip_with_annotations(make_context, make_record):
    records = rich_records(make_record)
    calculate_analysis(records, rich_context(make_context))

    loaded = codec.load_records(json.loads(json.dumps(codec.dump_records(records))))

    assert [r.analysis for r in loaded] == [r.analysis for r in records]
    assert loaded[1].amounts[0].type == "COST"


def test_snapshot_file_round_trip(tmp_path, make_context, make_record):
    path = tmp_path / "nested" / "snapshot.json"
    codec.save_snapshot(path, rich_records(make_record), rich_context(make_context), (MONDAY, date(2024, 1, 16)))

    records, context, date_range = codec.load_snapshot(path)

    assert len(records) == 3
    assert context.params.tier2_multiplier == 2.5
    assert date_range == ("2024-01-15", "2024-01-16")


def test_missing_snapshot_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        codec.load_snapshot(tmp_path / "missing.json")


def test_provider_shaped_records_in_snapshot(make_context):
    snapshot = {
        "records": [{"id": "e1", "userId": "u1", "userName": "Ada", "hourlyRate": 20, "timeInterval": {"start": "2024-01-15T08:00:00Z", "duration": "PT10H"}}],
        "context": codec.dump_context(make_context()),
    }

    records, context, _ = codec.load_snapshot_payload(snapshot)
    results = calculate_analysis(records, context)

    assert results[0].totals.amount == 220


def test_settings_fill_missing_flags_and_params_field_by_field(monkeypatch, make_context):
    monkeypatch.setenv("OTCALC_PARAMS__DAILY_THRESHOLD", "6")
    monkeypatch.setenv("OTCALC_PARAMS__OVERTIME_MULTIPLIER", "1.25")
    monkeypatch.setenv("OTCALC_FLAGS__ENABLE_TIERED_OT", "true")
    payload = codec.dump_context(make_context())
    del payload["flags"]
    payload["params"] = {"overtime_multiplier": 2}

    context = codec.load_context(payload, Settings())

    assert context.flags.enable_tiered_ot is True
    assert context.params.daily_threshold == 6
    assert context.params.overtime_multiplier == 2
    assert codec.load_context(payload).params.daily_threshold == 8
