from datetime import date

from otcalc.models import AmountEntry, Holiday
from otcalc.records import (
    expand_holidays,
    expand_time_off,
    holiday_from_payload,
    record_from_payload,
    records_from_payloads,
)


def test_record_from_provider_payload():
    payload = {
        "_id": "e1",
        "userId": "u1",
        "userName": "Ada",
        "billable": False,
        "type": "BREAK",
        "project": {"id": "p1"},
        "hourlyRate": {"amount": 50, "currency": "USD"},
        "amounts": [{"amountType": "EARNED", "amount": 100}],
        "description": "lunch",
        "timeInterval": {"start": "2024-01-15T12:00:00Z", "end": "2024-01-15T13:00:00Z", "duration": "PT1H"},
    }

    record = record_from_payload(payload)

    assert record.id == "e1"
    assert record.person_id == "u1"
    assert record.person_name == "Ada"
    assert record.billable is False
    assert record.kind == "BREAK"
    assert record.project_id == "p1"
    assert record.hourly_rate == {"amount": 50, "currency": "USD"}
    assert record.amounts == [AmountEntry(type="EARNED", value=100)]
    assert record.interval.duration == "PT1H"
    assert record.analysis is None


def test_record_from_sparse_payload():
    record = record_from_payload({"id": "e2", "userId": "u2"})

    assert record.interval is None
    assert record.billable is True
    assert record.amounts == []


def test_records_from_payloads_skips_non_mappings():
    assert [r.id for r in records_from_payloads([{"id": "a", "userId": "u"}, None, "x"])] == ["a"]


def test_expand_holidays_covers_every_date():
    winter = Holiday(name="Winter Break", start=date(2024, 12, 30), end=date(2025, 1, 1))
    single = Holiday(name="Founders Day", start=date(2024, 12, 31))

    expanded = expand_holidays({"u1": [winter, single], "u2": [Holiday(name="No date")]})

    assert sorted(expanded["u1"]) == [date(2024, 12, 30), date(2024, 12, 31), date(2025, 1, 1)]
    assert expanded["u1"][date(2024, 12, 31)] is winter
    assert expanded["u2"] == {}


def test_holiday_from_payload():
    holiday = holiday_from_payload(
        {"name": "Winter Day", "projectId": "p-h", "datePeriod": {"startDate": "2024-01-15T00:00:00Z", "endDate": "2024-01-16"}}
    )

    assert holiday == Holiday(name="Winter Day", start=date(2024, 1, 15), end=date(2024, 1, 16), project_id="p-h")


def test_expand_time_off_only_uses_approved_requests():
    requests = [
        {
            "userId": "u1",
            "status": {"statusType": "APPROVED"},
            "timeUnit": "DAYS",
            "timeOffPeriod": {"period": {"start": "2024-01-15T00:00:00Z", "end": "2024-01-17T00:00:00Z"}},
        },
        {
            "requesterUserId": "u2",
            "status": "APPROVED",
            "timeUnit": "HOURS",
            "timeOffPeriod": {"halfDay": True, "halfDayHours": 4, "start": "2024-01-15"},
        },
        {"userId": "u3", "status": "PENDING", "timeOffPeriod": {"start": "2024-01-15"}},
        {"status": "APPROVED", "timeOffPeriod": {"start": "2024-01-15"}},
    ]

    expanded = expand_time_off(requests)

    assert set(expanded) == {"u1", "u2"}
    assert sorted(expanded["u1"]) == [date(2024, 1, 15), date(2024, 1, 16), date(2024, 1, 17)]
    assert expanded["u1"][date(2024, 1, 16)].is_full_day
    half = expanded["u2"][date(2024, 1, 15)]
    assert half.is_full_day is False
    assert half.hours == 4
