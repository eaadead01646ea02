from datetime import datetime, timezone

import pytest

from pydantic_models.data.timecard_request import TimecardRequest
from timecards.modules.errors import MalformedRequestError
from timecards.modules.request_normalizer import normalize_weeks


def _request(**kwargs) -> TimecardRequest:
    base = {"employee_name": "Max Muster", "pay_period_num": 3, "year": 2025, "jobs": [{"job_code": "A", "job_name": "a"}]}
    base.update(kwargs)
    return TimecardRequest.model_validate(base)


def _entry(ts: str, hours: float = 1.0, job: str = "A") -> dict:
    return {"date": ts, "job_code": job, "hours": hours}


def test_entry_exactly_seven_days_after_start_goes_to_week_two():
    req = _request(
        week_start_date="2025-01-05T00:00:00Z",
        entries=[_entry("2025-01-05T08:00:00Z"), _entry("2025-01-12T00:00:00Z")],
    )
    weeks = normalize_weeks(req)
    assert [len(w.entries) for w in weeks] == [1, 1]
    assert weeks[1].entries[0].date == "2025-01-12T00:00:00Z"
    assert weeks[1].start == datetime(2025, 1, 12, tzinfo=timezone.utc)
    assert weeks[1].label == "Week 2"


def test_entry_six_days_23_hours_after_start_stays_in_week_one():
    req = _request(
        week_start_date="2025-01-05T00:00:00Z",
        entries=[_entry("2025-01-05T08:00:00Z"), _entry("2025-01-11T23:00:00Z")],
    )
    weeks = normalize_weeks(req)
    assert len(weeks) == 1
    assert len(weeks[0].entries) == 2


def test_week_start_falls_back_to_earliest_entry_at_midnight():
    req = _request(entries=[_entry("2025-01-09T10:00:00Z"), _entry("2025-01-07T15:30:00Z")])
    weeks = normalize_weeks(req)
    assert weeks[0].start == datetime(2025, 1, 7, tzinfo=timezone.utc)
    assert len(weeks[0].entries) == 2


def test_top_level_start_is_truncated_to_midnight_utc():
    req = _request(week_start_date="2025-01-05T06:00:00+02:00", entries=[_entry("2025-01-05T10:00:00Z")])
    assert normalize_weeks(req)[0].start == datetime(2025, 1, 5, tzinfo=timezone.utc)


def test_unparseable_entries_are_skipped():
    req = _request(
        week_start_date="2025-01-05",
        entries=[_entry("gestern"), _entry("2025-01-06T00:00:00Z")],
    )
    weeks = normalize_weeks(req)
    assert len(weeks) == 1
    assert [e.date for e in weeks[0].entries] == ["2025-01-06T00:00:00Z"]


def test_entries_beyond_two_weeks_stay_in_week_two():
    req = _request(
        week_start_date="2025-01-05",
        entries=[_entry("2025-01-05"), _entry("2025-01-20")],
    )
    weeks = normalize_weeks(req)
    assert len(weeks) == 2
    assert weeks[1].entries[0].date == "2025-01-20"


def test_labels_for_fallback_weeks():
    req = _request(week_start_date="2025-01-05", week_number_label="KW 2", entries=[_entry("2025-01-05")])
    assert normalize_weeks(req)[0].label == "KW 2"
    req = _request(week_start_date="2025-01-05", entries=[_entry("2025-01-05")])
    assert normalize_weeks(req)[0].label == "Week 1"


def test_supplied_weeks_take_precedence_and_are_sorted():
    req = _request(
        entries=[_entry("2024-12-01")],
        weeks=[
            {"week_number": 2, "week_start_date": "2025-01-12T00:00:00Z", "entries": [_entry("2025-01-13")]},
            {"week_number": 1, "week_start_date": "2025-01-05T00:00:00Z", "week_label": "Erste", "entries": []},
        ],
    )
    weeks = normalize_weeks(req)
    assert [w.number for w in weeks] == [1, 2]
    assert [w.label for w in weeks] == ["Erste", "Week 2"]
    assert weeks[0].entries == []
    assert weeks[1].entries[0].date == "2025-01-13"


def test_supplied_week_with_invalid_start_is_malformed():
    req = _request(weeks=[{"week_start_date": "kein datum", "entries": []}])
    with pytest.raises(MalformedRequestError):
        normalize_weeks(req)


def test_no_entries_yields_single_header_only_week():
    req = _request(week_start_date="2025-01-05T00:00:00Z")
    weeks = normalize_weeks(req)
    assert len(weeks) == 1
    assert weeks[0].entries == []
    assert weeks[0].start == datetime(2025, 1, 5, tzinfo=timezone.utc)


def test_no_entries_and_no_start_is_malformed():
    with pytest.raises(MalformedRequestError):
        normalize_weeks(_request())


def test_only_unparseable_entries_without_start_is_malformed():
    with pytest.raises(MalformedRequestError):
        normalize_weeks(_request(entries=[_entry("irgendwann")]))


@pytest.mark.parametrize("start", ["1899-01-01T00:00:00Z", "1900-02-28T00:00:00Z", "9999-12-26T00:00:00Z", "9999-12-30T00:00:00Z"])
def test_week_start_outside_excel_date_range_is_malformed(start):
    with pytest.raises(MalformedRequestError):
        normalize_weeks(_request(week_start_date=start))
    with pytest.raises(MalformedRequestError):
        normalize_weeks(_request(week_start_date=start, entries=[_entry("2025-01-06T00:00:00Z")]))
    with pytest.raises(MalformedRequestError):
        normalize_weeks(_request(weeks=[{"week_start_date": start, "entries": []}]))


def test_last_representable_week_start_is_accepted():
    weeks = normalize_weeks(_request(week_start_date="9999-12-25T00:00:00Z", entries=[_entry("9999-12-31T10:00:00Z")]))
    assert len(weeks) == 1
    assert weeks[0].start == datetime(9999, 12, 25, tzinfo=timezone.utc)


def test_derived_start_outside_excel_date_range_is_malformed():
    with pytest.raises(MalformedRequestError):
        normalize_weeks(_request(entries=[_entry("1800-05-01T00:00:00Z")]))


def test_second_week_beyond_excel_date_range_is_malformed():
    req = _request(week_start_date="9999-12-20T00:00:00Z", entries=[_entry("9999-12-28T00:00:00Z")])
    with pytest.raises(MalformedRequestError):
        normalize_weeks(req)
