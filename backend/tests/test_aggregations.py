# tests/test_aggregations.py
import uuid
from datetime import date, datetime, timezone

import pytest

from fellowship.services import aggregations as agg


def test_income_sections_split_general_from_other():
    rows = [
        {"income_type": "general_income", "category": "tithe", "amount": 100.0},
        {"income_type": "general_income", "category": "offering", "amount": 40.0},
        {"income_type": "general_income", "category": "tithe", "amount": 60.0},
        {"income_type": "donation", "category": "missions", "amount": 25.0},
        {"income_type": "contribution", "category": None, "amount": 5.0},
    ]
    out = agg.income_sections(rows)
    assert out["general_items"] == [{"label": "tithe", "amount": 160.0}, {"label": "offering", "amount": 40.0}]
    assert out["other_items"] == [{"label": "missions", "amount": 25.0}, {"label": "Unknown", "amount": 5.0}]
    assert out["general_total"] == 200.0
    assert out["other_total"] == 30.0


def test_expense_sections_by_category_are_labelled_and_sorted():
    rows = [
        {"category": "utilities", "amount": 10},
        {"category": "building_maintenance", "amount": 5},
        {"category": "utilities", "amount": 2.5},
        {"category": None, "amount": 1},
    ]
    out = agg.expense_sections(rows)
    assert out["items"] == [
        {"label": "Building Maintenance", "amount": 5.0},
        {"label": "Unspecified", "amount": 1.0},
        {"label": "Utilities", "amount": 12.5},
    ]
    assert out["total"] == 18.5


def test_expense_sections_by_purpose():
    rows = [{"purpose": "Roof", "amount": 3}, {"purpose": None, "amount": 4}]
    out = agg.expense_sections(rows, grouping="purpose")
    assert [i["label"] for i in out["items"]] == ["Roof", "Unspecified"]


def test_expense_sections_rejects_unknown_grouping():
    with pytest.raises(ValueError):
        agg.expense_sections([], grouping="vendor")


def test_category_label_map_wins():
    assert agg.format_category_label("utilities", {"utilities": "Power & Water"}) == "Power & Water"
    assert agg.format_category_label("") == ""


def test_pledges_summary():
    rows = [
        {"pledge_type": "building", "pledge_amount": 1000, "amount_paid": 250, "amount_remaining": 750},
        {"pledge_type": "building", "pledge_amount": 500, "amount_paid": 500, "amount_remaining": 0},
        {"pledge_type": None, "pledge_amount": 100, "amount_paid": 20, "amount_remaining": None},
    ]
    out = agg.pledges_summary(rows)
    assert out["total_pledged"] == 1600.0
    assert out["total_paid"] == 770.0
    assert out["total_remaining"] == 830.0
    assert out["type_items"] == [
        {"label": "building", "pledged": 1500.0, "fulfilled": 750.0, "remaining": 750.0},
        {"label": "Pledge", "pledged": 100.0, "fulfilled": 20.0, "remaining": 80.0},
    ]


def test_finance_summary_net_and_averages():
    incomes = [{"income_type": "general_income", "category": "tithe", "amount": 300.0}]
    expenses = [{"category": "utilities", "amount": 50.0}, {"category": "utilities", "amount": 25.0}]
    out = agg.finance_summary(incomes, expenses, [])
    assert out["total_income"] == 300.0
    assert out["total_expenses"] == 75.0
    assert out["net"] == 225.0
    assert out["average_expense"] == 37.5
    assert out["pledges"]["total_pledged"] == 0


def test_finance_summary_of_nothing():
    out = agg.finance_summary([], [], [])
    assert out["net"] == 0
    assert out["average_income"] == 0.0


@pytest.mark.parametrize(
    "age, bucket",
    [(None, "Unknown"), (0, "Children"), (12, "Children"), (13, "Youth"), (25, "Youth"), (26, "Adults"), (59, "Adults"), (60, "Seniors")],
)
def test_age_buckets(age, bucket):
    assert agg.age_bucket(age) == bucket


def test_age_on_birthday_boundary():
    assert agg.age_on(date(2000, 6, 15), date(2024, 6, 14)) == 23
    assert agg.age_on(date(2000, 6, 15), date(2024, 6, 15)) == 24
    assert agg.age_on(None, date(2024, 1, 1)) is None


def test_matches_demographics():
    assert agg.matches_demographics(None, [])
    assert not agg.matches_demographics(None, ["adults"])
    assert agg.matches_demographics(8, ["children"])
    assert agg.matches_demographics(20, ["children", "young_adults"])
    assert not agg.matches_demographics(20, ["adults"])
    assert agg.matches_demographics(80, ["adults"])


def test_attendance_report_summary():
    s1, s2 = uuid.uuid4(), uuid.uuid4()
    m1, m2, m3 = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    sessions = {
        s1: {"name": "Sunday AM", "start_time": datetime(2024, 5, 5, 9, tzinfo=timezone.utc)},
        s2: {"name": "Sunday PM", "start_time": datetime(2024, 5, 12, 17, tzinfo=timezone.utc)},
    }
    records = [
        {"session_id": s1, "member_id": m1, "gender": "Female", "date_of_birth": date(1990, 1, 1)},
        {"session_id": s1, "member_id": m2, "gender": "male", "date_of_birth": date(2015, 1, 1)},
        {"session_id": s1, "member_id": m3, "gender": None, "date_of_birth": None},
        {"session_id": s2, "member_id": m1, "gender": "female", "date_of_birth": date(1990, 1, 1)},
    ]
    out = agg.attendance_report(records, sessions, date(2024, 5, 1), date(2024, 5, 31), today=date(2024, 6, 1))

    summary = out["summary"]
    assert summary["total_attendance"] == 4
    assert summary["unique_members"] == 3
    assert summary["sessions_count"] == 2
    assert summary["days_span"] == 31
    assert summary["average_per_day"] == round(4 / 31, 2)
    assert summary["peak_day"] == {"date": date(2024, 5, 5), "count": 3}
    assert summary["top_session"]["session_id"] == s1

    assert out["trend"] == [{"date": date(2024, 5, 5), "count": 3}, {"date": date(2024, 5, 12), "count": 1}]
    assert out["genders"] == {"female": 2, "male": 1, "unknown": 1}
    assert out["age_groups"]["Adults"] == 2
    assert out["age_groups"]["Children"] == 1
    assert out["age_groups"]["Unknown"] == 1
    assert out["age_groups"]["Seniors"] == 0


def test_attendance_report_empty():
    out = agg.attendance_report([], {}, date(2024, 5, 1), date(2024, 5, 1))
    assert out["summary"]["total_attendance"] == 0
    assert out["summary"]["peak_day"] is None
    assert out["summary"]["average_per_day"] == 0.0
    assert out["trend"] == []
