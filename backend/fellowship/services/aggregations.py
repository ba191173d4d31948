# fellowship/services/aggregations.py
"""
Pure report aggregations over reshaped rows (dicts). No database access here;
``fellowship.services.reports`` fetches the rows and calls these.
"""
from __future__ import annotations

import re
import uuid
from collections import Counter, OrderedDict, defaultdict
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

_WORD_START = re.compile(r"\b\w")


def _num(x) -> float:
    return float(x or 0)


def sum_by(
    items: Iterable[Mapping[str, Any]],
    key: Callable[[Mapping[str, Any]], Optional[str]],
    amount: Callable[[Mapping[str, Any]], Any] = lambda r: r.get("amount"),
) -> "OrderedDict[str, float]":
    """Sum amounts per key in first-seen order; rows with an empty key are skipped."""
    out: "OrderedDict[str, float]" = OrderedDict()
    for it in items:
        k = key(it)
        if not k:
            continue
        out[k] = out.get(k, 0.0) + _num(amount(it))
    return out


def total_amount(items: Iterable[Mapping[str, Any]], field: str = "amount") -> float:
    return sum(_num(r.get(field)) for r in items)


def format_category_label(key: Optional[str], label_map: Optional[Mapping[str, str]] = None) -> str:
    if not key:
        return ""
    if label_map and label_map.get(key):
        return label_map[key]
    return _WORD_START.sub(lambda m: m.group(0).upper(), key.replace("_", " "))


def income_sections(incomes: List[Mapping[str, Any]]) -> Dict[str, Any]:
    """General income vs everything else (contributions, donations, pledge payments)."""
    general = [r for r in incomes if r.get("income_type") == "general_income"]
    other = [r for r in incomes if r.get("income_type") != "general_income"]
    by_cat = lambda r: r.get("category") or "Unknown"  # noqa: E731
    return {
        "general_items": [{"label": k, "amount": v} for k, v in sum_by(general, by_cat).items()],
        "other_items": [{"label": k, "amount": v} for k, v in sum_by(other, by_cat).items()],
        "general_total": total_amount(general),
        "other_total": total_amount(other),
    }


def expense_sections(
    expenses: List[Mapping[str, Any]],
    grouping: str = "category",
    label_map: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    if grouping not in ("category", "purpose"):
        raise ValueError("grouping must be 'category' or 'purpose'")

    def key(r):
        if grouping == "purpose":
            return r.get("purpose") or "Unspecified"
        return format_category_label(r.get("category") or "Unspecified", label_map)

    items = [{"label": k, "amount": v} for k, v in sum_by(expenses, key).items()]
    items.sort(key=lambda i: i["label"].lower())
    return {"items": items, "total": total_amount(expenses)}


def _remaining(r: Mapping[str, Any]) -> float:
    if r.get("amount_remaining") is not None:
        return _num(r["amount_remaining"])
    return max(0.0, _num(r.get("pledge_amount")) - _num(r.get("amount_paid")))


def pledges_summary(pledges: List[Mapping[str, Any]]) -> Dict[str, Any]:
    by_type = lambda r: r.get("pledge_type") or "Pledge"  # noqa: E731
    pledged = sum_by(pledges, by_type, lambda r: r.get("pledge_amount"))
    paid = sum_by(pledges, by_type, lambda r: r.get("amount_paid"))
    remaining = sum_by(pledges, by_type, _remaining)

    labels = list(OrderedDict.fromkeys([*pledged, *paid, *remaining]))
    return {
        "total_pledged": total_amount(pledges, "pledge_amount"),
        "total_paid": total_amount(pledges, "amount_paid"),
        "total_remaining": sum(_remaining(r) for r in pledges),
        "type_items": [
            {
                "label": label,
                "pledged": pledged.get(label, 0.0),
                "fulfilled": paid.get(label, 0.0),
                "remaining": remaining.get(label, 0.0),
            }
            for label in labels
        ],
    }


def finance_summary(
    incomes: List[Mapping[str, Any]],
    expenses: List[Mapping[str, Any]],
    pledges: List[Mapping[str, Any]],
    expense_grouping: str = "category",
) -> Dict[str, Any]:
    inc = income_sections(incomes)
    exp = expense_sections(expenses, expense_grouping)
    total_income = inc["general_total"] + inc["other_total"]
    return {
        "income": inc,
        "expenses": exp,
        "pledges": pledges_summary(pledges),
        "total_income": total_income,
        "total_expenses": exp["total"],
        "net": total_income - exp["total"],
        "income_count": len(incomes),
        "expense_count": len(expenses),
        "average_income": round(total_income / len(incomes), 2) if incomes else 0.0,
        "average_expense": round(exp["total"] / len(expenses), 2) if expenses else 0.0,
    }


# --- attendance ----------------------------------------------------------------
AGE_BUCKETS = (("Children", 12), ("Youth", 25), ("Adults", 59))
SENIORS = "Seniors"
UNKNOWN = "Unknown"

DEMOGRAPHIC_RANGES = {
    "children": (0, 12),
    "young_adults": (13, 24),
    "adults": (25, None),
}


def age_on(dob: Optional[date], on: date) -> Optional[int]:
    if dob is None:
        return None
    years = on.year - dob.year
    if (on.month, on.day) < (dob.month, dob.day):
        years -= 1
    return years


def age_bucket(age: Optional[int]) -> str:
    if age is None:
        return UNKNOWN
    for label, upper in AGE_BUCKETS:
        if age <= upper:
            return label
    return SENIORS


def matches_demographics(age: Optional[int], demographics: Iterable[str]) -> bool:
    """True when no demographic filter is set or the age falls in any selected range."""
    demographics = list(demographics)
    if not demographics:
        return True
    if age is None:
        return False
    for d in demographics:
        lo, hi = DEMOGRAPHIC_RANGES[d]
        if age >= lo and (hi is None or age <= hi):
            return True
    return False


def _day(value) -> date:
    return value.date() if isinstance(value, datetime) else value


def attendance_report(
    records: List[Mapping[str, Any]],
    sessions: Mapping[uuid.UUID, Mapping[str, Any]],
    start: date,
    end: date,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    ``records`` are attendance rows with ``session_id``, ``member_id``,
    ``marked_at``, ``gender`` and ``date_of_birth``; ``sessions`` maps id to a
    dict with ``name`` and ``start_time``. Records should already be filtered.
    """
    today = today or date.today()

    per_day: Dict[date, int] = defaultdict(int)
    per_session: Counter = Counter()
    age_groups: Counter = Counter({label: 0 for label, _ in AGE_BUCKETS})
    age_groups[SENIORS] = 0
    genders: Counter = Counter()
    members = set()

    for r in records:
        s = sessions.get(r["session_id"], {})
        day = _day(s.get("start_time") or r.get("marked_at"))
        if day is not None:
            per_day[day] += 1
        per_session[r["session_id"]] += 1
        members.add(r["member_id"])
        age_groups[age_bucket(age_on(r.get("date_of_birth"), today))] += 1
        genders[(r.get("gender") or "").strip().lower() or "unknown"] += 1

    trend = [{"date": d, "count": per_day[d]} for d in sorted(per_day)]
    breakdown = [
        {
            "session_id": sid,
            "name": sessions.get(sid, {}).get("name") or "Session",
            "start_time": sessions.get(sid, {}).get("start_time"),
            "count": n,
        }
        for sid, n in per_session.items()
    ]
    breakdown.sort(key=lambda b: b["count"], reverse=True)

    days_span = (end - start).days + 1
    total = len(records)
    peak = max(trend, key=lambda t: t["count"]) if trend else None

    return {
        "summary": {
            "total_attendance": total,
            "unique_members": len(members),
            "sessions_count": len(sessions),
            "days_span": days_span,
            "average_per_day": round(total / days_span, 2) if days_span > 0 else 0.0,
            "peak_day": peak,
            "top_session": breakdown[0] if breakdown else None,
        },
        "trend": trend,
        "sessions": breakdown,
        "age_groups": dict(age_groups),
        "genders": dict(genders),
    }
