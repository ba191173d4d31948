# fellowship/services/date_presets.py
"""Resolve named date presets ("this_month", "last_30_days", ...) to inclusive date bounds."""
from __future__ import annotations

import re
from datetime import date, timedelta
from typing import Optional, Tuple

from dateutil.relativedelta import relativedelta

DateBounds = Tuple[date, date]

_LAST_N_DAYS = re.compile(r"^last_(\d+)_days$")
_LAST_N_MONTHS = re.compile(r"^last_(\d+)_months$")

SUPPORTED_DAY_WINDOWS = (3, 7, 15, 30, 60, 90)

PRESET_LABELS = {
    "today": "Today",
    "yesterday": "Yesterday",
    "this_week": "This Week",
    "last_week": "Last Week",
    "this_month": "This Month",
    "last_month": "Last Month",
    "last_2_months": "Last 2 Months",
    "last_3_months": "Last 3 Months",
    "this_quarter": "This Quarter",
    "last_quarter": "Last Quarter",
    "this_year": "This Year",
    "last_year": "Last Year",
}
PRESET_LABELS.update({f"last_{n}_days": f"Last {n} Days" for n in SUPPORTED_DAY_WINDOWS})


def _month_start(d: date) -> date:
    return d.replace(day=1)


def _month_end(d: date) -> date:
    return d + relativedelta(day=31)


def _shift_months(d: date, months: int) -> date:
    """First day of the month ``months`` away from ``d``'s month."""
    return d + relativedelta(months=months, day=1)


def _week_start(d: date) -> date:
    # Weeks start on Sunday
    return d - timedelta(days=(d.weekday() + 1) % 7)


def _quarter_start(d: date) -> date:
    return date(d.year, 3 * ((d.month - 1) // 3) + 1, 1)


def resolve_preset(preset: str, today: Optional[date] = None) -> Optional[DateBounds]:
    """
    Return (start, end) inclusive for a known preset, or None for unknown
    presets such as "custom" or "all_time".
    """
    today = today or date.today()

    if preset == "today":
        return today, today
    if preset == "yesterday":
        y = today - timedelta(days=1)
        return y, y
    if preset == "this_week":
        start = _week_start(today)
        return start, start + timedelta(days=6)
    if preset == "last_week":
        start = _week_start(today) - timedelta(days=7)
        return start, start + timedelta(days=6)
    if preset == "this_month":
        return _month_start(today), _month_end(today)
    if preset == "last_month":
        last = _shift_months(today, -1)
        return last, _month_end(last)
    if preset == "this_quarter":
        start = _quarter_start(today)
        return start, _month_end(_shift_months(start, 2))
    if preset == "last_quarter":
        start = _shift_months(_quarter_start(today), -3)
        return start, _month_end(_shift_months(start, 2))
    if preset == "this_year":
        return date(today.year, 1, 1), date(today.year, 12, 31)
    if preset == "last_year":
        return date(today.year - 1, 1, 1), date(today.year - 1, 12, 31)

    m = _LAST_N_DAYS.match(preset)
    if m:
        n = int(m.group(1))
        if n < 1:
            return None
        return today - timedelta(days=n - 1), today

    # last_N_months covers the N whole months before the current one
    m = _LAST_N_MONTHS.match(preset)
    if m:
        n = int(m.group(1))
        if n < 1:
            return None
        return _shift_months(today, -n), _month_end(_shift_months(today, -1))

    return None


def preset_label(preset: Optional[str]) -> str:
    return PRESET_LABELS.get(preset or "", "Custom Range")
