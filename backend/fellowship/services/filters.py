# fellowship/services/filters.py
"""
Filter normalizer: turns a ``FinanceFilter`` into predicate descriptors.

Each filter key maps to at most one predicate; absent or empty keys produce
nothing. An amount comparison with a defined value replaces free-text search
for the same request.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

from fellowship.schemas.filters import AmountComparison, AmountRange, DateFilter, FinanceFilter
from fellowship.services.date_presets import resolve_preset
from fellowship.services.predicates import AnyOf, Compare, In, IsNull, Predicate, Range, Search

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterMap:
    """Column names an entity uses for each filter key."""
    lists: Dict[str, str]
    amount_field: str
    date_start_field: str
    date_end_field: str
    search_fields: Tuple[str, ...]
    ranges: Dict[str, str] = field(default_factory=dict)
    branch_field: Optional[str] = "branch_id"


INCOME_FILTERS = FilterMap(
    lists={
        "category_filter": "category",
        "income_type_filter": "income_type",
        "payment_method_filter": "payment_method",
        "member_filter": "member_id",
        "group_filter": "group_id",
        "tag_item_filter": "tag_item_id",
        "attendance_occasion_filter": "attendance_occasion_id",
        "attendance_session_filter": "attendance_session_id",
    },
    amount_field="amount",
    date_start_field="date",
    date_end_field="date",
    search_fields=(
        "description",
        "occasion_name",
        "source",
        "receipt_number",
        "payment_method",
        "income_type",
        "category",
    ),
)

EXPENSE_FILTERS = FilterMap(
    lists={
        "category_filter": "category",
        "purpose_filter": "description",
        "approved_by_filter": "approved_by",
        "payment_method_filter": "payment_method",
    },
    amount_field="amount",
    date_start_field="date",
    date_end_field="date",
    search_fields=("description", "vendor", "receipt_number"),
)

PLEDGE_FILTERS = FilterMap(
    lists={
        "status_filter": "status",
        "pledge_type_filter": "pledge_type",
        "member_filter": "member_id",
        "group_filter": "group_id",
        "tag_item_filter": "tag_item_id",
    },
    amount_field="pledge_amount",
    # pledges overlap the window rather than fall on a single date
    date_start_field="start_date",
    date_end_field="end_date",
    search_fields=("description", "campaign_name", "pledge_type"),
    ranges={
        "amount_paid_range": "amount_paid",
        "amount_remaining_range": "amount_remaining",
    },
)

PAYMENT_FILTERS = FilterMap(
    lists={"payment_method_filter": "payment_method"},
    amount_field="amount",
    date_start_field="payment_date",
    date_end_field="payment_date",
    search_fields=("notes",),
)


def parse_day(value: str) -> date:
    """Accept 'YYYY-MM-DD' or a longer ISO timestamp; only the date part is used."""
    try:
        return date.fromisoformat(value[:10])
    except (TypeError, ValueError):
        raise ValueError(f"Invalid date: {value!r}")


def resolve_date_bounds(
    df: Optional[DateFilter], today: Optional[date] = None
) -> Tuple[Optional[date], Optional[date]]:
    if df is None:
        return None, None
    if df.start_date or df.end_date:
        start = parse_day(df.start_date) if df.start_date else None
        end = parse_day(df.end_date) if df.end_date else None
        return start, end
    if df.preset:
        bounds = resolve_preset(df.preset, today)
        if bounds:
            return bounds
    return None, None


def _range(field_name: str, r: Optional[AmountRange]) -> Optional[Range]:
    if r is None or (r.min is None and r.max is None):
        return None
    return Range(field_name, min=r.min, max=r.max)


def normalize_filters(
    filters: Optional[FinanceFilter],
    fmap: FilterMap,
    search: Optional[str] = None,
    amount: Optional[AmountComparison] = None,
    today: Optional[date] = None,
) -> List[Predicate]:
    preds: List[Predicate] = []
    filters = filters or FinanceFilter()

    for key, column in fmap.lists.items():
        values = getattr(filters, key, None)
        if values:
            preds.append(In(column, tuple(values)))

    amount_range = _range(fmap.amount_field, filters.amount_range)
    if amount_range:
        preds.append(amount_range)
    for key, column in fmap.ranges.items():
        extra = _range(column, getattr(filters, key, None))
        if extra:
            preds.append(extra)

    start, end = resolve_date_bounds(filters.date_filter, today)
    if fmap.date_start_field == fmap.date_end_field:
        if start or end:
            preds.append(Range(fmap.date_start_field, min=start, max=end))
    else:
        if start:
            preds.append(Range(fmap.date_start_field, min=start))
        if end:
            preds.append(Range(fmap.date_end_field, max=end))

    if fmap.branch_field and filters.branch_id_filter:
        preds.append(
            AnyOf((In(fmap.branch_field, tuple(filters.branch_id_filter)), IsNull(fmap.branch_field)))
        )

    if amount is not None and amount.value is not None:
        preds.append(Compare(fmap.amount_field, amount.operator, amount.value))
    elif search and search.strip():
        preds.append(Search(fmap.search_fields, search.strip()))

    return preds
