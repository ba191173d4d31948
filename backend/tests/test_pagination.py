# tests/test_pagination.py
from datetime import date

import pytest

from fellowship.models import Expense
from fellowship.services.pagination import (
    PageRequest,
    empty_page,
    execute_page,
    page_result,
    sort_rows,
    total_pages,
)
from fellowship.services.predicates import Eq


@pytest.mark.parametrize(
    "count, size, expected",
    [(0, 10, 1), (1, 10, 1), (10, 10, 1), (11, 10, 2), (200, 25, 8), (201, 25, 9)],
)
def test_total_pages(count, size, expected):
    assert total_pages(count, size) == expected


def test_page_request_bounds():
    with pytest.raises(ValueError):
        PageRequest(page=0)
    with pytest.raises(ValueError):
        PageRequest(page_size=0)
    with pytest.raises(ValueError):
        PageRequest(page_size=201)
    assert PageRequest(page=3, page_size=20).offset == 40


def test_envelope_shape():
    out = page_result(["a", "b"], 12, PageRequest(page=2, page_size=10))
    assert out == {"data": ["a", "b"], "totalCount": 12, "totalPages": 2, "currentPage": 2, "pageSize": 10}
    assert empty_page(PageRequest())["totalPages"] == 1


def test_execute_page_counts_and_slices(db, seed):
    for day in range(1, 26):
        db.add(
            Expense(
                organization_id=seed.org.id,
                amount=day,
                date=date(2024, 3, day),
                category="utilities",
                created_by=seed.owner.id,
            )
        )
    db.commit()

    out = execute_page(
        db,
        Expense,
        [Eq("organization_id", seed.org.id)],
        PageRequest(page=3, page_size=10),
        order_by=(Expense.date.asc(),),
    )
    assert out["totalCount"] == 25
    assert out["totalPages"] == 3
    assert [e.date.day for e in out["data"]] == [21, 22, 23, 24, 25]


def test_page_past_the_end_is_empty_but_counted(db, seed):
    out = execute_page(
        db,
        Expense,
        [Eq("organization_id", seed.org.id)],
        PageRequest(page=5, page_size=10),
        order_by=(Expense.date.asc(),),
    )
    assert out["data"] == []
    assert out["totalCount"] == 0
    assert out["currentPage"] == 5


def test_sort_rows_by_branch_uses_branch_name():
    rows = [{"id": 1, "branch_name": "south"}, {"id": 2, "branch_name": None}, {"id": 3, "branch_name": "North"}]
    assert [r["id"] for r in sort_rows(rows, "branch", "asc")] == [2, 3, 1]
    assert [r["id"] for r in sort_rows(rows, "branch", "desc")] == [1, 3, 2]


def test_sort_rows_without_key_keeps_order():
    rows = [{"amount": 3}, {"amount": 1}]
    assert sort_rows(rows, None) is rows


def test_sort_rows_numeric():
    rows = [{"amount": 30.0}, {"amount": 5.5}, {"amount": 12.0}]
    assert [r["amount"] for r in sort_rows(rows, "amount", "asc")] == [5.5, 12.0, 30.0]
