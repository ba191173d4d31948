# fellowship/services/pagination.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from fellowship.services.predicates import Predicate, fields_of, to_clauses

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 200


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def total_pages(total_count: int, page_size: int) -> int:
    return max(1, math.ceil(total_count / page_size))


def page_result(data: List[Any], total_count: int, req: PageRequest) -> Dict[str, Any]:
    return {
        "data": data,
        "totalCount": total_count,
        "totalPages": total_pages(total_count, req.page_size),
        "currentPage": req.page,
        "pageSize": req.page_size,
    }


def empty_page(req: PageRequest) -> Dict[str, Any]:
    return page_result([], 0, req)


def execute_page(
    db: Session,
    model,
    predicates: Sequence[Predicate],
    req: PageRequest,
    order_by: Sequence,
    options: Sequence = (),
    reshape: Optional[Callable[[Any], Any]] = None,
) -> Dict[str, Any]:
    """
    Run one count query and one ranged query over ``model`` filtered by
    ``predicates``. Database errors propagate; no partial page is returned.
    """
    conds = to_clauses(model, predicates)
    logger.debug("page %s of %s filtered on %s", req.page, model.__tablename__, fields_of(predicates))

    count_stmt = select(func.count()).select_from(model).where(and_(*conds))
    total = db.execute(count_stmt).scalar_one()

    stmt = (
        select(model)
        .where(and_(*conds))
        .order_by(*order_by)
        .offset(req.offset)
        .limit(req.page_size)
    )
    if options:
        stmt = stmt.options(*options)
    rows = db.execute(stmt).scalars().all()

    data = [reshape(r) for r in rows] if reshape else list(rows)
    return page_result(data, total, req)


def _sort_value(row: Dict[str, Any], key: str):
    if key == "branch":
        value = row.get("branch_name")
    else:
        value = row.get(key)
    if isinstance(value, str):
        return value.lower()
    return value


def sort_rows(rows: List[Dict[str, Any]], key: Optional[str], direction: str = "asc") -> List[Dict[str, Any]]:
    """
    Re-order an already fetched page. Missing values go first when ascending
    and last when descending.
    """
    if not key:
        return rows
    present = [r for r in rows if _sort_value(r, key) is not None]
    missing = [r for r in rows if _sort_value(r, key) is None]
    reverse = direction == "desc"
    present.sort(key=lambda r: _sort_value(r, key), reverse=reverse)
    return present + missing if reverse else missing + present
