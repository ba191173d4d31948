# fellowship/api/common.py
"""Shared query parsing and service-error translation for the routers."""
from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Literal, Optional

from fastapi import HTTPException, Query, status
from pydantic import ValidationError

from fellowship.schemas.filters import AmountComparison, FinanceFilter
from fellowship.services.errors import ConflictError, DuplicateReceiptError, NotFoundError
from fellowship.services.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PageRequest

logger = logging.getLogger(__name__)


@contextmanager
def service_errors():
    """Map service exceptions onto HTTP responses."""
    try:
        yield
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (DuplicateReceiptError, ConflictError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def parse_filters(raw: Optional[str]) -> FinanceFilter:
    if not raw:
        return FinanceFilter()
    try:
        return FinanceFilter.model_validate_json(raw)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=json.loads(e.json(include_url=False)),
        )


class ListParams:
    """Query parameters common to every paginated finance list."""

    def __init__(
        self,
        filters: Optional[str] = Query(None, description="JSON-encoded filter object"),
        search: Optional[str] = Query(None, description="Free-text search"),
        amount_op: Literal[">", ">=", "<", "<=", "=", "!="] = Query(">="),
        amount_value: Optional[float] = Query(None, description="Overrides search when set"),
        page: int = Query(1, ge=1),
        page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
        sort_key: Optional[str] = None,
        sort_direction: Literal["asc", "desc"] = "asc",
    ):
        self.filters = parse_filters(filters)
        self.search = search
        self.amount = AmountComparison(operator=amount_op, value=amount_value) if amount_value is not None else None
        self.page = PageRequest(page=page, page_size=page_size)
        self.sort_key = sort_key
        self.sort_direction = sort_direction
