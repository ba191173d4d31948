from __future__ import annotations

from typing import Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """Paginated list envelope returned by every finance/attendance list."""
    data: List[T]
    totalCount: int
    totalPages: int
    currentPage: int
    pageSize: int


def reject_nulls(model: BaseModel, *fields: str) -> BaseModel:
    """Partial updates may leave these fields out, but may not clear them."""
    cleared = [f for f in fields if f in model.model_fields_set and getattr(model, f) is None]
    if cleared:
        raise ValueError(f"{', '.join(cleared)} cannot be null")
    return model
