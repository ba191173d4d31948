# fellowship/services/predicates.py
"""
Predicate descriptors.

Filters are expressed as a flat list of small, immutable descriptors that name
a column by its attribute name. They carry no SQLAlchemy state, so the code
that builds them can be tested without a database; ``to_clause`` folds them
into SQLAlchemy expressions for a given mapped class.
"""
from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

from sqlalchemy import and_, or_, true

COMPARISON_OPERATORS = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
    "=": operator.eq,
    "!=": operator.ne,
}


@dataclass(frozen=True)
class In:
    field: str
    values: Tuple[Any, ...]


@dataclass(frozen=True)
class Range:
    """Inclusive bounds; either side may be None (open)."""
    field: str
    min: Optional[Any] = None
    max: Optional[Any] = None


@dataclass(frozen=True)
class Compare:
    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in COMPARISON_OPERATORS:
            raise ValueError(f"Unsupported comparison operator: {self.op!r}")


@dataclass(frozen=True)
class Eq:
    field: str
    value: Any


@dataclass(frozen=True)
class IsNull:
    field: str


@dataclass(frozen=True)
class AnyOf:
    predicates: Tuple["Predicate", ...]


@dataclass(frozen=True)
class Search:
    """Case-insensitive substring match across several text columns."""
    fields: Tuple[str, ...]
    term: str


Predicate = Union[In, Range, Compare, Eq, IsNull, AnyOf, Search]


def _column(model, field: str):
    col = getattr(model, field, None)
    if col is None:
        raise ValueError(f"{model.__name__} has no column {field!r}")
    return col


def to_clause(model, pred: Predicate):
    """Translate a single descriptor into a SQLAlchemy boolean clause."""
    if isinstance(pred, In):
        return _column(model, pred.field).in_(list(pred.values))
    if isinstance(pred, Range):
        col = _column(model, pred.field)
        conds = []
        if pred.min is not None:
            conds.append(col >= pred.min)
        if pred.max is not None:
            conds.append(col <= pred.max)
        return and_(*conds) if conds else true()
    if isinstance(pred, Compare):
        return COMPARISON_OPERATORS[pred.op](_column(model, pred.field), pred.value)
    if isinstance(pred, Eq):
        return _column(model, pred.field) == pred.value
    if isinstance(pred, IsNull):
        return _column(model, pred.field).is_(None)
    if isinstance(pred, AnyOf):
        return or_(*(to_clause(model, p) for p in pred.predicates))
    if isinstance(pred, Search):
        like = f"%{pred.term}%"
        return or_(*(_column(model, f).ilike(like) for f in pred.fields))
    raise TypeError(f"Unknown predicate: {pred!r}")


def to_clauses(model, preds: Iterable[Predicate]) -> List:
    return [to_clause(model, p) for p in preds]


def fields_of(preds: Sequence[Predicate]) -> List[str]:
    """Column names touched by the predicates, in order; used for debug logging."""
    out: List[str] = []
    for p in preds:
        if isinstance(p, AnyOf):
            out.extend(fields_of(p.predicates))
        elif isinstance(p, Search):
            out.append("search")
        else:
            out.append(p.field)
    return out
