# fellowship/services/records.py
"""Helpers shared by the finance services: org/branch scoping, owned lookups, commits."""
from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from fellowship.services.branch_scope import BranchScope, scope_predicate
from fellowship.services.context import RequestContext
from fellowship.services.errors import ConflictError, DuplicateReceiptError, NotFoundError, is_duplicate_receipt
from fellowship.services.predicates import Eq, Predicate, to_clauses

logger = logging.getLogger(__name__)


def base_predicates(ctx: RequestContext, scope: BranchScope, soft_delete: bool = True) -> List[Predicate]:
    preds: List[Predicate] = [Eq("organization_id", ctx.organization_id)]
    if soft_delete:
        preds.append(Eq("is_deleted", False))
    branch = scope_predicate(scope)
    if branch is not None:
        preds.append(branch)
    return preds


def check_branch_allowed(ctx: RequestContext, branch_id: Optional[uuid.UUID]) -> None:
    """Non-privileged users may only write rows for their own branches (or no branch)."""
    if branch_id is None or ctx.can_manage_all_data:
        return
    if branch_id not in ctx.assigned_branch_ids:
        raise PermissionError("Branch is outside your assigned branches")


def check_in_scope(ctx: RequestContext, branch_id: Optional[uuid.UUID], label: str) -> None:
    """By-id lookups hide rows on branches outside the caller's scope."""
    scope = ctx.scope()
    if branch_id is not None and scope.is_scoped and branch_id not in scope.branch_ids:
        raise NotFoundError(f"{label} not found")


def get_owned(db: Session, model, ctx: RequestContext, record_id: uuid.UUID, label: str):
    """
    Fetch a live row created by the caller inside the caller's organization.
    Updates and deletes go through this lookup.
    """
    stmt = select(model).where(
        model.id == record_id,
        model.organization_id == ctx.organization_id,
        model.created_by == ctx.user_id,
        model.is_deleted.is_(False),
    )
    obj = db.execute(stmt).scalars().first()
    if obj is None:
        raise NotFoundError(f"{label} not found")
    return obj


def get_visible(db: Session, model, ctx: RequestContext, record_id: uuid.UUID, label: str):
    stmt = select(model).where(
        model.id == record_id,
        model.organization_id == ctx.organization_id,
        model.is_deleted.is_(False),
    )
    obj = db.execute(stmt).scalars().first()
    if obj is None:
        raise NotFoundError(f"{label} not found")
    check_in_scope(ctx, getattr(obj, "branch_id", None), label)
    return obj


def apply_changes(obj, changes: Dict[str, Any]) -> List[str]:
    for field, value in changes.items():
        setattr(obj, field, value)
    return sorted(changes)


@contextmanager
def translate_db_errors(db: Session, label: str) -> Iterator[None]:
    """Roll back on database failures, turning unique-constraint failures into service errors."""
    try:
        yield
    except IntegrityError as e:
        db.rollback()
        if is_duplicate_receipt(e):
            logger.info("%s rejected: duplicate receipt number", label)
            raise DuplicateReceiptError()
        logger.info("%s rejected by integrity check: %s", label, e.orig)
        raise ConflictError(f"{label} conflicts with an existing record")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("%s write failed", label)
        raise


def flush(db: Session, label: str) -> None:
    with translate_db_errors(db, label):
        db.flush()


def commit(db: Session, label: str) -> None:
    with translate_db_errors(db, label):
        db.commit()


def enum_values(data: Dict[str, Any]) -> Dict[str, Any]:
    """Replace str-enum members with their plain values before they reach String columns."""
    return {k: getattr(v, "value", v) for k, v in data.items()}


def fetch_all(db: Session, model, predicates: List[Predicate], order_by=(), options=()) -> List:
    """Unpaginated variant of ``execute_page`` for reports."""
    stmt = select(model).where(and_(*to_clauses(model, predicates))).order_by(*order_by)
    if options:
        stmt = stmt.options(*options)
    return list(db.execute(stmt).scalars().all())
