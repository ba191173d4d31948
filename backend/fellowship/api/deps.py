# fellowship/api/deps.py
"""
Request dependencies: caller resolution, organization membership, role guards.

The caller is identified by ``X-API-Key`` and acts on the organization named by
``X-Organization-Id``. With AUTH_ENFORCE off (local dev and tests) the key is
not required: ``X-User-Id`` / ``X-User-Role`` may name the caller, and the
role defaults to owner.
"""
from __future__ import annotations

import hashlib
import logging
import os
import uuid
from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from fellowship.db import get_db
from fellowship.models.organization import Profile, UserOrganization, UserRole
from fellowship.services.branch_scope import load_assigned_branch_ids
from fellowship.services.context import RequestContext

logger = logging.getLogger(__name__)

DEV_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000000")

ROLE_RANK = {
    UserRole.read.value: 0,
    UserRole.write.value: 1,
    UserRole.branch_admin.value: 2,
    UserRole.admin.value: 3,
    UserRole.owner.value: 4,
}


def auth_enforced() -> bool:
    """Return True if API keys and memberships are checked (production), False in dev."""
    return os.getenv("AUTH_ENFORCE", "false").lower() in {"1", "true", "yes", "on"}


def hash_api_key(api_key_plain: str) -> str:
    """Hash the plaintext API key. (sha256 hex; store only the hash)."""
    pepper = os.getenv("API_KEY_PEPPER", "")
    h = hashlib.sha256()
    h.update((api_key_plain + pepper).encode("utf-8"))
    return h.hexdigest()


def _parse_uuid(value: Optional[str], header: str) -> Optional[uuid.UUID]:
    if value is None:
        return None
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {header}")


def get_current_user_id(
    db: Session = Depends(get_db),
    api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
    dev_user: Optional[str] = Header(default=None, alias="X-User-Id"),
) -> uuid.UUID:
    if not auth_enforced():
        return _parse_uuid(dev_user, "X-User-Id") or DEV_USER_ID

    if not api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-API-Key")

    user = (
        db.execute(
            select(Profile).where(and_(Profile.api_key_hash == hash_api_key(api_key), Profile.is_active.is_(True)))
        )
        .scalars()
        .first()
    )
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")
    return user.id


def get_context(
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
    org_header: Optional[str] = Header(default=None, alias="X-Organization-Id"),
    dev_role: Optional[str] = Header(default=None, alias="X-User-Role"),
) -> RequestContext:
    organization_id = _parse_uuid(org_header, "X-Organization-Id")
    if organization_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing X-Organization-Id")

    membership = (
        db.execute(
            select(UserOrganization).where(
                UserOrganization.user_id == user_id,
                UserOrganization.organization_id == organization_id,
                UserOrganization.is_active.is_(True),
            )
        )
        .scalars()
        .first()
    )

    if membership is not None:
        role = membership.role.value
    elif not auth_enforced():
        role = dev_role or UserRole.owner.value
        if role not in ROLE_RANK:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid X-User-Role")
    else:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a member of this organization")

    branches = load_assigned_branch_ids(db, user_id, organization_id)
    logger.debug("context user=%s org=%s role=%s branches=%d", user_id, organization_id, role, len(branches))
    return RequestContext(
        organization_id=organization_id,
        user_id=user_id,
        role=role,
        assigned_branch_ids=tuple(branches),
    )


def require_role(minimum: str) -> Callable[..., RequestContext]:
    """Dependency factory: the caller's role must rank at least ``minimum``."""
    def _inner(ctx: RequestContext = Depends(get_context)) -> RequestContext:
        if ROLE_RANK.get(ctx.role, -1) < ROLE_RANK[minimum]:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role {minimum} or higher",
            )
        return ctx
    return _inner


writer = require_role(UserRole.write.value)
admin = require_role(UserRole.admin.value)
