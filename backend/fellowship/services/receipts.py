# fellowship/services/receipts.py
from __future__ import annotations

import logging
import random
import re
import uuid
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from fellowship.models.income import Income

logger = logging.getLogger(__name__)

DEFAULT_PATTERN = "{ORGI4}-{YYMMDD}-{RAND4}"
MAX_UNIQUE_ATTEMPTS = 3

_ORGI_N = re.compile(r"\{ORGI(\d+)\}")
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")
_WORD_SPLIT = re.compile(r"[\s\-_.]+")


def normalize_receipt_number(value: Optional[str]) -> Optional[str]:
    """Trim; blank becomes None so the per-organization unique index ignores it."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def _sanitize_org(name: Optional[str]) -> str:
    return _NON_ALNUM.sub("", name or "ORG").upper()


def _org_initials(name: Optional[str]) -> str:
    if not name:
        return "ORG"
    parts = [p for p in _WORD_SPLIT.split(name) if p]
    initials = _NON_ALNUM.sub("", "".join(p[0] for p in parts)).upper()
    return initials or _sanitize_org(name)[:4]


def _rand_digits(n: int, rng: Callable[[int, int], int] = random.randint) -> str:
    return str(rng(0, 10 ** n - 1)).zfill(n)


def compile_pattern(
    pattern: str,
    org_name: Optional[str] = None,
    now: Optional[datetime] = None,
    seq: int = 0,
    rng: Callable[[int, int], int] = random.randint,
) -> str:
    """
    Expand receipt number tokens:
    {ORG} {ORG4} {ORGI} {ORGI4} {ORGIn} {YYYY} {YY} {MM} {DD} {YYMMDD} {HHmm}
    {SEQ} {RAND3} {RAND4} {RAND6}.
    """
    now = now or datetime.now()
    org = _sanitize_org(org_name)
    org_i = _org_initials(org_name)

    out = pattern
    out = out.replace("{ORG}", org)
    out = out.replace("{ORG4}", org[:4])
    out = out.replace("{ORGI}", org_i)
    out = out.replace("{ORGI4}", org_i[:4])
    out = _ORGI_N.sub(lambda m: org_i[: int(m.group(1))], out)
    out = out.replace("{YYYY}", now.strftime("%Y"))
    out = out.replace("{YYMMDD}", now.strftime("%y%m%d"))
    out = out.replace("{YY}", now.strftime("%y"))
    out = out.replace("{MM}", now.strftime("%m"))
    out = out.replace("{DD}", now.strftime("%d"))
    out = out.replace("{HHmm}", now.strftime("%H%M"))
    out = out.replace("{SEQ}", str(seq))
    for n in (3, 4, 6):
        token = "{RAND%d}" % n
        while token in out:
            out = out.replace(token, _rand_digits(n, rng), 1)
    return out


def _receipt_taken(db: Session, organization_id: uuid.UUID, receipt_number: str) -> bool:
    stmt = (
        select(Income.id)
        .where(Income.organization_id == organization_id, Income.receipt_number == receipt_number)
        .limit(1)
    )
    return db.execute(stmt).first() is not None


def ensure_unique_receipt_number(
    db: Session,
    organization_id: uuid.UUID,
    candidate: str,
    rng: Callable[[int, int], int] = random.randint,
) -> str:
    """
    Look up ``candidate`` in the income table; on collision try
    ``candidate-NNN``. Gives up after a fixed number of lookups and returns the
    last attempt, leaving the unique index as the final arbiter.
    """
    attempt = candidate
    for _ in range(MAX_UNIQUE_ATTEMPTS):
        if not _receipt_taken(db, organization_id, attempt):
            return attempt
        attempt = f"{candidate}-{_rand_digits(3, rng)}"
    logger.info("receipt number %s still colliding after %d attempts", candidate, MAX_UNIQUE_ATTEMPTS)
    return attempt


def generate_receipt_number(
    db: Session,
    organization_id: uuid.UUID,
    org_name: Optional[str],
    pattern: Optional[str] = None,
    seq: int = 0,
) -> str:
    base = compile_pattern(pattern or DEFAULT_PATTERN, org_name=org_name, seq=seq)
    return ensure_unique_receipt_number(db, organization_id, base)
