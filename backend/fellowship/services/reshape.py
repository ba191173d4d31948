# fellowship/services/reshape.py
"""
Row reshaping: flatten an ORM row into a dict and derive the display fields
the finance views need (contributor name/avatar/tag color, occasion name,
pledge labels). The derivation helpers only read attributes, so they work on
any object with the right names.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional


def _to_float(x) -> Optional[float]:
    if x is None:
        return None
    if isinstance(x, Decimal):
        return float(x)
    return x


def row_dict(obj) -> Dict[str, Any]:
    """Column values of a mapped instance; NUMERIC columns come back as float."""
    out: Dict[str, Any] = {}
    for col in obj.__table__.columns:
        value = getattr(obj, col.key)
        out[col.key] = _to_float(value) if isinstance(value, Decimal) else value
    branch = getattr(obj, "branch", None)
    if "branch_id" in out:
        out["branch_name"] = branch.name if branch is not None else None
    return out


def member_full_name(member) -> str:
    if member is None:
        return ""
    parts = [getattr(member, "first_name", None), getattr(member, "middle_name", None), getattr(member, "last_name", None)]
    return " ".join(p for p in parts if p).strip()


def _name(obj) -> str:
    return (getattr(obj, "name", None) or "") if obj is not None else ""


# --- income ------------------------------------------------------------------
def income_contributor(
    source_type: Optional[str],
    *,
    member=None,
    member_name: Optional[str] = None,
    group=None,
    tag_item=None,
    source: Optional[str] = None,
) -> Dict[str, Optional[str]]:
    name = avatar = color = None

    if source_type == "member":
        name = member_full_name(member) or member_name or None
        avatar = getattr(member, "profile_image_url", None) if member is not None else None
    elif source_type == "group":
        name = _name(group) or None
    elif source_type == "tag_item":
        name = _name(tag_item) or None
        color = getattr(tag_item, "color", None) if tag_item is not None else None
    elif source_type == "church":
        name = "Church"
    elif source_type == "other":
        name = source or "Other"
    else:
        name = member_name or source or None

    return {
        "contributor_name": name,
        "contributor_avatar_url": avatar or None,
        "contributor_tag_color": color or None,
    }


def income_occasion_name(
    occasion_name: Optional[str], occasion=None, session=None
) -> Optional[str]:
    if occasion_name:
        return occasion_name
    if _name(occasion):
        return occasion.name
    if session is not None:
        session_occasion = getattr(session, "occasion", None)
        if _name(session_occasion):
            return session_occasion.name
        if _name(session):
            return session.name
    return None


def reshape_income(rec) -> Dict[str, Any]:
    row = row_dict(rec)
    row.update(
        income_contributor(
            rec.source_type,
            member=rec.member,
            member_name=rec.member_name,
            group=rec.group,
            tag_item=rec.tag_item,
            source=rec.source,
        )
    )
    row["occasion_name"] = income_occasion_name(rec.occasion_name, rec.occasion, rec.session)
    return row


# --- pledges -----------------------------------------------------------------
def pledge_contributor(
    source_type: Optional[str], *, member=None, group=None, tag_item=None, source: Optional[str] = None
) -> Dict[str, str]:
    member_name = member_full_name(member)
    group_name = _name(group)
    tag_item_name = _name(tag_item)

    if source_type == "member":
        name = member_name or "Member"
    elif source_type == "group":
        name = group_name or "Group"
    elif source_type == "tag_item":
        name = tag_item_name or "Tag Item"
    elif source_type == "other":
        name = source or "Other"
    elif source_type == "church":
        name = "Church"
    else:
        name = member_name or source or group_name or tag_item_name or ""

    return {
        "member_name": member_name,
        "group_name": group_name,
        "tag_item_name": tag_item_name,
        "contributor_name": name,
    }


def reshape_pledge(pledge) -> Dict[str, Any]:
    row = row_dict(pledge)
    row.update(
        pledge_contributor(
            pledge.source_type,
            member=pledge.member,
            group=pledge.group,
            tag_item=pledge.tag_item,
            source=pledge.source,
        )
    )
    return row


def pledge_label(
    contributor_name: str,
    campaign_name: Optional[str],
    pledge_type: Optional[str],
    pledge_id=None,
) -> str:
    type_label = str(pledge_type).replace("_", " ", 1) if pledge_type else ""
    if campaign_name:
        return f"{contributor_name} – {campaign_name}" if contributor_name else campaign_name
    if type_label:
        return f"{contributor_name} – {type_label}" if contributor_name else type_label
    if contributor_name:
        return contributor_name
    short = str(pledge_id or "")[:8]
    return f"{short}…" if short else "Pledge"


def reshape_payment(payment) -> Dict[str, Any]:
    row = row_dict(payment)
    pledge = payment.pledge
    if pledge is None:
        row.update(pledge_contributor(None))
        row["pledge_label"] = pledge_label("", None, None, payment.pledge_id)
        return row

    row.update(
        pledge_contributor(
            pledge.source_type,
            member=pledge.member,
            group=pledge.group,
            tag_item=pledge.tag_item,
            source=pledge.source,
        )
    )
    row["pledge_label"] = pledge_label(
        row["contributor_name"], pledge.campaign_name, pledge.pledge_type, payment.pledge_id
    )
    return row


def reshape_expense(exp) -> Dict[str, Any]:
    return row_dict(exp)
