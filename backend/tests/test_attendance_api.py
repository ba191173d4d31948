# tests/test_attendance_api.py
from datetime import datetime, timedelta, timezone

import pytest


def _iso(dt):
    return dt.isoformat().replace("+00:00", "Z")


@pytest.fixture()
def occasion(client, seed, as_user):
    r = client.post(
        "/attendance/occasions",
        json={"name": "Sunday Service", "recurrence_rule": "FREQ=WEEKLY;BYDAY=SU", "default_duration_minutes": 90},
        headers=as_user(seed.owner),
    )
    assert r.status_code == 201, r.text
    return r.json()


def _session(client, headers, occasion_id, start, end, **overrides):
    payload = {"occasion_id": occasion_id, "start_time": _iso(start), "end_time": _iso(end)}
    payload.update(overrides)
    r = client.post("/attendance/sessions", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_occasion_crud(client, seed, as_user, occasion):
    h = as_user(seed.owner)
    assert occasion["recurrence_rule"] == "FREQ=WEEKLY;BYDAY=SU"

    r = client.patch(f"/attendance/occasions/{occasion['id']}", json={"name": "Sunday Worship"}, headers=h)
    assert r.status_code == 200
    assert r.json()["name"] == "Sunday Worship"

    assert client.delete(f"/attendance/occasions/{occasion['id']}", headers=h).status_code == 204
    assert client.get("/attendance/occasions", headers=h).json() == []
    inactive = client.get("/attendance/occasions", params={"include_inactive": True}, headers=h).json()
    assert [o["is_active"] for o in inactive] == [False]


def test_session_on_inactive_occasion_rejected(client, seed, as_user, occasion):
    h = as_user(seed.owner)
    client.delete(f"/attendance/occasions/{occasion['id']}", headers=h)
    r = client.post(
        "/attendance/sessions",
        json={
            "occasion_id": occasion["id"],
            "start_time": "2024-06-02T10:00:00Z",
            "end_time": "2024-06-02T12:00:00Z",
        },
        headers=h,
    )
    assert r.status_code == 400


def test_session_statuses(client, seed, as_user, occasion):
    h = as_user(seed.owner)
    now = datetime.now(timezone.utc).replace(microsecond=0)
    oid = occasion["id"]

    upcoming = _session(client, h, oid, now + timedelta(days=1), now + timedelta(days=1, hours=2))
    active = _session(client, h, oid, now - timedelta(hours=1), now + timedelta(hours=1))
    closed = _session(client, h, oid, now - timedelta(hours=1), now + timedelta(hours=1), is_open=False)
    past = _session(client, h, oid, now - timedelta(days=3), now - timedelta(days=3) + timedelta(hours=2))

    assert upcoming["status"] == "upcoming"
    assert active["status"] == "active"
    assert closed["status"] == "closed"
    assert past["status"] == "past"
    assert active["occasion_name"] == "Sunday Service"


def test_session_window_validated(client, seed, as_user, occasion):
    h = as_user(seed.owner)
    r = client.post(
        "/attendance/sessions",
        json={
            "occasion_id": occasion["id"],
            "start_time": "2024-06-02T12:00:00Z",
            "end_time": "2024-06-02T10:00:00Z",
        },
        headers=h,
    )
    assert r.status_code == 422

    s = _session(
        client,
        h,
        occasion["id"],
        datetime(2024, 6, 2, 10, tzinfo=timezone.utc),
        datetime(2024, 6, 2, 12, tzinfo=timezone.utc),
    )
    r = client.patch(f"/attendance/sessions/{s['id']}", json={"end_time": "2024-06-02T09:00:00Z"}, headers=h)
    assert r.status_code == 400

    r = client.patch(f"/attendance/sessions/{s['id']}", json={"end_time": "2024-06-02T13:00:00Z"}, headers=h)
    assert r.status_code == 200
    assert r.json()["end_time"].startswith("2024-06-02T13:00:00")


def test_session_list_paging_and_dates(client, seed, as_user, occasion):
    h = as_user(seed.owner)
    for day in (2, 9, 16):
        start = datetime(2024, 6, day, 10, tzinfo=timezone.utc)
        _session(client, h, occasion["id"], start, start + timedelta(hours=2), name=f"June {day}")

    page = client.get("/attendance/sessions", params={"page_size": 2}, headers=h).json()
    assert page["totalCount"] == 3
    assert page["totalPages"] == 2
    assert [s["name"] for s in page["data"]] == ["June 16", "June 9"]

    page = client.get(
        "/attendance/sessions", params={"start_date": "2024-06-05", "end_date": "2024-06-10"}, headers=h
    ).json()
    assert [s["name"] for s in page["data"]] == ["June 9"]


def test_manual_marking_on_past_session(client, seed, as_user, occasion):
    h = as_user(seed.owner)
    s = _session(
        client,
        h,
        occasion["id"],
        datetime(2024, 6, 2, 10, tzinfo=timezone.utc),
        datetime(2024, 6, 2, 12, tzinfo=timezone.utc),
    )
    r = client.post(f"/attendance/sessions/{s['id']}/records", json={"member_id": str(seed.ruth.id)}, headers=h)
    assert r.status_code == 200, r.text
    assert r.json()["member_name"] == "Ruth Moabite"
    assert r.json()["marked_by_mode"] == "manual"

    r = client.post(
        f"/attendance/sessions/{s['id']}/records",
        json={"member_id": str(seed.ruth.id), "notes": "late"},
        headers=h,
    )
    assert r.status_code == 200

    records = client.get(f"/attendance/sessions/{s['id']}/records", headers=h).json()
    assert len(records) == 1
    assert records[0]["notes"] == "late"
    assert client.get(f"/attendance/sessions/{s['id']}", headers=h).json()["attendance_count"] == 1


def test_self_marking_needs_open_active_session(client, seed, as_user, occasion):
    h = as_user(seed.owner)
    now = datetime.now(timezone.utc).replace(microsecond=0)
    closed = _session(client, h, occasion["id"], now - timedelta(hours=1), now + timedelta(hours=1), is_open=False)
    active = _session(client, h, occasion["id"], now - timedelta(hours=1), now + timedelta(hours=1))
    body = {"member_id": str(seed.ruth.id), "marked_by_mode": "email"}

    r = client.post(f"/attendance/sessions/{closed['id']}/records", json=body, headers=h)
    assert r.status_code == 400
    r = client.post(f"/attendance/sessions/{active['id']}/records", json=body, headers=h)
    assert r.status_code == 200
    assert r.json()["marked_by_mode"] == "email"


def test_allowed_groups_restrict_marking(client, seed, as_user, occasion):
    h = as_user(seed.owner)
    s = _session(
        client,
        h,
        occasion["id"],
        datetime(2024, 6, 2, 10, tzinfo=timezone.utc),
        datetime(2024, 6, 2, 12, tzinfo=timezone.utc),
        allowed_groups=[str(seed.youth.id)],
        allowed_tags=[str(seed.choir.id)],
    )
    url = f"/attendance/sessions/{s['id']}/records"
    assert client.post(url, json={"member_id": str(seed.boaz.id)}, headers=h).status_code == 200
    assert client.post(url, json={"member_id": str(seed.naomi.id)}, headers=h).status_code == 200
    r = client.post(url, json={"member_id": str(seed.ruth.id)}, headers=h)
    assert r.status_code == 400


def test_unmark(client, seed, as_user, occasion):
    h = as_user(seed.owner)
    s = _session(
        client,
        h,
        occasion["id"],
        datetime(2024, 6, 2, 10, tzinfo=timezone.utc),
        datetime(2024, 6, 2, 12, tzinfo=timezone.utc),
    )
    client.post(f"/attendance/sessions/{s['id']}/records", json={"member_id": str(seed.ruth.id)}, headers=h)

    assert client.delete(f"/attendance/sessions/{s['id']}/records/{seed.ruth.id}", headers=h).status_code == 204
    assert client.get(f"/attendance/sessions/{s['id']}/records", headers=h).json() == []
    assert client.delete(f"/attendance/sessions/{s['id']}/records/{seed.ruth.id}", headers=h).status_code == 404


def test_deleted_session_is_gone(client, seed, as_user, occasion):
    h = as_user(seed.owner)
    s = _session(
        client,
        h,
        occasion["id"],
        datetime(2024, 6, 2, 10, tzinfo=timezone.utc),
        datetime(2024, 6, 2, 12, tzinfo=timezone.utc),
    )
    assert client.delete(f"/attendance/sessions/{s['id']}", headers=h).status_code == 204
    assert client.get(f"/attendance/sessions/{s['id']}", headers=h).status_code == 404
    assert client.get("/attendance/sessions", headers=h).json()["totalCount"] == 0


def test_session_inherits_occasion_branch_and_scope(client, seed, as_user):
    owner = as_user(seed.owner)
    occ = client.post(
        "/attendance/occasions", json={"name": "South Prayer", "branch_id": str(seed.south.id)}, headers=owner
    ).json()
    s = _session(
        client,
        owner,
        occ["id"],
        datetime(2024, 6, 2, 10, tzinfo=timezone.utc),
        datetime(2024, 6, 2, 12, tzinfo=timezone.utc),
    )
    assert s["branch_id"] == str(seed.south.id)

    assert client.get("/attendance/sessions", headers=as_user(seed.clerk)).json()["totalCount"] == 0
    assert client.get(f"/attendance/sessions/{s['id']}", headers=as_user(seed.clerk)).status_code == 404


def test_occasion_rejects_unparseable_recurrence(client, seed, as_user, occasion):
    h = as_user(seed.owner)
    r = client.post("/attendance/occasions", json={"name": "Bad", "recurrence_rule": "FREQ=SOMETIMES"}, headers=h)
    assert r.status_code == 400

    r = client.patch(
        f"/attendance/occasions/{occasion['id']}", json={"recurrence_rule": "FREQ=MONTHLY;BYMONTHDAY=1"}, headers=h
    )
    assert r.status_code == 200


def _parse(value):
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def test_session_times_with_offset_are_stored_as_utc(client, seed, as_user, occasion):
    h = as_user(seed.owner)
    plus_five = timezone(timedelta(hours=5))
    now = datetime.now(timezone.utc).replace(microsecond=0)
    start = (now - timedelta(minutes=30)).astimezone(plus_five)
    end = (now + timedelta(minutes=30)).astimezone(plus_five)

    s = _session(client, h, occasion["id"], start, end)
    assert s["status"] == "active"
    assert _parse(s["start_time"]) == start
    assert _parse(s["start_time"]).utcoffset() == timedelta(0)

    fetched = client.get(f"/attendance/sessions/{s['id']}", headers=h).json()
    assert _parse(fetched["end_time"]) == end
    assert fetched["status"] == "active"

    later = (now + timedelta(hours=2)).astimezone(plus_five)
    r = client.patch(f"/attendance/sessions/{s['id']}", json={"end_time": later.isoformat()}, headers=h)
    assert r.status_code == 200, r.text
    assert _parse(r.json()["end_time"]) == later
    assert r.json()["status"] == "active"


def test_session_times_cannot_be_cleared(client, seed, as_user, occasion):
    h = as_user(seed.owner)
    s = _session(
        client,
        h,
        occasion["id"],
        datetime(2024, 6, 2, 10, tzinfo=timezone.utc),
        datetime(2024, 6, 2, 12, tzinfo=timezone.utc),
    )
    for body in ({"end_time": None}, {"start_time": None}, {"is_open": None}):
        r = client.patch(f"/attendance/sessions/{s['id']}", json=body, headers=h)
        assert r.status_code == 422, body

    r = client.patch(f"/attendance/sessions/{s['id']}", json={"name": None}, headers=h)
    assert r.status_code == 200
    assert r.json()["end_time"].startswith("2024-06-02T12:00:00")


def test_occasion_on_other_branch_is_hidden(client, seed, as_user):
    owner = as_user(seed.owner)
    clerk = as_user(seed.clerk)
    occ = client.post(
        "/attendance/occasions", json={"name": "South Prayer", "branch_id": str(seed.south.id)}, headers=owner
    ).json()

    assert client.get(f"/attendance/occasions/{occ['id']}", headers=clerk).status_code == 404
    r = client.patch(f"/attendance/occasions/{occ['id']}", json={"name": "Renamed"}, headers=clerk)
    assert r.status_code == 404
    r = client.post(
        "/attendance/sessions",
        json={"occasion_id": occ["id"], "start_time": "2024-06-02T10:00:00Z", "end_time": "2024-06-02T12:00:00Z"},
        headers=clerk,
    )
    assert r.status_code == 404
    assert client.get("/attendance/occasions", headers=clerk).json() == []

    r = client.get(f"/attendance/occasions/{occ['id']}", headers=owner)
    assert r.status_code == 200
    assert r.json()["name"] == "South Prayer"
