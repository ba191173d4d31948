# tests/test_branches_api.py


def test_owner_sees_all_branches(client, seed, as_user):
    r = client.get("/branches/", headers=as_user(seed.owner))
    assert r.status_code == 200
    assert [b["name"] for b in r.json()] == ["North Campus", "South Campus"]


def test_assigned_user_sees_own_branches(client, seed, as_user):
    assert [b["name"] for b in client.get("/branches/", headers=as_user(seed.clerk)).json()] == ["North Campus"]
    assert client.get("/branches/", headers=as_user(seed.stranger)).json() == []


def test_branch_admin_endpoints_require_admin(client, seed, as_user):
    r = client.post("/branches/", json={"name": "East"}, headers=as_user(seed.clerk))
    assert r.status_code == 403


def test_branch_lifecycle(client, seed, as_user):
    h = as_user(seed.owner)
    r = client.post("/branches/", json={"name": "East Campus", "location": "Route 9"}, headers=h)
    assert r.status_code == 201
    bid = r.json()["id"]

    r = client.patch(f"/branches/{bid}", json={"contact": "555-0100"}, headers=h)
    assert r.status_code == 200
    assert r.json()["contact"] == "555-0100"

    assert client.delete(f"/branches/{bid}", headers=h).status_code == 204
    names = [b["name"] for b in client.get("/branches/", headers=h).json()]
    assert "East Campus" not in names
    names = [b["name"] for b in client.get("/branches/", params={"include_inactive": True}, headers=h).json()]
    assert "East Campus" in names


def test_assigning_a_user_widens_their_scope(client, seed, as_user):
    owner = as_user(seed.owner)
    client.post(
        "/expenses/",
        json={"amount": "12", "date": "2024-06-01", "category": "repairs", "branch_id": str(seed.south.id)},
        headers=owner,
    )
    assert client.get("/expenses/", headers=as_user(seed.stranger)).json()["totalCount"] == 0

    r = client.post(f"/branches/{seed.south.id}/users", json={"user_id": str(seed.stranger.id)}, headers=owner)
    assert r.status_code == 201
    assert client.get("/expenses/", headers=as_user(seed.stranger)).json()["totalCount"] == 1

    r = client.post(f"/branches/{seed.south.id}/users", json={"user_id": str(seed.stranger.id)}, headers=owner)
    assert r.status_code == 409

    r = client.delete(f"/branches/{seed.south.id}/users/{seed.stranger.id}", headers=owner)
    assert r.status_code == 204
    assert client.get("/expenses/", headers=as_user(seed.stranger)).json()["totalCount"] == 0


def test_assigning_non_member_is_not_found(client, seed, as_user):
    r = client.post(
        f"/branches/{seed.north.id}/users",
        json={"user_id": "00000000-0000-0000-0000-0000000000ff"},
        headers=as_user(seed.owner),
    )
    assert r.status_code == 404
