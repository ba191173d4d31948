# tests/test_groups_api.py


def test_list_groups_sorted_by_name(client, seed, as_user):
    r = client.get("/groups/", headers=as_user(seed.owner))
    assert r.status_code == 200
    assert [g["name"] for g in r.json()] == ["Elders", "Youth Retreat"]


def test_create_group_trims_name_and_rejects_duplicates(client, seed, as_user):
    h = as_user(seed.owner)
    r = client.post("/groups/", json={"name": "  Ushers  ", "type": "permanent"}, headers=h)
    assert r.status_code == 201, r.text
    assert r.json()["name"] == "Ushers"
    assert r.json()["is_closed"] is False

    r = client.post("/groups/", json={"name": "Ushers"}, headers=h)
    assert r.status_code == 409


def test_close_temporal_group(client, seed, as_user):
    h = as_user(seed.owner)
    r = client.post(f"/groups/{seed.youth.id}/close", headers=h)
    assert r.status_code == 200
    assert r.json()["is_closed"] is True

    r = client.post(f"/groups/{seed.youth.id}/close", headers=h)
    assert r.status_code == 400


def test_permanent_group_cannot_be_closed(client, seed, as_user):
    r = client.post(f"/groups/{seed.elders.id}/close", headers=as_user(seed.owner))
    assert r.status_code == 400
    assert r.json()["detail"] == "Only temporal groups can be closed"


def test_closed_group_rejects_new_members_and_permanence(client, seed, as_user):
    h = as_user(seed.owner)
    client.post(f"/groups/{seed.youth.id}/close", headers=h)

    r = client.post(f"/groups/{seed.youth.id}/members", json={"member_id": str(seed.ruth.id)}, headers=h)
    assert r.status_code == 400

    r = client.patch(f"/groups/{seed.youth.id}", json={"type": "permanent"}, headers=h)
    assert r.status_code == 400


def test_member_assignment_lifecycle(client, seed, as_user):
    h = as_user(seed.owner)
    gid = seed.elders.id

    r = client.post(f"/groups/{gid}/members", json={"member_id": str(seed.ruth.id), "position": "Chair"}, headers=h)
    assert r.status_code == 201
    assert r.json()["position"] == "Chair"

    r = client.post(f"/groups/{gid}/members", json={"member_id": str(seed.ruth.id)}, headers=h)
    assert r.status_code == 409

    r = client.patch(f"/groups/{gid}/members/{seed.ruth.id}", json={"position": "Secretary"}, headers=h)
    assert r.status_code == 200
    assert r.json()["position"] == "Secretary"

    r = client.get(f"/groups/{gid}/members", headers=h)
    assert [m["member_id"] for m in r.json()] == [str(seed.ruth.id)]

    assert client.delete(f"/groups/{gid}/members/{seed.ruth.id}", headers=h).status_code == 204
    assert client.get(f"/groups/{gid}/members", headers=h).json() == []


def test_bulk_assign_skips_existing(client, seed, as_user):
    h = as_user(seed.owner)
    r = client.post(
        f"/groups/{seed.youth.id}/members/bulk",
        json={"member_ids": [str(seed.boaz.id), str(seed.ruth.id), str(seed.naomi.id)]},
        headers=h,
    )
    assert r.status_code == 201
    assert {m["member_id"] for m in r.json()} == {str(seed.ruth.id), str(seed.naomi.id)}

    r = client.get(f"/groups/{seed.youth.id}/members", headers=h)
    assert len(r.json()) == 3


def test_bulk_assign_needs_members(client, seed, as_user):
    r = client.post(f"/groups/{seed.youth.id}/members/bulk", json={"member_ids": []}, headers=as_user(seed.owner))
    assert r.status_code == 422


def test_deactivated_group_disappears(client, seed, as_user):
    h = as_user(seed.owner)
    assert client.delete(f"/groups/{seed.elders.id}", headers=h).status_code == 204
    assert client.get(f"/groups/{seed.elders.id}", headers=h).status_code == 404
    assert [g["name"] for g in client.get("/groups/", headers=h).json()] == ["Youth Retreat"]


def test_unknown_member_is_not_found(client, seed, as_user):
    r = client.post(
        f"/groups/{seed.elders.id}/members",
        json={"member_id": "00000000-0000-0000-0000-00000000abcd"},
        headers=as_user(seed.owner),
    )
    assert r.status_code == 404


def test_group_on_other_branch_is_hidden(client, seed, as_user):
    owner = as_user(seed.owner)
    clerk = as_user(seed.clerk)
    r = client.post(
        "/groups/",
        json={"name": "South Retreat", "type": "temporal", "branch_id": str(seed.south.id)},
        headers=owner,
    )
    assert r.status_code == 201, r.text
    gid = r.json()["id"]

    assert client.get(f"/groups/{gid}", headers=clerk).status_code == 404
    assert client.post(f"/groups/{gid}/close", headers=clerk).status_code == 404
    assert client.patch(f"/groups/{gid}", json={"name": "Taken"}, headers=clerk).status_code == 404
    r = client.post(f"/groups/{gid}/members", json={"member_id": str(seed.ruth.id)}, headers=clerk)
    assert r.status_code == 404
    assert client.get(f"/groups/{gid}/members", headers=clerk).status_code == 404
    assert client.delete(f"/groups/{gid}", headers=clerk).status_code == 404

    r = client.get(f"/groups/{gid}", headers=owner)
    assert r.json()["name"] == "South Retreat"
    assert r.json()["is_closed"] is False
    assert r.json()["is_active"] is True
    assert client.get(f"/groups/{gid}/members", headers=owner).json() == []


def test_group_name_and_type_cannot_be_cleared(client, seed, as_user):
    h = as_user(seed.owner)
    assert client.patch(f"/groups/{seed.elders.id}", json={"name": None}, headers=h).status_code == 422
    assert client.patch(f"/groups/{seed.elders.id}", json={"type": None}, headers=h).status_code == 422

    r = client.patch(f"/groups/{seed.elders.id}", json={"description": None}, headers=h)
    assert r.status_code == 200
    assert r.json()["name"] == "Elders"
