# tests/test_expenses_api.py
import json


def _create(client, headers, **overrides):
    payload = {"amount": "40.00", "date": "2024-06-01", "category": "utilities"}
    payload.update(overrides)
    r = client.post("/expenses/", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_expense_crud(client, seed, as_user):
    h = as_user(seed.owner)
    row = _create(client, h, vendor="City Power", approved_by="Treasurer", payment_method="bank_transfer")
    assert row["amount"] == 40.0
    assert row["payment_method"] == "bank_transfer"

    r = client.patch(f"/expenses/{row['id']}", json={"purpose": "June bill"}, headers=h)
    assert r.status_code == 200
    assert r.json()["purpose"] == "June bill"
    assert r.json()["vendor"] == "City Power"

    assert client.delete(f"/expenses/{row['id']}", headers=h).status_code == 204
    assert client.get(f"/expenses/{row['id']}", headers=h).status_code == 404


def test_expense_filters(client, seed, as_user):
    h = as_user(seed.owner)
    _create(client, h, category="utilities", approved_by="Treasurer", amount="10")
    _create(client, h, category="repairs", approved_by="Pastor", amount="300", description="Roof")
    _create(client, h, category="repairs", approved_by="Treasurer", amount="75", description="Gutter")

    filters = json.dumps({"approved_by_filter": ["Treasurer"], "amount_range": {"min": 50}})
    rows = client.get("/expenses/", params={"filters": filters}, headers=h).json()["data"]
    assert [r["description"] for r in rows] == ["Gutter"]

    filters = json.dumps({"purpose_filter": ["Roof"]})
    rows = client.get("/expenses/", params={"filters": filters}, headers=h).json()["data"]
    assert [r["amount"] for r in rows] == [300.0]


def test_expense_search_by_vendor(client, seed, as_user):
    h = as_user(seed.owner)
    _create(client, h, vendor="Hardware Depot")
    _create(client, h, vendor="City Power")
    rows = client.get("/expenses/", params={"search": "depot"}, headers=h).json()["data"]
    assert [r["vendor"] for r in rows] == ["Hardware Depot"]


def test_expense_scope(client, seed, as_user):
    owner = as_user(seed.owner)
    _create(client, owner, branch_id=str(seed.south.id))
    page = client.get("/expenses/", headers=as_user(seed.viewer)).json()
    assert page["totalCount"] == 0

    page = client.get("/expenses/", headers=as_user(seed.stranger)).json()
    assert page["data"] == []
    assert page["totalPages"] == 1


def test_expense_sort_by_amount_desc(client, seed, as_user):
    h = as_user(seed.owner)
    for amount in ("5", "50", "15"):
        _create(client, h, amount=amount)
    rows = client.get("/expenses/", params={"sort_key": "amount", "sort_direction": "desc"}, headers=h).json()["data"]
    assert [r["amount"] for r in rows] == [50.0, 15.0, 5.0]


def test_non_positive_amount_rejected(client, seed, as_user):
    r = client.post(
        "/expenses/", json={"amount": "0", "date": "2024-06-01", "category": "x"}, headers=as_user(seed.owner)
    )
    assert r.status_code == 422
