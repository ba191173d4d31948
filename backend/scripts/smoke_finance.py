# scripts/smoke_finance.py
"""
Walk the finance endpoints of a running server:
income -> duplicate receipt -> expense -> pledge + payment -> report -> cleanup.

  python scripts/smoke_finance.py --org-id <uuid> [--user-id <uuid>] [--api-key KEY]
"""
from __future__ import annotations

import argparse
import json
import os
import sys
import uuid

import requests


def req(method: str, url: str, headers: dict, json_body: dict | None = None, params: dict | None = None):
    r = requests.request(method, url, headers=headers, json=json_body, params=params, timeout=15)
    try:
        body = r.json()
    except ValueError:
        body = r.text
    return r.status_code, body


def fail(msg: str, status: int, body) -> int:
    print(f"❌ {msg}", status, body, file=sys.stderr)
    return 1


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--org-id", default=os.getenv("SMOKE_ORG_ID"), required=not os.getenv("SMOKE_ORG_ID"))
    ap.add_argument("--user-id", default=os.getenv("SMOKE_USER_ID"))
    ap.add_argument("--api-key", default=os.getenv("SMOKE_API_KEY"))
    ap.add_argument("--base-url", default=os.getenv("BASE_URL", "http://127.0.0.1:8000"))
    args = ap.parse_args()

    base = args.base_url.rstrip("/")
    headers = {"Content-Type": "application/json", "X-Organization-Id": args.org_id}
    if args.api_key:
        headers["X-API-Key"] = args.api_key
    if args.user_id:
        headers["X-User-Id"] = args.user_id

    tag = uuid.uuid4().hex[:6].upper()
    created: list[str] = []

    # 1) Income with a receipt number
    receipt = f"SMOKE-{tag}"
    s, b = req("POST", f"{base}/income/", headers, {
        "amount": "150.00", "date": "2024-06-02", "category": "offering",
        "description": f"smoke {tag}", "receipt_number": receipt,
    })
    if s != 201:
        return fail("create income failed", s, b)
    created.append(f"/income/{b['id']}")
    print(f"✅ income created: {b['id']} ({receipt})")

    # 2) Same receipt again must conflict
    s, b = req("POST", f"{base}/income/", headers, {
        "amount": "1.00", "date": "2024-06-02", "category": "offering", "receipt_number": receipt,
    })
    if s != 409:
        return fail("duplicate receipt was not rejected", s, b)
    print("✅ duplicate receipt rejected (409)")

    # 3) Search finds it
    s, b = req("GET", f"{base}/income/", headers, params={"search": f"smoke {tag}"})
    if s != 200 or b.get("totalCount") != 1:
        return fail("income search failed", s, b)
    print("✅ income search OK")

    # 4) Expense
    s, b = req("POST", f"{base}/expenses/", headers, {
        "amount": "40.00", "date": "2024-06-03", "category": "utilities", "description": f"smoke {tag}",
    })
    if s != 201:
        return fail("create expense failed", s, b)
    created.append(f"/expenses/{b['id']}")
    print(f"✅ expense created: {b['id']}")

    # 5) Pledge and payment; totals follow the payment
    s, b = req("POST", f"{base}/pledges/", headers, {
        "source_type": "church", "pledge_amount": "500", "pledge_type": "building", "start_date": "2024-06-01",
    })
    if s != 201:
        return fail("create pledge failed", s, b)
    pledge_id = b["id"]
    s, b = req("POST", f"{base}/pledges/{pledge_id}/payments", headers, {"amount": "125", "payment_date": "2024-06-04"})
    if s != 201:
        return fail("create payment failed", s, b)
    created.append(f"/payments/{b['id']}")
    s, b = req("GET", f"{base}/pledges/{pledge_id}", headers)
    if s != 200 or b.get("amount_remaining") != 375.0:
        return fail("pledge totals not synced", s, b)
    created.append(f"/pledges/{pledge_id}")
    print(f"✅ pledge {pledge_id}: paid {b['amount_paid']}, remaining {b['amount_remaining']}, {b['status']}")

    # 6) Report
    s, b = req("GET", f"{base}/reports/finance", headers)
    if s != 200:
        return fail("finance report failed", s, b)
    print("📊 report:", json.dumps({k: b[k] for k in ("total_income", "total_expenses", "net")}))

    # 7) Cleanup (soft deletes)
    for path in created:
        s, b = req("DELETE", f"{base}{path}", headers)
        if s != 204:
            print(f"⚠️ cleanup {path} returned {s}")

    print("🎉 SMOKE PASSED")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
