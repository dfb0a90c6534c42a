import pytest


@pytest.fixture()
def account(client):
    res = client.post("/api/accounts", json={"name": "Checking", "type": "checking", "initial_balance": 100000})
    assert res.status_code == 201
    return res.json()


def _create_fixed(client, account_id, **overrides):
    body = {
        "description": "Internet",
        "amount": 12990,
        "date": "2024-03-10",
        "type": "expense",
        "account_id": account_id,
    }
    body.update(overrides)
    res = client.post("/api/fixed-transactions", json=body)
    assert res.status_code == 201, res.text
    return res.json()


def test_create_generates_through_next_year(client, account):
    created = _create_fixed(client, account["id"])
    principal, children = created["principal"], created["children"]
    assert principal["is_fixed"] is True
    assert principal["status"] == "pending"
    assert principal["amount"] == -12990
    # March start: Apr..Dec + 12 months of next year
    assert len(children) == 21
    assert children[0]["date"] == "2024-04-10"
    assert children[-1]["date"] == "2025-12-10"
    assert {c["parent_transaction_id"] for c in children} == {principal["id"]}

    # pending rows do not touch the balance
    assert client.get(f"/api/accounts/{account['id']}").json()["balance"] == 100000


def test_transfer_type_rejected(client, account):
    res = client.post(
        "/api/fixed-transactions",
        json={"description": "x", "amount": 1, "date": "2024-03-10", "type": "transfer", "account_id": account["id"]},
    )
    assert res.status_code == 422


def test_list_and_get_summary(client, account):
    created = _create_fixed(client, account["id"], date="2024-01-31")
    res = client.get("/api/fixed-transactions")
    assert res.status_code == 200
    (summary,) = res.json()
    assert summary["principal"]["id"] == created["principal"]["id"]
    assert summary["day_of_month"] == 31
    assert summary["pending_count"] == 23
    assert summary["completed_count"] == 0
    assert summary["last_generated_date"] == "2025-12-31"

    res = client.get(f"/api/fixed-transactions/{created['principal']['id']}")
    assert res.status_code == 200
    assert res.json()["pending_count"] == 23


def test_get_plain_transaction_is_404(client, account):
    (plain,) = client.post(
        "/api/transactions",
        json={"description": "Coffee", "amount": 500, "date": "2024-03-01", "type": "expense", "account_id": account["id"]},
    ).json()
    assert client.get(f"/api/fixed-transactions/{plain['id']}").status_code == 404


def test_generate_continues_from_latest_child(client, account):
    created = _create_fixed(client, account["id"], date="2024-01-31")
    principal_id = created["principal"]["id"]

    res = client.post(f"/api/fixed-transactions/{principal_id}/generate", params={"months": 2})
    assert res.status_code == 201, res.text
    assert [r["date"] for r in res.json()] == ["2026-01-31", "2026-02-28"]

    res = client.post(f"/api/fixed-transactions/{principal_id}/generate", params={"months": 1})
    assert [r["date"] for r in res.json()] == ["2026-03-31"]


def test_generate_rejects_bad_month_count(client, account):
    created = _create_fixed(client, account["id"])
    res = client.post(f"/api/fixed-transactions/{created['principal']['id']}/generate", params={"months": 0})
    assert res.status_code == 422


def test_renew_all(client, account):
    a = _create_fixed(client, account["id"])
    b = _create_fixed(client, account["id"], description="Gym", amount=8000, date="2024-03-05")
    res = client.post("/api/fixed-transactions/renew", params={"months": 2})
    assert res.status_code == 200
    body = res.json()
    assert body["created"] == {a["principal"]["id"]: 2, b["principal"]["id"]: 2}
    assert body["total_created"] == 4


def test_same_date_twice_in_a_series_conflicts(client, account):
    created = _create_fixed(client, account["id"])
    first, second = created["children"][0], created["children"][1]
    res = client.patch(f"/api/transactions/{second['id']}", json={"date": first["date"]})
    assert res.status_code == 409
    # nothing moved
    assert client.get(f"/api/transactions/{second['id']}").json()["date"] == second["date"]


def test_update_series_leaves_completed_rows(client, account):
    created = _create_fixed(client, account["id"])
    principal_id = created["principal"]["id"]
    first_child = created["children"][0]
    client.patch(f"/api/transactions/{first_child['id']}", json={"status": "completed"})

    res = client.patch(f"/api/fixed-transactions/{principal_id}", json={"amount": 14990, "description": "Fiber"})
    assert res.status_code == 200, res.text
    updated = res.json()
    assert first_child["id"] not in {r["id"] for r in updated}
    assert len(updated) == len(created["children"])  # principal + 20 pending children
    assert all(r["amount"] == -14990 and r["description"] == "Fiber" for r in updated)

    kept = client.get(f"/api/transactions/{first_child['id']}").json()
    assert kept["amount"] == -12990
    assert kept["description"] == "Internet"


def test_delete_series_keeps_completed_history(client, account):
    created = _create_fixed(client, account["id"])
    principal_id = created["principal"]["id"]
    client.patch(f"/api/transactions/{principal_id}", json={"status": "completed"})

    res = client.delete(f"/api/fixed-transactions/{principal_id}")
    assert res.status_code == 200
    body = res.json()
    assert body["detached_ids"] == [principal_id]
    assert len(body["deleted_ids"]) == len(created["children"])

    principal = client.get(f"/api/transactions/{principal_id}").json()
    assert principal["is_fixed"] is False
    assert client.get("/api/fixed-transactions").json() == []
    assert client.get(f"/api/accounts/{account['id']}").json()["balance"] == 100000 - 12990


def test_deleting_principal_with_current_scope_takes_pending_children(client, account):
    created = _create_fixed(client, account["id"])
    principal_id = created["principal"]["id"]
    first_child = created["children"][0]
    client.patch(f"/api/transactions/{first_child['id']}", json={"status": "completed"})

    res = client.delete(f"/api/transactions/{principal_id}", params={"scope": "current"})
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["detached_ids"] == []
    assert set(body["deleted_ids"]) == {principal_id} | {c["id"] for c in created["children"][1:]}

    pending = client.get("/api/transactions", params={"account_id": account["id"], "status": "pending"}).json()
    assert pending == []
    assert client.get("/api/fixed-transactions").json() == []
    # the settled child outlives its definition
    kept = client.get(f"/api/transactions/{first_child['id']}").json()
    assert kept["parent_transaction_id"] is None


def test_delete_series_after_principal_moved_past_its_children(client, account):
    created = _create_fixed(client, account["id"])
    principal_id = created["principal"]["id"]
    res = client.patch(f"/api/transactions/{principal_id}", json={"date": "2024-06-10"}, params={"scope": "current"})
    assert res.status_code == 200, res.text

    res = client.delete(f"/api/fixed-transactions/{principal_id}")
    assert res.status_code == 200
    assert len(res.json()["deleted_ids"]) == len(created["children"]) + 1
    assert client.get("/api/transactions", params={"account_id": account["id"]}).json() == []


def test_update_series_date_keeps_one_occurrence_per_month(client, account):
    created = _create_fixed(client, account["id"])
    principal_id = created["principal"]["id"]

    res = client.patch(f"/api/fixed-transactions/{principal_id}", json={"date": "2024-07-22"})
    assert res.status_code == 200, res.text
    updated = res.json()
    assert {r["date"][8:] for r in updated} == {"22"}
    assert client.get(f"/api/transactions/{principal_id}").json()["date"] == "2024-03-22"
    months = [r["date"][:7] for r in updated]
    assert len(months) == len(set(months))
