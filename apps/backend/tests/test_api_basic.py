from fintrack import models


def _create_account(client, **body):
    payload = {"name": "Main", "type": "checking"}
    payload.update(body)
    return client.post("/api/accounts", json=payload)


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


def test_create_and_list_accounts(client):
    res = _create_account(client, name="  Wallet  ", initial_balance=1500, color="#ff00aa")
    assert res.status_code == 201, res.text
    acc = res.json()
    assert acc["name"] == "Wallet"
    assert acc["balance"] == 1500
    assert acc["color"] == "#FF00AA"
    # credit-only fields are dropped for other account types
    assert acc["closing_date"] is None and acc["due_date"] is None

    _create_account(client, name="Card", type="credit")
    res = client.get("/api/accounts")
    assert [a["name"] for a in res.json()] == ["Card", "Wallet"]
    res = client.get("/api/accounts", params={"type": "credit"})
    assert [a["name"] for a in res.json()] == ["Card"]


def test_credit_account_gets_default_cycle_days(client):
    acc = _create_account(client, name="Card", type="credit").json()
    assert acc["closing_date"] == 1
    assert acc["due_date"] == 10


def test_duplicate_account_name_conflicts(client):
    assert _create_account(client).status_code == 201
    assert _create_account(client).status_code == 409


def test_invalid_cycle_day_rejected(client):
    res = _create_account(client, type="credit", closing_date=32)
    assert res.status_code == 422


def test_update_account(client):
    acc = _create_account(client, initial_balance=100).json()
    res = client.patch(f"/api/accounts/{acc['id']}", json={"name": "Renamed", "initial_balance": 700})
    assert res.status_code == 200
    body = res.json()
    assert body["name"] == "Renamed"
    assert body["balance"] == 700


def test_update_rejects_credit_fields_on_checking(client):
    acc = _create_account(client).json()
    res = client.patch(f"/api/accounts/{acc['id']}", json={"closing_date": 5})
    assert res.status_code == 400


def test_delete_account(client):
    acc = _create_account(client).json()
    assert client.delete(f"/api/accounts/{acc['id']}").status_code == 204
    assert client.get(f"/api/accounts/{acc['id']}").status_code == 404


def test_delete_account_with_transactions_is_refused(client):
    acc = _create_account(client).json()
    client.post(
        "/api/transactions",
        json={"description": "Lunch", "amount": 2500, "date": "2024-03-01", "type": "expense", "account_id": acc["id"]},
    )
    assert client.delete(f"/api/accounts/{acc['id']}").status_code == 400


def test_recalculate_balance(client, db_session):
    acc = _create_account(client, initial_balance=1000).json()
    client.post(
        "/api/transactions",
        json={"description": "Lunch", "amount": 250, "date": "2024-03-01", "type": "expense", "account_id": acc["id"]},
    )
    # simulate drift
    db_session.query(models.Account).filter(models.Account.id == acc["id"]).update({"balance": 0})
    db_session.commit()

    res = client.post(f"/api/accounts/{acc['id']}/recalculate")
    assert res.status_code == 200
    assert res.json()["balance"] == 750


class TestCategories:
    def test_create_list_filter(self, client):
        assert client.post("/api/categories", json={"name": "Food", "type": "expense"}).status_code == 201
        assert client.post("/api/categories", json={"name": "Salary", "type": "income"}).status_code == 201
        assert client.post("/api/categories", json={"name": "Misc", "type": "both"}).status_code == 201

        names = [c["name"] for c in client.get("/api/categories", params={"type": "expense"}).json()]
        assert names == ["Food", "Misc"]
        assert len(client.get("/api/categories").json()) == 3

    def test_duplicate_conflicts(self, client):
        client.post("/api/categories", json={"name": "Food", "type": "expense"})
        res = client.post("/api/categories", json={"name": "Food", "type": "expense"})
        assert res.status_code == 409

    def test_delete_keeps_transactions(self, client):
        acc = _create_account(client).json()
        cat = client.post("/api/categories", json={"name": "Food", "type": "expense"}).json()
        (txn,) = client.post(
            "/api/transactions",
            json={
                "description": "Lunch",
                "amount": 2500,
                "date": "2024-03-01",
                "type": "expense",
                "account_id": acc["id"],
                "category_id": cat["id"],
            },
        ).json()
        assert txn["category_id"] == cat["id"]

        assert client.delete(f"/api/categories/{cat['id']}").status_code == 204
        assert client.get(f"/api/transactions/{txn['id']}").json()["category_id"] is None

    def test_unknown_category_on_transaction_is_404(self, client):
        acc = _create_account(client).json()
        res = client.post(
            "/api/transactions",
            json={
                "description": "Lunch",
                "amount": 2500,
                "date": "2024-03-01",
                "type": "expense",
                "account_id": acc["id"],
                "category_id": "missing",
            },
        )
        assert res.status_code == 404
