import importlib

import pytest
from fastapi.testclient import TestClient


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("ALLOWANCE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("ALLOWANCE_STORAGE", "csv")
    monkeypatch.setenv("ALLOWANCE_LOG_FILE", "")
    monkeypatch.setenv("ALLOWANCE_PARENTAL_ANSWER", "ice cold")

    from allowance_tracker.webapp import application, config

    importlib.reload(config)
    module = importlib.reload(application)
    with TestClient(module.app) as test_client:
        yield test_client


@pytest.fixture()
def child_id(client) -> str:
    response = client.post("/api/children", json={"name": "Emma Smith", "birthdate": "2015-04-01"})
    assert response.status_code == 201
    created = response.json()["child"]
    client.post("/api/children/active", json={"child_id": created["id"]})
    return created["id"]


def test_health(client) -> None:
    body = client.get("/health").json()

    assert body["status"] == "ok"
    assert body["backend"] == "FileStore"


def test_children_crud(client, child_id) -> None:
    assert client.get("/api/children/active").json()["active_child"]["id"] == child_id
    assert [child["name"] for child in client.get("/api/children").json()["children"]] == ["Emma Smith"]

    updated = client.put(f"/api/children/{child_id}", json={"name": "Emma S."}).json()
    assert updated["child"]["name"] == "Emma S."

    assert client.get("/api/children/child::nope").status_code == 404
    assert client.post("/api/children", json={"name": " ", "birthdate": "2015-04-01"}).status_code == 400

    assert client.delete(f"/api/children/{child_id}").status_code == 200
    assert client.get("/api/children/active").json()["active_child"] is None


def test_transactions_without_active_child(client) -> None:
    response = client.get("/api/transactions")

    assert response.status_code == 400
    assert response.json()["detail"] == "No active child selected"


def test_transaction_lifecycle(client, child_id) -> None:
    first = client.post("/api/transactions", json={"description": "Gift", "amount": "10"})
    second = client.post("/api/transactions", json={"description": "Candy", "amount": "-2.5"})
    assert first.status_code == second.status_code == 201
    assert second.json()["balance"] == 7.5
    assert second.json()["transaction_type"] == "expense"

    page = client.get("/api/transactions", params={"limit": 1}).json()
    assert [tx["description"] for tx in page["transactions"]] == ["Candy"]
    assert page["pagination"]["has_more"] is True
    rest = client.get("/api/transactions", params={"after": page["pagination"]["next_cursor"]}).json()
    assert [tx["description"] for tx in rest["transactions"]] == ["Gift"]

    tx_id = first.json()["id"]
    assert client.get(f"/api/transactions/{tx_id}").json()["amount"] == 10.0
    assert client.get("/api/transactions/missing").status_code == 404

    deleted = client.request("DELETE", "/api/transactions", json={"transaction_ids": [tx_id, "missing"]}).json()
    assert deleted["deleted_count"] == 1
    assert deleted["not_found_ids"] == ["missing"]
    remaining = client.get("/api/transactions").json()["transactions"]
    assert remaining[0]["balance"] == -2.5
    assert client.get("/api/balances/validate").json() == {"valid": True, "errors": []}

    empty = client.request("DELETE", "/api/transactions", json={"transaction_ids": []})
    assert empty.status_code == 400


def test_out_of_range_amounts_are_client_errors(client, child_id) -> None:
    huge = client.post("/api/transactions", json={"description": "Lottery", "amount": "1e30"})
    too_large = client.post("/api/transactions", json={"description": "Lottery", "amount": "1000000.01"})

    assert huge.status_code == 400
    assert "out of range" in huge.json()["detail"]
    assert too_large.status_code == 400
    assert too_large.json()["detail"] == "Amount is too large. Maximum is $1,000,000.00"
    assert client.get("/api/transactions").json()["transactions"] == []


def test_money_endpoints(client, child_id) -> None:
    added = client.post("/api/money/add", json={"description": "Chores", "amount": "$1,005.00"})
    assert added.status_code == 201
    assert added.json()["success_message"] == "🎉 +$1,005.00 added successfully!"

    spent = client.post("/api/money/spend", json={"description": "Toy", "amount": "5"}).json()
    assert spent["formatted_amount"] == "-$5.00"
    assert spent["transaction"]["balance"] == 1000.0

    invalid = client.post("/api/money/add", json={"description": "Chores", "amount": "1.234"})
    assert invalid.status_code == 400
    assert "decimal places" in invalid.json()["detail"]


def test_table_endpoint(client, child_id) -> None:
    client.post("/api/transactions", json={"description": "Gift", "amount": "10"})

    body = client.get("/api/transactions/table", params={"amount_format": "parentheses_neg"}).json()

    assert body["rows"][0]["formatted_amount"] == "$10.00"
    assert body["rows"][0]["css_class"] == "amount positive"
    assert body["pagination"]["has_more"] is False


def test_calendar_endpoint(client, child_id) -> None:
    from allowance_tracker.webapp import application

    today = application.get_tracker().clock.today()
    client.post("/api/transactions", json={"description": "Gift", "amount": "4"})

    body = client.get("/api/calendar/month", params={"month": today.month, "year": today.year}).json()

    month_days = [day for day in body["days"] if day["day_type"] == "month_day"]
    assert month_days[today.day - 1]["balance"] == 4.0
    assert [tx["description"] for tx in month_days[today.day - 1]["transactions"]] == ["Gift"]
    assert client.get("/api/calendar/month", params={"month": 13, "year": 2025}).status_code == 422


def test_allowance_and_goal_endpoints(client, child_id) -> None:
    saved = client.post("/api/allowance", json={"amount": "5", "day_of_week": 5}).json()
    assert saved["allowance_config"]["day_name"] == "Friday"
    assert client.get("/api/allowance").json()["allowance_config"]["amount"] == 5.0
    assert len(client.get("/api/allowances").json()["allowance_configs"]) == 1
    assert client.post("/api/allowance", json={"amount": "5", "day_of_week": 9}).status_code == 400

    created = client.post("/api/goals", json={"description": "Bike", "target_amount": "20"})
    assert created.status_code == 201
    assert created.json()["calculation"]["allowances_needed"] == 4
    assert client.post("/api/goals", json={"description": "Again", "target_amount": "30"}).status_code == 400

    progression = client.get("/api/goals/progression").json()["transactions"]
    assert [tx["balance"] for tx in progression] == [5.0, 10.0, 15.0, 20.0]

    updated = client.put("/api/goals", json={"target_amount": "25"}).json()
    assert updated["goal"]["target_amount"] == 25.0

    assert client.delete("/api/goals").json()["goal"]["state"] == "cancelled"
    assert client.get("/api/goals/current").json() == {"goal": None, "calculation": None}
    assert client.delete("/api/goals").status_code == 404
    assert [goal["state"] for goal in client.get("/api/goals/history").json()["goals"]] == ["cancelled"]

    assert client.delete("/api/allowance").json() == {"deleted": True}


def test_parental_control_endpoints(client) -> None:
    assert client.post("/api/parental-control/validate", json={"answer": "Ice Cold"}).json()["success"] is True
    assert client.post("/api/parental-control/validate", json={"answer": "warm"}).json()["success"] is False

    attempts = client.get("/api/parental-control/attempts").json()["attempts"]
    assert [attempt["attempted_value"] for attempt in attempts] == ["warm", "Ice Cold"]
    stats = client.get("/api/parental-control/stats").json()
    assert stats["total_attempts"] == 2
    assert stats["success_rate"] == 50.0


def test_data_directory_and_export_endpoints(client, child_id, tmp_path) -> None:
    client.post("/api/transactions", json={"description": "Gift", "amount": "10"})

    current = client.get("/api/data-directory/current").json()
    assert current["path"] == str(tmp_path / "data" / "emma_smith")
    moved = client.post("/api/data-directory/relocate", json={"new_path": str(tmp_path / "moved")}).json()
    assert moved["success"] is True
    assert client.post("/api/data-directory/revert").json()["success"] is True

    exported = client.post("/api/export/csv").json()
    assert exported["transaction_count"] == 1
    assert exported["filename"].startswith("emma_smith_transactions_")

    written = client.post("/api/export/to-path", json={"custom_path": str(tmp_path / "exports")}).json()
    assert written["success"] is True
    assert written["file_path"].startswith(str(tmp_path / "exports"))

    note = client.post("/api/export/write-file", json={"file_path": str(tmp_path / "n.txt"), "content": "hi"})
    assert note.json()["success"] is True
    assert (tmp_path / "n.txt").read_text() == "hi"


def test_log_endpoints(client) -> None:
    posted = client.post("/api/logs", json={"level": "warning", "message": "Slow render"}).json()
    assert posted == {"success": True, "level": "warn", "component": "frontend"}

    entries = client.get("/api/logs", params={"level": "warn"}).json()["entries"]
    assert entries[-1]["message"] == "Slow render"
