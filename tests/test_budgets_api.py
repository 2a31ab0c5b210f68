import pytest

from app.db import dynamo

DUPLICATE = "Budget already exists for this category and period"


@pytest.fixture
def make_budget(client, auth_headers):
    def _make(headers=None, **overrides):
        payload = {"category": "Food", "limit": 1000}
        payload.update(overrides)
        return client.post("/api/budgets", json=payload, headers=headers or auth_headers)

    return _make


def test_food_budget_progress_end_to_end(client, auth_headers, other_headers, make_budget, make_transaction):
    response = make_budget(category="Food", limit=1000, period="monthly")
    assert response.status_code == 201
    budget = response.json()["data"]
    assert budget["period"] == "monthly"
    assert budget["progress"]["spent"] == 0
    assert budget["progress"]["status"] == "on-track"

    make_transaction(amount=300, category="Food")
    make_transaction(amount=250, category="Food")
    # none of these count towards the Food budget
    make_transaction(amount=100, type="income", category="Food")
    make_transaction(amount=80, category="Travel")
    make_transaction(amount=500, category="Food", date="2020-01-01T00:00:00")
    make_transaction(headers=other_headers, amount=700, category="Food")

    response = client.get(f"/api/budgets/{budget['id']}", headers=auth_headers)
    assert response.status_code == 200
    progress = response.json()["data"]["progress"]
    assert progress == {
        "limit": 1000,
        "spent": 550,
        "remaining": 450,
        "percentage": 55.0,
        "status": "on-track",
    }


def test_duplicate_budget_rejected(make_budget, other_headers):
    assert make_budget().status_code == 201

    response = make_budget(limit=50)
    assert response.status_code == 400
    assert response.json() == {"success": False, "message": DUPLICATE}

    # changing any one of user, category or period gives a new key
    assert make_budget(period="weekly").status_code == 201
    assert make_budget(category="Travel").status_code == 201
    assert make_budget(headers=other_headers).status_code == 201


def test_budget_validation(make_budget):
    response = make_budget(limit=-1)
    assert response.status_code == 400
    assert "limit" in response.json()["message"]

    response = make_budget(category="Salary")
    assert response.status_code == 400

    response = make_budget(period="yearly")
    assert response.status_code == 400


def test_update_moves_uniqueness_key(client, auth_headers, make_budget):
    monthly = make_budget(period="monthly").json()["data"]
    weekly = make_budget(period="weekly").json()["data"]

    response = client.put(f"/api/budgets/{weekly['id']}", json={"period": "monthly"}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["message"] == DUPLICATE

    response = client.put(f"/api/budgets/{weekly['id']}", json={"category": "Bills", "limit": 250}, headers=auth_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["category"] == "Bills"
    assert data["limit"] == 250
    assert data["period"] == "weekly"

    # the old Food/weekly key was released
    response = client.put(f"/api/budgets/{monthly['id']}", json={"period": "weekly"}, headers=auth_headers)
    assert response.status_code == 200


def test_delete_releases_key(client, auth_headers, make_budget):
    budget = make_budget().json()["data"]
    response = client.delete(f"/api/budgets/{budget['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Budget deleted successfully"
    assert client.get(f"/api/budgets/{budget['id']}", headers=auth_headers).status_code == 404
    assert make_budget().status_code == 201


def test_other_users_budget_is_not_found(client, other_headers, make_budget):
    budget = make_budget().json()["data"]
    url = f"/api/budgets/{budget['id']}"
    assert client.get(url, headers=other_headers).status_code == 404
    assert client.put(url, json={"limit": 1}, headers=other_headers).status_code == 404
    response = client.delete(url, headers=other_headers)
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Budget not found"}


def test_list_budgets_with_filters(client, auth_headers, make_budget):
    make_budget(category="Travel")
    make_budget(category="Food", period="weekly")
    make_budget(category="Food")

    response = client.get("/api/budgets", headers=auth_headers)
    body = response.json()
    assert body["count"] == 3
    assert [(b["category"], b["period"]) for b in body["data"]] == [
        ("Food", "monthly"),
        ("Food", "weekly"),
        ("Travel", "monthly"),
    ]
    assert all("progress" in b for b in body["data"])

    response = client.get("/api/budgets", params={"category": "Food", "period": "weekly"}, headers=auth_headers)
    assert response.json()["count"] == 1


def test_budget_analytics(client, auth_headers, make_budget, make_transaction):
    make_budget(category="Food", limit=1000)
    make_budget(category="Travel", limit=100)
    make_budget(category="Bills", limit=200)
    make_transaction(amount=550, category="Food")
    make_transaction(amount=85, category="Travel")
    make_transaction(amount=300, category="Bills")

    response = client.get("/api/budgets/analytics", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["summary"] == {
        "totalBudgets": 3,
        "onTrackBudgets": 1,
        "warningBudgets": 1,
        "exceededBudgets": 1,
        "totalBudgetAmount": 1300,
        "totalSpentAmount": 935,
        "overallPercentage": 71.92,
    }
    assert [b["status"] for b in data["budgetProgress"]] == ["exceeded", "warning", "on-track"]
    assert data["budgetProgress"][0]["remaining"] == 0


def test_budget_analytics_without_budgets(client, auth_headers):
    data = client.get("/api/budgets/analytics", headers=auth_headers).json()["data"]
    assert data["summary"]["totalBudgets"] == 0
    assert data["budgetProgress"] == []


def test_budget_writes_keep_key_table_in_step(aws):
    item = {
        "user_id": "user-carol",
        "budget_id": "b1",
        "category": "Food",
        "limit": 250.5,
        "period": "weekly",
        "created_at": "2025-11-01T00:00:00",
        "updated_at": "2025-11-01T00:00:00",
    }
    dynamo.create_budget(item)

    stored = dynamo.get_budget("user-carol", "b1")
    assert stored["limit"] == 250.5
    guard = dynamo.budget_keys_table().get_item(Key={"user_id": "user-carol", "budget_key": "Food#weekly"})
    assert guard["Item"]["budget_id"] == "b1"

    moved = {**item, "category": "Bills"}
    dynamo.update_budget(item, moved)
    assert "Item" not in dynamo.budget_keys_table().get_item(
        Key={"user_id": "user-carol", "budget_key": "Food#weekly"}
    )
    assert dynamo.get_budget("user-carol", "b1")["category"] == "Bills"

    dynamo.delete_budget(moved)
    assert dynamo.get_budget("user-carol", "b1") is None
    assert dynamo.query_budgets("user-carol") == []
    assert "Item" not in dynamo.budget_keys_table().get_item(
        Key={"user_id": "user-carol", "budget_key": "Bills#weekly"}
    )
