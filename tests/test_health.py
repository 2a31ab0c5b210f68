def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_storage_status_reports_every_table(client):
    response = client.get("/api/status")
    assert response.status_code == 200
    body = response.json()
    assert body["overall_status"] == "healthy"
    assert len(body["tables"]) == 5
    assert all(t["status"] == "ACTIVE" for t in body["tables"].values())


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert response.json()["success"] is False
