def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_health_live(client):
    response = client.get("/api/health/live")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_health_ready_reports_optimizer(client):
    response = client.get("/api/health/ready")
    assert response.status_code in {200, 503}
    payload = response.json()
    assert payload["status"] in {"ok", "degraded"}
    assert payload["optimizer"]["active_runs"] == 0
    assert payload["optimizer"]["retained_runs"] == 0
    assert "schema_ok" in payload["database"]
