from app.core.config import get_settings


def test_security_headers_are_added(client):
    response = client.get("/api/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_oversized_run_request_is_rejected(client):
    limit = get_settings().max_request_size_bytes
    response = client.post(
        "/api/optimizer/runs",
        content=b"{}",
        headers={"content-type": "application/json", "content-length": str(limit + 1)},
    )

    assert response.status_code == 413
    assert response.json()["details"] == {"max_bytes": limit}
