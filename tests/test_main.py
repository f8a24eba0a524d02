from fastapi.testclient import TestClient


def test_health_check(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data == {
        "status": "ok",
        "environment": "sandbox",
        "signature_verification": True,
    }


def test_health_does_not_leak_secrets(client: TestClient):
    body = client.get("/health").text
    assert "client-secret" not in body
    assert "client-id" not in body
