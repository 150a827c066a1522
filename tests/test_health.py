"""Tests for health and service endpoints"""


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_ready(client):
    response = client.get("/health/ready")

    assert response.status_code == 200
    assert response.json()["checks"]["database"] is True


def test_live(client):
    response = client.get("/health/live")

    assert response.status_code == 200
    assert response.json()["status"] == "alive"


def test_stats(client, register, auth_headers):
    joined = register()
    register(email="bob@example.com")
    client.post("/auth/member/logout", headers=auth_headers(joined["token"]["access"]))

    data = client.get("/health/stats").json()

    assert data["principals"]["total"] == 2
    assert data["principals"]["active"] == 2
    assert data["principals"]["active_by_role"] == {"member": 2}
    assert data["sessions"] == {"active": 1, "revoked": 1}


def test_root_lists_roles(client):
    data = client.get("/").json()

    assert data["service"] == "principal-auth"
    assert "member" in data["roles"]


def test_metrics_exposed(client, register):
    register()

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "principal_auth_events_total" in response.text
