"""Tests for the per-role auth endpoints"""
from datetime import datetime, timedelta

from principal_auth.services.tokens import ACCESS


def test_join_member(client, member_data):
    """Test joining as a member"""
    response = client.post("/auth/member/join", json=member_data)

    assert response.status_code == 201
    data = response.json()
    assert data["role"] == "member"
    assert data["principal"]["email"] == "alice@example.com"
    assert data["principal"]["display_name"] == "Alice"
    assert data["principal"]["status"] == "active"
    assert "password" not in data["principal"]
    assert data["token"]["access"]
    assert data["token"]["refresh"]


def test_join_token_windows(client, member_data):
    data = client.post("/auth/member/join", json=member_data).json()

    expired_at = datetime.fromisoformat(data["token"]["expired_at"])
    refreshable_until = datetime.fromisoformat(data["token"]["refreshable_until"])
    assert expired_at < refreshable_until


def test_join_id_matches_token_subject(client, service, member_data):
    data = client.post("/auth/member/join", json=member_data).json()

    claims = service.issuer.decode(data["token"]["access"], ACCESS)
    assert claims["sub"] == data["id"]
    assert claims["role"] == "member"


def test_join_duplicate_email(client, member_data):
    """Test joining twice with the same email, in any case"""
    client.post("/auth/member/join", json=member_data)
    member_data["email"] = "ALICE@Example.com"

    response = client.post("/auth/member/join", json=member_data)

    assert response.status_code == 409
    assert response.json()["error"] == "duplicate_identifier"


def test_same_email_in_another_role(client, member_data):
    client.post("/auth/member/join", json=member_data)

    response = client.post("/auth/seller/join", json=member_data)

    assert response.status_code == 201
    assert response.json()["role"] == "seller"


def test_join_validation(client):
    response = client.post("/auth/member/join", json={"email": "not-an-email", "password": "long-enough-password"})
    assert response.status_code == 422

    response = client.post("/auth/member/join", json={"email": "bob@example.com", "password": "short"})
    assert response.status_code == 422


def test_unknown_role_has_no_routes(client, member_data):
    response = client.post("/auth/superuser/join", json=member_data)

    assert response.status_code == 404


def test_login(client, register):
    joined = register()

    response = client.post("/auth/member/login", json={"email": "Alice@Example.com", "password": "correct-horse-battery"})

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == joined["id"]
    assert data["token"]["access"] != joined["token"]["access"]


def test_login_failures_look_the_same(client, register):
    register()

    unknown = client.post("/auth/member/login", json={"email": "nobody@example.com", "password": "whatever-pass"})
    wrong = client.post("/auth/member/login", json={"email": "alice@example.com", "password": "wrong-password"})

    assert unknown.status_code == 401
    assert wrong.status_code == 401
    assert unknown.json() == wrong.json()
    assert unknown.json()["error"] == "invalid_credentials"
    assert unknown.headers["www-authenticate"] == "Bearer"


def test_login_lockout(client, register, clock, test_settings):
    register()
    credentials = {"email": "alice@example.com", "password": "wrong-password"}

    for _ in range(test_settings.MAX_FAILED_LOGIN_ATTEMPTS):
        assert client.post("/auth/member/login", json=credentials).status_code == 401

    credentials["password"] = "correct-horse-battery"
    response = client.post("/auth/member/login", json=credentials)
    assert response.status_code == 423
    assert response.json()["error"] == "account_locked"

    clock.advance(test_settings.LOCKOUT_SECONDS + 1)
    assert client.post("/auth/member/login", json=credentials).status_code == 200


def test_refresh(client, register):
    joined = register()

    response = client.post("/auth/member/refresh", json={"refresh_token": joined["token"]["refresh"]})

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == joined["id"]
    assert data["token"]["access"] != joined["token"]["access"]
    assert data["token"]["refresh"] != joined["token"]["refresh"]


def test_refresh_token_single_use(client, register):
    joined = register()
    client.post("/auth/member/refresh", json={"refresh_token": joined["token"]["refresh"]})

    response = client.post("/auth/member/refresh", json={"refresh_token": joined["token"]["refresh"]})

    assert response.status_code == 401
    assert response.json()["error"] == "invalid_token"


def test_refresh_invalid_token(client):
    response = client.post("/auth/member/refresh", json={"refresh_token": "not-a-token"})

    assert response.status_code == 401
    assert response.json()["error"] == "invalid_token"


def test_refresh_on_wrong_role_endpoint(client, register):
    joined = register()

    response = client.post("/auth/seller/refresh", json={"refresh_token": joined["token"]["refresh"]})

    assert response.status_code == 401


def test_me(client, register, auth_headers):
    joined = register()

    response = client.get("/auth/member/me", headers=auth_headers(joined["token"]["access"]))

    assert response.status_code == 200
    assert response.json()["id"] == joined["id"]
    assert response.json()["email"] == "alice@example.com"


def test_me_requires_token(client):
    response = client.get("/auth/member/me")

    assert response.status_code == 401
    assert response.json()["error"] == "invalid_token"


def test_me_with_other_role_token(client, register, auth_headers):
    joined = register()

    response = client.get("/auth/seller/me", headers=auth_headers(joined["token"]["access"]))

    assert response.status_code == 403
    assert response.json()["error"] == "forbidden"


def test_expired_access_token(client, register, auth_headers, clock, test_settings):
    joined = register()
    clock.advance(test_settings.ACCESS_TOKEN_EXPIRE_SECONDS + 1)

    response = client.get("/auth/member/me", headers=auth_headers(joined["token"]["access"]))

    assert response.status_code == 401
    assert response.json()["error"] == "token_expired"


def test_logout_is_idempotent(client, register, auth_headers):
    joined = register()
    headers = auth_headers(joined["token"]["access"])

    first = client.post("/auth/member/logout", headers=headers)
    second = client.post("/auth/member/logout", headers=headers)

    assert first.status_code == 200
    assert first.json() == {"revoked": 1}
    assert second.status_code == 200
    assert second.json() == {"revoked": 0}

    response = client.get("/auth/member/me", headers=headers)
    assert response.status_code == 401
    assert response.json()["error"] == "token_revoked"


def test_logout_all_twice(client, register, auth_headers):
    joined = register()
    client.post("/auth/member/login", json={"email": "alice@example.com", "password": "correct-horse-battery"})
    headers = auth_headers(joined["token"]["access"])

    first = client.post("/auth/member/logoutAll", headers=headers)
    second = client.post("/auth/member/logoutAll", headers=headers)

    assert first.json() == {"revoked": 2}
    assert second.status_code == 200
    assert second.json() == {"revoked": 0}


def test_password_change(client, register, auth_headers):
    joined = register()

    response = client.put(
        "/auth/member/password/change",
        json={"current_password": "correct-horse-battery", "new_password": "a-brand-new-password"},
        headers=auth_headers(joined["token"]["access"]),
    )

    assert response.status_code == 200
    changed = response.json()

    stale = client.post("/auth/member/refresh", json={"refresh_token": joined["token"]["refresh"]})
    assert stale.status_code == 401
    assert stale.json()["error"] == "token_revoked"

    fresh = client.get("/auth/member/me", headers=auth_headers(changed["token"]["access"]))
    assert fresh.status_code == 200

    old_login = client.post("/auth/member/login", json={"email": "alice@example.com", "password": "correct-horse-battery"})
    new_login = client.post("/auth/member/login", json={"email": "alice@example.com", "password": "a-brand-new-password"})
    assert old_login.status_code == 401
    assert new_login.status_code == 200


def test_password_change_wrong_current(client, register, auth_headers):
    joined = register()

    response = client.put(
        "/auth/member/password/change",
        json={"current_password": "not-my-password", "new_password": "a-brand-new-password"},
        headers=auth_headers(joined["token"]["access"]),
    )

    assert response.status_code == 401
    assert response.json()["error"] == "invalid_credentials"


def test_principal_timestamps_carry_utc_offset(client, member_data):
    data = client.post("/auth/member/join", json=member_data).json()

    for value in (data["principal"]["created_at"], data["principal"]["last_login_at"], data["token"]["expired_at"]):
        assert datetime.fromisoformat(value).utcoffset() == timedelta(0)
