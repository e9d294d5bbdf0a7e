"""
Tests for authentication endpoints.
"""
from costventures.models.user import ActivationToken, PasswordResetToken, User
from costventures.tests.conftest import PASSWORD, auth_headers


def _register(client, username="testuser", email="test@example.com"):
    return client.post(
        "/api/auth/register",
        json={
            "username": username,
            "email": email,
            "password": PASSWORD
        }
    )


def _activation_token(database, username):
    store = database.store()
    try:
        return store.session.query(ActivationToken).join(User).filter(User.username == username).one().token
    finally:
        store.close()


def test_register(client):
    """Test user registration."""
    response = _register(client)
    assert response.status_code == 201
    assert response.json()["username"] == "testuser"
    assert response.json()["mail_delivered"] is True


def test_register_with_mail_outage(client, outbox):
    """Registration succeeds but reports the undelivered activation mail."""
    outbox.fail = True
    response = _register(client)
    assert response.status_code == 206
    assert response.json()["mail_delivered"] is False


def test_register_duplicate_username(client):
    _register(client)
    response = _register(client, email="other@example.com")
    assert response.status_code == 409
    assert response.json() == {
        "error": "USERNAME_EXISTS",
        "code": "EM-018",
        "message": "Username already exists",
    }


def test_activate_and_login(client, database):
    """Test user login after activation."""
    _register(client, "testuser2", "test2@example.com")

    response = client.post("/api/auth/login", json={"email": "test2@example.com", "password": PASSWORD})
    assert response.status_code == 403

    token = _activation_token(database, "testuser2")
    response = client.post("/api/auth/activate", json={"token": token})
    assert response.status_code == 200
    assert response.json()["is_activated"] is True

    response = client.post("/api/auth/activate", json={"token": token})
    assert response.status_code == 409

    response = client.post("/api/auth/login", json={"email": "test2@example.com", "password": PASSWORD})
    assert response.status_code == 200
    tokens = response.json()
    assert "access_token" in tokens
    assert tokens["token_type"] == "bearer"

    response = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 200

    response = client.get("/api/users/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert response.status_code == 200
    assert response.json()["username"] == "testuser2"


def test_activate_invalid_token(client):
    response = client.post("/api/auth/activate", json={"token": "XXXXXX"})
    assert response.status_code == 400
    assert response.json()["code"] == "EM-019"


def test_login_invalid_credentials(client):
    """Test login with invalid credentials."""
    response = client.post(
        "/api/auth/login",
        json={
            "email": "nonexistent@example.com",
            "password": "wrongpassword"
        }
    )
    assert response.status_code == 401
    assert response.json()["error"] == "CREDENTIALS_INVALID"


def _reset_token(database, user_id):
    store = database.store()
    try:
        return store.session.query(PasswordResetToken).filter(PasswordResetToken.user_id == user_id).one().token
    finally:
        store.close()


def test_password_reset(client, database, outbox, alice):
    response = client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    assert response.status_code == 200
    assert response.json() == {"mail_delivered": True}
    token = _reset_token(database, alice.id)

    response = client.post("/api/auth/verify-reset-token", json={"email": "alice@example.com", "token": "NOPE1234"})
    assert response.status_code == 400
    assert response.json()["code"] == "EM-025"
    response = client.post("/api/auth/verify-reset-token", json={"email": "alice@example.com", "token": token})
    assert response.status_code == 204

    response = client.post("/api/auth/reset-password", json={
        "email": "alice@example.com",
        "token": token,
        "password": "a-brand-new-password",
    })
    assert response.status_code == 200
    assert len(outbox.requests) == 2

    response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "a-brand-new-password"})
    assert response.status_code == 200


def test_forgot_password_with_mail_outage(client, outbox, alice):
    outbox.fail = True
    response = client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    assert response.status_code == 206
    assert response.json()["mail_delivered"] is False


def test_availability_checks(client, alice):
    assert client.get("/api/auth/check-username", params={"username": "alice"}).status_code == 409
    assert client.get("/api/auth/check-username", params={"username": "zoe"}).json() == {"available": True}
    assert client.get("/api/auth/check-email", params={"email": "alice@example.com"}).status_code == 409
    assert client.get("/api/auth/check-email", params={"email": "zoe@example.com"}).status_code == 200


def test_protected_routes_need_a_token(client, alice):
    assert client.get("/api/users/me").status_code == 401
    assert client.get("/api/users/me", headers={"Authorization": "Bearer garbage"}).status_code == 401
    assert client.get("/api/users/me", headers=auth_headers(alice.id)).status_code == 200
    assert client.get("/api/users/me", headers=auth_headers(4242)).status_code == 401


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
