import pytest
import requests

from hundred_days.errors import AuthenticationError, ExternalServiceError
from hundred_days.models import User
from hundred_days.services.identity import GoogleTokenVerifier, sign_in_with_provider

CLIENT_ID = "test-client-id.apps.googleusercontent.com"


class FakeResponse:
    def __init__(self, body, status_code=200):
        self.body = body
        self.status_code = status_code

    def json(self):
        return self.body


class FakeGoogleSession:
    def __init__(self, response):
        self.response = response
        self.params = None

    def get(self, url, params=None, timeout=None):
        self.params = params
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def google_claims(**overrides):
    claims = {"aud": CLIENT_ID, "sub": "google-uid-1", "email": "Runner@Gmail.com", "name": "Runner G"}
    claims.update(overrides)
    return claims


def google_verifier(app, response):
    return {"google": GoogleTokenVerifier(app.config, session=FakeGoogleSession(response))}


def test_register_login_and_me(client):
    response = client.post("/api/auth/register", json={
        "email": "new@example.com", "password": "long-enough", "display_name": "Newbie",
    })
    assert response.status_code == 201
    assert "access_token" in response.get_json()

    response = client.post("/api/auth/login", json={"email": "NEW@example.com", "password": "long-enough"})
    assert response.status_code == 200
    token = response.get_json()["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"}).get_json()
    assert me["email"] == "new@example.com"
    assert "password_hash" not in me


def test_register_rejects_short_password(client):
    response = client.post("/api/auth/register", json={"email": "new@example.com", "password": "short"})
    assert response.status_code == 400
    assert response.get_json()["msg"].startswith("password:")


def test_register_rejects_duplicate_email(client, user):
    response = client.post("/api/auth/register", json={"email": user.email, "password": "long-enough"})
    assert response.status_code == 409


def test_login_with_wrong_password(client, user):
    response = client.post("/api/auth/login", json={"email": user.email, "password": "wrong-password"})
    assert response.status_code == 401
    assert response.get_json()["msg"] == "Invalid credentials"


def test_google_sign_in_creates_then_reuses_account(app):
    verifiers = google_verifier(app, FakeResponse(google_claims()))

    user, created = sign_in_with_provider(app.config, "google", "id-token", verifiers=verifiers)
    assert created is True
    assert user.email == "runner@gmail.com"
    assert user.auth_provider == "google"
    assert user.display_name == "Runner G"

    again, created = sign_in_with_provider(app.config, "google", "id-token", verifiers=verifiers)
    assert created is False
    assert again.id == user.id
    assert User.query.count() == 1


def test_google_token_for_another_client_is_rejected(app):
    verifiers = google_verifier(app, FakeResponse(google_claims(aud="someone-else")))
    with pytest.raises(AuthenticationError):
        sign_in_with_provider(app.config, "google", "id-token", verifiers=verifiers)


def test_google_unreachable(app):
    verifiers = google_verifier(app, requests.ConnectionError("offline"))
    with pytest.raises(ExternalServiceError):
        sign_in_with_provider(app.config, "google", "id-token", verifiers=verifiers)


def test_federated_endpoint(app, client):
    app.extensions["identity_verifiers"] = google_verifier(app, FakeResponse(google_claims()))

    response = client.post("/api/auth/federated", json={"provider": "google", "id_token": "id-token"})
    assert response.status_code == 201
    assert response.get_json()["user"]["auth_provider"] == "google"

    response = client.post("/api/auth/federated", json={"provider": "facebook", "id_token": "id-token"})
    assert response.status_code == 400


def test_register_rejects_non_json_body_with_json_error(client):
    response = client.post("/api/auth/register", data="email=new@example.com", content_type="text/plain")
    assert response.status_code == 400
    assert response.is_json
    assert response.get_json()["msg"].startswith("email:")


def test_register_stores_timezone(client):
    response = client.post("/api/auth/register", json={
        "email": "tokyo@example.com", "password": "long-enough", "timezone": "Asia/Tokyo",
    })
    assert response.status_code == 201
    assert response.get_json()["user"]["timezone"] == "Asia/Tokyo"

    response = client.post("/api/auth/register", json={
        "email": "mars@example.com", "password": "long-enough", "timezone": "Mars/Olympus_Mons",
    })
    assert response.status_code == 400
    assert response.get_json()["msg"].startswith("timezone:")
