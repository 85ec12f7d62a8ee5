"""Tests for bearer token verification and the user mirror."""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from cardlink.auth.jwt_auth import jwt_manager
from cardlink.db.models import User

from tests.helpers.auth import bearer_headers


@pytest.mark.unit
class TestTokenVerification:
    """Failures surface as 401 envelopes."""

    def test_missing_credentials(self, client):
        response = client.get("/api/profiles")

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Not authenticated"
        assert body["error"] == "Unauthorized"
        assert response.headers["www-authenticate"] == "Bearer"

    def test_expired_token(self, client):
        token = jwt_manager.create_access_token(uuid.uuid4(), expires_minutes=-5)

        response = client.get("/api/profiles", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["message"] == "Access token has expired"

    def test_garbage_token(self, client):
        response = client.get("/api/profiles", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid access token"

    def test_foreign_signing_key(self, client):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            "Zk3pQ8wX1vN6mB4tR7yL2cH9jF5dS0gAeUiOoP",
            algorithm="HS256",
        )

        response = client.get("/api/profiles", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_non_access_token_type(self, client):
        token = jwt.encode(
            {
                "sub": str(uuid.uuid4()),
                "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
                "type": "refresh",
            },
            jwt_manager.secret_key,
            algorithm=jwt_manager.algorithm,
        )

        response = client.get("/api/profiles", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token type"

    def test_subject_must_be_uuid(self, client):
        token = jwt.encode(
            {"sub": "jane", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            jwt_manager.secret_key,
            algorithm=jwt_manager.algorithm,
        )

        response = client.get("/api/profiles", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token subject"

    def test_verify_returns_user_id(self):
        user_id = uuid.uuid4()
        token = jwt_manager.create_access_token(user_id, email="jane@example.com")

        payload = jwt_manager.verify_access_token(token)

        assert payload["user_id"] == user_id
        assert payload["email"] == "jane@example.com"
        assert payload["role"] == "user"


@pytest.mark.unit
class TestUserMirror:
    """First sight of an identity creates the local user row."""

    def test_user_is_registered_and_updated(self, client, db_session):
        user_id = uuid.uuid4()

        response = client.get("/api/profiles", headers=bearer_headers(user_id, email="jane@example.com"))
        assert response.status_code == 200

        user = db_session.get(User, user_id)
        assert user is not None
        assert user.email == "jane@example.com"
        assert user.role == "user"

        client.get(
            "/api/profiles",
            headers=bearer_headers(user_id, role="admin", email="jane@corp.example", first_name="Jane"),
        )
        db_session.expire_all()
        user = db_session.get(User, user_id)
        assert user.email == "jane@corp.example"
        assert user.first_name == "Jane"
        assert user.role == "admin"

    def test_unknown_role_claim_is_downgraded(self, client, db_session):
        user_id = uuid.uuid4()

        client.get("/api/profiles", headers=bearer_headers(user_id, role="superuser"))

        assert db_session.get(User, user_id).role == "user"

    def test_admin_routes_reject_regular_users(self, client, auth_headers):
        response = client.get("/api/dashboard/admin/stats", headers=auth_headers)

        assert response.status_code == 403
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Access denied. Admin only."
        assert body["error"] == "Forbidden"
