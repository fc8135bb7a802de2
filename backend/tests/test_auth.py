"""Test authentication utilities and dependencies."""

from datetime import timedelta

import pytest
from app.auth import AUTH_COOKIE_NAME, actor_from_payload, create_access_token, decode_token
from app.config import get_settings
from fastapi import HTTPException


class TestTokens:
    """Test JWT creation and decoding."""

    def test_create_and_decode_token(self):
        """Test JWT token creation and decoding."""
        settings = get_settings()

        token = create_access_token("customer-1", settings)
        payload = decode_token(token, settings)

        assert payload["sub"] == "customer-1"
        assert payload["type"] == "access"
        assert "exp" in payload
        assert "iat" in payload
        assert "wallet" not in payload

    def test_alias_claims(self):
        """Test wallet and email claims are carried when given."""
        settings = get_settings()

        token = create_access_token(
            "worker-1", settings, wallet="0xworker1", email="courier@example.com"
        )
        payload = decode_token(token, settings)

        assert payload["wallet"] == "0xworker1"
        assert payload["email"] == "courier@example.com"

    def test_expired_token(self):
        settings = get_settings()
        token = create_access_token("worker-1", settings, expires_delta=timedelta(seconds=-1))

        with pytest.raises(HTTPException) as exc:
            decode_token(token, settings)
        assert exc.value.status_code == 401

    def test_wrong_secret(self):
        settings = get_settings()
        token = create_access_token("worker-1", settings)
        other = settings.model_copy(update={"jwt_secret_key": "some-other-secret"})

        with pytest.raises(HTTPException):
            decode_token(token, other)


class TestActorFromPayload:
    def test_all_identifiers(self):
        actor = actor_from_payload(
            {"sub": "worker-1", "wallet": "0xworker1", "email": "courier@example.com"}
        )

        assert actor.id == "worker-1"
        assert actor.wallet == "0xworker1"
        assert actor.email == "courier@example.com"

    def test_missing_subject(self):
        with pytest.raises(HTTPException) as exc:
            actor_from_payload({"wallet": "0xworker1"})
        assert exc.value.status_code == 401


class TestAuthDependencies:
    """Test how routes resolve the caller."""

    def test_cookie_auth(self, client):
        token = create_access_token("customer-1", get_settings(), wallet="0xcustomer1")
        client.cookies.set(AUTH_COOKIE_NAME, token)

        response = client.get("/api/jobs/mine")

        assert response.status_code == 200
        assert response.json()["count"] == 0

    def test_optional_auth_rejects_bad_token(self, client):
        """Test a bad token is rejected even where auth is optional."""
        response = client.get("/api/jobs", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Invalid or expired token"}

    def test_anonymous_allowed_on_public_reads(self, client):
        assert client.get("/api/jobs").status_code == 200
