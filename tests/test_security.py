import inspect
import uuid
from datetime import timedelta

import pytest
from fastapi.routing import APIRoute
from jose import jwt

from allone.core.config import settings
from allone.core.exceptions import AuthenticationException
from allone.core.security import (
    SecurityUtils,
    get_current_session,
    get_current_user,
    get_optional_user,
    require_admin,
)
from tests.helpers import auth


def test_password_hashing():
    hashed = SecurityUtils.get_password_hash("secret123")

    assert hashed != "secret123"
    assert SecurityUtils.verify_password("secret123", hashed)
    assert not SecurityUtils.verify_password("secret124", hashed)
    assert not SecurityUtils.verify_password("secret123", "not-a-hash")


def test_token_claims():
    token = SecurityUtils.create_access_token(7, "session-id")
    payload = SecurityUtils.decode_token(token)

    assert payload["sub"] == "7"
    assert payload["jti"] == "session-id"


def test_expired_token_rejected():
    token = SecurityUtils.create_access_token(7, "session-id", expires_delta=timedelta(seconds=-1))

    with pytest.raises(AuthenticationException):
        SecurityUtils.decode_token(token)


def test_foreign_signature_rejected(client, user):
    payload = jwt.get_unverified_claims(user["token"])
    forged = jwt.encode(payload, "some-other-secret", algorithm=settings.ALGORITHM)

    assert client.get("/api/auth/me", headers=auth(forged)).status_code == 401


def test_reset_token_hash_is_stable():
    token = SecurityUtils.generate_reset_token()

    assert SecurityUtils.hash_reset_token(token) == SecurityUtils.hash_reset_token(token)
    assert len(SecurityUtils.hash_reset_token(token)) == 64


def test_responses_carry_request_and_security_headers(client):
    response = client.get("/api/health", headers={"X-Request-ID": "trace-123"})

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "trace-123"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.json()["data"]["status"] == "healthy"


def test_detailed_health(client):
    data = client.get("/api/health/detailed").json()["data"]

    assert data["checks"]["database"]["status"] == "healthy"
    assert data["checks"]["storage"]["writable"] is True


def test_malformed_request_id_is_replaced(client):
    response = client.get("/api/health", headers={"X-Request-ID": "<script>alert(1)</script>"})

    assert uuid.UUID(response.headers["X-Request-ID"])


def test_blocking_handlers_run_off_the_event_loop(app):
    handlers = [
        route.endpoint for route in app.routes
        if isinstance(route, APIRoute) and route.path.startswith(settings.API_PREFIX)
    ]

    assert handlers
    for handler in handlers + [get_current_session, get_current_user, get_optional_user, require_admin]:
        assert not inspect.iscoroutinefunction(handler), handler.__name__
