from datetime import timedelta
from urllib.parse import parse_qs, urlparse

from allone.core.config import settings
from allone.main import run_maintenance_sweep
from allone.models.user import User, UserSession
from allone.services.auth import AuthService
from allone.utils.validators import utcnow
from tests.helpers import PASSWORD, PNG_BYTES, auth, login, register


def session_count(database):
    with database.session() as db:
        return db.query(UserSession).count()


def user_count(database):
    with database.session() as db:
        return db.query(User).count()


class TestRegister:
    def test_returns_token_and_public_user(self, client):
        data = register(client, "Ayşe Yılmaz", "Ayse@School.edu")

        assert data["token"]
        user = data["user"]
        assert user["email"] == "ayse@school.edu"
        assert user["role"] == "user"
        assert user["isActive"] is True
        assert user["level"] == 1 and user["points"] == 0
        assert "hashedPassword" not in user and "password" not in user

    def test_duplicate_email_is_conflict(self, client, database, user):
        before = user_count(database)

        response = client.post(
            "/api/auth/register",
            json={"name": "Someone Else", "email": "AYSE@school.edu", "password": PASSWORD},
        )

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "DUPLICATE_ERROR"
        assert user_count(database) == before

    def test_duplicate_that_slips_past_the_lookup_is_still_conflict(self, client, database, user, monkeypatch):
        monkeypatch.setattr(AuthService, "get_by_email", staticmethod(lambda db, email: None))

        response = client.post(
            "/api/auth/register",
            json={"name": "Someone Else", "email": "ayse@school.edu", "password": PASSWORD},
        )

        assert response.status_code == 409
        assert response.json()["code"] == "DUPLICATE_ERROR"
        assert user_count(database) == 1

    def test_short_password_rejected(self, client):
        response = client.post(
            "/api/auth/register", json={"name": "Ali Veli", "email": "ali@school.edu", "password": "123"}
        )

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_malformed_email_rejected(self, client):
        response = client.post(
            "/api/auth/register", json={"name": "Ali Veli", "email": "not-an-email", "password": PASSWORD}
        )

        assert response.status_code == 422


class TestLogin:
    def test_success_opens_session(self, client, database, user):
        before = session_count(database)

        data = login(client, "ayse@school.edu")

        assert data["user"]["lastLogin"] is not None
        assert session_count(database) == before + 1
        me = client.get("/api/auth/me", headers=auth(data))
        assert me.status_code == 200
        profile = me.json()["data"]
        assert profile["email"] == "ayse@school.edu"
        assert profile["name"] == "Ayşe Yılmaz"
        assert not {"password", "hashedPassword", "passwordResetToken"} & set(profile)
        assert PASSWORD not in me.text

    def test_wrong_password_and_unknown_email_look_the_same(self, client, database, user):
        before = session_count(database)

        wrong = client.post("/api/auth/login", json={"email": "ayse@school.edu", "password": "wrong-pass"})
        unknown = client.post("/api/auth/login", json={"email": "nobody@school.edu", "password": PASSWORD})

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json()["error"] == unknown.json()["error"] == "Invalid credentials"
        assert session_count(database) == before


class TestTokens:
    def test_missing_token(self, client):
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_garbage_token(self, client):
        response = client.get("/api/auth/me", headers=auth("not.a.jwt"))

        assert response.status_code == 401

    def test_logout_revokes_token(self, client, user):
        assert client.post("/api/auth/logout", headers=auth(user)).status_code == 200

        response = client.get("/api/auth/me", headers=auth(user))
        assert response.status_code == 401

    def test_revoked_session_rejected(self, client, user):
        second = login(client, "ayse@school.edu")
        sessions = client.get("/api/auth/sessions", headers=auth(second)).json()["data"]
        assert len(sessions) == 2
        first_session = next(s for s in sessions if not s["current"])

        response = client.delete(f"/api/auth/sessions/{first_session['id']}", headers=auth(second))

        assert response.status_code == 200
        assert client.get("/api/auth/me", headers=auth(user)).status_code == 401
        assert client.get("/api/auth/me", headers=auth(second)).status_code == 200

    def test_logout_all(self, client, user):
        second = login(client, "ayse@school.edu")

        response = client.post("/api/auth/logout-all", headers=auth(second))

        assert response.json()["data"]["revoked"] == 2
        assert client.get("/api/auth/me", headers=auth(user)).status_code == 401
        assert client.get("/api/auth/me", headers=auth(second)).status_code == 401

    def test_disabled_account(self, client, user, admin):
        response = client.put(f"/api/admin/users/{user['user']['id']}/status", headers=auth(admin))
        assert response.json()["data"]["isActive"] is False

        assert client.get("/api/auth/me", headers=auth(user)).status_code == 403
        relogin = client.post("/api/auth/login", json={"email": "ayse@school.edu", "password": PASSWORD})
        assert relogin.status_code == 401


class TestSessionExpiry:
    def _expire(self, database, user_id=None):
        with database.session() as db:
            query = db.query(UserSession)
            if user_id is not None:
                query = query.filter(UserSession.user_id == user_id)
            for session in query:
                session.expires_at = utcnow() - timedelta(minutes=1)

    def test_expired_session_rejected_and_removed(self, client, database, user):
        self._expire(database)

        assert client.get("/api/auth/me", headers=auth(user)).status_code == 401
        assert session_count(database) == 0

    def test_login_drops_expired_sessions(self, client, database, user):
        self._expire(database)

        login(client, "ayse@school.edu")

        assert session_count(database) == 1

    def test_scheduled_sweep_drops_expired_sessions(self, client, database, user, other_user):
        self._expire(database, user["user"]["id"])

        result = run_maintenance_sweep(database)

        assert result["expired_sessions"] == 1
        assert session_count(database) == 1
        assert client.get("/api/auth/me", headers=auth(other_user)).status_code == 200


class TestPasswords:
    def test_change_password_revokes_other_sessions(self, client, user):
        second = login(client, "ayse@school.edu")

        response = client.post(
            "/api/auth/change-password",
            json={"currentPassword": PASSWORD, "newPassword": "brand-new-pass"},
            headers=auth(second),
        )

        assert response.status_code == 200
        assert response.json()["data"]["revokedSessions"] == 1
        assert client.get("/api/auth/me", headers=auth(user)).status_code == 401
        assert client.get("/api/auth/me", headers=auth(second)).status_code == 200
        login(client, "ayse@school.edu", "brand-new-pass")

    def test_change_password_needs_current_password(self, client, user):
        response = client.post(
            "/api/auth/change-password",
            json={"currentPassword": "wrong-pass", "newPassword": "brand-new-pass"},
            headers=auth(user),
        )

        assert response.status_code == 400

    def test_forgot_and_reset(self, client, user, monkeypatch):
        monkeypatch.setattr(settings, "DEBUG", True)

        response = client.post("/api/auth/forgot-password", json={"email": "ayse@school.edu"})
        reset_url = response.json()["data"]["resetUrl"]
        token = parse_qs(urlparse(reset_url).query)["token"][0]

        too_short = client.post(
            "/api/auth/reset-password", json={"token": token, "email": "ayse@school.edu", "password": "short"}
        )
        assert too_short.status_code == 422

        reset = client.post(
            "/api/auth/reset-password",
            json={"token": token, "email": "ayse@school.edu", "password": "reset-pass-1"},
        )
        assert reset.status_code == 200
        assert client.get("/api/auth/me", headers=auth(user)).status_code == 401
        login(client, "ayse@school.edu", "reset-pass-1")

        reused = client.post(
            "/api/auth/reset-password",
            json={"token": token, "email": "ayse@school.edu", "password": "another-pass"},
        )
        assert reused.status_code == 400

    def test_forgot_password_does_not_reveal_accounts(self, client, user):
        known = client.post("/api/auth/forgot-password", json={"email": "ayse@school.edu"}).json()
        unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@school.edu"}).json()

        assert known == unknown
        assert "data" not in known


class TestProfile:
    def test_update_profile(self, client, user):
        response = client.put(
            "/api/auth/profile",
            json={
                "department": "Bilgisayar Mühendisliği",
                "year": 2,
                "interests": "algoritmalar, matematik",
                "privacy": {"emailVisibility": True},
            },
            headers=auth(user),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["department"] == "Bilgisayar Mühendisliği"
        assert data["year"] == "2"
        assert data["interests"] == ["algoritmalar", "matematik"]
        assert data["privacy"] == {"profileVisibility": "public", "emailVisibility": True, "showActivity": True}

    def test_email_already_in_use(self, client, user, other_user):
        response = client.put("/api/auth/profile", json={"email": "mehmet@school.edu"}, headers=auth(user))

        assert response.status_code == 409

    def test_avatar_upload(self, client, user, upload_dir):
        response = client.post(
            "/api/auth/avatar",
            files={"avatar": ("me.png", PNG_BYTES, "image/png")},
            headers=auth(user),
        )

        assert response.status_code == 200
        avatar = response.json()["data"]["avatar"]
        assert avatar.startswith("http://testserver/uploads/avatars/avatar-")
        assert (upload_dir / "avatars" / avatar.rsplit("/", 1)[-1]).read_bytes() == PNG_BYTES

    def test_avatar_must_be_an_image(self, client, user, upload_dir):
        response = client.post(
            "/api/auth/avatar",
            files={"avatar": ("me.txt", b"hello", "text/plain")},
            headers=auth(user),
        )

        assert response.status_code == 415
        assert list((upload_dir / "avatars").iterdir()) == []


def test_stats(client, user):
    response = client.get("/api/auth/stats", headers=auth(user))

    assert response.status_code == 200
    assert response.json()["data"] == {
        "notesCount": 0,
        "totalDownloads": 0,
        "postsCount": 0,
        "answersCount": 0,
        "totalLikesReceived": 0,
        "points": 0,
        "level": 1,
    }
