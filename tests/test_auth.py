"""Tests for registration, activation, login, sessions and password reset."""

from datetime import UTC, datetime, timedelta

import pytest

from fakturace.core.config import settings
from fakturace.core.errors import AuthenticationError, ValidationError
from fakturace.core.security import create_session_token, verify_password
from fakturace.models.auth_token import EmailVerificationToken, PasswordResetToken
from fakturace.models.subscription import UserSubscription
from fakturace.models.user import User
from fakturace.repositories.auth_token_repository import AuthTokenRepository
from fakturace.schemas.auth import RegisterRequest
from fakturace.services.auth_service import AuthService, is_bot_submission
from tests.conftest import TEST_PASSWORD, auth_headers, make_user


def _registration(**overrides) -> dict:
    payload = {
        "name": "Petra Svobodová",
        "contact_email": "Petra@Example.com",
        "password": "bezpecneheslo",
        "password_confirm": "bezpecneheslo",
        "math_num1": 3,
        "math_num2": 4,
        "math_answer": 7,
    }
    payload.update(overrides)
    return payload


def _user_by_email(db, email: str) -> User | None:
    return db.query(User).filter(User.contact_email == email).first()


class TestAntiBot:
    def test_correct_answer_passes(self) -> None:
        assert not is_bot_submission(RegisterRequest(**_registration()))

    def test_honeypot(self) -> None:
        assert is_bot_submission(RegisterRequest(**_registration(my_name="bot")))

    def test_wrong_answer(self) -> None:
        assert is_bot_submission(RegisterRequest(**_registration(math_answer=8)))

    def test_missing_question(self) -> None:
        assert is_bot_submission(RegisterRequest(**_registration(math_num1=None)))

    def test_string_numbers(self) -> None:
        request = RegisterRequest(**_registration(math_num1="3", math_num2=" 4", math_answer="7"))
        assert not is_bot_submission(request)


class TestRegister:
    def test_creates_inactive_account_on_free_plan(self, client, db_session) -> None:
        response = client.post("/api/auth/register", json=_registration())
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["user"]["contact_email"] == "petra@example.com"

        user = _user_by_email(db_session, "petra@example.com")
        assert user.activated_at is None
        assert user.role == "user"
        assert verify_password("bezpecneheslo", user.password_hash)
        assert db_session.query(UserSubscription).filter_by(user_id=user.id).count() == 1
        tokens = AuthTokenRepository(db_session, EmailVerificationToken).get_for_user(user.id)
        assert len(tokens) == 1

    def test_bot_gets_success_without_account(self, client, db_session) -> None:
        response = client.post("/api/auth/register", json=_registration(math_answer=99))
        assert response.status_code == 200
        assert response.json()["data"]["user"]["id"] is None
        assert _user_by_email(db_session, "petra@example.com") is None

    @pytest.mark.parametrize(
        ("overrides", "message"),
        [
            ({"name": ""}, "povinná pole"),
            ({"contact_email": "petra"}, "formát"),
            ({"password_confirm": "jineheslo"}, "neshodují"),
            ({"password": "kratke", "password_confirm": "kratke"}, "alespoň"),
        ],
    )
    def test_invalid_fields(self, client, overrides, message) -> None:
        response = client.post("/api/auth/register", json=_registration(**overrides))
        assert response.status_code == 400
        assert message in response.json()["error"]

    def test_duplicate_email(self, client, user) -> None:
        response = client.post(
            "/api/auth/register", json=_registration(contact_email=user.contact_email)
        )
        assert response.status_code == 400
        assert "již existuje" in response.json()["error"]

    def test_admin_email_promoted(self, client, db_session, monkeypatch) -> None:
        monkeypatch.setattr(settings, "ADMIN_EMAILS", "petra@example.com, boss@example.com")
        client.post("/api/auth/register", json=_registration())
        assert _user_by_email(db_session, "petra@example.com").role == "admin"


class TestVerifyEmail:
    def _register(self, client, db_session) -> tuple[User, str]:
        client.post("/api/auth/register", json=_registration())
        user = _user_by_email(db_session, "petra@example.com")
        record = AuthTokenRepository(db_session, EmailVerificationToken).get_for_user(user.id)[0]
        return user, record.token

    def test_activates(self, client, db_session) -> None:
        user, token = self._register(client, db_session)
        response = client.get(f"/api/auth/verify-email/{token}")
        assert response.status_code == 200
        assert response.json()["message"] == "Účet byl úspěšně aktivován"
        db_session.refresh(user)
        assert user.activated_at is not None

    def test_unknown_token(self, client) -> None:
        response = client.get("/api/auth/verify-email/nesmysl")
        assert response.status_code == 400

    def test_expired_token(self, db_session) -> None:
        user = make_user(db_session, email="pozde@example.com", activated=False)
        AuthTokenRepository(db_session, EmailVerificationToken).replace_for_user(
            user.id, "expired-token", datetime.now(UTC) - timedelta(minutes=1)
        )
        with pytest.raises(ValidationError, match="vypršel"):
            AuthService(db_session).verify_email("expired-token")

    def test_resend_is_neutral_for_unknown(self, client) -> None:
        response = client.post(
            "/api/auth/resend-verification", json={"contact_email": "nikdo@example.com"}
        )
        assert response.status_code == 200
        assert "Pokud účet existuje" in response.json()["message"]


class TestLogin:
    def test_sets_cookie_and_returns_token(self, client, user) -> None:
        response = client.post(
            "/api/auth/login",
            json={"contact_email": user.contact_email, "password": TEST_PASSWORD},
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["id"] == str(user.id)
        assert data["token"]
        assert settings.SESSION_COOKIE_NAME in response.cookies

    def test_email_is_case_insensitive(self, client, user) -> None:
        response = client.post(
            "/api/auth/login",
            json={"contact_email": user.contact_email.upper(), "password": TEST_PASSWORD},
        )
        assert response.status_code == 200

    def test_wrong_password(self, client, user) -> None:
        response = client.post(
            "/api/auth/login",
            json={"contact_email": user.contact_email, "password": "spatne-heslo"},
        )
        assert response.status_code == 401
        assert response.json()["error"] == "Neplatný email nebo heslo"

    def test_missing_fields(self, client) -> None:
        response = client.post("/api/auth/login", json={"contact_email": "a@example.com"})
        assert response.status_code == 400

    def test_not_activated(self, db_session) -> None:
        make_user(db_session, email="novy@example.com", activated=False)
        with pytest.raises(AuthenticationError) as exc_info:
            AuthService(db_session).login("novy@example.com", TEST_PASSWORD)
        assert exc_info.value.error_code == "ACCOUNT_NOT_ACTIVATED"

    def test_deactivated(self, client, db_session) -> None:
        make_user(db_session, email="pryc@example.com", deactivated_at=datetime.now(UTC))
        response = client.post(
            "/api/auth/login",
            json={"contact_email": "pryc@example.com", "password": TEST_PASSWORD},
        )
        assert response.status_code == 401
        assert response.json()["errorCode"] == "ACCOUNT_DEACTIVATED"

    def test_records_last_login(self, db_session, user) -> None:
        AuthService(db_session).login(user.contact_email, TEST_PASSWORD)
        db_session.refresh(user)
        assert user.last_login is not None

    def test_logout_clears_cookie(self, client) -> None:
        response = client.post("/api/auth/logout")
        assert response.status_code == 200
        assert settings.SESSION_COOKIE_NAME in response.headers["set-cookie"]


class TestSession:
    def test_cookie_session(self, client, user) -> None:
        token = create_session_token(user.id, user.role)
        client.cookies.set(settings.SESSION_COOKIE_NAME, token)
        assert client.get("/api/user/profile").status_code == 200

    def test_expired_session(self, client, user) -> None:
        token = create_session_token(user.id, user.role, now=datetime(2020, 1, 1, tzinfo=UTC))
        response = client.get(
            "/api/user/profile", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401
        assert "vypršela" in response.json()["error"]

    def test_garbage_token(self, client) -> None:
        response = client.get("/api/user/profile", headers={"Authorization": "Bearer xyz"})
        assert response.status_code == 401

    def test_deactivated_user_logged_out(self, client, db_session, user) -> None:
        headers = auth_headers(user)
        user.deactivated_at = datetime.now(UTC)
        db_session.commit()
        assert client.get("/api/user/profile", headers=headers).status_code == 401


class TestPasswordReset:
    def test_full_flow(self, client, db_session, user) -> None:
        response = client.post(
            "/api/auth/reset-password-request", json={"contact_email": user.contact_email}
        )
        assert response.status_code == 200
        record = AuthTokenRepository(db_session, PasswordResetToken).get_for_user(user.id)[0]

        response = client.post(
            "/api/auth/reset-password",
            json={
                "token": record.token,
                "password": "noveheslo123",
                "password_confirm": "noveheslo123",
            },
        )
        assert response.status_code == 200
        db_session.refresh(user)
        assert verify_password("noveheslo123", user.password_hash)
        assert AuthTokenRepository(db_session, PasswordResetToken).get_for_user(user.id) == []

    def test_unknown_email_same_answer(self, client, user) -> None:
        known = client.post(
            "/api/auth/reset-password-request", json={"contact_email": user.contact_email}
        ).json()
        unknown = client.post(
            "/api/auth/reset-password-request", json={"contact_email": "nikdo@example.com"}
        ).json()
        assert known["message"] == unknown["message"]

    def test_expired_token_removed(self, db_session, user) -> None:
        repo = AuthTokenRepository(db_session, PasswordResetToken)
        repo.replace_for_user(user.id, "old-token", datetime.now(UTC) - timedelta(hours=2))
        with pytest.raises(ValidationError, match="vypršel"):
            AuthService(db_session).reset_password("old-token", "noveheslo123")
        assert repo.get_by_token("old-token") is None

    def test_short_password(self, db_session) -> None:
        with pytest.raises(ValidationError, match="alespoň"):
            AuthService(db_session).reset_password("token", "kratke")

    def test_mismatched_confirmation(self, client) -> None:
        response = client.post(
            "/api/auth/reset-password",
            json={"token": "t", "password": "noveheslo123", "password_confirm": "jine12345"},
        )
        assert response.status_code == 400
