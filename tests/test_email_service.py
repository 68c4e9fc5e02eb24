"""Tests for EmailService – SMTP sending, no-op mode and account e-mails."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import aiosmtplib
import pytest

from fakturace.services.email_service import EmailService


def _make_user(**overrides):  # type: ignore[no-untyped-def]
    defaults = {"id": "user-1", "name": "Jan Novák", "contact_email": "jan@example.com"}
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


def _smtp_settings(mock_settings) -> None:  # type: ignore[no-untyped-def]
    mock_settings.SMTP_HOST = "smtp.example.com"
    mock_settings.SMTP_PORT = 587
    mock_settings.SMTP_USERNAME = "user"
    mock_settings.SMTP_PASSWORD = "pass"
    mock_settings.SMTP_FROM_EMAIL = "info@fakturace.example.com"
    mock_settings.SMTP_FROM_NAME = "Fakturace"
    mock_settings.SMTP_USE_TLS = True
    mock_settings.APP_NAME = "Fakturace"
    mock_settings.APP_URL = "https://fakturace.example.com/"
    mock_settings.EMAIL_VERIFICATION_TTL_HOURS = 1
    mock_settings.PASSWORD_RESET_TTL_HOURS = 1


class TestSendEmailNoOp:
    """When SMTP_HOST is empty, send_email should log and return True."""

    @pytest.mark.asyncio
    async def test_returns_true_when_smtp_unconfigured(self) -> None:
        mock_send = AsyncMock()
        with (
            patch("fakturace.services.email_service.settings") as mock_settings,
            patch("aiosmtplib.send", mock_send),
        ):
            mock_settings.SMTP_HOST = ""
            result = await EmailService().send_email(
                to="jan@example.com", subject="Test", html_body="<p>Ahoj</p>", text_body="Ahoj"
            )
        assert result is True
        mock_send.assert_not_called()


class TestSendEmailSmtp:
    @pytest.mark.asyncio
    async def test_sends_email_via_smtp(self) -> None:
        mock_send = AsyncMock()
        with (
            patch("fakturace.services.email_service.settings") as mock_settings,
            patch("aiosmtplib.send", mock_send),
        ):
            _smtp_settings(mock_settings)
            result = await EmailService().send_email(
                to="jan@example.com", subject="Předmět", html_body="<p>Ahoj</p>", text_body="Ahoj"
            )

        assert result is True
        mock_send.assert_called_once()
        msg = mock_send.call_args.args[0]
        assert msg["To"] == "jan@example.com"
        assert msg["From"] == "Fakturace <info@fakturace.example.com>"
        call_kwargs = mock_send.call_args.kwargs
        assert call_kwargs["hostname"] == "smtp.example.com"
        assert call_kwargs["port"] == 587
        assert call_kwargs["start_tls"] is True

    @pytest.mark.asyncio
    async def test_empty_credentials_passed_as_none(self) -> None:
        mock_send = AsyncMock()
        with (
            patch("fakturace.services.email_service.settings") as mock_settings,
            patch("aiosmtplib.send", mock_send),
        ):
            _smtp_settings(mock_settings)
            mock_settings.SMTP_USERNAME = ""
            mock_settings.SMTP_PASSWORD = ""
            await EmailService().send_email("jan@example.com", "Test", "<p>x</p>", "x")

        call_kwargs = mock_send.call_args.kwargs
        assert call_kwargs["username"] is None
        assert call_kwargs["password"] is None

    @pytest.mark.asyncio
    async def test_smtp_failure_returns_false(self) -> None:
        mock_send = AsyncMock(side_effect=aiosmtplib.SMTPException("refused"))
        with (
            patch("fakturace.services.email_service.settings") as mock_settings,
            patch("aiosmtplib.send", mock_send),
        ):
            _smtp_settings(mock_settings)
            result = await EmailService().send_email("jan@example.com", "Test", "<p>x</p>", "x")
        assert result is False

    @pytest.mark.asyncio
    async def test_connection_error_returns_false(self) -> None:
        mock_send = AsyncMock(side_effect=OSError("unreachable"))
        with (
            patch("fakturace.services.email_service.settings") as mock_settings,
            patch("aiosmtplib.send", mock_send),
        ):
            _smtp_settings(mock_settings)
            result = await EmailService().send_email("jan@example.com", "Test", "<p>x</p>", "x")
        assert result is False


class TestAccountEmails:
    @pytest.mark.asyncio
    async def test_verification_link(self) -> None:
        service = EmailService()
        with (
            patch("fakturace.services.email_service.settings") as mock_settings,
            patch.object(service, "send_email", AsyncMock(return_value=True)) as mock_send,
        ):
            _smtp_settings(mock_settings)
            assert await service.send_verification_email(_make_user(), "abc123")

        to, subject, html_body, text_body = mock_send.call_args.args
        assert to == "jan@example.com"
        assert subject == "Potvrzení registrace - Fakturace"
        assert "https://fakturace.example.com/verify-email/abc123" in html_body
        assert "https://fakturace.example.com/verify-email/abc123" in text_body
        assert "Dobrý den Jan Novák" in text_body

    @pytest.mark.asyncio
    async def test_password_reset_link(self) -> None:
        service = EmailService()
        with (
            patch("fakturace.services.email_service.settings") as mock_settings,
            patch.object(service, "send_email", AsyncMock(return_value=False)) as mock_send,
        ):
            _smtp_settings(mock_settings)
            assert not await service.send_password_reset_email(_make_user(), "tok")

        html_body = mock_send.call_args.args[2]
        assert "/reset-password/tok" in html_body
        assert "platný 1 h" in html_body
