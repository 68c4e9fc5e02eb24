"""Email service for sending account emails via SMTP."""

from __future__ import annotations

import logging
from email.message import EmailMessage
from string import Template
from typing import TYPE_CHECKING

from fakturace.core.config import settings

if TYPE_CHECKING:
    from fakturace.models.user import User

logger = logging.getLogger(__name__)

_LAYOUT = Template("""\
<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
  <div style="background-color: #f8f9fa; padding: 20px; border-radius: 8px;">
    <h1 style="color: #2563eb; margin-top: 0;">$heading</h1>
    <p>Dobrý den $name,</p>
    <p>$intro</p>
    <p style="text-align: center; margin: 30px 0;">
      <a href="$link" style="background-color: #2563eb; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; font-weight: bold;">$button</a>
    </p>
    <p>Nebo zkopírujte a vložte tento odkaz do prohlížeče:</p>
    <p style="word-break: break-all; color: #666; font-size: 14px;">$link</p>
    <p style="color: #666; font-size: 14px;"><strong>Důležité:</strong> $notice</p>
  </div>
  <p style="text-align: center; color: #999; font-size: 12px;">$app_name - Fakturační systém</p>
</body>
</html>
""")


class EmailService:
    """Service for sending transactional emails via SMTP."""

    async def send_email(self, to: str, subject: str, html_body: str, text_body: str) -> bool:
        """Send an email via SMTP.

        Returns:
            True if sent (or a no-op because SMTP is not configured), False if
            the SMTP server refused or could not be reached.
        """
        if not settings.SMTP_HOST:
            logger.info("SMTP not configured, skipping email to %s: %s", to, subject)
            return True

        import aiosmtplib

        msg = EmailMessage()
        msg["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(text_body)
        msg.add_alternative(html_body, subtype="html")

        try:
            await aiosmtplib.send(
                msg,
                hostname=settings.SMTP_HOST,
                port=settings.SMTP_PORT,
                username=settings.SMTP_USERNAME or None,
                password=settings.SMTP_PASSWORD or None,
                start_tls=settings.SMTP_USE_TLS,
            )
        except (aiosmtplib.SMTPException, OSError):
            logger.exception("Failed to send email to %s: %s", to, subject)
            return False
        logger.info("Email sent to %s: %s", to, subject)
        return True

    async def _send_link(
        self,
        user: User,
        subject: str,
        heading: str,
        intro: str,
        button: str,
        link: str,
        notice: str,
    ) -> bool:
        html_body = _LAYOUT.substitute(
            heading=heading,
            name=user.name,
            intro=intro,
            link=link,
            button=button,
            notice=notice,
            app_name=settings.APP_NAME,
        )
        text_body = f"{heading}\n\nDobrý den {user.name},\n\n{intro}\n\n{link}\n\n{notice}\n"
        return await self.send_email(str(user.contact_email), subject, html_body, text_body)

    async def send_verification_email(self, user: User, token: str) -> bool:
        hours = settings.EMAIL_VERIFICATION_TTL_HOURS
        return await self._send_link(
            user,
            subject=f"Potvrzení registrace - {settings.APP_NAME}",
            heading=f"Vítejte v {settings.APP_NAME}!",
            intro=(
                "Děkujeme za registraci. Pro dokončení registrace a aktivaci "
                "vašeho účtu prosím klikněte na odkaz níže."
            ),
            button="Aktivovat účet",
            link=f"{settings.APP_URL.rstrip('/')}/verify-email/{token}",
            notice=(
                f"Tento odkaz je platný {hours} h. Pokud odkaz vypršel, "
                "můžete požádat o nový aktivační email."
            ),
        )

    async def send_password_reset_email(self, user: User, token: str) -> bool:
        hours = settings.PASSWORD_RESET_TTL_HOURS
        return await self._send_link(
            user,
            subject=f"Obnovení hesla - {settings.APP_NAME}",
            heading="Obnovení hesla",
            intro=(
                "Obdrželi jsme žádost o obnovení hesla pro váš účet. "
                "Pro nastavení nového hesla klikněte na odkaz níže."
            ),
            button="Obnovit heslo",
            link=f"{settings.APP_URL.rstrip('/')}/reset-password/{token}",
            notice=(
                f"Tento odkaz je platný {hours} h. Pokud jste o obnovení hesla "
                "nepožádali, můžete tento email ignorovat."
            ),
        )
