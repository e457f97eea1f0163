import logging
from typing import Any, Dict, Optional

from fastapi_mail import FastMail, MessageSchema, MessageType

from ..core.config import Settings
from ..mails.send_mail import build_mailer


logger = logging.getLogger(__name__)


class EmailService:
    """
    Outbound email. Nothing is sent unless ``MAIL_ENABLED`` is set; the mailer
    is only built on first use.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._mail: Optional[FastMail] = None

    @property
    def enabled(self) -> bool:
        return self.settings.MAIL_ENABLED

    @property
    def configured(self) -> bool:
        s = self.settings
        return all([s.MAIL_SERVER, s.MAIL_FROM, s.MAIL_USERNAME, s.MAIL_PASSWORD])

    def status(self) -> Dict[str, Any]:
        """Delivery configuration, without secrets."""
        return {
            "enabled": self.enabled,
            "configured": self.configured,
            "server": self.settings.MAIL_SERVER,
            "port": self.settings.MAIL_PORT,
            "from_address": self.settings.MAIL_FROM,
        }

    @property
    def mail(self) -> FastMail:
        if self._mail is None:
            self._mail = build_mailer(self.settings)
        return self._mail

    async def send_template_email(
        self,
        to_email: str,
        subject: str,
        template_name: str,
        context: Dict[str, Any]
    ) -> bool:
        """
        Sends an email using a template with provided context.

        Args:
            to_email (str): Recipient email address
            subject (str): Email subject
            template_name (str): Name of the template file (e.g., "order-confirmation.html")
            context (Dict[str, Any]): Context variables for the template

        Returns:
            bool: True if email was sent successfully, False otherwise
        """
        if not self.enabled:
            logger.debug("Mail disabled, skipping '%s' to %s", subject, to_email)
            return False

        message = MessageSchema(
            subject=subject,
            recipients=[to_email],
            template_body=context,
            subtype=MessageType.html,
        )

        # runs as a background task, so a delivery failure must not escape
        try:
            await self.mail.send_message(message, template_name=template_name)
        except Exception:
            logger.exception("Failed to send '%s' to %s", subject, to_email)
            return False

        logger.info("Sent '%s' to %s", subject, to_email)
        return True

    async def send_password_reset(self, to_email: str, first_name: str, token: str) -> bool:
        context = {
            "first_name": first_name,
            "reset_url": f"{self.settings.FRONTEND_URL}/reset-password?token={token}",
            "expires_minutes": self.settings.PASSWORD_RESET_EXPIRY // 60,
        }
        return await self.send_template_email(to_email, "Reset your password", "password-reset.html", context)

    async def send_email_verification(self, to_email: str, first_name: str, token: str) -> bool:
        context = {
            "first_name": first_name,
            "verification_url": f"{self.settings.FRONTEND_URL}/verify-email/{token}",
            "expires_hours": self.settings.EMAIL_VERIFICATION_EXPIRY // 3600,
        }
        return await self.send_template_email(
            to_email, "Verify your email address", "email-verification.html", context
        )

    async def send_order_confirmation(self, to_email: str, first_name: str, order_data: Dict[str, Any]) -> bool:
        context = {"first_name": first_name, **order_data}
        return await self.send_template_email(
            to_email,
            f"Order confirmation - {order_data['order_number']}",
            "order-confirmation.html",
            context,
        )
