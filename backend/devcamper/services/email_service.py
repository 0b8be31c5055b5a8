"""
DevCamper API: Outbound Email
==============================

What:  Sends plain-text transactional email (password reset links).
How:   smtplib in a worker thread so the event loop is never blocked.
       STARTTLS is used when the server offers it; login only when SMTP
       credentials are configured.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from devcamper.config import settings
from devcamper.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


class EmailService:
    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout

    def _build(self, to: str, subject: str, text: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = f"{settings.from_name} <{settings.from_email}>"
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text)
        return message

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=self.timeout) as smtp:
            smtp.ehlo()
            if smtp.has_extn("starttls"):
                smtp.starttls()
                smtp.ehlo()
            if settings.smtp_email:
                smtp.login(settings.smtp_email, settings.smtp_password)
            smtp.send_message(message)

    async def send(self, to: str, subject: str, text: str) -> None:
        """
        Raises:
            EmailDeliveryError: connection, authentication or delivery failed.
        """
        message = self._build(to, subject, text)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Email to %s failed: %s", to, str(e))
            raise EmailDeliveryError(context={"to": to, "error": type(e).__name__})
        logger.info("Email sent to %s: %s", to, subject)


email_service = EmailService()
