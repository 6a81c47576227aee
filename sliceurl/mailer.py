"""Отправка писем подтверждения аккаунта."""
import html as html_lib
import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from sliceurl.config import settings

logger = logging.getLogger(__name__)


def account_confirmation_template(full_name: str, confirmation_url: str) -> str:
    return f"""
    <div style="font-family: Arial, sans-serif; line-height: 1.6;">
      <h2>{settings.APP_NAME} Account Confirmation</h2>
      <p>Hi {html_lib.escape(full_name)},</p>
      <p>Thank you for registering with us! Please confirm your email address by clicking the link below:</p>
      <a href="{confirmation_url}" style="display: inline-block; padding: 10px 20px; background-color: #28a745; color: white; text-decoration: none; border-radius: 5px;">
        Confirm your account
      </a>
      <p>If the button above does not work, you can also confirm your account by clicking the link below:</p>
      <p><a href="{confirmation_url}">{confirmation_url}</a></p>
    </div>
    """


class Mailer:
    """Интерфейс отправки писем: ``send`` возвращает False, если письмо не ушло"""

    def send(self, to: str, subject: str, html: str) -> bool:
        raise NotImplementedError


class SmtpMailer(Mailer):
    def __init__(
        self,
        host: str = settings.SMTP_HOST,
        port: int = settings.SMTP_PORT,
        user: str = settings.EMAIL_USER,
        password: str = settings.EMAIL_PASS,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.timeout = timeout

    def send(self, to: str, subject: str, html: str) -> bool:
        message = EmailMessage()
        message["From"] = self.user
        message["To"] = to
        message["Subject"] = subject
        message.set_content("Please open this message in an HTML capable email client.")
        message.add_alternative(html, subtype="html")

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls()
                if self.user:
                    server.login(self.user, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError):
            logger.exception("Error sending email to %s", to)
            return False

        logger.info("Email sent to %s", to)
        return True


class ConsoleMailer(Mailer):
    """Для разработки: пишет письмо в лог вместо отправки"""

    def send(self, to: str, subject: str, html: str) -> bool:
        logger.info("Email to %s (%s):\n%s", to, subject, html)
        return True


def create_mailer(backend: Optional[str] = None) -> Mailer:
    backend = backend or settings.EMAIL_BACKEND
    if backend == "console":
        return ConsoleMailer()
    return SmtpMailer()
