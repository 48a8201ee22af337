import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Protocol

from enquiry_api.core.config import Settings

logger = logging.getLogger(__name__)


class Mailer(Protocol):
    def send_mail(self, *, to: str, subject: str, html: str, from_name: str | None = None) -> bool: ...


def smtp_missing_fields(settings: Settings) -> list[str]:
    missing: list[str] = []
    if not settings.smtp_user:
        missing.append("SMTP_USER")
    if not settings.smtp_pass:
        missing.append("SMTP_PASS")
    if not settings.sender_email:
        missing.append("SENDER_EMAIL")
    return missing


class SmtpMailer:
    """HTML mail over SMTP with STARTTLS. Returns False instead of raising."""

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def configured(self) -> bool:
        return not smtp_missing_fields(self.settings)

    def send_mail(self, *, to: str, subject: str, html: str, from_name: str | None = None) -> bool:
        missing = smtp_missing_fields(self.settings)
        if missing:
            logger.warning("SMTP not configured; missing=%s; mail to %s dropped", ",".join(missing), to)
            return False
        if not to:
            logger.warning("Mail skipped: empty recipient for subject=%r", subject)
            return False

        sender = self.settings.sender_email
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr((from_name or self.settings.brand_name, sender))
        msg["To"] = to
        msg.attach(MIMEText(html, "html"))

        try:
            with smtplib.SMTP(
                self.settings.smtp_host,
                self.settings.smtp_port,
                timeout=self.settings.delivery_timeout_seconds,
            ) as server:
                server.starttls()
                server.login(self.settings.smtp_user, self.settings.smtp_pass)
                server.sendmail(sender, [to], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP send to %s failed: %s", to, e)
            return False
        return True
