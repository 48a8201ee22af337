"""
E-mail notifications sent after an enquiry is accepted.

Both mails are scheduled as independent background tasks: they run after the
HTTP response has been sent, a failure in one does not affect the other, and
nothing is retried. Outcomes are only logged.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from html import escape

from fastapi import BackgroundTasks

from enquiry_api.core.config import settings
from enquiry_api.utils.mailer import Mailer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnquiryNotice:
    name: str
    email: str
    phone: str
    subject: str
    message: str


def render_thank_you(notice: EnquiryNotice) -> tuple[str, str]:
    brand = escape(settings.brand_name)
    name = escape(notice.name)
    subject = f"Thank You for Your Enquiry - {settings.brand_name}"
    html = f"""
    <h1>Thank You, {name}!</h1>
    <p>Dear {name},</p>
    <p>Thank you for submitting your enquiry to <strong>{brand}</strong>.</p>
    <p>Our support team has been notified and will review your enquiry shortly.
    We aim to respond to all enquiries within <strong>24-48 hours</strong>.</p>
    <p>Best Regards,<br/><strong>The {brand} Team</strong></p>
    <hr/>
    <p><small>This is an automated message. Please do not reply to this email.</small></p>
    """
    return subject, html


def render_manager_alert(notice: EnquiryNotice, *, received_at: datetime | None = None) -> tuple[str, str]:
    received_at = received_at or datetime.now(timezone.utc)
    subject = f"NEW ENQUIRY: {notice.subject[:50]}"
    html = f"""
    <h2>New customer enquiry received</h2>
    <p><strong>Time Received:</strong> {received_at.isoformat()}</p>
    <table>
      <tr><th>Name</th><td>{escape(notice.name)}</td></tr>
      <tr><th>Email</th><td><a href="mailto:{escape(notice.email)}">{escape(notice.email)}</a></td></tr>
      <tr><th>Phone</th><td><a href="tel:{escape(notice.phone)}">{escape(notice.phone)}</a></td></tr>
      <tr><th>Subject</th><td><strong>{escape(notice.subject)}</strong></td></tr>
      <tr><th>Message</th><td>{escape(notice.message)}</td></tr>
    </table>
    <p><a href="{escape(settings.dashboard_url)}">View in Dashboard</a></p>
    """
    return subject, html


def send_thank_you(mailer: Mailer, notice: EnquiryNotice) -> None:
    subject, html = render_thank_you(notice)
    _deliver("thank-you", mailer, to=notice.email, subject=subject, html=html, from_name=settings.brand_name)


def send_manager_alert(mailer: Mailer, notice: EnquiryNotice) -> None:
    if not settings.manager_email:
        logger.warning("MANAGER_EMAIL not configured; manager alert skipped")
        return
    subject, html = render_manager_alert(notice)
    _deliver(
        "manager-alert",
        mailer,
        to=settings.manager_email,
        subject=subject,
        html=html,
        from_name=f"{settings.brand_name} Enquiry System",
    )


def _deliver(kind: str, mailer: Mailer, **mail) -> None:
    # Runs detached from the request; an exception here must not reach the task runner.
    try:
        ok = mailer.send_mail(**mail)
    except Exception:
        logger.exception("%s mail to %s raised", kind, mail.get("to"))
        return
    if ok:
        logger.info("%s mail sent to %s", kind, mail.get("to"))
    else:
        logger.warning("%s mail to %s failed to send", kind, mail.get("to"))


def schedule_enquiry_notifications(background_tasks: BackgroundTasks, mailer: Mailer, notice: EnquiryNotice) -> None:
    background_tasks.add_task(send_thank_you, mailer, notice)
    background_tasks.add_task(send_manager_alert, mailer, notice)
