import logging
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from enquiry_api.core.config import settings
from enquiry_api.core.errors import AuthenticationError, DeliveryError, ValidationError
from enquiry_api.domains.otp.models import OTPRecord
from enquiry_api.utils.sms import SmsSender

logger = logging.getLogger(__name__)


OTP_LEN = 6


def normalize_phone(phone: str) -> str:
    """Prefix the regional calling code unless the number already carries one. No other cleanup."""
    if phone.startswith("+"):
        return phone
    return f"{settings.default_country_code}{phone}"


def generate_otp() -> str:
    lower = 10 ** (OTP_LEN - 1)
    upper = 10**OTP_LEN
    return str(secrets.randbelow(upper - lower) + lower)


def issue_otp(db: Session, phone: str, sms: SmsSender, *, now: datetime | None = None) -> OTPRecord:
    if not phone:
        raise ValidationError("Phone number is required")

    now = now or datetime.now(timezone.utc)
    record = OTPRecord(
        phone=normalize_phone(phone),
        code=generate_otp(),
        expires_at=now + timedelta(minutes=settings.otp_expiry_minutes),
        created_at=now,
    )
    db.add(record)
    db.commit()
    logger.info("OTP issued for %s (expires %s)", record.phone, record.expires_at.isoformat())

    # The record stays persisted even if delivery fails.
    if not sms.send_code(record.phone, record.code):
        logger.warning("OTP delivery failed for %s", record.phone)
        raise DeliveryError()
    return record


def find_valid_otp(db: Session, *, phone: str, code: str, now: datetime) -> OTPRecord | None:
    return (
        db.query(OTPRecord)
        .filter(OTPRecord.phone == phone, OTPRecord.code == code, OTPRecord.expires_at > now)
        .order_by(OTPRecord.created_at.desc())
        .first()
    )


def consume_otp(db: Session, record: OTPRecord, *, now: datetime) -> None:
    """
    Delete a matched record inside the caller's transaction.

    The delete is conditional, so of two requests racing on the same code only
    one sees a removed row; the loser gets AuthenticationError and must roll back.
    """
    deleted = (
        db.query(OTPRecord)
        .filter(OTPRecord.id == record.id, OTPRecord.expires_at > now)
        .delete(synchronize_session=False)
    )
    if deleted != 1:
        logger.warning("OTP %s for %s was consumed concurrently", record.id, record.phone)
        raise AuthenticationError()


def purge_expired_otps(db: Session, *, now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)
    deleted = db.query(OTPRecord).filter(OTPRecord.expires_at <= now).delete(synchronize_session=False)
    db.commit()
    return int(deleted)
