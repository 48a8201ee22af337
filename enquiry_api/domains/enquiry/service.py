import logging
import math
from datetime import datetime, timedelta, timezone

from sqlalchemy import false, func, or_
from sqlalchemy.orm import Session

from enquiry_api.core.config import settings
from enquiry_api.core.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from enquiry_api.domains.enquiry.models import Enquiry, EnquiryNote, EnquiryStatus
from enquiry_api.domains.otp.service import consume_otp, find_valid_otp, normalize_phone

logger = logging.getLogger(__name__)


ALLOWED_STATUSES = {s.value for s in EnquiryStatus}

SORT_FIELDS = {
    "createdAt": Enquiry.created_at,
    "updatedAt": Enquiry.updated_at,
    "name": Enquiry.name,
    "email": Enquiry.email,
    "subject": Enquiry.subject,
    "status": Enquiry.status,
}
DEFAULT_SORT = "-createdAt"


def find_recent_duplicate(db: Session, *, email: str, phone: str, subject: str, now: datetime) -> Enquiry | None:
    since = now - timedelta(hours=settings.dedup_window_hours)
    return (
        db.query(Enquiry)
        .filter(
            Enquiry.email == email,
            Enquiry.phone == phone,
            Enquiry.subject == subject,
            Enquiry.created_at >= since,
        )
        .first()
    )


def submit_enquiry(
    db: Session,
    *,
    name: str | None,
    email: str | None,
    phone: str | None,
    subject: str | None,
    message: str | None,
    otp: str | None,
    now: datetime | None = None,
) -> Enquiry:
    # Text fields are stored trimmed, so blank ones count as missing; phone and code are taken as sent.
    text_fields = [name, email, subject, message]
    if not (phone and otp) or not all(f and f.strip() for f in text_fields):
        raise ValidationError("All fields are required")

    now = now or datetime.now(timezone.utc)
    clean_phone = normalize_phone(phone)
    clean_email = email.strip().lower()
    clean_subject = subject.strip()

    record = find_valid_otp(db, phone=clean_phone, code=otp, now=now)
    if record is None:
        raise AuthenticationError("Invalid or expired OTP")

    # Soft dedup; the OTP stays valid so the user can retry with another subject.
    if find_recent_duplicate(db, email=clean_email, phone=clean_phone, subject=clean_subject, now=now):
        logger.info("Duplicate enquiry rejected for %s / %s", clean_email, clean_phone)
        raise ConflictError("Similar enquiry already submitted recently")

    enquiry = Enquiry(
        name=name.strip(),
        email=clean_email,
        phone=clean_phone,
        subject=clean_subject,
        message=message.strip(),
        status=EnquiryStatus.NEW,
        otp_verified=True,
        created_at=now,
        updated_at=now,
    )
    db.add(enquiry)
    try:
        consume_otp(db, record, now=now)
    except AuthenticationError:
        db.rollback()
        raise
    db.commit()
    logger.info("Enquiry %s created for %s", enquiry.id, clean_phone)
    return enquiry


def list_enquiries(
    db: Session,
    *,
    status: str | None = None,
    search: str | None = None,
    sort: str | None = DEFAULT_SORT,
    page: int = 1,
    limit: int = 50,
) -> dict:
    q = db.query(Enquiry)
    if status and status != "All":
        # An unknown status simply matches nothing.
        q = q.filter(Enquiry.status == EnquiryStatus(status)) if status in ALLOWED_STATUSES else q.filter(false())
    if search:
        q = q.filter(
            or_(
                Enquiry.name.icontains(search, autoescape=True),
                Enquiry.email.icontains(search, autoescape=True),
                Enquiry.phone.icontains(search, autoescape=True),
                Enquiry.subject.icontains(search, autoescape=True),
                Enquiry.message.icontains(search, autoescape=True),
            )
        )

    total = q.count()
    rows = q.order_by(_order_clause(sort), Enquiry.id).offset((page - 1) * limit).limit(limit).all()

    counts = dict(db.query(Enquiry.status, func.count(Enquiry.id)).group_by(Enquiry.status).all())
    status_counts = {s.value: int(counts.get(s, 0)) for s in EnquiryStatus}
    status_counts["Total"] = total

    return {
        "count": len(rows),
        "total": total,
        "page": page,
        "pages": math.ceil(total / limit),
        "statusCounts": status_counts,
        "data": [r.to_public_dict() for r in rows],
    }


def _order_clause(sort: str | None):
    sort = (sort or DEFAULT_SORT).strip()
    descending = sort.startswith("-")
    column = SORT_FIELDS.get(sort.lstrip("-+"))
    if column is None:
        column, descending = Enquiry.created_at, True
    return column.desc() if descending else column.asc()


def get_enquiry(db: Session, enquiry_id: str) -> Enquiry:
    enquiry = db.get(Enquiry, enquiry_id)
    if enquiry is None:
        raise NotFoundError("Enquiry not found")
    return enquiry


def update_enquiry(
    db: Session,
    enquiry_id: str,
    *,
    status: str | None = None,
    note: str | None = None,
    now: datetime | None = None,
) -> Enquiry:
    enquiry = get_enquiry(db, enquiry_id)
    now = now or datetime.now(timezone.utc)

    # Free-form transitions; values outside the allow-list are ignored.
    if status and status in ALLOWED_STATUSES:
        enquiry.status = EnquiryStatus(status)
    if note and note.strip():
        enquiry.notes.append(EnquiryNote(text=note.strip(), created_at=now))

    enquiry.updated_at = now
    db.commit()
    db.refresh(enquiry)
    return enquiry


def delete_enquiry(db: Session, enquiry_id: str) -> None:
    enquiry = get_enquiry(db, enquiry_id)
    db.delete(enquiry)
    db.commit()
    logger.info("Enquiry %s deleted", enquiry_id)
