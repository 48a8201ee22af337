import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from enquiry_api.core.db import Base


class EnquiryStatus(str, enum.Enum):
    NEW = "New"
    CONTACTED = "Contacted"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


class Enquiry(Base):
    __tablename__ = "enquiries"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String)
    email: Mapped[str] = mapped_column(String, index=True)
    phone: Mapped[str] = mapped_column(String, index=True)
    subject: Mapped[str] = mapped_column(String)
    message: Mapped[str] = mapped_column(Text)

    status: Mapped[EnquiryStatus] = mapped_column(
        Enum(EnquiryStatus, values_callable=lambda e: [m.value for m in e]),
        default=EnquiryStatus.NEW,
        index=True,
    )
    otp_verified: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    notes: Mapped[list["EnquiryNote"]] = relationship(
        back_populates="enquiry",
        cascade="all, delete-orphan",
        order_by="EnquiryNote.created_at",
        lazy="selectin",
    )

    def to_public_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "subject": self.subject,
            "message": self.message,
            "status": self.status.value,
            "notes": [n.to_public_dict() for n in self.notes],
            "otpVerified": self.otp_verified,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class EnquiryNote(Base):
    __tablename__ = "enquiry_notes"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    enquiry_id: Mapped[str] = mapped_column(ForeignKey("enquiries.id", ondelete="CASCADE"), index=True)
    text: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    enquiry: Mapped[Enquiry] = relationship(back_populates="notes")

    def to_public_dict(self) -> dict:
        return {"text": self.text, "createdAt": _iso(self.created_at)}
