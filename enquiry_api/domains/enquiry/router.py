from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from enquiry_api.core.deps import get_db, get_mailer
from enquiry_api.domains.enquiry.notifications import EnquiryNotice, schedule_enquiry_notifications
from enquiry_api.domains.enquiry.schemas import (
    DeletedOut,
    EnquiryListOut,
    EnquiryOut,
    EnquirySubmitIn,
    EnquirySubmitOut,
    EnquirySummaryOut,
    EnquiryUpdateIn,
)
from enquiry_api.domains.enquiry.service import (
    DEFAULT_SORT,
    delete_enquiry,
    get_enquiry,
    list_enquiries,
    submit_enquiry,
    update_enquiry,
)
from enquiry_api.utils.mailer import Mailer


router = APIRouter(prefix="/api/enquiries")


@router.post("/submit", response_model=EnquirySubmitOut, status_code=201)
def submit(
    payload: EnquirySubmitIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> EnquirySubmitOut:
    enquiry = submit_enquiry(
        db,
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        subject=payload.subject,
        message=payload.message,
        otp=payload.otp,
    )
    schedule_enquiry_notifications(
        background_tasks,
        mailer,
        EnquiryNotice(
            name=enquiry.name,
            email=enquiry.email,
            phone=enquiry.phone,
            subject=enquiry.subject,
            message=enquiry.message,
        ),
    )
    return EnquirySubmitOut(
        data=EnquirySummaryOut(
            id=enquiry.id,
            name=enquiry.name,
            email=enquiry.email,
            subject=enquiry.subject,
            status=enquiry.status.value,
            createdAt=enquiry.created_at.isoformat(),
        )
    )


@router.get("", response_model=EnquiryListOut)
@router.get("/", response_model=EnquiryListOut, include_in_schema=False)
def list_all(
    status: str | None = Query(default=None),
    search: str | None = Query(default=None),
    sort: str = Query(default=DEFAULT_SORT),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
) -> EnquiryListOut:
    return EnquiryListOut(**list_enquiries(db, status=status, search=search, sort=sort, page=page, limit=limit))


@router.get("/{enquiry_id}", response_model=EnquiryOut)
def get_one(enquiry_id: str, db: Session = Depends(get_db)) -> EnquiryOut:
    return EnquiryOut(data=get_enquiry(db, enquiry_id).to_public_dict())


@router.put("/{enquiry_id}", response_model=EnquiryOut)
def update(enquiry_id: str, payload: EnquiryUpdateIn, db: Session = Depends(get_db)) -> EnquiryOut:
    enquiry = update_enquiry(db, enquiry_id, status=payload.status, note=payload.note)
    return EnquiryOut(message="Enquiry updated successfully", data=enquiry.to_public_dict())


@router.delete("/{enquiry_id}", response_model=DeletedOut)
def delete(enquiry_id: str, db: Session = Depends(get_db)) -> DeletedOut:
    delete_enquiry(db, enquiry_id)
    return DeletedOut()
