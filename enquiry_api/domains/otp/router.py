from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from enquiry_api.core.deps import get_db, get_sms_sender
from enquiry_api.domains.otp.schemas import OTPRequestIn, OTPRequestOut
from enquiry_api.domains.otp.service import issue_otp
from enquiry_api.utils.sms import SmsSender


router = APIRouter(prefix="/api/enquiries")


@router.post("/send-otp", response_model=OTPRequestOut)
def send_otp(
    payload: OTPRequestIn,
    db: Session = Depends(get_db),
    sms: SmsSender = Depends(get_sms_sender),
) -> OTPRequestOut:
    issue_otp(db, payload.phone or "", sms)
    return OTPRequestOut()
