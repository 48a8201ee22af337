from functools import lru_cache

from enquiry_api.core.config import settings
from enquiry_api.core.db import SessionLocal
from enquiry_api.utils.mailer import Mailer, SmtpMailer
from enquiry_api.utils.sms import SmsSender, TwilioSmsSender


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@lru_cache
def get_sms_sender() -> SmsSender:
    return TwilioSmsSender(settings)


@lru_cache
def get_mailer() -> Mailer:
    return SmtpMailer(settings)
