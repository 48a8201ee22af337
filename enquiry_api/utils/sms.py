import logging
from typing import Protocol

import requests

from enquiry_api.core.config import Settings

logger = logging.getLogger(__name__)


TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


class SmsSender(Protocol):
    def send_code(self, phone: str, code: str) -> bool: ...


def twilio_missing_fields(settings: Settings) -> list[str]:
    missing: list[str] = []
    if not settings.twilio_account_sid:
        missing.append("TWILIO_ACCOUNT_SID")
    if not settings.twilio_auth_token:
        missing.append("TWILIO_AUTH_TOKEN")
    if not settings.twilio_phone_number:
        missing.append("TWILIO_PHONE_NUMBER")
    return missing


def otp_message(settings: Settings, code: str) -> str:
    return (
        f"Your {settings.brand_name} verification code is: {code}. "
        f"Valid for {settings.otp_expiry_minutes} minutes."
    )


class TwilioSmsSender:
    """
    OTP SMS via the Twilio Messages REST API.

    Without credentials the sender only works in dev: the code is written to the
    log and delivery is reported as successful so the form can be exercised
    locally. Outside dev a missing configuration is a delivery failure.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        missing = twilio_missing_fields(settings)
        if missing:
            logger.warning("Twilio not configured; missing=%s", ",".join(missing))
        else:
            logger.info("Twilio SMS sender initialized")

    @property
    def configured(self) -> bool:
        return not twilio_missing_fields(self.settings)

    def send_code(self, phone: str, code: str) -> bool:
        if not self.configured:
            if self.settings.env == "dev":
                logger.warning("DEV MODE: Twilio not configured; OTP for %s is %s", phone, code)
                return True
            return False

        url = f"{TWILIO_API_BASE}/Accounts/{self.settings.twilio_account_sid}/Messages.json"
        data = {
            "To": phone,
            "From": self.settings.twilio_phone_number,
            "Body": otp_message(self.settings, code),
        }
        try:
            resp = requests.post(
                url,
                data=data,
                auth=(self.settings.twilio_account_sid, self.settings.twilio_auth_token),
                timeout=self.settings.delivery_timeout_seconds,
            )
        except requests.exceptions.Timeout:
            logger.error("Timeout while sending OTP SMS to %s", phone)
            return False
        except requests.exceptions.RequestException as e:
            logger.error("Twilio SMS send exception: %s", e)
            return False

        if resp.status_code // 100 == 2:
            try:
                sid = resp.json().get("sid")
            except ValueError:
                sid = None
            logger.info("OTP SMS sent to %s sid=%s", phone, sid)
            return True
        logger.warning("Twilio SMS send failed: status=%s body=%s", resp.status_code, resp.text[:200])
        return False
