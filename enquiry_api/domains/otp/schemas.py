from pydantic import BaseModel


class OTPRequestIn(BaseModel):
    # Presence is checked by the service so a missing phone yields the standard error body.
    phone: str | None = None


class OTPRequestOut(BaseModel):
    success: bool = True
    message: str = "OTP sent successfully to your phone number"
