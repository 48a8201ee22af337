#!/usr/bin/env python3
"""Delete OTP records that can no longer be matched (expiry in the past)."""
from enquiry_api.core.db import SessionLocal
from enquiry_api.domains.otp.service import purge_expired_otps


def main() -> None:
    db = SessionLocal()
    try:
        deleted = purge_expired_otps(db)
    finally:
        db.close()
    print(f"✓ otp_records: {deleted} expired rows deleted")


if __name__ == "__main__":
    main()
