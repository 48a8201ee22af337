from fastapi import status


class EnquiryApiError(Exception):
    """Base for failures that map onto a `{"success": false, "error": ...}` response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(EnquiryApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthenticationError(EnquiryApiError):
    # Deliberately opaque: wrong, expired and never-issued codes look the same.
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid or expired OTP"


class ConflictError(EnquiryApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Similar enquiry already submitted recently"


class NotFoundError(EnquiryApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Enquiry not found"


class DeliveryError(EnquiryApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to send OTP. Please try again."


class InternalError(EnquiryApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
