from typing import Any

from pydantic import BaseModel


class EnquirySubmitIn(BaseModel):
    # All optional at the schema level; the workflow reports missing fields itself.
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    subject: str | None = None
    message: str | None = None
    otp: str | None = None


class EnquirySummaryOut(BaseModel):
    id: str
    name: str
    email: str
    subject: str
    status: str
    createdAt: str


class EnquirySubmitOut(BaseModel):
    success: bool = True
    message: str = "Enquiry submitted successfully"
    data: EnquirySummaryOut


class EnquiryUpdateIn(BaseModel):
    status: str | None = None
    note: str | None = None


class EnquiryOut(BaseModel):
    success: bool = True
    message: str | None = None
    data: dict[str, Any]


class EnquiryListOut(BaseModel):
    success: bool = True
    count: int
    total: int
    page: int
    pages: int
    statusCounts: dict[str, int]
    data: list[dict[str, Any]]


class DeletedOut(BaseModel):
    success: bool = True
    message: str = "Enquiry deleted successfully"
