"""Models package - settings, Pydantic schemas and domain exceptions."""

from .schemas import ContactResponse, InquirySubmission, InquiryType, OutboundEmail

__all__ = [
    "ContactResponse",
    "InquirySubmission",
    "InquiryType",
    "OutboundEmail",
]
