import json
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InquiryType(str, Enum):
    """Inquiry categories the contact form offers.

    Only GENERAL and PARTNERSHIP have routing significance; any other tag,
    including ones not listed here, is accepted and routed to sales.
    """

    GENERAL = "general"
    PARTNERSHIP = "partnership"
    SALES = "sales"
    SECURITY_ASSESSMENT = "security-assessment"
    INCIDENT_RESPONSE = "incident-response"


class InquirySubmission(BaseModel):
    """Contact form payload as posted by the website.

    Every field is optional at the schema level: presence of the required
    fields is checked by the contact service after the honeypot and rate
    limit gates, so that bots get no validation feedback. Non-string JSON
    values are kept as text (a phone number posted as a number is still a
    phone number), so a field type never turns into a validation error.
    """

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    inquiry_type: Optional[str] = Field(default=None, alias="inquiryType")
    message: Optional[str] = None
    threat_level: Optional[str] = Field(default=None, alias="threatLevel")
    hp_name: Optional[str] = None  # honeypot

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def coerce_to_text(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        # bool before int: bool is an int subclass
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, (int, float)):
            return str(v)
        return json.dumps(v, ensure_ascii=False)


class ContactResponse(BaseModel):
    """JSON body returned by every contact endpoint outcome."""

    ok: bool
    error: Optional[str] = None

    def to_body(self) -> dict:
        return self.model_dump(exclude_none=True)


class OutboundEmail(BaseModel):
    """A fully formatted message handed to an email provider."""

    from_address: str
    to: str
    subject: str
    html: str
    text: Optional[str] = None
    reply_to: Optional[str] = None
