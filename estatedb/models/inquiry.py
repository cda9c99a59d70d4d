"""Inquiry model - lead messages about a property."""

from enum import Enum
from typing import Optional

from pydantic import Field, StrictStr

from estatedb.models.common import EMAIL_PATTERN, DocumentModel, StrictDatetime


class InquiryStatus(str, Enum):
    """Inquiry status; advances NEW -> CONTACTED -> CLOSED outside this package."""
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    CLOSED = "CLOSED"


class Inquiry(DocumentModel):
    """Inquiry tied to one property."""
    property_id: StrictStr = Field(..., description="Property (properties._id)")
    name: StrictStr
    email: StrictStr = Field(..., pattern=EMAIL_PATTERN)
    phone: Optional[StrictStr] = None
    message: StrictStr
    status: InquiryStatus = Field(..., description="NEW, CONTACTED or CLOSED")
    created_at: StrictDatetime


INQUIRY_VALIDATOR = {
    "$jsonSchema": {
        "bsonType": "object",
        "required": ["property_id", "name", "email", "message", "created_at", "status"],
        "properties": {
            "property_id": {"bsonType": "string"},
            "name": {"bsonType": "string"},
            "email": {"bsonType": "string", "pattern": EMAIL_PATTERN},
            "phone": {"bsonType": ["string", "null"]},
            "message": {"bsonType": "string"},
            "status": {"enum": [status.value for status in InquiryStatus]},
            "created_at": {"bsonType": "date"},
        },
    }
}
