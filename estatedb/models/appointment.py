"""Appointment model - scheduled property viewings."""

from typing import Optional

from pydantic import Field, StrictStr

from estatedb.models.common import DocumentModel, StrictDatetime


class Appointment(DocumentModel):
    """Viewing appointment. scheduled_at is not checked against created_at."""
    property_id: StrictStr = Field(..., description="Property (properties._id)")
    agent_id: StrictStr = Field(..., description="Agent (users._id)")
    scheduled_at: StrictDatetime
    attendee_name: StrictStr
    attendee_phone: Optional[StrictStr] = None
    attendee_email: Optional[StrictStr] = None
    created_at: StrictDatetime


APPOINTMENT_VALIDATOR = {
    "$jsonSchema": {
        "bsonType": "object",
        "required": ["property_id", "agent_id", "scheduled_at", "attendee_name", "created_at"],
        "properties": {
            "property_id": {"bsonType": "string"},
            "agent_id": {"bsonType": "string"},
            "scheduled_at": {"bsonType": "date"},
            "attendee_name": {"bsonType": "string"},
            "attendee_phone": {"bsonType": ["string", "null"]},
            "attendee_email": {"bsonType": ["string", "null"]},
            "created_at": {"bsonType": "date"},
        },
    }
}
