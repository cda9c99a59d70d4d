"""User model - agents, clients and admins."""

from enum import Enum
from typing import Optional

from pydantic import Field, StrictStr

from estatedb.models.common import EMAIL_PATTERN, DocumentModel, StrictDatetime


class UserRole(str, Enum):
    """User roles."""
    AGENT = "AGENT"
    CLIENT = "CLIENT"
    ADMIN = "ADMIN"


class User(DocumentModel):
    """User identity record. Email is unique across the collection."""
    full_name: StrictStr = Field(..., min_length=1, description="Full name")
    email: StrictStr = Field(..., pattern=EMAIL_PATTERN, description="Email address (unique)")
    phone: Optional[StrictStr] = Field(None, description="Phone number")
    role: UserRole = Field(..., description="Role: AGENT, CLIENT, ADMIN")
    created_at: StrictDatetime = Field(..., description="Creation time (immutable)")


USER_VALIDATOR = {
    "$jsonSchema": {
        "bsonType": "object",
        "required": ["full_name", "email", "role", "created_at"],
        "properties": {
            "full_name": {"bsonType": "string", "minLength": 1},
            "email": {"bsonType": "string", "pattern": EMAIL_PATTERN},
            "phone": {"bsonType": ["string", "null"]},
            "role": {"enum": [role.value for role in UserRole]},
            "created_at": {"bsonType": "date"},
        },
    }
}
