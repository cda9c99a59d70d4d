"""Property listing model with embedded address and GeoJSON location."""

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

from estatedb.models.common import INT32_MAX, DocumentModel, Number, StrictDatetime
from estatedb.utils.geo import is_valid_point


class PropertyType(str, Enum):
    """Property types."""
    HOUSE = "HOUSE"
    APARTMENT = "APARTMENT"
    LAND = "LAND"
    COMMERCIAL = "COMMERCIAL"


class PropertyStatus(str, Enum):
    """Listing status values."""
    FOR_SALE = "FOR_SALE"
    SOLD = "SOLD"
    FOR_RENT = "FOR_RENT"
    RENTED = "RENTED"


class Address(BaseModel):
    """Postal address embedded in a property."""
    model_config = ConfigDict(extra="allow")

    street: StrictStr
    city: StrictStr
    state: StrictStr
    postal_code: Optional[StrictStr] = None
    country: StrictStr


class GeoPoint(BaseModel):
    """GeoJSON point. Coordinates are [longitude, latitude]."""
    model_config = ConfigDict(extra="allow")

    type: Literal["Point"] = Field(..., description="Always 'Point'")
    coordinates: list[Number] = Field(..., min_length=2, max_length=2)

    @field_validator("coordinates")
    @classmethod
    def check_bounds(cls, coordinates: list) -> list:
        longitude, latitude = coordinates
        if not is_valid_point(longitude, latitude):
            raise ValueError("longitude must be in [-180, 180] and latitude in [-90, 90]")
        return coordinates

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]


class Property(DocumentModel):
    """Real estate listing."""
    title: StrictStr = Field(..., description="Listing title")
    description: Optional[StrictStr] = Field(None, description="Listing description")
    type: PropertyType = Field(..., description="HOUSE, APARTMENT, LAND or COMMERCIAL")
    status: PropertyStatus = Field(..., description="FOR_SALE, SOLD, FOR_RENT or RENTED")
    bedrooms: Optional[StrictInt] = Field(None, ge=0, le=INT32_MAX)
    bathrooms: Optional[StrictInt] = Field(None, ge=0, le=INT32_MAX)
    area_sqft: Optional[StrictInt] = Field(None, ge=0, le=INT32_MAX)
    price: Number = Field(..., description="Asking price or rent")
    amenities: Optional[list[StrictStr]] = None
    images: Optional[list[StrictStr]] = Field(None, description="Image URLs or paths")
    address: Address
    location: GeoPoint
    agent_id: StrictStr = Field(..., description="Listing agent (users._id)")
    created_at: StrictDatetime
    updated_at: Optional[StrictDatetime] = None

    @field_validator("price")
    @classmethod
    def check_price(cls, price):
        if price < 0:
            raise ValueError("must be greater than or equal to 0")
        return price


PROPERTY_VALIDATOR = {
    "$jsonSchema": {
        "bsonType": "object",
        "required": ["title", "type", "status", "price", "location", "address", "agent_id", "created_at"],
        "properties": {
            "title": {"bsonType": "string"},
            "description": {"bsonType": ["string", "null"]},
            "type": {"enum": [value.value for value in PropertyType]},
            "status": {"enum": [value.value for value in PropertyStatus]},
            "bedrooms": {"bsonType": ["int", "null"], "minimum": 0},
            "bathrooms": {"bsonType": ["int", "null"], "minimum": 0},
            "area_sqft": {"bsonType": ["int", "null"], "minimum": 0},
            "price": {"bsonType": ["int", "long", "double"], "minimum": 0},
            "amenities": {"bsonType": ["array", "null"], "items": {"bsonType": "string"}},
            "images": {"bsonType": ["array", "null"], "items": {"bsonType": "string"}},
            "address": {
                "bsonType": "object",
                "required": ["street", "city", "state", "country"],
                "properties": {
                    "street": {"bsonType": "string"},
                    "city": {"bsonType": "string"},
                    "state": {"bsonType": "string"},
                    "postal_code": {"bsonType": ["string", "null"]},
                    "country": {"bsonType": "string"},
                },
            },
            "location": {
                "bsonType": "object",
                "required": ["type", "coordinates"],
                "properties": {
                    "type": {"enum": ["Point"]},
                    "coordinates": {
                        "bsonType": "array",
                        "items": {"bsonType": ["int", "long", "double"]},
                        "minItems": 2,
                        "maxItems": 2,
                    },
                },
            },
            "agent_id": {"bsonType": "string"},
            "created_at": {"bsonType": "date"},
            "updated_at": {"bsonType": ["date", "null"]},
        },
    }
}
