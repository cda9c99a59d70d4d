"""Index plan - named secondary, compound, geospatial and text indexes per collection.

Every read in ``estatedb.services.queries`` is served by one of these indexes;
a new query shape needs a matching entry here.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class IndexKind(Enum):
    """Index key types, valued as MongoDB expects them."""
    ASCENDING = 1
    DESCENDING = -1
    GEOSPHERE = "2dsphere"
    TEXT = "text"


class IndexSpec(BaseModel):
    """One declared index."""
    model_config = ConfigDict(frozen=True)

    collection: str = Field(..., description="Target collection")
    name: str = Field(..., description="Index name")
    keys: tuple[tuple[str, IndexKind], ...] = Field(..., min_length=1)
    unique: bool = False
    weights: Optional[dict[str, int]] = Field(None, description="Text index field weights")

    def field_names(self) -> list[str]:
        return [field for field, _ in self.keys]

    def has_kind(self, kind: IndexKind) -> bool:
        return any(key_kind is kind for _, key_kind in self.keys)

    def to_mongo_keys(self) -> list[tuple[str, object]]:
        return [(field, kind.value) for field, kind in self.keys]


ASC = IndexKind.ASCENDING
DESC = IndexKind.DESCENDING

INDEX_PLAN: list[IndexSpec] = [
    # users
    IndexSpec(collection="users", name="ux_users_email", keys=(("email", ASC),), unique=True),
    # properties
    IndexSpec(collection="properties", name="gx_properties_location", keys=(("location", IndexKind.GEOSPHERE),)),
    IndexSpec(collection="properties", name="ix_status_type_price", keys=(("status", ASC), ("type", ASC), ("price", ASC))),
    IndexSpec(collection="properties", name="ix_city", keys=(("address.city", ASC),)),
    IndexSpec(
        collection="properties",
        name="tx_title_description",
        keys=(("title", IndexKind.TEXT), ("description", IndexKind.TEXT)),
    ),
    # inquiries
    IndexSpec(collection="inquiries", name="ix_prop_created", keys=(("property_id", ASC), ("created_at", DESC))),
    # appointments
    IndexSpec(collection="appointments", name="ix_agent_schedule", keys=(("agent_id", ASC), ("scheduled_at", DESC))),
    IndexSpec(collection="appointments", name="ix_property_schedule", keys=(("property_id", ASC), ("scheduled_at", DESC))),
]


def indexes_for(collection: str) -> list[IndexSpec]:
    """All planned indexes on a collection."""
    return [spec for spec in INDEX_PLAN if spec.collection == collection]


def find_index(collection: str, kind: IndexKind) -> Optional[IndexSpec]:
    """First planned index on a collection that contains a key of the given kind."""
    for spec in indexes_for(collection):
        if spec.has_kind(kind):
            return spec
    return None
