"""Sample data - one agent, one client, a listing in East Legon, an inquiry and a viewing."""

from datetime import timedelta

from estatedb.services.store_client import (
    create_appointment,
    create_inquiry,
    create_property,
    create_user,
    get_user_by_email,
)
from estatedb.services.validation_gate import utc_now
from estatedb.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

SAMPLE_AGENT = {
    "full_name": "Ama Mensah",
    "email": "ama.agent@example.com",
    "phone": "+233555000111",
    "role": "AGENT",
}

SAMPLE_CLIENT = {
    "full_name": "Kojo Owusu",
    "email": "kojo.client@example.com",
    "phone": "+233555000222",
    "role": "CLIENT",
}

SAMPLE_PROPERTY = {
    "title": "3-Bedroom House in East Legon",
    "description": "Spacious house with modern kitchen and garden.",
    "type": "HOUSE",
    "status": "FOR_SALE",
    "bedrooms": 3,
    "bathrooms": 2,
    "area_sqft": 2200,
    "price": 250000,
    "amenities": ["Garden", "Parking", "Air Conditioning"],
    "images": [],
    "address": {
        "street": "12 Palm St",
        "city": "Accra",
        "state": "Greater Accra",
        "postal_code": "00233",
        "country": "Ghana",
    },
    "location": {"type": "Point", "coordinates": [-0.1667, 5.6167]},
}


async def _get_or_create_user(user_data: dict) -> dict:
    existing = await get_user_by_email(user_data["email"])
    if existing:
        logger.info("Reusing existing sample user", user_id=existing["_id"], role=existing.get("role"))
        return existing
    return await create_user(user_data)


async def seed_sample_data(viewing_in_days: int = 3) -> dict[str, str]:
    """Insert the sample records and return their ids."""
    agent = await _get_or_create_user(SAMPLE_AGENT)
    client = await _get_or_create_user(SAMPLE_CLIENT)

    listing = await create_property({**SAMPLE_PROPERTY, "agent_id": agent["_id"]})

    inquiry = await create_inquiry({
        "property_id": listing["_id"],
        "name": client["full_name"],
        "email": client["email"],
        "phone": client.get("phone"),
        "message": "Is this house still available? Can I schedule a viewing?",
        "status": "NEW",
    })

    appointment = await create_appointment({
        "property_id": listing["_id"],
        "agent_id": agent["_id"],
        "scheduled_at": utc_now() + timedelta(days=viewing_in_days),
        "attendee_name": client["full_name"],
        "attendee_phone": client.get("phone"),
        "attendee_email": client["email"],
    })

    seeded = {
        "agent_id": agent["_id"],
        "client_id": client["_id"],
        "property_id": listing["_id"],
        "inquiry_id": inquiry["_id"],
        "appointment_id": appointment["_id"],
    }
    logger.info("Sample data seeded", **seeded)
    return seeded
