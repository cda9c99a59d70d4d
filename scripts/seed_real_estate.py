"""
scripts/seed_real_estate.py

Initialize the store (collections, validators, indexes), insert the sample
records and print the two example queries:

    STORE_BACKEND=mongodb MONGODB_URI=mongodb://localhost:27017 python -m scripts.seed_real_estate

With the default in-memory backend everything lives only for this run.
"""

import asyncio
import json
import sys

from estatedb.services.queries import find_nearby_properties, search_properties
from estatedb.services.seed import seed_sample_data
from estatedb.services.store_client import close_document_store
from estatedb.services.store_setup import initialize_store
from estatedb.utils.errors import EstateDBError
from estatedb.utils.logging import correlation_context
from estatedb.utils.logging_config import LoggingConfig

# Near Osu, Accra
QUERY_CENTER = (-0.186964, 5.603717)
QUERY_RADIUS_M = 5000
QUERY_TEXT = "garden modern"


def _dump(documents: list[dict], fields: tuple[str, ...]) -> str:
    rows = [{field: document.get(field) for field in fields} for document in documents]
    return json.dumps(rows, indent=2, default=str)


async def main() -> None:
    await initialize_store()
    seeded = await seed_sample_data()
    print(f"Seeded: {json.dumps(seeded, indent=2)}")

    nearby = await find_nearby_properties(*QUERY_CENTER, QUERY_RADIUS_M)
    print(f"\nWithin {QUERY_RADIUS_M} m of {QUERY_CENTER}:")
    print(_dump(nearby, ("_id", "title", "price", "distance_m")))

    matches = await search_properties(QUERY_TEXT)
    print(f"\nText search {QUERY_TEXT!r}:")
    print(_dump(matches, ("_id", "title", "score")))


def run() -> None:
    LoggingConfig.setup_logging()
    try:
        with correlation_context():
            asyncio.run(main())
    except EstateDBError as e:
        print(f"Failed: {e}")
        sys.exit(1)
    finally:
        asyncio.run(close_document_store())


if __name__ == "__main__":
    run()
