"""Document store configuration from environment variables."""

import os


class StoreConfig:
    """Store backend selection and MongoDB connection settings."""

    STORE_BACKEND = os.environ.get("STORE_BACKEND", "memory").lower()
    MONGODB_URI = os.environ.get("MONGODB_URI", "")
    MONGODB_DATABASE = os.environ.get("MONGODB_DATABASE", "real_estate")
    MONGODB_TIMEOUT_MS = int(os.environ.get("MONGODB_TIMEOUT_MS", "5000"))

    BACKENDS = ("memory", "mongodb")
