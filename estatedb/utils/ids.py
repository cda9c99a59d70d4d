"""Document identifier generation."""

from ulid import ULID


def generate_document_id() -> str:
    """Generate a text-based document ID (ULID format, sorts by creation time)."""
    return str(ULID())
