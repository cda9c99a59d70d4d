"""Shared field types for entity models."""

import math
from datetime import datetime, timezone
from typing import Annotated, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Strict

# something@something.something
EMAIL_PATTERN = r"^.+@.+\..+$"

# Largest values of a BSON "int" and "long"
INT32_MAX = 2**31 - 1
INT64_MAX = 2**63 - 1


def _require_number(value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("must be a number (int or float)")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError("must be a finite number")
    if isinstance(value, int) and abs(value) > INT64_MAX:
        raise ValueError("must fit in a 64-bit integer")
    return value


def as_utc(value):
    """Aware UTC form of a datetime; naive values are taken to be UTC. Other values pass through."""
    if not isinstance(value, datetime):
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


Number = Annotated[Union[int, float], BeforeValidator(_require_number)]
StrictDatetime = Annotated[datetime, Strict(), BeforeValidator(as_utc)]


class DocumentModel(BaseModel):
    """Base for stored entity documents."""
    model_config = ConfigDict(extra="allow", use_enum_values=True)
