"""Helpers shared by the CRUD modules."""

import uuid
from typing import Optional, Union


def parse_uuid(value: Union[str, uuid.UUID, None]) -> Optional[uuid.UUID]:
    """Parse an id from a path or body; None when it is not a valid UUID."""
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None
