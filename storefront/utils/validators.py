"""Custom validators for request input"""

import uuid

from storefront.core.exceptions import InvalidArgumentException

def parse_resource_id(value: str, resource: str = "resource") -> uuid.UUID:
    """Parse a path identifier, rejecting malformed ids with 400"""
    try:
        return uuid.UUID(value.strip())
    except (AttributeError, ValueError):
        raise InvalidArgumentException(f"Invalid {resource} ID")
