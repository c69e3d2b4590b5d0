"""
Base schemas for all models.
"""

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """
    Base for request/response schemas.

    Features:
        - Auto-trim whitespace from strings
        - Validate on attribute assignment
        - Accept field names as well as wire aliases
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True,
        populate_by_name=True
    )


class WireSchema(BaseModel):
    """
    Base for sync payloads and dashboard views.

    Strings are kept verbatim (catalog values round-trip unchanged) and
    dumps use the camelCase wire aliases (by_alias=True).
    """
    model_config = ConfigDict(
        populate_by_name=True
    )
