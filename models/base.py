"""
Base schema and shared field types for all models.
"""

from typing import Annotated
from pydantic import BaseModel, ConfigDict, Field


# Dates travel as DD/MM/YYYY strings between the apps and the database
DateBR = Annotated[str, Field(pattern=r"^\d{2}/\d{2}/\d{4}$", examples=["15/01/2026"])]

# Phone as typed by users; normalized before sending
PhoneText = Annotated[str, Field(min_length=8, max_length=30)]


class BaseSchema(BaseModel):
    """
    Base for protocolo schemas.

    Strings are trimmed and assignments re-validated. Unknown keys coming
    from the protocolos table are ignored.
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="ignore"
    )
