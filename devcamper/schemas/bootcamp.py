"""
DevCamper API — Bootcamp Request/Response Schemas
===================================================

What:  Pydantic models for bootcamp request bodies and single-document responses.
Why:   Field rules (required fields, lengths, career labels) are checked
       before a service ever runs; the ORM model only mirrors the table.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

Career = Literal[
    "Web Development",
    "Mobile Development",
    "UI/UX",
    "Data Science",
    "Business",
    "Other",
]

# Loose on purpose: a typo check, not RFC 5322
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
URL_PATTERN = r"^https?://\S+$"


class BootcampCreate(BaseModel):
    """Body of POST /api/v1/bootcamps."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: str = Field(min_length=1, max_length=50)
    description: str = Field(min_length=1, max_length=500)
    website: Optional[str] = Field(default=None, max_length=255, pattern=URL_PATTERN)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[str] = Field(default=None, max_length=255, pattern=EMAIL_PATTERN)
    address: Optional[str] = None
    careers: List[Career] = Field(default_factory=list)
    housing: bool = False
    job_assistance: bool = False
    job_guarantee: bool = False
    accept_gi: bool = False


class BootcampUpdate(BaseModel):
    """
    Body of PUT /api/v1/bootcamps/{id}.

    Every field is optional; only the fields the client sent are written
    (the service dumps with exclude_unset).
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    website: Optional[str] = Field(default=None, max_length=255, pattern=URL_PATTERN)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[str] = Field(default=None, max_length=255, pattern=EMAIL_PATTERN)
    address: Optional[str] = None
    careers: Optional[List[Career]] = None
    housing: Optional[bool] = None
    job_assistance: Optional[bool] = None
    job_guarantee: Optional[bool] = None
    accept_gi: Optional[bool] = None

    @field_validator(
        "name",
        "description",
        "careers",
        "housing",
        "job_assistance",
        "job_guarantee",
        "accept_gi",
    )
    @classmethod
    def reject_null(cls, v):
        """Omit a field to leave it unchanged; null would clear a NOT NULL column."""
        if v is None:
            raise ValueError("may not be null")
        return v


class BootcampResponse(BaseModel):
    """Full representation of a single bootcamp."""

    id: uuid.UUID
    name: str
    description: str
    website: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    careers: List[str] = Field(default_factory=list)
    average_rating: Optional[float] = None
    average_cost: Optional[float] = None
    photo: str
    housing: bool
    job_assistance: bool
    job_guarantee: bool
    accept_gi: bool
    created_at: datetime


class BootcampEnvelope(BaseModel):
    success: bool = True
    data: BootcampResponse
