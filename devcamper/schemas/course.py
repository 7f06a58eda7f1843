"""
DevCamper API — Course Request/Response Schemas
=================================================

What:  Pydantic models for course bodies and single-course responses.
Note:  The parent bootcamp is taken from the URL on create
       (POST /api/v1/bootcamps/{id}/courses), never from the body.
"""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MinimumSkill = Literal["beginner", "intermediate", "advanced"]


class CourseCreate(BaseModel):
    """Body of POST /api/v1/bootcamps/{id}/courses."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1)
    weeks: str = Field(min_length=1, max_length=20)
    tuition: float = Field(ge=0)
    minimum_skill: MinimumSkill
    scholarship_available: bool = False


class CourseUpdate(BaseModel):
    """Body of PUT /api/v1/courses/{id}; only sent fields are written."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1)
    weeks: Optional[str] = Field(default=None, min_length=1, max_length=20)
    tuition: Optional[float] = Field(default=None, ge=0)
    minimum_skill: Optional[MinimumSkill] = None
    scholarship_available: Optional[bool] = None

    # Every course column is NOT NULL
    @field_validator("*")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class BootcampSummary(BaseModel):
    """The slice of the parent bootcamp embedded in course responses."""

    id: uuid.UUID
    name: str
    description: str


class CourseResponse(BaseModel):
    """Full representation of a single course."""

    id: uuid.UUID
    title: str
    description: str
    weeks: str
    tuition: float
    minimum_skill: str
    scholarship_available: bool
    created_at: datetime
    bootcamp_id: uuid.UUID
    bootcamp: Optional[BootcampSummary] = None


class CourseEnvelope(BaseModel):
    success: bool = True
    data: CourseResponse
