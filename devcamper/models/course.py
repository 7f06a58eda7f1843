"""
DevCamper API — Course SQLAlchemy Model
=========================================

What:  ORM model for the `courses` table. Every course belongs to one bootcamp.

Average cost:
    The mean tuition of a bootcamp's courses is stored on the bootcamp.
    It is recomputed by CourseService.update_average_cost after every
    course insert, update and delete; the model itself has no hooks.
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from devcamper.database import Base

if TYPE_CHECKING:
    from devcamper.models.bootcamp import Bootcamp

MINIMUM_SKILLS = ("beginner", "intermediate", "advanced")


class Course(Base):
    """A course offered by a bootcamp."""

    __tablename__ = "courses"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    weeks: Mapped[str] = mapped_column(String(20), nullable=False)
    tuition: Mapped[float] = mapped_column(Float, nullable=False)

    # One of MINIMUM_SKILLS; enforced by the request schema
    minimum_skill: Mapped[str] = mapped_column(String(20), nullable=False)

    scholarship_available: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    bootcamp_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("bootcamps.id"),
        nullable=False,
    )

    bootcamp: Mapped["Bootcamp"] = relationship(
        "Bootcamp",
        back_populates="courses",
        lazy="raise",
    )

    # The average-cost aggregation matches on bootcamp_id
    __table_args__ = (
        Index("idx_courses_bootcamp_id", "bootcamp_id"),
    )

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, title='{self.title}', bootcamp_id={self.bootcamp_id})>"
