"""
DevCamper API — Bootcamp SQLAlchemy Model
===========================================

What:  ORM model for the `bootcamps` table.
Who:   BootcampService (CRUD, cascade delete, photo), CourseService (average
       cost write-back), the list query builder and Alembic.

Table Design Rationale:
    - UUID primary key, generated in Python so inserts work the same on
      PostgreSQL and on the SQLite database the tests use
    - name is unique: two bootcamps with the same name is a client error
    - careers is a JSON array of fixed career labels
    - average_cost is derived: CourseService recomputes it from the
      bootcamp's courses whenever one is created, updated or removed
    - photo holds a filename inside the upload directory, never a path
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from devcamper.database import Base

if TYPE_CHECKING:
    from devcamper.models.course import Course

DEFAULT_PHOTO = "no-photo.jpg"


class Bootcamp(Base):
    """
    A training provider listed in the directory.

    Query Patterns:
        - Listing: arbitrary column filters, sorted by name by default
          → the unique index on name serves the default ordering
        - Single fetch: WHERE id = :uuid (primary key)
    """

    __tablename__ = "bootcamps"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False)

    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    careers: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # Ratings come from reviews, which this service does not own yet
    average_rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    average_cost: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    photo: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default=DEFAULT_PHOTO,
    )

    housing: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    job_assistance: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    job_guarantee: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    accept_gi: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # lazy="raise": an async session cannot lazy-load, so every query that
    # needs the courses asks for them explicitly (selectinload). Deleting a
    # bootcamp goes through BootcampService.remove_with_cascade, not an ORM
    # cascade.
    courses: Mapped[List["Course"]] = relationship(
        "Course",
        back_populates="bootcamp",
        lazy="raise",
        order_by="Course.title",
        passive_deletes="all",
    )

    def __repr__(self) -> str:
        return f"<Bootcamp(id={self.id}, name='{self.name}')>"
