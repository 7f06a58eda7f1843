"""Create bootcamps and courses tables

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Initial schema: `bootcamps` and their `courses`.
How:   PostgreSQL UUID primary keys, a JSON careers column and
       TIMESTAMP WITH TIME ZONE creation times.

Courses reference bootcamps without ON DELETE CASCADE: deleting a bootcamp
removes its courses explicitly in the application, in the same transaction.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "bootcamps",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("website", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column(
            "careers",
            sa.JSON(),
            nullable=False,
            server_default=sa.text("'[]'"),
        ),
        sa.Column("average_rating", sa.Float(), nullable=True),
        sa.Column(
            "average_cost",
            sa.Float(),
            nullable=True,
            comment="Mean course tuition, recomputed on every course write",
        ),
        sa.Column(
            "photo",
            sa.String(255),
            nullable=False,
            server_default=sa.text("'no-photo.jpg'"),
        ),
        sa.Column("housing", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("job_assistance", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("job_guarantee", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("accept_gi", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="uq_bootcamps_name"),
    )

    op.create_table(
        "courses",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("weeks", sa.String(20), nullable=False),
        sa.Column("tuition", sa.Float(), nullable=False),
        sa.Column("minimum_skill", sa.String(20), nullable=False),
        sa.Column(
            "scholarship_available",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("bootcamp_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.ForeignKeyConstraint(["bootcamp_id"], ["bootcamps.id"]),
        sa.PrimaryKeyConstraint("id"),
    )

    # Every course listing under a bootcamp and every average-cost
    # aggregation filters on bootcamp_id
    op.create_index("idx_courses_bootcamp_id", "courses", ["bootcamp_id"])


def downgrade() -> None:
    op.drop_index("idx_courses_bootcamp_id", table_name="courses")
    op.drop_table("courses")
    op.drop_table("bootcamps")
