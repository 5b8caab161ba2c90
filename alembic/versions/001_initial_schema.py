"""Initial schema: advertisement targeting tables and indexes.

Creates the three tables in FK-dependency order:

1. advertisement            — titled creative with its active window
2. advertisement_condition  — audience rule sets (FK → advertisement)
3. condition_country        — allowed countries per condition
                              (FK → advertisement_condition)

Indexes on advertisement.start_at / end_at serve the active-window scan;
the index on advertisement_condition.advertisement_id serves the join.

Revision ID: 001
Revises:
Create Date: 2026-10-17
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables and indexes."""

    op.create_table(
        "advertisement",
        sa.Column("id", sa.Integer, autoincrement=True, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_advertisement"),
    )
    op.create_index("ix_advertisement_start_at", "advertisement", ["start_at"])
    op.create_index("ix_advertisement_end_at", "advertisement", ["end_at"])

    op.create_table(
        "advertisement_condition",
        sa.Column("id", sa.Integer, autoincrement=True, nullable=False),
        sa.Column("advertisement_id", sa.Integer, nullable=False),
        sa.Column("age_start", sa.SmallInteger, nullable=True),
        sa.Column("age_end", sa.SmallInteger, nullable=True),
        sa.Column("gender", sa.String(2), nullable=True),
        sa.Column("unlimited_country", sa.Boolean, nullable=False),
        sa.Column("platform", sa.SmallInteger, nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_advertisement_condition"),
        sa.ForeignKeyConstraint(
            ["advertisement_id"],
            ["advertisement.id"],
            name="fk_advertisement_condition_advertisement_id_advertisement",
        ),
        sa.CheckConstraint(
            "age_start BETWEEN 0 AND 100",
            name="ck_advertisement_condition_age_start_range",
        ),
        sa.CheckConstraint(
            "age_end BETWEEN 0 AND 100",
            name="ck_advertisement_condition_age_end_range",
        ),
        sa.CheckConstraint(
            "gender IN ('M', 'F', 'MF')",
            name="ck_advertisement_condition_gender_code",
        ),
        sa.CheckConstraint(
            "platform BETWEEN 0 AND 7",
            name="ck_advertisement_condition_platform_mask",
        ),
    )
    op.create_index(
        "ix_advertisement_condition_advertisement_id",
        "advertisement_condition",
        ["advertisement_id"],
    )

    op.create_table(
        "condition_country",
        sa.Column("condition_id", sa.Integer, nullable=False),
        sa.Column("country_code", sa.String(2), nullable=False),
        sa.PrimaryKeyConstraint("condition_id", "country_code", name="pk_condition_country"),
        sa.ForeignKeyConstraint(
            ["condition_id"],
            ["advertisement_condition.id"],
            name="fk_condition_country_condition_id_advertisement_condition",
        ),
    )


def downgrade() -> None:
    """Drop all tables in reverse FK order."""
    op.drop_table("condition_country")
    op.drop_index(
        "ix_advertisement_condition_advertisement_id",
        table_name="advertisement_condition",
    )
    op.drop_table("advertisement_condition")
    op.drop_index("ix_advertisement_end_at", table_name="advertisement")
    op.drop_index("ix_advertisement_start_at", table_name="advertisement")
    op.drop_table("advertisement")
