"""initial schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""
from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ENUM, JSONB, UUID

from alembic import op

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    listing_status = ENUM("available", "full", "closed", name="listing_status", create_type=False)
    listing_status.create(op.get_bind(), checkfirst=True)

    preference_gender = ENUM("male", "female", "any", name="preference_gender", create_type=False)
    preference_gender.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "housing_shares",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("owner_id", sa.String(64), nullable=False),
        # Description
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("governorate", sa.String(64), nullable=False),
        sa.Column("city", sa.String(128), nullable=False),
        sa.Column("address", sa.String(512), nullable=False),
        sa.Column("university", sa.String(256), nullable=False),
        sa.Column("amenities", JSONB, nullable=False, server_default=sa.text("'[]'")),
        # Capacity and price
        sa.Column("current_occupants", sa.Integer(), nullable=False),
        sa.Column("total_capacity", sa.Integer(), nullable=False),
        sa.Column("price_per_person", sa.Numeric(10, 2), nullable=False),
        # Preferences
        sa.Column("preferred_gender", preference_gender, nullable=False),
        sa.Column("study_field", sa.String(256), nullable=True),
        sa.Column("year_of_study", sa.String(64), nullable=True),
        sa.Column("photos", JSONB, nullable=False, server_default=sa.text("'[]'")),
        sa.Column("status", listing_status, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.CheckConstraint("total_capacity > current_occupants", name="ck_housing_shares_capacity"),
        sa.CheckConstraint("price_per_person >= 0", name="ck_housing_shares_price"),
    )

    op.create_index("ix_housing_shares_owner_id", "housing_shares", ["owner_id"])
    op.create_index("ix_housing_shares_status", "housing_shares", ["status"])
    op.create_index("ix_housing_shares_created_at", "housing_shares", ["created_at"])
    op.create_index(
        "ix_housing_shares_governorate_status_price",
        "housing_shares",
        ["governorate", "status", "price_per_person"],
    )


def downgrade() -> None:
    op.drop_table("housing_shares")
    sa.Enum(name="preference_gender").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="listing_status").drop(op.get_bind(), checkfirst=True)
