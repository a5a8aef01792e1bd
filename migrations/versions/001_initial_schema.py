"""Initial schema with PostGIS extension, hospitals and blood requests.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from geoalchemy2 import Geometry


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Enable PostGIS extension
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis")

    # ── hospitals ─────────────────────────────────────────────────────
    op.create_table(
        "hospitals",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("address", sa.Text, nullable=False),
        sa.Column("district", sa.String(120), nullable=False),
        sa.Column("phone", sa.String(40), nullable=False),
        sa.Column("services", sa.Text, nullable=False),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column(
            "location",
            Geometry("POINT", srid=4326, spatial_index=False),
            nullable=True,
        ),
        sa.Column("is_free", sa.Boolean, default=False),
        sa.Column("is_verified", sa.Boolean, default=False),
        sa.Column("is_emergency", sa.Boolean, default=True),
        sa.Column("open_hours", sa.String(60), default="24/7"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "idx_hospitals_lat_lng", "hospitals", ["latitude", "longitude"]
    )
    op.create_index(
        "idx_hospitals_location",
        "hospitals",
        ["location"],
        postgresql_using="gist",
    )
    op.create_index("idx_hospitals_district", "hospitals", ["district"])
    op.create_index("idx_hospitals_emergency", "hospitals", ["is_emergency"])

    # ── blood_requests ────────────────────────────────────────────────
    op.create_table(
        "blood_requests",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("blood_group", sa.String(3), nullable=False),
        sa.Column("units_required", sa.Integer, nullable=False),
        sa.Column("patient_name", sa.String(120), nullable=True),
        sa.Column(
            "hospital_id",
            sa.String(64),
            sa.ForeignKey("hospitals.id"),
            nullable=True,
        ),
        sa.Column("hospital_name", sa.Text, nullable=False),
        sa.Column("contact_person", sa.String(120), nullable=False),
        sa.Column("contact_phone", sa.String(40), nullable=False),
        sa.Column("urgency", sa.String(10), nullable=False),
        sa.Column("district", sa.String(120), nullable=False),
        sa.Column("is_active", sa.Boolean, default=True),
        sa.Column("is_verified", sa.Boolean, default=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_blood_requests_group", "blood_requests", ["blood_group"])
    op.create_index("idx_blood_requests_urgency", "blood_requests", ["urgency"])
    op.create_index("idx_blood_requests_district", "blood_requests", ["district"])
    op.create_index("idx_blood_requests_active", "blood_requests", ["is_active"])


def downgrade() -> None:
    op.drop_table("blood_requests")
    op.drop_table("hospitals")
