"""create patients, hospitals, visits and association tables

Revision ID: a1f3c5e7b9d2
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "a1f3c5e7b9d2"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "patients",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
    )
    op.create_index("ix_patients_last_name", "patients", ["last_name"])

    op.create_table(
        "hospitals",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
    )
    op.create_index("ix_hospitals_name", "hospitals", ["name"])

    op.create_table(
        "visits",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_visits_date", "visits", ["date"])

    op.create_table(
        "patient_hospital_visits",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "patient_id", sa.Uuid(),
            sa.ForeignKey("patients.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "hospital_id", sa.Uuid(),
            sa.ForeignKey("hospitals.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "visit_id", sa.Uuid(),
            sa.ForeignKey("visits.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.UniqueConstraint("visit_id", name="uq_patient_hospital_visit_visit"),
    )
    op.create_index(
        "ix_patient_hospital_visits_patient_id", "patient_hospital_visits", ["patient_id"]
    )
    op.create_index(
        "ix_patient_hospital_visits_hospital_id", "patient_hospital_visits", ["hospital_id"]
    )
    op.create_index(
        "ix_patient_hospital_visits_visit_id", "patient_hospital_visits", ["visit_id"]
    )


def downgrade() -> None:
    op.drop_table("patient_hospital_visits")
    op.drop_table("visits")
    op.drop_table("hospitals")
    op.drop_table("patients")
