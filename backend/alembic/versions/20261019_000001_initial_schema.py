"""Create the funding catalog and dossier tracking tables.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY

revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.Text(), nullable=False, unique=True),
        sa.Column("password", sa.Text(), nullable=False),
    )

    op.create_table(
        "funding_opportunities",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("funding_program", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("eligibility_criteria", sa.Text(), nullable=False),
        sa.Column("required_documents", sa.Text(), nullable=False),
        sa.Column("external_link", sa.Text(), nullable=True),
        sa.Column("deadline", sa.Text(), nullable=False),
        sa.Column("min_amount", sa.Integer(), nullable=True),
        sa.Column("max_amount", sa.Integer(), nullable=True),
        sa.Column("funding_type", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("sectors", ARRAY(sa.Text()), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "min_amount IS NULL OR max_amount IS NULL OR min_amount <= max_amount",
            name="funding_opportunities_amount_range_check",
        ),
    )
    op.create_index("idx_opportunities_status", "funding_opportunities", ["status"])
    op.create_index(
        "idx_opportunities_sectors",
        "funding_opportunities",
        ["sectors"],
        postgresql_using="gin",
    )

    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("organization_name", sa.Text(), nullable=False),
        sa.Column("contact_person", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("legal_status", sa.Text(), nullable=True),
        sa.Column(
            "structure_type",
            sa.Text(),
            server_default="Privé",
            nullable=False,
        ),
        *_timestamps(),
    )

    op.create_table(
        "applications",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "client_id",
            sa.Integer(),
            sa.ForeignKey("clients.id"),
            nullable=False,
        ),
        sa.Column(
            "funding_opportunity_id",
            sa.Integer(),
            sa.ForeignKey("funding_opportunities.id"),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Text(),
            server_default="En attente de documents",
            nullable=False,
        ),
        sa.Column(
            "submission_date",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("assigned_consultant", sa.Text(), nullable=True),
        sa.Column("completion_score", sa.Integer(), server_default="0", nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "completion_score BETWEEN 0 AND 100",
            name="applications_completion_score_check",
        ),
    )
    op.create_index("idx_applications_client", "applications", ["client_id"])
    op.create_index(
        "idx_applications_opportunity", "applications", ["funding_opportunity_id"]
    )

    op.create_table(
        "documents",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "application_id",
            sa.Integer(),
            sa.ForeignKey("applications.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("document_type", sa.Text(), nullable=False),
        sa.Column("file_name", sa.Text(), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("file_type", sa.Text(), nullable=True),
        sa.Column(
            "upload_date",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("is_required", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("status", sa.Text(), server_default="Soumis", nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("idx_documents_application", "documents", ["application_id"])


def downgrade() -> None:
    op.drop_index("idx_documents_application", table_name="documents")
    op.drop_table("documents")
    op.drop_index("idx_applications_opportunity", table_name="applications")
    op.drop_index("idx_applications_client", table_name="applications")
    op.drop_table("applications")
    op.drop_table("clients")
    op.drop_index("idx_opportunities_sectors", table_name="funding_opportunities")
    op.drop_index("idx_opportunities_status", table_name="funding_opportunities")
    op.drop_table("funding_opportunities")
    op.drop_table("users")
