"""Create voice_consents table.

Revision ID: 001_voice_consents
Revises:
"""

import sqlalchemy as sa
from alembic import op

revision = "001_voice_consents"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "voice_consents",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("voice_owner_name", sa.String(200), nullable=False),
        sa.Column("voice_owner_email", sa.String(320), nullable=True),
        sa.Column(
            "consent_version",
            sa.String(20),
            nullable=False,
            server_default="v1.0",
        ),
        sa.Column("is_self", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("agreed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("retention_deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
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
        sa.CheckConstraint(
            "retention_deadline >= agreed_at",
            name="ck_voice_consents_deadline_after_agreement",
        ),
    )

    op.create_index("ix_voice_consents_user_id", "voice_consents", ["user_id"])

    # Partial index backing the retention scan
    op.create_index(
        "ix_voice_consents_retention_due",
        "voice_consents",
        ["retention_deadline"],
        postgresql_where=sa.text("deleted_at IS NULL"),
        sqlite_where=sa.text("deleted_at IS NULL"),
    )


def downgrade() -> None:
    op.drop_index("ix_voice_consents_retention_due", table_name="voice_consents")
    op.drop_index("ix_voice_consents_user_id", table_name="voice_consents")
    op.drop_table("voice_consents")
