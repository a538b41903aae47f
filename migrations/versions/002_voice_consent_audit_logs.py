"""Create voice_consent_audit_logs table.

Entries are write-once. On PostgreSQL a trigger rejects UPDATE and
DELETE so the guarantee also holds for raw SQL outside the ORM.

Revision ID: 002_voice_consent_audit_logs
Revises: 001_voice_consents
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "002_voice_consent_audit_logs"
down_revision = "001_voice_consents"
branch_labels = None
depends_on = None

AUDIT_ACTIONS = (
    "created",
    "viewed",
    "downloaded",
    "revoked",
    "auto_deleted_retention",
    "voice_profile_deleted",
)


def upgrade() -> None:
    op.create_table(
        "voice_consent_audit_logs",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        # No foreign key: the trail must survive any purge of consent rows
        sa.Column("consent_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column(
            "action",
            sa.Enum(
                *AUDIT_ACTIONS,
                name="voice_consent_audit_action",
                native_enum=False,
                length=50,
            ),
            nullable=False,
        ),
        sa.Column("performed_by", sa.String(255), nullable=True),
        sa.Column("performed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column(
            "details",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )

    op.create_index(
        "ix_voice_consent_audit_logs_consent_id",
        "voice_consent_audit_logs",
        ["consent_id"],
    )
    op.create_index(
        "ix_voice_consent_audit_logs_action",
        "voice_consent_audit_logs",
        ["action"],
    )
    op.create_index(
        "ix_voice_consent_audit_logs_performed_at",
        "voice_consent_audit_logs",
        ["performed_at"],
    )

    if op.get_bind().dialect.name == "postgresql":
        op.execute(
            """
            CREATE OR REPLACE FUNCTION voice_consent_audit_logs_immutable()
            RETURNS trigger AS $$
            BEGIN
                RAISE EXCEPTION 'voice_consent_audit_logs is append-only';
            END;
            $$ LANGUAGE plpgsql
            """
        )
        op.execute(
            """
            CREATE TRIGGER voice_consent_audit_logs_no_mutation
            BEFORE UPDATE OR DELETE ON voice_consent_audit_logs
            FOR EACH ROW EXECUTE FUNCTION voice_consent_audit_logs_immutable()
            """
        )


def downgrade() -> None:
    if op.get_bind().dialect.name == "postgresql":
        op.execute(
            "DROP TRIGGER IF EXISTS voice_consent_audit_logs_no_mutation "
            "ON voice_consent_audit_logs"
        )
        op.execute("DROP FUNCTION IF EXISTS voice_consent_audit_logs_immutable()")

    op.drop_index(
        "ix_voice_consent_audit_logs_performed_at",
        table_name="voice_consent_audit_logs",
    )
    op.drop_index(
        "ix_voice_consent_audit_logs_action", table_name="voice_consent_audit_logs"
    )
    op.drop_index(
        "ix_voice_consent_audit_logs_consent_id",
        table_name="voice_consent_audit_logs",
    )
    op.drop_table("voice_consent_audit_logs")
