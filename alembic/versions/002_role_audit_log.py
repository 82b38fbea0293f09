"""Create role_audit_log (append-only privilege change log).

Revision ID: 002_role_audit_log
Revises: 001_user_roles
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "002_role_audit_log"
down_revision: str | None = "001_user_roles"
branch_labels: str | None = None
depends_on: str | None = None


def upgrade() -> None:
    op.create_table(
        "role_audit_log",
        sa.Column("id", sa.BigInteger, sa.Identity(), primary_key=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("actor_user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("action", sa.Text, nullable=False),
        sa.Column("entity_type", sa.Text, nullable=False),
        sa.Column("entity_id", sa.Text, nullable=False),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
    )
    op.execute(
        "CREATE INDEX ix_role_audit_log_created_at_id "
        "ON role_audit_log (created_at DESC, id)"
    )
    op.create_index("ix_role_audit_log_actor", "role_audit_log", ["actor_user_id"])
    op.create_index(
        "ix_role_audit_log_entity", "role_audit_log", ["entity_type", "entity_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_role_audit_log_entity", table_name="role_audit_log")
    op.drop_index("ix_role_audit_log_actor", table_name="role_audit_log")
    op.execute("DROP INDEX IF EXISTS ix_role_audit_log_created_at_id")
    op.drop_table("role_audit_log")
