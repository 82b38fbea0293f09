"""Create user_roles (one role assignment per user).

Revision ID: 001_user_roles
Revises:
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001_user_roles"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None


def upgrade() -> None:
    op.create_table(
        "user_roles",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("role", sa.Text, nullable=False),
        sa.Column("assigned_by", postgresql.UUID(as_uuid=True), nullable=True),
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
        sa.CheckConstraint(
            "role IN ('owner', 'admin', 'moderator', 'user')",
            name="ck_user_roles_role",
        ),
    )
    op.create_index("ix_user_roles_role", "user_roles", ["role"])
    op.create_index(
        "ix_user_roles_role_created_at",
        "user_roles",
        ["role", "created_at", "user_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_user_roles_role_created_at", table_name="user_roles")
    op.drop_index("ix_user_roles_role", table_name="user_roles")
    op.drop_table("user_roles")
