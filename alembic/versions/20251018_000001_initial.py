"""Initial schema: users, seasons, tryouts.

Revision ID: 20251018_000001
Revises:
Create Date: 2025-10-18 00:00:01
"""

from alembic import op  # type: ignore[attr-defined]
import sqlalchemy as sa

revision = "20251018_000001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=254), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_is_admin", "users", ["is_admin"], unique=False)
    op.create_index("ix_users_created_at", "users", ["created_at"], unique=False)

    op.create_table(
        "seasons",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_seasons_created_at", "seasons", ["created_at"], unique=False)
    # Partial unique index: only one row may carry is_active = true.
    op.create_index(
        "uq_seasons_single_active",
        "seasons",
        ["is_active"],
        unique=True,
        postgresql_where=sa.text("is_active"),
    )

    op.create_table(
        "tryouts",
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("season_id", sa.Integer(), sa.ForeignKey("seasons.id"), nullable=False),
        sa.Column("payment_status", sa.String(length=32), nullable=False, server_default="paid"),
        sa.Column("checkout_session_id", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("user_id", "season_id", name="tryouts_pkey"),
    )
    op.create_index("ix_tryouts_season_id", "tryouts", ["season_id"], unique=False)
    op.create_index("ix_tryouts_created_at", "tryouts", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_tryouts_created_at", table_name="tryouts")
    op.drop_index("ix_tryouts_season_id", table_name="tryouts")
    op.drop_table("tryouts")
    op.drop_index("uq_seasons_single_active", table_name="seasons")
    op.drop_index("ix_seasons_created_at", table_name="seasons")
    op.drop_table("seasons")
    op.drop_index("ix_users_created_at", table_name="users")
    op.drop_index("ix_users_is_admin", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
