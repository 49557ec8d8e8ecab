"""initial harvest schema

Revision ID: 20261019000100
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '20261019000100'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "game_availability",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("collection_id", sa.String(length=64), nullable=False),
        sa.Column("language", sa.String(length=8), nullable=False),
        sa.Column("market", sa.String(length=8), nullable=False),
        sa.Column("product_id", sa.String(length=32), nullable=False),
        sa.Column("available_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "uq_availability_natural_key",
        "game_availability",
        ["collection_id", "language", "market", "product_id", "available_at"],
        unique=True,
    )
    op.create_index(
        "idx_availability_locale_time",
        "game_availability",
        ["language", "market", "available_at"],
        unique=False,
    )
    op.create_index(op.f("ix_game_availability_product_id"), "game_availability", ["product_id"], unique=False)
    op.create_index(op.f("ix_game_availability_available_at"), "game_availability", ["available_at"], unique=False)

    op.create_table(
        "game_descriptions",
        sa.Column("product_id", sa.String(length=32), nullable=False),
        sa.Column("language", sa.String(length=8), nullable=False),
        sa.Column("market", sa.String(length=8), nullable=False),
        sa.Column("product_title", sa.Text(), nullable=False),
        sa.Column("product_description", sa.Text(), nullable=False),
        sa.Column("developer_name", sa.Text(), nullable=False),
        sa.Column("publisher_name", sa.Text(), nullable=False),
        sa.Column("short_title", sa.Text(), nullable=False),
        sa.Column("sort_title", sa.Text(), nullable=False),
        sa.Column("short_description", sa.Text(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("product_id", "language", "market"),
    )

    op.create_table(
        "game_images",
        sa.Column("product_id", sa.String(length=32), nullable=False),
        sa.Column("file_id", sa.String(length=128), nullable=False),
        sa.Column("language", sa.String(length=8), nullable=False),
        sa.Column("market", sa.String(length=8), nullable=False),
        sa.Column("image_purpose", sa.String(length=64), nullable=False),
        sa.Column("image_position_info", sa.String(length=64), nullable=False),
        sa.Column("height", sa.Integer(), nullable=False),
        sa.Column("width", sa.Integer(), nullable=False),
        sa.Column("uri", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint(
            "product_id", "file_id", "language", "market", "image_purpose", "image_position_info"
        ),
    )

    op.create_table(
        "harvest_runs",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("run_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("failure_policy", sa.String(length=16), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration_seconds", sa.Float(), nullable=True),
        sa.Column("pairs_total", sa.Integer(), nullable=True),
        sa.Column("pairs_failed", sa.Integer(), nullable=True),
        sa.Column("availability_rows", sa.Integer(), nullable=True),
        sa.Column("unique_items", sa.Integer(), nullable=True),
        sa.Column("locales_total", sa.Integer(), nullable=True),
        sa.Column("locales_failed", sa.Integer(), nullable=True),
        sa.Column("descriptions_written", sa.Integer(), nullable=True),
        sa.Column("images_written", sa.Integer(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("failures", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_harvest_runs_run_id"), "harvest_runs", ["run_id"], unique=True)
    op.create_index(op.f("ix_harvest_runs_status"), "harvest_runs", ["status"], unique=False)
    op.create_index(op.f("ix_harvest_runs_started_at"), "harvest_runs", ["started_at"], unique=False)
    op.create_index("idx_harvest_run_status_started", "harvest_runs", ["status", "started_at"], unique=False)


def downgrade() -> None:
    op.drop_index("idx_harvest_run_status_started", table_name="harvest_runs")
    op.drop_index(op.f("ix_harvest_runs_started_at"), table_name="harvest_runs")
    op.drop_index(op.f("ix_harvest_runs_status"), table_name="harvest_runs")
    op.drop_index(op.f("ix_harvest_runs_run_id"), table_name="harvest_runs")
    op.drop_table("harvest_runs")
    op.drop_table("game_images")
    op.drop_table("game_descriptions")
    op.drop_index(op.f("ix_game_availability_available_at"), table_name="game_availability")
    op.drop_index(op.f("ix_game_availability_product_id"), table_name="game_availability")
    op.drop_index("idx_availability_locale_time", table_name="game_availability")
    op.drop_index("uq_availability_natural_key", table_name="game_availability")
    op.drop_table("game_availability")
