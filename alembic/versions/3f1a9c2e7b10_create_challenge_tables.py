"""Create challenge, progress, ranking and reward tables.

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "3f1a9c2e7b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("coins", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_xp", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("level", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("user_id", name=op.f("profiles_pkey")),
    )

    op.create_table(
        "challenges",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=True),
        sa.Column("max_participants", sa.Integer(), nullable=True),
        sa.Column("total_days", sa.Integer(), nullable=True),
        sa.Column("difficulty_level", sa.String(length=30), nullable=True),
        sa.Column("daily_calories", sa.Integer(), nullable=True),
        sa.Column("daily_time_minutes", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("is_finished", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("manually_finalized", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column(
            "give_rewards_on_manual_finalization",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column("created_by", sa.String(length=64), nullable=False),
        sa.Column("finalized_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("challenges_pkey")),
    )
    op.create_index(op.f("ix_challenges_end_date"), "challenges", ["end_date"], unique=False)
    op.create_index(op.f("ix_challenges_is_finished"), "challenges", ["is_finished"], unique=False)

    op.create_table(
        "challenge_tasks",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("challenge_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("xp_points", sa.Integer(), nullable=False),
        sa.Column("unlock_time", sa.Time(), nullable=True),
        sa.Column("unlock_days", sa.JSON(), nullable=False),
        sa.Column("requires_photo", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.CheckConstraint("xp_points > 0", name="ck_challenge_tasks_xp_positive"),
        sa.ForeignKeyConstraint(
            ["challenge_id"], ["challenges.id"], name=op.f("challenge_tasks_challenge_id_fkey"), ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("challenge_tasks_pkey")),
    )
    op.create_index(op.f("ix_challenge_tasks_challenge_id"), "challenge_tasks", ["challenge_id"], unique=False)

    op.create_table(
        "challenge_enrollments",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("challenge_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["challenge_id"],
            ["challenges.id"],
            name=op.f("challenge_enrollments_challenge_id_fkey"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("challenge_enrollments_pkey")),
        sa.UniqueConstraint("challenge_id", "user_id", name="uq_enrollment_challenge_user"),
    )
    op.create_index(
        op.f("ix_challenge_enrollments_challenge_id"), "challenge_enrollments", ["challenge_id"], unique=False
    )
    op.create_index(op.f("ix_challenge_enrollments_user_id"), "challenge_enrollments", ["user_id"], unique=False)

    op.create_table(
        "progress_records",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("task_id", sa.String(length=36), nullable=False),
        sa.Column("photo_url", sa.String(length=1024), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("xp_earned", sa.Integer(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["task_id"], ["challenge_tasks.id"], name=op.f("progress_records_task_id_fkey"), ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("progress_records_pkey")),
        sa.UniqueConstraint("user_id", "task_id", name="uq_progress_user_task"),
    )
    op.create_index(op.f("ix_progress_records_user_id"), "progress_records", ["user_id"], unique=False)
    op.create_index(op.f("ix_progress_records_task_id"), "progress_records", ["task_id"], unique=False)

    op.create_table(
        "reward_tiers",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("challenge_id", sa.String(length=36), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("coins_reward", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.ForeignKeyConstraint(
            ["challenge_id"], ["challenges.id"], name=op.f("reward_tiers_challenge_id_fkey"), ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("reward_tiers_pkey")),
        sa.UniqueConstraint("challenge_id", "position", name="uq_reward_tier_challenge_position"),
    )
    op.create_index(op.f("ix_reward_tiers_challenge_id"), "reward_tiers", ["challenge_id"], unique=False)

    op.create_table(
        "ranking_entries",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("challenge_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("total_xp", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("coins_earned", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["challenge_id"], ["challenges.id"], name=op.f("ranking_entries_challenge_id_fkey"), ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("ranking_entries_pkey")),
        sa.UniqueConstraint("challenge_id", "user_id", name="uq_ranking_challenge_user"),
    )
    op.create_index(op.f("ix_ranking_entries_challenge_id"), "ranking_entries", ["challenge_id"], unique=False)
    op.create_index(op.f("ix_ranking_entries_user_id"), "ranking_entries", ["user_id"], unique=False)

    op.create_table(
        "reward_claims",
        sa.Column("challenge_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("coins", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["challenge_id"], ["challenges.id"], name=op.f("reward_claims_challenge_id_fkey"), ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("challenge_id", "user_id", name=op.f("reward_claims_pkey")),
    )


def downgrade() -> None:
    op.drop_table("reward_claims")
    op.drop_index(op.f("ix_ranking_entries_user_id"), table_name="ranking_entries")
    op.drop_index(op.f("ix_ranking_entries_challenge_id"), table_name="ranking_entries")
    op.drop_table("ranking_entries")
    op.drop_index(op.f("ix_reward_tiers_challenge_id"), table_name="reward_tiers")
    op.drop_table("reward_tiers")
    op.drop_index(op.f("ix_progress_records_task_id"), table_name="progress_records")
    op.drop_index(op.f("ix_progress_records_user_id"), table_name="progress_records")
    op.drop_table("progress_records")
    op.drop_index(op.f("ix_challenge_enrollments_user_id"), table_name="challenge_enrollments")
    op.drop_index(op.f("ix_challenge_enrollments_challenge_id"), table_name="challenge_enrollments")
    op.drop_table("challenge_enrollments")
    op.drop_index(op.f("ix_challenge_tasks_challenge_id"), table_name="challenge_tasks")
    op.drop_table("challenge_tasks")
    op.drop_index(op.f("ix_challenges_is_finished"), table_name="challenges")
    op.drop_index(op.f("ix_challenges_end_date"), table_name="challenges")
    op.drop_table("challenges")
    op.drop_table("profiles")
