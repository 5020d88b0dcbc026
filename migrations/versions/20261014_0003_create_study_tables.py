"""Create study session history and the statistics snapshot table."""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261014_0003"
down_revision: Union[str, None] = "20261013_0002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "study_sessions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("set_id", sa.Integer(), nullable=True),
        sa.Column("cards_studied", sa.Integer(), nullable=False),
        sa.Column("duration_seconds", sa.Integer(), nullable=False),
        sa.Column(
            "completed_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ("user_id",),
            ("users.user_id",),
            name="fk_study_sessions_user_id_users",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ("set_id",),
            ("flashcard_sets.id",),
            name="fk_study_sessions_set_id_flashcard_sets",
            ondelete="SET NULL",
        ),
    )
    op.create_index(
        "ix_study_sessions_user_id_completed_at",
        "study_sessions",
        ("user_id", "completed_at"),
    )

    op.create_table(
        "study_stats",
        sa.Column("user_id", sa.String(length=128), primary_key=True, nullable=False),
        sa.Column("total_cards", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("mastered_cards", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("due_cards", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("study_streak", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("total_study_sessions", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("last_study_date", sa.Date(), nullable=True),
        sa.Column("computed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            server_onupdate=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ("user_id",),
            ("users.user_id",),
            name="fk_study_stats_user_id_users",
            ondelete="CASCADE",
        ),
    )


def downgrade() -> None:
    op.drop_table("study_stats")
    op.drop_index("ix_study_sessions_user_id_completed_at", table_name="study_sessions")
    op.drop_table("study_sessions")
