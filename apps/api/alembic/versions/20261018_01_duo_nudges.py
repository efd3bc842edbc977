"""Create user profiles and duo nudge rate limit tables."""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20261018_01"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "user_profiles",
        sa.Column("id", sa.String(length=128), primary_key=True),
        sa.Column("username", sa.String(), nullable=True),
        sa.Column("display_name", sa.String(), nullable=True),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("language", sa.String(length=32), nullable=True),
        sa.Column("expo_push_token", sa.String(length=256), nullable=True),
        sa.Column("expo_push_tokens", sa.JSON(), nullable=False),
        sa.Column("current_challenges", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "duo_nudge_rate_limits",
        sa.Column(
            "recipient_id",
            sa.String(length=128),
            sa.ForeignKey("user_profiles.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("pair_key", sa.String(length=512), primary_key=True),
        sa.Column("auto_sent_day_key", sa.String(length=8), nullable=True),
        sa.Column("auto_last_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("manual_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("manual_count_day_key", sa.String(length=8), nullable=True),
        sa.Column("last_manual_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("duo_nudge_rate_limits")
    op.drop_table("user_profiles")
