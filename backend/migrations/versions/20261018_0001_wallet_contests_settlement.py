from __future__ import annotations
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=120), nullable=True),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="user"),
        sa.Column("balance", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("balance >= 0", name="ck_users_balance_nonneg"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "wallet_transactions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(length=8), nullable=False),
        sa.Column("source", sa.String(length=32), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=120), nullable=False),
        sa.Column("reference_id", sa.String(length=64), nullable=True),
        sa.Column("event_key", sa.String(length=160), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("event_key", name="uq_wallet_tx_event_key"),
        sa.CheckConstraint("amount > 0", name="ck_wallet_tx_amount_pos"),
        sa.CheckConstraint("type IN ('credit', 'debit')", name="ck_wallet_tx_type"),
    )
    op.create_index("ix_wallet_transactions_user_id", "wallet_transactions", ["user_id"])
    op.create_index("ix_wallet_transactions_reference_id", "wallet_transactions", ["reference_id"])

    op.create_table(
        "matches",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("league", sa.String(length=120), nullable=False),
        sa.Column("season", sa.String(length=32), nullable=True),
        sa.Column("team_a_name", sa.String(length=80), nullable=False),
        sa.Column("team_a_short_name", sa.String(length=8), nullable=False),
        sa.Column("team_b_name", sa.String(length=80), nullable=False),
        sa.Column("team_b_short_name", sa.String(length=8), nullable=False),
        sa.Column("venue", sa.String(length=120), nullable=True),
        sa.Column("start_time", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="upcoming"),
        sa.Column("is_editable", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("result", sa.String(length=16), nullable=True),
        sa.Column("winner_team_short_name", sa.String(length=8), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("completed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_matches_league", "matches", ["league"])
    op.create_index("ix_matches_start_time", "matches", ["start_time"])
    op.create_index("ix_matches_status", "matches", ["status"])

    op.create_table(
        "contest_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("match_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("team_id", sa.String(length=64), nullable=False),
        sa.Column("team_name", sa.String(length=80), nullable=False),
        sa.Column("player_ids", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("captain_id", sa.String(length=64), nullable=False),
        sa.Column("vice_captain_id", sa.String(length=64), nullable=False),
        sa.Column("points", sa.Float(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("match_id", "user_id", name="uq_contest_entry_match_user"),
    )
    op.create_index("ix_contest_entries_match_id", "contest_entries", ["match_id"])
    op.create_index("ix_contest_entries_user_id", "contest_entries", ["user_id"])

    op.create_table(
        "scorecards",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("match_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("innings", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("result_text", sa.String(length=255), nullable=True),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )

    op.create_table(
        "player_performances",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("match_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("player_id", sa.String(length=64), nullable=False),
        sa.Column("player_name", sa.String(length=120), nullable=False),
        sa.Column("team_short_name", sa.String(length=8), nullable=False),
        *[sa.Column(c, sa.Integer(), nullable=False, server_default="0") for c in (
            "runs", "wickets", "fours", "sixes", "maidens", "catches", "stumpings", "run_outs",
        )],
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("match_id", "player_id", name="uq_performance_match_player"),
        sa.CheckConstraint(
            "runs >= 0 AND wickets >= 0 AND fours >= 0 AND sixes >= 0 AND maidens >= 0 "
            "AND catches >= 0 AND stumpings >= 0 AND run_outs >= 0",
            name="ck_performance_nonneg",
        ),
    )
    op.create_index("ix_player_performances_match_id", "player_performances", ["match_id"])

    op.create_table(
        "notifications",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("kind", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=120), nullable=False),
        sa.Column("message", sa.String(length=255), nullable=False),
        sa.Column("reference_id", sa.String(length=64), nullable=True),
        sa.Column("payload", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("dedupe_key", sa.String(length=160), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("dedupe_key", name="uq_notification_dedupe_key"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

def downgrade() -> None:
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_player_performances_match_id", table_name="player_performances")
    op.drop_table("player_performances")
    op.drop_table("scorecards")
    op.drop_index("ix_contest_entries_user_id", table_name="contest_entries")
    op.drop_index("ix_contest_entries_match_id", table_name="contest_entries")
    op.drop_table("contest_entries")
    op.drop_index("ix_matches_status", table_name="matches")
    op.drop_index("ix_matches_start_time", table_name="matches")
    op.drop_index("ix_matches_league", table_name="matches")
    op.drop_table("matches")
    op.drop_index("ix_wallet_transactions_reference_id", table_name="wallet_transactions")
    op.drop_index("ix_wallet_transactions_user_id", table_name="wallet_transactions")
    op.drop_table("wallet_transactions")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
