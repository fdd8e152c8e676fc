from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, DateTime, ForeignKey, UniqueConstraint, CheckConstraint, JSON, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from app.db import Base

class Scorecard(Base):
    """Match-level summary written by score ingestion (innings totals, result line)."""
    __tablename__ = "scorecards"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    match_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("matches.id", ondelete="CASCADE"), unique=True, nullable=False)
    innings: Mapped[list] = mapped_column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list)
    result_text: Mapped[str | None] = mapped_column(String(255), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

class PlayerPerformance(Base):
    """
    Aggregate per-player stats for one match, keyed by the catalog player id.
    Scoring joins rosters on player_id only; player_name is for display.
    """
    __tablename__ = "player_performances"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    match_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("matches.id", ondelete="CASCADE"), index=True, nullable=False)
    player_id: Mapped[str] = mapped_column(String(64), nullable=False)
    player_name: Mapped[str] = mapped_column(String(120), nullable=False)
    team_short_name: Mapped[str] = mapped_column(String(8), nullable=False)

    runs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    wickets: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fours: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sixes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    maidens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    catches: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    stumpings: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    run_outs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("match_id", "player_id", name="uq_performance_match_player"),
        CheckConstraint(
            "runs >= 0 AND wickets >= 0 AND fours >= 0 AND sixes >= 0 AND maidens >= 0 "
            "AND catches >= 0 AND stumpings >= 0 AND run_outs >= 0",
            name="ck_performance_nonneg",
        ),
    )
