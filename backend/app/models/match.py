from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Boolean, DateTime, Text, Uuid, func
from app.db import Base

class Match(Base):
    __tablename__ = "matches"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    league: Mapped[str] = mapped_column(String(120), index=True, nullable=False)
    season: Mapped[str | None] = mapped_column(String(32), nullable=True)
    team_a_name: Mapped[str] = mapped_column(String(80), nullable=False)
    team_a_short_name: Mapped[str] = mapped_column(String(8), nullable=False)
    team_b_name: Mapped[str] = mapped_column(String(80), nullable=False)
    team_b_short_name: Mapped[str] = mapped_column(String(8), nullable=False)
    venue: Mapped[str | None] = mapped_column(String(120), nullable=True)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False)

    status: Mapped[str] = mapped_column(String(16), index=True, nullable=False, default="upcoming")  # upcoming|locked|completed|abandoned
    is_editable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    result: Mapped[str | None] = mapped_column(String(16), nullable=True)  # team_a|team_b|draw|no_result
    winner_team_short_name: Mapped[str | None] = mapped_column(String(8), nullable=True)
    summary: Mapped[str | None] = mapped_column(Text(), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def label(self) -> str:
        return f"{self.team_a_short_name} vs {self.team_b_short_name}"
