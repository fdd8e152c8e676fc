from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, DateTime, ForeignKey, UniqueConstraint, CheckConstraint, Uuid, func
from app.db import Base

class WalletTransaction(Base):
    """
    Append-only wallet ledger (per user).
    Amounts are always positive; `type` carries the direction:
      - credit => balance += amount
      - debit  => balance -= amount
    Idempotency: event_key is unique and derived from the business event,
    e.g. contest_join:{user_id}:{match_id}.
    """
    __tablename__ = "wallet_transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    type: Mapped[str] = mapped_column(String(8), nullable=False)     # credit | debit
    source: Mapped[str] = mapped_column(String(32), nullable=False)  # welcome_bonus | daily_login | contest_join | ...
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    reference_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    event_key: Mapped[str] = mapped_column(String(160), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("event_key", name="uq_wallet_tx_event_key"),
        CheckConstraint("amount > 0", name="ck_wallet_tx_amount_pos"),
        CheckConstraint("type IN ('credit', 'debit')", name="ck_wallet_tx_type"),
    )
