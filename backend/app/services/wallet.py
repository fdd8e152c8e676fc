from __future__ import annotations
import math
from dataclasses import dataclass
from datetime import datetime, timezone as dt_tz
from uuid import UUID
import structlog
from sqlalchemy import select, func, update, case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.config import settings
from app.models.user import User
from app.models.wallet import WalletTransaction
from app.services.errors import InvalidAmount, InsufficientBalance, NotFound

log = structlog.get_logger()

TX_TYPES = ("credit", "debit")
TX_SOURCES = (
    "welcome_bonus",
    "daily_login",
    "contest_join",
    "contest_win",
    "contest_refund",
    "system_adjustment",
)


@dataclass(frozen=True)
class LedgerResult:
    created: bool
    amount: int
    event_key: str
    balance: int | None = None  # balance after the mutation; None for a repeated event

    @property
    def message(self) -> str:
        return "Transaction applied" if self.created else "Transaction already applied"


def utc_date_key(now: datetime | None = None) -> str:
    return (now or datetime.now(dt_tz.utc)).astimezone(dt_tz.utc).date().isoformat()


async def apply_transaction(
    session: AsyncSession,
    *,
    user_id: UUID,
    type: str,
    source: str,
    amount: int,
    title: str,
    event_key: str,
    reference_id: str | None = None,
) -> LedgerResult:
    """
    Append one ledger row and move the user's balance by the same amount, atomically.

    Runs inside a SAVEPOINT of the caller's transaction; the caller commits.
    A repeated event_key (including a concurrent racer that committed first)
    is a no-op returning created=False. Debits are guarded by a conditional
    UPDATE so the balance can never go below zero.
    """
    if type not in TX_TYPES:
        raise ValueError(f"unknown transaction type {type!r}")
    if source not in TX_SOURCES:
        raise ValueError(f"unknown transaction source {source!r}")
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount("Transaction amount must be a whole number of coins")
    if amount <= 0:
        raise InvalidAmount("Transaction amount must be positive")

    delta = amount if type == "credit" else -amount
    stmt = update(User).where(User.id == user_id)
    if type == "debit":
        stmt = stmt.where(User.balance >= amount)
    stmt = (
        stmt.values(balance=User.balance + delta)
        .returning(User.balance)
        .execution_options(synchronize_session=False)
    )

    try:
        async with session.begin_nested():
            session.add(WalletTransaction(
                user_id=user_id,
                type=type,
                source=source,
                amount=amount,
                title=title,
                reference_id=reference_id,
                event_key=event_key,
            ))
            await session.flush()
            new_balance = await session.scalar(stmt)
            if new_balance is None:
                if await session.scalar(select(User.id).where(User.id == user_id)) is None:
                    raise NotFound("User not found")
                raise InsufficientBalance(f"need {amount}")
    except IntegrityError:
        # either the event was already applied, or the user row is missing (FK)
        if await session.scalar(select(WalletTransaction.id).where(WalletTransaction.event_key == event_key)) is None:
            if await session.scalar(select(User.id).where(User.id == user_id)) is None:
                raise NotFound("User not found")
            raise
        log.info("ledger_duplicate_event", user_id=str(user_id), event_key=event_key, source=source)
        return LedgerResult(created=False, amount=amount, event_key=event_key)

    log.info(
        "ledger_applied",
        user_id=str(user_id), type=type, source=source, amount=amount,
        event_key=event_key, balance=int(new_balance),
    )
    return LedgerResult(created=True, amount=amount, event_key=event_key, balance=int(new_balance))


# ---------- derived operations (one deterministic event key each) ----------

async def apply_welcome_bonus(session: AsyncSession, user_id: UUID) -> LedgerResult:
    return await apply_transaction(
        session,
        user_id=user_id,
        type="credit",
        source="welcome_bonus",
        amount=settings.welcome_bonus_amount,
        title="Welcome Bonus",
        event_key=f"welcome_bonus:{user_id}",
    )


async def claim_daily_login_bonus(session: AsyncSession, user_id: UUID, now: datetime | None = None) -> LedgerResult:
    return await apply_transaction(
        session,
        user_id=user_id,
        type="credit",
        source="daily_login",
        amount=settings.daily_login_bonus_amount,
        title="Daily Login Bonus",
        event_key=f"daily_login:{user_id}:{utc_date_key(now)}",
    )


async def apply_contest_join_debit(session: AsyncSession, user_id: UUID, match_id: UUID) -> LedgerResult:
    return await apply_transaction(
        session,
        user_id=user_id,
        type="debit",
        source="contest_join",
        amount=settings.contest_join_fee,
        title="Contest Join Fee",
        reference_id=str(match_id),
        event_key=f"contest_join:{user_id}:{match_id}",
    )


async def apply_contest_win_credit(session: AsyncSession, user_id: UUID, match_id: UUID, amount: int) -> LedgerResult:
    return await apply_transaction(
        session,
        user_id=user_id,
        type="credit",
        source="contest_win",
        amount=amount,
        title="Contest Winnings",
        reference_id=str(match_id),
        event_key=f"contest_win:{user_id}:{match_id}",
    )


async def apply_contest_refund(session: AsyncSession, user_id: UUID, match_id: UUID, amount: int) -> LedgerResult:
    return await apply_transaction(
        session,
        user_id=user_id,
        type="credit",
        source="contest_refund",
        amount=amount,
        title="Contest Refund",
        reference_id=str(match_id),
        event_key=f"contest_refund:{user_id}:{match_id}",
    )


# ---------- reads ----------

async def _ledger_totals(session: AsyncSession, user_id: UUID) -> dict:
    row = (await session.execute(
        select(
            func.coalesce(func.sum(case((WalletTransaction.type == "credit", WalletTransaction.amount), else_=0)), 0),
            func.coalesce(func.sum(case((WalletTransaction.type == "debit", WalletTransaction.amount), else_=0)), 0),
            func.count(WalletTransaction.id),
            func.max(WalletTransaction.created_at),
        ).where(WalletTransaction.user_id == user_id)
    )).one()
    return {
        "total_credit": int(row[0] or 0),
        "total_debit": int(row[1] or 0),
        "transaction_count": int(row[2] or 0),
        "last_transaction_at": row[3],
    }


async def get_balance_summary(session: AsyncSession, user_id: UUID) -> dict:
    balance = await session.scalar(select(User.balance).where(User.id == user_id))
    if balance is None:
        raise NotFound("User not found")
    return {"balance": int(balance), **(await _ledger_totals(session, user_id))}


async def list_transactions(session: AsyncSession, user_id: UUID, page: int = 1, size: int = 20) -> dict:
    page = max(1, int(page or 1))
    size = max(1, min(100, int(size or 20)))

    total = await session.scalar(
        select(func.count()).select_from(WalletTransaction).where(WalletTransaction.user_id == user_id)
    ) or 0
    rows = (await session.execute(
        select(WalletTransaction)
        .where(WalletTransaction.user_id == user_id)
        .order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc())
        .offset((page - 1) * size)
        .limit(size)
    )).scalars().all()
    return {
        "rows": rows,
        "pagination": {
            "page": page,
            "size": size,
            "total": int(total),
            "total_pages": max(1, math.ceil(int(total) / size)),
        },
    }


async def verify_balance(session: AsyncSession, user_id: UUID) -> dict:
    """Audit: stored balance must equal credits minus debits over the ledger."""
    summary = await get_balance_summary(session, user_id)
    ledger_balance = summary["total_credit"] - summary["total_debit"]
    return {
        "user_id": user_id,
        "balance": summary["balance"],
        "ledger_balance": ledger_balance,
        "consistent": summary["balance"] == ledger_balance,
    }
