from __future__ import annotations
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_session
from app.auth_deps import get_current_user
from app.schemas.wallet import WalletSummary, WalletTransactionPage, WalletTransactionPublic, BonusResult
from app.services.errors import ServiceError, http_error
from app.services.wallet import (
    LedgerResult,
    apply_welcome_bonus,
    claim_daily_login_bonus,
    get_balance_summary,
    list_transactions,
)

router = APIRouter(prefix="/wallet", tags=["wallet"])

@router.get("/summary", response_model=WalletSummary)
async def wallet_summary(session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    try:
        return await get_balance_summary(session, user.id)
    except ServiceError as e:
        raise http_error(e)

@router.get("/transactions", response_model=WalletTransactionPage)
async def wallet_transactions(
    page: int = Query(1),
    size: int = Query(20),
    session: AsyncSession = Depends(get_session),
    user=Depends(get_current_user),
):
    data = await list_transactions(session, user.id, page=page, size=size)
    return {
        "rows": [WalletTransactionPublic.model_validate(r) for r in data["rows"]],
        "pagination": data["pagination"],
    }

async def _bonus_response(session: AsyncSession, user_id, res: LedgerResult) -> BonusResult:
    balance = res.balance
    if balance is None:
        balance = (await get_balance_summary(session, user_id))["balance"]
    return BonusResult(created=res.created, amount=res.amount, balance=balance, message=res.message)

@router.post("/welcome-bonus", response_model=BonusResult)
async def welcome_bonus(session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    user_id = user.id
    try:
        res = await apply_welcome_bonus(session, user_id)
        await session.commit()
    except ServiceError as e:
        await session.rollback()
        raise http_error(e)
    return await _bonus_response(session, user_id, res)

@router.post("/daily-bonus", response_model=BonusResult)
async def daily_bonus(session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    user_id = user.id
    try:
        res = await claim_daily_login_bonus(session, user_id)
        await session.commit()
    except ServiceError as e:
        await session.rollback()
        raise http_error(e)
    return await _bonus_response(session, user_id, res)
