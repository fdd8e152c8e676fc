from __future__ import annotations
from pydantic import BaseModel, ConfigDict
from uuid import UUID
from datetime import datetime

class WalletTransactionPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: str
    source: str
    amount: int
    title: str
    reference_id: str | None = None
    created_at: datetime

class WalletSummary(BaseModel):
    balance: int
    total_credit: int
    total_debit: int
    transaction_count: int
    last_transaction_at: datetime | None = None

class Pagination(BaseModel):
    page: int
    size: int
    total: int
    total_pages: int

class WalletTransactionPage(BaseModel):
    rows: list[WalletTransactionPublic]
    pagination: Pagination

class BonusResult(BaseModel):
    created: bool
    amount: int
    balance: int
    message: str

class LedgerAudit(BaseModel):
    user_id: UUID
    balance: int
    ledger_balance: int
    consistent: bool
