"""Wallet Pydantic schemas. Amounts on the wire are dollars."""

from __future__ import annotations

from pydantic import Field

from myescrow.schemas import CamelModel
from myescrow.wallet.currency import MAX_AMOUNT_DOLLARS


class WalletAmountRequest(CamelModel):
    amount: float = Field(..., gt=0, le=MAX_AMOUNT_DOLLARS, allow_inf_nan=False)


class WalletAdjustResponse(CamelModel):
    success: bool = True
    amount: float
    balance: float


class WalletTransactionResponse(CamelModel):
    id: int
    amount: str
    type: str
    direction: str
    created_at: str


class WalletTransactionListResponse(CamelModel):
    transactions: list[WalletTransactionResponse]
