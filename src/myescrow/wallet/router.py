"""Wallet endpoints: top-up, withdrawal and ledger."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from myescrow.auth.dependencies import get_current_user
from myescrow.database import get_session
from myescrow.db.models import User
from myescrow.wallet.currency import cents_to_dollars, dollars_to_cents
from myescrow.wallet.schemas import WalletAdjustResponse, WalletAmountRequest, WalletTransactionListResponse
from myescrow.wallet.service import list_transactions, top_up, withdraw

router = APIRouter(prefix="/api/dashboard/wallet", tags=["Wallet"])


@router.post("/topup", response_model=WalletAdjustResponse)
async def topup(
    body: WalletAmountRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> WalletAdjustResponse:
    """Credit the caller's wallet."""
    updated = await top_up(db, user.id, dollars_to_cents(body.amount))
    await db.commit()
    return WalletAdjustResponse(amount=body.amount, balance=cents_to_dollars(updated.wallet_balance_cents))


@router.post("/withdraw", response_model=WalletAdjustResponse)
async def withdrawal(
    body: WalletAmountRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> WalletAdjustResponse:
    """Debit the caller's wallet. 400 when the balance would go negative."""
    updated = await withdraw(db, user.id, dollars_to_cents(body.amount))
    await db.commit()
    return WalletAdjustResponse(amount=body.amount, balance=cents_to_dollars(updated.wallet_balance_cents))


@router.get("/transactions", response_model=WalletTransactionListResponse)
async def transactions(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    """Latest ten ledger entries."""
    return {"transactions": await list_transactions(db, user.id)}
