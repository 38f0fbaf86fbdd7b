"""
Wallet balance mutation and ledger.

Balances are changed only through ``adjust_balance``: a locked
read-modify-write that refuses to go below zero. Each successful change
appends a signed ledger entry and a notification in the same transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import structlog
from sqlalchemy import desc, select

from myescrow.db.models import Notification, User, WalletTransaction
from myescrow.errors import InsufficientFundsError, NotFoundError, ValidationError
from myescrow.sequences.references import build_notification_id
from myescrow.sequences.service import allocate
from myescrow.wallet.currency import MAX_BALANCE_CENTS, format_currency_from_cents

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

TransactionType = Literal["TOPUP", "WITHDRAW", "RELEASE"]

_NOTIFICATION_LABELS: dict[str, str] = {
    "TOPUP": "Wallet funded",
    "WITHDRAW": "Withdrawal processed",
    "RELEASE": "Escrow release",
}


async def adjust_balance(db: AsyncSession, user_id: str, delta_cents: int) -> User:
    """
    Apply ``delta_cents`` to the user's wallet balance.

    The user row is locked for the rest of the transaction so concurrent
    adjustments for the same user serialise.

    Raises:
        NotFoundError: If the user does not exist.
        InsufficientFundsError: If the new balance would be negative. The
            balance is left unchanged.
        ValidationError: If the new balance would not fit a 64-bit column.
    """
    result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        msg = "User not found."
        raise NotFoundError(msg)

    next_balance = user.wallet_balance_cents + delta_cents
    if next_balance < 0:
        logger.info(
            "wallet_adjust_rejected",
            user_id=user_id,
            delta_cents=delta_cents,
            balance_cents=user.wallet_balance_cents,
        )
        msg = "Insufficient wallet balance."
        raise InsufficientFundsError(msg)
    if next_balance > MAX_BALANCE_CENTS:
        msg = "Wallet balance limit exceeded."
        raise ValidationError(msg, issues=[{"path": "amount", "message": msg}])

    user.wallet_balance_cents = next_balance
    await db.flush()
    logger.info("wallet_adjusted", user_id=user_id, delta_cents=delta_cents, balance_cents=next_balance)
    return user


async def record_transaction(
    db: AsyncSession,
    user_id: str,
    amount_cents: int,
    tx_type: TransactionType,
) -> WalletTransaction:
    """Append a signed ledger entry plus the matching notification."""
    entry = WalletTransaction(user_id=user_id, amount_cents=amount_cents, type=tx_type)
    db.add(entry)
    await db.flush()

    seq = await allocate(db, "notification")
    direction = "credited to" if amount_cents >= 0 else "debited from"
    db.add(
        Notification(
            id=build_notification_id(seq),
            seq=seq,
            user_id=user_id,
            label=_NOTIFICATION_LABELS[tx_type],
            detail=f"{format_currency_from_cents(abs(amount_cents))} {direction} your wallet",
            meta="Just now",
            tx_id=entry.id,
        )
    )
    await db.flush()
    return entry


async def top_up(db: AsyncSession, user_id: str, amount_cents: int) -> User:
    """Credit the wallet and record a TOPUP entry."""
    _require_positive(amount_cents)
    user = await adjust_balance(db, user_id, amount_cents)
    await record_transaction(db, user_id, amount_cents, "TOPUP")
    return user


async def withdraw(db: AsyncSession, user_id: str, amount_cents: int) -> User:
    """Debit the wallet and record a WITHDRAW entry (stored negative)."""
    _require_positive(amount_cents)
    user = await adjust_balance(db, user_id, -amount_cents)
    await record_transaction(db, user_id, -amount_cents, "WITHDRAW")
    return user


def _require_positive(amount_cents: int) -> None:
    if amount_cents <= 0:
        msg = "Amount must be at least $0.01."
        raise ValidationError(msg, issues=[{"path": "amount", "message": msg}])


async def list_transactions(db: AsyncSession, user_id: str, limit: int = 10) -> list[dict]:
    """Latest ledger entries, newest first, shaped for display."""
    result = await db.execute(
        select(WalletTransaction)
        .where(WalletTransaction.user_id == user_id)
        .order_by(desc(WalletTransaction.created_at), desc(WalletTransaction.id))
        .limit(limit)
    )
    return [
        {
            "id": tx.id,
            "amount": format_currency_from_cents(abs(tx.amount_cents)),
            "type": tx.type,
            "direction": "credit" if tx.amount_cents >= 0 else "debit",
            "created_at": tx.created_at.isoformat(),
        }
        for tx in result.scalars().all()
    ]
