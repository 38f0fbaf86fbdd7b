"""ORM models for users, sequences, escrows, disputes and the activity feed.

All money columns are integer minor units (cents).
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from myescrow.db.base import Base, utcnow

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
_BigIntPK = BigInteger().with_variant(Integer(), "sqlite")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Account holder and wallet owner."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("wallet_balance_cents >= 0", name="ck_users_wallet_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(80), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    wallet_balance_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    escrows: Mapped[list[Escrow]] = relationship("Escrow", back_populates="owner")
    disputes: Mapped[list[Dispute]] = relationship("Dispute", back_populates="owner")


# ---------------------------------------------------------------------------
# Sequences
# ---------------------------------------------------------------------------


class SequenceCounter(Base):
    """Named monotonic counter. ``current_value`` is the next value to hand out."""

    __tablename__ = "sequences"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False)


# ---------------------------------------------------------------------------
# Escrows & disputes
# ---------------------------------------------------------------------------


class Escrow(Base):
    """Escrow contract owned by a single user."""

    __tablename__ = "escrows"
    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="ck_escrows_amount_positive"),
        CheckConstraint("status IN ('success', 'warning')", name="ck_escrows_status"),
        Index("ix_escrows_owner_updated", "owner_id", "updated_at"),
    )

    id: Mapped[int] = mapped_column(_BigIntPK, primary_key=True, autoincrement=True)
    reference: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    owner_id: Mapped[str] = mapped_column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    counterpart: Mapped[str] = mapped_column(String(200), nullable=False)
    amount_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    stage: Mapped[str] = mapped_column(String(200), nullable=False)
    due_description: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="warning")
    counterparty_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    category: Mapped[str | None] = mapped_column(String(120), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    owner: Mapped[User] = relationship("User", back_populates="escrows")


class Dispute(Base):
    """Dispute case raised against an escrow counterparty."""

    __tablename__ = "disputes"
    __table_args__ = (
        CheckConstraint("priority IN ('high', 'medium', 'low')", name="ck_disputes_priority"),
        CheckConstraint("status IN ('open', 'resolved')", name="ck_disputes_status"),
    )

    id: Mapped[int] = mapped_column(_BigIntPK, primary_key=True, autoincrement=True)
    reference: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    owner_id: Mapped[str] = mapped_column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    owner_team: Mapped[str] = mapped_column(String(120), nullable=False)
    amount_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_label: Mapped[str] = mapped_column(String(120), nullable=False)
    priority: Mapped[str] = mapped_column(String(8), nullable=False, default="medium")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="open")
    workspace_launched: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    owner: Mapped[User] = relationship("User", back_populates="disputes")


# ---------------------------------------------------------------------------
# Activity feed (append-only)
# ---------------------------------------------------------------------------


class TimelineEvent(Base):
    """Append-only activity record shown on the overview."""

    __tablename__ = "timeline_events"
    __table_args__ = (Index("ix_timeline_events_user_created", "user_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    seq: Mapped[int] = mapped_column(BigInteger, nullable=False)
    user_id: Mapped[str] = mapped_column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    meta: Mapped[str] = mapped_column(String(256), nullable=False)
    time_label: Mapped[str] = mapped_column(String(64), nullable=False, default="Just now")
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class WalletTransaction(Base):
    """Append-only wallet ledger entry. ``amount_cents`` is signed (credit > 0)."""

    __tablename__ = "wallet_transactions"
    __table_args__ = (
        CheckConstraint("type IN ('TOPUP', 'WITHDRAW', 'RELEASE')", name="ck_wallet_transactions_type"),
    )

    id: Mapped[int] = mapped_column(_BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    amount_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class Notification(Base):
    """Append-only user notification, optionally tied to a wallet transaction."""

    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    seq: Mapped[int] = mapped_column(BigInteger, nullable=False)
    user_id: Mapped[str] = mapped_column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    label: Mapped[str] = mapped_column(String(120), nullable=False)
    detail: Mapped[str] = mapped_column(String(256), nullable=False)
    meta: Mapped[str] = mapped_column(String(120), nullable=False)
    tx_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("wallet_transactions.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


# ---------------------------------------------------------------------------
# Email Verification Tokens
# ---------------------------------------------------------------------------


class EmailVerificationToken(Base):
    """Hashed one-time numeric code proving ownership of an email address."""

    __tablename__ = "email_verification_tokens"
    __table_args__ = (Index("ix_email_verification_tokens_user", "user_id", "consumed_at"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    code_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    consumed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped[User] = relationship("User")
