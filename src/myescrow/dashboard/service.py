"""Escrow, dispute and activity-feed logic behind the dashboard.

Escrow state is the pair (status, counterparty_approved) and only the owning
user can move it. Any reference the caller does not own is reported exactly
like a reference that does not exist.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import desc, func, select

from myescrow.db.models import Dispute, Escrow, Notification, TimelineEvent
from myescrow.errors import NotFoundError, ValidationError
from myescrow.sequences.references import build_dispute_reference, build_escrow_reference, build_timeline_id
from myescrow.sequences.service import allocate
from myescrow.wallet.currency import (
    MAX_AMOUNT_DOLLARS,
    dollars_to_cents,
    format_amount_with_suffix,
    format_currency_from_cents,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

ACTIVE_ESCROW_STATUSES = ("success", "warning")
ACTIVE_ESCROW_LIMIT = 5
RECENT_TIMELINE_LIMIT = 3

# action -> column updates applied to the escrow row
ESCROW_TRANSITIONS: dict[str, dict[str, Any]] = {
    "approve": {"status": "success", "counterparty_approved": True, "due_description": "Ready for release"},
    "release": {"status": "success", "counterparty_approved": True, "due_description": "Release queued"},
    "reject": {"status": "warning", "counterparty_approved": False, "due_description": "Awaiting revisions"},
    "cancel": {"status": "warning", "stage": "Cancelled", "due_description": "Cancelled"},
}

DISPUTE_TRANSITIONS: dict[str, dict[str, Any]] = {
    "launch": {"workspace_launched": True, "updated_label": "Workspace launched just now"},
    "resolve": {"status": "resolved", "updated_label": "Resolved"},
}


# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------


def escrow_view(escrow: Escrow) -> dict[str, Any]:
    return {
        "id": escrow.reference,
        "counterpart": escrow.counterpart,
        "amount": format_currency_from_cents(escrow.amount_cents),
        "stage": escrow.stage,
        "due": escrow.due_description,
        "status": escrow.status,
        "counterparty_approved": escrow.counterparty_approved,
    }


def timeline_view(event: TimelineEvent) -> dict[str, Any]:
    return {
        "id": event.id,
        "title": event.title,
        "meta": event.meta,
        "time": event.time_label,
        "status": event.status,
    }


# ---------------------------------------------------------------------------
# Overview aggregation (pure)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EscrowTotals:
    held_cents: int
    scheduled_cents: int
    contract_count: int
    approved_count: int
    warning_count: int
    counterpart_count: int


def summarize_escrows(escrows: Iterable[Escrow]) -> EscrowTotals:
    """Totals across every escrow the user owns."""
    escrows = list(escrows)
    approved = [e for e in escrows if e.counterparty_approved]
    return EscrowTotals(
        held_cents=sum(e.amount_cents for e in escrows),
        scheduled_cents=sum(e.amount_cents for e in approved),
        contract_count=len(escrows),
        approved_count=len(approved),
        warning_count=sum(1 for e in escrows if e.status == "warning"),
        counterpart_count=len({e.counterpart for e in escrows}),
    )


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive timestamps; everything stored is UTC.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def order_active_escrows(escrows: Iterable[Escrow], limit: int = ACTIVE_ESCROW_LIMIT) -> list[Escrow]:
    """Warnings first, then successes; most recently updated first within each."""
    active = [e for e in escrows if e.status in ACTIVE_ESCROW_STATUSES]
    active.sort(key=lambda e: _as_utc(e.updated_at), reverse=True)
    active.sort(key=lambda e: 0 if e.status == "warning" else 1)
    return active[:limit]


def summary_metrics(totals: EscrowTotals, open_disputes: int) -> list[dict[str, str]]:
    attention = (
        f"{totals.warning_count} contracts need attention" if totals.warning_count > 0 else "All contracts on track"
    )
    return [
        {
            "id": "held",
            "label": "Held in Escrow",
            "value": format_currency_from_cents(totals.held_cents),
            "meta": f"{totals.contract_count} active contracts",
        },
        {
            "id": "release",
            "label": "Releases scheduled",
            "value": format_currency_from_cents(totals.scheduled_cents),
            "meta": f"{totals.approved_count} approvals ready",
        },
        {
            "id": "disputes",
            "label": "Disputes open",
            "value": f"{open_disputes} cases",
            "meta": attention,
        },
        {
            "id": "verified",
            "label": "Verified payers",
            "value": f"{totals.counterpart_count} teams",
            "meta": "Live counterparties",
        },
    ]


async def get_overview(db: AsyncSession, user_id: str) -> dict[str, Any]:
    """Summary metrics, the most urgent active escrows and the latest activity."""
    escrows = (await db.execute(select(Escrow).where(Escrow.owner_id == user_id))).scalars().all()
    open_disputes = (
        await db.execute(
            select(func.count()).select_from(Dispute).where(Dispute.owner_id == user_id, Dispute.status == "open")
        )
    ).scalar_one()
    timeline = (
        await db.execute(
            select(TimelineEvent)
            .where(TimelineEvent.user_id == user_id)
            .order_by(desc(TimelineEvent.created_at), desc(TimelineEvent.seq))
            .limit(RECENT_TIMELINE_LIMIT)
        )
    ).scalars().all()

    totals = summarize_escrows(escrows)
    return {
        "summary_metrics": summary_metrics(totals, open_disputes),
        "active_escrows": [escrow_view(e) for e in order_active_escrows(escrows)],
        "timeline_events": [timeline_view(t) for t in timeline],
    }


# ---------------------------------------------------------------------------
# Escrows
# ---------------------------------------------------------------------------


async def list_escrows(db: AsyncSession, user_id: str) -> list[dict[str, Any]]:
    result = await db.execute(
        select(Escrow)
        .where(Escrow.owner_id == user_id)
        .order_by(Escrow.status.asc(), desc(Escrow.updated_at))
    )
    return [escrow_view(e) for e in result.scalars().all()]


async def create_escrow(
    db: AsyncSession,
    user_id: str,
    *,
    title: str,
    counterpart: str,
    amount: float,
    category: str | None = None,
    description: str | None = None,
) -> Escrow:
    """
    Draft a new escrow in ``warning`` state.

    The reference, the escrow row and the "drafted" timeline event are
    written in the caller's transaction and commit together.
    """
    amount_cents = dollars_to_cents(amount)
    if amount_cents <= 0:
        msg = "Amount must be at least $0.01."
        raise ValidationError(msg, issues=[{"path": "amount", "message": msg}])
    if amount_cents > MAX_AMOUNT_DOLLARS * 100:
        msg = "Amount is too large."
        raise ValidationError(msg, issues=[{"path": "amount", "message": msg}])

    reference = build_escrow_reference(await allocate(db, "escrow"))
    escrow = Escrow(
        reference=reference,
        owner_id=user_id,
        title=title,
        counterpart=counterpart,
        amount_cents=amount_cents,
        stage=f"{category} milestone" if category else "Initial milestone",
        due_description="Awaiting approval",
        status="warning",
        counterparty_approved=False,
        category=category,
        description=description,
    )
    db.add(escrow)
    await db.flush()

    await add_timeline_event(
        db,
        user_id,
        title=f"{counterpart} escrow drafted",
        meta=f"{title} created",
        status="attention",
    )
    logger.info("escrow_created", user_id=user_id, reference=reference, amount_cents=amount_cents)
    return escrow


async def _get_owned_escrow(db: AsyncSession, user_id: str, reference: str) -> Escrow:
    result = await db.execute(
        select(Escrow)
        .where(Escrow.reference == reference)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    escrow = result.scalar_one_or_none()
    if escrow is None or escrow.owner_id != user_id:
        msg = "Escrow not found."
        raise NotFoundError(msg)
    return escrow


async def apply_escrow_action(db: AsyncSession, user_id: str, reference: str, action: str) -> Escrow:
    """
    Run one of ``ESCROW_TRANSITIONS`` against an escrow the caller owns.

    Raises:
        NotFoundError: If the reference does not exist or belongs to someone else.
        ValueError: If ``action`` is not a known transition.
    """
    changes = ESCROW_TRANSITIONS.get(action)
    if changes is None:
        msg = f"Unknown escrow action: {action}"
        raise ValueError(msg)

    escrow = await _get_owned_escrow(db, user_id, reference)
    for column, value in changes.items():
        setattr(escrow, column, value)
    await db.flush()

    if action == "release":
        await add_timeline_event(
            db,
            user_id,
            title=f"Release approved for {escrow.reference}",
            meta=f"{escrow.counterpart} milestone queued",
            status="released",
        )
    logger.info("escrow_action_applied", user_id=user_id, reference=reference, action=action)
    return escrow


# ---------------------------------------------------------------------------
# Disputes
# ---------------------------------------------------------------------------


async def list_disputes(db: AsyncSession, user_id: str) -> list[dict[str, Any]]:
    """Open disputes for the user."""
    result = await db.execute(
        select(Dispute)
        .where(Dispute.owner_id == user_id, Dispute.status == "open")
        .order_by(desc(Dispute.updated_at))
    )
    return [
        {
            "id": d.reference,
            "title": d.title,
            "owner": d.owner_team,
            "amount": format_amount_with_suffix(d.amount_cents),
            "updated": d.updated_label,
            "priority": d.priority,
        }
        for d in result.scalars().all()
    ]


async def create_dispute(
    db: AsyncSession,
    user_id: str,
    *,
    title: str,
    owner_team: str,
    amount_cents: int,
    priority: str = "medium",
    updated_label: str = "Opened just now",
) -> Dispute:
    reference = build_dispute_reference(await allocate(db, "dispute"))
    dispute = Dispute(
        reference=reference,
        owner_id=user_id,
        title=title,
        owner_team=owner_team,
        amount_cents=amount_cents,
        updated_label=updated_label,
        priority=priority,
        status="open",
        workspace_launched=False,
    )
    db.add(dispute)
    await db.flush()
    return dispute


async def apply_dispute_action(db: AsyncSession, user_id: str, reference: str, action: str) -> Dispute:
    """Run ``launch`` or ``resolve`` against a dispute the caller owns."""
    changes = DISPUTE_TRANSITIONS.get(action)
    if changes is None:
        msg = f"Unknown dispute action: {action}"
        raise ValueError(msg)

    result = await db.execute(
        select(Dispute)
        .where(Dispute.reference == reference)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    dispute = result.scalar_one_or_none()
    if dispute is None or dispute.owner_id != user_id:
        msg = "Dispute not found."
        raise NotFoundError(msg)

    for column, value in changes.items():
        setattr(dispute, column, value)
    await db.flush()
    logger.info("dispute_action_applied", user_id=user_id, reference=reference, action=action)
    return dispute


# ---------------------------------------------------------------------------
# Activity feed
# ---------------------------------------------------------------------------


async def add_timeline_event(
    db: AsyncSession,
    user_id: str,
    *,
    title: str,
    meta: str,
    status: str,
    time_label: str = "Just now",
) -> TimelineEvent:
    seq = await allocate(db, "timeline")
    event = TimelineEvent(
        id=build_timeline_id(seq),
        seq=seq,
        user_id=user_id,
        title=title,
        meta=meta,
        status=status,
        time_label=time_label,
    )
    db.add(event)
    await db.flush()
    return event


async def list_notifications(db: AsyncSession, user_id: str) -> list[dict[str, Any]]:
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(desc(Notification.created_at), desc(Notification.seq))
    )
    return [
        {
            "id": n.id,
            "label": n.label,
            "detail": n.detail,
            "meta": n.meta,
            "tx_id": n.tx_id,
        }
        for n in result.scalars().all()
    ]
