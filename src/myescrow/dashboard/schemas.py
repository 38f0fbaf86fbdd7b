"""Dashboard Pydantic schemas."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import Field

from myescrow.schemas import CamelModel
from myescrow.wallet.currency import MAX_AMOUNT_DOLLARS


class EscrowAction(str, Enum):
    RELEASE = "release"
    APPROVE = "approve"
    REJECT = "reject"
    CANCEL = "cancel"


class DisputeAction(str, Enum):
    LAUNCH = "launch"
    RESOLVE = "resolve"


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateEscrowRequest(CamelModel):
    """Draft a new escrow. ``amount`` is in dollars."""

    title: str = Field(..., min_length=2, max_length=200)
    counterpart: str = Field(..., min_length=2, max_length=200)
    amount: float = Field(..., gt=0, le=MAX_AMOUNT_DOLLARS, allow_inf_nan=False)
    category: str | None = Field(None, max_length=120)
    description: str | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class SummaryMetricResponse(CamelModel):
    id: str
    label: str
    value: str
    meta: str


class EscrowResponse(CamelModel):
    """Escrow as shown on the dashboard; ``id`` is the display reference."""

    id: str
    counterpart: str
    amount: str
    stage: str
    due: str
    status: str
    counterparty_approved: bool


class TimelineEventResponse(CamelModel):
    id: str
    title: str
    meta: str
    time: str
    status: str


class OverviewResponse(CamelModel):
    summary_metrics: list[SummaryMetricResponse]
    active_escrows: list[EscrowResponse]
    timeline_events: list[TimelineEventResponse]


class EscrowListResponse(CamelModel):
    escrows: list[EscrowResponse]


class CreateEscrowResponse(CamelModel):
    success: bool = True
    escrow_id: int
    reference: str
    created_at: datetime


class EscrowActionResponse(CamelModel):
    success: bool = True
    escrow_id: str
    released_at: datetime | None = None


class DisputeResponse(CamelModel):
    id: str
    title: str
    owner: str
    amount: str
    updated: str
    priority: str


class DisputeListResponse(CamelModel):
    disputes: list[DisputeResponse]


class DisputeActionResponse(CamelModel):
    dispute_id: str
    launched_at: datetime | None = None
    resolved_at: datetime | None = None


class NotificationResponse(CamelModel):
    id: str
    label: str
    detail: str
    meta: str
    tx_id: int | None = None


class NotificationListResponse(CamelModel):
    notifications: list[NotificationResponse]
