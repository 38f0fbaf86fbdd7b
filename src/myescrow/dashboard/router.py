"""Dashboard endpoints: overview, escrows, disputes, notifications."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from myescrow.auth.dependencies import get_current_user
from myescrow.dashboard.schemas import (
    CreateEscrowRequest,
    CreateEscrowResponse,
    DisputeAction,
    DisputeActionResponse,
    DisputeListResponse,
    EscrowAction,
    EscrowActionResponse,
    EscrowListResponse,
    NotificationListResponse,
    OverviewResponse,
)
from myescrow.dashboard.service import (
    apply_dispute_action,
    apply_escrow_action,
    create_escrow,
    get_overview,
    list_disputes,
    list_escrows,
    list_notifications,
)
from myescrow.database import get_session
from myescrow.db.models import User

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("/overview", response_model=OverviewResponse)
async def overview(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    """Summary metrics, the five most urgent active escrows and recent activity."""
    return await get_overview(db, user.id)


@router.get("/escrows", response_model=EscrowListResponse)
async def escrows(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    return {"escrows": await list_escrows(db, user.id)}


@router.post("/escrows/create", status_code=201, response_model=CreateEscrowResponse)
async def create(
    body: CreateEscrowRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CreateEscrowResponse:
    """Draft an escrow. Reference allocation and the row commit together."""
    escrow = await create_escrow(
        db,
        user.id,
        title=body.title,
        counterpart=body.counterpart,
        amount=body.amount,
        category=body.category,
        description=body.description,
    )
    await db.commit()
    return CreateEscrowResponse(escrow_id=escrow.id, reference=escrow.reference, created_at=escrow.created_at)


@router.post("/escrows/{reference}/{action}", response_model=EscrowActionResponse, response_model_exclude_none=True)
async def escrow_action(
    reference: str,
    action: EscrowAction,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> EscrowActionResponse:
    """Approve, release, reject or cancel an escrow the caller owns."""
    escrow = await apply_escrow_action(db, user.id, reference, action.value)
    await db.commit()
    released_at = datetime.now(timezone.utc) if action is EscrowAction.RELEASE else None
    return EscrowActionResponse(escrow_id=escrow.reference, released_at=released_at)


@router.get("/disputes", response_model=DisputeListResponse)
async def disputes(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    """Open disputes."""
    return {"disputes": await list_disputes(db, user.id)}


@router.post("/disputes/{reference}/{action}", response_model=DisputeActionResponse, response_model_exclude_none=True)
async def dispute_action(
    reference: str,
    action: DisputeAction,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> DisputeActionResponse:
    """Launch the dispute workspace or resolve the dispute."""
    dispute = await apply_dispute_action(db, user.id, reference, action.value)
    await db.commit()
    now = datetime.now(timezone.utc)
    if action is DisputeAction.LAUNCH:
        return DisputeActionResponse(dispute_id=dispute.reference, launched_at=now)
    return DisputeActionResponse(dispute_id=dispute.reference, resolved_at=now)


@router.get("/notifications", response_model=NotificationListResponse, response_model_exclude_none=True)
async def notifications(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    return {"notifications": await list_notifications(db, user.id)}
