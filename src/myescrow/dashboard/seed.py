"""Demo seed data: one verified account with a populated dashboard."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from myescrow.auth.service import create_account, get_user_by_email
from myescrow.dashboard.service import add_timeline_event, apply_escrow_action, create_dispute, create_escrow
from myescrow.wallet.service import top_up

logger = logging.getLogger(__name__)

DEMO_EMAIL = "scott@example.com"
DEMO_NAME = "Scott Ramsey"
DEMO_PASSWORD = "Escrow-Demo-2024!"
DEMO_WALLET_CENTS = 2_500_000

ESCROW_SEED_DATA: list[dict] = [
    {
        "title": "Foundation pour",
        "counterpart": "Acme Builders",
        "amount": 48_500.00,
        "category": "Construction",
        "actions": ["approve"],
    },
    {
        "title": "Brand refresh phase 2",
        "counterpart": "Northwind Studio",
        "amount": 12_750.00,
        "category": "Design",
        "actions": [],
    },
    {
        "title": "Cloud migration",
        "counterpart": "Globex Systems",
        "amount": 30_000.00,
        "category": None,
        "actions": ["approve", "release"],
    },
]

DISPUTE_SEED_DATA: list[dict] = [
    {
        "title": "Late delivery of steel beams",
        "owner_team": "Acme Builders",
        "amount_cents": 920_000,
        "priority": "high",
        "updated_label": "Updated 2h ago",
    },
    {
        "title": "Scope disagreement on logo set",
        "owner_team": "Northwind Studio",
        "amount_cents": 185_000,
        "priority": "low",
        "updated_label": "Updated yesterday",
    },
]


async def seed_demo_data(db: AsyncSession) -> bool:
    """Create the demo account and its dashboard. Returns False if it already exists."""
    if await get_user_by_email(db, DEMO_EMAIL) is not None:
        return False

    user = await create_account(db, DEMO_NAME, DEMO_EMAIL, DEMO_PASSWORD, email_verified=True)
    await top_up(db, user.id, DEMO_WALLET_CENTS)
    await add_timeline_event(db, user.id, title="Wallet funded", meta="Opening balance", status="funding")

    for data in ESCROW_SEED_DATA:
        escrow = await create_escrow(
            db,
            user.id,
            title=data["title"],
            counterpart=data["counterpart"],
            amount=data["amount"],
            category=data["category"],
        )
        for action in data["actions"]:
            await apply_escrow_action(db, user.id, escrow.reference, action)

    for data in DISPUTE_SEED_DATA:
        await create_dispute(db, user.id, **data)

    await db.commit()
    logger.info("Seeded demo account %s", user.id)
    return True
