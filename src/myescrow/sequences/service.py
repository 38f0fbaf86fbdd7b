"""Durable per-domain sequence allocation.

Each allocation is a single ``INSERT ... ON CONFLICT DO UPDATE ... RETURNING``
statement, so the read and the increment happen atomically in the database.
Concurrent callers on the same domain serialise on the counter row; nothing
is cached in process.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy.dialects import postgresql, sqlite

from myescrow.db.models import SequenceCounter

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

# Domain name -> first value handed out when the counter row does not exist yet.
DEFAULT_STARTS: dict[str, int] = {
    "user": 1000,
    "escrow": 650,
    "dispute": 100,
    "timeline": 1,
    "notification": 1,
}

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


async def allocate(db: AsyncSession, domain: str, default_start: int | None = None) -> int:
    """
    Return the next value for ``domain`` and advance the stored counter.

    Runs inside the caller's transaction, so the allocation commits (or rolls
    back) together with whatever record the value is used for.
    """
    start = DEFAULT_STARTS.get(domain, 1) if default_start is None else default_start
    dialect = db.get_bind().dialect.name
    insert = _INSERT_BY_DIALECT.get(dialect)
    if insert is None:
        msg = f"Sequence allocation is not supported on dialect '{dialect}'"
        raise RuntimeError(msg)

    stmt = (
        insert(SequenceCounter)
        .values(id=domain, current_value=start + 1)
        .on_conflict_do_update(
            index_elements=[SequenceCounter.id],
            set_={"current_value": SequenceCounter.current_value + 1},
        )
        .returning(SequenceCounter.current_value)
    )
    result = await db.execute(stmt)
    return int(result.scalar_one()) - 1


async def allocate_committed(db: AsyncSession, domain: str, default_start: int | None = None) -> int:
    """Allocate in a transaction of its own and commit before returning."""
    value = await allocate(db, domain, default_start)
    await db.commit()
    logger.debug("sequence_allocated", domain=domain, value=value)
    return value
