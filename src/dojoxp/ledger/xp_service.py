"""XP application service: the only write path for student balances.

Every non-zero change to ``students.total_xp`` or ``students.global_xp`` is an
atomic increment paired with exactly one ``xp_transactions`` row in the same
unit of work. Callers own the transaction boundary (see
``dojoxp.database.ledger_transaction``); this module only flushes.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dojoxp.db.models import Student, TransactionType, XpTransaction
from dojoxp.errors import NotFound
from dojoxp.periods import utcnow

logger = logging.getLogger(__name__)


async def get_cached_balance(db: AsyncSession, student_id: uuid.UUID) -> int:
    """Read the cached ``total_xp``. Ledger-internal; read paths use reconciliation."""
    result = await db.execute(select(Student.total_xp).where(Student.id == student_id))
    balance = result.scalar_one_or_none()
    if balance is None:
        raise NotFound(f"Student {student_id} not found")
    return balance


async def apply_delta(
    db: AsyncSession,
    student_id: uuid.UUID,
    amount: int,
    reason: str,
    now: datetime | None = None,
) -> int:
    """Apply a signed XP delta and return the new cached balance.

    A zero delta is a no-op: no transaction row, current balance returned.
    Positive deltas are logged as EARN, negative ones as SPEND, both with the
    magnitude in ``amount``.
    """
    if amount == 0:
        return await get_cached_balance(db, student_id)

    if now is None:
        now = utcnow()

    result = await db.execute(
        update(Student)
        .where(Student.id == student_id)
        .values(total_xp=Student.total_xp + amount, updated_at=now)
        .returning(Student.total_xp)
    )
    new_balance = result.scalar_one_or_none()
    if new_balance is None:
        raise NotFound(f"Student {student_id} not found")

    db.add(XpTransaction(
        student_id=student_id,
        amount=abs(amount),
        type=TransactionType.EARN if amount > 0 else TransactionType.SPEND,
        reason=reason,
        created_at=now,
    ))
    await db.flush()

    logger.info("Applied %+d XP to student %s (%s) -> %d", amount, student_id, reason, new_balance)
    return new_balance


async def apply_global_delta(
    db: AsyncSession,
    student_id: uuid.UUID,
    amount: int,
    reason: str,
    now: datetime | None = None,
) -> int:
    """Grant cross-club global points, same discipline as ``apply_delta``.

    Global points are only ever earned; the row type is GLOBAL_EARN.
    """
    if amount < 0:
        raise ValueError("Global points cannot be spent")
    if amount == 0:
        result = await db.execute(select(Student.global_xp).where(Student.id == student_id))
        current = result.scalar_one_or_none()
        if current is None:
            raise NotFound(f"Student {student_id} not found")
        return current

    if now is None:
        now = utcnow()

    result = await db.execute(
        update(Student)
        .where(Student.id == student_id)
        .values(global_xp=Student.global_xp + amount, updated_at=now)
        .returning(Student.global_xp)
    )
    new_total = result.scalar_one_or_none()
    if new_total is None:
        raise NotFound(f"Student {student_id} not found")

    db.add(XpTransaction(
        student_id=student_id,
        amount=amount,
        type=TransactionType.GLOBAL_EARN,
        reason=reason,
        created_at=now,
    ))
    await db.flush()

    logger.info("Applied +%d global points to student %s (%s) -> %d", amount, student_id, reason, new_total)
    return new_total
