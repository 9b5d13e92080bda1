"""Read-side reconciliation: displayed balance = max(cached, summed audit log).

Every read path that surfaces XP goes through this module. When the audit log
sums higher than the cache, the cache is patched so the next read is O(1). The
patch only ever raises the cached value; a patch that fails or loses a race is
harmless because the next read recomputes the same maximum.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from dojoxp.db.models import Student, TransactionType, XpTransaction
from dojoxp.errors import NotFound
from dojoxp.periods import as_utc, month_start, utcnow

logger = logging.getLogger(__name__)


async def _get_student(db: AsyncSession, student_id: uuid.UUID) -> Student:
    result = await db.execute(
        select(Student).where(Student.id == student_id).execution_options(populate_existing=True)
    )
    student = result.scalar_one_or_none()
    if student is None:
        raise NotFound(f"Student {student_id} not found")
    return student


async def _sum_transactions(
    db: AsyncSession,
    student_id: uuid.UUID,
    tx_type: str,
    since: datetime | None = None,
) -> int:
    stmt = select(func.coalesce(func.sum(XpTransaction.amount), 0)).where(
        XpTransaction.student_id == student_id,
        XpTransaction.type == tx_type,
    )
    if since is not None:
        stmt = stmt.where(XpTransaction.created_at >= since)
    result = await db.execute(stmt)
    return int(result.scalar_one())


def _signed_amount():
    """EARN rows add and SPEND rows subtract; GLOBAL_EARN is a separate currency."""
    return case((XpTransaction.type == TransactionType.SPEND, -XpTransaction.amount), else_=XpTransaction.amount)


async def _ledger_balance(db: AsyncSession, student_id: uuid.UUID) -> int:
    """Net lifetime XP recorded in the audit log (EARN minus SPEND)."""
    result = await db.execute(
        select(func.coalesce(func.sum(_signed_amount()), 0)).where(
            XpTransaction.student_id == student_id,
            XpTransaction.type.in_((TransactionType.EARN, TransactionType.SPEND)),
        )
    )
    return int(result.scalar_one())


async def _patch_cache(db: AsyncSession, student_id: uuid.UUID, column: str, candidate: int) -> None:
    """Raise a stale cached balance to ``candidate``. Best effort, never lowers."""
    col = getattr(Student, column)
    try:
        await db.execute(
            update(Student)
            .where(Student.id == student_id, col < candidate)
            .values({column: candidate})
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except DBAPIError:
        await db.rollback()
        logger.warning("Failed to patch %s cache for student %s", column, student_id, exc_info=True)
        return
    logger.info("Reconciled %s for student %s up to %d", column, student_id, candidate)


async def lifetime_xp(db: AsyncSession, student_id: uuid.UUID) -> int:
    """Lifetime XP as shown to callers: max(cached total_xp, net audit-log balance).

    With no SPEND rows the net balance is the all-time EARN sum. Spends are
    netted out so a read never restores XP that was deliberately deducted.
    """
    student = await _get_student(db, student_id)
    cached = student.total_xp
    earned = await _ledger_balance(db, student_id)
    candidate = max(cached, earned)
    if candidate > cached:
        await _patch_cache(db, student_id, "total_xp", candidate)
    return candidate


async def monthly_xp(db: AsyncSession, student_id: uuid.UUID, now: datetime | None = None) -> int:
    """XP earned in the current UTC calendar month.

    Students created this month are floored at their all-time cached balance:
    XP that predates the ledger counts as earned this month.
    """
    if now is None:
        now = utcnow()
    student = await _get_student(db, student_id)
    start = month_start(now)
    earned = await _sum_transactions(db, student_id, TransactionType.EARN, since=start)
    if as_utc(student.created_at) >= start:
        return max(earned, student.total_xp)
    return earned


async def global_score(db: AsyncSession, student_id: uuid.UUID) -> int:
    """Cross-club score: max(cached global_xp, GLOBAL_EARN sum)."""
    student = await _get_student(db, student_id)
    cached = student.global_xp
    earned = await _sum_transactions(db, student_id, TransactionType.GLOBAL_EARN)
    candidate = max(cached, earned)
    if candidate > cached:
        await _patch_cache(db, student_id, "global_xp", candidate)
    return candidate


async def club_leaderboard(
    db: AsyncSession,
    club_id: uuid.UUID,
    now: datetime | None = None,
) -> list[dict]:
    """Rank every student of a club by reconciled lifetime XP (computed on read)."""
    if now is None:
        now = utcnow()
    start = month_start(now)

    result = await db.execute(
        select(Student).where(Student.club_id == club_id).execution_options(populate_existing=True)
    )
    students = list(result.scalars())
    if not students:
        return []
    ids = [s.id for s in students]

    lifetime_result = await db.execute(
        select(XpTransaction.student_id, func.sum(_signed_amount()).label("earned"))
        .where(
            XpTransaction.student_id.in_(ids),
            XpTransaction.type.in_((TransactionType.EARN, TransactionType.SPEND)),
        )
        .group_by(XpTransaction.student_id)
    )
    lifetime_sums = {row.student_id: int(row.earned) for row in lifetime_result}

    monthly_result = await db.execute(
        select(XpTransaction.student_id, func.sum(XpTransaction.amount).label("earned"))
        .where(
            XpTransaction.student_id.in_(ids),
            XpTransaction.type == TransactionType.EARN,
            XpTransaction.created_at >= start,
        )
        .group_by(XpTransaction.student_id)
    )
    monthly_sums = {row.student_id: int(row.earned) for row in monthly_result}

    entries = []
    stale: list[tuple[uuid.UUID, int]] = []
    for s in students:
        total = max(s.total_xp, lifetime_sums.get(s.id, 0))
        if total > s.total_xp:
            stale.append((s.id, total))
        monthly = monthly_sums.get(s.id, 0)
        if as_utc(s.created_at) >= start:
            monthly = max(monthly, s.total_xp)
        entries.append({
            "student_id": s.id,
            "name": s.name,
            "total_xp": total,
            "monthly_xp": monthly,
        })

    for student_id, candidate in stale:
        await _patch_cache(db, student_id, "total_xp", candidate)

    entries.sort(key=lambda e: (-e["total_xp"], e["name"]))
    for rank, entry in enumerate(entries, start=1):
        entry["rank"] = rank
    return entries


async def xp_history(
    db: AsyncSession,
    student_id: uuid.UUID,
    page: int = 1,
    per_page: int = 50,
) -> tuple[list[XpTransaction], int]:
    """Paginated audit trail, newest first. Returns (entries, total)."""
    await _get_student(db, student_id)

    total_result = await db.execute(
        select(func.count()).select_from(XpTransaction).where(XpTransaction.student_id == student_id)
    )
    total = total_result.scalar_one()

    offset = (page - 1) * per_page
    result = await db.execute(
        select(XpTransaction)
        .where(XpTransaction.student_id == student_id)
        .order_by(XpTransaction.created_at.desc(), XpTransaction.id.desc())
        .offset(offset)
        .limit(per_page)
    )
    return list(result.scalars()), total
