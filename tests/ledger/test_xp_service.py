"""XP application service tests — paired balance change and audit row."""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy import func, select

from dojoxp.db.models import TransactionType, XpTransaction
from dojoxp.errors import NotFound
from dojoxp.ledger.xp_service import apply_delta, apply_global_delta, get_cached_balance


async def _transactions(db, student_id) -> list[XpTransaction]:
    result = await db.execute(
        select(XpTransaction).where(XpTransaction.student_id == student_id).order_by(XpTransaction.id)
    )
    return list(result.scalars())


class TestApplyDelta:
    """Every non-zero delta writes exactly one transaction."""

    @pytest.mark.asyncio
    async def test_positive_delta_is_earn(self, db_session, student, now):
        balance = await apply_delta(db_session, student.id, 15, "daily_quiz", now)
        await db_session.commit()

        assert balance == 15
        txs = await _transactions(db_session, student.id)
        assert len(txs) == 1
        assert txs[0].type == TransactionType.EARN
        assert txs[0].amount == 15
        assert txs[0].reason == "daily_quiz"

    @pytest.mark.asyncio
    async def test_negative_delta_is_spend_with_magnitude(self, db_session, make_student, now):
        s = await make_student(total_xp=100)
        balance = await apply_delta(db_session, s.id, -40, "shop", now)
        await db_session.commit()

        assert balance == 60
        txs = await _transactions(db_session, s.id)
        assert [(t.type, t.amount) for t in txs] == [(TransactionType.SPEND, 40)]

    @pytest.mark.asyncio
    async def test_zero_delta_is_noop(self, db_session, make_student, now):
        s = await make_student(total_xp=42)
        balance = await apply_delta(db_session, s.id, 0, "habit", now)

        assert balance == 42
        assert await _transactions(db_session, s.id) == []

    @pytest.mark.asyncio
    async def test_missing_student_is_not_found(self, db_session, now):
        with pytest.raises(NotFound):
            await apply_delta(db_session, uuid.uuid4(), 10, "habit", now)
        count = await db_session.execute(select(func.count()).select_from(XpTransaction))
        assert count.scalar_one() == 0

    @pytest.mark.asyncio
    async def test_zero_delta_for_missing_student_is_not_found(self, db_session):
        with pytest.raises(NotFound):
            await apply_delta(db_session, uuid.uuid4(), 0, "habit")

    @pytest.mark.asyncio
    async def test_balance_accumulates(self, db_session, student, now):
        await apply_delta(db_session, student.id, 3, "habit", now)
        await apply_delta(db_session, student.id, 3, "habit", now)
        await db_session.commit()
        assert await get_cached_balance(db_session, student.id) == 6
        assert len(await _transactions(db_session, student.id)) == 2


class TestApplyGlobalDelta:
    """Global points use their own column and GLOBAL_EARN rows."""

    @pytest.mark.asyncio
    async def test_global_points(self, db_session, student, now):
        total = await apply_global_delta(db_session, student.id, 15, "gauntlet", now)
        await db_session.commit()

        assert total == 15
        assert await get_cached_balance(db_session, student.id) == 0
        txs = await _transactions(db_session, student.id)
        assert [(t.type, t.amount) for t in txs] == [(TransactionType.GLOBAL_EARN, 15)]

    @pytest.mark.asyncio
    async def test_negative_rejected(self, db_session, student):
        with pytest.raises(ValueError, match="cannot be spent"):
            await apply_global_delta(db_session, student.id, -1, "gauntlet")

    @pytest.mark.asyncio
    async def test_zero_is_noop(self, db_session, make_student):
        s = await make_student(global_xp=7)
        assert await apply_global_delta(db_session, s.id, 0, "gauntlet") == 7
        assert await _transactions(db_session, s.id) == []
