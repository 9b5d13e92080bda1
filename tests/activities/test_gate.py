"""Exactly-once gate tests — concurrent writers and rollback."""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy import func, insert, select

from dojoxp.activities.gate import complete_once, parse_uuid, require_text
from dojoxp.db.models import QuizSubmission, Student, XpTransaction
from dojoxp.errors import StoreFailure, ValidationError


async def _tx_count(db) -> int:
    result = await db.execute(select(func.count()).select_from(XpTransaction))
    return result.scalar_one()


async def _total(db, student_id) -> int:
    result = await db.execute(select(Student.total_xp).where(Student.id == student_id))
    return result.scalar_one()


class TestConcurrentCompletion:
    """A unique-key violation rolls the whole unit back."""

    @pytest.mark.asyncio
    async def test_losing_writer_reports_duplicate(self, db_session, student, now):
        """Another request commits the same key between lookup and insert."""
        sid = student.id
        today = now.date()
        lookup = select(QuizSubmission).where(
            QuizSubmission.student_id == sid, QuizSubmission.quiz_date == today
        )

        async def build(_student):
            await db_session.execute(
                insert(QuizSubmission).values(
                    student_id=sid, quiz_date=today, is_correct=True, xp_awarded=15, created_at=now
                )
            )
            await db_session.commit()
            return QuizSubmission(
                student_id=sid, quiz_date=today, is_correct=False, xp_awarded=5, created_at=now
            ), False

        result = await complete_once(db_session, sid, lookup=lookup, build=build, reason="daily_quiz", now=now)

        assert result.duplicate is True
        assert result.awarded == 15
        assert await _tx_count(db_session) == 0
        assert await _total(db_session, sid) == 0

    @pytest.mark.asyncio
    async def test_unresolvable_conflict_is_store_failure(self, db_session, student, now):
        """A violation the lookup cannot explain is retryable, with nothing applied."""
        sid = student.id
        today = now.date()
        db_session.add(QuizSubmission(student_id=sid, quiz_date=today, is_correct=True, xp_awarded=15))
        await db_session.commit()
        blind_lookup = select(QuizSubmission).where(QuizSubmission.id == -1)

        async def build(_student):
            return QuizSubmission(
                student_id=sid, quiz_date=today, is_correct=True, xp_awarded=15, created_at=now
            ), False

        with pytest.raises(StoreFailure) as exc_info:
            await complete_once(db_session, sid, lookup=blind_lookup, build=build, reason="daily_quiz", now=now)

        assert exc_info.value.retryable
        assert await _tx_count(db_session) == 0
        assert await _total(db_session, sid) == 0

    @pytest.mark.asyncio
    async def test_failure_after_award_rolls_back_record_and_xp(self, db_session, student, now):
        """An error in the same unit leaves neither the record nor the XP behind."""
        sid = student.id
        today = now.date()
        lookup = select(QuizSubmission).where(
            QuizSubmission.student_id == sid, QuizSubmission.quiz_date == today
        )

        async def build(_student):
            return QuizSubmission(
                student_id=sid, quiz_date=today, is_correct=True, xp_awarded=15, created_at=now
            ), False

        async def explode(_record):
            raise RuntimeError("downstream failure")

        with pytest.raises(RuntimeError):
            await complete_once(
                db_session, sid, lookup=lookup, build=build, reason="daily_quiz", after_insert=explode, now=now
            )

        assert await _tx_count(db_session) == 0
        assert await _total(db_session, sid) == 0
        assert (await db_session.execute(lookup)).scalar_one_or_none() is None


class TestInputParsing:
    def test_parse_uuid_accepts_strings(self):
        sid = uuid.uuid4()
        assert parse_uuid(str(sid), "student_id") == sid

    @pytest.mark.parametrize("value", [None, "", "123", "zzzz-not-uuid"])
    def test_parse_uuid_rejects(self, value):
        with pytest.raises(ValidationError):
            parse_uuid(value, "student_id")

    def test_require_text_length(self):
        with pytest.raises(ValidationError, match="at most 5"):
            require_text("abcdefg", "habit_name", 5)
        assert require_text("  abc ", "habit_name", 5) == "abc"
