"""Exactly-once reward gate shared by every activity family.

One gated call = one ledger transaction:

1. lock the student row,
2. look up the completion record for the idempotency key,
3. if absent, build the record (cap computed here), insert it and
   forward its ``xp_awarded`` to the XP application service.

A prior record makes the call a duplicate that returns the original award.
A unique-key violation from a concurrent writer rolls everything back and is
resolved the same way.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dojoxp.database import ledger_transaction
from dojoxp.db.models import Student
from dojoxp.errors import NotFound, StoreFailure, ValidationError
from dojoxp.ledger.reconciliation import lifetime_xp
from dojoxp.ledger.xp_service import apply_delta
from dojoxp.periods import utcnow

logger = logging.getLogger(__name__)

RecordBuilder = Callable[[Student], Awaitable[tuple[Any, bool]]]
AfterInsert = Callable[[Any], Awaitable[None]]


@dataclass
class ActivityResult:
    """Outcome of an activity completion. Duplicates and caps are success-shaped."""

    awarded: int
    new_balance: int
    capped: bool = False
    duplicate: bool = False
    message: str = ""
    record: Any = None


def parse_uuid(value: uuid.UUID | str | None, field: str) -> uuid.UUID:
    """Parse an identifier or raise ValidationError before touching the store."""
    if isinstance(value, uuid.UUID):
        return value
    if not value:
        raise ValidationError(f"{field} is required")
    try:
        return uuid.UUID(str(value))
    except ValueError as exc:
        raise ValidationError(f"Invalid {field} format") from exc


def require_text(value: str | None, field: str, max_length: int) -> str:
    """Strip and validate a free-text key (habit name, challenge id)."""
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field} is required")
    if len(text) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return text


async def lock_student(db: AsyncSession, student_id: uuid.UUID) -> Student:
    """Load the student row FOR UPDATE, serializing gated calls per student."""
    result = await db.execute(
        select(Student)
        .where(Student.id == student_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    student = result.scalar_one_or_none()
    if student is None:
        raise NotFound(f"Student {student_id} not found")
    return student


async def complete_once(
    db: AsyncSession,
    student_id: uuid.UUID,
    *,
    lookup: Select,
    build: RecordBuilder,
    reason: str,
    after_insert: AfterInsert | None = None,
    now: datetime | None = None,
) -> ActivityResult:
    """Record one completion for an idempotency key and apply its reward.

    ``lookup`` selects the existing completion record for the key.
    ``build(student)`` returns ``(record, capped)`` for a first completion;
    the record's ``xp_awarded`` is the delta forwarded to the ledger (zero
    when capped). ``after_insert`` runs inside the same transaction.
    """
    if now is None:
        now = utcnow()

    try:
        async with ledger_transaction(db):
            student = await lock_student(db, student_id)
            existing = (await db.execute(lookup)).scalar_one_or_none()
            if existing is None:
                record, capped = await build(student)
                db.add(record)
                await db.flush()
                await apply_delta(db, student_id, record.xp_awarded, reason, now)
                if after_insert is not None:
                    await after_insert(record)
    except IntegrityError:
        logger.info("Concurrent completion for %s (%s); resolving as duplicate", student_id, reason)
        existing = (await db.execute(lookup)).scalar_one_or_none()
        if existing is None:
            raise StoreFailure("Completion could not be recorded; the request can be retried") from None

    balance = await lifetime_xp(db, student_id)
    if existing is not None:
        return ActivityResult(
            awarded=existing.xp_awarded,
            new_balance=balance,
            duplicate=True,
            record=existing,
        )
    return ActivityResult(
        awarded=record.xp_awarded,
        new_balance=balance,
        capped=capped,
        record=record,
    )
