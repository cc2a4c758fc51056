"""
Data Access Layer (Repositories)
=============================================================================
CONCEPT: Repository Pattern

Thin query functions over the *Record tables, used by SqlAdapter
(ops_portal/adapters/sql.py). Each takes the session first and returns ORM
rows; converting rows to domain entities is the adapter's job.

Most portal tables are read whole ("list all tool requests") and filtered
in the service layer, so the generic `list_rows` / `get_row` / `insert_row`
/ `update_row` helpers cover them. Queries with real predicates (email
lookup, date ranges, the attendance upsert) get their own functions.
=============================================================================
"""

from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ops_portal.db.engine import Base
from ops_portal.db.models import AttendanceRecord, UserRecord


# =============================================================================
# Generic helpers
# =============================================================================
async def list_rows(db: AsyncSession, record_cls: type[Base], order_by: Any = None) -> list:
    query = select(record_cls)
    if order_by is not None:
        query = query.order_by(order_by)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_row(db: AsyncSession, record_cls: type[Base], key: str):
    """Fetch one row by primary key, or None."""
    return await db.get(record_cls, key)


async def insert_row(db: AsyncSession, record):
    db.add(record)
    await db.commit()
    await db.refresh(record)
    return record


async def update_row(db: AsyncSession, record_cls: type[Base], key: str, **changes) -> bool:
    """
    Apply column changes to one row. Returns False when no row has `key`.
    """
    row = await db.get(record_cls, key)
    if row is None:
        return False
    for column, value in changes.items():
        setattr(row, column, value)
    await db.commit()
    return True


async def list_in_date_range(
    db: AsyncSession,
    record_cls: type[Base],
    start: str | None,
    end: str | None,
) -> list:
    """Rows whose `date` column lies in [start, end]. ISO strings sort as dates."""
    query = select(record_cls)
    if start:
        query = query.where(record_cls.date >= start[:10])
    if end:
        query = query.where(record_cls.date <= end[:10])
    result = await db.execute(query.order_by(record_cls.date))
    return list(result.scalars().all())


async def clear_tables(db: AsyncSession, *record_classes: type[Base]) -> None:
    for record_cls in record_classes:
        await db.execute(delete(record_cls))
    await db.commit()


# =============================================================================
# Users
# =============================================================================
async def get_user_by_email(db: AsyncSession, email: str) -> UserRecord | None:
    """Case-insensitive email lookup; `email` must already be normalized."""
    result = await db.execute(
        select(UserRecord).where(func.lower(UserRecord.email) == email)
    )
    return result.scalars().first()


# =============================================================================
# Attendance
# =============================================================================
async def upsert_attendance(db: AsyncSession, **fields) -> AttendanceRecord:
    """
    Insert or replace the entry for (date, user_id).

    The unique constraint uq_attendance_day_user guarantees at most one
    row matches.
    """
    result = await db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.date == fields["date"],
            AttendanceRecord.user_id == fields["user_id"],
        )
    )
    row = result.scalar_one_or_none()
    if row is None:
        row = AttendanceRecord(**fields)
        db.add(row)
    else:
        for column, value in fields.items():
            setattr(row, column, value)
    await db.commit()
    await db.refresh(row)
    return row
