"""Atomic counter updates for denormalized stats columns.

Updates are issued as ``SET col = col + n`` so concurrent writers never
lose increments; decrements are floored at zero.
"""

from sqlalchemy import case, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute


async def increment(
    db: AsyncSession, column: InstrumentedAttribute, row_id: int, amount: int = 1
) -> None:
    model = column.class_
    await db.execute(
        update(model).where(model.id == row_id).values({column.key: column + amount})
    )


async def decrement(
    db: AsyncSession, column: InstrumentedAttribute, row_id: int, amount: int = 1
) -> None:
    model = column.class_
    await db.execute(
        update(model)
        .where(model.id == row_id)
        .values({column.key: case((column >= amount, column - amount), else_=0)})
    )
