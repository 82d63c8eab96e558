"""
Human-readable identifier generation
"""

from datetime import datetime
from typing import Optional
import logging

from sqlalchemy import update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from flashmob.core.clock import utcnow
from flashmob.models.id_sequence import IdSequence

logger = logging.getLogger(__name__)

SESSION_SEQUENCE = ("session", "S", 4)
JOIN_REQUEST_SEQUENCE = ("join_request", "JR", 5)
MESSAGE_SEQUENCE = ("message", "M", 6)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


async def _ensure_sequence_row(db: AsyncSession, name: str, year: int) -> None:
    """Create the (name, year) counter at zero unless it already exists"""
    insert = _INSERT_BY_DIALECT[db.get_bind().dialect.name]
    stmt = (
        insert(IdSequence)
        .values(name=name, year=year, value=0)
        .on_conflict_do_nothing(index_elements=[IdSequence.name, IdSequence.year])
    )
    await db.execute(stmt)


async def next_sequence_value(db: AsyncSession, name: str, year: int) -> int:
    """
    Increment and return the counter for (name, year).

    Both statements run inside the caller's transaction. The increment is a
    single UPDATE ... RETURNING, so the database serializes concurrent callers
    on the counter row and each one receives a distinct value.
    """
    await _ensure_sequence_row(db, name, year)

    stmt = (
        update(IdSequence)
        .where(IdSequence.name == name, IdSequence.year == year)
        .values(value=IdSequence.value + 1)
        .returning(IdSequence.value)
        .execution_options(synchronize_session=False)
    )
    return (await db.execute(stmt)).scalar_one()


async def generate_id(
    db: AsyncSession,
    sequence: tuple,
    now: Optional[datetime] = None
) -> str:
    """
    Build an id such as S20250007 or JR202500012 from a sequence definition
    """
    name, prefix, width = sequence
    year = (now or utcnow()).year
    value = await next_sequence_value(db, name, year)
    return format_id(prefix, year, value, width)


def format_id(prefix: str, year: int, value: int, width: int) -> str:
    return f"{prefix}{year}{value:0{width}d}"
