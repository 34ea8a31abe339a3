import logging
from contextlib import asynccontextmanager

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from nexus.core.errors import NexusError, StoreError, ValidationFailedError

log = logging.getLogger(__name__)

# dialects that support INSERT ... ON CONFLICT DO NOTHING
_CONFLICT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


@asynccontextmanager
async def store_guard(db: AsyncSession, message: str, **context):
    """
    Transaction boundary for one controller operation.

    Domain errors roll back and propagate unchanged. Database errors roll
    back, get logged, and surface as StoreError carrying `message`.
    """
    try:
        yield
    except NexusError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        log.exception("[store] %s %s", message, context)
        raise StoreError(message, **context) from exc


async def insert_unique(db: AsyncSession, model, values: dict, keys: list[str]) -> None:
    """
    Adds `values` to a set-like table keyed by `keys` (composite primary key).

    Uses the atomic ON CONFLICT DO NOTHING insert when the dialect has one,
    otherwise falls back to read-then-add. Does not commit.
    """
    dialect = db.get_bind().dialect.name
    conflict_insert = _CONFLICT_INSERTS.get(dialect)

    if conflict_insert is not None:
        stmt = conflict_insert(model).values(**values).on_conflict_do_nothing(index_elements=keys)
        await db.execute(stmt)
        return

    q = select(model).where(*[getattr(model, k) == values[k] for k in keys])
    existing = (await db.execute(q)).scalars().first()
    if existing is None:
        db.add(model(**values))
        await db.flush()


def apply_changes(target, changes: dict, required: tuple[str, ...] = ()) -> list[str]:
    """
    Copies a partial update onto a row. `required` columns may be left out
    but never set to None. Returns the changed field names.
    """
    nulled = [k for k in required if k in changes and changes[k] is None]
    if nulled:
        raise ValidationFailedError(errors=[f"Campo obrigatório: {k}" for k in nulled])

    for key, value in changes.items():
        setattr(target, key, value)
    return list(changes)
